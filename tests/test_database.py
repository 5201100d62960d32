"""
Unit tests for DatabaseManager and VideoStore
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import asyncpg
import pytest

from transcript_api.database import SCHEMA_SQL, DatabaseManager
from transcript_api.exceptions import DatabaseConnectionError
from transcript_api.models import NewVideo
from transcript_api.video_store import VideoStore

from .conftest import make_pool


def video_row(video_id="dQw4w9WgXcQ", record_id=None):
    return {
        "id": record_id or uuid.uuid4(),
        "video_id": video_id,
        "url": f"https://youtu.be/{video_id}",
        "title": f"Video {video_id}",
        "transcript": "Hello world",
        "uploaded_by": "user-1",
        "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
    }


class TestDatabaseManagerLifecycle:

    @pytest.mark.asyncio
    async def test_initialize_creates_pool_and_schema(self, mock_conn):
        pool = make_pool(mock_conn)
        manager = DatabaseManager("postgresql://localhost/transcripts", connect_timeout=5.0)

        with patch("transcript_api.database.asyncpg.create_pool", new=AsyncMock(return_value=pool)) as create_pool:
            await manager.initialize()

        assert manager.pg_pool is pool
        assert create_pool.call_args.kwargs["timeout"] == 5.0
        assert create_pool.call_args.kwargs["max_queries"] == float("inf")
        mock_conn.execute.assert_awaited_once_with(SCHEMA_SQL)

    @pytest.mark.asyncio
    async def test_initialize_failure_raises_connection_error(self):
        manager = DatabaseManager("postgresql://localhost/transcripts")

        with patch("transcript_api.database.asyncpg.create_pool", new=AsyncMock(side_effect=OSError("refused"))):
            with pytest.raises(DatabaseConnectionError) as exc_info:
                await manager.initialize()

        assert "refused" in exc_info.value.message
        assert manager.pg_pool is None

    @pytest.mark.asyncio
    async def test_schema_failure_terminates_pool_without_reconnecting(self, mock_conn):
        pool = make_pool(mock_conn)
        mock_conn.execute.side_effect = OSError("connection reset by peer")
        manager = DatabaseManager("postgresql://localhost/transcripts", reconnect_delay=0.01)
        pool.terminate.side_effect = lambda: manager._on_connection_lost(mock_conn)

        with patch("transcript_api.database.asyncpg.create_pool", new=AsyncMock(return_value=pool)):
            with pytest.raises(DatabaseConnectionError):
                await manager.initialize()

        pool.terminate.assert_called_once()
        assert manager.pg_pool is None
        assert manager.pending_reconnects == 0

    @pytest.mark.asyncio
    async def test_connection_setup_failure_is_logged(self, db_manager, mock_conn, caplog):
        mock_conn.add_termination_listener.side_effect = asyncpg.InterfaceError("connection is closed")

        with caplog.at_level(logging.ERROR, logger="transcript_api.database"):
            with pytest.raises(asyncpg.InterfaceError):
                await db_manager._init_connection(mock_conn)

        assert "Database connection setup failed: connection is closed" in caplog.text

    @pytest.mark.asyncio
    async def test_new_connections_get_termination_listener(self, db_manager, mock_conn):
        await db_manager._init_connection(mock_conn)

        mock_conn.add_termination_listener.assert_called_once_with(db_manager._on_connection_lost)

    @pytest.mark.asyncio
    async def test_acquire_before_initialize_fails(self):
        manager = DatabaseManager("postgresql://localhost/transcripts")

        with pytest.raises(DatabaseConnectionError):
            async with manager.acquire():
                pass

    @pytest.mark.asyncio
    async def test_close_closes_pool(self, db_manager, mock_pool):
        await db_manager.close()

        mock_pool.close.assert_awaited_once()
        assert db_manager.pg_pool is None

    @pytest.mark.asyncio
    async def test_is_connected(self, db_manager, mock_conn):
        mock_conn.fetchval.return_value = 1
        assert await db_manager.is_connected() is True

        mock_conn.fetchval.side_effect = ConnectionResetError("gone")
        assert await db_manager.is_connected() is False

    def test_credentials_are_not_logged(self, db_manager):
        assert db_manager._host() == "db.example:5432/transcripts"


class TestReconnect:

    @pytest.mark.asyncio
    async def test_disconnect_schedules_one_reconnect(self, db_manager):
        db_manager.reconnect = AsyncMock(return_value=True)

        db_manager._on_connection_lost(MagicMock())
        assert db_manager.pending_reconnects == 1

        await asyncio.sleep(0.05)

        db_manager.reconnect.assert_awaited_once()
        assert db_manager.pending_reconnects == 0

    @pytest.mark.asyncio
    async def test_each_disconnect_gets_its_own_attempt(self, db_manager):
        db_manager.reconnect = AsyncMock(return_value=True)

        db_manager._on_connection_lost(MagicMock())
        db_manager._on_connection_lost(MagicMock())
        await asyncio.sleep(0.05)

        assert db_manager.reconnect.await_count == 2

    @pytest.mark.asyncio
    async def test_close_cancels_pending_reconnect(self, db_manager):
        db_manager.reconnect_delay = 0.05
        db_manager.reconnect = AsyncMock(return_value=True)

        db_manager._on_connection_lost(MagicMock())
        await db_manager.close()
        await asyncio.sleep(0.1)

        db_manager.reconnect.assert_not_awaited()
        assert db_manager.pending_reconnects == 0

    @pytest.mark.asyncio
    async def test_disconnect_during_close_is_ignored(self, db_manager):
        await db_manager.close()

        db_manager._on_connection_lost(MagicMock())

        assert db_manager.pending_reconnects == 0

    @pytest.mark.asyncio
    async def test_reconnect_success(self, db_manager, mock_conn):
        mock_conn.fetchval.return_value = 1

        assert await db_manager.reconnect() is True

    @pytest.mark.asyncio
    async def test_reconnect_failure_is_not_fatal(self, db_manager, mock_conn, caplog):
        mock_conn.fetchval.side_effect = OSError("still down")

        with caplog.at_level(logging.ERROR, logger="transcript_api.database"):
            assert await db_manager.reconnect() is False

        assert [r.levelno for r in caplog.records] == [logging.ERROR]
        assert "still down" in caplog.text


class TestVideoStore:

    @pytest.mark.asyncio
    async def test_find_by_video_id(self, db_manager, mock_conn):
        row = video_row()
        mock_conn.fetchrow.return_value = row

        video = await VideoStore(db_manager).find_by_video_id("dQw4w9WgXcQ")

        assert video.id == str(row["id"])
        assert video.video_id == "dQw4w9WgXcQ"
        assert mock_conn.fetchrow.call_args.args[1] == "dQw4w9WgXcQ"

    @pytest.mark.asyncio
    async def test_find_by_id_missing(self, db_manager, mock_conn):
        mock_conn.fetchrow.return_value = None

        assert await VideoStore(db_manager).find_by_id(str(uuid.uuid4())) is None

    @pytest.mark.asyncio
    async def test_find_by_id_with_malformed_id_skips_query(self, db_manager, mock_conn):
        assert await VideoStore(db_manager).find_by_id("not-a-uuid") is None

        mock_conn.fetchrow.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_inserts_new_video(self, db_manager, mock_conn):
        row = video_row()
        mock_conn.fetchrow.return_value = row
        new_video = NewVideo(
            video_id="dQw4w9WgXcQ",
            url="https://youtu.be/dQw4w9WgXcQ",
            title="Video dQw4w9WgXcQ",
            transcript="Hello world",
            uploaded_by="user-1"
        )

        video = await VideoStore(db_manager).create(new_video)

        assert video.id == str(row["id"])
        assert mock_conn.fetchrow.await_count == 1
        assert "ON CONFLICT (video_id) DO NOTHING" in mock_conn.fetchrow.call_args.args[0]

    @pytest.mark.asyncio
    async def test_create_returns_existing_video_on_conflict(self, db_manager, mock_conn):
        existing = video_row()
        mock_conn.fetchrow.side_effect = [None, existing]
        new_video = NewVideo(
            video_id="dQw4w9WgXcQ",
            url="https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            title="Another title",
            transcript="Hello world"
        )

        video = await VideoStore(db_manager).create(new_video)

        assert video.id == str(existing["id"])
        assert video.title == "Video dQw4w9WgXcQ"
        assert mock_conn.fetchrow.await_count == 2
