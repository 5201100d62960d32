"""
Database connection management for the YouTube Transcript Service
"""

import asyncio
import itertools
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional, Set

import asyncpg

from .config import Settings
from .exceptions import DatabaseConnectionError

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS videos (
    id UUID PRIMARY KEY,
    video_id TEXT NOT NULL UNIQUE,
    url TEXT NOT NULL,
    title TEXT NOT NULL,
    transcript TEXT NOT NULL,
    uploaded_by TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
)
"""


class DatabaseManager:
    """
    Owns the connection pool for the service

    Created once at startup and handed to whatever needs the database.
    When an established connection drops, one reconnect attempt is scheduled
    after a fixed delay.
    """

    def __init__(
        self,
        database_url: str,
        connect_timeout: float = 5.0,
        reconnect_delay: float = 5.0,
        min_size: int = 1,
        max_size: int = 10
    ):
        self.database_url = database_url
        self.connect_timeout = connect_timeout
        self.reconnect_delay = reconnect_delay
        self.min_size = min_size
        self.max_size = max_size

        self.pg_pool: Optional[asyncpg.Pool] = None
        self._closing = False
        self._reconnect_timers: Dict[int, asyncio.TimerHandle] = {}
        self._timer_ids = itertools.count()
        self._reconnect_tasks: Set[asyncio.Task] = set()

    @classmethod
    def from_settings(cls, settings: Settings) -> "DatabaseManager":
        return cls(
            settings.database_url,
            connect_timeout=settings.db_connect_timeout,
            reconnect_delay=settings.db_reconnect_delay,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size
        )

    async def initialize(self):
        """
        Open the connection pool and make sure the schema exists

        Raises:
            DatabaseConnectionError: If the database cannot be reached
        """
        self._closing = False
        try:
            self.pg_pool = await asyncpg.create_pool(
                self.database_url,
                min_size=self.min_size,
                max_size=self.max_size,
                timeout=self.connect_timeout,
                max_inactive_connection_lifetime=0,
                # Recycling after N queries closes connections and would fire the termination listener
                max_queries=float("inf"),
                init=self._init_connection,
                server_settings={'application_name': 'youtube_transcript_service'}
            )
            async with self.pg_pool.acquire() as conn:
                await conn.execute(SCHEMA_SQL)
        except Exception as e:
            logger.error(f"❌ Error connecting to database: {e}")
            if self.pg_pool is not None:
                self._closing = True
                self.pg_pool.terminate()
                self.pg_pool = None
            raise DatabaseConnectionError(f"Could not connect to database: {e}", original_error=e) from e

        logger.info(f"✅ Database connected: {self._host()}")

    async def close(self):
        """Cancel pending reconnects and close the pool"""
        self._closing = True

        for timer in self._reconnect_timers.values():
            timer.cancel()
        self._reconnect_timers.clear()

        for task in list(self._reconnect_tasks):
            task.cancel()
        self._reconnect_tasks.clear()

        if self.pg_pool:
            await self.pg_pool.close()
            self.pg_pool = None
            logger.info("🔒 Database connection pool closed")

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        """Borrow a connection from the pool"""
        if not self.pg_pool:
            raise DatabaseConnectionError("Database not initialized")

        async with self.pg_pool.acquire() as conn:
            yield conn

    async def is_connected(self) -> bool:
        if not self.pg_pool:
            return False
        try:
            async with self.pg_pool.acquire(timeout=self.connect_timeout) as conn:
                await conn.fetchval("SELECT 1")
            return True
        except Exception as e:
            logger.error(f"❌ Database connection error: {e}")
            return False

    @property
    def pending_reconnects(self) -> int:
        return len(self._reconnect_timers)

    # ==========================================
    # Disconnect handling
    # ==========================================

    async def _init_connection(self, conn: asyncpg.Connection):
        try:
            conn.add_termination_listener(self._on_connection_lost)
        except Exception as e:
            logger.error(f"❌ Database connection setup failed: {e}")
            raise

    def _on_connection_lost(self, conn: asyncpg.Connection):
        if self._closing:
            return

        logger.warning(f"⚠️ Database disconnected, retrying in {self.reconnect_delay}s...")
        loop = asyncio.get_running_loop()
        timer_id = next(self._timer_ids)
        self._reconnect_timers[timer_id] = loop.call_later(self.reconnect_delay, self._start_reconnect, timer_id)

    def _start_reconnect(self, timer_id: int):
        self._reconnect_timers.pop(timer_id, None)
        task = asyncio.ensure_future(self.reconnect())
        self._reconnect_tasks.add(task)
        task.add_done_callback(self._reconnect_tasks.discard)

    async def reconnect(self) -> bool:
        """
        Try once to get a working connection back

        A failure is logged, not raised; nothing schedules a further attempt.
        """
        if self._closing or not self.pg_pool:
            return False
        try:
            async with self.pg_pool.acquire(timeout=self.connect_timeout) as conn:
                await conn.fetchval("SELECT 1")
        except Exception as e:
            logger.error(f"❌ Database reconnect failed: {e}")
            return False

        logger.info(f"✅ Database reconnected: {self._host()}")
        return True

    def _host(self) -> str:
        # Keep credentials out of the logs
        return self.database_url.rsplit("@", 1)[-1]
