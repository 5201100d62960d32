"""
Storage for fetched videos and their transcripts
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from .database import DatabaseManager
from .models import NewVideo, VideoRecord

logger = logging.getLogger(__name__)

VIDEO_COLUMNS = "id, video_id, url, title, transcript, uploaded_by, created_at"


class VideoStore:
    """Reads and creates Video records. Records are never updated or deleted."""

    def __init__(self, db: DatabaseManager):
        self.db = db

    async def find_by_video_id(self, video_id: str) -> Optional[VideoRecord]:
        async with self.db.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {VIDEO_COLUMNS} FROM videos WHERE video_id = $1",
                video_id
            )
        return VideoRecord.from_row(row) if row else None

    async def find_by_id(self, record_id: str) -> Optional[VideoRecord]:
        """Look up a record by its storage identifier; malformed ids match nothing"""
        try:
            key = uuid.UUID(str(record_id))
        except ValueError:
            return None

        async with self.db.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {VIDEO_COLUMNS} FROM videos WHERE id = $1",
                key
            )
        return VideoRecord.from_row(row) if row else None

    async def create(self, video: NewVideo) -> VideoRecord:
        """
        Store a video unless one with the same video_id already exists

        Returns the stored record, which is the pre-existing one when the
        video_id was already present.
        """
        async with self.db.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO videos (id, video_id, url, title, transcript, uploaded_by, created_at)
                VALUES ($1, $2, $3, $4, $5, $6, $7)
                ON CONFLICT (video_id) DO NOTHING
                RETURNING {VIDEO_COLUMNS}
                """,
                uuid.uuid4(),
                video.video_id,
                video.url,
                video.title,
                video.transcript,
                video.uploaded_by,
                datetime.now(timezone.utc)
            )
            if row is None:
                row = await conn.fetchrow(
                    f"SELECT {VIDEO_COLUMNS} FROM videos WHERE video_id = $1",
                    video.video_id
                )
            else:
                logger.info(f"🎥 Saved video: {video.video_id}")

        return VideoRecord.from_row(row)
