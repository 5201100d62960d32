"""
Transcript Service for YouTube Video Processing

Fetches captions with the youtube-transcript-api library and flattens them
into a single normalized string.
"""

import re
import time
import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from youtube_transcript_api import NoTranscriptFound, YouTubeTranscriptApi

from ..exceptions import InvalidYouTubeUrlError, TranscriptFetchError
from ..models import TranscriptResult
from ..utils.youtube_utils import extract_video_id

logger = logging.getLogger(__name__)

WHITESPACE_RUN = re.compile(r'\s+')


def join_segments(segments: Sequence[Dict[str, Any]]) -> str:
    """
    Join segment texts with single spaces and normalize whitespace

    >>> join_segments([{"text": "Hello"}, {"text": "world"}])
    'Hello world'
    """
    joined = " ".join(segment.get("text", "") for segment in segments)
    return WHITESPACE_RUN.sub(" ", joined).strip()


class TranscriptService:
    """
    Service class for fetching YouTube video transcripts
    """

    def __init__(self, api: Optional[YouTubeTranscriptApi] = None, languages: Sequence[str] = ("en",)):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        # None means a fresh client per fetch, so no HTTP session is shared between threads
        self.api = api
        self.languages = tuple(languages)

    async def fetch_transcript(self, video_url: str, language: Optional[str] = None) -> TranscriptResult:
        """
        Fetch and flatten the transcript of a YouTube video

        Args:
            video_url: YouTube video URL
            language: Preferred transcript language, defaults to the service languages

        Returns:
            TranscriptResult with the video ID, URL, text and segment count

        Raises:
            InvalidYouTubeUrlError: If the URL is not a supported YouTube URL
            TranscriptFetchError: For every other failure
        """
        start_time = time.time()
        video_id = None

        try:
            video_id = extract_video_id(video_url)
            self.logger.info(f"🎯 Fetching transcript for video: {video_id}")

            segments = await asyncio.to_thread(self._fetch_segments, video_id, language)

            if not segments:
                raise TranscriptFetchError("No transcript available for this video", video_id=video_id)

            transcript = join_segments(segments)

            processing_time = (time.time() - start_time) * 1000
            self.logger.info(
                f"✅ Fetched transcript for {video_id} "
                f"(segments: {len(segments)}, time: {processing_time:.2f}ms)"
            )

            return TranscriptResult(
                video_id=video_id,
                url=video_url,
                transcript=transcript,
                segment_count=len(segments)
            )

        except InvalidYouTubeUrlError:
            raise
        except TranscriptFetchError as e:
            self.logger.error(f"❌ {e.message}")
            raise
        except Exception as e:
            self.logger.error(f"❌ Error fetching transcript for {video_id or video_url}: {e}")
            raise TranscriptFetchError(str(e), video_id=video_id, original_error=e) from e

    def _fetch_segments(self, video_id: str, language: Optional[str]) -> List[Dict[str, Any]]:
        """
        Blocking call into youtube-transcript-api; run in a worker thread

        Without an explicit language the service languages are tried first,
        then whatever track the video has (e.g. a Hindi-only upload).
        """
        api = self.api or YouTubeTranscriptApi()
        transcript_list = api.list(video_id)
        languages = (language,) if language else self.languages

        try:
            transcript = transcript_list.find_transcript(languages)
        except NoTranscriptFound:
            if language:
                raise
            transcript = next(iter(transcript_list), None)
            if transcript is None:
                return []
            self.logger.info(f"🌐 No {'/'.join(languages)} transcript for {video_id}, using '{transcript.language_code}'")

        return transcript.fetch().to_raw_data()
