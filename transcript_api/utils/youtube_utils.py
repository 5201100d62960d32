"""
YouTube Utilities for URL validation and video ID extraction
"""

import re
import logging

from ..exceptions import InvalidYouTubeUrlError

logger = logging.getLogger(__name__)

# Checked in order; the first pattern that matches wins
YOUTUBE_URL_PATTERNS = [
    # Watch URLs and short links
    re.compile(r'(?:youtube\.com/watch\?v=|youtu\.be/)([^&\n?#]+)'),

    # Embed URLs
    re.compile(r'youtube\.com/embed/([^&\n?#]+)'),

    # Direct /v/ URLs
    re.compile(r'youtube\.com/v/([^&\n?#]+)'),
]


def extract_video_id(url: str) -> str:
    """
    Extract video ID from a YouTube URL

    Args:
        url: YouTube URL

    Returns:
        The video ID

    Raises:
        InvalidYouTubeUrlError: If the URL matches no supported format

    Examples:
        >>> extract_video_id("https://www.youtube.com/watch?v=dQw4w9WgXcQ")
        'dQw4w9WgXcQ'
        >>> extract_video_id("https://youtu.be/dQw4w9WgXcQ")
        'dQw4w9WgXcQ'
    """
    if not url or not isinstance(url, str):
        raise InvalidYouTubeUrlError(url)

    for pattern in YOUTUBE_URL_PATTERNS:
        match = pattern.search(url)
        if match and match.group(1):
            video_id = match.group(1)
            logger.debug(f"Extracted video ID '{video_id}' from URL: {url}")
            return video_id

    logger.debug(f"Could not extract video ID from: {url}")
    raise InvalidYouTubeUrlError(url)


def is_valid_youtube_url(url: str) -> bool:
    """
    Check whether a string is a supported YouTube URL

    Examples:
        >>> is_valid_youtube_url("https://www.youtube.com/embed/dQw4w9WgXcQ")
        True
        >>> is_valid_youtube_url("invalid-url")
        False
    """
    try:
        extract_video_id(url)
        return True
    except InvalidYouTubeUrlError:
        return False
