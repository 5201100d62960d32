"""
Error types for the YouTube Transcript Service

Every error carries the HTTP status code the API answers with, so the
shared exception handler can render it without knowing the concrete type.
"""

from typing import Any, Dict, Optional


class TranscriptServiceError(Exception):
    """Base error for the service"""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        video_id: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.video_id = video_id
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to a dictionary for logging"""
        return {
            "error": self.message,
            "status_code": self.status_code,
            "video_id": self.video_id,
            "original_error": str(self.original_error) if self.original_error else None,
            "error_type": self.__class__.__name__
        }


class BadRequestError(TranscriptServiceError):
    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class InvalidYouTubeUrlError(TranscriptServiceError):
    """Raised when a URL matches none of the known YouTube URL shapes"""

    def __init__(self, url: Optional[str] = None):
        super().__init__("Invalid YouTube URL", status_code=400)
        self.url = url


class VideoNotFoundError(TranscriptServiceError):
    def __init__(self, record_id: str):
        super().__init__("Video not found", status_code=404)
        self.record_id = record_id


class TranscriptFetchError(TranscriptServiceError):
    """Any failure while retrieving a transcript, other than a bad URL"""

    def __init__(self, reason: str, video_id: Optional[str] = None, original_error: Optional[Exception] = None):
        super().__init__(
            f"Failed to fetch transcript: {reason}",
            status_code=500,
            video_id=video_id,
            original_error=original_error
        )


class TranslationError(TranscriptServiceError):
    def __init__(self, reason: str, original_error: Optional[Exception] = None):
        super().__init__(
            f"Translation failed: {reason}",
            status_code=500,
            original_error=original_error
        )


class DatabaseConnectionError(TranscriptServiceError):
    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message, status_code=503, original_error=original_error)
