"""
Pydantic Models for the YouTube Transcript Service

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ==========================================
# Video Record Models
# ==========================================

class NewVideo(CamelModel):
    """Fields needed to store a fetched video"""
    video_id: str
    url: str
    title: str
    transcript: str
    uploaded_by: Optional[str] = None


class VideoRecord(NewVideo):
    """A stored video and its transcript"""
    id: str
    created_at: datetime

    @classmethod
    def from_row(cls, row) -> "VideoRecord":
        data = dict(row)
        data["id"] = str(data["id"])
        return cls(**data)


# ==========================================
# Service Result Models
# ==========================================

class TranscriptResult(CamelModel):
    """Output of a transcript fetch"""
    video_id: str
    url: str
    transcript: str
    segment_count: int


class Translated(CamelModel):
    """Text the translation API translated"""
    translated_text: str
    source_lang: str
    target_lang: str
    fallback: Literal[False] = Field(False, exclude=True)


class FallbackOriginal(CamelModel):
    """Original text returned because translation was unavailable"""
    translated_text: str
    source_lang: str
    target_lang: str
    fallback: Literal[True] = True


TranslationResult = Union[Translated, FallbackOriginal]


class LanguageDetection(CamelModel):
    language: str = "en"
    confidence: float = 0


class SupportedLanguage(CamelModel):
    code: str
    name: str


# ==========================================
# Request Models
# ==========================================

class FetchTranscriptRequest(CamelModel):
    """Input for fetching a transcript; the URL is checked by the handler"""
    video_url: Optional[str] = Field(None, description="YouTube video URL")
    title: Optional[str] = Field(None, description="Optional video title")


class TranslateTextRequest(CamelModel):
    text: str = Field(..., description="Text to translate")
    target_lang: str = Field(..., min_length=1, description="Target language code, e.g. 'es'")
    source_lang: str = Field("en", min_length=1, description="Source language code")


class TranslateTranscriptRequest(CamelModel):
    target_lang: str = Field(..., min_length=1, description="Target language code, e.g. 'es'")
    source_lang: str = Field("en", min_length=1, description="Source language code")


class DetectLanguageRequest(CamelModel):
    text: str = Field(..., description="Text to analyze")


# ==========================================
# API Response Models
# ==========================================

class APIResponse(BaseModel):
    """Generic API response wrapper"""
    success: bool
    message: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


def dump(model: BaseModel) -> Dict[str, Any]:
    """Serialize a model the way the API presents it"""
    return model.model_dump(by_alias=True, mode="json")


def dump_all(models: List[BaseModel]) -> List[Dict[str, Any]]:
    return [dump(model) for model in models]
