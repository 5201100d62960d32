"""
FastAPI Application for the YouTube Transcript Service

Fetches YouTube transcripts, stores them, and translates them on request.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Header, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import get_settings
from .database import DatabaseManager
from .exceptions import (
    BadRequestError,
    DatabaseConnectionError,
    InvalidYouTubeUrlError,
    TranscriptServiceError,
    VideoNotFoundError
)
from .models import (
    APIResponse,
    DetectLanguageRequest,
    FetchTranscriptRequest,
    NewVideo,
    TranslateTextRequest,
    TranslateTranscriptRequest,
    dump,
    dump_all
)
from .services.transcript_service import TranscriptService
from .services.translation_service import TranslationService
from .utils.youtube_utils import is_valid_youtube_url
from .video_store import VideoStore

settings = get_settings()

# Configure logging
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

SERVICE_NAME = "YouTube Transcript Service"
SERVICE_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database on startup; an unreachable database is fatal"""
    logger.info(f"🚀 {SERVICE_NAME} starting up...")

    db = DatabaseManager.from_settings(settings)
    try:
        await db.initialize()
    except DatabaseConnectionError as e:
        logger.critical(f"❌ {e.message}")
        raise SystemExit(1)

    app.state.db = db
    yield

    await db.close()
    logger.info(f"🔒 {SERVICE_NAME} shutting down...")


app = FastAPI(
    title=SERVICE_NAME,
    version=SERVICE_VERSION,
    description="Fetch, store and translate YouTube transcripts",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def envelope(
    success: bool = True,
    message: Optional[str] = None,
    data: Optional[Dict[str, Any]] = None,
    status_code: int = 200
) -> JSONResponse:
    """Build the {success, message?, data?} response every endpoint uses"""
    content: Dict[str, Any] = {"success": success}
    if message is not None:
        content["message"] = message
    if data is not None:
        content["data"] = data
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


# ==========================================
# Dependencies
# ==========================================

def get_db(request: Request) -> DatabaseManager:
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise DatabaseConnectionError("Database not available")
    return db


def get_video_store(db: DatabaseManager = Depends(get_db)) -> VideoStore:
    return VideoStore(db)


@lru_cache()
def get_transcript_service() -> TranscriptService:
    return TranscriptService()


@lru_cache()
def get_translation_service() -> TranslationService:
    return TranslationService.from_settings(get_settings())


# ==========================================
# Error Handlers
# ==========================================

@app.exception_handler(TranscriptServiceError)
async def service_error_handler(request: Request, exc: TranscriptServiceError):
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path} failed: {exc.to_dict()}")
    return envelope(success=False, message=exc.message, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
    else:
        message = "Invalid request"
    return envelope(success=False, message=message, status_code=400)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return envelope(success=False, message=str(exc.detail), status_code=exc.status_code)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return envelope(success=False, message="Internal server error", status_code=500)


# ==========================================
# Transcript Endpoints
# ==========================================

transcripts = APIRouter(prefix="/transcript", tags=["Transcripts"])


@transcripts.post("/fetch", response_model=APIResponse)
async def fetch_transcript(
    payload: Optional[FetchTranscriptRequest] = None,
    x_user_id: Optional[str] = Header(None),
    store: VideoStore = Depends(get_video_store),
    transcript_service: TranscriptService = Depends(get_transcript_service)
):
    """Fetch a YouTube transcript and store it unless it is already stored"""
    video_url = payload.video_url if payload else None
    if not video_url:
        raise BadRequestError("Video URL is required")

    if not is_valid_youtube_url(video_url):
        raise InvalidYouTubeUrlError(video_url)

    try:
        result = await transcript_service.fetch_transcript(video_url)

        video = await store.find_by_video_id(result.video_id)
        if video is None:
            video = await store.create(NewVideo(
                video_id=result.video_id,
                url=video_url,
                title=payload.title or f"Video {result.video_id}",
                transcript=result.transcript,
                uploaded_by=x_user_id
            ))
    except Exception as e:
        logger.error(f"Transcript fetch error: {e}")
        raise

    return envelope(
        message="Transcript fetched successfully",
        data={
            "videoId": video.video_id,
            "title": video.title,
            "transcript": video.transcript,
            "transcriptLength": len(video.transcript),
            "id": video.id
        }
    )


@transcripts.get("/{record_id}", response_model=APIResponse)
async def get_video(record_id: str, store: VideoStore = Depends(get_video_store)):
    """Get a stored video by its storage ID"""
    video = await store.find_by_id(record_id)
    if video is None:
        raise VideoNotFoundError(record_id)

    return envelope(data={"video": dump(video)})


@transcripts.post("/{record_id}/translate", response_model=APIResponse)
async def translate_transcript(
    record_id: str,
    payload: TranslateTranscriptRequest,
    store: VideoStore = Depends(get_video_store),
    translation_service: TranslationService = Depends(get_translation_service)
):
    """Translate the transcript of a stored video"""
    video = await store.find_by_id(record_id)
    if video is None:
        raise VideoNotFoundError(record_id)

    translation = await translation_service.translate_text(
        video.transcript, payload.target_lang, payload.source_lang
    )
    return envelope(
        message="Transcript translated successfully",
        data={"videoId": video.video_id, "id": video.id, "translation": dump(translation)}
    )


# ==========================================
# Translation Endpoints
# ==========================================

translation = APIRouter(prefix="/translate", tags=["Translation"])


@translation.post("", response_model=APIResponse)
async def translate_text(
    payload: TranslateTextRequest,
    translation_service: TranslationService = Depends(get_translation_service)
):
    result = await translation_service.translate_text(payload.text, payload.target_lang, payload.source_lang)
    return envelope(data=dump(result))


@translation.post("/detect", response_model=APIResponse)
async def detect_language(
    payload: DetectLanguageRequest,
    translation_service: TranslationService = Depends(get_translation_service)
):
    detection = await translation_service.detect_language(payload.text)
    return envelope(data=dump(detection))


@translation.get("/languages", response_model=APIResponse)
async def supported_languages(translation_service: TranslationService = Depends(get_translation_service)):
    languages = translation_service.get_supported_languages()
    return envelope(data={"languages": dump_all(languages)})


app.include_router(transcripts, prefix=settings.api_prefix)
app.include_router(translation, prefix=settings.api_prefix)


# ==========================================
# Health and Root
# ==========================================

@app.get("/health", response_model=APIResponse, tags=["Health"])
async def health_check(request: Request):
    """Health check; reports an unreachable database instead of failing"""
    db: Optional[DatabaseManager] = getattr(request.app.state, "db", None)
    connected = await db.is_connected() if db else False

    return envelope(
        success=connected,
        message="Service healthy" if connected else "Service unhealthy",
        data={
            "status": "healthy" if connected else "unhealthy",
            "database_connected": connected,
            "environment": settings.environment,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }
    )


@app.get("/", tags=["Root"])
async def root():
    """API root endpoint"""
    prefix = settings.api_prefix
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "endpoints": {
            "health": "/health",
            "docs": "/docs",
            "fetch_transcript": f"{prefix}/transcript/fetch",
            "get_video": f"{prefix}/transcript/{{id}}",
            "translate_transcript": f"{prefix}/transcript/{{id}}/translate",
            "translate": f"{prefix}/translate",
            "detect_language": f"{prefix}/translate/detect",
            "languages": f"{prefix}/translate/languages"
        }
    }


def run():
    """Console entry point"""
    uvicorn.run("transcript_api.main:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
