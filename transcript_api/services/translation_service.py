"""
Translation Service backed by the Google Cloud Translation v2 REST API

Translation never blocks a caller from getting an answer: without an API key,
or when the API refuses the key, the original text comes back marked as a
fallback.
"""

import asyncio
import logging
from typing import List, Optional

import requests

from ..config import DEFAULT_TRANSLATE_API_URL, Settings
from ..exceptions import TranslationError
from ..models import (
    FallbackOriginal,
    LanguageDetection,
    SupportedLanguage,
    Translated,
    TranslationResult
)

logger = logging.getLogger(__name__)

DETECTION_SAMPLE_CHARS = 1000

SUPPORTED_LANGUAGES = [
    ("en", "English"),
    ("es", "Spanish"),
    ("fr", "French"),
    ("de", "German"),
    ("hi", "Hindi"),
    ("zh", "Chinese"),
    ("ja", "Japanese"),
    ("ko", "Korean"),
    ("ar", "Arabic"),
    ("pt", "Portuguese"),
    ("ru", "Russian"),
    ("it", "Italian"),
]


class TranslationService:
    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: str = DEFAULT_TRANSLATE_API_URL,
        timeout: float = 10.0
    ):
        self.api_key = api_key or None
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "TranslationService":
        return cls(
            api_key=settings.translate_api_key,
            api_url=settings.translate_api_url,
            timeout=settings.translate_timeout
        )

    async def translate_text(self, text: str, target_lang: str, source_lang: str = "en") -> TranslationResult:
        """
        Translate text into the target language

        Args:
            text: Text to translate
            target_lang: Target language code (e.g. 'es', 'fr', 'hi')
            source_lang: Source language code

        Returns:
            Translated on success, FallbackOriginal when no key is configured
            or the API answers 403

        Raises:
            TranslationError: For any other failure
        """
        if not self.api_key:
            logger.warning("⚠️ Translation API key not configured, using fallback")
            return FallbackOriginal(translated_text=text, source_lang=source_lang, target_lang=target_lang)

        try:
            data = await asyncio.to_thread(
                self._post,
                self.api_url,
                {"q": text, "target": target_lang, "source": source_lang, "format": "text"}
            )
            translation = data["data"]["translations"][0]
            return Translated(
                translated_text=translation["translatedText"],
                source_lang=translation.get("detectedSourceLanguage") or source_lang,
                target_lang=target_lang
            )
        except requests.HTTPError as e:
            logger.error(f"❌ Translation error: {e}")
            if e.response is not None and e.response.status_code == 403:
                logger.warning("⚠️ Translation API not available, using fallback")
                return FallbackOriginal(translated_text=text, source_lang=source_lang, target_lang=target_lang)
            raise TranslationError(str(e), original_error=e) from e
        except (requests.RequestException, KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"❌ Translation error: {e}")
            raise TranslationError(str(e), original_error=e) from e

    async def detect_language(self, text: str) -> LanguageDetection:
        """
        Detect the language of text from its first 1000 characters

        Falls back to English with zero confidence when no key is configured
        or detection fails for any reason.
        """
        if not self.api_key:
            return LanguageDetection()

        try:
            data = await asyncio.to_thread(
                self._post,
                f"{self.api_url}/detect",
                {"q": text[:DETECTION_SAMPLE_CHARS]}
            )
            detection = data["data"]["detections"][0][0]
            return LanguageDetection(language=detection["language"], confidence=detection["confidence"])
        except Exception as e:
            logger.error(f"❌ Language detection error: {e}")
            return LanguageDetection()

    def get_supported_languages(self) -> List[SupportedLanguage]:
        return [SupportedLanguage(code=code, name=name) for code, name in SUPPORTED_LANGUAGES]

    def _post(self, url: str, payload: dict) -> dict:
        response = requests.post(url, json=payload, params={"key": self.api_key}, timeout=self.timeout)
        response.raise_for_status()
        return response.json()
