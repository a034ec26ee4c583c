"""Asynchronous translation service and its process-wide instance.

``TranslationService`` wraps any blocking ``TranslationBackend`` and runs it
off the event loop. Production code obtains the shared instance through
``get_translation_service()``; tests construct their own with a stub backend.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol, Sequence, runtime_checkable

from openai import OpenAI

from checkmenu.config import load_settings
from checkmenu.errors import CheckMenuError, EmptyTextError, TranslationFailed

from .client import CONFIG_PATH, HEALTH_CHECK_TIMEOUT, check_model_health, create_client, load_model_choice
from .translate import translate_text_openrouter

logger = logging.getLogger(__name__)


@runtime_checkable
class TranslationBackend(Protocol):
    def translate(self, text: str) -> str:
        ...


class OpenRouterBackend:
    """Chat-model backend addressed through an OpenRouter-compatible API.

    ``source_languages`` are the recognition languages; the prompt names
    whichever of them the text appears to be written in.
    """

    def __init__(
        self,
        client: Optional[OpenAI] = None,
        model: Optional[str] = None,
        target_language: str = "english",
        timeout: Optional[float] = 60.0,
        source_languages: Optional[Sequence[str]] = None,
        models_path: str = CONFIG_PATH,
    ) -> None:
        if client is None or model is None:
            choice = load_model_choice(models_path)
            logger.info("Using %r", choice)
            client = client or create_client(choice)
            model = model or choice.model
        self.client = client
        self.model = model
        self.target_language = target_language
        self.timeout = timeout
        self.source_languages = tuple(source_languages) if source_languages else None

    def translate(self, text: str) -> str:
        return translate_text_openrouter(
            self.client,
            self.model,
            text,
            target_language=self.target_language,
            timeout=self.timeout,
            source_languages=self.source_languages,
        )

    def check_health(self) -> None:
        timeout = min(HEALTH_CHECK_TIMEOUT, self.timeout) if self.timeout else HEALTH_CHECK_TIMEOUT
        check_model_health(self.client, self.model, timeout=timeout)

class TranslationService:
    """Translate text on a worker thread; no state is kept between calls."""

    def __init__(self, backend: TranslationBackend) -> None:
        self.backend = backend

    async def translate(self, text: str) -> str:
        """Return the translation of ``text``.

        Raises ``EmptyTextError`` before dispatch for blank input and
        ``TranslationFailed`` for any backend error.
        """
        if not text or not text.strip():
            raise EmptyTextError("Cannot translate empty text.")
        try:
            translated = await asyncio.to_thread(self.backend.translate, text)
        except CheckMenuError:
            raise
        except Exception as exc:
            raise TranslationFailed(f"Translation backend error: {exc}") from exc
        if not isinstance(translated, str):
            raise TranslationFailed(f"Translation backend returned {type(translated).__name__}, expected str.")
        logger.info("Translated %d characters into %d characters", len(text), len(translated))
        return translated


_shared_service: Optional[TranslationService] = None


def get_translation_service(check_health: bool = False) -> TranslationService:
    """Return the shared service, building the OpenRouter one on first use.

    With ``check_health`` a newly built backend must answer a short request
    before it is shared; ``TranslationFailed`` is raised otherwise and the
    next call tries again.
    """
    global _shared_service
    if _shared_service is None:
        settings = load_settings()
        backend = OpenRouterBackend(
            target_language=settings.target_language,
            timeout=settings.request_timeout,
            source_languages=settings.recognition_languages,
        )
        if check_health:
            backend.check_health()
        _shared_service = TranslationService(backend)
    return _shared_service


def set_translation_service(service: Optional[TranslationService]) -> None:
    """Install ``service`` as the shared instance (None clears it)."""
    global _shared_service
    _shared_service = service


__all__ = [
    "OpenRouterBackend",
    "TranslationBackend",
    "TranslationService",
    "get_translation_service",
    "set_translation_service",
]
