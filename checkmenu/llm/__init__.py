"""Translation layer.

Chat-model connection (OpenRouter and other OpenAI-compatible providers via
the ``openai`` package), prompt building/parsing and the asynchronous
``TranslationService`` used by the pipeline.
"""

from .client import (
    CONFIG_PATH,
    ModelChoice,
    chat_completion,
    check_model_health,
    create_client,
    load_model_choice,
)
from .translate import (
    build_translation_prompt,
    extract_translation,
    translate_text_openrouter,
)
from .service import (
    OpenRouterBackend,
    TranslationBackend,
    TranslationService,
    get_translation_service,
    set_translation_service,
)

__all__ = [
    "CONFIG_PATH",
    "ModelChoice",
    "chat_completion",
    "check_model_health",
    "create_client",
    "load_model_choice",
    "build_translation_prompt",
    "extract_translation",
    "translate_text_openrouter",
    "OpenRouterBackend",
    "TranslationBackend",
    "TranslationService",
    "get_translation_service",
    "set_translation_service",
]
