"""Chat-model connection for menu translation.

``config/models.json`` lists the chat models the translator may use and
which one is picked:

    {"model_number_picked": 0,
     "models": [{"provider": "openrouter", "model": "openai/gpt-4o-mini", "api_key": "sk-or-..."}]}

An entry may carry its own ``base_url``; otherwise the provider's default
endpoint is used. Every provider is reached through the ``openai`` client,
since they all speak the OpenAI chat completions protocol.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from openai import OpenAI

from checkmenu.errors import TranslationFailed

logger = logging.getLogger(__name__)

CONFIG_PATH = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "config", "models.json")

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

_PROVIDER_BASE_URLS = {
    "openrouter": OPENROUTER_BASE_URL,
    "openai": "https://api.openai.com/v1",
}

HEALTH_CHECK_TIMEOUT = 10.0


@dataclass(frozen=True)
class ModelChoice:
    provider: str
    model: str
    api_key: str
    base_url: str

    def __repr__(self) -> str:
        # keep the key out of logs
        return f"ModelChoice(provider={self.provider!r}, model={self.model!r}, base_url={self.base_url!r})"


def load_model_choice(path: str = CONFIG_PATH) -> ModelChoice:
    """Read models.json and return the picked entry.

    Doxygen:
    - @param path: Path to models.json.
    - @return: The ``ModelChoice`` selected by `model_number_picked`.
    - @throws FileNotFoundError: If the file is missing.
    - @throws ValueError: If the file is not valid JSON, the index is invalid,
      the entry lacks `model`/`api_key`, or the provider has no known endpoint.
    """
    with open(path, "r", encoding="utf-8") as f:
        cfg: Dict[str, Any] = json.load(f)

    models: List[Dict[str, Any]] = cfg.get("models", [])
    idx = cfg.get("model_number_picked")
    if not isinstance(idx, int) or isinstance(idx, bool):
        raise ValueError("models.json must include integer 'model_number_picked'.")
    if idx < 0 or idx >= len(models):
        raise ValueError("'model_number_picked' is out of range for available models.")

    item = models[idx]
    model = item.get("model")
    api_key = item.get("api_key")
    if not model or not api_key:
        raise ValueError("Selected model entry must include both 'model' and 'api_key'.")

    provider = str(item.get("provider") or "openrouter").strip().lower()
    base_url = item.get("base_url") or _PROVIDER_BASE_URLS.get(provider)
    if not base_url:
        raise ValueError(f"Unknown provider '{provider}'; set 'base_url' for this model entry.")
    return ModelChoice(provider=provider, model=model, api_key=api_key, base_url=base_url)


def create_client(choice: ModelChoice) -> OpenAI:
    return OpenAI(base_url=choice.base_url, api_key=choice.api_key)


def chat_completion(
    client: OpenAI,
    model: str,
    messages: List[Dict[str, str]],
    timeout: Optional[float] = 60.0,
) -> str:
    """Send one chat completion request.

    Doxygen:
    - @param client: ``OpenAI`` client pointed at the provider.
    - @param model: Model id, e.g. "openai/gpt-4o-mini".
    - @param messages: Chat messages in OpenAI format.
    - @param timeout: Request timeout in seconds, or None for no limit.
    - @return: Text of the first choice; an empty string when it has no content.
    """
    completion = client.chat.completions.create(
        model=model,
        messages=messages,
        timeout=timeout,
    )
    return completion.choices[0].message.content or ""


def check_model_health(client: OpenAI, model: str, timeout: Optional[float] = HEALTH_CHECK_TIMEOUT) -> None:
    """Send a one-word request to make sure the picked model answers.

    Doxygen:
    - @param client: ``OpenAI`` client pointed at the provider.
    - @param model: Model id to check.
    - @param timeout: Request timeout in seconds.
    - @throws TranslationFailed: If the request fails, so that translation is
      reported unavailable before any menu is sent.
    """
    try:
        chat_completion(client, model, messages=[{"role": "user", "content": "ping"}], timeout=timeout)
    except Exception as exc:
        raise TranslationFailed(f"Model '{model}' is not reachable: {exc}") from exc
    logger.info("Model %s answered the health check", model)


__all__ = [
    "CONFIG_PATH",
    "HEALTH_CHECK_TIMEOUT",
    "ModelChoice",
    "OPENROUTER_BASE_URL",
    "chat_completion",
    "check_model_health",
    "create_client",
    "load_model_choice",
]
