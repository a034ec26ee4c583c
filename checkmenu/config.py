"""Configuration loading from the JSON files under ``config/``.

- settings.json: recognition languages/level, target language, timeouts, camera,
  optional model health check on start
- dependencies.json: optional path to the Tesseract executable
- models.json / prompts.json: read by ``checkmenu.llm``
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import pytesseract

from checkmenu.languages import normalize_and_validate_target_language, resolve_languages

logger = logging.getLogger(__name__)

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
CONFIG_DIR = os.path.join(PROJECT_ROOT, "config")
SETTINGS_PATH = os.path.join(CONFIG_DIR, "settings.json")
DEPENDENCIES_PATH = os.path.join(CONFIG_DIR, "dependencies.json")

DEFAULT_RECOGNITION_LANGUAGES: Tuple[str, ...] = ("en", "ru", "es", "fr", "de", "it", "pt", "zh", "ja", "ko")
RECOGNITION_LEVELS = ("accurate", "fast")


@dataclass(frozen=True)
class Settings:
    recognition_languages: Tuple[str, ...] = DEFAULT_RECOGNITION_LANGUAGES
    recognition_level: str = "accurate"
    target_language: str = "english"
    request_timeout: Optional[float] = 60.0
    camera_index: int = 0
    check_model_on_start: bool = False


def _resolve_path(base: str, relative: str) -> str:
    return os.path.abspath(os.path.join(base, relative))


def _read_json(path: str) -> Optional[Dict[str, Any]]:
    if not os.path.exists(path):
        return None
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a JSON object: {path}")
    return data


def settings_from_dict(raw: Dict[str, Any]) -> Settings:
    """Build validated ``Settings`` from a parsed settings.json mapping.

    Unknown keys are ignored; missing keys take the dataclass defaults.
    Raises ``ValueError`` on invalid values.
    """
    defaults = Settings()

    langs = raw.get("recognition_languages", defaults.recognition_languages)
    if isinstance(langs, str) or not langs:
        raise ValueError("'recognition_languages' must be a non-empty list of language codes.")
    langs = tuple(str(code).strip() for code in langs)
    resolve_languages(langs)

    level = str(raw.get("recognition_level", defaults.recognition_level)).strip().lower()
    if level not in RECOGNITION_LEVELS:
        raise ValueError(f"'recognition_level' must be one of {', '.join(RECOGNITION_LEVELS)}; got '{level}'.")

    target = normalize_and_validate_target_language(raw.get("target_language", defaults.target_language))

    timeout = raw.get("request_timeout", defaults.request_timeout)
    # <= 0 disables the timeout
    if timeout is not None:
        timeout = float(timeout)
        if timeout <= 0:
            timeout = None

    camera_index = int(raw.get("camera_index", defaults.camera_index))
    check_model_on_start = raw.get("check_model_on_start", defaults.check_model_on_start)
    if not isinstance(check_model_on_start, bool):
        raise ValueError("'check_model_on_start' must be true or false.")

    return Settings(
        recognition_languages=langs,
        recognition_level=level,
        target_language=target,
        request_timeout=timeout,
        camera_index=camera_index,
        check_model_on_start=check_model_on_start,
    )


def load_settings(path: str = SETTINGS_PATH) -> Settings:
    """Load settings.json, falling back to defaults when the file is absent."""
    raw = _read_json(path)
    if raw is None:
        logger.warning("settings.json not found at %s; using defaults", path)
        return Settings()
    return settings_from_dict(raw)


def configure_dependencies(path: str = DEPENDENCIES_PATH) -> Optional[str]:
    """Point pytesseract at the executable from dependencies.json, if configured.

    Returns the absolute Tesseract path that was applied, or None.
    """
    try:
        deps = _read_json(path)
    except (OSError, ValueError) as exc:
        logger.warning("Could not load dependencies from %s: %s", path, exc)
        return None

    if deps is None:
        logger.debug("dependencies.json not found at %s; using Tesseract from PATH", path)
        return None

    tess_rel = deps.get("tesseract_path")
    if not tess_rel:
        return None
    tess_abs = _resolve_path(os.path.dirname(os.path.dirname(path)), tess_rel)
    if not os.path.exists(tess_abs):
        logger.warning("Tesseract path from config does not exist: %s", tess_abs)
        return None
    pytesseract.pytesseract.tesseract_cmd = tess_abs
    return tess_abs


__all__ = [
    "CONFIG_DIR",
    "DEFAULT_RECOGNITION_LANGUAGES",
    "RECOGNITION_LEVELS",
    "Settings",
    "configure_dependencies",
    "load_settings",
    "settings_from_dict",
]
