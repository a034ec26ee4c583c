"""Prompt construction and response parsing for chat-model translation.

The model is asked to answer with a JSON object carrying the translated
lines. A non-JSON reply is used as is; an empty reply or a failed request
raises ``TranslationFailed``. The source text is never returned in place of
a translation.

Prompt templates can be overridden in ``config/prompts.json``.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional, Sequence

from openai import OpenAI

from checkmenu.errors import EmptyTextError, TranslationFailed
from checkmenu.languages import detect_source_language

from .client import chat_completion

logger = logging.getLogger(__name__)

# prompts.json sits next to models.json under config/
_ROOT_DIR = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))
PROMPTS_PATH = os.path.join(_ROOT_DIR, "config", "prompts.json")

_DEFAULT_PROMPTS = {
    "single_translate": (
        "You are a professional translator. Translate the following text, recognized from a photo, "
        "from {source_language} to {target_language}. The text may contain OCR mistakes; if a word is "
        "misspelled, translate the most likely intended word. Keep one output line per input line, "
        "in the same order. Respond strictly in JSON (no explanations and no code blocks) with the fields:\n"
        "- 'total_lines': integer;\n"
        "- 'translated_lines': array of strings with the translation of each line in order.\n\n"
        "Source text:\n{source_text}"
    ),
}

_UNKNOWN_SOURCE = "auto-detected source language"


def _load_prompts(path: str = PROMPTS_PATH) -> Dict[str, str]:
    """Load prompt templates, falling back to the built-in ones.

    Doxygen:
    - @param path: Path to prompts.json.
    - @return: Built-in templates updated with the string entries from the file.
    """
    if not os.path.exists(path):
        return dict(_DEFAULT_PROMPTS)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        logger.warning("Could not read prompts from %s: %s; using defaults", path, exc)
        return dict(_DEFAULT_PROMPTS)
    prompts = dict(_DEFAULT_PROMPTS)
    if isinstance(data, dict):
        prompts.update({str(k): v for k, v in data.items() if isinstance(v, str)})
    return prompts


def _fill_prompt_template(tmpl: str, **values: str) -> str:
    """Fill a user-editable template that may contain literal braces.

    All braces are escaped first, then only the placeholders named in
    ``values`` are restored before calling ``str.format``.

    Doxygen:
    - @param tmpl: Template text with `{name}` placeholders.
    - @param values: Placeholder values.
    - @return: Filled prompt.
    """
    safe = str(tmpl).replace("{", "{{").replace("}", "}}")
    for key in values.keys():
        safe = safe.replace("{{" + key + "}}", "{" + key + "}")
    return safe.format(**values)


def _extract_json_object(response_text: str) -> Optional[Dict[str, Any]]:
    """Extract a JSON object from a possibly fenced model response.

    Doxygen:
    - @param response_text: Raw model reply.
    - @return: Parsed object, or None when no JSON object can be found.
    """
    if not response_text:
        return None
    s = response_text.strip()
    if s.startswith("```"):
        parts = s.split("```")
        if len(parts) >= 3:
            s = parts[1]
            if "\n" in s:
                first_line, rest = s.split("\n", 1)
                if first_line.strip().lower() in ("json", "javascript"):
                    s = rest
    start = s.find("{")
    end = s.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None
    try:
        obj = json.loads(s[start:end + 1])
    except ValueError:
        return None
    return obj if isinstance(obj, dict) else None


def extract_translation(response_text: str) -> Optional[str]:
    """Return the translated lines joined by newlines, or None if unparseable.

    Doxygen:
    - @param response_text: Raw model reply, expected to hold `translated_lines`.
    - @return: Translation text, or None when the reply has no usable JSON.
    """
    obj = _extract_json_object(response_text)
    if obj is None:
        return None
    arr = obj.get("translated_lines")
    if not isinstance(arr, list):
        return None
    total = obj.get("total_lines")
    if isinstance(total, int) and total != len(arr):
        logger.warning("Model reported %d lines but returned %d", total, len(arr))
    return "\n".join(str(x) for x in arr)


def build_translation_prompt(
    text: str,
    target_language: str,
    prompts: Optional[Dict[str, str]] = None,
    source_languages: Optional[Sequence[str]] = None,
) -> str:
    """Fill the translation prompt for one recognized text.

    Doxygen:
    - @param text: Recognized text to translate.
    - @param target_language: English name of the target language.
    - @param prompts: Templates to use instead of the loaded ones.
    - @param source_languages: Recognition language codes the source may be written in.
    - @return: Prompt naming the detected source language, or a generic
      placeholder when none of the candidates was detected.
    """
    source = detect_source_language(text, source_languages)
    tmpl = (prompts or _PROMPTS).get("single_translate", _DEFAULT_PROMPTS["single_translate"])
    return _fill_prompt_template(
        tmpl,
        source_language=source.name if source else _UNKNOWN_SOURCE,
        target_language=target_language,
        source_text=text,
    )


def translate_text_openrouter(
    client: OpenAI,
    model: str,
    text: str,
    target_language: str = "english",
    timeout: Optional[float] = 60.0,
    source_languages: Optional[Sequence[str]] = None,
) -> str:
    """Translate ``text`` with one chat completion request.

    Doxygen:
    - @param client: ``OpenAI`` client pointed at the provider.
    - @param model: Model id.
    - @param text: Recognized text.
    - @param target_language: English name of the target language.
    - @param timeout: Request timeout in seconds, or None.
    - @param source_languages: Recognition language codes used for source detection.
    - @return: Translated text.
    - @throws EmptyTextError: If ``text`` is blank.
    - @throws TranslationFailed: If the request errors or the reply holds no translation.
    """
    if not text or not text.strip():
        raise EmptyTextError("Cannot translate empty text.")

    prompt = build_translation_prompt(text, target_language, source_languages=source_languages)
    try:
        out = chat_completion(client, model, messages=[{"role": "user", "content": prompt}], timeout=timeout)
    except Exception as exc:
        raise TranslationFailed(f"Translation request failed: {exc}") from exc

    parsed = extract_translation(out)
    if parsed is None:
        logger.warning("LLM response is not valid JSON or has no 'translated_lines'; using raw text")
        parsed = out.strip()
    if not parsed.strip():
        raise TranslationFailed("Translation response was empty.")
    return parsed


_PROMPTS = _load_prompts()

__all__ = [
    "PROMPTS_PATH",
    "build_translation_prompt",
    "extract_translation",
    "translate_text_openrouter",
]
