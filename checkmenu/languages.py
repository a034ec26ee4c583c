"""Languages the menu reader can recognize, name and translate into.

One table ties each BCP-47 style code to the English language name used in
prompts and settings and to the Tesseract traineddata that reads it. The
recognition languages configured in ``settings.json`` select rows from this
table; the Tesseract ``lang`` argument, the languages langdetect may report
and the accepted translation targets are all derived from it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from langdetect import DetectorFactory, LangDetectException, detect_langs

logger = logging.getLogger(__name__)

# deterministic langdetect results
DetectorFactory.seed = 0


@dataclass(frozen=True)
class Language:
    code: str
    name: str
    tesseract: str


SUPPORTED_LANGUAGES: Tuple[Language, ...] = (
    Language("en", "english", "eng"),
    Language("ru", "russian", "rus"),
    Language("uk", "ukrainian", "ukr"),
    Language("es", "spanish", "spa"),
    Language("fr", "french", "fra"),
    Language("de", "german", "deu"),
    Language("it", "italian", "ita"),
    Language("pt", "portuguese", "por"),
    Language("zh", "chinese", "chi_sim"),
    Language("zh-hant", "chinese", "chi_tra"),
    Language("ja", "japanese", "jpn"),
    Language("ko", "korean", "kor"),
)

_BY_CODE: Dict[str, Language] = {lang.code: lang for lang in SUPPORTED_LANGUAGES}

# regional spellings, including the ones langdetect reports
_ALIASES = {
    "zh-hans": "zh",
    "zh-cn": "zh",
    "zh-sg": "zh",
    "zh-tw": "zh-hant",
    "zh-hk": "zh-hant",
    "zh-mo": "zh-hant",
}

# sample size handed to langdetect
_SAMPLE_LIMIT = 4000


def lookup(code: Optional[str]) -> Optional[Language]:
    """Find the table row for a language code.

    Accepts case and ``_``/``-`` variants and falls back from a regional code
    such as ``en-US`` to its base language.

    Doxygen:
    - @param code: Language code, e.g. "fr", "pt-BR", "zh_TW".
    - @return: Matching ``Language`` or None when the code is unknown or empty.
    """
    if not code:
        return None
    key = str(code).strip().lower().replace("_", "-")
    key = _ALIASES.get(key, key)
    if key in _BY_CODE:
        return _BY_CODE[key]
    return _BY_CODE.get(key.split("-")[0])


def resolve_languages(codes: Iterable[str]) -> Tuple[Language, ...]:
    """Map configured codes to table rows, dropping duplicates and keeping order.

    Doxygen:
    - @param codes: Recognition language codes from the settings.
    - @return: Tuple of distinct ``Language`` rows.
    - @throws ValueError: If a code is unsupported or no code is given.
    """
    out: List[Language] = []
    for code in codes:
        lang = lookup(code)
        if lang is None:
            raise ValueError(f"Unsupported recognition language code: '{code}'")
        if lang not in out:
            out.append(lang)
    if not out:
        raise ValueError("At least one recognition language is required.")
    return tuple(out)


def to_tesseract_languages(codes: Iterable[str]) -> str:
    """Build a Tesseract ``lang`` argument such as ``eng+rus`` from language codes.

    Doxygen:
    - @param codes: Recognition language codes.
    - @return: Traineddata names joined with "+".
    - @throws ValueError: If a code is unsupported or no code is given.
    """
    return "+".join(lang.tesseract for lang in resolve_languages(codes))


def language_name(code: Optional[str]) -> Optional[str]:
    lang = lookup(code)
    return lang.name if lang else None


def target_language_names() -> Tuple[str, ...]:
    """English names accepted as translation targets, sorted."""
    return tuple(sorted({lang.name for lang in SUPPORTED_LANGUAGES}))


def normalize_and_validate_target_language(name: Optional[str]) -> str:
    """Normalize a translation target given as an English language name.

    Doxygen:
    - @param name: Target language name, e.g. "German" or " english ".
    - @return: Lower-case name from the language table.
    - @throws ValueError: If the name is empty or not in the table.
    """
    allowed = target_language_names()
    if not name or not str(name).strip():
        raise ValueError(
            "Target language name must be provided in English, e.g. 'english', 'german', 'spanish'."
        )
    norm = str(name).strip().lower()
    if norm not in allowed:
        raise ValueError(
            f"Target language must be specified in English. Got: '{name}'. "
            f"Allowed values: {', '.join(allowed)}."
        )
    return norm


def detect_source_language(text: str, candidates: Optional[Iterable[str]] = None) -> Optional[Language]:
    """Guess which of the candidate languages ``text`` is written in.

    langdetect ranks every language it knows; the most probable one that is
    also among ``candidates`` wins. Without candidates every table row is
    eligible. Menus are short and mixed, so a guess outside the configured
    recognition languages is treated as no guess.

    Doxygen:
    - @param text: Recognized text; only the first few thousand characters are sampled.
    - @param candidates: Recognition language codes to choose from, or None for all.
    - @return: Detected ``Language`` or None when nothing eligible was detected.
    - @throws ValueError: If a candidate code is unsupported.
    """
    sample = (text or "").strip()[:_SAMPLE_LIMIT]
    if not sample:
        return None
    allowed = resolve_languages(candidates) if candidates is not None else SUPPORTED_LANGUAGES
    allowed_names = {lang.name for lang in allowed}
    try:
        ranked = detect_langs(sample)
    except LangDetectException:
        return None
    for guess in sorted(ranked, key=lambda c: c.prob, reverse=True):
        lang = lookup(guess.lang)
        if lang is not None and lang.name in allowed_names:
            logger.debug("Detected source language %s (p=%.2f)", lang.code, guess.prob)
            return lang
    return None


__all__ = [
    "Language",
    "SUPPORTED_LANGUAGES",
    "detect_source_language",
    "language_name",
    "lookup",
    "normalize_and_validate_target_language",
    "resolve_languages",
    "target_language_names",
    "to_tesseract_languages",
]
