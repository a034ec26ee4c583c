"""Tesseract-backed text detector built on pytesseract, pandas and OpenCV.

Word boxes from ``pytesseract.image_to_data`` are grouped into lines by
(block, paragraph, line) number, which is Tesseract's own reading order.
Each line becomes one observation with a single candidate whose confidence
is the mean word confidence scaled to [0, 1].

Helpers carry Doxygen-style tags.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Sequence

import cv2
import numpy as np
import pandas as pd
import pytesseract

from checkmenu.languages import to_tesseract_languages

from .engine import TextCandidate, TextObservation

_LINE_KEYS = ['page_num', 'block_num', 'par_num', 'line_num']

# Han, kana, CJK punctuation and fullwidth forms; Tesseract splits these into
# one "word" per glyph. Hangul is written with spaces and is not listed.
_UNSPACED = re.compile(r'[\u3000-\u303f\u3040-\u30ff\u3400-\u4dbf\u4e00-\u9fff\uf900-\ufaff\uff00-\uffef]')


def build_dataframe_from_tesseract(data: Dict[str, Any]) -> pd.DataFrame:
    """Create a cleaned DataFrame from ``image_to_data`` dict output.

    Doxygen:
    - @param data: Dict returned by `pytesseract.image_to_data(..., output_type=Output.DICT)`.
    - @return: DataFrame of word rows only; rows with confidence <= 0 or blank text are dropped.
    """
    df = pd.DataFrame(data)
    if df.empty:
        return df
    df['conf'] = pd.to_numeric(df['conf'], errors='coerce').fillna(-1)
    df = df[df['conf'] > 0].copy()
    df['text'] = df['text'].fillna('').astype(str).str.strip()
    df = df[df['text'] != '']
    return df


def join_words(words: Sequence[str]) -> str:
    """Join the words of one line.

    Neighbours are separated by a space unless both sides of the gap are
    Chinese or Japanese characters.

    Doxygen:
    - @param words: Word strings in left-to-right order.
    - @return: Line text.
    """
    out = ''
    for word in words:
        if out and not (_UNSPACED.match(out[-1]) and _UNSPACED.match(word[0])):
            out += ' '
        out += word
    return out


def group_words_to_lines(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Group word rows into lines, keeping Tesseract's line order.

    Doxygen:
    - @param df: DataFrame produced by `build_dataframe_from_tesseract`.
    - @return: List of line dicts with `text` (words sorted left to right) and mean word `confidence` (0..100).
    """
    if df.empty:
        return []
    keys = [k for k in _LINE_KEYS if k in df.columns]
    lines: List[Dict[str, Any]] = []
    for _, g in df.groupby(keys, sort=True):
        g_sorted = g.sort_values('left', kind='stable')
        lines.append({
            'text': join_words(g_sorted['text'].tolist()),
            'confidence': float(g_sorted['conf'].mean()),
        })
    return lines


def preprocess_image_for_ocr(img_bgr: np.ndarray) -> np.ndarray:
    """Denoise and binarize a BGR image to improve OCR accuracy.

    Doxygen:
    - @param img_bgr: Input image (BGR, uint8).
    - @return: Binarized image converted back to 3-channel BGR.
    """
    gray = cv2.cvtColor(img_bgr, cv2.COLOR_BGR2GRAY)
    gray = cv2.bilateralFilter(gray, d=7, sigmaColor=50, sigmaSpace=50)
    th = cv2.adaptiveThreshold(gray, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
                               cv2.THRESH_BINARY, 31, 10)
    th = cv2.medianBlur(th, 3)
    return cv2.cvtColor(th, cv2.COLOR_GRAY2BGR)


class TesseractDetector:
    """``TextDetector`` running Tesseract over the configured languages."""

    def __init__(self, languages: Sequence[str], level: str = 'accurate') -> None:
        self.lang = to_tesseract_languages(languages)
        self.level = level

    def detect(self, image: np.ndarray) -> List[TextObservation]:
        ocr_input = preprocess_image_for_ocr(image) if self.level == 'accurate' else image
        rgb = cv2.cvtColor(ocr_input, cv2.COLOR_BGR2RGB)
        data = pytesseract.image_to_data(rgb, lang=self.lang, output_type=pytesseract.Output.DICT)
        lines = group_words_to_lines(build_dataframe_from_tesseract(data))
        return [
            TextObservation(candidates=(
                TextCandidate(string=ln['text'], confidence=min(1.0, max(0.0, ln['confidence'] / 100.0))),
            ))
            for ln in lines
        ]
