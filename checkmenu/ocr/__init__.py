"""OCR (Optical Character Recognition).

The engine turns detector observations into ordered lines; the default
detector runs Tesseract through pytesseract with OpenCV preprocessing.
"""

from .engine import (
    RecognitionEngine,
    RecognizedText,
    TextCandidate,
    TextDetector,
    TextObservation,
    select_top_candidates,
)
from checkmenu.languages import to_tesseract_languages

from .reader import (
    TesseractDetector,
    build_dataframe_from_tesseract,
    group_words_to_lines,
    join_words,
    preprocess_image_for_ocr,
)

__all__ = [
    "RecognitionEngine",
    "RecognizedText",
    "TextCandidate",
    "TextDetector",
    "TextObservation",
    "select_top_candidates",
    "TesseractDetector",
    "build_dataframe_from_tesseract",
    "group_words_to_lines",
    "join_words",
    "preprocess_image_for_ocr",
    "to_tesseract_languages",
]
