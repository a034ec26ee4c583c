"""Capture an image, recognize its text and translate it.

Packages:
- checkmenu.languages: supported languages, Tesseract names and source detection
- checkmenu.permission: camera authorization gate
- checkmenu.image: camera/library acquisition and bitmap normalization
- checkmenu.ocr: recognition engine and the Tesseract detector
- checkmenu.llm: chat-model connection and the translation service
- checkmenu.pipeline: pipeline state and the controller driving it
"""

from checkmenu.errors import (
    CheckMenuError,
    PermissionDenied,
    PreconditionViolation,
    RecognitionFailed,
    TranslationFailed,
)
from checkmenu.image import CapturedImage, ImageSourceKind
from checkmenu.ocr import RecognizedText
from checkmenu.permission import AuthorizationState
from checkmenu.pipeline import PipelineController, PipelineState, create_controller

__version__ = "0.1.0"

__all__ = [
    "CheckMenuError",
    "PermissionDenied",
    "PreconditionViolation",
    "RecognitionFailed",
    "TranslationFailed",
    "CapturedImage",
    "ImageSourceKind",
    "RecognizedText",
    "AuthorizationState",
    "PipelineController",
    "PipelineState",
    "create_controller",
]
