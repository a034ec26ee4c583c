"""Exception hierarchy shared by all pipeline stages.

Stage failures (permission, recognition, translation) are recoverable and
leave the pipeline usable. Precondition violations are caller bugs and are
raised before any work is dispatched.
"""

from __future__ import annotations


class CheckMenuError(Exception):
    """Base class for every error raised by the package."""


class PermissionDenied(CheckMenuError):
    """Camera use is blocked; only the user can change it in system settings."""


class RecognitionFailed(CheckMenuError):
    """The image could not be read or the recognizer failed internally."""


class TranslationFailed(CheckMenuError):
    """The translation backend failed (network, service or response error)."""


class AcquisitionFailed(CheckMenuError):
    """The picker or camera could not deliver an image."""


class ImageDecodeError(AcquisitionFailed):
    """Raw picker output could not be turned into a bitmap."""


class PreconditionViolation(CheckMenuError, ValueError):
    """An operation was invoked in a state where it is not allowed."""


class PermissionRequired(PreconditionViolation):
    """Camera acquisition was requested without granted authorization."""


class NoImageError(PreconditionViolation):
    """Recognition was requested while no image is held."""


class EmptyTextError(PreconditionViolation):
    """Translation was requested for empty text."""


class AcquisitionInProgress(PreconditionViolation):
    pass


class RecognitionInProgress(PreconditionViolation):
    pass


class TranslationInProgress(PreconditionViolation):
    pass


__all__ = [
    "CheckMenuError",
    "PermissionDenied",
    "RecognitionFailed",
    "TranslationFailed",
    "AcquisitionFailed",
    "ImageDecodeError",
    "PreconditionViolation",
    "PermissionRequired",
    "NoImageError",
    "EmptyTextError",
    "AcquisitionInProgress",
    "RecognitionInProgress",
    "TranslationInProgress",
]
