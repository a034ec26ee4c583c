"""Image acquisition (camera or library) and bitmap normalization."""

from .processing import (
    RawImage,
    decode_image,
    to_bgr,
)
from .source import (
    CapturedImage,
    FileLibraryPicker,
    ImagePicker,
    ImageSource,
    ImageSourceKind,
    OpenCVCameraPicker,
)

__all__ = [
    "RawImage",
    "decode_image",
    "to_bgr",
    "CapturedImage",
    "FileLibraryPicker",
    "ImagePicker",
    "ImageSource",
    "ImageSourceKind",
    "OpenCVCameraPicker",
]
