"""Normalization of raw picker output into a single bitmap format.

Every image the pipeline holds is a contiguous BGR ``uint8`` array of shape
(height, width, 3), the layout OpenCV reads and writes natively.
"""

from __future__ import annotations

import os
from typing import Union

import cv2
import numpy as np

from checkmenu.errors import ImageDecodeError

RawImage = Union[bytes, bytearray, memoryview, str, "os.PathLike[str]", np.ndarray]


def _from_encoded(data: bytes) -> np.ndarray:
    buf = np.frombuffer(data, dtype=np.uint8)
    if buf.size == 0:
        raise ImageDecodeError("Image buffer is empty.")
    img = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED)
    if img is None:
        raise ImageDecodeError("Image buffer could not be decoded.")
    return img


def _from_path(path: str) -> np.ndarray:
    if not os.path.exists(path):
        raise ImageDecodeError(f"Image file not found: {path}")
    img = cv2.imread(path, cv2.IMREAD_UNCHANGED)
    if img is None:
        raise ImageDecodeError(f"Failed to load image: {path}")
    return img


def to_bgr(img: np.ndarray) -> np.ndarray:
    """Convert a grayscale, BGR or BGRA array to contiguous BGR ``uint8``."""
    if not isinstance(img, np.ndarray) or img.size == 0:
        raise ImageDecodeError("Image array is empty.")
    if img.dtype != np.uint8:
        if img.dtype == np.uint16:
            img = (img / 257).astype(np.uint8)
        else:
            raise ImageDecodeError(f"Unsupported pixel type: {img.dtype}")
    if img.ndim == 2:
        img = cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
    elif img.ndim == 3 and img.shape[2] == 1:
        img = cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
    elif img.ndim == 3 and img.shape[2] == 4:
        img = cv2.cvtColor(img, cv2.COLOR_BGRA2BGR)
    elif not (img.ndim == 3 and img.shape[2] == 3):
        raise ImageDecodeError(f"Unsupported image shape: {img.shape}")
    return np.ascontiguousarray(img)


def decode_image(raw: RawImage) -> np.ndarray:
    """Turn encoded bytes, a file path or a decoded array into BGR pixels.

    Raises ``ImageDecodeError`` for anything that is not a readable image.
    """
    if isinstance(raw, np.ndarray):
        return to_bgr(raw)
    if isinstance(raw, (bytes, bytearray, memoryview)):
        return to_bgr(_from_encoded(bytes(raw)))
    if isinstance(raw, (str, os.PathLike)):
        return to_bgr(_from_path(os.fspath(raw)))
    raise ImageDecodeError(f"Unsupported image input: {type(raw).__name__}")
