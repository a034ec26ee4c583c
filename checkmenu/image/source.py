"""Image acquisition from the camera or an existing image library."""

from __future__ import annotations

import asyncio
import inspect
import itertools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Protocol, runtime_checkable

import cv2
import numpy as np

from checkmenu.errors import AcquisitionFailed, AcquisitionInProgress, PermissionRequired
from checkmenu.permission import AuthorizationState

from .processing import RawImage, decode_image

logger = logging.getLogger(__name__)


class ImageSourceKind(Enum):
    CAMERA = "camera"
    LIBRARY = "library"


@dataclass(frozen=True, eq=False)
class CapturedImage:
    """An owned BGR bitmap tagged with the generation it was acquired in."""

    pixels: np.ndarray = field(repr=False)
    generation: int
    source: ImageSourceKind

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


@runtime_checkable
class ImagePicker(Protocol):
    """Returns raw image data for ``kind``, or None if the user cancelled.

    ``pick`` may be a plain (blocking) method or a coroutine function.
    """

    def pick(self, kind: ImageSourceKind) -> Any:
        ...


class OpenCVCameraPicker:
    """Grabs a single frame from a local camera."""

    def __init__(self, camera_index: int = 0, warmup_frames: int = 5) -> None:
        self.camera_index = camera_index
        self.warmup_frames = warmup_frames

    def pick(self, kind: ImageSourceKind) -> Optional[np.ndarray]:
        cap = cv2.VideoCapture(self.camera_index)
        try:
            if not cap.isOpened():
                raise AcquisitionFailed(f"Camera {self.camera_index} could not be opened.")
            # first frames are often dark while exposure settles
            for _ in range(self.warmup_frames):
                cap.grab()
            ok, frame = cap.read()
        finally:
            cap.release()
        if not ok or frame is None:
            raise AcquisitionFailed(f"Camera {self.camera_index} returned no frame.")
        return frame


class FileLibraryPicker:
    """Asks ``chooser`` for an image path; a falsy answer means cancel."""

    def __init__(self, chooser: Callable[[], Optional[str]]) -> None:
        self.chooser = chooser

    def pick(self, kind: ImageSourceKind) -> Optional[str]:
        return self.chooser() or None


class ImageSource:
    def __init__(self, camera: ImagePicker, library: ImagePicker) -> None:
        self._pickers = {
            ImageSourceKind.CAMERA: camera,
            ImageSourceKind.LIBRARY: library,
        }
        self._generations = itertools.count(1)
        self._pending = False

    @property
    def busy(self) -> bool:
        return self._pending

    async def _pick(self, kind: ImageSourceKind) -> Optional[RawImage]:
        picker = self._pickers[kind]
        if inspect.iscoroutinefunction(picker.pick):
            return await picker.pick(kind)
        return await asyncio.to_thread(picker.pick, kind)

    async def acquire(self, kind: ImageSourceKind, authorization: AuthorizationState) -> Optional[CapturedImage]:
        """Obtain one image from ``kind``; None means the user cancelled.

        Raises ``PermissionRequired`` for the camera without a grant,
        ``AcquisitionInProgress`` if another acquisition is pending and
        ``AcquisitionFailed`` when the picker output is unusable.
        """
        if kind is ImageSourceKind.CAMERA and authorization is not AuthorizationState.GRANTED:
            raise PermissionRequired(f"Camera acquisition needs granted authorization, have {authorization.value}.")
        if self._pending:
            raise AcquisitionInProgress("Another image acquisition is still pending.")

        self._pending = True
        try:
            raw = await self._pick(kind)
        finally:
            self._pending = False

        if raw is None:
            logger.info("Image acquisition from %s cancelled", kind.value)
            return None
        pixels = decode_image(raw)
        image = CapturedImage(pixels=pixels, generation=next(self._generations), source=kind)
        logger.info("Acquired %dx%d image from %s (generation %d)", image.width, image.height, kind.value, image.generation)
        return image
