"""Capture-to-translation orchestration.

``PipelineController`` is the single writer of ``PipelineState``. Its
coroutines run on one event loop; OCR and translation work is pushed to
worker threads by the engine and service, and their results are committed
back here only if they still belong to the current image.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Callable, List, Optional, Set

from checkmenu.config import Settings, configure_dependencies, load_settings
from checkmenu.errors import (
    EmptyTextError,
    NoImageError,
    PermissionDenied,
    RecognitionInProgress,
    TranslationInProgress,
)
from checkmenu.image import CapturedImage, FileLibraryPicker, ImageSource, ImageSourceKind, OpenCVCameraPicker
from checkmenu.llm import TranslationService, get_translation_service
from checkmenu.ocr import RecognitionEngine, RecognizedText, TesseractDetector
from checkmenu.permission import AuthorizationState, OpenCVCameraAuthorization, PermissionGate

from .state import PipelineState

logger = logging.getLogger(__name__)

StateListener = Callable[[PipelineState], None]


class PipelineController:
    def __init__(
        self,
        gate: PermissionGate,
        source: ImageSource,
        engine: RecognitionEngine,
        translator: TranslationService,
    ) -> None:
        self._gate = gate
        self._source = source
        self._engine = engine
        self._translator = translator
        self._state = PipelineState()
        self._listeners: List[StateListener] = []
        self._recognizing: Set[int] = set()
        # thread of the first commit owns the state
        self._owner: Optional[int] = None

    @property
    def state(self) -> PipelineState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` with every committed state; returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _commit(self, state: PipelineState) -> None:
        ident = threading.get_ident()
        if self._owner is None:
            self._owner = ident
        elif ident != self._owner:
            raise RuntimeError("PipelineState may only be changed from the thread that owns the controller.")
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("State listener %r failed", listener)

    async def refresh_permission(self) -> AuthorizationState:
        """Re-evaluate camera authorization and record it in the state."""
        authorization = await self._gate.check_and_request()
        if authorization is not self._state.authorization:
            self._commit(self._state.with_authorization(authorization))
        return authorization

    async def acquire(self, kind: ImageSourceKind) -> Optional[CapturedImage]:
        """Acquire an image and make it current; None if the user cancelled.

        The camera requires the authorization already held in the state; see
        ``capture_from_camera`` for the check-then-acquire flow.
        """
        image = await self._source.acquire(kind, self._state.authorization)
        if image is None:
            return None
        self._commit(self._state.with_image(image))
        return image

    async def capture_from_camera(self) -> Optional[CapturedImage]:
        authorization = await self.refresh_permission()
        if authorization is not AuthorizationState.GRANTED:
            raise PermissionDenied("Camera access is not allowed; enable it in the system settings.")
        return await self.acquire(ImageSourceKind.CAMERA)

    async def pick_from_library(self) -> Optional[CapturedImage]:
        return await self.acquire(ImageSourceKind.LIBRARY)

    async def recognize(self) -> Optional[RecognizedText]:
        """Recognize text in the current image.

        Returns the committed result, or None if the image was replaced
        before recognition finished. ``RecognitionFailed`` propagates with
        the state untouched.
        """
        image = self._state.image
        if image is None:
            raise NoImageError("No image to recognize.")
        if image.generation in self._recognizing:
            raise RecognitionInProgress(f"Recognition of image generation {image.generation} is already running.")

        self._recognizing.add(image.generation)
        try:
            result = await self._engine.recognize(image)
        finally:
            self._recognizing.discard(image.generation)

        if self._state.generation != result.generation:
            logger.debug("Discarding recognition result for stale image generation %d", result.generation)
            return None
        self._commit(self._state.with_recognized(result))
        return result

    async def translate(self) -> Optional[str]:
        """Translate the current recognized text.

        Only one translation runs at a time; a second call is rejected. The
        result is dropped (None returned) if the recognized text changed
        meanwhile. On failure the previous translation and its visibility
        are restored and the error propagates.
        """
        if self._state.translation_in_flight:
            raise TranslationInProgress("A translation is already running.")
        recognized = self._state.recognized
        if recognized is None or recognized.is_empty:
            raise EmptyTextError("There is no recognized text to translate.")

        previous_reveal = self._state.reveal_translation
        self._commit(self._state.with_translation_started())
        translated: Optional[str] = None
        try:
            translated = await self._translator.translate(recognized.text)
        finally:
            current = self._state
            if current.recognized is not recognized:
                if translated is not None:
                    logger.debug("Discarding translation for replaced recognized text")
                translated = None
                self._commit(current.with_translation_finished())
            elif translated is None:
                self._commit(replace(current, translation_in_flight=False, reveal_translation=previous_reveal))
            else:
                self._commit(current.with_translation(translated))
        return translated

    def reset(self) -> None:
        """Drop the image and everything derived from it."""
        self._commit(self._state.cleared())


def create_controller(
    library_chooser: Callable[[], Optional[str]],
    settings: Optional[Settings] = None,
    translator: Optional[TranslationService] = None,
) -> PipelineController:
    """Wire the production collaborators from configuration.

    ``library_chooser`` returns an image path picked by the user, or None.
    """
    settings = settings or load_settings()
    configure_dependencies()
    return PipelineController(
        gate=PermissionGate(OpenCVCameraAuthorization(settings.camera_index)),
        source=ImageSource(
            camera=OpenCVCameraPicker(settings.camera_index),
            library=FileLibraryPicker(library_chooser),
        ),
        engine=RecognitionEngine(TesseractDetector(settings.recognition_languages, settings.recognition_level)),
        translator=translator or get_translation_service(check_health=settings.check_model_on_start),
    )
