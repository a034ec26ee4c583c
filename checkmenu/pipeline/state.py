"""Immutable pipeline snapshot and its transitions.

Every transition returns a new ``PipelineState``; the constructor rejects
any combination that breaks the dependency chain image -> recognized text
-> translated text, so partial invalidation cannot be represented.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from checkmenu.image import CapturedImage
from checkmenu.ocr import RecognizedText
from checkmenu.permission import AuthorizationState


@dataclass(frozen=True)
class PipelineState:
    authorization: AuthorizationState = AuthorizationState.UNKNOWN
    image: Optional[CapturedImage] = None
    recognized: Optional[RecognizedText] = None
    translated: Optional[str] = None
    translation_in_flight: bool = False
    reveal_translation: bool = False

    def __post_init__(self) -> None:
        if self.recognized is not None:
            if self.image is None:
                raise ValueError("Recognized text requires an image.")
            if self.recognized.generation != self.image.generation:
                raise ValueError(
                    f"Recognized text belongs to generation {self.recognized.generation}, "
                    f"image is generation {self.image.generation}."
                )
        if self.translated is not None and (self.recognized is None or self.recognized.is_empty):
            raise ValueError("Translated text requires non-empty recognized text.")
        if self.reveal_translation and self.translated is None:
            raise ValueError("Cannot reveal a translation that does not exist.")

    @property
    def generation(self) -> Optional[int]:
        return self.image.generation if self.image is not None else None

    @property
    def can_recognize(self) -> bool:
        return self.image is not None

    @property
    def can_translate(self) -> bool:
        return self.recognized is not None and not self.recognized.is_empty and not self.translation_in_flight

    @property
    def show_permission_notice(self) -> bool:
        return self.authorization is AuthorizationState.DENIED

    @property
    def visible_translation(self) -> Optional[str]:
        """Translation the presentation should display, if any."""
        return self.translated if self.reveal_translation else None

    def with_authorization(self, authorization: AuthorizationState) -> "PipelineState":
        return replace(self, authorization=authorization)

    def with_image(self, image: CapturedImage) -> "PipelineState":
        return replace(self, image=image, recognized=None, translated=None, reveal_translation=False)

    def with_recognized(self, recognized: RecognizedText) -> "PipelineState":
        return replace(self, recognized=recognized, translated=None, reveal_translation=False)

    def with_translation_started(self) -> "PipelineState":
        return replace(self, translation_in_flight=True, reveal_translation=False)

    def with_translation(self, translated: str) -> "PipelineState":
        return replace(self, translated=translated, translation_in_flight=False, reveal_translation=True)

    def with_translation_finished(self) -> "PipelineState":
        """In-flight flag cleared, everything else as is."""
        return replace(self, translation_in_flight=False)

    def cleared(self) -> "PipelineState":
        """Back to the start of the flow; authorization and in-flight flag are kept."""
        return PipelineState(
            authorization=self.authorization,
            translation_in_flight=self.translation_in_flight,
        )
