"""Recognition engine: detector observations to an ordered set of lines."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, List, Protocol, Tuple, runtime_checkable

import numpy as np

from checkmenu.errors import CheckMenuError, RecognitionFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TextCandidate:
    string: str
    confidence: float


@dataclass(frozen=True)
class TextObservation:
    """One detected line with its candidate readings in any order."""

    candidates: Tuple[TextCandidate, ...]

    def top_candidate(self) -> TextCandidate | None:
        if not self.candidates:
            return None
        # max() keeps the first of equal scores
        return max(self.candidates, key=lambda c: c.confidence)


@dataclass(frozen=True)
class RecognizedText:
    """Lines recognized from the image of ``generation``, in detector order."""

    lines: Tuple[str, ...]
    generation: int

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


@runtime_checkable
class TextDetector(Protocol):
    def detect(self, image: np.ndarray) -> Iterable[TextObservation]:
        ...


def select_top_candidates(observations: Iterable[TextObservation]) -> Tuple[str, ...]:
    """Keep the best candidate of each observation; order is untouched."""
    lines: List[str] = []
    for obs in observations:
        best = obs.top_candidate()
        if best is not None:
            lines.append(best.string)
    return tuple(lines)


def _validate_pixels(pixels: np.ndarray) -> None:
    if not isinstance(pixels, np.ndarray) or pixels.size == 0:
        raise RecognitionFailed("Image buffer is empty or missing.")
    if pixels.ndim not in (2, 3) or pixels.shape[0] == 0 or pixels.shape[1] == 0:
        raise RecognitionFailed(f"Image buffer has unreadable shape {pixels.shape}.")


class RecognitionEngine:
    def __init__(self, detector: TextDetector) -> None:
        self.detector = detector

    def _run(self, pixels: np.ndarray) -> Tuple[str, ...]:
        return select_top_candidates(self.detector.detect(pixels))

    async def recognize(self, image) -> RecognizedText:
        """Recognize ``image`` (a ``CapturedImage``) off the event loop.

        The result arrives whole; an image without text gives empty lines.
        Any detector error is raised as ``RecognitionFailed``.
        """
        _validate_pixels(image.pixels)
        try:
            lines = await asyncio.to_thread(self._run, image.pixels)
        except CheckMenuError:
            raise
        except Exception as exc:
            raise RecognitionFailed(f"Text recognition failed: {exc}") from exc
        logger.info("Recognized %d line(s) in image generation %d", len(lines), image.generation)
        return RecognizedText(lines=lines, generation=image.generation)
