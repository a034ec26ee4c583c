import asyncio
from typing import List, Optional

import numpy as np
import pytest

from checkmenu.image import ImageSource
from checkmenu.ocr import RecognitionEngine, TextCandidate, TextObservation
from checkmenu.permission import DeviceAuthorization, PermissionGate
from checkmenu.pipeline import PipelineController


def make_pixels(height: int = 8, width: int = 12, value: int = 255) -> np.ndarray:
    return np.full((height, width, 3), value, dtype=np.uint8)


def observations(*lines):
    """Build one single-candidate observation per (string, confidence) pair."""
    return [TextObservation(candidates=(TextCandidate(s, c),)) for s, c in lines]


class StubAuthorization:
    def __init__(self, status: DeviceAuthorization, grant: bool = True) -> None:
        self.status = status
        self.grant = grant
        self.requests = 0
        self.status_queries = 0

    def authorization_status(self) -> DeviceAuthorization:
        self.status_queries += 1
        return self.status

    def request_access(self, callback) -> None:
        self.requests += 1
        self.status = DeviceAuthorization.AUTHORIZED if self.grant else DeviceAuthorization.DENIED
        callback(self.grant)


class StubPicker:
    """Hands out queued results; None means the user cancelled."""

    def __init__(self, *results) -> None:
        self.results = list(results)
        self.calls = 0

    def pick(self, kind):
        self.calls += 1
        return self.results.pop(0) if self.results else make_pixels()


class StubDetector:
    def __init__(self, found=None, error: Optional[Exception] = None) -> None:
        self.found = found or []
        self.error = error
        self.calls = 0

    def detect(self, image):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.found)


class StubTranslator:
    def __init__(self, result="HELLO") -> None:
        self.result = result
        self.calls: List[str] = []

    async def translate(self, text: str) -> str:
        self.calls.append(text)
        await asyncio.sleep(0)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class GatedTranslator:
    """Translator whose calls finish only when ``release`` is called."""

    def __init__(self) -> None:
        self.calls: List[str] = []
        self._waiters: List[asyncio.Future] = []

    async def translate(self, text: str) -> str:
        self.calls.append(text)
        fut = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        return await fut

    def release(self, result) -> None:
        fut = self._waiters.pop(0)
        if isinstance(result, Exception):
            fut.set_exception(result)
        else:
            fut.set_result(result)


def build_controller(
    status: DeviceAuthorization = DeviceAuthorization.AUTHORIZED,
    picker: Optional[StubPicker] = None,
    detector=None,
    translator=None,
):
    auth = StubAuthorization(status)
    picker = picker or StubPicker()
    controller = PipelineController(
        gate=PermissionGate(auth),
        source=ImageSource(camera=picker, library=picker),
        engine=RecognitionEngine(detector or StubDetector(observations(("BONJOUR", 0.9)))),
        translator=translator or StubTranslator(),
    )
    return controller, auth, picker


@pytest.fixture
def run():
    """Run a coroutine to completion on a fresh event loop."""
    return asyncio.run
