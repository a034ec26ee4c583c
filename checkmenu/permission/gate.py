"""Camera authorization gate.

The gate re-queries the device status on every call and only issues a
permission request when the status is still undetermined. Request callbacks
may arrive on any thread; they are marshalled back onto the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional, Protocol, runtime_checkable

import cv2

logger = logging.getLogger(__name__)


class AuthorizationState(Enum):
    UNKNOWN = "unknown"
    GRANTED = "granted"
    DENIED = "denied"


class DeviceAuthorization(Enum):
    """Raw camera authorization status as reported by the platform."""

    AUTHORIZED = "authorized"
    DENIED = "denied"
    RESTRICTED = "restricted"
    NOT_DETERMINED = "not_determined"


@runtime_checkable
class CameraAuthorization(Protocol):
    def authorization_status(self) -> DeviceAuthorization:
        ...

    def request_access(self, callback: Callable[[bool], None]) -> None:
        ...


class OpenCVCameraAuthorization:
    """Desktop stand-in: the camera counts as authorized if it can be opened.

    Desktop platforms expose no separate consent step to OpenCV, so the
    status is never NOT_DETERMINED and ``request_access`` simply re-probes.
    """

    def __init__(self, camera_index: int = 0) -> None:
        self.camera_index = camera_index

    def _probe(self) -> bool:
        cap = cv2.VideoCapture(self.camera_index)
        try:
            return bool(cap.isOpened())
        finally:
            cap.release()

    def authorization_status(self) -> DeviceAuthorization:
        if self._probe():
            return DeviceAuthorization.AUTHORIZED
        return DeviceAuthorization.RESTRICTED

    def request_access(self, callback: Callable[[bool], None]) -> None:
        callback(self._probe())


class PermissionGate:
    def __init__(self, authorization: CameraAuthorization) -> None:
        self._authorization = authorization
        self._state = AuthorizationState.UNKNOWN
        self._pending: Optional[asyncio.Future] = None

    @property
    def state(self) -> AuthorizationState:
        """Last resolved authorization, UNKNOWN before the first check."""
        return self._state

    async def check_and_request(self) -> AuthorizationState:
        """Resolve camera authorization, prompting only if undetermined.

        Already-authorized and denied/restricted devices resolve without a
        request. Undetermined devices get exactly one request; concurrent
        callers share it.
        """
        status = self._authorization.authorization_status()
        if status is DeviceAuthorization.AUTHORIZED:
            result = AuthorizationState.GRANTED
        elif status is DeviceAuthorization.NOT_DETERMINED:
            granted = await self._request()
            result = AuthorizationState.GRANTED if granted else AuthorizationState.DENIED
        else:
            result = AuthorizationState.DENIED
        if result is not self._state:
            logger.info("Camera authorization: %s (device status %s)", result.value, status.value)
        self._state = result
        return result

    async def _request(self) -> bool:
        if self._pending is not None and not self._pending.done():
            return await asyncio.shield(self._pending)

        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._pending = future

        def _resolve(granted: bool) -> None:
            if future.done():
                logger.warning("Ignoring repeated camera permission callback")
                return
            future.set_result(granted)

        def _on_result(granted: bool) -> None:
            # always deferred, even when the platform answers inline
            loop.call_soon_threadsafe(_resolve, bool(granted))

        try:
            self._authorization.request_access(_on_result)
        except Exception as exc:
            self._pending = None
            future.cancel()
            logger.warning("Camera permission request failed: %s", exc)
            raise
        try:
            return await asyncio.shield(future)
        finally:
            if self._pending is future and future.done():
                self._pending = None
