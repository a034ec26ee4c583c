"""Camera authorization: tri-state result and the gate that resolves it."""

from .gate import (
    AuthorizationState,
    CameraAuthorization,
    DeviceAuthorization,
    OpenCVCameraAuthorization,
    PermissionGate,
)

__all__ = [
    "AuthorizationState",
    "CameraAuthorization",
    "DeviceAuthorization",
    "OpenCVCameraAuthorization",
    "PermissionGate",
]
