"""
Camera scan sessions.
"""

from src.scanner.callbacks import CallbackSlot, ScanCallbacks
from src.scanner.camera import Camera, CameraHandle, CameraLease
from src.scanner.errors import (
    ScanError,
    ScanUsageError,
    classify_decode_error,
    classify_start_error,
)
from src.scanner.session import ScanSession

__all__ = [
    "CallbackSlot",
    "ScanCallbacks",
    "Camera",
    "CameraHandle",
    "CameraLease",
    "ScanError",
    "ScanUsageError",
    "classify_decode_error",
    "classify_start_error",
    "ScanSession",
]
