"""
Camera abstraction and scoped ownership of an opened camera.
"""

import threading
from abc import ABCMeta, abstractmethod
from collections.abc import Callable
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

# (text, format_name, raw_metadata)
DecodeCallback = Callable[[Any, Any, Any], None]
DecodeErrorCallback = Callable[[str], None]


class CameraHandle(metaclass=ABCMeta):
    """An opened camera stream delivering decode callbacks."""

    @abstractmethod
    def close(self) -> None:
        """Stop the stream and release the device. May finish asynchronously."""


class Camera(metaclass=ABCMeta):
    """A camera platform able to open a decoding stream."""

    @abstractmethod
    def open(
        self,
        on_decode: DecodeCallback,
        on_decode_error: DecodeErrorCallback,
    ) -> CameraHandle:
        """
        Request camera access and start decoding frames.

        May block while the platform asks the user for permission.

        Raises:
            ScanError: PERMISSION_DENIED or DEVICE_UNAVAILABLE
        """


class CameraLease:
    """
    Exclusive ownership of an opened camera handle.

    ``release()`` closes the handle exactly once no matter how many exit
    paths call it. Teardown errors are logged and swallowed.
    """

    def __init__(self, handle: CameraHandle):
        self._handle = handle
        self._lock = threading.Lock()
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> bool:
        """
        Close the handle if still held.

        Returns:
            True if this call performed the release
        """
        with self._lock:
            if self._released:
                return False
            self._released = True

        try:
            self._handle.close()
        except Exception as e:
            logger.warning("Camera teardown failed", error=str(e))
        else:
            logger.debug("Camera released")
        return True

    def __enter__(self) -> "CameraLease":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
