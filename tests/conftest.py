"""
Shared fixtures: an in-memory camera that lets tests drive decoder callbacks.
"""

from collections.abc import Callable
from typing import Any

import pytest

from src.config import Settings
from src.scanner import Camera, CameraHandle, ScanError


class FakeCameraHandle(CameraHandle):
    """Handle that counts close() calls."""

    def __init__(self, close_error: Exception | None = None):
        self.close_calls = 0
        self.close_error = close_error

    @property
    def closed(self) -> bool:
        return self.close_calls > 0

    def close(self) -> None:
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error


class FakeCamera(Camera):
    """
    Camera whose decoder callbacks are invoked by the test.

    ``during_open`` runs inside open() before it returns or raises, to
    simulate things happening while permission is being requested.
    """

    def __init__(
        self,
        open_error: Exception | None = None,
        close_error: Exception | None = None,
        during_open: Callable[[], None] | None = None,
    ):
        self.open_error = open_error
        self.close_error = close_error
        self.during_open = during_open
        self.open_calls = 0
        self.handles: list[FakeCameraHandle] = []
        self.on_decode: Callable[..., None] | None = None
        self.on_decode_error: Callable[[str], None] | None = None

    def open(self, on_decode, on_decode_error) -> CameraHandle:
        self.open_calls += 1
        self.on_decode = on_decode
        self.on_decode_error = on_decode_error

        if self.during_open is not None:
            self.during_open()
        if self.open_error is not None:
            raise self.open_error

        handle = FakeCameraHandle(self.close_error)
        self.handles.append(handle)
        return handle

    @property
    def open_handles(self) -> list[FakeCameraHandle]:
        return [h for h in self.handles if not h.closed]

    def emit(self, text: Any, format_name: Any = "EAN_13", raw_metadata: Any = None) -> None:
        assert self.on_decode is not None, "camera was never opened"
        self.on_decode(text, format_name, raw_metadata)

    def emit_error(self, message: str) -> None:
        assert self.on_decode_error is not None, "camera was never opened"
        self.on_decode_error(message)


class Recorder:
    """Collects the caller-facing callbacks."""

    def __init__(self):
        self.accepted: list[str] = []
        self.errors: list[ScanError] = []

    def on_accepted(self, barcode: str) -> None:
        self.accepted.append(barcode)

    def on_error(self, error: ScanError) -> None:
        self.errors.append(error)


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def camera() -> FakeCamera:
    return FakeCamera()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()
