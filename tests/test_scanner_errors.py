"""
Tests for error classification and camera lease handling.
"""

import pytest
from conftest import FakeCameraHandle

from src.models import ScanErrorKind
from src.scanner import CameraLease, ScanError, classify_decode_error, classify_start_error


class TestClassifyDecodeError:
    """Tests for per-frame decoder message classification."""

    @pytest.mark.parametrize(
        "message",
        [
            "NotFoundException: No MultiFormat Readers were able to detect the code.",
            "No barcode or QR code detected. NotFound",
            "code not found",
            "NO BARCODE found in frame",
        ],
    )
    def test_no_match(self, message):
        assert classify_decode_error(message).kind == ScanErrorKind.NO_MATCH_TRANSIENT

    @pytest.mark.parametrize(
        "message",
        [
            "NotAllowedError: Permission denied",
            "Camera access denied by user",
        ],
    )
    def test_permission_denied(self, message):
        error = classify_decode_error(message)
        assert error.kind == ScanErrorKind.PERMISSION_DENIED
        assert error.is_fatal

    def test_not_found_wins_over_device(self):
        """A "not found" frame error is an empty frame even if it names a device."""
        error = classify_decode_error("NotFoundError: Requested device not found")
        assert error.kind == ScanErrorKind.NO_MATCH_TRANSIENT
        assert not error.is_fatal

    def test_not_found_wins_over_permission(self):
        error = classify_decode_error("Permission check skipped, code not found")
        assert error.kind == ScanErrorKind.NO_MATCH_TRANSIENT

    def test_unreadable_device(self):
        error = classify_decode_error("NotReadableError: Could not start video source")
        assert error.kind == ScanErrorKind.DEVICE_UNAVAILABLE
        assert error.is_fatal

    def test_device_mention_alone_is_transport(self):
        error = classify_decode_error("Timeout waiting for frame from video device")
        assert error.kind == ScanErrorKind.TRANSPORT_ERROR

    def test_start_error_keeps_device_meaning(self):
        """Starting without a camera is fatal even for a "not found" message."""
        error = classify_start_error(OSError("NotFoundError: Requested device not found"))
        assert error.kind == ScanErrorKind.DEVICE_UNAVAILABLE

    def test_transport_error(self):
        error = classify_decode_error("Frame grab failed")
        assert error.kind == ScanErrorKind.TRANSPORT_ERROR
        assert not error.is_fatal
        assert error.message == "Frame grab failed"

    def test_empty_message(self):
        assert classify_decode_error("").kind == ScanErrorKind.TRANSPORT_ERROR
        assert classify_decode_error(None).kind == ScanErrorKind.TRANSPORT_ERROR


class TestClassifyStartError:
    """Tests for camera acquisition failure classification."""

    def test_fatal_scan_error_passed_through(self):
        original = ScanError(ScanErrorKind.PERMISSION_DENIED, "denied")
        assert classify_start_error(original) is original

    def test_unknown_error_is_device_unavailable(self):
        error = classify_start_error(RuntimeError("boom"))
        assert error.kind == ScanErrorKind.DEVICE_UNAVAILABLE
        assert error.message == "boom"

    def test_empty_message_uses_type_name(self):
        error = classify_start_error(TimeoutError())
        assert error.message == "TimeoutError"

    def test_permission_error(self):
        error = classify_start_error(PermissionError("/dev/video0"))
        assert error.kind == ScanErrorKind.PERMISSION_DENIED


class TestScanError:
    """Tests for the ScanError exception type."""

    def test_is_exception(self):
        with pytest.raises(ScanError) as exc_info:
            raise ScanError(ScanErrorKind.DEVICE_UNAVAILABLE, "No camera")

        assert str(exc_info.value) == "No camera"
        assert exc_info.value.kind == ScanErrorKind.DEVICE_UNAVAILABLE
        assert "device_unavailable" in repr(exc_info.value)

    def test_fatal_kinds(self):
        assert ScanErrorKind.PERMISSION_DENIED.is_fatal
        assert ScanErrorKind.DEVICE_UNAVAILABLE.is_fatal
        assert not ScanErrorKind.TRANSPORT_ERROR.is_fatal
        assert not ScanErrorKind.NO_MATCH_TRANSIENT.is_fatal


class TestCameraLease:
    """Tests for exactly-once camera release."""

    def test_release_once(self):
        handle = FakeCameraHandle()
        lease = CameraLease(handle)

        assert lease.release() is True
        assert lease.release() is False
        assert handle.close_calls == 1
        assert lease.released

    def test_teardown_error_swallowed(self):
        handle = FakeCameraHandle(close_error=RuntimeError("already released"))
        lease = CameraLease(handle)

        assert lease.release() is True
        assert lease.release() is False
        assert handle.close_calls == 1

    def test_context_manager_releases_on_error(self):
        handle = FakeCameraHandle()

        with pytest.raises(ValueError):
            with CameraLease(handle):
                raise ValueError("scan failed")

        assert handle.close_calls == 1
