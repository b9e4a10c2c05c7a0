"""
Scan errors and classification of camera/decoder error messages.
"""

from collections.abc import Iterable

from src.models.scan import ScanErrorKind

PERMISSION_MARKERS = ("permission", "notallowed", "not allowed", "denied")
DEVICE_MARKERS = (
    "notreadable",
    "not readable",
    "no camera",
    "overconstrained",
)
NO_MATCH_MARKERS = ("not found", "notfound", "no multiformat readers", "no barcode")


class ScanError(Exception):
    """Error reported by the camera platform or the frame decoder."""

    def __init__(self, kind: ScanErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def is_fatal(self) -> bool:
        return self.kind.is_fatal

    def __repr__(self) -> str:
        return f"ScanError(kind={self.kind.value!r}, message={self.message!r})"


class ScanUsageError(RuntimeError):
    """Raised when the session API is used out of order, e.g. a second start()."""


def _contains_any(text: str, markers: Iterable[str]) -> bool:
    return any(marker in text for marker in markers)


def classify_decode_error(
    message: str,
    no_match_markers: Iterable[str] = NO_MATCH_MARKERS,
) -> ScanError:
    """
    Classify a per-frame decode failure message.

    A "not found" marker always means the frame held no symbol, even when the
    message also names a device or permission.
    """
    text = (message or "").lower()

    if _contains_any(text, (m.lower() for m in no_match_markers)):
        kind = ScanErrorKind.NO_MATCH_TRANSIENT
    elif _contains_any(text, PERMISSION_MARKERS):
        kind = ScanErrorKind.PERMISSION_DENIED
    elif _contains_any(text, DEVICE_MARKERS):
        kind = ScanErrorKind.DEVICE_UNAVAILABLE
    else:
        kind = ScanErrorKind.TRANSPORT_ERROR

    return ScanError(kind, message or "")


def classify_start_error(error: BaseException) -> ScanError:
    """
    Classify a failure to acquire the camera.

    Starting can only fail fatally: anything that is not a permission
    problem means the device is unavailable.
    """
    if isinstance(error, ScanError) and error.is_fatal:
        return error

    message = getattr(error, "message", None) or str(error) or type(error).__name__
    if isinstance(error, PermissionError) or _contains_any(message.lower(), PERMISSION_MARKERS):
        return ScanError(ScanErrorKind.PERMISSION_DENIED, message)
    return ScanError(ScanErrorKind.DEVICE_UNAVAILABLE, message)
