"""
Value types describing validation outcomes and scan session lifecycle.
"""

from enum import Enum


class ValidationResult(str, Enum):
    """Outcome of checksum validation for a decoded string."""

    VALID = "valid"
    INVALID_FORMAT = "invalid_format"
    INVALID_CHECKSUM = "invalid_checksum"


class ScanSessionState(str, Enum):
    """Lifecycle state of a scan session."""

    IDLE = "idle"
    STARTING = "starting"
    ACTIVE = "active"
    ACCEPTED = "accepted"
    FAILED = "failed"
    STOPPING = "stopping"
    STOPPED = "stopped"

    @property
    def is_terminal(self) -> bool:
        return self == ScanSessionState.STOPPED


class ScanErrorKind(str, Enum):
    """Classification of errors reported by the camera platform or decoder."""

    PERMISSION_DENIED = "permission_denied"
    DEVICE_UNAVAILABLE = "device_unavailable"
    TRANSPORT_ERROR = "transport_error"
    NO_MATCH_TRANSIENT = "no_match_transient"

    @property
    def is_fatal(self) -> bool:
        return self in (ScanErrorKind.PERMISSION_DENIED, ScanErrorKind.DEVICE_UNAVAILABLE)
