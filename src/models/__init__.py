"""
Pydantic models and value types for the scanner.
"""

from src.models.base import FrozenModel, utc_now
from src.models.candidate import BarcodeCandidate, BarcodeFormat, parse_format
from src.models.scan import ScanErrorKind, ScanSessionState, ValidationResult

__all__ = [
    "FrozenModel",
    "utc_now",
    # Candidate
    "BarcodeCandidate",
    "BarcodeFormat",
    "parse_format",
    # Scan
    "ScanErrorKind",
    "ScanSessionState",
    "ValidationResult",
]
