"""
Barcode validation and result gating.

The pyzbar frame decoder lives in ``src.barcode.decoder`` and is imported
on demand, since it needs the native ZBar library.
"""

from src.barcode.gate import ResultGate
from src.barcode.validator import (
    InvalidBarcodeError,
    calculate_ean8_checksum,
    calculate_ean13_checksum,
    detect_format,
    is_valid_barcode,
    validate,
    validate_ean8_checksum,
    validate_ean13_checksum,
    validate_manual_entry,
)

__all__ = [
    "ResultGate",
    "InvalidBarcodeError",
    "calculate_ean8_checksum",
    "calculate_ean13_checksum",
    "detect_format",
    "is_valid_barcode",
    "validate",
    "validate_ean8_checksum",
    "validate_ean13_checksum",
    "validate_manual_entry",
]
