"""
Barcode validation utilities for EAN-8 and EAN-13 codes.
"""

from src.models.candidate import BarcodeFormat
from src.models.scan import ValidationResult

DIGITS = frozenset("0123456789")

EAN13_LENGTH = 13
EAN8_LENGTH = 8


def _is_ascii_digits(code: str) -> bool:
    # str.isdigit() also accepts superscripts and non-ASCII digits
    return bool(code) and all(ch in DIGITS for ch in code)


def _weighted_sum(payload: str, even_weight: int, odd_weight: int) -> int:
    total = 0
    for i, digit in enumerate(payload):
        weight = even_weight if i % 2 == 0 else odd_weight
        total += int(digit) * weight
    return total


def calculate_ean13_checksum(code: str) -> int:
    """
    Calculate EAN-13 checksum digit.

    Algorithm:
    1. Multiply digits at even indexes (0, 2, 4, ...) by 1
    2. Multiply digits at odd indexes (1, 3, 5, ...) by 3
    3. Sum all results
    4. Checksum = (10 - (sum mod 10)) mod 10
    """
    if len(code) < 12:
        raise ValueError("Code must have at least 12 digits for EAN-13")
    payload = code[:12]
    if not _is_ascii_digits(payload):
        raise ValueError(f"Invalid character in code: {payload}")

    return (10 - (_weighted_sum(payload, 1, 3) % 10)) % 10


def calculate_ean8_checksum(code: str) -> int:
    """
    Calculate EAN-8 checksum digit.

    Same formula as EAN-13 over 7 digits, but the weights start at 3.
    """
    if len(code) < 7:
        raise ValueError("Code must have at least 7 digits for EAN-8")
    payload = code[:7]
    if not _is_ascii_digits(payload):
        raise ValueError(f"Invalid character in code: {payload}")

    return (10 - (_weighted_sum(payload, 3, 1) % 10)) % 10


def validate(text: str) -> ValidationResult:
    """
    Classify a decoded string.

    Never raises: every string maps to exactly one ValidationResult.

    Args:
        text: Candidate barcode text

    Returns:
        VALID, INVALID_FORMAT (non-digit or wrong length) or
        INVALID_CHECKSUM (check digit mismatch)
    """
    if not isinstance(text, str) or not _is_ascii_digits(text):
        return ValidationResult.INVALID_FORMAT

    length = len(text)
    if length == EAN13_LENGTH:
        expected = calculate_ean13_checksum(text)
    elif length == EAN8_LENGTH:
        expected = calculate_ean8_checksum(text)
    else:
        return ValidationResult.INVALID_FORMAT

    if expected == int(text[-1]):
        return ValidationResult.VALID
    return ValidationResult.INVALID_CHECKSUM


def validate_ean13_checksum(code: str) -> bool:
    """
    Validate EAN-13 checksum.

    Args:
        code: 13-digit EAN code

    Returns:
        True if checksum is valid
    """
    return len(code) == EAN13_LENGTH and validate(code) == ValidationResult.VALID


def validate_ean8_checksum(code: str) -> bool:
    """Validate EAN-8 checksum."""
    return len(code) == EAN8_LENGTH and validate(code) == ValidationResult.VALID


def detect_format(code: str) -> BarcodeFormat:
    """
    Detect barcode format from code length.

    Args:
        code: Barcode string

    Returns:
        EAN_13 or EAN_8 for digit strings of matching length, OTHER otherwise
    """
    if not _is_ascii_digits(code):
        return BarcodeFormat.OTHER

    length = len(code)

    if length == EAN13_LENGTH:
        return BarcodeFormat.EAN_13
    elif length == EAN8_LENGTH:
        return BarcodeFormat.EAN_8
    else:
        return BarcodeFormat.OTHER


def is_valid_barcode(code: str) -> tuple[bool, BarcodeFormat, str]:
    """
    Validate a barcode completely.

    Args:
        code: Barcode string

    Returns:
        Tuple of (is_valid, format, error_message)
    """
    if not _is_ascii_digits(code):
        return False, BarcodeFormat.OTHER, "Code contains non-numeric characters"

    barcode_format = detect_format(code)

    if barcode_format == BarcodeFormat.OTHER:
        return False, barcode_format, f"Unsupported code length: {len(code)}"

    if validate(code) == ValidationResult.VALID:
        return True, barcode_format, ""
    return False, barcode_format, f"Invalid {barcode_format.value} checksum"


class InvalidBarcodeError(ValueError):
    """Raised when a typed barcode does not pass validation."""

    def __init__(self, code: str, result: ValidationResult, reason: str):
        super().__init__(reason)
        self.code = code
        self.result = result
        self.reason = reason


def validate_manual_entry(text: str) -> str:
    """
    Validate a barcode typed in by the user.

    Args:
        text: Raw input, surrounding whitespace is ignored

    Returns:
        The cleaned barcode

    Raises:
        InvalidBarcodeError: If the code is not a valid EAN-8/EAN-13
    """
    code = text.strip()
    result = validate(code)
    if result != ValidationResult.VALID:
        _, _, reason = is_valid_barcode(code)
        raise InvalidBarcodeError(code, result, reason)
    return code
