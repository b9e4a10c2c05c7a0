"""
Decode candidate model for raw results delivered by the frame decoder.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field, field_validator

from src.models.base import FrozenModel, utc_now


class BarcodeFormat(str, Enum):
    """Barcode formats recognised by the scanner."""

    EAN_13 = "EAN-13"
    EAN_8 = "EAN-8"
    OTHER = "OTHER"


# Format names as reported by decoders (pyzbar, html5-qrcode, ZXing)
FORMAT_ALIASES = {
    "EAN13": BarcodeFormat.EAN_13,
    "EAN_13": BarcodeFormat.EAN_13,
    "EAN-13": BarcodeFormat.EAN_13,
    "EAN8": BarcodeFormat.EAN_8,
    "EAN_8": BarcodeFormat.EAN_8,
    "EAN-8": BarcodeFormat.EAN_8,
}


def parse_format(name: Any) -> BarcodeFormat:
    """Map a decoder-specific format name to a BarcodeFormat."""
    if isinstance(name, BarcodeFormat):
        return name
    if not isinstance(name, str):
        return BarcodeFormat.OTHER
    return FORMAT_ALIASES.get(name.strip().upper(), BarcodeFormat.OTHER)


class BarcodeCandidate(FrozenModel):
    """
    A raw string reported by the decoder for a single frame.

    Not yet validated. Produced once per decoder callback and consumed
    immediately by the result gate.
    """

    text: str = Field(..., description="Decoded text as reported by the decoder")
    format: BarcodeFormat = Field(default=BarcodeFormat.OTHER)
    observed_at: datetime = Field(default_factory=utc_now)

    @field_validator("format", mode="before")
    @classmethod
    def coerce_format(cls, v: Any) -> BarcodeFormat:
        return parse_format(v)

    @classmethod
    def from_decoder(
        cls,
        text: Any,
        format_name: Any = None,
        raw_metadata: Any = None,
    ) -> "BarcodeCandidate":
        """
        Build a candidate from a decoder callback payload.

        Args:
            text: Decoded text (bytes are decoded as UTF-8)
            format_name: Decoder-specific format name or nested in raw_metadata
            raw_metadata: Untyped decoder result, only inspected for a format name

        Returns:
            Candidate with a concrete format
        """
        if isinstance(text, bytes):
            text = text.decode("utf-8", errors="replace")
        elif text is None:
            text = ""
        elif not isinstance(text, str):
            text = str(text)

        if format_name is None and isinstance(raw_metadata, dict):
            format_name = _format_from_metadata(raw_metadata)

        return cls(text=text, format=format_name)


def _format_from_metadata(metadata: dict[str, Any]) -> Any:
    # html5-qrcode shape: {"result": {"format": {"formatName": "EAN_13"}}}
    result = metadata.get("result", metadata)
    if not isinstance(result, dict):
        return None
    fmt = result.get("format")
    if isinstance(fmt, dict):
        return fmt.get("formatName")
    return fmt or result.get("type")
