"""
Frame decoder using pyzbar (ZBar) library.

Turns a camera frame into raw decode symbols. No validation happens here:
symbols are handed to the scan session as untrusted candidates.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any

import numpy as np
from PIL import Image
from pyzbar import pyzbar
from pyzbar.pyzbar import Decoded, ZBarSymbol

from src.models.candidate import BarcodeFormat


@dataclass
class DecodedSymbol:
    """A symbol found in one frame."""

    text: str
    format_name: str
    rotation: int = 0
    rect: tuple[int, int, int, int] | None = None  # x, y, width, height
    polygon: list[tuple[int, int]] | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class FrameDecoder:
    """
    Barcode decoder for camera frames using ZBar via pyzbar.

    Supports:
    - EAN-13
    - EAN-8
    """

    # Map our formats to pyzbar symbol types
    SYMBOL_MAP = {
        BarcodeFormat.EAN_13: ZBarSymbol.EAN13,
        BarcodeFormat.EAN_8: ZBarSymbol.EAN8,
    }

    def __init__(
        self,
        formats: Sequence[str | BarcodeFormat] = (BarcodeFormat.EAN_13, BarcodeFormat.EAN_8),
        try_rotations: bool = False,
    ):
        """
        Initialize decoder.

        Args:
            formats: Formats to scan for (EAN-13 and/or EAN-8)
            try_rotations: Whether to also try the frame upside down
        """
        if not formats:
            raise ValueError("At least one barcode format is required")
        unsupported = [f for f in formats if BarcodeFormat(f) not in self.SYMBOL_MAP]
        if unsupported:
            raise ValueError(f"Unsupported barcode formats: {unsupported}")
        self.symbols = [self.SYMBOL_MAP[BarcodeFormat(f)] for f in formats]
        self.rotation_angles = [0, 180] if try_rotations else [0]

    def decode(
        self,
        frame: bytes | BytesIO | np.ndarray | Image.Image,
    ) -> list[DecodedSymbol]:
        """
        Decode barcodes from a single frame.

        Args:
            frame: Frame as bytes, BytesIO, numpy array, or PIL Image

        Returns:
            Symbols found, duplicates across rotations removed
        """
        pil_image = self._to_pil_image(frame)

        # Convert to grayscale for better detection
        if pil_image.mode != "L":
            pil_image = pil_image.convert("L")

        results: list[DecodedSymbol] = []
        seen_codes: set[str] = set()

        for angle in self.rotation_angles:
            rotated = pil_image.rotate(angle, expand=True) if angle != 0 else pil_image
            decoded_objects: Sequence[Decoded] = pyzbar.decode(rotated, symbols=self.symbols)

            for obj in decoded_objects:
                symbol = self._process_decoded(obj, angle)
                if symbol.text not in seen_codes:
                    seen_codes.add(symbol.text)
                    results.append(symbol)

        return results

    def _to_pil_image(
        self,
        frame: bytes | BytesIO | np.ndarray | Image.Image,
    ) -> Image.Image:
        """Convert various image formats to PIL Image."""
        if isinstance(frame, Image.Image):
            return frame
        elif isinstance(frame, np.ndarray):
            return Image.fromarray(frame)
        elif isinstance(frame, bytes):
            return Image.open(BytesIO(frame))
        elif isinstance(frame, BytesIO):
            return Image.open(frame)
        else:
            raise TypeError(f"Unsupported frame type: {type(frame)}")

    def _process_decoded(self, decoded: Decoded, rotation: int) -> DecodedSymbol:
        rect = decoded.rect
        polygon = [(p.x, p.y) for p in decoded.polygon] if decoded.polygon else None

        return DecodedSymbol(
            text=decoded.data.decode("utf-8", errors="replace"),
            format_name=decoded.type,
            rotation=rotation,
            rect=(rect.left, rect.top, rect.width, rect.height) if rect else None,
            polygon=polygon,
            metadata={"type": decoded.type, "rotation": rotation},
        )
