"""
Result gate: lets exactly one valid barcode through per scan session.
"""

from collections.abc import Callable

import structlog

from src.barcode.validator import validate
from src.models.candidate import BarcodeCandidate
from src.models.scan import ValidationResult

logger = structlog.get_logger(__name__)

AcceptedSink = Callable[[str], None]
RejectedObserver = Callable[[BarcodeCandidate, ValidationResult], None]


class ResultGate:
    """
    Filters raw decode candidates through the checksum validator.

    The first valid candidate closes the gate, is handed to ``on_accepted``
    and triggers ``on_close``. Everything after that is dropped. Invalid
    candidates are expected noise from partial reads and only reach the
    optional ``on_rejected`` observer.
    """

    def __init__(
        self,
        on_accepted: AcceptedSink,
        on_rejected: RejectedObserver | None = None,
        on_close: Callable[[], None] | None = None,
    ):
        """
        Initialize gate.

        Args:
            on_accepted: Sink for the accepted barcode, called at most once
            on_rejected: Diagnostic observer for invalid candidates
            on_close: Called right after acceptance to stop the owner
        """
        self._on_accepted = on_accepted
        self._on_rejected = on_rejected
        self._on_close = on_close
        self._closed = False
        self._accepted: str | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def accepted(self) -> str | None:
        """The accepted barcode, if any."""
        return self._accepted

    def offer(self, candidate: BarcodeCandidate) -> bool:
        """
        Feed one decode candidate into the gate.

        Returns:
            True only for the candidate that was accepted
        """
        result = validate(candidate.text)

        if result != ValidationResult.VALID:
            logger.debug(
                "Ignoring invalid barcode candidate",
                text=candidate.text,
                format=candidate.format.value,
                result=result.value,
            )
            self._notify_rejected(candidate, result)
            return False

        if self._closed:
            logger.debug("Dropping valid candidate after acceptance", text=candidate.text)
            return False

        self._closed = True
        self._accepted = candidate.text
        logger.info("Valid barcode accepted", code=candidate.text, format=candidate.format.value)

        try:
            self._on_accepted(candidate.text)
        finally:
            if self._on_close is not None:
                self._on_close()

        return True

    def close(self) -> None:
        """Close the gate without accepting anything."""
        self._closed = True

    def _notify_rejected(self, candidate: BarcodeCandidate, result: ValidationResult) -> None:
        if self._on_rejected is None:
            return
        try:
            self._on_rejected(candidate, result)
        except Exception as e:
            logger.warning("Rejected-candidate observer failed", error=str(e))
