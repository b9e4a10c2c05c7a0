"""
Owned slot holding the caller's current scan callbacks.
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass

from src.scanner.errors import ScanError

AcceptedCallback = Callable[[str], None]
ErrorCallback = Callable[[ScanError], None]


@dataclass(frozen=True)
class ScanCallbacks:
    """Snapshot of the caller's callbacks."""

    on_accepted: AcceptedCallback | None = None
    on_error: ErrorCallback | None = None


class CallbackSlot:
    """
    Mutable slot the session reads at the moment of every invocation.

    Callers may swap callbacks at any time (e.g. on every UI render) without
    restarting the session.
    """

    def __init__(
        self,
        on_accepted: AcceptedCallback | None = None,
        on_error: ErrorCallback | None = None,
    ):
        self._lock = threading.Lock()
        self._current = ScanCallbacks(on_accepted, on_error)

    @property
    def current(self) -> ScanCallbacks:
        with self._lock:
            return self._current

    def set(
        self,
        on_accepted: AcceptedCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        """Replace the given callbacks; a None argument keeps the current one."""
        with self._lock:
            self._current = ScanCallbacks(
                on_accepted if on_accepted is not None else self._current.on_accepted,
                on_error if on_error is not None else self._current.on_error,
            )

    def clear(self) -> None:
        with self._lock:
            self._current = ScanCallbacks()
