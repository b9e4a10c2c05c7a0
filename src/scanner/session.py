"""
Scan session: owns the camera for one scan and emits a single valid barcode.

Lifecycle::

    IDLE -> STARTING -> ACTIVE -> (ACCEPTED | FAILED) -> STOPPED
    STARTING -> FAILED -> STOPPED        (permission denied, no device)
    any non-terminal state --stop()--> STOPPING -> STOPPED

Decoder callbacks may arrive on the camera's own thread. Every callback
first checks the synchronous ``_closed`` flag, so nothing delivered after
``stop()`` has any visible effect even while the device is still shutting
down.
"""

import threading
import uuid
from typing import Any

import structlog

from src.barcode.gate import RejectedObserver, ResultGate
from src.config import Settings, get_settings
from src.models.candidate import BarcodeCandidate
from src.models.scan import ScanErrorKind, ScanSessionState
from src.scanner.callbacks import AcceptedCallback, CallbackSlot, ErrorCallback
from src.scanner.camera import Camera, CameraLease
from src.scanner.errors import (
    ScanError,
    ScanUsageError,
    classify_decode_error,
    classify_start_error,
)

logger = structlog.get_logger(__name__)


class ScanSession:
    """
    One camera-driven scan, from start() to acceptance, fatal error or stop().

    Exactly one terminal outcome per session: ``on_accepted`` fires once,
    or ``on_error`` fires once for a fatal condition, or ``stop()`` ends the
    session silently. The camera is released exactly once in every case.
    """

    def __init__(
        self,
        camera: Camera,
        callbacks: CallbackSlot | None = None,
        settings: Settings | None = None,
        on_rejected: RejectedObserver | None = None,
    ):
        """
        Initialize session.

        Args:
            camera: Camera platform to open
            callbacks: Caller-owned callback slot (a fresh one if omitted)
            settings: Scanner settings (default: cached application settings)
            on_rejected: Diagnostic observer for invalid candidates
        """
        self._camera = camera
        self._callbacks = callbacks or CallbackSlot()
        self._settings = settings or get_settings()
        self._on_rejected = on_rejected

        self._lock = threading.RLock()
        self._state = ScanSessionState.IDLE
        self._closed = False
        self._gate: ResultGate | None = None
        self._lease: CameraLease | None = None
        self._accepted_barcode: str | None = None
        self._error: ScanError | None = None

        self.session_id = uuid.uuid4().hex[:12]
        self._log = logger.bind(session_id=self.session_id)

    @property
    def state(self) -> ScanSessionState:
        return self._state

    @property
    def callbacks(self) -> CallbackSlot:
        return self._callbacks

    @property
    def accepted_barcode(self) -> str | None:
        """The barcode accepted by this session, if any."""
        return self._accepted_barcode

    @property
    def error(self) -> ScanError | None:
        """The fatal error that ended this session, if any."""
        return self._error

    def set_callbacks(
        self,
        on_accepted: AcceptedCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        """Swap the caller's callbacks; takes effect for the next invocation."""
        self._callbacks.set(on_accepted, on_error)

    # Lifecycle

    def start(
        self,
        on_accepted: AcceptedCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        """
        Open the camera and start gating decode results.

        Blocks while the camera platform acquires the device. Start failures
        are reported through ``on_error``, not raised.

        Raises:
            ScanUsageError: If the session was already started
        """
        with self._lock:
            if self._state != ScanSessionState.IDLE:
                raise ScanUsageError(
                    f"Scan session {self.session_id} cannot start in state {self._state.value}"
                )
            if on_accepted is not None or on_error is not None:
                self._callbacks.set(on_accepted, on_error)

            self._gate = ResultGate(
                on_accepted=self._record_acceptance,
                on_rejected=self._on_rejected,
                on_close=self._close_for_acceptance,
            )
            self._state = ScanSessionState.STARTING

        self._log.info("Starting scan session", camera=type(self._camera).__name__)

        try:
            handle = self._camera.open(self._handle_decode, self._handle_decode_error)
        except Exception as e:
            self._fail_start(classify_start_error(e))
            return

        lease = CameraLease(handle)
        with self._lock:
            cancelled = self._state == ScanSessionState.STOPPING
            if not cancelled:
                self._lease = lease
                self._state = ScanSessionState.ACTIVE

        if cancelled:
            # stop() arrived while the camera was being acquired
            lease.release()
            self._set_state(ScanSessionState.STOPPED)
            self._log.info("Scan session cancelled during start")
            return

        self._log.info("Scan session active")

    def stop(self) -> None:
        """
        Cancel the session and release the camera.

        Idempotent and never raises. Returns once the session is logically
        closed; device teardown may still be finishing.
        """
        with self._lock:
            state = self._state
            if state in (ScanSessionState.STOPPING, ScanSessionState.STOPPED):
                return

            self._closed = True
            if self._gate is not None:
                self._gate.close()

            if state in (ScanSessionState.ACCEPTED, ScanSessionState.FAILED):
                # The terminal path in progress releases the camera
                return
            if state == ScanSessionState.IDLE:
                self._state = ScanSessionState.STOPPED
                return

            self._state = ScanSessionState.STOPPING
            if state == ScanSessionState.STARTING:
                # start() releases the handle once open() returns
                return
            lease = self._lease

        self._log.info("Stopping scan session")
        self._release(lease)
        self._set_state(ScanSessionState.STOPPED)

    def __enter__(self) -> "ScanSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # Decoder callbacks

    def _handle_decode(
        self,
        text: Any,
        format_name: Any = None,
        raw_metadata: Any = None,
    ) -> None:
        if self._closed:
            return

        candidate = BarcodeCandidate.from_decoder(text, format_name, raw_metadata)

        with self._lock:
            if self._closed or self._state != ScanSessionState.ACTIVE or self._gate is None:
                return
            accepted = self._gate.offer(candidate)
            if not accepted:
                return
            lease = self._lease

        try:
            on_accepted = self._callbacks.current.on_accepted
            if on_accepted is not None:
                on_accepted(candidate.text)
        finally:
            self._release(lease)
            self._set_state(ScanSessionState.STOPPED)
            self._log.info("Scan session finished", outcome="accepted")

    def _handle_decode_error(self, message: str) -> None:
        if self._closed:
            return

        error = classify_decode_error(message, self._settings.scanner_no_match_markers)
        if error.kind == ScanErrorKind.NO_MATCH_TRANSIENT:
            return

        with self._lock:
            if self._closed or self._state != ScanSessionState.ACTIVE:
                return

            if not error.is_fatal:
                self._log.warning("Decoder transport error", error=error.message)
                self._notify_error(error)
                return

            self._enter_failed(error)
            lease = self._lease

        self._release(lease)
        self._finish_failed(error)

    # Internals

    def _record_acceptance(self, barcode: str) -> None:
        self._accepted_barcode = barcode

    def _close_for_acceptance(self) -> None:
        self._closed = True
        self._state = ScanSessionState.ACCEPTED

    def _fail_start(self, error: ScanError) -> None:
        with self._lock:
            if self._state == ScanSessionState.STOPPING:
                self._state = ScanSessionState.STOPPED
                self._log.info("Camera start failed after stop", error=error.message)
                return
            self._enter_failed(error)

        self._finish_failed(error)

    def _enter_failed(self, error: ScanError) -> None:
        self._closed = True
        self._error = error
        if self._gate is not None:
            self._gate.close()
        self._state = ScanSessionState.FAILED
        self._log.error("Scan session failed", kind=error.kind.value, error=error.message)

    def _finish_failed(self, error: ScanError) -> None:
        try:
            self._notify_error(error)
        finally:
            self._set_state(ScanSessionState.STOPPED)

    def _notify_error(self, error: ScanError) -> None:
        on_error = self._callbacks.current.on_error
        if on_error is not None:
            on_error(error)

    def _release(self, lease: CameraLease | None) -> None:
        if lease is not None:
            lease.release()

    def _set_state(self, state: ScanSessionState) -> None:
        with self._lock:
            self._state = state
