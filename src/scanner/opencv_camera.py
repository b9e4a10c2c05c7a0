"""
Camera platform backed by OpenCV capture and the pyzbar frame decoder.
"""

import threading

import cv2
import structlog
from tenacity import RetryError, retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from src.barcode.decoder import FrameDecoder
from src.config import Settings, get_settings
from src.models.scan import ScanErrorKind
from src.scanner.camera import Camera, CameraHandle, DecodeCallback, DecodeErrorCallback
from src.scanner.errors import ScanError

logger = structlog.get_logger(__name__)

NO_MATCH_MESSAGE = "NotFoundException: no barcode found in frame"
READ_FAILED_MESSAGE = "Frame grab failed"
DEVICE_LOST_MESSAGE = "NotReadableError: camera device stopped delivering frames"


class _CaptureNotOpened(Exception):
    pass


class OpenCVCameraHandle(CameraHandle):
    """Frame loop running on its own thread until closed."""

    def __init__(
        self,
        camera: "OpenCVCamera",
        capture: cv2.VideoCapture,
        decoder: FrameDecoder,
        on_decode: DecodeCallback,
        on_decode_error: DecodeErrorCallback,
        settings: Settings,
    ):
        self._camera = camera
        self._capture = capture
        self._decoder = decoder
        self._on_decode = on_decode
        self._on_decode_error = on_decode_error
        self._settings = settings
        self._stop_event = threading.Event()
        self._release_lock = threading.Lock()
        self._released = False
        self._thread = threading.Thread(
            target=self._run,
            name=f"camera-{settings.scanner_camera_index}",
            daemon=True,
        )

    def start(self) -> None:
        self._thread.start()

    def close(self) -> None:
        self._stop_event.set()
        # close() may be called from a decode callback on the frame thread
        if threading.current_thread() is self._thread:
            return
        if self._thread.is_alive():
            self._thread.join(timeout=self._settings.scanner_teardown_timeout)
            if self._thread.is_alive():
                # The frame thread releases the capture when its read returns
                logger.warning("Frame thread did not stop in time")
                return
        self._release_capture()

    def _release_capture(self) -> None:
        with self._release_lock:
            if self._released:
                return
            self._released = True
        try:
            self._capture.release()
        finally:
            self._camera._handle_closed(self)

    def _run(self) -> None:
        interval = self._settings.frame_interval
        read_failures = 0

        try:
            while not self._stop_event.is_set():
                try:
                    ok, frame = self._capture.read()
                except Exception as e:
                    logger.warning("Frame read raised", error=str(e))
                    ok, frame = False, None

                if self._stop_event.is_set():
                    break

                if not ok or frame is None:
                    read_failures += 1
                    if read_failures >= self._settings.scanner_max_read_failures:
                        self._deliver_error(DEVICE_LOST_MESSAGE)
                        break
                    self._deliver_error(READ_FAILED_MESSAGE)
                    self._stop_event.wait(interval)
                    continue

                read_failures = 0
                try:
                    self._process_frame(frame)
                except Exception as e:
                    logger.error("Frame processing failed", error=str(e))
                    self._deliver_error(f"Frame processing failed: {e}")
                self._stop_event.wait(interval)
        finally:
            if self._stop_event.is_set():
                self._release_capture()

    def _process_frame(self, frame) -> None:
        gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY) if frame.ndim == 3 else frame
        try:
            symbols = self._decoder.decode(gray)
        except Exception as e:
            self._deliver_error(f"Decoder failure: {e}")
            return

        if not symbols:
            self._deliver_error(NO_MATCH_MESSAGE)
            return

        for symbol in symbols:
            if self._stop_event.is_set():
                return
            try:
                self._on_decode(symbol.text, symbol.format_name, symbol.metadata)
            except Exception as e:
                logger.error("Decode callback failed", code=symbol.text, error=str(e))

    def _deliver_error(self, message: str) -> None:
        if self._stop_event.is_set():
            return
        try:
            self._on_decode_error(message)
        except Exception as e:
            logger.error("Decode error callback failed", error=str(e))


class OpenCVCamera(Camera):
    """
    Local camera opened through ``cv2.VideoCapture``.

    Only one stream can be open at a time; a second open() while a handle is
    live is reported as DEVICE_UNAVAILABLE.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        decoder: FrameDecoder | None = None,
    ):
        self.settings = settings or get_settings()
        self.decoder = decoder or FrameDecoder(
            formats=self.settings.scanner_formats,
            try_rotations=self.settings.scanner_try_rotations,
        )
        self._lock = threading.Lock()
        self._active: OpenCVCameraHandle | None = None

    def open(
        self,
        on_decode: DecodeCallback,
        on_decode_error: DecodeErrorCallback,
    ) -> CameraHandle:
        with self._lock:
            if self._active is not None:
                raise ScanError(
                    ScanErrorKind.DEVICE_UNAVAILABLE,
                    f"Camera {self.settings.scanner_camera_index} is already in use",
                )

            try:
                capture = self._open_capture()
            except RetryError as e:
                raise ScanError(
                    ScanErrorKind.DEVICE_UNAVAILABLE,
                    f"No camera at index {self.settings.scanner_camera_index}",
                ) from e

            handle = OpenCVCameraHandle(
                self, capture, self.decoder, on_decode, on_decode_error, self.settings
            )
            self._active = handle

        logger.info(
            "Camera opened",
            index=self.settings.scanner_camera_index,
            fps=self.settings.scanner_fps,
        )
        handle.start()
        return handle

    def _open_capture(self) -> cv2.VideoCapture:
        @retry(
            stop=stop_after_attempt(self.settings.scanner_open_attempts),
            wait=wait_fixed(0.5),
            retry=retry_if_exception_type(_CaptureNotOpened),
        )
        def _attempt() -> cv2.VideoCapture:
            capture = cv2.VideoCapture(self.settings.scanner_camera_index)
            if not capture.isOpened():
                capture.release()
                logger.warning("Cannot open camera", index=self.settings.scanner_camera_index)
                raise _CaptureNotOpened()

            capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.settings.scanner_frame_width)
            capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.settings.scanner_frame_height)
            capture.set(cv2.CAP_PROP_FPS, self.settings.scanner_fps)
            return capture

        return _attempt()

    def _handle_closed(self, handle: OpenCVCameraHandle) -> None:
        with self._lock:
            if self._active is handle:
                self._active = None
