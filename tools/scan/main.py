"""
CLI tool to acquire a product barcode from the camera or from typed input.

Usage:
    poetry run scan camera
    poetry run scan camera --timeout 30 --camera-index 1
    poetry run scan validate 4006381333931 96385074
"""

import sys
import threading

import click
import structlog

from src.barcode.validator import is_valid_barcode, validate
from src.config import Settings, configure_logging, get_settings
from src.models import ValidationResult
from src.scanner import Camera, ScanError, ScanSession

logger = structlog.get_logger(__name__)


def build_camera(settings: Settings) -> Camera:
    """Create the camera platform for this machine."""
    from src.scanner.opencv_camera import OpenCVCamera

    return OpenCVCamera(settings)


def run_scan(
    camera: Camera,
    settings: Settings,
    timeout: float | None = None,
) -> tuple[str | None, ScanError | None]:
    """
    Run one scan session until a barcode is accepted, it fails or times out.

    Returns:
        Tuple of (barcode, fatal_error); both None on timeout
    """
    done = threading.Event()
    outcome: dict[str, object] = {}

    def on_accepted(barcode: str) -> None:
        outcome["barcode"] = barcode
        done.set()

    def on_error(error: ScanError) -> None:
        if error.is_fatal:
            outcome["error"] = error
            done.set()
        else:
            click.echo(f"Warning: {error.message}", err=True)

    with ScanSession(camera, settings=settings) as session:
        session.start(on_accepted, on_error)
        if not done.is_set():
            done.wait(timeout)

    return outcome.get("barcode"), outcome.get("error")  # type: ignore[return-value]


@click.group()
def cli() -> None:
    """Acquire EAN-8/EAN-13 product barcodes."""
    configure_logging()


@cli.command("camera")
@click.option(
    "--timeout", "-t",
    type=float,
    default=None,
    help="Give up after this many seconds (default: wait forever)",
)
@click.option(
    "--camera-index", "-c",
    type=int,
    default=None,
    help="OpenCV camera index (default: from settings)",
)
def camera_command(timeout: float | None, camera_index: int | None) -> None:
    """Scan a barcode with the camera and print it."""
    settings = get_settings()
    if camera_index is not None:
        settings = settings.model_copy(update={"scanner_camera_index": camera_index})

    click.echo("Point the camera at a barcode...", err=True)
    try:
        barcode, error = run_scan(build_camera(settings), settings, timeout)
    except KeyboardInterrupt:
        click.echo("Scan cancelled", err=True)
        sys.exit(130)

    if error is not None:
        click.echo(f"Scan failed ({error.kind.value}): {error.message}", err=True)
        sys.exit(1)
    if barcode is None:
        click.echo("No barcode scanned before timeout", err=True)
        sys.exit(2)

    logger.info("Barcode acquired", code=barcode)
    click.echo(barcode)


@cli.command("validate")
@click.argument("codes", nargs=-1, required=True)
def validate_command(codes: tuple[str, ...]) -> None:
    """Check typed barcodes and print the validation result of each."""
    all_valid = True

    for code in codes:
        code = code.strip()
        result = validate(code)
        if result == ValidationResult.VALID:
            _, barcode_format, _ = is_valid_barcode(code)
            click.echo(f"{code:<15} {result.value:<17} {barcode_format.value}")
        else:
            all_valid = False
            _, _, reason = is_valid_barcode(code)
            click.echo(f"{code:<15} {result.value:<17} {reason}")

    if not all_valid:
        sys.exit(1)


if __name__ == "__main__":
    cli()
