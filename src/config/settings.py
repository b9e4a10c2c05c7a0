"""
Application settings using Pydantic Settings.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        # Prefer local overrides while keeping .env as the default source
        env_file=(".env.local", ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["dev", "staging", "prod"] = "dev"

    # Camera
    scanner_camera_index: int = Field(0, description="OpenCV device index of the camera")
    scanner_fps: int = Field(10, ge=1, le=60, description="Frames decoded per second")
    scanner_frame_width: int = Field(640, description="Requested capture width in pixels")
    scanner_frame_height: int = Field(480, description="Requested capture height in pixels")
    scanner_open_attempts: int = Field(3, ge=1, description="Attempts to open the camera")
    scanner_max_read_failures: int = Field(
        30, ge=1, description="Consecutive failed frame grabs before the device is given up"
    )
    scanner_teardown_timeout: float = Field(
        2.0, description="Seconds to wait for the frame thread on close"
    )

    # Decoding
    scanner_formats: list[Literal["EAN-13", "EAN-8"]] = Field(
        default_factory=lambda: ["EAN-13", "EAN-8"],
        description="Symbologies handed to the frame decoder",
    )
    scanner_try_rotations: bool = Field(False, description="Also decode the frame rotated by 180")
    scanner_no_match_markers: list[str] = Field(
        default_factory=lambda: ["not found", "notfound", "no multiformat readers", "no barcode"],
        description="Decoder error fragments meaning no symbol was in the frame",
    )

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "prod"

    @property
    def frame_interval(self) -> float:
        """Seconds between decoded frames."""
        return 1.0 / self.scanner_fps


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
