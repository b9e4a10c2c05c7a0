"""
Configuration management for the barcode scanner.
"""

from src.config.logging_setup import configure_logging
from src.config.settings import Settings, get_settings

__all__ = ["Settings", "configure_logging", "get_settings"]
