"""
Runtime configuration for Shotframe.

Values come from environment variables (a project-root .env is loaded by the
CLI entry point). Nothing here is persisted back to disk.
"""

import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from src.core.paths import get_desktop_dir

logger = logging.getLogger(__name__)

DEFAULT_CAPTURE_BINARY = "screencapture"
DEFAULT_FILENAME_PREFIX = "shotframe"

_TRUTHY = {"1", "true", "yes", "on"}


class CaptureConfig(BaseModel):
    """Configuration consumed by the capture and persistence layers."""

    save_dir: Path = Field(..., description="Default directory for saved captures")
    capture_binary: str = Field(
        default=DEFAULT_CAPTURE_BINARY, description="External capture facility executable"
    )
    filename_prefix: str = Field(
        default=DEFAULT_FILENAME_PREFIX, description="Prefix for saved capture files"
    )
    play_sound: bool = Field(default=True, description="Play a sound after successful captures")
    log_level: str = Field(default="INFO", description="Console log level")

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {value}")
        return value


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def get_capture_config() -> CaptureConfig:
    """
    Build the capture configuration from the environment.

    Recognized variables:
        SHOTFRAME_SAVE_DIR: default save directory (Desktop if unset)
        SHOTFRAME_CAPTURE_BINARY: capture facility executable
        SHOTFRAME_FILENAME_PREFIX: prefix for saved files
        SHOTFRAME_PLAY_SOUND: play the capture sound (true/false)
        SHOTFRAME_LOG_LEVEL: console log level

    Returns:
        Validated CaptureConfig
    """
    save_dir = os.environ.get("SHOTFRAME_SAVE_DIR")

    return CaptureConfig(
        save_dir=Path(save_dir).expanduser() if save_dir else get_desktop_dir(),
        capture_binary=os.environ.get("SHOTFRAME_CAPTURE_BINARY", DEFAULT_CAPTURE_BINARY),
        filename_prefix=os.environ.get("SHOTFRAME_FILENAME_PREFIX", DEFAULT_FILENAME_PREFIX),
        play_sound=_env_flag("SHOTFRAME_PLAY_SOUND", True),
        log_level=os.environ.get("SHOTFRAME_LOG_LEVEL", "INFO"),
    )
