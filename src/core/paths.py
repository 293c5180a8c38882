"""
Directory Layout for Shotframe

This module defines the directories Shotframe reads from and writes to.
Application data lives under DATA_ROOT (~/Shotframe by default); captures
themselves are written wherever the caller asks, falling back to the user's
Desktop.

Directory structure:
    Shotframe/
    └── logs/                      # Rotating text + JSON logs
"""

import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)

# Allow override via environment variable for testing
_data_root_override = os.environ.get("SHOTFRAME_DATA_ROOT")
DATA_ROOT: Path = Path(_data_root_override) if _data_root_override else Path.home() / "Shotframe"

LOG_DIR: Path = DATA_ROOT / "logs"

_REQUIRED_DIRS: tuple[Path, ...] = (LOG_DIR,)


def ensure_data_directories() -> dict[str, bool]:
    """
    Ensure all application data directories exist.

    Idempotent; safe to call on every start.

    Returns:
        Dictionary mapping directory names to whether they were created (True)
        or already existed (False).
    """
    results: dict[str, bool] = {}

    for dir_path in _REQUIRED_DIRS:
        try:
            created = not dir_path.exists()
            dir_path.mkdir(parents=True, exist_ok=True)
            results[str(dir_path.relative_to(DATA_ROOT))] = created
            if created:
                logger.info(f"Created directory: {dir_path}")
        except OSError as e:
            logger.error(f"Failed to create directory {dir_path}: {e}")
            raise

    return results


def get_desktop_dir() -> Path:
    """Get the user's Desktop directory, falling back to the home directory."""
    desktop = Path.home() / "Desktop"
    if desktop.is_dir():
        return desktop
    return Path.home()


def get_temp_dir() -> Path:
    """
    Get the system temp directory with symlinks resolved.

    On macOS /tmp is a symlink to /private/tmp; resolving keeps paths handed
    to the UI layer comparable with the ones written by the capture facility.
    """
    temp_dir = Path(tempfile.gettempdir())
    try:
        return temp_dir.resolve()
    except OSError:
        return temp_dir


if __name__ == "__main__":
    import fire

    def init():
        """Initialize all data directories."""
        results = ensure_data_directories()
        return {
            "data_root": str(DATA_ROOT),
            "directories": results,
            "desktop": str(get_desktop_dir()),
            "temp": str(get_temp_dir()),
        }

    fire.Fire({"init": init})
