"""
Clipboard access for Shotframe.

Writes go through AppleScript (`osascript`) so clipboard managers such as
Raycast see a regular PNG pasteboard item.
"""

import logging
import subprocess
from pathlib import Path

from src.core.errors import ProcessError, StorageError

logger = logging.getLogger(__name__)

OSASCRIPT_TIMEOUT = 10


def _applescript_string(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _run_applescript(script: str, action: str) -> None:
    try:
        result = subprocess.run(
            ["osascript", "-e", script],
            capture_output=True,
            text=True,
            timeout=OSASCRIPT_TIMEOUT,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        raise ProcessError(f"Failed to execute osascript: {e}") from e

    if result.returncode != 0:
        raise ProcessError(
            f"Failed to {action}: {result.stderr.strip()}",
            returncode=result.returncode,
            stderr=result.stderr,
        )


def copy_image_to_clipboard(image_path: str | Path) -> None:
    """
    Put a PNG file on the clipboard.

    Raises:
        StorageError: If the file does not exist
        ProcessError: If osascript fails
    """
    path = Path(image_path)
    if not path.is_file():
        raise StorageError(f"Image file does not exist: {path}")

    script = f"set the clipboard to (read (POSIX file {_applescript_string(str(path))}) as «class PNGf»)"
    _run_applescript(script, "copy image to clipboard")
    logger.debug(f"Copied image to clipboard: {path}")


def copy_text_to_clipboard(text: str) -> None:
    """
    Put UTF-8 text on the clipboard.

    Raises:
        ProcessError: If osascript fails
    """
    _run_applescript(f"set the clipboard to {_applescript_string(text)}", "copy text to clipboard")
    logger.debug(f"Copied {len(text)} characters to clipboard")
