"""
Capture sound for Shotframe.

Fire-and-forget: playback runs on a daemon thread and never reports errors
to the caller.
"""

import logging
import subprocess
import sys
import threading
from pathlib import Path

logger = logging.getLogger(__name__)

SCREEN_CAPTURE_SOUND = Path(
    "/System/Library/Components/CoreAudio.component/Contents/SharedSupport/"
    "SystemSounds/system/Screen Capture.aif"
)


def _play(sound_path: Path) -> None:
    try:
        subprocess.run(
            ["afplay", str(sound_path)],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=5,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"Capture sound failed: {e}")


def play_capture_sound(sound_path: Path = SCREEN_CAPTURE_SOUND) -> threading.Thread | None:
    """
    Play the system screenshot sound without blocking.

    Returns:
        The playback thread, or None when no sound is available
    """
    if sys.platform != "darwin" or not sound_path.exists():
        logger.debug("Capture sound not available on this system")
        return None

    thread = threading.Thread(target=_play, args=(sound_path,), name="capture-sound", daemon=True)
    thread.start()
    return thread
