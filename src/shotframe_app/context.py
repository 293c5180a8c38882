"""
Application context shared by all IPC handlers.

One AppContext owns the capture lock and every collaborator; handlers get
it passed in explicitly, which also lets tests swap in fakes.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from src.capture.coordinator import CaptureCoordinator
from src.capture.geometry import DisplaySource
from src.capture.lock import SingleFlightLock
from src.capture.runner import ProcessRunner
from src.capture.screenshots import MultiMonitorCapture
from src.core.config import CaptureConfig, get_capture_config
from src.platform.clipboard import copy_image_to_clipboard, copy_text_to_clipboard
from src.platform.ocr import recognize_text_from_image
from src.platform.sound import play_capture_sound

logger = logging.getLogger(__name__)


def _discard_event(name: str, payload: dict[str, Any]) -> None:
    logger.debug(f"No event sink attached, dropping {name}")


@dataclass
class AppContext:
    """Capture state and collaborators for one server run."""

    config: CaptureConfig
    lock: SingleFlightLock
    coordinator: CaptureCoordinator
    monitors: MultiMonitorCapture
    copy_image: Callable[[str], None] = copy_image_to_clipboard
    copy_text: Callable[[str], None] = copy_text_to_clipboard
    recognize_text: Callable[[str], str] = recognize_text_from_image
    play_sound: Callable[[], Any] = play_capture_sound
    emit: Callable[[str, dict[str, Any]], None] = _discard_event
    running: bool = True
    start_time: float = field(default_factory=time.time)

    @classmethod
    def create(
        cls,
        config: CaptureConfig | None = None,
        runner: ProcessRunner | None = None,
        display_source: DisplaySource | None = None,
        **collaborators: Any,
    ) -> "AppContext":
        """Build a context with one lock shared by every capture path."""
        config = config or get_capture_config()
        lock = SingleFlightLock("capture")
        return cls(
            config=config,
            lock=lock,
            coordinator=CaptureCoordinator(runner=runner, lock=lock, binary=config.capture_binary),
            monitors=MultiMonitorCapture(display_source),
            **collaborators,
        )

    def notify_captured(self) -> None:
        """Play the capture sound if enabled. Failures are ignored."""
        if not self.config.play_sound:
            return
        try:
            self.play_sound()
        except Exception as e:
            logger.debug(f"Capture sound failed: {e}")
