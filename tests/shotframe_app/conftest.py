"""Fixtures for driving IPC handlers against fake capture backends."""

from pathlib import Path
from typing import Any

import pytest
from PIL import Image

from src.capture.geometry import DisplayInfo
from src.capture.runner import ProcessResult
from src.core.config import CaptureConfig
from src.shotframe_app.context import AppContext


class FakeDisplaySource:
    """Two side-by-side 200x100 displays, each filled with its own colour."""

    colours = {1: (255, 0, 0, 255), 2: (0, 0, 255, 255)}

    def list_displays(self) -> list[DisplayInfo]:
        return [
            DisplayInfo(display_id=1, x=0, y=0, width=200, height=100, is_main=True),
            DisplayInfo(display_id=2, x=200, y=0, width=200, height=100),
        ]

    def grab(self, display_id: int) -> Image.Image:
        return Image.new("RGBA", (200, 100), self.colours[display_id])


class FakeRunner:
    """Pretends to be screencapture: writes a tiny PNG unless told to cancel."""

    def __init__(self):
        self.cancel = False
        self.calls: list[list[str]] = []

    async def is_running(self, name: str) -> bool:
        return False

    async def run(self, args: list[str]) -> ProcessResult:
        self.calls.append(args)
        if not self.cancel or "-T" in args:
            Image.new("RGB", (8, 8), (0, 255, 0)).save(args[-1], "PNG")
        return ProcessResult(returncode=0)


class Recorder:
    """Collects collaborator calls."""

    def __init__(self):
        self.images: list[str] = []
        self.texts: list[str] = []
        self.events: list[tuple[str, dict[str, Any]]] = []
        self.sounds = 0

    def copy_image(self, path: str) -> None:
        self.images.append(path)

    def copy_text(self, text: str) -> None:
        self.texts.append(text)

    def emit(self, name: str, payload: dict[str, Any]) -> None:
        self.events.append((name, payload))

    def play_sound(self) -> None:
        self.sounds += 1


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def context(tmp_path: Path, recorder: Recorder, runner: FakeRunner) -> AppContext:
    config = CaptureConfig(save_dir=tmp_path / "saved", filename_prefix="shotframe", play_sound=True)
    ctx = AppContext.create(
        config=config,
        runner=runner,
        display_source=FakeDisplaySource(),
        copy_image=recorder.copy_image,
        copy_text=recorder.copy_text,
        recognize_text=lambda path: "recognized text",
        play_sound=recorder.play_sound,
        emit=recorder.emit,
    )
    ctx.coordinator.probe_dir = tmp_path
    return ctx
