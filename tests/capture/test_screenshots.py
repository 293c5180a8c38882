"""
Tests for multi-monitor capture.
"""

from pathlib import Path

import pytest
from PIL import Image

from src.capture.geometry import DisplayInfo
from src.capture.screenshots import MultiMonitorCapture
from src.core.errors import ProcessError


class FakeDisplaySource:
    """Display source with fixed geometry and solid-colour rasters."""

    def __init__(
        self,
        displays: list[DisplayInfo],
        scale: int = 1,
        fail_on: int | None = None,
        error: Exception | None = None,
    ):
        self.displays = displays
        self.scale = scale
        self.fail_on = fail_on
        self.error = error
        self.grabbed: list[int] = []

    def list_displays(self) -> list[DisplayInfo]:
        return list(self.displays)

    def grab(self, display_id: int) -> Image.Image | None:
        self.grabbed.append(display_id)
        if display_id == self.fail_on:
            if self.error is not None:
                raise self.error
            return None
        display = next(d for d in self.displays if d.display_id == display_id)
        return Image.new("RGBA", (display.width * self.scale, display.height * self.scale), (0, 128, 255, 255))


@pytest.fixture
def two_displays() -> list[DisplayInfo]:
    return [
        DisplayInfo(display_id=1, x=0, y=0, width=1920, height=1080, is_main=True),
        DisplayInfo(display_id=2, x=1920, y=0, width=1920, height=1080),
    ]


class TestMultiMonitorCapture:
    """Tests for MultiMonitorCapture."""

    def test_capture_all_two_displays(self, two_displays: list[DisplayInfo], tmp_path: Path):
        """Test that each display produces one PNG and one shot."""
        capturer = MultiMonitorCapture(FakeDisplaySource(two_displays))

        shots = capturer.capture_all(tmp_path)

        assert len(shots) == 2
        assert [(s.x, s.y) for s in shots] == [(0, 0), (1920, 0)]
        assert shots[0].is_primary and not shots[1].is_primary
        for shot in shots:
            path = Path(shot.path)
            assert path.parent == tmp_path.resolve()
            with Image.open(path) as image:
                assert image.format == "PNG"
                assert image.size == (1920, 1080)
        assert len(list(tmp_path.glob("monitor-*.png"))) == 2

    def test_scale_factor_from_raster(self, two_displays: list[DisplayInfo], tmp_path: Path):
        """Test that Retina rasters report a scale factor of 2."""
        shots = MultiMonitorCapture(FakeDisplaySource(two_displays, scale=2)).capture_all(tmp_path)
        assert all(shot.scale_factor == 2.0 for shot in shots)
        assert shots[0].width == 1920

    def test_failed_grab_removes_partial_batch(self, two_displays: list[DisplayInfo], tmp_path: Path):
        """Test that no files are left behind when one display fails."""
        capturer = MultiMonitorCapture(FakeDisplaySource(two_displays, fail_on=2))

        with pytest.raises(ProcessError):
            capturer.capture_all(tmp_path)

        assert list(tmp_path.iterdir()) == []

    def test_unexpected_grab_error_removes_partial_batch(self, two_displays: list[DisplayInfo], tmp_path: Path):
        """Test that a raw decoding error from the source still rolls back the batch."""
        source = FakeDisplaySource(two_displays, fail_on=2, error=ValueError("not enough image data"))

        with pytest.raises(ValueError):
            MultiMonitorCapture(source).capture_all(tmp_path)

        assert source.grabbed == [1, 2]
        assert list(tmp_path.iterdir()) == []

    def test_no_displays(self, tmp_path: Path):
        """Test that capture fails when nothing is attached."""
        with pytest.raises(ProcessError):
            MultiMonitorCapture(FakeDisplaySource([])).capture_all(tmp_path)

    def test_capture_primary(self, two_displays: list[DisplayInfo], tmp_path: Path):
        """Test that only the main display is grabbed."""
        source = FakeDisplaySource(list(reversed(two_displays)))
        path = MultiMonitorCapture(source).capture_primary(tmp_path)

        assert path.exists()
        assert source.grabbed == [1]

    def test_get_monitors_caches(self, two_displays: list[DisplayInfo]):
        """Test that get_monitors enumerates lazily."""
        capturer = MultiMonitorCapture(FakeDisplaySource(two_displays))
        assert [m.display_id for m in capturer.get_monitors()] == [1, 2]
