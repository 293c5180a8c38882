"""
Multi-monitor Screenshot Capture for Shotframe

Captures every attached display into its own PNG and records where that
display sits in the global desktop space. The resulting MonitorShot list
seeds the region selector.
"""

import logging
from pathlib import Path

from src.capture.geometry import DisplayInfo, DisplaySource, MonitorShot, QuartzDisplaySource, normalize_displays
from src.compose.engine import save_image
from src.core.errors import ProcessError
from src.core.naming import build_output_path, remove_file

logger = logging.getLogger(__name__)


class MultiMonitorCapture:
    """
    Captures screenshots from all connected monitors.

    Either every display is captured or none is: if one grab fails, files
    already written for the batch are removed before the error is raised.
    """

    def __init__(self, source: DisplaySource | None = None):
        """
        Initialize the capturer.

        Args:
            source: Display enumeration/capture backend (Quartz by default)
        """
        self.source = source or QuartzDisplaySource()
        self._monitors: list[DisplayInfo] = []

    def refresh_monitors(self) -> list[DisplayInfo]:
        """Re-enumerate displays; monitors can be attached at any time."""
        self._monitors = normalize_displays(self.source.list_displays())
        logger.debug(f"Refreshed monitor list: {len(self._monitors)} monitors")
        return self._monitors

    def get_monitors(self) -> list[DisplayInfo]:
        """Get the current list of monitors."""
        if not self._monitors:
            self.refresh_monitors()
        return self._monitors

    def capture_all(self, save_dir: str | Path | None) -> list[MonitorShot]:
        """
        Capture every display into save_dir.

        Returns:
            One MonitorShot per display, main display first

        Raises:
            ProcessError: If no display is available or a grab fails
        """
        monitors = self.refresh_monitors()
        if not monitors:
            raise ProcessError("No monitors available for capture")

        shots: list[MonitorShot] = []
        try:
            for index, monitor in enumerate(monitors, start=1):
                shots.append(self._capture_monitor(monitor, index, save_dir))
        except Exception:
            for shot in shots:
                remove_file(shot.path)
            raise

        logger.info(f"Captured {len(shots)} monitor(s)")
        return shots

    def capture_primary(self, save_dir: str | Path | None) -> Path:
        """Capture only the main display and return the PNG path."""
        monitors = self.refresh_monitors()
        if not monitors:
            raise ProcessError("No monitors available for capture")
        return Path(self._capture_monitor(monitors[0], 1, save_dir).path)

    def _capture_monitor(self, monitor: DisplayInfo, index: int, save_dir: str | Path | None) -> MonitorShot:
        image = self.source.grab(monitor.display_id)
        if image is None:
            raise ProcessError(f"Failed to capture monitor {monitor.display_id}")

        output_path = build_output_path(save_dir, f"monitor-{index}", "png")
        save_image(image, output_path)

        # Raster pixels per desktop unit
        scale = image.width / monitor.width if monitor.width else monitor.scale_factor

        logger.debug(f"Captured monitor {monitor.display_id} ({image.width}x{image.height}): {output_path}")

        return MonitorShot(
            id=monitor.display_id,
            path=str(output_path),
            x=monitor.x,
            y=monitor.y,
            width=monitor.width,
            height=monitor.height,
            scale_factor=scale,
            is_primary=monitor.is_main,
        )


if __name__ == "__main__":
    import fire

    def list_monitors():
        """List all connected monitors in global coordinates."""
        return [
            {
                "display_id": m.display_id,
                "x": m.x,
                "y": m.y,
                "width": m.width,
                "height": m.height,
                "scale_factor": m.scale_factor,
                "is_main": m.is_main,
            }
            for m in MultiMonitorCapture().refresh_monitors()
        ]

    def capture(save_dir: str = ""):
        """Capture screenshots from all monitors."""
        return [shot.model_dump() for shot in MultiMonitorCapture().capture_all(save_dir)]

    fire.Fire(
        {
            "monitors": list_monitors,
            "capture": capture,
        }
    )
