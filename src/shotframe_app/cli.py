"""Command-line interface for Shotframe."""

import asyncio
import logging
from pathlib import Path

import fire
from dotenv import load_dotenv

from src.shotframe_app import __version__

# Load .env file from project root
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

logger = logging.getLogger(__name__)


def _setup_logging(structured: bool = True) -> None:
    from src.core.config import get_capture_config
    from src.core.logging import setup_logging

    setup_logging(
        console_level=get_capture_config().log_level,
        structured_file="shotframe.jsonl" if structured else None,
    )


class ShotframeCLI:
    """Shotframe CLI commands."""

    def serve(self) -> None:
        """Start the IPC server for the front end.

        Requests arrive as JSON lines on stdin; responses and events are
        written to stdout. Logs go to stderr and the log directory.
        """
        from src.core.paths import ensure_data_directories
        from src.shotframe_app.ipc.server import run_server

        ensure_data_directories()
        _setup_logging()
        run_server()

    def monitors(self) -> list[dict]:
        """List attached displays in global desktop coordinates."""
        from src.capture.screenshots import MultiMonitorCapture

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

    def capture(self, mode: str = "interactive", save_dir: str = "") -> str:
        """Capture a screenshot with the system capture tool.

        Args:
            mode: interactive, fullscreen or window
            save_dir: Destination directory (configured default if empty)
        """
        from src.capture.coordinator import CaptureCoordinator, CaptureKind
        from src.core.config import get_capture_config

        _setup_logging(structured=False)
        coordinator = CaptureCoordinator(binary=get_capture_config().capture_binary)
        return str(asyncio.run(coordinator.capture(CaptureKind(mode), save_dir or None)))

    def all_monitors(self, save_dir: str = "") -> list[dict]:
        """Capture every display into save_dir."""
        from src.capture.screenshots import MultiMonitorCapture

        return [shot.model_dump() for shot in MultiMonitorCapture().capture_all(save_dir or None)]

    def crop(self, path: str, x: int, y: int, width: int, height: int, save_dir: str = "") -> str:
        """Crop a region from an image into a new PNG."""
        from src.compose.engine import crop_file
        from src.compose.models import CropRegion

        region = CropRegion(x=x, y=y, width=width, height=height)
        return str(crop_file(path, region, save_dir or Path(path).parent))

    def render(
        self,
        path: str,
        background: str = "none",
        padding: int = 0,
        corner_radius: int = 0,
        shadow: bool = False,
        blur: float = 0.0,
        save_dir: str = "",
    ) -> str:
        """Render background, padding, rounded corners, shadow and blur onto an image.

        Args:
            path: Source image
            background: none, white, black, gray, gradient or a colour like #667eea
            padding: Pixels added on each side
            corner_radius: Corner radius in pixels
            shadow: Draw the default drop shadow
            blur: Gaussian blur radius for the content
            save_dir: Output directory (source directory if empty)
        """
        from src.compose.engine import render_file
        from src.compose.models import RenderSettings

        settings = RenderSettings(
            background=background,
            padding=padding,
            corner_radius=corner_radius,
            shadow=shadow,
            blur=blur,
        )
        return str(render_file(path, settings, save_dir or None))

    def version(self) -> str:
        """Print the Shotframe version."""
        return __version__


def main() -> None:
    """Main entry point for the Shotframe CLI."""
    fire.Fire(ShotframeCLI)


if __name__ == "__main__":
    main()
