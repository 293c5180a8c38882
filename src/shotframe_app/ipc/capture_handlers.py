"""IPC handlers for capturing, cropping, rendering and saving screenshots.

Every handler either returns its result (a path, text, or list of monitor
shots) or raises; the server turns exceptions into error strings.
"""

import logging
from pathlib import Path
from typing import Any

from src.capture.coordinator import CaptureKind
from src.capture.geometry import MonitorShot, desktop_bounds, locate_selection
from src.compose.engine import crop_file, render_file
from src.compose.models import CropRegion, RenderSettings
from src.core.naming import copy_screenshot_to_dir, remove_file, save_base64_image
from src.core.paths import get_desktop_dir, get_temp_dir
from src.shotframe_app.context import AppContext
from src.shotframe_app.ipc.server import handler

logger = logging.getLogger(__name__)


def _require(params: dict[str, Any], name: str) -> Any:
    value = params.get(name)
    if value is None or value == "":
        raise ValueError(f"{name} parameter is required")
    return value


def _save_dir(context: AppContext, params: dict[str, Any]) -> str | Path:
    return params.get("save_dir") or context.config.save_dir


def _scratch_dir(params: dict[str, Any]) -> str | Path:
    """Raw captures default to the temp directory rather than the save directory."""
    return params.get("save_dir") or get_temp_dir()


def _finish_capture(context: AppContext, path: Path, copy_to_clip: bool) -> str:
    if copy_to_clip:
        context.copy_image(str(path))
    context.notify_captured()
    return str(path)


@handler("capture.once")
def handle_capture_once(context: AppContext, params: dict[str, Any]) -> str:
    """Capture the main display straight into the save directory.

    Params:
        save_dir: Destination directory (configured default if empty)
        copy_to_clip: Also put the image on the clipboard
    """
    with context.lock.hold():
        raw = context.monitors.capture_primary(get_temp_dir())
    try:
        saved = copy_screenshot_to_dir(raw, _save_dir(context, params), context.config.filename_prefix)
    finally:
        remove_file(raw)
    return _finish_capture(context, saved, bool(params.get("copy_to_clip", False)))


@handler("capture.all_monitors")
def handle_capture_all_monitors(context: AppContext, params: dict[str, Any]) -> list[dict[str, Any]]:
    """Capture every display and return the monitor shots.

    Params:
        save_dir: Directory for the per-display PNGs (temp dir if empty)
    """
    with context.lock.hold():
        shots = context.monitors.capture_all(_scratch_dir(params))
    return [shot.model_dump() for shot in shots]


@handler("capture.region")
def handle_capture_region(context: AppContext, params: dict[str, Any]) -> str:
    """Crop a region out of an existing capture.

    Params:
        screenshot_path: Source PNG
        x, y, width, height: Region in the source's pixel space
        save_dir: Directory for the cropped PNG (temp dir if empty)
    """
    region = CropRegion(
        x=params.get("x", 0),
        y=params.get("y", 0),
        width=_require(params, "width"),
        height=_require(params, "height"),
    )
    return str(crop_file(_require(params, "screenshot_path"), region, _scratch_dir(params)))


@handler("capture.render")
def handle_capture_render(context: AppContext, params: dict[str, Any]) -> str:
    """Render background, padding, corners, shadow and blur onto a capture.

    Params:
        image_path: Source PNG
        settings: RenderSettings fields (camelCase or snake_case)
        save_dir: Output directory (source directory if empty)
    """
    settings = RenderSettings.model_validate(params.get("settings") or {})
    return str(render_file(_require(params, "image_path"), settings, params.get("save_dir") or None))


@handler("capture.save_edited")
def handle_save_edited(context: AppContext, params: dict[str, Any]) -> str:
    """Save a base64 image produced by the editor.

    Params:
        image_data: Base64 PNG, optionally as a data: URL
        save_dir: Destination directory (configured default if empty)
        copy_to_clip: Also put the image on the clipboard
    """
    saved = save_base64_image(
        _require(params, "image_data"), _save_dir(context, params), context.config.filename_prefix
    )
    if params.get("copy_to_clip"):
        context.copy_image(str(saved))
    return str(saved)


async def _native_capture(context: AppContext, kind: CaptureKind, params: dict[str, Any]) -> str:
    path = await context.coordinator.capture(kind, _scratch_dir(params))
    return _finish_capture(context, path, bool(params.get("copy_to_clip", False)))


@handler("capture.interactive")
async def handle_capture_interactive(context: AppContext, params: dict[str, Any]) -> str:
    """Let the user drag out a region with the system selection UI."""
    return await _native_capture(context, CaptureKind.INTERACTIVE, params)


@handler("capture.fullscreen")
async def handle_capture_fullscreen(context: AppContext, params: dict[str, Any]) -> str:
    """Capture the whole screen through the system facility."""
    return await _native_capture(context, CaptureKind.FULLSCREEN, params)


@handler("capture.window")
async def handle_capture_window(context: AppContext, params: dict[str, Any]) -> str:
    """Let the user pick a window to capture."""
    return await _native_capture(context, CaptureKind.WINDOW, params)


@handler("capture.ocr_region")
async def handle_capture_ocr_region(context: AppContext, params: dict[str, Any]) -> str:
    """Capture a region, recognize its text and copy the text to the clipboard."""
    text = await context.coordinator.capture_text(
        _scratch_dir(params), context.recognize_text, context.copy_text
    )
    context.notify_captured()
    return text


@handler("capture.open_region_selector")
def handle_open_region_selector(context: AppContext, params: dict[str, Any]) -> dict[str, Any]:
    """Capture all displays and ask the front end to show the region selector.

    Emits `region-selector-show` with the primary preview path and all
    monitor shots; the same payload is returned.
    """
    with context.lock.hold():
        shots = context.monitors.capture_all(_scratch_dir(params))
    logger.info(f"Region selector over {len(shots)} display(s), desktop bounds {desktop_bounds(shots)}")

    payload = {
        "screenshotPath": shots[0].path,
        "monitorShots": [shot.model_dump() for shot in shots],
    }
    context.emit("region-selector-show", payload)
    return payload


@handler("capture.select_region")
def handle_select_region(context: AppContext, params: dict[str, Any]) -> str:
    """Crop the selection made in the region selector.

    Params:
        monitor_shots: Shots from region-selector-show
        x, y, width, height: Selection in global desktop coordinates
        save_dir: Directory for the cropped PNG (temp dir if empty)
    """
    shots = [MonitorShot.model_validate(shot) for shot in _require(params, "monitor_shots")]
    shot, region = locate_selection(
        shots,
        params.get("x", 0),
        params.get("y", 0),
        _require(params, "width"),
        _require(params, "height"),
    )
    path = crop_file(shot.path, region, _scratch_dir(params))
    context.emit("capture-complete", {"path": str(path)})
    context.notify_captured()
    return str(path)


@handler("files.cleanup_temp")
def handle_cleanup_temp(context: AppContext, params: dict[str, Any]) -> bool:
    """Delete a temporary capture once the front end no longer needs it."""
    remove_file(_require(params, "path"), missing_ok=False)
    return True


@handler("clipboard.copy_image")
def handle_copy_image(context: AppContext, params: dict[str, Any]) -> bool:
    """Copy an image file to the clipboard."""
    context.copy_image(str(_require(params, "path")))
    return True


@handler("paths.desktop")
def handle_desktop_dir(context: AppContext, params: dict[str, Any]) -> str:
    """The user's Desktop directory."""
    return str(get_desktop_dir())


@handler("paths.temp")
def handle_temp_dir(context: AppContext, params: dict[str, Any]) -> str:
    """The resolved system temp directory."""
    return str(get_temp_dir())
