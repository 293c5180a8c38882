"""
Display Geometry for Shotframe

Enumerates attached displays and places them in one global coordinate
space: top-left origin, y growing downwards, with the main display's
top-left corner at (0, 0). Displays left of or above the main display get
negative coordinates.

Quartz already reports displays this way. Cocoa-style frames (NSScreen)
use a bottom-left origin and are flipped here, so callers can mix both.
"""

import logging
import sys
from dataclasses import dataclass, replace
from typing import Protocol

from PIL import Image
from pydantic import BaseModel, Field

from src.compose.models import CropRegion
from src.core.errors import InvalidRegion

logger = logging.getLogger(__name__)

MAX_DISPLAYS = 16

ORIGIN_TOP_LEFT = "top_left"
ORIGIN_BOTTOM_LEFT = "bottom_left"


@dataclass(frozen=True)
class DisplayInfo:
    """One attached display in platform-native coordinates."""

    display_id: int
    x: int
    y: int
    width: int
    height: int
    is_main: bool = False
    scale_factor: float = 1.0
    origin: str = ORIGIN_TOP_LEFT


class MonitorShot(BaseModel):
    """One display's capture artifact plus its place in the global space."""

    id: int = Field(..., description="Platform display identifier")
    path: str = Field(..., description="Raw PNG capture on disk")
    x: int = Field(..., description="Left edge in global desktop coordinates")
    y: int = Field(..., description="Top edge in global desktop coordinates")
    width: int = Field(..., description="Width in global desktop units")
    height: int = Field(..., description="Height in global desktop units")
    scale_factor: float = Field(default=1.0, description="Raster pixels per desktop unit")
    is_primary: bool = Field(default=False)

    @property
    def origin(self) -> tuple[int, int]:
        return (self.x, self.y)

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)


class DisplaySource(Protocol):
    """Where display geometry and pixels come from."""

    def list_displays(self) -> list[DisplayInfo]: ...

    def grab(self, display_id: int) -> Image.Image | None: ...


class QuartzDisplaySource:
    """Display enumeration and capture through the macOS Quartz framework."""

    def list_displays(self) -> list[DisplayInfo]:
        if sys.platform != "darwin":
            return []

        try:
            from Quartz import (
                CGDisplayBounds,
                CGDisplayCopyDisplayMode,
                CGDisplayModeGetPixelWidth,
                CGGetActiveDisplayList,
                CGMainDisplayID,
            )
        except ImportError:
            logger.error("Quartz framework not available")
            return []

        error, active_displays, count = CGGetActiveDisplayList(MAX_DISPLAYS, None, None)
        if error != 0:
            logger.error(f"CGGetActiveDisplayList returned error: {error}")
            return []

        main_display_id = CGMainDisplayID()
        displays = []

        for display_id in active_displays[:count]:
            bounds = CGDisplayBounds(display_id)
            width = int(bounds.size.width)

            scale = 1.0
            mode = CGDisplayCopyDisplayMode(display_id)
            if mode is not None and width > 0:
                scale = CGDisplayModeGetPixelWidth(mode) / width

            displays.append(
                DisplayInfo(
                    display_id=display_id,
                    x=int(bounds.origin.x),
                    y=int(bounds.origin.y),
                    width=width,
                    height=int(bounds.size.height),
                    is_main=(display_id == main_display_id),
                    scale_factor=scale,
                )
            )

        return displays

    def grab(self, display_id: int) -> Image.Image | None:
        if sys.platform != "darwin":
            return None

        try:
            from Quartz import (
                CGDataProviderCopyData,
                CGDisplayCreateImage,
                CGImageGetBytesPerRow,
                CGImageGetDataProvider,
                CGImageGetHeight,
                CGImageGetWidth,
            )
        except ImportError:
            logger.error("Quartz framework not available")
            return None

        cg_image = CGDisplayCreateImage(display_id)
        if cg_image is None:
            logger.warning(f"Failed to capture display {display_id}")
            return None

        width = CGImageGetWidth(cg_image)
        height = CGImageGetHeight(cg_image)
        data = CGDataProviderCopyData(CGImageGetDataProvider(cg_image))

        # CGImage rows are BGRA and may be padded
        return Image.frombytes(
            "RGBA", (width, height), bytes(data), "raw", "BGRA", CGImageGetBytesPerRow(cg_image)
        )


def rects_overlap(a: tuple[int, int, int, int], b: tuple[int, int, int, int]) -> bool:
    """Whether two (x, y, width, height) rectangles share any area. Touching edges do not count."""
    ax, ay, aw, ah = a
    bx, by, bw, bh = b
    return ax < bx + bw and bx < ax + aw and ay < by + bh and by < ay + ah


def _rect(display: DisplayInfo | MonitorShot) -> tuple[int, int, int, int]:
    return (display.x, display.y, display.width, display.height)


def normalize_displays(displays: list[DisplayInfo]) -> list[DisplayInfo]:
    """
    Map displays into the global top-left space anchored at the main display.

    Mirrored displays (same rectangle as one already placed) and any other
    display overlapping an accepted one are dropped, so every point of the
    desktop belongs to exactly one display.

    Returns:
        Displays ordered main first, then left-to-right, top-to-bottom
    """
    if not displays:
        return []

    main = next((d for d in displays if d.is_main), displays[0])

    flipped = []
    for display in displays:
        if display.origin == ORIGIN_BOTTOM_LEFT:
            # Cocoa: y is the distance from the main display's bottom edge
            display = replace(
                display,
                y=main.height - (display.y + display.height),
                origin=ORIGIN_TOP_LEFT,
            )
        flipped.append(display)

    anchor = next(d for d in flipped if d.display_id == main.display_id)
    translated = [
        replace(d, x=d.x - anchor.x, y=d.y - anchor.y, is_main=d.display_id == main.display_id)
        for d in flipped
    ]
    translated.sort(key=lambda d: (not d.is_main, d.x, d.y))

    accepted: list[DisplayInfo] = []
    for display in translated:
        if display.width <= 0 or display.height <= 0:
            logger.warning(f"Skipping display {display.display_id} with empty bounds")
            continue
        clash = next((a for a in accepted if rects_overlap(_rect(a), _rect(display))), None)
        if clash is not None:
            logger.info(
                f"Skipping display {display.display_id}: overlaps display {clash.display_id} (mirrored?)"
            )
            continue
        accepted.append(display)

    return accepted


def desktop_bounds(shots: list[MonitorShot]) -> tuple[int, int, int, int]:
    """
    Bounding box (min_x, min_y, width, height) of all shots.

    The region selector lays the shots out relative to (min_x, min_y).
    """
    if not shots:
        return (0, 0, 0, 0)
    min_x = min(s.x for s in shots)
    min_y = min(s.y for s in shots)
    max_x = max(s.x + s.width for s in shots)
    max_y = max(s.y + s.height for s in shots)
    return (min_x, min_y, max_x - min_x, max_y - min_y)


def locate_selection(
    shots: list[MonitorShot], x: float, y: float, width: float, height: float
) -> tuple[MonitorShot, CropRegion]:
    """
    Map a selection in global desktop coordinates onto one shot's raster.

    The selection is assigned to the shot it overlaps most; the part lying on
    other displays is clipped away. Coordinates are scaled by the shot's
    scale_factor into pixel space.

    Raises:
        InvalidRegion: If the selection does not overlap any shot
    """
    best: MonitorShot | None = None
    best_area = 0.0

    for shot in shots:
        overlap_w = min(x + width, shot.x + shot.width) - max(x, shot.x)
        overlap_h = min(y + height, shot.y + shot.height) - max(y, shot.y)
        area = max(0.0, overlap_w) * max(0.0, overlap_h)
        if area > best_area:
            best, best_area = shot, area

    if best is None:
        raise InvalidRegion(f"Selection {x},{y} {width}x{height} is outside every display")

    left = max(x, best.x) - best.x
    top = max(y, best.y) - best.y
    right = min(x + width, best.x + best.width) - best.x
    bottom = min(y + height, best.y + best.height) - best.y
    scale = best.scale_factor

    region = CropRegion(
        x=round(left * scale),
        y=round(top * scale),
        width=round((right - left) * scale),
        height=round((bottom - top) * scale),
    )
    return best, region
