"""
Value models for cropping and effect rendering.

Field names are snake_case in Python; the editor front end sends camelCase
(cornerRadius, offsetX, ...), which is accepted through aliases.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Named swatches offered by the editor
NAMED_COLORS = {
    "white": "#ffffff",
    "black": "#000000",
    "gray": "#f5f5f5",
}

DEFAULT_GRADIENT = ("#667eea", "#764ba2")


def _non_negative(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value < 0:
        return 0
    return value


class CropRegion(BaseModel):
    """
    A rectangle in the pixel space of one source raster.

    Selections dragged past the left/top edge of a display can arrive with a
    negative origin; clamp() turns them into the on-screen intersection.
    """

    x: int = 0
    y: int = 0
    width: int = Field(..., ge=0)
    height: int = Field(..., ge=0)

    @field_validator("x", "y", "width", "height", mode="before")
    @classmethod
    def _round(cls, value: Any) -> Any:
        if isinstance(value, float):
            return round(value)
        return value

    @field_validator("width", "height", mode="before")
    @classmethod
    def _clip_size(cls, value: Any) -> Any:
        return _non_negative(value)

    @property
    def area(self) -> int:
        return self.width * self.height

    def clamp(self, source_width: int, source_height: int) -> "CropRegion":
        """Intersect with a source of the given size. Never grows the region."""
        left = min(max(self.x, 0), source_width)
        top = min(max(self.y, 0), source_height)
        right = max(left, min(self.x + self.width, source_width))
        bottom = max(top, min(self.y + self.height, source_height))
        return CropRegion(x=left, y=top, width=right - left, height=bottom - top)

    def box(self) -> tuple[int, int, int, int]:
        """Pillow-style (left, upper, right, lower) box."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)


class BackgroundType(str, Enum):
    """How the padded canvas behind the content is filled."""

    NONE = "none"
    SOLID = "solid"
    GRADIENT = "gradient"
    IMAGE = "image"


class BackgroundStyle(BaseModel):
    """Background fill for the padded canvas."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    type: BackgroundType = BackgroundType.NONE
    color: str = "#ffffff"
    gradient_colors: tuple[str, str] = DEFAULT_GRADIENT
    gradient_angle: float = 135.0
    image_path: str | None = None

    @classmethod
    def from_value(cls, value: Any) -> Any:
        """Expand editor shorthands ("white", "transparent", "#667eea") into a style."""
        if value is None:
            return {"type": BackgroundType.NONE}
        if isinstance(value, str):
            name = value.strip().lower()
            if name in ("", "none", "transparent"):
                return {"type": BackgroundType.NONE}
            if name == "gradient":
                return {"type": BackgroundType.GRADIENT}
            return {"type": BackgroundType.SOLID, "color": NAMED_COLORS.get(name, value.strip())}
        if isinstance(value, dict) and value.get("type") in ("white", "black", "gray", "transparent", "custom"):
            # Editor background types map onto solid fills
            kind = value["type"]
            if kind == "transparent":
                return {"type": BackgroundType.NONE}
            color = value.get("color") or value.get("customColor") or NAMED_COLORS.get(kind, "#ffffff")
            return {"type": BackgroundType.SOLID, "color": color}
        return value


class ShadowSettings(BaseModel):
    """Drop shadow behind the content. Opacity is a percentage."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    enabled: bool = True
    blur: float = 33.0
    offset_x: int = 18
    offset_y: int = 23
    opacity: float = 39.0

    @field_validator("blur", "opacity", mode="before")
    @classmethod
    def _clip_non_negative(cls, value: Any) -> Any:
        return _non_negative(value)

    @field_validator("offset_x", "offset_y", mode="before")
    @classmethod
    def _round_offsets(cls, value: Any) -> Any:
        if isinstance(value, float):
            return round(value)
        return value

    @field_validator("opacity")
    @classmethod
    def _max_opacity(cls, value: float) -> float:
        return min(value, 100.0)

    @property
    def visible(self) -> bool:
        return self.enabled and self.opacity > 0


class RenderSettings(BaseModel):
    """Immutable description of the composition applied by render()."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    background: BackgroundStyle = Field(default_factory=BackgroundStyle)
    padding: int = 0
    corner_radius: int = 0
    shadow: ShadowSettings = Field(default_factory=lambda: ShadowSettings(enabled=False))
    blur: float = 0.0

    @field_validator("padding", "corner_radius", "blur", mode="before")
    @classmethod
    def _clip_non_negative(cls, value: Any) -> Any:
        return _non_negative(value)

    @field_validator("padding", "corner_radius", mode="before")
    @classmethod
    def _round_pixels(cls, value: Any) -> Any:
        if isinstance(value, float):
            return round(value)
        return value

    @field_validator("background", mode="before")
    @classmethod
    def _expand_background(cls, value: Any) -> Any:
        return BackgroundStyle.from_value(value)

    @field_validator("shadow", mode="before")
    @classmethod
    def _expand_shadow(cls, value: Any) -> Any:
        if value is None or value is False or (isinstance(value, str) and value.lower() == "none"):
            return {"enabled": False}
        if value is True:
            return {"enabled": True}
        return value

    @property
    def is_identity(self) -> bool:
        """True when render() would leave the source untouched."""
        return (
            self.background.type == BackgroundType.NONE
            and self.padding == 0
            and self.corner_radius == 0
            and not self.shadow.visible
            and self.blur == 0
        )
