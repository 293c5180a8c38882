"""
Image Composition for Shotframe

Pure raster operations used after a capture:
- crop(): extract a clamped sub-rectangle
- render(): background + padding, content blur, rounded corners, drop shadow

Neither function mutates its input; both always return a new image, so a
source that is still on screen can be read concurrently. All filters are
deterministic (Gaussian blur, no dithering or noise).
"""

import io
import logging
import math
from pathlib import Path

from PIL import Image, ImageChops, ImageColor, ImageDraw, ImageFilter, ImageOps, UnidentifiedImageError

from src.compose.models import BackgroundStyle, BackgroundType, CropRegion, RenderSettings
from src.core.errors import DecodeError, EncodeError, InvalidRegion, StorageError
from src.core.logging import OperationTimer
from src.core.naming import build_output_path

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = {"PNG": "png", "JPEG": "jpg", "WEBP": "webp"}

TRANSPARENT = (0, 0, 0, 0)


def load_image(source: str | Path | bytes) -> Image.Image:
    """
    Decode an image from a path or raw bytes.

    The returned image is fully loaded and detached from the file.

    Raises:
        StorageError: If the file does not exist or cannot be read
        DecodeError: If the data is not a decodable image
    """
    try:
        if isinstance(source, bytes):
            stream = io.BytesIO(source)
        else:
            path = Path(source)
            if not path.is_file():
                raise StorageError(f"Image file does not exist: {path}")
            stream = path.open("rb")
    except OSError as e:
        raise StorageError(f"Failed to open image: {e}") from e

    with stream:
        try:
            with Image.open(stream) as image:
                image.load()
                return image.copy()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise DecodeError(f"Failed to decode image: {e}") from e


def encode_image(image: Image.Image, fmt: str = "PNG") -> bytes:
    """
    Encode an image to bytes.

    Raises:
        EncodeError: For unsupported formats or encoder failures
    """
    fmt = fmt.upper()
    if fmt == "JPG":
        fmt = "JPEG"
    if fmt not in SUPPORTED_FORMATS:
        raise EncodeError(f"Unsupported output format: {fmt}")

    if fmt == "JPEG" and image.mode not in ("RGB", "L"):
        # JPEG has no alpha channel
        image = image.convert("RGB")

    buffer = io.BytesIO()
    try:
        image.save(buffer, fmt)
    except (OSError, ValueError, KeyError) as e:
        raise EncodeError(f"Failed to encode image as {fmt}: {e}") from e
    return buffer.getvalue()


def save_image(image: Image.Image, path: str | Path, fmt: str = "PNG") -> Path:
    """
    Encode and write an image. Nothing is written if encoding fails.

    Raises:
        EncodeError: If encoding fails
        StorageError: If the file cannot be written
    """
    data = encode_image(image, fmt)
    path = Path(path)
    try:
        path.write_bytes(data)
    except OSError as e:
        raise StorageError(f"Failed to write image {path}: {e}") from e
    return path


def crop(source: Image.Image, region: CropRegion) -> Image.Image:
    """
    Extract a sub-rectangle of the source.

    The region is clamped to the source bounds; it is never upscaled.

    Raises:
        InvalidRegion: If the clamped region has zero width or height
    """
    clamped = region.clamp(*source.size)
    if clamped.area == 0:
        raise InvalidRegion(
            f"Crop region {region.x},{region.y} {region.width}x{region.height} "
            f"has no overlap with the {source.width}x{source.height} source"
        )
    if clamped != region:
        logger.debug(f"Clamped crop region {region.box()} -> {clamped.box()}")
    return source.crop(clamped.box())


def _parse_color(value: str) -> tuple[int, int, int, int]:
    try:
        color = ImageColor.getrgb(value)
    except ValueError as e:
        raise ValueError(f"Invalid color: {value}") from e
    if len(color) == 3:
        return (*color, 255)
    return color


def _linear_gradient(
    size: tuple[int, int], colors: tuple[str, str], angle: float
) -> Image.Image:
    """
    Two-colour linear gradient at `angle` degrees (CSS convention, 180 = top to bottom).

    The gradient is separable along x and y, so it is built from one row and
    one column instead of per pixel.
    """
    width, height = size
    radians = math.radians(angle)
    dx, dy = math.sin(radians), -math.cos(radians)

    span = abs(dx) * (width - 1) + abs(dy) * (height - 1)
    if span == 0:
        mask = Image.new("L", size, 0)
    else:
        x_base = min(0.0, dx * (width - 1))
        y_base = min(0.0, dy * (height - 1))
        row = [round((dx * x - x_base) / span * 255) for x in range(width)]
        column = [round((dy * y - y_base) / span * 255) for y in range(height)]

        horizontal = Image.new("L", (width, 1))
        horizontal.putdata(row)
        vertical = Image.new("L", (1, height))
        vertical.putdata(column)
        mask = ImageChops.add(
            horizontal.resize(size, Image.Resampling.NEAREST),
            vertical.resize(size, Image.Resampling.NEAREST),
        )

    start = Image.new("RGBA", size, _parse_color(colors[0]))
    end = Image.new("RGBA", size, _parse_color(colors[1]))
    return Image.composite(end, start, mask)


def _background_canvas(size: tuple[int, int], style: BackgroundStyle) -> Image.Image:
    if style.type == BackgroundType.SOLID:
        return Image.new("RGBA", size, _parse_color(style.color))

    if style.type == BackgroundType.GRADIENT:
        return _linear_gradient(size, style.gradient_colors, style.gradient_angle)

    if style.type == BackgroundType.IMAGE:
        if not style.image_path:
            raise ValueError("Image background requires image_path")
        background = load_image(style.image_path).convert("RGBA")
        return ImageOps.fit(background, size, Image.Resampling.LANCZOS)

    return Image.new("RGBA", size, TRANSPARENT)


def _rounded_mask(size: tuple[int, int], radius: int) -> Image.Image:
    width, height = size
    radius = min(radius, width // 2, height // 2)
    mask = Image.new("L", size, 0)
    ImageDraw.Draw(mask).rounded_rectangle((0, 0, width - 1, height - 1), radius=radius, fill=255)
    return mask


def render(source: Image.Image, settings: RenderSettings) -> Image.Image:
    """
    Compose the source onto a styled canvas.

    Order of operations:
        1. canvas of source size + 2 * padding, filled per settings.background
        2. Gaussian blur of the content (settings.blur)
        3. rounded-corner mask on the content (settings.corner_radius)
        4. drop shadow from the masked content's silhouette
        5. content composited over shadow over background

    Returns:
        A new RGBA image. With identity settings the result is a
        pixel-identical copy of the source.
    """
    if settings.is_identity:
        return source.copy()

    with OperationTimer(logger, "render"):
        content = source.convert("RGBA")

        if settings.blur > 0:
            content = content.filter(ImageFilter.GaussianBlur(settings.blur))

        if settings.corner_radius > 0:
            alpha = ImageChops.multiply(
                content.getchannel("A"), _rounded_mask(content.size, settings.corner_radius)
            )
            content.putalpha(alpha)

        padding = settings.padding
        canvas_size = (content.width + 2 * padding, content.height + 2 * padding)
        canvas = _background_canvas(canvas_size, settings.background)

        shadow = settings.shadow
        if shadow.visible:
            silhouette = Image.new("L", canvas_size, 0)
            opacity = shadow.opacity / 100.0
            silhouette.paste(
                content.getchannel("A").point(lambda value: round(value * opacity)),
                (padding + shadow.offset_x, padding + shadow.offset_y),
            )
            if shadow.blur > 0:
                silhouette = silhouette.filter(ImageFilter.GaussianBlur(shadow.blur))
            shadow_layer = Image.new("RGBA", canvas_size, (0, 0, 0, 255))
            shadow_layer.putalpha(silhouette)
            canvas = Image.alpha_composite(canvas, shadow_layer)

        layer = Image.new("RGBA", canvas_size, TRANSPARENT)
        layer.paste(content, (padding, padding))
        return Image.alpha_composite(canvas, layer)


def crop_file(source_path: str | Path, region: CropRegion, save_dir: str | Path | None) -> Path:
    """Crop a capture on disk and save the result as a new PNG."""
    cropped = crop(load_image(source_path), region)
    destination = build_output_path(save_dir, "region", "png")
    save_image(cropped, destination)
    logger.info(f"Cropped {source_path} to {cropped.width}x{cropped.height}: {destination}")
    return destination


def render_file(
    source_path: str | Path,
    settings: RenderSettings,
    save_dir: str | Path | None = None,
) -> Path:
    """
    Render effects onto a capture on disk and save the result as a new PNG.

    Defaults to the source's own directory; the source is never overwritten.
    """
    source_path = Path(source_path)
    rendered = render(load_image(source_path), settings)
    destination = build_output_path(save_dir or source_path.parent, "rendered", "png")
    save_image(rendered, destination)
    logger.info(f"Rendered {source_path.name} -> {destination} ({rendered.width}x{rendered.height})")
    return destination
