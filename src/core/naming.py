"""
Output naming and persistence for Shotframe.

Every file Shotframe writes goes through here: names are
<prefix>_<epoch-ms>_<seq>.<ext>, where seq is a process-wide counter so two
captures in the same millisecond still get different names.
"""

import base64
import binascii
import io
import itertools
import logging
import re
import shutil
import struct
import threading
import time
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from src.core.errors import DecodeError, StorageError

logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

_sequence = itertools.count(1)
_sequence_lock = threading.Lock()

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]+")
_DATA_URL = re.compile(r"^data:image/[A-Za-z0-9.+-]+;base64,", re.IGNORECASE)


def _next_sequence() -> int:
    with _sequence_lock:
        return next(_sequence)


def generate_filename(prefix: str, extension: str) -> str:
    """
    Generate a collision-free filename for this process run.

    Args:
        prefix: Semantic prefix such as "screenshot"
        extension: File extension without the dot

    Returns:
        Filename like "screenshot_1736700000123_42.png"
    """
    safe_prefix = _UNSAFE_CHARS.sub("_", prefix).strip("_") or "capture"
    safe_ext = _UNSAFE_CHARS.sub("", extension.lstrip(".")).lower() or "png"
    millis = time.time_ns() // 1_000_000
    return f"{safe_prefix}_{millis}_{_next_sequence()}.{safe_ext}"


def resolve_save_dir(save_dir: str | Path | None) -> Path:
    """
    Resolve a (possibly user supplied) directory to an absolute, existing path.

    An empty value falls back to the configured default save directory.

    Raises:
        StorageError: If the path exists but is not a directory, or cannot be created
    """
    if save_dir is None or not str(save_dir).strip():
        from src.core.config import get_capture_config

        save_dir = get_capture_config().save_dir

    path = Path(save_dir).expanduser()
    try:
        path = path.resolve()
    except OSError as e:
        raise StorageError(f"Invalid save directory {save_dir}: {e}") from e

    if path.exists() and not path.is_dir():
        raise StorageError(f"Save path is not a directory: {path}")

    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StorageError(f"Failed to create directory {path}: {e}") from e

    return path


def build_output_path(save_dir: str | Path | None, prefix: str, extension: str = "png") -> Path:
    """Resolve the directory and return an absolute path for a new file in it."""
    return resolve_save_dir(save_dir) / generate_filename(prefix, extension)


def copy_screenshot_to_dir(source: str | Path, save_dir: str | Path | None, prefix: str) -> Path:
    """
    Copy an existing capture into a save directory under a fresh name.

    Raises:
        StorageError: If the source is missing or the copy fails
    """
    source = Path(source)
    if not source.is_file():
        raise StorageError(f"Screenshot file does not exist: {source}")

    destination = build_output_path(save_dir, prefix, source.suffix.lstrip(".") or "png")
    try:
        shutil.copy2(source, destination)
    except OSError as e:
        raise StorageError(f"Failed to copy screenshot: {e}") from e

    logger.debug(f"Copied {source} -> {destination}")
    return destination


def decode_base64_payload(payload: str) -> bytes:
    """
    Decode a base64 image payload, with or without a data: URL header.

    Raises:
        DecodeError: If the payload is empty or not valid base64
    """
    if not payload or not payload.strip():
        raise DecodeError("Image payload is empty")

    data = _DATA_URL.sub("", payload.strip(), count=1)
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Failed to decode base64 image data: {e}") from e


def _verify_png(raw: bytes) -> None:
    """Check chunk integrity and decode the pixel data of a PNG payload."""
    try:
        with Image.open(io.BytesIO(raw)) as image:
            image.verify()
        # verify() leaves the image unusable; reopen to decode the pixels
        with Image.open(io.BytesIO(raw)) as image:
            image.load()
    except (UnidentifiedImageError, OSError, SyntaxError, struct.error) as e:
        raise DecodeError(f"Payload is not a valid PNG: {e}") from e


def save_base64_image(payload: str, save_dir: str | Path | None, prefix: str) -> Path:
    """
    Decode an editor payload and write it as a PNG under a fresh name.

    Payloads that are already PNG are verified and written byte for byte;
    other image formats are re-encoded through Pillow.

    Raises:
        DecodeError: If the payload is not base64 or not an image
        StorageError: If the file cannot be written
    """
    raw = decode_base64_payload(payload)

    if raw.startswith(PNG_SIGNATURE):
        _verify_png(raw)
    else:
        try:
            with Image.open(io.BytesIO(raw)) as image:
                image.load()
                buffer = io.BytesIO()
                image.save(buffer, "PNG")
        except (UnidentifiedImageError, OSError) as e:
            raise DecodeError(f"Payload is not a valid image: {e}") from e
        raw = buffer.getvalue()

    destination = build_output_path(save_dir, prefix, "png")
    try:
        destination.write_bytes(raw)
    except OSError as e:
        raise StorageError(f"Failed to write image {destination}: {e}") from e

    logger.info(f"Saved edited image: {destination}")
    return destination


def remove_file(path: str | Path, missing_ok: bool = True) -> None:
    """
    Delete an artifact.

    Raises:
        StorageError: If deletion fails (or the file is missing and missing_ok is False)
    """
    try:
        Path(path).unlink(missing_ok=missing_ok)
    except OSError as e:
        raise StorageError(f"Failed to remove temp file: {e}") from e
