"""
Shotframe Core Module

Shared plumbing for the capture and composition layers: directory layout,
runtime configuration, output naming, error types and logging.
"""

from .errors import (
    CaptureBusy,
    CaptureCancelled,
    DecodeError,
    EncodeError,
    InvalidRegion,
    PermissionDenied,
    ProcessError,
    ShotframeError,
    StorageError,
)
from .naming import (
    build_output_path,
    generate_filename,
    resolve_save_dir,
    save_base64_image,
)
from .paths import DATA_ROOT, LOG_DIR, ensure_data_directories, get_desktop_dir, get_temp_dir

__all__ = [
    # Paths
    "DATA_ROOT",
    "LOG_DIR",
    "ensure_data_directories",
    "get_desktop_dir",
    "get_temp_dir",
    # Naming
    "build_output_path",
    "generate_filename",
    "resolve_save_dir",
    "save_base64_image",
    # Errors
    "ShotframeError",
    "CaptureBusy",
    "PermissionDenied",
    "CaptureCancelled",
    "ProcessError",
    "InvalidRegion",
    "DecodeError",
    "EncodeError",
    "StorageError",
]
