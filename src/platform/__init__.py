"""Platform-specific functionality for Shotframe."""

from .clipboard import copy_image_to_clipboard, copy_text_to_clipboard
from .ocr import recognize_text_from_image
from .permissions import (
    Permission,
    PermissionStatus,
    check_permission,
    get_permission_instructions,
    open_system_preferences,
    request_screen_recording_permission,
)
from .sound import play_capture_sound

__all__ = [
    "Permission",
    "PermissionStatus",
    "check_permission",
    "copy_image_to_clipboard",
    "copy_text_to_clipboard",
    "get_permission_instructions",
    "open_system_preferences",
    "play_capture_sound",
    "recognize_text_from_image",
    "request_screen_recording_permission",
]
