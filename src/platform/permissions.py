"""
macOS Screen Recording permission for Shotframe.

Capturing other apps' windows needs the Screen Recording permission. macOS
only lists an app in System Settings after it has tried to capture once,
which is why the capture coordinator also runs a throwaway probe capture.

Note: macOS requires an app restart after granting Screen Recording permission.
"""

import logging
import subprocess
import sys
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from src.core.errors import SCREEN_RECORDING_SETTINGS

logger = logging.getLogger(__name__)

SCREEN_RECORDING_URL = "x-apple.systempreferences:com.apple.preference.security?Privacy_ScreenCapture"


class Permission(str, Enum):
    """macOS permissions required by Shotframe."""

    SCREEN_RECORDING = "screen_recording"


class PermissionStatus(str, Enum):
    """Status of a permission."""

    GRANTED = "granted"
    DENIED = "denied"
    NOT_DETERMINED = "not_determined"


class PermissionState(BaseModel):
    """State of a single permission."""

    permission: Permission = Field(..., description="The permission type")
    status: PermissionStatus = Field(..., description="Current status")
    requires_restart: bool = Field(
        default=False, description="Whether the app must restart after granting"
    )


def _check_screen_recording_permission() -> PermissionStatus:
    """Ask Quartz whether this process may capture the screen (no prompt)."""
    if sys.platform != "darwin":
        return PermissionStatus.GRANTED

    try:
        from Quartz import CGPreflightScreenCaptureAccess
    except ImportError:
        logger.warning("Quartz not available, cannot determine screen recording permission")
        return PermissionStatus.NOT_DETERMINED

    return PermissionStatus.GRANTED if CGPreflightScreenCaptureAccess() else PermissionStatus.DENIED


def check_permission(permission: Permission = Permission.SCREEN_RECORDING) -> PermissionState:
    """
    Check the status of a permission.

    Args:
        permission: The permission to check

    Returns:
        PermissionState with current status
    """
    permission = Permission(permission)
    status = _check_screen_recording_permission()
    return PermissionState(
        permission=permission,
        status=status,
        requires_restart=status == PermissionStatus.DENIED,
    )


def request_screen_recording_permission() -> bool:
    """
    Show the system Screen Recording prompt if the permission is undecided.

    Returns:
        True if the permission is granted after the request
    """
    if sys.platform != "darwin":
        return True

    try:
        from Quartz import CGRequestScreenCaptureAccess
    except ImportError:
        logger.warning("Quartz not available")
        return False

    return bool(CGRequestScreenCaptureAccess())


def get_permission_instructions(permission: Permission = Permission.SCREEN_RECORDING) -> dict[str, Any]:
    """
    Get user-friendly instructions for granting a permission.

    Returns:
        Dictionary with title, description, steps and settings URL
    """
    Permission(permission)
    return {
        "title": "Screen Recording",
        "description": "Shotframe needs screen recording permission to capture screenshots.",
        "steps": [
            "Open System Settings",
            f"Go to {SCREEN_RECORDING_SETTINGS.split(' > ', 1)[1]}",
            "Find Shotframe in the list and enable it",
            "If Shotframe is not listed, take one screenshot so macOS registers it",
            "Restart Shotframe after enabling the permission",
        ],
        "system_preferences_url": SCREEN_RECORDING_URL,
        "requires_restart": True,
    }


def open_system_preferences(permission: Permission = Permission.SCREEN_RECORDING) -> bool:
    """
    Open System Settings at the relevant privacy pane.

    Returns:
        True if successfully opened, False otherwise
    """
    if sys.platform != "darwin":
        logger.warning("System preferences can only be opened on macOS")
        return False

    url = get_permission_instructions(permission)["system_preferences_url"]
    try:
        subprocess.run(["open", url], check=True, timeout=5)
        return True
    except subprocess.CalledProcessError as e:
        logger.error(f"Failed to open system preferences: {e}")
        return False
    except subprocess.TimeoutExpired:
        logger.error("Timed out opening system preferences")
        return False


if __name__ == "__main__":
    import fire

    fire.Fire(
        {
            "check": lambda: check_permission().model_dump(),
            "request": request_screen_recording_permission,
            "open": open_system_preferences,
        }
    )
