"""IPC handlers for the Screen Recording permission."""

import logging
from typing import Any

from src.platform.permissions import (
    Permission,
    check_permission,
    get_permission_instructions,
    open_system_preferences,
    request_screen_recording_permission,
)
from src.shotframe_app.context import AppContext
from src.shotframe_app.ipc.server import handler

logger = logging.getLogger(__name__)


def _permission(params: dict[str, Any]) -> Permission:
    name = params.get("permission", Permission.SCREEN_RECORDING.value)
    try:
        return Permission(name)
    except ValueError as e:
        raise ValueError(f"Unknown permission: {name}") from e


@handler("permissions.check")
def handle_check_permission(context: AppContext, params: dict[str, Any]) -> dict[str, Any]:
    """Check the status of a permission (screen_recording by default)."""
    return check_permission(_permission(params)).model_dump()


@handler("permissions.request")
async def handle_request_permission(context: AppContext, params: dict[str, Any]) -> dict[str, Any]:
    """Trigger the system prompt and register the app with a probe capture.

    The probe runs under the capture lock so it cannot overlap a capture.
    """
    granted = request_screen_recording_permission()
    with context.lock.hold():
        await context.coordinator.check_permission()
    return {"granted": granted, **check_permission(_permission(params)).model_dump()}


@handler("permissions.get_instructions")
def handle_get_instructions(context: AppContext, params: dict[str, Any]) -> dict[str, Any]:
    """Get user-friendly instructions for granting a permission."""
    return get_permission_instructions(_permission(params))


@handler("permissions.open_settings")
def handle_open_settings(context: AppContext, params: dict[str, Any]) -> bool:
    """Open System Settings at the permission's privacy pane."""
    return open_system_preferences(_permission(params))
