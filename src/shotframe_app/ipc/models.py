"""IPC request/response models for the Shotframe front end."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class IPCMethod(str, Enum):
    """Available IPC methods."""

    PING = "ping"
    GET_STATUS = "get_status"
    SHUTDOWN = "shutdown"
    # Capture methods
    CAPTURE_ONCE = "capture.once"
    CAPTURE_ALL_MONITORS = "capture.all_monitors"
    CAPTURE_REGION = "capture.region"
    CAPTURE_RENDER = "capture.render"
    CAPTURE_SAVE_EDITED = "capture.save_edited"
    CAPTURE_INTERACTIVE = "capture.interactive"
    CAPTURE_FULLSCREEN = "capture.fullscreen"
    CAPTURE_WINDOW = "capture.window"
    CAPTURE_OCR_REGION = "capture.ocr_region"
    CAPTURE_OPEN_REGION_SELECTOR = "capture.open_region_selector"
    CAPTURE_SELECT_REGION = "capture.select_region"
    # Files, clipboard and paths
    FILES_CLEANUP_TEMP = "files.cleanup_temp"
    CLIPBOARD_COPY_IMAGE = "clipboard.copy_image"
    PATHS_DESKTOP = "paths.desktop"
    PATHS_TEMP = "paths.temp"
    # Permission methods
    PERMISSIONS_CHECK = "permissions.check"
    PERMISSIONS_REQUEST = "permissions.request"
    PERMISSIONS_GET_INSTRUCTIONS = "permissions.get_instructions"
    PERMISSIONS_OPEN_SETTINGS = "permissions.open_settings"


class IPCRequest(BaseModel):
    """Request model for IPC communication."""

    id: str = Field(..., description="Unique request identifier")
    method: str = Field(..., description="Method to invoke")
    params: dict[str, Any] = Field(default_factory=dict, description="Method parameters")


class IPCResponse(BaseModel):
    """Response model for IPC communication."""

    id: str = Field(..., description="Request identifier this response corresponds to")
    success: bool = Field(..., description="Whether the request succeeded")
    result: Any = Field(default=None, description="Result data if successful")
    error: str | None = Field(default=None, description="Error message if failed")
    cancelled: bool = Field(
        default=False, description="The user dismissed the capture; not a hard failure"
    )


class IPCEvent(BaseModel):
    """Unsolicited message pushed to the front end."""

    type: str = Field(default="event")
    name: str = Field(..., description="Event name, e.g. region-selector-show")
    payload: dict[str, Any] = Field(default_factory=dict)


class BackendStatus(BaseModel):
    """Status information about the Python backend."""

    version: str = Field(..., description="Backend version")
    running: bool = Field(default=True, description="Whether the backend is running")
    uptime_seconds: float = Field(..., description="Seconds since backend started")
    python_version: str = Field(..., description="Python version")
    capture_in_progress: bool = Field(
        default=False, description="Whether the capture lock is currently held"
    )
