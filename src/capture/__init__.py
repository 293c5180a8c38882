"""
Capture Module for Shotframe

- Display geometry and multi-monitor capture
- Single-flight coordination of the external capture facility
- Process supervision
"""

from src.capture.coordinator import CaptureCoordinator, CaptureKind, CaptureRequest, CaptureState
from src.capture.geometry import DisplayInfo, MonitorShot, desktop_bounds, locate_selection, normalize_displays
from src.capture.lock import SingleFlightLock
from src.capture.runner import AsyncProcessRunner, ProcessResult
from src.capture.screenshots import MultiMonitorCapture

__all__ = [
    "AsyncProcessRunner",
    "CaptureCoordinator",
    "CaptureKind",
    "CaptureRequest",
    "CaptureState",
    "DisplayInfo",
    "MonitorShot",
    "MultiMonitorCapture",
    "ProcessResult",
    "SingleFlightLock",
    "desktop_bounds",
    "locate_selection",
    "normalize_displays",
]
