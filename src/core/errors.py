"""
Error types for Shotframe.

Every failure the core can report maps to one of these classes. The IPC
boundary turns them into plain error strings; nothing here is fatal to the
process.
"""

# Where the user grants capture access on macOS
SCREEN_RECORDING_SETTINGS = "System Settings > Privacy & Security > Screen Recording"


class ShotframeError(Exception):
    """Base class for all Shotframe errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class CaptureBusy(ShotframeError):
    """Another capture is already in flight, in this process or outside it."""

    def __init__(self, message: str = "Another screenshot capture is already in progress"):
        super().__init__(message)


class PermissionDenied(ShotframeError):
    """The OS has not granted screen capture permission."""

    def __init__(self, message: str = "Screen Recording permission not granted"):
        super().__init__(
            f"{message}. Please grant permission in {SCREEN_RECORDING_SETTINGS} "
            "and restart the app."
        )


class CaptureCancelled(ShotframeError):
    """The user dismissed an interactive capture. Not a hard failure."""

    def __init__(self, message: str = "Screenshot was cancelled"):
        super().__init__(message)


class ProcessError(ShotframeError):
    """The capture facility (or another helper process) failed."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class InvalidRegion(ShotframeError):
    """A crop region has zero area after clamping to the source bounds."""


class DecodeError(ShotframeError):
    """Image data could not be decoded."""


class EncodeError(ShotframeError):
    """An image could not be encoded in the requested format."""


class StorageError(ShotframeError):
    """Reading or writing an artifact on disk failed."""
