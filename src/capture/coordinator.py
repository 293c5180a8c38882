"""
Capture Coordinator for Shotframe

Runs the external capture facility (macOS `screencapture`) one capture at a
time. Each attempt walks through:

    idle -> permission_check -> spawning -> awaiting_completion
         -> completed | cancelled | failed

A second attempt while one is in flight fails at once with CaptureBusy, as
does any attempt while a `screencapture` not started by us is running.
A zero exit status with no output file means the user dismissed the
selection. Partial output is deleted on every outcome except completed.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from src.capture.lock import SingleFlightLock
from src.capture.runner import AsyncProcessRunner, ProcessResult, ProcessRunner
from src.core.config import DEFAULT_CAPTURE_BINARY
from src.core.errors import (
    CaptureBusy,
    CaptureCancelled,
    PermissionDenied,
    ProcessError,
    StorageError,
)
from src.core.logging import LogContext
from src.core.naming import generate_filename, remove_file, resolve_save_dir
from src.core.paths import get_temp_dir

logger = logging.getLogger(__name__)

# Substrings (lowercase) that mark a permission failure in diagnostics
PERMISSION_DENIAL_MARKERS = ("permission", "denied", "not authorized", "not permitted")


class CaptureKind(str, Enum):
    """Capture modes offered by the facility."""

    INTERACTIVE = "interactive"
    FULLSCREEN = "fullscreen"
    WINDOW = "window"
    OCR = "ocr"


class CaptureState(str, Enum):
    """Lifecycle of one capture attempt."""

    IDLE = "idle"
    PERMISSION_CHECK = "permission_check"
    SPAWNING = "spawning"
    AWAITING_COMPLETION = "awaiting_completion"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


# -x silences the shutter sound; we play our own
CAPTURE_FLAGS: dict[CaptureKind, list[str]] = {
    CaptureKind.INTERACTIVE: ["-i", "-x"],
    CaptureKind.FULLSCREEN: ["-x"],
    CaptureKind.WINDOW: ["-w", "-x"],
    CaptureKind.OCR: ["-i", "-x"],
}

CAPTURE_PREFIXES: dict[CaptureKind, str] = {
    CaptureKind.INTERACTIVE: "screenshot",
    CaptureKind.FULLSCREEN: "screenshot",
    CaptureKind.WINDOW: "screenshot",
    CaptureKind.OCR: "ocr_temp",
}

TERMINAL_STATES = (CaptureState.COMPLETED, CaptureState.CANCELLED, CaptureState.FAILED)


def has_permission_denial(text: str) -> bool:
    """Whether diagnostic output mentions a permission failure."""
    lowered = text.lower()
    return any(marker in lowered for marker in PERMISSION_DENIAL_MARKERS)


@dataclass
class CaptureRequest:
    """State of one in-flight capture attempt."""

    kind: CaptureKind
    target_dir: Path
    filename: str
    state: CaptureState = CaptureState.IDLE
    history: list[CaptureState] = field(default_factory=lambda: [CaptureState.IDLE])

    @property
    def destination(self) -> Path:
        return self.target_dir / self.filename

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    def advance(self, state: CaptureState) -> None:
        logger.debug(f"{self.kind.value} capture: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)


class CaptureCoordinator:
    """
    Serializes access to the capture facility.

    The lock is owned by whoever builds the coordinator and can be shared
    with other components that must not overlap a capture.
    """

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        lock: SingleFlightLock | None = None,
        binary: str = DEFAULT_CAPTURE_BINARY,
        probe_dir: Path | None = None,
    ):
        """
        Initialize the coordinator.

        Args:
            runner: Process runner (real subprocesses by default)
            lock: Single-flight lock shared by all capture entry points
            binary: Capture facility executable
            probe_dir: Where the permission probe writes its throwaway file
        """
        self.runner = runner or AsyncProcessRunner()
        self.lock = lock or SingleFlightLock("capture")
        self.binary = binary
        self.probe_dir = probe_dir
        self.last_request: CaptureRequest | None = None

    @property
    def process_name(self) -> str:
        return Path(self.binary).name

    async def capture(self, kind: CaptureKind, save_dir: str | Path | None) -> Path:
        """
        Run one capture and return the path of the new PNG.

        Raises:
            CaptureBusy: Another capture is running (ours or external)
            PermissionDenied: Screen Recording permission is missing
            CaptureCancelled: The user dismissed the interactive selection
            ProcessError: The facility failed to start or exited abnormally
        """
        kind = CaptureKind(kind)
        with self.lock.hold(), LogContext(capture_kind=kind.value):
            return await self._run(kind, save_dir)

    async def _run(self, kind: CaptureKind, save_dir: str | Path | None) -> Path:
        request = CaptureRequest(
            kind=kind,
            target_dir=resolve_save_dir(save_dir),
            filename=generate_filename(CAPTURE_PREFIXES[kind], "png"),
        )
        self.last_request = request

        try:
            request.advance(CaptureState.PERMISSION_CHECK)
            if await self.runner.is_running(self.process_name):
                raise CaptureBusy()
            await self.check_permission()

            request.advance(CaptureState.SPAWNING)
            args = [self.binary, *CAPTURE_FLAGS[kind], str(request.destination)]

            request.advance(CaptureState.AWAITING_COMPLETION)
            result = await self.runner.run(args)
            self._check_result(request, result)
        except CaptureCancelled:
            request.advance(CaptureState.CANCELLED)
            self._discard(request.destination)
            logger.info(f"{kind.value} capture cancelled")
            raise
        except BaseException as e:
            request.advance(CaptureState.FAILED)
            self._discard(request.destination)
            logger.warning(f"{kind.value} capture failed: {e}")
            raise

        request.advance(CaptureState.COMPLETED)
        logger.info(f"{kind.value} capture saved: {request.destination}")
        return request.destination

    def _check_result(self, request: CaptureRequest, result: ProcessResult) -> None:
        if not result.ok:
            if has_permission_denial(result.stderr):
                raise PermissionDenied("Screen Recording permission required")
            detail = result.stderr.strip().splitlines()[0] if result.stderr.strip() else "no output"
            raise ProcessError(
                f"Screenshot failed (exit status {result.returncode}): {detail}",
                returncode=result.returncode,
                stderr=result.stderr,
            )

        if not request.destination.exists():
            raise CaptureCancelled()

    async def check_permission(self) -> None:
        """
        Probe Screen Recording permission with a zero-delay silent capture.

        Running the facility makes macOS register the app for the permission
        (and prompt on first use). The probe file is always deleted.

        Raises:
            PermissionDenied: If the probe reports a permission failure
        """
        probe_dir = self.probe_dir or get_temp_dir()
        probe = probe_dir / generate_filename("shotframe_probe", "png")

        try:
            result = await self.runner.run([self.binary, "-x", "-T", "0", str(probe)])
        except ProcessError as e:
            if has_permission_denial(str(e)):
                raise PermissionDenied() from e
            # The real spawn will report this failure with full context
            logger.warning(f"Permission probe could not run: {e}")
            return
        finally:
            self._discard(probe)

        if has_permission_denial(result.stderr):
            raise PermissionDenied()

    def _discard(self, path: Path) -> None:
        try:
            remove_file(path)
        except StorageError as e:
            logger.error(f"Failed to clean up {path}: {e}")

    async def capture_text(
        self,
        save_dir: str | Path | None,
        recognize: Callable[[str], str],
        copy_text: Callable[[str], None] | None = None,
    ) -> str:
        """
        Capture a region interactively and return its recognized text.

        The temporary image is removed whether recognition succeeds or not.

        Args:
            save_dir: Directory for the temporary capture
            recognize: OCR collaborator, image path -> text
            copy_text: Optional clipboard collaborator for the result
        """
        path = await self.capture(CaptureKind.OCR, save_dir)
        try:
            text = recognize(str(path))
            if copy_text is not None:
                copy_text(text)
            return text
        finally:
            self._discard(path)
