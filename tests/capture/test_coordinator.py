"""
Tests for the capture coordinator.

The coordinator is driven by a fake process runner, so no real capture
tool is ever spawned.
"""

import asyncio
from pathlib import Path

import pytest

from src.capture.coordinator import (
    CAPTURE_FLAGS,
    CaptureCoordinator,
    CaptureKind,
    CaptureState,
    has_permission_denial,
)
from src.capture.lock import SingleFlightLock
from src.capture.runner import ProcessResult
from src.core.errors import (
    CaptureBusy,
    CaptureCancelled,
    PermissionDenied,
    ProcessError,
)

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


class FakeRunner:
    """Stands in for screencapture and pgrep."""

    def __init__(
        self,
        returncode: int = 0,
        stderr: str = "",
        write_output: bool = True,
        probe_stderr: str = "",
        probe_error: Exception | None = None,
        external_running: bool = False,
        gate: asyncio.Event | None = None,
        started: asyncio.Event | None = None,
    ):
        self.returncode = returncode
        self.stderr = stderr
        self.write_output = write_output
        self.probe_stderr = probe_stderr
        self.probe_error = probe_error
        self.external_running = external_running
        self.gate = gate
        self.started = started
        self.calls: list[list[str]] = []
        self.probe_paths: list[Path] = []

    async def is_running(self, name: str) -> bool:
        return self.external_running

    async def run(self, args: list[str]) -> ProcessResult:
        self.calls.append(args)
        output = Path(args[-1])

        if "-T" in args:
            self.probe_paths.append(output)
            if self.probe_error is not None:
                raise self.probe_error
            output.write_bytes(PNG_BYTES)
            return ProcessResult(returncode=0, stderr=self.probe_stderr)

        if self.started is not None:
            self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.write_output:
            output.write_bytes(PNG_BYTES)
        return ProcessResult(returncode=self.returncode, stderr=self.stderr)


def _coordinator(runner: FakeRunner, tmp_path: Path, lock: SingleFlightLock | None = None) -> CaptureCoordinator:
    probe_dir = tmp_path / "probe"
    probe_dir.mkdir(exist_ok=True)
    return CaptureCoordinator(runner=runner, lock=lock, probe_dir=probe_dir)


class TestCapture:
    """Tests for successful and failed captures."""

    @pytest.mark.parametrize("kind", [CaptureKind.INTERACTIVE, CaptureKind.FULLSCREEN, CaptureKind.WINDOW])
    def test_successful_capture(self, kind: CaptureKind, tmp_path: Path):
        """Test that a completed capture returns the new file."""
        runner = FakeRunner()
        coordinator = _coordinator(runner, tmp_path)

        path = asyncio.run(coordinator.capture(kind, tmp_path / "out"))

        assert path.exists()
        assert path.parent == (tmp_path / "out").resolve()
        assert path.name.startswith("screenshot_")
        assert runner.calls[-1] == ["screencapture", *CAPTURE_FLAGS[kind], str(path)]
        assert coordinator.last_request.history == [
            CaptureState.IDLE,
            CaptureState.PERMISSION_CHECK,
            CaptureState.SPAWNING,
            CaptureState.AWAITING_COMPLETION,
            CaptureState.COMPLETED,
        ]
        assert coordinator.last_request.finished
        assert not coordinator.lock.locked

    def test_string_kind_is_accepted(self, tmp_path: Path):
        """Test that the kind may be passed by value."""
        path = asyncio.run(_coordinator(FakeRunner(), tmp_path).capture("fullscreen", tmp_path))
        assert path.exists()

    def test_probe_file_is_always_removed(self, tmp_path: Path):
        """Test that the permission probe leaves nothing behind."""
        runner = FakeRunner()
        asyncio.run(_coordinator(runner, tmp_path).capture(CaptureKind.FULLSCREEN, tmp_path / "out"))

        assert runner.probe_paths
        assert not any(p.exists() for p in runner.probe_paths)
        assert list((tmp_path / "probe").iterdir()) == []

    def test_cancelled_capture(self, tmp_path: Path):
        """Test that exit 0 without an output file means cancelled."""
        runner = FakeRunner(write_output=False)
        coordinator = _coordinator(runner, tmp_path)

        with pytest.raises(CaptureCancelled):
            asyncio.run(coordinator.capture(CaptureKind.INTERACTIVE, tmp_path / "out"))

        assert coordinator.last_request.state == CaptureState.CANCELLED
        assert coordinator.last_request.finished
        assert list((tmp_path / "out").iterdir()) == []
        assert not coordinator.lock.locked

    def test_nonzero_exit_with_permission_text(self, tmp_path: Path):
        """Test that a denial message on failure raises PermissionDenied."""
        runner = FakeRunner(returncode=1, stderr="could not create image: not authorized to capture screen")
        coordinator = _coordinator(runner, tmp_path)

        with pytest.raises(PermissionDenied) as exc_info:
            asyncio.run(coordinator.capture(CaptureKind.FULLSCREEN, tmp_path / "out"))

        assert "Screen Recording" in str(exc_info.value)
        assert coordinator.last_request.state == CaptureState.FAILED
        assert list((tmp_path / "out").iterdir()) == []

    def test_nonzero_exit_without_permission_text(self, tmp_path: Path):
        """Test that other failures raise ProcessError and remove partial output."""
        runner = FakeRunner(returncode=2, stderr="screencapture: illegal option")
        coordinator = _coordinator(runner, tmp_path)

        with pytest.raises(ProcessError) as exc_info:
            asyncio.run(coordinator.capture(CaptureKind.WINDOW, tmp_path / "out"))

        assert exc_info.value.returncode == 2
        assert "illegal option" in str(exc_info.value)
        assert list((tmp_path / "out").iterdir()) == []
        assert not coordinator.lock.locked

    def test_probe_reports_denial(self, tmp_path: Path):
        """Test that the permission probe stops the capture before spawning."""
        runner = FakeRunner(probe_stderr="Screen recording permission denied")
        coordinator = _coordinator(runner, tmp_path)

        with pytest.raises(PermissionDenied):
            asyncio.run(coordinator.capture(CaptureKind.INTERACTIVE, tmp_path / "out"))

        assert len(runner.calls) == 1
        assert CaptureState.SPAWNING not in coordinator.last_request.history

    def test_probe_spawn_failure_is_not_fatal(self, tmp_path: Path):
        """Test that an unrelated probe failure lets the real capture decide."""
        runner = FakeRunner(probe_error=ProcessError("Failed to run screencapture: timeout"))
        path = asyncio.run(_coordinator(runner, tmp_path).capture(CaptureKind.FULLSCREEN, tmp_path))
        assert path.exists()

    def test_external_capture_running(self, tmp_path: Path):
        """Test that a foreign screencapture process makes the attempt busy."""
        runner = FakeRunner(external_running=True)
        coordinator = _coordinator(runner, tmp_path)

        with pytest.raises(CaptureBusy):
            asyncio.run(coordinator.capture(CaptureKind.INTERACTIVE, tmp_path))

        assert runner.calls == []
        assert not coordinator.lock.locked


class TestSingleFlight:
    """Tests for concurrent capture attempts."""

    def test_concurrent_attempt_is_rejected(self, tmp_path: Path):
        """Test that a second capture fails while the first awaits completion."""

        async def scenario():
            gate = asyncio.Event()
            started = asyncio.Event()
            runner = FakeRunner(gate=gate, started=started)
            coordinator = _coordinator(runner, tmp_path)

            first = asyncio.create_task(coordinator.capture(CaptureKind.INTERACTIVE, tmp_path / "out"))
            await started.wait()
            assert coordinator.last_request.state == CaptureState.AWAITING_COMPLETION

            with pytest.raises(CaptureBusy):
                await coordinator.capture(CaptureKind.FULLSCREEN, tmp_path / "out")

            gate.set()
            path = await first
            return coordinator, runner, path

        coordinator, runner, path = asyncio.run(scenario())

        assert path.exists()
        assert sum(1 for call in runner.calls if "-T" not in call) == 1
        assert not coordinator.lock.locked

    def test_shared_lock_blocks_capture(self, tmp_path: Path):
        """Test that a holder of the shared lock keeps captures out."""
        lock = SingleFlightLock()
        coordinator = _coordinator(FakeRunner(), tmp_path, lock=lock)

        with lock.hold():
            with pytest.raises(CaptureBusy):
                asyncio.run(coordinator.capture(CaptureKind.FULLSCREEN, tmp_path))

        assert asyncio.run(coordinator.capture(CaptureKind.FULLSCREEN, tmp_path)).exists()

    def test_lock_free_after_each_outcome(self, tmp_path: Path):
        """Test that cancelled and failed captures do not leave the lock held."""
        runner = FakeRunner(write_output=False)
        coordinator = _coordinator(runner, tmp_path)

        with pytest.raises(CaptureCancelled):
            asyncio.run(coordinator.capture(CaptureKind.INTERACTIVE, tmp_path))

        runner.write_output = True
        runner.returncode = 1
        with pytest.raises(ProcessError):
            asyncio.run(coordinator.capture(CaptureKind.INTERACTIVE, tmp_path))

        runner.returncode = 0
        assert asyncio.run(coordinator.capture(CaptureKind.INTERACTIVE, tmp_path)).exists()


class TestCaptureText:
    """Tests for capture_text."""

    def test_text_is_returned_and_image_removed(self, tmp_path: Path):
        """Test that the OCR image is temporary."""
        seen: list[str] = []
        copied: list[str] = []

        def recognize(path: str) -> str:
            seen.append(path)
            assert Path(path).exists()
            return "hello world"

        coordinator = _coordinator(FakeRunner(), tmp_path)
        text = asyncio.run(coordinator.capture_text(tmp_path / "ocr", recognize, copied.append))

        assert text == "hello world"
        assert copied == ["hello world"]
        assert Path(seen[0]).name.startswith("ocr_temp_")
        assert not Path(seen[0]).exists()

    def test_image_removed_when_recognition_fails(self, tmp_path: Path):
        """Test cleanup when OCR raises."""

        def recognize(path: str) -> str:
            raise ProcessError("No text found in image")

        coordinator = _coordinator(FakeRunner(), tmp_path)
        with pytest.raises(ProcessError):
            asyncio.run(coordinator.capture_text(tmp_path / "ocr", recognize))

        assert list((tmp_path / "ocr").iterdir()) == []


class TestHasPermissionDenial:
    """Tests for has_permission_denial."""

    @pytest.mark.parametrize(
        "text",
        ["Permission denied", "NOT AUTHORIZED", "operation not permitted", "access Denied"],
    )
    def test_markers(self, text: str):
        assert has_permission_denial(text)

    def test_unrelated_text(self):
        assert not has_permission_denial("could not create image from display")
