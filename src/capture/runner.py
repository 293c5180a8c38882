"""
Process supervision for the capture facility.

The coordinator only talks to a ProcessRunner, so its logic can be driven
by a fake in tests without touching the real OS capture tool.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from src.core.errors import ProcessError

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    """Exit status and captured output of a finished process."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ProcessRunner(Protocol):
    """Spawns a process and waits for it without blocking the event loop."""

    async def run(self, args: list[str]) -> ProcessResult: ...

    async def is_running(self, name: str) -> bool: ...


class AsyncProcessRunner:
    """ProcessRunner backed by asyncio subprocesses."""

    async def run(self, args: list[str]) -> ProcessResult:
        """
        Run a command to completion with stdin closed and output captured.

        Raises:
            ProcessError: If the process cannot be spawned
        """
        logger.debug(f"Spawning: {' '.join(args)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ProcessError(f"Failed to run {args[0]}: {e}") from e

        stdout, stderr = await process.communicate()
        result = ProcessResult(
            returncode=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
        logger.debug(f"{args[0]} exited with {result.returncode}")
        return result

    async def is_running(self, name: str) -> bool:
        """Whether a process with exactly this name is running (pgrep -x)."""
        try:
            result = await self.run(["pgrep", "-x", name])
        except ProcessError as e:
            logger.warning(f"Could not probe for running {name}: {e}")
            return False
        return result.ok
