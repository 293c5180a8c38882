"""Single-flight lock: admits one capture at a time and rejects, never queues, the rest."""

import logging
import threading
from enum import Enum

from src.core.errors import CaptureBusy

logger = logging.getLogger(__name__)


class AttemptResult(str, Enum):
    """Outcome of trying to take the lock."""

    ACQUIRED = "acquired"
    BUSY = "busy"


class LockAttempt:
    """
    Result of SingleFlightLock.attempt().

    Use as a context manager; the lock (if it was acquired) is released on
    exit whatever happens inside the block.
    """

    def __init__(self, owner: "SingleFlightLock", result: AttemptResult):
        self._owner = owner
        self.result = result
        self._released = result == AttemptResult.BUSY

    @property
    def acquired(self) -> bool:
        return self.result == AttemptResult.ACQUIRED

    def release(self) -> None:
        if not self._released:
            self._released = True
            self._owner._release()

    def __enter__(self) -> "LockAttempt":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()


class SingleFlightLock:
    """
    Non-blocking mutual exclusion for one kind of operation.

    Backed by a threading.Lock so it holds across worker threads as well as
    across tasks on one event loop; acquisition never waits.
    """

    def __init__(self, name: str = "capture"):
        self.name = name
        self._lock = threading.Lock()

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    def attempt(self) -> LockAttempt:
        """Try to take the lock without waiting."""
        if self._lock.acquire(blocking=False):
            logger.debug(f"{self.name} lock acquired")
            return LockAttempt(self, AttemptResult.ACQUIRED)
        logger.debug(f"{self.name} lock busy")
        return LockAttempt(self, AttemptResult.BUSY)

    def hold(self) -> LockAttempt:
        """
        Take the lock or fail immediately.

        Raises:
            CaptureBusy: If another holder owns the lock
        """
        attempt = self.attempt()
        if not attempt.acquired:
            raise CaptureBusy()
        return attempt

    def _release(self) -> None:
        self._lock.release()
        logger.debug(f"{self.name} lock released")
