"""
Logging setup for Shotframe.

Console output goes to stderr (stdout belongs to the IPC protocol), with a
rotating text log and an optional JSON-lines log under LOG_DIR.
"""

import json
import logging
import sys
import time
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from src.core.paths import LOG_DIR

CONSOLE_FORMAT = "%(asctime)s [%(levelname)8s] %(name)s: %(message)s"
CONSOLE_DATE_FORMAT = "%H:%M:%S"

FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s (%(filename)s:%(lineno)d): %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

MAX_LOG_SIZE_MB = 5
MAX_LOG_FILES = 3

# Attributes every LogRecord carries; anything else came from `extra=`
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}


class StructuredLogFormatter(logging.Formatter):
    """Formats records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        extra = {}
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            try:
                json.dumps(value)
                extra[key] = value
            except (TypeError, ValueError):
                extra[key] = str(value)
        if extra:
            entry["extra"] = extra

        return json.dumps(entry)


class ColoredConsoleFormatter(logging.Formatter):
    """Colours the level name when writing to a terminal."""

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, fmt: str | None = None, datefmt: str | None = None, use_colors: bool = True):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_colors:
            return super().format(record)

        levelname = record.levelname
        record.levelname = f"{self.COLORS.get(record.levelno, '')}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def _level(value: int | str) -> int:
    if isinstance(value, str):
        return getattr(logging, value.upper())
    return value


def setup_logging(
    console_level: int | str = logging.INFO,
    file_level: int | str = logging.DEBUG,
    log_dir: Path | str | None = None,
    log_file: str | None = "shotframe.log",
    structured_file: str | None = "shotframe.jsonl",
    use_colors: bool = True,
) -> logging.Logger:
    """
    Configure the root logger.

    Args:
        console_level: Level for the stderr handler
        file_level: Level for the file handlers
        log_dir: Directory for log files (defaults to LOG_DIR)
        log_file: Rotating text log name (None disables file logging)
        structured_file: Rotating JSON-lines log name (None to disable)
        use_colors: Colour console output when attached to a terminal

    Returns:
        The root logger
    """
    console_level = _level(console_level)
    file_level = _level(file_level)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for existing in root.handlers[:]:
        root.removeHandler(existing)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(
        ColoredConsoleFormatter(CONSOLE_FORMAT, CONSOLE_DATE_FORMAT, use_colors=use_colors)
    )
    root.addHandler(console)

    if log_file or structured_file:
        directory = Path(log_dir) if log_dir is not None else LOG_DIR
        directory.mkdir(parents=True, exist_ok=True)

        targets = []
        if log_file:
            targets.append((log_file, logging.Formatter(FILE_FORMAT, FILE_DATE_FORMAT)))
        if structured_file:
            targets.append((structured_file, StructuredLogFormatter()))

        for name, formatter in targets:
            file_handler = RotatingFileHandler(
                directory / name,
                maxBytes=MAX_LOG_SIZE_MB * 1024 * 1024,
                backupCount=MAX_LOG_FILES,
                encoding="utf-8",
            )
            file_handler.setLevel(file_level)
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)

    logging.captureWarnings(True)
    root.debug(f"Logging initialized (console: {logging.getLevelName(console_level)})")
    return root


class LogContext:
    """
    Attach fields to every record logged inside the block.

    Usage:
        with LogContext(capture_kind="interactive"):
            logger.info("Spawning capture")
    """

    def __init__(self, **context: Any):
        self.context = context
        self._old_factory: Any = None

    def __enter__(self):
        old_factory = logging.getLogRecordFactory()
        self._old_factory = old_factory
        context = self.context

        def record_factory(*args, **kwargs):
            record = old_factory(*args, **kwargs)
            for key, value in context.items():
                setattr(record, key, value)
            return record

        logging.setLogRecordFactory(record_factory)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._old_factory:
            logging.setLogRecordFactory(self._old_factory)


def log_exception(
    logger: logging.Logger,
    message: str,
    exc: Exception,
    level: int = logging.ERROR,
    **extra: Any,
) -> None:
    """Log an exception with its type, message and traceback."""
    logger.log(level, f"{message}: {type(exc).__name__}: {exc}", exc_info=True, extra=extra)


class OperationTimer:
    """
    Time a block and log how long it took.

    Usage:
        with OperationTimer(logger, "render"):
            ...
    """

    def __init__(self, logger: logging.Logger, operation: str, level: int = logging.DEBUG):
        self.logger = logger
        self.operation = operation
        self.level = level
        self.start_time: float | None = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time is None:
            return
        duration = time.perf_counter() - self.start_time
        duration_str = f"{duration * 1000:.1f}ms" if duration < 1 else f"{duration:.2f}s"
        if exc_type is None:
            self.logger.log(
                self.level,
                f"{self.operation} completed in {duration_str}",
                extra={"operation": self.operation, "duration_seconds": duration},
            )
        else:
            self.logger.log(
                logging.WARNING,
                f"{self.operation} failed after {duration_str}: {exc_val}",
                extra={"operation": self.operation, "duration_seconds": duration},
            )
