"""
Logging setup for the pinball_rankings package.

All engine loggers hang off the ``pinball_rankings`` logger. Batch entry
points call :func:`setup_logging` once; library code only asks for loggers
with :func:`get_logger` and reports long operations with :func:`log_timing`
or :class:`ProgressLogger`.
"""

from __future__ import annotations

import logging
import sys
import threading
import time
from contextlib import contextmanager
from pathlib import Path

ROOT_LOGGER_NAME = "pinball_rankings"

_FORMATS = {
    "simple": "%(levelname)s: %(message)s",
    "json": (
        '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
        '"module": "%(name)s", "message": "%(message)s"}'
    ),
    "detailed": (
        "%(asctime)s - %(name)s - %(levelname)s - "
        "%(funcName)s:%(lineno)d - %(message)s"
    ),
}


def _resolve_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def setup_logging(
    level: str | int = logging.INFO,
    log_file: str | Path | None = None,
    format_style: str = "detailed",
    include_timestamp: bool = True,
) -> logging.Logger:
    """Configure the package logger for a batch run.

    Replaces any handlers installed by an earlier call, so entry points can
    call it unconditionally.

    Args:
        level: Level name or number. Defaults to logging.INFO.
        log_file: Optional file that receives the same records as stdout.
        format_style: "simple", "detailed" or "json". Unknown styles fall
            back to "detailed".
        include_timestamp: Drop ``asctime`` from the detailed format when
            False (useful when the runner already stamps lines).

    Returns:
        The configured ``pinball_rankings`` logger.
    """
    level = _resolve_level(level)
    format_string = _FORMATS.get(format_style, _FORMATS["detailed"])
    if format_string is _FORMATS["detailed"] and not include_timestamp:
        format_string = format_string.replace("%(asctime)s - ", "", 1)
    formatter = logging.Formatter(format_string)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the package namespace.

    Args:
        name: Module ``__name__`` or a short component name such as
            ``"decay"``; short names are prefixed with the package name.
    """
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


@contextmanager
def log_timing(
    logger: logging.Logger, operation: str, level: int = logging.INFO
):
    """Log the start, end and wall time of a block.

    A failure inside the block is logged at ERROR and re-raised.

    Examples:
        >>> logger = get_logger(__name__)
        >>> with log_timing(logger, "recomputing rankings"):
        ...     order = recompute_rankings(standings)
    """
    started = time.perf_counter()
    logger.log(level, "Starting %s", operation)
    try:
        yield
    except Exception as exception:
        logger.error(
            "Failed %s after %.2fs: %s",
            operation,
            time.perf_counter() - started,
            exception,
        )
        raise
    logger.log(
        level, "Completed %s in %.2fs", operation, time.perf_counter() - started
    )


class ProgressLogger:
    """
    Context manager for logging progress of long-running operations.

    ``update`` may be called from worker threads.

    Examples
    --------
    >>> logger = get_logger(__name__)
    >>> with ProgressLogger(logger, "decay sweep", total=100) as progress:
    ...     for i in range(100):
    ...         # do work
    ...         progress.update(i + 1)
    """

    def __init__(
        self,
        logger: logging.Logger,
        operation: str,
        total: int | None = None,
        update_interval: int = 10,
    ) -> None:
        self.logger = logger
        self.operation = operation
        self.total = total
        self.update_interval = update_interval
        self.start_time = None
        self.last_update = 0
        self._lock = threading.Lock()

    def __enter__(self):
        self.start_time = time.time()
        if self.total:
            self.logger.info(f"Starting {self.operation} (0/{self.total})")
        else:
            self.logger.info(f"Starting {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed_time = time.time() - self.start_time
        if exc_type is None:
            self.logger.info(
                f"Completed {self.operation} in {elapsed_time:.2f}s"
            )
        else:
            self.logger.error(
                f"Failed {self.operation} after {elapsed_time:.2f}s: {exc_val}"
            )

    def update(self, current: int, message: str | None = None) -> None:
        """Update progress."""
        with self._lock:
            if (
                current - self.last_update < self.update_interval
                and current != self.total
            ):
                return
            self.last_update = current

        elapsed_time = time.time() - self.start_time
        rate = current / elapsed_time if elapsed_time > 0 else 0

        if self.total:
            percentage = (current / self.total) * 100
            log_message = f"{self.operation}: {current}/{self.total} ({percentage:.1f}%) - {rate:.1f}/s"
        else:
            log_message = f"{self.operation}: {current} items - {rate:.1f}/s"
        if message:
            log_message += f" - {message}"

        self.logger.info(log_message)
