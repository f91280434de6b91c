"""Logging configuration for isolink.

Log records go to stderr through rich so that stdout carries only command
results. A log file, when given, receives everything down to DEBUG.

Example:
    >>> import logging
    >>> from isolink.utils.logging import setup_logging
    >>> setup_logging(verbosity=2)
    >>> logging.getLogger("isolink.core").info("Building graph")
"""

import logging
import time
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

# =============================================================================
# Constants
# =============================================================================

# Log file line format
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Console verbosity (-q, default, -v)
VERBOSITY_LEVELS = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
}

PACKAGE_LOGGER = "isolink"


# =============================================================================
# Setup
# =============================================================================


def setup_logging(verbosity: int = 1, log_file: Path | str | None = None) -> None:
    """Attach the stderr handler (and optional file handler) to the package logger.

    Calling it again replaces the handlers from the previous call.

    Args:
        verbosity: 0 for warnings only, 1 for info, 2 for debug.
        log_file: Optional file that receives debug output.
    """
    level = VERBOSITY_LEVELS.get(verbosity, logging.DEBUG)

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(logging.DEBUG if log_file is not None else level)

    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    console_handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        show_time=False,
        show_path=False,
    )
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        file_handler.setLevel(logging.DEBUG)
        logger.addHandler(file_handler)


# =============================================================================
# Progress and Timing
# =============================================================================


class ProgressLogger:
    """Periodic progress messages for a known number of items.

    Example:
        >>> progress = ProgressLogger(logger, total=12, description="Writing")
        >>> for component in components:
        ...     write(component)
        ...     progress.update()
        >>> progress.finish()
    """

    def __init__(
        self,
        logger: logging.Logger,
        total: int,
        interval: int = 100,
        description: str = "Processing",
    ) -> None:
        self.logger = logger
        self.total = total
        self.interval = max(1, interval)
        self.description = description
        self.count = 0

    def update(self, n: int = 1) -> None:
        """Count finished items, logging every ``interval`` and at the total."""
        self.count += n
        if self.count % self.interval == 0 or self.count == self.total:
            pct = 100 * self.count / self.total if self.total > 0 else 100
            self.logger.info(f"{self.description}: {self.count}/{self.total} ({pct:.1f}%)")

    def finish(self) -> None:
        self.logger.info(f"{self.description}: Complete ({self.total} items)")


class Timer:
    """Log the wall time of a pipeline stage at debug level.

    Example:
        >>> with Timer("Building graph", logger):
        ...     build()
    """

    def __init__(self, description: str, logger: logging.Logger) -> None:
        self.description = description
        self.logger = logger
        self.start_time: float = 0
        self.elapsed: float = 0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args: Any) -> None:
        self.elapsed = time.perf_counter() - self.start_time
        self.logger.debug(f"{self.description} completed in {self.elapsed:.2f}s")
