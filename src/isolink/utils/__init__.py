"""Utility functions for isolink.

Example:
    >>> from isolink.utils import setup_logging
    >>> setup_logging(verbosity=2)
"""

from isolink.utils.logging import ProgressLogger, Timer, setup_logging

__all__ = [
    "setup_logging",
    "ProgressLogger",
    "Timer",
]
