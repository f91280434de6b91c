"""Exception hierarchy for isolink.

Every runtime failure is fatal: the run aborts and the CLI reports the
message with a non-zero exit code. Usage errors (wrong arguments) are
raised by click itself as ``click.UsageError``.

Example:
    >>> from isolink.errors import OpenError
    >>> try:
    ...     AlignmentSource("missing.bam")
    ... except OpenError as e:
    ...     print(e)
"""

from __future__ import annotations


class IsolinkError(Exception):
    """Base class for all isolink errors."""


class OpenError(IsolinkError):
    """The input alignment file could not be opened."""


class HeaderError(IsolinkError):
    """The alignment header (reference index) could not be read."""


class CorruptRecordError(IsolinkError):
    """An alignment record could not be read mid-stream.

    Distinct from a clean end of stream, which simply ends iteration.
    """


class OutputError(IsolinkError):
    """An output file or directory could not be created or written."""


class ConfigError(IsolinkError, ValueError):
    """A configuration file is missing, unparsable, or holds bad values."""
