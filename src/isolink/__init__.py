"""isolink: cluster reference isoforms linked by shared reads.

Reads that align to several reference sequences link them. isolink builds
the graph of these links from a SAM/BAM/CRAM file and reports its
connected components.

Example:
    >>> import isolink
    >>> isolink.__version__
    '0.1.0'

Modules:
    io: Alignment input and per-component BAM output
    core: Grouping, graph construction, components and reporting
    config: Configuration loading
    utils: Logging utilities
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
