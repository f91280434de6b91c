"""Input/output handlers for isolink.

- alignments: SAM/BAM/CRAM record source and reference name table
- split: per-component BAM writer

Example:
    >>> from isolink.io import AlignmentSource
    >>> with AlignmentSource("isoforms.bam") as source:
    ...     names = source.references
"""

from isolink.io.alignments import AlignmentRecord, AlignmentSource, ReferenceTable

__all__ = [
    "AlignmentRecord",
    "AlignmentSource",
    "ReferenceTable",
]
