"""Alignment file reading for isoform clustering.

This module wraps ``pysam.AlignmentFile`` to provide the record stream
that the grouping stage consumes: one ``(read_name, reference_id)`` pair
per mapped alignment, plus the reference name table from the header.

Features:
    - SAM, BAM and CRAM input (format detected by htslib)
    - Immutable reference name table shared by all later stages
    - Corrupt records reported separately from a clean end of stream
    - Optional mapping-quality filter

Example:
    >>> from isolink.io.alignments import AlignmentSource
    >>> with AlignmentSource("isoforms.bam") as source:
    ...     print(len(source.references))
    ...     for record in source.records():
    ...         print(record.read_name, record.reference_id)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Iterator, NamedTuple

import attrs
import pysam

from isolink.errors import CorruptRecordError, HeaderError, OpenError

logger = logging.getLogger(__name__)

# Header sort/group orders under which records of one read are adjacent
COLLATED_SORT_ORDERS = {"queryname"}
COLLATED_GROUP_ORDERS = {"query"}


# =============================================================================
# Data Structures
# =============================================================================


class AlignmentRecord(NamedTuple):
    """One alignment observation.

    Attributes:
        read_name: Query (read) name.
        reference_id: Index of the reference sequence in the header.
    """

    read_name: str
    reference_id: int


@attrs.frozen
class ReferenceTable(Sequence):
    """Read-only table of reference sequence names, indexed by reference id.

    Attributes:
        names: Reference names in header order.
    """

    names: tuple[str, ...] = attrs.field(converter=tuple)

    def __len__(self) -> int:
        return len(self.names)

    def __getitem__(self, index):  # type: ignore[override]
        return self.names[index]

    def name(self, reference_id: int) -> str:
        """Display name for a reference id."""
        return self.names[reference_id]


@attrs.define
class ReadCounts:
    """Counters for one pass over the records.

    Attributes:
        total: Records read from the file.
        unmapped: Records skipped as unmapped.
        low_mapq: Records skipped below the mapping quality cutoff.
    """

    total: int = 0
    unmapped: int = 0
    low_mapq: int = 0

    @property
    def used(self) -> int:
        """Records passed on to grouping."""
        return self.total - self.unmapped - self.low_mapq


# =============================================================================
# Alignment Source
# =============================================================================


class AlignmentSource:
    """Sequential reader over an alignment file.

    Attributes:
        path: Path to the alignment file.
        min_mapq: Minimum mapping quality for a record to be used.
        references: Reference name table from the header.
        counts: Record counters for the most recent pass.

    Raises:
        OpenError: If the file cannot be opened.
        HeaderError: If the header cannot be read.
    """

    def __init__(self, path: Path | str, min_mapq: int = 0) -> None:
        self.path = Path(path)
        self.min_mapq = min_mapq
        self.counts = ReadCounts()
        self._bam: pysam.AlignmentFile | None = None
        self._open()
        self.references = ReferenceTable(self._bam.references)

    def _open(self) -> None:
        """Open the alignment file.

        A header without ``@SQ`` lines is accepted and gives an empty
        reference table. Truncation is reported when iteration reaches it.
        """
        try:
            self._bam = pysam.AlignmentFile(
                str(self.path), "r", check_sq=False, ignore_truncation=True
            )
        except OSError as e:
            raise OpenError(
                f"Could not open input file {self.path}: {e.strerror or e}"
            ) from e
        except ValueError as e:
            raise HeaderError(f"Could not read header of {self.path}: {e}") from e
        logger.info(f"Opened alignment file: {self.path.name}")

    def __enter__(self) -> AlignmentSource:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the alignment file.

        pysam fails to close a truncated file; that is logged so the read
        error that found the truncation is the one that propagates.
        """
        if self._bam is not None:
            bam, self._bam = self._bam, None
            try:
                bam.close()
            except OSError as e:
                logger.warning(f"Could not cleanly close {self.path.name}: {e}")

    @property
    def n_references(self) -> int:
        """Number of reference sequences declared in the header."""
        return len(self.references)

    @property
    def header(self) -> pysam.AlignmentHeader:
        """The pysam header, used as template for split output."""
        if self._bam is None:
            raise RuntimeError("Alignment file not open")
        return self._bam.header

    @property
    def header_sort_order(self) -> tuple[str | None, str | None]:
        """The ``@HD`` ``SO`` and ``GO`` values, None where absent."""
        hd = self.header.to_dict().get("HD", {})
        return hd.get("SO"), hd.get("GO")

    @property
    def is_collated(self) -> bool:
        """Whether the header declares records grouped by read name."""
        sort_order, group_order = self.header_sort_order
        return sort_order in COLLATED_SORT_ORDERS or group_order in COLLATED_GROUP_ORDERS

    def segments(self) -> Iterator[pysam.AlignedSegment]:
        """Iterate over all records in file order.

        Yields:
            Every alignment record as a pysam segment, unfiltered.

        Raises:
            CorruptRecordError: If a record cannot be read.
        """
        if self._bam is None:
            raise RuntimeError("Alignment file not open")

        iterator = iter(self._bam)
        n_read = 0
        while True:
            try:
                segment = next(iterator)
            except StopIteration:
                break
            except (OSError, ValueError) as e:
                raise CorruptRecordError(
                    f"Corrupt alignment stream in {self.path} after "
                    f"{n_read} records (not a normal end of file): {e}"
                ) from e
            n_read += 1
            yield segment

    def records(self) -> Iterator[AlignmentRecord]:
        """Iterate over usable records as ``(read_name, reference_id)``.

        Unmapped records and records below ``min_mapq`` are skipped.
        Secondary and supplementary alignments are kept.

        Yields:
            AlignmentRecord for each usable record, in file order.

        Raises:
            CorruptRecordError: If a record cannot be read.
        """
        self.counts = ReadCounts()
        for segment in self.segments():
            self.counts.total += 1
            if segment.is_unmapped or segment.reference_id < 0:
                self.counts.unmapped += 1
                continue
            if segment.mapping_quality < self.min_mapq:
                self.counts.low_mapq += 1
                continue
            yield AlignmentRecord(segment.query_name, segment.reference_id)

        logger.debug(
            f"Read {self.counts.total} records from {self.path.name} "
            f"({self.counts.unmapped} unmapped, {self.counts.low_mapq} below MAPQ "
            f"{self.min_mapq})"
        )
