"""Grouping of alignment records by read name.

A read that aligns to several reference sequences links them. This module
turns the flat record stream into one ``ReadGroup`` per read, using one of
two strategies that the caller chooses explicitly:

- **AdjacentRunGrouping**: streams, holding only the current read. Requires
  all records of a read to be contiguous (name-sorted or collated input).
  The requirement is NOT checked: on unsorted input a read is reported as
  several smaller groups and some links are silently lost.
- **BufferedGrouping**: buffers every record keyed by read name. Works for
  any input order at the cost of memory proportional to the record count.

Both yield, per read, every reference id seen for it (duplicates kept) in
first-occurrence order.

Example:
    >>> from isolink.core.grouping import get_grouping_strategy
    >>> strategy = get_grouping_strategy("buffered")
    >>> for group in strategy.groups(records):
    ...     print(group.read_name, group.reference_ids)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Iterable, Iterator
from typing import NamedTuple

from isolink.io.alignments import AlignmentRecord

logger = logging.getLogger(__name__)


class ReadGroup(NamedTuple):
    """All reference ids observed for one read.

    Attributes:
        read_name: Query (read) name.
        reference_ids: Reference ids in first-occurrence order.
    """

    read_name: str
    reference_ids: tuple[int, ...]

    @property
    def size(self) -> int:
        """Number of records in the group."""
        return len(self.reference_ids)


class GroupingStrategy(ABC):
    """Turns a record stream into complete read groups."""

    name: str = ""

    @abstractmethod
    def groups(self, records: Iterable[AlignmentRecord]) -> Iterator[ReadGroup]:
        """Yield one complete ReadGroup per read.

        Args:
            records: Alignment records, consumed once.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class AdjacentRunGrouping(GroupingStrategy):
    """Group consecutive records sharing a read name.

    Precondition: records of one read are adjacent in the input. The
    caller is responsible for this; it is not verified.
    """

    name = "adjacent"

    def groups(self, records: Iterable[AlignmentRecord]) -> Iterator[ReadGroup]:
        current_name: str | None = None
        current_ids: list[int] = []

        for read_name, reference_id in records:
            if read_name != current_name:
                if current_name is not None:
                    yield ReadGroup(current_name, tuple(current_ids))
                current_name = read_name
                current_ids = []
            current_ids.append(reference_id)

        if current_name is not None:
            yield ReadGroup(current_name, tuple(current_ids))


class BufferedGrouping(GroupingStrategy):
    """Group records by read name regardless of input order.

    Groups are yielded once the whole input has been read, ordered by the
    first appearance of each read name.
    """

    name = "buffered"

    def groups(self, records: Iterable[AlignmentRecord]) -> Iterator[ReadGroup]:
        buffered: dict[str, list[int]] = defaultdict(list)
        for read_name, reference_id in records:
            buffered[read_name].append(reference_id)

        logger.debug(f"Buffered {len(buffered)} read names")

        for read_name, reference_ids in buffered.items():
            yield ReadGroup(read_name, tuple(reference_ids))


GROUPING_STRATEGIES: dict[str, type[GroupingStrategy]] = {
    AdjacentRunGrouping.name: AdjacentRunGrouping,
    BufferedGrouping.name: BufferedGrouping,
}


def get_grouping_strategy(name: str) -> GroupingStrategy:
    """Create a grouping strategy by name.

    Args:
        name: "adjacent" or "buffered".

    Returns:
        A new strategy instance.

    Raises:
        ValueError: If the name is unknown.
    """
    try:
        return GROUPING_STRATEGIES[name]()
    except KeyError:
        valid = ", ".join(sorted(GROUPING_STRATEGIES))
        raise ValueError(f"Unknown grouping strategy '{name}' (expected one of: {valid})") from None
