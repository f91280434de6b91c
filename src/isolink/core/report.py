"""Rendering of component assignments.

Four mutually exclusive output modes:

- **summary**: one line per component with its member count, in
  component id order.
- **extremes**: the summary followed by ``largest\\t<id>\\t<size>`` naming
  the biggest component (ties go to the lowest id).
- **table**: ``seqid\\tseqname\\tcomponent`` header, then one line per
  reference sequence.
- **split**: no text output; ``split_plan`` lists the components whose
  records should be written to separate files by the split writer.

Example:
    >>> reporter = ComponentReporter(assignment, references)
    >>> reporter.write_table(sys.stdout)
    seqid	seqname	component
    0	A	0
    1	B	1
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import NamedTuple, TextIO

from isolink.core.components import ComponentAssignment
from isolink.io.alignments import ReferenceTable

logger = logging.getLogger(__name__)

TABLE_HEADER = ("seqid", "seqname", "component")


class OutputMode(Enum):
    """Component report modes."""

    SUMMARY = "summary"
    EXTREMES = "extremes"
    TABLE = "table"
    SPLIT = "split"


class ComponentPlan(NamedTuple):
    """One split-mode output unit.

    Attributes:
        component_id: Component id.
        reference_ids: Member reference ids, ascending.
    """

    component_id: int
    reference_ids: tuple[int, ...]


class ComponentReporter:
    """Render a ComponentAssignment in one of the output modes.

    Attributes:
        assignment: Component assignment to report.
        references: Reference name table, indexed by reference id.
    """

    def __init__(
        self,
        assignment: ComponentAssignment,
        references: ReferenceTable,
    ) -> None:
        if assignment.n_vertices != len(references):
            raise ValueError(
                f"Assignment covers {assignment.n_vertices} references but the "
                f"name table has {len(references)}"
            )
        self.assignment = assignment
        self.references = references

    def write_summary(self, out: TextIO) -> None:
        """Write one member count per line, in component id order."""
        for size in self.assignment.sizes.tolist():
            out.write(f"{size}\n")

    def write_extremes(self, out: TextIO) -> tuple[int, int] | None:
        """Write the summary plus the largest component.

        Returns:
            (component_id, size) of the largest component, or None when
            there are no references.
        """
        self.write_summary(out)
        if self.assignment.n_components == 0:
            logger.warning("No references in header; no largest component")
            return None
        component, members = self.assignment.largest()
        out.write(f"largest\t{component}\t{len(members)}\n")
        return component, len(members)

    def write_table(self, out: TextIO) -> None:
        """Write the per-reference component table."""
        out.write("\t".join(TABLE_HEADER) + "\n")
        for seqid, component in enumerate(self.assignment.labels.tolist()):
            out.write(f"{seqid}\t{self.references.name(seqid)}\t{component}\n")

    def split_plan(self, min_size: int = 1) -> list[ComponentPlan]:
        """List the components to write in split mode.

        Args:
            min_size: Skip components with fewer members.

        Returns:
            ComponentPlan entries in component id order.
        """
        plan = [
            ComponentPlan(component, members)
            for component, members in self.assignment
            if len(members) >= min_size
        ]
        skipped = self.assignment.n_components - len(plan)
        if skipped:
            logger.info(f"Skipping {skipped} components with fewer than {min_size} members")
        return plan

    def write(self, mode: OutputMode, out: TextIO) -> tuple[int, int] | None:
        """Write the text report for a mode.

        Returns:
            The largest component for EXTREMES, otherwise None.

        Raises:
            ValueError: For SPLIT, which has no text rendering.
        """
        if mode is OutputMode.SUMMARY:
            self.write_summary(out)
        elif mode is OutputMode.EXTREMES:
            return self.write_extremes(out)
        elif mode is OutputMode.TABLE:
            self.write_table(out)
        else:
            raise ValueError(f"Output mode '{mode.value}' has no text rendering")
        return None
