"""Per-component alignment output.

Split mode writes one BAM file per connected component, holding every
record of the input whose reference sequence belongs to that component.
This needs a second pass over the input, which is made only after the
graph has been released.

Components are processed in batches of at most ``max_open_files`` so the
number of simultaneously open outputs stays bounded; each batch re-reads
the input once.

Example:
    >>> from isolink.io.split import ComponentSplitWriter
    >>> writer = ComponentSplitWriter("isoforms.bam", "out/", prefix="isoforms")
    >>> paths = writer.write(reporter.split_plan(min_size=2))
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

import pysam

from isolink.core.report import ComponentPlan
from isolink.errors import OutputError
from isolink.io.alignments import AlignmentSource
from isolink.utils.logging import ProgressLogger

logger = logging.getLogger(__name__)

DEFAULT_MAX_OPEN_FILES = 256

# Extensions removed from the input name to form the default prefix
ALIGNMENT_SUFFIXES = (".sam.gz", ".bam", ".cram", ".sam")


def default_prefix(input_path: Path | str) -> str:
    """Output prefix for an input file: its name without the alignment extension.

    Only the final extension is dropped, so ``s1.v2.bam`` gives ``s1.v2``
    and ``.hidden.bam`` gives ``.hidden``.
    """
    name = Path(input_path).name
    for suffix in ALIGNMENT_SUFFIXES:
        if name.lower().endswith(suffix) and len(name) > len(suffix):
            return name[: -len(suffix)]
    return Path(name).stem


class ComponentSplitWriter:
    """Write input records to one BAM file per component.

    Attributes:
        input_path: Alignment file to re-read.
        output_dir: Directory for the output files.
        prefix: File name prefix.
        max_open_files: Maximum outputs open at once.
    """

    def __init__(
        self,
        input_path: Path | str,
        output_dir: Path | str,
        prefix: str | None = None,
        max_open_files: int = DEFAULT_MAX_OPEN_FILES,
    ) -> None:
        if max_open_files < 1:
            raise ValueError(f"max_open_files must be >= 1, got {max_open_files}")
        self.input_path = Path(input_path)
        self.output_dir = Path(output_dir)
        self.prefix = prefix or default_prefix(self.input_path)
        self.max_open_files = max_open_files

    def output_path(self, component_id: int) -> Path:
        """Output file path for a component."""
        return self.output_dir / f"{self.prefix}.component{component_id}.bam"

    def write(self, plan: Sequence[ComponentPlan]) -> list[Path]:
        """Write one file per planned component.

        Args:
            plan: Components to write, from ``ComponentReporter.split_plan``.

        Returns:
            Paths of the written files, in plan order.

        Raises:
            OutputError: If the directory or an output file can't be created.
            CorruptRecordError: If the input can't be re-read.
        """
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputError(
                f"Could not create output directory {self.output_dir}: {e.strerror or e}"
            ) from e

        progress = ProgressLogger(
            logger, total=len(plan), interval=100, description="Writing components"
        )
        written: list[Path] = []
        for start in range(0, len(plan), self.max_open_files):
            batch = plan[start : start + self.max_open_files]
            written.extend(self._write_batch(batch))
            progress.update(len(batch))

        if plan:
            progress.finish()
        logger.info(f"Wrote {len(written)} component files to {self.output_dir}")
        return written

    def _write_batch(self, batch: Sequence[ComponentPlan]) -> list[Path]:
        """Write a batch of components in a single pass over the input."""
        paths = [self.output_path(entry.component_id) for entry in batch]

        with AlignmentSource(self.input_path) as source:
            outputs: list[pysam.AlignmentFile] = []
            try:
                for path in paths:
                    try:
                        outputs.append(
                            pysam.AlignmentFile(str(path), "wb", header=source.header)
                        )
                    except (OSError, ValueError) as e:
                        raise OutputError(f"Could not create output file {path}: {e}") from e

                destination: dict[int, pysam.AlignmentFile] = {}
                for entry, output in zip(batch, outputs):
                    for reference_id in entry.reference_ids:
                        destination[reference_id] = output

                copied = 0
                for segment in source.segments():
                    if segment.is_unmapped or segment.reference_id < 0:
                        continue
                    output = destination.get(segment.reference_id)
                    if output is not None:
                        output.write(segment)
                        copied += 1
            finally:
                for output in outputs:
                    output.close()

        logger.debug(f"Copied {copied} records into {len(paths)} component files")
        return paths
