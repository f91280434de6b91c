"""Pytest configuration and shared fixtures for isolink tests.

Fixtures are organized by category:

- SAM fixtures: small alignment files written as SAM text and read back
  through pysam
- Record fixtures: in-memory record streams for the grouping and graph
  stages
"""

from pathlib import Path
from typing import Callable, Sequence

import pysam
import pytest

from isolink.io.alignments import AlignmentRecord

# (read_name, reference name or None for unmapped, mapping quality)
SamRecord = tuple


# =============================================================================
# SAM Helpers
# =============================================================================


def write_sam(
    path: Path,
    references: Sequence[str],
    records: Sequence[SamRecord],
    sort_order: str | None = None,
) -> Path:
    """Write a minimal SAM file.

    Args:
        path: Output path.
        references: Reference names, each 1000 bp long.
        records: (read_name, reference_name, mapq) tuples; reference_name
            None writes an unmapped record. mapq defaults to 60.
        sort_order: Optional @HD SO value.

    Returns:
        The path written.
    """
    lines = []
    if sort_order is not None:
        lines.append(f"@HD\tVN:1.6\tSO:{sort_order}")
    for name in references:
        lines.append(f"@SQ\tSN:{name}\tLN:1000")

    seen: set[str] = set()
    for record in records:
        read_name, reference = record[0], record[1]
        mapq = record[2] if len(record) > 2 else 60
        if reference is None:
            lines.append(f"{read_name}\t4\t*\t0\t0\t*\t*\t0\t0\tACGT\tIIII")
            continue
        # Later alignments of the same read are secondary
        flag = 256 if read_name in seen else 0
        seen.add(read_name)
        lines.append(
            f"{read_name}\t{flag}\t{reference}\t1\t{mapq}\t4M\t*\t0\t0\tACGT\tIIII"
        )

    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def make_sam(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing SAM files into tmp_path."""

    def _make(
        references: Sequence[str],
        records: Sequence[SamRecord],
        name: str = "input.sam",
        sort_order: str | None = None,
    ) -> Path:
        return write_sam(tmp_path / name, references, records, sort_order)

    return _make


# =============================================================================
# Scenario Fixtures
# =============================================================================


@pytest.fixture
def chain_sam(make_sam) -> Path:
    """Four references; r1 links A-B, r2 links B-C, r3 hits only D.

    Expected components: {A, B, C} and {D}.
    """
    return make_sam(
        ["A", "B", "C", "D"],
        [("r1", "A"), ("r1", "B"), ("r2", "B"), ("r2", "C"), ("r3", "D")],
        name="chain.sam",
        sort_order="queryname",
    )


@pytest.fixture
def singleton_sam(make_sam) -> Path:
    """Two references and one read hitting only A.

    Expected components: {A} and {B}.
    """
    return make_sam(["A", "B"], [("r1", "A")], name="singleton.sam")


@pytest.fixture
def interleaved_sam(make_sam) -> Path:
    """Records of r1 are not adjacent: r1->A, r2->C, r1->B.

    Buffered grouping links A-B; adjacent grouping does not.
    """
    return make_sam(
        ["A", "B", "C"],
        [("r1", "A"), ("r2", "C"), ("r1", "B")],
        name="interleaved.sam",
    )


@pytest.fixture
def mixed_quality_sam(make_sam) -> Path:
    """Unmapped and low-MAPQ records next to a normal link.

    r1 links A-B at MAPQ 60; r2 links C-D but its D hit has MAPQ 3;
    r3 is unmapped.
    """
    return make_sam(
        ["A", "B", "C", "D"],
        [
            ("r1", "A", 60),
            ("r1", "B", 60),
            ("r2", "C", 60),
            ("r2", "D", 3),
            ("r3", None),
        ],
        name="mixed.sam",
    )


@pytest.fixture
def no_references_sam(make_sam) -> Path:
    """A header with no @SQ lines and a single unmapped read.

    Expected components: none.
    """
    return make_sam([], [("r1", None)], name="noref.sam", sort_order="unsorted")


@pytest.fixture
def truncated_bam(tmp_path: Path) -> Path:
    """A BAM cut off halfway through its record blocks.

    The header survives in the first BGZF block, so the file opens and
    the truncation only shows up while reading records.
    """
    path = tmp_path / "truncated.bam"
    header = {
        "HD": {"VN": "1.6", "SO": "unsorted"},
        "SQ": [{"SN": "A", "LN": 1000}, {"SN": "B", "LN": 1000}],
    }
    with pysam.AlignmentFile(str(path), "wb", header=header) as bam:
        for i in range(60000):
            segment = pysam.AlignedSegment(bam.header)
            segment.query_name = f"read{i}"
            segment.reference_id = i % 2
            segment.reference_start = 0
            segment.mapping_quality = 60
            segment.cigarstring = "4M"
            segment.query_sequence = "ACGT"
            segment.query_qualities = pysam.qualitystring_to_array("IIII")
            bam.write(segment)

    data = path.read_bytes()
    path.write_bytes(data[: len(data) // 2])
    return path


# =============================================================================
# Record Fixtures
# =============================================================================


@pytest.fixture
def chain_records() -> list[AlignmentRecord]:
    """The chain_sam records as an in-memory stream."""
    return [
        AlignmentRecord("r1", 0),
        AlignmentRecord("r1", 1),
        AlignmentRecord("r2", 1),
        AlignmentRecord("r2", 2),
        AlignmentRecord("r3", 3),
    ]


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
