"""Tests for the isolink command-line interface.

Tests cover:
- Help and version
- Each output mode on SAM fixtures
- Option and config precedence
- Usage and runtime error exit codes
"""

from pathlib import Path
from unittest.mock import patch

import pysam
import pytest
from click.testing import CliRunner

from isolink import __version__
from isolink.cli import main
from isolink.core.report import ComponentReporter, OutputMode


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


# =============================================================================
# Help / Version
# =============================================================================


class TestHelp:
    """Tests for help output."""

    def test_version(self, runner) -> None:
        """--version prints the package version."""
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    @pytest.mark.parametrize("command", ["summary", "extremes", "table", "split"])
    def test_command_help(self, runner, command) -> None:
        """Every command documents the shared options."""
        result = runner.invoke(main, [command, "--help"])
        assert result.exit_code == 0
        assert "--grouping" in result.output
        assert "--edges" in result.output
        assert "--min-mapq" in result.output


# =============================================================================
# Output Modes
# =============================================================================


class TestSummaryCommand:
    """Tests for the summary command."""

    def test_chain(self, runner, chain_sam: Path) -> None:
        """Counts are printed in component id order."""
        result = runner.invoke(main, ["-q", "summary", str(chain_sam)])
        assert result.exit_code == 0
        assert result.output == "3\n1\n"

    @pytest.mark.parametrize("edges", ["clique", "star"])
    @pytest.mark.parametrize("grouping", ["adjacent", "buffered"])
    def test_strategy_options(self, runner, chain_sam: Path, grouping, edges) -> None:
        """All strategy combinations give the same counts."""
        result = runner.invoke(
            main,
            ["-q", "summary", "--grouping", grouping, "--edges", edges, str(chain_sam)],
        )
        assert result.exit_code == 0
        assert result.output == "3\n1\n"

    def test_config_file(self, runner, mixed_quality_sam: Path, tmp_path: Path) -> None:
        """Config values apply when no flag is given."""
        config = tmp_path / "isolink.toml"
        config.write_text("[input]\nmin_mapq = 10\n")

        result = runner.invoke(
            main, ["-q", "--config", str(config), "summary", str(mixed_quality_sam)]
        )
        assert result.exit_code == 0
        assert result.output == "2\n1\n1\n"

    def test_flag_overrides_config(self, runner, mixed_quality_sam: Path, tmp_path: Path) -> None:
        """Command-line flags win over config values."""
        config = tmp_path / "isolink.toml"
        config.write_text("[input]\nmin_mapq = 10\n")

        result = runner.invoke(
            main,
            ["-q", "--config", str(config), "summary", "--min-mapq", "0", str(mixed_quality_sam)],
        )
        assert result.exit_code == 0
        assert result.output == "2\n2\n"


class TestExtremesCommand:
    """Tests for the extremes command."""

    def test_chain(self, runner, chain_sam: Path) -> None:
        """The largest component follows the summary."""
        result = runner.invoke(main, ["-q", "extremes", str(chain_sam)])
        assert result.exit_code == 0
        assert result.output == "3\n1\nlargest\t0\t3\n"


class TestTableCommand:
    """Tests for the table command."""

    def test_stdout(self, runner, singleton_sam: Path) -> None:
        """Without OUTPUT the table goes to stdout."""
        result = runner.invoke(main, ["-q", "table", str(singleton_sam)])
        assert result.exit_code == 0
        assert result.output == "seqid\tseqname\tcomponent\n0\tA\t0\n1\tB\t1\n"

    def test_output_file(self, runner, singleton_sam: Path, tmp_path: Path) -> None:
        """With OUTPUT the table is written to the file."""
        output = tmp_path / "components.tsv"
        result = runner.invoke(main, ["-q", "table", str(singleton_sam), str(output)])

        assert result.exit_code == 0
        assert output.read_text() == "seqid\tseqname\tcomponent\n0\tA\t0\n1\tB\t1\n"

    def test_unwritable_output(self, runner, singleton_sam: Path, tmp_path: Path) -> None:
        """An output path in a missing directory is an error."""
        output = tmp_path / "missing" / "components.tsv"
        result = runner.invoke(main, ["-q", "table", str(singleton_sam), str(output)])

        assert result.exit_code == 1
        assert "Error" in result.output


class TestSplitCommand:
    """Tests for the split command."""

    @pytest.mark.integration
    def test_split(self, runner, chain_sam: Path, tmp_path: Path) -> None:
        """One BAM per component is written."""
        out_dir = tmp_path / "components"
        result = runner.invoke(main, ["-q", "split", str(chain_sam), "-o", str(out_dir)])

        assert result.exit_code == 0
        assert sorted(p.name for p in out_dir.iterdir()) == [
            "chain.component0.bam",
            "chain.component1.bam",
        ]
        with pysam.AlignmentFile(str(out_dir / "chain.component1.bam"), "rb") as bam:
            assert [s.query_name for s in bam] == ["r3"]

    @pytest.mark.integration
    def test_min_size_and_prefix(self, runner, chain_sam: Path, tmp_path: Path) -> None:
        """Small components are skipped and the prefix is applied."""
        result = runner.invoke(
            main,
            [
                "-q",
                "split",
                str(chain_sam),
                "-o",
                str(tmp_path),
                "--prefix",
                "iso",
                "--min-size",
                "2",
            ],
        )

        assert result.exit_code == 0
        assert sorted(p.name for p in tmp_path.glob("iso.*")) == ["iso.component0.bam"]


class TestNoReferences:
    """Tests for a header without @SQ lines."""

    def test_summary(self, runner, no_references_sam: Path) -> None:
        """No references gives an empty summary."""
        result = runner.invoke(main, ["-q", "summary", str(no_references_sam)])
        assert result.exit_code == 0
        assert result.output == ""

    def test_extremes(self, runner, no_references_sam: Path) -> None:
        """No references gives no largest line."""
        result = runner.invoke(main, ["-q", "extremes", str(no_references_sam)])
        assert result.exit_code == 0
        assert "largest\t" not in result.output

    def test_table(self, runner, no_references_sam: Path) -> None:
        """No references gives only the table header."""
        result = runner.invoke(main, ["-q", "table", str(no_references_sam)])
        assert result.exit_code == 0
        assert result.output == "seqid\tseqname\tcomponent\n"


class TestModeDispatch:
    """Commands render through ComponentReporter.write."""

    @pytest.mark.parametrize(
        "command, mode",
        [
            ("summary", OutputMode.SUMMARY),
            ("extremes", OutputMode.EXTREMES),
            ("table", OutputMode.TABLE),
        ],
    )
    def test_command_mode(self, runner, chain_sam: Path, command, mode) -> None:
        """Each text command writes its own output mode."""
        with patch.object(
            ComponentReporter, "write", autospec=True, side_effect=ComponentReporter.write
        ) as mock_write:
            result = runner.invoke(main, ["-q", command, str(chain_sam)])

        assert result.exit_code == 0
        mock_write.assert_called_once()
        assert mock_write.call_args.args[1] is mode


# =============================================================================
# Errors
# =============================================================================


class TestErrors:
    """Tests for error exit codes."""

    def test_missing_argument(self, runner) -> None:
        """No input path is a usage error."""
        result = runner.invoke(main, ["summary"])
        assert result.exit_code == 2
        assert "Usage" in result.output

    def test_extra_argument(self, runner, chain_sam: Path) -> None:
        """Too many arguments is a usage error."""
        result = runner.invoke(main, ["summary", str(chain_sam), "extra"])
        assert result.exit_code == 2

    def test_missing_input(self, runner, tmp_path: Path) -> None:
        """An unopenable input exits with status 1."""
        result = runner.invoke(main, ["-q", "summary", str(tmp_path / "missing.bam")])
        assert result.exit_code == 1
        assert "Could not open" in result.output

    def test_bad_config(self, runner, chain_sam: Path, tmp_path: Path) -> None:
        """An invalid config file exits with status 1."""
        config = tmp_path / "bad.toml"
        config.write_text('[graph]\nedge_policy = "ring"\n')

        result = runner.invoke(main, ["-q", "--config", str(config), "summary", str(chain_sam)])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_bad_choice(self, runner, chain_sam: Path) -> None:
        """An unknown grouping strategy is a usage error."""
        result = runner.invoke(main, ["summary", "--grouping", "sorted", str(chain_sam)])
        assert result.exit_code == 2

    @pytest.mark.integration
    @pytest.mark.slow
    def test_truncated_input(self, runner, truncated_bam: Path) -> None:
        """A truncated BAM is reported as a corrupt stream with status 1."""
        result = runner.invoke(main, ["-q", "summary", str(truncated_bam)])
        assert result.exit_code == 1
        assert "Corrupt alignment stream" in result.output
        assert "Could not open" not in result.output
