"""Command-line interface for isolink.

This module provides the main entry point for the isolink CLI tool.
Each output mode is a subcommand; all of them read one alignment file,
group records by read name, link the references each read aligns to, and
report the connected components.

Commands:
    summary: Member count of every component
    extremes: Summary plus the largest component
    table: Component of every reference sequence
    split: One BAM file per component

Example:
    $ isolink --help
    $ isolink summary isoforms.bam
    $ isolink table --grouping adjacent collated.bam components.tsv
    $ isolink split isoforms.bam -o components/ --min-size 2
"""

import sys
from pathlib import Path
from typing import Any, Callable

import click
from rich.console import Console
from rich.markup import escape

from isolink import __version__
from isolink.config import EDGE_POLICIES, GROUPING_STRATEGIES, Config
from isolink.errors import ConfigError, IsolinkError, OutputError
from isolink.utils.logging import setup_logging

# Diagnostics go to stderr; stdout carries results
console = Console(stderr=True)


def _fail(ctx: click.Context, error: Exception) -> None:
    """Report a fatal error and exit with status 1."""
    console.print(f"[red]Error:[/red] {escape(str(error))}")
    if ctx.obj.get("verbose", False):
        console.print_exception()
    raise SystemExit(1)


def pipeline_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every command that runs the clustering pipeline."""
    options = [
        click.argument(
            "input_path",
            metavar="INPUT",
            type=click.Path(dir_okay=False, path_type=Path),
        ),
        click.option(
            "--grouping",
            type=click.Choice(GROUPING_STRATEGIES),
            default=None,
            help=(
                "How records are grouped by read name. 'adjacent' streams and "
                "requires records of a read to be contiguous (name-sorted or "
                "collated input); 'buffered' accepts any order. "
                "[default: from config, else buffered]"
            ),
        ),
        click.option(
            "--edges",
            "edge_policy",
            type=click.Choice(EDGE_POLICIES),
            default=None,
            help=(
                "How a read's references are linked: 'clique' (all pairs) or "
                "'star' (first to the rest). Components are identical. "
                "[default: from config, else star]"
            ),
        ),
        click.option(
            "--min-mapq",
            type=click.IntRange(min=0),
            default=None,
            help="Skip records below this mapping quality. [default: from config, else 0]",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _run_pipeline(
    ctx: click.Context,
    input_path: Path,
    grouping: str | None,
    edge_policy: str | None,
    min_mapq: int | None,
):
    """Run the clustering pipeline with CLI values over config values."""
    from isolink.core.graph import EdgePolicy
    from isolink.core.grouping import get_grouping_strategy
    from isolink.core.pipeline import ClusterPipeline

    config: Config = ctx.obj["config"]
    pipeline = ClusterPipeline(
        grouping=get_grouping_strategy(grouping or config.grouping.strategy),
        edge_policy=EdgePolicy(edge_policy or config.graph.edge_policy),
        min_mapq=min_mapq if min_mapq is not None else config.input.min_mapq,
    )
    return pipeline.run(input_path)


@click.group()
@click.version_option(version=__version__, prog_name="isolink")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output.")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-error output.")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write debug-level logs to this file.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="TOML configuration file.",
)
@click.pass_context
def main(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
    config_path: Path | None,
) -> None:
    """isolink: cluster reference isoforms linked by shared reads.

    Reads that align to more than one reference sequence link those
    references. isolink builds the graph of these links and reports its
    connected components.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    verbosity = 0 if quiet else (2 if verbose else 1)
    setup_logging(verbosity=verbosity, log_file=log_file)

    try:
        ctx.obj["config"] = Config.load(config_path)
    except ConfigError as e:
        _fail(ctx, e)


# =============================================================================
# summary / extremes commands
# =============================================================================


@main.command()
@pipeline_options
@click.pass_context
def summary(
    ctx: click.Context,
    input_path: Path,
    grouping: str | None,
    edge_policy: str | None,
    min_mapq: int | None,
) -> None:
    """Print the member count of each component, one per line.

    Components are listed in component id order, not by size.

    Example:
        $ isolink summary isoforms.bam
    """
    from isolink.core.report import ComponentReporter, OutputMode

    try:
        result = _run_pipeline(ctx, input_path, grouping, edge_policy, min_mapq)
    except IsolinkError as e:
        _fail(ctx, e)

    ComponentReporter(result.assignment, result.references).write(
        OutputMode.SUMMARY, sys.stdout
    )


@main.command()
@pipeline_options
@click.pass_context
def extremes(
    ctx: click.Context,
    input_path: Path,
    grouping: str | None,
    edge_policy: str | None,
    min_mapq: int | None,
) -> None:
    """Print the summary followed by the largest component.

    The last line is "largest<TAB>component id<TAB>member count". Ties go
    to the component with the lowest id.

    Example:
        $ isolink extremes isoforms.bam
    """
    from isolink.core.report import ComponentReporter, OutputMode

    try:
        result = _run_pipeline(ctx, input_path, grouping, edge_policy, min_mapq)
    except IsolinkError as e:
        _fail(ctx, e)

    reporter = ComponentReporter(result.assignment, result.references)
    largest = reporter.write(OutputMode.EXTREMES, sys.stdout)

    if largest is not None and not ctx.obj.get("quiet", False):
        component, size = largest
        names = [result.references.name(v) for v in result.assignment.members[component]]
        preview = ", ".join(names[:5]) + (", ..." if len(names) > 5 else "")
        console.print(
            f"[blue]Largest component:[/blue] {component} "
            f"({size:,} references: {escape(preview)})"
        )


# =============================================================================
# table command
# =============================================================================


@main.command()
@pipeline_options
@click.argument(
    "output",
    required=False,
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.pass_context
def table(
    ctx: click.Context,
    input_path: Path,
    grouping: str | None,
    edge_policy: str | None,
    min_mapq: int | None,
    output: Path | None,
) -> None:
    """Write the component of each reference sequence as TSV.

    Columns: seqid, seqname, component. Written to OUTPUT, or stdout if
    OUTPUT is omitted.

    Example:
        $ isolink table isoforms.bam components.tsv
    """
    from isolink.core.report import ComponentReporter, OutputMode

    try:
        result = _run_pipeline(ctx, input_path, grouping, edge_policy, min_mapq)
        reporter = ComponentReporter(result.assignment, result.references)

        if output is None:
            reporter.write(OutputMode.TABLE, sys.stdout)
        else:
            try:
                with open(output, "w") as f:
                    reporter.write(OutputMode.TABLE, f)
            except OSError as e:
                raise OutputError(
                    f"Could not write output file {output}: {e.strerror or e}"
                ) from e
            if not ctx.obj.get("quiet", False):
                console.print(f"[green]Wrote component table:[/green] {output}")
    except IsolinkError as e:
        _fail(ctx, e)


# =============================================================================
# split command
# =============================================================================


@main.command()
@pipeline_options
@click.option(
    "-o",
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Directory for the per-component BAM files.",
)
@click.option(
    "--prefix",
    type=str,
    default=None,
    help="Output file name prefix. [default: from config, else input name without its extension]",
)
@click.option(
    "--min-size",
    type=click.IntRange(min=1),
    default=None,
    help="Only write components with at least this many references. [default: 1]",
)
@click.option(
    "--max-open-files",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum output files open at once; more components take more passes. [default: 256]",
)
@click.pass_context
def split(
    ctx: click.Context,
    input_path: Path,
    grouping: str | None,
    edge_policy: str | None,
    min_mapq: int | None,
    output_dir: Path,
    prefix: str | None,
    min_size: int | None,
    max_open_files: int | None,
) -> None:
    """Write the records of each component to a separate BAM file.

    Files are named PREFIX.component<ID>.bam. The input is read once to
    find components, then again to copy records.

    Example:
        $ isolink split isoforms.bam -o components/ --min-size 2
    """
    from isolink.core.report import ComponentReporter
    from isolink.io.split import ComponentSplitWriter

    config: Config = ctx.obj["config"]
    quiet = ctx.obj.get("quiet", False)

    try:
        result = _run_pipeline(ctx, input_path, grouping, edge_policy, min_mapq)
        reporter = ComponentReporter(result.assignment, result.references)
        plan = reporter.split_plan(
            min_size=min_size if min_size is not None else config.split.min_size
        )

        writer = ComponentSplitWriter(
            input_path,
            output_dir,
            prefix=prefix or config.split.prefix,
            max_open_files=max_open_files or config.split.max_open_files,
        )
        paths = writer.write(plan)
    except IsolinkError as e:
        _fail(ctx, e)

    if not quiet:
        console.print(f"[green]Wrote {len(paths)} component files to:[/green] {output_dir}")


if __name__ == "__main__":
    main()
