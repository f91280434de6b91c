"""Core clustering logic for isolink.

This module contains the grouping, graph and connectivity algorithms:

- Grouping records by read name (adjacent-run or buffered)
- Building the co-occurrence graph (clique or star edges)
- Connected components
- Component reports

Example:
    >>> from isolink.core import BufferedGrouping, ClusterPipeline, EdgePolicy
    >>> result = ClusterPipeline(BufferedGrouping(), EdgePolicy.STAR).run("in.bam")
"""

from isolink.core.components import ComponentAssignment, find_connected_components
from isolink.core.graph import EdgePolicy, IsoformGraph, build_graph
from isolink.core.grouping import (
    AdjacentRunGrouping,
    BufferedGrouping,
    GroupingStrategy,
    ReadGroup,
    get_grouping_strategy,
)
from isolink.core.pipeline import ClusterPipeline, ClusterResult, PipelineStats
from isolink.core.report import ComponentPlan, ComponentReporter, OutputMode

__all__: list[str] = [
    # Grouping
    "AdjacentRunGrouping",
    "BufferedGrouping",
    "GroupingStrategy",
    "ReadGroup",
    "get_grouping_strategy",
    # Graph
    "EdgePolicy",
    "IsoformGraph",
    "build_graph",
    # Components
    "ComponentAssignment",
    "find_connected_components",
    # Reporting
    "ComponentPlan",
    "ComponentReporter",
    "OutputMode",
    # Pipeline
    "ClusterPipeline",
    "ClusterResult",
    "PipelineStats",
]
