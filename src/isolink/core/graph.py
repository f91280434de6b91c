"""Co-occurrence graph over reference sequences.

Vertices are reference ids ``0..N-1`` where ``N`` is the number of
references declared in the alignment header, so references that no read
touches stay in the graph as isolated vertices. Each read group adds edges
between the reference ids it mentions, according to an ``EdgePolicy``:

- ``CLIQUE``: every pair of distinct ids, k*(k-1)/2 edges for k ids.
- ``STAR``: the first id to each other id, k-1 edges.

Both make all ids of a group mutually reachable, so they produce the same
connected components; they differ only in edge count and memory.

The graph is a context manager. Leaving the ``with`` block releases the
adjacency storage, whether the block exits normally or by an exception.

Example:
    >>> from isolink.core.graph import EdgePolicy, IsoformGraph
    >>> with IsoformGraph(4) as graph:
    ...     graph.add_group(group, EdgePolicy.STAR)
    ...     assignment = find_connected_components(graph)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from enum import Enum
from itertools import combinations
from typing import Any

from isolink.core.grouping import ReadGroup

logger = logging.getLogger(__name__)


class EdgePolicy(Enum):
    """How a read group's reference ids are connected."""

    CLIQUE = "clique"
    STAR = "star"

    def pairs(self, reference_ids: Sequence[int]) -> Iterator[tuple[int, int]]:
        """Yield the vertex pairs to connect for one group.

        Repeated ids are collapsed first, so no self pairs are produced.

        Args:
            reference_ids: Reference ids of a read group.

        Yields:
            (u, v) pairs with u != v.
        """
        distinct = list(dict.fromkeys(reference_ids))
        if len(distinct) < 2:
            return
        if self is EdgePolicy.CLIQUE:
            yield from combinations(distinct, 2)
        else:
            hub = distinct[0]
            for other in distinct[1:]:
                yield hub, other


class IsoformGraph:
    """Undirected simple graph on a fixed vertex set.

    Attributes:
        n_vertices: Number of vertices (reference sequences).
        n_edges: Number of distinct undirected edges.
    """

    def __init__(self, n_vertices: int) -> None:
        if n_vertices < 0:
            raise ValueError(f"Vertex count must be >= 0, got {n_vertices}")
        self.n_vertices = n_vertices
        self.n_edges = 0
        self._adjacency: list[set[int]] | None = [set() for _ in range(n_vertices)]

    def __enter__(self) -> IsoformGraph:
        return self

    def __exit__(self, *args: Any) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "released" if self.released else f"{self.n_edges} edges"
        return f"IsoformGraph({self.n_vertices} vertices, {state})"

    @property
    def released(self) -> bool:
        """Whether the adjacency storage has been freed."""
        return self._adjacency is None

    def release(self) -> None:
        """Free the adjacency storage. The graph is unusable afterwards."""
        if self._adjacency is not None:
            logger.debug(f"Releasing graph with {self.n_edges} edges")
            self._adjacency = None

    def _storage(self) -> list[set[int]]:
        if self._adjacency is None:
            raise RuntimeError("Graph has been released")
        return self._adjacency

    def _check_vertex(self, v: int) -> None:
        if not 0 <= v < self.n_vertices:
            raise ValueError(
                f"Reference id {v} outside vertex range [0, {self.n_vertices})"
            )

    def add_edge(self, u: int, v: int) -> bool:
        """Add an undirected edge.

        Args:
            u: First vertex.
            v: Second vertex.

        Returns:
            True if the edge is new; False for self pairs and duplicates.

        Raises:
            ValueError: If a vertex is out of range.
        """
        adjacency = self._storage()
        self._check_vertex(u)
        self._check_vertex(v)
        if u == v or v in adjacency[u]:
            return False
        adjacency[u].add(v)
        adjacency[v].add(u)
        self.n_edges += 1
        return True

    def add_group(self, group: ReadGroup, policy: EdgePolicy) -> int:
        """Add the edges implied by one read group.

        Args:
            group: Read group.
            policy: Edge insertion policy.

        Returns:
            Number of new edges added.
        """
        added = 0
        for u, v in policy.pairs(group.reference_ids):
            if self.add_edge(u, v):
                added += 1
        return added

    def neighbors(self, v: int) -> set[int]:
        """Vertices adjacent to v."""
        self._check_vertex(v)
        return self._storage()[v]

    def degree(self, v: int) -> int:
        """Number of edges at v."""
        return len(self.neighbors(v))

    def edges(self) -> Iterator[tuple[int, int]]:
        """Yield each edge once as (u, v) with u < v."""
        for u, adjacent in enumerate(self._storage()):
            for v in adjacent:
                if u < v:
                    yield u, v


def build_graph(
    groups: Iterable[ReadGroup],
    n_vertices: int,
    policy: EdgePolicy,
) -> IsoformGraph:
    """Build a graph from read groups.

    The caller owns the returned graph and should use it in a ``with``
    block so it is released after use.

    Args:
        groups: Read groups.
        n_vertices: Total reference count from the header.
        policy: Edge insertion policy.

    Returns:
        The populated graph.
    """
    graph = IsoformGraph(n_vertices)
    try:
        for group in groups:
            graph.add_group(group, policy)
    except BaseException:
        graph.release()
        raise
    return graph
