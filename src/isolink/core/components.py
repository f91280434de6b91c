"""Connected components of the isoform graph.

Components are found by iterative breadth-first traversal, visiting
start vertices in index order. Component ids are therefore dense from 0
in discovery order: the component holding vertex 0 is id 0, the
component holding the lowest vertex not in it is id 1, and so on.

Example:
    >>> from isolink.core.components import find_connected_components
    >>> assignment = find_connected_components(graph)
    >>> assignment.n_components
    2
    >>> assignment.members[0]
    (0, 1, 2)
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterator

import attrs
import numpy as np

from isolink.core.graph import IsoformGraph

logger = logging.getLogger(__name__)

UNASSIGNED = -1


@attrs.frozen(eq=False)
class ComponentAssignment:
    """Partition of the vertex set into connected components.

    Attributes:
        labels: Component id per vertex (read-only array).
        members: Sorted member vertices per component id.
    """

    labels: np.ndarray
    members: tuple[tuple[int, ...], ...]

    @classmethod
    def from_labels(cls, labels: np.ndarray) -> ComponentAssignment:
        """Build an assignment from dense per-vertex component ids."""
        labels = np.asarray(labels, dtype=np.int64)
        n_components = int(labels.max()) + 1 if labels.size else 0
        buckets: list[list[int]] = [[] for _ in range(n_components)]
        for vertex, component in enumerate(labels.tolist()):
            buckets[component].append(vertex)
        labels.setflags(write=False)
        return cls(labels=labels, members=tuple(tuple(b) for b in buckets))

    @property
    def n_vertices(self) -> int:
        """Number of vertices."""
        return int(self.labels.size)

    @property
    def n_components(self) -> int:
        """Number of components."""
        return len(self.members)

    @property
    def sizes(self) -> np.ndarray:
        """Member count per component id."""
        return np.bincount(self.labels, minlength=self.n_components)

    def component_of(self, vertex: int) -> int:
        """Component id of a vertex."""
        return int(self.labels[vertex])

    def largest(self) -> tuple[int, tuple[int, ...]]:
        """The component with the most members.

        Ties go to the lowest component id.

        Returns:
            (component_id, members).

        Raises:
            ValueError: If there are no vertices.
        """
        if not self.members:
            raise ValueError("No components in an empty graph")
        # argmax returns the first maximum
        component = int(np.argmax(self.sizes))
        return component, self.members[component]

    def partition(self) -> frozenset[frozenset[int]]:
        """The components as sets, independent of id numbering."""
        return frozenset(frozenset(m) for m in self.members)

    def __iter__(self) -> Iterator[tuple[int, tuple[int, ...]]]:
        return iter(enumerate(self.members))

    def __len__(self) -> int:
        return self.n_components

    def __repr__(self) -> str:
        return (
            f"ComponentAssignment({self.n_vertices} vertices, "
            f"{self.n_components} components)"
        )


def find_connected_components(graph: IsoformGraph) -> ComponentAssignment:
    """Compute the connected components of a graph in O(V + E).

    Args:
        graph: Graph to analyse (not modified).

    Returns:
        ComponentAssignment with ids in discovery order.
    """
    labels = np.full(graph.n_vertices, UNASSIGNED, dtype=np.int64)
    n_components = 0

    for start in range(graph.n_vertices):
        if labels[start] != UNASSIGNED:
            continue
        labels[start] = n_components
        queue = deque([start])
        while queue:
            vertex = queue.popleft()
            for neighbor in graph.neighbors(vertex):
                if labels[neighbor] == UNASSIGNED:
                    labels[neighbor] = n_components
                    queue.append(neighbor)
        n_components += 1

    assignment = ComponentAssignment.from_labels(labels)
    logger.debug(
        f"Found {assignment.n_components} components over {assignment.n_vertices} references"
    )
    return assignment
