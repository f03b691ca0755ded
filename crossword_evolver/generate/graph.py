"""
Intersection graph of a crossword layout.

Nodes are placed word ids, edges join two words that share a cell. The graph
drives connectivity queries (components, leaves) and the cycle count used in
scoring: the first Betti number E - N + C, i.e. the number of independent
cycles.
"""

import logging
from typing import Dict, Iterable, List, Set, Tuple

logger = logging.getLogger(__name__)


class IntersectionGraph:
    """Undirected word-intersection graph."""

    def __init__(self, nodes: Iterable[int], edges: Iterable[Tuple[int, int]]):
        """
        Args:
            nodes: Placed word ids
            edges: Pairs of word ids sharing a cell; pairs naming an unknown id
                are dropped and reported through dangling_edges
        """
        self.nodes: List[int] = sorted(set(nodes))
        self.adjacency: Dict[int, Set[int]] = {node: set() for node in self.nodes}
        self.edges: Set[Tuple[int, int]] = set()
        self.dangling_edges: List[Tuple[int, int]] = []

        for a, b in edges:
            if a not in self.adjacency or b not in self.adjacency:
                logger.warning(f"Dangling intersection edge ({a}, {b}) ignored")
                self.dangling_edges.append((a, b))
                continue
            if a == b:
                continue
            self.edges.add((min(a, b), max(a, b)))
            self.adjacency[a].add(b)
            self.adjacency[b].add(a)

    @property
    def num_nodes(self) -> int:
        return len(self.nodes)

    @property
    def num_edges(self) -> int:
        return len(self.edges)

    def degree(self, node: int) -> int:
        return len(self.adjacency[node])

    def neighbours(self, node: int) -> List[int]:
        return sorted(self.adjacency[node])

    def leaves(self) -> List[int]:
        """Words crossing at most one other word; removing one never splits a component."""
        return [node for node in self.nodes if len(self.adjacency[node]) <= 1]

    def connected_components(self) -> List[List[int]]:
        """
        Partition nodes into connected components.

        Returns:
            Sorted id lists, ordered by their smallest id
        """
        seen: Set[int] = set()
        components = []
        for start in self.nodes:
            if start in seen:
                continue
            component = []
            stack = [start]
            seen.add(start)
            while stack:
                node = stack.pop()
                component.append(node)
                for neighbour in self.adjacency[node]:
                    if neighbour not in seen:
                        seen.add(neighbour)
                        stack.append(neighbour)
            components.append(sorted(component))
        return components

    def num_components(self) -> int:
        return len(self.connected_components())

    def cycle_rank(self) -> int:
        """Number of independent cycles (E - N + C); 0 for a forest."""
        if not self.nodes:
            return 0
        return self.num_edges - self.num_nodes + self.num_components()

    def is_connected(self) -> bool:
        return self.num_components() <= 1
