"""
Partition and crossover of crossword layouts.

random_partition() splits a grid in two along its intersection graph: a
connected group of words grown from a random start word, and the rest.
crossover() keeps one such group from a first parent and merges in the
largest connected cluster of the second parent's remaining words, at the
shift that makes the most crossings.

Both work on whole words at their existing positions, so every half and
every merged child obeys the same layout rules as a grid built by place().
"""

import logging
from typing import List, Optional, Tuple

import numpy as np

from ..core.exceptions import InvalidPlacement
from .graph import IntersectionGraph
from .grid import Grid

logger = logging.getLogger(__name__)

# split attempts before a grid is declared unsplittable
MAX_PARTITION_ATTEMPTS = 10


def _grow_part(graph: IntersectionGraph, size: int, rng: np.random.Generator) -> List[int]:
    """Random group of `size` word ids, grown through crossings where possible."""
    start = graph.nodes[rng.integers(graph.num_nodes)]
    part = [start]
    members = {start}
    frontier = graph.neighbours(start)

    while len(part) < size:
        frontier = [node for node in frontier if node not in members]
        if frontier:
            node = frontier[rng.integers(len(frontier))]
        else:
            # disconnected layout: jump to another cluster
            outside = [node for node in graph.nodes if node not in members]
            node = outside[rng.integers(len(outside))]
        part.append(node)
        members.add(node)
        frontier = sorted(set(frontier) | set(graph.neighbours(node)))
    return sorted(part)


def random_partition(
    grid: Grid,
    rng: np.random.Generator,
    max_attempts: int = MAX_PARTITION_ATTEMPTS,
) -> Optional[Tuple[Grid, Grid]]:
    """
    Split a grid's words into two non-empty layouts.

    Args:
        grid: Layout with at least two words
        rng: Source of randomness
        max_attempts: Splits to try before giving up

    Returns:
        (grown part, remainder), or None when the grid has fewer than two
        words or every attempted split left letters touching unlinked
    """
    if grid.num_placed < 2:
        return None

    graph = grid.intersection_graph()
    for _ in range(max_attempts):
        size = int(rng.integers(1, graph.num_nodes))
        part = _grow_part(graph, size, rng)
        rest = [node for node in graph.nodes if node not in part]
        try:
            return grid.restrict(part), grid.restrict(rest)
        except InvalidPlacement as e:
            logger.debug(f"Partition {part} rejected: {e}")
    return None


def best_merge(first: Grid, second: Grid, rng: np.random.Generator) -> Optional[Grid]:
    """
    Merge `second` into `first` at the legal shift with the most crossings.

    Shifts are tried in random order and the first of the best is kept.

    Returns:
        Merged grid, or None if no shift is legal
    """
    offsets = first.merge_offsets(second)
    best = None
    for index in rng.permutation(len(offsets)):
        try:
            merged = first.merge(second, offsets[index])
        except InvalidPlacement:
            continue
        if best is None or merged.intersection_count > best.intersection_count:
            best = merged
    return best


def crossover(first: Grid, second: Grid, rng: np.random.Generator) -> Optional[Grid]:
    """
    Recombine two layouts over the same word bank.

    A random part of `first` is kept. The words of `second` outside that
    part, restricted to their largest connected cluster, are merged into it.
    When the donor cannot be merged the part alone is returned, as a smaller
    layout the search can regrow.

    Returns:
        Child grid, or None if `first` cannot be partitioned
    """
    halves = random_partition(first, rng)
    if halves is None:
        return None
    part = halves[0]

    taken = {placed.word_id for placed in part.placed_words}
    remaining = [placed.word_id for placed in second.placed_words if placed.word_id not in taken]
    if not remaining:
        return part

    try:
        donor = second.restrict(remaining)
    except InvalidPlacement as e:
        logger.debug(f"Crossover donor rejected: {e}")
        return part
    # touching letters always share a word, so whole clusters split off cleanly
    largest = max(donor.connected_components(), key=len)
    donor = donor.restrict(largest)

    merged = best_merge(part, donor, rng)
    if merged is None:
        logger.debug("Crossover found no legal shift; keeping the partition")
        return part
    return merged
