"""
Mutation operators for crossword layouts.

A move is a small edit to a grid: add an unplaced word where it crosses an
existing letter, or remove a word that hangs off the layout by a single
crossing (a leaf of the intersection graph). Moves are chosen at random from
an explicit numpy Generator so that a run can be replayed from its seed.

A move that turns out to be illegal is a no-op: try_apply() returns the
original grid together with the failure reason.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

import numpy as np

from ..core.constants import Direction
from ..core.exceptions import InvalidPlacement, PlacementFailure
from .grid import Grid, Position
from .word_bank import Word, WordBank

logger = logging.getLogger(__name__)


class MoveType(Enum):
    """Kinds of random move."""

    ADD_WORD = "add_word"
    REMOVE_WORD = "remove_word"


class Move(ABC):
    """A single edit to a grid."""

    @abstractmethod
    def apply(self, grid: Grid) -> Grid:
        """
        Apply the move.

        Raises:
            InvalidPlacement: If the move is not legal on `grid`
        """
        pass

    def try_apply(self, grid: Grid) -> Tuple[Grid, Optional[PlacementFailure]]:
        """
        Apply the move, treating an illegal move as a no-op.

        Returns:
            (resulting grid, None) on success, (grid, reason) on failure
        """
        try:
            return self.apply(grid), None
        except InvalidPlacement as e:
            logger.debug(f"Move {self} rejected: {e}")
            return grid, e.reason


@dataclass(frozen=True)
class AddWord(Move):
    word: Word
    position: Position
    direction: Direction

    def apply(self, grid: Grid) -> Grid:
        return grid.place(self.word, self.position, self.direction)

    def __str__(self) -> str:
        return f"add {self.word.text} at {self.position} {self.direction.value}"


@dataclass(frozen=True)
class RemoveWord(Move):
    word: Word

    def apply(self, grid: Grid) -> Grid:
        return grid.remove(self.word)

    def __str__(self) -> str:
        return f"remove {self.word.text}"


@dataclass
class MoveStats:
    """Outcome counts of a burst of random moves (and any crossover before it)."""

    applied: int = 0
    failed: int = 0
    skipped: int = 0
    failures: Dict[str, int] = field(default_factory=dict)
    crossovers: int = 0

    def record_failure(self, reason: PlacementFailure):
        self.failed += 1
        self.failures[reason.value] = self.failures.get(reason.value, 0) + 1

    def merge(self, other: "MoveStats") -> "MoveStats":
        merged = MoveStats(
            self.applied + other.applied,
            self.failed + other.failed,
            self.skipped + other.skipped,
            dict(self.failures),
            self.crossovers + other.crossovers,
        )
        for reason, count in other.failures.items():
            merged.failures[reason] = merged.failures.get(reason, 0) + count
        return merged


def _seed_move(grid: Grid, rng: np.random.Generator) -> Optional[Move]:
    """First word of an empty grid: a random word at the origin."""
    unplaced = grid.unplaced_words()
    if not unplaced:
        return None
    word = unplaced[rng.integers(len(unplaced))]
    direction = word.direction
    if direction is None:
        direction = (Direction.ACROSS, Direction.DOWN)[rng.integers(2)]
    return AddWord(word, (0, 0), direction)


def _add_move(grid: Grid, rng: np.random.Generator) -> Optional[Move]:
    """A legal placement of some unplaced word crossing the layout."""
    if grid.is_empty():
        return _seed_move(grid, rng)

    unplaced = grid.unplaced_words()
    for word_index in rng.permutation(len(unplaced)):
        word = unplaced[word_index]
        points = grid.attachment_points(word)
        for point_index in rng.permutation(len(points)):
            position, direction = points[point_index]
            if grid.can_place(word, position, direction):
                return AddWord(word, position, direction)
    return None


def _remove_move(grid: Grid, rng: np.random.Generator) -> Optional[Move]:
    """Removal of a random leaf word; never empties a single-word grid."""
    if grid.num_placed <= 1:
        return None
    leaves = grid.intersection_graph().leaves()
    if not leaves:
        return None
    word_id = leaves[rng.integers(len(leaves))]
    return RemoveWord(grid.placement(word_id).word)


def random_move(
    grid: Grid,
    word_bank: WordBank,
    rng: np.random.Generator,
    add_weight: float = 3.0,
    remove_weight: float = 1.0,
) -> Optional[Move]:
    """
    Draw a random move for `grid`.

    The move type is drawn with odds add_weight:remove_weight. If the drawn
    type has no possible move the other type is tried.

    Args:
        grid: Layout to mutate
        word_bank: Bank the grid was built from
        rng: Source of randomness
        add_weight: Relative odds of an AddWord move
        remove_weight: Relative odds of a RemoveWord move

    Returns:
        A legal Move, or None if neither type has one
    """
    if grid.word_bank is not word_bank and grid.word_bank != word_bank:
        raise ValueError("Grid was not built from the given word bank")

    total = add_weight + remove_weight
    if total <= 0:
        return None
    if rng.random() * total < add_weight:
        order = (_add_move, _remove_move)
    else:
        order = (_remove_move, _add_move)

    for propose in order:
        move = propose(grid, rng)
        if move is not None:
            return move
    return None


def apply_random_moves(
    grid: Grid,
    word_bank: WordBank,
    rng: np.random.Generator,
    num_moves: int,
    add_weight: float = 3.0,
    remove_weight: float = 1.0,
) -> Tuple[Grid, MoveStats]:
    """
    Apply `num_moves` random moves in sequence.

    Returns:
        (mutated grid, MoveStats); rejected moves leave the grid unchanged
        and are counted as failures, and a draw with no possible move
        counts as skipped
    """
    stats = MoveStats()
    for _ in range(num_moves):
        move = random_move(grid, word_bank, rng, add_weight, remove_weight)
        if move is None:
            stats.skipped += 1
            continue
        grid, failure = move.try_apply(grid)
        if failure is None:
            stats.applied += 1
        else:
            stats.record_failure(failure)
    return grid, stats
