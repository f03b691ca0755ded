"""Grid-level enumerations shared by the placement engine and its callers."""

from enum import Enum
from typing import Tuple


class Direction(Enum):
    """Word placement directions."""

    ACROSS = "across"
    DOWN = "down"

    @property
    def step(self) -> Tuple[int, int]:
        """(row, col) offset between consecutive letters of a word."""
        if self is Direction.ACROSS:
            return (0, 1)
        return (1, 0)

    def rotate(self) -> "Direction":
        """Return the perpendicular direction."""
        if self is Direction.ACROSS:
            return Direction.DOWN
        return Direction.ACROSS


class CellState(Enum):
    """Occupancy of a single grid coordinate."""

    EMPTY = "empty"
    LETTER = "letter"
    # directly before the first or after the last letter of a placed word
    BLOCKED = "blocked"
