"""
Exception hierarchy for crossword layout generation.

Every error raised by the package derives from CrosswordError so callers can
catch the whole family in one place. InvalidPlacement is routine during search
and is handled by the mutator; ConfigurationError and InputError abort before
any generation work starts.
"""

from enum import Enum
from typing import Any, Optional, Tuple


class CrosswordError(Exception):
    """Base exception for all crossword layout errors."""


class PlacementFailure(Enum):
    """Reasons a word cannot be placed at a given position and direction."""

    OUT_OF_BOUNDS = "out_of_bounds"
    LETTER_CONFLICT = "letter_conflict"
    ILLEGAL_ADJACENCY = "illegal_adjacency"
    DUPLICATE_WORD = "duplicate_word"
    DIRECTION_MISMATCH = "direction_mismatch"


class InvalidPlacement(CrosswordError):
    """
    Raised when a placement or removal would break a grid invariant.

    Attributes:
        reason: PlacementFailure describing which check rejected the move
        word: Text of the word being placed or removed
        position: Requested (row, col) start, if any
        direction: Requested direction value, if any
    """

    def __init__(
        self,
        reason: PlacementFailure,
        word: str,
        position: Optional[Tuple[int, int]] = None,
        direction: Optional[str] = None,
        detail: str = "",
    ):
        self.reason = reason
        self.word = word
        self.position = position
        self.direction = direction
        self.detail = detail

        message = f"{reason.value}: cannot place {word!r}"
        if position is not None:
            message += f" at {position}"
        if direction is not None:
            message += f" {direction}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class ConfigurationError(CrosswordError):
    """Raised when a generator option is missing, malformed or out of range."""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        value: Any = None,
        line_number: Optional[int] = None,
    ):
        self.key = key
        self.value = value
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class InputError(CrosswordError):
    """Raised when a word-list entry cannot be parsed."""

    def __init__(
        self,
        message: str,
        line_number: Optional[int] = None,
        field: Optional[str] = None,
        source: Optional[str] = None,
    ):
        self.line_number = line_number
        self.field = field
        self.source = source

        location = []
        if source:
            location.append(str(source))
        if line_number is not None:
            location.append(f"line {line_number}")
        if field:
            location.append(f"field '{field}'")
        if location:
            message = f"{', '.join(location)}: {message}"
        super().__init__(message)
