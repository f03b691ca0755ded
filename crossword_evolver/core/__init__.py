"""
Core types shared across the crossword-evolver package.

Classes:
    Direction: Orientation of a placed word
    CellState: Occupancy state of a grid cell
    CrosswordError: Base class for all package errors
    InvalidPlacement: A placement was rejected by the legality checker
    CrosswordPuzzle: Renderer-facing crossword with clues and solution
    CrosswordClue: Individual crossword clue representation
"""

from .constants import Direction, CellState
from .exceptions import (
    CrosswordError,
    PlacementFailure,
    InvalidPlacement,
    ConfigurationError,
    InputError,
)
from .base_puzzle import BasePuzzle, CrosswordPuzzle, CrosswordClue

__all__ = [
    "Direction",
    "CellState",
    "CrosswordError",
    "PlacementFailure",
    "InvalidPlacement",
    "ConfigurationError",
    "InputError",
    "BasePuzzle",
    "CrosswordPuzzle",
    "CrosswordClue",
]
