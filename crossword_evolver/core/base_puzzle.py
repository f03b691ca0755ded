"""
Renderer-facing puzzle types.

A generated layout is handed to downstream renderers as a CrosswordPuzzle:
numbered clues, a solution grid and a blank numbered grid, together with the
score breakdown that ranked the layout. Coordinates are normalized so the
top-left letter cell of the bounding rectangle is (0, 0).
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Any, Tuple
from dataclasses import dataclass


@dataclass
class BasePuzzle(ABC):
    """
    Base class for exported puzzle layouts.

    Provides the minimal interface renderers rely on.
    """

    puzzle_id: str
    size: Tuple[int, int]

    @abstractmethod
    def get_size(self) -> Tuple[int, int]:
        """Return puzzle dimensions."""
        pass

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Convert puzzle to dictionary for serialization."""
        pass


class CrosswordClue:
    """
    Crossword clue with position and direction information.

    Attributes:
        number: Clue number in the puzzle
        direction: "across" or "down"
        length: Length of the answer in letters
        clue_text: Human-readable clue text (empty when the word list had none)
        start_row: Starting row in the normalized grid
        start_col: Starting column in the normalized grid
        answer: The placed word
    """

    def __init__(
        self,
        number: int,
        direction: str,
        length: int,
        clue_text: str,
        start_row: int,
        start_col: int,
        answer: str = "",
    ):
        self.number = number
        self.direction = direction
        self.length = length
        self.clue_text = clue_text
        self.start_row = start_row
        self.start_col = start_col
        self.answer = answer

    def to_dict(self) -> Dict[str, Any]:
        return {
            "number": self.number,
            "direction": self.direction,
            "length": self.length,
            "clue_text": self.clue_text,
            "start_row": self.start_row,
            "start_col": self.start_col,
            "answer": self.answer,
        }

    def __repr__(self) -> str:
        return f"CrosswordClue({self.number} {self.direction}: {self.answer})"


class CrosswordPuzzle(BasePuzzle):
    """
    Complete crossword layout ready for rendering.

    Attributes:
        puzzle_id: Identifier chosen by the caller
        size: Grid dimensions as (rows, cols)
        grid: Blank grid; clue numbers at word starts, "_" for letter cells
            and "#" for cells without letters
        clues: CrosswordClue objects in (number, direction) order
        solution_grid: Letters, with "#" for cells without letters
        solution_words: Mapping "<number><direction>" -> answer
        score_breakdown: Per-term score of the layout
        unplaced_words: Words from the bank that did not make it into the grid
    """

    def __init__(
        self,
        puzzle_id: str,
        grid,
        clues: List[CrosswordClue],
        size: Tuple[int, int],
        solution_grid=None,
        solution_words: Dict[str, str] = None,
        score_breakdown: Dict[str, Any] = None,
        unplaced_words: List[str] = None,
    ):
        """
        Initialize a crossword puzzle.

        Args:
            puzzle_id: Identifier for the puzzle
            grid: Blank numbered grid
            clues: List of CrosswordClue objects
            size: Grid dimensions as (rows, cols)
            solution_grid: Complete solution grid (required)
            solution_words: Mapping from clue key to answer (optional)
            score_breakdown: Serialized score breakdown (optional)
            unplaced_words: Bank words left out of the layout (optional)

        Raises:
            ValueError: If solution_grid is None
        """
        super().__init__(puzzle_id, size)
        self.grid = grid
        self.clues = clues

        if solution_grid is None:
            raise ValueError(
                f"CrosswordPuzzle {puzzle_id} must be initialized with a valid solution_grid"
            )

        self.solution_grid = solution_grid
        self.solution_words = solution_words or {}
        self.score_breakdown = score_breakdown or {}
        self.unplaced_words = unplaced_words or []

    def get_size(self) -> Tuple[int, int]:
        return self.size

    def get_clues(self, direction: str = None) -> List[CrosswordClue]:
        """
        Get clues, optionally filtered by direction.

        Args:
            direction: "across" or "down"; None returns every clue

        Returns:
            List of CrosswordClue objects
        """
        if direction is None:
            return self.clues
        return [clue for clue in self.clues if clue.direction == direction]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "puzzle_id": self.puzzle_id,
            "size": list(self.size),
            "grid": self.grid.tolist() if hasattr(self.grid, "tolist") else self.grid,
            "clues": [clue.to_dict() for clue in self.clues],
            "solution_grid": self.solution_grid.tolist()
            if hasattr(self.solution_grid, "tolist")
            else self.solution_grid,
            "solution_words": self.solution_words,
            "score_breakdown": self.score_breakdown,
            "unplaced_words": self.unplaced_words,
        }
