"""
Crossword grid and placement engine.

A Grid is an immutable layout of words on an unbounded integer lattice.
Coordinates are (row, col) and may be negative; the bounding rectangle is the
tight box around the letter cells and grows as words are placed. Each placed
word is keyed by the stable id of its Word in the WordBank, and every letter
cell records the ids of the across and down words covering it.

Layout rules, enforced by place(), remove(), restrict() and merge():
- crossing words agree on the shared letter
- two words in the same direction never share a cell
- the cells directly before and after a word stay empty ("blocked"), so
  words never run into each other end to end
- two touching letter cells always belong to one word running through both,
  so a letter that is not a crossing never sits beside another letter

place() and remove() return new grids. The child gets its own (shallow)
copies of the placement and cell maps; the immutable Cell and PlacedWord
values in them are shared with the parent, and only the cells along the
changed word are replaced.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Set, Tuple

from ..core.constants import Direction, CellState
from ..core.exceptions import InvalidPlacement, PlacementFailure
from .graph import IntersectionGraph
from .word_bank import Word, WordBank

logger = logging.getLogger(__name__)

Position = Tuple[int, int]

# filler for cells without a letter in text renderings
EMPTY_MARK = "#"


class Cell(NamedTuple):
    """A letter cell and the words covering it."""

    letter: str
    across_id: Optional[int] = None
    down_id: Optional[int] = None

    @property
    def is_intersection(self) -> bool:
        return self.across_id is not None and self.down_id is not None

    def word_id(self, direction: Direction) -> Optional[int]:
        if direction is Direction.ACROSS:
            return self.across_id
        return self.down_id

    def with_word(self, direction: Direction, word_id: int) -> "Cell":
        if direction is Direction.ACROSS:
            return self._replace(across_id=word_id)
        return self._replace(down_id=word_id)

    def without_word(self, direction: Direction) -> Optional["Cell"]:
        """The cell once the word in `direction` is gone, or None if nothing is left."""
        if direction is Direction.ACROSS:
            remaining = self._replace(across_id=None)
        else:
            remaining = self._replace(down_id=None)
        if remaining.across_id is None and remaining.down_id is None:
            return None
        return remaining


@dataclass(frozen=True)
class PlacedWord:
    """A word at a start position and direction."""

    word: Word
    row: int
    col: int
    direction: Direction

    @property
    def word_id(self) -> int:
        return self.word.word_id

    @property
    def text(self) -> str:
        return self.word.text

    @property
    def length(self) -> int:
        return len(self.word.text)

    @property
    def start(self) -> Position:
        return (self.row, self.col)

    @property
    def end(self) -> Position:
        dr, dc = self.direction.step
        return (self.row + (self.length - 1) * dr, self.col + (self.length - 1) * dc)

    @property
    def before(self) -> Position:
        dr, dc = self.direction.step
        return (self.row - dr, self.col - dc)

    @property
    def after(self) -> Position:
        dr, dc = self.direction.step
        return (self.row + self.length * dr, self.col + self.length * dc)

    def positions(self) -> List[Position]:
        """Get all grid positions occupied by this word."""
        dr, dc = self.direction.step
        return [(self.row + i * dr, self.col + i * dc) for i in range(self.length)]

    def letters(self) -> Iterator[Tuple[Position, str]]:
        return zip(self.positions(), self.word.text)

    def shifted(self, offset: Position) -> "PlacedWord":
        return PlacedWord(self.word, self.row + offset[0], self.col + offset[1], self.direction)


def _layout_error(reason: PlacementFailure, placed: PlacedWord, detail: str) -> InvalidPlacement:
    return InvalidPlacement(reason, placed.text, placed.start, placed.direction.value, detail)


class Grid:
    """
    Immutable crossword layout over a WordBank.

    Attributes:
        word_bank: Bank the placed words come from
        max_rows: Maximum bounding-box height (0 = unlimited)
        max_cols: Maximum bounding-box width (0 = unlimited)
    """

    def __init__(self, word_bank: WordBank, max_rows: int = 0, max_cols: int = 0):
        self.word_bank = word_bank
        self.max_rows = max_rows
        self.max_cols = max_cols
        self._placements: Dict[int, PlacedWord] = {}
        self._cells: Dict[Position, Cell] = {}
        self._graph: Optional[IntersectionGraph] = None

    @classmethod
    def from_placements(
        cls,
        word_bank: WordBank,
        placements: Iterable[Tuple[Word, Position, Direction]],
        max_rows: int = 0,
        max_cols: int = 0,
    ) -> "Grid":
        """
        Build a grid by placing words one after another.

        Raises:
            InvalidPlacement: If any placement is illegal given the earlier ones
        """
        grid = cls(word_bank, max_rows, max_cols)
        for word, position, direction in placements:
            grid = grid.place(word, position, direction)
        return grid

    def _derive(self) -> "Grid":
        # the maps are copied, their immutable Cell and PlacedWord values are not
        child = Grid.__new__(Grid)
        child.word_bank = self.word_bank
        child.max_rows = self.max_rows
        child.max_cols = self.max_cols
        child._placements = dict(self._placements)
        child._cells = dict(self._cells)
        child._graph = None
        return child

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def placed_words(self) -> List[PlacedWord]:
        """Placed words ordered by word id."""
        return [self._placements[word_id] for word_id in sorted(self._placements)]

    @property
    def num_placed(self) -> int:
        return len(self._placements)

    def is_empty(self) -> bool:
        return not self._placements

    def is_placed(self, word: Word) -> bool:
        return word.word_id in self._placements

    def placement(self, word_id: int) -> Optional[PlacedWord]:
        return self._placements.get(word_id)

    def unplaced_words(self) -> List[Word]:
        """Bank words not in the grid, in bank order."""
        return [word for word in self.word_bank if word.word_id not in self._placements]

    def cell(self, position: Position) -> Optional[Cell]:
        return self._cells.get(position)

    def letter_at(self, position: Position) -> Optional[str]:
        cell = self._cells.get(position)
        return cell.letter if cell is not None else None

    @property
    def bounds(self) -> Optional[Tuple[int, int, int, int]]:
        """(min_row, min_col, max_row, max_col) of the letter cells, None when empty."""
        if not self._placements:
            return None
        rows = []
        cols = []
        for placed in self._placements.values():
            end_row, end_col = placed.end
            rows.extend((placed.row, end_row))
            cols.extend((placed.col, end_col))
        return (min(rows), min(cols), max(rows), max(cols))

    @property
    def dimensions(self) -> Tuple[int, int]:
        """(rows, cols) of the bounding rectangle; (0, 0) for an empty grid."""
        bounds = self.bounds
        if bounds is None:
            return (0, 0)
        min_row, min_col, max_row, max_col = bounds
        return (max_row - min_row + 1, max_col - min_col + 1)

    @property
    def area(self) -> int:
        rows, cols = self.dimensions
        return rows * cols

    @property
    def filled_cell_count(self) -> int:
        return len(self._cells)

    @property
    def intersection_count(self) -> int:
        return sum(1 for cell in self._cells.values() if cell.is_intersection)

    def blocked_cells(self) -> Set[Position]:
        """Cells directly before and after each placed word."""
        blocked = set()
        for placed in self._placements.values():
            blocked.add(placed.before)
            blocked.add(placed.after)
        return blocked

    def cell_state(self, position: Position) -> CellState:
        if position in self._cells:
            return CellState.LETTER
        if position in self.blocked_cells():
            return CellState.BLOCKED
        return CellState.EMPTY

    def intersection_graph(self) -> IntersectionGraph:
        """Word-intersection graph, cached per grid."""
        if self._graph is None:
            graph = self._build_graph()
            if graph.dangling_edges:
                logger.warning(
                    f"Grid cells reference {len(graph.dangling_edges)} unplaced word(s); "
                    f"rebuilding cells from placements"
                )
                self._cells = self._cells_from_placements()
                graph = self._build_graph()
            self._graph = graph
        return self._graph

    def _build_graph(self) -> IntersectionGraph:
        edges = [
            (cell.across_id, cell.down_id)
            for cell in self._cells.values()
            if cell.is_intersection
        ]
        return IntersectionGraph(self._placements.keys(), edges)

    def _cells_from_placements(self) -> Dict[Position, Cell]:
        cells: Dict[Position, Cell] = {}
        for placed in self.placed_words:
            for position, letter in placed.letters():
                cell = cells.get(position) or Cell(letter)
                cells[position] = cell.with_word(placed.direction, placed.word_id)
        return cells

    def connected_components(self) -> List[List[int]]:
        """Placed word ids partitioned into connected components."""
        return self.intersection_graph().connected_components()

    def unlinked_contacts(self) -> List[Tuple[Position, Position]]:
        """
        Touching letter cells that no single word runs through.

        Each pair is (cell, its right or lower neighbour). A layout built
        only through place(), remove(), restrict() and merge() has none.
        """
        contacts = []
        for (row, col), cell in sorted(self._cells.items()):
            for direction in Direction:
                dr, dc = direction.step
                neighbour_position = (row + dr, col + dc)
                neighbour = self._cells.get(neighbour_position)
                if neighbour is None:
                    continue
                word_id = cell.word_id(direction)
                if word_id is None or word_id != neighbour.word_id(direction):
                    contacts.append(((row, col), neighbour_position))
        return contacts

    def cell_rows(self) -> List[List[str]]:
        """Letters of the bounding rectangle, row by row, EMPTY_MARK where there is none."""
        bounds = self.bounds
        if bounds is None:
            return []
        min_row, min_col, max_row, max_col = bounds
        return [
            [
                self._cells[(row, col)].letter if (row, col) in self._cells else EMPTY_MARK
                for col in range(min_col, max_col + 1)
            ]
            for row in range(min_row, max_row + 1)
        ]

    def to_text(self) -> str:
        return "\n".join("".join(row) for row in self.cell_rows())

    def layout_key(self) -> Tuple[Tuple[int, int, int, str], ...]:
        """Translation-independent identity of the layout, used to spot duplicates."""
        bounds = self.bounds
        if bounds is None:
            return ()
        min_row, min_col = bounds[0], bounds[1]
        return tuple(
            (placed.word_id, placed.row - min_row, placed.col - min_col, placed.direction.value)
            for placed in self.placed_words
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return (
            self.word_bank == other.word_bank
            and self.max_rows == other.max_rows
            and self.max_cols == other.max_cols
            and self._placements == other._placements
        )

    def __hash__(self) -> int:
        return hash(tuple(self.placed_words))

    def __repr__(self) -> str:
        rows, cols = self.dimensions
        return f"Grid({self.num_placed} words, {rows}x{cols})"

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    def check_placement(self, word: Word, position: Position, direction: Direction):
        """
        Validate a placement without applying it.

        Checks run in order: duplicate word, required direction, size limits,
        letter agreement, adjacency.

        Raises:
            InvalidPlacement: With the reason of the first failed check
        """
        placed = PlacedWord(word, position[0], position[1], direction)

        def reject(reason: PlacementFailure, detail: str = ""):
            raise InvalidPlacement(reason, word.text, position, direction.value, detail)

        if word.word_id in self._placements:
            reject(PlacementFailure.DUPLICATE_WORD, "already placed")
        if word not in self.word_bank:
            raise ValueError(f"Word {word!r} does not belong to this grid's word bank")

        if word.direction is not None and word.direction is not direction:
            reject(PlacementFailure.DIRECTION_MISMATCH, f"must be {word.direction.value}")

        if self.max_rows or self.max_cols:
            rows, cols = self._dimensions_with(placed)
            if (self.max_rows and rows > self.max_rows) or (
                self.max_cols and cols > self.max_cols
            ):
                reject(
                    PlacementFailure.OUT_OF_BOUNDS,
                    f"grid would be {rows}x{cols}, limit {self.max_rows}x{self.max_cols}",
                )

        for cell_position, letter in placed.letters():
            cell = self._cells.get(cell_position)
            if cell is not None and cell.letter != letter:
                reject(
                    PlacementFailure.LETTER_CONFLICT,
                    f"{cell.letter!r} at {cell_position}",
                )

        self._check_adjacency(placed, reject)

    def _dimensions_with(self, placed: PlacedWord) -> Tuple[int, int]:
        end_row, end_col = placed.end
        bounds = self.bounds or (placed.row, placed.col, end_row, end_col)
        min_row = min(bounds[0], placed.row)
        min_col = min(bounds[1], placed.col)
        max_row = max(bounds[2], end_row)
        max_col = max(bounds[3], end_col)
        return (max_row - min_row + 1, max_col - min_col + 1)

    def _check_adjacency(self, placed: PlacedWord, reject):
        direction = placed.direction

        for end_cap in (placed.before, placed.after):
            if end_cap in self._cells:
                reject(PlacementFailure.ILLEGAL_ADJACENCY, f"touches a letter at {end_cap}")

        new_positions = []
        for position in placed.positions():
            cell = self._cells.get(position)
            if cell is None:
                new_positions.append(position)
            elif cell.word_id(direction) is not None:
                other = self._placements[cell.word_id(direction)]
                reject(PlacementFailure.ILLEGAL_ADJACENCY, f"overlaps {other.text}")

        # a crossing cell keeps its sideways neighbours, which its other word
        # already explains; a new letter must have none
        blocked = self.blocked_cells()
        dr, dc = direction.rotate().step
        for row, col in new_positions:
            if (row, col) in blocked:
                reject(
                    PlacementFailure.ILLEGAL_ADJACENCY,
                    f"runs into the end of a word at {(row, col)}",
                )
            for side in (-1, 1):
                neighbour = (row + side * dr, col + side * dc)
                if neighbour in self._cells:
                    reject(
                        PlacementFailure.ILLEGAL_ADJACENCY,
                        f"side by side with a letter at {neighbour}",
                    )

    def can_place(self, word: Word, position: Position, direction: Direction) -> bool:
        try:
            self.check_placement(word, position, direction)
        except InvalidPlacement:
            return False
        return True

    def place(self, word: Word, position: Position, direction: Direction) -> "Grid":
        """
        Place a word and return the resulting grid.

        Args:
            word: Word from this grid's bank
            position: (row, col) of the first letter
            direction: Direction.ACROSS or Direction.DOWN

        Returns:
            New Grid containing the word; self is unchanged

        Raises:
            InvalidPlacement: If any placement rule is violated
        """
        self.check_placement(word, position, direction)

        placed = PlacedWord(word, position[0], position[1], direction)
        child = self._derive()
        child._placements[word.word_id] = placed
        for cell_position, letter in placed.letters():
            cell = child._cells.get(cell_position) or Cell(letter)
            child._cells[cell_position] = cell.with_word(direction, word.word_id)
        return child

    def remove(self, word: Word) -> "Grid":
        """
        Remove a word and return the resulting grid.

        Cells shared with crossing words keep their letter. Removing a word
        that is not placed returns this grid unchanged.

        Raises:
            InvalidPlacement: If two consecutive letters of the word are both
                crossings, which would leave them touching with no word
                linking them
        """
        placed = self._placements.get(word.word_id)
        if placed is None:
            return self

        child = self._derive()
        del child._placements[word.word_id]
        previous_kept = None
        for position in placed.positions():
            remaining = child._cells[position].without_word(placed.direction)
            if remaining is None:
                del child._cells[position]
                previous_kept = None
                continue
            if previous_kept is not None:
                raise _layout_error(
                    PlacementFailure.ILLEGAL_ADJACENCY,
                    placed,
                    f"crossings at {previous_kept} and {position} would be left touching",
                )
            child._cells[position] = remaining
            previous_kept = position
        return child

    # ------------------------------------------------------------------
    # Partition and merge
    # ------------------------------------------------------------------

    def restrict(self, word_ids: Iterable[int]) -> "Grid":
        """
        Sub-layout keeping only `word_ids`, each at its current position.

        Ids that are not placed are ignored.

        Raises:
            InvalidPlacement: If dropping the other words would leave letters
                touching with no word linking them
        """
        keep = set(word_ids)
        child = self._derive()
        child._placements = {
            word_id: placed for word_id, placed in self._placements.items() if word_id in keep
        }
        child._cells = child._cells_from_placements()

        contacts = child.unlinked_contacts()
        if contacts:
            first, second = contacts[0]
            cell = child._cells[first]
            word_id = cell.across_id if cell.across_id is not None else cell.down_id
            raise _layout_error(
                PlacementFailure.ILLEGAL_ADJACENCY,
                child._placements[word_id],
                f"{first} and {second} would touch without a linking word",
            )
        return child

    def merge_offsets(self, other: "Grid") -> List[Position]:
        """
        Shifts of `other` that cross one of its letters with an equal letter here.

        Only single-word cells pair up, and only when their words run in
        different directions. Offsets are not validated; the list is sorted.
        """
        open_cells: Dict[Tuple[str, Direction], List[Position]] = {}
        for position, cell in self._cells.items():
            if not cell.is_intersection:
                direction = Direction.ACROSS if cell.across_id is not None else Direction.DOWN
                open_cells.setdefault((cell.letter, direction), []).append(position)

        offsets = set()
        for (row, col), cell in other._cells.items():
            if cell.is_intersection:
                continue
            direction = Direction.ACROSS if cell.across_id is not None else Direction.DOWN
            for target_row, target_col in open_cells.get((cell.letter, direction.rotate()), ()):
                offsets.add((target_row - row, target_col - col))
        return sorted(offsets)

    def merge(self, other: "Grid", offset: Position = (0, 0)) -> "Grid":
        """
        Overlay `other`, shifted by `offset`, on this grid.

        Args:
            other: Grid over the same word bank, placing none of this grid's words
            offset: (rows, cols) added to every position of `other`

        Returns:
            New Grid holding the words of both

        Raises:
            ValueError: If `other` uses a different word bank
            InvalidPlacement: If the combined layout breaks a layout rule
        """
        if other.word_bank != self.word_bank:
            raise ValueError("Cannot merge grids built from different word banks")

        child = self._derive()
        for placed in other.placed_words:
            moved = placed.shifted(offset)
            if moved.word_id in child._placements:
                raise _layout_error(PlacementFailure.DUPLICATE_WORD, moved, "placed in both grids")
            child._placements[moved.word_id] = moved
            for position, letter in moved.letters():
                cell = child._cells.get(position)
                if cell is None:
                    cell = Cell(letter)
                elif cell.letter != letter:
                    raise _layout_error(
                        PlacementFailure.LETTER_CONFLICT, moved, f"{cell.letter!r} at {position}"
                    )
                elif cell.word_id(moved.direction) is not None:
                    raise _layout_error(
                        PlacementFailure.ILLEGAL_ADJACENCY, moved, f"overlaps at {position}"
                    )
                child._cells[position] = cell.with_word(moved.direction, moved.word_id)

        rows, cols = child.dimensions
        if (self.max_rows and rows > self.max_rows) or (self.max_cols and cols > self.max_cols):
            raise _layout_error(
                PlacementFailure.OUT_OF_BOUNDS,
                other.placed_words[0].shifted(offset),
                f"grid would be {rows}x{cols}, limit {self.max_rows}x{self.max_cols}",
            )

        contacts = child.unlinked_contacts()
        if contacts:
            first, second = contacts[0]
            raise _layout_error(
                PlacementFailure.ILLEGAL_ADJACENCY,
                other.placed_words[0].shifted(offset),
                f"{first} and {second} would touch without a linking word",
            )
        return child

    # ------------------------------------------------------------------
    # Candidate positions
    # ------------------------------------------------------------------

    def attachment_points(self, word: Word) -> List[Tuple[Position, Direction]]:
        """
        Every (start, direction) at which `word` would cross an existing letter.

        Only letters covered by a single word are considered, and the word's
        required direction is respected. Points are not validated against the
        placement rules; the list is sorted so callers can sample by index.
        """
        if word.word_id in self._placements or not self._placements:
            return []

        open_cells: Dict[str, List[Position]] = {}
        for position, cell in self._cells.items():
            if not cell.is_intersection:
                open_cells.setdefault(cell.letter, []).append(position)

        points = set()
        for index, letter in enumerate(word.text):
            for row, col in open_cells.get(letter, ()):
                cell = self._cells[(row, col)]
                occupied = Direction.ACROSS if cell.across_id is not None else Direction.DOWN
                direction = occupied.rotate()
                if word.direction is not None and word.direction is not direction:
                    continue
                dr, dc = direction.step
                points.add(((row - index * dr, col - index * dc), direction))

        return sorted(points, key=lambda point: (point[1].value, point[0]))

    def candidate_positions(self, word: Word) -> Iterator[Tuple[Position, Direction]]:
        """Lazily yield the legal attachment points of `word`."""
        for position, direction in self.attachment_points(word):
            if self.can_place(word, position, direction):
                yield position, direction
