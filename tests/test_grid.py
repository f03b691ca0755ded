"""
Test suite for crossword_evolver.generate.grid and graph.
Tests placement rules, removal, candidate positions and the intersection graph.
"""

import logging

import pytest

from crossword_evolver.core.constants import CellState, Direction
from crossword_evolver.core.exceptions import InvalidPlacement, PlacementFailure
from crossword_evolver.generate.graph import IntersectionGraph
from crossword_evolver.generate.grid import Cell, Grid
from crossword_evolver.generate.word_bank import WordBank

ACROSS = Direction.ACROSS
DOWN = Direction.DOWN


@pytest.fixture
def bank():
    return WordBank.from_texts(["CAT", "CAR", "ART", "AT", "BEAR", "BUTTON", "TEA"])


def word(bank, text):
    return bank.get(text)


class TestPlacement:
    """Test Grid.place() and its legality checks."""

    def test_place_first_word(self, bank):
        """Test placing a word on an empty grid fills its cells."""
        grid = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)

        assert grid.num_placed == 1
        assert grid.dimensions == (1, 3)
        assert [grid.letter_at((0, col)) for col in range(3)] == ["C", "A", "T"]
        assert grid.cell((0, 1)) == Cell("A", word(bank, "CAT").word_id, None)

    def test_place_returns_new_grid(self, bank):
        """Test placement leaves the original grid untouched."""
        empty = Grid(bank)
        placed = empty.place(word(bank, "CAT"), (0, 0), ACROSS)

        assert empty.is_empty()
        assert placed is not empty
        assert empty.dimensions == (0, 0)

    def test_place_is_deterministic(self, bank):
        """Test the same placement on the same grid gives equal grids."""
        base = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)
        first = base.place(word(bank, "CAR"), (0, 0), DOWN)
        second = base.place(word(bank, "CAR"), (0, 0), DOWN)

        assert first == second
        assert first.to_text() == second.to_text()

    def test_crossing_shares_cell(self, bank):
        """Test a crossing cell records both word ids and keeps one letter."""
        grid = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)
        grid = grid.place(word(bank, "CAR"), (0, 0), DOWN)

        cell = grid.cell((0, 0))
        assert cell.letter == "C"
        assert cell.is_intersection
        assert grid.intersection_count == 1
        assert grid.filled_cell_count == 5

    def test_negative_coordinates_grow_bounds(self, bank):
        """Test words may extend above and left of the origin."""
        grid = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)
        grid = grid.place(word(bank, "TEA"), (-2, 1), DOWN)

        assert grid.bounds == (-2, 0, 0, 2)
        assert grid.dimensions == (3, 3)

    def test_duplicate_word_rejected(self, bank):
        """Test placing an already placed word fails with DUPLICATE_WORD."""
        grid = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)

        with pytest.raises(InvalidPlacement) as exc_info:
            grid.place(word(bank, "CAT"), (5, 5), DOWN)
        assert exc_info.value.reason is PlacementFailure.DUPLICATE_WORD

    def test_letter_conflict_rejected(self, bank):
        """Test crossing on a different letter fails with LETTER_CONFLICT."""
        grid = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)

        with pytest.raises(InvalidPlacement) as exc_info:
            grid.place(word(bank, "BEAR"), (0, 0), DOWN)
        assert exc_info.value.reason is PlacementFailure.LETTER_CONFLICT

    def test_out_of_bounds_rejected(self, bank):
        """Test exceeding max_cols fails with OUT_OF_BOUNDS."""
        grid = Grid(bank, max_rows=5, max_cols=5)

        with pytest.raises(InvalidPlacement) as exc_info:
            grid.place(word(bank, "BUTTON"), (0, 0), ACROSS)
        assert exc_info.value.reason is PlacementFailure.OUT_OF_BOUNDS
        assert grid.can_place(word(bank, "BUTTON"), (0, 0), DOWN) is False
        assert grid.can_place(word(bank, "BEAR"), (0, 0), ACROSS) is True

    def test_required_direction_enforced(self):
        """Test a word tagged down cannot be placed across."""
        bank = WordBank([("CAT", "", DOWN)])

        with pytest.raises(InvalidPlacement) as exc_info:
            Grid(bank).place(bank[0], (0, 0), ACROSS)
        assert exc_info.value.reason is PlacementFailure.DIRECTION_MISMATCH

    def test_unbridged_parallel_words_rejected(self, bank):
        """Test BUTTON directly under BEAR fails with ILLEGAL_ADJACENCY."""
        grid = Grid(bank).place(word(bank, "BEAR"), (0, 0), ACROSS)

        with pytest.raises(InvalidPlacement) as exc_info:
            grid.place(word(bank, "BUTTON"), (1, 0), ACROSS)
        assert exc_info.value.reason is PlacementFailure.ILLEGAL_ADJACENCY

    def test_end_to_end_contact_rejected(self, bank):
        """Test a word starting right after another word's end is rejected."""
        grid = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)

        with pytest.raises(InvalidPlacement) as exc_info:
            grid.place(word(bank, "TEA"), (0, 3), ACROSS)
        assert exc_info.value.reason is PlacementFailure.ILLEGAL_ADJACENCY

    def test_letter_in_blocked_cell_rejected(self, bank):
        """Test a perpendicular word passing through an end cap is rejected."""
        grid = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)

        assert grid.cell_state((0, 3)) is CellState.BLOCKED
        with pytest.raises(InvalidPlacement) as exc_info:
            grid.place(word(bank, "TEA"), (-1, 3), DOWN)
        assert exc_info.value.reason is PlacementFailure.ILLEGAL_ADJACENCY

    def test_same_direction_overlap_rejected(self, bank):
        """Test a word lying on top of a parallel word is rejected."""
        grid = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)

        with pytest.raises(InvalidPlacement) as exc_info:
            grid.place(word(bank, "AT"), (0, 1), ACROSS)
        assert exc_info.value.reason is PlacementFailure.ILLEGAL_ADJACENCY

    def test_parallel_neighbour_rejected_despite_shared_crossing(self, bank):
        """Test AT under CAT is rejected even though CAR crosses both words."""
        grid = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)
        grid = grid.place(word(bank, "CAR"), (0, 0), DOWN)

        # (0, 1) and (1, 1) would read "AT" downwards with no word there
        with pytest.raises(InvalidPlacement) as exc_info:
            grid.place(word(bank, "AT"), (1, 0), ACROSS)
        assert exc_info.value.reason is PlacementFailure.ILLEGAL_ADJACENCY
        assert grid.can_place(word(bank, "AT"), (1, 0), ACROSS) is False

    def test_crossing_letter_may_touch_its_own_word(self, bank):
        """Test a crossing cell's neighbours along the crossed word are legal."""
        grid = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)
        grid = grid.place(word(bank, "TEA"), (0, 2), DOWN)

        assert grid.cell((0, 2)).is_intersection
        assert grid.unlinked_contacts() == []

    def test_crossing_layout(self, bank):
        """Test CAT/CAR/ART crossing layout places all three words."""
        grid = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)
        grid = grid.place(word(bank, "CAR"), (0, 0), DOWN)
        grid = grid.place(word(bank, "ART"), (2, -1), ACROSS)

        assert grid.intersection_count == 2
        assert grid.to_text() == "#CAT\n#A##\nART#"


class TestRemoval:
    """Test Grid.remove()."""

    def test_remove_restores_grid(self, bank):
        """Test removing a just-placed word gives back the previous grid."""
        base = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)
        grown = base.place(word(bank, "CAR"), (0, 0), DOWN)

        assert grown.remove(word(bank, "CAR")) == base

    def test_remove_isolated_word(self, bank):
        """Test removing a word without intersections clears all its cells."""
        base = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)
        grown = base.place(word(bank, "BEAR"), (5, 5), ACROSS)
        restored = grown.remove(word(bank, "BEAR"))

        assert restored == base
        assert restored.filled_cell_count == 3
        assert restored.cell((5, 5)) is None

    def test_remove_keeps_shared_cells(self, bank):
        """Test cells shared with crossing words keep their letter."""
        grid = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)
        grid = grid.place(word(bank, "CAR"), (0, 0), DOWN)
        removed = grid.remove(word(bank, "CAT"))

        assert removed.letter_at((0, 0)) == "C"
        assert removed.cell((0, 0)) == Cell("C", None, word(bank, "CAR").word_id)
        assert removed.letter_at((0, 1)) is None

    def test_remove_unplaced_word_is_noop(self, bank):
        """Test removing a word that is not placed returns the same grid."""
        grid = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)

        assert grid.remove(word(bank, "BEAR")) is grid

    def test_remove_leaving_touching_crossings_rejected(self):
        """Test removing a word whose two adjacent letters are both crossings is refused."""
        bank = WordBank.from_texts(["AT", "SEA", "TEN"])
        grid = Grid(bank).place(bank.get("AT"), (0, 0), ACROSS)
        grid = grid.place(bank.get("SEA"), (-2, 0), DOWN)
        grid = grid.place(bank.get("TEN"), (0, 1), DOWN)

        with pytest.raises(InvalidPlacement) as exc_info:
            grid.remove(bank.get("AT"))
        assert exc_info.value.reason is PlacementFailure.ILLEGAL_ADJACENCY
        assert grid.remove(bank.get("SEA")).unlinked_contacts() == []


class TestRestrictAndMerge:
    """Test sub-layouts, merging and the whole-layout contact check."""

    @pytest.fixture
    def layout(self, bank):
        grid = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)
        grid = grid.place(word(bank, "CAR"), (0, 0), DOWN)
        return grid.place(word(bank, "TEA"), (0, 2), DOWN)

    def test_unlinked_contacts_found(self, bank):
        """Test letters touching without a shared word are reported."""
        grid = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)
        grid._cells[(1, 1)] = Cell("T", word(bank, "AT").word_id, None)

        assert grid.unlinked_contacts() == [((0, 1), (1, 1))]

    def test_restrict_keeps_positions(self, bank, layout):
        """Test a sub-layout keeps the chosen words where they were."""
        car, tea = word(bank, "CAR"), word(bank, "TEA")
        sub = layout.restrict([car.word_id, tea.word_id])

        assert [p.text for p in sub.placed_words] == ["CAR", "TEA"]
        assert sub.placement(tea.word_id) == layout.placement(tea.word_id)
        assert sub.cell((0, 0)) == Cell("C", None, car.word_id)
        assert sub.letter_at((0, 1)) is None
        assert sub.unlinked_contacts() == []

    def test_restrict_rejects_touching_crossings(self):
        """Test dropping the word that links two touching crossings is refused."""
        bank = WordBank.from_texts(["AT", "SEA", "TEN"])
        grid = Grid.from_placements(
            bank,
            [
                (bank.get("AT"), (0, 0), ACROSS),
                (bank.get("SEA"), (-2, 0), DOWN),
                (bank.get("TEN"), (0, 1), DOWN),
            ],
        )

        with pytest.raises(InvalidPlacement) as exc_info:
            grid.restrict([bank.get("SEA").word_id, bank.get("TEN").word_id])
        assert exc_info.value.reason is PlacementFailure.ILLEGAL_ADJACENCY

    def test_merge_offsets(self, bank):
        """Test offsets pair equal letters of perpendicular words."""
        grid = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)
        other = Grid(bank).place(word(bank, "TEA"), (5, 5), DOWN)

        assert grid.merge_offsets(other) == [(-7, -4), (-5, -3)]

    def test_merge_crosses_layouts(self, bank):
        """Test merging at an offset gives the same grid as placing the word."""
        grid = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)
        other = Grid(bank).place(word(bank, "TEA"), (5, 5), DOWN)

        merged = grid.merge(other, (-5, -3))
        assert merged == grid.place(word(bank, "TEA"), (0, 2), DOWN)
        assert merged.intersection_count == 1
        assert other.placement(word(bank, "TEA").word_id).start == (5, 5)

    def test_merge_rejections(self, bank):
        """Test merges breaking a layout rule raise with the matching reason."""
        grid = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)
        cases = [
            (Grid(bank).place(word(bank, "CAT"), (4, 4), ACROSS), PlacementFailure.DUPLICATE_WORD),
            (Grid(bank).place(word(bank, "CAR"), (0, 1), DOWN), PlacementFailure.LETTER_CONFLICT),
            (Grid(bank).place(word(bank, "TEA"), (1, 0), ACROSS), PlacementFailure.ILLEGAL_ADJACENCY),
        ]
        for other, reason in cases:
            with pytest.raises(InvalidPlacement) as exc_info:
                grid.merge(other)
            assert exc_info.value.reason is reason

    def test_merge_other_bank_rejected(self, bank):
        """Test grids over different banks cannot be merged."""
        other_bank = WordBank.from_texts(["DOG"])
        with pytest.raises(ValueError):
            Grid(bank).merge(Grid(other_bank))


class TestCandidatePositions:
    """Test attachment points and candidate positions."""

    def test_empty_grid_has_no_attachment_points(self, bank):
        """Test attachment needs an existing letter."""
        assert Grid(bank).attachment_points(word(bank, "CAT")) == []

    def test_attachment_points_cross_matching_letters(self, bank):
        """Test every point crosses a matching letter perpendicular to it."""
        grid = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)
        points = grid.attachment_points(word(bank, "TEA"))

        assert ((0, 2), DOWN) in points
        assert ((-2, 1), DOWN) in points
        assert all(direction is DOWN for _, direction in points)

    def test_attachment_points_sorted_and_stable(self, bank):
        """Test attachment points come back in the same order every time."""
        grid = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)
        grid = grid.place(word(bank, "CAR"), (0, 0), DOWN)

        first = grid.attachment_points(word(bank, "ART"))
        assert first == grid.attachment_points(word(bank, "ART"))
        assert first == sorted(first, key=lambda p: (p[1].value, p[0]))

    def test_candidate_positions_are_legal(self, bank):
        """Test every candidate position can actually be placed."""
        grid = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)
        grid = grid.place(word(bank, "CAR"), (0, 0), DOWN)

        candidates = list(grid.candidate_positions(word(bank, "ART")))
        assert candidates
        for position, direction in candidates:
            grid.place(word(bank, "ART"), position, direction)

    def test_candidate_positions_exclude_illegal(self, bank):
        """Test attachment points that break adjacency are filtered out."""
        grid = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)
        grid = grid.place(word(bank, "CAR"), (0, 0), DOWN)

        points = set(grid.attachment_points(word(bank, "TEA")))
        candidates = set(grid.candidate_positions(word(bank, "TEA")))
        assert ((0, 2), DOWN) in candidates
        assert candidates <= points

    def test_placed_word_has_no_candidates(self, bank):
        """Test a placed word gets no candidate positions."""
        grid = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)

        assert list(grid.candidate_positions(word(bank, "CAT"))) == []


class TestIntersectionGraph:
    """Test IntersectionGraph and the grid queries built on it."""

    def test_components_of_disconnected_grid(self, bank):
        """Test separate clusters form separate components."""
        grid = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)
        grid = grid.place(word(bank, "CAR"), (0, 0), DOWN)
        grid = grid.place(word(bank, "BEAR"), (10, 10), ACROSS)

        cat, car, bear = (word(bank, t).word_id for t in ("CAT", "CAR", "BEAR"))
        assert grid.connected_components() == [sorted([cat, car]), [bear]]

    def test_cycle_rank(self):
        """Test a square of four words has one independent cycle."""
        graph = IntersectionGraph([0, 1, 2, 3], [(0, 1), (1, 2), (2, 3), (3, 0)])

        assert graph.cycle_rank() == 1
        assert graph.is_connected()
        assert graph.leaves() == []

    def test_tree_has_no_cycles(self):
        """Test a path graph has cycle rank 0 and two leaves."""
        graph = IntersectionGraph([0, 1, 2], [(0, 1), (1, 2)])

        assert graph.cycle_rank() == 0
        assert graph.leaves() == [0, 2]
        assert graph.degree(1) == 2

    def test_dangling_edge_logged(self, caplog):
        """Test an edge to an unknown node is dropped with a warning."""
        with caplog.at_level(logging.WARNING):
            graph = IntersectionGraph([0, 1], [(0, 1), (1, 7)])

        assert graph.num_edges == 1
        assert graph.dangling_edges == [(1, 7)]
        assert "Dangling" in caplog.text

    def test_grid_rebuilds_cells_on_dangling_edge(self, bank, caplog):
        """Test a stray cell referencing an unplaced word is discarded."""
        grid = Grid(bank).place(word(bank, "CAT"), (0, 0), ACROSS)
        grid._cells[(4, 4)] = Cell("Z", 0, 99)

        with caplog.at_level(logging.WARNING):
            graph = grid.intersection_graph()

        assert graph.num_nodes == 1
        assert graph.dangling_edges == []
        assert grid.cell((4, 4)) is None
        assert "rebuilding" in caplog.text
