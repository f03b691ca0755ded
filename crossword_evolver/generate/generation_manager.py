"""
Genetic-algorithm driver for crossword layouts.

Each run keeps a fixed-size population of grids and repeats rounds of:

1. Evolving: draw parents with probability proportional to their (shifted)
   score; breed a share of the children by crossover with a second parent,
   apply a burst of random moves to every child and score it.
2. Selecting: merge parents and children, drop duplicate layouts, rank by
   score (ties: fewer letter cells, then earlier discovery) and keep the top
   num_per_gen.

The run stops when the best score has been flat for `patience` rounds
(CONVERGED), when max_rounds is reached (ROUND_LIMIT_REACHED), or when the
caller asks it to between rounds (CANCELLED).

Every random draw comes from a numpy Generator derived from the run seed and
a fixed key (round, stream, index), so a run is reproducible and produces
the same result whether children are built in-process or on a worker pool.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from multiprocessing import Pool
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np

from ..core.base_puzzle import CrosswordPuzzle, CrosswordClue
from ..core.constants import Direction
from ..utils.config_loader import GeneratorSettings
from .grid import Grid, EMPTY_MARK, Position
from .history import EvolutionHistory
from .mutator import MoveStats, apply_random_moves
from .recombination import crossover
from .scorer import ScoreBreakdown, ScoredGrid, ScoreWeights, score_breakdown
from .word_bank import WordBank

logger = logging.getLogger(__name__)

# random stream identifiers, second element of every spawn key
_STREAM_INIT = 0
_STREAM_SELECTION = 1
_STREAM_CHILD = 2

# share of the mean shifted fitness given to every member, so the weakest
# member can still be drawn as a parent
_SELECTION_FLOOR = 0.1


class GenerationState(Enum):
    """Lifecycle of a generation run."""

    INITIALIZING = "initializing"
    EVALUATING = "evaluating"
    EVOLVING = "evolving"
    SELECTING = "selecting"
    CONVERGED = "converged"
    ROUND_LIMIT_REACHED = "round_limit_reached"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (
            GenerationState.CONVERGED,
            GenerationState.ROUND_LIMIT_REACHED,
            GenerationState.CANCELLED,
        )


def spawn_rng(seed: int, *key: int) -> np.random.Generator:
    """Independent, reproducible random stream for `key` under the run seed."""
    return np.random.default_rng(np.random.SeedSequence(seed, spawn_key=key))


def selection_probabilities(fitness: np.ndarray) -> np.ndarray:
    """
    Fitness-proportional parent probabilities.

    Scores can be negative, so they are shifted to start at 0 and a small
    floor is added; an all-equal population is sampled uniformly.
    """
    shifted = fitness - fitness.min()
    if not np.any(shifted > 0):
        return np.full(len(fitness), 1.0 / len(fitness))
    shifted = shifted + shifted.mean() * _SELECTION_FLOOR
    return shifted / shifted.sum()


@dataclass
class GenerationResult:
    """Results from a generation run."""

    best: ScoredGrid
    final_state: GenerationState
    rounds_completed: int
    history: EvolutionHistory
    final_population: List[ScoredGrid]
    runtime_seconds: float
    stop_reason: str
    settings: GeneratorSettings

    @property
    def best_grid(self) -> Grid:
        return self.best.grid

    @property
    def best_fitness(self) -> float:
        return self.best.fitness

    @property
    def score_breakdown(self) -> ScoreBreakdown:
        return self.best.breakdown

    @property
    def fitness_trace(self) -> List[float]:
        return list(self.history.fitness_trajectory)

    def to_puzzle(self, puzzle_id: str = "crossword") -> CrosswordPuzzle:
        """Renderer-facing puzzle for the best grid."""
        return grid_to_puzzle(self.best.grid, self.best.breakdown, puzzle_id)

    def summary(self) -> str:
        """Generate summary string."""
        grid = self.best.grid
        rows, cols = grid.dimensions
        return "\n".join(
            [
                f"Final state: {self.final_state.value} ({self.stop_reason})",
                f"Rounds: {self.rounds_completed}",
                f"Best fitness: {self.best_fitness:.4f}",
                f"Words placed: {grid.num_placed}/{len(grid.word_bank)}",
                f"Grid size: {rows}x{cols}",
                f"Intersections: {grid.intersection_count}",
                f"Runtime: {self.runtime_seconds:.2f}s",
            ]
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "final_state": self.final_state.value,
            "stop_reason": self.stop_reason,
            "rounds_completed": self.rounds_completed,
            "best_fitness": self.best_fitness,
            "score_breakdown": self.best.breakdown.to_dict(),
            "layout": self.best.grid.cell_rows(),
            "history": self.history.to_dict(),
            "runtime_seconds": self.runtime_seconds,
            "settings": self.settings.to_dict(),
        }


def _mutate_worker(args: tuple) -> Tuple[Grid, MoveStats]:
    """
    Apply a burst of random moves to a grid.

    Module-level so it can be pickled for multiprocessing.
    """
    grid, seed, key, num_moves, add_weight, remove_weight = args
    rng = spawn_rng(seed, *key)
    return apply_random_moves(grid, grid.word_bank, rng, num_moves, add_weight, remove_weight)


def _child_worker(args: tuple) -> Tuple[Grid, ScoreBreakdown, MoveStats]:
    """
    Breed one child and score it.

    With a mate the parent is first recombined with it; the child then gets
    the usual burst of random moves. Crossover and moves draw from the same
    child stream.
    """
    weights, grid, mate, seed, key, num_moves, add_weight, remove_weight = args
    rng = spawn_rng(seed, *key)

    stats = MoveStats()
    if mate is not None:
        offspring = crossover(grid, mate, rng)
        if offspring is not None:
            grid = offspring
            stats.crossovers += 1

    child, move_stats = apply_random_moves(
        grid, grid.word_bank, rng, num_moves, add_weight, remove_weight
    )
    return child, score_breakdown(child, weights), stats.merge(move_stats)


class GenerationManager:
    """
    Runs the genetic search for one word bank.

    Args:
        word_bank: Words to lay out
        settings: Run options; validated before anything else happens
        seed_grid: Optional starting layout for every initial member
        should_stop: Optional callable polled between rounds; returning
            True cancels the run
    """

    def __init__(
        self,
        word_bank: WordBank,
        settings: Optional[GeneratorSettings] = None,
        seed_grid: Optional[Grid] = None,
        should_stop: Optional[Callable[[], bool]] = None,
    ):
        self.word_bank = word_bank
        self.settings = (settings or GeneratorSettings()).validate()
        self.weights = ScoreWeights.from_settings(self.settings)

        if seed_grid is not None and seed_grid.word_bank != word_bank:
            raise ValueError("seed_grid must be built from the same word bank")
        self.seed_grid = seed_grid
        self.should_stop = should_stop

        self.state = GenerationState.INITIALIZING
        self.round_number = 0
        self.population: List[ScoredGrid] = []
        self.history = EvolutionHistory()
        self._discovered = 0

        logger.info(
            f"Initialized GenerationManager: {len(word_bank)} words, "
            f"population {self.settings.num_per_gen}, "
            f"{self.settings.num_children} children/round, seed {self.settings.seed}"
        )

    def run(self) -> GenerationResult:
        """
        Run the search to completion.

        Returns:
            GenerationResult with the best grid found and the run history
        """
        if self.settings.n_workers > 1:
            with Pool(self.settings.n_workers) as pool:
                return self._run(pool.map)
        return self._run(lambda worker, jobs: [worker(job) for job in jobs])

    def _run(self, mapper) -> GenerationResult:
        start_time = time.time()
        settings = self.settings

        self.state = GenerationState.INITIALIZING
        initial, move_stats = self._initialize(mapper)

        self.state = GenerationState.EVALUATING
        scored = [self._discover(grid, score_breakdown(grid, self.weights)) for grid in initial]
        self.population = self._select(scored)
        self.history.record_round(0, self.population, 0, move_stats)

        while True:
            stop = self._check_termination(start_time)
            if stop is not None:
                final_state, stop_reason = stop
                break

            self.round_number += 1
            self.state = GenerationState.EVOLVING
            children, move_stats = self._evolve(mapper)

            self.state = GenerationState.SELECTING
            self.population = self._select(self.population + children)
            stats = self.history.record_round(
                self.round_number, self.population, len(children), move_stats
            )
            logger.debug(
                f"Round {self.round_number}: best={stats.best_fitness:.3f}, "
                f"mean={stats.mean_fitness:.3f}, words={stats.best_words_placed}, "
                f"unique={stats.unique_layouts}/{stats.population_size}, "
                f"crossovers={stats.crossovers}"
            )

        self.state = final_state
        runtime = time.time() - start_time
        best = self.population[0]

        logger.info(
            f"Generation finished ({final_state.value}, {stop_reason}) after "
            f"{self.round_number} rounds: fitness={best.fitness:.3f}, "
            f"words={best.grid.num_placed}/{len(self.word_bank)}"
        )
        logger.debug(f"Best layout:\n{best.grid.to_text()}")

        return GenerationResult(
            best=best,
            final_state=final_state,
            rounds_completed=self.round_number,
            history=self.history,
            final_population=list(self.population),
            runtime_seconds=runtime,
            stop_reason=stop_reason,
            settings=settings,
        )

    def _initialize(self, mapper) -> Tuple[List[Grid], MoveStats]:
        """Initial grids: the seed grid (or an empty one) plus random moves."""
        settings = self.settings
        base = self.seed_grid
        if base is None:
            base = Grid(self.word_bank, settings.max_rows, settings.max_cols)

        jobs = [
            (
                base,
                settings.seed,
                (0, _STREAM_INIT, index),
                settings.effective_initial_moves,
                settings.add_move_weight,
                settings.remove_move_weight,
            )
            for index in range(settings.num_per_gen)
        ]
        results = mapper(_mutate_worker, jobs)

        move_stats = MoveStats()
        grids = []
        for grid, stats in results:
            grids.append(grid)
            move_stats = move_stats.merge(stats)
        logger.info(f"Initialized population with {len(grids)} candidates")
        return grids, move_stats

    def _evolve(self, mapper) -> Tuple[List[ScoredGrid], MoveStats]:
        """Produce and score this round's children."""
        settings = self.settings
        if settings.num_children == 0:
            return [], MoveStats()

        # every parent draw happens here, so workers only see fixed inputs
        rng = spawn_rng(settings.seed, self.round_number, _STREAM_SELECTION)
        fitness = np.array([member.fitness for member in self.population], dtype=float)
        probabilities = selection_probabilities(fitness)
        size = len(self.population)
        parents = rng.choice(size, size=settings.num_children, p=probabilities)
        mates = rng.choice(size, size=settings.num_children, p=probabilities)
        recombine = rng.random(settings.num_children) < settings.crossover_rate

        jobs = [
            (
                self.weights,
                self.population[parent].grid,
                self.population[mate].grid if bred else None,
                settings.seed,
                (self.round_number, _STREAM_CHILD, child_index),
                settings.moves_between_scores,
                settings.add_move_weight,
                settings.remove_move_weight,
            )
            for child_index, (parent, mate, bred) in enumerate(zip(parents, mates, recombine))
        ]
        results = mapper(_child_worker, jobs)

        move_stats = MoveStats()
        children = []
        for grid, breakdown, stats in results:
            children.append(self._discover(grid, breakdown))
            move_stats = move_stats.merge(stats)
        return children, move_stats

    def _discover(self, grid: Grid, breakdown: ScoreBreakdown) -> ScoredGrid:
        member = ScoredGrid(grid, breakdown, self._discovered)
        self._discovered += 1
        return member

    def _select(self, candidates: List[ScoredGrid]) -> List[ScoredGrid]:
        """
        Keep the best num_per_gen candidates.

        Duplicate layouts only fill the population when there are not
        enough distinct ones.
        """
        unique = []
        duplicates = []
        seen = set()
        for member in sorted(candidates, key=ScoredGrid.rank_key):
            key = member.grid.layout_key()
            if key in seen:
                duplicates.append(member)
            else:
                seen.add(key)
                unique.append(member)
        return (unique + duplicates)[: self.settings.num_per_gen]

    def _check_termination(
        self, start_time: float
    ) -> Optional[Tuple[GenerationState, str]]:
        """Terminal state and reason if the run should stop now, else None."""
        settings = self.settings
        if self.round_number >= settings.max_rounds:
            return (
                GenerationState.ROUND_LIMIT_REACHED,
                f"reached max_rounds={settings.max_rounds}",
            )
        if self.round_number >= settings.min_rounds and self.history.should_stop(
            settings.patience, settings.min_improvement
        ):
            return (
                GenerationState.CONVERGED,
                f"no improvement > {settings.min_improvement} in {settings.patience} rounds",
            )
        if self.should_stop is not None and self.should_stop():
            return GenerationState.CANCELLED, "stop requested"
        if settings.timeout_seconds and time.time() - start_time >= settings.timeout_seconds:
            return (
                GenerationState.CANCELLED,
                f"timeout after {settings.timeout_seconds}s",
            )
        return None


def assign_clue_numbers(grid: Grid) -> Dict[Position, int]:
    """Number word start cells in reading order; words sharing a start share a number."""
    starts = sorted({placed.start for placed in grid.placed_words})
    return {start: number for number, start in enumerate(starts, 1)}


def grid_to_puzzle(
    grid: Grid,
    breakdown: Optional[ScoreBreakdown] = None,
    puzzle_id: str = "crossword",
) -> CrosswordPuzzle:
    """
    Convert a Grid to a CrosswordPuzzle.

    Coordinates are shifted so the bounding rectangle starts at (0, 0).

    Args:
        grid: Layout to export
        breakdown: Score breakdown to attach (optional)
        puzzle_id: Identifier for the puzzle

    Returns:
        CrosswordPuzzle with numbered clues, solution and blank grid
    """
    rows, cols = grid.dimensions
    bounds = grid.bounds
    min_row, min_col = (bounds[0], bounds[1]) if bounds is not None else (0, 0)
    numbers = assign_clue_numbers(grid)

    crossword_clues = []
    solution_words = {}
    for placed in grid.placed_words:
        number = numbers[placed.start]
        crossword_clues.append(
            CrosswordClue(
                number=number,
                direction=placed.direction.value,
                length=placed.length,
                clue_text=placed.word.clue,
                start_row=placed.row - min_row,
                start_col=placed.col - min_col,
                answer=placed.text,
            )
        )
        solution_words[f"{number}{placed.direction.value}"] = placed.text

    direction_order = {Direction.ACROSS.value: 0, Direction.DOWN.value: 1}
    crossword_clues.sort(key=lambda clue: (clue.number, direction_order[clue.direction]))

    solution_grid = grid.cell_rows()

    puzzle_grid = np.full((rows, cols), EMPTY_MARK, dtype=object)
    for r, row in enumerate(solution_grid):
        for c, letter in enumerate(row):
            if letter != EMPTY_MARK:
                puzzle_grid[r][c] = "_"
    for (row, col), number in numbers.items():
        puzzle_grid[row - min_row][col - min_col] = number

    return CrosswordPuzzle(
        puzzle_id=puzzle_id,
        grid=puzzle_grid,
        clues=crossword_clues,
        size=(rows, cols),
        solution_grid=solution_grid,
        solution_words=solution_words,
        score_breakdown=breakdown.to_dict() if breakdown is not None else {},
        unplaced_words=[word.text for word in grid.unplaced_words()],
    )
