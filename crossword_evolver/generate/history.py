"""
Generation-by-generation record of a run.

Enables:
- Fitness trajectory for convergence checks and tuning sweeps
- Per-round population statistics
- Saving a run's history as JSON for offline analysis
"""

import json
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, List, Union

import numpy as np

from .mutator import MoveStats
from .scorer import ScoredGrid


@dataclass
class GenerationStats:
    """Statistics for a single round (round 0 is the initial population)."""

    round_number: int
    best_fitness: float
    mean_fitness: float
    min_fitness: float
    std_fitness: float
    best_words_placed: int
    mean_words_placed: float
    best_filled_cells: int
    population_size: int
    unique_layouts: int
    children_produced: int
    moves_applied: int
    moves_failed: int
    crossovers: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class EvolutionHistory:
    """
    Tracks search progress over rounds.

    Records per-round statistics; the best fitness of each round forms the
    fitness trajectory.
    """

    def __init__(self):
        self.rounds: List[GenerationStats] = []
        self.fitness_trajectory: List[float] = []

    def record_round(
        self,
        round_number: int,
        population: List[ScoredGrid],
        children_produced: int = 0,
        move_stats: MoveStats = None,
    ) -> GenerationStats:
        """
        Record statistics for a completed round.

        Args:
            round_number: Round index
            population: Population after selection
            children_produced: Children created this round
            move_stats: Outcome of the random moves made this round

        Returns:
            GenerationStats for this round
        """
        move_stats = move_stats or MoveStats()
        if population:
            fitnesses = np.array([member.fitness for member in population], dtype=float)
            words = np.array([member.grid.num_placed for member in population])
            best = min(population, key=ScoredGrid.rank_key)
        else:
            fitnesses = np.zeros(1)
            words = np.zeros(1, dtype=int)
            best = None

        stats = GenerationStats(
            round_number=round_number,
            best_fitness=float(fitnesses.max()),
            mean_fitness=float(np.mean(fitnesses)),
            min_fitness=float(fitnesses.min()),
            std_fitness=float(np.std(fitnesses)),
            best_words_placed=best.grid.num_placed if best is not None else 0,
            mean_words_placed=float(np.mean(words)),
            best_filled_cells=best.grid.filled_cell_count if best is not None else 0,
            population_size=len(population),
            unique_layouts=len({member.grid.layout_key() for member in population}),
            children_produced=children_produced,
            moves_applied=move_stats.applied,
            moves_failed=move_stats.failed,
            crossovers=move_stats.crossovers,
        )

        self.rounds.append(stats)
        self.fitness_trajectory.append(stats.best_fitness)
        return stats

    def __len__(self) -> int:
        return len(self.rounds)

    @property
    def best_fitness(self) -> float:
        return max(self.fitness_trajectory) if self.fitness_trajectory else 0.0

    def rounds_without_improvement(self, min_improvement: float = 0.0) -> int:
        """
        Consecutive most-recent rounds whose best did not beat the earlier best
        by more than `min_improvement`.
        """
        if not self.fitness_trajectory:
            return 0
        best_so_far = self.fitness_trajectory[0]
        stale = 0
        for fitness in self.fitness_trajectory[1:]:
            if fitness > best_so_far + min_improvement:
                best_so_far = fitness
                stale = 0
            else:
                stale += 1
        return stale

    def should_stop(self, patience: int, min_improvement: float = 0.0) -> bool:
        """
        Check if the search has stalled.

        Args:
            patience: Rounds without improvement before stopping
            min_improvement: Minimum gain that counts as progress

        Returns:
            True if the best fitness has been flat for `patience` rounds
        """
        return self.rounds_without_improvement(min_improvement) >= patience

    def to_dict(self) -> Dict[str, Any]:
        """Convert history to dictionary for serialization."""
        return {
            "rounds": [stats.to_dict() for stats in self.rounds],
            "fitness_trajectory": self.fitness_trajectory,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EvolutionHistory":
        """Restore history from dictionary."""
        history = cls()
        history.rounds = [GenerationStats(**stats) for stats in data.get("rounds", [])]
        history.fitness_trajectory = list(data.get("fitness_trajectory", []))
        return history

    def save(self, path: Union[str, Path]) -> None:
        """Save history to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "EvolutionHistory":
        """Load history from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))
