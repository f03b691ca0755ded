"""
Layout scoring.

A grid's score is a weighted sum of six dimensionless terms:

    - non_square      1 - min(rows, cols) / max(rows, cols)      (penalty)
    + prop_filled     letter cells / bounding-box area
    + prop_intersect  share of placed words crossing at least one other word
    + num_cycles      independent cycles of the intersection graph / bank size
    + num_intersect   intersection cells / bank size
    + words_placed    placed words / bank size

Counts are divided by the (fixed) word-bank size rather than by anything that
changes with the layout, so adding a word that creates a new intersection
never lowers the intersection terms. Every term is 0 for an empty grid.

Scoring is a pure function of the grid and the weights.
"""

import math
from dataclasses import dataclass, fields
from typing import Any, Dict, List, NamedTuple

from ..core.exceptions import ConfigurationError
from .grid import Grid

# (term, sign) in evaluation order
TERMS = (
    ("non_square", -1.0),
    ("prop_filled", 1.0),
    ("prop_intersect", 1.0),
    ("num_cycles", 1.0),
    ("num_intersect", 1.0),
    ("words_placed", 1.0),
)


@dataclass(frozen=True)
class ScoreWeights:
    """Non-negative weight per scoring term."""

    non_square: float = 2.0
    prop_filled: float = 10.0
    prop_intersect: float = 500.0
    num_cycles: float = 1000.0
    num_intersect: float = 100.0
    words_placed: float = 10.0

    def __post_init__(self):
        for weight in fields(self):
            value = getattr(self, weight.name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(
                    f"weight {weight.name} must be a number, got {value!r}",
                    key=f"weight_{weight.name}",
                    value=value,
                )
            if not math.isfinite(value) or value < 0:
                raise ConfigurationError(
                    f"weight {weight.name} must be a finite non-negative number, got {value!r}",
                    key=f"weight_{weight.name}",
                    value=value,
                )

    @classmethod
    def from_settings(cls, settings) -> "ScoreWeights":
        """Weights taken from a GeneratorSettings instance."""
        return cls(**settings.score_weight_values())

    def as_dict(self) -> Dict[str, float]:
        return {weight.name: float(getattr(self, weight.name)) for weight in fields(self)}


class ScoreTerm(NamedTuple):
    """One term of a score: raw metric, weight and signed contribution."""

    name: str
    raw: float
    weight: float
    weighted: float


@dataclass(frozen=True)
class ScoreBreakdown:
    """Per-term view of a grid's score."""

    terms: tuple
    total: float

    def term(self, name: str) -> ScoreTerm:
        for term in self.terms:
            if term.name == name:
                return term
        raise KeyError(name)

    def raw_values(self) -> Dict[str, float]:
        return {term.name: term.raw for term in self.terms}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "terms": {
                term.name: {"raw": term.raw, "weight": term.weight, "weighted": term.weighted}
                for term in self.terms
            },
        }


@dataclass(frozen=True)
class ScoredGrid:
    """A population member: grid, its score, and when it was first produced."""

    grid: Grid
    breakdown: ScoreBreakdown
    discovery_index: int

    @property
    def fitness(self) -> float:
        return self.breakdown.total

    def rank_key(self):
        """Higher score first, then fewer letter cells, then earlier discovery."""
        return (-self.fitness, self.grid.filled_cell_count, self.discovery_index)


def compute_metrics(grid: Grid) -> Dict[str, float]:
    """
    Raw (unweighted) value of every scoring term.

    Args:
        grid: Layout to measure

    Returns:
        Mapping term name -> raw value, all 0.0 for an empty grid
    """
    metrics = {name: 0.0 for name, _ in TERMS}
    placed = grid.num_placed
    bank_size = len(grid.word_bank)
    if placed == 0 or bank_size == 0:
        return metrics

    rows, cols = grid.dimensions
    graph = grid.intersection_graph()
    crossing_words = sum(1 for node in graph.nodes if graph.degree(node) > 0)

    metrics["non_square"] = 1.0 - min(rows, cols) / max(rows, cols)
    metrics["prop_filled"] = grid.filled_cell_count / (rows * cols)
    metrics["prop_intersect"] = crossing_words / placed
    metrics["num_cycles"] = graph.cycle_rank() / bank_size
    metrics["num_intersect"] = grid.intersection_count / bank_size
    metrics["words_placed"] = placed / bank_size
    return metrics


def score_breakdown(grid: Grid, weights: ScoreWeights) -> ScoreBreakdown:
    """Score a grid and keep every term's contribution."""
    metrics = compute_metrics(grid)
    weight_values = weights.as_dict()
    terms: List[ScoreTerm] = []
    for name, sign in TERMS:
        raw = metrics[name]
        weight = weight_values[name]
        terms.append(ScoreTerm(name, raw, weight, sign * weight * raw))
    total = sum(term.weighted for term in terms)
    return ScoreBreakdown(tuple(terms), total)


def score(grid: Grid, weights: ScoreWeights) -> float:
    """Weighted score of a grid; higher is better."""
    return score_breakdown(grid, weights).total
