"""
Crossword Layout Generation Module

Lays out a bank of words as a free-form crossword using a genetic algorithm
over immutable grids.

Architecture:
- word_bank: Word / WordBank types and the word-list file format
- grid: Grid and PlacedWord, the placement engine and its legality rules
- graph: IntersectionGraph (components, leaves, cycle rank)
- scorer: Weighted multi-term layout score
- mutator: Random add/remove moves driven by an explicit numpy Generator
- recombination: Partition along the intersection graph and crossover
- history: Per-round statistics and the fitness trajectory
- generation_manager: Population loop, selection and termination
- puzzle_visualisation: Text and JSON views of the exported puzzle
"""

from .word_bank import Word, WordBank, load_word_list
from .grid import Cell, Grid, PlacedWord
from .graph import IntersectionGraph
from .scorer import ScoreWeights, ScoreBreakdown, ScoredGrid, score, score_breakdown
from .mutator import Move, AddWord, RemoveWord, MoveStats, random_move, apply_random_moves
from .recombination import crossover, random_partition
from .history import EvolutionHistory, GenerationStats
from .generation_manager import (
    GenerationManager,
    GenerationResult,
    GenerationState,
    grid_to_puzzle,
)


__all__ = [
    "Word",
    "WordBank",
    "load_word_list",
    "Cell",
    "Grid",
    "PlacedWord",
    "IntersectionGraph",
    "ScoreWeights",
    "ScoreBreakdown",
    "ScoredGrid",
    "score",
    "score_breakdown",
    "Move",
    "AddWord",
    "RemoveWord",
    "MoveStats",
    "random_move",
    "apply_random_moves",
    "crossover",
    "random_partition",
    "EvolutionHistory",
    "GenerationStats",
    "GenerationManager",
    "GenerationResult",
    "GenerationState",
    "grid_to_puzzle",
]
