"""
Crossword-Evolver: genetic-algorithm crossword grid layout.

Arranges a list of words into a free-form crossword grid so that words cross
at shared letters, searching for dense, well-connected, compact layouts.

Main Components:
- core: Shared constants, exceptions and the renderer-facing puzzle types
- generate: Word bank, grid/placement engine, scorer, mutator and the
  generation manager that drives the search
- utils: Configuration loading, logging setup and text normalization

Quick Start:
    from crossword_evolver.generate import GenerationManager, WordBank
    from crossword_evolver.utils import GeneratorSettings

    bank = WordBank.from_texts(["CAT", "CAR", "ART", "TEA"])
    result = GenerationManager(bank, GeneratorSettings(seed=7)).run()
    puzzle = result.to_puzzle("example")
"""

__version__ = "0.3.0"
