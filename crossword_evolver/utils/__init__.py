"""
Utilities package for crossword-evolver.

This package provides configuration management, logging setup and
Unicode-aware text helpers.
"""

from .unicode_utils import is_alphabetic_unicode, clean_unicode_text, normalize_answer
from .config_loader import ConfigLoader, GeneratorSettings, load_settings
from .logging_setup import setup_logging

__all__ = [
    "is_alphabetic_unicode",
    "clean_unicode_text",
    "normalize_answer",
    "ConfigLoader",
    "GeneratorSettings",
    "load_settings",
    "setup_logging",
]
