"""
Unicode-aware text helpers for word-list processing.

Answers may come from any script, so letter checks use Unicode categories
instead of str.isalpha().
"""

import re
import unicodedata
from typing import Optional

# separators allowed inside multi-word answers, dropped before placement
_ANSWER_SEPARATORS = re.compile(r"[\s\-'’]+")


def is_alphabetic_unicode(text: str) -> bool:
    """
    Check if text contains only Unicode letters (any script).

    Combining marks (categories Mc/Mn) are accepted since some scripts spell
    vowel signs and diacritics with them.

    Args:
        text: Text to check

    Returns:
        True if text is non-empty and made only of letters and combining marks
    """
    if not text:
        return False

    for char in text:
        category = unicodedata.category(char)
        if not (category.startswith("L") or category in ("Mc", "Mn")):
            return False

    return True


def clean_unicode_text(text: Optional[str]) -> Optional[str]:
    """
    NFC-normalize and strip text.

    Args:
        text: Input text to clean

    Returns:
        Cleaned text or None if nothing is left
    """
    if not text or not isinstance(text, str):
        return None

    cleaned = unicodedata.normalize("NFC", text.strip())
    return cleaned if cleaned else None


def normalize_answer(text: Optional[str]) -> str:
    """
    Turn a raw answer into the letter sequence placed in the grid.

    "Ice-cream" and "ice cream" both become "ICECREAM"; the result is
    upper-cased and NFC-normalized. Returns "" for empty input.
    """
    cleaned = clean_unicode_text(text)
    if cleaned is None:
        return ""
    return _ANSWER_SEPARATORS.sub("", cleaned).upper()
