"""
Word bank: the immutable, indexed list of candidate words for a layout.

Word lists are plain UTF-8 text, one entry per line:

    WORD [| clue [| direction]]

Blank lines and lines starting with "#" are ignored. The word is normalized
(NFC, upper-cased, spaces, hyphens and apostrophes removed) and must then be
at least two letters long. The optional direction tag forces the word across
("across"/"a") or down ("down"/"d"); "either", "any" or an empty field leave
it free.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple, Union

from ..core.constants import Direction
from ..core.exceptions import InputError
from ..utils.unicode_utils import is_alphabetic_unicode, clean_unicode_text, normalize_answer

logger = logging.getLogger(__name__)

MIN_WORD_LENGTH = 2
FIELD_SEPARATOR = "|"

_DIRECTION_TAGS = {
    "across": Direction.ACROSS,
    "a": Direction.ACROSS,
    "down": Direction.DOWN,
    "d": Direction.DOWN,
    "either": None,
    "any": None,
    "": None,
}


class Word(NamedTuple):
    """A candidate word, identified by its position in the bank."""

    word_id: int
    text: str
    clue: str = ""
    direction: Optional[Direction] = None

    def __len__(self) -> int:
        return len(self.text)


class WordBank:
    """
    Ordered, immutable collection of Words.

    Word ids are assigned at construction (0, 1, 2, ...) and never change,
    so grids can refer to words by id alone.
    """

    def __init__(self, entries: Iterable[Tuple[str, str, Optional[Direction]]] = ()):
        """
        Build a bank from (text, clue, direction) entries.

        Texts are normalized; an entry repeating an earlier word is skipped
        with a warning.

        Raises:
            InputError: If a text is not a valid answer
        """
        words: List[Word] = []
        by_text: Dict[str, Word] = {}
        for text, clue, direction in entries:
            normalized = validate_answer(text)
            if normalized in by_text:
                logger.warning(f"Duplicate word {normalized!r} skipped")
                continue
            word = Word(len(words), normalized, clue or "", direction)
            words.append(word)
            by_text[normalized] = word

        self._words: Tuple[Word, ...] = tuple(words)
        self._by_text = by_text

    @classmethod
    def from_texts(cls, texts: Iterable[str]) -> "WordBank":
        """Bank of clue-less, direction-free words."""
        return cls((text, "", None) for text in texts)

    @classmethod
    def from_lines(cls, lines: Iterable[str], source: Optional[str] = None) -> "WordBank":
        """
        Parse word-list lines.

        Args:
            lines: Lines in the word-list format
            source: Name used in error messages (usually the file path)

        Raises:
            InputError: On the first malformed entry, with its line number
        """
        entries = []
        for line_number, line in enumerate(lines, 1):
            entry = parse_word_line(line, line_number, source)
            if entry is not None:
                entries.append(entry)
        return cls(entries)

    def __len__(self) -> int:
        return len(self._words)

    def __iter__(self) -> Iterator[Word]:
        return iter(self._words)

    def __getitem__(self, word_id: int) -> Word:
        return self._words[word_id]

    def __contains__(self, word: Word) -> bool:
        return 0 <= word.word_id < len(self._words) and self._words[word.word_id] == word

    def __eq__(self, other) -> bool:
        return isinstance(other, WordBank) and self._words == other._words

    def __hash__(self) -> int:
        return hash(self._words)

    def __repr__(self) -> str:
        return f"WordBank({len(self._words)} words)"

    def get(self, text: str) -> Optional[Word]:
        """Look a word up by its (raw or normalized) text."""
        return self._by_text.get(normalize_answer(text))

    @property
    def words(self) -> Tuple[Word, ...]:
        return self._words

    @property
    def texts(self) -> List[str]:
        return [word.text for word in self._words]


def validate_answer(
    text: str, line_number: Optional[int] = None, source: Optional[str] = None
) -> str:
    """
    Normalize an answer and check it can be placed.

    Returns:
        The normalized answer

    Raises:
        InputError: Empty, too short or containing non-letters
    """
    normalized = normalize_answer(text)
    if not normalized:
        raise InputError("empty word", line_number, "word", source)
    if not is_alphabetic_unicode(normalized):
        raise InputError(
            f"word {text!r} contains characters other than letters",
            line_number,
            "word",
            source,
        )
    if len(normalized) < MIN_WORD_LENGTH:
        raise InputError(
            f"word {text!r} is shorter than {MIN_WORD_LENGTH} letters",
            line_number,
            "word",
            source,
        )
    return normalized


def parse_direction(
    tag: str, line_number: Optional[int] = None, source: Optional[str] = None
) -> Optional[Direction]:
    """Map a direction tag to a Direction (None means either)."""
    key = tag.strip().lower()
    if key not in _DIRECTION_TAGS:
        raise InputError(
            f"unknown direction {tag!r} (expected across, down or either)",
            line_number,
            "direction",
            source,
        )
    return _DIRECTION_TAGS[key]


def parse_word_line(
    line: str, line_number: int, source: Optional[str] = None
) -> Optional[Tuple[str, str, Optional[Direction]]]:
    """
    Parse one word-list line.

    Args:
        line: Raw line text
        line_number: 1-based line number for error messages
        source: File name for error messages

    Returns:
        (word, clue, direction), or None for blank and comment lines

    Raises:
        InputError: Malformed entry
    """
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return None

    fields = stripped.split(FIELD_SEPARATOR)
    if len(fields) > 3:
        raise InputError(
            f"expected at most 3 '{FIELD_SEPARATOR}'-separated fields, got {len(fields)}",
            line_number,
            None,
            source,
        )

    word = validate_answer(fields[0], line_number, source)
    clue = (clean_unicode_text(fields[1]) or "") if len(fields) > 1 else ""
    direction = parse_direction(fields[2], line_number, source) if len(fields) > 2 else None
    return word, clue, direction


def load_word_list(path: Union[str, Path]) -> WordBank:
    """
    Load a word list file into a WordBank.

    Args:
        path: UTF-8 text file in the word-list format

    Returns:
        WordBank with words in file order

    Raises:
        InputError: On the first malformed line
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        bank = WordBank.from_lines(f, source=str(path))
    logger.info(f"Loaded {len(bank)} words from {path}")
    return bank
