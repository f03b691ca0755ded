"""
Configuration management for crossword layout generation.

Generator options live in a flat `key = value` text file (crossword_config.txt
by default) and can be overridden per run from code. Every option has a
documented default, so a missing file is not an error; a malformed line, an
unknown key or an out-of-range value is, and it is reported before any
generation work starts.

Architecture:
- GeneratorSettings: validated, explicit option set passed to the generator
- ConfigLoader: reads and type-parses the text file, builds GeneratorSettings
- load_settings(): one-call helper combining a file with overrides

There is no process-wide configuration object; callers thread a
GeneratorSettings instance through explicitly.
"""

import logging
import math
from dataclasses import dataclass, asdict, fields, replace
from pathlib import Path
from typing import Dict, Any, Mapping, Optional, Union

from ..core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

__all__ = ["ConfigLoader", "GeneratorSettings", "load_settings", "DEFAULT_CONFIG_FILE"]

DEFAULT_CONFIG_FILE = "crossword_config.txt"

# options that must be at least 1 rather than at least 0
_POSITIVE_OPTIONS = ("num_per_gen", "patience", "n_workers")


def normalize_key(key: str) -> str:
    """Config keys are case-insensitive and treat '-' like '_'."""
    return key.strip().lower().replace("-", "_")


@dataclass(frozen=True)
class GeneratorSettings:
    """
    Every tunable option of a generation run.

    Population and termination:
        num_per_gen: Population size kept after each selection
        num_children: Children produced per round
        moves_between_scores: Random moves applied to a parent to make a child
        initial_moves: Moves applied to each initial grid (0 = moves_between_scores)
        max_rounds: Hard cap on evolution rounds
        patience: Rounds without improvement before convergence
        min_rounds: Rounds always run before convergence may trigger
        min_improvement: Best-score gain that counts as an improvement
        timeout_seconds: Wall-clock limit checked between rounds (0 = none)

    Mutation and recombination:
        add_move_weight / remove_move_weight: Relative odds of each move type
        crossover_rate: Share of children bred from two parents before mutation
        max_rows / max_cols: Grid size limits (0 = unlimited)

    Execution:
        seed: Root seed of every random stream in the run
        n_workers: Processes used to produce children (1 = in-process)

    Scoring weights (non-negative):
        weight_non_square, weight_prop_filled, weight_prop_intersect,
        weight_num_cycles, weight_num_intersect, weight_words_placed
    """

    num_per_gen: int = 15
    num_children: int = 15
    moves_between_scores: int = 4
    initial_moves: int = 0
    max_rounds: int = 20
    patience: int = 5
    min_rounds: int = 0
    min_improvement: float = 0.0
    timeout_seconds: float = 0.0
    add_move_weight: float = 3.0
    remove_move_weight: float = 1.0
    crossover_rate: float = 0.2
    max_rows: int = 0
    max_cols: int = 0
    seed: int = 13
    n_workers: int = 1
    weight_non_square: float = 2.0
    weight_prop_filled: float = 10.0
    weight_prop_intersect: float = 500.0
    weight_num_cycles: float = 1000.0
    weight_num_intersect: float = 100.0
    weight_words_placed: float = 10.0

    def __post_init__(self):
        self.validate()

    def validate(self) -> "GeneratorSettings":
        """
        Check every option's type and range.

        Returns:
            self, so calls can be chained

        Raises:
            ConfigurationError: On the first invalid option
        """
        for option in fields(self):
            value = getattr(self, option.name)
            if option.type is int:
                if isinstance(value, bool) or not isinstance(value, int):
                    raise ConfigurationError(
                        f"{option.name} must be an integer, got {value!r}",
                        key=option.name,
                        value=value,
                    )
            elif isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(
                    f"{option.name} must be a number, got {value!r}",
                    key=option.name,
                    value=value,
                )
            elif not math.isfinite(value):
                raise ConfigurationError(
                    f"{option.name} must be finite, got {value!r}",
                    key=option.name,
                    value=value,
                )

            minimum = 1 if option.name in _POSITIVE_OPTIONS else 0
            if value < minimum:
                raise ConfigurationError(
                    f"{option.name} must be >= {minimum}, got {value!r}",
                    key=option.name,
                    value=value,
                )

        if self.add_move_weight + self.remove_move_weight <= 0:
            raise ConfigurationError(
                "add_move_weight and remove_move_weight cannot both be 0",
                key="add_move_weight",
                value=self.add_move_weight,
            )
        if self.crossover_rate > 1:
            raise ConfigurationError(
                f"crossover_rate must be <= 1, got {self.crossover_rate!r}",
                key="crossover_rate",
                value=self.crossover_rate,
            )
        return self

    @property
    def effective_initial_moves(self) -> int:
        return self.initial_moves or self.moves_between_scores

    def score_weight_values(self) -> Dict[str, float]:
        """Scoring weights keyed by term name (without the weight_ prefix)."""
        return {
            option.name[len("weight_"):]: float(getattr(self, option.name))
            for option in fields(self)
            if option.name.startswith("weight_")
        }

    def with_overrides(self, **overrides) -> "GeneratorSettings":
        """Return a validated copy with some options replaced."""
        return GeneratorSettings.from_mapping(overrides, base=self)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(
        cls,
        values: Mapping[str, Any],
        base: Optional["GeneratorSettings"] = None,
        line_numbers: Optional[Mapping[str, int]] = None,
    ) -> "GeneratorSettings":
        """
        Build settings from loosely-typed key/value pairs.

        Args:
            values: Option values; keys are normalized, numeric strings parsed
            base: Settings to start from (defaults when None)
            line_numbers: Source line per normalized key, for error messages

        Returns:
            Validated GeneratorSettings

        Raises:
            ConfigurationError: Unknown key or invalid value
        """
        line_numbers = line_numbers or {}
        known = {option.name: option.type for option in fields(cls)}
        updates = {}

        for raw_key, raw_value in values.items():
            key = normalize_key(raw_key)
            line_number = line_numbers.get(key)
            if key not in known:
                raise ConfigurationError(
                    f"unknown option '{raw_key}'",
                    key=raw_key,
                    value=raw_value,
                    line_number=line_number,
                )
            updates[key] = _coerce(key, raw_value, known[key], line_number)

        try:
            return replace(base or cls(), **updates)
        except ConfigurationError as e:
            if e.line_number is None and e.key in line_numbers:
                raise ConfigurationError(
                    str(e), key=e.key, value=e.value, line_number=line_numbers[e.key]
                ) from e
            raise


def _coerce(key: str, value: Any, target: type, line_number: Optional[int]):
    """Convert a raw option value to the option's declared type."""
    if isinstance(value, str):
        text = value.strip()
        try:
            value = float(text) if target is float else int(text)
        except ValueError:
            try:
                # "4.0" is an acceptable spelling of an integer option
                as_float = float(text)
            except ValueError:
                raise ConfigurationError(
                    f"{key} expects a number, got {value!r}",
                    key=key,
                    value=value,
                    line_number=line_number,
                ) from None
            value = as_float

    if target is int and isinstance(value, float):
        if not value.is_integer():
            raise ConfigurationError(
                f"{key} expects an integer, got {value!r}",
                key=key,
                value=value,
                line_number=line_number,
            )
        value = int(value)
    elif target is float and isinstance(value, int) and not isinstance(value, bool):
        value = float(value)
    return value


class ConfigLoader:
    """
    Loads generator options from a key=value configuration file.

    Provides type-safe access to raw values and builds validated
    GeneratorSettings from them.
    """

    def __init__(self, config_file: Optional[Union[str, Path]] = DEFAULT_CONFIG_FILE):
        """
        Initialize configuration loader.

        Args:
            config_file: Path to the configuration file. The default file name
                is looked up from the working directory and the package's
                parent directories and may be absent; an explicitly named
                file must exist. None loads no file at all.

        Raises:
            ConfigurationError: Explicit file missing, or a malformed line
        """
        self.config_file = config_file
        self.config_path: Optional[Path] = None
        self.config: Dict[str, Any] = {}
        self.line_numbers: Dict[str, int] = {}
        self._load_config()

    def _find_config(self) -> Optional[Path]:
        requested = Path(self.config_file)
        if requested.exists():
            return requested
        if str(self.config_file) != DEFAULT_CONFIG_FILE:
            raise ConfigurationError(f"config file {self.config_file} not found")

        current_path = Path(__file__).parent
        for _ in range(5):
            potential_path = current_path / self.config_file
            if potential_path.exists():
                return potential_path
            current_path = current_path.parent
        return None

    def _load_config(self):
        """Load configuration from file."""
        if self.config_file is None:
            return

        self.config_path = self._find_config()
        if self.config_path is None:
            logger.info(f"Config file {self.config_file} not found, using defaults")
            return

        logger.info(f"Loading configuration from {self.config_path}")

        with open(self.config_path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()

                if not line or line.startswith("#"):
                    continue

                if "=" not in line:
                    raise ConfigurationError(
                        f"expected 'key = value', got {line!r}", line_number=line_num
                    )

                key, value = line.split("=", 1)
                # trailing comments are allowed after the value
                value = value.split("#", 1)[0].strip()
                key = normalize_key(key)
                if not key:
                    raise ConfigurationError("missing option name", line_number=line_num)

                self.config[key] = self._parse_value(value)
                self.line_numbers[key] = line_num

        logger.info(f"Loaded {len(self.config)} configuration parameters")

    def _parse_value(self, value: str) -> Union[str, int, float, bool]:
        """Parse string value to appropriate Python type."""
        if value.lower() in ("true", "false"):
            return value.lower() == "true"

        # anything that is not a plain number stays a string for _coerce to report
        if value.replace(".", "", 1).replace("-", "", 1).isdigit():
            try:
                return float(value) if "." in value else int(value)
            except ValueError:
                return value

        return value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key.

        Args:
            key: Configuration parameter name (any case, '-' or '_')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        return self.config.get(normalize_key(key), default)

    def get_float(self, key: str, default: float = 0.0) -> float:
        """Get float configuration value."""
        value = self.get(key, default)
        try:
            return float(value)
        except (ValueError, TypeError):
            logger.warning(f"Invalid float value for {key}: {value}")
            return default

    def get_generator_settings(
        self, overrides: Optional[Mapping[str, Any]] = None
    ) -> GeneratorSettings:
        """
        Build validated settings from the file plus per-run overrides.

        Args:
            overrides: Options taking precedence over the file

        Returns:
            GeneratorSettings

        Raises:
            ConfigurationError: Unknown option or invalid value; file errors
                carry the offending line number
        """
        settings = GeneratorSettings.from_mapping(
            self.config, line_numbers=self.line_numbers
        )
        if overrides:
            settings = GeneratorSettings.from_mapping(overrides, base=settings)
        return settings


def load_settings(
    config_file: Optional[Union[str, Path]] = DEFAULT_CONFIG_FILE,
    overrides: Optional[Mapping[str, Any]] = None,
) -> GeneratorSettings:
    """Load settings from a config file and apply overrides."""
    return ConfigLoader(config_file).get_generator_settings(overrides)
