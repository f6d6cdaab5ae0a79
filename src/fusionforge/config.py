"""Configuration management for FusionForge.

Configuration can come from:
- Default values
- A TOML configuration file
- Command-line arguments (override file values)

Example:
    >>> from fusionforge.config import Config
    >>> config = Config.load("fusionforge.toml")
    >>> config.scoring.min_novel_junction_support
    3

A configuration file mirrors the section layout::

    [scoring]
    min_novel_junction_support = 3
    min_span_only_support = 5

    [input]
    progress_interval = 1000000
"""

import tomllib
from pathlib import Path
from typing import Any

import attrs

# =============================================================================
# Default Configuration Values
# =============================================================================

# Scoring defaults
DEFAULT_MIN_NOVEL_JUNCTION_SUPPORT = 3
DEFAULT_MIN_SPAN_ONLY_SUPPORT = 5
DEFAULT_JUNCTION_READ_WEIGHT = 4

# Input defaults
DEFAULT_PROGRESS_INTERVAL = 1_000_000


def _non_negative(instance: Any, attribute: attrs.Attribute, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValueError(f"{attribute.name} must be a non-negative integer, got {value!r}")


# =============================================================================
# Configuration Classes
# =============================================================================


@attrs.define
class ScoringConfig:
    """Configuration for candidate scoring.

    Attributes:
        min_novel_junction_support: Minimum split reads for a breakpoint
            that is not on annotated exon boundaries on both sides.
        min_span_only_support: Minimum spanning fragments for a fusion
            without any split read.
        junction_read_weight: Score weight of one split read relative to
            one spanning fragment.
    """

    min_novel_junction_support: int = attrs.field(
        default=DEFAULT_MIN_NOVEL_JUNCTION_SUPPORT, validator=_non_negative
    )
    min_span_only_support: int = attrs.field(
        default=DEFAULT_MIN_SPAN_ONLY_SUPPORT, validator=_non_negative
    )
    junction_read_weight: int = attrs.field(
        default=DEFAULT_JUNCTION_READ_WEIGHT, validator=_non_negative
    )


@attrs.define
class InputConfig:
    """Configuration for input streaming.

    Attributes:
        progress_interval: Records between progress log messages.
    """

    progress_interval: int = attrs.field(default=DEFAULT_PROGRESS_INTERVAL, validator=_non_negative)


@attrs.define
class Config:
    """Main configuration container for FusionForge.

    Attributes:
        scoring: Candidate scoring configuration.
        input: Input streaming configuration.
    """

    scoring: ScoringConfig = attrs.Factory(ScoringConfig)
    input: InputConfig = attrs.Factory(InputConfig)

    @classmethod
    def load(cls, path: Path | str | None = None) -> "Config":
        """Load configuration from a TOML file.

        Args:
            path: Path to configuration file. If None, returns default
                  configuration.

        Returns:
            Loaded configuration object.

        Raises:
            FileNotFoundError: If configuration file doesn't exist.
            ValueError: If configuration file is invalid.
        """
        if path is None:
            return cls()

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid configuration file {path}: {e}") from e

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Build a configuration from nested dictionaries.

        Raises:
            ValueError: On unknown sections or keys.
        """
        sections = {"scoring": ScoringConfig, "input": InputConfig}
        unknown = set(data) - set(sections)
        if unknown:
            raise ValueError(f"Unknown configuration sections: {', '.join(sorted(unknown))}")

        kwargs = {}
        for name, section_cls in sections.items():
            values = data.get(name, {})
            known = {field.name for field in attrs.fields(section_cls)}
            extra = set(values) - known
            if extra:
                raise ValueError(f"Unknown keys in [{name}]: {', '.join(sorted(extra))}")
            kwargs[name] = section_cls(**values)

        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary.

        Returns:
            Dictionary representation of configuration.
        """
        return attrs.asdict(self)
