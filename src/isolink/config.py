"""Configuration management for isolink.

Settings come from, in increasing priority:

- Default values
- A TOML configuration file (``--config``)
- Command-line flags

Example:
    >>> from isolink.config import Config
    >>> config = Config.load("isolink.toml")
    >>> config.graph.edge_policy
    'star'

A configuration file mirrors the attribute layout::

    [grouping]
    strategy = "adjacent"

    [graph]
    edge_policy = "clique"

    [input]
    min_mapq = 10

    [split]
    max_open_files = 128
    min_size = 2
"""

import tomllib
from pathlib import Path
from typing import Any

import attrs

from isolink.core.graph import EdgePolicy
from isolink.core.grouping import GROUPING_STRATEGIES as _GROUPING_REGISTRY
from isolink.core.grouping import BufferedGrouping
from isolink.errors import ConfigError
from isolink.io.split import DEFAULT_MAX_OPEN_FILES

# =============================================================================
# Default Configuration Values
# =============================================================================

# Grouping: "buffered" is correct for any record order
GROUPING_STRATEGIES = tuple(_GROUPING_REGISTRY)
DEFAULT_GROUPING = BufferedGrouping.name

# Graph edge insertion
EDGE_POLICIES = tuple(policy.value for policy in EdgePolicy)
DEFAULT_EDGE_POLICY = EdgePolicy.STAR.value

# Input filtering
DEFAULT_MIN_MAPQ = 0

# Split output
DEFAULT_MIN_COMPONENT_SIZE = 1


def _non_negative(instance: Any, attribute: attrs.Attribute, value: int) -> None:
    if value < 0:
        raise ValueError(f"{attribute.name} must be >= 0, got {value}")


def _positive(instance: Any, attribute: attrs.Attribute, value: int) -> None:
    if value < 1:
        raise ValueError(f"{attribute.name} must be >= 1, got {value}")


# =============================================================================
# Configuration Classes
# =============================================================================


@attrs.define
class GroupingConfig:
    """Configuration for grouping records by read name.

    Attributes:
        strategy: "adjacent" (input must be collated by read name) or
            "buffered" (any order, memory grows with record count).
    """

    strategy: str = attrs.field(
        default=DEFAULT_GROUPING, validator=attrs.validators.in_(GROUPING_STRATEGIES)
    )


@attrs.define
class GraphConfig:
    """Configuration for graph construction.

    Attributes:
        edge_policy: "clique" (all pairs) or "star" (first id to the rest).
    """

    edge_policy: str = attrs.field(
        default=DEFAULT_EDGE_POLICY, validator=attrs.validators.in_(EDGE_POLICIES)
    )


@attrs.define
class InputConfig:
    """Configuration for reading alignments.

    Attributes:
        min_mapq: Records with lower mapping quality are skipped.
    """

    min_mapq: int = attrs.field(
        default=DEFAULT_MIN_MAPQ, converter=int, validator=_non_negative
    )


@attrs.define
class SplitConfig:
    """Configuration for per-component output files.

    Attributes:
        max_open_files: Maximum output files open at once.
        min_size: Components with fewer members get no output file.
        prefix: Output file name prefix (input name without its extension when None).
    """

    max_open_files: int = attrs.field(
        default=DEFAULT_MAX_OPEN_FILES, converter=int, validator=_positive
    )
    min_size: int = attrs.field(
        default=DEFAULT_MIN_COMPONENT_SIZE, converter=int, validator=_positive
    )
    prefix: str | None = None


@attrs.define
class Config:
    """Main configuration container for isolink.

    Attributes:
        grouping: Read grouping configuration.
        graph: Graph construction configuration.
        input: Alignment input configuration.
        split: Split output configuration.
    """

    grouping: GroupingConfig = attrs.Factory(GroupingConfig)
    graph: GraphConfig = attrs.Factory(GraphConfig)
    input: InputConfig = attrs.Factory(InputConfig)
    split: SplitConfig = attrs.Factory(SplitConfig)

    @classmethod
    def load(cls, path: Path | str | None = None) -> "Config":
        """Load configuration from a TOML file.

        Args:
            path: Path to configuration file. If None, returns the
                  default configuration.

        Returns:
            Loaded configuration object.

        Raises:
            ConfigError: If the file is missing, unparsable, or invalid.
        """
        if path is None:
            return cls()

        path = Path(path)
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except OSError as e:
            raise ConfigError(f"Could not read config file {path}: {e.strerror or e}") from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in config file {path}: {e}") from e

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Build a configuration from nested dictionaries.

        Raises:
            ConfigError: On unknown sections, unknown keys, or bad values.
        """
        sections = {
            "grouping": GroupingConfig,
            "graph": GraphConfig,
            "input": InputConfig,
            "split": SplitConfig,
        }
        unknown = set(data) - set(sections)
        if unknown:
            raise ConfigError(f"Unknown config section(s): {', '.join(sorted(unknown))}")

        kwargs = {}
        for name, section_cls in sections.items():
            values = data.get(name, {})
            if not isinstance(values, dict):
                raise ConfigError(f"Config section [{name}] must be a table")
            try:
                kwargs[name] = section_cls(**values)
            except (TypeError, ValueError) as e:
                raise ConfigError(f"Invalid [{name}] settings: {e}") from e

        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return attrs.asdict(self)
