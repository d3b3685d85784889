from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from cardmatch import constants
from cardmatch.errors import ConfigurationError
from cardmatch.utils.shapes import ShapeKind, coerce_shape_kind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameConfig:
    """Tunable rules of a session. Defaults come from ``cardmatch.constants``."""

    min_grid_size: int = constants.MIN_GRID_SIZE
    max_grid_size: int = constants.MAX_GRID_SIZE
    symbol_pool_size: int = constants.SYMBOL_POOL_SIZE
    min_size_by_shape: Dict[ShapeKind, int] = field(
        default_factory=lambda: dict(constants.MIN_SIZE_BY_SHAPE)
    )
    default_size_by_shape: Dict[ShapeKind, int] = field(
        default_factory=lambda: dict(constants.DEFAULT_SIZE_BY_SHAPE)
    )

    card_flip_duration: float = constants.CARD_FLIP_DURATION
    card_reveal_duration: float = constants.CARD_REVEAL_DURATION
    card_selection_delay: float = constants.CARD_SELECTION_DELAY
    audio_result_delay: float = constants.AUDIO_RESULT_DELAY
    flip_settle_timeout: float = constants.FLIP_SETTLE_TIMEOUT
    reveal_on_start: bool = True

    base_score_per_match: int = constants.BASE_SCORE_PER_MATCH
    max_combo_multiplier: int = constants.MAX_COMBO_MULTIPLIER
    time_bonus_per_second: int = constants.TIME_BONUS_PER_SECOND
    time_bonus_window: int = constants.TIME_BONUS_WINDOW

    save_file_name: str = constants.SAVE_FILE_NAME

    def __post_init__(self) -> None:
        if self.min_grid_size < 1 or self.max_grid_size < self.min_grid_size:
            raise ConfigurationError(
                f"invalid grid size bounds [{self.min_grid_size}, {self.max_grid_size}]"
            )
        if self.symbol_pool_size < 1:
            raise ConfigurationError("symbol_pool_size must be at least 1")
        if self.max_combo_multiplier < 1:
            raise ConfigurationError("max_combo_multiplier must be at least 1")
        for name in (
            "card_flip_duration",
            "card_reveal_duration",
            "card_selection_delay",
            "audio_result_delay",
            "flip_settle_timeout",
        ):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must not be negative")

    def min_size_for(self, shape: ShapeKind) -> int:
        return max(self.min_grid_size, self.min_size_by_shape.get(shape, self.min_grid_size))

    def default_size_for(self, shape: ShapeKind) -> int:
        size = self.default_size_by_shape.get(shape, constants.DEFAULT_GRID_SIZE)
        return min(self.max_grid_size, max(self.min_size_for(shape), size))

    def with_overrides(self, **overrides: Any) -> "GameConfig":
        return dataclasses.replace(self, **overrides)


def _shape_table(raw: Any, key: str) -> Dict[ShapeKind, int]:
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"'{key}' must be a mapping of shape -> size")
    table: Dict[ShapeKind, int] = {}
    for shape_key, value in raw.items():
        try:
            table[coerce_shape_kind(shape_key)] = int(value)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"invalid entry {shape_key!r}: {value!r} in '{key}'") from exc
    return table


def config_from_mapping(raw: Mapping[str, Any], base: Optional[GameConfig] = None) -> GameConfig:
    """Apply ``raw`` overrides to ``base`` (or the defaults)."""

    base = base or GameConfig()
    known = {f.name for f in dataclasses.fields(GameConfig)}
    overrides: Dict[str, Any] = {}
    for key, value in raw.items():
        if key not in known:
            logger.warning("Ignoring unknown config key '%s'", key)
            continue
        if key in ("min_size_by_shape", "default_size_by_shape"):
            merged = dict(getattr(base, key))
            merged.update(_shape_table(value, key))
            value = merged
        overrides[key] = value
    return base.with_overrides(**overrides)


def load_config(path: Optional[str | Path] = None) -> GameConfig:
    """Load configuration overrides from YAML.

    Without a path the built-in defaults are returned.
    """
    if path is None:
        logger.debug("Using built-in game config defaults")
        return GameConfig()
    try:
        with open(path, "r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
    except OSError as exc:
        raise ConfigurationError(f"cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"invalid YAML in config file {path}: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"config file {path} must contain a mapping")
    config = config_from_mapping(raw)
    logger.info(
        "Loaded game config from %s | sizes=[%d, %d] symbols=%d",
        path,
        config.min_grid_size,
        config.max_grid_size,
        config.symbol_pool_size,
    )
    return config
