import logging

import pytest

from cardmatch.config import GameConfig, config_from_mapping, load_config
from cardmatch.constants import CARD_SELECTION_DELAY, MAX_GRID_SIZE
from cardmatch.errors import ConfigurationError
from cardmatch.utils.shapes import ShapeKind


def test_defaults_without_path():
    config = load_config()
    assert config.max_grid_size == MAX_GRID_SIZE
    assert config.card_selection_delay == CARD_SELECTION_DELAY
    assert config.default_size_for(ShapeKind.HEART) == 5


def test_yaml_overrides(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text(
        "max_grid_size: 5\n"
        "card_flip_duration: 0.1\n"
        "default_size_by_shape:\n"
        "  square: 3\n"
        "  heart: 9\n",
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.max_grid_size == 5
    assert config.card_flip_duration == 0.1
    assert config.default_size_for(ShapeKind.SQUARE) == 3
    # Clamped to the configured maximum.
    assert config.default_size_for(ShapeKind.HEART) == 5
    # Untouched shapes keep their defaults.
    assert config.default_size_for(ShapeKind.DIAMOND) == 5


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == GameConfig()


def test_unknown_keys_are_ignored_with_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="cardmatch.config"):
        config = config_from_mapping({"max_grid_size": 4, "sparkles": True})
    assert config.max_grid_size == 4
    assert "sparkles" in caplog.text


@pytest.mark.parametrize(
    "content",
    [
        "max_grid_size: [unclosed\n",
        "- just\n- a list\n",
        "min_grid_size: 5\nmax_grid_size: 3\n",
        "card_selection_delay: -1\n",
        "min_size_by_shape: 4\n",
        "min_size_by_shape:\n  octagon: 3\n",
    ],
)
def test_invalid_config_raises(tmp_path, content):
    path = tmp_path / "bad.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(path)


def test_missing_file_raises(tmp_path):
    with pytest.raises(ConfigurationError):
        load_config(tmp_path / "absent.yaml")


def test_shape_minimum_respects_global_bound():
    config = GameConfig(min_grid_size=3)
    assert config.min_size_for(ShapeKind.SQUARE) == 3
    assert config.min_size_for(ShapeKind.HEART) == 3
