import random
import sys, os

import pytest

# Ensure src and the repo root are on path for test imports
ROOT = os.path.dirname(os.path.dirname(__file__))
SRC = os.path.join(ROOT, 'src')
for path in (SRC, ROOT):
    if path not in sys.path:
        sys.path.insert(0, path)

from cardmatch.config import GameConfig
from cardmatch.session import CardMatchSession


@pytest.fixture
def instant_config() -> GameConfig:
    """Rules with instant flips and no opening preview."""
    return GameConfig(card_flip_duration=0, reveal_on_start=False)


@pytest.fixture
def session(tmp_path, instant_config) -> CardMatchSession:
    game = CardMatchSession(instant_config, save_path=tmp_path / "save.json", rng=random.Random(7))
    yield game
    game.close()
