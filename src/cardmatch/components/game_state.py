"""Session resource describing the active high-level mode."""
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from cardmatch.utils.shapes import ShapeKind


class GameMode(Enum):
    """High-level modes that decide whether input and timers are live."""
    MENU = auto()
    PREVIEW = auto()
    PLAYING = auto()
    WON = auto()


@dataclass
class GameSession:
    """Singleton component for the current game session."""
    mode: GameMode = GameMode.MENU
    shape_kind: ShapeKind = ShapeKind.SQUARE
    size: int = 0
    elapsed_time: float = 0.0
    board_entity: Optional[int] = None
    preview_remaining: float = 0.0
    reveal_counter: int = 0
