from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from cardmatch.components.score_state import ScoreState
from cardmatch.utils.shapes import ShapeKind


@dataclass(slots=True)
class CardRecord:
    card_id: int
    symbol_id: int
    matched: bool
    face_up: bool


@dataclass(slots=True)
class SaveSnapshot:
    """Everything needed to rebuild a board and its score after a restart."""
    shape_kind: ShapeKind
    size: int
    elapsed_time: float
    score: ScoreState
    cards: List[CardRecord] = field(default_factory=list)
    saved_at: Optional[datetime] = None
