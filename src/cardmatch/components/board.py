from dataclasses import dataclass, field
from typing import Dict, List

from cardmatch.utils.shapes import ShapeKind


@dataclass(slots=True)
class Board:
    """Ordered card entities of the live board plus the id -> entity arena."""
    shape_kind: ShapeKind
    size: int
    card_entities: List[int] = field(default_factory=list)
    entity_by_card_id: Dict[int, int] = field(default_factory=dict)

    @property
    def card_count(self) -> int:
        return len(self.card_entities)
