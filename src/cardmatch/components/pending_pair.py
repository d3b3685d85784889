from dataclasses import dataclass
from enum import Enum


class PairPhase(Enum):
    """Suspension points a pair comparison moves through."""
    SETTLE = "settle"
    AWAIT_FLIP = "await_flip"
    CUE = "cue"
    FLIP_BACK = "flip_back"


@dataclass(slots=True)
class PendingPair:
    """One in-flight comparison between two reserved cards.

    ``first`` is the card that was waiting face-up, ``second`` the card whose
    click formed the pair. Both are card ids, not entities.
    """
    first: int
    second: int
    phase: PairPhase = PairPhase.SETTLE
    elapsed: float = 0.0
    wait_elapsed: float = 0.0
