from dataclasses import dataclass


@dataclass(slots=True)
class Card:
    """Identity and play state of a single card.

    ``card_id`` is unique per board and survives save/load. ``pair_symbol`` is
    shared by exactly two cards. A matched card always stays face-up.
    """
    card_id: int
    pair_symbol: int
    face_up: bool = False
    matched: bool = False
    pending: bool = False
    revealed_at: int = -1
