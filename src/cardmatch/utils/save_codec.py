"""Convert between the live board and the single-slot save snapshot."""
from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Dict, Mapping

from esper import World

from cardmatch.components.board import Board
from cardmatch.components.card import Card
from cardmatch.components.save_snapshot import CardRecord, SaveSnapshot
from cardmatch.components.score_state import ScoreState
from cardmatch.errors import SaveDataError, ShapeError
from cardmatch.factories.board import board_cards
from cardmatch.utils.shapes import coerce_shape_kind

SCORE_FIELDS = (
    "base_score",
    "combo_multiplier",
    "combo_count",
    "time_bonus",
    "total_score",
    "moves",
    "combos",
)


def capture_snapshot(world: World, board_entity: int, score: ScoreState, elapsed_time: float) -> SaveSnapshot:
    board = world.component_for_entity(board_entity, Board)
    cards = [
        CardRecord(card_id=card.card_id, symbol_id=card.pair_symbol, matched=card.matched, face_up=card.face_up)
        for _, card in board_cards(world, board_entity)
    ]
    return SaveSnapshot(
        shape_kind=board.shape_kind,
        size=board.size,
        elapsed_time=float(elapsed_time),
        score=score.copy(),
        cards=cards,
        saved_at=datetime.now(),
    )


def snapshot_to_dict(snapshot: SaveSnapshot) -> Dict[str, Any]:
    return {
        "shape_kind": int(snapshot.shape_kind),
        "size": snapshot.size,
        "elapsed_time": snapshot.elapsed_time,
        "score": {name: getattr(snapshot.score, name) for name in SCORE_FIELDS},
        "cards": [
            {
                "card_id": record.card_id,
                "symbol_id": record.symbol_id,
                "matched": record.matched,
                "face_up": record.face_up,
            }
            for record in snapshot.cards
        ],
        "saved_at": snapshot.saved_at.isoformat() if snapshot.saved_at else None,
    }


def _flag(entry: Mapping[str, Any], key: str) -> bool:
    value = entry.get(key, False)
    if not isinstance(value, bool):
        raise SaveDataError(f"card {key} flag must be a boolean, got {value!r}")
    return value


def snapshot_from_dict(payload: Any) -> SaveSnapshot:
    """Parse a decoded save payload; anything malformed raises ``SaveDataError``."""

    if not isinstance(payload, Mapping):
        raise SaveDataError("save payload is not an object")
    try:
        shape_kind = coerce_shape_kind(payload["shape_kind"])
        size = int(payload["size"])
        elapsed_time = float(payload.get("elapsed_time", 0.0))
        raw_score = payload.get("score") or {}
        if not isinstance(raw_score, Mapping):
            raise SaveDataError("score entry is not an object")
        score = ScoreState(**{name: int(raw_score.get(name, getattr(ScoreState(), name))) for name in SCORE_FIELDS})
        raw_cards = payload.get("cards")
        if raw_cards is None:
            raw_cards = []
        cards = [
            CardRecord(
                card_id=int(entry["card_id"]),
                symbol_id=int(entry["symbol_id"]),
                matched=_flag(entry, "matched"),
                face_up=_flag(entry, "face_up"),
            )
            for entry in raw_cards
        ]
        raw_saved_at = payload.get("saved_at")
        saved_at = datetime.fromisoformat(raw_saved_at) if raw_saved_at else None
    except SaveDataError:
        raise
    except (KeyError, TypeError, ValueError, OverflowError, ShapeError) as exc:
        raise SaveDataError(f"malformed save payload: {exc}") from exc
    return SaveSnapshot(
        shape_kind=shape_kind,
        size=size,
        elapsed_time=elapsed_time,
        score=score,
        cards=cards,
        saved_at=saved_at,
    )


def is_completed(snapshot: SaveSnapshot | None) -> bool:
    """A snapshot whose every card is matched has nothing left to resume."""
    if snapshot is None or not snapshot.cards:
        return False
    return all(record.matched for record in snapshot.cards)


def validate_snapshot(snapshot: SaveSnapshot, min_size: int, max_size: int) -> None:
    if snapshot.size < min_size or snapshot.size > max_size:
        raise SaveDataError(f"saved size {snapshot.size} outside [{min_size}, {max_size}]")
    if not snapshot.cards:
        raise SaveDataError("saved game has no cards")
    if not math.isfinite(snapshot.elapsed_time) or snapshot.elapsed_time < 0:
        raise SaveDataError(f"invalid elapsed time {snapshot.elapsed_time}")


def reconcile(world: World, board_entity: int, snapshot: SaveSnapshot) -> int:
    """Apply saved matched flags to a freshly built board of the same shape.

    Face-up state is not restored: every unmatched card comes back face-down.
    Returns the number of matched cards restored.
    """

    board = world.component_for_entity(board_entity, Board)
    if not snapshot.cards:
        raise SaveDataError("saved game has no cards")
    if len(snapshot.cards) != board.card_count:
        raise SaveDataError(
            f"saved game has {len(snapshot.cards)} cards but the board has {board.card_count}"
        )
    matched_count = 0
    for record in snapshot.cards:
        ent = board.entity_by_card_id.get(record.card_id)
        if ent is None:
            raise SaveDataError(f"saved card {record.card_id} is not on the board")
        card = world.component_for_entity(ent, Card)
        card.matched = record.matched
        card.face_up = record.matched
        card.pending = False
        card.revealed_at = -1
        if record.matched:
            matched_count += 1
    return matched_count
