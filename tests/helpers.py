"""Shared helpers for driving a session in tests."""
from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Tuple

from cardmatch.components.board import Board
from cardmatch.components.card import Card
from cardmatch.session import CardMatchSession


def symbol_groups(session: CardMatchSession) -> Dict[int, List[int]]:
    groups: Dict[int, List[int]] = defaultdict(list)
    for status in session.board_snapshot().cards:
        groups[status.pair_symbol].append(status.card_id)
    return groups


def matching_pairs(session: CardMatchSession) -> List[Tuple[int, int]]:
    """Card id pairs that share a symbol, covering the whole board."""
    pairs: List[Tuple[int, int]] = []
    for ids in symbol_groups(session).values():
        for index in range(0, len(ids), 2):
            pairs.append((ids[index], ids[index + 1]))
    return pairs


def mismatched_pair(session: CardMatchSession) -> Tuple[int, int]:
    groups = list(symbol_groups(session).values())
    assert len(groups) >= 2, "board needs at least two distinct symbols"
    return groups[0][0], groups[1][0]


def settle(session: CardMatchSession, seconds: float = 1.0) -> None:
    """Advance the clock far enough for every pending comparison to resolve."""
    session.tick(seconds)


def play_pair(session: CardMatchSession, first: int, second: int) -> None:
    assert session.handle_click(first)
    assert session.handle_click(second)
    settle(session)


def card_entity(session: CardMatchSession, card_id: int) -> int:
    board_entity = session.game_flow_system.session.board_entity
    board = session.world.component_for_entity(board_entity, Board)
    return board.entity_by_card_id[card_id]


def card_component(session: CardMatchSession, card_id: int) -> Card:
    return session.world.component_for_entity(card_entity(session, card_id), Card)


def record_events(session: CardMatchSession, *names: str) -> List[Tuple[str, dict]]:
    events: List[Tuple[str, dict]] = []
    for name in names:
        session.event_bus.subscribe(name, lambda sender, _name=name, **payload: events.append((_name, payload)))
    return events
