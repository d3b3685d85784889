from __future__ import annotations

import logging
from typing import Sequence

from esper import World

from cardmatch.components.board import Board
from cardmatch.components.card import Card
from cardmatch.components.flip_animation import FlipAnimation
from cardmatch.components.grid_cell import GridCell
from cardmatch.errors import DeckError
from cardmatch.utils.shapes import GridPos, ShapeKind

logger = logging.getLogger(__name__)


def create_board(
    world: World,
    shape_kind: ShapeKind,
    size: int,
    positions: Sequence[GridPos],
    cards: Sequence[Card],
) -> int:
    """Materialise one card entity per shape position and a Board owning them."""

    if len(cards) != len(positions):
        raise DeckError(f"deck of {len(cards)} cards does not fit {len(positions)} positions")
    board = Board(shape_kind=shape_kind, size=size)
    for (x, y), card in zip(positions, cards):
        ent = world.create_entity(card, GridCell(x=x, y=y))
        board.card_entities.append(ent)
        board.entity_by_card_id[card.card_id] = ent
    board_entity = world.create_entity(board)
    logger.debug("Created %s board of size %d with %d cards", shape_kind.name, size, len(cards))
    return board_entity


def destroy_board(world: World, board_entity: int) -> None:
    try:
        board = world.component_for_entity(board_entity, Board)
    except KeyError:
        return
    for ent in board.card_entities:
        if world.entity_exists(ent):
            world.delete_entity(ent, immediate=True)
    world.delete_entity(board_entity, immediate=True)


def board_cards(world: World, board_entity: int) -> list[tuple[int, Card]]:
    """Return ``(entity, Card)`` in board order, skipping deleted entities."""

    board = world.component_for_entity(board_entity, Board)
    result: list[tuple[int, Card]] = []
    for ent in board.card_entities:
        if not world.entity_exists(ent):
            continue
        card = world.try_component(ent, Card)
        if card is not None:
            result.append((ent, card))
    return result


def is_flipping(world: World, entity: int) -> bool:
    return world.entity_exists(entity) and world.has_component(entity, FlipAnimation)
