"""Headless entry point wiring the event bus, world and systems together.

Presentation layers (rendering, tweening, audio mixing, input) drive a
``CardMatchSession`` through its commands and subscribe to the events on
``session.event_bus``; they never touch card state directly.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from cardmatch.components.board import Board
from cardmatch.components.game_state import GameMode
from cardmatch.components.grid_cell import GridCell
from cardmatch.components.score_state import ScoreState
from cardmatch.config import GameConfig
from cardmatch.events.bus import EVENT_TICK, EventBus
from cardmatch.factories.board import board_cards, is_flipping
from cardmatch.services.audio import AudioService, NullAudioService
from cardmatch.systems.animation import FlipAnimationSystem
from cardmatch.systems.game_flow_system import GameFlowSystem
from cardmatch.systems.match_system import MatchSystem
from cardmatch.systems.save_system import SaveSystem
from cardmatch.systems.score_system import ScoreSystem
from cardmatch.utils.game_state import get_session
from cardmatch.utils.layout import BoardLayout, DisplayRect, compute_board_layout, hit_test
from cardmatch.utils.shapes import ShapeKind
from cardmatch.world import create_world

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class CardStatus:
    card_id: int
    pair_symbol: int
    x: int
    y: int
    face_up: bool
    matched: bool
    pending: bool
    flipping: bool


@dataclass(slots=True, frozen=True)
class BoardView:
    """Read-only copy of the live board in board order."""
    shape_kind: Optional[ShapeKind]
    size: int
    mode: GameMode
    elapsed_time: float
    cards: Tuple[CardStatus, ...] = field(default_factory=tuple)

    def card(self, card_id: int) -> CardStatus:
        for status in self.cards:
            if status.card_id == card_id:
                return status
        raise KeyError(card_id)


class CardMatchSession:
    def __init__(
        self,
        config: GameConfig | None = None,
        *,
        save_path: Path | str | None = None,
        audio: AudioService | None = None,
        rng: random.Random | None = None,
        event_bus: EventBus | None = None,
    ):
        self.config = config or GameConfig()
        self.audio = audio or NullAudioService()
        self.rng = rng or random.Random()
        self.event_bus = event_bus or EventBus()
        self.world = create_world(self.event_bus, rng=self.rng)

        # Board and animation systems
        self.animation_system = FlipAnimationSystem(self.world, self.event_bus)
        self.match_system = MatchSystem(self.world, self.event_bus, config=self.config, audio=self.audio)

        # Score and persistence systems
        self.score_system = ScoreSystem(self.world, self.event_bus, config=self.config)
        self.save_system = SaveSystem(
            self.world,
            self.event_bus,
            config=self.config,
            save_path=Path(save_path) if save_path is not None else None,
            score_provider=lambda: self.score_system.state,
        )

        # Game flow
        self.game_flow_system = GameFlowSystem(
            self.world,
            self.event_bus,
            match_system=self.match_system,
            score_system=self.score_system,
            save_system=self.save_system,
            animation_system=self.animation_system,
            config=self.config,
            audio=self.audio,
            rng=self.rng,
        )

    # Commands ---------------------------------------------------------------

    def handle_click(self, card_id: int) -> bool:
        return self.match_system.handle_click(card_id)

    def click_at(self, x: float, y: float, display: DisplayRect) -> bool:
        """Hit-test a point against the current layout and click the card under it."""
        layout = self.board_layout(display)
        if layout is None:
            return False
        pos = hit_test(layout, x, y)
        if pos is None:
            return False
        for status in self.board_snapshot().cards:
            if (status.x, status.y) == pos:
                return self.handle_click(status.card_id)
        return False

    def start_new_game(self, shape_kind: ShapeKind | int | str = ShapeKind.SQUARE, size: Optional[int] = None) -> bool:
        return self.game_flow_system.start_new_game(shape_kind, size)

    def resume_game(self) -> bool:
        return self.game_flow_system.resume_game()

    def give_up(self) -> bool:
        return self.game_flow_system.give_up()

    def suspend(self) -> bool:
        return self.game_flow_system.suspend()

    def abandon(self) -> None:
        self.game_flow_system.abandon()

    def tick(self, delta_seconds: float) -> None:
        if delta_seconds < 0:
            raise ValueError(f"delta_seconds must not be negative, got {delta_seconds}")
        self.event_bus.emit(EVENT_TICK, dt=delta_seconds)

    def can_resume(self) -> bool:
        return self.save_system.can_resume()

    def close(self) -> None:
        """Tear down the board and detach every system from the event bus."""
        self.game_flow_system.teardown()
        self.save_system.teardown()
        self.score_system.teardown()
        self.match_system.teardown()
        self.animation_system.teardown()
        logger.debug("Session closed")

    # Queries ----------------------------------------------------------------

    @property
    def mode(self) -> GameMode:
        return get_session(self.world).mode

    @property
    def elapsed_time(self) -> float:
        return get_session(self.world).elapsed_time

    def current_score_state(self) -> ScoreState:
        return self.score_system.state.copy()

    def current_combo_count(self) -> int:
        return self.score_system.current_combo_count

    def board_snapshot(self) -> BoardView:
        session = get_session(self.world)
        board_entity = session.board_entity
        if board_entity is None or not self.world.entity_exists(board_entity):
            return BoardView(shape_kind=None, size=0, mode=session.mode, elapsed_time=session.elapsed_time)
        board = self.world.component_for_entity(board_entity, Board)
        cards = []
        for ent, card in board_cards(self.world, board_entity):
            cell = self.world.component_for_entity(ent, GridCell)
            cards.append(
                CardStatus(
                    card_id=card.card_id,
                    pair_symbol=card.pair_symbol,
                    x=cell.x,
                    y=cell.y,
                    face_up=card.face_up,
                    matched=card.matched,
                    pending=card.pending,
                    flipping=is_flipping(self.world, ent),
                )
            )
        return BoardView(
            shape_kind=board.shape_kind,
            size=board.size,
            mode=session.mode,
            elapsed_time=session.elapsed_time,
            cards=tuple(cards),
        )

    def board_layout(self, display: DisplayRect) -> Optional[BoardLayout]:
        snapshot = self.board_snapshot()
        if not snapshot.cards:
            return None
        return compute_board_layout([(status.x, status.y) for status in snapshot.cards], display)
