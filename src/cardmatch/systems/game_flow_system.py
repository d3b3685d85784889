from __future__ import annotations

import logging
import random
from typing import Optional

from esper import World

from cardmatch.components.card import Card
from cardmatch.components.game_state import GameMode, GameSession
from cardmatch.config import GameConfig
from cardmatch.errors import ConfigurationError, DeckError, SaveDataError
from cardmatch.events.bus import (
    EVENT_ALL_PAIRS_MATCHED,
    EVENT_BOARD_TORN_DOWN,
    EVENT_CARD_FLIPPED,
    EVENT_CARD_FLIPPED_BACK,
    EVENT_GAME_ABANDONED,
    EVENT_GAME_RESUMED,
    EVENT_GAME_STARTED,
    EVENT_GAME_SUSPENDED,
    EVENT_GAME_WON,
    EVENT_TICK,
    EventBus,
)
from cardmatch.factories.board import board_cards, create_board, destroy_board
from cardmatch.factories.deck import new_deck, restore_deck
from cardmatch.services.audio import AudioService, NullAudioService
from cardmatch.systems.animation import FlipAnimationSystem, start_flip
from cardmatch.systems.match_system import MatchSystem
from cardmatch.systems.save_system import SaveSystem
from cardmatch.systems.score_system import ScoreSystem
from cardmatch.utils.game_state import get_session, set_game_mode
from cardmatch.utils.save_codec import is_completed, reconcile, validate_snapshot
from cardmatch.utils.shapes import ShapeKind, coerce_shape_kind, generate_shape

logger = logging.getLogger(__name__)


class GameFlowSystem:
    """Starts, resumes, suspends and finishes games; owns the session clock."""

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        match_system: MatchSystem,
        score_system: ScoreSystem,
        save_system: SaveSystem,
        animation_system: FlipAnimationSystem,
        config: GameConfig | None = None,
        audio: AudioService | None = None,
        rng: random.Random | None = None,
    ):
        self.world = world
        self.event_bus = event_bus
        self.match_system = match_system
        self.score_system = score_system
        self.save_system = save_system
        self.animation_system = animation_system
        self.config = config or GameConfig()
        self.audio = audio or NullAudioService()
        self.rng = rng or getattr(world, "random", None) or random.Random()
        self.event_bus.subscribe(EVENT_TICK, self.on_tick)
        self.event_bus.subscribe(EVENT_ALL_PAIRS_MATCHED, self._on_all_pairs_matched)

    def teardown(self) -> None:
        self._teardown_board()
        self.event_bus.unsubscribe(EVENT_TICK, self.on_tick)
        self.event_bus.unsubscribe(EVENT_ALL_PAIRS_MATCHED, self._on_all_pairs_matched)

    @property
    def session(self) -> GameSession:
        return get_session(self.world)

    # Commands ---------------------------------------------------------------

    def start_new_game(self, shape_kind: ShapeKind | int | str = ShapeKind.SQUARE, size: Optional[int] = None) -> bool:
        """Deal a fresh board. Returns ``False`` (and starts nothing) on bad settings."""
        try:
            shape = coerce_shape_kind(shape_kind)
            if size is None:
                size = self.config.default_size_for(shape)
            self._check_size(shape, size)
            positions = generate_shape(shape, size)
            cards = new_deck(len(positions) // 2, self.config.symbol_pool_size, self.rng)
        except (ConfigurationError, DeckError) as exc:
            logger.error("Cannot start new game: %s", exc)
            return False

        self._teardown_board()
        session = self.session
        session.shape_kind = shape
        session.size = size
        session.elapsed_time = 0.0
        session.reveal_counter = 0
        session.board_entity = create_board(self.world, shape, size, positions, cards)
        self.score_system.reset()
        logger.info("New %s game, size %d, %d cards", shape.name, size, len(cards))
        self.event_bus.emit(EVENT_GAME_STARTED, shape_kind=shape, size=size, card_count=len(cards))
        if self.config.reveal_on_start:
            self._begin_preview()
        else:
            set_game_mode(self.world, self.event_bus, GameMode.PLAYING)
        return True

    def resume_game(self) -> bool:
        """Rebuild the saved board. Returns ``True`` only when the save was restored.

        Corrupt or mismatched saves are discarded and a new game is dealt instead;
        a missing or completed save leaves the session untouched.
        """
        try:
            snapshot = self.save_system.read()
        except SaveDataError as exc:
            logger.warning("Save data unreadable (%s). Starting new game.", exc)
            self.save_system.delete()
            self.start_new_game()
            return False
        if snapshot is None:
            logger.info("No saved game to resume")
            return False
        if is_completed(snapshot):
            logger.info("Saved game already completed, nothing to resume")
            self.save_system.delete()
            return False

        try:
            validate_snapshot(snapshot, self.config.min_grid_size, self.config.max_grid_size)
            self._check_size(snapshot.shape_kind, snapshot.size)
            positions = generate_shape(snapshot.shape_kind, snapshot.size)
            cards = restore_deck(snapshot, len(positions))
        except (SaveDataError, ConfigurationError) as exc:
            logger.warning("Invalid save data (%s). Starting new game.", exc)
            self.save_system.delete()
            self.start_new_game(snapshot.shape_kind)
            return False

        self._teardown_board()
        session = self.session
        session.board_entity = create_board(self.world, snapshot.shape_kind, snapshot.size, positions, cards)
        try:
            matched = reconcile(self.world, session.board_entity, snapshot)
        except SaveDataError as exc:
            logger.warning("Save does not fit the board (%s). Starting new game.", exc)
            self._teardown_board()
            self.save_system.delete()
            self.start_new_game(snapshot.shape_kind)
            return False

        session.shape_kind = snapshot.shape_kind
        session.size = snapshot.size
        session.elapsed_time = snapshot.elapsed_time
        session.reveal_counter = 0
        self.score_system.restore(snapshot.score)
        set_game_mode(self.world, self.event_bus, GameMode.PLAYING)
        logger.info("Resumed %s game, size %d: %d/%d cards matched",
                    snapshot.shape_kind.name, snapshot.size, matched, len(cards))
        self.event_bus.emit(EVENT_GAME_RESUMED, shape_kind=snapshot.shape_kind, size=snapshot.size, card_count=len(cards))
        return True

    def give_up(self) -> bool:
        """Leave the running game for the menu; progress stays resumable."""
        if self.session.mode not in (GameMode.PLAYING, GameMode.PREVIEW):
            return False
        self.event_bus.emit(EVENT_GAME_SUSPENDED, reason="give_up")
        self._teardown_board()
        set_game_mode(self.world, self.event_bus, GameMode.MENU)
        return True

    def suspend(self) -> bool:
        """Persist progress while the host app is backgrounded; play is not stopped."""
        if self.session.mode not in (GameMode.PLAYING, GameMode.PREVIEW):
            return False
        self.event_bus.emit(EVENT_GAME_SUSPENDED, reason="suspend")
        return True

    def abandon(self) -> None:
        """Drop the running game and its save."""
        self._teardown_board()
        set_game_mode(self.world, self.event_bus, GameMode.MENU)
        self.event_bus.emit(EVENT_GAME_ABANDONED)

    # Internals ------------------------------------------------------------

    def _check_size(self, shape: ShapeKind, size: int) -> None:
        if size < self.config.min_grid_size or size > self.config.max_grid_size:
            raise ConfigurationError(
                f"size {size} outside [{self.config.min_grid_size}, {self.config.max_grid_size}]"
            )
        minimum = self.config.min_size_for(shape)
        if size < minimum:
            raise ConfigurationError(f"{shape.name} needs size >= {minimum}, got {size}")

    def _teardown_board(self) -> None:
        session = self.session
        self.match_system.reset()
        self.animation_system.settle_all()
        board_entity = session.board_entity
        if board_entity is None:
            return
        destroy_board(self.world, board_entity)
        session.board_entity = None
        self.event_bus.emit(EVENT_BOARD_TORN_DOWN, board_entity=board_entity)

    def _preview_cards(self) -> list[tuple[int, Card]]:
        board_entity = self.session.board_entity
        if board_entity is None:
            return []
        return board_cards(self.world, board_entity)

    def _begin_preview(self) -> None:
        session = self.session
        for ent, card in self._preview_cards():
            card.face_up = True
            start_flip(self.world, ent, True, self.config.card_flip_duration)
            self.event_bus.emit(EVENT_CARD_FLIPPED, card_id=card.card_id)
        session.preview_remaining = self.config.card_reveal_duration
        set_game_mode(self.world, self.event_bus, GameMode.PREVIEW)

    def _end_preview(self) -> None:
        for ent, card in self._preview_cards():
            if card.face_up and not card.matched:
                card.face_up = False
                start_flip(self.world, ent, False, self.config.card_flip_duration)
                self.event_bus.emit(EVENT_CARD_FLIPPED_BACK, card_id=card.card_id)
        self.session.preview_remaining = 0.0
        set_game_mode(self.world, self.event_bus, GameMode.PLAYING)

    # Event handlers -----------------------------------------------------

    def on_tick(self, sender, **kwargs):
        dt = kwargs.get('dt', 1/60)
        session = self.session
        if session.mode == GameMode.PLAYING:
            session.elapsed_time += dt
        elif session.mode == GameMode.PREVIEW:
            session.preview_remaining -= dt
            if session.preview_remaining <= 0:
                self._end_preview()

    def _on_all_pairs_matched(self, sender, **payload) -> None:
        session = self.session
        if session.mode != GameMode.PLAYING:
            return
        final_score = self.score_system.final_score(session.elapsed_time)
        moves = self.score_system.state.moves
        set_game_mode(self.world, self.event_bus, GameMode.WON)
        self.audio.play_game_over()
        logger.info("Game won! Final score: %d, time: %.1fs, moves: %d", final_score, session.elapsed_time, moves)
        self.event_bus.emit(
            EVENT_GAME_WON,
            final_score=final_score,
            elapsed_time=session.elapsed_time,
            moves=moves,
        )
