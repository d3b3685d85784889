"""Flip / compare / resolve state machine for memory cards.

Clicks are handled to completion before any pair is evaluated. Every pair that
forms gets its own ``PendingPair`` entity which is advanced on ``EVENT_TICK``
through its suspension points, so any number of comparisons can be in flight at
once. A card id stays in ``pending_card_ids`` from pair formation until its
comparison releases it, and a pending card is never picked as a new partner.
"""
from __future__ import annotations

import logging
from typing import Optional, Tuple

from esper import World

from cardmatch.components.board import Board
from cardmatch.components.card import Card
from cardmatch.components.game_state import GameMode, GameSession
from cardmatch.components.pending_pair import PairPhase, PendingPair
from cardmatch.config import GameConfig
from cardmatch.events.bus import (
    EVENT_ALL_PAIRS_MATCHED,
    EVENT_AUTOSAVE_REQUEST,
    EVENT_CARD_CLICK,
    EVENT_CARD_FLIPPED,
    EVENT_CARD_FLIPPED_BACK,
    EVENT_CARD_MATCHED,
    EVENT_CARD_MISMATCHED,
    EVENT_PAIR_FORMED,
    EVENT_PAIR_RELEASED,
    EVENT_TICK,
    EventBus,
)
from cardmatch.factories.board import board_cards, is_flipping
from cardmatch.services.audio import AudioService, NullAudioService
from cardmatch.systems.animation import start_flip

logger = logging.getLogger(__name__)

CardEntry = Tuple[int, Card]

OUTCOME_MATCHED = "matched"
OUTCOME_MISMATCHED = "mismatched"
OUTCOME_RETRACTED = "retracted"
OUTCOME_STALE = "stale"
OUTCOME_DESTROYED = "destroyed"
OUTCOME_CANCELLED = "cancelled"


class MatchSystem:
    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        config: GameConfig | None = None,
        audio: AudioService | None = None,
    ):
        self.world = world
        self.event_bus = event_bus
        self.config = config or GameConfig()
        self.audio = audio or NullAudioService()
        self.pending_card_ids: set[int] = set()
        self.event_bus.subscribe(EVENT_CARD_CLICK, self.on_card_click)
        self.event_bus.subscribe(EVENT_TICK, self.on_tick)

    def teardown(self) -> None:
        self.reset()
        self.event_bus.unsubscribe(EVENT_CARD_CLICK, self.on_card_click)
        self.event_bus.unsubscribe(EVENT_TICK, self.on_tick)

    # Lookups ------------------------------------------------------------

    def _session(self) -> GameSession | None:
        for _, session in self.world.get_component(GameSession):
            return session
        return None

    def _board(self) -> Board | None:
        session = self._session()
        if session is None or session.board_entity is None:
            return None
        if not self.world.entity_exists(session.board_entity):
            return None
        return self.world.try_component(session.board_entity, Board)

    def _card(self, card_id: int) -> Optional[CardEntry]:
        board = self._board()
        if board is None:
            return None
        ent = board.entity_by_card_id.get(card_id)
        if ent is None or not self.world.entity_exists(ent):
            return None
        card = self.world.try_component(ent, Card)
        if card is None:
            return None
        return ent, card

    def all_matched(self) -> bool:
        session = self._session()
        if session is None or session.board_entity is None or self._board() is None:
            return False
        cards = board_cards(self.world, session.board_entity)
        return bool(cards) and all(card.matched for _, card in cards)

    # Input ----------------------------------------------------------------

    def on_card_click(self, sender, **kwargs):
        card_id = kwargs.get('card_id')
        if card_id is None:
            return
        self.handle_click(card_id)

    def handle_click(self, card_id: int) -> bool:
        """Apply a click; returns ``False`` when the click was ignored."""
        session = self._session()
        if session is None or session.mode != GameMode.PLAYING:
            return False
        entry = self._card(card_id)
        if entry is None:
            logger.debug("Click on unknown card %s ignored", card_id)
            return False
        ent, card = entry
        if card.matched or is_flipping(self.world, ent):
            return False
        if card.face_up:
            # Retracting a choice is allowed even while its pair is pending.
            self._flip_down(ent, card)
            return True
        self._flip_up(ent, card, session)
        partner = self._find_waiting_partner(card.card_id)
        if partner is None:
            return True
        _, partner_card = partner
        if partner_card.card_id in self.pending_card_ids or card.card_id in self.pending_card_ids:
            logger.debug("Cards %d/%d already being compared, no new pair", partner_card.card_id, card.card_id)
            return True
        self._form_pair(partner_card, card)
        return True

    def _find_waiting_partner(self, card_id: int) -> Optional[CardEntry]:
        session = self._session()
        if session is None or session.board_entity is None:
            return None
        waiting = [
            (ent, card)
            for ent, card in board_cards(self.world, session.board_entity)
            if card.card_id != card_id
            and card.face_up
            and not card.matched
            and card.card_id not in self.pending_card_ids
        ]
        if not waiting:
            return None
        # Most recently revealed card wins.
        return max(waiting, key=lambda entry: entry[1].revealed_at)

    def _form_pair(self, first: Card, second: Card) -> None:
        first.pending = True
        second.pending = True
        self.pending_card_ids.add(first.card_id)
        self.pending_card_ids.add(second.card_id)
        self.world.create_entity(PendingPair(first=first.card_id, second=second.card_id))
        logger.debug("Pair formed: %d (symbol %d) + %d (symbol %d)",
                     first.card_id, first.pair_symbol, second.card_id, second.pair_symbol)
        self.event_bus.emit(EVENT_PAIR_FORMED, first_id=first.card_id, second_id=second.card_id)

    def _flip_up(self, ent: int, card: Card, session: GameSession) -> None:
        session.reveal_counter += 1
        card.face_up = True
        card.revealed_at = session.reveal_counter
        start_flip(self.world, ent, True, self.config.card_flip_duration)
        self.audio.play_card_flip()
        self.event_bus.emit(EVENT_CARD_FLIPPED, card_id=card.card_id)

    def _flip_down(self, ent: int, card: Card) -> None:
        card.face_up = False
        card.revealed_at = -1
        start_flip(self.world, ent, False, self.config.card_flip_duration)
        self.audio.play_card_flip()
        self.event_bus.emit(EVENT_CARD_FLIPPED_BACK, card_id=card.card_id)

    # Resolution -----------------------------------------------------------

    def on_tick(self, sender, **kwargs):
        session = self._session()
        if session is None or session.mode != GameMode.PLAYING:
            return
        dt = kwargs.get('dt', 1/60)
        for ent, pair in list(self.world.get_component(PendingPair)):
            if not self.world.entity_exists(ent):
                continue
            self._advance(ent, pair, dt)

    def _advance(self, pair_ent: int, pair: PendingPair, dt: float) -> None:
        if pair.phase is PairPhase.SETTLE:
            pair.elapsed += dt
            if pair.elapsed < self.config.card_selection_delay:
                return
            pair.phase = PairPhase.AWAIT_FLIP
        if pair.phase is PairPhase.AWAIT_FLIP:
            if self._waiting_on_flip(pair_ent, pair, dt):
                return
            if self._validate(pair_ent, pair) is None:
                return
            pair.phase = PairPhase.CUE
            pair.elapsed = 0.0
            pair.wait_elapsed = 0.0
        if pair.phase is PairPhase.CUE:
            pair.elapsed += dt
            if pair.elapsed < self.config.audio_result_delay:
                return
            entries = self._validate(pair_ent, pair)
            if entries is None:
                return
            self._resolve(pair_ent, pair, entries)
            return
        if pair.phase is PairPhase.FLIP_BACK:
            if self._waiting_on_flip(pair_ent, pair, dt):
                return
            self._release(pair_ent, pair, OUTCOME_MISMATCHED, autosave=True)

    def _waiting_on_flip(self, pair_ent: int, pair: PendingPair, dt: float) -> bool:
        """True while either card is mid-flip and the settle timeout has not run out."""
        first = self._card(pair.first)
        second = self._card(pair.second)
        if first is None or second is None:
            return False
        animating = is_flipping(self.world, first[0]) or is_flipping(self.world, second[0])
        if not animating:
            return False
        if pair.wait_elapsed >= self.config.flip_settle_timeout:
            logger.debug("Flip settle timeout for pair %d/%d, proceeding", pair.first, pair.second)
            return False
        pair.wait_elapsed += dt
        return True

    def _validate(self, pair_ent: int, pair: PendingPair) -> Optional[Tuple[CardEntry, CardEntry]]:
        first = self._card(pair.first)
        second = self._card(pair.second)
        if first is None or second is None:
            self._release(pair_ent, pair, OUTCOME_DESTROYED)
            return None
        first_card = first[1]
        second_card = second[1]
        if first_card.matched or second_card.matched:
            # Do not leave the unmatched partner face-up forever.
            for ent, card in (first, second):
                if not card.matched and card.face_up and not is_flipping(self.world, ent):
                    self._flip_down(ent, card)
            self._release(pair_ent, pair, OUTCOME_STALE)
            return None
        if not first_card.face_up or not second_card.face_up:
            self._release(pair_ent, pair, OUTCOME_RETRACTED)
            return None
        return first, second

    def _resolve(self, pair_ent: int, pair: PendingPair, entries: Tuple[CardEntry, CardEntry]) -> None:
        (first_ent, first), (second_ent, second) = entries
        if first.pair_symbol == second.pair_symbol:
            first.matched = True
            second.matched = True
            logger.debug("Match: cards %d and %d (symbol %d)", first.card_id, second.card_id, first.pair_symbol)
            self.audio.play_card_match()
            self.event_bus.emit(EVENT_CARD_MATCHED, first_id=first.card_id, second_id=second.card_id)
            won = self.all_matched()
            self._release(pair_ent, pair, OUTCOME_MATCHED, autosave=True)
            if won:
                self.event_bus.emit(EVENT_ALL_PAIRS_MATCHED)
            return
        logger.debug("Mismatch: cards %d (symbol %d) and %d (symbol %d)",
                     first.card_id, first.pair_symbol, second.card_id, second.pair_symbol)
        self.audio.play_card_mismatch()
        self.event_bus.emit(EVENT_CARD_MISMATCHED, first_id=first.card_id, second_id=second.card_id)
        self._flip_down(first_ent, first)
        self._flip_down(second_ent, second)
        # Both stay reserved until the flip-back settles so they cannot re-pair mid-animation.
        pair.phase = PairPhase.FLIP_BACK
        pair.wait_elapsed = 0.0
        if not self._waiting_on_flip(pair_ent, pair, 0.0):
            self._release(pair_ent, pair, OUTCOME_MISMATCHED, autosave=True)

    def _release(self, pair_ent: int, pair: PendingPair, outcome: str, *, autosave: bool = False) -> None:
        for card_id in (pair.first, pair.second):
            self.pending_card_ids.discard(card_id)
            entry = self._card(card_id)
            if entry is not None:
                entry[1].pending = False
        if self.world.entity_exists(pair_ent):
            self.world.delete_entity(pair_ent, immediate=True)
        if outcome not in (OUTCOME_MATCHED, OUTCOME_MISMATCHED):
            logger.debug("Pair %d/%d aborted (%s)", pair.first, pair.second, outcome)
        self.event_bus.emit(EVENT_PAIR_RELEASED, first_id=pair.first, second_id=pair.second, outcome=outcome)
        if autosave:
            self.event_bus.emit(EVENT_AUTOSAVE_REQUEST, reason=outcome)

    def reset(self) -> None:
        """Cancel every in-flight comparison (board teardown or restore)."""
        for ent, pair in list(self.world.get_component(PendingPair)):
            for card_id in (pair.first, pair.second):
                entry = self._card(card_id)
                if entry is not None:
                    entry[1].pending = False
            self.world.delete_entity(ent, immediate=True)
        self.pending_card_ids.clear()

    def in_flight_pairs(self) -> list[tuple[int, int]]:
        return [(pair.first, pair.second) for _, pair in self.world.get_component(PendingPair)]
