from __future__ import annotations

import logging
import math
from dataclasses import fields

from esper import World

from cardmatch.components.score_state import ScoreState
from cardmatch.config import GameConfig
from cardmatch.events.bus import (
    EVENT_CARD_MATCHED,
    EVENT_CARD_MISMATCHED,
    EVENT_SCORE_CHANGED,
    EventBus,
)

logger = logging.getLogger(__name__)


class ScoreSystem:
    """Moves, combo multiplier and time bonus arithmetic.

    Consecutive matches grow the combo; the multiplier kicks in from the second
    match in a row and is capped. A mismatch resets the combo.
    """

    def __init__(self, world: World, event_bus: EventBus, *, config: GameConfig | None = None):
        self.world = world
        self.event_bus = event_bus
        self.config = config or GameConfig()
        self._score_entity = self._ensure_score_entity()
        self.event_bus.subscribe(EVENT_CARD_MATCHED, self._on_card_matched)
        self.event_bus.subscribe(EVENT_CARD_MISMATCHED, self._on_card_mismatched)

    def teardown(self) -> None:
        self.event_bus.unsubscribe(EVENT_CARD_MATCHED, self._on_card_matched)
        self.event_bus.unsubscribe(EVENT_CARD_MISMATCHED, self._on_card_mismatched)

    def _ensure_score_entity(self) -> int:
        existing = list(self.world.get_component(ScoreState))
        if existing:
            return existing[0][0]
        return self.world.create_entity(ScoreState())

    @property
    def state(self) -> ScoreState:
        return self.world.component_for_entity(self._score_entity, ScoreState)

    @property
    def current_combo_count(self) -> int:
        return self.state.combo_count

    def on_matched(self) -> None:
        state = self.state
        state.moves += 1
        state.combo_count += 1
        state.combos += 1
        if state.combo_count >= 2:
            state.combo_multiplier = min(state.combo_count, self.config.max_combo_multiplier)
        else:
            state.combo_multiplier = 1
        state.base_score += self.config.base_score_per_match
        state.recalculate_total()
        logger.debug("Match scored: combo=%d multiplier=%d total=%d",
                     state.combo_count, state.combo_multiplier, state.total_score)
        self._changed()

    def on_mismatched(self) -> None:
        state = self.state
        state.moves += 1
        if state.combo_count > 0:
            logger.debug("Combo reset from %d", state.combo_count)
        state.combo_count = 0
        state.combo_multiplier = 1
        state.recalculate_total()
        self._changed()

    def time_bonus(self, elapsed_seconds: float) -> int:
        """Bonus for finishing fast; never negative."""
        raw = self.config.time_bonus_per_second * (self.config.time_bonus_window - elapsed_seconds)
        return max(0, math.floor(raw))

    def apply_time_bonus(self, elapsed_seconds: float) -> int:
        state = self.state
        state.time_bonus = self.time_bonus(elapsed_seconds)
        state.recalculate_total()
        self._changed()
        return state.time_bonus

    def final_score(self, elapsed_seconds: float) -> int:
        self.apply_time_bonus(elapsed_seconds)
        return self.state.total_score

    def reset(self) -> None:
        self._replace(ScoreState())

    def restore(self, saved: ScoreState) -> None:
        """Install a saved score verbatim."""
        self._replace(saved.copy())

    def _replace(self, state: ScoreState) -> None:
        current = self.state
        for f in fields(ScoreState):
            setattr(current, f.name, getattr(state, f.name))
        self._changed()

    def _changed(self) -> None:
        self.event_bus.emit(EVENT_SCORE_CHANGED, state=self.state.copy())

    # Event handlers -----------------------------------------------------

    def _on_card_matched(self, sender, **payload) -> None:
        self.on_matched()

    def _on_card_mismatched(self, sender, **payload) -> None:
        self.on_mismatched()
