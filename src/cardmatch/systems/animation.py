from __future__ import annotations

import logging

from esper import World

from cardmatch.components.card import Card
from cardmatch.components.flip_animation import FlipAnimation
from cardmatch.events.bus import EVENT_FLIP_COMPLETE, EVENT_TICK, EventBus

logger = logging.getLogger(__name__)


def start_flip(world: World, entity: int, to_face_up: bool, duration: float) -> None:
    """Mark a card as mid-flip for ``duration`` seconds; zero means instant."""
    if duration <= 0:
        if world.has_component(entity, FlipAnimation):
            world.remove_component(entity, FlipAnimation)
        return
    world.add_component(entity, FlipAnimation(to_face_up=to_face_up, duration=duration))


class FlipAnimationSystem:
    """Drives flip timers; a card is not clickable while its flip settles."""
    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        event_bus.subscribe(EVENT_TICK, self.on_tick)

    def teardown(self) -> None:
        self.event_bus.unsubscribe(EVENT_TICK, self.on_tick)

    def on_tick(self, sender, **kwargs):
        dt = kwargs.get('dt', 1/60)
        finished: list[tuple[int, bool]] = []
        for ent, flip in list(self.world.get_component(FlipAnimation)):
            flip.elapsed += dt
            if flip.done:
                finished.append((ent, flip.to_face_up))
        for ent, face_up in finished:
            self.world.remove_component(ent, FlipAnimation)
            card = self.world.try_component(ent, Card)
            if card is None:
                continue
            self.event_bus.emit(EVENT_FLIP_COMPLETE, card_id=card.card_id, face_up=face_up)

    def settle_all(self) -> None:
        """Finish every running flip immediately (board restore, teardown)."""
        for ent, _ in list(self.world.get_component(FlipAnimation)):
            self.world.remove_component(ent, FlipAnimation)
