from __future__ import annotations

import random

from esper import World
from .events.bus import EventBus
from cardmatch.components.game_state import GameSession, GameMode
from cardmatch.components.score_state import ScoreState


def create_world(
    event_bus: EventBus,
    initial_mode: GameMode = GameMode.MENU,
    *,
    rng: random.Random | None = None,
) -> World:
    world = World()
    setattr(world, "random", rng or random.Random())

    # Register the global session resource.
    world.create_entity(GameSession(mode=initial_mode))

    # Score lives on its own entity so it survives board teardown.
    world.create_entity(ScoreState())
    return world
