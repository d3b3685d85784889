from __future__ import annotations

from esper import World

from cardmatch.components.game_state import GameMode, GameSession
from cardmatch.events.bus import EVENT_GAME_MODE_CHANGED, EventBus


def get_session(world: World) -> GameSession:
    """Return the session singleton, creating it on first use."""

    for _, session in world.get_component(GameSession):
        return session
    session = GameSession()
    world.create_entity(session)
    return session


def set_game_mode(world: World, event_bus: EventBus, mode: GameMode) -> None:
    """Update the session mode and emit a change event when it differs."""

    session = get_session(world)
    previous_mode = session.mode
    if previous_mode == mode:
        return
    session.mode = mode
    event_bus.emit(
        EVENT_GAME_MODE_CHANGED,
        previous_mode=previous_mode,
        new_mode=mode,
    )
