from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Callable, Optional

from esper import World

from cardmatch.components.game_state import GameMode, GameSession
from cardmatch.components.save_snapshot import SaveSnapshot
from cardmatch.components.score_state import ScoreState
from cardmatch.config import GameConfig
from cardmatch.errors import SaveDataError
from cardmatch.events.bus import (
    EVENT_AUTOSAVE_REQUEST,
    EVENT_GAME_ABANDONED,
    EVENT_GAME_SUSPENDED,
    EVENT_GAME_WON,
    EventBus,
)
from cardmatch.utils.save_codec import (
    capture_snapshot,
    is_completed,
    snapshot_from_dict,
    snapshot_to_dict,
)

logger = logging.getLogger(__name__)


class SaveSystem:
    """Single-slot autosave of the running board, score and clock.

    Disk failures are logged and treated as "no save"; they never interrupt play.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        config: GameConfig | None = None,
        save_path: Path | None = None,
        score_provider: Callable[[], ScoreState] | None = None,
    ) -> None:
        self.world = world
        self.event_bus = event_bus
        self.config = config or GameConfig()
        self._save_path = Path(save_path) if save_path is not None else self._default_save_path()
        self._score_provider = score_provider
        self.event_bus.subscribe(EVENT_AUTOSAVE_REQUEST, self._on_autosave_request)
        self.event_bus.subscribe(EVENT_GAME_SUSPENDED, self._on_game_suspended)
        self.event_bus.subscribe(EVENT_GAME_WON, self._on_game_won)
        self.event_bus.subscribe(EVENT_GAME_ABANDONED, self._on_game_abandoned)

    def _default_save_path(self) -> Path:
        return Path(__file__).resolve().parents[3] / "data" / self.config.save_file_name

    @property
    def save_path(self) -> Path:
        return self._save_path

    def teardown(self) -> None:
        self.event_bus.unsubscribe(EVENT_AUTOSAVE_REQUEST, self._on_autosave_request)
        self.event_bus.unsubscribe(EVENT_GAME_SUSPENDED, self._on_game_suspended)
        self.event_bus.unsubscribe(EVENT_GAME_WON, self._on_game_won)
        self.event_bus.unsubscribe(EVENT_GAME_ABANDONED, self._on_game_abandoned)

    def _session(self) -> GameSession | None:
        for _, session in self.world.get_component(GameSession):
            return session
        return None

    # Slot operations ------------------------------------------------------

    def has_save(self) -> bool:
        return self._save_path.exists()

    def write(self, snapshot: SaveSnapshot) -> bool:
        try:
            self._save_path.parent.mkdir(parents=True, exist_ok=True)
            with self._save_path.open("w", encoding="utf-8") as handle:
                json.dump(snapshot_to_dict(snapshot), handle, indent=2)
        except OSError as exc:
            logger.error("Failed to save game data to %s: %s", self._save_path, exc)
            return False
        logger.debug("Game data saved to %s", self._save_path)
        return True

    def read(self) -> Optional[SaveSnapshot]:
        """Return the stored snapshot as-is.

        ``None`` when there is no save or it cannot be read from disk; corrupt
        content raises ``SaveDataError`` so the caller can fall back to a new game.
        """
        try:
            with self._save_path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except FileNotFoundError:
            return None
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise SaveDataError(f"save file is not valid JSON: {exc}") from exc
        except OSError as exc:
            logger.error("Failed to load game data from %s: %s", self._save_path, exc)
            return None
        return snapshot_from_dict(payload)

    def load(self) -> Optional[SaveSnapshot]:
        """Return a resumable snapshot, or ``None`` when absent, corrupt or finished."""
        try:
            snapshot = self.read()
        except SaveDataError as exc:
            logger.warning("Discarding corrupt save %s: %s", self._save_path, exc)
            self.delete()
            return None
        if snapshot is None:
            return None
        if is_completed(snapshot):
            logger.info("Save at %s is already completed, deleting", self._save_path)
            self.delete()
            return None
        return snapshot

    def delete(self) -> None:
        try:
            self._save_path.unlink(missing_ok=True)
        except OSError as exc:
            logger.error("Failed to delete save data %s: %s", self._save_path, exc)

    def can_resume(self) -> bool:
        return self.has_save() and self.load() is not None

    def save_current(self) -> bool:
        """Snapshot the live board if a game is running."""
        session = self._session()
        if session is None or session.board_entity is None or self._score_provider is None:
            return False
        if session.mode not in (GameMode.PLAYING, GameMode.PREVIEW):
            return False
        if not self.world.entity_exists(session.board_entity):
            return False
        snapshot = capture_snapshot(self.world, session.board_entity, self._score_provider(), session.elapsed_time)
        if is_completed(snapshot):
            self.delete()
            return False
        return self.write(snapshot)

    # Event handlers -----------------------------------------------------

    def _on_autosave_request(self, sender, **payload) -> None:
        self.save_current()

    def _on_game_suspended(self, sender, **payload) -> None:
        self.save_current()

    def _on_game_won(self, sender, **payload) -> None:
        self.delete()

    def _on_game_abandoned(self, sender, **payload) -> None:
        self.delete()
