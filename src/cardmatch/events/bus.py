from blinker import Signal
from typing import Dict

class EventBus:
    """Simple event bus leveraging blinker Signal objects."""
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        # Use weak=False to retain strong reference to bound methods so systems not kept in a variable still receive events.
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: str, fn):
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)

    def has_receivers(self, name: str) -> bool:
        sig = self._signals.get(name)
        return bool(sig and sig.receivers)


# ============================================================================
# SYSTEM & TIMING
# ============================================================================
EVENT_TICK = "tick"                                # payload: dt=float


# ============================================================================
# INPUT & INTERACTION
# ============================================================================
EVENT_CARD_CLICK = "card_click"                    # payload: card_id=int


# ============================================================================
# CARD & PAIR MECHANICS
# ============================================================================
EVENT_CARD_FLIPPED = "card_flipped"                # payload: card_id=int
EVENT_CARD_FLIPPED_BACK = "card_flipped_back"      # payload: card_id=int
EVENT_FLIP_COMPLETE = "flip_complete"              # payload: card_id=int, face_up=bool
EVENT_PAIR_FORMED = "pair_formed"                  # payload: first_id=int, second_id=int
EVENT_PAIR_RELEASED = "pair_released"              # payload: first_id=int, second_id=int, outcome=str
EVENT_CARD_MATCHED = "card_matched"                # payload: first_id=int, second_id=int
EVENT_CARD_MISMATCHED = "card_mismatched"          # payload: first_id=int, second_id=int
EVENT_ALL_PAIRS_MATCHED = "all_pairs_matched"      # payload: None


# ============================================================================
# SCORE
# ============================================================================
EVENT_SCORE_CHANGED = "score_changed"              # payload: state=ScoreState


# ============================================================================
# GAME FLOW & STATE
# ============================================================================
EVENT_GAME_MODE_CHANGED = "game_mode_changed"      # payload: previous_mode=GameMode|None, new_mode=GameMode
EVENT_GAME_STARTED = "game_started"                # payload: shape_kind=ShapeKind, size=int, card_count=int
EVENT_GAME_RESUMED = "game_resumed"                # payload: shape_kind=ShapeKind, size=int, card_count=int
EVENT_GAME_SUSPENDED = "game_suspended"            # payload: reason=str
EVENT_GAME_ABANDONED = "game_abandoned"            # payload: None
EVENT_GAME_WON = "game_won"                        # payload: final_score=int, elapsed_time=float, moves=int
EVENT_BOARD_TORN_DOWN = "board_torn_down"          # payload: board_entity=int


# ============================================================================
# PERSISTENCE
# ============================================================================
EVENT_AUTOSAVE_REQUEST = "autosave_request"        # payload: reason=str
