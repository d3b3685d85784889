from cardmatch.utils.shapes import ShapeKind

# ============================================================================
# BOARD SIZE
# ============================================================================
MIN_GRID_SIZE = 2
MAX_GRID_SIZE = 6
DEFAULT_GRID_SIZE = 2

# Smallest size that still produces a recognisable instance of each shape.
MIN_SIZE_BY_SHAPE = {
    ShapeKind.SQUARE: 2,
    ShapeKind.V_SHAPE: 2,
    ShapeKind.O_SHAPE: 2,
    ShapeKind.L_SHAPE: 2,
    ShapeKind.PLUS: 3,
    ShapeKind.DIAMOND: 3,
    ShapeKind.HEART: 3,
}

# Size used when a new game is requested without an explicit size.
DEFAULT_SIZE_BY_SHAPE = {
    ShapeKind.SQUARE: 4,    # 16 cards
    ShapeKind.V_SHAPE: 5,   # 14 cards
    ShapeKind.O_SHAPE: 4,   # 12 cards
    ShapeKind.L_SHAPE: 4,   # 6 cards
    ShapeKind.PLUS: 5,      # 8 cards
    ShapeKind.DIAMOND: 5,   # 12 cards
    ShapeKind.HEART: 5,     # 16 cards
}

SYMBOL_POOL_SIZE = 12


# ============================================================================
# TIMING (seconds)
# ============================================================================
CARD_FLIP_DURATION = 0.25
CARD_REVEAL_DURATION = 0.3
CARD_SELECTION_DELAY = 0.5
AUDIO_RESULT_DELAY = 0.3
FLIP_SETTLE_TIMEOUT = 2.0


# ============================================================================
# SCORING
# ============================================================================
BASE_SCORE_PER_MATCH = 100
MAX_COMBO_MULTIPLIER = 5
TIME_BONUS_PER_SECOND = 10
TIME_BONUS_WINDOW = 100


# ============================================================================
# LAYOUT
# ============================================================================
CARD_BASE_WIDTH = 400.0
CARD_BASE_HEIGHT = 430.0
EDGE_PADDING_PERCENT = 0.05
CARD_SPACING_PERCENT = 0.02


# ============================================================================
# PERSISTENCE
# ============================================================================
SAVE_FILE_NAME = "CardMatchSave.json"
