class CardMatchError(Exception):
    """Base exception for the card match engine."""


class ConfigurationError(CardMatchError):
    """Raised when a game cannot start because of invalid settings (size, assets, bounds)."""


class ShapeError(ConfigurationError, ValueError):
    """Raised when a shape cannot be realised for the requested size."""


class LayoutError(CardMatchError, ValueError):
    """Raised when board geometry cannot be computed (empty shape, zero-sized display)."""


class DeckError(CardMatchError, ValueError):
    """Raised for impossible deck requests (no pairs, empty symbol pool)."""


class SaveDataError(CardMatchError):
    """Raised when a saved snapshot is corrupt or does not fit the board it should restore."""