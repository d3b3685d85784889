from __future__ import annotations

from abc import ABC, abstractmethod


class AudioService(ABC):
    """Sound cues the engine asks for; mixing and playback live elsewhere."""

    @abstractmethod
    def play_card_flip(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def play_card_match(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def play_card_mismatch(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def play_game_over(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_volume(self, volume: float) -> None:
        """Set master volume in [0..1]."""
        raise NotImplementedError


class NullAudioService(AudioService):
    """Silent implementation used when no audio layer is attached."""

    def __init__(self) -> None:
        self.volume = 1.0

    def play_card_flip(self) -> None:
        pass

    def play_card_match(self) -> None:
        pass

    def play_card_mismatch(self) -> None:
        pass

    def play_game_over(self) -> None:
        pass

    def set_volume(self, volume: float) -> None:
        self.volume = max(0.0, min(1.0, float(volume)))
