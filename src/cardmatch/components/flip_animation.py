from dataclasses import dataclass


@dataclass(slots=True)
class FlipAnimation:
    """Present on a card entity while its flip is still settling."""
    to_face_up: bool
    duration: float
    elapsed: float = 0.0

    @property
    def done(self) -> bool:
        return self.elapsed >= self.duration
