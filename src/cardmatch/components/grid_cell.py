from dataclasses import dataclass


@dataclass(slots=True)
class GridCell:
    """Shape position a card occupies (column ``x``, row ``y`` from the top)."""
    x: int
    y: int

    @property
    def pos(self) -> tuple[int, int]:
        return (self.x, self.y)
