"""Pure geometry for placing a shape's cards inside a display rectangle."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Tuple

from cardmatch.constants import (
    CARD_BASE_HEIGHT,
    CARD_BASE_WIDTH,
    CARD_SPACING_PERCENT,
    EDGE_PADDING_PERCENT,
)
from cardmatch.errors import LayoutError, ShapeError
from cardmatch.utils.shapes import GridPos, shape_bounds


@dataclass(slots=True, frozen=True)
class DisplayRect:
    """Screen rectangle in window coordinates (origin bottom-left, y up)."""
    left: float
    bottom: float
    width: float
    height: float

    @property
    def top(self) -> float:
        return self.bottom + self.height

    @property
    def right(self) -> float:
        return self.left + self.width


@dataclass(slots=True)
class BoardLayout:
    """Uniform card scale plus the centre anchor of every grid position."""
    scale: float
    card_width: float
    card_height: float
    spacing_x: float
    spacing_y: float
    anchors: Dict[GridPos, Tuple[float, float]] = field(default_factory=dict)

    def card_rect(self, pos: GridPos) -> Tuple[float, float, float, float]:
        """Return ``(left, bottom, right, top)`` of the card at ``pos``."""
        cx, cy = self.anchors[pos]
        half_w = self.card_width / 2
        half_h = self.card_height / 2
        return cx - half_w, cy - half_h, cx + half_w, cy + half_h


def compute_board_layout(
    positions: Sequence[GridPos],
    display: DisplayRect,
    *,
    card_size: Tuple[float, float] = (CARD_BASE_WIDTH, CARD_BASE_HEIGHT),
    edge_padding: float = EDGE_PADDING_PERCENT,
    card_spacing: float = CARD_SPACING_PERCENT,
) -> BoardLayout:
    """Fit ``positions`` into ``display`` without stretching the cards.

    Padding and spacing are fractions of the display extent. The scale is the
    smaller of the horizontal and vertical fit so the aspect ratio of the card
    is preserved, and the resulting grid is centred in the padded area.
    """

    if display.width <= 0 or display.height <= 0:
        raise LayoutError(f"display rectangle must have a positive size, got {display}")
    base_w, base_h = card_size
    if base_w <= 0 or base_h <= 0:
        raise LayoutError(f"card size must be positive, got {card_size}")
    try:
        min_x, min_y, max_x, max_y = shape_bounds(positions)
    except ShapeError as exc:
        raise LayoutError(str(exc)) from exc
    shape_w = max_x - min_x + 1
    shape_h = max_y - min_y + 1

    pad_x = display.width * edge_padding
    pad_y = display.height * edge_padding
    gap_x = display.width * card_spacing
    gap_y = display.height * card_spacing

    inner_w = display.width - 2 * pad_x
    inner_h = display.height - 2 * pad_y
    per_card_w = (inner_w - gap_x * (shape_w - 1)) / shape_w
    per_card_h = (inner_h - gap_y * (shape_h - 1)) / shape_h
    scale = min(per_card_w / base_w, per_card_h / base_h)
    if scale <= 0:
        raise LayoutError(f"display {display} too small for a {shape_w}x{shape_h} shape")

    card_w = base_w * scale
    card_h = base_h * scale
    grid_w = card_w * shape_w + gap_x * (shape_w - 1)
    grid_h = card_h * shape_h + gap_y * (shape_h - 1)
    step_x = card_w + gap_x
    step_y = card_h + gap_y

    # Anchor of the top-left cell; rows grow downwards.
    start_x = display.left + pad_x + (inner_w - grid_w) / 2 + card_w / 2
    start_y = display.top - pad_y - (inner_h - grid_h) / 2 - card_h / 2

    anchors = {
        (x, y): (start_x + (x - min_x) * step_x, start_y - (y - min_y) * step_y)
        for x, y in positions
    }
    return BoardLayout(
        scale=scale,
        card_width=card_w,
        card_height=card_h,
        spacing_x=gap_x,
        spacing_y=gap_y,
        anchors=anchors,
    )


def hit_test(layout: BoardLayout, x: float, y: float) -> Optional[GridPos]:
    """Return the grid position whose card contains the point, if any."""

    for pos in layout.anchors:
        left, bottom, right, top = layout.card_rect(pos)
        if left <= x <= right and bottom <= y <= top:
            return pos
    return None
