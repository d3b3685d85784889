"""Board shape generation.

Maps an abstract shape kind and size to the ordered grid cells a board is laid
out on. Positions are ``(x, y)`` tuples where ``x`` is the column and ``y`` the
row counted from the top. Every shape yields an even number of cells because the
deck is built from exact pairs.
"""
from __future__ import annotations

from enum import IntEnum
from typing import Callable, Dict, List, Sequence, Tuple

from cardmatch.errors import ShapeError

GridPos = Tuple[int, int]


class ShapeKind(IntEnum):
    """Board shapes; integer values are stored in save files."""
    SQUARE = 0
    V_SHAPE = 1
    O_SHAPE = 2
    L_SHAPE = 3
    PLUS = 4
    DIAMOND = 5
    HEART = 6


def _square(size: int) -> List[GridPos]:
    return [(col, row) for row in range(size) for col in range(size)]


def _v_shape(size: int) -> List[GridPos]:
    # Narrow at the top, one card wider per row.
    positions: List[GridPos] = []
    for row in range(size):
        width = row + 1
        start_col = (size - width) // 2
        for col in range(start_col, start_col + width):
            if 0 <= col < size:
                positions.append((col, row))
    return positions


def _o_shape(size: int) -> List[GridPos]:
    return [
        (col, row)
        for row in range(size)
        for col in range(size)
        if row == 0 or row == size - 1 or col == 0 or col == size - 1
    ]


def _l_shape(size: int) -> List[GridPos]:
    positions: List[GridPos] = [(0, row) for row in range(size)]
    positions.extend((col, size - 1) for col in range(1, size))
    return positions


def _plus(size: int) -> List[GridPos]:
    center = size // 2
    positions: List[GridPos] = [(center, row) for row in range(size)]
    positions.extend((col, center) for col in range(size) if col != center)
    return positions


def _diamond(size: int) -> List[GridPos]:
    center = size // 2
    positions: List[GridPos] = []
    for row in range(size):
        width = size - 2 * abs(row - center)
        if width <= 0:
            continue
        start_col = center - int((width - 1) / 2)
        positions.extend((col, row) for col in range(start_col, start_col + width))
    return positions


def _lerp(a: float, b: float, t: float) -> float:
    t = min(1.0, max(0.0, t))
    return a + (b - a) * t


def _heart(size: int) -> List[GridPos]:
    if size % 2 == 0:
        size -= 1
    if size < 3:
        raise ShapeError(f"heart shape needs an odd size of at least 3, got {size}")
    center = size // 2
    positions: List[GridPos] = []
    for row in range(size):
        t = row / (size - 1)
        if t < 0.25:
            width = 2
        elif t < 0.55:
            width = size
        else:
            width = round(_lerp(size, 1, (t - 0.55) / 0.45))
        width = min(size, max(1, width))
        if row == 0 and width == 2:
            # Two lobes either side of the midline instead of a solid run.
            positions.append((center - 1, row))
            positions.append((center + 1, row))
            continue
        start_col = center - width // 2
        positions.extend(
            (col, row) for col in range(start_col, start_col + width) if 0 <= col < size
        )
    return positions


_GENERATORS: Dict[ShapeKind, Callable[[int], List[GridPos]]] = {
    ShapeKind.SQUARE: _square,
    ShapeKind.V_SHAPE: _v_shape,
    ShapeKind.O_SHAPE: _o_shape,
    ShapeKind.L_SHAPE: _l_shape,
    ShapeKind.PLUS: _plus,
    ShapeKind.DIAMOND: _diamond,
    ShapeKind.HEART: _heart,
}


def coerce_shape_kind(value: ShapeKind | int | str) -> ShapeKind:
    """Accept enum members, their integer values or their names."""

    if isinstance(value, ShapeKind):
        return value
    if isinstance(value, str):
        try:
            return ShapeKind[value.strip().upper()]
        except KeyError as exc:
            raise ShapeError(f"unknown shape kind {value!r}") from exc
    try:
        return ShapeKind(int(value))
    except (TypeError, ValueError) as exc:
        raise ShapeError(f"unknown shape kind {value!r}") from exc


def generate_shape(kind: ShapeKind | int | str, size: int) -> List[GridPos]:
    """Return the ordered grid positions of ``kind`` at ``size``.

    If the raw shape has an odd number of cells the last generated position is
    dropped so the board always holds complete pairs.
    """

    shape = coerce_shape_kind(kind)
    if size < 1:
        raise ShapeError(f"shape size must be positive, got {size}")
    positions = _GENERATORS[shape](size)
    if len(positions) % 2 != 0:
        positions.pop()
    return positions


def shape_bounds(positions: Sequence[GridPos]) -> Tuple[int, int, int, int]:
    """Return ``(min_x, min_y, max_x, max_y)`` of a non-empty position list."""

    if not positions:
        raise ShapeError("cannot compute bounds of an empty shape")
    xs = [x for x, _ in positions]
    ys = [y for _, y in positions]
    return min(xs), min(ys), max(xs), max(ys)
