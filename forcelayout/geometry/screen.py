from __future__ import annotations

from typing import Optional, Tuple

from forcelayout.config import settings as C
from forcelayout.geometry.vector import NULL, Vector2

Margins = Tuple[int, int, int, int]  # top, right, bottom, left


def to_screen(
    top_left: Vector2,
    bottom_right: Vector2,
    screen_size: Optional[Tuple[int, int]],
    pt: Vector2,
    margins: Margins = C.SCREEN_MARGINS,
) -> Vector2:
    if screen_size is None or pt.is_null():
        return NULL
    top, right, bottom, left = margins
    width, height = screen_size
    span = bottom_right - top_left
    rel = pt - top_left
    sx = left + rel.x / span.x * (width - (right + left))
    sy = top + rel.y / span.y * (height - (top + bottom))
    return Vector2(sx, sy)


def from_screen(
    top_left: Vector2,
    bottom_right: Vector2,
    screen_size: Optional[Tuple[int, int]],
    sx: float,
    sy: float,
    margins: Margins = C.SCREEN_MARGINS,
) -> Vector2:
    if screen_size is None:
        return NULL
    top, right, bottom, left = margins
    width, height = screen_size
    span = bottom_right - top_left
    x = (sx - left) / (width - (right + left)) * span.x + top_left.x
    y = (sy - top) / (height - (top + bottom)) * span.y + top_left.y
    return Vector2(x, y)
