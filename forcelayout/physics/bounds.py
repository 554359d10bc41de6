from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from forcelayout.config import settings as C
from forcelayout.geometry.vector import Vector2
from forcelayout.physics.model import Node


@dataclass(frozen=True)
class Bounds:
    top_left: Vector2
    bottom_right: Vector2

    @property
    def size(self) -> Vector2:
        return self.bottom_right - self.top_left

    @property
    def center(self) -> Vector2:
        return self.top_left + self.size / 2


def actual_bounds(nodes: Iterable[Node], padding: float = C.BOUNDS_PADDING) -> Bounds:
    """Padded min/max box of the finite node positions."""
    x_min = y_min = x_max = y_max = None
    for n in nodes:
        p = n.position
        if p.is_degenerate():
            continue
        if x_min is None:
            x_min = x_max = p.x
            y_min = y_max = p.y
            continue
        x_min = min(x_min, p.x)
        x_max = max(x_max, p.x)
        y_min = min(y_min, p.y)
        y_max = max(y_max, p.y)

    if x_min is None:
        (tlx, tly), (brx, bry) = C.DEFAULT_EXTENT
        return Bounds(Vector2(tlx, tly), Vector2(brx, bry))
    return Bounds(
        Vector2(x_min - padding, y_min - padding),
        Vector2(x_max + padding, y_max + padding),
    )


def enforce_min_extent(b: Bounds, extent: float = C.BOUNDS_MIN_EXTENT) -> Bounds:
    size = b.size
    half = Vector2(max(size.x, extent), max(size.y, extent)) / 2
    center = b.center
    return Bounds(center - half, center + half)


class BoundsTracker:
    """Low-pass filtered viewport box used for screen mapping."""

    def __init__(self, smoothing: float = C.BOUNDS_SMOOTHING) -> None:
        self.smoothing = smoothing
        self.raw: Optional[Bounds] = None
        self.smoothed: Optional[Bounds] = None

    def update(self, nodes: Iterable[Node], screen_size: Optional[Tuple[int, int]]) -> bool:
        """Returns True when the smoothed box changed."""
        if screen_size is None:
            return False
        width, height = screen_size

        self.raw = enforce_min_extent(actual_bounds(nodes))
        if self.smoothed is None:
            self.smoothed = self.raw
            return True

        old = self.smoothed
        k = self.smoothing
        tl = old.top_left + (self.raw.top_left - old.top_left) * k
        br = old.bottom_right + (self.raw.bottom_right - old.bottom_right) * k

        # skip sub-pixel moves
        shift_tl = (old.top_left - tl).magnitude()
        shift_br = (old.bottom_right - br).magnitude()
        if shift_tl * width > 1 or shift_br * height > 1:
            self.smoothed = Bounds(tl, br)
            return True
        return False
