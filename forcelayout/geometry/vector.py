from __future__ import annotations

import math
import random
from typing import Iterator


class Vector2:
    """Immutable-style 2-D point. Every operation returns a new vector."""

    __slots__ = ("x", "y")

    def __init__(self, x: float = 0.0, y: float = 0.0) -> None:
        self.x = float(x)
        self.y = float(y)

    @classmethod
    def random(cls, rng: random.Random, radius: float = 1.0) -> "Vector2":
        angle = rng.uniform(0.0, 2.0 * math.pi)
        return cls(radius * math.cos(angle), radius * math.sin(angle))

    def __add__(self, other: "Vector2") -> "Vector2":
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vector2") -> "Vector2":
        return Vector2(self.x - other.x, self.y - other.y)

    def __mul__(self, k: float) -> "Vector2":
        return Vector2(self.x * k, self.y * k)

    __rmul__ = __mul__

    def __truediv__(self, k: float) -> "Vector2":
        return Vector2(self.x / k, self.y / k)

    def __neg__(self) -> "Vector2":
        return Vector2(-self.x, -self.y)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector2):
            return NotImplemented
        if self.is_null() or other.is_null():
            return self is other
        return self.x == other.x and self.y == other.y

    def __hash__(self) -> int:
        return hash((self.x, self.y))

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def __repr__(self) -> str:
        if self.is_null():
            return "Vector2.NULL"
        return f"Vector2({self.x:g}, {self.y:g})"

    def magnitude(self) -> float:
        return math.hypot(self.x, self.y)

    def magnitude_squared(self) -> float:
        return self.x * self.x + self.y * self.y

    def normalize(self) -> "Vector2":
        m = self.magnitude()
        if m == 0.0:
            return Vector2(0.0, 0.0)
        return Vector2(self.x / m, self.y / m)

    def is_degenerate(self) -> bool:
        # overflowed to inf or poisoned by nan
        return not (math.isfinite(self.x) and math.isfinite(self.y))

    def is_null(self) -> bool:
        return self is NULL


NULL = Vector2(math.nan, math.nan)
Vector2.NULL = NULL  # type: ignore[attr-defined]
