from __future__ import annotations

import math
import random
from typing import Iterable, List, Optional, Tuple

from forcelayout.config import settings as C
from forcelayout.geometry.vector import Vector2
from forcelayout.physics.model import Node


def point_repulsion(
    dx: float, dy: float, mass: float, repulsion: float, rng: random.Random
) -> Tuple[float, float]:
    # F = k m / max(1, |d|)^2 along d; a random direction breaks exact overlap
    d = math.hypot(dx, dy)
    if d > 0.0:
        ux, uy = dx / d, dy / d
    else:
        ux, uy = Vector2.random(rng)
    distance = max(1.0, d)
    s = repulsion * mass / (distance * distance)
    return ux * s, uy * s


class Quad:
    __slots__ = ("x_min", "x_max", "y_min", "y_max")

    def __init__(self, x_min: float, x_max: float, y_min: float, y_max: float) -> None:
        self.x_min = x_min
        self.x_max = x_max
        self.y_min = y_min
        self.y_max = y_max

    @property
    def width(self) -> float:
        return self.x_max - self.x_min

    @property
    def height(self) -> float:
        return self.y_max - self.y_min

    def midpoint(self) -> Tuple[float, float]:
        return (self.x_min + self.x_max) * 0.5, (self.y_min + self.y_max) * 0.5

    def subdivide(self) -> Tuple["Quad", "Quad", "Quad", "Quad"]:
        mx, my = self.midpoint()
        return (
            Quad(self.x_min, mx, self.y_min, my),
            Quad(mx, self.x_max, self.y_min, my),
            Quad(self.x_min, mx, my, self.y_max),
            Quad(mx, self.x_max, my, self.y_max),
        )


class Cell:
    __slots__ = (
        "quad",
        "depth",
        "bodies",
        "mass",
        "com_x",
        "com_y",
        "sw",
        "se",
        "nw",
        "ne",
    )

    def __init__(self, quad: Quad, depth: int = 0) -> None:
        self.quad = quad
        self.depth = depth
        # more than one body only once MAX_QUADTREE_DEPTH is reached
        self.bodies: List[Node] = []
        self.mass = 0.0
        self.com_x = 0.0
        self.com_y = 0.0
        self.sw: Optional[Cell] = None
        self.se: Optional[Cell] = None
        self.nw: Optional[Cell] = None
        self.ne: Optional[Cell] = None

    def is_external(self) -> bool:
        return self.sw is None

    def children(self) -> Tuple["Cell", "Cell", "Cell", "Cell"]:
        return self.sw, self.se, self.nw, self.ne  # type: ignore[return-value]

    def _update_com(self, b: Node) -> None:
        m = self.mass + b.mass
        p = b.position
        if m <= 0.0:
            return
        self.com_x = (self.com_x * self.mass + p.x * b.mass) / m
        self.com_y = (self.com_y * self.mass + p.y * b.mass) / m
        self.mass = m

    def insert(self, b: Node, rng: random.Random) -> None:
        if self.is_external():
            if not self.bodies or self.depth >= C.MAX_QUADTREE_DEPTH:
                self.bodies.append(b)
                self._update_com(b)
                return

            existing = self.bodies[0]
            self.bodies = []
            quads = self.quad.subdivide()
            self.sw, self.se, self.nw, self.ne = (Cell(q, self.depth + 1) for q in quads)
            if existing.position == b.position:
                self._jitter(existing, rng)

            self._put_into_child(existing, rng)
            self._put_into_child(b, rng)

            self.mass = 0.0
            self.com_x = 0.0
            self.com_y = 0.0
            self._update_com(existing)
            self._update_com(b)
            return

        self._update_com(b)
        self._put_into_child(b, rng)

    def _jitter(self, b: Node, rng: random.Random) -> None:
        q = self.quad
        p = b.position
        x = p.x + (rng.random() - 0.5) * q.width * C.COINCIDENT_JITTER
        y = p.y + (rng.random() - 0.5) * q.height * C.COINCIDENT_JITTER
        # stay strictly inside the cell along axes the body was already inside,
        # so every ancestor still routes it here
        if q.x_min <= p.x <= q.x_max:
            inset = q.width * 0.01
            x = min(max(x, q.x_min + inset), q.x_max - inset)
        if q.y_min <= p.y <= q.y_max:
            inset = q.height * 0.01
            y = min(max(y, q.y_min + inset), q.y_max - inset)
        b.position = Vector2(x, y)

    def _child_for(self, p: Vector2) -> "Cell":
        # compare against the midpoint so bodies outside the root still land
        mx, my = self.quad.midpoint()
        if p.y <= my:
            return self.sw if p.x <= mx else self.se  # type: ignore[return-value]
        return self.nw if p.x <= mx else self.ne  # type: ignore[return-value]

    def _put_into_child(self, b: Node, rng: random.Random) -> None:
        self._child_for(b.position).insert(b, rng)

    def calc_force(
        self,
        b: Node,
        repulsion: float,
        theta: float,
        rng: random.Random,
        holds_b: bool = True,
    ) -> Tuple[float, float]:
        # Barnes–Hut criterion: use cell COM when (longest side / distance) < θ.
        # A cell on b's insertion path is always opened, so b never repels itself.
        p = b.position
        if self.is_external():
            fx, fy = 0.0, 0.0
            for other in self.bodies:
                if other is b:
                    continue
                o = other.position
                sx, sy = point_repulsion(p.x - o.x, p.y - o.y, other.mass, repulsion, rng)
                fx += sx
                fy += sy
            return fx, fy

        if not holds_b:
            dx = p.x - self.com_x
            dy = p.y - self.com_y
            dist = math.hypot(dx, dy)
            size = max(self.quad.width, self.quad.height)
            if dist > 0.0 and size / dist < theta:
                return point_repulsion(dx, dy, self.mass, repulsion, rng)

        path = self._child_for(p) if holds_b else None
        fx, fy = 0.0, 0.0
        for child in self.children():
            cx, cy = child.calc_force(b, repulsion, theta, rng, child is path)
            fx += cx
            fy += cy
        return fx, fy


class BarnesHut:
    """Quadtree over the global extent, rebuilt from scratch every tick."""

    def __init__(
        self,
        top_left: Vector2,
        bottom_right: Vector2,
        theta: float = C.BARNES_HUT_THETA,
        rng: Optional[random.Random] = None,
    ) -> None:
        x_min, y_min = top_left.x, top_left.y
        x_max, y_max = bottom_right.x, bottom_right.y
        if x_max - x_min <= 0.0:
            x_min, x_max = x_min - 0.5, x_max + 0.5
        if y_max - y_min <= 0.0:
            y_min, y_max = y_min - 0.5, y_max + 0.5
        self.root = Cell(Quad(x_min, x_max, y_min, y_max))
        self.theta = theta
        self.rng = rng or random.Random()

    def insert(self, b: Node) -> bool:
        if b.position.is_degenerate():
            return False
        self.root.insert(b, self.rng)
        return True

    def insert_all(self, bodies: Iterable[Node]) -> int:
        return sum(1 for b in bodies if self.insert(b))

    def compute_force_on(self, b: Node, repulsion: float) -> Vector2:
        if b.position.is_degenerate():
            return Vector2(0.0, 0.0)
        fx, fy = self.root.calc_force(b, repulsion, self.theta, self.rng)
        return Vector2(fx, fy)
