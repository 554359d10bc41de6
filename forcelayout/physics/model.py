from __future__ import annotations

from dataclasses import dataclass, field

from forcelayout.config import settings as C
from forcelayout.geometry.vector import Vector2


@dataclass(eq=False)
class Node:
    id: str
    position: Vector2
    velocity: Vector2 = field(default_factory=Vector2)
    force: Vector2 = field(default_factory=Vector2)
    mass: float = C.DEFAULT_NODE_MASS
    fixed: bool = False

    def apply_force(self, f: Vector2) -> None:
        self.force = self.force + f

    def clear_force(self) -> None:
        self.force = Vector2(0.0, 0.0)


@dataclass(eq=False)
class Edge:
    """Directed spring; at most one per ordered (source, target) pair."""

    source: Node
    target: Node
    length: float = C.DEFAULT_EDGE_LENGTH
    stiffness: float = C.STIFFNESS

    @property
    def key(self) -> tuple[str, str]:
        return self.source.id, self.target.id
