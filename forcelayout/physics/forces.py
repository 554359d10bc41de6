from __future__ import annotations

import random
from typing import Sequence

from forcelayout.config import settings as C
from forcelayout.geometry.vector import Vector2
from forcelayout.physics.model import Edge, Node
from forcelayout.spatial.quadtree import BarnesHut, point_repulsion


def apply_brute_force_repulsion(nodes: Sequence[Node], repulsion: float, rng: random.Random) -> None:
    # Each unordered pair once, in insertion order; equal and opposite pushes
    # scaled by the other body's mass.
    live = [n for n in nodes if not n.position.is_degenerate()]
    for i, p in enumerate(live):
        for r in live[i + 1:]:
            dx = p.position.x - r.position.x
            dy = p.position.y - r.position.y
            fx, fy = point_repulsion(dx, dy, 1.0, repulsion, rng)
            p.apply_force(Vector2(fx * r.mass, fy * r.mass))
            r.apply_force(Vector2(-fx * p.mass, -fy * p.mass))


def apply_barnes_hut_repulsion(
    nodes: Sequence[Node],
    repulsion: float,
    theta: float,
    top_left: Vector2,
    bottom_right: Vector2,
    rng: random.Random,
) -> BarnesHut:
    live = [n for n in nodes if not n.position.is_degenerate()]
    # grow the root over nodes placed outside the last extent
    x_min, y_min = top_left.x, top_left.y
    x_max, y_max = bottom_right.x, bottom_right.y
    for n in live:
        p = n.position
        x_min, x_max = min(x_min, p.x), max(x_max, p.x)
        y_min, y_max = min(y_min, p.y), max(y_max, p.y)

    tree = BarnesHut(Vector2(x_min, y_min), Vector2(x_max, y_max), theta, rng)
    tree.insert_all(live)
    for n in live:
        n.apply_force(tree.compute_force_on(n, repulsion))
    return tree


def apply_springs(edges: Sequence[Edge], rng: random.Random) -> None:
    # stretched springs pull the ends together, compressed ones push apart
    for spring in edges:
        src, tgt = spring.source, spring.target
        if src.position.is_degenerate() or tgt.position.is_degenerate():
            continue
        s = tgt.position - src.position
        d = s.magnitude()
        q = spring.length - d
        direction = (s if d > 0.0 else Vector2.random(rng)).normalize()
        src.apply_force(direction * (spring.stiffness * q * -0.5))
        tgt.apply_force(direction * (spring.stiffness * q * 0.5))


def apply_center_drift(nodes: Sequence[Node]) -> None:
    sx, sy = 0.0, 0.0
    count = 0
    for n in nodes:
        p = n.position
        if p.is_degenerate():
            continue
        sx += p.x
        sy += p.y
        count += 1
    if count == 0:
        return
    drift = Vector2(-sx / count, -sy / count)
    for n in nodes:
        n.apply_force(drift)


def apply_center_gravity(nodes: Sequence[Node], repulsion: float) -> None:
    k = repulsion / C.GRAVITY_DIVISOR
    for n in nodes:
        if n.position.is_degenerate():
            continue
        n.apply_force(n.position * -k)
