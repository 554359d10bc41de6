from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from forcelayout.config import settings as C
from forcelayout.geometry.vector import Vector2
from forcelayout.physics.convergence import EnergyMetrics
from forcelayout.physics.model import Node


@dataclass(frozen=True)
class StepStats:
    top_left: Vector2
    bottom_right: Vector2
    energy: EnergyMetrics


def update_velocity(nodes: Sequence[Node], dt: float, friction: float) -> None:
    # Semi-implicit Euler: v = (v + F dt)(1 - friction). No division by mass.
    zero = Vector2(0.0, 0.0)
    for n in nodes:
        if n.fixed:
            n.velocity = zero
            n.force = zero
            continue

        v = (n.velocity + n.force * dt) * (1.0 - friction)
        n.force = zero
        speed = v.magnitude()
        if speed > C.SPEED_LIMIT:
            # soft cap: v / |v|^2, not a clamp to SPEED_LIMIT
            v = v / (speed * speed)
        n.velocity = v


def update_position(nodes: Sequence[Node], dt: float) -> StepStats:
    """Move every node and gather the raw extent and energy in one pass."""
    total = 0.0
    peak = 0.0
    count = 0
    x_min = y_min = x_max = y_max = None

    for n in nodes:
        n.position = n.position + n.velocity * dt
        e = n.velocity.magnitude_squared()
        total += e
        peak = max(e, peak)
        count += 1

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

    mean = total / count if count else 0.0
    energy = EnergyMetrics(sum=total, max=peak, mean=mean, threshold=mean)

    if x_min is None:
        (tlx, tly), (brx, bry) = C.DEFAULT_EXTENT
        return StepStats(Vector2(tlx, tly), Vector2(brx, bry), energy)
    return StepStats(Vector2(x_min, y_min), Vector2(x_max, y_max), energy)
