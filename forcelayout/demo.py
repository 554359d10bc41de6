from __future__ import annotations

import random

from forcelayout.config import settings as C
from forcelayout.physics.engine import ParticleSystem


def build_tree(system: ParticleSystem, n: int, rng: random.Random, branching: int = 3) -> None:
    system.add_node("n0")
    for i in range(1, n):
        parent = (i - 1) // branching
        system.add_edge(f"n{parent}", f"n{i}", length=rng.choice((1, 1, 2)))


def build_ring(system: ParticleSystem, n: int, rng: random.Random, chords: int = 3) -> None:
    for i in range(n):
        system.add_edge(f"n{i}", f"n{(i + 1) % n}")
    for _ in range(chords if n > 3 else 0):
        a, b = rng.sample(range(n), 2)
        system.add_edge(f"n{a}", f"n{b}", length=3)


BUILDERS = {"tree": build_tree, "ring": build_ring}


def populate(system: ParticleSystem, kind: str = C.DEMO_GRAPH, n: int = C.DEMO_NODES) -> ParticleSystem:
    try:
        builder = BUILDERS[kind]
    except KeyError:
        raise ValueError(f"Unknown demo graph: {kind!r} (choose from {sorted(BUILDERS)})") from None
    builder(system, n, system.rng)
    return system
