from __future__ import annotations

import threading
from typing import Sequence

import numpy as np
import pygame

from forcelayout.config import settings as C
from forcelayout.physics.engine import ParticleSystem
from forcelayout.physics.model import Node


class SurfaceRenderer:
    """Renderer observer: the system calls ``invalidate`` after each tick."""

    def __init__(self) -> None:
        self._dirty = threading.Event()

    def invalidate(self) -> None:
        self._dirty.set()

    def consume(self) -> bool:
        dirty = self._dirty.is_set()
        self._dirty.clear()
        return dirty


def compute_speed_colors(nodes: Sequence[Node]) -> np.ndarray:
    speed = np.array([n.velocity.magnitude() for n in nodes], dtype=np.float64)
    speed = np.nan_to_num(speed, nan=0.0, posinf=0.0)
    r = np.clip(speed / (speed.mean() + 1e-6), 0.0, 5.0) ** C.SPEED_COLOR_SCALING
    r = (r - r.min()) / max(1e-6, (r.max() - r.min()))
    base = np.array(C.NODE_COLOR, dtype=np.float64)[None, :] / 255.0
    hot = np.array(C.FAST_NODE_COLOR, dtype=np.float64)[None, :] / 255.0
    col = base * (1.0 - r[:, None]) + hot * r[:, None]
    fixed = np.array([n.fixed for n in nodes], dtype=bool)
    col[fixed] = np.array(C.FIXED_NODE_COLOR, dtype=np.float64) / 255.0
    return np.rint(col * 255.0).astype(np.uint8)


def draw(system: ParticleSystem, screen: pygame.Surface, font: pygame.font.Font | None, show_info: bool) -> None:
    screen.fill(C.BACKGROUND_COLOR)
    if system.viewport_bounds is None:
        return

    for edge in system.edges:
        a = system.to_screen(edge.source.position)
        b = system.to_screen(edge.target.position)
        if a.is_degenerate() or b.is_degenerate():
            continue
        pygame.draw.line(screen, C.EDGE_COLOR, (int(a.x), int(a.y)), (int(b.x), int(b.y)), 1)

    nodes = [n for n in system.nodes if not n.position.is_degenerate()]
    if nodes:
        colors = compute_speed_colors(nodes)
        for node, col in zip(nodes, colors):
            p = system.to_screen(node.position)
            pygame.draw.circle(screen, tuple(int(c) for c in col), (int(p.x), int(p.y)), C.NODE_DRAW_SIZE)

    if show_info and font is not None:
        e = system.energy
        info_lines = [
            f"iter={system.iterations}  nodes={len(system.nodes)}  edges={len(system.edges)}",
            f"energy mean={e.mean:.4g} max={e.max:.4g}  theta={system.config.theta:.2f}",
            f"{'RUNNING' if system.running else 'STOPPED'}  auto-stop={'ON' if system.auto_stop else 'OFF'}",
            "Controls: Space=Start/Stop, R=Reset, I=Info, Drag=Pin node",
        ]
        y0 = 8
        for line in info_lines:
            text_surf = font.render(line, True, C.TEXT_COLOR)
            screen.blit(text_surf, (8, y0))
            y0 += 20
