from __future__ import annotations

import logging
import sys
import time

import pygame
import secrets

from forcelayout.config import settings as C
from forcelayout.demo import populate
from forcelayout.logging_config import setup_logging
from forcelayout.physics.engine import ParticleSystem
from forcelayout.physics.model import Node
from forcelayout.visualization.render import SurfaceRenderer, draw

logger = logging.getLogger(__name__)


def new_system(renderer: SurfaceRenderer) -> ParticleSystem:
    system = ParticleSystem(renderer=renderer, seed=secrets.randbits(32))
    populate(system)
    system.set_screen_size(C.WINDOW_WIDTH, C.WINDOW_HEIGHT)
    system.on_stop(lambda: logger.info("Energy mean at stop: %.4g", system.energy.mean))
    return system


def run() -> None:
    setup_logging(logging.INFO)
    pygame.init()
    pygame.display.set_caption("Force-directed layout")
    screen = pygame.display.set_mode((C.WINDOW_WIDTH, C.WINDOW_HEIGHT))
    clock = pygame.time.Clock()

    try:
        font = pygame.font.SysFont("Menlo,Consolas,Monaco,monospace", 16)
    except (NotImplementedError, AttributeError):
        try:
            font = pygame.font.Font(None, 16)
        except Exception:
            font = None

    renderer = SurfaceRenderer()
    system = new_system(renderer)
    if not C.PAUSED_AT_START:
        system.start()

    show_info = True
    dragged: Node | None = None
    last_fps_stamp = time.time()
    fps = 0.0

    running = True
    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_SPACE:
                    if system.running:
                        system.stop()
                    else:
                        system.start()
                elif event.key == pygame.K_r:
                    system.close()
                    system = new_system(renderer)
                    system.start()
                elif event.key == pygame.K_i:
                    show_info = not show_info
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                dragged = system.nearest(*event.pos, radius=C.PICK_RADIUS)
                if dragged is not None:
                    dragged.fixed = True
                    system.start()
            elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
                if dragged is not None:
                    dragged.fixed = False
                    dragged = None
            elif event.type == pygame.MOUSEMOTION and dragged is not None:
                p = system.from_screen(*event.pos)
                if not p.is_null():
                    system.place_node(dragged.id, p.x, p.y)

        renderer.consume()
        draw(system, screen, font, show_info)
        pygame.display.flip()

        clock.tick(C.MAX_FPS)
        now = time.time()
        if now - last_fps_stamp > 0.25:
            fps = clock.get_fps()
            last_fps_stamp = now
        pygame.display.set_caption(f"Force-directed layout - {fps:.1f} FPS")

    system.close()
    pygame.quit()


if __name__ == "__main__":
    try:
        run()
    except KeyboardInterrupt:
        pygame.quit()
        sys.exit(0)
