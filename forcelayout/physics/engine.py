from __future__ import annotations

import logging
import random
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from forcelayout.config import settings as C
from forcelayout.errors import ConfigError
from forcelayout.geometry import screen
from forcelayout.geometry.vector import NULL, Vector2
from forcelayout.physics.bounds import Bounds, BoundsTracker
from forcelayout.physics.convergence import ConvergenceMonitor, EnergyMetrics
from forcelayout.physics.forces import (
    apply_barnes_hut_repulsion,
    apply_brute_force_repulsion,
    apply_center_drift,
    apply_center_gravity,
    apply_springs,
)
from forcelayout.physics.integrator import update_position, update_velocity
from forcelayout.physics.model import Edge, Node
from forcelayout.physics.scheduler import Ticker

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class Renderer(Protocol):
    def invalidate(self) -> None: ...


@dataclass
class SimulationConfig:
    repulsion: float = C.REPULSION
    stiffness: float = C.STIFFNESS
    friction: float = C.FRICTION
    dt: float = C.DT
    gravity: bool = C.GRAVITY
    theta: float = C.BARNES_HUT_THETA
    interval: float = C.TICK_INTERVAL
    auto_stop: bool = C.AUTO_STOP
    stop_threshold: float = C.STOP_THRESHOLD

    def validate(self) -> None:
        if not 0.0 <= self.friction <= 1.0:
            raise ConfigError(f"friction must be within [0, 1], got {self.friction}")
        if self.dt <= 0.0:
            raise ConfigError(f"dt must be positive, got {self.dt}")
        if self.theta < 0.0:
            raise ConfigError(f"theta must be non-negative, got {self.theta}")
        if self.interval <= 0.0:
            raise ConfigError(f"interval must be positive, got {self.interval}")
        if self.repulsion < 0.0 or self.stiffness < 0.0:
            raise ConfigError("repulsion and stiffness must be non-negative")


class ParticleSystem:
    """Owns the graph and advances the force-directed layout one tick at a time.

    Ticks are driven either by calling :meth:`tick` directly or by the
    internal :class:`Ticker` armed with :meth:`start`. A tick that arrives
    while another one is still running is dropped, not queued.
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        renderer: Optional[Renderer] = None,
        seed: int | None = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or SimulationConfig()
        self.config.validate()

        if rng is None:
            if seed is None:
                seed = secrets.randbits(32)
            rng = random.Random(seed)
        self.rng = rng
        self.renderer = renderer

        self._nodes: Dict[str, Node] = {}
        self._edges: List[Edge] = []
        self._edge_index: Dict[Tuple[str, str], Edge] = {}

        (tlx, tly), (brx, bry) = C.DEFAULT_EXTENT
        self.extent = Bounds(Vector2(tlx, tly), Vector2(brx, bry))
        self.bounds = BoundsTracker()
        self.monitor = ConvergenceMonitor(self.config.stop_threshold, clock=clock)
        self.auto_stop = self.config.auto_stop

        self.screen_size: Optional[Tuple[int, int]] = None
        self.margins = C.SCREEN_MARGINS

        self.iterations = 0
        self._start_listeners: List[Listener] = []
        self._stop_listeners: List[Listener] = []
        self._busy = threading.Lock()
        self._registry_lock = threading.RLock()
        self._ticker = Ticker(self.tick, self.config.interval)

    # -- registry ---------------------------------------------------------

    @property
    def nodes(self) -> Tuple[Node, ...]:
        return tuple(self._nodes.values())

    @property
    def edges(self) -> Tuple[Edge, ...]:
        return tuple(self._edges)

    def add_node(
        self,
        node_id: str,
        x: Optional[float] = None,
        y: Optional[float] = None,
        mass: float = C.DEFAULT_NODE_MASS,
        fixed: bool = False,
    ) -> Node:
        if mass < 0:
            raise ConfigError(f"node mass must be non-negative, got {mass}")
        with self._registry_lock:
            node = self._nodes.get(node_id)
            if node is not None:
                return node
            tl, br = self.extent.top_left, self.extent.bottom_right
            if x is None:
                x = tl.x + (br.x - tl.x) * self.rng.random()
            if y is None:
                y = tl.y + (br.y - tl.y) * self.rng.random()
            node = Node(node_id, Vector2(x, y), mass=mass, fixed=fixed)
            self._nodes[node_id] = node
            logger.debug("Added node %r at (%.3f, %.3f)", node_id, x, y)
            return node

    def get_node(self, node_id: str) -> Optional[Node]:
        return self._nodes.get(node_id)

    def place_node(self, node_id: str, x: float, y: float) -> Node:
        """Move a node by hand between ticks, e.g. while it is dragged."""
        with self._registry_lock:
            node = self.add_node(node_id, x, y)
            node.position = Vector2(x, y)
            node.velocity = Vector2(0.0, 0.0)
            return node

    def add_edge(self, source_id: str, target_id: str, length: float = C.DEFAULT_EDGE_LENGTH) -> Edge:
        if length <= 0:
            raise ConfigError(f"edge length must be positive, got {length}")
        with self._registry_lock:
            edge = self._edge_index.get((source_id, target_id))
            if edge is not None:
                return edge
            src = self.add_node(source_id)
            tgt = self.add_node(target_id)
            edge = Edge(src, tgt, length, self.config.stiffness)
            self._edges.append(edge)
            self._edge_index[edge.key] = edge
            logger.debug("Added edge %r -> %r (length=%g)", source_id, target_id, length)
            return edge

    # -- lifecycle --------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._ticker.running

    @property
    def stop_threshold(self) -> float:
        return self.monitor.stop_threshold

    @stop_threshold.setter
    def stop_threshold(self, value: float) -> None:
        self.monitor.stop_threshold = value

    @property
    def energy(self) -> EnergyMetrics:
        return self.monitor.energy

    def on_start(self, callback: Listener) -> Listener:
        self._start_listeners.append(callback)
        return callback

    def on_stop(self, callback: Listener) -> Listener:
        self._stop_listeners.append(callback)
        return callback

    def remove_listener(self, callback: Listener) -> None:
        for listeners in (self._start_listeners, self._stop_listeners):
            if callback in listeners:
                listeners.remove(callback)

    def start(self) -> bool:
        if self.running:
            return False
        self.monitor.reset()
        if not self._ticker.start():
            return False
        logger.info("Layout started with %d nodes, %d edges", len(self._nodes), len(self._edges))
        for cb in list(self._start_listeners):
            cb()
        return True

    def stop(self) -> bool:
        if not self._ticker.stop():
            return False
        logger.info("Layout stopped after %d iterations", self.iterations)
        for cb in list(self._stop_listeners):
            cb()
        return True

    def close(self) -> None:
        self.stop()

    def __enter__(self) -> "ParticleSystem":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # -- simulation -------------------------------------------------------

    def tick(self) -> bool:
        """Run one step. Returns False when the step was dropped or failed."""
        if not self._busy.acquire(blocking=False):
            logger.debug("Tick dropped, previous tick still running")
            return False
        try:
            with self._registry_lock:
                energy = self._step()
                self.bounds.update(self._nodes.values(), self.screen_size)
                converged = self.monitor.update(energy)
                self.iterations += 1

            if self.renderer is not None:
                self.renderer.invalidate()

            if self.auto_stop and converged and self.running:
                logger.info("Layout converged (energy=%.4g)", energy.threshold)
                self.stop()
            return True
        except Exception:
            logger.exception("Tick %d abandoned", self.iterations)
            return False
        finally:
            self._busy.release()

    def _step(self) -> EnergyMetrics:
        cfg = self.config
        nodes = list(self._nodes.values())
        for n in nodes:
            n.clear_force()

        if cfg.repulsion > 0:
            if cfg.theta > 0:
                apply_barnes_hut_repulsion(
                    nodes, cfg.repulsion, cfg.theta,
                    self.extent.top_left, self.extent.bottom_right, self.rng,
                )
            else:
                apply_brute_force_repulsion(nodes, cfg.repulsion, self.rng)

        if cfg.stiffness > 0:
            apply_springs(self._edges, self.rng)

        apply_center_drift(nodes)

        if cfg.gravity:
            apply_center_gravity(nodes, cfg.repulsion)

        update_velocity(nodes, cfg.dt, cfg.friction)
        stats = update_position(nodes, cfg.dt)
        self.extent = Bounds(stats.top_left, stats.bottom_right)
        return stats.energy

    # -- screen geometry --------------------------------------------------

    @property
    def viewport_bounds(self) -> Optional[Bounds]:
        return self.bounds.smoothed

    def set_screen_size(self, width: int, height: int) -> None:
        with self._registry_lock:
            self.screen_size = (width, height)
            self.bounds.update(self._nodes.values(), self.screen_size)

    def to_screen(self, pt: Vector2) -> Vector2:
        b = self.bounds.smoothed
        if b is None:
            return NULL
        return screen.to_screen(b.top_left, b.bottom_right, self.screen_size, pt, self.margins)

    def from_screen(self, sx: float, sy: float) -> Vector2:
        b = self.bounds.smoothed
        if b is None:
            return NULL
        return screen.from_screen(b.top_left, b.bottom_right, self.screen_size, sx, sy, self.margins)

    def nearest(self, sx: float, sy: float, radius: Optional[float] = None) -> Optional[Node]:
        target = self.from_screen(sx, sy)
        if target.is_null():
            return None
        best: Optional[Node] = None
        best_distance = radius if radius is not None else float("inf")
        for node in self._nodes.values():
            p = node.position
            if p.is_degenerate():
                continue
            d = (p - target).magnitude()
            if d < best_distance:
                best, best_distance = node, d
        return best
