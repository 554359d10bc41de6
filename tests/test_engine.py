import logging
import math

import pytest

from forcelayout.errors import ConfigError
from forcelayout.geometry.vector import Vector2
from forcelayout.physics.engine import ParticleSystem, SimulationConfig


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class CountingRenderer:
    def __init__(self):
        self.calls = 0

    def invalidate(self):
        self.calls += 1


@pytest.fixture
def system():
    return ParticleSystem(seed=1234)


def test_add_node_is_idempotent(system):
    a = system.add_node("a", 1.5, -2.0)
    again = system.add_node("a", 10.0, 10.0)
    assert again is a
    assert a.position == Vector2(1.5, -2.0)
    assert system.get_node("a") is a
    assert system.get_node("missing") is None
    assert len(system.nodes) == 1


def test_new_nodes_land_inside_global_extent(system):
    for i in range(20):
        n = system.add_node(f"n{i}")
        assert -1.0 <= n.position.x <= 1.0
        assert -1.0 <= n.position.y <= 1.0


def test_add_edge_creates_endpoints_once(system):
    edge = system.add_edge("a", "b", 2)
    assert edge.length == 2
    assert edge.source is system.get_node("a")
    assert edge.target is system.get_node("b")
    assert edge.stiffness == system.config.stiffness

    assert system.add_edge("a", "b") is edge
    assert len(system.edges) == 1
    assert len(system.nodes) == 2


def test_reverse_edge_is_a_separate_spring(system):
    forward = system.add_edge("a", "b")
    backward = system.add_edge("b", "a")
    assert forward is not backward
    assert len(system.edges) == 2


def test_edge_length_must_be_positive(system):
    with pytest.raises(ConfigError):
        system.add_edge("a", "b", 0)


def test_negative_node_mass_is_rejected(system):
    with pytest.raises(ConfigError):
        system.add_node("heavy", 0.0, 0.0, mass=-1.0)
    assert system.get_node("heavy") is None
    assert system.add_node("light", mass=0.0).mass == 0.0


@pytest.mark.parametrize(
    "overrides",
    [{"friction": 1.5}, {"dt": 0.0}, {"theta": -0.1}, {"interval": 0.0}, {"repulsion": -1.0}],
)
def test_invalid_config_is_rejected(overrides):
    with pytest.raises(ConfigError):
        ParticleSystem(SimulationConfig(**overrides))


def test_pinned_node_stays_put_while_neighbour_is_pushed_away():
    system = ParticleSystem(seed=7)
    pin = system.add_node("pin", 0.0, 0.0, fixed=True)
    free = system.add_node("free", 1.0, 0.0)

    distance = 1.0
    for _ in range(100):
        assert system.tick()
        assert pin.position == Vector2(0, 0)
        assert pin.velocity == Vector2(0, 0)
        assert pin.force == Vector2(0, 0)
        d = (free.position - pin.position).magnitude()
        assert d > distance
        distance = d


@pytest.mark.parametrize("theta", [0.0, 0.4])
def test_fixed_nodes_have_zero_velocity_and_force_after_tick(theta):
    system = ParticleSystem(SimulationConfig(theta=theta), seed=3)
    for i in range(6):
        system.add_edge(f"n{i}", f"n{(i + 1) % 6}")
    pinned = system.get_node("n2")
    pinned.fixed = True
    for _ in range(20):
        system.tick()
        assert pinned.velocity == Vector2(0, 0)
        assert pinned.force == Vector2(0, 0)


def test_two_node_spring_settles():
    system = ParticleSystem(SimulationConfig(repulsion=0.0), seed=5)
    system.add_node("a", -1.0, 0.0)
    system.add_node("b", 1.0, 0.0)
    system.add_edge("a", "b", 1)

    energies = []
    for _ in range(400):
        system.tick()
        energies.append(system.energy.mean)

    assert energies[-1] < energies[10]
    assert energies[-1] < 1e-10
    a, b = system.get_node("a"), system.get_node("b")
    assert (b.position - a.position).magnitude() == pytest.approx(1.0, abs=1e-6)


def test_brute_force_and_barnes_hut_paths_agree():
    results = []
    for theta in (0.0, 1e-9):
        system = ParticleSystem(SimulationConfig(theta=theta, stiffness=0.0), seed=9)
        for i in range(8):
            system.add_node(f"n{i}", math.cos(i), math.sin(2 * i) * 3)
        system.tick()
        results.append([n.position for n in system.nodes])

    for p, q in zip(*results):
        assert p.x == pytest.approx(q.x, abs=1e-9)
        assert p.y == pytest.approx(q.y, abs=1e-9)


def test_degenerate_node_is_quarantined(system):
    system.set_screen_size(400, 300)
    good = system.add_node("good", 0.5, 0.5)
    system.add_node("other", -0.5, 0.0)
    system.add_node("bad", math.inf, 0.0)
    system.add_edge("good", "bad")

    for _ in range(5):
        assert system.tick()

    assert not good.position.is_degenerate()
    bounds = system.viewport_bounds
    assert not bounds.top_left.is_degenerate()
    assert not bounds.bottom_right.is_degenerate()
    assert system.get_node("bad") in system.nodes


def test_viewport_keeps_minimum_extent():
    system = ParticleSystem(seed=11)
    system.set_screen_size(640, 480)
    for i in range(5):
        system.add_edge("hub", f"leaf{i}")
    for _ in range(150):
        system.tick()
        size = system.viewport_bounds.size
        assert size.x >= 4 - 1e-9
        assert size.y >= 4 - 1e-9


def test_renderer_is_notified_after_each_tick():
    renderer = CountingRenderer()
    system = ParticleSystem(renderer=renderer, seed=1)
    system.add_edge("a", "b")
    for _ in range(3):
        system.tick()
    assert renderer.calls == 3
    assert system.iterations == 3


def test_reentrant_tick_is_dropped():
    nested = []

    class ReentrantRenderer:
        def invalidate(self):
            nested.append(system.tick())

    system = ParticleSystem(renderer=ReentrantRenderer(), seed=1)
    system.add_node("a")
    assert system.tick() is True
    assert nested == [False]
    assert system.iterations == 1


def test_failed_tick_is_logged_and_simulation_continues(caplog):
    class FlakyRenderer:
        def __init__(self):
            self.fail = True

        def invalidate(self):
            if self.fail:
                self.fail = False
                raise RuntimeError("boom")

    system = ParticleSystem(renderer=FlakyRenderer(), seed=1)
    system.add_node("a")
    with caplog.at_level(logging.ERROR, logger="forcelayout"):
        assert system.tick() is False
    assert "abandoned" in caplog.text
    assert system.tick() is True


def test_start_and_stop_are_idempotent():
    system = ParticleSystem(SimulationConfig(interval=3600.0), seed=1)
    events = []
    system.on_start(lambda: events.append("start"))
    system.on_stop(lambda: events.append("stop"))

    assert system.start() is True
    assert system.start() is False
    assert system.running
    assert system.stop() is True
    assert system.stop() is False
    assert not system.running
    assert events == ["start", "stop"]


def test_removed_listener_is_not_called():
    system = ParticleSystem(SimulationConfig(interval=3600.0), seed=1)
    events = []
    listener = system.on_stop(lambda: events.append("stop"))
    system.remove_listener(listener)
    system.start()
    system.stop()
    assert events == []


def test_auto_stop_after_sustained_calm():
    clock = FakeClock()
    system = ParticleSystem(SimulationConfig(interval=3600.0), seed=1, clock=clock)
    stops = []
    system.on_stop(lambda: stops.append(clock.now))
    system.add_node("a", 0.0, 0.0)

    system.start()
    system.tick()
    clock.now = 0.5
    system.tick()
    assert system.running
    clock.now = 1.2
    system.tick()
    assert not system.running
    assert stops == [1.2]


def test_auto_stop_can_be_disabled():
    clock = FakeClock()
    system = ParticleSystem(SimulationConfig(interval=3600.0, auto_stop=False), seed=1, clock=clock)
    system.start()
    for t in (0.0, 2.0, 4.0):
        clock.now = t
        system.tick()
    assert system.running
    system.close()
    assert not system.running


def test_context_manager_stops_the_ticker():
    with ParticleSystem(SimulationConfig(interval=3600.0), seed=1) as system:
        system.start()
        assert system.running
    assert not system.running


def test_screen_mapping_round_trip(system):
    assert system.from_screen(10, 10).is_null()
    assert system.to_screen(Vector2(0, 0)).is_null()
    assert system.nearest(10, 10) is None

    system.add_node("a", -3.0, -2.0)
    system.add_node("b", 4.0, 5.0)
    system.set_screen_size(800, 600)

    top_left = system.to_screen(system.viewport_bounds.top_left)
    assert top_left.x == pytest.approx(20.0)
    assert top_left.y == pytest.approx(20.0)
    bottom_right = system.to_screen(system.viewport_bounds.bottom_right)
    assert bottom_right.x == pytest.approx(780.0)
    assert bottom_right.y == pytest.approx(580.0)

    world = system.from_screen(123.0, 456.0)
    back = system.to_screen(world)
    assert back.x == pytest.approx(123.0)
    assert back.y == pytest.approx(456.0)


def test_nearest_picks_closest_node(system):
    a = system.add_node("a", -3.0, -2.0)
    b = system.add_node("b", 4.0, 5.0)
    system.add_node("c", math.nan, 0.0)
    system.set_screen_size(800, 600)

    sa = system.to_screen(a.position)
    sb = system.to_screen(b.position)
    assert system.nearest(sa.x + 2, sa.y - 1) is a
    assert system.nearest(sb.x, sb.y) is b

    far = system.to_screen(Vector2(0.5, 1.5))
    assert system.nearest(far.x, far.y, radius=0.1) is None
