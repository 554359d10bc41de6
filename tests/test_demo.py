import pytest

from forcelayout.demo import populate
from forcelayout.physics.engine import ParticleSystem


def test_tree_demo_is_connected():
    system = populate(ParticleSystem(seed=4), "tree", 13)
    assert len(system.nodes) == 13
    assert len(system.edges) == 12


def test_ring_demo_has_chords():
    system = populate(ParticleSystem(seed=4), "ring", 10)
    assert len(system.nodes) == 10
    assert 10 <= len(system.edges) <= 13


def test_demo_graph_settles_without_exploding():
    system = populate(ParticleSystem(seed=8), "tree", 20)
    system.set_screen_size(640, 480)
    for _ in range(200):
        assert system.tick()
    assert all(not n.position.is_degenerate() for n in system.nodes)


def test_unknown_demo_graph():
    with pytest.raises(ValueError):
        populate(ParticleSystem(seed=4), "lattice")
