"""Tests for the two-phase integrator."""

import math

import pytest

from treegraph.config import PhysicsConfig
from treegraph.core.math_utils import Vector2D
from treegraph.core.store import NodeStore
from treegraph.physics import PhysicsEngine
from treegraph.wind import WindField

CALM = WindField(terms=(), lift=0.0)


def _store_with_children(*positions):
    store = NodeStore()
    store.add_root("root", position=Vector2D(0.0, 0.0))
    for index, (x, y) in enumerate(positions):
        store.add_child(0, f"child {index}", position=Vector2D(x, y))
    return store


def _link_length(store, link):
    source = store.nodes[link.source]
    target = store.nodes[link.target]
    return source.position.distance_to(target.position)


def test_integration_moves_and_damps_non_root_nodes() -> None:
    store = _store_with_children((500.0, 0.0))
    child = store.nodes[1]
    child.velocity = Vector2D(4.0, 0.0)
    store.root.velocity = Vector2D(3.0, 3.0)
    engine = PhysicsEngine(PhysicsConfig(damping=0.5), CALM)

    all_resting = engine.integrate(store.nodes)

    assert child.position.x == pytest.approx(504.0)
    assert child.velocity.x == pytest.approx(2.0)
    assert child.resting is False
    assert all_resting is False
    assert store.root.position.to_tuple() == (0.0, 0.0)
    assert store.root.resting is True


def test_slow_node_is_classified_resting() -> None:
    store = _store_with_children((500.0, 0.0))
    store.nodes[1].velocity = Vector2D(0.1, 0.0)
    engine = PhysicsEngine(PhysicsConfig(damping=0.5, resting_threshold=0.1), CALM)

    assert engine.integrate(store.nodes) is True
    assert store.nodes[1].resting is True


def test_collision_pass_separates_overlapping_pair() -> None:
    store = _store_with_children((1000.0, 0.0), (1010.0, 0.0))
    engine = PhysicsEngine(PhysicsConfig(collision_buffer=5.0), CALM)
    a, b = store.nodes[1], store.nodes[2]

    corrected = engine.resolve_collisions(store.nodes)

    assert corrected == 1
    min_distance = a.extent + b.extent + 5.0
    assert a.position.distance_to(b.position) >= min_distance - 1e-9
    # Both moved by half the overlap
    assert a.position.x == pytest.approx(1005.0 - min_distance / 2)
    assert b.position.x == pytest.approx(1005.0 + min_distance / 2)


def test_every_pair_clears_minimum_distance_after_one_pass() -> None:
    store = _store_with_children((0.0, -40.0), (200.0, 0.0), (230.0, 0.0), (-300.0, 10.0))
    engine = PhysicsEngine(PhysicsConfig(), CALM)

    engine.resolve_collisions(store.nodes)

    nodes = store.nodes
    for i in range(len(nodes)):
        for j in range(i + 1, len(nodes)):
            a, b = nodes[i], nodes[j]
            limit = a.extent + b.extent + engine.config.collision_buffer
            assert a.position.distance_to(b.position) >= limit - 1e-9


def test_root_is_pinned_during_collisions() -> None:
    store = _store_with_children((10.0, 0.0))
    engine = PhysicsEngine(PhysicsConfig(collision_buffer=5.0), CALM)

    engine.resolve_collisions(store.nodes)

    assert store.root.position.to_tuple() == (0.0, 0.0)
    assert store.nodes[1].position.x == pytest.approx(65.0)


def test_coincident_nodes_are_skipped() -> None:
    store = _store_with_children((300.0, 300.0), (300.0, 300.0))
    engine = PhysicsEngine(PhysicsConfig(), CALM)

    assert engine.resolve_collisions(store.nodes) == 0
    assert store.nodes[1].position.to_tuple() == (300.0, 300.0)


def test_stabilization_waits_for_every_node_to_rest() -> None:
    store = _store_with_children((0.0, -170.0), (600.0, -150.0))
    store.nodes[2].velocity = Vector2D(10.0, 0.0)
    engine = PhysicsEngine(PhysicsConfig(), WindField())

    result = engine.step(store, now_ms=0.0)

    assert result.all_resting is False
    assert result.stabilized is False
    assert store.nodes[1].velocity.to_tuple() == (0.0, 0.0)
    assert all(link.initial_angle is None for link in store.links)


def test_spring_reduces_stretch_over_resting_ticks() -> None:
    config = PhysicsConfig()
    store = _store_with_children((0.0, -(config.target_link_length + 20.0)))
    engine = PhysicsEngine(config, WindField())
    link = store.links[0]

    first = engine.step(store, now_ms=0.0)
    assert first.stabilized is True
    assert link.initial_angle == pytest.approx(-math.pi / 2)

    stabilized = 1
    for tick in range(1, 60):
        stabilized += engine.step(store, now_ms=tick * 16.0).stabilized

    assert stabilized > 1
    assert _link_length(store, link) < config.target_link_length + 20.0
    assert _link_length(store, link) > config.target_link_length - 20.0


def test_angular_force_pulls_edge_back_toward_initial_angle() -> None:
    length = PhysicsConfig().target_link_length
    angle = -math.pi / 2 + 0.1
    store = _store_with_children((length * math.cos(angle), length * math.sin(angle)))
    link = store.links[0]
    link.initial_angle = -math.pi / 2
    engine = PhysicsEngine(PhysicsConfig(), CALM)

    engine.stabilize(store.nodes, store.links, CALM.sample(0.0))

    assert store.nodes[1].velocity.x < 0.0
    assert link.initial_angle == -math.pi / 2


def test_initial_angle_is_captured_once() -> None:
    store = _store_with_children((0.0, -150.0))
    link = store.links[0]
    engine = PhysicsEngine(PhysicsConfig(), CALM)

    assert engine.step(store, now_ms=0.0).stabilized is True
    captured = link.initial_angle
    store.nodes[1].position = Vector2D(40.0, -145.0)
    assert engine.step(store, now_ms=16.0).stabilized is True

    assert captured == pytest.approx(-math.pi / 2)
    assert link.initial_angle == captured


def test_later_links_sway_more() -> None:
    gust_only = WindField(terms=((1e12, math.pi / 2, 0.01),), lift=0.0)
    length = PhysicsConfig().target_link_length
    store = _store_with_children(
        (length * math.cos(-2.0), length * math.sin(-2.0)),
        (length * math.cos(-1.1), length * math.sin(-1.1)),
    )
    engine = PhysicsEngine(PhysicsConfig(), gust_only)

    engine.stabilize(store.nodes, store.links, gust_only.sample(0.0))

    first, second = store.nodes[1], store.nodes[2]
    assert 0.0 < first.velocity.x < second.velocity.x


def test_zero_length_link_is_skipped_without_error() -> None:
    store = _store_with_children((0.0, 0.0))
    engine = PhysicsEngine(PhysicsConfig(), WindField())

    result = engine.step(store, now_ms=1234.0)

    assert result.stabilized is True
    assert store.links[0].initial_angle is None
    assert store.nodes[1].position.to_tuple() == (0.0, 0.0)


def test_empty_store_is_a_noop() -> None:
    result = PhysicsEngine().step(NodeStore(), now_ms=0.0)

    assert result.all_resting is True
    assert result.stabilized is False
