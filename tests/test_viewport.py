"""Tests for camera framing, eased transitions and user interaction."""

import pytest

from treegraph.config import ViewportConfig
from treegraph.core.math_utils import Vector2D
from treegraph.core.store import NodeStore
from treegraph.viewport import Transform, ViewportController


def _tree(*child_positions):
    store = NodeStore()
    store.add_root("root", position=Vector2D(0.0, 0.0))
    for index, (x, y) in enumerate(child_positions):
        store.add_child(0, f"child {index}", position=Vector2D(x, y))
    return store


def _controller(store, **overrides):
    config = ViewportConfig(width=800.0, height=600.0, **overrides)
    return ViewportController(store, config, clock=lambda: 0.0)


def test_odd_node_set_centers_on_middle_element() -> None:
    store = _tree((10.0, -50.0), (37.5, -80.0), (90.0, -20.0))
    a, b, c = store.nodes[1:]

    point = _controller(store).smooth_move_to_center([a, b, c], delay_ms=0, now_ms=0.0)

    assert point.to_tuple() == b.position.to_tuple()


def test_even_node_set_centers_on_midpoint_of_middle_pair() -> None:
    store = _tree((10.0, -50.0), (30.0, -90.0))
    a, b = store.nodes[1:]

    point = _controller(store).smooth_move_to_center([a, b], delay_ms=0, now_ms=0.0)

    assert point.x == pytest.approx(20.0)
    assert point.y == pytest.approx(-70.0)


def test_single_node_and_empty_sets() -> None:
    store = _tree((10.0, -50.0))
    controller = _controller(store)

    assert controller.representative_center([store.nodes[1]]).to_tuple() == (10.0, -50.0)
    assert controller.smooth_move_to_center([], now_ms=0.0) is None


def test_zoom_for_single_node_tree_is_one() -> None:
    controller = _controller(_tree())

    assert controller.zoom_for_depth(0) == 1.0
    assert controller.auto_zoom_for_depth(3, now_ms=0.0) == 1.0


def test_zoom_decreases_with_depth_down_to_min_zoom() -> None:
    controller = _controller(_tree((0.0, -150.0)), padding=50.0, min_zoom=0.2, max_zoom=2.0)

    scales = [controller.zoom_for_depth(depth) for depth in range(0, 40)]

    assert scales[0] == 1.0
    for previous, current in zip(scales[1:], scales[2:]):
        assert current <= previous
    assert scales[3] == pytest.approx(500.0 / 450.0)
    assert scales[-1] == 0.2


def test_center_on_root_animates_to_viewport_center() -> None:
    controller = _controller(_tree())

    controller.center_on_root(now_ms=0.0)
    halfway = controller.advance(375.0)
    done = controller.advance(750.0)

    assert halfway.x == pytest.approx(200.0)
    assert halfway.y == pytest.approx(150.0)
    assert done == Transform(400.0, 300.0, 1.0)
    assert controller.transition is None


def test_auto_zoom_centers_root_at_fitted_scale() -> None:
    controller = _controller(_tree((0.0, -150.0)))

    scale = controller.auto_zoom_for_depth(5, now_ms=0.0)
    final = controller.advance(1000.0)

    assert scale == pytest.approx(500.0 / 750.0)
    assert final.k == pytest.approx(scale)
    assert final.apply(Vector2D(0.0, 0.0)).to_tuple() == pytest.approx((400.0, 300.0))


def test_delayed_move_fires_after_delay_and_keeps_scale() -> None:
    store = _tree((100.0, -50.0))
    controller = _controller(store)
    controller.transform = Transform(0.0, 0.0, 0.5)

    controller.smooth_move_to_center([store.nodes[1]], delay_ms=300.0, now_ms=0.0)

    assert controller.advance(100.0) == Transform(0.0, 0.0, 0.5)
    assert controller.pending is not None
    controller.advance(300.0)
    assert controller.pending is None
    final = controller.advance(1100.0)
    assert final.k == 0.5
    assert final.apply(store.nodes[1].position).to_tuple() == pytest.approx((400.0, 300.0))


def test_new_target_supersedes_transition_in_flight() -> None:
    store = _tree((100.0, -50.0))
    controller = _controller(store)

    controller.center_on_root(now_ms=0.0)
    controller.advance(200.0)
    controller.smooth_move_to_center([store.nodes[1]], delay_ms=0, now_ms=200.0)
    final = controller.advance(950.0)

    assert final.apply(store.nodes[1].position).to_tuple() == pytest.approx((400.0, 300.0))


def test_user_pan_drops_stale_animation() -> None:
    store = _tree((100.0, -50.0))
    controller = _controller(store)

    controller.smooth_move_to_center([store.nodes[1]], delay_ms=300.0, now_ms=0.0)
    controller.pan(10.0, 5.0)
    final = controller.advance(2000.0)

    assert final == Transform(10.0, 5.0, 1.0)
    assert controller.animating is False


def test_wheel_zoom_keeps_focus_point_and_clamps() -> None:
    controller = _controller(_tree(), max_zoom=2.0)
    focus = Vector2D(200.0, 100.0)
    world_before = controller.transform.invert(focus)

    controller.zoom_by(1.5, focus)
    assert controller.transform.k == pytest.approx(1.5)
    assert controller.transform.invert(focus).to_tuple() == pytest.approx(world_before.to_tuple())

    controller.zoom_by(10.0, focus)
    assert controller.transform.k == 2.0


def test_reset_view_without_nodes_centers_bare_viewport() -> None:
    controller = _controller(NodeStore())
    controller.transform = Transform(-30.0, 12.0, 1.7)

    controller.reset_view(now_ms=0.0)
    final = controller.advance(750.0)

    assert final == Transform(400.0, 300.0, 1.0)


def test_resize_changes_center_target() -> None:
    controller = _controller(_tree())
    controller.resize(1000, 400)

    controller.center_on_root(now_ms=0.0)
    final = controller.advance(750.0)

    assert controller.container_size == (1000.0, 400.0)
    assert final == Transform(500.0, 200.0, 1.0)


def test_zero_duration_transition_applies_immediately() -> None:
    controller = _controller(_tree(), transition_ms=0.0)

    controller.center_on_root(now_ms=0.0)

    assert controller.transform == Transform(400.0, 300.0, 1.0)
    assert controller.transition is None


def test_external_transform_write_cancels_animation_and_clamps() -> None:
    store = _tree((100.0, -50.0))
    controller = _controller(store, min_zoom=0.2, max_zoom=2.0)
    controller.center_on_root(now_ms=0.0)
    controller.smooth_move_to_center([store.nodes[1]], delay_ms=300.0, now_ms=0.0)

    result = controller.set_transform(Transform(5.0, 6.0, 0.01))

    assert result == Transform(5.0, 6.0, 0.2)
    assert controller.animating is False
    assert controller.advance(2000.0) == Transform(5.0, 6.0, 0.2)
