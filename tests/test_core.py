"""Tests for core geometry, the node store and easing curves."""

import math

import pytest

from treegraph import easing  # noqa: F401
from treegraph.core import EasingRegistry, NodeStore, Vector2D, clamp, normalize_angle
from treegraph.core.node import NeighborRecord, VisitRecord
from treegraph.errors import TreeInvariantError


def test_vector_basics() -> None:
    a = Vector2D(3.0, 4.0)

    assert a.magnitude == 5.0
    assert (a + Vector2D(1.0, 1.0)).to_tuple() == (4.0, 5.0)
    assert (a * 2).to_tuple() == (6.0, 8.0)
    assert a.midpoint(Vector2D(5.0, 0.0)).to_tuple() == (4.0, 2.0)
    assert Vector2D(0.0, -1.0).angle == pytest.approx(-math.pi / 2)


def test_normalize_angle_and_clamp() -> None:
    assert normalize_angle(3 * math.pi / 2) == pytest.approx(-math.pi / 2)
    assert normalize_angle(-3 * math.pi / 2) == pytest.approx(math.pi / 2)
    assert clamp(5.0, 0.0, 2.0) == 2.0
    assert clamp(-1.0, 0.0, 2.0) == 0.0


def test_store_handles_and_links() -> None:
    store = NodeStore()
    root = store.add_root("root", identity=1)
    child, link = store.add_child(root.handle, "child", identity="2")

    assert root.is_root and not child.is_root
    assert child.depth == 1
    assert root.children == [child.handle]
    assert (link.source, link.target) == (root.handle, child.handle)
    assert store.find_by_identity(2) is child
    assert store.find_by_instance_id(child.instance_id) is child
    assert store.parent_of(child) is root
    assert store.children_of(root) == [child]
    assert store.max_depth == 1


def test_store_rejects_second_root_and_duplicates() -> None:
    store = NodeStore()
    store.add_root("root")

    with pytest.raises(TreeInvariantError):
        store.add_root("another")
    with pytest.raises(TreeInvariantError):
        store.add_child(0, "root")
    with pytest.raises(KeyError):
        store.add_child(7, "orphan")


def test_clear_starts_new_instance_ids() -> None:
    store = NodeStore()
    first = store.add_root("root").instance_id

    store.clear()

    assert len(store) == 0 and store.links == []
    assert store.add_root("root").instance_id != first


def test_records_accept_both_naming_schemes() -> None:
    wire = VisitRecord.from_dict({'id': 4, 'text_for_embedding': "Cat", 'Image': "c.jpg"})
    plain = VisitRecord.from_dict({'identity': 4, 'description': "Cat", 'image': "c.jpg"})

    assert wire == plain
    neighbor = NeighborRecord.from_dict({'id': 5, 'text_for_embedding': "Dog",
                                         'similarityScore': 0.5})
    assert neighbor.similarity_score == 0.5
    assert neighbor.to_visit().description == "Dog"


@pytest.mark.parametrize("name", ["linear", "quad-in-out", "cubic-in-out", "sin-in-out"])
def test_easing_curves_hit_endpoints(name) -> None:
    curve = EasingRegistry.require(name)

    assert curve(0.0) == pytest.approx(0.0)
    assert curve(1.0) == pytest.approx(1.0)
    assert curve(0.5) == pytest.approx(0.5)


def test_unknown_easing_is_rejected() -> None:
    with pytest.raises(KeyError, match="Available"):
        EasingRegistry.require("bounce")
