"""
Core types for the tree graph engine.

Provides:
- Vector2D, math utilities: Geometry helpers
- GraphNode, GraphLink: Placed nodes and edges
- VisitRecord, NeighborRecord, ActiveNode: Collaborator inputs
- NodeStore: Append-only arena owning node lifetime
- EasingRegistry: Named easing curves for viewport transitions
"""

from .math_utils import Vector2D, normalize_angle, lerp, clamp
from .node import GraphNode, GraphLink, VisitRecord, NeighborRecord, ActiveNode, identity_key
from .store import NodeStore
from .registry import EasingRegistry, register_easing

__all__ = [
    'Vector2D',
    'normalize_angle',
    'lerp',
    'clamp',
    'GraphNode',
    'GraphLink',
    'VisitRecord',
    'NeighborRecord',
    'ActiveNode',
    'identity_key',
    'NodeStore',
    'EasingRegistry',
    'register_easing',
]
