"""
Physics Engine for the visit tree.

One synchronous pass per animation frame over the store's nodes and links.

Phase 1 (every tick):
- Integrate position from velocity, apply damping, derive the resting flag
- Push overlapping node pairs apart (positional correction only)

Phase 2 (only when every node rests in the same tick):
- Hooke spring toward the target link length
- Angular restoring force toward the orientation captured at first rest
- Wind sway, scaled so later links move more
- Extra damping so wind cannot drift the tree forever

The root is pinned: it never moves and always counts as resting.
"""

from typing import List, Optional
from dataclasses import dataclass
import math

from .config import PhysicsConfig
from .core.math_utils import Vector2D, clamp, normalize_angle
from .core.node import GraphLink, GraphNode
from .core.store import NodeStore
from .wind import WindField


@dataclass(frozen=True)
class PhysicsStepResult:
    """What happened during one tick."""

    all_resting: bool
    stabilized: bool      # phase 2 ran
    collisions: int


def _push(node: GraphNode, fx: float, fy: float) -> None:
    """Add to a node's velocity. The pinned root ignores forces."""
    if node.is_root:
        return
    node.velocity.add_in_place(fx, fy)


def _damp(node: GraphNode, factor: float) -> None:
    if node.is_root:
        return
    node.velocity.scale_in_place(factor)


class PhysicsEngine:
    """
    Advances node positions and velocities once per tick.

    The engine keeps no per-node state of its own: everything it reads or
    writes lives on the nodes and links of the store passed to step().
    """

    def __init__(self, config: Optional[PhysicsConfig] = None,
                 wind: Optional[WindField] = None):
        self.config = config or PhysicsConfig()
        self.wind = wind or WindField()

    def step(self, store: NodeStore, now_ms: float) -> PhysicsStepResult:
        """
        Run one tick.

        Args:
            store: Nodes and links to update in place
            now_ms: Wall-clock time in milliseconds, drives the wind

        Returns:
            PhysicsStepResult
        """
        nodes = store.nodes
        if not nodes:
            return PhysicsStepResult(all_resting=True, stabilized=False, collisions=0)

        all_resting = self.integrate(nodes)
        collisions = self.resolve_collisions(nodes)

        stabilized = False
        if all_resting and store.links:
            self.stabilize(nodes, store.links, self.wind.sample(now_ms))
            stabilized = True

        return PhysicsStepResult(all_resting=all_resting, stabilized=stabilized,
                                 collisions=collisions)

    # =========================================================================
    # PHASE 1
    # =========================================================================

    def integrate(self, nodes: List[GraphNode]) -> bool:
        """
        Move, damp and classify every non-root node.

        Returns:
            True if every non-root node is resting after this tick
        """
        damping = self.config.damping
        threshold = self.config.resting_threshold
        all_resting = True

        for node in nodes:
            if node.is_root:
                node.resting = True
                continue
            node.position.add_in_place(node.velocity.x, node.velocity.y)
            node.velocity.scale_in_place(damping)
            node.resting = node.velocity.magnitude < threshold
            if not node.resting:
                all_resting = False

        return all_resting

    def resolve_collisions(self, nodes: List[GraphNode]) -> int:
        """
        Push every overlapping pair apart along the line between centers.

        Each node takes half the overlap; against the pinned root the other
        node takes all of it. Coincident centers have no direction and are
        left alone.

        Returns:
            Number of pairs corrected
        """
        buffer = self.config.collision_buffer
        eps = self.config.degenerate_epsilon
        count = len(nodes)
        corrected = 0

        for i in range(count):
            a = nodes[i]
            for j in range(i + 1, count):
                b = nodes[j]
                dx = b.position.x - a.position.x
                dy = b.position.y - a.position.y
                distance = math.hypot(dx, dy)
                min_distance = a.extent + b.extent + buffer
                if distance >= min_distance or distance < eps:
                    continue

                overlap = min_distance - distance
                ux = dx / distance
                uy = dy / distance
                if a.is_root:
                    b.position.add_in_place(ux * overlap, uy * overlap)
                elif b.is_root:
                    a.position.add_in_place(-ux * overlap, -uy * overlap)
                else:
                    half = overlap / 2
                    a.position.add_in_place(-ux * half, -uy * half)
                    b.position.add_in_place(ux * half, uy * half)
                corrected += 1

        return corrected

    # =========================================================================
    # PHASE 2
    # =========================================================================

    def stabilize(self, nodes: List[GraphNode], links: List[GraphLink],
                  wind: Vector2D) -> None:
        """Apply spring, angular, wind and extra damping to every link."""
        cfg = self.config
        total = len(links)
        keep = 1.0 - cfg.link_damping

        for index, link in enumerate(links):
            source = nodes[link.source]
            target = nodes[link.target]

            dx = target.position.x - source.position.x
            dy = target.position.y - source.position.y
            distance = math.hypot(dx, dy)

            if distance >= cfg.degenerate_epsilon:
                self._apply_spring(source, target, dx, dy, distance)
                self._apply_angular(link, source, target, dx, dy)

            scale = (index + 1) ** 3 / total
            for node in (target, source):
                _push(node, wind.x * scale, -wind.y)
                _damp(node, keep)

    def _apply_spring(self, source: GraphNode, target: GraphNode,
                      dx: float, dy: float, distance: float) -> None:
        stretch = distance - self.config.target_link_length
        force = self.config.spring_constant * stretch
        fx = force * dx / distance
        fy = force * dy / distance
        _push(target, -fx, -fy)
        _push(source, fx, fy)

    def _apply_angular(self, link: GraphLink, source: GraphNode, target: GraphNode,
                       dx: float, dy: float) -> None:
        current = math.atan2(dy, dx)
        if link.initial_angle is None:
            if not (source.resting and target.resting):
                return
            link.initial_angle = current
            return

        deviation = normalize_angle(current - link.initial_angle)
        limit = self.config.max_angular_force
        restoring = clamp(-self.config.angular_gain * deviation, -limit, limit)
        fx = restoring * math.cos(current + math.pi / 2)
        fy = restoring * math.sin(current + math.pi / 2)
        _push(target, fx, fy)
        _push(source, -fx, -fy)
