"""
Viewport Controller.

Owns the pan/zoom transform that maps world coordinates (root at the
origin) to screen coordinates. Programmatic moves are eased transitions of
fixed duration; the newest target always wins, nothing is queued. User
pan/zoom writes the transform directly and drops whatever animation was
pending so it cannot be overwritten by a stale one.

Time is supplied by the caller (tick time in milliseconds), so delayed
moves fire from advance() rather than from a separate timer thread.
"""

from typing import Callable, Optional, Sequence
from dataclasses import dataclass
import logging
import time

from .config import ViewportConfig
from .core.math_utils import Vector2D, clamp, lerp
from .core.node import GraphNode
from .core.registry import EasingRegistry
from .core.store import NodeStore
from . import easing  # noqa: F401  registers built-in curves

logger = logging.getLogger(__name__)


def _clock_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass(frozen=True)
class Transform:
    """Screen = world * k + (x, y)."""

    x: float = 0.0
    y: float = 0.0
    k: float = 1.0

    def apply(self, point: Vector2D) -> Vector2D:
        """World point to screen point."""
        return Vector2D(point.x * self.k + self.x, point.y * self.k + self.y)

    def invert(self, point: Vector2D) -> Vector2D:
        """Screen point to world point."""
        return Vector2D((point.x - self.x) / self.k, (point.y - self.y) / self.k)

    def to_dict(self):
        return {'x': self.x, 'y': self.y, 'k': self.k}


@dataclass
class Transition:
    """An eased move from one transform to another."""

    start: Transform
    end: Transform
    start_ms: float
    duration_ms: float
    ease: Callable[[float], float]

    def progress(self, now_ms: float) -> float:
        if self.duration_ms <= 0:
            return 1.0
        return clamp((now_ms - self.start_ms) / self.duration_ms, 0.0, 1.0)

    def value_at(self, now_ms: float) -> Transform:
        t = self.ease(self.progress(now_ms))
        return Transform(
            x=lerp(self.start.x, self.end.x, t),
            y=lerp(self.start.y, self.end.y, t),
            k=lerp(self.start.k, self.end.k, t),
        )

    def finished(self, now_ms: float) -> bool:
        return self.progress(now_ms) >= 1.0


@dataclass(frozen=True)
class PendingMove:
    """A recentering that starts once tick time reaches due_ms."""

    due_ms: float
    point: Vector2D


class ViewportController:
    """Pan/zoom state plus the programmatic camera moves."""

    def __init__(self, store: NodeStore, config: Optional[ViewportConfig] = None,
                 clock: Callable[[], float] = _clock_ms):
        """
        Args:
            store: Node store, read for the root position
            config: Size, zoom limits and timing, or None for defaults
            clock: Fallback time source in ms when a call gives no now_ms
        """
        self.store = store
        self.config = config or ViewportConfig()
        self.width = self.config.width
        self.height = self.config.height
        self._ease = EasingRegistry.require(self.config.easing)
        self._clock = clock
        self.transform = Transform()
        self.transition: Optional[Transition] = None
        self.pending: Optional[PendingMove] = None

    # =========================================================================
    # GEOMETRY
    # =========================================================================

    @property
    def container_size(self):
        return (self.width, self.height)

    def resize(self, width: float, height: float) -> None:
        self.width = max(0.0, float(width))
        self.height = max(0.0, float(height))

    def transform_centering(self, point: Vector2D, scale: float) -> Transform:
        """Transform that puts a world point at the viewport center."""
        return Transform(
            x=self.width / 2 - point.x * scale,
            y=self.height / 2 - point.y * scale,
            k=scale,
        )

    def zoom_for_depth(self, depth: int) -> float:
        """
        Scale that fits a tree of the given depth in the viewport height.

        Height is estimated as depth * edge_length; a single-node tree
        (depth 0) keeps scale 1.
        """
        if depth <= 0 or len(self.store) <= 1:
            return 1.0
        estimated = depth * self.config.edge_length
        available = self.height - 2 * self.config.padding
        return clamp(available / estimated, self.config.min_zoom, self.config.max_zoom)

    @staticmethod
    def representative_center(nodes: Sequence[GraphNode]) -> Optional[Vector2D]:
        """
        Center point of a node set by list order.

        One node is its own center; an odd count uses the middle element;
        an even count averages the two middle elements.
        """
        if not nodes:
            return None
        count = len(nodes)
        mid = count // 2
        if count % 2 == 1:
            return nodes[mid].position.copy()
        return nodes[mid - 1].position.midpoint(nodes[mid].position)

    # =========================================================================
    # PROGRAMMATIC MOVES
    # =========================================================================

    def _now(self, now_ms: Optional[float]) -> float:
        return self._clock() if now_ms is None else now_ms

    def animate_to(self, target: Transform, now_ms: Optional[float] = None) -> Transform:
        """Start a transition to target, superseding anything in flight."""
        now = self._now(now_ms)
        self.pending = None
        if self.config.transition_ms <= 0:
            self.transition = None
            self.transform = target
            return target
        self.transition = Transition(
            start=self.transform,
            end=target,
            start_ms=now,
            duration_ms=self.config.transition_ms,
            ease=self._ease,
        )
        return target

    def center_on_root(self, now_ms: Optional[float] = None) -> Transform:
        """Put the root at the viewport center at scale 1."""
        root = self.store.root
        point = root.position if root is not None else Vector2D()
        return self.animate_to(self.transform_centering(point, 1.0), now_ms)

    def auto_zoom_for_depth(self, depth: int, now_ms: Optional[float] = None) -> float:
        """
        Zoom so a tree of the given depth fits, centered on the root.

        Returns:
            The target scale
        """
        scale = self.zoom_for_depth(depth)
        root = self.store.root
        point = root.position if root is not None else Vector2D()
        self.animate_to(self.transform_centering(point, scale), now_ms)
        logger.debug("Auto-zoom for depth %d -> scale %.3f", depth, scale)
        return scale

    def smooth_move_to_center(self, nodes: Sequence[GraphNode],
                              delay_ms: Optional[float] = None,
                              now_ms: Optional[float] = None) -> Optional[Vector2D]:
        """
        After delay_ms, bring the center of nodes to the viewport center.

        Scale is whatever it is when the move starts.

        Returns:
            The world point that will be centered, or None for no nodes
        """
        point = self.representative_center(nodes)
        if point is None:
            return None
        if delay_ms is None:
            delay_ms = self.config.recenter_delay_ms
        now = self._now(now_ms)
        if delay_ms <= 0:
            self.animate_to(self.transform_centering(point, self.transform.k), now)
        else:
            self.transition = None
            self.pending = PendingMove(due_ms=now + delay_ms, point=point)
        return point

    def reset_view(self, now_ms: Optional[float] = None) -> Transform:
        """Scale 1, centered on the root or on the bare viewport."""
        return self.center_on_root(now_ms)

    # =========================================================================
    # USER INTERACTION
    # =========================================================================

    def cancel(self) -> None:
        """Drop the in-flight transition and any pending delayed move."""
        self.transition = None
        self.pending = None

    def pan(self, dx: float, dy: float) -> Transform:
        """Drag by a screen-space delta."""
        self.cancel()
        t = self.transform
        self.transform = Transform(x=t.x + dx, y=t.y + dy, k=t.k)
        return self.transform

    def zoom_by(self, factor: float, focus: Optional[Vector2D] = None) -> Transform:
        """
        Wheel zoom around a screen point (default: viewport center).

        The world point under focus stays under focus.
        """
        self.cancel()
        if focus is None:
            focus = Vector2D(self.width / 2, self.height / 2)
        t = self.transform
        k = clamp(t.k * factor, self.config.min_zoom, self.config.max_zoom)
        anchor = t.invert(focus)
        self.transform = Transform(x=focus.x - anchor.x * k, y=focus.y - anchor.y * k, k=k)
        return self.transform

    def set_transform(self, transform: Transform) -> Transform:
        """Direct write from an external zoom behaviour."""
        self.cancel()
        k = clamp(transform.k, self.config.min_zoom, self.config.max_zoom)
        self.transform = Transform(x=transform.x, y=transform.y, k=k)
        return self.transform

    # =========================================================================
    # TICK
    # =========================================================================

    def advance(self, now_ms: float) -> Transform:
        """Fire a due delayed move and step the active transition."""
        if self.pending is not None and now_ms >= self.pending.due_ms:
            point = self.pending.point
            self.pending = None
            self.animate_to(self.transform_centering(point, self.transform.k), now_ms)

        if self.transition is not None:
            self.transform = self.transition.value_at(now_ms)
            if self.transition.finished(now_ms):
                self.transform = self.transition.end
                self.transition = None

        return self.transform

    @property
    def animating(self) -> bool:
        return self.transition is not None or self.pending is not None
