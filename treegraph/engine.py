"""
Tree graph engine.

Wires the store, tree builder, physics engine and viewport controller
together behind one object a host can drive:

    engine = TreeGraphEngine(on_node_select=handle_select)
    engine.update(history, similarity_map, active_node)
    while running:
        engine.tick()
        draw(engine.snapshot())

Everything runs on the caller's thread. Bad inputs and faults inside a
tick put the engine into an error state that a retry() clears; they never
escape into the host's frame loop.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence, Union
from enum import Enum
import logging
import time

from .config import EngineConfig, load_config
from .core.node import GraphNode
from .core.store import NodeStore
from .errors import FrameLoopError, InputValidationError, TreeInvariantError
from .physics import PhysicsEngine, PhysicsStepResult
from .tree_builder import (
    TreeBuilder,
    coerce_active_node,
    coerce_history,
    coerce_similarity_map,
)
from .viewport import Transform, ViewportController

logger = logging.getLogger(__name__)


def _clock_ms() -> float:
    return time.monotonic() * 1000.0


def _wall_ms() -> float:
    return time.time() * 1000.0


class EngineStatus(Enum):
    READY = "ready"
    ERROR = "error"
    DISPOSED = "disposed"


class TreeGraphEngine:
    """Incremental tree construction, physics and camera in one place."""

    def __init__(self, config: Optional[Union[EngineConfig, Dict[str, Any]]] = None,
                 on_node_select: Optional[Callable[[GraphNode], Any]] = None,
                 clock: Callable[[], float] = _clock_ms,
                 wall_clock: Callable[[], float] = _wall_ms):
        """
        Args:
            config: EngineConfig, nested dict, or None for defaults
            on_node_select: Called with the node a user selects
            clock: Monotonic time in ms used for ticks and transitions
            wall_clock: Wall-clock time in ms used for the wind
        """
        self.config = config if isinstance(config, EngineConfig) else load_config(config)
        self.store = NodeStore()
        self.builder = TreeBuilder(self.store, self.config.layout)
        self.physics = PhysicsEngine(self.config.physics)
        self.viewport = ViewportController(self.store, self.config.viewport, clock)
        self._clock = clock
        self._wall_clock = wall_clock

        self.status = EngineStatus.READY
        self.error: Optional[str] = None
        self.frame = 0
        self.last_step: Optional[PhysicsStepResult] = None
        self._last_inputs = None
        self._loop: Optional['FrameLoop'] = None
        self._on_node_select: Optional[Callable[[GraphNode], Any]] = None
        self.set_on_node_select(on_node_select)

    # =========================================================================
    # ERROR STATE
    # =========================================================================

    def _fail(self, message: str) -> None:
        self.status = EngineStatus.ERROR
        self.error = message
        logger.error("Engine error: %s", message)

    @property
    def ok(self) -> bool:
        return self.status is EngineStatus.READY

    def retry(self, now_ms: Optional[float] = None) -> bool:
        """
        Leave the error state and re-apply the last accepted inputs.

        Returns:
            True if the engine is ready again
        """
        if self.status is EngineStatus.DISPOSED:
            return False
        self.status = EngineStatus.READY
        self.error = None
        logger.info("Retry requested")
        if self._last_inputs is not None:
            history, similarity, active = self._last_inputs
            self._apply(history, similarity, active, now_ms)
        return self.ok

    # =========================================================================
    # INPUTS
    # =========================================================================

    def set_on_node_select(self, callback: Optional[Callable[[GraphNode], Any]]) -> bool:
        if callback is not None and not callable(callback):
            self._fail(f"on_node_select must be callable, got {type(callback).__name__}")
            return False
        self._on_node_select = callback
        return True

    def update(self, history: Any, similarity_map: Any = None, active_node: Any = None,
               now_ms: Optional[float] = None) -> List[GraphNode]:
        """
        Feed the latest history, neighbor map and active node.

        Returns:
            Nodes created by this update (empty on no-op or on rejected input)
        """
        if self.status is EngineStatus.DISPOSED:
            logger.warning("update() on a disposed engine ignored")
            return []
        try:
            records = coerce_history(history)
            similarity = coerce_similarity_map(similarity_map)
            active = coerce_active_node(active_node)
        except InputValidationError as e:
            self._fail(str(e))
            return []

        self._last_inputs = (records, similarity, active)
        if self.status is EngineStatus.ERROR:
            return []
        return self._apply(records, similarity, active, now_ms)

    def _apply(self, records, similarity, active, now_ms: Optional[float]) -> List[GraphNode]:
        was_empty = len(self.store) == 0
        previous_depth = self.store.max_depth
        try:
            created = self.builder.update_tree(records, similarity, active)
        except TreeInvariantError:
            logger.info("History now starts at a different record, starting a new session")
            self.reset()
            was_empty = True
            previous_depth = 0
            created = self.builder.update_tree(records, similarity, active)

        if created:
            self._recenter(created, was_empty, previous_depth, now_ms)
        return created

    def _recenter(self, created: Sequence[GraphNode], was_empty: bool,
                  previous_depth: int, now_ms: Optional[float]) -> None:
        """Camera policy for structural growth."""
        if was_empty:
            self.viewport.center_on_root(now_ms)
            return
        depth = self.store.max_depth
        if self.config.auto_zoom_on_growth and depth > previous_depth:
            self.viewport.auto_zoom_for_depth(depth, now_ms)
        elif self.config.recenter_on_growth:
            self.viewport.smooth_move_to_center(created, now_ms=now_ms)

    # =========================================================================
    # FRAME
    # =========================================================================

    def tick(self, now_ms: Optional[float] = None, wind_ms: Optional[float] = None) -> bool:
        """
        Advance physics and the viewport by one frame.

        Args:
            now_ms: Tick time for transitions (default: monotonic clock)
            wind_ms: Time fed to the wind (default: wall clock)

        Returns:
            True if the frame ran, False if the engine is in error or disposed
        """
        if self.status is not EngineStatus.READY:
            return False
        now = self._clock() if now_ms is None else now_ms
        wind_time = self._wall_clock() if wind_ms is None else wind_ms
        try:
            if len(self.store):
                self.last_step = self.physics.step(self.store, wind_time)
            self.viewport.advance(now)
        except Exception as e:
            logger.exception("Frame %d failed", self.frame)
            self._fail(f"{type(e).__name__}: {e}")
            return False
        self.frame += 1
        return True

    # =========================================================================
    # INTERACTION
    # =========================================================================

    def select_node(self, node: Union[str, GraphNode]) -> Optional[GraphNode]:
        """
        Mark a rendered node as selected and notify the caller.

        The engine does not change its notion of the active node; the
        caller feeds that back through update().
        """
        if isinstance(node, GraphNode):
            target = node
        else:
            target = self.store.find_by_instance_id(node)
        if target is None:
            logger.warning("select_node: unknown node %r", node)
            return None
        if not target.selected:
            target.selected = True
            target.extent = self.config.layout.selected_extent
        if self._on_node_select is not None:
            self._on_node_select(target)
        return target

    @property
    def transform(self) -> Transform:
        return self.viewport.transform

    # =========================================================================
    # OUTPUT
    # =========================================================================

    def snapshot(self) -> Dict[str, Any]:
        """Plain-data view for a render adapter."""
        nodes = self.store.nodes
        links = []
        for link in self.store.links:
            data = link.to_dict()
            data['source'] = nodes[link.source].instance_id
            data['target'] = nodes[link.target].instance_id
            links.append(data)
        return {
            'frame': self.frame,
            'status': self.status.value,
            'error': self.error,
            'nodes': [n.to_dict() for n in nodes],
            'links': links,
            'transform': self.viewport.transform.to_dict(),
        }

    def inspect(self) -> 'EngineInspector':
        return EngineInspector(self)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def reset(self) -> None:
        """Discard the whole tree (session reset)."""
        self.store.clear()
        self.viewport.cancel()
        self.viewport.transform = Transform()
        self.last_step = None
        logger.info("Session reset")

    def dispose(self) -> None:
        """Stop the frame loop and drop pending camera moves."""
        if self._loop is not None:
            self._loop.stop()
            self._loop = None
        self.viewport.cancel()
        self.status = EngineStatus.DISPOSED
        logger.info("Engine disposed after %d frames", self.frame)

    def __repr__(self) -> str:
        return f"TreeGraphEngine(status={self.status.value}, {self.store!r})"


class EngineInspector:
    """Inspection and manual-trigger handle for tests and tooling."""

    def __init__(self, engine: TreeGraphEngine):
        self._engine = engine

    @property
    def node_count(self) -> int:
        return len(self._engine.store)

    @property
    def link_count(self) -> int:
        return len(self._engine.store.links)

    @property
    def max_depth(self) -> int:
        return self._engine.store.max_depth

    @property
    def root(self) -> Optional[GraphNode]:
        return self._engine.store.root

    @property
    def transform(self) -> Transform:
        return self._engine.viewport.transform

    @property
    def container_size(self):
        return self._engine.viewport.container_size

    @property
    def status(self) -> EngineStatus:
        return self._engine.status

    def zoom_to_depth(self, depth: int, now_ms: Optional[float] = None) -> float:
        return self._engine.viewport.auto_zoom_for_depth(depth, now_ms)

    def move_to_nodes(self, nodes: Sequence[GraphNode], delay_ms: float = 0.0,
                      now_ms: Optional[float] = None):
        return self._engine.viewport.smooth_move_to_center(nodes, delay_ms, now_ms)

    def reset_view(self, now_ms: Optional[float] = None) -> Transform:
        return self._engine.viewport.reset_view(now_ms)


class FrameLoop:
    """
    Drives engine ticks at a target rate on the current thread.

    A failing render callback flips the engine into its error state; the
    loop keeps running so the host can show the error and offer retry().
    """

    def __init__(self, engine: TreeGraphEngine,
                 on_frame: Optional[Callable[[Dict[str, Any]], Any]] = None,
                 fps: float = 60.0,
                 clock: Callable[[], float] = _clock_ms,
                 sleep: Callable[[float], Any] = time.sleep):
        if fps <= 0:
            raise ValueError("fps must be positive")
        self.engine = engine
        self.on_frame = on_frame
        self.interval_ms = 1000.0 / fps
        self._clock = clock
        self._sleep = sleep
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def stop(self) -> None:
        self._running = False

    def run(self, max_frames: Optional[int] = None) -> int:
        """
        Tick until stop(), dispose() or max_frames.

        Returns:
            Number of frames driven

        Raises:
            FrameLoopError: If the engine was already disposed
        """
        if self.engine.status is EngineStatus.DISPOSED:
            raise FrameLoopError("Cannot run a frame loop on a disposed engine")
        self._running = True
        self.engine._loop = self
        frames = 0
        while self._running and self.engine.status is not EngineStatus.DISPOSED:
            if max_frames is not None and frames >= max_frames:
                break
            started = self._clock()
            self.engine.tick(started)
            if self.on_frame is not None:
                try:
                    self.on_frame(self.engine.snapshot())
                except Exception as e:
                    logger.exception("Render callback failed")
                    self.engine._fail(f"render: {type(e).__name__}: {e}")
            frames += 1
            elapsed = self._clock() - started
            remaining = self.interval_ms - elapsed
            if remaining > 0:
                self._sleep(remaining / 1000.0)
        self._running = False
        return frames
