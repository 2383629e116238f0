"""
Tree graph engine: grow a tree of visited records and their neighbors and
animate it as a node-link graph.

Provides:
- TreeGraphEngine: store + tree builder + physics + viewport behind one object
- TreeBuilder: incremental construction with global description dedup
- PhysicsEngine: collision settling, then spring/angular/wind stabilization
- ViewportController: pan/zoom transform and eased camera moves
- ExplorationSession / CollectionClient: the data side that feeds the engine
"""

from .config import EngineConfig, LayoutConfig, PhysicsConfig, ViewportConfig, load_config
from .core import GraphLink, GraphNode, NodeStore, Vector2D
from .engine import EngineInspector, EngineStatus, FrameLoop, TreeGraphEngine
from .errors import (
    ConfigError,
    DataSourceError,
    FrameLoopError,
    InputValidationError,
    TreeGraphError,
    TreeInvariantError,
)
from .physics import PhysicsEngine, PhysicsStepResult
from .tree_builder import TreeBuilder
from .validator import get_validation_summary, validate_tree
from .viewport import Transform, ViewportController
from .wind import WindField

__version__ = "1.0.0"

__all__ = [
    'EngineConfig',
    'LayoutConfig',
    'PhysicsConfig',
    'ViewportConfig',
    'load_config',
    'GraphLink',
    'GraphNode',
    'NodeStore',
    'Vector2D',
    'EngineInspector',
    'EngineStatus',
    'FrameLoop',
    'TreeGraphEngine',
    'ConfigError',
    'DataSourceError',
    'FrameLoopError',
    'InputValidationError',
    'TreeGraphError',
    'TreeInvariantError',
    'PhysicsEngine',
    'PhysicsStepResult',
    'TreeBuilder',
    'get_validation_summary',
    'validate_tree',
    'Transform',
    'ViewportController',
    'WindField',
]
