"""
Configuration for the tree graph engine.

Provides:
- PhysicsConfig: integrator and force constants
- LayoutConfig: placement offsets and node extents used by the tree builder
- ViewportConfig: container size, zoom limits and transition timing
- EngineConfig: aggregate of the above plus engine-level switches
- load_config: build an EngineConfig from a dict, a JSON file or defaults
"""

from typing import Dict, Any, Optional, Union
from dataclasses import dataclass, field, fields
from pathlib import Path
import json

from .errors import ConfigError


def _pick(cls, d: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only keys that are fields of the dataclass cls."""
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in d.items() if k in names}


@dataclass
class PhysicsConfig:
    """Constants for the two-phase integrator."""

    damping: float = 0.5                 # velocity multiplier per tick
    resting_threshold: float = 0.1       # speed below which a node rests
    collision_buffer: float = 5.0        # gap kept between node extents

    # Shape stabilization (phase 2)
    target_link_length: float = 150.0
    spring_constant: float = 0.15
    angular_gain: float = 0.05
    max_angular_force: float = 0.1
    link_damping: float = 0.2            # extra damping after wind
    degenerate_epsilon: float = 1e-6

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'PhysicsConfig':
        """Create config from dictionary."""
        return cls(**_pick(cls, d))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def validate(self) -> None:
        if not (0.0 <= self.damping < 1.0):
            raise ConfigError("damping must be in [0, 1)")
        if not (0.0 <= self.link_damping < 1.0):
            raise ConfigError("link_damping must be in [0, 1)")
        if self.resting_threshold <= 0:
            raise ConfigError("resting_threshold must be positive")
        if self.target_link_length <= 0:
            raise ConfigError("target_link_length must be positive")
        if self.collision_buffer < 0:
            raise ConfigError("collision_buffer must not be negative")
        if self.max_angular_force < 0:
            raise ConfigError("max_angular_force must not be negative")


@dataclass
class LayoutConfig:
    """Where the tree builder drops new nodes and how big they are."""

    sibling_spread: float = 50.0         # horizontal gap between siblings
    vertical_offset: float = -50.0       # negative y grows the tree upward
    history_offset_x: float = 50.0       # shift for a visited record's node
    node_extent: float = 30.0
    selected_extent: float = 40.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'LayoutConfig':
        """Create config from dictionary."""
        return cls(**_pick(cls, d))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def validate(self) -> None:
        if self.node_extent <= 0 or self.selected_extent <= 0:
            raise ConfigError("node extents must be positive")


@dataclass
class ViewportConfig:
    """Container size, zoom limits and transition timing."""

    width: float = 800.0
    height: float = 600.0
    padding: float = 50.0
    min_zoom: float = 0.2
    max_zoom: float = 2.0
    edge_length: float = 150.0           # per-level height estimate
    transition_ms: float = 750.0
    recenter_delay_ms: float = 300.0
    easing: str = "cubic-in-out"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'ViewportConfig':
        """Create config from dictionary."""
        return cls(**_pick(cls, d))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def validate(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ConfigError("viewport size must not be negative")
        if not (0 < self.min_zoom <= self.max_zoom):
            raise ConfigError("zoom limits must satisfy 0 < min_zoom <= max_zoom")
        if self.edge_length <= 0:
            raise ConfigError("edge_length must be positive")
        if self.transition_ms < 0 or self.recenter_delay_ms < 0:
            raise ConfigError("durations must not be negative")


@dataclass
class EngineConfig:
    """Top-level engine configuration."""

    physics: PhysicsConfig = field(default_factory=PhysicsConfig)
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    viewport: ViewportConfig = field(default_factory=ViewportConfig)
    auto_zoom_on_growth: bool = False
    recenter_on_growth: bool = True

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'EngineConfig':
        """Create config from a nested dictionary."""
        return cls(
            physics=PhysicsConfig.from_dict(d.get('physics', {})),
            layout=LayoutConfig.from_dict(d.get('layout', {})),
            viewport=ViewportConfig.from_dict(d.get('viewport', {})),
            auto_zoom_on_growth=bool(d.get('auto_zoom_on_growth', False)),
            recenter_on_growth=bool(d.get('recenter_on_growth', True)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a nested dictionary."""
        return {
            'physics': self.physics.to_dict(),
            'layout': self.layout.to_dict(),
            'viewport': self.viewport.to_dict(),
            'auto_zoom_on_growth': self.auto_zoom_on_growth,
            'recenter_on_growth': self.recenter_on_growth,
        }

    def validate(self) -> None:
        self.physics.validate()
        self.layout.validate()
        self.viewport.validate()


def load_config(source: Optional[Union[Dict[str, Any], str, Path]] = None) -> EngineConfig:
    """
    Build a validated EngineConfig.

    Args:
        source: A nested dict, a path to a JSON file, or None for defaults

    Returns:
        EngineConfig

    Raises:
        ConfigError: If the file cannot be parsed or a value is out of range
    """
    if source is None:
        cfg = EngineConfig()
    elif isinstance(source, dict):
        cfg = EngineConfig.from_dict(source)
    else:
        path = Path(source)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read config {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config {path} must contain a JSON object")
        cfg = EngineConfig.from_dict(data)

    try:
        cfg.validate()
    except TypeError as e:
        raise ConfigError(f"Invalid config value: {e}") from e
    return cfg
