"""
Math utilities for node placement and the physics pass.

Provides:
- Vector2D: mutable 2D vector used for positions and velocities
- Angle utilities: normalization
- Common math helpers: lerp, clamp
"""

from typing import Tuple
from dataclasses import dataclass
import math


@dataclass
class Vector2D:
    """Simple 2D vector for positions and velocities."""

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: 'Vector2D') -> 'Vector2D':
        return Vector2D(self.x + other.x, self.y + other.y)

    def __sub__(self, other: 'Vector2D') -> 'Vector2D':
        return Vector2D(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> 'Vector2D':
        return Vector2D(self.x * scalar, self.y * scalar)

    def __truediv__(self, scalar: float) -> 'Vector2D':
        if scalar == 0:
            return Vector2D(0, 0)
        return Vector2D(self.x / scalar, self.y / scalar)

    def __neg__(self) -> 'Vector2D':
        return Vector2D(-self.x, -self.y)

    @property
    def magnitude(self) -> float:
        """Length of the vector."""
        return math.sqrt(self.x * self.x + self.y * self.y)

    @property
    def angle(self) -> float:
        """Angle in radians from positive X axis."""
        return math.atan2(self.y, self.x)

    def distance_to(self, other: 'Vector2D') -> float:
        """Distance to another vector."""
        return (self - other).magnitude

    def midpoint(self, other: 'Vector2D') -> 'Vector2D':
        """Point halfway between this vector and another."""
        return Vector2D((self.x + other.x) / 2, (self.y + other.y) / 2)

    def add_in_place(self, dx: float, dy: float) -> None:
        """Shift by (dx, dy) without allocating a new vector."""
        self.x += dx
        self.y += dy

    def scale_in_place(self, factor: float) -> None:
        """Multiply both components by factor."""
        self.x *= factor
        self.y *= factor

    def copy(self) -> 'Vector2D':
        return Vector2D(self.x, self.y)

    def to_tuple(self) -> Tuple[float, float]:
        """Convert to tuple."""
        return (self.x, self.y)

    @classmethod
    def from_angle(cls, angle_rad: float, magnitude: float = 1.0) -> 'Vector2D':
        """Create vector from angle and magnitude."""
        return cls(
            math.cos(angle_rad) * magnitude,
            math.sin(angle_rad) * magnitude
        )

    @classmethod
    def from_tuple(cls, t: Tuple[float, float]) -> 'Vector2D':
        """Create vector from tuple."""
        return cls(t[0], t[1])


def normalize_angle(angle_rad: float) -> float:
    """Normalize angle to [-pi, pi] range."""
    while angle_rad > math.pi:
        angle_rad -= 2 * math.pi
    while angle_rad < -math.pi:
        angle_rad += 2 * math.pi
    return angle_rad


def lerp(a: float, b: float, t: float) -> float:
    """Linear interpolation between a and b."""
    return a + (b - a) * t


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp value to [min_val, max_val] range."""
    return max(min_val, min(max_val, value))
