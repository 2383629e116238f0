"""
Wind field for organic sway.

A deterministic function of wall-clock time: the horizontal component is a
sum of sine waves with different periods and phases, the vertical component
is a constant lift. Nothing here is random, so a given timestamp always
produces the same wind.
"""

from typing import Optional, Sequence, Tuple
from dataclasses import dataclass, field

import numpy as np

from .core.math_utils import Vector2D


# (period in ms, phase, amplitude)
DEFAULT_WIND_TERMS: Tuple[Tuple[float, float, float], ...] = (
    (5000.0, 0.0, 0.00065),
    (10000.0, 213.0, 0.00005),
    (500.0, 0.42, 0.0006),
    (5.0, 0.1, 0.00005),
    (5.0, 0.16, 0.00002),
)


@dataclass
class WindField:
    """Sum-of-sines gust plus constant lift."""

    terms: Sequence[Tuple[float, float, float]] = DEFAULT_WIND_TERMS
    lift: float = 0.12
    _periods: Optional[np.ndarray] = field(default=None, init=False, repr=False)
    _phases: Optional[np.ndarray] = field(default=None, init=False, repr=False)
    _amplitudes: Optional[np.ndarray] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        table = np.asarray(self.terms, dtype=float).reshape(-1, 3)
        self._periods = table[:, 0]
        self._phases = table[:, 1]
        self._amplitudes = table[:, 2]

    def gust(self, now_ms: float) -> float:
        """Horizontal wind at time now_ms."""
        return float(np.dot(self._amplitudes, np.sin(now_ms / self._periods + self._phases)))

    def sample(self, now_ms: float) -> Vector2D:
        """Wind vector (gust, lift) at time now_ms."""
        return Vector2D(self.gust(now_ms), self.lift)

    def max_gust(self) -> float:
        """Upper bound on |gust|."""
        return float(np.abs(self._amplitudes).sum())
