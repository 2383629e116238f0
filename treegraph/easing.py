"""
Built-in easing curves for viewport transitions.

Each curve maps normalized time t in [0, 1] to progress in [0, 1].
"""

import math

from .core.registry import register_easing


@register_easing("linear")
def linear(t: float) -> float:
    return t


@register_easing("quad-in-out")
def quad_in_out(t: float) -> float:
    t *= 2
    if t <= 1:
        return t * t / 2
    t -= 1
    return (t * (2 - t) + 1) / 2


@register_easing("cubic-in-out")
def cubic_in_out(t: float) -> float:
    t *= 2
    if t <= 1:
        return t * t * t / 2
    t -= 2
    return (t * t * t + 2) / 2


@register_easing("sin-in-out")
def sin_in_out(t: float) -> float:
    return (1 - math.cos(math.pi * t)) / 2
