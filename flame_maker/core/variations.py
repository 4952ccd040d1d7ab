"""
Catalog of flame variations.

A variation is a nonlinear warp applied to a point after the affine part of
a flame transformation. The catalog is closed: exactly six variations exist
and their indices address the weight arrays of flame transformations.
"""

import math
from enum import Enum
from typing import Callable, Dict, Tuple

from .geometry import Point


def _linear(p: Point) -> Point:
    return Point(p.x, p.y)


def _sinusoidal(p: Point) -> Point:
    return Point(math.sin(p.x), math.sin(p.y))


def _spherical(p: Point) -> Point:
    r2 = p.x * p.x + p.y * p.y
    return Point(p.x / r2, p.y / r2)


def _swirl(p: Point) -> Point:
    r2 = p.x * p.x + p.y * p.y
    sin_r2 = math.sin(r2)
    cos_r2 = math.cos(r2)
    return Point(p.x * sin_r2 - p.y * cos_r2,
                 p.x * cos_r2 + p.y * sin_r2)


def _horseshoe(p: Point) -> Point:
    r = p.r
    return Point((p.x - p.y) * (p.x + p.y) / r,
                 2.0 * p.x * p.y / r)


def _bubble(p: Point) -> Point:
    factor = 4.0 / (p.x * p.x + p.y * p.y + 4.0)
    return Point(factor * p.x, factor * p.y)


class Variation(Enum):
    """The six variations, each carrying its weight-array index and display label."""

    LINEAR = (0, "Linear")
    SINUSOIDAL = (1, "Sinusoidal")
    SPHERICAL = (2, "Spherical")
    SWIRL = (3, "Swirl")
    HORSESHOE = (4, "Horseshoe")
    BUBBLE = (5, "Bubble")

    def __init__(self, index: int, label: str):
        self.index = index
        self.label = label

    def transform_point(self, p: Point) -> Point:
        # Singular or overflowing inputs yield a non-finite point; callers discard it.
        try:
            return _FUNCTIONS[self](p)
        except (ArithmeticError, ValueError):
            return Point(math.nan, math.nan)

    @classmethod
    def from_label(cls, label: str) -> 'Variation':
        """Look up a variation by its label or member name (case-insensitive)."""
        key = label.strip().lower()
        for variation in cls:
            if variation.label.lower() == key or variation.name.lower() == key:
                return variation
        available = ', '.join(v.label for v in cls)
        raise ValueError(f"Unknown variation '{label}'. Available: {available}")


_FUNCTIONS: Dict[Variation, Callable[[Point], Point]] = {
    Variation.LINEAR: _linear,
    Variation.SINUSOIDAL: _sinusoidal,
    Variation.SPHERICAL: _spherical,
    Variation.SWIRL: _swirl,
    Variation.HORSESHOE: _horseshoe,
    Variation.BUBBLE: _bubble,
}

ALL_VARIATIONS: Tuple[Variation, ...] = tuple(sorted(Variation, key=lambda v: v.index))
