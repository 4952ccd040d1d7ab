"""Fractal computation engine: geometry, variations, flames and accumulators."""

from .geometry import AffineTransformation, Point, Rectangle, Transformation
from .variations import ALL_VARIATIONS, Variation
from .accumulator import FlameAccumulator, FlameAccumulatorBuilder
from .flame import (
    Flame,
    FlameBuilder,
    FlameTransformation,
    FlameTransformationBuilder,
    color_index,
)

__all__ = [
    "AffineTransformation",
    "Point",
    "Rectangle",
    "Transformation",
    "ALL_VARIATIONS",
    "Variation",
    "FlameAccumulator",
    "FlameAccumulatorBuilder",
    "Flame",
    "FlameBuilder",
    "FlameTransformation",
    "FlameTransformationBuilder",
    "color_index",
]
