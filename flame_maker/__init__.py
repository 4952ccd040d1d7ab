"""
Flame fractal rendering library.

This library computes flame fractals with the chaos game: a flame is a list
of flame transformations (an affine map followed by a weighted blend of
nonlinear variations), and rendering it accumulates where a randomly driven
point lands, then maps the density and running color index to colors.

Example usage:
    >>> from flame_maker import FlameRegistry, InterpolatedPalette, Color
    >>> preset = FlameRegistry.get('sharkfin')
    >>> accumulator = preset.flame.compute(preset.frame, 500, 400, 50)
    >>> palette = InterpolatedPalette([Color.RED, Color.GREEN, Color.BLUE])
    >>> accumulator.color(palette, Color.BLACK, 250, 200)
"""

__version__ = "1.0.0"
__author__ = "Flame Maker Team"

from flame_maker.core.geometry import AffineTransformation, Point, Rectangle
from flame_maker.core.variations import ALL_VARIATIONS, Variation
from flame_maker.core.flame import Flame, FlameBuilder, FlameTransformation, color_index
from flame_maker.core.accumulator import FlameAccumulator, FlameAccumulatorBuilder
from flame_maker.core.presets import FlameRegistry
from flame_maker.rendering.coloring import Color, InterpolatedPalette, Palette, RandomPalette
from flame_maker.rendering.image_output import ImageExporter, write_ppm

# Main API classes
from flame_maker.api import FlameRenderer, ObservableFlameBuilder, ProgressiveRenderer, RenderConfig

__all__ = [
    "FlameRenderer",
    "RenderConfig",
    "ObservableFlameBuilder",
    "ProgressiveRenderer",
    "AffineTransformation",
    "Point",
    "Rectangle",
    "ALL_VARIATIONS",
    "Variation",
    "Flame",
    "FlameBuilder",
    "FlameTransformation",
    "color_index",
    "FlameAccumulator",
    "FlameAccumulatorBuilder",
    "FlameRegistry",
    "Color",
    "InterpolatedPalette",
    "Palette",
    "RandomPalette",
    "ImageExporter",
    "write_ppm",
]
