"""
Built-in flames and their recommended viewports.

The coefficients are kept exactly as published so that reference images
can be reproduced.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List

from .flame import Flame, FlameTransformation
from .geometry import AffineTransformation, Point, Rectangle

logger = logging.getLogger(__name__)


def _linear(a, b, c, d, e, f) -> FlameTransformation:
    return FlameTransformation(AffineTransformation(a, b, c, d, e, f),
                               [1.0, 0.0, 0.0, 0.0, 0.0, 0.0])


TURBULENCE = Flame([
    FlameTransformation(AffineTransformation(0.7124807, -0.4113509, -0.3,
                                             0.4113513, 0.7124808, -0.7),
                        [0.5, 0, 0, 0.4, 0, 0]),
    FlameTransformation(AffineTransformation(0.3731079, -0.6462417, 0.4,
                                             0.6462414, 0.3731076, 0.3),
                        [1.0, 0, 0.1, 0, 0, 0]),
    FlameTransformation(AffineTransformation(0.0842641, -0.314478, -0.1,
                                             0.314478, 0.0842641, 0.3),
                        [1.0, 0, 0, 0, 0, 0]),
])

SHARKFIN = Flame([
    FlameTransformation(AffineTransformation(-0.4113504, -0.7124804, -0.4,
                                             0.7124795, -0.4113508, 0.8),
                        [1.0, 0.1, 0, 0, 0, 0]),
    FlameTransformation(AffineTransformation(-0.3957339, 0, -1.6,
                                             0, -0.3957337, 0.2),
                        [0, 0, 0, 0, 0.8, 1.0]),
    FlameTransformation(AffineTransformation(0.4810169, 0, 1,
                                             0, 0.4810169, 0.9),
                        [1.0, 0, 0, 0, 0, 0]),
])

SIERPINSKI_TRIANGLE = Flame([
    _linear(0.5, 0.0, 0.0, 0.0, 0.5, 0.0),
    _linear(0.5, 0.0, 1.0, 0.0, 0.5, 0.0),
    _linear(0.5, 0.0, 0.0, 0.0, 0.5, 1.0),
])

_THIRD = 1.0 / 3.0

SIERPINSKI_CARPET = Flame([
    _linear(_THIRD, 0.0, 0.0, 0.0, _THIRD, 0.0),
    _linear(_THIRD, 0.0, _THIRD, 0.0, _THIRD, 0.0),
    _linear(_THIRD, 0.0, 2.0 / 3.0, 0.0, _THIRD, 0.0),
    _linear(_THIRD, 0.0, 0.0, 0.0, _THIRD, _THIRD),
    _linear(_THIRD, 0.0, 2.0 / 3.0, 0.0, _THIRD, _THIRD),
    _linear(_THIRD, 0.0, 0.0, 0.0, _THIRD, 2.0 / 3.0),
    _linear(_THIRD, 0.0, _THIRD, 0.0, _THIRD, 2.0 / 3.0),
    _linear(_THIRD, 0.0, 2.0 / 3.0, 0.0, _THIRD, 2.0 / 3.0),
])

BARNSLEY_FERN = Flame([
    _linear(0.0, 0.0, 0.0, 0.0, 0.16, 0.0),
    _linear(0.85, 0.04, 0.0, -0.04, 0.85, 1.6),
    _linear(0.2, -0.26, 0.0, 0.23, 0.22, 1.6),
    _linear(-0.15, 0.28, 0.0, 0.26, 0.24, 0.44),
])


def _dragon_step(degrees: float, dx: float) -> FlameTransformation:
    theta = math.radians(degrees)
    scale = math.sqrt(2)
    return _linear(math.cos(theta) / scale, -math.sin(theta) / scale, dx,
                   math.sin(theta) / scale, math.cos(theta) / scale, 0.0)


DRAGON_CURVE = Flame([
    _dragon_step(45, 0.0),
    _dragon_step(135, 1.0),
])


@dataclass(frozen=True)
class FlamePreset:
    """A built-in flame with the viewport it is meant to be looked at through."""

    name: str
    flame: Flame
    frame: Rectangle
    description: str


class FlameRegistry:
    """Registry for the built-in flames."""

    _presets: Dict[str, FlamePreset] = {
        preset.name: preset for preset in (
            FlamePreset('turbulence', TURBULENCE, Rectangle(Point(0.1, 0.1), 3, 3),
                        "Turbulence: swirl and spherical blended into three rotations"),
            FlamePreset('sharkfin', SHARKFIN, Rectangle(Point(-0.25, 0.0), 5, 4),
                        "Shark fin: sinusoidal, horseshoe and bubble variations"),
            FlamePreset('sierpinski_triangle', SIERPINSKI_TRIANGLE,
                        Rectangle(Point(1.0, 1.0), 2, 2),
                        "Sierpinski triangle: three half-scale copies"),
            FlamePreset('sierpinski_carpet', SIERPINSKI_CARPET,
                        Rectangle(Point(0.5, 0.5), 1, 1),
                        "Sierpinski carpet: eight third-scale copies"),
            FlamePreset('barnsley_fern', BARNSLEY_FERN, Rectangle(Point(0.0, 4.5), 6, 10),
                        "Barnsley fern: four affine maps"),
            FlamePreset('dragon_curve', DRAGON_CURVE, Rectangle(Point(0.35, 0.2), 2, 1.4),
                        "Heighway dragon: two scaled rotations"),
        )
    }

    @classmethod
    def register(cls, preset: FlamePreset) -> None:
        """Register a new preset under its name."""
        cls._presets[preset.name.lower()] = preset
        logger.info(f"Registered flame preset: {preset.name}")

    @classmethod
    def get(cls, name: str) -> FlamePreset:
        preset = cls._presets.get(name.lower())
        if preset is None:
            available = ', '.join(cls._presets.keys())
            raise ValueError(f"Unknown flame '{name}'. Available: {available}")
        return preset

    @classmethod
    def names(cls) -> List[str]:
        return list(cls._presets.keys())

    @classmethod
    def list_flames(cls) -> Dict[str, str]:
        """Get a dictionary of available flames and their descriptions."""
        return {name: preset.description for name, preset in cls._presets.items()}
