"""Shared fixtures for the flame_maker test suite."""

import numpy as np
import pytest

from flame_maker.core.flame import Flame, FlameTransformation
from flame_maker.core.geometry import AffineTransformation, Point, Rectangle
from flame_maker.rendering.coloring import Color, InterpolatedPalette


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def rgb_palette():
    return InterpolatedPalette([Color.RED, Color.GREEN, Color.BLUE])


@pytest.fixture
def identity_flame():
    """A flame that keeps every point at the origin."""
    return Flame([FlameTransformation.identity()])


@pytest.fixture
def unit_square():
    return Rectangle(Point(0.0, 0.0), 2.0, 2.0)


@pytest.fixture
def triangle_flame():
    linear = [1.0, 0.0, 0.0, 0.0, 0.0, 0.0]
    return Flame([
        FlameTransformation(AffineTransformation(0.5, 0.0, 0.0, 0.0, 0.5, 0.0), linear),
        FlameTransformation(AffineTransformation(0.5, 0.0, 0.5, 0.0, 0.5, 0.0), linear),
        FlameTransformation(AffineTransformation(0.5, 0.0, 0.0, 0.0, 0.5, 0.5), linear),
    ])
