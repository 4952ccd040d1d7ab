"""
Two-dimensional geometry primitives for flame computation.

This module provides the immutable value types every other part of the
engine is built on: points, axis-aligned rectangles (used as world-space
viewports) and affine transformations together with their factories.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar


class Transformation(ABC):
    """Abstract base class for anything that maps a point to a point."""

    @abstractmethod
    def transform_point(self, p: 'Point') -> 'Point':
        """
        Transform a point.

        Args:
            p: Point to transform

        Returns:
            Transformed point
        """
        pass


@dataclass(frozen=True)
class Point:
    """A point in the plane."""

    ORIGIN: ClassVar['Point']

    x: float
    y: float

    @property
    def r(self) -> float:
        """Distance to the origin (polar radius)."""
        return math.sqrt(self.x * self.x + self.y * self.y)

    @property
    def theta(self) -> float:
        """Polar angle in radians."""
        return math.atan2(self.y, self.x)

    def __str__(self) -> str:
        return f"({self.x:.2f}, {self.y:.2f})"


Point.ORIGIN = Point(0.0, 0.0)


@dataclass(frozen=True)
class Rectangle:
    """Axis-aligned rectangle described by its center and its dimensions."""

    center: Point
    width: float
    height: float

    def __post_init__(self):
        """Validate dimensions."""
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Rectangle dimensions must be positive, got {self.width}x{self.height}")

    @property
    def left(self) -> float:
        return self.center.x - self.width / 2.0

    @property
    def right(self) -> float:
        return self.center.x + self.width / 2.0

    @property
    def bottom(self) -> float:
        return self.center.y - self.height / 2.0

    @property
    def top(self) -> float:
        return self.center.y + self.height / 2.0

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def contains(self, p: Point) -> bool:
        """
        Check whether a point lies inside the rectangle.

        The bounds are half-open: the left and bottom edges belong to the
        rectangle, the right and top edges do not.
        """
        return self.left <= p.x < self.right and self.bottom <= p.y < self.top

    def expand_to_aspect_ratio(self, aspect_ratio: float) -> 'Rectangle':
        """
        Get the smallest rectangle enclosing this one with the given aspect ratio.

        The center is kept; only one of the two dimensions grows.

        Args:
            aspect_ratio: Target width/height ratio

        Returns:
            Expanded rectangle
        """
        if aspect_ratio <= 0:
            raise ValueError(f"aspect_ratio must be positive, got {aspect_ratio}")

        if aspect_ratio > self.aspect_ratio:
            return Rectangle(self.center, self.height * aspect_ratio, self.height)
        return Rectangle(self.center, self.width, self.width / aspect_ratio)

    def __str__(self) -> str:
        return f"({self.center}, {self.width:.2f}, {self.height:.2f})"


@dataclass(frozen=True)
class AffineTransformation(Transformation):
    """
    Affine transformation of the plane.

    Represents the matrix::

        [ a  b  c ]
        [ d  e  f ]
        [ 0  0  1 ]

    so that ``x' = a*x + b*y + c`` and ``y' = d*x + e*y + f``.
    """

    IDENTITY: ClassVar['AffineTransformation']

    a: float
    b: float
    c: float
    d: float
    e: float
    f: float

    @classmethod
    def new_translation(cls, dx: float, dy: float) -> 'AffineTransformation':
        return cls(1.0, 0.0, dx,
                   0.0, 1.0, dy)

    @classmethod
    def new_rotation(cls, theta: float) -> 'AffineTransformation':
        """Rotation around the origin by ``theta`` radians (counter-clockwise)."""
        cos_t = math.cos(theta)
        sin_t = math.sin(theta)
        return cls(cos_t, -sin_t, 0.0,
                   sin_t, cos_t, 0.0)

    @classmethod
    def new_scaling(cls, sx: float, sy: float) -> 'AffineTransformation':
        return cls(sx, 0.0, 0.0,
                   0.0, sy, 0.0)

    @classmethod
    def new_shear_x(cls, sx: float) -> 'AffineTransformation':
        return cls(1.0, sx, 0.0,
                   0.0, 1.0, 0.0)

    @classmethod
    def new_shear_y(cls, sy: float) -> 'AffineTransformation':
        return cls(1.0, 0.0, 0.0,
                   sy, 1.0, 0.0)

    @property
    def translation_x(self) -> float:
        return self.c

    @property
    def translation_y(self) -> float:
        return self.f

    def transform_point(self, p: Point) -> Point:
        return Point(self.a * p.x + self.b * p.y + self.c,
                     self.d * p.x + self.e * p.y + self.f)

    def compose_with(self, that: 'AffineTransformation') -> 'AffineTransformation':
        """
        Compose this transformation with another one.

        The result is the matrix product ``that * self``: applying it to a
        point is the same as applying ``self`` first and ``that`` second.
        Pivot sequences are written as
        ``to_origin.compose_with(t).compose_with(back)``.

        Args:
            that: Transformation applied after this one

        Returns:
            Composite transformation
        """
        return AffineTransformation(
            that.a * self.a + that.b * self.d,
            that.a * self.b + that.b * self.e,
            that.a * self.c + that.b * self.f + that.c,
            that.d * self.a + that.e * self.d,
            that.d * self.b + that.e * self.e,
            that.d * self.c + that.e * self.f + that.f)

    def __str__(self) -> str:
        return (f"AffineTransformation({self.a:.2f} {self.b:.2f} {self.c:.2f} | "
                f"{self.d:.2f} {self.e:.2f} {self.f:.2f})")


AffineTransformation.IDENTITY = AffineTransformation(1.0, 0.0, 0.0,
                                                     0.0, 1.0, 0.0)
