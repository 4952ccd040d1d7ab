"""
Flame transformations and the chaos game.

A flame is an ordered list of flame transformations. Rendering it runs the
chaos game: a running point is repeatedly sent through a transformation
chosen uniformly at random, and every landing position is recorded in a
:class:`~flame_maker.core.accumulator.FlameAccumulatorBuilder` together with
a running color index.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .accumulator import FlameAccumulator, FlameAccumulatorBuilder
from .geometry import AffineTransformation, Point, Rectangle, Transformation
from .variations import ALL_VARIATIONS, Variation

logger = logging.getLogger(__name__)

BURN_IN_ITERATIONS = 20

# Random draws are requested in blocks of this size.
_DRAW_CHUNK = 1 << 16


def color_index(n: int) -> float:
    """
    Color index of the transformation at position ``n``.

    Positions 0 and 1 get the ends of the palette; every following position
    bisects the largest remaining gap (0.5, 0.25, 0.75, 0.125, ...), so the
    indices stay evenly spread whatever the number of transformations.

    Args:
        n: Zero-based position of the transformation

    Returns:
        Color index in [0, 1]
    """
    if n < 0:
        raise ValueError(f"Transformation position must be non-negative, got {n}")
    if n == 0:
        return 0.0
    if n == 1:
        return 1.0
    # (n - 1).bit_length() == ceil(log2(n)) for n >= 2, without rounding issues.
    return -1.0 + 2.0 ** -((n - 1).bit_length()) * (2 * n - 1)


class FlameTransformation(Transformation):
    """An affine transformation followed by a weighted sum of variations."""

    def __init__(self, affine: AffineTransformation, weights: Sequence[float]):
        """
        Initialize flame transformation.

        Args:
            affine: Affine part, applied first
            weights: One weight per variation, in variation index order
        """
        if len(weights) != len(ALL_VARIATIONS):
            raise ValueError(
                f"Expected {len(ALL_VARIATIONS)} variation weights, got {len(weights)}")
        self._affine = affine
        self._weights: Tuple[float, ...] = tuple(float(w) for w in weights)
        self._active = tuple((v, w) for v, w in zip(ALL_VARIATIONS, self._weights) if w != 0)

    @classmethod
    def identity(cls) -> 'FlameTransformation':
        """Identity affine part with only the linear variation, at weight 1."""
        weights = [0.0] * len(ALL_VARIATIONS)
        weights[Variation.LINEAR.index] = 1.0
        return cls(AffineTransformation.IDENTITY, weights)

    @property
    def affine(self) -> AffineTransformation:
        return self._affine

    @property
    def weights(self) -> Tuple[float, ...]:
        return self._weights

    def weight(self, variation: Variation) -> float:
        return self._weights[variation.index]

    def transform_point(self, p: Point) -> Point:
        p = self._affine.transform_point(p)

        x = 0.0
        y = 0.0
        for variation, weight in self._active:
            q = variation.transform_point(p)
            x += q.x * weight
            y += q.y * weight
        return Point(x, y)

    def __eq__(self, other):
        if not isinstance(other, FlameTransformation):
            return NotImplemented
        return self._affine == other._affine and self._weights == other._weights

    def __hash__(self):
        return hash((self._affine, self._weights))

    def __repr__(self) -> str:
        return f"FlameTransformation({self._affine!r}, {list(self._weights)!r})"


class FlameTransformationBuilder:
    """Mutable working copy of a :class:`FlameTransformation`."""

    def __init__(self, transformation: FlameTransformation):
        self.affine = transformation.affine
        self._weights = list(transformation.weights)

    def variation_weight(self, variation: Variation) -> float:
        return self._weights[variation.index]

    def set_variation_weight(self, variation: Variation, weight: float) -> None:
        self._weights[variation.index] = float(weight)

    def build(self) -> FlameTransformation:
        return FlameTransformation(self.affine, self._weights)


class Flame:
    """Flame fractal defined by an ordered list of flame transformations."""

    def __init__(self, transformations: Iterable[FlameTransformation]):
        self._transformations: Tuple[FlameTransformation, ...] = tuple(transformations)

    @property
    def transformations(self) -> Tuple[FlameTransformation, ...]:
        return self._transformations

    def __len__(self) -> int:
        return len(self._transformations)

    def compute(self, frame: Rectangle, width: int, height: int, density: int,
                rng: Optional[np.random.Generator] = None) -> FlameAccumulator:
        """
        Compute the flame inside a viewport with the chaos game.

        Args:
            frame: World-space region mapped onto the grid
            width, height: Grid resolution in cells
            density: Average number of plotted points per cell
            rng: Random source (a fresh unseeded generator if None)

        Returns:
            Accumulator holding ``density * width * height`` plotted points
            (minus those that fell outside the frame)
        """
        if density < 0:
            raise ValueError(f"density must be non-negative, got {density}")
        builder = FlameAccumulatorBuilder(frame, width, height, rng=rng)
        self.compute_incremental(density * width * height, builder)
        return builder.build()

    def compute_incremental(self, amount: int, builder: FlameAccumulatorBuilder,
                            rng: Optional[np.random.Generator] = None) -> FlameAccumulatorBuilder:
        """
        Fold ``amount`` more plotted points into an accumulator builder.

        The first call into a fresh builder starts the orbit at the origin
        and discards :data:`BURN_IN_ITERATIONS` points; later calls continue
        the orbit where the previous call left it, so splitting the work
        into several calls plots the same points as a single call.

        Args:
            amount: Number of points to plot
            builder: Accumulator builder to write into
            rng: Random source (the builder's own generator if None)

        Returns:
            The same builder
        """
        if amount < 0:
            raise ValueError(f"amount must be non-negative, got {amount}")

        size = len(self._transformations)
        if size == 0:
            return builder

        rng = rng if rng is not None else builder.rng
        indexes = [color_index(i) for i in range(size)]

        if builder.orbit is None:
            logger.debug(f"Starting orbit with {BURN_IN_ITERATIONS} burn-in iterations")
            point, index = self._iterate(Point.ORIGIN, 0.0, BURN_IN_ITERATIONS,
                                         indexes, rng, None)
        else:
            point, index = builder.orbit

        point, index = self._iterate(point, index, amount, indexes, rng, builder)
        builder.orbit = (point, index)
        return builder

    def _iterate(self, point: Point, index: float, iterations: int, indexes: List[float],
                 rng: np.random.Generator,
                 builder: Optional[FlameAccumulatorBuilder]) -> Tuple[Point, float]:
        """Run the chaos game, plotting into ``builder`` unless it is None."""
        transformations = self._transformations
        size = len(transformations)

        remaining = iterations
        while remaining > 0:
            chunk = min(remaining, _DRAW_CHUNK)
            # Uniform choice: floor(u * size), u in [0, 1).
            choices = (rng.random(chunk) * size).astype(np.intp).tolist()
            for i in choices:
                point = transformations[i].transform_point(point)
                index = (index + indexes[i]) * 0.5
                if builder is not None:
                    builder.hit(point, index)
            remaining -= chunk
            if builder is not None:
                logger.debug(f"Plotted {iterations - remaining}/{iterations} points")

        return point, index

    def __repr__(self) -> str:
        return f"Flame({list(self._transformations)!r})"


class FlameBuilder:
    """Mutable working copy of a :class:`Flame`, edited by transformation index."""

    def __init__(self, flame: Optional[Flame] = None):
        self._builders: List[FlameTransformationBuilder] = []
        if flame is not None:
            for transformation in flame.transformations:
                self.add_transformation(transformation)

    def transformation_count(self) -> int:
        return len(self._builders)

    def add_transformation(self, transformation: FlameTransformation) -> None:
        self._builders.append(FlameTransformationBuilder(transformation))

    def remove_transformation(self, index: int) -> None:
        self._check_index(index)
        del self._builders[index]

    def affine_transformation(self, index: int) -> AffineTransformation:
        self._check_index(index)
        return self._builders[index].affine

    def set_affine_transformation(self, index: int, affine: AffineTransformation) -> None:
        self._check_index(index)
        self._builders[index].affine = affine

    def variation_weight(self, index: int, variation: Variation) -> float:
        self._check_index(index)
        return self._builders[index].variation_weight(variation)

    def set_variation_weight(self, index: int, variation: Variation, weight: float) -> None:
        self._check_index(index)
        self._builders[index].set_variation_weight(variation, weight)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._builders):
            raise ValueError(
                f"Transformation index {index} out of range [0, {len(self._builders)})")

    def build(self) -> Flame:
        return Flame(b.build() for b in self._builders)
