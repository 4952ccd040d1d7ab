"""
Density and color accumulation for flame rendering.

The chaos game writes every plotted point into a
:class:`FlameAccumulatorBuilder`, which maps world coordinates onto a grid of
cells and keeps, per cell, the number of hits and the sum of the color
indices of those hits. Freezing the builder yields a
:class:`FlameAccumulator`, which turns the statistics into intensities and
final colors.
"""

import logging
import math
from typing import Optional, Tuple

import numpy as np

from .geometry import AffineTransformation, Point, Rectangle
from ..rendering.coloring import Color, Palette

logger = logging.getLogger(__name__)


class FlameAccumulator:
    """Immutable snapshot of per-cell hit counts and color index sums."""

    def __init__(self, hit_count: np.ndarray, color_index_sum: np.ndarray):
        """
        Initialize accumulator from grids indexed ``[x, y]``.

        The grids are copied.

        Args:
            hit_count: Integer array of shape (width, height)
            color_index_sum: Float array of the same shape
        """
        hit_count = np.array(hit_count, dtype=np.int64)
        color_index_sum = np.array(color_index_sum, dtype=np.float64)

        if hit_count.ndim != 2 or hit_count.size == 0:
            raise ValueError(f"Expected a non-empty 2D grid, got shape {hit_count.shape}")
        if color_index_sum.shape != hit_count.shape:
            raise ValueError(
                f"Grid shapes differ: {hit_count.shape} vs {color_index_sum.shape}")

        hit_count.flags.writeable = False
        color_index_sum.flags.writeable = False
        self._hit_count = hit_count
        self._color_index_sum = color_index_sum

        self._max_hit = int(hit_count.max())
        self._normalizer = math.log(self._max_hit + 1)

    @property
    def width(self) -> int:
        return self._hit_count.shape[0]

    @property
    def height(self) -> int:
        return self._hit_count.shape[1]

    @property
    def hit_counts(self) -> np.ndarray:
        """Read-only hit count grid, indexed ``[x, y]``."""
        return self._hit_count

    @property
    def color_index_sums(self) -> np.ndarray:
        """Read-only color index sum grid, indexed ``[x, y]``."""
        return self._color_index_sum

    @property
    def max_hit(self) -> int:
        return self._max_hit

    @property
    def total_hits(self) -> int:
        return int(self._hit_count.sum())

    def _check_cell(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(
                f"Cell ({x}, {y}) outside grid [0, {self.width}) x [0, {self.height})")

    def hit_count(self, x: int, y: int) -> int:
        self._check_cell(x, y)
        return int(self._hit_count[x, y])

    def color_index_average(self, x: int, y: int) -> Optional[float]:
        """Average color index of the hits in a cell, None if the cell was never hit."""
        self._check_cell(x, y)
        hits = self._hit_count[x, y]
        if hits == 0:
            return None
        return float(self._color_index_sum[x, y]) / int(hits)

    def intensity(self, x: int, y: int) -> float:
        """
        Logarithmic intensity of a cell.

        Computed as ``ln(hits + 1) / ln(max_hits + 1)``: 1.0 for the most hit
        cell, 0.0 for a cell never hit.
        """
        self._check_cell(x, y)
        if self._normalizer == 0.0:
            return 0.0
        return math.log(int(self._hit_count[x, y]) + 1) / self._normalizer

    def color(self, palette: Palette, background: Color, x: int, y: int) -> Color:
        """
        Final color of a cell.

        Args:
            palette: Palette looked up with the cell's average color index
            background: Color of cells never hit, faded into by sparse cells
            x, y: Cell coordinates

        Returns:
            Palette color mixed with the background in proportion
            ``1 - intensity``
        """
        self._check_cell(x, y)
        hits = int(self._hit_count[x, y])
        if hits == 0:
            return background

        average = float(self._color_index_sum[x, y]) / hits
        return palette.color_for_index(average).mix_with(background, 1.0 - self.intensity(x, y))

    def intensities(self) -> np.ndarray:
        """Intensity of every cell, indexed ``[x, y]``."""
        if self._normalizer == 0.0:
            return np.zeros(self._hit_count.shape, dtype=np.float64)
        return np.log(self._hit_count + 1.0) / self._normalizer

    def to_rgb_array(self, palette: Palette, background: Color) -> np.ndarray:
        """
        Colors of all cells as an image array.

        Args:
            palette: Color palette
            background: Background color

        Returns:
            Array of shape (height, width, 3) with linear channels in [0, 1];
            the first row is the top of the grid (``y = height - 1``)
        """
        rgb = np.empty(self._hit_count.shape + (3,), dtype=np.float64)
        rgb[...] = background.to_tuple()

        mask = self._hit_count > 0
        if np.any(mask):
            hits = self._hit_count[mask]
            averages = self._color_index_sum[mask] / hits
            palette_colors = palette.colors_for_indices(averages)
            proportion = (1.0 - self.intensities()[mask])[:, np.newaxis]
            background_rgb = np.array(background.to_tuple(), dtype=np.float64)
            rgb[mask] = background_rgb * proportion + (1.0 - proportion) * palette_colors

        return np.ascontiguousarray(rgb.transpose(1, 0, 2)[::-1])


class FlameAccumulatorBuilder:
    """Mutable grids the chaos game plots into."""

    def __init__(self, frame: Rectangle, width: int, height: int,
                 rng: Optional[np.random.Generator] = None):
        """
        Initialize accumulator builder.

        Args:
            frame: World-space region covered by the grid
            width, height: Grid resolution in cells
            rng: Random source driving computations into this builder
                (a fresh unseeded generator if None)
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Width and height must be positive, got {width}x{height}")

        self._frame = frame
        self._width = width
        self._height = height
        self._hit_count = np.zeros((width, height), dtype=np.int64)
        self._color_index_sum = np.zeros((width, height), dtype=np.float64)

        # Lower-left corner of the frame to the grid origin, then frame size to grid size.
        self._transformation = AffineTransformation.new_translation(
            -frame.left, -frame.bottom).compose_with(
            AffineTransformation.new_scaling(width / frame.width, height / frame.height))

        self.rng = rng if rng is not None else np.random.default_rng()
        # Running (point, color index) of the chaos game, None before the first computation.
        self.orbit: Optional[Tuple[Point, float]] = None

        logger.debug(f"Accumulator builder {width}x{height} over frame {frame}")

    @property
    def frame(self) -> Rectangle:
        return self._frame

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def transformation(self) -> AffineTransformation:
        """World to grid mapping."""
        return self._transformation

    def hit(self, p: Point, color_index: float) -> None:
        """
        Record a plotted point.

        Points outside the frame, including non-finite ones, are ignored.

        Args:
            p: Point in world coordinates
            color_index: Running color index of the chaos game at this point
        """
        if not self._frame.contains(p):
            return

        q = self._transformation.transform_point(p)
        x = int(q.x)
        y = int(q.y)

        # Rounding at the right/top edge can still land one cell outside.
        if 0 <= x < self._width and 0 <= y < self._height:
            self._hit_count[x, y] += 1
            self._color_index_sum[x, y] += color_index

    def build(self) -> FlameAccumulator:
        """Snapshot the current grids; the builder stays usable."""
        return FlameAccumulator(self._hit_count, self._color_index_sum)
