"""
Colors, gamma encoding and palettes for flame rendering.

This module provides the immutable color value type, the sRGB transfer
function used for every byte-oriented output, and palettes that map a color
index in [0, 1] to a color, either by interpolating a list of colors or by
interpolating randomly generated ones.
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar, Dict, List, Optional, Sequence

import numpy as np
from matplotlib import colormaps

logger = logging.getLogger(__name__)

_SRGB_LINEAR_LIMIT = 0.0031308


def srgb_encode(v: float, max_value: int) -> int:
    """
    Gamma-encode a linear channel value with the sRGB transfer function.

    Args:
        v: Linear channel value in [0, 1]
        max_value: Value the encoded channel is scaled to (255 for bytes)

    Returns:
        Encoded channel, truncated to an integer in [0, max_value]
    """
    if v <= _SRGB_LINEAR_LIMIT:
        encoded = 12.92 * v
    else:
        encoded = 1.055 * math.pow(v, 1.0 / 2.4) - 0.055
    return int(max_value * encoded)


def srgb_encode_array(values: np.ndarray, max_value: int) -> np.ndarray:
    """Vectorized :func:`srgb_encode` over an array of channel values."""
    values = np.asarray(values, dtype=np.float64)
    encoded = np.where(values <= _SRGB_LINEAR_LIMIT,
                       12.92 * values,
                       1.055 * np.power(np.maximum(values, 0.0), 1.0 / 2.4) - 0.055)
    return np.trunc(max_value * encoded).astype(np.int64)


@dataclass(frozen=True)
class Color:
    """RGB color with linear channels in [0, 1]."""

    BLACK: ClassVar['Color']
    WHITE: ClassVar['Color']
    RED: ClassVar['Color']
    GREEN: ClassVar['Color']
    BLUE: ClassVar['Color']

    r: float
    g: float
    b: float

    def __post_init__(self):
        """Validate RGB values."""
        for name, component in (('red', self.r), ('green', self.g), ('blue', self.b)):
            if not 0.0 <= component <= 1.0:
                raise ValueError(f"{name} component must be between 0 and 1, got {component}")

    @classmethod
    def from_hex(cls, value: str) -> 'Color':
        """Create a color from a ``#rrggbb`` string."""
        digits = value.strip().lstrip('#')
        if len(digits) != 6:
            raise ValueError(f"Invalid hex color: {value}")
        try:
            channels = [int(digits[i:i + 2], 16) / 255.0 for i in (0, 2, 4)]
        except ValueError:
            raise ValueError(f"Invalid hex color: {value}") from None
        return cls(*channels)

    def to_tuple(self):
        return (self.r, self.g, self.b)

    def mix_with(self, other: 'Color', proportion: float) -> 'Color':
        """
        Linearly interpolate between this color and another.

        Args:
            other: Color weighted by ``proportion``
            proportion: Weight of ``other`` in [0, 1]; this color gets ``1 - proportion``

        Returns:
            Mixed color
        """
        if not 0.0 <= proportion <= 1.0:
            raise ValueError(f"proportion must be between 0 and 1, got {proportion}")
        return Color(other.r * proportion + (1.0 - proportion) * self.r,
                     other.g * proportion + (1.0 - proportion) * self.g,
                     other.b * proportion + (1.0 - proportion) * self.b)

    def as_packed_rgb(self) -> int:
        """Gamma-encoded color packed as ``0xRRGGBB``."""
        return ((srgb_encode(self.r, 255) << 16)
                | (srgb_encode(self.g, 255) << 8)
                | srgb_encode(self.b, 255))

    def __str__(self) -> str:
        return f"Color({self.r:.2f}, {self.g:.2f}, {self.b:.2f})"


Color.BLACK = Color(0.0, 0.0, 0.0)
Color.WHITE = Color(1.0, 1.0, 1.0)
Color.RED = Color(1.0, 0.0, 0.0)
Color.GREEN = Color(0.0, 1.0, 0.0)
Color.BLUE = Color(0.0, 0.0, 1.0)


class Palette(ABC):
    """Maps a color index in [0, 1] to a color."""

    @abstractmethod
    def color_for_index(self, index: float) -> Color:
        pass

    def colors_for_indices(self, indices: np.ndarray) -> np.ndarray:
        """
        Look up colors for an array of indices.

        Args:
            indices: Array of color indices in [0, 1]

        Returns:
            Array of shape ``indices.shape + (3,)`` with RGB channels
        """
        indices = np.asarray(indices, dtype=np.float64)
        rgb = np.empty(indices.shape + (3,), dtype=np.float64)
        for position in np.ndindex(indices.shape):
            rgb[position] = self.color_for_index(float(indices[position])).to_tuple()
        return rgb


class InterpolatedPalette(Palette):
    """Palette interpolating linearly between evenly spaced colors."""

    def __init__(self, colors: Sequence[Color], name: str = "Custom"):
        """
        Initialize interpolated palette.

        Args:
            colors: Colors placed at evenly spaced indices, first at 0, last at 1
            name: Human-readable name for the palette
        """
        if len(colors) < 2:
            raise ValueError(f"Palette must contain at least 2 colors, got {len(colors)}")
        self.name = name
        self.colors: List[Color] = list(colors)

    def color_for_index(self, index: float) -> Color:
        if not 0.0 <= index <= 1.0:
            raise ValueError(f"Color index must be between 0 and 1, got {index}")

        scaled = index * (len(self.colors) - 1)
        lower = math.floor(scaled)
        upper = math.ceil(scaled)
        return self.colors[lower].mix_with(self.colors[upper], scaled - lower)

    def colors_for_indices(self, indices: np.ndarray) -> np.ndarray:
        indices = np.asarray(indices, dtype=np.float64)
        if indices.size and (np.min(indices) < 0.0 or np.max(indices) > 1.0):
            raise ValueError("Color indices must be between 0 and 1")

        table = np.array([c.to_tuple() for c in self.colors], dtype=np.float64)
        scaled = indices * (len(self.colors) - 1)
        lower = np.floor(scaled)
        upper = np.ceil(scaled)
        proportion = (scaled - lower)[..., np.newaxis]

        low_colors = table[lower.astype(np.intp)]
        high_colors = table[upper.astype(np.intp)]
        return high_colors * proportion + (1.0 - proportion) * low_colors

    @classmethod
    def from_matplotlib(cls, cmap_name: str, n_samples: int = 32) -> 'InterpolatedPalette':
        """Create palette by sampling a matplotlib colormap."""
        if n_samples < 2:
            raise ValueError(f"n_samples must be at least 2, got {n_samples}")
        try:
            cmap = colormaps[cmap_name]
        except KeyError:
            raise ValueError(f"Unknown matplotlib colormap '{cmap_name}'") from None

        colors = []
        for t in np.linspace(0.0, 1.0, n_samples):
            rgba = cmap(float(t))
            colors.append(Color(float(rgba[0]), float(rgba[1]), float(rgba[2])))
        return cls(colors, name=f"From_{cmap_name}")

    def __len__(self) -> int:
        return len(self.colors)


class RandomPalette(InterpolatedPalette):
    """Interpolated palette over uniformly random colors."""

    def __init__(self, n_colors: int, rng: Optional[np.random.Generator] = None):
        """
        Initialize random palette.

        Args:
            n_colors: Number of random colors, at least 2
            rng: Random source (a fresh unseeded generator if None)
        """
        if n_colors < 2:
            raise ValueError(f"Palette must contain at least 2 colors, got {n_colors}")
        rng = rng if rng is not None else np.random.default_rng()
        channels = rng.random((n_colors, 3))
        super().__init__([Color(*map(float, row)) for row in channels], name="Random")


def _create_builtin_palettes() -> Dict[str, InterpolatedPalette]:
    """Create built-in color palettes."""
    palettes = {
        'rgb': InterpolatedPalette([Color.RED, Color.GREEN, Color.BLUE], name="RGB"),
        'fire': InterpolatedPalette([
            Color(0.5, 0.0, 0.0),   # Dark red
            Color(1.0, 0.0, 0.0),   # Red
            Color(1.0, 0.5, 0.0),   # Orange
            Color(1.0, 1.0, 0.0),   # Yellow
            Color(1.0, 1.0, 1.0),   # White
        ], name="Fire"),
        'ocean': InterpolatedPalette([
            Color(0.0, 0.0, 0.8),   # Blue
            Color(0.0, 0.5, 1.0),   # Light blue
            Color(0.0, 1.0, 1.0),   # Cyan
            Color(0.5, 1.0, 1.0),   # Light cyan
        ], name="Ocean"),
        'gray': InterpolatedPalette([Color.BLACK, Color.WHITE], name="Grayscale"),
    }

    for name in ('viridis', 'plasma', 'inferno', 'magma'):
        palettes[name] = InterpolatedPalette.from_matplotlib(name, 32)

    return palettes


_BUILTIN_PALETTES: Optional[Dict[str, InterpolatedPalette]] = None


def list_palettes() -> List[str]:
    """Get list of available palette names (besides ``random``)."""
    return list(_builtin_palettes().keys())


def get_palette(name: str, n_random_colors: int = 8,
                rng: Optional[np.random.Generator] = None) -> Palette:
    """
    Get color palette by name.

    ``random`` builds a fresh :class:`RandomPalette`; any other name refers to
    a built-in palette.
    """
    key = name.lower()
    if key == 'random':
        return RandomPalette(n_random_colors, rng)

    palettes = _builtin_palettes()
    if key not in palettes:
        available = ', '.join(['random'] + list(palettes.keys()))
        raise ValueError(f"Unknown color palette '{name}'. Available: {available}")
    return palettes[key]


def _builtin_palettes() -> Dict[str, InterpolatedPalette]:
    global _BUILTIN_PALETTES
    if _BUILTIN_PALETTES is None:
        _BUILTIN_PALETTES = _create_builtin_palettes()
        logger.debug(f"Loaded {len(_BUILTIN_PALETTES)} built-in palettes")
    return _BUILTIN_PALETTES
