"""
Image export for computed flames.

This module writes accumulators to disk: the plain-text PPM format with
channels scaled to 0-100, the usual raster formats through Pillow with
render metadata, and raw accumulator grids as NumPy archives.
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np
from PIL import Image, PngImagePlugin

from .coloring import Color, Palette, srgb_encode, srgb_encode_array
from ..core.accumulator import FlameAccumulator

logger = logging.getLogger(__name__)

PPM_MAX_VALUE = 100


@dataclass
class RenderMetadata:
    """Metadata for flame renders."""

    flame_name: str
    frame: Tuple[float, float, float, float]  # center x, center y, width, height
    resolution: Tuple[int, int]  # width, height
    density: int
    color_palette: str
    background: Tuple[float, float, float]

    render_time_seconds: float = 0.0
    points_computed: int = 0

    timestamp: str = ""
    software_version: str = "1.0.0"
    seed: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Set default timestamp if not provided."""
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderMetadata':
        data = dict(data)
        for key in ('frame', 'resolution', 'background'):
            if key in data and data[key] is not None:
                data[key] = tuple(data[key])
        return cls(**data)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> 'RenderMetadata':
        return cls.from_dict(json.loads(json_str))


def write_ppm(accumulator: FlameAccumulator, palette: Palette, background: Color,
              filepath: Union[str, Path]) -> Path:
    """
    Write an accumulator as a plain-text PPM (``P3``) image.

    Rows go from the top of the grid to the bottom; each channel is
    gamma-encoded and scaled to 0-100.

    Args:
        accumulator: Computed flame
        palette: Color palette
        background: Background color
        filepath: Output file path

    Returns:
        Path of the written file
    """
    filepath = Path(filepath)
    width = accumulator.width
    height = accumulator.height

    with open(filepath, 'w') as f:
        f.write("P3\n")
        f.write(f"{width} {height}\n")
        f.write(f"{PPM_MAX_VALUE}\n")

        for y in range(height - 1, -1, -1):
            pixels = []
            for x in range(width):
                color = accumulator.color(palette, background, x, y)
                pixels.append(f"{srgb_encode(color.r, PPM_MAX_VALUE)} "
                              f"{srgb_encode(color.g, PPM_MAX_VALUE)} "
                              f"{srgb_encode(color.b, PPM_MAX_VALUE)}")
            f.write(' '.join(pixels))
            f.write('\n')

    logger.info(f"Saved image: {filepath} ({width}x{height})")
    return filepath


class ImageExporter:
    """Raster image export with metadata support."""

    def __init__(self):
        """Initialize image exporter."""
        self.supported_formats = {
            '.png': self._save_png,
            '.tiff': self._save_tiff,
            '.tif': self._save_tiff,
            '.jpg': self._save_jpeg,
            '.jpeg': self._save_jpeg,
        }

    def save_image(self, image_array: np.ndarray, filepath: Union[str, Path],
                   metadata: Optional[RenderMetadata] = None, quality: int = 95) -> Path:
        """
        Save RGB image array to file with metadata.

        Args:
            image_array: Linear RGB image array (height, width, 3) with values 0-1
            filepath: Output file path; the suffix selects the format
            metadata: Render metadata to embed
            quality: JPEG quality (1-100)

        Returns:
            Path of the written file
        """
        filepath = Path(filepath)
        suffix = filepath.suffix.lower()

        if suffix not in self.supported_formats:
            supported = ', '.join(self.supported_formats.keys())
            raise ValueError(f"Unsupported format '{suffix}'. Supported: {supported}")

        pil_image = Image.fromarray(self.encode_image_array(image_array))

        save_method = self.supported_formats[suffix]
        save_method(pil_image, filepath, metadata, quality)

        logger.info(f"Saved image: {filepath} ({pil_image.size[0]}x{pil_image.size[1]})")
        return filepath

    @staticmethod
    def encode_image_array(image_array: np.ndarray) -> np.ndarray:
        """Gamma-encode a linear float image into 8-bit sRGB."""
        image_array = np.asarray(image_array)
        if image_array.ndim != 3 or image_array.shape[2] != 3:
            raise ValueError(f"Expected RGB image array (H, W, 3), got {image_array.shape}")

        if image_array.dtype == np.uint8:
            return image_array

        encoded = srgb_encode_array(np.clip(image_array, 0.0, 1.0), 255)
        return encoded.astype(np.uint8)

    def _save_png(self, pil_image: Image.Image, filepath: Path,
                  metadata: Optional[RenderMetadata], quality: int) -> None:
        """Save as PNG with metadata text chunks."""
        pnginfo = None
        if metadata:
            pnginfo = PngImagePlugin.PngInfo()
            for key, value in metadata.to_dict().items():
                pnginfo.add_text(key, json.dumps(value) if not isinstance(value, str) else value)
            pnginfo.add_text("render_metadata", metadata.to_json(indent=0))

        pil_image.save(filepath, "PNG", pnginfo=pnginfo, optimize=True)

    def _save_tiff(self, pil_image: Image.Image, filepath: Path,
                   metadata: Optional[RenderMetadata], quality: int) -> None:
        pil_image.save(filepath, format='TIFF', compression='tiff_lzw')
        if metadata:
            self._save_companion_json(filepath, metadata)

    def _save_jpeg(self, pil_image: Image.Image, filepath: Path,
                   metadata: Optional[RenderMetadata], quality: int) -> None:
        """Save as JPEG; metadata goes to a companion JSON file."""
        pil_image.save(filepath, "JPEG", quality=quality, optimize=True)
        if metadata:
            self._save_companion_json(filepath, metadata)

    def _save_companion_json(self, filepath: Path, metadata: RenderMetadata) -> None:
        json_path = filepath.with_suffix('.json')
        with open(json_path, 'w') as f:
            f.write(metadata.to_json())
        logger.info(f"Saved metadata: {json_path}")

    def extract_metadata_from_image(self, filepath: Union[str, Path]) -> Optional[RenderMetadata]:
        """Read render metadata embedded in a PNG, or from a companion JSON file."""
        filepath = Path(filepath)

        json_path = filepath.with_suffix('.json')
        if json_path.exists():
            with open(json_path, 'r') as f:
                return RenderMetadata.from_json(f.read())

        with Image.open(filepath) as img:
            text = getattr(img, 'text', {}) or {}
            if 'render_metadata' in text:
                return RenderMetadata.from_json(text['render_metadata'])
        return None

    def save_raw_data(self, accumulator: FlameAccumulator, filepath: Union[str, Path],
                      metadata: Optional[RenderMetadata] = None) -> Path:
        """
        Save accumulator grids as a NumPy archive.

        Args:
            accumulator: Accumulator to save
            filepath: Output file path (.npz)
            metadata: Metadata to save alongside as JSON

        Returns:
            Path of the written archive
        """
        filepath = Path(filepath)
        if filepath.suffix.lower() != '.npz':
            filepath = filepath.with_suffix('.npz')

        np.savez_compressed(filepath,
                            hit_count=accumulator.hit_counts,
                            color_index_sum=accumulator.color_index_sums)

        if metadata:
            self._save_companion_json(filepath, metadata)

        logger.info(f"Saved raw data: {filepath}")
        return filepath

    def load_raw_data(self, filepath: Union[str, Path]) -> Tuple[FlameAccumulator, Optional[RenderMetadata]]:
        """
        Load accumulator grids and metadata.

        Args:
            filepath: Input file path (.npz)

        Returns:
            Tuple of (accumulator, metadata)
        """
        filepath = Path(filepath)

        with np.load(filepath) as data:
            accumulator = FlameAccumulator(data['hit_count'], data['color_index_sum'])

        metadata = None
        metadata_path = filepath.with_suffix('.json')
        if metadata_path.exists():
            with open(metadata_path, 'r') as f:
                metadata = RenderMetadata.from_json(f.read())

        return accumulator, metadata
