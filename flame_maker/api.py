"""
Main API classes for flame rendering.

This module provides the high-level interface on top of the computation
engine: a validated render configuration, a one-shot renderer that reports
progress and writes image files, and the pieces an interactive front end
needs to edit a flame and refine its preview step by step.
"""

import json
import logging
import time
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import numpy as np

from .core.accumulator import FlameAccumulator, FlameAccumulatorBuilder
from .core.flame import Flame, FlameBuilder, FlameTransformation
from .core.geometry import AffineTransformation, Point, Rectangle
from .core.presets import FlameRegistry
from .core.variations import Variation
from .rendering.coloring import Color, Palette, get_palette
from .rendering.image_output import ImageExporter, RenderMetadata, write_ppm

logger = logging.getLogger(__name__)


@dataclass
class RenderConfig:
    """Configuration for flame rendering."""

    # Image parameters
    width: int = 500
    height: int = 400
    density: int = 50

    # Viewport; None means the preset's own frame
    frame: Optional[Tuple[float, float, float, float]] = None  # center x, center y, width, height

    # Coloring
    color_palette: str = 'rgb'
    random_palette_size: int = 8
    background: Tuple[float, float, float] = (0.0, 0.0, 0.0)

    # Computation
    seed: Optional[int] = None
    chunk_size: int = 250_000

    # Output
    output_format: str = 'png'
    save_metadata: bool = True
    save_raw_data: bool = False

    def validate(self):
        """Validate configuration parameters."""
        if self.width <= 0 or self.height <= 0:
            raise ValueError("Width and height must be positive")

        if self.density < 0:
            raise ValueError("density must be non-negative")

        if self.frame is not None:
            if len(self.frame) != 4:
                raise ValueError("frame must be (center_x, center_y, width, height)")
            if self.frame[2] <= 0 or self.frame[3] <= 0:
                raise ValueError("frame width and height must be positive")

        if self.random_palette_size < 2:
            raise ValueError("random_palette_size must be >= 2")

        if len(self.background) != 3 or not all(0.0 <= c <= 1.0 for c in self.background):
            raise ValueError("background must be three channels between 0 and 1")

        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")

        if self.output_format.lower() not in ('png', 'ppm', 'tiff', 'jpg', 'jpeg'):
            raise ValueError(f"Unsupported output format '{self.output_format}'")

    def frame_rectangle(self) -> Optional[Rectangle]:
        if self.frame is None:
            return None
        cx, cy, w, h = self.frame
        return Rectangle(Point(cx, cy), w, h)

    def background_color(self) -> Color:
        return Color(*self.background)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderConfig':
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        data = dict(data)
        for key in ('frame', 'background'):
            if data.get(key) is not None:
                data[key] = tuple(data[key])
        config = cls(**data)
        config.validate()
        return config


def load_config(filepath: Union[str, Path]) -> RenderConfig:
    """Load a render configuration from a JSON file."""
    filepath = Path(filepath)
    with open(filepath, 'r') as f:
        data = json.load(f)
    logger.info(f"Loaded configuration: {filepath}")
    return RenderConfig.from_dict(data)


def save_config(config: RenderConfig, filepath: Union[str, Path]) -> Path:
    """Save a render configuration as JSON."""
    filepath = Path(filepath)
    with open(filepath, 'w') as f:
        json.dump(config.to_dict(), f, indent=2)
    logger.info(f"Saved configuration: {filepath}")
    return filepath


class FlameRenderer:
    """One-shot flame renderer."""

    def __init__(self, config: Optional[RenderConfig] = None):
        """
        Initialize flame renderer.

        Args:
            config: Rendering configuration (uses defaults if None)
        """
        self.config = config or RenderConfig()
        self.config.validate()
        self.image_exporter = ImageExporter()

        logger.info(f"FlameRenderer initialized: {self.config.width}x{self.config.height}, "
                    f"density={self.config.density}")

    def compute(self, flame: Flame, frame: Rectangle,
                progress_callback: Optional[Callable[[float], None]] = None) -> FlameAccumulator:
        """
        Run the chaos game for ``density * width * height`` points.

        The work is split into ``chunk_size`` incremental steps so that
        ``progress_callback`` can be told the completed fraction after each.
        """
        config = self.config
        rng = np.random.default_rng(config.seed)
        builder = FlameAccumulatorBuilder(frame, config.width, config.height, rng=rng)

        total = config.density * config.width * config.height
        done = 0
        while done < total:
            amount = min(config.chunk_size, total - done)
            flame.compute_incremental(amount, builder)
            done += amount
            if progress_callback:
                progress_callback(done / total)

        return builder.build()

    def render(self, flame: Flame, frame: Rectangle, output_path: Optional[Union[str, Path]] = None,
               palette: Optional[Palette] = None, flame_name: str = 'custom',
               progress_callback: Optional[Callable[[float], None]] = None) -> FlameAccumulator:
        """
        Render flame and optionally save it.

        Args:
            flame: Flame to render
            frame: World-space viewport
            output_path: Optional output file path; ``.ppm`` writes plain PPM
            palette: Palette to color with (the configured one if None)
            flame_name: Name recorded in the metadata
            progress_callback: Optional progress callback function

        Returns:
            Computed accumulator
        """
        start_time = time.time()
        logger.info(f"Starting render: {flame_name} flame with {len(flame)} transformations")

        accumulator = self.compute(flame, frame, progress_callback)

        if output_path:
            if palette is None:
                rng = np.random.default_rng(self.config.seed)
                palette = get_palette(self.config.color_palette,
                                      self.config.random_palette_size, rng)
            self._save(accumulator, Path(output_path), palette, frame, flame_name,
                       time.time() - start_time)

        total_time = time.time() - start_time
        logger.info(f"Render complete: {total_time:.2f}s")

        return accumulator

    def render_preset(self, name: str, output_path: Optional[Union[str, Path]] = None,
                      progress_callback: Optional[Callable[[float], None]] = None) -> FlameAccumulator:
        """
        Render a built-in flame, through the configured frame if any.

        The preset's own frame is expanded to the grid's aspect ratio so that
        cells stay square; a configured frame is used as given.
        """
        preset = FlameRegistry.get(name)
        frame = self.config.frame_rectangle()
        if frame is None:
            frame = preset.frame.expand_to_aspect_ratio(self.config.width / self.config.height)
        return self.render(preset.flame, frame, output_path, flame_name=preset.name,
                           progress_callback=progress_callback)

    def _save(self, accumulator: FlameAccumulator, output_path: Path, palette: Palette,
              frame: Rectangle, flame_name: str, render_time: float) -> None:
        config = self.config
        background = config.background_color()

        metadata = RenderMetadata(
            flame_name=flame_name,
            frame=(frame.center.x, frame.center.y, frame.width, frame.height),
            resolution=(config.width, config.height),
            density=config.density,
            color_palette=config.color_palette,
            background=config.background,
            render_time_seconds=render_time,
            points_computed=config.density * config.width * config.height,
            seed=config.seed,
        )

        if output_path.suffix.lower() == '.ppm':
            write_ppm(accumulator, palette, background, output_path)
        else:
            self.image_exporter.save_image(
                accumulator.to_rgb_array(palette, background), output_path,
                metadata if config.save_metadata else None)

        if config.save_raw_data:
            self.image_exporter.save_raw_data(accumulator, output_path.with_suffix('.npz'), metadata)

    def update_config(self, **kwargs):
        """Update renderer configuration."""
        known = {f.name for f in fields(RenderConfig)}
        for key, value in kwargs.items():
            if key not in known:
                raise ValueError(f"Unknown configuration parameter: {key}")
            setattr(self.config, key, value)
        self.config.validate()
        logger.info(f"Configuration updated: {list(kwargs.keys())}")


Observer = Callable[['ObservableFlameBuilder'], None]


class ObservableFlameBuilder:
    """Flame builder that notifies registered callbacks after every change."""

    def __init__(self, flame: Optional[Flame] = None):
        self._builder = FlameBuilder(flame)
        self._observers: List[Observer] = []

    def add_observer(self, observer: Observer) -> None:
        self._observers.append(observer)

    def remove_observer(self, observer: Observer) -> None:
        self._observers.remove(observer)

    def _notify_observers(self) -> None:
        for observer in list(self._observers):
            observer(self)

    def transformation_count(self) -> int:
        return self._builder.transformation_count()

    def add_transformation(self, transformation: Optional[FlameTransformation] = None) -> None:
        """Append a transformation (the identity one if None)."""
        self._builder.add_transformation(transformation or FlameTransformation.identity())
        self._notify_observers()

    def remove_transformation(self, index: int) -> None:
        self._builder.remove_transformation(index)
        self._notify_observers()

    def affine_transformation(self, index: int) -> AffineTransformation:
        return self._builder.affine_transformation(index)

    def set_affine_transformation(self, index: int, affine: AffineTransformation) -> None:
        self._builder.set_affine_transformation(index, affine)
        self._notify_observers()

    def variation_weight(self, index: int, variation: Variation) -> float:
        return self._builder.variation_weight(index, variation)

    def set_variation_weight(self, index: int, variation: Variation, weight: float) -> None:
        self._builder.set_variation_weight(index, variation, weight)
        self._notify_observers()

    def build(self) -> Flame:
        return self._builder.build()


class ProgressiveRenderer:
    """
    Step-by-step refinement of a flame preview.

    Each :meth:`step` folds a bounded number of points into the current
    accumulator and returns a snapshot. Editing the observed builder or
    changing the frame discards the accumulated points.
    """

    def __init__(self, builder: ObservableFlameBuilder, frame: Rectangle, width: int, height: int,
                 rng: Optional[np.random.Generator] = None):
        if width <= 0 or height <= 0:
            raise ValueError(f"Width and height must be positive, got {width}x{height}")

        self._builder = builder
        self._frame = frame
        self._width = width
        self._height = height
        self._rng = rng if rng is not None else np.random.default_rng()

        self._flame = builder.build()
        self._accumulator_builder = self._new_accumulator_builder()
        self._points_computed = 0

        builder.add_observer(self._on_flame_changed)

    @property
    def frame(self) -> Rectangle:
        return self._frame

    @property
    def flame(self) -> Flame:
        return self._flame

    @property
    def points_computed(self) -> int:
        return self._points_computed

    def _new_accumulator_builder(self) -> FlameAccumulatorBuilder:
        return FlameAccumulatorBuilder(self._frame, self._width, self._height, rng=self._rng)

    def _on_flame_changed(self, builder: ObservableFlameBuilder) -> None:
        self._flame = builder.build()
        self.reset()

    def set_frame(self, frame: Rectangle) -> None:
        self._frame = frame
        self.reset()

    def reset(self) -> None:
        """Discard the accumulated points."""
        self._accumulator_builder = self._new_accumulator_builder()
        self._points_computed = 0
        logger.debug("Progressive render reset")

    def step(self, amount: int) -> FlameAccumulator:
        """
        Compute ``amount`` more points.

        Returns:
            Snapshot of everything accumulated since the last reset
        """
        self._flame.compute_incremental(amount, self._accumulator_builder)
        self._points_computed += amount
        return self._accumulator_builder.build()

    def snapshot(self) -> FlameAccumulator:
        return self._accumulator_builder.build()

    def close(self) -> None:
        """Stop observing the flame builder."""
        self._builder.remove_observer(self._on_flame_changed)
