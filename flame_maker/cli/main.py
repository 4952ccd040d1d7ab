"""
Command-line interface for flame rendering.

This module exposes the built-in flames through a ``click`` command group:
one-shot renders, progressive renders that save a snapshot after every
step, and listings of the available flames and palettes.
"""

import logging
import sys
import time
from pathlib import Path
from typing import Optional, Tuple

import click
import numpy as np

from .. import __version__
from ..api import FlameRenderer, ObservableFlameBuilder, ProgressiveRenderer, RenderConfig, load_config
from ..core.presets import FlameRegistry
from ..rendering.coloring import Color, get_palette, list_palettes
from ..rendering.image_output import ImageExporter, write_ppm

logger = logging.getLogger(__name__)


def _parse_frame(value: Optional[str]) -> Optional[Tuple[float, float, float, float]]:
    if not value:
        return None
    try:
        parts = tuple(float(x.strip()) for x in value.split(','))
    except ValueError:
        raise click.BadParameter("Use 'center_x,center_y,width,height'") from None
    if len(parts) != 4:
        raise click.BadParameter("Use 'center_x,center_y,width,height'")
    return parts


def _build_config(ctx, overrides) -> RenderConfig:
    """Load the configuration file if one was given, then apply command-line overrides."""
    config_file = ctx.obj.get('config_file')
    config = load_config(config_file) if config_file else RenderConfig()

    for key, value in overrides.items():
        if value is not None:
            setattr(config, key, value)
    config.validate()
    return config


def _fail(ctx, error: Exception):
    click.echo(f"Error: {error}", err=True)
    if ctx.obj.get('verbose'):
        import traceback
        traceback.print_exc()
    sys.exit(1)


@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--config', type=click.Path(exists=True), help='Configuration file path (JSON)')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress most output')
@click.pass_context
def main(ctx, version, config, verbose, quiet):
    """
    Flame Maker - flame fractal rendering tool.

    Render the built-in flame fractals with the chaos game, in one shot or
    progressively.
    """
    if quiet:
        logging.basicConfig(level=logging.ERROR)
    elif verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.INFO,
                            format='%(levelname)s: %(message)s')

    if version:
        click.echo(f"Flame Maker v{__version__}")
        click.echo(f"Python: {sys.version}")
        if ctx.invoked_subcommand is None:
            sys.exit(0)

    ctx.ensure_object(dict)
    ctx.obj['config_file'] = config
    ctx.obj['verbose'] = verbose


@main.command()
@click.argument('flame_name')
@click.argument('output', type=click.Path())
@click.option('--width', '-w', type=int, help='Image width')
@click.option('--height', '-h', type=int, help='Image height')
@click.option('--density', '-d', type=int, help='Average plotted points per pixel')
@click.option('--frame', type=str, help='Viewport: "center_x,center_y,width,height"')
@click.option('--palette', help='Color palette name (or "random")')
@click.option('--palette-size', type=int, help='Number of colors of a random palette')
@click.option('--background', type=str, help='Background color as #rrggbb')
@click.option('--seed', type=int, help='Random seed')
@click.option('--raw', is_flag=True, help='Also save the raw accumulator (.npz)')
@click.pass_context
def render(ctx, flame_name, output, width, height, density, frame, palette, palette_size,
           background, seed, raw):
    """
    Render a built-in flame.

    FLAME_NAME: Name of a built-in flame (see list-flames)
    OUTPUT: Output image file path (.ppm, .png, .tiff or .jpg)
    """
    try:
        config = _build_config(ctx, {
            'width': width,
            'height': height,
            'density': density,
            'frame': _parse_frame(frame),
            'color_palette': palette,
            'random_palette_size': palette_size,
            'background': Color.from_hex(background).to_tuple() if background else None,
            'seed': seed,
            'save_raw_data': raw or None,
        })

        renderer = FlameRenderer(config)

        def progress_callback(progress):
            if ctx.obj.get('verbose'):
                click.echo(f"Progress: {progress * 100:.1f}%")

        click.echo(f"Rendering {flame_name} flame...")
        start_time = time.time()

        accumulator = renderer.render_preset(flame_name, Path(output), progress_callback)

        click.echo(f"Render complete: {time.time() - start_time:.2f}s "
                   f"({accumulator.total_hits} points inside the frame)")
        click.echo(f"Saved: {output}")

    except Exception as e:
        _fail(ctx, e)


@main.command()
@click.argument('flame_name')
@click.argument('output_dir', type=click.Path())
@click.option('--width', '-w', type=int, default=250, show_default=True, help='Image width')
@click.option('--height', '-h', type=int, default=200, show_default=True, help='Image height')
@click.option('--steps', type=int, default=5, show_default=True, help='Number of refinement steps')
@click.option('--points-per-step', type=int, default=100_000, show_default=True,
              help='Points computed per step')
@click.option('--palette', default='rgb', show_default=True, help='Color palette name')
@click.option('--format', 'image_format', type=click.Choice(['png', 'ppm']), default='png',
              show_default=True, help='Snapshot format')
@click.option('--seed', type=int, help='Random seed')
@click.pass_context
def progressive(ctx, flame_name, output_dir, width, height, steps, points_per_step, palette,
                image_format, seed):
    """
    Render a built-in flame progressively, saving a snapshot after each step.

    FLAME_NAME: Name of a built-in flame (see list-flames)
    OUTPUT_DIR: Directory receiving the numbered snapshots
    """
    try:
        if steps <= 0 or points_per_step <= 0:
            raise ValueError("steps and points-per-step must be positive")

        preset = FlameRegistry.get(flame_name)
        rng = np.random.default_rng(seed)
        color_palette = get_palette(palette, rng=rng)
        background = Color.BLACK

        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        frame = preset.frame.expand_to_aspect_ratio(width / height)
        renderer = ProgressiveRenderer(ObservableFlameBuilder(preset.flame), frame,
                                       width, height, rng=rng)
        exporter = ImageExporter()

        try:
            for step in range(steps):
                accumulator = renderer.step(points_per_step)
                filepath = output_dir / f"{preset.name}_{step:04d}.{image_format}"
                if image_format == 'ppm':
                    write_ppm(accumulator, color_palette, background, filepath)
                else:
                    exporter.save_image(accumulator.to_rgb_array(color_palette, background), filepath)
                click.echo(f"Step {step + 1}/{steps}: {renderer.points_computed} points -> {filepath}")
        finally:
            renderer.close()

    except Exception as e:
        _fail(ctx, e)


@main.command(name='list-flames')
def list_flames():
    """List the built-in flames."""
    for name, description in FlameRegistry.list_flames().items():
        click.echo(f"{name:20} {description}")


@main.command(name='list-palettes')
def list_palettes_command():
    """List the available color palettes."""
    click.echo('random')
    for name in list_palettes():
        click.echo(name)


if __name__ == '__main__':
    main()
