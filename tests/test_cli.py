import json

import pytest
from click.testing import CliRunner

from flame_maker.api import ProgressiveRenderer
from flame_maker.cli.main import main
from flame_maker.core.presets import FlameRegistry


@pytest.fixture
def runner():
    return CliRunner()


def test_version(runner):
    result = runner.invoke(main, ['--version'])
    assert result.exit_code == 0
    assert "Flame Maker v1.0.0" in result.output


def test_list_flames(runner):
    result = runner.invoke(main, ['list-flames'])
    assert result.exit_code == 0
    for name in FlameRegistry.names():
        assert name in result.output


def test_list_palettes(runner):
    result = runner.invoke(main, ['list-palettes'])
    assert result.exit_code == 0
    lines = result.output.split()
    assert lines[0] == 'random'
    assert 'rgb' in lines


def test_render_ppm(runner, tmp_path):
    output = tmp_path / "shark.ppm"
    result = runner.invoke(main, ['render', 'sharkfin', str(output),
                                  '-w', '10', '-h', '8', '-d', '2', '--seed', '4'])
    assert result.exit_code == 0, result.output
    assert output.read_text().startswith("P3\n10 8\n100\n")


def test_render_png_with_options(runner, tmp_path):
    output = tmp_path / "fern.png"
    result = runner.invoke(main, ['render', 'barnsley_fern', str(output),
                                  '--width', '12', '--height', '16', '--density', '1',
                                  '--frame', '0,4.5,6,10', '--palette', 'random',
                                  '--palette-size', '4', '--background', '#101010',
                                  '--seed', '2', '--raw'])
    assert result.exit_code == 0, result.output
    assert output.exists()
    assert output.with_suffix('.npz').exists()


def test_render_with_config_file(runner, tmp_path):
    config = tmp_path / "config.json"
    config.write_text(json.dumps({'width': 6, 'height': 6, 'density': 1, 'seed': 8}))
    output = tmp_path / "carpet.ppm"
    result = runner.invoke(main, ['--config', str(config), 'render', 'sierpinski_carpet',
                                  str(output)])
    assert result.exit_code == 0, result.output
    assert output.read_text().startswith("P3\n6 6\n100\n")


def test_render_unknown_flame(runner, tmp_path):
    result = runner.invoke(main, ['render', 'mandelbrot', str(tmp_path / "x.png")])
    assert result.exit_code == 1
    assert "Unknown flame" in result.output


def test_render_bad_frame(runner, tmp_path):
    result = runner.invoke(main, ['render', 'sharkfin', str(tmp_path / "x.png"),
                                  '--frame', '1,2,3'])
    assert result.exit_code == 1


def test_progressive(runner, tmp_path):
    result = runner.invoke(main, ['progressive', 'dragon_curve', str(tmp_path / "frames"),
                                  '-w', '10', '-h', '7', '--steps', '3',
                                  '--points-per-step', '200', '--format', 'ppm',
                                  '--seed', '1'])
    assert result.exit_code == 0, result.output
    frames = sorted(p.name for p in (tmp_path / "frames").iterdir())
    assert frames == ['dragon_curve_0000.ppm', 'dragon_curve_0001.ppm',
                      'dragon_curve_0002.ppm']


def test_progressive_stops_observing_after_failure(runner, tmp_path, monkeypatch):
    closed = []
    original_close = ProgressiveRenderer.close

    def close(self):
        closed.append(self)
        original_close(self)

    def broken_write(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(ProgressiveRenderer, 'close', close)
    monkeypatch.setattr('flame_maker.cli.main.write_ppm', broken_write)

    result = runner.invoke(main, ['progressive', 'sharkfin', str(tmp_path / "frames"),
                                  '-w', '10', '-h', '8', '--steps', '2',
                                  '--points-per-step', '50', '--format', 'ppm'])
    assert result.exit_code == 1
    assert "disk full" in result.output
    assert len(closed) == 1
