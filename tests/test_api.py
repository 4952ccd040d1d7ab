import json

import numpy as np
import pytest

from flame_maker.api import (
    FlameRenderer,
    ObservableFlameBuilder,
    ProgressiveRenderer,
    RenderConfig,
    load_config,
    save_config,
)
from flame_maker.core.flame import FlameTransformation
from flame_maker.core.geometry import AffineTransformation, Point, Rectangle
from flame_maker.core.variations import Variation


class TestRenderConfig:
    def test_defaults_are_valid(self):
        RenderConfig().validate()

    @pytest.mark.parametrize("overrides", [
        {'width': 0},
        {'height': -4},
        {'density': -1},
        {'frame': (0.0, 0.0, 0.0, 1.0)},
        {'frame': (0.0, 0.0, 1.0)},
        {'random_palette_size': 1},
        {'background': (0.0, 2.0, 0.0)},
        {'chunk_size': 0},
        {'output_format': 'gif'},
    ])
    def test_invalid(self, overrides):
        config = RenderConfig(**overrides)
        with pytest.raises(ValueError):
            config.validate()

    def test_frame_rectangle(self):
        config = RenderConfig(frame=(1.0, 2.0, 3.0, 4.0))
        assert config.frame_rectangle() == Rectangle(Point(1.0, 2.0), 3.0, 4.0)
        assert RenderConfig().frame_rectangle() is None

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(ValueError, match="Unknown configuration keys"):
            RenderConfig.from_dict({'width': 10, 'zoom': 2})

    def test_save_and_load(self, tmp_path):
        config = RenderConfig(width=64, height=48, frame=(0.0, 0.5, 2.0, 1.5),
                              color_palette='fire', seed=5)
        path = save_config(config, tmp_path / "config.json")
        assert json.loads(path.read_text())['width'] == 64
        assert load_config(path) == config


class TestFlameRenderer:
    def test_compute_reports_progress(self, triangle_flame):
        config = RenderConfig(width=10, height=10, density=5, chunk_size=120, seed=3)
        progress = []
        accumulator = FlameRenderer(config).compute(
            triangle_flame, Rectangle(Point(0.5, 0.5), 1.0, 1.0), progress.append)

        assert progress == pytest.approx([0.24, 0.48, 0.72, 0.96, 1.0])
        assert accumulator.total_hits == 500

    def test_chunking_does_not_change_the_result(self, triangle_flame):
        frame = Rectangle(Point(0.5, 0.5), 1.0, 1.0)
        small = FlameRenderer(RenderConfig(width=8, height=8, density=4, chunk_size=7, seed=9))
        large = FlameRenderer(RenderConfig(width=8, height=8, density=4, chunk_size=1000, seed=9))
        a = small.compute(triangle_flame, frame)
        b = large.compute(triangle_flame, frame)
        np.testing.assert_array_equal(a.hit_counts, b.hit_counts)
        np.testing.assert_array_equal(a.color_index_sums, b.color_index_sums)

    def test_render_preset_to_ppm(self, tmp_path):
        config = RenderConfig(width=12, height=10, density=2, seed=1)
        output = tmp_path / "shark.ppm"
        accumulator = FlameRenderer(config).render_preset('sharkfin', output)
        assert accumulator.width == 12
        assert output.read_text().startswith("P3\n12 10\n100\n")

    def test_render_preset_to_png_with_raw_data(self, tmp_path):
        config = RenderConfig(width=12, height=10, density=2, seed=1, save_raw_data=True)
        FlameRenderer(config).render_preset('turbulence', tmp_path / "turbulence.png")
        assert (tmp_path / "turbulence.png").exists()
        assert (tmp_path / "turbulence.npz").exists()

    @staticmethod
    def _capture_frames(monkeypatch):
        frames = []
        original = FlameRenderer.compute

        def compute(self, flame, frame, progress_callback=None):
            frames.append(frame)
            return original(self, flame, frame, progress_callback)

        monkeypatch.setattr(FlameRenderer, 'compute', compute)
        return frames

    def test_preset_frame_keeps_cells_square(self, monkeypatch):
        frames = self._capture_frames(monkeypatch)
        FlameRenderer(RenderConfig(width=50, height=40, density=1, seed=2)).render_preset('turbulence')

        frame = frames[0]
        assert frame.width / 50 == pytest.approx(frame.height / 40)
        assert frame.center == Point(0.1, 0.1)
        assert (frame.width, frame.height) == pytest.approx((3.75, 3.0))

    def test_configured_frame_is_used_as_given(self, monkeypatch):
        frames = self._capture_frames(monkeypatch)
        config = RenderConfig(width=50, height=40, density=1, seed=2, frame=(0.0, 0.0, 2.0, 2.0))
        FlameRenderer(config).render_preset('turbulence')
        assert frames == [Rectangle(Point(0.0, 0.0), 2.0, 2.0)]

    def test_unknown_preset(self):
        with pytest.raises(ValueError, match="Unknown flame"):
            FlameRenderer(RenderConfig(width=4, height=4, density=1)).render_preset('nope')

    def test_update_config(self):
        renderer = FlameRenderer(RenderConfig())
        renderer.update_config(width=32)
        assert renderer.config.width == 32
        with pytest.raises(ValueError):
            renderer.update_config(zoom=3)

    @pytest.mark.parametrize("name", ['validate', 'to_dict', 'frame_rectangle'])
    def test_update_config_rejects_methods(self, name):
        renderer = FlameRenderer(RenderConfig())
        with pytest.raises(ValueError, match="Unknown configuration parameter"):
            renderer.update_config(**{name: None})
        renderer.config.validate()


class TestObservableFlameBuilder:
    def test_notifies_on_every_change(self, triangle_flame):
        builder = ObservableFlameBuilder(triangle_flame)
        calls = []
        builder.add_observer(calls.append)

        builder.set_variation_weight(0, Variation.SWIRL, 0.3)
        builder.set_affine_transformation(1, AffineTransformation.IDENTITY)
        builder.add_transformation()
        builder.remove_transformation(0)

        assert calls == [builder] * 4
        assert builder.transformation_count() == 3
        assert builder.build().transformations[-1] == FlameTransformation.identity()

    def test_reads_do_not_notify(self, triangle_flame):
        builder = ObservableFlameBuilder(triangle_flame)
        calls = []
        builder.add_observer(calls.append)
        builder.variation_weight(0, Variation.LINEAR)
        builder.affine_transformation(0)
        builder.build()
        assert calls == []

    def test_removed_observer_is_not_called(self, triangle_flame):
        builder = ObservableFlameBuilder(triangle_flame)
        calls = []
        builder.add_observer(calls.append)
        builder.remove_observer(calls.append)
        builder.set_variation_weight(0, Variation.SWIRL, 0.3)
        assert calls == []


class TestProgressiveRenderer:
    frame = Rectangle(Point(0.5, 0.5), 1.0, 1.0)

    def test_steps_accumulate(self, triangle_flame):
        renderer = ProgressiveRenderer(ObservableFlameBuilder(triangle_flame), self.frame,
                                       8, 8, rng=np.random.default_rng(0))
        first = renderer.step(100)
        second = renderer.step(100)
        assert first.total_hits == 100
        assert second.total_hits == 200
        assert renderer.points_computed == 200

    def test_edit_resets_accumulation(self, triangle_flame):
        builder = ObservableFlameBuilder(triangle_flame)
        renderer = ProgressiveRenderer(builder, self.frame, 8, 8, rng=np.random.default_rng(0))
        renderer.step(100)

        builder.set_affine_transformation(0, AffineTransformation.new_scaling(0.4, 0.4))
        assert renderer.points_computed == 0
        assert renderer.snapshot().total_hits == 0
        assert renderer.flame.transformations[0].affine == AffineTransformation.new_scaling(0.4, 0.4)

    def test_set_frame_resets(self, triangle_flame):
        renderer = ProgressiveRenderer(ObservableFlameBuilder(triangle_flame), self.frame, 8, 8)
        renderer.step(50)
        renderer.set_frame(Rectangle(Point(0.25, 0.25), 0.5, 0.5))
        assert renderer.points_computed == 0
        assert renderer.frame == Rectangle(Point(0.25, 0.25), 0.5, 0.5)

    def test_close_stops_observing(self, triangle_flame):
        builder = ObservableFlameBuilder(triangle_flame)
        renderer = ProgressiveRenderer(builder, self.frame, 8, 8)
        renderer.step(50)
        renderer.close()
        builder.set_variation_weight(0, Variation.SWIRL, 0.3)
        assert renderer.points_computed == 50

    def test_rejects_empty_grid(self, triangle_flame):
        with pytest.raises(ValueError):
            ProgressiveRenderer(ObservableFlameBuilder(triangle_flame), self.frame, 0, 8)
