"""Tests for the terrain synthesizer."""

import numpy as np
import pytest

from landform.config import BiomeWeights, ErosionConfig, SeasonConfig, TerrainConfig
from landform.exceptions import (
    ErosionCancelledError,
    InvalidParameterError,
    TerrainNotGeneratedError,
    UnknownParameterError,
)
from landform.seasons import forest_color
from landform.synthesizer import PARAMETERS, TerrainSynthesizer
from landform.types import YELLOW, Biome

from .conftest import ConstantNoise


class TestRegenerate:
    """Tests for full terrain generation."""

    def test_state_before_generation_raises(self, small_config) -> None:
        """Reading terrain before generating it is an error."""
        synth = TerrainSynthesizer(small_config)
        assert not synth.has_terrain
        with pytest.raises(TerrainNotGeneratedError):
            synth.state

    def test_publishes_geometry(self, small_config, sink) -> None:
        """Regeneration pushes one mesh update to the sink."""
        synth = TerrainSynthesizer(small_config, sink=sink)
        synth.regenerate()

        assert len(sink.geometry_updates) == 1
        mesh = sink.geometry_updates[0]
        assert mesh.vertices.shape == (17 * 17, 3)
        assert mesh.colors.shape == (17 * 17, 4)
        assert mesh.normals.shape == (17 * 17, 3)
        assert len(mesh.triangles) == 16 * 16 * 6

    def test_small_grid_scenario(self) -> None:
        """A 4x4 grid with equal weights: 25 vertices, 96 indices, 10 seeds each."""
        config = TerrainConfig(width=4, height=4, weights=BiomeWeights())
        synth = TerrainSynthesizer(config, noise=ConstantNoise())
        state = synth.regenerate()

        assert state.partition.counts == {b: 10 for b in Biome}
        assert len(state.partition.seeds) == 40
        assert len(synth.mesh.vertices) == 25
        assert len(synth.triangles) == 96

    def test_deterministic_for_seed(self, small_config) -> None:
        """Same config and seed give identical terrain."""
        a = TerrainSynthesizer(small_config).regenerate()
        b = TerrainSynthesizer(small_config).regenerate()
        np.testing.assert_array_equal(a.vertices, b.vertices)
        np.testing.assert_array_equal(a.colors, b.colors)

    def test_uses_current_season_colors(self, small_config) -> None:
        """Fresh terrain is colored for the current season, not base colors."""
        synth = TerrainSynthesizer(small_config, noise=ConstantNoise())
        assert synth.set_season_progress(300.0)
        state = synth.regenerate()

        t = 300.0 / 365.0
        forest = state.biomes == Biome.FOREST.value
        desert = state.biomes == Biome.DESERT.value
        for mask, color in ((forest, forest_color(t)), (desert, YELLOW)):
            expected = np.broadcast_to(np.array(color, dtype=np.float32), (mask.sum(), 4))
            np.testing.assert_allclose(state.colors[mask], expected)


class TestSetParameter:
    """Tests for parameter changes."""

    def test_unknown_parameter(self, small_config) -> None:
        """Unknown names raise and leave the terrain alone."""
        synth = TerrainSynthesizer(small_config)
        synth.regenerate()
        with pytest.raises(UnknownParameterError):
            synth.set_parameter("roughness", 1.0)

    def test_unknown_parameter_is_key_error(self, small_config) -> None:
        synth = TerrainSynthesizer(small_config)
        with pytest.raises(KeyError):
            synth.set_parameter("roughness", 1.0)

    def test_negative_weight_rejected(self, small_config) -> None:
        """Validation failures keep the previous config."""
        synth = TerrainSynthesizer(small_config)
        with pytest.raises(InvalidParameterError):
            synth.set_parameter("ocean_weight", -1.0)
        assert synth.config.weights.ocean == 1.0

    def test_infinite_weight_rejected(self, small_config) -> None:
        """Non-finite weights are rejected and generation keeps working."""
        synth = TerrainSynthesizer(small_config)
        with pytest.raises(InvalidParameterError):
            synth.set_parameter("desert_weight", float("inf"))
        assert synth.config.weights.desert == 1.0
        assert synth.regenerate().partition.counts[Biome.DESERT] == 10

    def test_weight_change_regenerates(self, small_config, sink) -> None:
        """Every accepted change rebuilds and republishes the terrain."""
        synth = TerrainSynthesizer(small_config, sink=sink)
        synth.regenerate()
        synth.set_parameter("mountain_weight", 3.0)

        assert synth.config.weights.mountain == 3.0
        assert len(sink.geometry_updates) == 2

    def test_resize_rebuilds_triangles(self, small_config, sink) -> None:
        """Changing width rebuilds the triangle list for the new grid."""
        synth = TerrainSynthesizer(small_config, sink=sink)
        synth.regenerate()
        state = synth.set_parameter("width", 24)

        assert state.width == 24
        assert state.vertex_count == 25 * 17
        assert len(synth.triangles) == 24 * 16 * 6
        assert len(sink.geometry_updates[-1].triangles) == 24 * 16 * 6

    def test_scale_applies(self) -> None:
        """Scale feeds straight into elevation."""
        config = TerrainConfig(width=8, height=8)
        synth = TerrainSynthesizer(config, noise=ConstantNoise(0.5))
        synth.regenerate()
        state = synth.set_parameter("scale", 20.0)

        desert = state.biomes == Biome.DESERT.value
        assert desert.any()
        np.testing.assert_allclose(state.vertices[desert, 1], 0.5 * 20.0 * 0.3)

    def test_every_parameter_is_settable(self, small_config) -> None:
        """Each published parameter name maps onto the config."""
        synth = TerrainSynthesizer(small_config)
        for name in PARAMETERS:
            synth.set_parameter(name, 8)
        assert synth.config.width == 8
        assert synth.config.weights.desert == 8

    def test_randomize_weights(self, small_config) -> None:
        """Random weights land in the requested range."""
        synth = TerrainSynthesizer(small_config)
        synth.randomize_weights()
        for value in synth.config.weights.as_tuple():
            assert 0.0 <= value < 1.0
        assert synth.has_terrain


class TestErosion:
    """Tests for erosion driven through the synthesizer."""

    def test_start_before_generation_raises(self, small_config) -> None:
        synth = TerrainSynthesizer(small_config)
        with pytest.raises(TerrainNotGeneratedError):
            synth.start_erosion()

    def test_erode_publishes_each_step_and_smoothing(self, small_config, sink) -> None:
        """One update per step plus one after smoothing."""
        synth = TerrainSynthesizer(small_config, sink=sink)
        synth.regenerate()
        results = synth.erode()

        assert len(results) == 3
        assert len(sink.geometry_updates) == 1 + 3 + 1
        assert synth.erosion.is_completed

    def test_stepwise_run(self, small_config, sink) -> None:
        """A host can pace the run one step at a time."""
        synth = TerrainSynthesizer(small_config, sink=sink)
        synth.regenerate()
        run = synth.start_erosion()

        run.step()
        assert len(sink.geometry_updates) == 2
        assert not run.is_finished

    def test_regenerate_cancels_run(self, small_config) -> None:
        """Regenerating abandons an erosion run in flight."""
        synth = TerrainSynthesizer(small_config)
        synth.regenerate()
        run = synth.start_erosion()
        run.step()

        synth.regenerate()

        assert run.is_cancelled
        assert synth.erosion is None
        with pytest.raises(ErosionCancelledError):
            run.step()

    def test_cancelled_run_leaves_new_terrain(self, small_config) -> None:
        """A stale run never touches the regenerated terrain."""
        synth = TerrainSynthesizer(small_config)
        synth.regenerate()
        run = synth.start_erosion()
        new_state = synth.regenerate()
        before = new_state.elevation.copy()

        with pytest.raises(ErosionCancelledError):
            run.drain()
        np.testing.assert_array_equal(new_state.elevation, before)


    def test_zero_step_run_cancelled_by_regenerate(self, small_config) -> None:
        """A run with no steps left is still abandoned until it completes."""
        config = small_config.model_copy(update={"erosion": ErosionConfig(steps=0)})
        synth = TerrainSynthesizer(config)
        synth.regenerate()
        run = synth.start_erosion()
        new_state = synth.regenerate()
        before = new_state.elevation.copy()

        assert run.drain() == []
        assert run.is_cancelled
        assert not run.is_completed
        np.testing.assert_array_equal(new_state.elevation, before)

    def test_zero_step_erode_smooths_once(self, small_config, sink) -> None:
        """Without steps, erosion still ends with one smoothing pass."""
        config = small_config.model_copy(update={"erosion": ErosionConfig(steps=0)})
        synth = TerrainSynthesizer(config, sink=sink)
        state = synth.regenerate()
        before = state.elevation.copy()

        assert synth.erode() == []
        assert synth.erosion.is_completed
        assert len(sink.geometry_updates) == 2
        assert not np.array_equal(state.elevation, before)

class TestSeasons:
    """Tests for season control."""

    def test_manual_progress(self, small_config, sink) -> None:
        """Setting progress relabels and recolors."""
        synth = TerrainSynthesizer(small_config, sink=sink)
        synth.regenerate()

        assert synth.set_season_progress(300.0)
        assert synth.season_label == "Winter"
        assert synth.season_display_text == "Season: Winter"
        assert len(sink.color_updates) == 1

    def test_initial_label(self, small_config) -> None:
        synth = TerrainSynthesizer(small_config)
        assert synth.season_display_text == "Season: Spring"

    def test_auto_mode_ignores_manual_progress(self, small_config) -> None:
        """The slider has no effect while the season advances on its own."""
        synth = TerrainSynthesizer(small_config)
        synth.set_auto_season(True)
        assert not synth.set_season_progress(200.0)
        assert synth.season_progress == 0.0

    def test_tick_advances_only_in_auto_mode(self, small_config) -> None:
        """Ticks move the season at the configured speed in auto mode."""
        synth = TerrainSynthesizer(small_config)
        synth.tick(1.0)
        assert synth.season_progress == 0.0

        synth.set_auto_season(True)
        synth.tick(1.0)
        assert synth.season_progress == pytest.approx(30.0)

    def test_progress_wraps(self, small_config) -> None:
        """Progress wraps back to the start of the year."""
        synth = TerrainSynthesizer(small_config)
        synth.set_season_progress(360.0)
        synth.set_auto_season(True)
        synth.tick(1.0)
        assert synth.season_progress == pytest.approx(25.0)
        assert synth.season_label == "Spring"

    def test_auto_advance_from_config(self) -> None:
        """Auto mode can be switched on from the config."""
        seasons = SeasonConfig(auto_advance=True, speed=10.0)
        config = TerrainConfig(width=8, height=8, seasons=seasons)
        synth = TerrainSynthesizer(config)
        assert synth.auto_season
        synth.tick(0.5)
        assert synth.season_progress == pytest.approx(5.0)

    def test_recolor_leaves_geometry(self, small_config, sink) -> None:
        """Season changes only push colors."""
        synth = TerrainSynthesizer(small_config, sink=sink)
        synth.regenerate()
        before = synth.state.vertices.copy()

        synth.set_season_progress(150.0)

        assert len(sink.geometry_updates) == 1
        np.testing.assert_array_equal(synth.state.vertices, before)
