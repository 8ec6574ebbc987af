"""Terrain synthesis orchestration.

``TerrainSynthesizer`` owns the current terrain state and exposes the
triggers a host drives: regenerate, change a parameter, erode, and move
through the seasons.

Usage:
    synth = TerrainSynthesizer(TerrainConfig(width=200, height=200), sink=renderer)
    synth.regenerate()

    # Step-paced erosion, one step per frame:
    run = synth.start_erosion()
    for _ in run:
        render_frame()

    # Per-frame season update:
    synth.set_auto_season(True)
    synth.tick(dt)
"""

import numpy as np
import structlog
from numpy.typing import NDArray
from pydantic import ValidationError

from .biomes import partition_biomes
from .config import BiomeWeights, TerrainConfig
from .erosion import ErosionRun, ErosionStepResult
from .exceptions import (
    InvalidParameterError,
    TerrainNotGeneratedError,
    UnknownParameterError,
)
from .heightfield import generate_heightfield
from .mesh import MeshData, MeshSink, TriangleCache, compute_normals
from .noise import NoiseSource, PerlinNoise
from .seasons import apply_seasonal_colors, season_label, wrap_progress
from .smoothing import smooth_terrain
from .state import TerrainState
from .types import Biome, RandomSource, Season

logger = structlog.get_logger()

# Parameter name -> path into the TerrainConfig model
PARAMETERS: dict[str, tuple[str, ...]] = {
    "scale": ("scale",),
    "perlin_scale_multiplier": ("perlin_scale_multiplier",),
    "desert_weight": ("weights", "desert"),
    "forest_weight": ("weights", "forest"),
    "mountain_weight": ("weights", "mountain"),
    "ocean_weight": ("weights", "ocean"),
    "width": ("width",),
    "height": ("height",),
}


class TerrainSynthesizer:
    """Generates, erodes and colors one terrain."""

    def __init__(
        self,
        config: TerrainConfig | None = None,
        rng: RandomSource | None = None,
        noise: NoiseSource | None = None,
        sink: MeshSink | None = None,
    ):
        self.config = config or TerrainConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)
        self.noise = noise if noise is not None else PerlinNoise(self.config.seed)
        self.sink = sink

        self._state: TerrainState | None = None
        self._triangles = TriangleCache()
        self._erosion: ErosionRun | None = None
        self._season_progress = 0.0
        self._auto_season = self.config.seasons.auto_advance

    # -- read-only views --------------------------------------------------

    @property
    def state(self) -> TerrainState:
        if self._state is None:
            raise TerrainNotGeneratedError("Terrain has not been generated yet")
        return self._state

    @property
    def has_terrain(self) -> bool:
        return self._state is not None

    @property
    def triangles(self) -> NDArray[np.int32]:
        return self._triangles.get(self.config.width, self.config.height)

    @property
    def erosion(self) -> ErosionRun | None:
        """The most recent erosion run, if any."""
        return self._erosion

    @property
    def season_progress(self) -> float:
        return self._season_progress

    @property
    def season(self) -> Season:
        return season_label(self._season_progress / self.config.seasons.days_per_year)

    @property
    def season_label(self) -> str:
        return self.season.value

    @property
    def season_display_text(self) -> str:
        return f"Season: {self.season_label}"

    @property
    def auto_season(self) -> bool:
        return self._auto_season

    @property
    def mesh(self) -> MeshData:
        state = self.state
        triangles = self.triangles
        return MeshData(
            vertices=state.vertices,
            triangles=triangles,
            colors=state.colors,
            normals=compute_normals(state.vertices, triangles),
        )

    # -- generation -------------------------------------------------------

    def regenerate(self) -> TerrainState:
        """Rebuild partition, heightfield and mesh from scratch.

        Any erosion run still in flight is cancelled first.
        """
        self._cancel_erosion()
        self._erosion = None

        config = self.config
        partition = partition_biomes(
            config.weights, config.width, config.height, self.rng, config.partition
        )
        state = generate_heightfield(partition, self.noise, config)
        apply_seasonal_colors(state, self._season_progress, config.seasons.days_per_year)
        self._state = state

        logger.info(
            "terrain_generated",
            width=config.width,
            height=config.height,
            seeds={b.name: partition.counts[b] for b in Biome},
            unsatisfied_seeds=partition.unsatisfied,
        )
        self._publish_geometry()
        return state

    def set_parameter(self, name: str, value: float) -> TerrainState:
        """Apply one parameter change and fully regenerate.

        Raises:
            UnknownParameterError: If ``name`` is not a known parameter.
            InvalidParameterError: If ``value`` fails validation.
        """
        if name not in PARAMETERS:
            raise UnknownParameterError(
                f"Unknown parameter '{name}'. Known: {sorted(PARAMETERS)}"
            )

        data = self.config.model_dump()
        *parents, leaf = PARAMETERS[name]
        target = data
        for key in parents:
            target = target[key]
        target[leaf] = value

        try:
            self.config = TerrainConfig.model_validate(data)
        except ValidationError as e:
            raise InvalidParameterError(f"Invalid value for '{name}': {value!r}") from e

        logger.info("parameter_changed", name=name, value=value)
        return self.regenerate()

    def randomize_weights(self, low: float = 0.0, high: float = 1.0) -> TerrainState:
        """Draw every biome weight uniformly from [low, high) and regenerate."""
        weights = {
            biome.name.lower(): float(self.rng.uniform(low, high)) for biome in Biome
        }
        try:
            self.config = self.config.model_copy(
                update={"weights": BiomeWeights.model_validate(weights)}
            )
        except ValidationError as e:
            raise InvalidParameterError(f"Invalid weight range [{low}, {high})") from e
        logger.info("weights_randomized", **weights)
        return self.regenerate()

    # -- erosion ----------------------------------------------------------

    def start_erosion(self) -> ErosionRun:
        """Begin a step-paced erosion run on the current terrain.

        The mesh is published after every step. When the last step finishes
        the terrain is smoothed once and published again.
        """
        state = self.state
        self._cancel_erosion()

        self._erosion = ErosionRun(
            state,
            self.rng,
            self.config.erosion,
            on_step=self._on_erosion_step,
            on_complete=self._on_erosion_complete,
        )
        logger.info(
            "erosion_started",
            steps=self.config.erosion.steps,
            droplets_per_step=self.config.erosion.droplets_per_step,
        )
        return self._erosion

    def erode(self) -> list[ErosionStepResult]:
        """Run a complete erosion pass synchronously."""
        return self.start_erosion().drain()

    def _on_erosion_step(self, result: ErosionStepResult) -> None:
        self._publish_geometry()

    def _on_erosion_complete(self, run: ErosionRun) -> None:
        smooth_terrain(run.state, self.config.smoothing.blend)
        logger.info("terrain_smoothed", blend=self.config.smoothing.blend)
        if run.state is self._state:
            self._publish_geometry()

    def _cancel_erosion(self) -> None:
        # A zero-step run is finished before it has completed, so check completion
        if self._erosion is not None and not self._erosion.is_completed:
            self._erosion.cancel()

    # -- seasons ----------------------------------------------------------

    def set_auto_season(self, enabled: bool) -> None:
        self._auto_season = enabled

    def set_season_progress(self, progress: float) -> bool:
        """Jump to a season position, as a host slider would.

        Ignored while the season advances automatically.

        Returns:
            True if applied, False if ignored.
        """
        if self._auto_season:
            logger.debug("season_progress_ignored", progress=progress)
            return False
        self._season_progress = wrap_progress(
            progress, self.config.seasons.days_per_year
        )
        self._recolor()
        return True

    def advance_season(self, dt: float) -> float:
        """Advance the season by ``dt`` seconds of host time.

        Returns:
            The new season progress.
        """
        seasons = self.config.seasons
        self._season_progress = wrap_progress(
            self._season_progress + dt * seasons.speed, seasons.days_per_year
        )
        self._recolor()
        return self._season_progress

    def tick(self, dt: float) -> None:
        """Per-frame hook: advances the season only in auto mode."""
        if self._auto_season:
            self.advance_season(dt)

    def _recolor(self) -> None:
        if self._state is None:
            return
        apply_seasonal_colors(
            self._state, self._season_progress, self.config.seasons.days_per_year
        )
        if self.sink is not None:
            self.sink.update_colors(self._state.colors)

    # -- publishing -------------------------------------------------------

    def _publish_geometry(self) -> None:
        if self.sink is not None:
            self.sink.update_geometry(self.mesh)
