"""Heightfield generation from noise and the biome partition."""

import numpy as np
import structlog

from .biomes import BiomePartition
from .config import TerrainConfig
from .noise import NoiseSource
from .state import TerrainState
from .types import (
    BIOME_BASE_COLORS,
    BIOME_HEIGHT_MULTIPLIERS,
    Biome,
    biome_color_table,
    biome_lookup_table,
)

logger = structlog.get_logger()

_HEIGHT_TABLE = biome_lookup_table(BIOME_HEIGHT_MULTIPLIERS)
_COLOR_TABLE = biome_color_table(BIOME_BASE_COLORS)


def generate_heightfield(
    partition: BiomePartition,
    noise: NoiseSource,
    config: TerrainConfig,
) -> TerrainState:
    """Build vertex elevations and base colors for every grid point.

    Each vertex takes the biome of its nearest seed. Elevation is the noise
    value at (x, z) * frequency, scaled by the global scale, the biome's
    height multiplier and the perlin scale multiplier. Ocean elevation is
    additionally capped.

    Args:
        partition: Seeds of the current generation.
        noise: Noise source with values in [0, 1].
        config: Terrain configuration.

    Returns:
        Freshly allocated TerrainState.
    """
    width, height = config.width, config.height
    state = TerrainState(width, height, partition)

    biomes = partition.biome_grid(width, height)
    xs = np.arange(width + 1, dtype=np.float64) * config.noise_frequency
    zs = np.arange(height + 1, dtype=np.float64) * config.noise_frequency
    perlin = noise.sample_grid(xs, zs)

    elevation = (
        perlin
        * config.scale
        * _HEIGHT_TABLE[biomes]
        * config.perlin_scale_multiplier
    )
    ocean = biomes == Biome.OCEAN.value
    elevation[ocean] = np.minimum(elevation[ocean], config.ocean_height_cap)

    state.elevation[:, :] = elevation
    state.biomes[:] = biomes.ravel()
    state.colors[:] = _COLOR_TABLE[state.biomes]

    logger.debug(
        "heightfield_generated",
        width=width,
        height=height,
        min_elevation=float(elevation.min()),
        max_elevation=float(elevation.max()),
    )
    return state
