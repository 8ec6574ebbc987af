"""Procedural terrain synthesis.

This package partitions a grid into biome regions around weighted random
seeds, builds a noise heightfield and vertex colors per biome, carves it
with particle hydraulic erosion, and recolors it through the seasons.
"""

from .biomes import BiomePartition, compute_seed_counts, partition_biomes
from .config import TerrainConfig, find_config, load_config
from .erosion import ErosionRun, ErosionStepResult, simulate_droplet
from .exceptions import (
    ErosionCancelledError,
    InvalidParameterError,
    TerrainError,
    TerrainNotGeneratedError,
    UnknownParameterError,
)
from .heightfield import generate_heightfield
from .logging import configure_logging
from .mesh import MeshData, MeshSink, build_triangles, compute_normals
from .noise import NoiseSource, PerlinNoise
from .seasons import apply_seasonal_colors, season_label
from .smoothing import smooth_terrain
from .state import TerrainState
from .synthesizer import TerrainSynthesizer
from .types import Biome, Season, Seed

__all__ = [
    # Types
    "Biome",
    "Season",
    "Seed",
    # Config
    "TerrainConfig",
    "find_config",
    "load_config",
    # Pipeline
    "BiomePartition",
    "compute_seed_counts",
    "partition_biomes",
    "generate_heightfield",
    "TerrainState",
    "build_triangles",
    "compute_normals",
    "MeshData",
    "MeshSink",
    "ErosionRun",
    "ErosionStepResult",
    "simulate_droplet",
    "smooth_terrain",
    "apply_seasonal_colors",
    "season_label",
    "NoiseSource",
    "PerlinNoise",
    "TerrainSynthesizer",
    "configure_logging",
    # Exceptions
    "TerrainError",
    "InvalidParameterError",
    "UnknownParameterError",
    "ErosionCancelledError",
    "TerrainNotGeneratedError",
]
