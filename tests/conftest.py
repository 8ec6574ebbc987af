"""Shared test fixtures for terrain tests."""

import numpy as np
import pytest
from numpy.typing import NDArray

from landform.biomes import BiomePartition, PlacementResult
from landform.config import ErosionConfig, TerrainConfig
from landform.mesh import MeshData
from landform.state import TerrainState
from landform.types import Biome, Seed


class ConstantNoise:
    """Noise source returning the same value everywhere."""

    def __init__(self, value: float = 0.5):
        self.value = value

    def sample(self, x: float, z: float) -> float:
        return self.value

    def sample_grid(
        self, xs: NDArray[np.float64], zs: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        return np.full((len(zs), len(xs)), self.value, dtype=np.float64)


class FixedRng:
    """Random source that always draws the same value, clamped into range."""

    def __init__(self, value: int = 0, uniform_value: float = 0.5):
        self.value = value
        self.uniform_value = uniform_value
        self.calls = 0

    def integers(self, low: int, high: int) -> int:
        self.calls += 1
        return min(max(self.value, low), high - 1)

    def uniform(self, low: float, high: float) -> float:
        return low + (high - low) * self.uniform_value


class RecordingSink:
    """Mesh sink that records every update."""

    def __init__(self) -> None:
        self.geometry_updates: list[MeshData] = []
        self.color_updates: list[NDArray[np.float32]] = []

    def update_geometry(self, mesh: MeshData) -> None:
        self.geometry_updates.append(mesh)

    def update_colors(self, colors: NDArray[np.float32]) -> None:
        self.color_updates.append(colors.copy())


def make_partition(*seeds: tuple[float, float, Biome]) -> BiomePartition:
    """Partition with the given (x, z, biome) seeds, all satisfied."""
    return BiomePartition(
        placements=[
            PlacementResult(seed=Seed(x=x, z=z, biome=b), attempts=1, satisfied=True)
            for x, z, b in seeds
        ]
    )


def make_state(elevation: NDArray[np.float64]) -> TerrainState:
    """Terrain state with the given (rows, cols) elevation grid."""
    rows, cols = elevation.shape
    state = TerrainState(cols - 1, rows - 1, make_partition((0, 0, Biome.FOREST)))
    state.elevation[:, :] = elevation
    return state


@pytest.fixture
def small_config() -> TerrainConfig:
    """16x16 grid with a short erosion run."""
    return TerrainConfig(
        seed=7,
        width=16,
        height=16,
        erosion=ErosionConfig(steps=3, droplets_per_step=20),
    )


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def quadrant_partition() -> BiomePartition:
    """One seed per biome near each corner of a 20x20 grid."""
    return make_partition(
        (2, 2, Biome.DESERT),
        (18, 2, Biome.FOREST),
        (2, 18, Biome.MOUNTAIN),
        (18, 18, Biome.OCEAN),
    )
