"""Core types for terrain synthesis."""

from enum import Enum, IntEnum
from typing import Protocol

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel

# RGBA colors, components in [0, 1]
Color = tuple[float, float, float, float]

WHITE: Color = (1.0, 1.0, 1.0, 1.0)
YELLOW: Color = (1.0, 0.92, 0.016, 1.0)
GREEN: Color = (0.0, 1.0, 0.0, 1.0)
GRAY: Color = (0.5, 0.5, 0.5, 1.0)
BLUE: Color = (0.0, 0.0, 1.0, 1.0)
PINK: Color = (1.0, 0.71, 0.76, 1.0)
ORANGE: Color = (1.0, 0.65, 0.0, 1.0)
OCEAN_BLUE: Color = (0.0, 0.4, 1.0, 1.0)
ICE_BLUE: Color = (0.7, 0.9, 1.0, 1.0)


class Biome(IntEnum):
    """Terrain biomes. Values match the biome weight order."""

    DESERT = 0
    FOREST = 1
    MOUNTAIN = 2
    OCEAN = 3


# Elevation multiplier applied to the base noise value
BIOME_HEIGHT_MULTIPLIERS: dict[Biome, float] = {
    Biome.DESERT: 0.3,
    Biome.FOREST: 0.6,
    Biome.MOUNTAIN: 1.5,
    Biome.OCEAN: 0.1,
}

# Color assigned when the heightfield is first generated
BIOME_BASE_COLORS: dict[Biome, Color] = {
    Biome.DESERT: YELLOW,
    Biome.FOREST: GREEN,
    Biome.MOUNTAIN: GRAY,
    Biome.OCEAN: BLUE,
}

# Pairs of biomes whose seeds must keep their distance
ANTAGONISTIC_BIOMES: frozenset[frozenset[Biome]] = frozenset({
    frozenset({Biome.DESERT, Biome.MOUNTAIN}),
    frozenset({Biome.DESERT, Biome.OCEAN}),
})


def biome_lookup_table(values: dict[Biome, float]) -> NDArray[np.float64]:
    """Build an array indexable by biome value."""
    return np.array([values[b] for b in Biome], dtype=np.float64)


def biome_color_table(colors: dict[Biome, Color]) -> NDArray[np.float32]:
    """Build an (n_biomes, 4) color array indexable by biome value."""
    return np.array([colors[b] for b in Biome], dtype=np.float32)


class Season(str, Enum):
    """Display seasons derived from the normalized season progress."""

    SPRING = "Spring"
    SUMMER = "Summer"
    AUTUMN = "Autumn"
    WINTER = "Winter"


class Seed(BaseModel, frozen=True):
    """A Voronoi center: grid position plus the biome it spreads."""

    x: float
    z: float
    biome: Biome

    def distance_to(self, x: float, z: float) -> float:
        """Euclidean distance from this seed to a grid point."""
        return float(np.hypot(self.x - x, self.z - z))

    def __str__(self) -> str:
        return f"{self.biome.name}({self.x:g}, {self.z:g})"


class RandomSource(Protocol):
    """Uniform random source. ``numpy.random.Generator`` satisfies it."""

    def integers(self, low: int, high: int) -> int:
        """Integer in [low, high)."""
        ...

    def uniform(self, low: float, high: float) -> float:
        """Float in [low, high)."""
        ...
