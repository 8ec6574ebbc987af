"""Terrain state: the vertex, color and biome arrays of one generation."""

import numpy as np
from numpy.typing import NDArray

from .biomes import BiomePartition


class TerrainState:
    """Owned grid data for one generated terrain.

    Vertices live in a (height+1, width+1, 3) array so that both the flat
    row-major vertex list and the 2D elevation grid are views of the same
    memory. Components that mutate terrain take the state explicitly.
    """

    def __init__(
        self,
        width: int,
        height: int,
        partition: BiomePartition,
        grid: NDArray[np.float64] | None = None,
        colors: NDArray[np.float32] | None = None,
        biomes: NDArray[np.int8] | None = None,
    ):
        self.width = width
        self.height = height
        self.partition = partition

        shape = (height + 1, width + 1)
        if grid is None:
            grid = np.zeros((*shape, 3), dtype=np.float64)
            zs, xs = np.meshgrid(
                np.arange(height + 1, dtype=np.float64),
                np.arange(width + 1, dtype=np.float64),
                indexing="ij",
            )
            grid[:, :, 0] = xs - width / 2.0
            grid[:, :, 2] = zs - height / 2.0
        if grid.shape != (*shape, 3):
            raise ValueError(f"Vertex grid shape {grid.shape} != {(*shape, 3)}")

        self._grid = np.ascontiguousarray(grid, dtype=np.float64)
        self.colors = (
            colors
            if colors is not None
            else np.ones((self.vertex_count, 4), dtype=np.float32)
        )
        self.biomes = (
            biomes if biomes is not None else np.zeros(self.vertex_count, dtype=np.int8)
        )

    @property
    def vertex_count(self) -> int:
        return (self.width + 1) * (self.height + 1)

    @property
    def vertices(self) -> NDArray[np.float64]:
        """Flat (N, 3) vertex positions, row-major over z then x."""
        return self._grid.reshape(-1, 3)

    @property
    def elevation(self) -> NDArray[np.float64]:
        """Writable (height+1, width+1) view of vertex y, indexed [z, x]."""
        return self._grid[:, :, 1]

    def index(self, x: int, z: int) -> int:
        """Flat vertex index of grid point (x, z)."""
        return z * (self.width + 1) + x

    def grid_coordinates(self) -> tuple[NDArray[np.int64], NDArray[np.int64]]:
        """Grid (x, z) of every vertex, recovered from its position."""
        vertices = self.vertices
        xs = (vertices[:, 0] + self.width / 2.0).astype(np.int64)
        zs = (vertices[:, 2] + self.height / 2.0).astype(np.int64)
        return xs, zs

    def copy(self) -> "TerrainState":
        return TerrainState(
            self.width,
            self.height,
            self.partition,
            grid=self._grid.copy(),
            colors=self.colors.copy(),
            biomes=self.biomes.copy(),
        )

    def __repr__(self) -> str:
        return (
            f"TerrainState(width={self.width}, height={self.height}, "
            f"seeds={len(self.partition.placements)})"
        )
