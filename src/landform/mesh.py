"""Mesh assembly: triangle indices, normals and the rendering sink protocol."""

from dataclasses import dataclass
from typing import Protocol

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class MeshData:
    """Arrays handed to a rendering sink."""

    vertices: NDArray[np.float64]
    triangles: NDArray[np.int32]
    colors: NDArray[np.float32]
    normals: NDArray[np.float64]


class MeshSink(Protocol):
    """Receiver of mesh updates, e.g. a renderer."""

    def update_geometry(self, mesh: MeshData) -> None:
        """Vertices (and possibly everything else) changed."""
        ...

    def update_colors(self, colors: NDArray[np.float32]) -> None:
        """Only vertex colors changed."""
        ...


def build_triangles(width: int, height: int) -> NDArray[np.int32]:
    """Triangulate a (width+1) x (height+1) vertex grid.

    Each cell (x, z) with corner ``v = z * (width + 1) + x`` yields the
    triangles (v, v+width+1, v+1) and (v+1, v+width+1, v+width+2).

    Returns:
        Flat index array of length width * height * 6.
    """
    row = width + 1
    zs, xs = np.meshgrid(
        np.arange(height, dtype=np.int32),
        np.arange(width, dtype=np.int32),
        indexing="ij",
    )
    vert = (zs * row + xs).ravel()

    triangles = np.empty((vert.shape[0], 6), dtype=np.int32)
    triangles[:, 0] = vert
    triangles[:, 1] = vert + row
    triangles[:, 2] = vert + 1
    triangles[:, 3] = vert + 1
    triangles[:, 4] = vert + row
    triangles[:, 5] = vert + row + 1
    return triangles.ravel()


class TriangleCache:
    """Keeps the index buffer until the grid dimensions change."""

    def __init__(self) -> None:
        self._dimensions: tuple[int, int] | None = None
        self._triangles: NDArray[np.int32] | None = None
        self.builds = 0

    def get(self, width: int, height: int) -> NDArray[np.int32]:
        if self._triangles is None or self._dimensions != (width, height):
            self._triangles = build_triangles(width, height)
            self._dimensions = (width, height)
            self.builds += 1
        return self._triangles


def compute_normals(
    vertices: NDArray[np.float64],
    triangles: NDArray[np.int32],
) -> NDArray[np.float64]:
    """Area-weighted unit vertex normals.

    Args:
        vertices: (N, 3) vertex positions.
        triangles: Flat triangle index array.

    Returns:
        (N, 3) normals; vertices touched by no triangle get a zero vector.
    """
    faces = triangles.reshape(-1, 3)
    v0 = vertices[faces[:, 0]]
    v1 = vertices[faces[:, 1]]
    v2 = vertices[faces[:, 2]]
    face_normals = np.cross(v1 - v0, v2 - v0)

    normals = np.zeros_like(vertices, dtype=np.float64)
    for corner in range(3):
        np.add.at(normals, faces[:, corner], face_normals)

    lengths = np.linalg.norm(normals, axis=1)
    nonzero = lengths > 0
    normals[nonzero] /= lengths[nonzero, None]
    return normals
