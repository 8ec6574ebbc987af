"""Post-erosion smoothing pass."""

import numpy as np
from numpy.typing import NDArray
from scipy import ndimage

from .state import TerrainState

# Self plus the four axis neighbors
_FIVE_POINT_KERNEL = np.array(
    [[0, 1, 0], [1, 1, 1], [0, 1, 0]], dtype=np.float64
)


def five_point_average(grid: NDArray[np.float64]) -> NDArray[np.float64]:
    """Mean of each vertex and its four axis neighbors.

    Border values use nearest-edge padding; callers only read the interior.
    """
    return ndimage.convolve(grid, _FIVE_POINT_KERNEL, mode="nearest") / 5.0


def smooth_terrain(state: TerrainState, blend: float = 0.5) -> NDArray[np.float64]:
    """Relax interior elevations toward their 5-point average, in place.

    Every interior vertex moves to ``lerp(old, average, blend)`` where the
    average is computed from a snapshot taken before the pass. The outer
    ring of vertices is left untouched.

    Args:
        state: Terrain to smooth.
        blend: Lerp factor toward the average.

    Returns:
        The pre-pass elevation snapshot.
    """
    grid = state.elevation
    snapshot = grid.copy()
    if grid.shape[0] < 3 or grid.shape[1] < 3:
        return snapshot

    average = five_point_average(snapshot)
    interior = (slice(1, -1), slice(1, -1))
    grid[interior] = snapshot[interior] + (average[interior] - snapshot[interior]) * blend
    return snapshot
