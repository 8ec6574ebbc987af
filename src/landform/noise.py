"""Coherent noise sources for heightfield generation.

The heightfield only needs a continuous, deterministic 2D function with
values in [0, 1]. ``PerlinNoise`` provides one backed by OpenSimplex; tests
and hosts may supply any object satisfying ``NoiseSource``.
"""

from typing import Protocol

import numpy as np
from numpy.typing import NDArray
from opensimplex import OpenSimplex


class NoiseSource(Protocol):
    """2D coherent noise with values in [0, 1]."""

    def sample(self, x: float, z: float) -> float:
        """Noise value at a single point."""
        ...

    def sample_grid(
        self, xs: NDArray[np.float64], zs: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        """Noise values on the grid spanned by xs and zs.

        Returns:
            Array of shape (len(zs), len(xs)).
        """
        ...


class PerlinNoise:
    """Seeded OpenSimplex noise remapped from [-1, 1] to [0, 1]."""

    def __init__(self, seed: int = 0):
        self.seed = seed
        self._simplex = OpenSimplex(seed=seed)

    def sample(self, x: float, z: float) -> float:
        value = self._simplex.noise2(float(x), float(z))
        return float(_to_unit_range(np.float64(value)))

    def sample_grid(
        self, xs: NDArray[np.float64], zs: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        raw = self._simplex.noise2array(
            np.asarray(xs, dtype=np.float64), np.asarray(zs, dtype=np.float64)
        )
        return _to_unit_range(raw)

    def __repr__(self) -> str:
        return f"PerlinNoise(seed={self.seed})"


def _to_unit_range(values: NDArray[np.float64]) -> NDArray[np.float64]:
    """Map noise from [-1, 1] into [0, 1], clipping overshoot."""
    return np.clip((values + 1.0) * 0.5, 0.0, 1.0)
