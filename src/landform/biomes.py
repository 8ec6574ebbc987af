"""Biome partition: weighted seed placement and nearest-seed lookup.

Seeds are placed per biome in a fixed order (desert, mountain, forest,
ocean). Desert, mountain and ocean candidates are rejected while they sit
within the exclusion radius of an already-placed antagonistic seed; after
the attempt budget is spent the last candidate is kept anyway.
"""

from dataclasses import dataclass, field

import numpy as np
import structlog
from numpy.typing import NDArray

from .config import BiomeWeights, PartitionConfig
from .types import ANTAGONISTIC_BIOMES, Biome, RandomSource, Seed

logger = structlog.get_logger()

# Order in which biomes receive their seeds
PLACEMENT_ORDER: tuple[Biome, ...] = (
    Biome.DESERT,
    Biome.MOUNTAIN,
    Biome.FOREST,
    Biome.OCEAN,
)

# Biomes whose candidates are checked against the exclusion radius
CONSTRAINED_BIOMES = frozenset({Biome.DESERT, Biome.MOUNTAIN, Biome.OCEAN})

# Upper bound on distance-matrix entries evaluated at once
_LOOKUP_CHUNK = 2_000_000


@dataclass(frozen=True)
class PlacementResult:
    """Outcome of placing a single seed."""

    seed: Seed
    attempts: int
    satisfied: bool


@dataclass
class BiomePartition:
    """Ordered seeds of one generation plus nearest-seed queries."""

    placements: list[PlacementResult] = field(default_factory=list)
    counts: dict[Biome, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._refresh_arrays()

    @property
    def seeds(self) -> list[Seed]:
        return [p.seed for p in self.placements]

    @property
    def unsatisfied(self) -> int:
        """Number of seeds accepted after exhausting their attempts."""
        return sum(1 for p in self.placements if not p.satisfied)

    def add(self, placement: PlacementResult) -> None:
        self.placements.append(placement)
        self._refresh_arrays()

    def _refresh_arrays(self) -> None:
        self._xs = np.array([p.seed.x for p in self.placements], dtype=np.float64)
        self._zs = np.array([p.seed.z for p in self.placements], dtype=np.float64)
        self._biomes = np.array(
            [p.seed.biome.value for p in self.placements], dtype=np.int8
        )

    def nearest_seed_index(self, x: float, z: float) -> int:
        """Index of the seed closest to (x, z); ties go to the lowest index."""
        return int(self.nearest_seed_indices(np.array([x]), np.array([z]))[0])

    def biome_at(self, x: float, z: float) -> Biome:
        return self.placements[self.nearest_seed_index(x, z)].seed.biome

    def nearest_seed_indices(
        self, xs: NDArray[np.float64], zs: NDArray[np.float64]
    ) -> NDArray[np.intp]:
        """Nearest seed index for each (xs[i], zs[i]) point.

        Squared distances are compared, which preserves both the ordering
        and the ties of true Euclidean distance. ``argmin`` returns the first
        minimum, so equidistant seeds resolve to the lowest index.

        Raises:
            ValueError: If the partition has no seeds.
        """
        if not self.placements:
            raise ValueError("Partition has no seeds")

        xs = np.asarray(xs, dtype=np.float64).ravel()
        zs = np.asarray(zs, dtype=np.float64).ravel()
        result = np.empty(xs.shape[0], dtype=np.intp)

        chunk = max(1, _LOOKUP_CHUNK // len(self.placements))
        for start in range(0, xs.shape[0], chunk):
            stop = start + chunk
            dx = xs[start:stop, None] - self._xs[None, :]
            dz = zs[start:stop, None] - self._zs[None, :]
            result[start:stop] = np.argmin(dx * dx + dz * dz, axis=1)

        return result

    def biomes_at(
        self, xs: NDArray[np.float64], zs: NDArray[np.float64]
    ) -> NDArray[np.int8]:
        """Biome value for each point, by nearest seed."""
        return self._biomes[self.nearest_seed_indices(xs, zs)]

    def biome_grid(self, width: int, height: int) -> NDArray[np.int8]:
        """Biome value of every vertex of a (width+1) x (height+1) grid.

        Returns:
            Array of shape (height + 1, width + 1), indexed [z, x].
        """
        zs, xs = np.meshgrid(
            np.arange(height + 1, dtype=np.float64),
            np.arange(width + 1, dtype=np.float64),
            indexing="ij",
        )
        return self.biomes_at(xs, zs).reshape(height + 1, width + 1)


def compute_seed_counts(
    weights: BiomeWeights,
    total: int = 40,
) -> dict[Biome, int]:
    """Split the seed budget between biomes in proportion to their weights.

    Desert, forest and mountain counts are rounded (half to even); ocean
    takes whatever remains so the counts always sum to ``total``.

    Args:
        weights: Biome weights, all non-negative.
        total: Number of seeds to distribute.

    Returns:
        Mapping of biome to seed count.
    """
    values = weights.as_tuple()
    peak = max(values)
    # Scaled by the largest weight so huge finite weights cannot overflow the sum
    if peak > 0:
        values = tuple(v / peak for v in values)
    weight_sum = sum(values)

    if weight_sum <= 0:
        logger.warning("biome_weights_all_zero", fallback="equal")
        values = (1.0, 1.0, 1.0, 1.0)
        weight_sum = 4.0

    shares = {b: total * (values[b.value] / weight_sum) for b in Biome}
    counts = {
        b: int(round(shares[b]))
        for b in (Biome.DESERT, Biome.FOREST, Biome.MOUNTAIN)
    }
    counts[Biome.OCEAN] = total - sum(counts.values())

    # Rounding up three shares can overshoot the budget when ocean's share is tiny
    if counts[Biome.OCEAN] < 0:
        logger.warning(
            "ocean_seed_count_clamped",
            ocean_count=counts[Biome.OCEAN],
            weights=weights.as_tuple(),
        )
        while counts[Biome.OCEAN] < 0:
            donor = max(
                (Biome.DESERT, Biome.FOREST, Biome.MOUNTAIN),
                key=lambda b: counts[b] - shares[b],
            )
            counts[donor] -= 1
            counts[Biome.OCEAN] += 1

    return {b: counts[b] for b in Biome}


def conflicts(biome: Biome, x: float, z: float, seed: Seed, radius: float) -> bool:
    """Whether a candidate at (x, z) is too close to an antagonistic seed."""
    if frozenset({biome, seed.biome}) not in ANTAGONISTIC_BIOMES:
        return False
    return seed.distance_to(x, z) < radius


def _try_candidate(
    biome: Biome,
    existing: list[Seed],
    width: int,
    height: int,
    rng: RandomSource,
    radius: float,
) -> tuple[Seed, bool]:
    """Draw one candidate position and check it against placed seeds.

    Returns:
        The candidate seed and whether it respects the exclusion radius.
    """
    x = int(rng.integers(0, width))
    z = int(rng.integers(0, height))
    candidate = Seed(x=x, z=z, biome=biome)

    if biome in CONSTRAINED_BIOMES:
        for seed in existing:
            if conflicts(biome, x, z, seed, radius):
                return candidate, False

    return candidate, True


def find_position(
    biome: Biome,
    existing: list[Seed],
    width: int,
    height: int,
    rng: RandomSource,
    radius: float = 15.0,
    max_attempts: int = 100,
) -> PlacementResult:
    """Find a position for a new seed of ``biome``.

    Draws uniformly random integer positions until one clears every
    antagonistic seed by ``radius``. If ``max_attempts`` candidates all
    conflict, the last one is accepted with ``satisfied=False``.

    Args:
        biome: Biome of the seed being placed.
        existing: Seeds placed so far.
        width: Grid width; x is drawn from [0, width).
        height: Grid height; z is drawn from [0, height).
        rng: Random source.
        radius: Exclusion radius between antagonistic biomes.
        max_attempts: Candidate budget.

    Returns:
        PlacementResult describing the accepted seed.
    """
    candidate, ok = _try_candidate(biome, existing, width, height, rng, radius)
    attempts = 1
    while not ok and attempts < max_attempts:
        candidate, ok = _try_candidate(biome, existing, width, height, rng, radius)
        attempts += 1

    if not ok:
        logger.debug(
            "seed_placement_exhausted",
            biome=biome.name,
            attempts=attempts,
            x=candidate.x,
            z=candidate.z,
        )
    return PlacementResult(seed=candidate, attempts=attempts, satisfied=ok)


def partition_biomes(
    weights: BiomeWeights,
    width: int,
    height: int,
    rng: RandomSource,
    config: PartitionConfig | None = None,
) -> BiomePartition:
    """Place all seeds for one generation.

    Args:
        weights: Biome weights.
        width: Grid width in cells.
        height: Grid height in cells.
        rng: Random source for candidate positions.
        config: Placement parameters.

    Returns:
        BiomePartition holding the ordered seeds.
    """
    config = config or PartitionConfig()
    counts = compute_seed_counts(weights, config.total_seeds)
    partition = BiomePartition(counts=counts)

    for biome in PLACEMENT_ORDER:
        for _ in range(counts[biome]):
            placement = find_position(
                biome,
                partition.seeds,
                width,
                height,
                rng,
                radius=config.exclusion_radius,
                max_attempts=config.max_placement_attempts,
            )
            partition.add(placement)

    logger.debug(
        "biomes_partitioned",
        counts={b.name: n for b, n in counts.items()},
        unsatisfied=partition.unsatisfied,
    )
    return partition
