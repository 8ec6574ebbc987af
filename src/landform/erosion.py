"""Particle hydraulic erosion.

Each droplet starts at a random interior vertex, follows the local slope
with inertia, erodes where it has spare sediment capacity and deposits
where it carries too much. Droplets run sequentially and write straight
into the shared elevation grid, so the order droplets run in affects the
result.

A run is paced in steps of ``droplets_per_step`` droplets. ``ErosionRun``
exposes these steps as a lazy iterator so a host can pull one per frame,
or drain the run in one call.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator

import numpy as np
import structlog
from numpy.typing import NDArray

from .config import ErosionConfig
from .exceptions import ErosionCancelledError
from .state import TerrainState
from .types import RandomSource

logger = structlog.get_logger()

# Gradient magnitudes below this normalize to a zero vector
_NORMALIZE_EPSILON = 1e-5


class DropletEnd(str, Enum):
    """Why a droplet stopped moving."""

    LEFT_INTERIOR = "left_interior"
    NO_FLOW = "no_flow"
    EVAPORATED = "evaporated"
    MAX_STEPS = "max_steps"


@dataclass
class DropletTrace:
    """Summary of one droplet's path."""

    steps: int = 0
    eroded: float = 0.0
    deposited: float = 0.0
    end: DropletEnd = DropletEnd.MAX_STEPS


@dataclass
class ErosionStepResult:
    """Result of one simulation step."""

    step: int
    droplets: int
    eroded: float = 0.0
    deposited: float = 0.0
    moves: int = 0
    endings: dict[DropletEnd, int] = field(default_factory=dict)


def _neighborhood(
    grid: NDArray[np.float64], cx: int, cz: int, radius: int
) -> Iterator[tuple[int, int, int, int]]:
    """In-grid (x, z, dx, dz) of the square of ``radius`` around (cx, cz)."""
    rows, cols = grid.shape
    for dz in range(-radius, radius + 1):
        z = cz + dz
        if z < 0 or z >= rows:
            continue
        for dx in range(-radius, radius + 1):
            x = cx + dx
            if 0 <= x < cols:
                yield x, z, dx, dz


def bilinear_height(grid: NDArray[np.float64], fx: float, fz: float) -> float:
    """Interpolate elevation at a continuous grid position.

    Corner coordinates are clamped into the grid, so positions on or past
    the last row or column read the edge vertices.
    """
    rows, cols = grid.shape
    x0 = min(max(math.floor(fx), 0), cols - 1)
    z0 = min(max(math.floor(fz), 0), rows - 1)
    x1 = min(x0 + 1, cols - 1)
    z1 = min(z0 + 1, rows - 1)
    tx = min(max(fx - x0, 0.0), 1.0)
    tz = min(max(fz - z0, 0.0), 1.0)

    h00 = grid[z0, x0]
    h10 = grid[z0, x1]
    h01 = grid[z1, x0]
    h11 = grid[z1, x1]

    top = h00 + (h10 - h00) * tx
    bottom = h01 + (h11 - h01) * tx
    return float(top + (bottom - top) * tz)


def deposit_sediment(
    grid: NDArray[np.float64],
    fx: float,
    fz: float,
    amount: float,
    radius: int = 2,
    weight: float = 0.2,
    max_height: float = 20.0,
) -> float:
    """Spread sediment around a position with linear distance falloff.

    Vertices within ``radius`` of the cell containing (fx, fz) rise by
    ``amount * (1 - dist / radius) * weight``, capped at ``max_height``.

    Returns:
        Total elevation actually added.
    """
    added = 0.0
    for x, z, dx, dz in _neighborhood(grid, math.floor(fx), math.floor(fz), radius):
        dist = math.sqrt(dx * dx + dz * dz)
        if dist > radius:
            continue
        falloff = 1.0 - dist / radius

        before = grid[z, x]
        after = min(max_height, before + amount * falloff * weight)
        grid[z, x] = after
        added += after - before

    return added


def erode_around(
    grid: NDArray[np.float64],
    cx: int,
    cz: int,
    amount: float,
    weight: float = 0.25,
    min_height: float = 0.5,
) -> float:
    """Lower the 3x3 neighborhood of (cx, cz), floored at ``min_height``.

    Returns:
        Net elevation removed. Vertices already below the floor are raised
        to it, which counts as negative removal.
    """
    removed = 0.0
    for x, z, _, _ in _neighborhood(grid, cx, cz, 1):
        before = grid[z, x]
        after = max(min_height, before - amount * weight)
        grid[z, x] = after
        removed += before - after

    return removed


def simulate_droplet(
    grid: NDArray[np.float64],
    start_x: int,
    start_z: int,
    config: ErosionConfig,
) -> DropletTrace:
    """Trace one droplet across the elevation grid, mutating it in place.

    Args:
        grid: (height+1, width+1) elevation grid, indexed [z, x].
        start_x: Starting grid x.
        start_z: Starting grid z.
        config: Erosion parameters.

    Returns:
        DropletTrace describing the path.
    """
    rows, cols = grid.shape
    width, height = cols - 1, rows - 1

    pos_x, pos_z = float(start_x), float(start_z)
    dir_x = dir_z = 0.0
    speed = 1.0
    water = 1.0
    sediment = 0.0
    trace = DropletTrace()

    for _ in range(config.max_droplet_steps):
        map_x = int(pos_x)
        map_z = int(pos_z)

        if map_x < 1 or map_x >= width - 1 or map_z < 1 or map_z >= height - 1:
            trace.end = DropletEnd.LEFT_INTERIOR
            break

        current_height = grid[map_z, map_x]
        grad_x = (grid[map_z, map_x + 1] - grid[map_z, map_x - 1]) * 0.5
        grad_z = (grid[map_z + 1, map_x] - grid[map_z - 1, map_x]) * 0.5

        grad_len = math.hypot(grad_x, grad_z)
        if grad_len > _NORMALIZE_EPSILON:
            norm_x, norm_z = grad_x / grad_len, grad_z / grad_len
        else:
            norm_x = norm_z = 0.0

        pull = 1.0 - config.inertia
        dir_x = dir_x * config.inertia - norm_x * pull
        dir_z = dir_z * config.inertia - norm_z * pull
        dir_len = math.hypot(dir_x, dir_z)
        if dir_len == 0:
            trace.end = DropletEnd.NO_FLOW
            break

        dir_x /= dir_len
        dir_z /= dir_len
        pos_x += dir_x
        pos_z += dir_z
        trace.steps += 1

        new_height = bilinear_height(grid, pos_x, pos_z)
        delta_height = current_height - new_height

        capacity = max(
            -delta_height * speed * water * config.capacity_factor,
            config.min_capacity,
        )

        if sediment > capacity or delta_height > 0:
            if delta_height > 0:
                amount = min(delta_height, sediment)
            else:
                amount = (sediment - capacity) * config.deposit_rate
            sediment -= amount
            trace.deposited += deposit_sediment(
                grid,
                pos_x,
                pos_z,
                amount,
                radius=config.deposit_radius,
                weight=config.deposit_weight,
                max_height=config.max_terrain_height,
            )
        else:
            amount = (capacity - sediment) * config.erode_rate
            trace.eroded += erode_around(
                grid,
                map_x,
                map_z,
                amount,
                weight=config.erosion_weight,
                min_height=config.min_terrain_height,
            )
            sediment += amount

        # A steep climb can drive the radicand negative; the droplet stalls
        speed = math.sqrt(max(0.0, speed * speed + delta_height * config.gravity))
        water *= config.evaporation

        if water < config.min_water:
            trace.end = DropletEnd.EVAPORATED
            break

    return trace


StepCallback = Callable[[ErosionStepResult], None]
CompleteCallback = Callable[["ErosionRun"], None]


class ErosionRun:
    """A finite, lazily stepped erosion run over one terrain state.

    Usage:
        run = ErosionRun(state, rng, config)

        # One step per host frame:
        result = run.step()

        # Or everything at once:
        run.drain()

    ``on_step`` fires after every step, ``on_complete`` once after the
    final one, receiving the run so it can act on the run's own state.
    """

    def __init__(
        self,
        state: TerrainState,
        rng: RandomSource,
        config: ErosionConfig | None = None,
        on_step: StepCallback | None = None,
        on_complete: CompleteCallback | None = None,
    ):
        self.state = state
        self.rng = rng
        self.config = config or ErosionConfig()
        self.on_step = on_step
        self.on_complete = on_complete

        self._steps_completed = 0
        self._cancelled = False
        self._completed = False

    @property
    def total_steps(self) -> int:
        return self.config.steps

    @property
    def steps_completed(self) -> int:
        return self._steps_completed

    @property
    def is_finished(self) -> bool:
        return self._steps_completed >= self.config.steps

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def is_completed(self) -> bool:
        """Whether the final step ran and ``on_complete`` fired."""
        return self._completed

    def cancel(self) -> None:
        """Stop the run; remaining steps will not execute."""
        if not self._cancelled and not self._completed:
            logger.info(
                "erosion_cancelled",
                steps_completed=self._steps_completed,
                total_steps=self.config.steps,
            )
        self._cancelled = True

    def step(self) -> ErosionStepResult | None:
        """Run the next step.

        Returns:
            The step result, or None if the run already finished.

        Raises:
            ErosionCancelledError: If the run was cancelled.
        """
        if self._cancelled:
            raise ErosionCancelledError("Erosion run was cancelled")
        if self.is_finished:
            self._finish()
            return None

        grid = self.state.elevation
        result = ErosionStepResult(
            step=self._steps_completed, droplets=self.config.droplets_per_step
        )
        # Droplets start in [1, n-1); tiny grids have no interior to start in
        high_x = max(2, self.state.width - 1)
        high_z = max(2, self.state.height - 1)

        for _ in range(self.config.droplets_per_step):
            start_x = int(self.rng.integers(1, high_x))
            start_z = int(self.rng.integers(1, high_z))
            trace = simulate_droplet(grid, start_x, start_z, self.config)
            result.eroded += trace.eroded
            result.deposited += trace.deposited
            result.moves += trace.steps
            result.endings[trace.end] = result.endings.get(trace.end, 0) + 1

        self._steps_completed += 1
        logger.debug(
            "erosion_step",
            step=result.step,
            eroded=round(result.eroded, 6),
            deposited=round(result.deposited, 6),
            moves=result.moves,
        )

        if self.on_step is not None:
            self.on_step(result)
        if self.is_finished:
            self._finish()
        return result

    def __iter__(self) -> Iterator[ErosionStepResult]:
        """Yield the remaining steps one at a time."""
        while not self.is_finished:
            result = self.step()
            if result is None:
                return
            yield result
        self._finish()

    def drain(self) -> list[ErosionStepResult]:
        """Run all remaining steps synchronously."""
        return list(self)

    def _finish(self) -> None:
        if self._completed or self._cancelled:
            return
        self._completed = True
        logger.info("erosion_complete", steps=self._steps_completed)
        if self.on_complete is not None:
            self.on_complete(self)
