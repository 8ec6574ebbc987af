"""Seasonal vertex coloring.

Season progress runs over [0, days_per_year) and is normalized to
t in [0, 1). Colors depend only on biome and t, never on elevation.
"""

import numpy as np
import structlog

from .state import TerrainState
from .types import (
    GRAY,
    GREEN,
    ICE_BLUE,
    OCEAN_BLUE,
    ORANGE,
    PINK,
    WHITE,
    YELLOW,
    Biome,
    Color,
    Season,
)

logger = structlog.get_logger()

DAYS_PER_YEAR = 365.0

# Forest cycle: winter gray -> spring pink -> summer green -> autumn orange -> gray
_FOREST_KEYS: tuple[Color, ...] = (GRAY, PINK, GREEN, ORANGE, GRAY)


def lerp_color(a: Color, b: Color, t: float) -> Color:
    """Componentwise linear interpolation with t clamped to [0, 1]."""
    t = min(max(t, 0.0), 1.0)
    return tuple(ca + (cb - ca) * t for ca, cb in zip(a, b))  # type: ignore[return-value]


def wrap_progress(progress: float, days_per_year: float = DAYS_PER_YEAR) -> float:
    """Wrap season progress into [0, days_per_year)."""
    wrapped = progress % days_per_year
    # Float modulo can land exactly on the upper bound for tiny negatives
    return 0.0 if wrapped >= days_per_year else wrapped


def season_label(t: float) -> Season:
    """Display season for normalized progress t."""
    if t < 0.25:
        return Season.SPRING
    if t < 0.5:
        return Season.SUMMER
    if t < 0.75:
        return Season.AUTUMN
    return Season.WINTER


def season_for_progress(progress: float, days_per_year: float = DAYS_PER_YEAR) -> Season:
    return season_label(progress / days_per_year)


def desert_color(t: float) -> Color:
    return YELLOW


def forest_color(t: float) -> Color:
    """Four-key gradient, one ramp per quarter of the year."""
    quarter = min(int(t * 4.0), 3) if t >= 0 else 0
    return lerp_color(
        _FOREST_KEYS[quarter], _FOREST_KEYS[quarter + 1], (t - quarter * 0.25) * 4.0
    )


def mountain_color(t: float) -> Color:
    """Snow melts to green until 0.75, then snows back to white."""
    if t < 0.75:
        return lerp_color(WHITE, GREEN, t * (4.0 / 3.0))
    return lerp_color(GREEN, WHITE, (t - 0.75) * 4.0)


def ocean_color(t: float) -> Color:
    """Open water until 0.75, then a freeze toward ice."""
    if t < 0.75:
        return OCEAN_BLUE
    return lerp_color(OCEAN_BLUE, ICE_BLUE, (t - 0.75) * 4.0)


_SEASON_COLOR_FUNCTIONS = {
    Biome.DESERT: desert_color,
    Biome.FOREST: forest_color,
    Biome.MOUNTAIN: mountain_color,
    Biome.OCEAN: ocean_color,
}


def biome_season_color(biome: Biome, t: float) -> Color:
    """Color of a biome at normalized progress t, wrapped onto [0, 1)."""
    return _SEASON_COLOR_FUNCTIONS[biome](t % 1.0)


def apply_seasonal_colors(
    state: TerrainState,
    progress: float,
    days_per_year: float = DAYS_PER_YEAR,
) -> Season:
    """Recolor every vertex for the given season progress.

    Each vertex's biome is looked up again from its grid position through
    the nearest-seed query; only the color array is written.

    Args:
        state: Terrain to recolor.
        progress: Season progress in [0, days_per_year).
        days_per_year: Length of the season cycle.

    Returns:
        The display season for ``progress``.
    """
    t = progress / days_per_year
    xs, zs = state.grid_coordinates()
    biomes = state.partition.biomes_at(xs, zs)

    palette = np.array(
        [biome_season_color(b, t) for b in Biome], dtype=np.float32
    )
    state.colors[:] = palette[biomes]

    season = season_label(t)
    logger.debug("seasonal_colors_applied", progress=round(progress, 3), season=season.value)
    return season
