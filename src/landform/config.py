"""Terrain synthesis configuration models and TOML loading."""

import tomllib
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class BiomeWeights(BaseModel):
    """Relative share of seeds assigned to each biome."""

    model_config = ConfigDict(allow_inf_nan=False)

    desert: float = Field(default=1.0, ge=0.0, description="Desert weight")
    forest: float = Field(default=1.0, ge=0.0, description="Forest weight")
    mountain: float = Field(default=1.0, ge=0.0, description="Mountain weight")
    ocean: float = Field(default=1.0, ge=0.0, description="Ocean weight")

    def as_tuple(self) -> tuple[float, float, float, float]:
        """Weights in biome order (desert, forest, mountain, ocean)."""
        return (self.desert, self.forest, self.mountain, self.ocean)


class PartitionConfig(BaseModel):
    """Biome seed placement parameters."""

    total_seeds: int = Field(default=40, ge=1, description="Seeds per generation")
    exclusion_radius: float = Field(
        default=15.0, ge=0.0, description="Min distance between antagonistic seeds"
    )
    max_placement_attempts: int = Field(
        default=100, ge=1, description="Candidate positions tried per seed"
    )


class ErosionConfig(BaseModel):
    """Droplet hydraulic erosion parameters."""

    steps: int = Field(default=100, ge=0, description="Simulation steps per run")
    droplets_per_step: int = Field(default=150, ge=0, description="Droplets per step")
    max_droplet_steps: int = Field(default=30, ge=1, description="Max moves per droplet")
    inertia: float = Field(
        default=0.9, ge=0.0, le=1.0, description="Share of previous direction kept"
    )
    capacity_factor: float = Field(default=4.0, description="Sediment capacity scale")
    min_capacity: float = Field(default=0.01, description="Capacity floor")
    erode_rate: float = Field(default=0.001, description="Fraction of spare capacity eroded")
    deposit_rate: float = Field(default=0.001, description="Fraction of excess deposited")
    erosion_weight: float = Field(
        default=0.25, description="Weight of eroded amount on each 3x3 vertex"
    )
    deposit_radius: int = Field(default=2, ge=1, description="Deposit spread radius")
    deposit_weight: float = Field(
        default=0.2, description="Scale of deposited amount on each vertex"
    )
    gravity: float = Field(default=0.5, description="Height drop to speed factor")
    evaporation: float = Field(
        default=0.9, ge=0.0, le=1.0, description="Water retained per move"
    )
    min_water: float = Field(default=0.01, description="Droplet dies below this water")
    min_terrain_height: float = Field(
        default=0.5, description="Lowest elevation erosion can carve to"
    )
    max_terrain_height: float = Field(
        default=20.0, description="Highest elevation deposits can build to"
    )


class SmoothingConfig(BaseModel):
    """Post-erosion relaxation parameters."""

    blend: float = Field(
        default=0.5, ge=0.0, le=1.0, description="Lerp factor toward 5-point average"
    )


class SeasonConfig(BaseModel):
    """Seasonal color cycle parameters."""

    days_per_year: float = Field(default=365.0, gt=0.0, description="Cycle length")
    speed: float = Field(default=30.0, description="Days advanced per second")
    auto_advance: bool = Field(default=False, description="Advance on every tick")


class TerrainConfig(BaseModel):
    """Complete terrain synthesis configuration."""

    model_config = ConfigDict(allow_inf_nan=False)

    seed: int = Field(default=42, description="Random seed for reproducibility")
    width: int = Field(default=1000, ge=2, description="Grid width in cells")
    height: int = Field(default=1000, ge=2, description="Grid height in cells")

    scale: float = Field(default=10.0, description="Global elevation scale")
    perlin_scale_multiplier: float = Field(
        default=1.0, description="User multiplier on noise elevation"
    )
    noise_frequency: float = Field(
        default=0.1, gt=0.0, description="Grid to noise coordinate factor"
    )
    ocean_height_cap: float = Field(default=1.5, description="Max ocean elevation")

    weights: BiomeWeights = Field(default_factory=BiomeWeights)
    partition: PartitionConfig = Field(default_factory=PartitionConfig)
    erosion: ErosionConfig = Field(default_factory=ErosionConfig)
    smoothing: SmoothingConfig = Field(default_factory=SmoothingConfig)
    seasons: SeasonConfig = Field(default_factory=SeasonConfig)


def load_config(config_path: Path | str) -> TerrainConfig:
    """Read a terrain config from TOML.

    Tables map onto the nested models (``[weights]``, ``[erosion]``, ...);
    anything left out keeps its default.

    Raises:
        FileNotFoundError: If the file does not exist.
        tomllib.TOMLDecodeError: If the file is not valid TOML.
        pydantic.ValidationError: If a value is out of range or not finite.
    """
    with open(config_path, "rb") as f:
        return TerrainConfig.model_validate(tomllib.load(f))


def find_config(name: str) -> Path:
    """Resolve a config name or file path.

    An existing file path wins. Otherwise a bare name, with or without the
    ``.toml`` suffix, is looked up among the bundled configs.

    Raises:
        FileNotFoundError: If neither resolves to a file.
    """
    candidate = Path(name)
    if candidate.is_file():
        return candidate
    if candidate.parent != Path("."):
        raise FileNotFoundError(f"Config file not found: {name}")

    bundled = _configs_dir() / candidate.with_suffix(".toml").name
    if bundled.is_file():
        return bundled

    raise FileNotFoundError(
        f"No config named '{candidate.stem}'. Bundled: {', '.join(list_configs())}"
    )


def list_configs() -> list[str]:
    """Names of the bundled configs, sorted."""
    configs_dir = _configs_dir()
    if not configs_dir.is_dir():
        return []
    return sorted(p.stem for p in configs_dir.glob("*.toml"))


def _configs_dir() -> Path:
    # <root>/src/landform/config.py -> <root>/configs
    return Path(__file__).resolve().parents[2] / "configs"
