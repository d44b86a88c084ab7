"""
Map parameters.

A `MapParameters` instance is built once by the caller and never mutated.
Semantic validation (dimensions, seed range, wrap parity) happens in
`MapParameters.check()`, which the generator calls before doing any work.
"""

from enum import Enum
from typing import NamedTuple, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..core.errors import ConfigurationError
from ..core.hex_grid import Orientation, WrapMode

MAX_SEED = 2**64 - 1


class SeaLevel(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    RANDOM = "random"


class WorldAge(str, Enum):
    OLD = "old"
    NORMAL = "normal"
    YOUNG = "young"


class Temperature(str, Enum):
    COOL = "cool"
    NORMAL = "normal"
    HOT = "hot"


class Rainfall(str, Enum):
    ARID = "arid"
    NORMAL = "normal"
    WET = "wet"


class ResourceSetting(str, Enum):
    SPARSE = "sparse"
    STANDARD = "standard"
    ABUNDANT = "abundant"


class RegionDivideMethod(str, Enum):
    """How civilizations are spread over the landmasses."""

    PANGAEA = "pangaea"  # everyone on the biggest landmass
    CONTINENT = "continent"  # civs allocated to landmasses by value
    WHOLE_MAP = "whole_map"  # one partition over all habitable land


class WorldSize(str, Enum):
    DUEL = "duel"
    TINY = "tiny"
    SMALL = "small"
    STANDARD = "standard"
    LARGE = "large"
    HUGE = "huge"


class WorldSizePreset(NamedTuple):
    width: int
    height: int
    grain: int
    num_plates: int
    continent_plates: int
    natural_wonders: int
    city_states: int
    disabled_luxury_share: float  # of the luxuries no region or city state took


WORLD_SIZE_PRESETS = {
    WorldSize.DUEL: WorldSizePreset(40, 24, 3, 6, 4, 2, 4, 0.55),
    WorldSize.TINY: WorldSizePreset(56, 36, 3, 9, 8, 3, 8, 0.40),
    WorldSize.SMALL: WorldSizePreset(66, 42, 4, 12, 16, 4, 12, 0.30),
    WorldSize.STANDARD: WorldSizePreset(80, 52, 4, 18, 20, 5, 16, 0.20),
    WorldSize.LARGE: WorldSizePreset(104, 64, 5, 24, 24, 6, 20, 0.10),
    WorldSize.HUGE: WorldSizePreset(128, 80, 5, 30, 32, 7, 24, 0.05),
}

# Water percentage per sea level, indexed low/normal/high
WATER_PERCENT = {
    "fractal": (65, 72, 78),
    "pangaea": (71, 78, 84),
}

# Mountain/hill threshold shift per world age
WORLD_AGE_ADJUSTMENT = {
    WorldAge.OLD: 2,
    WorldAge.NORMAL: 3,
    WorldAge.YOUNG: 5,
}

RESOURCE_DENSITY = {
    ResourceSetting.SPARSE: 0.06,
    ResourceSetting.STANDARD: 0.10,
    ResourceSetting.ABUNDANT: 0.14,
}


class MapParameters(BaseModel):
    """High-level knobs a map is generated from."""

    model_config = ConfigDict(frozen=True)

    # Grid
    width: int = Field(default=80, description="Map width in tiles")
    height: int = Field(default=52, description="Map height in tiles")
    orientation: Orientation = Field(
        default=Orientation.FLAT, description="Flat-top or pointy-top hexes"
    )
    wrap: WrapMode = Field(default=WrapMode.HORIZONTAL, description="Wrapped axes")

    # Generation
    map_type: str = Field(default="fractal", description="Map archetype")
    seed: int = Field(default=0, description="Unsigned 64-bit random seed")
    land_percent: Optional[float] = Field(
        default=None,
        description="Target land percentage; derived from sea level when unset",
    )
    sea_level: SeaLevel = Field(default=SeaLevel.NORMAL, description="Sea level")
    world_age: WorldAge = Field(
        default=WorldAge.NORMAL, description="Younger worlds have more mountains"
    )
    temperature: Temperature = Field(
        default=Temperature.NORMAL, description="Global temperature shift"
    )
    rainfall: Rainfall = Field(default=Rainfall.NORMAL, description="Global rainfall")

    # Civilizations
    civilization_count: int = Field(default=4, description="Number of start positions")
    min_start_distance: int = Field(
        default=6, description="Minimum hex distance between start positions"
    )
    region_divide_method: RegionDivideMethod = Field(
        default=RegionDivideMethod.CONTINENT,
        description="How civilizations are spread over landmasses",
    )
    city_state_count: Optional[int] = Field(
        default=None, description="City states to place; derived from world size when unset"
    )

    # Placement
    natural_wonder_count: Optional[int] = Field(
        default=None, description="Natural wonders to place; derived from world size when unset"
    )
    resource_setting: ResourceSetting = Field(
        default=ResourceSetting.STANDARD, description="Resource abundance"
    )

    # Water and rivers
    lake_max_area_size: int = Field(
        default=9, description="Enclosed water bodies up to this size become lakes"
    )
    coast_expand_chance: Tuple[float, ...] = Field(
        default=(0.25, 0.25), description="Chance per pass to grow coast into ocean"
    )
    river_source_range: int = Field(
        default=4, description="Minimum distance from a river source to fresh water"
    )
    sea_water_range: int = Field(
        default=3, description="Minimum distance from a river source to the sea"
    )
    max_river_length: int = Field(
        default=40, description="Steps after which a river walk is abandoned"
    )
    tiles_per_river_edge: int = Field(
        default=12, description="Land tiles per river edge before a landmass is saturated"
    )

    @property
    def world_size(self) -> WorldSize:
        """Largest preset whose area fits the map."""
        area = self.width * self.height
        size = WorldSize.DUEL
        for candidate, preset in WORLD_SIZE_PRESETS.items():
            if preset.width * preset.height <= area:
                size = candidate
        return size

    @property
    def preset(self) -> WorldSizePreset:
        return WORLD_SIZE_PRESETS[self.world_size]

    @property
    def resource_density(self) -> float:
        return RESOURCE_DENSITY[self.resource_setting]

    @property
    def world_age_adjustment(self) -> int:
        return WORLD_AGE_ADJUSTMENT[self.world_age]

    def default_land_percent(self, sea_level: SeaLevel) -> float:
        """Land percentage implied by a concrete (non-random) sea level."""
        table = WATER_PERCENT.get(self.map_type, WATER_PERCENT["fractal"])
        index = [SeaLevel.LOW, SeaLevel.NORMAL, SeaLevel.HIGH].index(sea_level)
        return 100.0 - table[index]

    def check(self, max_map_size: Optional[int] = None) -> None:
        """Raise ConfigurationError for parameters generation cannot honor."""
        if self.width <= 0 or self.height <= 0:
            raise ConfigurationError(
                f"Map dimensions must be positive, got {self.width}x{self.height}"
            )
        if max_map_size is not None and max(self.width, self.height) > max_map_size:
            raise ConfigurationError(
                f"Map dimension exceeds the limit of {max_map_size} tiles"
            )

        wrap_x = self.wrap in (WrapMode.HORIZONTAL, WrapMode.BOTH)
        wrap_y = self.wrap is WrapMode.BOTH
        if wrap_x and self.width < 3 or wrap_y and self.height < 3:
            raise ConfigurationError("A wrapped axis needs at least 3 tiles")
        if wrap_x and self.orientation is Orientation.FLAT and self.width % 2:
            raise ConfigurationError(
                "Horizontal wrap on a flat-top grid requires an even width"
            )
        if wrap_y and self.orientation is Orientation.POINTY and self.height % 2:
            raise ConfigurationError(
                "Vertical wrap on a pointy-top grid requires an even height"
            )

        if not 0 <= self.seed <= MAX_SEED:
            raise ConfigurationError(f"Seed must fit in 64 unsigned bits, got {self.seed}")
        if self.land_percent is not None and not 0 < self.land_percent < 100:
            raise ConfigurationError(
                f"Land percentage must be between 0 and 100, got {self.land_percent}"
            )
        if self.civilization_count < 0:
            raise ConfigurationError("Civilization count cannot be negative")
        if self.min_start_distance < 1:
            raise ConfigurationError("Minimum start distance must be at least 1")
        if self.natural_wonder_count is not None and self.natural_wonder_count < 0:
            raise ConfigurationError("Natural wonder count cannot be negative")
        if self.city_state_count is not None and self.city_state_count < 0:
            raise ConfigurationError("City state count cannot be negative")
        if any(not 0 <= chance <= 1 for chance in self.coast_expand_chance):
            raise ConfigurationError("Coast expansion chances must be in [0, 1]")
        if self.max_river_length < 1 or self.tiles_per_river_edge < 1:
            raise ConfigurationError("River limits must be positive")
