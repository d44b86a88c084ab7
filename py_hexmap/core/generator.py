"""
Map generation pipeline.

`MapGenerator` owns the tile map and the random stream and runs one method
per stage. Each stage method delegates to a free function in the stage's
module, so archetypes override only the stages they change:

1. shape_landmass - Land/water split from the archetype's landmass field
2. refine_elevation - Hills and mountains
3. generate_coasts - Areas, lakes, coast and ocean
4. compute_climate - Temperature and rainfall
5. classify_terrain - Base terrain and features
6. add_rivers - Rivers and floodplains
7. place_natural_wonders
8. generate_regions - One region per civilization, typed by terrain
9. place_resources - Luxury roles, then luxury, strategic and bonus passes
10. place_start_positions - Starts plus a food bonus near each
11. place_city_states - City states and their luxuries
"""

from typing import Dict, Optional, Type

import numpy as np
import structlog

from ..config.map_parameters import MapParameters
from ..config.ruleset import Ruleset, default_ruleset
from ..config.settings import settings
from . import landmass
from .city_states import place_city_states
from .climate import Climate, ClimateOptions
from .errors import ConfigurationError
from .features import AreaMarkup, generate_coasts, generate_lakes
from .hex_grid import HexGrid
from .hydrology import RiverOptions, add_rivers
from .natural_wonders import place_natural_wonders
from .random_stream import RandomStream
from .regions import generate_regions
from .resources import ResourceOptions, place_resources, resource_potential
from .start_positions import place_start_bonuses, place_start_positions
from .terrain import TerrainClassifier
from .tile_map import TileMap

logger = structlog.get_logger()

# Pangaea mountains use a fixed grain whatever the world size
PANGAEA_MOUNTAIN_GRAIN = 4


class MapGenerator:
    """Default pipeline; subclasses override stage methods."""

    map_type = "fractal"
    mountain_grain: Optional[int] = None

    def __init__(self, params: MapParameters, ruleset: Optional[Ruleset] = None):
        self.params = params
        self.ruleset = ruleset or default_ruleset()
        self.random = RandomStream(params.seed)
        self.grid = HexGrid(params.width, params.height, params.orientation, params.wrap)
        self.tile_map = TileMap(self.grid)
        self.land_percent: Optional[float] = None

    def generate(self) -> TileMap:
        """Run every stage in order, freeze the map and return it."""
        params = self.params
        logger.info(
            "Starting map generation",
            map_type=self.map_type,
            width=params.width,
            height=params.height,
            orientation=params.orientation.value,
            wrap=params.wrap.value,
            seed=params.seed,
        )

        stages = [
            ("shape_landmass", self.shape_landmass),
            ("refine_elevation", self.refine_elevation),
            ("generate_coasts", self.generate_coasts),
            ("compute_climate", self.compute_climate),
            ("classify_terrain", self.classify_terrain),
            ("add_rivers", self.add_rivers),
            ("place_natural_wonders", self.place_natural_wonders),
            ("generate_regions", self.generate_regions),
            ("place_resources", self.place_resources),
            ("place_start_positions", self.place_start_positions),
            ("place_city_states", self.place_city_states),
        ]
        for name, stage in stages:
            logger.info("Running stage", stage=name)
            stage()

        self.tile_map.freeze()
        report = self.tile_map.report
        logger.info(
            "Map generation completed",
            land_fraction=round(self.tile_map.land_fraction(), 3),
            shortfalls=len(report.shortfalls),
            river_dead_ends=len(report.river_dead_ends),
            random_draws=self.random.call_count,
        )
        return self.tile_map

    def landmass_field(self) -> np.ndarray:
        """Per-tile field the land/water threshold is applied to."""
        return landmass.continents_field(self.tile_map, self.params, self.random)

    def shape_landmass(self) -> None:
        self.land_percent = landmass.resolve_land_percent(self.params, self.random)
        field = self.landmass_field()
        landmass.shape_landmass(self.tile_map, field, self.land_percent)

    def refine_elevation(self) -> None:
        landmass.refine_elevation(
            self.tile_map, self.params, self.random, mountain_grain=self.mountain_grain
        )

    def generate_coasts(self) -> None:
        AreaMarkup(self.tile_map).markup()
        generate_lakes(self.tile_map, self.params.lake_max_area_size)
        generate_coasts(self.tile_map, self.random, self.params.coast_expand_chance)

    def compute_climate(self) -> None:
        climate = Climate(
            self.tile_map, self.random, ClimateOptions.from_parameters(self.params)
        )
        climate.calculate_temperatures()
        climate.generate_precipitation()

    def classify_terrain(self) -> None:
        TerrainClassifier(self.tile_map, self.ruleset, self.random).classify()

    def add_rivers(self) -> None:
        add_rivers(self.tile_map, self.ruleset, RiverOptions.from_parameters(self.params))

    def place_natural_wonders(self) -> None:
        target = self.params.natural_wonder_count
        if target is None:
            target = self.params.preset.natural_wonders
        place_natural_wonders(self.tile_map, self.ruleset, self.random, target)

    def generate_regions(self) -> None:
        potential = resource_potential(self.tile_map, self.ruleset)
        generate_regions(
            self.tile_map,
            self.params.civilization_count,
            self.params.region_divide_method,
            potential=potential,
        )

    def city_state_count(self) -> int:
        count = self.params.city_state_count
        return self.params.preset.city_states if count is None else count

    def place_resources(self) -> None:
        options = ResourceOptions(
            disabled_luxury_share=self.params.preset.disabled_luxury_share
        )
        place_resources(
            self.tile_map,
            self.ruleset,
            self.random,
            self.params.resource_density,
            city_states=self.city_state_count(),
            options=options,
        )

    def place_start_positions(self) -> None:
        place_start_positions(self.tile_map, self.params, self.random)
        place_start_bonuses(self.tile_map, self.ruleset, self.random)

    def place_city_states(self) -> None:
        place_city_states(self.tile_map, self.ruleset, self.random, self.city_state_count())


class FractalGenerator(MapGenerator):
    """Continents from a ridged fractal."""

    map_type = "fractal"


class PangaeaGenerator(MapGenerator):
    """One dominant landmass: the fractal is pulled toward the map center."""

    map_type = "pangaea"
    mountain_grain = PANGAEA_MOUNTAIN_GRAIN

    def landmass_field(self) -> np.ndarray:
        field = super().landmass_field()
        return field * landmass.pangaea_falloff(self.params.width, self.params.height)


GENERATORS: Dict[str, Type[MapGenerator]] = {
    FractalGenerator.map_type: FractalGenerator,
    PangaeaGenerator.map_type: PangaeaGenerator,
}


def generate_map(
    params: Optional[MapParameters] = None, ruleset: Optional[Ruleset] = None
) -> TileMap:
    """
    Generate a complete map.

    Args:
        params: Map parameters; defaults use the configured default seed
        ruleset: Definitions to generate against; the built-in table if None

    Raises:
        ConfigurationError: parameters are invalid or the archetype is unknown
        RulesetInconsistency: the ruleset lacks an entry a stage needs
    """
    if params is None:
        params = MapParameters(seed=settings.default_seed)
    params.check(settings.max_map_size)

    try:
        generator_class = GENERATORS[params.map_type]
    except KeyError:
        raise ConfigurationError(
            f"Unknown map type '{params.map_type}', expected one of {sorted(GENERATORS)}"
        ) from None

    return generator_class(params, ruleset).generate()
