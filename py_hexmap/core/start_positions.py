"""
Civilization start placement.

Process:
1. generate_regions() - Split habitable land into one region per civilization
2. fertility() - Score every habitable tile of a region
3. place_starts() - Take each region's best tile that keeps the minimum
   distance from earlier starts, relaxing the distance one step at a time
   when no tile qualifies
4. place_start_bonuses() - Put a food bonus suited to the region near each start
"""

from itertools import combinations
from typing import List, Optional

import structlog
from pydantic import BaseModel, Field

from ..config.map_parameters import MapParameters
from ..config.ruleset import Ruleset
from .errors import PlacementShortfall
from .random_stream import RandomStream
from .regions import Region, RegionOptions, generate_regions
from .resources import BONUS, ResourcePlacer
from .tile_map import ELEVATION_NAMES, BaseTerrain, Elevation, Feature, NO_FEATURE, TileMap

logger = structlog.get_logger()

BASE_FERTILITY = {
    BaseTerrain.GRASSLAND: 3,
    BaseTerrain.PLAIN: 4,
    BaseTerrain.TUNDRA: 2,
    BaseTerrain.DESERT: 1,
}

FEATURE_FERTILITY = {
    Feature.FOREST: 0,
    Feature.JUNGLE: -1,
    Feature.MARSH: -2,
}

# Features whose value replaces the terrain score outright
FIXED_FEATURE_FERTILITY = {
    Feature.OASIS: 4,
    Feature.FLOODPLAIN: 5,
}

START_BONUS_RADIUS = 3


class StartPositionOptions(BaseModel):
    """Start placement scoring options."""

    hill_bonus: int = Field(default=1, description="Added for a start on a hill")
    river_bonus: int = Field(default=1, description="Added for a river on the tile")
    fresh_water_bonus: int = Field(default=1, description="Added for fresh water access")
    coastal_bonus: int = Field(default=2, description="Added for coastal land")
    resource_radius: int = Field(default=2, description="Radius counted for nearby resources")
    resource_bonus: float = Field(default=0.5, description="Added per nearby resource")
    jitter: float = Field(default=1.0, description="Upper bound of the random score jitter")


class StartPositionPlacer:
    """Chooses one start tile per region."""

    def __init__(
        self,
        tile_map: TileMap,
        random: RandomStream,
        options: Optional[StartPositionOptions] = None,
    ):
        self.tile_map = tile_map
        self.grid = tile_map.grid
        self.random = random
        self.options = options or StartPositionOptions()

    def fertility(self, index: int) -> float:
        """Terrain value of a tile as a start, before jitter."""
        tile_map = self.tile_map
        options = self.options

        feature = int(tile_map.feature[index])
        if feature in FIXED_FEATURE_FERTILITY:
            score = float(FIXED_FEATURE_FERTILITY[Feature(feature)])
        else:
            score = float(BASE_FERTILITY.get(BaseTerrain(int(tile_map.base_terrain[index])), 0))
            if tile_map.elevation[index] == Elevation.HILL:
                score += options.hill_bonus
            if feature != NO_FEATURE:
                score += FEATURE_FERTILITY.get(Feature(feature), 0)

        if tile_map.has_river(index):
            score += options.river_bonus
        if tile_map.is_fresh_water(index):
            score += options.fresh_water_bonus
        if tile_map.is_coastal_land(index):
            score += options.coastal_bonus

        nearby = sum(
            1
            for n in self.grid.tiles_within(index, options.resource_radius)
            if tile_map.resource[n] is not None
        )
        return score + nearby * options.resource_bonus

    def place_starts(self, regions: List[Region], min_distance: int) -> List[int]:
        """Pick a start in every region, in region order."""
        logger.info("Placing start positions", regions=len(regions), min_distance=min_distance)
        tile_map = self.tile_map
        report = tile_map.report
        starts: List[int] = []

        for region in regions:
            candidates = [
                i for i in region.tiles if tile_map.natural_wonder[i] is None
            ]
            if not candidates:
                logger.warning("Region has no start candidate", region=region.id)
                report.shortfalls.append(
                    PlacementShortfall(
                        kind="start_position",
                        name=f"region {region.id}",
                        requested=1,
                        placed=0,
                        detail="no habitable tile",
                    )
                )
                continue

            scored = sorted(
                (
                    (self.fertility(i) + self.random.uniform(0.0, self.options.jitter), i)
                    for i in candidates
                ),
                key=lambda item: (-item[0], item[1]),
            )

            distance = min_distance
            choice = None
            while choice is None:
                choice = next(
                    (
                        index
                        for _, index in scored
                        if all(self.grid.distance(index, s) >= distance for s in starts)
                    ),
                    None,
                )
                if choice is None:
                    if distance <= 1:
                        break
                    distance -= 1

            if choice is None:
                # Every candidate is already a start
                report.shortfalls.append(
                    PlacementShortfall(
                        kind="start_position",
                        name=f"region {region.id}",
                        requested=1,
                        placed=0,
                        detail="no free tile",
                    )
                )
                continue

            if distance < min_distance:
                logger.warning(
                    "Start distance relaxed",
                    region=region.id,
                    requested=min_distance,
                    used=distance,
                )
                report.start_distance_relaxed = True
                report.shortfalls.append(
                    PlacementShortfall(
                        kind="start_position",
                        name=f"region {region.id}",
                        requested=min_distance,
                        placed=distance,
                        detail="minimum distance relaxed",
                    )
                )

            region.start = choice
            starts.append(choice)

        report.requested_min_start_distance = min_distance
        report.achieved_min_start_distance = (
            min(self.grid.distance(a, b) for a, b in combinations(starts, 2))
            if len(starts) > 1
            else None
        )
        tile_map.starting_tiles = starts

        logger.info(
            "Start positions placed",
            starts=starts,
            achieved_min_distance=report.achieved_min_start_distance,
        )
        return starts


def place_start_positions(
    tile_map: TileMap,
    params: MapParameters,
    random: RandomStream,
    region_options: Optional[RegionOptions] = None,
    options: Optional[StartPositionOptions] = None,
) -> List[int]:
    """Place one start per civilization, partitioning the map first if needed."""
    regions = tile_map.regions or generate_regions(
        tile_map, params.civilization_count, params.region_divide_method, region_options
    )
    starts = StartPositionPlacer(tile_map, random, options).place_starts(
        regions, params.min_start_distance
    )
    if len(starts) < params.civilization_count:
        tile_map.report.shortfalls.append(
            PlacementShortfall(
                kind="start_position",
                name="civilizations",
                requested=params.civilization_count,
                placed=len(starts),
            )
        )
    return starts


def place_start_bonuses(
    tile_map: TileMap, ruleset: Ruleset, random: RandomStream, radius: int = START_BONUS_RADIUS
) -> int:
    """
    Put one food bonus near every start.

    The bonus is the first resource listed for the region's type that has a
    free fitting tile within `radius`; sea bonuses are the fallback.
    """
    placer = ResourcePlacer(tile_map, ruleset, random)
    bonuses = placer.of_type(BONUS)
    water = [r for r in bonuses if ELEVATION_NAMES[Elevation.WATER] in r.occurs_on_elevation]

    placed = 0
    for region in tile_map.regions:
        if region.start is None:
            continue
        preferred = [r for r in bonuses if region.type_name in r.start_bonus_for]
        for resource in preferred + water:
            if placer.place_near(resource, region.start, radius) is not None:
                placed += 1
                break
        else:
            logger.debug("No start bonus fits", region=region.id, start=region.start)

    logger.info("Start bonuses placed", bonuses=placed)
    return placed
