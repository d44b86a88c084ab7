"""
City-state placement.

Process:
1. assign() - Split the city states between land no civilization claimed
   and the start regions (regions sharing their luxury get one extra)
2. place() - Put each one on a free tile of its share, away from starts
   and other city states, preferring the coast
3. Seed a reserved luxury next to every city state
"""

from typing import List, Optional, Sequence

import numpy as np
import structlog
from pydantic import BaseModel, Field

from ..config.ruleset import Ruleset
from .errors import PlacementShortfall
from .random_stream import RandomStream
from .regions import RegionOptions, habitable_values
from .resources import ResourcePlacer
from .tile_map import TileMap

logger = structlog.get_logger()


class CityStateOptions(BaseModel):
    """City-state placement options."""

    min_distance: int = Field(
        default=3, description="Minimum hex distance to starts and other city states"
    )
    luxury_radius: int = Field(
        default=2, description="Radius searched for the city state's luxury"
    )


class CityStatePlacer:
    """Places city states after the civilization starts are known."""

    def __init__(
        self,
        tile_map: TileMap,
        ruleset: Ruleset,
        random: RandomStream,
        options: Optional[CityStateOptions] = None,
    ):
        self.tile_map = tile_map
        self.grid = tile_map.grid
        self.random = random
        self.options = options or CityStateOptions()
        self.resources = ResourcePlacer(tile_map, ruleset, random)
        self.habitable = habitable_values(tile_map, RegionOptions()) > 0

    def unsettled_tiles(self) -> List[int]:
        """Habitable tiles outside every start region."""
        tile_map = self.tile_map
        mask = self.habitable & (tile_map.region_id == -1)
        return [
            int(i) for i in np.flatnonzero(mask) if tile_map.natural_wonder[i] is None
        ]

    def assign(self, count: int) -> List[List[int]]:
        """Candidate tiles for each city state, one list per city state."""
        unsettled = self.unsettled_tiles()
        total = int(np.count_nonzero(self.habitable))
        if count <= 0 or total == 0:
            return []

        shares: List[List[int]] = []
        if unsettled:
            shares += [unsettled] * min(count, int(round(count * len(unsettled) / total)))

        regions = [region for region in self.tile_map.regions if region.tiles]
        roles = self.tile_map.luxury_roles
        if roles is not None:
            for region in regions:
                if len(shares) < count and roles.region_count(region.luxury or "") > 1:
                    shares.append(region.tiles)

        if regions:
            turn = 0
            while len(shares) < count:
                shares.append(regions[turn % len(regions)].tiles)
                turn += 1
        else:
            shares += [unsettled] * (count - len(shares))
        return shares

    def place(self, count: int) -> List[int]:
        logger.info("Placing city states", requested=count)
        placed: List[int] = []
        for share in self.assign(count):
            tile = self._pick(share, placed)
            if tile is not None:
                placed.append(tile)

        if len(placed) < count:
            self.tile_map.report.shortfalls.append(
                PlacementShortfall(
                    kind="city_state",
                    name="city states",
                    requested=count,
                    placed=len(placed),
                    detail="no free tile far enough from other settlements",
                )
            )

        self.tile_map.city_states = placed
        luxuries = self._place_luxuries(placed)
        logger.info("City states placed", city_states=len(placed), luxuries=luxuries)
        return placed

    def _pick(self, share: Sequence[int], placed: Sequence[int]) -> Optional[int]:
        tile_map = self.tile_map
        settled = list(tile_map.starting_tiles) + list(placed)
        min_distance = self.options.min_distance

        candidates = [
            i
            for i in share
            if tile_map.natural_wonder[i] is None
            and all(self.grid.distance(i, other) >= min_distance for other in settled)
        ]
        if not candidates:
            return None
        coastal = [i for i in candidates if tile_map.is_coastal_land(i)]
        return self.random.choice(coastal or candidates)

    def _place_luxuries(self, city_states: Sequence[int]) -> int:
        roles = self.tile_map.luxury_roles
        if roles is None:
            return 0
        by_name = {resource.name: resource for resource in self.resources.resources}
        reserved = [by_name[name] for name in roles.city_states]
        spare = [by_name[name] for name in roles.random]

        radius = self.options.luxury_radius
        placed = 0
        for n, tile in enumerate(city_states):
            # Rotate the reserved luxuries so each one gets used
            if reserved:
                shift = n % len(reserved)
                order = reserved[shift:] + reserved[:shift] + spare
            else:
                order = spare
            for resource in order:
                if self.resources.place_near(resource, tile, radius) is not None:
                    placed += 1
                    break
        return placed


def place_city_states(
    tile_map: TileMap,
    ruleset: Ruleset,
    random: RandomStream,
    count: int,
    options: Optional[CityStateOptions] = None,
) -> List[int]:
    return CityStatePlacer(tile_map, ruleset, random, options).place(count)
