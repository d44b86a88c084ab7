"""
River routing on the hex grid.

This module implements:
- Source selection on hill and mountain peaks away from water
- Downhill walks that never climb an elevation class
- Mouths, map-edge outlets and merges into existing rivers
- A second, quota-gated pass that fills in dry landmasses
- Floodplains along desert rivers
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import structlog

from ..config.map_parameters import MapParameters
from ..config.ruleset import Ruleset
from .errors import RiverDeadEnd
from .tile_map import (
    ELEVATION_NAMES,
    FEATURE_NAMES,
    NO_FEATURE,
    TERRAIN_NAMES,
    BaseTerrain,
    Elevation,
    Feature,
    TileMap,
)

logger = structlog.get_logger()


@dataclass
class RiverOptions:
    """River routing options."""

    river_source_range: int = 4  # no source this close to fresh water
    sea_water_range: int = 3  # sources at least this far from any water
    max_river_length: int = 40  # steps before a walk is abandoned
    tiles_per_river_edge: int = 12  # second pass quota per landmass

    @classmethod
    def from_parameters(cls, params: MapParameters) -> "RiverOptions":
        return cls(
            river_source_range=params.river_source_range,
            sea_water_range=params.sea_water_range,
            max_river_length=params.max_river_length,
            tiles_per_river_edge=params.tiles_per_river_edge,
        )


@dataclass
class River:
    """A committed river, listed from source to end."""

    id: int
    tiles: List[int]
    source: int
    end: str  # "mouth", "edge" or "merge"
    mouth: Optional[int] = None  # water tile the river drains into
    tributary_of: Optional[int] = None
    edges: List[Tuple[int, int]] = field(default_factory=list)

    @property
    def length(self) -> int:
        return len(self.edges)


class RiverRouter:
    """Routes rivers downhill and marks their edges on the tile map."""

    def __init__(self, tile_map: TileMap, options: Optional[RiverOptions] = None):
        """
        Initialize river router.

        Args:
            tile_map: Map with elevation, areas and coast distance populated
            options: River routing options
        """
        self.tile_map = tile_map
        self.grid = tile_map.grid
        self.options = options or RiverOptions()

        self.rivers: List[River] = []
        self.dead_ends: List[RiverDeadEnd] = []
        self._river_of: Dict[int, int] = {}

    def generate_rivers(self) -> List[River]:
        """
        Run both source passes and store the rivers on the tile map.

        The first pass uses the configured ranges. The second halves them
        and only adds rivers to landmasses still below their quota of one
        river edge per `tiles_per_river_edge` land tiles.
        """
        logger.info("Generating rivers")
        options = self.options

        self._run_pass(options.sea_water_range, options.river_source_range, quota=False)
        self._run_pass(
            max(options.sea_water_range // 2, 1),
            max(options.river_source_range // 2, 1),
            quota=True,
        )

        self.tile_map.rivers = self.rivers
        self.tile_map.report.river_dead_ends.extend(self.dead_ends)

        logger.info(
            "Rivers generated",
            rivers=len(self.rivers),
            river_edges=sum(river.length for river in self.rivers),
            dead_ends=len(self.dead_ends),
        )
        return self.rivers

    def _run_pass(self, sea_water_range: int, source_range: int, quota: bool) -> None:
        budget = self._landmass_budget() if quota else None

        for source in self.find_sources(sea_water_range):
            if self._near_fresh_water(source, source_range):
                continue
            if budget is not None:
                area = int(self.tile_map.area_id[source])
                if budget.get(area, 0) <= 0:
                    continue

            river = self.route(source)
            if river is not None and budget is not None:
                area = int(self.tile_map.area_id[source])
                budget[area] = budget.get(area, 0) - river.length

    def _landmass_budget(self) -> Dict[int, int]:
        """River edges each landmass may still take in the second pass."""
        per_edge = max(self.options.tiles_per_river_edge, 1)
        budget = {
            area.id: area.size // per_edge for area in self.tile_map.areas if area.land
        }
        for river in self.rivers:
            area = int(self.tile_map.area_id[river.source])
            if area in budget:
                budget[area] -= river.length
        return budget

    def find_sources(self, sea_water_range: int) -> List[int]:
        """
        Candidate sources, highest first.

        A source is a hill or mountain that no neighbor tops in (elevation
        class, height) and that lies at least `sea_water_range` from water.
        """
        tile_map = self.tile_map
        elevation = tile_map.elevation
        height = tile_map.height

        sources = []
        for index in range(self.grid.size):
            if elevation[index] < Elevation.HILL:
                continue
            if tile_map.coast_distance[index] < sea_water_range:
                continue
            if self.grid.is_border(index):
                continue
            key = (int(elevation[index]), float(height[index]))
            if all(
                (int(elevation[n]), float(height[n])) <= key
                for n in self.grid.neighbors(index)
            ):
                sources.append(index)

        sources.sort(key=lambda i: (-int(elevation[i]), -float(height[i]), i))
        return sources

    def _near_fresh_water(self, index: int, radius: int) -> bool:
        tile_map = self.tile_map
        return any(
            tile_map.has_river(n) or tile_map.is_lake(n)
            for n in self.grid.tiles_within(index, radius)
        )

    def _step_key(self, index: int) -> tuple:
        tile_map = self.tile_map
        return (
            int(tile_map.elevation[index]),
            int(tile_map.coast_distance[index]),
            float(tile_map.height[index]),
            index,
        )

    def route(self, source: int) -> Optional[River]:
        """
        Walk downhill from `source` and commit the river if it ends well.

        Nothing is marked unless the walk reaches water, a map edge or an
        existing river. A walk that gets stuck or runs too long is recorded
        as a dead end.
        """
        tile_map = self.tile_map
        elevation = tile_map.elevation

        path = [source]
        visited = {source}
        current = source
        end = None

        while end is None:
            if len(path) > self.options.max_river_length:
                return self._dead_end(source, len(path) - 1, "too long")

            candidates = [
                n
                for n in self.grid.neighbors(current)
                if n not in visited and elevation[n] <= elevation[current]
            ]
            if not candidates:
                return self._dead_end(source, len(path) - 1, "no downhill neighbor")

            next_tile = min(candidates, key=self._step_key)
            path.append(next_tile)
            visited.add(next_tile)

            if tile_map.is_water(next_tile):
                end = "mouth"
            elif next_tile in self._river_of:
                end = "merge"
            elif self.grid.is_border(next_tile):
                end = "edge"
            current = next_tile

        return self._commit(path, end)

    def _dead_end(self, source: int, steps: int, reason: str) -> None:
        logger.debug("River abandoned", source=source, steps=steps, reason=reason)
        self.dead_ends.append(RiverDeadEnd(source=source, steps=steps, reason=reason))
        return None

    def _commit(self, path: List[int], end: str) -> River:
        river = River(id=len(self.rivers), tiles=[], source=path[0], end=end)
        last = path[-1]

        if end == "mouth":
            river.mouth = last
            river.tiles = path[:-1]
        else:
            river.tiles = list(path)
        if end == "merge":
            river.tributary_of = self._river_of[last]

        for a, b in zip(path, path[1:]):
            self.tile_map.add_river_edge(a, b)
            river.edges.append((a, b))
        for index in river.tiles:
            self._river_of.setdefault(index, river.id)

        self.rivers.append(river)
        return river


def add_floodplains(tile_map: TileMap, ruleset: Ruleset) -> int:
    """Give river tiles the floodplain feature wherever the ruleset allows it."""
    rule = ruleset.feature(FEATURE_NAMES[Feature.FLOODPLAIN])
    count = 0
    for index in range(tile_map.size):
        if not tile_map.has_river(index) or tile_map.feature[index] != NO_FEATURE:
            continue
        elevation = ELEVATION_NAMES[Elevation(int(tile_map.elevation[index]))]
        base = TERRAIN_NAMES[BaseTerrain(int(tile_map.base_terrain[index]))]
        if elevation in rule.occurs_on_elevation and base in rule.occurs_on_base:
            tile_map.feature[index] = Feature.FLOODPLAIN
            count += 1

    logger.info("Floodplains added", floodplains=count)
    return count


def add_rivers(
    tile_map: TileMap, ruleset: Ruleset, options: Optional[RiverOptions] = None
) -> List[River]:
    """Route rivers and lay floodplains along them."""
    rivers = RiverRouter(tile_map, options).generate_rivers()
    add_floodplains(tile_map, ruleset)
    return rivers
