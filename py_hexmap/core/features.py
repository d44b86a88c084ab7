"""
Geographic area detection and markup.

This module handles:
- Connected land/water areas (landmasses, oceans, lakes)
- Signed coast distance field
- Lake conversion of small enclosed water bodies
- Coast/ocean assignment and probabilistic coast expansion
"""

from typing import List, Sequence

import numpy as np
import structlog

from .random_stream import RandomStream
from .tile_map import Area, BaseTerrain, TileMap

logger = structlog.get_logger()

# Distance field constants
LAND_COAST = 1
UNMARKED = 0
WATER_COAST = -1


class AreaMarkup:
    """Labels connected areas of a tile map and measures distance to the coast."""

    def __init__(self, tile_map: TileMap):
        self.tile_map = tile_map
        self.grid = tile_map.grid

    def markup(self) -> List[Area]:
        """
        Mark areas and calculate the coast distance field.

        Results are stored on the tile map (`area_id`, `coast_distance`,
        `areas`) and the area list is returned.
        """
        tile_map = self.tile_map
        n_tiles = self.grid.size
        land = tile_map.land_mask()

        area_ids = np.full(n_tiles, -1, dtype=np.int32)
        distance_field = np.zeros(n_tiles, dtype=np.int16)
        areas: List[Area] = []

        for first_tile in range(n_tiles):
            if area_ids[first_tile] != -1:
                continue

            area_id = len(areas)
            is_land = bool(land[first_tile])
            area_ids[first_tile] = area_id
            queue = [first_tile]
            border = False
            size = 0
            has_lake = False

            # DFS over tiles of the same kind
            while queue:
                index = queue.pop()
                size += 1

                if not border and self.grid.is_border(index):
                    border = True
                if tile_map.base_terrain[index] == BaseTerrain.LAKE:
                    has_lake = True

                for neighbor in self.grid.neighbors(index):
                    if land[neighbor] == is_land:
                        if area_ids[neighbor] == -1:
                            area_ids[neighbor] = area_id
                            queue.append(neighbor)
                    elif is_land:
                        distance_field[index] = LAND_COAST
                        distance_field[neighbor] = WATER_COAST

            if is_land:
                area_type = "landmass"
            elif has_lake:
                area_type = "lake"
            else:
                area_type = "ocean"

            areas.append(
                Area(
                    id=area_id,
                    type=area_type,
                    land=is_land,
                    border=border,
                    size=size,
                    first_tile=first_tile,
                )
            )

        self._markup_distance_field(distance_field, land)

        tile_map.area_id[:] = area_ids
        tile_map.coast_distance[:] = distance_field
        tile_map.areas = areas
        return areas

    def _markup_distance_field(self, distance_field: np.ndarray, land: np.ndarray) -> None:
        """Grow the coast distance inland (positive) and offshore (negative)."""
        for sign in (1, -1):
            frontier = [
                i for i in range(self.grid.size) if distance_field[i] == sign
            ]
            distance = sign
            while frontier:
                distance += sign
                next_frontier = []
                for index in frontier:
                    for neighbor in self.grid.neighbors(index):
                        if (
                            distance_field[neighbor] == UNMARKED
                            and bool(land[neighbor]) == (sign > 0)
                        ):
                            distance_field[neighbor] = distance
                            next_frontier.append(neighbor)
                frontier = next_frontier

    def landmasses_by_size(self) -> List[Area]:
        """Land areas, biggest first (ties broken by id)."""
        return sorted(
            (area for area in self.tile_map.areas if area.land),
            key=lambda area: (-area.size, area.id),
        )


def generate_lakes(tile_map: TileMap, max_area_size: int) -> int:
    """Turn water areas no bigger than `max_area_size` into lakes."""
    lake_tiles = 0
    for area in tile_map.areas:
        if area.land or area.size > max_area_size:
            continue
        tiles = np.flatnonzero(tile_map.area_id == area.id)
        tile_map.base_terrain[tiles] = BaseTerrain.LAKE
        area.type = "lake"
        lake_tiles += len(tiles)

    logger.info("Lakes generated", lake_tiles=lake_tiles)
    return lake_tiles


def generate_coasts(
    tile_map: TileMap, random: RandomStream, expand_chances: Sequence[float]
) -> None:
    """
    Split non-lake water into coast and ocean.

    Water next to land becomes coast; each entry of `expand_chances` then
    runs one pass growing coast into neighboring ocean with that chance.
    """
    grid = tile_map.grid

    for index in range(grid.size):
        if not tile_map.is_water(index) or tile_map.is_lake(index):
            continue
        if any(tile_map.is_land(n) for n in grid.neighbors(index)):
            tile_map.base_terrain[index] = BaseTerrain.COAST
        else:
            tile_map.base_terrain[index] = BaseTerrain.OCEAN

    for chance in expand_chances:
        # Collect first so tiles changed in this pass don't spread further
        expansion = [
            index
            for index in range(grid.size)
            if tile_map.base_terrain[index] == BaseTerrain.OCEAN
            and any(
                tile_map.base_terrain[n] == BaseTerrain.COAST
                for n in grid.neighbors(index)
            )
            and random.chance(chance)
        ]
        tile_map.base_terrain[expansion] = BaseTerrain.COAST

    logger.info(
        "Coasts generated",
        coast_tiles=int(np.count_nonzero(tile_map.base_terrain == BaseTerrain.COAST)),
    )
