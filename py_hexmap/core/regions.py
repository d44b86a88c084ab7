"""
Region partition for start placement.

Habitable land is valued (one per tile plus a bonus for tiles that hold or
could hold a resource) and split into one region per civilization:

1. The divide method allocates civilizations to landmasses
2. Each allocation is bisected recursively along its longer axis at the
   value-weighted cut, until every part holds one civilization

Wrapped axes have no natural edge, so coordinates on them are rotated to
put the seam just after the emptiest column (or row) before measuring.

Each finished region is typed by its dominant terrain (tundra, jungle,
forest, desert, hill, plain, grassland, hybrid) for luxury and start bonus
choices.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np
import structlog
from pydantic import BaseModel, Field

from ..config.map_parameters import RegionDivideMethod
from .features import AreaMarkup
from .tile_map import (
    REGION_TYPE_NAMES,
    BaseTerrain,
    Elevation,
    Feature,
    RegionType,
    TileMap,
)

logger = structlog.get_logger()


class RegionOptions(BaseModel):
    """Region partition options."""

    resource_value_bonus: float = Field(
        default=1.0, description="Extra value of a habitable tile holding a resource"
    )


class Region(BaseModel):
    """A share of habitable land assigned to one civilization."""

    id: int = Field(description="Region index, also written to the region_id layer")
    landmass: Optional[int] = Field(default=None, description="Landmass area id, if single")
    tiles: List[int] = Field(default_factory=list, description="Habitable tiles")
    value: float = Field(default=0.0, description="Summed habitability value")
    start: Optional[int] = Field(default=None, description="Chosen start tile")
    region_type: RegionType = Field(
        default=RegionType.UNDEFINED, description="Dominant terrain character"
    )
    luxury: Optional[str] = Field(default=None, description="Luxury resource of the region")

    @property
    def type_name(self) -> str:
        return REGION_TYPE_NAMES[self.region_type]


def habitable_values(
    tile_map: TileMap, options: RegionOptions, potential: Optional[np.ndarray] = None
) -> np.ndarray:
    """
    Value per tile: 0 for uninhabitable, else 1 plus the resource bonus.

    The bonus applies to tiles holding a resource and, when `potential` is
    given, to tiles where some resource could be placed.
    """
    habitable = (
        tile_map.land_mask()
        & (tile_map.elevation != Elevation.MOUNTAIN)
        & (tile_map.base_terrain != BaseTerrain.SNOW)
    )
    has_resource = np.array([r is not None for r in tile_map.resource], dtype=bool)
    if potential is not None:
        has_resource |= potential
    values = habitable.astype(np.float64)
    values[habitable & has_resource] += options.resource_value_bonus
    return values


def classify_region(tile_map: TileMap, tiles: Sequence[int]) -> RegionType:
    """Region type from the terrain shares of its flatland and hill tiles."""
    tiles = [
        i
        for i in tiles
        if tile_map.elevation[i] in (Elevation.FLATLAND, Elevation.HILL)
    ]
    n = len(tiles)
    if n == 0:
        return RegionType.UNDEFINED

    base = tile_map.base_terrain[tiles]
    feature = tile_map.feature[tiles]
    elevation = tile_map.elevation[tiles]

    tundra = int(np.count_nonzero((base == BaseTerrain.TUNDRA) | (base == BaseTerrain.SNOW)))
    jungle = int(np.count_nonzero(feature == Feature.JUNGLE))
    forest = int(np.count_nonzero(feature == Feature.FOREST))
    desert = int(np.count_nonzero(base == BaseTerrain.DESERT))
    hills = int(np.count_nonzero(elevation == Elevation.HILL))
    plain = int(np.count_nonzero(base == BaseTerrain.PLAIN))
    grass = int(np.count_nonzero(base == BaseTerrain.GRASSLAND))

    if tundra >= 0.30 * n:
        return RegionType.TUNDRA
    if jungle >= 0.30 * n or (jungle >= 0.20 * n and jungle + forest >= 0.35 * n):
        return RegionType.JUNGLE
    if forest >= 0.30 * n or (forest >= 0.20 * n and jungle + forest >= 0.35 * n):
        return RegionType.FOREST
    if desert >= 0.25 * n:
        return RegionType.DESERT
    if hills >= 0.415 * n:
        return RegionType.HILL
    if plain >= 0.30 * n and plain * 0.7 > grass:
        return RegionType.PLAIN
    if grass >= 0.30 * n and grass * 0.7 > plain:
        return RegionType.GRASSLAND
    if tundra + jungle + forest + desert + hills + plain + grass > 0.80 * n:
        return RegionType.HYBRID
    return RegionType.UNDEFINED


class RegionDivider:
    """Splits habitable land into a fixed number of value-balanced regions."""

    def __init__(
        self,
        tile_map: TileMap,
        options: Optional[RegionOptions] = None,
        potential: Optional[np.ndarray] = None,
    ):
        self.tile_map = tile_map
        self.grid = tile_map.grid
        self.options = options or RegionOptions()
        self.values = habitable_values(tile_map, self.options, potential)
        self.regions: List[Region] = []

    def generate_regions(self, count: int, method: RegionDivideMethod) -> List[Region]:
        logger.info("Generating regions", civilizations=count, method=method.value)
        self.regions = []
        if count <= 0:
            return self.regions

        for landmass, tiles, civs in self.allocate(count, method):
            self.divide(tiles, civs, landmass)

        for region in self.regions:
            self.tile_map.region_id[region.tiles] = region.id
            region.region_type = classify_region(self.tile_map, region.tiles)
        self.tile_map.regions = self.regions

        logger.info(
            "Regions generated",
            regions=len(self.regions),
            values=[round(region.value, 1) for region in self.regions],
            types=[region.type_name for region in self.regions],
        )
        return self.regions

    def _landmass_tiles(self, area_id: int) -> List[int]:
        tiles = np.flatnonzero((self.tile_map.area_id == area_id) & (self.values > 0))
        return [int(i) for i in tiles]

    def allocate(
        self, count: int, method: RegionDivideMethod
    ) -> List[Tuple[Optional[int], List[int], int]]:
        """(landmass, tiles, civilizations) groups to be bisected."""
        if method is RegionDivideMethod.WHOLE_MAP:
            tiles = [int(i) for i in np.flatnonzero(self.values > 0)]
            return [(None, tiles, count)]

        landmasses = AreaMarkup(self.tile_map).landmasses_by_size()
        if not landmasses:
            return [(None, [], count)]

        if method is RegionDivideMethod.PANGAEA:
            biggest = landmasses[0].id
            return [(biggest, self._landmass_tiles(biggest), count)]

        # Continent: hand out civilizations one at a time to the landmass
        # that would have the most value per civilization
        scored = []
        for area in landmasses:
            tiles = self._landmass_tiles(area.id)
            scored.append((float(self.values[tiles].sum()), area.id, tiles))
        scored.sort(key=lambda item: (-item[0], item[1]))
        scored = [item for item in scored[:count] if item[0] > 0] or scored[:1]

        civs = [0] * len(scored)
        per_civ = [value for value, _, _ in scored]
        for _ in range(count):
            best = max(range(len(scored)), key=lambda i: (per_civ[i], -i))
            civs[best] += 1
            per_civ[best] = scored[best][0] / (civs[best] + 1)

        return [
            (area_id, tiles, n)
            for (_, area_id, tiles), n in zip(scored, civs)
            if n > 0
        ]

    def divide(self, tiles: List[int], count: int, landmass: Optional[int]) -> None:
        """Recursively bisect `tiles` into `count` regions."""
        if count == 1 or len(tiles) < 2:
            self._add_region(tiles, landmass)
            for _ in range(count - 1):
                self._add_region([], landmass)
            return

        first_count = count // 2
        first, second = self.bisect(tiles, first_count / count)
        self.divide(first, first_count, landmass)
        self.divide(second, count - first_count, landmass)

    def _add_region(self, tiles: List[int], landmass: Optional[int]) -> None:
        value = float(self.values[tiles].sum()) if tiles else 0.0
        self.regions.append(
            Region(id=len(self.regions), landmass=landmass, tiles=list(tiles), value=value)
        )

    def bisect(self, tiles: Sequence[int], fraction: float) -> Tuple[List[int], List[int]]:
        """
        Cut `tiles` along their longer axis so the first part holds
        `fraction` of the value. Both parts keep at least one tile.
        """
        xs = self._axis_coordinates(tiles, axis=0)
        ys = self._axis_coordinates(tiles, axis=1)

        if xs.max() - xs.min() >= ys.max() - ys.min():
            keys = list(zip(xs, ys, tiles))
        else:
            keys = list(zip(ys, xs, tiles))
        ordered = [tile for _, _, tile in sorted(keys)]

        weights = self.values[ordered]
        if weights.sum() <= 0:
            weights = np.ones(len(ordered))
        cumulative = np.cumsum(weights)
        cut = int(np.searchsorted(cumulative, fraction * cumulative[-1], side="left")) + 1
        cut = min(max(cut, 1), len(ordered) - 1)
        return ordered[:cut], ordered[cut:]

    def _axis_coordinates(self, tiles: Sequence[int], axis: int) -> np.ndarray:
        """Column (axis 0) or row (axis 1) of each tile, seam-rotated if wrapped."""
        grid = self.grid
        coords = np.array([grid.offset(i)[axis] for i in tiles], dtype=np.int64)
        wrapped = grid.wrap_x if axis == 0 else grid.wrap_y
        if not wrapped:
            return coords

        span = grid.width if axis == 0 else grid.height
        totals = np.zeros(span)
        np.add.at(totals, coords, self.values[list(tiles)])
        emptiest = int(np.argmin(totals))
        return (coords - emptiest - 1) % span


def generate_regions(
    tile_map: TileMap,
    count: int,
    method: RegionDivideMethod,
    options: Optional[RegionOptions] = None,
    potential: Optional[np.ndarray] = None,
) -> List[Region]:
    return RegionDivider(tile_map, options, potential).generate_regions(count, method)
