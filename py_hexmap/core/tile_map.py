"""
Tile map storage.

The map keeps one numpy array per tile attribute (struct of arrays), indexed
by the grid's linear tile index. `Tile` is a read-only snapshot assembled on
demand for callers that prefer per-tile objects.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, List, Optional, Tuple

import numpy as np

from .errors import GenerationReport
from .hex_grid import EDGE_COUNT, HexGrid, opposite_edge


class Elevation(IntEnum):
    WATER = 0
    FLATLAND = 1
    HILL = 2
    MOUNTAIN = 3


class BaseTerrain(IntEnum):
    OCEAN = 0
    COAST = 1
    LAKE = 2
    GRASSLAND = 3
    PLAIN = 4
    DESERT = 5
    TUNDRA = 6
    SNOW = 7


class Feature(IntEnum):
    FOREST = 1
    JUNGLE = 2
    MARSH = 3
    ICE = 4
    OASIS = 5
    FLOODPLAIN = 6


NO_FEATURE = 0


class TemperatureBand(IntEnum):
    FROZEN = 0
    COLD = 1
    TEMPERATE = 2
    TROPICAL = 3


class RainfallBand(IntEnum):
    ARID = 0
    DRY = 1
    MODERATE = 2
    WET = 3


class RegionType(IntEnum):
    """Dominant character of a start region, in priority order."""

    UNDEFINED = 0
    TUNDRA = 1
    JUNGLE = 2
    FOREST = 3
    DESERT = 4
    HILL = 5
    PLAIN = 6
    GRASSLAND = 7
    HYBRID = 8


# Names used by ruleset tables
ELEVATION_NAMES = {
    Elevation.WATER: "Water",
    Elevation.FLATLAND: "Flatland",
    Elevation.HILL: "Hill",
    Elevation.MOUNTAIN: "Mountain",
}

TERRAIN_NAMES = {
    BaseTerrain.OCEAN: "Ocean",
    BaseTerrain.COAST: "Coast",
    BaseTerrain.LAKE: "Lake",
    BaseTerrain.GRASSLAND: "Grassland",
    BaseTerrain.PLAIN: "Plain",
    BaseTerrain.DESERT: "Desert",
    BaseTerrain.TUNDRA: "Tundra",
    BaseTerrain.SNOW: "Snow",
}

FEATURE_NAMES = {
    Feature.FOREST: "Forest",
    Feature.JUNGLE: "Jungle",
    Feature.MARSH: "Marsh",
    Feature.ICE: "Ice",
    Feature.OASIS: "Oasis",
    Feature.FLOODPLAIN: "Floodplain",
}

TEMPERATURE_BAND_NAMES = {band: band.name.capitalize() for band in TemperatureBand}
RAINFALL_BAND_NAMES = {band: band.name.capitalize() for band in RainfallBand}
REGION_TYPE_NAMES = {kind: kind.name.capitalize() for kind in RegionType}

ELEVATION_BY_NAME = {name: key for key, name in ELEVATION_NAMES.items()}
TERRAIN_BY_NAME = {name: key for key, name in TERRAIN_NAMES.items()}
FEATURE_BY_NAME = {name: key for key, name in FEATURE_NAMES.items()}

WATER_TERRAINS = frozenset({BaseTerrain.OCEAN, BaseTerrain.COAST, BaseTerrain.LAKE})


@dataclass(frozen=True)
class Tile:
    """Snapshot of one tile's attributes."""

    index: int
    x: int
    y: int
    q: int
    r: int
    elevation: Elevation
    base_terrain: BaseTerrain
    feature: Optional[Feature]
    natural_wonder: Optional[str]
    river_edges: int
    area_id: int
    region_id: int
    resource: Optional[str]
    resource_quantity: int
    height: float
    temperature: float
    rainfall: float
    temperature_band: TemperatureBand
    rainfall_band: RainfallBand

    @property
    def is_water(self) -> bool:
        return self.elevation == Elevation.WATER

    @property
    def is_land(self) -> bool:
        return self.elevation != Elevation.WATER

    @property
    def has_river(self) -> bool:
        return self.river_edges != 0

    def river_edge_list(self) -> List[int]:
        return [edge for edge in range(EDGE_COUNT) if self.river_edges & (1 << edge)]


@dataclass
class Area:
    """A connected body of land or water."""

    id: int
    type: str  # "ocean", "lake", "landmass"
    land: bool
    border: bool  # touches a non-wrapped map edge
    size: int
    first_tile: int


class TileMap:
    """All tile layers of one generated map."""

    LAYERS = (
        "elevation",
        "base_terrain",
        "feature",
        "river_edges",
        "area_id",
        "region_id",
        "coast_distance",
        "height",
        "temperature",
        "rainfall",
        "temperature_band",
        "rainfall_band",
        "resource_quantity",
    )

    def __init__(self, grid: HexGrid):
        self.grid = grid
        n = grid.size

        self.elevation = np.zeros(n, dtype=np.uint8)
        self.base_terrain = np.zeros(n, dtype=np.uint8)
        self.feature = np.zeros(n, dtype=np.uint8)
        self.river_edges = np.zeros(n, dtype=np.uint8)
        self.area_id = np.full(n, -1, dtype=np.int32)
        self.region_id = np.full(n, -1, dtype=np.int16)
        self.coast_distance = np.zeros(n, dtype=np.int16)
        self.height = np.zeros(n, dtype=np.float64)
        self.temperature = np.zeros(n, dtype=np.float64)
        self.rainfall = np.zeros(n, dtype=np.float64)
        self.temperature_band = np.zeros(n, dtype=np.uint8)
        self.rainfall_band = np.zeros(n, dtype=np.uint8)
        self.resource_quantity = np.zeros(n, dtype=np.uint8)

        self.natural_wonder: List[Optional[str]] = [None] * n
        self.resource: List[Optional[str]] = [None] * n

        self.areas: List[Area] = []
        self.rivers: list = []
        self.natural_wonder_sites: list = []
        self.regions: list = []
        self.starting_tiles: List[int] = []
        self.city_states: List[int] = []
        self.luxury_roles = None
        self.report = GenerationReport()
        self.frozen = False

    @property
    def width(self) -> int:
        return self.grid.width

    @property
    def height_tiles(self) -> int:
        return self.grid.height

    @property
    def size(self) -> int:
        return self.grid.size

    def __len__(self) -> int:
        return self.grid.size

    def __iter__(self) -> Iterator[Tile]:
        for index in range(self.grid.size):
            yield self.tile(index)

    def tile(self, index: int) -> Tile:
        x, y = self.grid.offset(index)
        hex_ = self.grid.hex(index)
        feature = int(self.feature[index])
        return Tile(
            index=index,
            x=x,
            y=y,
            q=hex_.q,
            r=hex_.r,
            elevation=Elevation(int(self.elevation[index])),
            base_terrain=BaseTerrain(int(self.base_terrain[index])),
            feature=Feature(feature) if feature != NO_FEATURE else None,
            natural_wonder=self.natural_wonder[index],
            river_edges=int(self.river_edges[index]),
            area_id=int(self.area_id[index]),
            region_id=int(self.region_id[index]),
            resource=self.resource[index],
            resource_quantity=int(self.resource_quantity[index]),
            height=float(self.height[index]),
            temperature=float(self.temperature[index]),
            rainfall=float(self.rainfall[index]),
            temperature_band=TemperatureBand(int(self.temperature_band[index])),
            rainfall_band=RainfallBand(int(self.rainfall_band[index])),
        )

    def neighbors(self, index: int) -> Tuple[int, ...]:
        return self.grid.neighbors(index)

    def is_water(self, index: int) -> bool:
        return self.elevation[index] == Elevation.WATER

    def is_land(self, index: int) -> bool:
        return self.elevation[index] != Elevation.WATER

    def is_lake(self, index: int) -> bool:
        return self.base_terrain[index] == BaseTerrain.LAKE

    def is_coastal_land(self, index: int) -> bool:
        return self.is_land(index) and any(
            self.is_water(n) for n in self.grid.neighbors(index)
        )

    def has_river(self, index: int) -> bool:
        return self.river_edges[index] != 0

    def is_fresh_water(self, index: int) -> bool:
        """River on the tile, or a lake or oasis next to it."""
        if self.has_river(index):
            return True
        return any(
            self.base_terrain[n] == BaseTerrain.LAKE
            or self.feature[n] == Feature.OASIS
            for n in self.grid.neighbors(index)
        )

    def land_mask(self) -> np.ndarray:
        return self.elevation != Elevation.WATER

    def land_fraction(self) -> float:
        return float(np.count_nonzero(self.land_mask())) / self.grid.size

    def set_terrain(self, index: int, elevation: Elevation, base: BaseTerrain) -> None:
        self.elevation[index] = elevation
        self.base_terrain[index] = base

    def has_river_edge(self, a: int, b: int) -> bool:
        edge = self.grid.edge_between(a, b)
        return edge is not None and bool(self.river_edges[a] & (1 << edge))

    def add_river_edge(self, a: int, b: int) -> None:
        """Mark the edge shared by two adjacent tiles on both tiles."""
        edge = self.grid.edge_between(a, b)
        if edge is None:
            raise ValueError(f"Tiles {a} and {b} are not adjacent")
        self.river_edges[a] |= 1 << edge
        self.river_edges[b] |= 1 << opposite_edge(edge)

    def freeze(self) -> None:
        """Make every layer read-only once generation is finished."""
        for name in self.LAYERS:
            getattr(self, name).flags.writeable = False
        self.natural_wonder = tuple(self.natural_wonder)
        self.resource = tuple(self.resource)
        self.starting_tiles = tuple(self.starting_tiles)
        self.city_states = tuple(self.city_states)
        self.frozen = True

    def validate(self, ruleset) -> List[str]:
        """
        Check the structural invariants of the map.

        Returns a list of human-readable problems; empty means valid.
        """
        problems = []
        grid = self.grid

        for index in range(grid.size):
            elevation = Elevation(int(self.elevation[index]))
            base = BaseTerrain(int(self.base_terrain[index]))
            terrain = ruleset.terrains.get(TERRAIN_NAMES[base])
            if terrain is None:
                problems.append(f"tile {index}: terrain {TERRAIN_NAMES[base]} not in ruleset")
            elif ELEVATION_NAMES[elevation] not in terrain.valid_elevations:
                problems.append(
                    f"tile {index}: {ELEVATION_NAMES[elevation]} is not valid for "
                    f"{TERRAIN_NAMES[base]}"
                )

            bits = int(self.river_edges[index])
            for edge in range(EDGE_COUNT):
                if not bits & (1 << edge):
                    continue
                neighbor = grid.neighbor(index, edge)
                if neighbor is None:
                    problems.append(f"tile {index}: river on edge {edge} without neighbor")
                elif not self.river_edges[neighbor] & (1 << opposite_edge(edge)):
                    problems.append(
                        f"tile {index}: river on edge {edge} not mirrored on tile {neighbor}"
                    )

        return problems

    def layers(self) -> dict:
        """All per-tile data, for comparisons and export."""
        data = {name: getattr(self, name).copy() for name in self.LAYERS}
        data["natural_wonder"] = list(self.natural_wonder)
        data["resource"] = list(self.resource)
        data["starting_tiles"] = list(self.starting_tiles)
        data["city_states"] = list(self.city_states)
        return data
