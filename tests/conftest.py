"""Shared fixtures for py-hexmap tests."""

import pytest

from py_hexmap.config.map_parameters import MapParameters
from py_hexmap.config.ruleset import default_ruleset
from py_hexmap.core.hex_grid import HexGrid, Orientation, WrapMode
from py_hexmap.core.tile_map import BaseTerrain, Elevation, TileMap

# Map sketch legend: terrain class, base terrain
LEGEND = {
    "~": (Elevation.WATER, BaseTerrain.OCEAN),
    "c": (Elevation.WATER, BaseTerrain.COAST),
    "l": (Elevation.WATER, BaseTerrain.LAKE),
    ".": (Elevation.FLATLAND, BaseTerrain.GRASSLAND),
    "p": (Elevation.FLATLAND, BaseTerrain.PLAIN),
    "d": (Elevation.FLATLAND, BaseTerrain.DESERT),
    "h": (Elevation.HILL, BaseTerrain.GRASSLAND),
    "M": (Elevation.MOUNTAIN, BaseTerrain.GRASSLAND),
}


def sketch_map(rows, orientation=Orientation.FLAT, wrap=WrapMode.NONE):
    """Build a TileMap from rows of legend characters (row 0 first)."""
    width = len(rows[0])
    grid = HexGrid(width, len(rows), orientation, wrap)
    tile_map = TileMap(grid)
    for y, row in enumerate(rows):
        assert len(row) == width
        for x, char in enumerate(row):
            elevation, base = LEGEND[char]
            tile_map.set_terrain(grid.index(x, y), elevation, base)
    return tile_map


@pytest.fixture
def ruleset():
    """The built-in ruleset."""
    return default_ruleset()


@pytest.fixture
def small_params():
    """Small, fast map parameters."""
    return MapParameters(
        width=40,
        height=24,
        orientation=Orientation.FLAT,
        wrap=WrapMode.HORIZONTAL,
        map_type="fractal",
        seed=7,
        land_percent=30,
        civilization_count=4,
    )
