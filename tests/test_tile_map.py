"""Tests for the tile map container."""

import pytest

from py_hexmap.core.errors import GenerationReport, PlacementShortfall
from py_hexmap.core.tile_map import BaseTerrain, Elevation, Feature

from conftest import sketch_map


class TestTileMap:
    """Test tile snapshots, river edges and validation."""

    def test_tile_snapshot(self):
        tile_map = sketch_map(["~.h", "pdM"])
        tile_map.feature[4] = Feature.OASIS
        tile_map.resource[1] = "Cattle"

        tile = tile_map.tile(4)
        assert (tile.x, tile.y) == (1, 1)
        assert tile.elevation is Elevation.FLATLAND
        assert tile.base_terrain is BaseTerrain.DESERT
        assert tile.feature is Feature.OASIS
        assert tile.is_land
        assert tile_map.tile(0).is_water
        assert tile_map.tile(0).feature is None
        assert tile_map.tile(1).resource == "Cattle"
        assert len(list(tile_map)) == len(tile_map) == 6

    def test_river_edges_are_mirrored(self):
        tile_map = sketch_map(["...", "..."])
        a, b = tile_map.grid.index(0, 0), tile_map.grid.index(1, 0)
        tile_map.add_river_edge(a, b)

        assert tile_map.has_river_edge(a, b)
        assert tile_map.has_river_edge(b, a)
        assert tile_map.has_river(a)
        assert tile_map.tile(a).river_edge_list() == [tile_map.grid.edge_between(a, b)]
        assert tile_map.is_fresh_water(b)

    def test_river_edge_needs_adjacent_tiles(self):
        tile_map = sketch_map(["...."])
        with pytest.raises(ValueError):
            tile_map.add_river_edge(0, 3)

    def test_fresh_water_next_to_lake(self):
        tile_map = sketch_map(["l..."])
        assert tile_map.is_fresh_water(1)
        assert not tile_map.is_fresh_water(3)

    def test_validate_reports_problems(self, ruleset):
        tile_map = sketch_map(["~.h"])
        assert tile_map.validate(ruleset) == []

        tile_map.elevation[0] = Elevation.HILL
        tile_map.river_edges[1] = 1 << tile_map.grid.edge_between(1, 2)
        problems = tile_map.validate(ruleset)
        assert len(problems) == 2
        assert "Hill is not valid for Ocean" in problems[0]
        assert "not mirrored" in problems[1]

    def test_freeze(self):
        tile_map = sketch_map([".."])
        tile_map.freeze()
        with pytest.raises(ValueError):
            tile_map.rainfall[0] = 1.0
        assert isinstance(tile_map.natural_wonder, tuple)
        assert tile_map.city_states == ()

    def test_layers_are_copies(self):
        tile_map = sketch_map([".."])
        layers = tile_map.layers()
        layers["elevation"][0] = Elevation.WATER
        assert tile_map.is_land(0)


class TestGenerationReport:
    def test_shortfalls_of(self):
        report = GenerationReport()
        report.shortfalls.append(PlacementShortfall("resource", "landmass 1", 4, 2))
        report.shortfalls.append(PlacementShortfall("natural_wonder", "Uluru", 1, 0))
        assert [s.name for s in report.shortfalls_of("resource")] == ["landmass 1"]
        assert report.shortfalls_of("start_position") == []
