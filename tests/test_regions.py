"""Tests for the region partition."""

import numpy as np
import pytest

from py_hexmap.config.map_parameters import RegionDivideMethod
from py_hexmap.core.features import AreaMarkup
from py_hexmap.core.hex_grid import WrapMode
from py_hexmap.core.regions import (
    RegionDivider,
    RegionOptions,
    classify_region,
    generate_regions,
    habitable_values,
)
from py_hexmap.core.tile_map import BaseTerrain, Feature, RegionType

from conftest import sketch_map

ISLAND = ["c" * 9] + ["c.......c"] * 5 + ["c" * 9]
TWO_ISLANDS = ["cccccccccc", "c..cc....c", "c..cc....c", "cccccccccc"]


def marked(rows, **kwargs):
    tile_map = sketch_map(rows, **kwargs)
    AreaMarkup(tile_map).markup()
    return tile_map


class TestHabitableValues:
    def test_values(self):
        tile_map = marked(["c.hM."])
        tile_map.base_terrain[4] = BaseTerrain.SNOW
        tile_map.resource[2] = "Sheep"
        values = habitable_values(tile_map, RegionOptions(resource_value_bonus=1.5))
        assert values.tolist() == [0.0, 1.0, 2.5, 0.0, 0.0]

    def test_resource_potential_counts_like_a_resource(self):
        tile_map = marked(["c..h."])
        potential = np.array([True, False, True, True, False])
        values = habitable_values(tile_map, RegionOptions(), potential)
        # Water stays worthless whatever its potential
        assert values.tolist() == [0.0, 1.0, 2.0, 2.0, 1.0]


class TestClassifyRegion:
    """Test region typing by terrain shares."""

    @staticmethod
    def region_of(rows):
        tile_map = sketch_map(rows)
        return tile_map, list(range(tile_map.size))

    def test_grassland(self):
        tile_map, tiles = self.region_of(["." * 10])
        assert classify_region(tile_map, tiles) is RegionType.GRASSLAND

    def test_plain(self):
        tile_map, tiles = self.region_of(["pppp......"])
        # 40% plain but not enough to outweigh 60% grassland
        assert classify_region(tile_map, tiles) is RegionType.GRASSLAND
        tile_map, tiles = self.region_of(["ppppppp..."])
        assert classify_region(tile_map, tiles) is RegionType.PLAIN

    def test_hills(self):
        tile_map, tiles = self.region_of(["hhhhh....."])
        assert classify_region(tile_map, tiles) is RegionType.HILL

    def test_desert_outranks_hills(self):
        tile_map, tiles = self.region_of(["dddhhhhh.."])
        assert classify_region(tile_map, tiles) is RegionType.DESERT

    def test_tundra_first(self):
        tile_map, tiles = self.region_of(["dddddddd.."])
        tile_map.base_terrain[:3] = BaseTerrain.TUNDRA
        assert classify_region(tile_map, tiles) is RegionType.TUNDRA

    def test_jungle_and_forest(self):
        tile_map, tiles = self.region_of(["." * 10])
        tile_map.feature[:2] = Feature.JUNGLE
        tile_map.feature[2:4] = Feature.FOREST
        # 20% jungle with 40% woods together
        assert classify_region(tile_map, tiles) is RegionType.JUNGLE
        tile_map.feature[:2] = Feature.FOREST
        assert classify_region(tile_map, tiles) is RegionType.FOREST

    def test_mixed_land_is_hybrid(self):
        tile_map, tiles = self.region_of(["....ppppdd"])
        assert classify_region(tile_map, tiles) is RegionType.HYBRID

    def test_mountains_and_water_are_ignored(self):
        tile_map, tiles = self.region_of(["MMMMMcc..."])
        assert classify_region(tile_map, tiles) is RegionType.GRASSLAND
        tile_map, tiles = self.region_of(["MMcc"])
        assert classify_region(tile_map, tiles) is RegionType.UNDEFINED

    def test_generated_regions_are_typed(self):
        tile_map = marked(ISLAND)
        regions = generate_regions(tile_map, 2, RegionDivideMethod.WHOLE_MAP)
        assert [region.region_type for region in regions] == [RegionType.GRASSLAND] * 2
        assert regions[0].type_name == "Grassland"


class TestRegionDivider:
    """Test allocation and recursive bisection."""

    def test_whole_map_partition(self):
        tile_map = marked(ISLAND)
        regions = generate_regions(tile_map, 4, RegionDivideMethod.WHOLE_MAP)

        assert [region.id for region in regions] == [0, 1, 2, 3]
        tiles = [t for region in regions for t in region.tiles]
        assert len(tiles) == len(set(tiles)) == 35
        values = [region.value for region in regions]
        assert max(values) - min(values) <= 1
        for region in regions:
            assert all(tile_map.region_id[t] == region.id for t in region.tiles)
        assert tile_map.regions == regions

    def test_water_has_no_region(self):
        tile_map = marked(ISLAND)
        generate_regions(tile_map, 3, RegionDivideMethod.WHOLE_MAP)
        water = ~tile_map.land_mask()
        assert np.all(tile_map.region_id[water] == -1)

    def test_continent_allocation(self):
        tile_map = marked(TWO_ISLANDS)
        regions = generate_regions(tile_map, 3, RegionDivideMethod.CONTINENT)
        sizes = {area.id: area.size for area in tile_map.areas if area.land}
        big = max(sizes, key=sizes.get)
        small = min(sizes, key=sizes.get)

        assert [region.landmass for region in regions].count(big) == 2
        assert [region.landmass for region in regions].count(small) == 1

    def test_pangaea_uses_biggest_landmass(self):
        tile_map = marked(TWO_ISLANDS)
        regions = generate_regions(tile_map, 2, RegionDivideMethod.PANGAEA)
        biggest = AreaMarkup(tile_map).landmasses_by_size()[0].id
        assert all(region.landmass == biggest for region in regions)
        assert sum(len(region.tiles) for region in regions) == 8

    def test_more_civilizations_than_tiles(self):
        tile_map = marked(["c.c"])
        regions = generate_regions(tile_map, 3, RegionDivideMethod.WHOLE_MAP)
        assert len(regions) == 3
        assert sorted(len(region.tiles) for region in regions) == [0, 0, 1]

    def test_no_civilizations(self):
        tile_map = marked(ISLAND)
        assert generate_regions(tile_map, 0, RegionDivideMethod.WHOLE_MAP) == []
        assert np.all(tile_map.region_id == -1)

    def test_bisect_keeps_both_sides(self):
        tile_map = marked(ISLAND)
        divider = RegionDivider(tile_map)
        tiles = [tile_map.grid.index(x, 3) for x in range(1, 8)]
        first, second = divider.bisect(tiles, 0.0)
        assert len(first) == 1
        first, second = divider.bisect(tiles, 1.0)
        assert len(second) == 1

    def test_bisect_cuts_by_value(self):
        tile_map = marked(ISLAND)
        tile_map.resource[tile_map.grid.index(1, 3)] = "Cattle"
        tile_map.resource[tile_map.grid.index(2, 3)] = "Cattle"
        divider = RegionDivider(tile_map)
        tiles = [tile_map.grid.index(x, 3) for x in range(1, 8)]
        first, second = divider.bisect(tiles, 0.5)
        assert first == tiles[:3]
        assert second == tiles[3:]

    def test_wrapped_land_is_not_cut_at_the_seam(self):
        """Land on both sides of the seam is one stretch."""
        tile_map = marked(["..~~~~.."] * 3, wrap=WrapMode.HORIZONTAL)
        regions = generate_regions(tile_map, 2, RegionDivideMethod.WHOLE_MAP)
        columns = [{tile_map.grid.offset(t)[0] for t in region.tiles} for region in regions]
        assert columns == [{6, 7}, {0, 1}]

    @pytest.mark.parametrize("method", list(RegionDivideMethod))
    def test_empty_map(self, method):
        tile_map = marked(["~~~~"])
        regions = generate_regions(tile_map, 2, method)
        assert len(regions) == 2
        assert all(region.tiles == [] for region in regions)
