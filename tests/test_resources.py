"""Tests for resource placement."""

import pytest

from py_hexmap.config.map_parameters import RegionDivideMethod
from py_hexmap.core.features import AreaMarkup
from py_hexmap.core.random_stream import RandomStream
from py_hexmap.core.regions import generate_regions
from py_hexmap.core.resources import (
    ResourceOptions,
    ResourcePlacer,
    place_resources,
    resource_potential,
)
from py_hexmap.core.tile_map import Feature

from conftest import sketch_map

ISLAND = ["c" * 9] + ["c.......c"] * 5 + ["c" * 9]


def marked(rows):
    tile_map = sketch_map(rows)
    AreaMarkup(tile_map).markup()
    return tile_map


@pytest.fixture
def island():
    return marked(ISLAND)


class TestMatching:
    """Test static terrain rules."""

    def test_feature_rules(self, island, ruleset):
        placer = ResourcePlacer(island, ruleset, RandomStream(1))
        index = island.grid.index(4, 3)

        assert not placer.matches(ruleset.resource("Bananas"), index)
        assert placer.matches(ruleset.resource("Cattle"), index)

        island.feature[index] = Feature.JUNGLE
        assert placer.matches(ruleset.resource("Bananas"), index)
        assert placer.matches(ruleset.resource("Iron"), index)
        assert not placer.matches(ruleset.resource("Cattle"), index)

    def test_latitude_range(self, ruleset):
        tile_map = marked(["p" * 4] * 10)
        tile_map.feature[:] = Feature.FOREST
        placer = ResourcePlacer(tile_map, ruleset, RandomStream(1))
        deer = ruleset.resource("Deer")
        for index in range(tile_map.size):
            expected = tile_map.grid.latitude(index) >= 0.3
            assert placer.matches(deer, index) == expected

    def test_coastal_water_counts_toward_landmass(self, island, ruleset):
        placer = ResourcePlacer(island, ruleset, RandomStream(1))
        landmass = int(island.area_id[island.grid.index(4, 3)])
        assert placer.owner_landmass(island.grid.index(4, 0)) == landmass
        assert placer.owner_landmass(island.grid.index(0, 0)) is None


class TestPlacement:
    """Test quotas and spacing."""

    def test_quota(self, island, ruleset):
        placed = place_resources(island, ruleset, RandomStream(2), 0.2)
        assert placed == round(35 * 0.2)
        assert sum(1 for r in island.resource if r is not None) == placed
        assert island.report.shortfalls_of("resource") == []

    def test_resources_fit_their_tiles(self, island, ruleset):
        place_resources(island, ruleset, RandomStream(3), 0.5)
        placer = ResourcePlacer(island, ruleset, RandomStream(3))
        for index, name in enumerate(island.resource):
            if name is None:
                assert island.resource_quantity[index] == 0
                continue
            info = ruleset.resource(name)
            assert placer.matches(info, index)
            low, high = info.quantity
            assert low <= island.resource_quantity[index] <= high

    def test_no_identical_neighbors(self, island, ruleset):
        place_resources(island, ruleset, RandomStream(4), 1.0)
        for index, name in enumerate(island.resource):
            if name is None:
                continue
            for neighbor in island.grid.neighbors(index):
                assert island.resource[neighbor] != name

    def test_unreachable_quota_is_a_shortfall(self, island, ruleset):
        placed = place_resources(island, ruleset, RandomStream(5), 3.0)
        shortfalls = island.report.shortfalls_of("resource")
        assert len(shortfalls) == 1
        assert shortfalls[0].requested == 105
        assert shortfalls[0].placed == placed < 105

    def test_wonder_tiles_stay_empty(self, island, ruleset):
        wonder = island.grid.index(4, 3)
        island.natural_wonder[wonder] = "Mount Fuji"
        place_resources(island, ruleset, RandomStream(6), 3.0)
        assert island.resource[wonder] is None

    def test_land_outside_regions_pools_by_landmass(self, ruleset):
        tile_map = marked(["cccccccccc", "c..cc....c", "c..cc....c", "cccccccccc"])
        place_resources(tile_map, ruleset, RandomStream(7), 0.5)
        placer = ResourcePlacer(tile_map, ruleset, RandomStream(7))
        landmasses = [area for area in tile_map.areas if area.land]
        assert sorted(area.size for area in landmasses) == [4, 8]
        for area in landmasses:
            owned = [
                i
                for i, name in enumerate(tile_map.resource)
                if name is not None and placer.owner_landmass(i) == area.id
            ]
            assert len(owned) == round(area.size * 0.5)

    def test_no_land_places_nothing(self, ruleset):
        tile_map = marked(["~" * 5] * 3)
        assert place_resources(tile_map, ruleset, RandomStream(8), 0.5) == 0
        assert tile_map.report.shortfalls == []

    def test_same_seed_same_layout(self, ruleset):
        layouts = []
        for _ in range(2):
            tile_map = marked(ISLAND)
            place_resources(tile_map, ruleset, RandomStream(9), 0.3)
            layouts.append((list(tile_map.resource), tile_map.resource_quantity.tolist()))
        assert layouts[0] == layouts[1]

    def test_potential(self, ruleset):
        tile_map = marked(["~cc~", "c.Mc", "~cc~"])
        potential = resource_potential(tile_map, ruleset)
        grid = tile_map.grid
        assert potential[grid.index(1, 1)]
        assert not potential[grid.index(2, 1)]  # no resource occurs on mountains
        assert potential[grid.index(1, 0)]  # fish
        assert not potential[grid.index(0, 0)]  # open ocean


WIDE_ISLAND = ["c" * 12] + ["c" + "." * 10 + "c"] * 6 + ["c" * 12]


@pytest.fixture
def divided():
    """A 60-tile island split into two start regions."""
    tile_map = marked(WIDE_ISLAND)
    generate_regions(tile_map, 2, RegionDivideMethod.CONTINENT)
    return tile_map


def owned_by(tile_map, placer, key):
    return [
        name
        for i, name in enumerate(tile_map.resource)
        if name is not None and placer.owner(i) == key
    ]


class TestRegionQuotas:
    """Test quotas and typed passes per start region."""

    def test_every_tile_has_a_region_pool(self, divided, ruleset):
        placer = ResourcePlacer(divided, ruleset, RandomStream(1))
        for index in range(divided.size):
            if divided.is_land(index):
                assert placer.owner(index) == ("region", int(divided.region_id[index]))

    def test_quota_per_region(self, divided, ruleset):
        place_resources(divided, ruleset, RandomStream(10), 0.2)
        placer = ResourcePlacer(divided, ruleset, RandomStream(10))
        assert sum(len(region.tiles) for region in divided.regions) == 60
        for region in divided.regions:
            owned = owned_by(divided, placer, ("region", region.id))
            assert len(owned) == round(len(region.tiles) * 0.2)
        assert divided.report.shortfalls_of("resource") == []

    def test_shortfall_names_the_region(self, divided, ruleset):
        place_resources(divided, ruleset, RandomStream(11), 3.0)
        shortfalls = divided.report.shortfalls_of("resource")
        assert sorted(s.name for s in shortfalls) == ["region 0", "region 1"]
        for shortfall in shortfalls:
            region = divided.regions[int(shortfall.name.split()[1])]
            assert shortfall.requested == round(len(region.tiles) * 3.0)

    def test_typed_passes(self, divided, ruleset):
        options = ResourceOptions()
        place_resources(divided, ruleset, RandomStream(12), 0.2, options=options)
        placer = ResourcePlacer(divided, ruleset, RandomStream(12))
        for region in divided.regions:
            quota = round(len(region.tiles) * 0.2)
            luxury = round(quota * options.luxury_share)
            strategic = min(round(quota * options.strategic_share), quota - luxury)
            types = [
                ruleset.resource(name).resource_type
                for name in owned_by(divided, placer, ("region", region.id))
            ]
            assert types.count("luxury") == luxury
            assert types.count("strategic") == strategic
            assert types.count("bonus") == quota - luxury - strategic


class TestLuxuryRoles:
    """Test who each luxury is handed to."""

    def test_each_region_gets_its_own_luxury(self, divided, ruleset):
        placer = ResourcePlacer(divided, ruleset, RandomStream(20))
        pools = placer.pools()
        roles = placer.assign_luxury_roles(pools, city_states=2)

        assert sorted(roles.regions) == [0, 1]
        assert len(set(roles.regions.values())) == 2
        for region in divided.regions:
            assert region.luxury == roles.regions[region.id]
            assert pools[("region", region.id)].candidates[region.luxury]
        assert divided.luxury_roles is roles

    def test_roles_partition_the_luxuries(self, divided, ruleset):
        placer = ResourcePlacer(divided, ruleset, RandomStream(21))
        roles = placer.assign_luxury_roles(placer.pools(), city_states=4)

        luxuries = [r.name for r in placer.of_type("luxury")]
        groups = [list(roles.regions.values()), roles.city_states, roles.random, roles.disabled]
        assert sorted(name for group in groups for name in group) == sorted(luxuries)
        assert len(roles.city_states) == 3
        assert roles.disabled == []

    def test_no_city_states_reserves_nothing(self, divided, ruleset):
        placer = ResourcePlacer(divided, ruleset, RandomStream(22))
        roles = placer.assign_luxury_roles(placer.pools())
        assert roles.city_states == []
        assert len(roles.random) == len(placer.of_type("luxury")) - 2

    def test_disabled_share(self, divided, ruleset):
        options = ResourceOptions(disabled_luxury_share=0.5)
        placer = ResourcePlacer(divided, ruleset, RandomStream(23), options)
        roles = placer.assign_luxury_roles(placer.pools())
        # Seven luxuries, two taken by regions, half of the rest rounded down
        assert len(roles.disabled) == 2
        assert len(roles.random) == 3

    def test_sharing_cap(self, ruleset):
        # Inland grassland: only gold and gems fit, and only gems likes grassland
        tile_map = marked(["." * 10] * 6)
        generate_regions(tile_map, 8, RegionDivideMethod.CONTINENT)
        options = ResourceOptions(max_region_luxuries=2, max_regions_per_luxury=4)
        placer = ResourcePlacer(tile_map, ruleset, RandomStream(24), options)
        roles = placer.assign_luxury_roles(placer.pools())

        assert len(roles.regions) == 8
        assert roles.region_count("Gems") == 4
        assert roles.region_count("Gold") == 4

    def test_placed_luxuries_follow_roles(self, divided, ruleset):
        place_resources(divided, ruleset, RandomStream(25), 0.5, city_states=3)
        roles = divided.luxury_roles
        allowed = set(roles.regions.values()) | set(roles.random)
        for name in divided.resource:
            if name is not None and ruleset.resource(name).resource_type == "luxury":
                assert name in allowed
        assert not set(roles.city_states) & set(divided.resource)

    def test_place_near(self, island, ruleset):
        placer = ResourcePlacer(island, ruleset, RandomStream(26))
        center = island.grid.index(4, 3)
        cattle = ruleset.resource("Cattle")
        index = placer.place_near(cattle, center, 1)
        assert index in island.grid.neighbors(center)
        assert island.resource[index] == "Cattle"
        assert placer.place_near(ruleset.resource("Fish"), center, 1) is None
