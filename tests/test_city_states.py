"""Tests for city-state placement."""

import pytest

from py_hexmap.config.map_parameters import MapParameters, RegionDivideMethod
from py_hexmap.config.ruleset import default_ruleset
from py_hexmap.core.city_states import CityStateOptions, CityStatePlacer, place_city_states
from py_hexmap.core.features import AreaMarkup
from py_hexmap.core.random_stream import RandomStream
from py_hexmap.core.resources import place_resources
from py_hexmap.core.start_positions import place_start_positions

from conftest import sketch_map

# A settled continent on the left and an empty island on the right
TWO_LANDS = (
    ["c" * 24]
    + ["c" + "." * 12 + "ccc" + "." * 6 + "cc"] * 8
    + ["c" * 24]
)


def settled(rows, civilizations=2, city_states=0, seed=1):
    tile_map = sketch_map(rows)
    AreaMarkup(tile_map).markup()
    params = MapParameters(
        civilization_count=civilizations,
        min_start_distance=3,
        region_divide_method=RegionDivideMethod.PANGAEA,
    )
    place_start_positions(tile_map, params, RandomStream(seed))
    place_resources(tile_map, default_ruleset(), RandomStream(seed), 0.1, city_states)
    return tile_map


@pytest.fixture
def two_lands():
    return settled(TWO_LANDS, city_states=4)


class TestAssign:
    """Test how city states are shared out."""

    def test_unsettled_tiles(self, two_lands, ruleset):
        placer = CityStatePlacer(two_lands, ruleset, RandomStream(2))
        unsettled = placer.unsettled_tiles()
        assert len(unsettled) == 6 * 8
        for index in unsettled:
            assert two_lands.is_land(index)
            assert two_lands.region_id[index] == -1

    def test_share_follows_unsettled_land(self, two_lands, ruleset):
        placer = CityStatePlacer(two_lands, ruleset, RandomStream(3))
        unsettled = placer.unsettled_tiles()
        shares = placer.assign(4)

        assert len(shares) == 4
        # 48 of 144 habitable tiles are unsettled: a third of four rounds to one
        assert sum(1 for share in shares if share == unsettled) == 1
        region_tiles = [region.tiles for region in two_lands.regions]
        assert all(share == unsettled or share in region_tiles for share in shares)

    def test_nothing_requested(self, two_lands, ruleset):
        assert CityStatePlacer(two_lands, ruleset, RandomStream(4)).assign(0) == []


class TestPlace:
    """Test city-state sites and their luxuries."""

    def test_sites_keep_their_distance(self, two_lands, ruleset):
        city_states = place_city_states(two_lands, ruleset, RandomStream(5), 4)

        assert city_states
        assert two_lands.city_states == city_states
        settled_tiles = list(two_lands.starting_tiles) + city_states
        for tile in city_states:
            assert two_lands.is_land(tile)
            for other in settled_tiles:
                if other != tile:
                    assert two_lands.grid.distance(tile, other) >= 3

    def test_coast_is_preferred(self, two_lands, ruleset):
        city_states = place_city_states(two_lands, ruleset, RandomStream(6), 4)
        assert all(two_lands.is_coastal_land(tile) for tile in city_states)

    def test_reserved_luxury_nearby(self, two_lands, ruleset):
        roles = two_lands.luxury_roles
        assert roles.city_states
        city_states = place_city_states(two_lands, ruleset, RandomStream(7), 4)

        grid = two_lands.grid
        reserved = set(roles.city_states) | set(roles.random)
        for tile in city_states:
            near = {two_lands.resource[i] for i in grid.tiles_within(tile, 2) if i != tile}
            assert near & reserved

    def test_crowded_map_is_a_shortfall(self, ruleset):
        tile_map = settled(["c" * 5, "c...c", "c" * 5], civilizations=1)
        city_states = place_city_states(
            tile_map, ruleset, RandomStream(8), 2, CityStateOptions(min_distance=3)
        )

        assert city_states == []
        shortfall = tile_map.report.shortfalls_of("city_state")[0]
        assert shortfall.requested == 2
        assert shortfall.placed == 0

    def test_without_luxury_roles(self, ruleset):
        tile_map = sketch_map(TWO_LANDS)
        AreaMarkup(tile_map).markup()
        city_states = place_city_states(tile_map, ruleset, RandomStream(9), 3)
        assert len(city_states) == 3
        assert set(tile_map.resource) == {None}
