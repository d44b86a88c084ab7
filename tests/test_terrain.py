"""Tests for terrain classification."""

import numpy as np
import pytest

from py_hexmap.core.errors import RulesetInconsistency
from py_hexmap.core.random_stream import RandomStream
from py_hexmap.core.terrain import TerrainClassifier
from py_hexmap.core.tile_map import (
    NO_FEATURE,
    BaseTerrain,
    Feature,
    RainfallBand,
    TemperatureBand,
)

from conftest import sketch_map


def banded_map(rows, temperature, rainfall):
    """Sketch a map and give every tile the same climate bands."""
    tile_map = sketch_map(rows)
    tile_map.temperature_band[:] = temperature
    tile_map.rainfall_band[:] = rainfall
    return tile_map


class TestClassifyTile:
    """Test the per-tile classification."""

    @pytest.mark.parametrize(
        "temperature, rainfall, expected",
        [
            (TemperatureBand.FROZEN, RainfallBand.ARID, BaseTerrain.SNOW),
            (TemperatureBand.COLD, RainfallBand.DRY, BaseTerrain.TUNDRA),
            (TemperatureBand.TEMPERATE, RainfallBand.ARID, BaseTerrain.DESERT),
            (TemperatureBand.TEMPERATE, RainfallBand.MODERATE, BaseTerrain.GRASSLAND),
            (TemperatureBand.TROPICAL, RainfallBand.DRY, BaseTerrain.PLAIN),
        ],
    )
    def test_terrain_matrix(self, ruleset, temperature, rainfall, expected):
        tile_map = banded_map(["..."], temperature, rainfall)
        classifier = TerrainClassifier(tile_map, ruleset, RandomStream(1))
        assert classifier.classify_tile(1, 0.999) == (expected, NO_FEATURE)

    def test_forest_on_low_roll(self, ruleset):
        tile_map = banded_map(["..."], TemperatureBand.TEMPERATE, RainfallBand.MODERATE)
        classifier = TerrainClassifier(tile_map, ruleset, RandomStream(1))
        assert classifier.classify_tile(1, 0.1) == (BaseTerrain.GRASSLAND, Feature.FOREST)

    def test_jungle_turns_base_into_plain(self, ruleset):
        tile_map = banded_map(["..."], TemperatureBand.TROPICAL, RainfallBand.WET)
        classifier = TerrainClassifier(tile_map, ruleset, RandomStream(1))
        assert classifier.classify_tile(1, 0.3) == (BaseTerrain.PLAIN, Feature.JUNGLE)

    def test_marsh_needs_water_neighbor(self, ruleset):
        inland = banded_map(["...."] * 4, TemperatureBand.TROPICAL, RainfallBand.WET)
        shore = banded_map(["~..."] * 4, TemperatureBand.TROPICAL, RainfallBand.WET)
        index = inland.grid.index(1, 1)

        _, feature = TerrainClassifier(inland, ruleset, RandomStream(1)).classify_tile(index, 0.1)
        assert feature != Feature.MARSH
        _, feature = TerrainClassifier(shore, ruleset, RandomStream(1)).classify_tile(index, 0.1)
        assert feature == Feature.MARSH

    def test_ice_on_frozen_water(self, ruleset):
        tile_map = banded_map(["~~~"], TemperatureBand.FROZEN, RainfallBand.ARID)
        classifier = TerrainClassifier(tile_map, ruleset, RandomStream(1))
        assert classifier.classify_tile(1, 0.1) == (BaseTerrain.OCEAN, Feature.ICE)
        assert classifier.classify_tile(1, 0.9) == (BaseTerrain.OCEAN, NO_FEATURE)

    def test_water_keeps_base(self, ruleset):
        tile_map = banded_map(["ccl"], TemperatureBand.TROPICAL, RainfallBand.WET)
        classifier = TerrainClassifier(tile_map, ruleset, RandomStream(1))
        assert classifier.classify_tile(0, 0.5) == (BaseTerrain.COAST, NO_FEATURE)
        assert classifier.classify_tile(2, 0.5) == (BaseTerrain.LAKE, NO_FEATURE)


class TestClassify:
    """Test whole-map classification."""

    @pytest.fixture
    def mixed_map(self):
        tile_map = sketch_map(
            [
                "~~~~~~~~",
                "~..hh.~~",
                "~.pMMd.~",
                "~~..h..~",
                "~~~~~~~~",
            ]
        )
        stream = RandomStream(99)
        tile_map.temperature_band[:] = (stream.random_array(tile_map.size) * 4).astype(int)
        tile_map.rainfall_band[:] = (stream.random_array(tile_map.size) * 4).astype(int)
        return tile_map

    def test_order_independent(self, ruleset, mixed_map):
        """Classifying tiles in reverse order gives the same result."""
        rolls = RandomStream(5).random_array(mixed_map.size)
        classifier = TerrainClassifier(mixed_map, ruleset, RandomStream(5))

        forward = [classifier.classify_tile(i, rolls[i]) for i in range(mixed_map.size)]
        backward = [
            classifier.classify_tile(i, rolls[i]) for i in reversed(range(mixed_map.size))
        ]
        assert forward == backward[::-1]

        classifier.classify()
        assert mixed_map.base_terrain.tolist() == [int(base) for base, _ in forward]
        assert mixed_map.feature.tolist() == [int(feature) for _, feature in forward]

    def test_one_roll_per_tile(self, ruleset, mixed_map):
        stream = RandomStream(5)
        TerrainClassifier(mixed_map, ruleset, stream).classify()
        assert stream.call_count == mixed_map.size

    def test_statistics(self, ruleset, mixed_map):
        classifier = TerrainClassifier(mixed_map, ruleset, RandomStream(5))
        classifier.classify()
        statistics = classifier.get_terrain_statistics()
        assert sum(statistics.values()) == mixed_map.size
        assert statistics["Ocean"] == np.count_nonzero(mixed_map.base_terrain == BaseTerrain.OCEAN)


class TestRulesetErrors:
    def test_missing_feature(self, ruleset):
        features = {k: v for k, v in ruleset.features.items() if k != "Oasis"}
        broken = ruleset.model_copy(update={"features": features})
        with pytest.raises(RulesetInconsistency):
            TerrainClassifier(sketch_map(["..."]), broken, RandomStream(1))

    def test_invalid_combination(self, ruleset):
        grassland = ruleset.terrains["Grassland"].model_copy(
            update={"valid_elevations": ["Flatland"]}
        )
        broken = ruleset.model_copy(
            update={"terrains": {**ruleset.terrains, "Grassland": grassland}}
        )
        tile_map = banded_map([".h."], TemperatureBand.TEMPERATE, RainfallBand.MODERATE)
        classifier = TerrainClassifier(tile_map, broken, RandomStream(1))
        with pytest.raises(RulesetInconsistency):
            classifier.classify_tile(1, 0.5)
