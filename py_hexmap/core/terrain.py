"""
Terrain classification based on temperature and rainfall bands.

This module implements:
- Temperature/rainfall matrix classification of land base terrain
- Feature overlays (forest, jungle, marsh, oasis, ice) with ruleset odds

One random roll per tile is drawn up front in index order. After that, each
tile's result depends only on its own prior-stage data and its roll, so
tiles can be classified in any order.
"""

from typing import Dict, Tuple

import numpy as np
import structlog

from ..config.ruleset import FeatureInfo, Ruleset
from .errors import RulesetInconsistency
from .random_stream import RandomStream
from .tile_map import (
    ELEVATION_NAMES,
    FEATURE_NAMES,
    NO_FEATURE,
    RAINFALL_BAND_NAMES,
    TEMPERATURE_BAND_NAMES,
    TERRAIN_BY_NAME,
    TERRAIN_NAMES,
    BaseTerrain,
    Elevation,
    Feature,
    RainfallBand,
    TileMap,
)

logger = structlog.get_logger()

# Overlays tried on land, in order
LAND_FEATURES = (Feature.MARSH, Feature.JUNGLE, Feature.FOREST, Feature.OASIS)
WATER_FEATURES = (Feature.ICE,)


class TerrainClassifier:
    """Assigns base terrain and features to every tile."""

    def __init__(self, tile_map: TileMap, ruleset: Ruleset, random: RandomStream):
        """
        Initialize terrain classifier.

        Args:
            tile_map: Map with elevation and climate bands populated
            ruleset: Feature odds and valid terrain combinations
            random: Stream the per-tile rolls are drawn from
        """
        self.tile_map = tile_map
        self.grid = tile_map.grid
        self.ruleset = ruleset
        self.random = random

        self._init_terrain_matrix()
        self.feature_rules: Dict[Feature, FeatureInfo] = {
            feature: ruleset.feature(FEATURE_NAMES[feature])
            for feature in LAND_FEATURES + WATER_FEATURES
        }
        self._near_water = None

    def _init_terrain_matrix(self):
        """
        Base terrain matrix [temperature band][rainfall band].

        Temperature bands: frozen, cold, temperate, tropical
        Rainfall bands: arid, dry, moderate, wet
        """
        self.terrain_matrix = [
            # Frozen
            [BaseTerrain.SNOW, BaseTerrain.SNOW, BaseTerrain.TUNDRA, BaseTerrain.TUNDRA],
            # Cold
            [BaseTerrain.TUNDRA, BaseTerrain.TUNDRA, BaseTerrain.TUNDRA, BaseTerrain.PLAIN],
            # Temperate
            [BaseTerrain.DESERT, BaseTerrain.PLAIN, BaseTerrain.GRASSLAND, BaseTerrain.GRASSLAND],
            # Tropical
            [BaseTerrain.DESERT, BaseTerrain.PLAIN, BaseTerrain.PLAIN, BaseTerrain.GRASSLAND],
        ]

    def classify(self) -> None:
        """Classify every tile and store base terrain and features on the map."""
        logger.info("Classifying terrain")
        tile_map = self.tile_map
        n_tiles = self.grid.size

        rolls = self.random.random_array(n_tiles)
        self._near_water = np.array(
            [
                any(tile_map.is_water(n) for n in self.grid.neighbors(i))
                for i in range(n_tiles)
            ],
            dtype=bool,
        )

        results = [self.classify_tile(i, rolls[i]) for i in range(n_tiles)]
        tile_map.base_terrain[:] = [base for base, _ in results]
        tile_map.feature[:] = [feature for _, feature in results]

        logger.info(
            "Terrain classification completed",
            terrains=self.get_terrain_statistics(),
            features=int(np.count_nonzero(tile_map.feature)),
        )

    def classify_tile(self, index: int, roll: float) -> Tuple[BaseTerrain, int]:
        """
        Base terrain and feature for one tile.

        Reads only prior-stage data of the tile itself (plus whether it
        touches water), never another tile's classification.
        """
        tile_map = self.tile_map
        elevation = Elevation(int(tile_map.elevation[index]))
        temperature_band = int(tile_map.temperature_band[index])
        rainfall_band = int(tile_map.rainfall_band[index])

        if elevation == Elevation.WATER:
            base = BaseTerrain(int(tile_map.base_terrain[index]))
            candidates = WATER_FEATURES
        else:
            base = self.terrain_matrix[temperature_band][rainfall_band]
            if not self.ruleset.is_valid_combination(
                ELEVATION_NAMES[elevation], TERRAIN_NAMES[base]
            ):
                raise RulesetInconsistency(
                    f"Ruleset does not allow {TERRAIN_NAMES[base]} on "
                    f"{ELEVATION_NAMES[elevation]}"
                )
            candidates = LAND_FEATURES

        cumulative = 0.0
        for feature in candidates:
            chance = self._feature_chance(
                feature, index, elevation, base, temperature_band, rainfall_band
            )
            if chance <= 0:
                continue
            cumulative += chance
            if roll < cumulative:
                turns_into = self.feature_rules[feature].turns_base_into
                if turns_into is not None:
                    base = TERRAIN_BY_NAME[turns_into]
                return base, int(feature)

        return base, NO_FEATURE

    def _feature_chance(
        self,
        feature: Feature,
        index: int,
        elevation: Elevation,
        base: BaseTerrain,
        temperature_band: int,
        rainfall_band: int,
    ) -> float:
        rule = self.feature_rules[feature]
        if ELEVATION_NAMES[elevation] not in rule.occurs_on_elevation:
            return 0.0
        if TERRAIN_NAMES[base] not in rule.occurs_on_base:
            return 0.0
        if rule.temperature_bands and (
            TEMPERATURE_BAND_NAMES[temperature_band] not in rule.temperature_bands
        ):
            return 0.0
        if rule.rainfall_bands and (
            RAINFALL_BAND_NAMES[rainfall_band] not in rule.rainfall_bands
        ):
            return 0.0
        if rule.requires_water_neighbor and not self._touches_water(index):
            return 0.0

        chance = rule.probability
        if rule.wet_bonus and rule.rainfall_bands:
            driest = min(RainfallBand[name.upper()] for name in rule.rainfall_bands)
            chance += rule.wet_bonus * (rainfall_band - driest)
        return chance

    def _touches_water(self, index: int) -> bool:
        if self._near_water is not None:
            return bool(self._near_water[index])
        return any(self.tile_map.is_water(n) for n in self.grid.neighbors(index))

    def get_terrain_statistics(self) -> Dict[str, int]:
        """Tile count per base terrain name."""
        values, counts = np.unique(self.tile_map.base_terrain, return_counts=True)
        return {
            TERRAIN_NAMES[BaseTerrain(int(value))]: int(count)
            for value, count in zip(values, counts)
        }
