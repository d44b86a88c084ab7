"""
Climate calculation system for temperature and rainfall.

This module implements:
- Latitude-based temperature with a fractal wobble
- Elevation temperature drop
- Prevailing winds carrying humidity along each row
- Orographic rain and rain shadows behind mountains
- Quantization into temperature and rainfall bands
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
import structlog

from ..config.map_parameters import MapParameters, Rainfall, Temperature
from .fractal import FractalField, values_at_percents
from .random_stream import RandomStream
from .tile_map import Elevation, TileMap

logger = structlog.get_logger()

VARIATION_GRAIN = 3


@dataclass
class ClimateOptions:
    """Climate calculation options."""

    # Temperature settings
    temperature_equator: float = 30.0  # °C at the equator
    temperature_pole: float = -20.0  # °C at the poles
    temperature_shift: float = 0.0  # °C added everywhere
    latitude_variation: float = 0.1  # max latitude wobble from the variation fractal
    elevation_drop: Tuple[float, ...] = (0.0, 0.0, 4.0, 10.0)  # °C by elevation class

    # Temperature band edges: frozen | cold | temperate | tropical
    temperature_band_edges: Tuple[float, float, float] = (-7.0, 2.0, 20.0)

    # Wind system: step along the row per latitude tier (equator to pole)
    # -1 blows east to west (trade winds, polar easterlies), +1 west to east
    wind_tiers: List[int] = field(default_factory=lambda: [-1, 1, -1])

    # Precipitation settings
    precipitation_modifier: float = 1.0
    base_precipitation: float = 120.0
    water_humidity_gain: float = 5.0
    water_precipitation: float = 5.0
    precipitation_base_divisor: float = 10.0
    orographic_rain: float = 6.0  # extra rain per elevation class climbed
    coastal_precip_range: Tuple[int, int] = (10, 21)
    evaporation_threshold: float = 1.5
    permafrost_threshold: float = -10.0

    # Precipitation modifiers by latitude band (tenths, equator to pole)
    latitude_precipitation_modifiers: List[float] = field(
        default_factory=lambda: [4.0, 2.0, 1.0, 1.5, 2.0, 2.5, 3.0, 2.0, 1.0, 0.5]
    )

    # Rainfall band edges as land percentiles: arid | dry | moderate | wet
    rainfall_band_percents: Tuple[float, float, float] = (15.0, 40.0, 75.0)

    @classmethod
    def from_parameters(cls, params: MapParameters) -> "ClimateOptions":
        """Options with the map's temperature and rainfall settings applied."""
        shift = {Temperature.COOL: -4.0, Temperature.NORMAL: 0.0, Temperature.HOT: 4.0}
        percent_shift = {Rainfall.ARID: 10.0, Rainfall.NORMAL: 0.0, Rainfall.WET: -10.0}
        offset = percent_shift[params.rainfall]
        return cls(
            temperature_shift=shift[params.temperature],
            rainfall_band_percents=tuple(
                min(max(p + offset, 0.0), 100.0) for p in (15.0, 40.0, 75.0)
            ),
        )


class Climate:
    """Handles temperature and rainfall calculations."""

    def __init__(
        self,
        tile_map: TileMap,
        random: RandomStream,
        options: Optional[ClimateOptions] = None,
    ):
        """
        Initialize climate calculator.

        Args:
            tile_map: Map with land/water and elevation classes set
            random: Stream used for the variation fractal and coastal rain
            options: Climate calculation options
        """
        self.tile_map = tile_map
        self.grid = tile_map.grid
        self.random = random
        self.options = options or ClimateOptions()

        self.temperatures = None
        self.rainfall = None

    def calculate_temperatures(self, variation: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Temperature per tile from latitude and elevation class.

        Every tile is computed independently of the others.
        """
        logger.info("Calculating temperatures")
        options = self.options
        grid = self.grid

        if variation is None:
            fractal = FractalField.create(
                self.random,
                grid.width,
                grid.height,
                VARIATION_GRAIN,
                grid.wrap_x,
                grid.wrap_y,
            )
            variation = fractal.sample_map()

        latitude = grid.latitudes() + (128.0 - variation) / 128.0 * options.latitude_variation
        latitude = np.clip(latitude, 0.0, 1.0)

        sea_level = options.temperature_equator - (
            options.temperature_equator - options.temperature_pole
        ) * latitude
        drop = np.asarray(options.elevation_drop)[self.tile_map.elevation]
        self.temperatures = sea_level - drop + options.temperature_shift

        self.tile_map.temperature[:] = self.temperatures
        self.tile_map.temperature_band[:] = np.digitize(
            self.temperatures, options.temperature_band_edges
        )
        return self.temperatures

    def generate_precipitation(self) -> np.ndarray:
        """
        Rainfall per tile from prevailing winds.

        Each row is swept independently in its wind direction. Humidity
        builds over water and falls over land; climbing terrain adds
        orographic rain and a mountain wrings the air dry, leaving a rain
        shadow behind it.
        """
        logger.info("Generating precipitation")
        if self.temperatures is None:
            self.calculate_temperatures()

        grid = self.grid
        self.rainfall = np.zeros(grid.size, dtype=np.float64)
        modifiers = self.options.latitude_precipitation_modifiers
        tiers = self.options.wind_tiers

        for y in range(grid.height):
            row_start = y * grid.width
            latitude = grid.latitude(row_start)

            band = min(int(latitude * len(modifiers)), len(modifiers) - 1)
            max_prec = (
                self.options.base_precipitation
                * self.options.precipitation_modifier
                * modifiers[band]
                / max(modifiers)
            )

            tier = min(int(latitude * len(tiers)), len(tiers) - 1)
            self._pass_wind(y, tiers[tier], max_prec)

        self.tile_map.rainfall[:] = self.rainfall
        self._assign_rainfall_bands()
        return self.rainfall

    def _row_order(self, y: int, step: int) -> List[int]:
        """Tiles of a row in the order the wind visits them."""
        row = [self.grid.index(x, y) for x in range(self.grid.width)]
        if step < 0:
            row.reverse()
        if self.grid.wrap_x:
            # A wrapped row has no edge; start where the air comes off the sea
            water = [i for i, index in enumerate(row) if self.tile_map.is_water(index)]
            if water:
                row = row[water[0]:] + row[: water[0]]
        return row

    def _pass_wind(self, y: int, step: int, max_prec: float) -> None:
        """Simulate wind crossing one row, depositing rainfall."""
        options = self.options
        tile_map = self.tile_map
        elevation = tile_map.elevation
        row = self._row_order(y, step)
        humidity = max_prec

        for position, current in enumerate(row):
            if position + 1 < len(row):
                next_tile = row[position + 1]
            elif self.grid.wrap_x:
                next_tile = row[0]
            else:
                next_tile = None

            if self.temperatures[current] < options.permafrost_threshold:
                continue

            if tile_map.is_water(current):
                if next_tile is not None and tile_map.is_land(next_tile):
                    self.rainfall[next_tile] += max(
                        humidity / self.random.randrange(*options.coastal_precip_range), 1
                    )
                else:
                    humidity = min(
                        humidity
                        + options.water_humidity_gain * options.precipitation_modifier,
                        max_prec,
                    )
                    self.rainfall[current] += (
                        options.water_precipitation * options.precipitation_modifier
                    )
                continue

            if next_tile is None:
                # Map edge: the remaining humidity falls here
                self.rainfall[current] += humidity
                humidity = 0.0
                continue

            if elevation[next_tile] == Elevation.MOUNTAIN:
                # Air can't cross; everything falls on the windward side
                self.rainfall[current] += humidity
                humidity = 0.0
                continue

            precipitation = self._get_precipitation(humidity, current, next_tile)
            self.rainfall[current] += precipitation
            evaporation = 1 if precipitation > options.evaporation_threshold else 0
            humidity = max(0.0, humidity - precipitation + evaporation)

    def _get_precipitation(self, humidity: float, current: int, next_tile: int) -> float:
        """Normal rain loss plus orographic rain when the next tile is higher."""
        normal_loss = max(
            humidity
            / (self.options.precipitation_base_divisor * self.options.precipitation_modifier),
            1,
        )
        climb = max(
            int(self.tile_map.elevation[next_tile]) - int(self.tile_map.elevation[current]), 0
        )
        orographic = climb * self.options.orographic_rain
        return min(normal_loss + orographic, humidity)

    def _assign_rainfall_bands(self) -> None:
        """Quantize rainfall by land percentiles so every map uses all bands."""
        land = self.tile_map.land_mask()
        values = self.rainfall[land] if land.any() else self.rainfall
        edges = values_at_percents(values, self.options.rainfall_band_percents)
        self.tile_map.rainfall_band[:] = np.digitize(self.rainfall, edges, right=True)
