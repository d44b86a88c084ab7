"""
Landmass shaping.

Turns fractal fields into a land/water layout and an elevation class per
tile.

This module handles:
- Threshold search hitting a target land fraction
- The continents field (fractal with plate ridges)
- The pangaea radial falloff
- Hill and mountain refinement on land
"""

from typing import Optional

import numpy as np
import structlog

from ..config.map_parameters import MapParameters, SeaLevel, WorldAge
from .fractal import FractalField, FractalFlags, values_at_percents
from .random_stream import RandomStream
from .tile_map import BaseTerrain, Elevation, TileMap

logger = structlog.get_logger()

LAND_TOLERANCE = 0.005
MAX_THRESHOLD_ITERATIONS = 40
CONTINENT_GRAIN = 2

PLATE_ADJUSTMENT = {
    WorldAge.OLD: 0.75,
    WorldAge.NORMAL: 1.0,
    WorldAge.YOUNG: 1.5,
}

# Pangaea ellipse and falloff shape
PANGAEA_AXIS_RATIO = 0.6
PANGAEA_CENTER_BOOST = 1.25
PANGAEA_FALLOFF_SLOPE = 0.5
PANGAEA_MIN_FACTOR = 0.25


def find_threshold(
    values: np.ndarray,
    target_fraction: float,
    tolerance: float = LAND_TOLERANCE,
    max_iterations: int = MAX_THRESHOLD_ITERATIONS,
) -> float:
    """
    Bisect for the value above which `target_fraction` of `values` lie.

    Field distributions vary by seed, so a fixed cut-off can't hit a land
    percentage reliably. Returns the best threshold found even if the
    tolerance is never met (heavily tied values).
    """
    values = np.asarray(values, dtype=np.float64)
    if values.size == 0:
        return 0.0

    low = float(values.min()) - 1.0
    high = float(values.max())
    best, best_error = high, float("inf")

    for _ in range(max_iterations):
        middle = (low + high) / 2.0
        fraction = np.count_nonzero(values > middle) / values.size
        error = abs(fraction - target_fraction)
        if error < best_error:
            best, best_error = middle, error
        if error <= tolerance:
            break
        if fraction > target_fraction:
            low = middle
        else:
            high = middle

    return best


def resolve_land_percent(params: MapParameters, random: RandomStream) -> float:
    """Target land percentage; a random sea level draws from the stream."""
    if params.land_percent is not None:
        return float(params.land_percent)
    sea_level = params.sea_level
    if sea_level is SeaLevel.RANDOM:
        sea_level = random.choice([SeaLevel.LOW, SeaLevel.NORMAL, SeaLevel.HIGH])
    return params.default_land_percent(sea_level)


def continents_field(
    tile_map: TileMap, params: MapParameters, random: RandomStream
) -> np.ndarray:
    """
    Continents fractal with plate ridges, sampled per tile.

    Borders of unwrapped axes are pulled to zero so land keeps off the map
    edge there.
    """
    grid = tile_map.grid
    fractal = FractalField.create(
        random,
        grid.width,
        grid.height,
        CONTINENT_GRAIN,
        wrap_x=grid.wrap_x,
        wrap_y=grid.wrap_y,
        flags=FractalFlags.POLAR,
    )
    fractal.ridge_builder(random, params.preset.continent_plates, 1, 2)
    return fractal.sample_map()


def pangaea_falloff(width: int, height: int) -> np.ndarray:
    """
    Multiplier per tile that favors an ellipse around the map center.

    Computed from offset coordinates only, so it is the same for both
    orientations.
    """
    xs = np.tile(np.arange(width, dtype=np.float64), height)
    ys = np.repeat(np.arange(height, dtype=np.float64), width)

    axis_x = max(width / 2.0 * PANGAEA_AXIS_RATIO, 1.0)
    axis_y = max(height / 2.0 * PANGAEA_AXIS_RATIO, 1.0)
    distance = np.sqrt(
        ((xs - (width - 1) / 2.0) / axis_x) ** 2
        + ((ys - (height - 1) / 2.0) / axis_y) ** 2
    )
    return np.clip(
        PANGAEA_CENTER_BOOST - PANGAEA_FALLOFF_SLOPE * distance,
        PANGAEA_MIN_FACTOR,
        PANGAEA_CENTER_BOOST,
    )


def shape_landmass(tile_map: TileMap, field: np.ndarray, land_percent: float) -> float:
    """
    Split the map into land and water so land covers `land_percent`.

    Land starts as grassland flatland; later stages refine elevation and
    classify terrain. Returns the achieved land fraction.
    """
    threshold = find_threshold(field, land_percent / 100.0)
    land = field > threshold

    tile_map.height[:] = field
    tile_map.elevation[:] = np.where(land, Elevation.FLATLAND, Elevation.WATER)
    tile_map.base_terrain[:] = np.where(land, BaseTerrain.GRASSLAND, BaseTerrain.OCEAN)

    achieved = tile_map.land_fraction()
    tile_map.report.target_land_fraction = land_percent / 100.0
    tile_map.report.achieved_land_fraction = achieved

    logger.info(
        "Landmass shaped",
        target_percent=land_percent,
        achieved_percent=round(achieved * 100, 2),
        threshold=round(threshold, 3),
    )
    return achieved


def refine_elevation(
    tile_map: TileMap,
    params: MapParameters,
    random: RandomStream,
    mountains_field: Optional[np.ndarray] = None,
    hills_field: Optional[np.ndarray] = None,
    mountain_grain: Optional[int] = None,
) -> None:
    """
    Raise land tiles into hills and mountains.

    Mountains follow the ridges of a plate fractal; hills take bands of a
    second fractal plus the flanks of mountain ridges. Percentiles are taken
    over land tiles only, so water is never touched.

    `mountain_grain` overrides the world-size grain for the mountain fractal.
    """
    grid = tile_map.grid
    preset = params.preset
    adjustment = params.world_age_adjustment
    num_plates = int(preset.num_plates * PLATE_ADJUSTMENT[params.world_age])

    if mountains_field is None:
        grain = preset.grain if mountain_grain is None else mountain_grain
        mountains = FractalField.create(
            random, grid.width, grid.height, grain, grid.wrap_x, grid.wrap_y
        )
        mountains.ridge_builder(random, num_plates * 2 // 3, 6, 1)
        mountains_field = mountains.sample_map()
    if hills_field is None:
        hills = FractalField.create(
            random, grid.width, grid.height, preset.grain, grid.wrap_x, grid.wrap_y
        )
        hills.ridge_builder(random, num_plates, 1, 2)
        hills_field = hills.sample_map()

    land = tile_map.land_mask()
    if not land.any():
        return

    pass_threshold, hills_bottom1, hills_top1, hills_bottom2, hills_top2 = (
        values_at_percents(
            hills_field[land],
            [
                91 - adjustment * 2,
                28 - adjustment,
                28 + adjustment,
                72 - adjustment,
                72 + adjustment,
            ],
        )
    )
    mountain_threshold, hills_near_mountains = values_at_percents(
        mountains_field[land], [97 - adjustment, 91 - adjustment * 2]
    )

    in_hill_band = (
        (hills_field >= hills_bottom1) & (hills_field <= hills_top1)
    ) | ((hills_field >= hills_bottom2) & (hills_field <= hills_top2))
    on_ridge = mountains_field >= mountain_threshold

    elevation = np.full(grid.size, Elevation.FLATLAND, dtype=np.uint8)
    elevation[in_hill_band | (mountains_field >= hills_near_mountains)] = Elevation.HILL
    elevation[on_ridge] = np.where(
        hills_field[on_ridge] >= pass_threshold, Elevation.HILL, Elevation.MOUNTAIN
    )

    tile_map.elevation[land] = elevation[land]

    logger.info(
        "Elevation refined",
        hills=int(np.count_nonzero(tile_map.elevation == Elevation.HILL)),
        mountains=int(np.count_nonzero(tile_map.elevation == Elevation.MOUNTAIN)),
    )
