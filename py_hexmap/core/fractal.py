"""
Fractal height fields.

A diamond-square style generator on a 2^w x 2^h lattice (values 0..255),
sampled bilinearly onto the tile map. Used for continents, mountain and hill
ridges, and climate variation.

This module handles:
- Coarse random seeding controlled by the grain (roughness) parameter
- Recursive interpolation with halving perturbation per pass
- Seamless edges on wrapped axes
- Voronoi ridge blending (plate boundaries)
- Percentile lookups used for thresholding

The lattice always uses flat-top odd-column geometry, whatever orientation
the map itself uses, so a given seed yields the same field for both
orientations.
"""

import math
from dataclasses import dataclass
from enum import IntFlag
from typing import List, Sequence

import numpy as np
import structlog

from .errors import ConfigurationError
from .random_stream import RandomStream

logger = structlog.get_logger()

SQRT3 = math.sqrt(3.0)

# Flat-top axial edge vectors in lattice pixel space
_EDGE_DELTAS = ((1, 0), (1, -1), (0, -1), (-1, 0), (-1, 1), (0, 1))
_EDGE_VECTORS = np.array(
    [(1.5 * dq, SQRT3 * (dr + dq / 2.0)) for dq, dr in _EDGE_DELTAS], dtype=np.float64
)

MIN_SEED_SPACING = 7
MAX_SEED_ATTEMPTS = 100


class FractalFlags(IntFlag):
    NONE = 0
    POLAR = 1  # zero the borders of non-wrapped axes
    PERCENT = 2  # get_height returns 0..99 instead of 0..255
    INVERT_HEIGHTS = 4


@dataclass
class PlateSeed:
    """A Voronoi seed used by the ridge builder."""

    x: int
    y: int
    weakness: int
    bias_edge: int
    bias_strength: int


def _lattice_hex(x, y):
    """Flat-top odd-q offset to axial; works on ints and numpy arrays."""
    return x, y - (x - (x & 1)) // 2


def values_at_percents(values: np.ndarray, percents: Sequence[float]) -> List[float]:
    """Value found at each percentile of the sorted values."""
    ordered = np.sort(np.asarray(values).ravel())
    if ordered.size == 0:
        return [0.0 for _ in percents]
    last = ordered.size - 1
    result = []
    for percent in percents:
        percent = min(max(percent, 0), 100)
        result.append(float(ordered[int(last * percent // 100)]))
    return result


class FractalField:
    """A fractal lattice sampled at map resolution."""

    DEFAULT_WIDTH_EXP = 7
    DEFAULT_HEIGHT_EXP = 6

    def __init__(
        self,
        map_width: int,
        map_height: int,
        wrap_x: bool = False,
        wrap_y: bool = False,
        flags: FractalFlags = FractalFlags.NONE,
        width_exp: int = DEFAULT_WIDTH_EXP,
        height_exp: int = DEFAULT_HEIGHT_EXP,
    ):
        self.map_width = map_width
        self.map_height = map_height
        self.wrap_x = wrap_x
        self.wrap_y = wrap_y
        self.flags = FractalFlags(flags)
        self.width_exp = width_exp
        self.height_exp = height_exp
        self.fractal_width = 1 << width_exp
        self.fractal_height = 1 << height_exp
        # One extra row and column; on wrapped axes they mirror row/column 0
        self.array = np.zeros(
            (self.fractal_width + 1, self.fractal_height + 1), dtype=np.int64
        )

    @classmethod
    def create(
        cls,
        random: RandomStream,
        map_width: int,
        map_height: int,
        grain: int,
        wrap_x: bool = False,
        wrap_y: bool = False,
        flags: FractalFlags = FractalFlags.NONE,
        width_exp: int = DEFAULT_WIDTH_EXP,
        height_exp: int = DEFAULT_HEIGHT_EXP,
    ) -> "FractalField":
        """Build a field; smaller grain gives bigger, smoother blobs."""
        field = cls(map_width, map_height, wrap_x, wrap_y, flags, width_exp, height_exp)

        min_exp = min(width_exp, height_exp)
        if not max(min_exp - 7, 0) <= grain <= min_exp:
            raise ConfigurationError(
                f"Fractal grain must be in [{max(min_exp - 7, 0)}, {min_exp}], got {grain}"
            )

        field._diamond_square(random, grain)
        return field

    def _copy_wrapped_edges(self) -> None:
        fw, fh = self.fractal_width, self.fractal_height
        if self.wrap_y:
            self.array[:, fh] = self.array[:, 0]
        if self.wrap_x:
            self.array[fw, :] = self.array[0, :]

    def _diamond_square(self, random: RandomStream, grain: int) -> None:
        fw, fh = self.fractal_width, self.fractal_height
        array = self.array
        smooth = min(self.width_exp, self.height_exp) - grain

        # Seed the coarse vertices; on wrapped axes the last vertex is a copy of the first
        hint_width = (fw >> smooth) + (0 if self.wrap_x else 1)
        hint_height = (fh >> smooth) + (0 if self.wrap_y else 1)
        for x in range(hint_width):
            for y in range(hint_height):
                array[x << smooth, y << smooth] = random.randrange(0, 256)

        for pass_ in range(smooth - 1, -1, -1):
            if self.wrap_y:
                array[:, fh] = array[:, 0]
            elif self.flags & FractalFlags.POLAR:
                array[:, 0] = 0
                array[:, fh] = 0

            if self.wrap_x:
                array[fw, :] = array[0, :]
            elif self.flags & FractalFlags.POLAR:
                array[0, :] = 0
                array[fw, :] = 0

            screen = (1 << (pass_ + 1)) - 1
            randness = 1 << (7 - smooth + pass_)
            x_count = (fw >> pass_) + (0 if self.wrap_x else 1)
            y_count = (fh >> pass_) + (0 if self.wrap_y else 1)

            for x in range(x_count):
                x_odd = (x << pass_) & screen != 0
                for y in range(y_count):
                    y_odd = (y << pass_) & screen != 0
                    if x_odd and y_odd:
                        total = (
                            array[(x - 1) << pass_, (y - 1) << pass_]
                            + array[(x + 1) << pass_, (y - 1) << pass_]
                            + array[(x - 1) << pass_, (y + 1) << pass_]
                            + array[(x + 1) << pass_, (y + 1) << pass_]
                        ) >> 2
                    elif x_odd:
                        total = (
                            array[(x - 1) << pass_, y << pass_]
                            + array[(x + 1) << pass_, y << pass_]
                        ) >> 1
                    elif y_odd:
                        total = (
                            array[x << pass_, (y - 1) << pass_]
                            + array[x << pass_, (y + 1) << pass_]
                        ) >> 1
                    else:
                        # Set by an earlier pass
                        continue

                    total += random.randrange(-randness, randness)
                    array[x << pass_, y << pass_] = min(max(int(total), 0), 255)

        self._copy_wrapped_edges()

        if self.flags & FractalFlags.INVERT_HEIGHTS:
            self.array = 255 - self.array

    def _lattice_distance(self, ax: int, ay: int, bx: int, by: int) -> int:
        aq, ar = _lattice_hex(ax, ay)
        xs = [bx, bx - self.fractal_width, bx + self.fractal_width] if self.wrap_x else [bx]
        ys = [by, by - self.fractal_height, by + self.fractal_height] if self.wrap_y else [by]
        best = None
        for x in xs:
            for y in ys:
                bq, br = _lattice_hex(x, y)
                dq, dr = bq - aq, br - ar
                distance = (abs(dq) + abs(dr) + abs(dq + dr)) // 2
                if best is None or distance < best:
                    best = distance
        return best

    def _random_seed(self, random: RandomStream) -> PlateSeed:
        return PlateSeed(
            x=random.randrange(0, self.fractal_width),
            y=random.randrange(0, self.fractal_height),
            weakness=random.randrange(0, 6),
            bias_edge=random.randrange(0, 6),
            bias_strength=random.randrange(0, 4),
        )

    def _plate_seeds(self, random: RandomStream, count: int) -> List[PlateSeed]:
        seeds: List[PlateSeed] = []
        for _ in range(max(count, 3)):
            for _ in range(MAX_SEED_ATTEMPTS):
                seed = self._random_seed(random)
                if all(
                    self._lattice_distance(seed.x, seed.y, other.x, other.y)
                    >= MIN_SEED_SPACING
                    for other in seeds
                ):
                    break
            seeds.append(seed)
        return seeds

    def ridge_builder(
        self,
        random: RandomStream,
        num_seeds: int,
        blend_ridge: int,
        blend_fract: int,
    ) -> None:
        """
        Blend in ridges along the boundaries of Voronoi plates.

        Each lattice cell gets 255 * closest / next_closest (modified seed
        distances), which peaks where two plates meet.
        """
        fw, fh = self.fractal_width, self.fractal_height
        seeds = self._plate_seeds(random, num_seeds)

        xs, ys = np.meshgrid(np.arange(fw), np.arange(fh), indexing="ij")
        cell_q, cell_r = _lattice_hex(xs, ys)

        closest = np.full((fw, fh), np.iinfo(np.int64).max, dtype=np.int64)
        next_closest = closest.copy()

        for seed in seeds:
            seed_xs = [seed.x, seed.x - fw, seed.x + fw] if self.wrap_x else [seed.x]
            seed_ys = [seed.y, seed.y - fh, seed.y + fh] if self.wrap_y else [seed.y]

            distance = None
            for sx in seed_xs:
                for sy in seed_ys:
                    sq, sr = _lattice_hex(sx, sy)
                    dq = sq - cell_q
                    dr = sr - cell_r
                    image_distance = (np.abs(dq) + np.abs(dr) + np.abs(dq + dr)) // 2
                    if distance is None:
                        distance, best_dq, best_dr = image_distance, dq, dr
                    else:
                        nearer = image_distance < distance
                        distance = np.where(nearer, image_distance, distance)
                        best_dq = np.where(nearer, dq, best_dq)
                        best_dr = np.where(nearer, dr, best_dr)

            # Edge of each cell that points toward the seed
            px = 1.5 * best_dq
            py = SQRT3 * (best_dr + best_dq / 2.0)
            scores = (
                _EDGE_VECTORS[:, 0, None, None] * px[None]
                + _EDGE_VECTORS[:, 1, None, None] * py[None]
            )
            direction = np.argmax(scores, axis=0)
            direction = np.where((best_dq == 0) & (best_dr == 0), -1, direction)

            modified = distance + seed.weakness
            modified = np.where(
                direction == seed.bias_edge, modified - seed.bias_strength, modified
            )
            modified = np.where(
                direction == (seed.bias_edge + 3) % 6,
                modified + seed.bias_strength,
                modified,
            )
            modified = np.maximum(modified, 1)

            next_closest = np.where(
                modified < closest, closest, np.minimum(next_closest, modified)
            )
            closest = np.minimum(closest, modified)

        ridge = (255 * closest) // next_closest
        self.array[:fw, :fh] = (
            ridge * blend_ridge + self.array[:fw, :fh] * blend_fract
        ) // max(blend_ridge + blend_fract, 1)
        self._copy_wrapped_edges()

        logger.debug("Ridges blended", plates=len(seeds))

    def sample_map(self) -> np.ndarray:
        """
        Bilinear sample at every map tile, in tile index order.

        Returns floats in [0, 255]; `get_height` truncates the same value.
        """
        fw, fh = self.fractal_width, self.fractal_height
        src_x = (np.arange(self.map_width) + 0.5) * (fw / self.map_width) - 0.5
        src_y = (np.arange(self.map_height) + 0.5) * (fh / self.map_height) - 0.5

        x_diff = (src_x - np.floor(src_x))[:, None]
        y_diff = (src_y - np.floor(src_y))[None, :]
        ix = np.minimum(np.maximum(src_x.astype(np.int64), 0), fw - 1)[:, None]
        iy = np.minimum(np.maximum(src_y.astype(np.int64), 0), fh - 1)[None, :]

        array = self.array
        value = (
            (1.0 - x_diff) * (1.0 - y_diff) * array[ix, iy]
            + x_diff * (1.0 - y_diff) * array[ix + 1, iy]
            + (1.0 - x_diff) * y_diff * array[ix, iy + 1]
            + x_diff * y_diff * array[ix + 1, iy + 1]
        )
        value = np.clip(value, 0.0, 255.0)

        # (map_width, map_height) -> index x + y * width
        return value.T.reshape(-1)

    def heights(self) -> np.ndarray:
        """Integer heights for every tile, honoring the percent flag."""
        heights = self.sample_map().astype(np.int64)
        if self.flags & FractalFlags.PERCENT:
            heights = (heights * 100) >> 8
        return heights

    def get_height(self, x: int, y: int) -> int:
        return int(self.heights()[x + y * self.map_width])

    def get_height_from_percents(self, percents: Sequence[float]) -> List[int]:
        """Lattice values at the given percentiles (extra row/column excluded)."""
        inner = self.array[: self.fractal_width, : self.fractal_height]
        return [int(v) for v in values_at_percents(inner, percents)]
