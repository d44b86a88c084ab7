"""
Hex grid geometry.

Tiles are stored in offset coordinates (x, y) using the odd-offset layout:
pointy-top grids shift odd rows, flat-top grids shift odd columns. All
geometry (neighbors, distance, rings) is computed in axial coordinates
(q, r).

This module handles:
- Flat-top and pointy-top orientation
- Horizontal wrap, or wrap on both axes
- Neighbor tables, ring and spiral iteration
- Latitude and direction estimates
"""

import math
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Iterator, List, Optional, Tuple

import numpy as np

from .errors import ConfigurationError

SQRT3 = math.sqrt(3.0)
EDGE_COUNT = 6


class Orientation(str, Enum):
    """Which way the hexes point."""

    FLAT = "flat"
    POINTY = "pointy"


class WrapMode(str, Enum):
    """Which axes wrap around."""

    NONE = "none"
    HORIZONTAL = "horizontal"
    BOTH = "both"


class Direction(IntEnum):
    NORTH = 0
    NORTH_EAST = 1
    EAST = 2
    SOUTH_EAST = 3
    SOUTH = 4
    SOUTH_WEST = 5
    WEST = 6
    NORTH_WEST = 7


# Axial deltas indexed by edge number. Edge i and edge (i + 3) % 6 are opposite.
HEX_DIRECTIONS: Tuple[Tuple[int, int], ...] = (
    (1, 0),
    (1, -1),
    (0, -1),
    (-1, 0),
    (-1, 1),
    (0, 1),
)

POINTY_EDGES = (
    Direction.EAST,
    Direction.SOUTH_EAST,
    Direction.SOUTH_WEST,
    Direction.WEST,
    Direction.NORTH_WEST,
    Direction.NORTH_EAST,
)

FLAT_EDGES = (
    Direction.NORTH_EAST,
    Direction.SOUTH_EAST,
    Direction.SOUTH,
    Direction.SOUTH_WEST,
    Direction.NORTH_WEST,
    Direction.NORTH,
)


def opposite_edge(edge: int) -> int:
    """Edge number on the neighbor's side of the shared edge."""
    return (edge + 3) % EDGE_COUNT


@dataclass(frozen=True)
class Hex:
    """Axial hex coordinate."""

    q: int
    r: int

    @property
    def s(self) -> int:
        return -self.q - self.r

    def __add__(self, other: "Hex") -> "Hex":
        return Hex(self.q + other.q, self.r + other.r)

    def __sub__(self, other: "Hex") -> "Hex":
        return Hex(self.q - other.q, self.r - other.r)

    def scale(self, factor: int) -> "Hex":
        return Hex(self.q * factor, self.r * factor)

    def length(self) -> int:
        return (abs(self.q) + abs(self.r) + abs(self.s)) // 2

    def distance_to(self, other: "Hex") -> int:
        return (self - other).length()

    def neighbor(self, edge: int) -> "Hex":
        dq, dr = HEX_DIRECTIONS[edge]
        return Hex(self.q + dq, self.r + dr)

    def ring(self, radius: int) -> Iterator["Hex"]:
        """Walk the ring of hexes exactly `radius` steps away."""
        if radius == 0:
            yield self
            return

        hex_ = self + Hex(*HEX_DIRECTIONS[4]).scale(radius)
        for edge in range(EDGE_COUNT):
            for _ in range(radius):
                yield hex_
                hex_ = hex_.neighbor(edge)


def offset_to_hex(x: int, y: int, orientation: Orientation) -> Hex:
    """Convert an odd-offset coordinate to axial."""
    if orientation is Orientation.POINTY:
        return Hex(x - (y - (y & 1)) // 2, y)
    return Hex(x, y - (x - (x & 1)) // 2)


def hex_to_offset(hex_: Hex, orientation: Orientation) -> Tuple[int, int]:
    """Convert an axial coordinate to odd-offset."""
    if orientation is Orientation.POINTY:
        return hex_.q + (hex_.r - (hex_.r & 1)) // 2, hex_.r
    return hex_.q, hex_.r + (hex_.q - (hex_.q & 1)) // 2


def hex_to_pixel(hex_: Hex, orientation: Orientation) -> Tuple[float, float]:
    """Center of a unit-size hex, with y pointing north."""
    if orientation is Orientation.POINTY:
        return SQRT3 * (hex_.q + hex_.r / 2.0), 1.5 * hex_.r
    return 1.5 * hex_.q, SQRT3 * (hex_.r + hex_.q / 2.0)


class HexGrid:
    """
    A width x height block of hex tiles with optional wrap.

    Tiles are addressed by a linear index ``x + y * width``. Neighbor lookups
    go through a precomputed table, so they are symmetric across wrapped
    edges by construction.
    """

    def __init__(
        self,
        width: int,
        height: int,
        orientation: Orientation = Orientation.FLAT,
        wrap: WrapMode = WrapMode.NONE,
    ):
        if width <= 0 or height <= 0:
            raise ConfigurationError(
                f"Grid dimensions must be positive, got {width}x{height}"
            )

        self.width = width
        self.height = height
        self.orientation = Orientation(orientation)
        self.wrap = WrapMode(wrap)
        self.size = width * height

        # Shifting a column (flat) or row (pointy) across the seam must keep its parity
        if self.wrap_x and self.orientation is Orientation.FLAT and width % 2:
            raise ConfigurationError(
                "Horizontal wrap on a flat-top grid requires an even width"
            )
        if self.wrap_y and self.orientation is Orientation.POINTY and height % 2:
            raise ConfigurationError(
                "Vertical wrap on a pointy-top grid requires an even height"
            )

        self.edges = (
            POINTY_EDGES if self.orientation is Orientation.POINTY else FLAT_EDGES
        )
        self._edge_vectors = [
            hex_to_pixel(Hex(*delta), self.orientation) for delta in HEX_DIRECTIONS
        ]
        self.neighbor_table = self._build_neighbor_table()
        self._neighbor_lists = [
            tuple(int(n) for n in row if n >= 0) for row in self.neighbor_table
        ]

    @property
    def wrap_x(self) -> bool:
        return self.wrap in (WrapMode.HORIZONTAL, WrapMode.BOTH)

    @property
    def wrap_y(self) -> bool:
        return self.wrap is WrapMode.BOTH

    def __len__(self) -> int:
        return self.size

    def index(self, x: int, y: int) -> int:
        return x + y * self.width

    def offset(self, index: int) -> Tuple[int, int]:
        return index % self.width, index // self.width

    def hex(self, index: int) -> Hex:
        x, y = self.offset(index)
        return offset_to_hex(x, y, self.orientation)

    def wrap_offset(self, x: int, y: int) -> Optional[Tuple[int, int]]:
        """
        Fold a coordinate back into the grid.

        Wrapped axes are taken modulo their length; an out-of-range value on a
        non-wrapped axis means there is no such tile.
        """
        if self.wrap_x:
            x %= self.width
        elif not 0 <= x < self.width:
            return None

        if self.wrap_y:
            y %= self.height
        elif not 0 <= y < self.height:
            return None

        return x, y

    def index_of(self, x: int, y: int) -> Optional[int]:
        folded = self.wrap_offset(x, y)
        if folded is None:
            return None
        return self.index(*folded)

    def index_of_hex(self, hex_: Hex) -> Optional[int]:
        return self.index_of(*hex_to_offset(hex_, self.orientation))

    def _build_neighbor_table(self) -> np.ndarray:
        table = np.full((self.size, EDGE_COUNT), -1, dtype=np.int32)
        for index in range(self.size):
            hex_ = self.hex(index)
            for edge in range(EDGE_COUNT):
                neighbor = self.index_of_hex(hex_.neighbor(edge))
                if neighbor is not None:
                    table[index, edge] = neighbor
        return table

    def neighbors(self, index: int) -> Tuple[int, ...]:
        """Existing neighbors of a tile, in edge order."""
        return self._neighbor_lists[index]

    def neighbor(self, index: int, edge: int) -> Optional[int]:
        neighbor = self.neighbor_table[index, edge]
        return None if neighbor < 0 else int(neighbor)

    def edge_between(self, a: int, b: int) -> Optional[int]:
        """Edge number of `a` shared with `b`, or None if not adjacent."""
        for edge in range(EDGE_COUNT):
            if self.neighbor_table[a, edge] == b:
                return edge
        return None

    def edge_direction(self, edge: int) -> Direction:
        return self.edges[edge]

    def is_border(self, index: int) -> bool:
        """True for tiles on a non-wrapped map edge."""
        return len(self._neighbor_lists[index]) < EDGE_COUNT

    def distance(self, a: int, b: int) -> int:
        """Hex distance, taking the shortest way around wrapped axes."""
        origin = self.hex(a)
        bx, by = self.offset(b)

        xs = [bx, bx - self.width, bx + self.width] if self.wrap_x else [bx]
        ys = [by, by - self.height, by + self.height] if self.wrap_y else [by]

        return min(
            origin.distance_to(offset_to_hex(x, y, self.orientation))
            for x in xs
            for y in ys
        )

    def tiles_in_ring(self, center: int, radius: int) -> Iterator[int]:
        """
        Lazily yield tiles exactly `radius` steps from `center`.

        Positions that fall off a non-wrapped edge are skipped. Under wrap a
        large ring can fold onto itself, so each tile is yielded once.
        """
        if radius < 0:
            return
        seen = set()
        for hex_ in self.hex(center).ring(radius):
            index = self.index_of_hex(hex_)
            if index is None or index in seen:
                continue
            seen.add(index)
            yield index

    def tiles_within(self, center: int, radius: int) -> Iterator[int]:
        """Spiral outward from `center`, yielding every tile up to `radius`."""
        seen = set()
        center_hex = self.hex(center)
        for ring_radius in range(radius + 1):
            for hex_ in center_hex.ring(ring_radius):
                index = self.index_of_hex(hex_)
                if index is None or index in seen:
                    continue
                seen.add(index)
                yield index

    def row_position(self, index: int) -> float:
        """Vertical position in row units; flat-top odd columns sit half a row lower."""
        x, y = self.offset(index)
        if self.orientation is Orientation.FLAT:
            return y + 0.5 * (x & 1)
        return float(y)

    def latitude(self, index: int) -> float:
        """Absolute latitude: 0.0 at the equator row, 1.0 at the poles."""
        half = self.height / 2.0
        equator = (self.height - 1) / 2.0
        return min(1.0, abs(self.row_position(index) - equator) / half)

    def latitudes(self) -> np.ndarray:
        return np.array([self.latitude(i) for i in range(self.size)], dtype=np.float64)

    def estimate_direction(self, a: int, b: int) -> Optional[int]:
        """Edge number from `a` that points most nearly toward `b`."""
        if a == b:
            return None

        origin = self.hex(a)
        bx, by = self.offset(b)
        xs = [bx, bx - self.width, bx + self.width] if self.wrap_x else [bx]
        ys = [by, by - self.height, by + self.height] if self.wrap_y else [by]
        target = min(
            (offset_to_hex(x, y, self.orientation) for x in xs for y in ys),
            key=origin.distance_to,
        )

        dx, dy = hex_to_pixel(target - origin, self.orientation)
        scores: List[float] = [ex * dx + ey * dy for ex, ey in self._edge_vectors]
        return max(range(EDGE_COUNT), key=scores.__getitem__)
