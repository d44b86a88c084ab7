"""Tests for hex grid geometry."""

import pytest

from py_hexmap.core.errors import ConfigurationError
from py_hexmap.core.hex_grid import (
    EDGE_COUNT,
    Direction,
    Hex,
    HexGrid,
    Orientation,
    WrapMode,
    hex_to_offset,
    offset_to_hex,
    opposite_edge,
)


class TestHexCoordinates:
    """Test axial/offset conversion and hex arithmetic."""

    @pytest.mark.parametrize("orientation", list(Orientation))
    def test_offset_round_trip(self, orientation):
        """Every offset coordinate survives a trip through axial."""
        for x in range(-3, 8):
            for y in range(-3, 8):
                hex_ = offset_to_hex(x, y, orientation)
                assert hex_to_offset(hex_, orientation) == (x, y)

    def test_pointy_odd_rows_shift(self):
        assert offset_to_hex(0, 1, Orientation.POINTY) == Hex(0, 1)
        assert offset_to_hex(0, 2, Orientation.POINTY) == Hex(-1, 2)

    def test_flat_odd_columns_shift(self):
        assert offset_to_hex(1, 0, Orientation.FLAT) == Hex(1, 0)
        assert offset_to_hex(2, 0, Orientation.FLAT) == Hex(2, -1)

    def test_distance(self):
        origin = Hex(0, 0)
        assert origin.distance_to(Hex(3, 0)) == 3
        assert origin.distance_to(Hex(2, -1)) == 2
        assert origin.distance_to(Hex(-2, 3)) == 3

    def test_ring_size(self):
        """A ring of radius r has 6r hexes, all at distance r."""
        center = Hex(4, -2)
        for radius in range(1, 5):
            ring = list(center.ring(radius))
            assert len(ring) == 6 * radius
            assert len(set(ring)) == 6 * radius
            assert all(center.distance_to(h) == radius for h in ring)

    def test_opposite_edge(self):
        for edge in range(EDGE_COUNT):
            assert opposite_edge(opposite_edge(edge)) == edge
            hex_ = Hex(0, 0).neighbor(edge).neighbor(opposite_edge(edge))
            assert hex_ == Hex(0, 0)


class TestHexGrid:
    """Test neighbor tables, wrap and distance on finite grids."""

    @pytest.mark.parametrize("orientation", list(Orientation))
    @pytest.mark.parametrize("wrap", list(WrapMode))
    def test_neighbors_are_symmetric(self, orientation, wrap):
        """If b is a's neighbor over edge e, a is b's over the opposite edge."""
        grid = HexGrid(10, 8, orientation, wrap)
        for index in range(grid.size):
            for edge in range(EDGE_COUNT):
                neighbor = grid.neighbor(index, edge)
                if neighbor is None:
                    continue
                assert grid.neighbor(neighbor, opposite_edge(edge)) == index
                assert grid.edge_between(neighbor, index) == opposite_edge(edge)

    def test_corner_has_fewer_neighbors_without_wrap(self):
        grid = HexGrid(6, 6, Orientation.FLAT, WrapMode.NONE)
        assert len(grid.neighbors(0)) < EDGE_COUNT
        assert grid.is_border(0)
        assert not grid.is_border(grid.index(2, 2))

    def test_full_wrap_has_no_border(self):
        grid = HexGrid(8, 6, Orientation.POINTY, WrapMode.BOTH)
        assert all(len(grid.neighbors(i)) == EDGE_COUNT for i in range(grid.size))
        assert not any(grid.is_border(i) for i in range(grid.size))

    def test_horizontal_wrap_joins_columns(self):
        grid = HexGrid(8, 6, Orientation.FLAT, WrapMode.HORIZONTAL)
        left = grid.index(0, 2)
        right = grid.index(7, 2)
        assert right in grid.neighbors(left)
        assert grid.distance(left, right) == 1

    def test_wrap_offset(self):
        grid = HexGrid(8, 6, Orientation.FLAT, WrapMode.HORIZONTAL)
        assert grid.wrap_offset(-1, 3) == (7, 3)
        assert grid.wrap_offset(9, 0) == (1, 0)
        assert grid.wrap_offset(2, -1) is None
        assert grid.wrap_offset(2, 6) is None

    def test_flat_wrap_rejects_odd_width(self):
        with pytest.raises(ConfigurationError):
            HexGrid(9, 6, Orientation.FLAT, WrapMode.HORIZONTAL)

    def test_pointy_vertical_wrap_rejects_odd_height(self):
        with pytest.raises(ConfigurationError):
            HexGrid(8, 7, Orientation.POINTY, WrapMode.BOTH)

    def test_rejects_empty_grid(self):
        with pytest.raises(ConfigurationError):
            HexGrid(0, 5)

    def test_distance_takes_shortest_wrap(self):
        grid = HexGrid(20, 10, Orientation.POINTY, WrapMode.HORIZONTAL)
        a = grid.index(1, 5)
        b = grid.index(18, 5)
        assert grid.distance(a, b) == 3
        assert grid.distance(a, b) == grid.distance(b, a)

    def test_tiles_in_ring(self):
        grid = HexGrid(20, 20, Orientation.FLAT, WrapMode.NONE)
        center = grid.index(10, 10)
        ring = list(grid.tiles_in_ring(center, 2))
        assert len(ring) == 12
        assert all(grid.distance(center, i) == 2 for i in ring)

    def test_tiles_in_ring_clipped_at_edge(self):
        grid = HexGrid(20, 20, Orientation.FLAT, WrapMode.NONE)
        ring = list(grid.tiles_in_ring(grid.index(0, 10), 1))
        assert len(ring) == len(grid.neighbors(grid.index(0, 10)))

    def test_tiles_within_spiral(self):
        grid = HexGrid(20, 20, Orientation.POINTY, WrapMode.NONE)
        center = grid.index(10, 10)
        tiles = list(grid.tiles_within(center, 2))
        assert tiles[0] == center
        assert len(tiles) == 19
        assert len(set(tiles)) == 19

    def test_tiles_within_folds_on_small_wrapped_grid(self):
        """A radius bigger than the map still yields each tile once."""
        grid = HexGrid(4, 4, Orientation.FLAT, WrapMode.BOTH)
        tiles = list(grid.tiles_within(0, 6))
        assert sorted(tiles) == list(range(grid.size))

    def test_latitude(self):
        grid = HexGrid(10, 11, Orientation.POINTY, WrapMode.NONE)
        assert grid.latitude(grid.index(3, 5)) == 0.0
        assert grid.latitude(grid.index(3, 0)) == pytest.approx(5 / 5.5)
        assert grid.latitude(grid.index(3, 0)) == grid.latitude(grid.index(3, 10))

    def test_flat_odd_columns_sit_half_a_row_lower(self):
        grid = HexGrid(10, 10, Orientation.FLAT, WrapMode.NONE)
        assert grid.row_position(grid.index(1, 3)) == 3.5
        assert grid.row_position(grid.index(2, 3)) == 3.0

    def test_edge_labels(self):
        pointy = HexGrid(4, 4, Orientation.POINTY)
        flat = HexGrid(4, 4, Orientation.FLAT)
        assert pointy.edge_direction(0) is Direction.EAST
        assert flat.edge_direction(2) is Direction.SOUTH
        assert Direction.NORTH in flat.edges
        assert Direction.NORTH not in pointy.edges

    @pytest.mark.parametrize("orientation", list(Orientation))
    def test_estimate_direction_matches_neighbor_edges(self, orientation):
        grid = HexGrid(12, 12, orientation, WrapMode.NONE)
        center = grid.index(6, 6)
        for edge in range(EDGE_COUNT):
            neighbor = grid.neighbor(center, edge)
            assert grid.estimate_direction(center, neighbor) == edge
        assert grid.estimate_direction(center, center) is None
