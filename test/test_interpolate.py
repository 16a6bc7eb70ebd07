"""
Tests for tidepredict.interpolate

Single-cell and grid bilinear interpolation, grid validation and the
axis index helpers.
"""

import numpy as np
import pytest

from tidepredict.exceptions import GridError, OutOfGridError
from tidepredict.interpolate import (
    Grid2D,
    GridCell,
    bilinear_interpolate,
    find_bracket,
    interpolate_both,
    lon_axis_requires_wrap,
    normalize_lon360,
    normalize_lon_for_axis,
    window_slice,
)


@pytest.fixture
def cell():
    return GridCell(x0=0.0, x1=1.0, y0=0.0, y1=1.0,
                    v00=1.0, v10=2.0, v01=3.0, v11=4.0)


@pytest.fixture
def grid():
    x = [0.0, 1.0, 2.0, 3.0]
    y = [10.0, 20.0, 30.0]
    # value = x + y/10, linear so bilinear is exact
    values = [[xi + yj / 10.0 for xi in x] for yj in y]
    return Grid2D(x=x, y=y, values=values)


class TestGridCell:
    """Test single-cell interpolation"""

    def test_corners_exact(self, cell):
        assert bilinear_interpolate(cell, 0.0, 0.0) == 1.0
        assert bilinear_interpolate(cell, 1.0, 0.0) == 2.0
        assert bilinear_interpolate(cell, 0.0, 1.0) == 3.0
        assert bilinear_interpolate(cell, 1.0, 1.0) == 4.0

    def test_center_is_mean(self, cell):
        assert bilinear_interpolate(cell, 0.5, 0.5) == pytest.approx(2.5)

    def test_edge_midpoint(self, cell):
        assert bilinear_interpolate(cell, 0.5, 0.0) == pytest.approx(1.5)

    def test_edge_tolerance(self, cell):
        assert bilinear_interpolate(cell, 1.0 + 1e-10, 0.0) == pytest.approx(2.0)

    @pytest.mark.parametrize('x, y', [(-0.1, 0.5), (1.1, 0.5), (0.5, -0.1), (0.5, 1.1)])
    def test_outside(self, cell, x, y):
        with pytest.raises(OutOfGridError):
            bilinear_interpolate(cell, x, y)

    def test_degenerate(self):
        bad = GridCell(x0=1.0, x1=1.0, y0=0.0, y1=1.0, v00=0, v10=0, v01=0, v11=0)
        with pytest.raises(GridError):
            bilinear_interpolate(bad, 1.0, 0.5)


class TestGrid2D:
    """Test grid validation and lookup"""

    def test_interpolate_linear_field(self, grid):
        assert grid.interpolate_at(1.25, 17.5) == pytest.approx(1.25 + 1.75)
        assert grid.interpolate_at(3.0, 30.0) == pytest.approx(6.0)
        assert grid.interpolate_at(0.0, 10.0) == pytest.approx(1.0)

    def test_interior_grid_line(self, grid):
        # the cell below the line is used; the value is the same either way
        c = grid.cell_at(2.0, 20.0)
        assert (c.x0, c.x1, c.y0, c.y1) == (1.0, 2.0, 10.0, 20.0)
        assert grid.interpolate_at(2.0, 20.0) == pytest.approx(4.0)

    def test_outside(self, grid):
        with pytest.raises(OutOfGridError):
            grid.interpolate_at(3.5, 15.0)
        with pytest.raises(OutOfGridError):
            grid.interpolate_at(1.0, 5.0)

    def test_bounds_and_contains(self, grid):
        assert grid.bounds() == (0.0, 3.0, 10.0, 30.0)
        assert grid.contains(1.0, 10.0)
        assert not grid.contains(-1.0, 10.0)
        assert grid.shape == (3, 4)

    @pytest.mark.parametrize('x, y, values', [
        ([0.0], [0.0, 1.0], [[1.0], [1.0]]),
        ([0.0, 1.0], [0.0], [[1.0, 1.0]]),
        ([0.0, 1.0], [0.0, 1.0], [[1.0, 1.0]]),
        ([0.0, 1.0], [0.0, 1.0], [[1.0, 1.0], [1.0]]),
        ([1.0, 0.0], [0.0, 1.0], [[1.0, 1.0], [1.0, 1.0]]),
        ([0.0, 1.0], [0.0, 0.0], [[1.0, 1.0], [1.0, 1.0]]),
    ])
    def test_validate_rejects(self, x, y, values):
        with pytest.raises(GridError):
            Grid2D(x=x, y=y, values=values).validate()

    def test_interpolate_both(self, grid):
        other = Grid2D(x=grid.x, y=grid.y,
                       values=[[2.0 * v for v in row] for row in grid.values])
        a, b = interpolate_both(grid, other, 0.5, 15.0)
        assert b == pytest.approx(2.0 * a)

    def test_interpolate_both_mismatch(self, grid):
        small = Grid2D(x=[0.0, 1.0], y=[10.0, 20.0], values=[[0.0, 1.0], [1.0, 2.0]])
        with pytest.raises(GridError):
            interpolate_both(grid, small, 0.5, 15.0)


class TestLongitude:
    """Test longitude conventions"""

    @pytest.mark.parametrize('lon, expected', [
        (-220.0, 140.0), (-180.0, 180.0), (0.0, 0.0), (360.0, 0.0), (725.0, 5.0),
    ])
    def test_normalize_lon360(self, lon, expected):
        assert normalize_lon360(lon) == pytest.approx(expected)

    def test_axis_requires_wrap(self):
        assert lon_axis_requires_wrap(np.arange(0.0, 360.0, 1.0))
        assert not lon_axis_requires_wrap(np.arange(-180.0, 180.0, 1.0))
        assert not lon_axis_requires_wrap(np.arange(100.0, 150.0, 1.0))
        assert not lon_axis_requires_wrap(np.array([]))

    def test_normalize_for_axis(self):
        assert normalize_lon_for_axis(-30.0, np.arange(0.0, 360.0)) == pytest.approx(330.0)
        assert normalize_lon_for_axis(-30.0, np.arange(-180.0, 180.0)) == -30.0


class TestIndexHelpers:
    """Test bracket and window index lookups"""

    def test_bracket_ascending(self):
        axis = np.arange(0.0, 10.0)
        assert find_bracket(axis, 3.5) == (3, 4)
        assert find_bracket(axis, 0.0) == (0, 1)
        assert find_bracket(axis, 9.0) == (8, 9)

    def test_bracket_descending(self):
        axis = np.arange(9.0, -1.0, -1.0)
        i0, i1 = find_bracket(axis, 3.5)
        assert sorted([axis[i0], axis[i1]]) == [3.0, 4.0]
        assert i1 == i0 + 1

    def test_bracket_outside(self):
        with pytest.raises(OutOfGridError):
            find_bracket(np.arange(5.0), 5.5)

    def test_bracket_short_axis(self):
        with pytest.raises(GridError):
            find_bracket(np.array([1.0]), 1.0)

    def test_window_slice(self):
        axis = np.arange(0.0, 10.0)
        s = window_slice(axis, 2.5, 4.5)
        assert axis[s][0] <= 2.5 and axis[s][-1] >= 4.5
        assert (s.start, s.stop) == (2, 6)

    def test_window_slice_clipped(self):
        axis = np.arange(0.0, 10.0)
        s = window_slice(axis, -3.0, 1.5)
        assert (s.start, s.stop) == (0, 3)

    def test_window_slice_no_overlap(self):
        axis = np.arange(0.0, 10.0)
        assert axis[window_slice(axis, 20.0, 30.0)].size == 0
        assert axis[window_slice(axis, -30.0, -20.0)].size == 0

    def test_window_slice_descending(self):
        axis = np.arange(9.0, -1.0, -1.0)
        values = axis[window_slice(axis, 2.5, 4.5)]
        assert values.min() <= 2.5 and values.max() >= 4.5
