"""
tidepredict.interpolate - Spatial interpolation

Bilinear interpolation over monotonic coordinate grids and the index
helpers used to read small windows out of large gridded files.

Classes:
    GridCell: four corner values of one grid cell
    Grid2D: coordinate axes plus a 2D value array

Functions:
    bilinear_interpolate: blend the corners of a single cell
    interpolate_both: sample two grids sharing axes at one point
    find_bracket: indices of the axis points surrounding a value
    window_slice: index range covering a coordinate interval

Copyright (c) 2024-2026 tkykszk

This software is licensed under the MIT License.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from .exceptions import GridError, OutOfGridError

__all__ = [
    'Grid2D',
    'GridCell',
    'bilinear_interpolate',
    'clamp',
    'find_bracket',
    'interpolate_both',
    'lon_axis_requires_wrap',
    'normalize_lon360',
    'normalize_lon_for_axis',
    'window_slice',
]

# Tolerance for points lying on a cell edge
_EDGE_EPSILON = 1e-9


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp value into [lo, hi]"""
    return max(lo, min(hi, value))


@dataclass(frozen=True)
class GridCell:
    """
    A rectangular cell with values at its corners

    v00 is at (x0, y0), v10 at (x1, y0), v01 at (x0, y1) and
    v11 at (x1, y1).
    """
    x0: float
    x1: float
    y0: float
    y1: float
    v00: float
    v10: float
    v01: float
    v11: float


def bilinear_interpolate(cell: GridCell, x: float, y: float) -> float:
    """
    Bilinear interpolation inside a single cell

        f = (1-t)(1-u) v00 + t(1-u) v10 + (1-t)u v01 + t u v11

    with t = (x - x0)/(x1 - x0) and u = (y - y0)/(y1 - y0), both
    clamped into [0, 1].

    Raises
    ------
    GridError
        If the cell is degenerate
    OutOfGridError
        If (x, y) lies outside the cell
    """
    if not cell.x1 > cell.x0:
        raise GridError("invalid grid cell: x1 must be > x0")
    if not cell.y1 > cell.y0:
        raise GridError("invalid grid cell: y1 must be > y0")

    if not (cell.x0 - _EDGE_EPSILON <= x <= cell.x1 + _EDGE_EPSILON):
        raise OutOfGridError(
            f"x coordinate {x:.6f} is outside grid cell [{cell.x0:.6f}, {cell.x1:.6f}]")
    if not (cell.y0 - _EDGE_EPSILON <= y <= cell.y1 + _EDGE_EPSILON):
        raise OutOfGridError(
            f"y coordinate {y:.6f} is outside grid cell [{cell.y0:.6f}, {cell.y1:.6f}]")

    t = clamp((x - cell.x0) / (cell.x1 - cell.x0), 0.0, 1.0)
    u = clamp((y - cell.y0) / (cell.y1 - cell.y0), 0.0, 1.0)

    return ((1.0 - t) * (1.0 - u) * cell.v00
            + t * (1.0 - u) * cell.v10
            + (1.0 - t) * u * cell.v01
            + t * u * cell.v11)


@dataclass
class Grid2D:
    """
    Values on a rectilinear grid

    Attributes
    ----------
    x : sequence of float
        Column coordinates (e.g. longitude), strictly increasing
    y : sequence of float
        Row coordinates (e.g. latitude), strictly increasing
    values : 2D array-like
        values[j][i] is the value at (x[i], y[j])
    """
    x: Sequence[float]
    y: Sequence[float]
    values: Sequence[Sequence[float]]

    def validate(self) -> None:
        """
        Check axis lengths, shape and monotonicity

        Raises
        ------
        GridError
            Describing the first problem found
        """
        nx, ny = len(self.x), len(self.y)
        if nx < 2:
            raise GridError("grid must have at least 2 x coordinates")
        if ny < 2:
            raise GridError("grid must have at least 2 y coordinates")
        if len(self.values) != ny:
            raise GridError(
                f"number of value rows ({len(self.values)}) must match y coordinates ({ny})")
        for j, row in enumerate(self.values):
            if len(row) != nx:
                raise GridError(f"row {j} has {len(row)} values, expected {nx}")
        if not np.all(np.diff(np.asarray(self.x, dtype=np.float64)) > 0):
            raise GridError("x coordinates must be strictly increasing")
        if not np.all(np.diff(np.asarray(self.y, dtype=np.float64)) > 0):
            raise GridError("y coordinates must be strictly increasing")

    @property
    def shape(self) -> Tuple[int, int]:
        return len(self.y), len(self.x)

    def bounds(self) -> Tuple[float, float, float, float]:
        """(xmin, xmax, ymin, ymax)"""
        return (float(self.x[0]), float(self.x[-1]),
                float(self.y[0]), float(self.y[-1]))

    def contains(self, x: float, y: float) -> bool:
        xmin, xmax, ymin, ymax = self.bounds()
        return xmin <= x <= xmax and ymin <= y <= ymax

    def cell_at(self, x: float, y: float) -> GridCell:
        """
        The cell containing (x, y)

        A point on an interior grid line belongs to the cell below it.
        """
        i = _cell_index(self.x, x, 'x')
        j = _cell_index(self.y, y, 'y')
        v = self.values
        return GridCell(
            x0=float(self.x[i]), x1=float(self.x[i + 1]),
            y0=float(self.y[j]), y1=float(self.y[j + 1]),
            v00=float(v[j][i]), v10=float(v[j][i + 1]),
            v01=float(v[j + 1][i]), v11=float(v[j + 1][i + 1]),
        )

    def interpolate_at(self, x: float, y: float) -> float:
        """
        Bilinear value at (x, y)

        Raises
        ------
        GridError
            If the grid is invalid
        OutOfGridError
            If (x, y) lies outside the grid
        """
        self.validate()
        return bilinear_interpolate(self.cell_at(x, y), x, y)


def _cell_index(axis: Sequence[float], v: float, label: str) -> int:
    lo, hi = float(axis[0]), float(axis[-1])
    if not (lo <= v <= hi):
        raise OutOfGridError(
            f"{label} coordinate {v:.6f} is outside grid range [{lo:.6f}, {hi:.6f}]")
    i = int(np.searchsorted(np.asarray(axis, dtype=np.float64), v, side='left')) - 1
    return min(max(i, 0), len(axis) - 2)


def interpolate_both(grid1: Grid2D, grid2: Grid2D,
                     x: float, y: float) -> Tuple[float, float]:
    """
    Interpolate two grids with the same axes at one point

    Raises
    ------
    GridError
        If the grids differ in size or either is invalid
    OutOfGridError
        If (x, y) lies outside the grids
    """
    if grid1.shape != grid2.shape:
        raise GridError("grids must have the same dimensions")
    return grid1.interpolate_at(x, y), grid2.interpolate_at(x, y)


# =============================================================================
# Longitude handling and window indices
# =============================================================================

def normalize_lon360(lon: float) -> float:
    """Wrap a longitude into [0, 360)"""
    lon = math.fmod(lon, 360.0)
    if lon < 0:
        lon += 360.0
    if lon >= 360.0:
        lon -= 360.0
    return lon


def lon_axis_requires_wrap(lon_axis) -> bool:
    """True for a 0-360 style axis (non-negative and reaching past 180)"""
    lon_axis = np.asarray(lon_axis, dtype=np.float64)
    if lon_axis.size == 0:
        return False
    return bool(np.nanmin(lon_axis) >= 0.0 and np.nanmax(lon_axis) > 180.0)


def normalize_lon_for_axis(lon: float, lon_axis) -> float:
    """Express `lon` in the convention of `lon_axis`"""
    if lon_axis_requires_wrap(lon_axis):
        return normalize_lon360(lon)
    return lon


def find_bracket(axis, v: float) -> Tuple[int, int]:
    """
    Indices (i0, i1), i1 = i0 + 1, of the axis points surrounding v

    Works for ascending and descending axes. A value equal to an end
    point selects the adjacent interior interval.

    Raises
    ------
    GridError
        If the axis has fewer than 2 points
    OutOfGridError
        If v lies outside the axis range
    """
    axis = np.asarray(axis, dtype=np.float64)
    n = axis.size
    if n < 2:
        raise GridError("axis must have at least 2 points")

    descending = axis[-1] < axis[0]
    ascending_axis = axis[::-1] if descending else axis
    lo, hi = ascending_axis[0], ascending_axis[-1]
    if not (lo <= v <= hi):
        raise OutOfGridError(f"coordinate {v:.6f} is outside axis range [{lo:.6f}, {hi:.6f}]")

    i = int(np.searchsorted(ascending_axis, v, side='right')) - 1
    i = min(max(i, 0), n - 2)
    if descending:
        # map back to the original ordering
        i = n - 2 - i
    return i, i + 1


def window_slice(axis, lo: float, hi: float) -> slice:
    """
    Index range of `axis` covering [lo, hi]

    One extra point is included on each side where available so that
    any value in [lo, hi] is bracketed. Returns an empty slice when the
    interval does not overlap the axis.
    """
    axis = np.asarray(axis, dtype=np.float64)
    descending = axis.size > 1 and axis[-1] < axis[0]
    values = axis[::-1] if descending else axis
    n = values.size

    start = int(np.searchsorted(values, lo, side='left'))
    stop = int(np.searchsorted(values, hi, side='right'))
    if start >= n or stop <= 0:
        return slice(0, 0)
    start = max(start - 1, 0)
    stop = min(stop + 1, n)
    if descending:
        start, stop = n - stop, n - start
    return slice(start, stop)
