"""
tidepredict.io.netcdf - Windowed access to gridded NetCDF files

Helpers shared by the constituent and metadata grid readers:

- candidate-name probing for coordinate and data variables
- [lat, lon] vs [lon, lat] dimension-order resolution
- hyperslab reads of a small index window (never the full array)
- fill-value replacement and scale_factor/add_offset decoding

Datasets are opened lazily with xarray so that only the selected
window is read from disk.

Copyright (c) 2024-2026 tkykszk

This software is licensed under the MIT License.
"""

from __future__ import annotations

import pathlib
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence, Tuple

import numpy as np

from ..exceptions import DataUnavailableError, OutOfGridError
from ..interpolate import (
    Grid2D,
    find_bracket,
    lon_axis_requires_wrap,
    normalize_lon360,
    normalize_lon_for_axis,
    window_slice,
)

if TYPE_CHECKING:
    import xarray as xr

__all__ = [
    'GridAxes',
    'GridWindow',
    'GridWindowCache',
    'LAT_NAMES',
    'LON_NAMES',
    'find_axes',
    'open_grid',
    'probe_variable',
    'read_full',
    'read_point_window',
    'read_region_window',
    'resolve_dims',
]

LAT_NAMES = ('lat', 'latitude', 'y')
LON_NAMES = ('lon', 'longitude', 'x')


def open_grid(path: str | pathlib.Path) -> xr.Dataset:
    """
    Open a gridded file lazily

    Fill values are masked to NaN and scale_factor/add_offset applied
    on read.

    Raises
    ------
    DataUnavailableError
        If the file does not exist or cannot be opened
    """
    import xarray as xr

    path = pathlib.Path(path).expanduser()
    if not path.is_file():
        raise DataUnavailableError(f"grid file not found: {path}")
    try:
        return xr.open_dataset(path, mask_and_scale=True, decode_times=False)
    except (OSError, ValueError) as e:
        raise DataUnavailableError(f"failed to open grid file {path}: {e}") from e


def probe_variable(ds: xr.Dataset, candidates: Sequence[str]) -> Optional[str]:
    """First candidate present in the dataset, or None"""
    for name in candidates:
        if name in ds.variables:
            return name
    return None


@dataclass(frozen=True)
class GridAxes:
    """Names and values of the latitude and longitude axes of a file"""
    lat_name: str
    lon_name: str
    lat: np.ndarray
    lon: np.ndarray
    lat_dim: str
    lon_dim: str


def _read_axis(ds: xr.Dataset, candidates: Sequence[str], label: str) -> Tuple[str, np.ndarray]:
    name = probe_variable(ds, candidates)
    if name is None:
        raise DataUnavailableError(f"{label} variable not found (tried: {list(candidates)})")
    var = ds[name]
    if var.ndim != 1:
        raise DataUnavailableError(f"expected 1D {label} variable '{name}', got {var.ndim}D")
    return name, np.asarray(var.values, dtype=np.float64)


def find_axes(ds: xr.Dataset,
              lat_names: Sequence[str] = LAT_NAMES,
              lon_names: Sequence[str] = LON_NAMES) -> GridAxes:
    """
    Locate the latitude and longitude coordinate variables

    Raises
    ------
    DataUnavailableError
        If either axis is not found under any candidate name
    """
    lat_name, lat = _read_axis(ds, lat_names, 'latitude')
    lon_name, lon = _read_axis(ds, lon_names, 'longitude')
    return GridAxes(lat_name, lon_name, lat, lon,
                    ds[lat_name].dims[0], ds[lon_name].dims[0])


def resolve_dims(var: xr.DataArray, axes: GridAxes) -> Tuple[str, str]:
    """
    Which dimension of a 2D variable is latitude and which longitude

    Dimension names are matched against the axis variables first, then
    dimension lengths. Equal lengths that cannot be told apart by name
    are read as [lat, lon].

    Returns
    -------
    lat_dim, lon_dim : str
        Dimension names of `var`

    Raises
    ------
    DataUnavailableError
        If the variable is not 2D or its shape matches neither order
    """
    if var.ndim != 2:
        raise DataUnavailableError(f"expected 2D data for '{var.name}', got {var.ndim}D")
    d0, d1 = var.dims
    if {d0, d1} == {axes.lat_dim, axes.lon_dim}:
        return axes.lat_dim, axes.lon_dim

    n0, n1 = var.shape
    nlat, nlon = axes.lat.size, axes.lon.size
    if (n0, n1) == (nlat, nlon):
        return d0, d1
    if (n0, n1) == (nlon, nlat):
        return d1, d0
    raise DataUnavailableError(
        f"dimension mismatch for '{var.name}': data is [{n0}, {n1}], "
        f"expected [{nlat}, {nlon}] or [{nlon}, {nlat}]")


@dataclass
class GridWindow:
    """
    A rectangular block of a gridded variable

    Attributes
    ----------
    lat : np.ndarray
        Latitudes of the rows
    lon : np.ndarray
        Longitudes of the columns
    values : np.ndarray
        Shape (len(lat), len(lon)), fill values replaced with 0
    """
    lat: np.ndarray
    lon: np.ndarray
    values: np.ndarray

    def sorted(self) -> 'GridWindow':
        """Same window with both axes ascending"""
        iy = np.argsort(self.lat)
        ix = np.argsort(self.lon)
        return GridWindow(self.lat[iy], self.lon[ix], self.values[np.ix_(iy, ix)])

    def to_grid(self) -> Grid2D:
        w = self.sorted()
        return Grid2D(x=w.lon, y=w.lat, values=w.values)

    def bounds(self) -> Tuple[float, float, float, float]:
        """(lat_min, lat_max, lon_min, lon_max)"""
        return (float(np.min(self.lat)), float(np.max(self.lat)),
                float(np.min(self.lon)), float(np.max(self.lon)))


def _read_block(var: xr.DataArray, axes: GridAxes,
                lat_index: slice, lon_index: slice) -> np.ndarray:
    lat_dim, lon_dim = resolve_dims(var, axes)
    block = var.isel({lat_dim: lat_index, lon_dim: lon_index})
    values = np.asarray(block.transpose(lat_dim, lon_dim).values, dtype=np.float64)
    # masked fill/missing values
    return np.where(np.isnan(values), 0.0, values)


def read_point_window(ds: xr.Dataset, var_names: Sequence[str], axes: GridAxes,
                      lat: float, lon: float) -> Tuple[list[GridWindow], float]:
    """
    Read the 2x2 neighbourhood of (lat, lon) from one or more variables

    Parameters
    ----------
    ds : xarray.Dataset
        Open dataset
    var_names : sequence of str
        Variables to read; all must share the axes
    axes : GridAxes
        Axes found with `find_axes`
    lat, lon : float
        Query point in degrees

    Returns
    -------
    windows : list of GridWindow
        One 2x2 window per variable
    lon : float
        Query longitude in the axis convention

    Raises
    ------
    OutOfGridError
        If the point lies outside the grid
    """
    qlon = normalize_lon_for_axis(lon, axes.lon)
    try:
        j0, j1 = find_bracket(axes.lat, lat)
        i0, i1 = find_bracket(axes.lon, qlon)
    except OutOfGridError as e:
        raise OutOfGridError(f"point ({lat:.4f}, {lon:.4f}) outside grid: {e}") from e

    lat_index = slice(j0, j1 + 1)
    lon_index = slice(i0, i1 + 1)
    windows = []
    for name in var_names:
        values = _read_block(ds[name], axes, lat_index, lon_index)
        windows.append(GridWindow(axes.lat[lat_index], axes.lon[lon_index], values))
    return windows, qlon


def read_region_window(ds: xr.Dataset, var_name: str, axes: GridAxes,
                       lat_min: float, lat_max: float,
                       lon_min: float, lon_max: float) -> Optional[GridWindow]:
    """
    Read the block of `var_name` covering a lat/lon box

    Longitudes are given in the axis convention. Returns None when the
    box does not overlap the grid in at least 2x2 points.
    """
    lat_index = window_slice(axes.lat, lat_min, lat_max)
    lon_index = window_slice(axes.lon, lon_min, lon_max)
    lat = axes.lat[lat_index]
    lon = axes.lon[lon_index]
    if lat.size < 2 or lon.size < 2:
        return None
    values = _read_block(ds[var_name], axes, lat_index, lon_index)
    return GridWindow(lat, lon, values)


def read_full(ds: xr.Dataset, var_name: str, axes: GridAxes) -> GridWindow:
    """Read an entire 2D variable (diagnostics only)"""
    values = _read_block(ds[var_name], axes, slice(None), slice(None))
    return GridWindow(axes.lat, axes.lon, values)


# =============================================================================
# Region-bounded window cache
# =============================================================================

class GridWindowCache:
    """
    Cached window of one gridded variable around recent queries

    A block of ±`margin` degrees around the query point is read on the
    first call and again whenever a query falls outside the cached
    block, so memory stays bounded however large the file is.

    Parameters
    ----------
    path : str or pathlib.Path
        Gridded file
    var_names : sequence of str
        Candidate names of the data variable, tried in order
    margin : float, default 2.0
        Half-width of the cached block in degrees
    """

    def __init__(self, path: str | pathlib.Path, var_names: Sequence[str],
                 margin: float = 2.0):
        self.path = pathlib.Path(path).expanduser()
        self.var_names = tuple(var_names)
        self.margin = margin
        self._lock = threading.Lock()
        self._grid: Optional[Grid2D] = None
        self._bounds: Optional[Tuple[float, float, float, float]] = None
        self._wrap = False
        self.loads = 0

    def __repr__(self) -> str:
        return f"GridWindowCache('{self.path}', bounds={self._bounds})"

    @property
    def has_grid(self) -> bool:
        with self._lock:
            return self._grid is not None

    @property
    def bounds(self) -> Optional[Tuple[float, float, float, float]]:
        """(lat_min, lat_max, lon_min, lon_max) of the cached block"""
        with self._lock:
            return self._bounds

    def _query_lon(self, lon: float) -> float:
        return normalize_lon360(lon) if self._wrap else lon

    def _contains(self, lat: float, lon: float) -> bool:
        if self._grid is None or self._bounds is None:
            return False
        lat_min, lat_max, lon_min, lon_max = self._bounds
        qlon = self._query_lon(lon)
        return lat_min <= lat <= lat_max and lon_min <= qlon <= lon_max

    def _load(self, lat: float, lon: float) -> None:
        ds = open_grid(self.path)
        try:
            axes = find_axes(ds)
            var_name = probe_variable(ds, self.var_names)
            if var_name is None:
                raise DataUnavailableError(
                    f"data variable not found in {self.path.name} "
                    f"(tried: {list(self.var_names)})")
            wrap = lon_axis_requires_wrap(axes.lon)
            qlon = normalize_lon360(lon) if wrap else lon
            m = self.margin
            window = read_region_window(ds, var_name, axes,
                                        lat - m, lat + m, qlon - m, qlon + m)
        finally:
            ds.close()

        if window is None:
            raise OutOfGridError(
                f"point ({lat:.4f}, {lon:.4f}) outside grid {self.path.name}")
        grid = window.to_grid()
        grid.validate()
        self._grid = grid
        self._bounds = window.bounds()
        self._wrap = wrap
        self.loads += 1

    def interpolate(self, lat: float, lon: float) -> float:
        """
        Bilinear value at (lat, lon), reloading the block if needed

        Raises
        ------
        DataUnavailableError
            If the file or variable cannot be read
        OutOfGridError
            If the point lies outside the file's coverage
        GridError
            If the cached block has malformed axes
        """
        with self._lock:
            if not self._contains(lat, lon):
                self._load(lat, lon)
            return self._grid.interpolate_at(self._query_lon(lon), lat)

    def clear(self) -> None:
        """Drop the cached block"""
        with self._lock:
            self._grid = None
            self._bounds = None
            self._wrap = False
