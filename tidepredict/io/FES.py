"""
tidepredict.io.FES - Gridded constituent reader

Resolves constituent amplitudes and phases at a latitude/longitude from
FES-style NetCDF grids, one constituent per file (or an amplitude and a
phase file per constituent).

Only the 2x2 neighbourhood of the query point is read from each file on
the request path. Supports:

- combined files (<name>.nc) and split files (<name>_amplitude.nc /
  <name>_phase.nc, or the _amp / _pha short forms)
- amplitude/phase variables under the usual FES names, or real and
  imaginary parts from which both are derived
- 0-360 and -180-180 longitude axes
- centimetre amplitudes in FES "ocean_tide" distributions

Copyright (c) 2024-2026 tkykszk

This software is licensed under the MIT License.
"""

from __future__ import annotations

import logging
import os
import pathlib
import warnings
from typing import Iterator, Optional, Tuple

import numpy as np

from ..constituents import (
    PRIORITY_ORDER,
    SHALLOW_WATER_CONSTITUENTS,
    ConstituentParam,
    canonical_name,
    get_speed,
    wrap_phase,
)
from ..exceptions import (
    DataUnavailableError,
    UnsupportedQueryError,
)
from ..interpolate import Grid2D, interpolate_both
from . import netcdf

__all__ = [
    'AMPLITUDE_NAMES',
    'FESConstituentStore',
    'IMAG_NAMES',
    'PHASE_NAMES',
    'REAL_NAMES',
    'amplitude_phase_from_complex',
]

logger = logging.getLogger(__name__)

AMPLITUDE_NAMES = (
    'amplitude', 'Amplitude', 'amp', 'Amp',
    'HA', 'Ha', 'ha', 'H', 'h',
    'data', 'z',
)
PHASE_NAMES = (
    'phase', 'Phase', 'pha', 'Pha',
    'Hg', 'HG', 'hg', 'g', 'G',
    'phi', 'Phi', 'PHI', 'phase_deg',
    'data', 'z',
)
REAL_NAMES = ('hRe', 'Hre', 'hre', 'Re', 'RE', 'real', 'Real')
IMAG_NAMES = ('hIm', 'Him', 'him', 'Im', 'IM', 'imag', 'Imag')

_AMPLITUDE_SUFFIXES = ('', '_amplitude', '_amp')
_PHASE_SUFFIXES = ('', '_phase', '_pha')
_STRIP_SUFFIXES = ('_amplitude', '_amp', '_phase', '_pha')

# FES ocean_tide distributions store amplitudes in centimetres
_CM_PATH_MARKER = 'ocean_tide'


def amplitude_phase_from_complex(re, im) -> Tuple[np.ndarray, np.ndarray]:
    """
    Amplitude and phase (degrees, [0, 360)) of harmonic components

    amplitude = hypot(re, im), phase = atan2(im, re)
    """
    amp = np.hypot(re, im)
    phase = np.degrees(np.arctan2(im, re))
    phase = np.where(phase < 0.0, phase + 360.0, phase)
    return amp, phase


def _is_centimetre_file(path: pathlib.Path) -> bool:
    return _CM_PATH_MARKER in str(path).lower()


class FESConstituentStore:
    """
    Location-keyed constituent source backed by gridded files

    Parameters
    ----------
    data_dir : str or pathlib.Path
        Root directory, searched recursively for .nc files
    constituents : tuple of str, optional
        Constituents to probe, in order (default: major, shallow water,
        then long period)

    Notes
    -----
    No grid data is cached between requests; every call opens each
    file, reads a 2x2 window and closes it again.
    """

    def __init__(self, data_dir: str | pathlib.Path,
                 constituents: Optional[Tuple[str, ...]] = None):
        self.data_dir = pathlib.Path(data_dir).expanduser()
        self.constituents = tuple(constituents) if constituents else PRIORITY_ORDER

    def __repr__(self) -> str:
        return f"FESConstituentStore('{self.data_dir}')"

    # -------------------------------------------------------------------------
    # file discovery
    # -------------------------------------------------------------------------

    def _walk_nc(self) -> Iterator[pathlib.Path]:
        for root, dirs, files in os.walk(self.data_dir):
            dirs.sort()
            for f in sorted(files):
                if f.lower().endswith('.nc'):
                    yield pathlib.Path(root) / f

    def _find_file(self, filename: str) -> Optional[pathlib.Path]:
        target = filename.lower()
        for path in self._walk_nc():
            if path.name.lower() == target:
                return path
        return None

    def _find_first(self, name: str, suffixes: Tuple[str, ...]) -> Optional[pathlib.Path]:
        base = name.lower()
        for suffix in suffixes:
            path = self._find_file(f"{base}{suffix}.nc")
            if path is not None:
                return path
        return None

    def constituent_files(self, name: str) -> Tuple[pathlib.Path, pathlib.Path]:
        """
        Amplitude and phase files for a constituent

        A combined <name>.nc file is preferred over split files. Names
        are matched case-insensitively.

        Raises
        ------
        DataUnavailableError
            If either file cannot be found
        """
        amp_path = self._find_first(name, _AMPLITUDE_SUFFIXES)
        if amp_path is None:
            raise DataUnavailableError(f"amplitude file not found for constituent {name}")
        pha_path = self._find_first(name, _PHASE_SUFFIXES)
        if pha_path is None:
            raise DataUnavailableError(f"phase file not found for constituent {name}")
        return amp_path, pha_path

    def available_constituents(self) -> list[str]:
        """
        Constituents with grid files under the data directory

        Returns
        -------
        list of str
            Known constituent names in probing order

        Raises
        ------
        DataUnavailableError
            If the data directory does not exist
        """
        if not self.data_dir.is_dir():
            raise DataUnavailableError(f"FES data directory does not exist: {self.data_dir}")

        found = set()
        names = set()
        for path in self._walk_nc():
            names.add(path.name.lower())
            base = path.name[:-3]
            for suffix in _STRIP_SUFFIXES:
                if base.lower().endswith(suffix):
                    base = base[:-len(suffix)]
            if not base:
                continue
            key = canonical_name(base)
            if key is not None:
                found.add(key)
            else:
                warnings.warn(
                    f"Grid file '{path.name}' does not name a known constituent; ignored",
                    RuntimeWarning,
                    stacklevel=2,
                )

        for name in SHALLOW_WATER_CONSTITUENTS:
            base = name.lower()
            if f"{base}.nc" in names or f"{base}_amplitude.nc" in names:
                found.add(name)

        ordered = [c for c in self.constituents if c in found]
        return ordered

    # -------------------------------------------------------------------------
    # sampling
    # -------------------------------------------------------------------------

    def _read_window(self, path: pathlib.Path, kind: str,
                     lat: float, lon: float) -> Tuple[Grid2D, float]:
        """2x2 amplitude (m) or phase (deg) grid around a point"""
        ds = netcdf.open_grid(path)
        try:
            axes = netcdf.find_axes(ds)
            names = AMPLITUDE_NAMES if kind == 'amplitude' else PHASE_NAMES
            var_name = netcdf.probe_variable(ds, names)
            if var_name is not None:
                (window,), qlon = netcdf.read_point_window(ds, [var_name], axes, lat, lon)
                values = window.values
            else:
                re_name = netcdf.probe_variable(ds, REAL_NAMES)
                im_name = netcdf.probe_variable(ds, IMAG_NAMES)
                if re_name is None or im_name is None:
                    raise DataUnavailableError(
                        f"data variable not found in {path.name} (tried: {list(names)}), "
                        "and no complex pair detected")
                (re_w, im_w), qlon = netcdf.read_point_window(
                    ds, [re_name, im_name], axes, lat, lon)
                amp, phase = amplitude_phase_from_complex(re_w.values, im_w.values)
                window = re_w
                values = amp if kind == 'amplitude' else phase
        finally:
            ds.close()

        if kind == 'amplitude' and _is_centimetre_file(path):
            values = values / 100.0

        return netcdf.GridWindow(window.lat, window.lon, values).to_grid(), qlon

    def _load_one(self, name: str, lat: float, lon: float) -> ConstituentParam:
        speed = get_speed(name)
        if speed is None:
            raise DataUnavailableError(f"unknown constituent: {name}")
        amp_path, pha_path = self.constituent_files(name)
        amp_grid, amp_lon = self._read_window(amp_path, 'amplitude', lat, lon)
        pha_grid, pha_lon = self._read_window(pha_path, 'phase', lat, lon)
        if amp_lon == pha_lon and amp_grid.shape == pha_grid.shape:
            amplitude, phase = interpolate_both(amp_grid, pha_grid, amp_lon, lat)
        else:
            amplitude = amp_grid.interpolate_at(amp_lon, lat)
            phase = pha_grid.interpolate_at(pha_lon, lat)
        return ConstituentParam(name=name, amplitude=amplitude,
                                phase=wrap_phase(phase), speed=speed)

    def load_for_location(self, lat: float, lon: float) -> list[ConstituentParam]:
        """
        Constituent parameters at a point

        Constituents whose files are missing or unreadable are skipped
        with a warning logged; a point outside a grid is an error.

        Raises
        ------
        DataUnavailableError
            If no constituent could be resolved
        OutOfGridError
            If the point lies outside a constituent grid
        """
        names = self.available_constituents()
        if not names:
            raise DataUnavailableError(f"no FES NetCDF files found in {self.data_dir}")

        params = []
        for name in names:
            try:
                params.append(self._load_one(name, lat, lon))
            except DataUnavailableError as e:
                logger.warning("skipping constituent %s: %s", name, e)

        if not params:
            raise DataUnavailableError(
                f"no valid constituents found for location ({lat:.4f}, {lon:.4f})")
        return params

    def load_for_station(self, station_id: str) -> list[ConstituentParam]:
        raise UnsupportedQueryError(
            "FES store does not support station_id queries - use lat/lon parameters")

    def load_grid(self, name: str) -> Tuple[Grid2D, Grid2D]:
        """
        Full amplitude and phase grids for a constituent

        Reads the whole of both files; for diagnostics and listings,
        not for per-request sampling.

        Returns
        -------
        amplitude, phase : Grid2D
            Amplitude in metres and phase in degrees, ascending axes
        """
        key = canonical_name(name)
        if key is None:
            raise DataUnavailableError(f"unknown constituent: {name}")
        amp_path, pha_path = self.constituent_files(key)
        amp = self._read_full(amp_path, 'amplitude')
        pha = self._read_full(pha_path, 'phase')
        amp.validate()
        pha.validate()
        return amp, pha

    def _read_full(self, path: pathlib.Path, kind: str) -> Grid2D:
        ds = netcdf.open_grid(path)
        try:
            axes = netcdf.find_axes(ds)
            names = AMPLITUDE_NAMES if kind == 'amplitude' else PHASE_NAMES
            var_name = netcdf.probe_variable(ds, names)
            if var_name is not None:
                window = netcdf.read_full(ds, var_name, axes)
            else:
                re_name = netcdf.probe_variable(ds, REAL_NAMES)
                im_name = netcdf.probe_variable(ds, IMAG_NAMES)
                if re_name is None or im_name is None:
                    raise DataUnavailableError(
                        f"data variable not found in {path.name}, and no complex pair detected")
                re_w = netcdf.read_full(ds, re_name, axes)
                im_w = netcdf.read_full(ds, im_name, axes)
                amp, phase = amplitude_phase_from_complex(re_w.values, im_w.values)
                window = netcdf.GridWindow(re_w.lat, re_w.lon,
                                           amp if kind == 'amplitude' else phase)
        finally:
            ds.close()

        if kind == 'amplitude' and _is_centimetre_file(path):
            window = netcdf.GridWindow(window.lat, window.lon, window.values / 100.0)
        return window.to_grid()

    def sample(self, name: str, lat: float, lon: float) -> Tuple[float, float]:
        """Amplitude (m) and phase (deg) of one constituent at a point"""
        p = self._load_one(canonical_name(name) or name, lat, lon)
        return p.amplitude, p.phase

