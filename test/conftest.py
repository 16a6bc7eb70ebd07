import pathlib
from datetime import datetime, timezone

import numpy as np
import pytest


@pytest.fixture
def write_grid(tmp_path):
    """
    Factory writing small NetCDF grids

    write_grid(name, lat, lon, variables, ...) where `variables` maps a
    variable name to a dict with 'data' and optional 'dims', 'dtype',
    'fill_value' and 'attrs'. Values are written raw, exactly as given
    (no packing is applied for scale_factor or add_offset).
    """
    nc = pytest.importorskip('netCDF4')

    def _write(name, lat, lon, variables, lat_name='lat', lon_name='lon',
               directory=None):
        path = pathlib.Path(directory or tmp_path) / name
        path.parent.mkdir(parents=True, exist_ok=True)
        with nc.Dataset(path, 'w', format='NETCDF4') as ds:
            ds.createDimension(lat_name, len(lat))
            ds.createDimension(lon_name, len(lon))
            lat_var = ds.createVariable(lat_name, 'f8', (lat_name,))
            lat_var[:] = np.asarray(lat, dtype=np.float64)
            lon_var = ds.createVariable(lon_name, 'f8', (lon_name,))
            lon_var[:] = np.asarray(lon, dtype=np.float64)
            for var_name, props in variables.items():
                dims = props.get('dims', (lat_name, lon_name))
                var = ds.createVariable(var_name, props.get('dtype', 'f8'), dims,
                                        fill_value=props.get('fill_value'))
                var.set_auto_maskandscale(False)
                for key, value in props.get('attrs', {}).items():
                    var.setncattr(key, value)
                var[:] = np.asarray(props['data']).astype(var.dtype)
        return path

    return _write


@pytest.fixture
def write_station(tmp_path):
    """Factory writing station constituent CSV files"""

    def _write(station_id, rows, header='constituent, amplitude_m, phase_deg',
               directory=None):
        directory = pathlib.Path(directory or tmp_path)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"mock_{station_id.lower()}_constituents.csv"
        lines = [header] if header is not None else []
        lines.extend(rows)
        path.write_text('\n'.join(lines) + ('\n' if lines else ''), encoding='utf-8')
        return path

    return _write


@pytest.fixture
def m2_grid_dir(tmp_path, write_grid):
    """
    FES directory with a combined M2 file on a 0-360 axis

    amplitude = 1 + 0.01*lon + 0.02*lat (linear, so bilinear is exact)
    phase = 45 everywhere
    """
    lat = np.arange(-10.0, 10.0 + 1e-9, 5.0)
    lon = np.arange(0.0, 360.0, 5.0)
    lon2d, lat2d = np.meshgrid(lon, lat)
    fes_dir = tmp_path / 'fes'
    write_grid('m2.nc', lat, lon, {
        'amplitude': {'data': 1.0 + 0.01 * lon2d + 0.02 * lat2d},
        'phase': {'data': np.full(lon2d.shape, 45.0)},
    }, directory=fes_dir)
    return fes_dir


@pytest.fixture
def epoch_2012():
    return datetime(2012, 1, 1, tzinfo=timezone.utc)
