"""
Tests for tidepredict.io.FES

Gridded constituent discovery and point sampling from small NetCDF
files written on the fly.
"""

import numpy as np
import pytest

xr = pytest.importorskip('xarray')
nc = pytest.importorskip('netCDF4')

from tidepredict.exceptions import (
    DataUnavailableError,
    OutOfGridError,
    UnsupportedQueryError,
)
from tidepredict.io import FES
from tidepredict.io.FES import FESConstituentStore, amplitude_phase_from_complex

LAT = np.arange(-10.0, 10.0 + 1e-9, 5.0)
LON360 = np.arange(0.0, 360.0, 5.0)
LON180 = np.arange(-180.0, 180.0, 5.0)


def linear_amplitude(lon, lat):
    lon2d, lat2d = np.meshgrid(lon, lat)
    return 1.0 + 0.01 * lon2d + 0.02 * lat2d


def constant(value, lon=LON360, lat=LAT):
    return np.full((len(lat), len(lon)), value, dtype=np.float64)


class TestComplex:
    """Test amplitude/phase from harmonic components"""

    def test_quadrants(self):
        amp, phase = amplitude_phase_from_complex(
            np.array([1.0, 0.0, -1.0, 0.0]), np.array([0.0, 1.0, 0.0, -1.0]))
        np.testing.assert_allclose(amp, 1.0)
        np.testing.assert_allclose(phase, [0.0, 90.0, 180.0, 270.0])


class TestDiscovery:
    """Test constituent file discovery"""

    @pytest.fixture
    def fes_dir(self, tmp_path):
        d = tmp_path / 'fes'
        (d / 'sub').mkdir(parents=True)
        for name in ('m2.nc', 's2_amplitude.nc', 's2_phase.nc',
                     'K1_amp.nc', 'K1_pha.nc', 'sub/m4.nc'):
            (d / name).touch()
        return d

    def test_available_in_priority_order(self, fes_dir):
        store = FESConstituentStore(fes_dir)
        assert store.available_constituents() == ['M2', 'S2', 'K1', 'M4']

    def test_unknown_file_warns(self, fes_dir):
        (fes_dir / 'bathymetry.nc').touch()
        store = FESConstituentStore(fes_dir)
        with pytest.warns(RuntimeWarning, match='bathymetry.nc'):
            names = store.available_constituents()
        assert names == ['M2', 'S2', 'K1', 'M4']

    def test_restricted_constituents(self, fes_dir):
        store = FESConstituentStore(fes_dir, constituents=('K1', 'M2'))
        assert store.available_constituents() == ['K1', 'M2']

    def test_split_files(self, fes_dir):
        store = FESConstituentStore(fes_dir)
        amp, pha = store.constituent_files('S2')
        assert amp.name == 's2_amplitude.nc'
        assert pha.name == 's2_phase.nc'
        amp, pha = store.constituent_files('K1')
        assert (amp.name, pha.name) == ('K1_amp.nc', 'K1_pha.nc')

    def test_combined_file_preferred(self, fes_dir):
        (fes_dir / 'm2_amplitude.nc').touch()
        (fes_dir / 'm2_phase.nc').touch()
        amp, pha = FESConstituentStore(fes_dir).constituent_files('M2')
        assert amp.name == 'm2.nc'
        assert pha.name == 'm2.nc'

    def test_missing_phase_file(self, fes_dir):
        (fes_dir / 'n2_amplitude.nc').touch()
        with pytest.raises(DataUnavailableError):
            FESConstituentStore(fes_dir).constituent_files('N2')

    def test_missing_directory(self, tmp_path):
        store = FESConstituentStore(tmp_path / 'nowhere')
        with pytest.raises(DataUnavailableError):
            store.available_constituents()

    def test_empty_directory(self, tmp_path):
        with pytest.raises(DataUnavailableError):
            FESConstituentStore(tmp_path).load_for_location(0.0, 0.0)

    def test_station_queries_unsupported(self, tmp_path):
        with pytest.raises(UnsupportedQueryError):
            FESConstituentStore(tmp_path).load_for_station('tokyo')
        # still a DataUnavailableError for callers that only catch that
        with pytest.raises(DataUnavailableError):
            FESConstituentStore(tmp_path).load_for_station('tokyo')


class TestSampling:
    """Test point sampling"""

    def test_linear_field(self, m2_grid_dir):
        store = FESConstituentStore(m2_grid_dir)
        params = store.load_for_location(2.5, 140.0)
        assert [p.name for p in params] == ['M2']
        assert params[0].amplitude == pytest.approx(1.0 + 1.4 + 0.05)
        assert params[0].phase == pytest.approx(45.0)
        assert params[0].speed == pytest.approx(28.9841042)

    def test_negative_longitude_on_360_axis(self, m2_grid_dir):
        store = FESConstituentStore(m2_grid_dir)
        a = store.sample('M2', 2.5, -220.0)
        b = store.sample('M2', 2.5, 140.0)
        assert a == pytest.approx(b)

    def test_signed_longitude_axis(self, tmp_path, write_grid):
        write_grid('m2.nc', LAT, LON180, {
            'amplitude': {'data': linear_amplitude(LON180, LAT) + 2.0},
            'phase': {'data': constant(10.0, LON180)},
        })
        amp, phase = FESConstituentStore(tmp_path).sample('m2', -2.5, -30.0)
        assert amp == pytest.approx(3.0 - 0.3 - 0.05)
        assert phase == pytest.approx(10.0)

    def test_outside_grid(self, m2_grid_dir):
        with pytest.raises(OutOfGridError):
            FESConstituentStore(m2_grid_dir).load_for_location(50.0, 140.0)

    def test_fill_value_becomes_zero(self, tmp_path, write_grid):
        amp = constant(1.0)
        j = int(np.flatnonzero(LAT == 0.0)[0])
        i = int(np.flatnonzero(LON360 == 140.0)[0])
        amp[j, i] = 9999.0
        write_grid('m2.nc', LAT, LON360, {
            'amplitude': {'data': amp, 'fill_value': 9999.0},
            'phase': {'data': constant(45.0)},
        })
        value, _ = FESConstituentStore(tmp_path).sample('M2', 0.0, 140.0)
        assert value == 0.0

    def test_scale_factor(self, tmp_path, write_grid):
        write_grid('m2.nc', LAT, LON360, {
            'amplitude': {'data': constant(200.0), 'attrs': {'scale_factor': 0.01}},
            'phase': {'data': constant(30.0)},
        })
        amp, phase = FESConstituentStore(tmp_path).sample('M2', 1.0, 100.0)
        assert amp == pytest.approx(2.0)
        assert phase == pytest.approx(30.0)

    def test_missing_value_becomes_zero(self, tmp_path, write_grid):
        amp = constant(1.0)
        j = int(np.flatnonzero(LAT == 0.0)[0])
        i = int(np.flatnonzero(LON360 == 140.0)[0])
        amp[j, i] = 9999.0
        write_grid('m2.nc', LAT, LON360, {
            'amplitude': {'data': amp, 'attrs': {'missing_value': 9999.0}},
            'phase': {'data': constant(45.0)},
        })
        store = FESConstituentStore(tmp_path)
        value, _ = store.sample('M2', 0.0, 140.0)
        assert value == 0.0
        # half way to the next column: blend of 0 and 1
        value, _ = store.sample('M2', 0.0, 142.5)
        assert value == pytest.approx(0.5)

    def test_packed_int16_with_fill(self, tmp_path, write_grid):
        raw = np.full((LAT.size, LON360.size), 200, dtype=np.int16)
        j = int(np.flatnonzero(LAT == 0.0)[0])
        i = int(np.flatnonzero(LON360 == 140.0)[0])
        raw[j, i] = -32767
        write_grid('m2.nc', LAT, LON360, {
            'amplitude': {'data': raw, 'dtype': 'i2', 'fill_value': -32767,
                          'attrs': {'scale_factor': 0.01, 'add_offset': 0.5}},
            'phase': {'data': constant(45.0)},
        })
        store = FESConstituentStore(tmp_path)
        value, phase = store.sample('M2', 0.0, 140.0)
        assert value == 0.0
        assert phase == pytest.approx(45.0)
        value, _ = store.sample('M2', 7.5, 100.0)
        assert value == pytest.approx(2.5, abs=1e-5)

    def test_centimetre_amplitudes(self, tmp_path, write_grid):
        write_grid('m2.nc', LAT, LON360, {
            'amplitude': {'data': constant(100.0)},
            'phase': {'data': constant(0.0)},
        }, directory=tmp_path / 'fes' / 'ocean_tide')
        amp, _ = FESConstituentStore(tmp_path / 'fes').sample('M2', 0.0, 10.0)
        assert amp == pytest.approx(1.0)

    def test_transposed_dimensions(self, tmp_path, write_grid):
        field = linear_amplitude(LON360, LAT)
        write_grid('m2.nc', LAT, LON360, {
            'amplitude': {'data': field.T, 'dims': ('lon', 'lat')},
            'phase': {'data': constant(45.0).T, 'dims': ('lon', 'lat')},
        })
        amp, phase = FESConstituentStore(tmp_path).sample('M2', 2.5, 140.0)
        assert amp == pytest.approx(2.45)
        assert phase == pytest.approx(45.0)

    def test_descending_latitude(self, tmp_path, write_grid):
        lat = LAT[::-1]
        write_grid('m2.nc', lat, LON360, {
            'amplitude': {'data': linear_amplitude(LON360, lat)},
            'phase': {'data': constant(45.0, lat=lat)},
        })
        amp, _ = FESConstituentStore(tmp_path).sample('M2', 2.5, 140.0)
        assert amp == pytest.approx(2.45)

    def test_alternate_names(self, tmp_path, write_grid):
        write_grid('m2.nc', LAT, LON360, {
            'Ha': {'data': constant(0.5)},
            'Hg': {'data': constant(120.0)},
        }, lat_name='latitude', lon_name='longitude')
        amp, phase = FESConstituentStore(tmp_path).sample('M2', 0.0, 10.0)
        assert amp == pytest.approx(0.5)
        assert phase == pytest.approx(120.0)

    def test_complex_components(self, tmp_path, write_grid):
        write_grid('k1.nc', LAT, LON360, {
            'hRe': {'data': constant(0.0)},
            'hIm': {'data': constant(-2.0)},
        })
        amp, phase = FESConstituentStore(tmp_path).sample('K1', 0.0, 10.0)
        assert amp == pytest.approx(2.0)
        assert phase == pytest.approx(270.0)

    def test_split_amplitude_and_phase_files(self, tmp_path, write_grid):
        write_grid('s2_amplitude.nc', LAT, LON360, {'amplitude': {'data': constant(0.4)}})
        write_grid('s2_phase.nc', LAT, LON360, {'phase': {'data': constant(-30.0)}})
        params = FESConstituentStore(tmp_path).load_for_location(0.0, 10.0)
        assert [p.name for p in params] == ['S2']
        assert params[0].amplitude == pytest.approx(0.4)
        # wrapped into [0, 360)
        assert params[0].phase == pytest.approx(330.0)

    def test_missing_variable(self, tmp_path, write_grid):
        write_grid('m2.nc', LAT, LON360, {'unrelated': {'data': constant(1.0)}})
        with pytest.raises(DataUnavailableError):
            FESConstituentStore(tmp_path).sample('M2', 0.0, 10.0)

    def test_incomplete_constituent_skipped(self, m2_grid_dir):
        (m2_grid_dir / 'n2_amplitude.nc').touch()
        params = FESConstituentStore(m2_grid_dir).load_for_location(0.0, 10.0)
        assert [p.name for p in params] == ['M2']

    def test_load_grid(self, m2_grid_dir):
        amp, pha = FESConstituentStore(m2_grid_dir).load_grid('m2')
        assert amp.shape == (len(LAT), len(LON360))
        assert pha.shape == amp.shape
        assert amp.interpolate_at(140.0, 2.5) == pytest.approx(2.45)

    def test_module_exports(self):
        assert 'FESConstituentStore' in FES.__all__
