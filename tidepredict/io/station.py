"""
tidepredict.io.station - Station constituent tables

Station-keyed constituent source reading one CSV file per station:

    <data_dir>/mock_<station id, lower case>_constituents.csv

with the header `constituent, amplitude_m, phase_deg`.

Copyright (c) 2024-2026 tkykszk

This software is licensed under the MIT License.
"""

from __future__ import annotations

import csv
import pathlib

from ..constituents import ConstituentParam, canonical_name, get_speed, wrap_phase
from ..exceptions import DataUnavailableError, UnsupportedQueryError

__all__ = [
    'EXPECTED_HEADER',
    'StationConstituentStore',
]

EXPECTED_HEADER = ('constituent', 'amplitude_m', 'phase_deg')

_PREFIX = 'mock_'
_SUFFIX = '_constituents.csv'


class StationConstituentStore:
    """
    Constituent source keyed by station id

    Parameters
    ----------
    data_dir : str or pathlib.Path
        Directory holding the station CSV files
    """

    def __init__(self, data_dir: str | pathlib.Path):
        self.data_dir = pathlib.Path(data_dir).expanduser()

    def __repr__(self) -> str:
        return f"StationConstituentStore('{self.data_dir}')"

    def station_file(self, station_id: str) -> pathlib.Path:
        return self.data_dir / f"{_PREFIX}{station_id.lower()}{_SUFFIX}"

    def load_for_station(self, station_id: str) -> list[ConstituentParam]:
        """
        Constituent parameters for a station

        Raises
        ------
        DataUnavailableError
            If the file is missing or malformed, names an unknown
            constituent, or holds no rows
        """
        path = self.station_file(station_id)
        try:
            f = open(path, 'r', encoding='utf-8', newline='')
        except OSError as e:
            raise DataUnavailableError(
                f"failed to open CSV file for station {station_id}: {e}") from e

        with f:
            reader = csv.reader(f, skipinitialspace=True)
            header = next(reader, None)
            if header is None:
                raise DataUnavailableError(f"failed to read CSV header: {path.name} is empty")
            if len(header) != len(EXPECTED_HEADER):
                raise DataUnavailableError(
                    f"invalid CSV header: expected {list(EXPECTED_HEADER)}, got {header}")
            for i, (got, want) in enumerate(zip(header, EXPECTED_HEADER)):
                if got != want:
                    raise DataUnavailableError(
                        f"invalid CSV header: expected column {i} to be {want}, got {got}")

            params = []
            for record in reader:
                if not record:
                    continue
                params.append(self._parse_record(record))

        if not params:
            raise DataUnavailableError(f"no constituents found in CSV for station {station_id}")
        return params

    @staticmethod
    def _parse_record(record: list[str]) -> ConstituentParam:
        if len(record) != 3:
            raise DataUnavailableError(
                f"invalid CSV record: expected 3 columns, got {len(record)}")
        name, amp_str, pha_str = (field.strip() for field in record)
        try:
            amplitude = float(amp_str)
        except ValueError as e:
            raise DataUnavailableError(f"invalid amplitude for constituent {name}: {e}") from e
        try:
            phase = float(pha_str)
        except ValueError as e:
            raise DataUnavailableError(f"invalid phase for constituent {name}: {e}") from e

        speed = get_speed(name)
        if speed is None:
            raise DataUnavailableError(f"unknown constituent: {name}")
        return ConstituentParam(name=canonical_name(name), amplitude=amplitude,
                                phase=wrap_phase(phase), speed=speed)

    def load_for_location(self, lat: float, lon: float) -> list[ConstituentParam]:
        raise UnsupportedQueryError(
            "CSV store does not support lat/lon queries - use FES store or specify a station_id")

    def list_stations(self) -> list[str]:
        """
        Station ids with a constituent file, sorted

        Raises
        ------
        DataUnavailableError
            If the data directory cannot be read
        """
        try:
            entries = list(self.data_dir.iterdir())
        except OSError as e:
            raise DataUnavailableError(f"failed to read data directory: {e}") from e
        stations = []
        for entry in entries:
            name = entry.name
            if entry.is_file() and name.startswith(_PREFIX) and name.endswith(_SUFFIX):
                stations.append(name[len(_PREFIX):-len(_SUFFIX)])
        return sorted(stations)
