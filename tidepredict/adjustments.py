"""
tidepredict.adjustments - Datum offsets and station constituent overrides

Two optional tables keyed by location:

- datum offsets: a vertical offset (e.g. to a chart datum) taken from
  the nearest listed point within 80 km
- station overrides: replacement or additional constituents (and an
  optional datum offset) for the nearest station whose radius covers
  the query point

Both are plain JSON lists. A missing file gives an empty table.

Copyright (c) 2024-2026 tkykszk

This software is licensed under the MIT License.
"""

from __future__ import annotations

import json
import pathlib
from dataclasses import dataclass, field, replace
from typing import Any, Optional, Sequence, Tuple, Union

import numpy as np

from .constituents import ConstituentParam, canonical_name, get_speed, wrap_phase
from .exceptions import ConfigurationError

__all__ = [
    'DATUM_OFFSET_MAX_KM',
    'DEFAULT_OVERRIDE_RADIUS_KM',
    'DatumOffset',
    'DatumOffsetTable',
    'OverrideConstituent',
    'StationOverride',
    'StationOverrideTable',
    'apply_station_override',
    'haversine_km',
]

# Mean Earth radius (km)
_EARTH_RADIUS_KM = 6371.0

DATUM_OFFSET_MAX_KM = 80.0
DEFAULT_OVERRIDE_RADIUS_KM = 40.0


def haversine_km(lat1, lon1, lat2, lon2):
    """
    Great-circle distance in kilometres

    Parameters
    ----------
    lat1, lon1 : float or np.ndarray
        First point(s) in degrees
    lat2, lon2 : float or np.ndarray
        Second point(s) in degrees
    """
    phi1 = np.radians(lat1)
    phi2 = np.radians(lat2)
    dphi = np.radians(np.subtract(lat2, lat1))
    dlam = np.radians(np.subtract(lon2, lon1))
    a = np.sin(dphi / 2.0) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(dlam / 2.0) ** 2
    return 2.0 * _EARTH_RADIUS_KM * np.arctan2(np.sqrt(a), np.sqrt(1.0 - a))


def _read_json_list(path: Union[str, pathlib.Path]) -> Optional[list]:
    path = pathlib.Path(path).expanduser()
    if not path.is_file():
        return None
    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"invalid JSON in {path}: {e}") from e
    if not isinstance(data, list):
        raise ConfigurationError(f"{path} must contain a JSON list")
    return data


def _float(entry: dict, key: str, default: Any = None) -> float:
    value = entry.get(key, default)
    if value is None:
        raise ConfigurationError(f"missing '{key}' in entry {entry.get('name', entry)!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"invalid '{key}' in entry {entry.get('name', entry)!r}") from e


# =============================================================================
# Datum offsets
# =============================================================================

@dataclass(frozen=True)
class DatumOffset:
    name: str
    lat: float
    lon: float
    offset_m: float


class DatumOffsetTable:
    """
    Nearest-point lookup of datum offsets

    Parameters
    ----------
    entries : sequence of DatumOffset
        Table rows
    max_distance_km : float, default 80
        Entries farther than this are ignored
    """

    def __init__(self, entries: Sequence[DatumOffset] = (),
                 max_distance_km: float = DATUM_OFFSET_MAX_KM):
        self.entries = tuple(entries)
        self.max_distance_km = max_distance_km
        self._lat = np.array([e.lat for e in self.entries], dtype=np.float64)
        self._lon = np.array([e.lon for e in self.entries], dtype=np.float64)

    def __len__(self) -> int:
        return len(self.entries)

    @classmethod
    def from_list(cls, rows: list) -> 'DatumOffsetTable':
        entries = [
            DatumOffset(name=str(r.get('name', '')), lat=_float(r, 'lat'),
                        lon=_float(r, 'lon'), offset_m=_float(r, 'offset_m'))
            for r in rows
        ]
        return cls(entries)

    @classmethod
    def load(cls, path: Optional[Union[str, pathlib.Path]]) -> 'DatumOffsetTable':
        """Table from a JSON file; empty if the path is unset or missing"""
        rows = _read_json_list(path) if path else None
        return cls.from_list(rows) if rows else cls()

    def nearest(self, lat: float, lon: float) -> Optional[Tuple[DatumOffset, float]]:
        """Nearest entry and its distance (km), or None for an empty table"""
        if not self.entries:
            return None
        d = haversine_km(lat, lon, self._lat, self._lon)
        i = int(np.argmin(d))
        return self.entries[i], float(d[i])

    def offset_for(self, lat: float, lon: float) -> Optional[float]:
        """Offset of the nearest entry within range, else None"""
        found = self.nearest(lat, lon)
        if found is None:
            return None
        entry, distance = found
        if distance <= self.max_distance_km:
            return entry.offset_m
        return None


# =============================================================================
# Station overrides
# =============================================================================

@dataclass(frozen=True)
class OverrideConstituent:
    name: str
    amplitude_m: float
    phase_deg: float


@dataclass(frozen=True)
class StationOverride:
    """
    Constituent replacements for the area around a station

    Attributes
    ----------
    name : str
        Display name
    station : str
        Station code
    lat, lon : float
        Station position in degrees
    radius_km : float
        Radius within which the override applies
    datum_offset_m : float or None
        Added to mean sea level when the override applies
    constituents : tuple of OverrideConstituent
        Replacement or additional constituents
    """
    name: str
    lat: float
    lon: float
    radius_km: float = DEFAULT_OVERRIDE_RADIUS_KM
    station: str = ''
    datum_offset_m: Optional[float] = None
    constituents: Tuple[OverrideConstituent, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, d: dict) -> 'StationOverride':
        radius = d.get('radius_km') or DEFAULT_OVERRIDE_RADIUS_KM
        offset = d.get('datum_offset_m')
        constituents = tuple(
            OverrideConstituent(name=str(c.get('name', '')),
                                amplitude_m=_float(c, 'amplitude_m'),
                                phase_deg=_float(c, 'phase_deg'))
            for c in d.get('constituents') or ()
        )
        return cls(
            name=str(d.get('name', '')),
            station=str(d.get('station', '')),
            lat=_float(d, 'lat'),
            lon=_float(d, 'lon'),
            radius_km=float(radius),
            datum_offset_m=None if offset is None else float(offset),
            constituents=constituents,
        )


class StationOverrideTable:
    """Radius-bounded nearest-station lookup of overrides"""

    def __init__(self, entries: Sequence[StationOverride] = ()):
        self.entries = tuple(entries)

    def __len__(self) -> int:
        return len(self.entries)

    @classmethod
    def load(cls, path: Optional[Union[str, pathlib.Path]]) -> 'StationOverrideTable':
        """Table from a JSON file; empty if the path is unset or missing"""
        rows = _read_json_list(path) if path else None
        if not rows:
            return cls()
        return cls([StationOverride.from_dict(r) for r in rows])

    def find(self, lat: float, lon: float) -> Optional[StationOverride]:
        """Nearest override whose radius covers (lat, lon)"""
        best = None
        best_dist = np.inf
        for entry in self.entries:
            d = float(haversine_km(lat, lon, entry.lat, entry.lon))
            if d <= entry.radius_km and d < best_dist:
                best, best_dist = entry, d
        return best


def apply_station_override(override: Optional[StationOverride],
                           constituents: Sequence[ConstituentParam],
                           msl: float) -> Tuple[list[ConstituentParam], float]:
    """
    Apply an override to a constituent list and mean sea level

    Listed constituents replace the amplitude and phase of an existing
    entry of the same name or are appended; unknown names are skipped.
    The input list is not modified.

    Returns
    -------
    constituents : list of ConstituentParam
        Adjusted constituents
    msl : float
        Mean sea level with the override's datum offset added
    """
    adjusted = list(constituents)
    if override is None:
        return adjusted, msl

    if override.datum_offset_m is not None:
        msl += override.datum_offset_m

    index = {c.name: i for i, c in enumerate(adjusted)}
    for ov in override.constituents:
        name = canonical_name(ov.name)
        if name is None:
            continue
        phase = wrap_phase(ov.phase_deg)
        i = index.get(name)
        if i is not None:
            adjusted[i] = replace(adjusted[i], amplitude=ov.amplitude_m, phase=phase)
            continue
        adjusted.append(ConstituentParam(name=name, amplitude=ov.amplitude_m,
                                         phase=phase, speed=get_speed(name)))
        index[name] = len(adjusted) - 1
    return adjusted, msl
