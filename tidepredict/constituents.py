"""
tidepredict.constituents - Tidal constituent table

Static table of constituent angular speeds and the per-location
parameter record produced by constituent sources.

References:
    P. Schureman, "Manual of Harmonic Analysis and Prediction of Tides"
        US Coast and Geodetic Survey, Special Publication, 98, (1958).
    H. B. Parker, "Tidal Analysis and Prediction", NOAA Special
        Publication NOS CO-OPS 3, (2007).

Copyright (c) 2024-2026 tkykszk

This software is licensed under the MIT License.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional

__all__ = [
    'Constituent',
    'ConstituentParam',
    'MAJOR_CONSTITUENTS',
    'PRIORITY_ORDER',
    'SHALLOW_WATER_CONSTITUENTS',
    'STANDARD_CONSTITUENTS',
    'all_constituents',
    'canonical_name',
    'deg2rad',
    'get_speed',
    'wrap_phase',
]

# Angular speeds in degrees per hour
STANDARD_CONSTITUENTS = MappingProxyType({
    # Semi-diurnal
    'M2': 28.9841042,   # Principal lunar
    'S2': 30.0000000,   # Principal solar
    'N2': 28.4397295,   # Larger lunar elliptic
    'K2': 30.0821373,   # Lunisolar
    # Diurnal
    'K1': 15.0410686,   # Lunisolar
    'O1': 13.9430356,   # Principal lunar
    'P1': 14.9589314,   # Principal solar
    'Q1': 13.3986609,   # Larger lunar elliptic
    # Shallow water
    'M4': 57.9682084,
    'M6': 86.9523127,
    'MK3': 44.0251729,
    'S4': 60.0000000,
    'MN4': 57.4238337,
    'MS4': 58.9841042,
    # Long period
    'Mf': 1.0980331,
    'Mm': 0.5443747,
    'Ssa': 0.0821373,
    'Sa': 0.0410686,
})

MAJOR_CONSTITUENTS = ('M2', 'S2', 'N2', 'K2', 'K1', 'O1', 'P1', 'Q1')
SHALLOW_WATER_CONSTITUENTS = ('M4', 'MS4', 'MN4', 'M6', 'S4', 'MK3')

# Order in which grid sources probe constituent files
PRIORITY_ORDER = (
    MAJOR_CONSTITUENTS
    + SHALLOW_WATER_CONSTITUENTS
    + ('Mf', 'Mm', 'Ssa', 'Sa')
)

_BY_LOWER = {name.lower(): name for name in STANDARD_CONSTITUENTS}


@dataclass(frozen=True)
class Constituent:
    """A named harmonic component with a fixed angular speed"""
    name: str
    speed: float  # degrees per hour

    @property
    def period(self) -> float:
        """Period in hours (infinite for a zero-speed term)"""
        return 360.0 / self.speed if self.speed else math.inf


@dataclass(frozen=True)
class ConstituentParam:
    """
    Constituent bound to a location

    Attributes
    ----------
    name : str
        Constituent name (e.g. 'M2')
    amplitude : float
        Amplitude in metres
    phase : float
        Greenwich phase lag in degrees, [0, 360)
    speed : float
        Angular speed in degrees per hour
    """
    name: str
    amplitude: float
    phase: float
    speed: float


def canonical_name(name: str) -> Optional[str]:
    """Return the table spelling of a constituent name, ignoring case"""
    if name in STANDARD_CONSTITUENTS:
        return name
    return _BY_LOWER.get(name.strip().lower())


def get_speed(name: str) -> Optional[float]:
    """
    Angular speed of a constituent in degrees per hour

    Returns None for names not in the table.
    """
    key = canonical_name(name)
    if key is None:
        return None
    return STANDARD_CONSTITUENTS[key]


def all_constituents() -> list[Constituent]:
    """All constituents in the static table, in table order"""
    return [Constituent(name, speed) for name, speed in STANDARD_CONSTITUENTS.items()]


def deg2rad(deg):
    """Degrees to radians (deg * pi / 180), scalars or arrays"""
    return deg * math.pi / 180.0


def wrap_phase(deg: float) -> float:
    """Wrap a phase angle into [0, 360)"""
    deg = math.fmod(deg, 360.0)
    if deg < 0:
        deg += 360.0
    # fmod of a tiny negative value can round up to exactly 360
    if deg >= 360.0:
        deg -= 360.0
    return deg
