"""
Harmonic synthesis

Sums constituent contributions into a sea-surface height:

    h(t) = MSL + sum_k f_k * A_k * cos(theta_k)

with the phase angle theta_k (degrees) given by one of two conventions:

    Greenwich:   theta_k = w_k * dt - phi_k + longitude + u_k
    Equilibrium: theta_k = w_k * dt + V_k(dt) + u_k - phi_k

where dt is hours since the reference time.

Copyright (c) 2024-2026 tkykszk

This software is licensed under the MIT License.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

import numpy as np

from ..constituents import ConstituentParam, deg2rad
from ..exceptions import ValidationError
from ..nodal import IdentityNodalCorrection, NodalCorrection

__all__ = [
    'PhaseConvention',
    'PredictionParams',
    'TideLevel',
    'generate_predictions',
    'heights_of',
    'hours_since',
    'sample_hours',
    'sample_times',
    'synthesize',
    'tide_height',
]


class PhaseConvention(enum.Enum):
    """How constituent phases are referenced"""
    GREENWICH = 'greenwich'
    EQUILIBRIUM = 'vu'

    @classmethod
    def from_string(cls, value: Optional[str]) -> 'PhaseConvention':
        """'vu' (any case) selects EQUILIBRIUM, anything else GREENWICH"""
        if value is not None and value.strip().lower() == 'vu':
            return cls.EQUILIBRIUM
        return cls.GREENWICH


@dataclass(frozen=True)
class TideLevel:
    """Predicted height (m) at one instant"""
    time: datetime
    height: float


@dataclass
class PredictionParams:
    """
    Per-request synthesis configuration

    Attributes
    ----------
    constituents : list of ConstituentParam
        Amplitudes, phases and speeds at the location
    msl : float
        Mean sea level offset in metres
    longitude : float
        Site longitude in degrees (Greenwich convention only)
    nodal : NodalCorrection
        Nodal correction provider, counting hours from `reference_time`
    reference_time : datetime
        Epoch for dt
    phase_convention : PhaseConvention
        Phase formula selector
    """
    constituents: List[ConstituentParam]
    msl: float = 0.0
    longitude: float = 0.0
    nodal: NodalCorrection = field(default_factory=IdentityNodalCorrection)
    reference_time: datetime = datetime(1970, 1, 1, tzinfo=timezone.utc)
    phase_convention: PhaseConvention = PhaseConvention.GREENWICH


def _as_utc(t: datetime) -> datetime:
    if t.tzinfo is None:
        return t.replace(tzinfo=timezone.utc)
    return t.astimezone(timezone.utc)


def hours_since(t: datetime, reference: datetime) -> float:
    """Signed hours from `reference` to `t`"""
    return (_as_utc(t) - _as_utc(reference)).total_seconds() / 3600.0


def synthesize(hours, params: PredictionParams) -> np.ndarray:
    """
    Tide heights at an array of times

    Parameters
    ----------
    hours : np.ndarray
        Hours since params.reference_time
    params : PredictionParams
        Synthesis configuration

    Returns
    -------
    np.ndarray
        Heights in metres, same shape as `hours`
    """
    hours = np.asarray(hours, dtype=np.float64)
    height = np.full(hours.shape, params.msl, dtype=np.float64)

    equilibrium = params.phase_convention is PhaseConvention.EQUILIBRIUM
    for c in params.constituents:
        f, u = params.nodal.get_factors(c.name, hours)
        if equilibrium:
            V = params.nodal.get_equilibrium_argument(c.name, hours)
            theta = c.speed * hours + V + u - c.phase
        else:
            theta = c.speed * hours - c.phase + params.longitude + u
        height += f * c.amplitude * np.cos(deg2rad(theta))

    return height


def tide_height(t: datetime, params: PredictionParams) -> float:
    """Tide height in metres at a single instant"""
    dt = hours_since(t, params.reference_time)
    return float(synthesize(np.array([dt]), params)[0])


def sample_times(start: datetime, end: datetime,
                 interval: timedelta) -> List[datetime]:
    """
    Fixed-interval instants from `start` up to and including `end`

    Raises
    ------
    ValidationError
        If interval is not positive
    """
    if interval <= timedelta(0):
        raise ValidationError(f"interval must be positive, got {interval}")
    start = _as_utc(start)
    end = _as_utc(end)
    if end < start:
        return []
    n = (end - start) // interval + 1
    return [start + i * interval for i in range(n)]


def sample_hours(start: datetime, end: datetime, interval: timedelta,
                 reference: datetime) -> np.ndarray:
    """
    Hours since `reference` of the instants `sample_times` returns

    Raises
    ------
    ValidationError
        If interval is not positive
    """
    if interval <= timedelta(0):
        raise ValidationError(f"interval must be positive, got {interval}")
    start = _as_utc(start)
    end = _as_utc(end)
    if end < start:
        return np.empty(0, dtype=np.float64)
    n = (end - start) // interval + 1
    step = interval.total_seconds() / 3600.0
    return hours_since(start, reference) + step * np.arange(n, dtype=np.float64)


def generate_predictions(start: datetime,
                         end: datetime,
                         interval: timedelta,
                         params: PredictionParams) -> List[TideLevel]:
    """
    Synthesize a time series at a fixed interval

    Both endpoints are included when `end` lies on the interval grid.
    The result is a new list on every call.

    Parameters
    ----------
    start, end : datetime
        Time range (naive values are taken as UTC)
    interval : timedelta
        Sample spacing
    params : PredictionParams
        Synthesis configuration

    Returns
    -------
    list of TideLevel
        Strictly increasing in time
    """
    times = sample_times(start, end, interval)
    if not times:
        return []
    hours = sample_hours(start, end, interval, params.reference_time)
    heights = synthesize(hours, params)
    return [TideLevel(t, float(h)) for t, h in zip(times, heights)]


def heights_of(levels: Sequence[TideLevel]) -> np.ndarray:
    """Heights of a series as an array"""
    return np.fromiter((lv.height for lv in levels), dtype=np.float64, count=len(levels))
