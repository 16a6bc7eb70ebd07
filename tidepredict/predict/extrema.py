"""
High and low tide detection

Two passes over a densely sampled series:

1. strict local maxima/minima of the discrete samples
2. three-point parabolic refinement of each candidate

Samples with an equal-height neighbour (plateaus) are not reported.

Copyright (c) 2024-2026 tkykszk

This software is licensed under the MIT License.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Sequence, Tuple

import numpy as np

from .harmonic import (
    PredictionParams,
    TideLevel,
    _as_utc,
    heights_of,
    sample_hours,
    synthesize,
)

__all__ = [
    'Extrema',
    'find_extrema',
    'predict_extrema',
    'refine_extrema',
    'refine_extremum',
    'series_extrema',
]

# Tolerances (hours, metres/hour^2)
_SPACING_TOLERANCE = 1e-6
_MIN_CURVATURE = 1e-10


@dataclass
class Extrema:
    """High and low tides, each in chronological order"""
    highs: List[TideLevel] = field(default_factory=list)
    lows: List[TideLevel] = field(default_factory=list)


def _candidate_indices(h: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    prev, curr, nxt = h[:-2], h[1:-1], h[2:]
    high_idx = np.nonzero((curr > prev) & (curr > nxt))[0] + 1
    low_idx = np.nonzero((curr < prev) & (curr < nxt))[0] + 1
    return high_idx, low_idx


def find_extrema(predictions: Sequence[TideLevel]) -> Extrema:
    """
    Strict local maxima and minima of a series

    Parameters
    ----------
    predictions : sequence of TideLevel
        Series in increasing time order

    Returns
    -------
    Extrema
        Discrete samples at which h[i-1] < h[i] > h[i+1] (highs) or
        h[i-1] > h[i] < h[i+1] (lows)
    """
    if len(predictions) < 3:
        return Extrema()

    high_idx, low_idx = _candidate_indices(heights_of(predictions))

    return Extrema(
        highs=[predictions[i] for i in high_idx],
        lows=[predictions[i] for i in low_idx],
    )


def refine_extremum(before: TideLevel,
                    peak: TideLevel,
                    after: TideLevel) -> Tuple[datetime, float]:
    """
    Vertex of the parabola through three samples

    Fits h(x) = h1 + b*x + a*x^2 around the middle sample with

        a = (h2 - 2*h1 + h0) / (2*dt^2)
        b = (h2 - h0) / (2*dt)

    The middle sample is returned unchanged when the spacing is not
    uniform, the curvature is negligible, or the vertex lies more than
    one sample interval away.

    Returns
    -------
    time : datetime
        Refined time
    height : float
        Refined height
    """
    dt1 = (peak.time - before.time).total_seconds() / 3600.0
    dt2 = (after.time - peak.time).total_seconds() / 3600.0

    if abs(dt1 - dt2) > _SPACING_TOLERANCE:
        return peak.time, peak.height

    h0, h1, h2 = before.height, peak.height, after.height
    a = (h2 - 2.0 * h1 + h0) / (2.0 * dt1 * dt1)
    b = (h2 - h0) / (2.0 * dt1)

    if abs(a) < _MIN_CURVATURE:
        return peak.time, peak.height

    dt_vertex = -b / (2.0 * a)
    if abs(dt_vertex) > dt1:
        return peak.time, peak.height

    refined_time = peak.time + timedelta(hours=dt_vertex)
    refined_height = h1 + b * dt_vertex + a * dt_vertex * dt_vertex
    return refined_time, refined_height


def _refine_all(predictions: Sequence[TideLevel],
                candidates: Sequence[TideLevel],
                index: Dict[datetime, int]) -> List[TideLevel]:
    refined = []
    last = len(predictions) - 1
    for level in candidates:
        i = index.get(level.time)
        if i is None or i < 1 or i >= last:
            refined.append(level)
            continue
        t, h = refine_extremum(predictions[i - 1], predictions[i], predictions[i + 1])
        refined.append(TideLevel(t, h))
    refined.sort(key=lambda lv: lv.time)
    return refined


def refine_extrema(predictions: Sequence[TideLevel], extrema: Extrema) -> Extrema:
    """
    Parabolically refine every extremum found in `predictions`

    Candidates that are not interior samples of `predictions` are kept
    as they are. Both lists are re-sorted by time.
    """
    if len(predictions) < 3:
        return extrema

    index = {lv.time: i for i, lv in enumerate(predictions)}
    return Extrema(
        highs=_refine_all(predictions, extrema.highs, index),
        lows=_refine_all(predictions, extrema.lows, index),
    )


def _refine_indices(start: datetime, interval: timedelta,
                    h: np.ndarray, idx: np.ndarray) -> List[TideLevel]:
    step = interval.total_seconds() / 3600.0
    h0, h1, h2 = h[idx - 1], h[idx], h[idx + 1]
    a = (h2 - 2.0 * h1 + h0) / (2.0 * step * step)
    b = (h2 - h0) / (2.0 * step)

    curved = np.abs(a) >= _MIN_CURVATURE
    offset = np.divide(-b, 2.0 * a, out=np.zeros_like(a), where=curved)
    keep = curved & (np.abs(offset) <= step)
    offset = np.where(keep, offset, 0.0)
    height = np.where(keep, h1 + b * offset + a * offset * offset, h1)

    refined = []
    for i, dx, value in zip(idx, offset, height):
        t = start + int(i) * interval
        if dx != 0.0:
            t += timedelta(hours=float(dx))
        refined.append(TideLevel(t, float(value)))
    refined.sort(key=lambda lv: lv.time)
    return refined


def series_extrema(start: datetime, interval: timedelta, heights) -> Extrema:
    """
    Refined extrema of a uniformly sampled height array

    Same result as ``refine_extrema(levels, find_extrema(levels))`` for
    the equivalent list of TideLevel, without building one per sample.

    Parameters
    ----------
    start : datetime
        Time of ``heights[0]``
    interval : timedelta
        Sample spacing
    heights : array_like
        Heights in metres

    Returns
    -------
    Extrema
    """
    h = np.asarray(heights, dtype=np.float64)
    if h.size < 3:
        return Extrema()
    high_idx, low_idx = _candidate_indices(h)
    return Extrema(
        highs=_refine_indices(start, interval, h, high_idx),
        lows=_refine_indices(start, interval, h, low_idx),
    )


def predict_extrema(start: datetime, end: datetime, interval: timedelta,
                    params: PredictionParams) -> Extrema:
    """
    High and low tides between `start` and `end`

    The range is sampled every `interval` (both endpoints included) and
    the samples are searched and refined with `series_extrema`.
    """
    hours = sample_hours(start, end, interval, params.reference_time)
    return series_extrema(_as_utc(start), interval, synthesize(hours, params))
