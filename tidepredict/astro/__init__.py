"""
tidepredict.astro - Astronomical arguments for nodal corrections

Copyright (c) 2024-2026 tkykszk

This software is licensed under the MIT License.
"""

from .ephemeris import (
    AstronomicalArguments,
    astronomical_arguments,
    julian_centuries,
    mean_longitudes,
    normalize_angle,
    polynomial_sum,
)

__all__ = [
    'AstronomicalArguments',
    'astronomical_arguments',
    'julian_centuries',
    'mean_longitudes',
    'normalize_angle',
    'polynomial_sum',
]
