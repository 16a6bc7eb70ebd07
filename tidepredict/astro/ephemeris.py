"""
Astronomical arguments for nodal corrections

Low-order polynomial approximations of the lunar node, lunar perigee
and solar perigee longitudes, plus the derived lunar orbit inclination
and nutation terms used by Schureman-style nodal factors.

All functions accept scalars or NumPy arrays.

References:
    P. Schureman, "Manual of Harmonic Analysis and Prediction of Tides"
        US Coast and Geodetic Survey, Special Publication, 98, (1958).
    M. G. G. Foreman, "Manual for Tidal Heights Analysis and Prediction",
        Pacific Marine Science Report 77-10, (1977).
    J. Meeus, "Astronomical Algorithms", 2nd edition, (1998).

Copyright (c) 2024-2026 tkykszk

This software is licensed under the MIT License.
"""

from dataclasses import dataclass

import numpy as np

# Unix epoch (1970-01-01T00:00:00Z) is 10957.5 days before J2000.0
_UNIX_TO_J2000_DAYS = 10957.5
_JULIAN_CENTURY = 36525.0  # days
_DEG_TO_RAD = np.pi / 180.0

# Polynomial coefficients in Julian centuries, [c0, c1, c2, c3]
_LUNAR_NODE = np.array([125.04452, -1934.136261, 0.0020708, 1.0 / 450000.0])
_LUNAR_PERIGEE = np.array([83.35324, 4069.01363, -0.0103238, -1.0 / 80053.0])
_SOLAR_PERIGEE = np.array([282.94, 1.7192])


@dataclass(frozen=True)
class AstronomicalArguments:
    """
    Fundamental arguments at one instant (degrees)

    Attributes
    ----------
    N : float
        Mean longitude of the lunar ascending node, [0, 360)
    p : float
        Mean longitude of lunar perigee, [0, 360)
    ps : float
        Mean longitude of solar perigee, [0, 360)
    I : float
        Inclination of the lunar orbit to the equator
    nu : float
        Right ascension of the intersection (nutation term)
    xi : float
        N - 2 nu
    """
    N: float
    p: float
    ps: float
    I: float
    nu: float
    xi: float


def polynomial_sum(coefficients: np.ndarray, t):
    """
    Evaluate c0 + c1*t + c2*t^2 + ... using Horner's method

    Parameters
    ----------
    coefficients : np.ndarray
        Coefficient array [c0, c1, c2, ...]
    t : float or np.ndarray
        Time variable
    """
    result = np.zeros_like(np.asarray(t, dtype=np.float64))
    for c in reversed(coefficients):
        result = result * t + c
    return result


def normalize_angle(theta, circle: float = 360.0):
    """
    Normalize an angle into [0, circle)

    Parameters
    ----------
    theta : float or np.ndarray
        Angle
    circle : float, default 360.0
        Length of the full circle (2*pi for radians)
    """
    return np.mod(theta, circle)


def julian_centuries(hours_since_unix_epoch):
    """Julian centuries since J2000.0 for hours counted from the Unix epoch"""
    days = np.asarray(hours_since_unix_epoch, dtype=np.float64) / 24.0
    return (days - _UNIX_TO_J2000_DAYS) / _JULIAN_CENTURY


def mean_longitudes(T):
    """
    Node and perigee longitudes for Julian centuries T since J2000.0

    Returns
    -------
    N, p, ps : np.ndarray
        Lunar node, lunar perigee and solar perigee longitudes in
        degrees, normalized to [0, 360)
    """
    N = normalize_angle(polynomial_sum(_LUNAR_NODE, T))
    p = normalize_angle(polynomial_sum(_LUNAR_PERIGEE, T))
    ps = normalize_angle(polynomial_sum(_SOLAR_PERIGEE, T))
    return N, p, ps


def astronomical_arguments(hours_since_unix_epoch) -> AstronomicalArguments:
    """
    Compute node-driven astronomical arguments

    Parameters
    ----------
    hours_since_unix_epoch : float or np.ndarray
        Time as hours since 1970-01-01T00:00:00Z

    Returns
    -------
    AstronomicalArguments
        Fields are floats for scalar input, arrays otherwise
    """
    T = julian_centuries(hours_since_unix_epoch)
    N, p, ps = mean_longitudes(T)

    Nrad = N * _DEG_TO_RAD
    I = np.arccos(0.91370 - 0.03569 * np.cos(Nrad))
    nu = np.arcsin(0.08978 * np.sin(Nrad) / np.sin(I))

    I_deg = np.degrees(I)
    nu_deg = np.degrees(nu)
    xi = N - 2.0 * nu_deg

    if np.ndim(N) == 0:
        return AstronomicalArguments(
            N=float(N), p=float(p), ps=float(ps),
            I=float(I_deg), nu=float(nu_deg), xi=float(xi),
        )
    return AstronomicalArguments(N=N, p=p, ps=ps, I=I_deg, nu=nu_deg, xi=xi)
