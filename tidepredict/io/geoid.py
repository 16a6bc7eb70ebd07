"""
tidepredict.io.geoid - Geoid height lookups

Geoid undulation N (e.g. EGM2008) from a gridded file, used to convert
ellipsoidal heights h to orthometric heights:

    H = h - N

Positive N means the geoid lies above the ellipsoid.

Copyright (c) 2024-2026 tkykszk

This software is licensed under the MIT License.
"""

from __future__ import annotations

import pathlib

from .netcdf import GridWindowCache

__all__ = [
    'GEOID_NAMES',
    'GeoidStore',
    'orthometric_height',
]

GEOID_NAMES = ('geoid', 'geoid_height', 'N', 'height', 'z')


def orthometric_height(ellipsoidal_height: float, geoid_height: float) -> float:
    """H = h - N"""
    return ellipsoidal_height - geoid_height


class GeoidStore:
    """
    Geoid height sampler with a region-bounded window cache

    Parameters
    ----------
    path : str or pathlib.Path
        Geoid grid file
    margin : float, default 2.0
        Half-width in degrees of the cached block
    """

    def __init__(self, path: str | pathlib.Path, margin: float = 2.0):
        self.cache = GridWindowCache(path, GEOID_NAMES, margin=margin)

    def __repr__(self) -> str:
        return f"GeoidStore('{self.cache.path}')"

    def get_geoid_height(self, lat: float, lon: float) -> float:
        """
        Geoid height N in metres

        Raises
        ------
        DataUnavailableError
            If the grid cannot be read
        OutOfGridError
            If the point lies outside the grid
        """
        return self.cache.interpolate(lat, lon)

    def close(self) -> None:
        self.cache.clear()
