"""
tidepredict.io.bathymetry - Location metadata from bathymetry and MSS grids

Combines two optional grids:

- a depth/elevation grid (GEBCO, negative below sea level), reported as
  a positive seabed depth
- a mean sea surface grid (DTU21, ellipsoidal), reported as mean sea
  level, corrected to an orthometric height when a geoid is configured

Each grid is sampled through its own region-bounded window cache.
Failures degrade to missing metadata rather than errors.

Copyright (c) 2024-2026 tkykszk

This software is licensed under the MIT License.
"""

from __future__ import annotations

import logging
import pathlib
from dataclasses import dataclass
from typing import Optional

from ..exceptions import DataUnavailableError, GridError, OutOfGridError
from .geoid import GeoidStore, orthometric_height
from .netcdf import GridWindowCache

__all__ = [
    'DEPTH_NAMES',
    'LocalMetadataStore',
    'LocationMetadata',
    'MSS_NAMES',
]

logger = logging.getLogger(__name__)

DEPTH_NAMES = ('elevation', 'data', 'z')
MSS_NAMES = ('mean_sea_surf_sol2', 'data', 'z')

DATUM_EGM2008 = 'EGM2008'
DATUM_EGM2008_CORRECTED = 'EGM2008 (geoid-corrected)'
SOURCE_LOCAL = 'Local'
SOURCE_MSS = 'DTU21 MSS'
SOURCE_GEBCO = 'GEBCO 2025'
SOURCE_COMBINED = 'GEBCO 2025 + DTU21 MSS'


@dataclass(frozen=True)
class LocationMetadata:
    """
    Mean sea level and seabed depth at a location

    Attributes
    ----------
    msl : float
        Mean sea level in metres (0 when no MSS grid is configured)
    depth_m : float or None
        Seabed depth below sea level in metres (positive)
    datum_name : str
        Vertical datum of `msl`
    source_name : str
        Grids the values came from
    """
    msl: float
    depth_m: Optional[float]
    datum_name: str
    source_name: str


class LocalMetadataStore:
    """
    Spatial metadata sampler over local gridded files

    Parameters
    ----------
    gebco_path : str or pathlib.Path, optional
        Depth/elevation grid
    mss_path : str or pathlib.Path, optional
        Mean sea surface grid
    geoid : GeoidStore, optional
        Geoid used to correct mean sea surface heights
    margin : float, default 2.0
        Half-width in degrees of each cached block
    """

    def __init__(self,
                 gebco_path: Optional[str | pathlib.Path] = None,
                 mss_path: Optional[str | pathlib.Path] = None,
                 geoid: Optional[GeoidStore] = None,
                 margin: float = 2.0):
        self.depth_cache = GridWindowCache(gebco_path, DEPTH_NAMES, margin) if gebco_path else None
        self.mss_cache = GridWindowCache(mss_path, MSS_NAMES, margin) if mss_path else None
        self.geoid = geoid

    def __repr__(self) -> str:
        return (f"LocalMetadataStore(gebco={self.depth_cache!r}, "
                f"mss={self.mss_cache!r}, geoid={self.geoid!r})")

    @staticmethod
    def _sample(cache: Optional[GridWindowCache], label: str,
                lat: float, lon: float) -> Optional[float]:
        if cache is None:
            return None
        try:
            return cache.interpolate(lat, lon)
        except DataUnavailableError as e:
            logger.warning("failed to load %s grid: %s", label, e)
        except OutOfGridError as e:
            logger.debug("%s grid does not cover (%.4f, %.4f): %s", label, lat, lon, e)
        except GridError as e:
            logger.warning("invalid %s grid: %s", label, e)
        return None

    def get_metadata(self, lat: float, lon: float) -> Optional[LocationMetadata]:
        """
        Mean sea level and depth at a point

        Returns
        -------
        LocationMetadata or None
            None when no grid is configured or readable, or when the
            point lies outside the mean sea surface grid
        """
        msl_raw = self._sample(self.mss_cache, 'MSS', lat, lon)
        depth_raw = self._sample(self.depth_cache, 'GEBCO', lat, lon)

        mss_loaded = self.mss_cache is not None and self.mss_cache.has_grid
        depth_loaded = self.depth_cache is not None and self.depth_cache.has_grid
        if not mss_loaded and not depth_loaded:
            return None

        msl = 0.0
        datum_name = DATUM_EGM2008
        source_name = SOURCE_LOCAL

        if mss_loaded:
            if msl_raw is None:
                return None
            msl = msl_raw
            if self.geoid is not None:
                try:
                    msl = orthometric_height(msl_raw, self.geoid.get_geoid_height(lat, lon))
                    datum_name = DATUM_EGM2008_CORRECTED
                except (DataUnavailableError, GridError) as e:
                    logger.warning("geoid correction failed: %s", e)
            source_name = SOURCE_MSS

        depth_m = None
        if depth_raw is not None:
            if depth_raw < 0:
                depth_m = -depth_raw
            source_name = SOURCE_COMBINED if source_name == SOURCE_MSS else SOURCE_GEBCO

        return LocationMetadata(msl=msl, depth_m=depth_m,
                                datum_name=datum_name, source_name=source_name)

    def close(self) -> None:
        """Release cached grid blocks"""
        for cache in (self.depth_cache, self.mss_cache):
            if cache is not None:
                cache.clear()
        if self.geoid is not None:
            self.geoid.close()
