"""
tidepredict.io - I/O modules for constituent and metadata sources

This module provides:
- FES: gridded constituent files (NetCDF), sampled per location
- station: per-station constituent tables (CSV)
- bathymetry: depth and mean sea surface grids
- geoid: geoid height grids
- netcdf: windowed reads shared by the grid readers

Copyright (c) 2024-2026 tkykszk

This software is licensed under the MIT License.
"""

from . import FES
from . import netcdf
from .FES import FESConstituentStore
from .bathymetry import LocalMetadataStore, LocationMetadata
from .geoid import GeoidStore
from .netcdf import GridWindowCache
from .station import StationConstituentStore

__all__ = [
    'FES',
    'FESConstituentStore',
    'GeoidStore',
    'GridWindowCache',
    'LocalMetadataStore',
    'LocationMetadata',
    'StationConstituentStore',
    'netcdf',
]
