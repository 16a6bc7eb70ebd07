"""
tidepredict.config - Environment-driven configuration

Settings are read once from environment variables into an immutable
Settings object. Every field can also be given explicitly.

Environment variables:
    TIDEPREDICT_STATION_DIR: station CSV directory (default: data)
    TIDEPREDICT_FES_DIR: gridded constituent directory (default: data/fes)
    ASTRO_COEFFS_PATH: nodal coefficient table (JSON)
    DATUM_OFFSETS_PATH: datum offset table (JSON)
    STATION_OVERRIDES_PATH: station override table (JSON)
    BATHYMETRY_GEBCO_PATH: depth/elevation grid
    BATHYMETRY_MSS_PATH: mean sea surface grid
    GEOID_PATH: geoid height grid

Copyright (c) 2024-2026 tkykszk

This software is licensed under the MIT License.
"""

from __future__ import annotations

import os
import pathlib
from dataclasses import dataclass
from typing import Mapping, Optional

__all__ = [
    'Settings',
]

_DEFAULT_STATION_DIR = 'data'
_DEFAULT_FES_DIR = 'data/fes'
_DEFAULT_ASTRO_COEFFS = 'data/astro_coeffs.json'
_DEFAULT_DATUM_OFFSETS = 'data/jma_datum_offsets.json'
_DEFAULT_STATION_OVERRIDES = 'data/jma_station_overrides.json'


def _path(value: Optional[str]) -> Optional[pathlib.Path]:
    if value is None:
        return None
    value = value.strip()
    return pathlib.Path(value).expanduser() if value else None


def _existing(value: Optional[str], default: str) -> Optional[pathlib.Path]:
    """Explicit path, or the default when that file exists"""
    path = _path(value)
    if path is not None:
        return path
    default_path = pathlib.Path(default)
    return default_path if default_path.is_file() else None


@dataclass(frozen=True)
class Settings:
    """
    Data locations used by the predictor

    Optional paths set to None disable the corresponding capability.
    """
    station_dir: pathlib.Path = pathlib.Path(_DEFAULT_STATION_DIR)
    fes_dir: pathlib.Path = pathlib.Path(_DEFAULT_FES_DIR)
    astro_coeffs_path: Optional[pathlib.Path] = None
    datum_offsets_path: Optional[pathlib.Path] = None
    station_overrides_path: Optional[pathlib.Path] = None
    gebco_path: Optional[pathlib.Path] = None
    mss_path: Optional[pathlib.Path] = None
    geoid_path: Optional[pathlib.Path] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        """
        Read settings from the environment

        Parameters
        ----------
        environ : mapping, optional
            Variables to read (default: os.environ)
        """
        env = os.environ if environ is None else environ
        return cls(
            station_dir=_path(env.get('TIDEPREDICT_STATION_DIR')) or pathlib.Path(_DEFAULT_STATION_DIR),
            fes_dir=_path(env.get('TIDEPREDICT_FES_DIR')) or pathlib.Path(_DEFAULT_FES_DIR),
            astro_coeffs_path=_existing(env.get('ASTRO_COEFFS_PATH'), _DEFAULT_ASTRO_COEFFS),
            datum_offsets_path=_existing(env.get('DATUM_OFFSETS_PATH'), _DEFAULT_DATUM_OFFSETS),
            station_overrides_path=_existing(env.get('STATION_OVERRIDES_PATH'),
                                             _DEFAULT_STATION_OVERRIDES),
            gebco_path=_path(env.get('BATHYMETRY_GEBCO_PATH')),
            mss_path=_path(env.get('BATHYMETRY_MSS_PATH')),
            geoid_path=_path(env.get('GEOID_PATH')),
        )
