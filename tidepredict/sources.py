"""
tidepredict.sources - Constituent source interface

A constituent source resolves per-location constituent parameters
either by station id or by latitude/longitude. Each implementation
supports one of the two query modes and raises UnsupportedQueryError
for the other.

Copyright (c) 2024-2026 tkykszk

This software is licensed under the MIT License.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .constituents import ConstituentParam

__all__ = [
    'ConstituentSource',
    'MetadataSource',
]


@runtime_checkable
class ConstituentSource(Protocol):
    """Station- or location-keyed constituent lookup"""

    def load_for_station(self, station_id: str) -> list[ConstituentParam]:
        ...

    def load_for_location(self, lat: float, lon: float) -> list[ConstituentParam]:
        ...


@runtime_checkable
class MetadataSource(Protocol):
    """Mean sea level and depth lookup; None when unavailable"""

    def get_metadata(self, lat: float, lon: float):
        ...

    def close(self) -> None:
        ...
