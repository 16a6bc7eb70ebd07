"""
tidepredict.compute - Tide prediction API

Combines a constituent source, the nodal correction model and optional
location metadata into a predicted height series with high and low
tides.

Station queries read harmonic constants from per-station tables;
latitude/longitude queries sample the gridded constituent files and,
when configured, bathymetry and mean sea surface grids.

Copyright (c) 2024-2026 tkykszk

This software is licensed under the MIT License.

Usage:
    from datetime import datetime, timedelta, timezone
    import tidepredict

    predictor = tidepredict.TidePredictor.from_settings()
    result = predictor.predict(tidepredict.PredictionRequest(
        lat=35.0, lon=139.8,
        start=datetime(2024, 1, 1, tzinfo=timezone.utc),
        end=datetime(2024, 1, 2, tzinfo=timezone.utc),
        interval=timedelta(minutes=10),
    ))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from .adjustments import DatumOffsetTable, StationOverrideTable, apply_station_override
from .config import Settings
from .constituents import Constituent, ConstituentParam, all_constituents
from .exceptions import DataUnavailableError, TidePredictError, ValidationError
from .io.FES import FESConstituentStore
from .io.bathymetry import LocalMetadataStore, LocationMetadata
from .io.geoid import GeoidStore
from .io.station import StationConstituentStore
from .nodal import AstronomicalNodalCorrection, NodalCorrection
from .predict import (
    Extrema,
    PhaseConvention,
    PredictionParams,
    TideLevel,
    generate_predictions,
    predict_extrema,
)
from .sources import ConstituentSource, MetadataSource

__all__ = [
    'FES_EPOCH',
    'PredictionRequest',
    'PredictionResult',
    'SOURCE_CSV',
    'SOURCE_FES',
    'TidePredictor',
    'UNIX_EPOCH',
    'init_predictor',
    'predict_tides',
]

logger = logging.getLogger(__name__)

SOURCE_CSV = 'csv'
SOURCE_FES = 'fes'

# Harmonic epochs: station constants are referenced to the Unix epoch,
# FES phases to 2012-01-01
UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
FES_EPOCH = datetime(2012, 1, 1, tzinfo=timezone.utc)

MODEL_NAME = 'harmonic_v0'
_ATTRIBUTION = {
    SOURCE_CSV: 'Station harmonic constants (CSV)',
    SOURCE_FES: 'FES2014/2022 tidal model',
}

# Request limits
MIN_INTERVAL = timedelta(minutes=1)
MAX_INTERVAL = timedelta(hours=6)
MAX_RANGE = timedelta(days=365)
MAX_POINTS = 10000
EXTREMA_INTERVAL = timedelta(minutes=1)

_TIMEZONES = {
    'utc': (timezone.utc, '+00:00'),
    'jst': (timezone(timedelta(hours=9), 'JST'), '+09:00'),
}


@dataclass
class PredictionRequest:
    """
    Parameters of one prediction

    Exactly one of (lat, lon) or station_id must be given.

    Attributes
    ----------
    start, end : datetime
        Time range (naive values are taken as UTC)
    interval : timedelta
        Output spacing
    lat, lon : float, optional
        Location in degrees
    station_id : str, optional
        Station identifier
    datum : str
        Datum label echoed in the result (default 'MSL')
    source : str
        'csv' or 'fes'; inferred from the query mode when empty
    datum_offset_m : float, optional
        Added to every height; replaces the automatic datum offset
    timezone : str
        'utc' (default) or 'jst', for rendered times
    phase_convention : str
        'vu' for the V+u convention, otherwise Greenwich
    """
    start: datetime
    end: datetime
    interval: timedelta
    lat: Optional[float] = None
    lon: Optional[float] = None
    station_id: Optional[str] = None
    datum: str = ''
    source: str = ''
    datum_offset_m: Optional[float] = None
    timezone: str = 'utc'
    phase_convention: str = ''

    @property
    def has_location(self) -> bool:
        return self.lat is not None and self.lon is not None

    @property
    def has_station(self) -> bool:
        return bool(self.station_id)

    def validate(self) -> None:
        """
        Check the request

        Raises
        ------
        ValidationError
            Describing the first problem found
        """
        if not self.has_location and not self.has_station:
            raise ValidationError("either lat/lon or station_id must be provided")
        if self.has_location and self.has_station:
            raise ValidationError("lat/lon and station_id are mutually exclusive")

        if self.has_location:
            if not -90.0 <= self.lat <= 90.0:
                raise ValidationError("latitude must be between -90 and 90")
            if not -180.0 <= self.lon <= 180.0:
                raise ValidationError("longitude must be between -180 and 180")

        source = self.source.lower()
        if source and source not in (SOURCE_CSV, SOURCE_FES):
            raise ValidationError(f"unknown source '{self.source}' - use 'csv' or 'fes'")
        if self.has_station and source == SOURCE_FES:
            raise ValidationError("FES source does not support station_id - use lat/lon instead")
        if self.has_location and source == SOURCE_CSV:
            raise ValidationError("CSV source does not support lat/lon - use station_id instead")

        if self.timezone and self.timezone.lower() not in _TIMEZONES:
            raise ValidationError(f"unsupported timezone '{self.timezone}' - use 'utc' or 'jst'")

        start, end = _utc(self.start), _utc(self.end)
        if not start < end:
            raise ValidationError("start time must be before end time")
        if self.interval < MIN_INTERVAL:
            raise ValidationError("interval must be at least 1 minute")
        if self.interval > MAX_INTERVAL:
            raise ValidationError("interval must be at most 6 hours")

        duration = end - start
        if duration > MAX_RANGE:
            raise ValidationError("time range must be at most 365 days")
        n_points = duration // self.interval
        if n_points > MAX_POINTS:
            raise ValidationError(
                f"too many prediction points ({n_points}) - "
                "reduce time range or increase interval")


def _utc(t: datetime) -> datetime:
    if t.tzinfo is None:
        return t.replace(tzinfo=timezone.utc)
    return t.astimezone(timezone.utc)


def _round_mm(value: float) -> float:
    return round(value, 3)


@dataclass
class PredictionResult:
    """
    Predicted heights and extrema

    Heights are relative to mean sea level plus any datum offset.
    Water depths (seabed depth + msl + height) are available when the
    seabed depth is known.
    """
    source: str
    datum: str
    constituents: list[str]
    predictions: list[TideLevel]
    extrema: Extrema
    msl: float = 0.0
    metadata: Optional[LocationMetadata] = None
    timezone: str = 'utc'
    meta: dict = field(default_factory=dict)

    @property
    def msl_m(self) -> Optional[float]:
        """Mean sea level from the metadata grids, if non-zero"""
        if self.metadata is None or self.metadata.msl == 0.0:
            return None
        return self.metadata.msl

    @property
    def seabed_depth_m(self) -> Optional[float]:
        return None if self.metadata is None else self.metadata.depth_m

    def water_depth(self, level: TideLevel) -> Optional[float]:
        depth = self.seabed_depth_m
        if depth is None:
            return None
        return depth + self.msl + level.height

    def _point(self, level: TideLevel, tz) -> dict:
        point = {
            'time': level.time.astimezone(tz).isoformat(),
            'height_m': _round_mm(level.height),
        }
        depth = self.water_depth(level)
        if depth is not None:
            point['depth_m'] = _round_mm(depth)
        return point

    def to_dict(self) -> dict:
        """JSON-ready representation"""
        tz, label = _TIMEZONES[(self.timezone or 'utc').lower()]
        out = {
            'source': self.source,
            'datum': self.datum,
            'timezone': label,
            'constituents': list(self.constituents),
            'predictions': [self._point(p, tz) for p in self.predictions],
            'extrema': {
                'highs': [self._point(p, tz) for p in self.extrema.highs],
                'lows': [self._point(p, tz) for p in self.extrema.lows],
            },
            'meta': dict(self.meta),
        }
        if self.msl_m is not None:
            out['msl_m'] = self.msl_m
        if self.seabed_depth_m is not None:
            out['seabed_depth_m'] = self.seabed_depth_m
        return out


class TidePredictor:
    """
    Prediction orchestrator

    Holds no per-request state; caches belong to the sources.

    Parameters
    ----------
    station_source : ConstituentSource
        Source for station queries
    location_source : ConstituentSource
        Source for latitude/longitude queries
    metadata_source : MetadataSource, optional
        Mean sea level and depth lookup
    nodal : NodalCorrection, optional
        Nodal correction model (default: astronomical, built-in
        coefficients)
    datum_offsets : DatumOffsetTable, optional
        Automatic datum offsets
    overrides : StationOverrideTable, optional
        Per-station constituent overrides
    """

    def __init__(self,
                 station_source: ConstituentSource,
                 location_source: ConstituentSource,
                 metadata_source: Optional[MetadataSource] = None,
                 nodal: Optional[NodalCorrection] = None,
                 datum_offsets: Optional[DatumOffsetTable] = None,
                 overrides: Optional[StationOverrideTable] = None):
        self.station_source = station_source
        self.location_source = location_source
        self.metadata_source = metadata_source
        self.nodal = nodal if nodal is not None else AstronomicalNodalCorrection()
        self.datum_offsets = datum_offsets if datum_offsets is not None else DatumOffsetTable()
        self.overrides = overrides if overrides is not None else StationOverrideTable()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> 'TidePredictor':
        """
        Build a predictor from configuration

        Parameters
        ----------
        settings : Settings, optional
            Data locations (default: read from the environment)
        """
        if settings is None:
            settings = Settings.from_env()

        metadata = None
        if settings.gebco_path or settings.mss_path:
            geoid = GeoidStore(settings.geoid_path) if settings.geoid_path else None
            metadata = LocalMetadataStore(gebco_path=settings.gebco_path,
                                          mss_path=settings.mss_path,
                                          geoid=geoid)

        return cls(
            station_source=StationConstituentStore(settings.station_dir),
            location_source=FESConstituentStore(settings.fes_dir),
            metadata_source=metadata,
            nodal=AstronomicalNodalCorrection.from_path(settings.astro_coeffs_path),
            datum_offsets=DatumOffsetTable.load(settings.datum_offsets_path),
            overrides=StationOverrideTable.load(settings.station_overrides_path),
        )

    def _nodal_for(self, reference_time: datetime) -> NodalCorrection:
        if isinstance(self.nodal, AstronomicalNodalCorrection):
            return self.nodal.with_epoch(reference_time)
        return self.nodal

    def _load_constituents(self, request: PredictionRequest) -> tuple[str, list[ConstituentParam]]:
        if request.has_station:
            return SOURCE_CSV, self.station_source.load_for_station(request.station_id)
        return SOURCE_FES, self.location_source.load_for_location(request.lat, request.lon)

    def _load_metadata(self, lat: float, lon: float) -> Optional[LocationMetadata]:
        if self.metadata_source is None:
            return None
        try:
            return self.metadata_source.get_metadata(lat, lon)
        except (TidePredictError, OSError) as e:
            logger.warning("failed to load bathymetry metadata: %s", e)
            return None

    def predict(self, request: PredictionRequest) -> PredictionResult:
        """
        Predict heights and extrema for a request

        Raises
        ------
        ValidationError
            If the request is invalid
        DataUnavailableError
            If the constituent source cannot resolve the query
        OutOfGridError
            If the location lies outside the constituent grids
        """
        request.validate()

        source, constituents = self._load_constituents(request)

        metadata = None
        if request.has_location:
            metadata = self._load_metadata(request.lat, request.lon)

        msl = metadata.msl if metadata is not None else 0.0
        if request.datum_offset_m is not None:
            msl += request.datum_offset_m
        elif request.has_location:
            offset = self.datum_offsets.offset_for(request.lat, request.lon)
            if offset is not None:
                msl += offset

        if request.has_location:
            override = self.overrides.find(request.lat, request.lon)
            if override is not None:
                logger.debug("applying station override %s", override.name)
            constituents, msl = apply_station_override(override, constituents, msl)

        reference_time = FES_EPOCH if source == SOURCE_FES else UNIX_EPOCH
        params = PredictionParams(
            constituents=constituents,
            msl=msl,
            longitude=request.lon if request.has_location else 0.0,
            nodal=self._nodal_for(reference_time),
            reference_time=reference_time,
            phase_convention=PhaseConvention.from_string(request.phase_convention),
        )

        predictions = generate_predictions(request.start, request.end, request.interval, params)

        dense_interval = min(EXTREMA_INTERVAL, request.interval)
        extrema = predict_extrema(request.start, request.end, dense_interval, params)

        meta = {
            'model': MODEL_NAME,
            'attribution': _ATTRIBUTION[source],
        }
        if metadata is not None:
            if metadata.datum_name:
                meta['datum_name'] = metadata.datum_name
            if metadata.source_name:
                meta['metadata_source'] = metadata.source_name
        if request.datum_offset_m is not None:
            meta['datum_offset_m'] = f"{request.datum_offset_m:.3f}"

        return PredictionResult(
            source=source,
            datum=request.datum or 'MSL',
            constituents=[c.name for c in constituents],
            predictions=predictions,
            extrema=extrema,
            msl=msl,
            metadata=metadata,
            timezone=(request.timezone or 'utc').lower(),
            meta=meta,
        )

    def get_bathymetry(self, lat: float, lon: float) -> LocationMetadata:
        """
        Mean sea level and depth at a point

        Raises
        ------
        DataUnavailableError
            If no metadata source is configured or it has no data here
        """
        if self.metadata_source is None:
            raise DataUnavailableError("bathymetry data not available")
        metadata = self.metadata_source.get_metadata(lat, lon)
        if metadata is None:
            raise DataUnavailableError(
                f"no bathymetry data available for location ({lat:.4f}, {lon:.4f})")
        return metadata

    @staticmethod
    def all_constituents() -> list[Constituent]:
        """All constituents in the static table"""
        return all_constituents()

    def close(self) -> None:
        if self.metadata_source is not None:
            self.metadata_source.close()


# Default predictor (built on first use)
_predictor: Optional[TidePredictor] = None


def init_predictor(settings: Optional[Settings] = None) -> TidePredictor:
    """
    (Re)build the default predictor

    Parameters
    ----------
    settings : Settings, optional
        Data locations (default: read from the environment)
    """
    global _predictor
    if _predictor is not None:
        _predictor.close()
    _predictor = TidePredictor.from_settings(settings)
    return _predictor


def predict_tides(start: datetime, end: datetime, interval: timedelta,
                  **kwargs) -> PredictionResult:
    """
    Predict with the default predictor

    Parameters
    ----------
    start, end : datetime
        Time range
    interval : timedelta
        Output spacing
    **kwargs
        Other PredictionRequest fields (lat, lon, station_id, ...)
    """
    if _predictor is None:
        init_predictor()
    return _predictor.predict(PredictionRequest(start=start, end=end,
                                                interval=interval, **kwargs))
