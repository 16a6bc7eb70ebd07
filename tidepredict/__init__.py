"""
tidepredict - Harmonic tide prediction

Predicts sea-surface height at a place and time by summing tidal
constituents with astronomical nodal corrections, and reports high and
low tides.

Constituents come from per-station tables or are sampled from gridded
FES-style NetCDF files; bathymetry, mean sea surface and geoid grids
optionally add mean sea level and water depth.

Copyright (c) 2024-2026 tkykszk

This software is licensed under the MIT License.

Usage:
    from datetime import datetime, timedelta, timezone
    import tidepredict

    result = tidepredict.predict_tides(
        start=datetime(2024, 1, 1, tzinfo=timezone.utc),
        end=datetime(2024, 1, 2, tzinfo=timezone.utc),
        interval=timedelta(minutes=10),
        station_id='tokyo',
    )
    for level in result.extrema.highs:
        print(level.time, level.height)
"""

from . import compute
from . import interpolate
from . import io
from . import nodal
from . import predict
from .compute import (
    PredictionRequest,
    PredictionResult,
    TidePredictor,
    init_predictor,
    predict_tides,
)
from .config import Settings
from .constituents import (
    Constituent,
    ConstituentParam,
    STANDARD_CONSTITUENTS,
    all_constituents,
    get_speed,
)
from .exceptions import (
    ConfigurationError,
    DataUnavailableError,
    GridError,
    OutOfGridError,
    TidePredictError,
    UnsupportedQueryError,
    ValidationError,
)
from .interpolate import (
    Grid2D,
    GridCell,
    bilinear_interpolate,
    interpolate_both,
)
from .nodal import (
    AstronomicalNodalCorrection,
    IdentityNodalCorrection,
)
from .predict import (
    Extrema,
    PhaseConvention,
    PredictionParams,
    TideLevel,
    find_extrema,
    generate_predictions,
    predict_extrema,
    refine_extrema,
    tide_height,
)

__version__ = '0.1.0'

__all__ = [
    'AstronomicalNodalCorrection',
    'ConfigurationError',
    'Constituent',
    'ConstituentParam',
    'DataUnavailableError',
    'Extrema',
    'Grid2D',
    'GridCell',
    'GridError',
    'IdentityNodalCorrection',
    'OutOfGridError',
    'PhaseConvention',
    'PredictionParams',
    'PredictionRequest',
    'PredictionResult',
    'STANDARD_CONSTITUENTS',
    'Settings',
    'TideLevel',
    'TidePredictError',
    'TidePredictor',
    'UnsupportedQueryError',
    'ValidationError',
    '__version__',
    'all_constituents',
    'bilinear_interpolate',
    'compute',
    'find_extrema',
    'generate_predictions',
    'get_speed',
    'init_predictor',
    'interpolate',
    'io',
    'nodal',
    'predict',
    'predict_extrema',
    'predict_tides',
    'refine_extrema',
    'tide_height',
]
