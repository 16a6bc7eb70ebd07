"""
tidepredict.predict - Tide prediction module

Provides functions for:
- Harmonic synthesis of a height time series
- High/low tide detection with parabolic refinement

Copyright (c) 2024-2026 tkykszk

This software is licensed under the MIT License.
"""

from .extrema import (
    Extrema,
    find_extrema,
    predict_extrema,
    refine_extrema,
    refine_extremum,
    series_extrema,
)
from .harmonic import (
    PhaseConvention,
    PredictionParams,
    TideLevel,
    generate_predictions,
    heights_of,
    hours_since,
    sample_hours,
    sample_times,
    synthesize,
    tide_height,
)

__all__ = [
    # Extrema
    'Extrema',
    # Harmonic synthesis
    'PhaseConvention',
    'PredictionParams',
    'TideLevel',
    'find_extrema',
    'generate_predictions',
    'heights_of',
    'hours_since',
    'predict_extrema',
    'refine_extrema',
    'refine_extremum',
    'sample_hours',
    'sample_times',
    'series_extrema',
    'synthesize',
    'tide_height',
]
