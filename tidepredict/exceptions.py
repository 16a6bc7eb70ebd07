"""
tidepredict.exceptions - Error taxonomy

Validation and configuration problems subclass ValueError, missing data
subclasses LookupError, so callers can keep catching the builtin types.

Copyright (c) 2024-2026 tkykszk

This software is licensed under the MIT License.
"""

__all__ = [
    'ConfigurationError',
    'DataUnavailableError',
    'GridError',
    'OutOfGridError',
    'TidePredictError',
    'UnsupportedQueryError',
    'ValidationError',
]


class TidePredictError(Exception):
    """Base class for all tidepredict errors."""


class ValidationError(TidePredictError, ValueError):
    """Invalid request parameters (time range, interval, location selectors)."""


class ConfigurationError(TidePredictError, ValueError):
    """Malformed coefficient, override or datum table."""


class GridError(TidePredictError, ValueError):
    """A Grid2D failed validation."""


class OutOfGridError(GridError):
    """The query point lies outside the grid coverage."""


class DataUnavailableError(TidePredictError, LookupError):
    """Requested data could not be found (file, variable, constituent)."""


class UnsupportedQueryError(DataUnavailableError):
    """A constituent source was asked for the query mode it does not serve."""
