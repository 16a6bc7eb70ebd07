"""
tidepredict.nodal - Nodal corrections

Amplitude factors (f) and phase corrections (u, degrees) accounting for
the 18.61-year lunar nodal cycle, and the equilibrium argument (V) used
by the V+u phase convention.

Two interchangeable strategies are provided:

- IdentityNodalCorrection: f=1, u=0, V=0 for every constituent
- AstronomicalNodalCorrection: evaluated from the lunar node longitude N

For the astronomical strategy the sources are tried in order:

1. external per-constituent Fourier coefficients (JSON table)
2. built-in nonlinear coefficients for the eight major constituents
3. closed-form Schureman formulas
4. identity

All methods accept a scalar or a NumPy array of hours.

References:
    P. Schureman, "Manual of Harmonic Analysis and Prediction of Tides"
        US Coast and Geodetic Survey, Special Publication, 98, (1958).
    M. G. G. Foreman and R. F. Henry, "The harmonic analysis of tidal model
        time series", Advances in Water Resources, 12, (1989).

Copyright (c) 2024-2026 tkykszk

This software is licensed under the MIT License.
"""

from __future__ import annotations

import json
import pathlib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Mapping, Optional, Protocol, Tuple, Union

import numpy as np

from .astro.ephemeris import AstronomicalArguments, astronomical_arguments
from .exceptions import ConfigurationError

__all__ = [
    'AstronomicalNodalCorrection',
    'IdentityNodalCorrection',
    'NodalCoefficient',
    'NodalCoefficientSet',
    'NodalCorrection',
    'NonlinearTerms',
    'UNIX_EPOCH',
    'load_coefficients',
]

UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class NodalCorrection(Protocol):
    """Capability interface for nodal correction providers"""

    def get_factors(self, constituent: str, hours) -> Tuple:
        """Return (f, u_deg) at `hours` since the provider's epoch"""
        ...

    def get_equilibrium_argument(self, constituent: str, hours):
        """Return V in degrees (0 when the provider has none)"""
        ...


class IdentityNodalCorrection:
    """No correction: f=1, u=0, V=0"""

    def get_factors(self, constituent: str, hours) -> Tuple[float, float]:
        return 1.0, 0.0

    def get_equilibrium_argument(self, constituent: str, hours) -> float:
        return 0.0


# =============================================================================
# External coefficient table
# =============================================================================

def _int_keys(terms: Optional[Mapping]) -> dict[int, float]:
    if not terms:
        return {}
    try:
        return {int(k): float(v) for k, v in terms.items()}
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"invalid harmonic term in nodal coefficients: {e}") from e


def _series(const: float, cos_terms: Mapping[int, float],
            sin_terms: Mapping[int, float], Nrad):
    """const + sum a_k cos(kN) + sum b_k sin(kN)"""
    total = const + np.zeros_like(Nrad)
    for k, a in cos_terms.items():
        total = total + a * np.cos(k * Nrad)
    for k, b in sin_terms.items():
        total = total + b * np.sin(k * Nrad)
    return total


def _nonzero_factor(f):
    """A factor that sums to exactly zero is treated as 1"""
    if np.ndim(f) == 0:
        return 1.0 if f == 0 else float(f)
    return np.where(f == 0, 1.0, f)


@dataclass(frozen=True)
class NonlinearTerms:
    """
    f and u from a magnitude/phase pair

    term1 = sum a_k sin(kN)
    term2 = b0 + sum b_k cos(kN)
    f = sqrt(term1^2 + term2^2), u = atan2(term1, term2)
    """
    term1_sin: Mapping[int, float] = field(default_factory=dict)
    term2_const: float = 1.0
    term2_cos: Mapping[int, float] = field(default_factory=dict)

    def evaluate(self, Ndeg):
        Nrad = np.radians(Ndeg)
        term1 = _series(0.0, {}, self.term1_sin, Nrad)
        term2 = _series(self.term2_const, self.term2_cos, {}, Nrad)
        f = np.sqrt(term1 * term1 + term2 * term2)
        u = np.degrees(np.arctan2(term1, term2))
        return f, u


@dataclass(frozen=True)
class NodalCoefficient:
    """
    Fourier series in N (degrees) for one constituent

    f(N) = F0 + sum_k FCos[k] cos(kN) + sum_k FSin[k] sin(kN)
    u(N) = U0 + sum_k UCos[k] cos(kN) + sum_k USin[k] sin(kN)
    """
    name: str
    f0: float = 0.0
    u0: float = 0.0
    v0: float = 0.0
    f_cos: Mapping[int, float] = field(default_factory=dict)
    f_sin: Mapping[int, float] = field(default_factory=dict)
    u_cos: Mapping[int, float] = field(default_factory=dict)
    u_sin: Mapping[int, float] = field(default_factory=dict)
    nonlinear: Optional[NonlinearTerms] = None

    @classmethod
    def from_dict(cls, d: Mapping) -> 'NodalCoefficient':
        if 'name' not in d:
            raise ConfigurationError("nodal coefficient entry without a name")
        nl = d.get('_nonlinear')
        nonlinear = None
        if nl is not None:
            nonlinear = NonlinearTerms(
                term1_sin=_int_keys(nl.get('term1_sin')),
                term2_const=float(nl.get('term2_const', 0.0)),
                term2_cos=_int_keys(nl.get('term2_cos')),
            )
        return cls(
            name=str(d['name']),
            f0=float(d.get('f0', 0.0)),
            u0=float(d.get('u0', 0.0)),
            v0=float(d.get('v0', 0.0)),
            f_cos=_int_keys(d.get('f_cos')),
            f_sin=_int_keys(d.get('f_sin')),
            u_cos=_int_keys(d.get('u_cos')),
            u_sin=_int_keys(d.get('u_sin')),
            nonlinear=nonlinear,
        )

    def eval_f(self, Ndeg):
        f = _series(self.f0, self.f_cos, self.f_sin, np.radians(Ndeg))
        return _nonzero_factor(f)

    def eval_u(self, Ndeg):
        return _series(self.u0, self.u_cos, self.u_sin, np.radians(Ndeg))

    def evaluate(self, Ndeg):
        """(f, u) preferring the nonlinear form when present"""
        if self.nonlinear is not None:
            f, u = self.nonlinear.evaluate(Ndeg)
            return _nonzero_factor(f), u
        return self.eval_f(Ndeg), self.eval_u(Ndeg)


class NodalCoefficientSet:
    """Coefficients keyed by constituent name"""

    def __init__(self, coeffs: list[NodalCoefficient]):
        self.coeffs = list(coeffs)
        self.by_name = MappingProxyType({c.name: c for c in self.coeffs})

    def __contains__(self, name: str) -> bool:
        return name in self.by_name

    def __len__(self) -> int:
        return len(self.coeffs)

    def get(self, name: str) -> Optional[NodalCoefficient]:
        return self.by_name.get(name)

    @classmethod
    def from_dict(cls, d: Mapping) -> 'NodalCoefficientSet':
        entries = d.get('coeffs')
        if not isinstance(entries, list):
            raise ConfigurationError("nodal coefficient table must contain a 'coeffs' list")
        return cls([NodalCoefficient.from_dict(e) for e in entries])


def load_coefficients(path: Union[str, pathlib.Path]) -> NodalCoefficientSet:
    """
    Load a nodal coefficient table from JSON

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    ConfigurationError
        If the file is not a valid coefficient table
    """
    path = pathlib.Path(path).expanduser()
    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"invalid nodal coeff json {path}: {e}") from e
    return NodalCoefficientSet.from_dict(data)


# =============================================================================
# Astronomical corrections
# =============================================================================

# term1 = sum a_k sin(kN), term2 = 1 + sum b_k cos(kN)
_BUILTIN_NONLINEAR = MappingProxyType({
    'M2': NonlinearTerms({1: -0.03731, 2: 0.00052}, 1.0, {1: -0.03731, 2: 0.00052}),
    'S2': NonlinearTerms({1: 0.00225}, 1.0, {1: 0.00225}),
    'N2': NonlinearTerms({1: -0.03731, 2: 0.00052}, 1.0, {1: -0.03731, 2: 0.00052}),
    'K2': NonlinearTerms({1: -0.3108, 2: -0.0324}, 1.0, {1: 0.2852, 2: 0.0324}),
    'K1': NonlinearTerms({1: -0.1554, 2: 0.0029}, 1.0, {1: 0.1158, 2: -0.0029}),
    'O1': NonlinearTerms({1: 0.189, 2: -0.0058}, 1.0, {1: 0.189, 2: -0.0058}),
    'P1': NonlinearTerms({1: -0.0112}, 1.0, {1: -0.0112}),
    'Q1': NonlinearTerms({1: 0.1886}, 1.0, {1: 0.1886}),
})


def _semidiurnal_lunar(args: AstronomicalArguments):
    # M2, N2 (Schureman eq. 78)
    I = np.radians(args.I)
    f = np.cos(I / 2.0) ** 4 / 0.9154
    u = -2.1 * np.sin(I) ** 2
    return f, u


def _diurnal_lunar(args: AstronomicalArguments):
    # O1, Q1 (Schureman eq. 75)
    I = np.radians(args.I)
    nu = np.radians(args.nu)
    f = np.sin(I) * np.cos(I / 2.0) ** 2 / 0.3800
    u = 10.8 * np.sin(nu) - 1.3 * np.sin(2.0 * nu)
    return f, u


def _k1(args: AstronomicalArguments):
    # Schureman eq. 227
    I = np.radians(args.I)
    nu = np.radians(args.nu)
    sin2I = np.sin(2.0 * I)
    f = np.sqrt(0.8965 * sin2I ** 2 + 0.6001 * sin2I * np.cos(nu) + 0.1006)
    u = -8.86 * np.sin(nu) + 0.68 * np.sin(2.0 * nu)
    return f, u


def _k2(args: AstronomicalArguments):
    # Schureman eq. 235
    I = np.radians(args.I)
    nu = np.radians(args.nu)
    sinI = np.sin(I)
    f = np.sqrt(19.0444 * sinI ** 4 + 2.7702 * sinI ** 2 * np.cos(2.0 * nu) + 0.0981)
    u = np.degrees(np.arctan2(0.1689 * np.sin(2.0 * I), 0.2523 + 0.1689 * np.cos(I)))
    return f, u


def _solar(args: AstronomicalArguments):
    return 1.0, 0.0


_CLOSED_FORM = MappingProxyType({
    'M2': _semidiurnal_lunar,
    'N2': _semidiurnal_lunar,
    'S2': _solar,
    'K2': _k2,
    'K1': _k1,
    'O1': _diurnal_lunar,
    'P1': _solar,
    'Q1': _diurnal_lunar,
})


class AstronomicalNodalCorrection:
    """
    Nodal corrections from the lunar node longitude

    Parameters
    ----------
    coefficients : NodalCoefficientSet, optional
        External per-constituent coefficients, checked first
    epoch : datetime, default 1970-01-01T00:00:00Z
        Instant from which the `hours` argument is counted
    use_builtin : bool, default True
        Use the built-in nonlinear coefficients before the closed-form
        formulas for the eight major constituents
    """

    def __init__(self,
                 coefficients: Optional[NodalCoefficientSet] = None,
                 epoch: datetime = UNIX_EPOCH,
                 use_builtin: bool = True):
        if epoch.tzinfo is None:
            epoch = epoch.replace(tzinfo=timezone.utc)
        self.coefficients = coefficients
        self.epoch = epoch
        self.use_builtin = use_builtin
        self._epoch_hours = (epoch - UNIX_EPOCH).total_seconds() / 3600.0

    @classmethod
    def from_path(cls, path: Optional[Union[str, pathlib.Path]] = None,
                  epoch: datetime = UNIX_EPOCH) -> 'AstronomicalNodalCorrection':
        """Build with the coefficient table at `path` if that file exists"""
        coefficients = None
        if path is not None and pathlib.Path(path).expanduser().is_file():
            coefficients = load_coefficients(path)
        return cls(coefficients=coefficients, epoch=epoch)

    def with_epoch(self, epoch: datetime) -> 'AstronomicalNodalCorrection':
        """Same configuration, hours counted from a different epoch"""
        return AstronomicalNodalCorrection(
            coefficients=self.coefficients, epoch=epoch, use_builtin=self.use_builtin)

    def arguments(self, hours) -> AstronomicalArguments:
        """Astronomical arguments at `hours` since the epoch"""
        return astronomical_arguments(np.asarray(hours, dtype=np.float64) + self._epoch_hours)

    def get_factors(self, constituent: str, hours):
        """
        Amplitude factor f and phase correction u (degrees)

        Parameters
        ----------
        constituent : str
            Constituent name
        hours : float or np.ndarray
            Hours since the epoch
        """
        if self.coefficients is not None:
            coeff = self.coefficients.get(constituent)
            if coeff is not None:
                return coeff.evaluate(self.arguments(hours).N)

        if self.use_builtin and constituent in _BUILTIN_NONLINEAR:
            return _BUILTIN_NONLINEAR[constituent].evaluate(self.arguments(hours).N)

        formula = _CLOSED_FORM.get(constituent)
        if formula is not None:
            return formula(self.arguments(hours))

        return 1.0, 0.0

    def get_equilibrium_argument(self, constituent: str, hours):
        """
        Equilibrium argument V in degrees

        Only the constant V0 of an external coefficient entry is
        supported; everything else yields 0.
        """
        if self.coefficients is not None:
            coeff = self.coefficients.get(constituent)
            if coeff is not None:
                return coeff.v0
        return 0.0
