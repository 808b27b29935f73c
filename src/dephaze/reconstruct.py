"""Radius reconstruction from a phase field or a coefficient set.

Spatial mode looks up the nearest cell (no interpolation).  Spectral mode
synthesises the field at the continuous grid coordinate of the query,
which gives smooth rather than blocky output.  Both decode through the
field's encoding and its :class:`~dephaze.encoding.DecodeGuard`, so every
answer is a finite radius inside the configured physical range.
"""

from __future__ import annotations

import math
from typing import Union

import numpy as np

from dephaze.errors import InvalidInputError
from dephaze.phasefield import PhaseField, bin_indices
from dephaze.scan import TWO_PI, Direction
from dephaze.spectral import CoefficientSet

FieldModel = Union[PhaseField, CoefficientSet]


def _check_angles(theta, phi):
    t = np.asarray(theta, dtype=float)
    p = np.asarray(phi, dtype=float)
    if not (np.all(np.isfinite(t)) and np.all(np.isfinite(p))):
        raise InvalidInputError("query angles must be finite")
    if np.any(t < 0.0) or np.any(t > TWO_PI):
        raise InvalidInputError("theta must lie in [0, 2*pi]")
    if np.any(p < 0.0) or np.any(p > math.pi):
        raise InvalidInputError("phi must lie in [0, pi]")
    return t, p


class SpatialReconstructor:
    """Nearest-cell lookup on a :class:`PhaseField`."""

    mode = "spatial"

    def __init__(self, field: PhaseField):
        self.field = field

    def encoded(self, theta, phi):
        i, j = bin_indices(theta, phi, self.field.resolution)
        return self.field.values[i, j]

    def reconstruct(self, theta: float, phi: float) -> float:
        d = Direction(theta, phi)
        return float(self.reconstruct_many(d.theta, d.phi))

    def reconstruct_many(self, theta, phi):
        t, p = _check_angles(theta, phi)
        enc = self.field.encoding
        return self.field.guard.apply(enc.decode(self.encoded(t, p), t, p))

    def __call__(self, theta: float, phi: float) -> float:
        return self.reconstruct(theta, phi)


class SpectralReconstructor:
    """Synthesis of a :class:`CoefficientSet` at continuous coordinates."""

    mode = "spectral"

    def __init__(self, coefficients: CoefficientSet):
        self.coefficients = coefficients

    def encoded(self, theta, phi):
        return self.coefficients.field_value(theta, phi)

    def reconstruct(self, theta: float, phi: float) -> float:
        d = Direction(theta, phi)
        return float(self.reconstruct_many(d.theta, d.phi))

    def reconstruct_many(self, theta, phi):
        t, p = _check_angles(theta, phi)
        cs = self.coefficients
        with np.errstate(over='ignore', invalid='ignore', divide='ignore'):
            decoded = cs.encoding.decode(self.encoded(t, p), t, p)
        return cs.guard.apply(decoded)

    def __call__(self, theta: float, phi: float) -> float:
        return self.reconstruct(theta, phi)


def reconstructor_for(model: FieldModel):
    if isinstance(model, PhaseField):
        return SpatialReconstructor(model)
    if isinstance(model, CoefficientSet):
        return SpectralReconstructor(model)
    raise InvalidInputError(f"expected PhaseField or CoefficientSet, got {type(model)!r}")


def reconstruct(model: FieldModel, theta: float, phi: float) -> float:
    """Radius of ``model`` along direction ``(theta, phi)``."""

    return reconstructor_for(model).reconstruct(theta, phi)


def reconstruct_many(model: FieldModel, theta, phi) -> np.ndarray:
    """Vectorised :func:`reconstruct` over arrays of angles."""

    return np.atleast_1d(reconstructor_for(model).reconstruct_many(theta, phi))


__all__ = [
    'FieldModel',
    'SpatialReconstructor',
    'SpectralReconstructor',
    'reconstruct',
    'reconstruct_many',
    'reconstructor_for',
]
