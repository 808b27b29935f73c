"""Spectral compression of phase fields.

The grid mean (the DC term) is removed and the remainder is decomposed
into frequency coefficients; the ``K`` largest by amplitude are kept.
Theta is periodic and uses complex exponentials.  Phi is not periodic,
so two boundary-respecting bases are offered:

``dct``
    a DCT-II along phi (cosines ``cos(q * phi)``), which treats both
    poles as reflecting boundaries.
``mirror``
    phi is mirror-extended to ``2N`` rows (the grid followed by its
    reverse) and a plain 2D DFT is taken over the ``N x 2N`` grid.

For a real field the coefficients come in conjugate pairs; each pair is
folded into one coefficient with doubled weight, so every kept
coefficient stands for one real sinusoid

    term = real * cos(phase) - imag * sin(phase)

evaluated at the continuous, cell-centred grid coordinate of a query.
With every candidate kept the synthesis reproduces the grid exactly at
the cell centres.

The coefficients can be computed two ways with the same result: a direct
sum over the grid per coefficient (O(N^4), the reference) or separable
FFT passes (O(N^2 log N)).  Selection is greedy energy truncation, ties
broken by computation order.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from dephaze.config import DephazeConfig, resolve_config
from dephaze.encoding import DecodeGuard, Encoding
from dephaze.errors import InvalidInputError
from dephaze.phasefield import PhaseField, check_positive_int

logger = logging.getLogger(__name__)

BASES = ('dct', 'mirror')
METHODS = ('auto', 'direct', 'separable')


@dataclass(frozen=True)
class SpectralCoefficient:
    """One folded frequency term; ``amplitude`` is ``|real + i*imag|``."""

    k_theta: int
    k_phi: int
    real: float
    imag: float
    amplitude: float

    def as_tuple(self) -> Tuple[int, int, float, float, float]:
        return (self.k_theta, self.k_phi, self.real, self.imag, self.amplitude)


@dataclass(frozen=True, eq=False)
class CoefficientSet:
    """DC term plus the top-K coefficients, sorted by amplitude."""

    dc: float
    coefficients: Tuple[SpectralCoefficient, ...]
    total_candidates: int
    resolution: int
    top_k: int
    basis: str
    encoding: Encoding
    guard: DecodeGuard

    def __post_init__(self):
        check_basis(self.basis)
        check_positive_int(self.resolution, "resolution")
        check_positive_int(self.top_k, "top_k")
        if len(self.coefficients) > self.top_k:
            raise InvalidInputError(
                f"{len(self.coefficients)} coefficients exceed the budget of {self.top_k}")
        object.__setattr__(self, 'coefficients', tuple(self.coefficients))
        if not math.isfinite(self.dc):
            raise InvalidInputError("dc term must be finite")

    def __len__(self) -> int:
        return len(self.coefficients)

    @property
    def default_radius(self) -> float:
        return self.guard.default_radius

    def _arrays(self):
        cached = self.__dict__.get('_cache')
        if cached is None:
            data = np.array([c.as_tuple() for c in self.coefficients], dtype=float).reshape(-1, 5)
            cached = (data[:, 0], data[:, 1], data[:, 2], data[:, 3])
            object.__setattr__(self, '_cache', cached)
        return cached

    def field_value(self, theta, phi):
        """Encoded field value(s) at continuous angles (scalar or array).

        Non-finite sums are left for the decode guard to handle.
        """

        scalar = np.ndim(theta) == 0 and np.ndim(phi) == 0
        t = np.atleast_1d(np.asarray(theta, dtype=float))
        p = np.atleast_1d(np.asarray(phi, dtype=float))
        t, p = np.broadcast_arrays(t, p)
        kt, kp, re, im = self._arrays()
        n = self.resolution
        with np.errstate(over='ignore', invalid='ignore'):
            phase_t = np.outer(t - math.pi / n, kt)
            if self.basis == 'dct':
                terms = (re * np.cos(phase_t) - im * np.sin(phase_t)) * np.cos(np.outer(p, kp))
            else:
                phase = phase_t + np.outer(p - math.pi / (2 * n), kp)
                terms = re * np.cos(phase) - im * np.sin(phase)
            values = self.dc + terms.sum(axis=1)
        if scalar:
            return float(values[0])
        return values


def check_basis(basis: str) -> str:
    name = str(basis).lower()
    if name not in BASES:
        raise InvalidInputError(f"unknown basis {basis!r}; expected one of {list(BASES)}")
    return name


def _check_method(method: str) -> str:
    name = str(method).lower()
    if name not in METHODS:
        raise InvalidInputError(f"unknown transform method {method!r}; expected one of {list(METHODS)}")
    return name


# -----------------------------------------------------------------------------
# Transforms.  All return unfolded complex coefficients normalised so that
# the plain inverse sum reproduces the (mean-removed) grid.
# -----------------------------------------------------------------------------

def _dct_weights(n: int) -> np.ndarray:
    w = np.full(n, 2.0)
    w[0] = 1.0
    return w / (n * n)


def _dct_direct(grid: np.ndarray) -> np.ndarray:
    n = grid.shape[0]
    idx = np.arange(n)
    out = np.zeros((n, n), dtype=complex)
    for k in range(n):
        e_theta = np.exp(-2j * math.pi * k * idx / n)
        for q in range(n):
            c_phi = np.cos(math.pi * q * (idx + 0.5) / n)
            out[k, q] = np.sum(grid * np.outer(e_theta, c_phi))
    return out * _dct_weights(n)


def _dct_separable(grid: np.ndarray) -> np.ndarray:
    n = grid.shape[0]
    rows = np.fft.fft(grid, axis=0)
    # DCT-II along phi through the FFT of the mirror-extended rows
    extended = np.concatenate([rows, rows[:, ::-1]], axis=1)
    spec = np.fft.fft(extended, axis=1)[:, :n]
    q = np.arange(n)
    out = np.exp(-1j * math.pi * q / (2 * n)) * spec / 2.0
    return out * _dct_weights(n)


def _mirror_direct(grid: np.ndarray) -> np.ndarray:
    n = grid.shape[0]
    extended = np.concatenate([grid, grid[:, ::-1]], axis=1)
    i_idx = np.arange(n)
    j_idx = np.arange(2 * n)
    out = np.zeros((n, 2 * n), dtype=complex)
    for k in range(n):
        e_theta = np.exp(-2j * math.pi * k * i_idx / n)
        for q in range(2 * n):
            e_phi = np.exp(-2j * math.pi * q * j_idx / (2 * n))
            out[k, q] = np.sum(extended * np.outer(e_theta, e_phi))
    return out / (2 * n * n)


def _mirror_separable(grid: np.ndarray) -> np.ndarray:
    n = grid.shape[0]
    extended = np.concatenate([grid, grid[:, ::-1]], axis=1)
    return np.fft.fft2(extended) / (2 * n * n)


_TRANSFORMS = {
    ('dct', 'direct'): _dct_direct,
    ('dct', 'separable'): _dct_separable,
    ('mirror', 'direct'): _mirror_direct,
    ('mirror', 'separable'): _mirror_separable,
}


def _fold_dct(coeffs: np.ndarray) -> List[SpectralCoefficient]:
    n = coeffs.shape[0]
    out: List[SpectralCoefficient] = []
    for k in range(n // 2 + 1):
        factor = 2.0 if 0 < k and 2 * k != n else 1.0
        for q in range(n):
            if k == 0 and q == 0:
                continue
            c = factor * coeffs[k, q]
            out.append(SpectralCoefficient(k, q, float(c.real), float(c.imag), float(abs(c))))
    return out


def _fold_mirror(coeffs: np.ndarray) -> List[SpectralCoefficient]:
    n, m = coeffs.shape
    out: List[SpectralCoefficient] = []
    for k in range(n):
        for q in range(m):
            if k == 0 and q == 0:
                continue
            partner = ((-k) % n, (-q) % m)
            if partner == (k, q):
                factor = 1.0
            elif (k, q) < partner:
                factor = 2.0
            else:
                continue
            c = factor * coeffs[k, q]
            k_signed = k if 2 * k <= n else k - n
            q_signed = q if 2 * q <= m else q - m
            out.append(SpectralCoefficient(k_signed, q_signed, float(c.real), float(c.imag), float(abs(c))))
    return out


def spectrum(field: PhaseField, basis: str = "dct", method: str = "separable") -> List[SpectralCoefficient]:
    """All folded coefficients of the mean-removed field, in computation
    order (no threshold, no sorting)."""

    basis = check_basis(basis)
    method = _check_method(method)
    if method == 'auto':
        method = 'separable'
    grid = np.asarray(field.values, dtype=float)
    centred = grid - grid.mean()
    coeffs = _TRANSFORMS[(basis, method)](centred)
    return _fold_dct(coeffs) if basis == 'dct' else _fold_mirror(coeffs)


def select_top_k(candidates: Sequence[SpectralCoefficient], top_k: int,
                 amplitude_floor: float = 0.0) -> Tuple[List[SpectralCoefficient], int]:
    """Drop negligible amplitudes and keep the ``top_k`` largest.

    Returns the kept coefficients and the number of candidates that passed
    the floor.  The sort is stable, so equal amplitudes keep computation
    order.
    """

    kept = [c for c in candidates if c.amplitude > amplitude_floor]
    ranked = sorted(kept, key=lambda c: -c.amplitude)
    return ranked[:top_k], len(kept)


def compress(field: PhaseField, top_k: int, basis: Optional[str] = None, *,
             config: Optional[DephazeConfig] = None,
             method: Optional[str] = None) -> CoefficientSet:
    """Compress ``field`` into its DC term and ``top_k`` coefficients.

    Parameters
    ----------
    field : PhaseField
        The grid to compress.
    top_k : int
        Coefficient budget K, must be positive.
    basis : str, optional
        ``'dct'`` or ``'mirror'``; defaults to the configured basis.
    config : DephazeConfig, optional
        Supplies the amplitude floor and the transform method.
    method : str, optional
        ``'direct'``, ``'separable'`` or ``'auto'`` (direct up to the
        configured resolution, separable beyond).

    Returns
    -------
    CoefficientSet
    """

    cfg = resolve_config(config).spectral
    if not isinstance(field, PhaseField):
        raise InvalidInputError(f"expected PhaseField, got {type(field)!r}")
    k = check_positive_int(top_k, "top_k")
    basis = check_basis(basis if basis is not None else cfg.basis)
    method = _check_method(method if method is not None else cfg.method)
    n = field.resolution
    if method == 'auto':
        method = 'direct' if n <= cfg.direct_max_resolution else 'separable'

    candidates = spectrum(field, basis, method)
    kept, total = select_top_k(candidates, k, cfg.amplitude_floor)
    logger.debug("compressed %dx%d field (%s, %s): kept %d of %d candidates",
                 n, n, basis, method, len(kept), total)
    return CoefficientSet(
        dc=field.mean,
        coefficients=tuple(kept),
        total_candidates=total,
        resolution=n,
        top_k=k,
        basis=basis,
        encoding=field.encoding,
        guard=field.guard,
    )


__all__ = [
    'BASES',
    'CoefficientSet',
    'METHODS',
    'SpectralCoefficient',
    'check_basis',
    'compress',
    'select_top_k',
    'spectrum',
]
