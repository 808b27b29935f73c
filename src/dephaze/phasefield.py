"""Phase field construction.

A phase field is an ``N x N`` grid over direction space indexed
``[i_theta, j_phi]``.  Scan samples are encoded, binned and folded into
each cell with an online weighted running mean; empty cells are then
filled in a single pass from their four grid neighbours.

Binning wraps in theta (the azimuth is periodic) and clamps in phi: the
two poles are distinct rows and are never treated as neighbours, neither
while binning nor while filling holes.

Holes that span several adjacent cells are not propagated into; any cell
without a sampled neighbour falls back to the encoding of the default
radius at the cell centre.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import numpy as np

from dephaze.config import DephazeConfig, FieldConfig, resolve_config
from dephaze.encoding import DecodeGuard, Encoding, make_encoding
from dephaze.errors import InvalidInputError
from dephaze.kernel import EPSILON
from dephaze.scan import TWO_PI, Direction, ScanSample

logger = logging.getLogger(__name__)


def check_positive_int(value, what: str = "resolution") -> int:
    try:
        ok = not isinstance(value, bool) and int(value) == value and value > 0
    except (TypeError, ValueError):
        ok = False
    if not ok:
        raise InvalidInputError(f"{what} must be a positive integer, got {value!r}")
    return int(value)


def check_resolution(resolution) -> int:
    return check_positive_int(resolution, "resolution")


def bin_index(theta: float, phi: float, n: int) -> Tuple[int, int]:
    """Grid cell of a direction: theta wraps, phi clamps."""

    i = int(math.floor(theta / TWO_PI * n)) % n
    j = min(max(int(math.floor(phi / math.pi * n)), 0), n - 1)
    return i, j


def bin_indices(theta, phi, n: int) -> Tuple[np.ndarray, np.ndarray]:
    """Vectorised :func:`bin_index`."""

    theta = np.asarray(theta, dtype=float)
    phi = np.asarray(phi, dtype=float)
    i = np.floor(theta / TWO_PI * n).astype(int) % n
    j = np.clip(np.floor(phi / math.pi * n).astype(int), 0, n - 1)
    return i, j


def cell_center(i: int, j: int, n: int) -> Direction:
    return Direction(TWO_PI * (i + 0.5) / n, math.pi * (j + 0.5) / n)


def warp_direction(direction: Direction, exponent: float) -> Direction:
    """Raise each unit-vector component to ``exponent`` keeping its sign,
    renormalise and return the resulting direction."""

    warped = [math.copysign(abs(c) ** exponent, c) for c in direction.unit_vector()]
    mag = math.sqrt(sum(c * c for c in warped))
    if mag < EPSILON:
        return direction
    return Direction.from_vector([c / mag for c in warped])


@dataclass(frozen=True, eq=False)
class PhaseField:
    """Immutable encoded grid plus what is needed to decode it.

    ``values`` and ``weights`` are read-only ``(N, N)`` arrays; ``filled``
    flags the cells produced by hole filling rather than by samples.
    """

    values: np.ndarray
    weights: np.ndarray
    filled: np.ndarray
    encoding: Encoding
    guard: DecodeGuard
    sample_count: int = 0

    def __post_init__(self):
        for name in ('values', 'weights', 'filled'):
            arr = getattr(self, name)
            if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
                raise InvalidInputError(f"phase field {name} must be a square grid, got shape {arr.shape}")
            if arr.flags.writeable:
                arr = arr.copy()
                arr.setflags(write=False)
                object.__setattr__(self, name, arr)
        if self.values.shape != self.weights.shape or self.values.shape != self.filled.shape:
            raise InvalidInputError("phase field arrays must share one shape")
        if not np.all(np.isfinite(self.values)):
            raise InvalidInputError("phase field values must be finite")
        if not np.all(self.weights > 0):
            raise InvalidInputError("every phase field cell must carry a positive weight")

    @classmethod
    def from_values(cls, values, encoding, guard: Optional[DecodeGuard] = None,
                    weights=None, filled=None, sample_count: int = 0,
                    config: Optional[DephazeConfig] = None) -> "PhaseField":
        """Wrap an explicit ``(N, N)`` grid of encoded values."""

        cfg = resolve_config(config).phasefield
        vals = np.array(values, dtype=float)
        if vals.ndim != 2:
            raise InvalidInputError(f"values must be a 2D grid, got shape {vals.shape}")
        check_resolution(vals.shape[0])
        wts = np.ones_like(vals) if weights is None else np.array(weights, dtype=float)
        mask = np.zeros(vals.shape, dtype=bool) if filled is None else np.array(filled, dtype=bool)
        return cls(vals, wts, mask, make_encoding(encoding, cfg),
                   guard or DecodeGuard.from_config(cfg), int(sample_count))

    @property
    def resolution(self) -> int:
        return int(self.values.shape[0])

    @property
    def default_radius(self) -> float:
        return self.guard.default_radius

    @property
    def mean(self) -> float:
        return float(self.values.mean())

    def cell_index(self, theta: float, phi: float) -> Tuple[int, int]:
        return bin_index(theta, phi, self.resolution)

    def cell_center(self, i: int, j: int) -> Direction:
        return cell_center(i, j, self.resolution)

    def value_at(self, theta: float, phi: float) -> float:
        i, j = self.cell_index(theta, phi)
        return float(self.values[i, j])

    def same_grid(self, other: "PhaseField") -> bool:
        return (self.encoding == other.encoding and self.guard == other.guard
                and np.array_equal(self.values, other.values)
                and np.array_equal(self.weights, other.weights))


class _CellAccumulator:
    """Online weighted running mean per cell."""

    def __init__(self, n: int):
        self.mean = np.zeros((n, n), dtype=float)
        self.weight = np.zeros((n, n), dtype=float)

    def add(self, i: int, j: int, value: float, weight: float) -> None:
        w = self.weight[i, j]
        self.mean[i, j] = (self.mean[i, j] * w + value * weight) / (w + weight)
        self.weight[i, j] = w + weight


def _neighbours(i: int, j: int, n: int) -> List[Tuple[int, int]]:
    cells = [((i - 1) % n, j), ((i + 1) % n, j)]
    if j > 0:
        cells.append((i, j - 1))
    if j < n - 1:
        cells.append((i, j + 1))
    unique: List[Tuple[int, int]] = []
    for cell in cells:
        if cell != (i, j) and cell not in unique:
            unique.append(cell)
    return unique


def fill_holes(mean: np.ndarray, weight: np.ndarray, encoding: Encoding,
               cfg: FieldConfig) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Single-pass hole filling.

    Empty cells take the plain average of those of their four neighbours
    that received samples; cells with no such neighbour take the encoded
    default radius at the cell centre.  Only sampled cells are read, so
    the result does not depend on visiting order.
    """

    n = mean.shape[0]
    values = mean.copy()
    weights = weight.copy()
    holes = weight <= 0.0
    fallbacks = 0
    for i, j in zip(*np.nonzero(holes)):
        i, j = int(i), int(j)
        sampled = [mean[a, b] for a, b in _neighbours(i, j, n) if weight[a, b] > 0.0]
        if sampled:
            values[i, j] = sum(sampled) / len(sampled)
        else:
            center = cell_center(i, j, n)
            values[i, j] = encoding.encode(cfg.default_radius, center.theta, center.phi)
            fallbacks += 1
        weights[i, j] = cfg.fill_weight
    if holes.any():
        logger.debug("filled %d empty cells (%d from default radius)", int(holes.sum()), fallbacks)
    return values, weights, holes


def _check_field_config(cfg: FieldConfig) -> None:
    if not cfg.sample_weight > 0:
        raise InvalidInputError(f"sample weight must be positive, got {cfg.sample_weight!r}")
    if not cfg.fill_weight > 0:
        raise InvalidInputError(f"fill weight must be positive, got {cfg.fill_weight!r}")
    vp = cfg.virtual_points
    if vp.enabled and not (vp.weight > 0 and vp.exponent > 0):
        raise InvalidInputError(
            f"virtual point weight and exponent must be positive, got ({vp.weight!r}, {vp.exponent!r})")


def build_phase_field(samples: Iterable[ScanSample], resolution: int, encoding="log", *,
                      config: Optional[DephazeConfig] = None) -> PhaseField:
    """Bin, aggregate and hole-fill ``samples`` into an ``N x N`` field.

    Parameters
    ----------
    samples : iterable of ScanSample
        Consumed once, in order.  May be empty.
    resolution : int
        Grid size N, must be positive.
    encoding : str or Encoding
        ``'identity'``, ``'log'``, ``'weighted_log'`` or an instance.
    config : DephazeConfig, optional
        Supplies weights, the default radius, the decode range and the
        virtual point settings.

    Returns
    -------
    PhaseField
        A new immutable snapshot; every cell finite and weighted.
    """

    cfg = resolve_config(config).phasefield
    n = check_resolution(resolution)
    _check_field_config(cfg)
    enc = make_encoding(encoding, cfg)
    guard = DecodeGuard.from_config(cfg)
    vp = cfg.virtual_points

    acc = _CellAccumulator(n)
    count = 0
    for sample in samples:
        if not isinstance(sample, ScanSample):
            raise InvalidInputError(f"expected ScanSample, got {type(sample)!r}")
        encoded = sample.with_encoded(enc.encode(sample.radius, sample.theta, sample.phi))
        weight = encoded.weight * cfg.sample_weight
        i, j = bin_index(encoded.theta, encoded.phi, n)
        acc.add(i, j, encoded.encoded, weight)
        if vp.enabled:
            virtual = warp_direction(encoded.direction, vp.exponent)
            vi, vj = bin_index(virtual.theta, virtual.phi, n)
            acc.add(vi, vj, encoded.encoded, weight * vp.weight)
        count += 1

    values, weights, filled = fill_holes(acc.mean, acc.weight, enc, cfg)
    logger.debug("built %dx%d %s phase field from %d samples", n, n, enc.name, count)
    return PhaseField(values, weights, filled, enc, guard, count)


__all__ = [
    'PhaseField',
    'bin_index',
    'bin_indices',
    'build_phase_field',
    'cell_center',
    'check_resolution',
    'fill_holes',
    'warp_direction',
]
