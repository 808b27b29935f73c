"""Stability kernel for dephaze.

The stability coefficient of a point ``p`` with respect to a reference
radius ``R`` and order ``n`` is

    Xi(p) = R / (|x|^n + |y|^n + |z|^n)^(1/n)

and the surface of the generated shape is the set where ``Xi == 1``.
Order 1 yields an octahedron, order 2 the Euclidean sphere, and large
orders approach a cube; past ``CHEBYSHEV_ORDER`` the Chebyshev limit
``R / max(|x|, |y|, |z|)`` is used directly.

The same formula evaluated on unit-vector components with ``R = 1``
(``xi_dir``) is the direction-dependent weight used by the weighted-log
field encoding.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from dephaze.errors import InvalidInputError

## smallest admissible denominator
EPSILON = 1e-12

## orders at or above this use the Chebyshev (L-infinity) limit
CHEBYSHEV_ORDER = 50.0

DEFAULT_DIRECTION_ORDER = 4.0


def _check_order(order: float) -> float:
    try:
        n = float(order)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"order must be a number, got {order!r}") from exc
    if math.isnan(n) or n <= 0.0:
        raise InvalidInputError(f"order must be positive, got {order!r}")
    return n


def _components(point: Sequence[float]) -> tuple:
    if len(point) < 3:
        raise InvalidInputError(f"expected a 3D point, got {point!r}")
    x, y, z = float(point[0]), float(point[1]), float(point[2])
    if not (math.isfinite(x) and math.isfinite(y) and math.isfinite(z)):
        raise InvalidInputError(f"point coordinates must be finite, got {point!r}")
    return abs(x), abs(y), abs(z)


def lp_norm(point: Sequence[float], order: float) -> float:
    """Return the Minkowski (Lp) norm of the first three components.

    The sum is evaluated relative to the largest component so that large
    orders never overflow; at or beyond ``CHEBYSHEV_ORDER`` the max norm
    is returned.
    """

    n = _check_order(order)
    ax, ay, az = _components(point)
    largest = max(ax, ay, az)
    if math.isinf(n) or n >= CHEBYSHEV_ORDER or largest == 0.0:
        return largest
    total = (ax / largest) ** n + (ay / largest) ** n + (az / largest) ** n
    return largest * total ** (1.0 / n)


def xi(point: Sequence[float], radius: float, order: float) -> float:
    """Stability coefficient of ``point`` for reference ``radius`` and
    ``order``.

    Parameters
    ----------
    point : sequence of float
        Cartesian point, only the first three components are used.
    radius : float
        Reference radius R.
    order : float
        Norm order n, must be positive.  ``math.inf`` is accepted.

    Returns
    -------
    float
        ``R / ||point||_n`` with the denominator floored to ``EPSILON``.
    """

    return float(radius) / max(lp_norm(point, order), EPSILON)


def exists(point: Sequence[float], radius: float, order: float,
           tolerance: float = 0.05) -> bool:
    """True if ``point`` lies on the surface ``Xi == 1`` within
    ``tolerance``."""

    return abs(xi(point, radius, order) - 1.0) < tolerance


def xi_dir(direction, order: float = DEFAULT_DIRECTION_ORDER) -> float:
    """Direction weight: Xi of the unit vector of ``direction`` with R = 1.

    ``direction`` is anything exposing ``unit_vector()`` (such as
    :class:`dephaze.scan.Direction`) or a 3-sequence that is already a
    unit vector.  The result does not depend on any sample magnitude.
    """

    vec = direction.unit_vector() if hasattr(direction, 'unit_vector') else direction
    return xi(vec, 1.0, order)


def xi_dir_grid(theta, phi, order: float = DEFAULT_DIRECTION_ORDER) -> np.ndarray:
    """Vectorised :func:`xi_dir` over arrays of angles."""

    n = _check_order(order)
    theta = np.asarray(theta, dtype=float)
    phi = np.asarray(phi, dtype=float)
    sp = np.sin(phi)
    comps = np.abs(np.stack([sp * np.cos(theta), sp * np.sin(theta), np.cos(phi)]))
    largest = np.maximum(comps.max(axis=0), EPSILON)
    if math.isinf(n) or n >= CHEBYSHEV_ORDER:
        norm = largest
    else:
        norm = largest * np.sum((comps / largest) ** n, axis=0) ** (1.0 / n)
    return 1.0 / np.maximum(norm, EPSILON)


__all__ = [
    'CHEBYSHEV_ORDER',
    'DEFAULT_DIRECTION_ORDER',
    'EPSILON',
    'exists',
    'lp_norm',
    'xi',
    'xi_dir',
    'xi_dir_grid',
]
