"""Closed-form stability primitives.

A stability primitive is the surface ``Xi(p) = 1`` for a reference radius
``R`` and order ``n``; two numbers describe the whole shape.  Because the
Lp norm is homogeneous, the surface radius along a unit direction ``u``
is simply ``R / ||u||_n``, so primitives can be evaluated directly, fed
into the scan pipeline, or checked against the classical definitions of
the sphere, octahedron and cube.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from dephaze.errors import InvalidInputError
from dephaze.kernel import CHEBYSHEV_ORDER, exists, lp_norm, xi
from dephaze.scan import TWO_PI, Direction, ScanSample, ScanSet

Point3 = Tuple[float, float, float]

_TOPOLOGY_BANDS = (
    (1.3, 'Octahedron'),
    (1.7, 'Transitionary State'),
    (2.3, 'Euclidean Sphere'),
    (3.5, 'Superquadric Transition'),
    (8.0, 'Rounded Cube'),
)


def topology_name(order: float) -> str:
    """Descriptive name of the shape generated at ``order``."""

    for bound, name in _TOPOLOGY_BANDS:
        if order < bound:
            return name
    return 'Limit Topology (Cube)'


@dataclass(frozen=True)
class StabilityPrimitive:
    radius: float
    order: float

    def __post_init__(self):
        r = float(self.radius)
        n = float(self.order)
        if not math.isfinite(r) or r <= 0.0:
            raise InvalidInputError(f"primitive radius must be positive, got {self.radius!r}")
        if math.isnan(n) or n <= 0.0:
            raise InvalidInputError(f"primitive order must be positive, got {self.order!r}")
        object.__setattr__(self, 'radius', r)
        object.__setattr__(self, 'order', n)

    @property
    def topology(self) -> str:
        return topology_name(self.order)

    def xi(self, point) -> float:
        return xi(point, self.radius, self.order)

    def exists(self, point, tolerance: float = 0.05) -> bool:
        return exists(point, self.radius, self.order, tolerance)

    def radius_at(self, direction: Direction) -> float:
        return xi(direction.unit_vector(), self.radius, self.order)

    def point_at(self, direction: Direction) -> Point3:
        r = self.radius_at(direction)
        ux, uy, uz = direction.unit_vector()
        return (r * ux, r * uy, r * uz)


def lattice_axis(extent: float, step: float) -> List[float]:
    if not (extent > 0 and step > 0):
        raise InvalidInputError(f"extent and step must be positive, got ({extent!r}, {step!r})")
    count = int(math.floor(2.0 * extent / step + 1e-9))
    return [-extent + step * k for k in range(count + 1)]


def resolve_lattice(primitive: StabilityPrimitive, extent: float = 3.0, step: float = 0.15,
                    tolerance: float = 0.05) -> List[Point3]:
    """Points of the lattice over ``[-extent, extent]^3`` that lie on the
    primitive's surface within ``tolerance``."""

    axis = lattice_axis(extent, step)
    found: List[Point3] = []
    for x in axis:
        for y in axis:
            for z in axis:
                if primitive.exists((x, y, z), tolerance):
                    found.append((x, y, z))
    return found


# -----------------------------------------------------------------------------
# Classical reference surfaces
# -----------------------------------------------------------------------------

_REFERENCE_ORDERS = {
    'octahedron': 1.0,
    'sphere': 2.0,
    'cube': CHEBYSHEV_ORDER,
}


@dataclass(frozen=True)
class ValidationReport:
    shape: str
    order: float
    radius: float
    tested: int
    matched: int
    mismatched: int

    @property
    def accuracy(self) -> float:
        return 100.0 * self.matched / self.tested if self.tested else 0.0

    def __bool__(self) -> bool:
        return self.tested > 0 and self.mismatched == 0


def reference_surface(shape: str, point, radius: float, tolerance: float = 0.01) -> bool:
    """Classical membership test: Euclidean, Manhattan or Chebyshev
    distance equal to ``radius`` within an absolute ``tolerance``."""

    try:
        order = _REFERENCE_ORDERS[shape]
    except KeyError:
        raise InvalidInputError(
            f"unknown reference shape {shape!r}; expected one of {sorted(_REFERENCE_ORDERS)}"
        ) from None
    return abs(lp_norm(point, order) - radius) < tolerance


def validate_against_reference(shape: str, order: Optional[float] = None, radius: float = 2.0,
                               extent: float = 3.0, step: float = 0.3,
                               tolerance: float = 0.01) -> ValidationReport:
    """Compare the kernel's existence test with the classical definition of
    ``shape`` over a lattice.

    Only points where at least one of the two tests fires are counted.
    """

    if shape not in _REFERENCE_ORDERS:
        raise InvalidInputError(
            f"unknown reference shape {shape!r}; expected one of {sorted(_REFERENCE_ORDERS)}")
    n = _REFERENCE_ORDERS[shape] if order is None else order
    primitive = StabilityPrimitive(radius, n)
    axis = lattice_axis(extent, step)
    tested = matched = 0
    for x in axis:
        for y in axis:
            for z in axis:
                p = (x, y, z)
                ours = primitive.exists(p, tolerance)
                theirs = reference_surface(shape, p, radius, tolerance)
                if ours or theirs:
                    tested += 1
                    if ours == theirs:
                        matched += 1
    return ValidationReport(shape, primitive.order, radius, tested, matched, tested - matched)


def scan_primitive(primitive: StabilityPrimitive, count: int, seed: int) -> ScanSet:
    """Sample ``count`` seeded random directions of the primitive into a
    scan, so analytic shapes can go through the phase field pipeline."""

    if int(count) != count or count < 0:
        raise InvalidInputError(f"sample count must be a non-negative integer, got {count!r}")
    rng = np.random.default_rng(seed)
    theta = rng.random(int(count)) * TWO_PI
    phi = rng.random(int(count)) * math.pi
    samples = []
    for t, p in zip(theta.tolist(), phi.tolist()):
        d = Direction(t, p)
        samples.append(ScanSample(d, primitive.radius_at(d)))
    return ScanSet(tuple(samples), f"primitive-{primitive.radius:g}-{primitive.order:g}-{count}-{seed}")


__all__ = [
    'StabilityPrimitive',
    'ValidationReport',
    'lattice_axis',
    'reference_surface',
    'resolve_lattice',
    'scan_primitive',
    'topology_name',
    'validate_against_reference',
]
