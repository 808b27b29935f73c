"""Directions, scan samples and deterministic scan sources.

A scan is an ordered collection of direction-tagged radii ``(theta, phi,
R)``: ``theta`` is the periodic azimuth in ``[0, 2*pi)``, ``phi`` the polar
angle in ``[0, pi]``.  Real scanners are outside the scope of this package;
:func:`generate_scan` reproduces the synthetic test shapes with a seeded
generator so that every scan is reproducible.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Callable, Dict, Iterable, Iterator, Optional, Sequence, Tuple

import numpy as np

from dephaze.errors import InvalidInputError
from dephaze.kernel import EPSILON

TWO_PI = 2.0 * math.pi


@dataclass(frozen=True)
class Direction:
    """A point on the unit sphere, ``theta`` azimuth and ``phi`` polar
    angle.  ``theta == 2*pi`` is the same direction as 0 and is wrapped."""

    theta: float
    phi: float

    def __post_init__(self):
        theta = float(self.theta)
        phi = float(self.phi)
        if not (math.isfinite(theta) and math.isfinite(phi)):
            raise InvalidInputError(f"direction angles must be finite, got ({self.theta!r}, {self.phi!r})")
        if theta < 0.0 or theta > TWO_PI:
            raise InvalidInputError(f"theta must lie in [0, 2*pi], got {theta!r}")
        if phi < 0.0 or phi > math.pi:
            raise InvalidInputError(f"phi must lie in [0, pi], got {phi!r}")
        if theta == TWO_PI:
            theta = 0.0
        object.__setattr__(self, 'theta', theta)
        object.__setattr__(self, 'phi', phi)

    def unit_vector(self) -> Tuple[float, float, float]:
        sp = math.sin(self.phi)
        return (sp * math.cos(self.theta), sp * math.sin(self.theta), math.cos(self.phi))

    @classmethod
    def from_vector(cls, vec: Sequence[float]) -> "Direction":
        """Direction of a non-zero Cartesian vector."""

        x, y, z = float(vec[0]), float(vec[1]), float(vec[2])
        mag = math.sqrt(x * x + y * y + z * z)
        if not math.isfinite(mag) or mag < EPSILON:
            raise InvalidInputError(f"cannot take the direction of {vec!r}")
        theta = math.atan2(y, x) % TWO_PI
        phi = math.acos(max(-1.0, min(1.0, z / mag)))
        return cls(theta, phi)


@dataclass(frozen=True)
class ScanSample:
    """One measured radius along a direction.

    ``encoded`` is the field-domain value derived by an encoding strategy;
    it stays ``None`` until :meth:`with_encoded` produces an encoded copy.
    """

    direction: Direction
    radius: float
    encoded: Optional[float] = None
    weight: float = 1.0

    def __post_init__(self):
        r = float(self.radius)
        if not math.isfinite(r) or r <= 0.0:
            raise InvalidInputError(f"sample radius must be positive and finite, got {self.radius!r}")
        w = float(self.weight)
        if not math.isfinite(w) or w <= 0.0:
            raise InvalidInputError(f"sample weight must be positive, got {self.weight!r}")
        object.__setattr__(self, 'radius', r)
        object.__setattr__(self, 'weight', w)

    @classmethod
    def at(cls, theta: float, phi: float, radius: float, weight: float = 1.0) -> "ScanSample":
        return cls(Direction(theta, phi), radius, weight=weight)

    @property
    def theta(self) -> float:
        return self.direction.theta

    @property
    def phi(self) -> float:
        return self.direction.phi

    def point(self) -> Tuple[float, float, float]:
        ux, uy, uz = self.direction.unit_vector()
        return (self.radius * ux, self.radius * uy, self.radius * uz)

    def with_encoded(self, value: float) -> "ScanSample":
        return replace(self, encoded=float(value))


@dataclass(frozen=True)
class ScanSet:
    """Immutable ordered scan; hashable so it can key cached snapshots."""

    samples: Tuple[ScanSample, ...] = ()
    name: str = "scan"

    @classmethod
    def of(cls, samples: Iterable[ScanSample], name: str = "scan") -> "ScanSet":
        if isinstance(samples, ScanSet):
            return samples
        items = tuple(samples)
        for item in items:
            if not isinstance(item, ScanSample):
                raise InvalidInputError(f"scan entries must be ScanSample, got {type(item)!r}")
        return cls(items, name)

    def __len__(self) -> int:
        return len(self.samples)

    def __iter__(self) -> Iterator[ScanSample]:
        return iter(self.samples)

    def __getitem__(self, idx):
        return self.samples[idx]

    def thetas(self) -> np.ndarray:
        return np.array([s.theta for s in self.samples], dtype=float)

    def phis(self) -> np.ndarray:
        return np.array([s.phi for s in self.samples], dtype=float)

    def radii(self) -> np.ndarray:
        return np.array([s.radius for s in self.samples], dtype=float)


# -----------------------------------------------------------------------------
# Synthetic radial profiles
# -----------------------------------------------------------------------------

RadialProfile = Callable[[np.ndarray, np.ndarray, float], np.ndarray]


def _sphere(theta, phi, base):
    return np.full(np.shape(theta), base, dtype=float)


def _bumpy(theta, phi, base):
    return (base
            + 0.35 * np.sin(theta * 3) * np.cos(phi * 2)
            + 0.25 * np.sin(theta * 5 + phi * 3))


def _spike(theta, phi, base):
    return base + 0.6 * np.abs(np.sin(theta * 2)) * np.abs(np.cos(phi * 2))


def _organic(theta, phi, base):
    return (base
            + 0.3 * np.sin(theta * 2.3 + phi * 1.7)
            + 0.15 * np.cos(theta * 4.1) * np.sin(phi * 3.3))


_PROFILES: Dict[str, RadialProfile] = {
    'sphere': _sphere,
    'bumpy': _bumpy,
    'spike': _spike,
    'organic': _organic,
}


def available_profiles() -> Sequence[str]:
    return tuple(sorted(_PROFILES))


def radial_profile(name: str) -> RadialProfile:
    try:
        return _PROFILES[name.lower()]
    except (KeyError, AttributeError):
        raise InvalidInputError(
            f"unknown scan profile {name!r}; expected one of {list(available_profiles())}"
        ) from None


def generate_scan(profile: str, count: int, seed: int, base_radius: float = 2.0) -> ScanSet:
    """Sample ``count`` directions uniformly in (theta, phi) and record the
    radius of the named profile along each.

    The generator is seeded, so equal arguments always give equal scans.
    """

    func = radial_profile(profile)
    if int(count) != count or count < 0:
        raise InvalidInputError(f"sample count must be a non-negative integer, got {count!r}")
    if not base_radius > 0:
        raise InvalidInputError(f"base radius must be positive, got {base_radius!r}")
    rng = np.random.default_rng(seed)
    theta = rng.random(int(count)) * TWO_PI
    phi = rng.random(int(count)) * math.pi
    radius = func(theta, phi, float(base_radius))
    samples = [ScanSample(Direction(t, p), r)
               for t, p, r in zip(theta.tolist(), phi.tolist(), radius.tolist())]
    return ScanSet(tuple(samples), f"{profile.lower()}-{count}-{seed}")


def scan_from_points(points: Iterable[Sequence[float]], name: str = "points") -> ScanSet:
    """Convert Cartesian surface points (about the origin) into a scan."""

    samples = []
    for pt in points:
        x, y, z = float(pt[0]), float(pt[1]), float(pt[2])
        radius = math.sqrt(x * x + y * y + z * z)
        samples.append(ScanSample(Direction.from_vector((x, y, z)), radius))
    return ScanSet(tuple(samples), name)


__all__ = [
    'Direction',
    'ScanSample',
    'ScanSet',
    'TWO_PI',
    'available_profiles',
    'generate_scan',
    'radial_profile',
    'scan_from_points',
]
