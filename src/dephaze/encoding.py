"""Field encodings: radius <-> field value.

A phase field does not have to store radii directly.  The log domain
turns multiplicative bumps into additive ones, and the weighted log
domain additionally scales by the direction weight ``k * xi_dir(d)``,
which smooths the signal for the spectral compressor at the price of
needing the same weight at decode time.

All strategies work on floats and on numpy arrays alike.  Decoding never
produces a non-finite or out-of-range radius: the :class:`DecodeGuard`
clamps to the physical range and substitutes a default for anything that
is not finite.
"""

from __future__ import annotations

import abc
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Sequence, Type

import numpy as np

from dephaze.config import FieldConfig
from dephaze.errors import InvalidInputError
from dephaze.kernel import xi_dir_grid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodeGuard:
    """Physical range of decoded radii and the substitute for non-finite
    values."""

    min_radius: float = 1e-6
    max_radius: float = 1e6
    default_radius: float = 2.0

    def __post_init__(self):
        if not (0.0 < self.min_radius < self.max_radius):
            raise InvalidInputError(
                f"radius range must satisfy 0 < min < max, got ({self.min_radius}, {self.max_radius})")
        if not (self.min_radius <= self.default_radius <= self.max_radius):
            raise InvalidInputError(
                f"default radius {self.default_radius} outside [{self.min_radius}, {self.max_radius}]")

    @classmethod
    def from_config(cls, cfg: FieldConfig) -> "DecodeGuard":
        return cls(cfg.min_radius, cfg.max_radius, cfg.default_radius)

    def apply(self, radius):
        """Clamp ``radius`` (scalar or array) into range; non-finite
        entries become ``default_radius``."""

        arr = np.asarray(radius, dtype=float)
        finite = np.isfinite(arr)
        if not finite.all():
            logger.debug("decode guard replaced %d non-finite radii", int(np.size(arr) - finite.sum()))
        out = np.clip(np.where(finite, arr, self.default_radius), self.min_radius, self.max_radius)
        if np.ndim(out) == 0:
            return float(out)
        return out


class Encoding(abc.ABC):
    """Base class for field encodings."""

    name: str = "encoding"

    def __init__(self, epsilon: float = 1e-6):
        if not epsilon > 0:
            raise InvalidInputError(f"epsilon must be positive, got {epsilon!r}")
        self.epsilon = float(epsilon)

    @abc.abstractmethod
    def encode(self, radius, theta, phi):
        """Return the field value(s) for ``radius`` along (theta, phi)."""

    @abc.abstractmethod
    def decode(self, value, theta, phi):
        """Invert :meth:`encode`; the result is not yet range-guarded."""

    def describe(self) -> Dict[str, Any]:
        return {"name": self.name, "epsilon": self.epsilon}

    def __eq__(self, other) -> bool:
        return type(self) is type(other) and self.describe() == other.describe()

    def __hash__(self) -> int:
        return hash(tuple(sorted(self.describe().items())))

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v!r}" for k, v in self.describe().items() if k != "name")
        return f"{type(self).__name__}({params})"


def _ret(arr):
    return float(arr) if np.ndim(arr) == 0 else arr


class IdentityEncoding(Encoding):
    """F = R."""

    name = "identity"

    def encode(self, radius, theta, phi):
        return _ret(np.asarray(radius, dtype=float))

    def decode(self, value, theta, phi):
        return _ret(np.asarray(value, dtype=float))


class LogEncoding(Encoding):
    """F = ln(R + eps)."""

    name = "log"

    # exp() of anything above this overflows a double
    _MAX_EXPONENT = math.log(np.finfo(float).max) - 1.0

    def encode(self, radius, theta, phi):
        return _ret(np.log(np.asarray(radius, dtype=float) + self.epsilon))

    def decode(self, value, theta, phi):
        arr = np.asarray(value, dtype=float)
        with np.errstate(over='ignore', invalid='ignore'):
            out = np.exp(np.minimum(arr, self._MAX_EXPONENT)) - self.epsilon
        return _ret(out)


class WeightedLogEncoding(LogEncoding):
    """F = ln(R + eps) * V(d), V = scale * xi_dir(d)."""

    name = "weighted_log"

    def __init__(self, epsilon: float = 1e-6, scale: float = 1.0, order: float = 4.0):
        super().__init__(epsilon)
        if not scale > 0:
            raise InvalidInputError(f"direction scale must be positive, got {scale!r}")
        if not order > 0:
            raise InvalidInputError(f"direction order must be positive, got {order!r}")
        self.scale = float(scale)
        self.order = float(order)

    def weight(self, theta, phi):
        return np.maximum(self.scale * xi_dir_grid(theta, phi, self.order), self.epsilon)

    def encode(self, radius, theta, phi):
        base = np.log(np.asarray(radius, dtype=float) + self.epsilon)
        return _ret(base * self.weight(theta, phi))

    def decode(self, value, theta, phi):
        arr = np.asarray(value, dtype=float) / self.weight(theta, phi)
        return super().decode(arr, theta, phi)

    def describe(self) -> Dict[str, Any]:
        info = super().describe()
        info.update({"scale": self.scale, "order": self.order})
        return info


_ENCODINGS: Dict[str, Type[Encoding]] = {}


def register_encoding(name: str, encoding_cls: Type[Encoding]) -> None:
    if not issubclass(encoding_cls, Encoding):
        raise TypeError("encoding_cls must inherit Encoding")
    _ENCODINGS[name.lower()] = encoding_cls


def available_encodings() -> Sequence[str]:
    return tuple(sorted(_ENCODINGS.keys()))


def make_encoding(name, cfg: FieldConfig | None = None) -> Encoding:
    """Instantiate the encoding registered as ``name``.

    An :class:`Encoding` instance is returned unchanged.
    """

    if isinstance(name, Encoding):
        return name
    cfg = cfg or FieldConfig()
    try:
        cls = _ENCODINGS[str(name).lower()]
    except KeyError:
        raise InvalidInputError(
            f"unknown encoding {name!r}; expected one of {list(available_encodings())}"
        ) from None
    if issubclass(cls, WeightedLogEncoding):
        return cls(cfg.epsilon, cfg.direction_scale, cfg.direction_order)
    return cls(cfg.epsilon)


def encoding_from_description(info: Dict[str, Any]) -> Encoding:
    """Rebuild an encoding from :meth:`Encoding.describe` output."""

    name = info.get("name")
    cfg = FieldConfig(
        encoding=str(name),
        epsilon=float(info.get("epsilon", 1e-6)),
        direction_scale=float(info.get("scale", 1.0)),
        direction_order=float(info.get("order", 4.0)),
    )
    return make_encoding(name, cfg)


register_encoding(IdentityEncoding.name, IdentityEncoding)
register_encoding(LogEncoding.name, LogEncoding)
register_encoding(WeightedLogEncoding.name, WeightedLogEncoding)


__all__ = [
    'DecodeGuard',
    'Encoding',
    'IdentityEncoding',
    'LogEncoding',
    'WeightedLogEncoding',
    'available_encodings',
    'encoding_from_description',
    'make_encoding',
    'register_encoding',
]
