"""Configuration dataclasses and YAML loading.

Every tunable constant of the field pipeline lives here so callers can
override it in one place, either programmatically or from a YAML file::

    phasefield:
      resolution: 32
      encoding: log
      default_radius: 2.0
      virtual_points:
        enabled: true
        weight: 0.35
        exponent: 0.8
    spectral:
      top_k: 40
      basis: dct
    metrics:
      error_scale: 50.0
    pipeline:
      cache_size: 32
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dephaze.errors import InvalidInputError


@dataclass(frozen=True)
class VirtualPointConfig:
    """Virtual-point densification.

    Each real sample is mirrored to a warped direction (unit components
    raised to ``exponent`` with their sign kept) carrying the same encoded
    value at ``weight`` times the sample weight.
    """

    enabled: bool = False
    weight: float = 0.35
    exponent: float = 0.8


@dataclass(frozen=True)
class FieldConfig:
    """Phase field construction and decoding parameters."""

    resolution: int = 32
    encoding: str = "log"
    default_radius: float = 2.0
    min_radius: float = 1e-6
    max_radius: float = 1e6
    epsilon: float = 1e-6
    sample_weight: float = 1.0
    fill_weight: float = 0.1
    direction_scale: float = 1.0
    direction_order: float = 4.0
    virtual_points: VirtualPointConfig = field(default_factory=VirtualPointConfig)


@dataclass(frozen=True)
class SpectralConfig:
    top_k: int = 40
    basis: str = "dct"
    amplitude_floor: float = 1e-4
    method: str = "auto"
    direct_max_resolution: int = 16


@dataclass(frozen=True)
class MetricsConfig:
    """Storage accounting (bytes) and the error-to-score scale."""

    bytes_per_raw_sample: int = 12
    header_bytes: int = 16
    bytes_per_cell: int = 4
    bytes_per_coefficient: int = 16
    spectral_trailer_bytes: int = 8
    error_scale: float = 50.0
    primitive_bytes: int = 16


@dataclass(frozen=True)
class PipelineConfig:
    """Snapshots kept per cache (fields, coefficient sets, metrics); the
    least recently used entry is dropped first."""

    cache_size: int = 32


@dataclass(frozen=True)
class DephazeConfig:
    phasefield: FieldConfig = field(default_factory=FieldConfig)
    spectral: SpectralConfig = field(default_factory=SpectralConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)


DEFAULT_CONFIG = DephazeConfig()


def resolve_config(config: Optional[DephazeConfig]) -> DephazeConfig:
    return DEFAULT_CONFIG if config is None else config


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _coerce(default, value, path: str):
    """Check ``value`` against the type of ``default``.  Integers are never
    truncated and flags accept only real booleans."""

    if isinstance(default, float) and isinstance(value, str):
        # PyYAML reads exponents without a dot (1e-4) as strings
        try:
            value = float(value)
        except ValueError as exc:
            raise InvalidInputError(f"invalid value for '{path}': {value!r}") from exc
    if isinstance(default, bool):
        ok = isinstance(value, bool)
    elif isinstance(default, int):
        ok = _is_number(value) and math.isfinite(value) and value == int(value)
    elif isinstance(default, float):
        ok = _is_number(value)
    else:
        ok = isinstance(value, str)
    if not ok:
        raise InvalidInputError(f"invalid value for '{path}': {value!r}")
    return type(default)(value)


def _build(cls, data: Mapping[str, Any], path: str):
    if not isinstance(data, Mapping):
        raise InvalidInputError(f"config section '{path}' must be a mapping, got {type(data)!r}")
    known = {f.name: f for f in fields(cls)}
    unknown = sorted(set(data) - set(known))
    if unknown:
        raise InvalidInputError(f"unknown config keys in '{path}': {unknown}")
    kwargs: Dict[str, Any] = {}
    for name, value in data.items():
        default = getattr(cls(), name)
        if is_dataclass(default):
            kwargs[name] = _build(type(default), value or {}, f"{path}.{name}")
            continue
        kwargs[name] = _coerce(default, value, f"{path}.{name}")
    return cls(**kwargs)


def config_from_dict(data: Optional[Mapping[str, Any]]) -> DephazeConfig:
    """Build a :class:`DephazeConfig` from a (possibly partial) mapping."""

    return _build(DephazeConfig, data or {}, "root")


def load_config(path: Path | str) -> DephazeConfig:
    """Load a YAML configuration file and return the normalised config."""

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"config file not found: {config_path}")
    import yaml

    with config_path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    if not isinstance(data, dict):
        raise InvalidInputError(f"config must be a mapping, got {type(data)!r}")
    return config_from_dict(data)


__all__ = [
    'DEFAULT_CONFIG',
    'DephazeConfig',
    'FieldConfig',
    'MetricsConfig',
    'PipelineConfig',
    'SpectralConfig',
    'VirtualPointConfig',
    'config_from_dict',
    'load_config',
    'resolve_config',
]
