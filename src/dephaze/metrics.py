"""Storage and fidelity metrics.

Storage is accounted, not measured: a raw scan costs
``bytes_per_raw_sample`` per point (three float32 coordinates), a spatial
field a fixed header plus ``bytes_per_cell`` per cell, and a spectral
field a header, ``bytes_per_coefficient`` per budgeted coefficient and a
small trailer.  With the defaults a 1000-point scan is 12000 bytes and a
K=40 spectral field is ``16 + 40*16 + 8 = 664`` bytes.

The stability score is ``clamp(100 - MAE * error_scale, 0, 100)``: a
bounded, monotone accuracy proxy, not a statistical confidence.

Spectral fidelity is monotone in K only at the cell centres.  Samples sit
anywhere inside their cells, and once the smooth modes are kept the extra
terms reproduce per-cell noise that oscillates between centres, so the
sample MAE levels off and can rise slightly (a bumpy 2000-point scan at
N=16 goes from about 0.035 at K=16 to 0.038 at K=256).
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, Optional

import numpy as np

from dephaze.config import DephazeConfig, MetricsConfig, resolve_config
from dephaze.errors import InvalidInputError
from dephaze.phasefield import PhaseField, check_positive_int
from dephaze.primitive import StabilityPrimitive
from dephaze.reconstruct import FieldModel, reconstructor_for
from dephaze.scan import ScanSet
from dephaze.spectral import CoefficientSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Metrics:
    raw_bytes: int
    compressed_bytes: int
    ratio: float
    mean_absolute_error: float
    stability_score: float
    sample_count: int = 0
    mode: str = "spatial"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def storage_footprint(model: FieldModel, cfg: Optional[MetricsConfig] = None) -> int:
    """Accounted size in bytes of a phase field or coefficient set."""

    cfg = cfg or MetricsConfig()
    if isinstance(model, PhaseField):
        return cfg.header_bytes + model.values.size * cfg.bytes_per_cell
    if isinstance(model, CoefficientSet):
        return cfg.header_bytes + model.top_k * cfg.bytes_per_coefficient + cfg.spectral_trailer_bytes
    raise InvalidInputError(f"expected PhaseField or CoefficientSet, got {type(model)!r}")


def stability_score(mean_absolute_error: float, error_scale: float = 50.0) -> float:
    return float(min(100.0, max(0.0, 100.0 - mean_absolute_error * error_scale)))


def _ratio(raw: int, compressed: int) -> float:
    return float(raw) / compressed if compressed > 0 else 0.0


def metrics(samples: Iterable, model: FieldModel, *,
            config: Optional[DephazeConfig] = None) -> Metrics:
    """Storage footprint and reconstruction error of ``model`` against the
    scan it was built from.

    An empty scan gives zero raw bytes, zero error and a full score.
    """

    cfg = resolve_config(config).metrics
    scan = ScanSet.of(samples)
    recon = reconstructor_for(model)
    count = len(scan)

    raw = count * cfg.bytes_per_raw_sample
    compressed = storage_footprint(model, cfg)
    if count:
        predicted = np.atleast_1d(recon.reconstruct_many(scan.thetas(), scan.phis()))
        mae = float(np.mean(np.abs(predicted - scan.radii())))
    else:
        mae = 0.0
    result = Metrics(
        raw_bytes=raw,
        compressed_bytes=compressed,
        ratio=_ratio(raw, compressed),
        mean_absolute_error=mae,
        stability_score=stability_score(mae, cfg.error_scale),
        sample_count=count,
        mode=recon.mode,
    )
    logger.debug("%s metrics: %d samples, %d -> %d bytes, MAE %.6g",
                 recon.mode, count, raw, compressed, mae)
    return result


def primitive_metrics(primitive: StabilityPrimitive, point_count: int = 10000, *,
                      config: Optional[DephazeConfig] = None) -> Metrics:
    """Storage of a ``point_count`` point cloud versus the two-parameter
    primitive that generates the same surface exactly."""

    cfg = resolve_config(config).metrics
    count = check_positive_int(point_count, "point count")
    if not isinstance(primitive, StabilityPrimitive):
        raise InvalidInputError(f"expected StabilityPrimitive, got {type(primitive)!r}")
    raw = count * cfg.bytes_per_raw_sample
    return Metrics(
        raw_bytes=raw,
        compressed_bytes=cfg.primitive_bytes,
        ratio=_ratio(raw, cfg.primitive_bytes),
        mean_absolute_error=0.0,
        stability_score=100.0,
        sample_count=count,
        mode="primitive",
    )


__all__ = [
    'Metrics',
    'metrics',
    'primitive_metrics',
    'stability_score',
    'storage_footprint',
]
