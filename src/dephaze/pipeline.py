"""Recompute-on-change orchestration with memoised snapshots.

Every artefact is a pure function of its inputs, so a change of scan,
resolution, encoding, budget or basis simply selects (or builds) a
different snapshot.  Snapshots are cached by

* phase field: ``(scan, N, encoding)``
* coefficient set: ``(field key, K, basis)``
* metrics: ``(field key, mode, K, basis)``

Each cache holds at most ``pipeline.cache_size`` snapshots and drops the
least recently used one first.  A pipeline is bound to one
:class:`~dephaze.config.DephazeConfig`; use a new pipeline for a
different configuration.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Tuple, TypeVar

from dephaze.config import DephazeConfig, resolve_config
from dephaze.encoding import make_encoding
from dephaze.errors import InvalidInputError
from dephaze.metrics import Metrics, metrics
from dephaze.phasefield import PhaseField, build_phase_field, check_positive_int, check_resolution
from dephaze.scan import ScanSet
from dephaze.spectral import CoefficientSet, check_basis, compress

logger = logging.getLogger(__name__)

MODES = ('spatial', 'spectral')

T = TypeVar('T')


@dataclass(frozen=True)
class PipelineResult:
    field: PhaseField
    coefficients: Optional[CoefficientSet]
    metrics: Metrics

    @property
    def model(self):
        return self.coefficients if self.coefficients is not None else self.field


class SnapshotCache:
    """Least-recently-used mapping with a fixed capacity."""

    def __init__(self, name: str, capacity: int):
        self.name = name
        self.capacity = check_positive_int(capacity, "cache size")
        self._entries: "OrderedDict[Tuple, Any]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key) -> bool:
        return key in self._entries

    def get_or_build(self, key: Tuple, build: Callable[[], T]) -> T:
        if key in self._entries:
            self._entries.move_to_end(key)
            return self._entries[key]
        value = build()
        self._entries[key] = value
        if len(self._entries) > self.capacity:
            self._entries.popitem(last=False)
            logger.debug("%s cache full, evicted least recently used entry", self.name)
        return value

    def clear(self) -> None:
        self._entries.clear()


class FieldPipeline:
    """Memoising front end over build / compress / metrics."""

    def __init__(self, config: Optional[DephazeConfig] = None):
        self.config = resolve_config(config)
        size = self.config.pipeline.cache_size
        self._fields = SnapshotCache('field', size)
        self._coefficients = SnapshotCache('coefficient', size)
        self._metrics = SnapshotCache('metrics', size)

    def _field_key(self, scan: ScanSet, resolution, encoding) -> Tuple:
        cfg = self.config.phasefield
        n = check_resolution(resolution if resolution is not None else cfg.resolution)
        enc = make_encoding(encoding if encoding is not None else cfg.encoding, cfg)
        return (scan, n, enc)

    def phase_field(self, scan: Iterable, resolution: Optional[int] = None,
                    encoding=None) -> PhaseField:
        scan = ScanSet.of(scan)
        key = self._field_key(scan, resolution, encoding)

        def build() -> PhaseField:
            logger.debug("phase field cache miss (%s, N=%d, %s)", scan.name, key[1], key[2].name)
            return build_phase_field(scan, key[1], key[2], config=self.config)

        return self._fields.get_or_build(key, build)

    def coefficients(self, scan: Iterable, resolution: Optional[int] = None, encoding=None,
                     top_k: Optional[int] = None, basis: Optional[str] = None) -> CoefficientSet:
        scan = ScanSet.of(scan)
        field_key = self._field_key(scan, resolution, encoding)
        k = check_positive_int(top_k if top_k is not None else self.config.spectral.top_k, "top_k")
        b = check_basis(basis if basis is not None else self.config.spectral.basis)
        key = (field_key, k, b)

        def build() -> CoefficientSet:
            logger.debug("coefficient cache miss (%s, K=%d, %s)", scan.name, k, b)
            field = self.phase_field(scan, field_key[1], field_key[2])
            return compress(field, k, b, config=self.config)

        return self._coefficients.get_or_build(key, build)

    def evaluate(self, scan: Iterable, mode: str = "spectral", resolution: Optional[int] = None,
                 encoding=None, top_k: Optional[int] = None,
                 basis: Optional[str] = None) -> PipelineResult:
        """Field, coefficients (spectral mode only) and metrics for one
        parameter set."""

        if mode not in MODES:
            raise InvalidInputError(f"unknown mode {mode!r}; expected one of {list(MODES)}")
        scan = ScanSet.of(scan)
        field_key = self._field_key(scan, resolution, encoding)
        field = self.phase_field(scan, field_key[1], field_key[2])
        coeffs = None
        model_key: Tuple[Any, ...] = (field_key, mode)
        if mode == 'spectral':
            coeffs = self.coefficients(scan, field_key[1], field_key[2], top_k, basis)
            model_key = model_key + (coeffs.top_k, coeffs.basis)
        model = coeffs if coeffs is not None else field
        result = self._metrics.get_or_build(model_key, lambda: metrics(scan, model, config=self.config))
        return PipelineResult(field, coeffs, result)

    def compare(self, scan: Iterable, **params) -> Dict[str, PipelineResult]:
        """Evaluate both modes on the same scan."""

        return {mode: self.evaluate(scan, mode, **params) for mode in MODES}

    def cache_info(self) -> Dict[str, int]:
        return {
            'fields': len(self._fields),
            'coefficients': len(self._coefficients),
            'metrics': len(self._metrics),
        }

    def clear(self) -> None:
        self._fields.clear()
        self._coefficients.clear()
        self._metrics.clear()


__all__ = ['FieldPipeline', 'MODES', 'PipelineResult', 'SnapshotCache']
