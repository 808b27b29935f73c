# -*- coding: utf-8 -*-
"""dephaze: shapes as compact direction fields.

The package turns direction-tagged radius scans into a phase field grid,
optionally compresses that grid into a handful of spectral coefficients,
and reconstructs radii at arbitrary directions.  A closed-form stability
primitive (Xi = R / ||p||_n) covers the analytic shapes.
"""

from importlib.metadata import PackageNotFoundError, version

from dephaze.errors import DephazeError, InvalidInputError
from dephaze.kernel import exists, xi, xi_dir
from dephaze.metrics import Metrics, metrics
from dephaze.phasefield import PhaseField, build_phase_field
from dephaze.reconstruct import reconstruct
from dephaze.scan import Direction, ScanSample, ScanSet, generate_scan
from dephaze.spectral import CoefficientSet, SpectralCoefficient, compress

try:
    __version__ = version("dephaze")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"

__all__ = [
    'CoefficientSet',
    'DephazeError',
    'Direction',
    'InvalidInputError',
    'Metrics',
    'PhaseField',
    'ScanSample',
    'ScanSet',
    'SpectralCoefficient',
    'build_phase_field',
    'compress',
    'exists',
    'generate_scan',
    'metrics',
    'reconstruct',
    'xi',
    'xi_dir',
]
