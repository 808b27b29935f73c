import pytest

from dephaze.config import config_from_dict
from dephaze.errors import InvalidInputError
from dephaze.metrics import Metrics, metrics, primitive_metrics, stability_score, storage_footprint
from dephaze.phasefield import build_phase_field
from dephaze.primitive import StabilityPrimitive
from dephaze.scan import generate_scan
from dephaze.spectral import compress


def test_constant_scan_storage_and_score():
    scan = generate_scan("sphere", 1000, seed=1)
    field = build_phase_field(scan, 32)
    spectral = metrics(scan, compress(field, 40))
    assert spectral.raw_bytes == 12000
    assert spectral.compressed_bytes == 664
    assert spectral.ratio == pytest.approx(12000 / 664)
    assert spectral.stability_score > 99.0
    assert spectral.mode == "spectral"

    spatial = metrics(scan, field)
    assert spatial.compressed_bytes == 16 + 32 * 32 * 4
    assert spatial.mean_absolute_error == pytest.approx(0.0, abs=1e-9)
    assert spatial.stability_score > 99.0
    assert spatial.sample_count == 1000


def test_stability_score_is_clamped():
    assert stability_score(0.0) == 100.0
    assert stability_score(0.5) == pytest.approx(75.0)
    assert stability_score(3.0) == 0.0
    assert stability_score(0.1, error_scale=100.0) == pytest.approx(90.0)


def test_empty_scan():
    field = build_phase_field([], 8)
    result = metrics([], field)
    assert result.raw_bytes == 0
    assert result.ratio == 0.0
    assert result.mean_absolute_error == 0.0
    assert result.stability_score == 100.0


def test_error_shrinks_with_budget_then_levels_off():
    scan = generate_scan("bumpy", 2000, seed=7)
    field = build_phase_field(scan, 16)
    errors = {k: metrics(scan, compress(field, k)).mean_absolute_error for k in (1, 4, 16, 256)}
    assert errors[4] < errors[1]
    assert errors[16] < errors[4]
    # past the smooth modes the kept terms fit per-cell noise, and the
    # continuous synthesis between cell centres lets the error creep up
    assert errors[256] > errors[16] - 0.005
    assert errors[256] < errors[16] + 0.01


def test_configured_accounting():
    cfg = config_from_dict({"metrics": {"bytes_per_raw_sample": 24, "header_bytes": 0}})
    scan = generate_scan("sphere", 10, seed=0)
    field = build_phase_field(scan, 4, config=cfg)
    result = metrics(scan, field, config=cfg)
    assert result.raw_bytes == 240
    assert result.compressed_bytes == 64


def test_storage_footprint_rejects_unknown_model():
    with pytest.raises(InvalidInputError):
        storage_footprint(object())


def test_primitive_metrics():
    result = primitive_metrics(StabilityPrimitive(2.0, 4.0))
    assert result.raw_bytes == 120000
    assert result.compressed_bytes == 16
    assert result.ratio == pytest.approx(7500.0)
    assert result.stability_score == 100.0
    assert result.mode == "primitive"
    with pytest.raises(InvalidInputError):
        primitive_metrics(StabilityPrimitive(2.0, 4.0), 0)


def test_metrics_to_dict():
    m = Metrics(12, 4, 3.0, 0.1, 95.0, 1, "spatial")
    assert m.to_dict() == {
        "raw_bytes": 12,
        "compressed_bytes": 4,
        "ratio": 3.0,
        "mean_absolute_error": 0.1,
        "stability_score": 95.0,
        "sample_count": 1,
        "mode": "spatial",
    }
