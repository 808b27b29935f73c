import pytest

from dephaze.config import config_from_dict
from dephaze.errors import InvalidInputError
from dephaze.pipeline import FieldPipeline, SnapshotCache
from dephaze.scan import generate_scan


def test_snapshots_are_memoised():
    pipeline = FieldPipeline()
    scan = generate_scan("bumpy", 300, seed=1)
    first = pipeline.evaluate(scan, "spectral", resolution=8, top_k=10)
    again = pipeline.evaluate(generate_scan("bumpy", 300, seed=1), "spectral", resolution=8, top_k=10)
    assert again.field is first.field
    assert again.coefficients is first.coefficients
    assert again.metrics is first.metrics
    assert pipeline.cache_info() == {'fields': 1, 'coefficients': 1, 'metrics': 1}


def test_budget_change_reuses_field():
    pipeline = FieldPipeline()
    scan = generate_scan("organic", 300, seed=2)
    a = pipeline.evaluate(scan, resolution=8, top_k=5)
    b = pipeline.evaluate(scan, resolution=8, top_k=20)
    assert a.field is b.field
    assert a.coefficients is not b.coefficients
    assert pipeline.cache_info()['fields'] == 1
    assert pipeline.cache_info()['coefficients'] == 2


def test_parameter_changes_recompute():
    pipeline = FieldPipeline()
    scan = generate_scan("organic", 300, seed=2)
    log_field = pipeline.phase_field(scan, 8, "log")
    id_field = pipeline.phase_field(scan, 8, "identity")
    assert log_field is not id_field
    assert pipeline.phase_field(scan, 16) is not log_field
    assert pipeline.coefficients(scan, 8, "log", 5, "mirror").basis == "mirror"


def test_compare_modes():
    pipeline = FieldPipeline()
    results = pipeline.compare(generate_scan("sphere", 1000, seed=0))
    assert set(results) == {"spatial", "spectral"}
    assert results["spatial"].coefficients is None
    assert results["spatial"].model is results["spatial"].field
    assert results["spectral"].model is results["spectral"].coefficients
    assert results["spectral"].metrics.compressed_bytes == 664
    assert results["spatial"].metrics.compressed_bytes == 16 + 32 * 32 * 4


def test_pipeline_uses_config_defaults():
    cfg = config_from_dict({"phasefield": {"resolution": 4}, "spectral": {"top_k": 3}})
    result = FieldPipeline(cfg).evaluate(generate_scan("spike", 100, seed=0))
    assert result.field.resolution == 4
    assert result.coefficients.top_k == 3


def test_invalid_mode_and_clear():
    pipeline = FieldPipeline()
    scan = generate_scan("sphere", 20, seed=0)
    with pytest.raises(InvalidInputError):
        pipeline.evaluate(scan, "hologram")
    pipeline.evaluate(scan, "spatial", resolution=4)
    pipeline.clear()
    assert pipeline.cache_info() == {'fields': 0, 'coefficients': 0, 'metrics': 0}


def test_caches_are_bounded():
    cfg = config_from_dict({"pipeline": {"cache_size": 3}})
    pipeline = FieldPipeline(cfg)
    for seed in range(10):
        pipeline.evaluate(generate_scan("sphere", 20, seed=seed), resolution=4, top_k=2)
    assert pipeline.cache_info() == {'fields': 3, 'coefficients': 3, 'metrics': 3}


def test_least_recently_used_snapshot_is_evicted():
    pipeline = FieldPipeline(config_from_dict({"pipeline": {"cache_size": 2}}))
    scans = [generate_scan("bumpy", 30, seed=seed) for seed in range(3)]
    first = pipeline.phase_field(scans[0], 4)
    pipeline.phase_field(scans[1], 4)
    # touching the first scan makes the second the eviction candidate
    assert pipeline.phase_field(scans[0], 4) is first
    pipeline.phase_field(scans[2], 4)
    assert pipeline.phase_field(scans[0], 4) is first
    assert pipeline.cache_info()['fields'] == 2


def test_snapshot_cache():
    cache = SnapshotCache('demo', 2)
    assert cache.get_or_build(('a',), lambda: 1) == 1
    assert cache.get_or_build(('a',), lambda: 99) == 1
    cache.get_or_build(('b',), lambda: 2)
    cache.get_or_build(('c',), lambda: 3)
    assert ('a',) not in cache
    assert len(cache) == 2
    with pytest.raises(InvalidInputError):
        SnapshotCache('demo', 0)
