import json

import numpy as np
import pytest

from dephaze.errors import InvalidInputError
from dephaze.io.field_json import (
    SCHEMA_ID,
    coefficients_to_json,
    dump_model,
    field_to_json,
    load_model,
    model_from_json,
    model_to_json,
)
from dephaze.phasefield import PhaseField, build_phase_field
from dephaze.reconstruct import reconstruct
from dephaze.scan import generate_scan
from dephaze.spectral import CoefficientSet, compress


def _field(encoding="log"):
    return build_phase_field(generate_scan("bumpy", 400, seed=3), 8, encoding)


def test_field_document():
    field = _field()
    doc = field_to_json(field)
    assert doc['schema'] == SCHEMA_ID
    assert doc['kind'] == 'spatial'
    assert doc['header']['resolution'] == 8
    assert doc['header']['defaultRadius'] == 2.0
    assert doc['header']['encoding']['name'] == 'log'
    assert len(doc['cells']) == 8 and len(doc['cells'][0]) == 8

    decoded = model_from_json(json.loads(json.dumps(doc)))
    assert isinstance(decoded, PhaseField)
    assert decoded.same_grid(field)
    assert np.array_equal(decoded.filled, field.filled)
    assert decoded.sample_count == field.sample_count


def test_coefficient_document():
    coeffs = compress(_field("weighted_log"), 12, "mirror")
    doc = coefficients_to_json(coeffs)
    assert doc['kind'] == 'spectral'
    assert doc['header']['topK'] == 12
    assert doc['header']['basis'] == 'mirror'
    assert len(doc['coefficients']) == len(coeffs)
    assert all(len(entry) == 5 for entry in doc['coefficients'])

    decoded = model_from_json(json.loads(json.dumps(doc)))
    assert isinstance(decoded, CoefficientSet)
    assert decoded.encoding == coeffs.encoding
    assert [c.as_tuple() for c in decoded.coefficients] == [c.as_tuple() for c in coeffs.coefficients]
    assert reconstruct(decoded, 1.0, 2.0) == pytest.approx(reconstruct(coeffs, 1.0, 2.0))


def test_dump_and_load(tmp_path):
    field = _field()
    coeffs = compress(field, 6)
    for name, model in (("field.json", field), ("coeffs.json", coeffs)):
        path = dump_model(model, tmp_path / name)
        assert path.exists()
        loaded = load_model(path)
        assert type(loaded) is type(model)
        assert reconstruct(loaded, 0.4, 0.9) == pytest.approx(reconstruct(model, 0.4, 0.9))


def test_schema_mismatch():
    doc = model_to_json(_field())
    doc['schema'] = 'something-else'
    with pytest.raises(InvalidInputError):
        model_from_json(doc)
    with pytest.raises(InvalidInputError):
        model_from_json([])


def test_malformed_documents():
    doc = model_to_json(compress(_field(), 4))
    bad_kind = dict(doc, kind='volumetric')
    with pytest.raises(InvalidInputError):
        model_from_json(bad_kind)
    missing = dict(doc, header={k: v for k, v in doc['header'].items() if k != 'topK'})
    with pytest.raises(InvalidInputError):
        model_from_json(missing)
    bad_entry = dict(doc, coefficients=[[1, 2, 3]])
    with pytest.raises(InvalidInputError):
        model_from_json(bad_entry)


def test_unsupported_model():
    with pytest.raises(InvalidInputError):
        model_to_json({'cells': []})
