"""Field JSON serialization/deserialization helpers.

A document carries a header with everything needed to decode
(``defaultRadius``, the radius range, ``resolution``, the encoding and,
for spectral documents, ``topK``, ``basis`` and the DC term) followed by
either the ``N x N`` cell array or the coefficient tuples
``[kTheta, kPhi, real, imag, amplitude]``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Union

from dephaze.encoding import DecodeGuard, encoding_from_description
from dephaze.errors import InvalidInputError
from dephaze.phasefield import PhaseField
from dephaze.spectral import CoefficientSet, SpectralCoefficient

SCHEMA_ID = "dephaze-field-json-v0.1"

Model = Union[PhaseField, CoefficientSet]


def _grid(arr) -> List[List[float]]:
    return [[float(v) for v in row] for row in arr]


def _header(model: Model) -> Dict[str, Any]:
    guard = model.guard
    return {
        "defaultRadius": guard.default_radius,
        "minRadius": guard.min_radius,
        "maxRadius": guard.max_radius,
        "resolution": model.resolution,
        "encoding": model.encoding.describe(),
    }


def field_to_json(field: PhaseField) -> Dict[str, Any]:
    """Serialize a phase field (spatial mode)."""
    header = _header(field)
    header.update({"basis": None, "sampleCount": field.sample_count})
    return {
        "schema": SCHEMA_ID,
        "kind": "spatial",
        "header": header,
        "cells": _grid(field.values),
        "weights": _grid(field.weights),
        "filled": [[bool(v) for v in row] for row in field.filled],
    }


def coefficients_to_json(coeffs: CoefficientSet) -> Dict[str, Any]:
    """Serialize a coefficient set (spectral mode)."""
    header = _header(coeffs)
    header.update({
        "topK": coeffs.top_k,
        "basis": coeffs.basis,
        "dc": coeffs.dc,
        "totalCandidates": coeffs.total_candidates,
    })
    return {
        "schema": SCHEMA_ID,
        "kind": "spectral",
        "header": header,
        "coefficients": [[c.k_theta, c.k_phi, c.real, c.imag, c.amplitude]
                         for c in coeffs.coefficients],
    }


def model_to_json(model: Model) -> Dict[str, Any]:
    if isinstance(model, PhaseField):
        return field_to_json(model)
    if isinstance(model, CoefficientSet):
        return coefficients_to_json(model)
    raise InvalidInputError(f"unsupported model type for serialization: {type(model)!r}")


def _guard(header: Dict[str, Any]) -> DecodeGuard:
    return DecodeGuard(float(header["minRadius"]), float(header["maxRadius"]),
                       float(header["defaultRadius"]))


def _rehydrate_field(doc: Dict[str, Any]) -> PhaseField:
    header = doc["header"]
    return PhaseField.from_values(
        doc["cells"],
        encoding_from_description(header["encoding"]),
        guard=_guard(header),
        weights=doc.get("weights"),
        filled=doc.get("filled"),
        sample_count=int(header.get("sampleCount", 0)),
    )


def _rehydrate_coefficients(doc: Dict[str, Any]) -> CoefficientSet:
    header = doc["header"]
    coefficients = []
    for entry in doc.get("coefficients", []):
        k_theta, k_phi, real, imag, amplitude = entry
        coefficients.append(SpectralCoefficient(int(k_theta), int(k_phi), float(real),
                                                float(imag), float(amplitude)))
    return CoefficientSet(
        dc=float(header["dc"]),
        coefficients=tuple(coefficients),
        total_candidates=int(header.get("totalCandidates", len(coefficients))),
        resolution=int(header["resolution"]),
        top_k=int(header["topK"]),
        basis=str(header["basis"]),
        encoding=encoding_from_description(header["encoding"]),
        guard=_guard(header),
    )


def model_from_json(doc: Dict[str, Any]) -> Model:
    """Deserialize a field JSON document into a PhaseField or CoefficientSet."""
    if not isinstance(doc, dict) or doc.get("schema") != SCHEMA_ID:
        schema = doc.get("schema") if isinstance(doc, dict) else None
        raise InvalidInputError(f"unsupported field schema: {schema}")
    kind = doc.get("kind")
    try:
        if kind == "spatial":
            return _rehydrate_field(doc)
        if kind == "spectral":
            return _rehydrate_coefficients(doc)
    except (KeyError, TypeError, ValueError) as exc:
        if isinstance(exc, InvalidInputError):
            raise
        raise InvalidInputError(f"malformed {kind} field document: {exc}") from exc
    raise InvalidInputError(f"unknown field kind: {kind!r}")


def dump_model(model: Model, path: Path | str) -> Path:
    out = Path(path)
    with out.open("w", encoding="utf-8") as fp:
        json.dump(model_to_json(model), fp, indent=1)
    return out


def load_model(path: Path | str) -> Model:
    with Path(path).open("r", encoding="utf-8") as fp:
        return model_from_json(json.load(fp))


__all__ = [
    'SCHEMA_ID',
    'coefficients_to_json',
    'dump_model',
    'field_to_json',
    'load_model',
    'model_from_json',
    'model_to_json',
]
