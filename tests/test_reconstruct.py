import math

import numpy as np
import pytest

from dephaze.errors import InvalidInputError
from dephaze.phasefield import PhaseField, build_phase_field, cell_center
from dephaze.reconstruct import (
    SpatialReconstructor,
    SpectralReconstructor,
    reconstruct,
    reconstruct_many,
    reconstructor_for,
)
from dephaze.scan import TWO_PI, ScanSample, generate_scan
from dephaze.spectral import compress


def test_empty_field_reconstructs_default_radius():
    field = build_phase_field([], 8)
    assert reconstruct(field, 1.0, 1.0) == pytest.approx(2.0)
    assert reconstruct(compress(field, 5), 1.0, 1.0) == pytest.approx(2.0)


def test_spatial_lookup_is_nearest_cell():
    n = 4
    c = cell_center(2, 1, n)
    field = build_phase_field([ScanSample(c, 3.0)], n, "identity")
    assert reconstruct(field, c.theta, c.phi) == pytest.approx(3.0)
    # anywhere in the same cell
    assert reconstruct(field, c.theta + 0.3, c.phi - 0.3) == pytest.approx(3.0)


def test_theta_two_pi_matches_zero():
    field = build_phase_field(generate_scan("bumpy", 400, seed=1), 8)
    for model in (field, compress(field, 10)):
        assert reconstruct(model, TWO_PI, 1.2) == pytest.approx(reconstruct(model, 0.0, 1.2))


@pytest.mark.parametrize("theta, phi", [(-0.1, 1.0), (1.0, 3.3), (float("nan"), 1.0)])
def test_out_of_range_queries(theta, phi):
    field = build_phase_field([], 4)
    with pytest.raises(InvalidInputError):
        reconstruct(field, theta, phi)
    with pytest.raises(InvalidInputError):
        reconstruct(compress(field, 2), theta, phi)


def test_guard_clamps_decoded_radius():
    low = PhaseField.from_values(np.full((4, 4), -5.0), "identity")
    assert reconstruct(low, 1.0, 1.0) == pytest.approx(1e-6)
    high = PhaseField.from_values(np.full((4, 4), 1000.0), "log")
    assert reconstruct(high, 1.0, 1.0) == 1e6
    assert reconstruct(compress(high, 3), 1.0, 1.0) == 1e6


def test_reconstruct_many_matches_scalar():
    field = build_phase_field(generate_scan("spike", 600, seed=9), 12)
    coeffs = compress(field, 20)
    theta = np.array([0.1, 2.0, 5.5])
    phi = np.array([0.2, 1.5, 3.0])
    for model in (field, coeffs):
        many = reconstruct_many(model, theta, phi)
        assert many.shape == (3,)
        expected = [reconstruct(model, t, p) for t, p in zip(theta, phi)]
        assert np.allclose(many, expected)


def test_reconstructor_for():
    field = build_phase_field([], 4)
    assert isinstance(reconstructor_for(field), SpatialReconstructor)
    assert isinstance(reconstructor_for(compress(field, 2)), SpectralReconstructor)
    assert reconstructor_for(field)(0.5, 0.5) == pytest.approx(2.0)
    with pytest.raises(InvalidInputError):
        reconstructor_for(np.zeros((4, 4)))


def test_spectral_output_is_smooth():
    field = build_phase_field(generate_scan("bumpy", 3000, seed=3), 16)
    coeffs = compress(field, 30)
    theta = np.linspace(0.0, 2 * math.pi, 400)
    radii = reconstruct_many(coeffs, theta, np.full_like(theta, 1.3))
    assert np.all(np.isfinite(radii))
    blocky = reconstruct_many(field, theta, np.full_like(theta, 1.3))
    step = np.max(np.abs(np.diff(radii)))
    assert step < 0.2
    assert step < np.max(np.abs(np.diff(blocky)))
