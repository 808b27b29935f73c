import math

import numpy as np
import pytest

from dephaze.errors import DephazeError, InvalidInputError
from dephaze.kernel import CHEBYSHEV_ORDER, EPSILON, exists, lp_norm, xi, xi_dir, xi_dir_grid
from dephaze.scan import Direction


def test_sphere_surface():
    assert xi((2.0, 0.0, 0.0), 2.0, 2.0) == pytest.approx(1.0)
    assert xi((1.2, 1.6, 0.0), 2.0, 2.0) == pytest.approx(1.0)
    assert exists((0.0, 0.0, -2.0), 2.0, 2.0)
    assert not exists((1.0, 1.0, 1.0), 2.0, 2.0)


def test_octahedron_surface():
    assert xi((1.0, 1.0, 0.0), 2.0, 1.0) == pytest.approx(1.0)
    assert xi((0.5, -0.5, 1.0), 2.0, 1.0) == pytest.approx(1.0)
    assert not exists((2.0, 2.0, 0.0), 2.0, 1.0)


@pytest.mark.parametrize("order", [CHEBYSHEV_ORDER, 80.0, math.inf])
def test_chebyshev_limit(order):
    assert xi((2.0, 1.5, -0.3), 2.0, order) == pytest.approx(1.0)
    assert lp_norm((0.1, -3.0, 2.9), order) == pytest.approx(3.0)


def test_large_order_below_limit_is_close_to_max_norm():
    assert lp_norm((1.0, 1.0, 1.0), 40.0) == pytest.approx(3.0 ** (1.0 / 40.0))


@pytest.mark.parametrize("order", [1.0, 2.0, 50.0, 100.0, math.inf])
@pytest.mark.parametrize("radius", [0.5, 1.0, 2.0, 37.5])
def test_xi_reference_radius_on_unit_axis(radius, order):
    assert xi((radius, 0.0, 0.0), radius, order) == pytest.approx(1.0)
    assert xi((0.0, -radius, 0.0), radius, order) == pytest.approx(1.0)
    assert exists((0.0, 0.0, radius), radius, order)


def test_xi_scales_inversely_with_distance():
    assert xi((0.0, 3.0, 0.0), 1.5, 7.0) == pytest.approx(0.5)


def test_origin_uses_floored_denominator():
    value = xi((0.0, 0.0, 0.0), 2.0, 2.0)
    assert math.isfinite(value)
    assert value == pytest.approx(2.0 / EPSILON)


def test_large_coordinates_do_not_overflow():
    norm = lp_norm((1e200, 1e200, 0.0), 40.0)
    assert math.isfinite(norm)
    assert norm == pytest.approx(1e200 * 2.0 ** (1.0 / 40.0))


@pytest.mark.parametrize("order", [0.0, -1.0, float("nan"), "abc"])
def test_invalid_order_rejected(order):
    with pytest.raises(InvalidInputError):
        xi((1.0, 0.0, 0.0), 1.0, order)


def test_invalid_input_is_value_error():
    with pytest.raises(ValueError):
        lp_norm((1.0, 0.0, 0.0), -2.0)
    assert issubclass(InvalidInputError, DephazeError)


def test_non_finite_point_rejected():
    with pytest.raises(InvalidInputError):
        xi((float("inf"), 0.0, 0.0), 1.0, 2.0)
    with pytest.raises(InvalidInputError):
        xi((1.0, 0.0), 1.0, 2.0)


def test_xi_dir_depends_only_on_direction():
    axis = Direction(0.0, math.pi / 2)
    assert xi_dir(axis) == pytest.approx(1.0)
    diagonal = Direction(math.pi / 4, math.pi / 2)
    # the L4 norm of a unit vector off-axis is below one
    assert xi_dir(diagonal, 4.0) > 1.0
    assert xi_dir(diagonal, 2.0) == pytest.approx(1.0)


def test_xi_dir_grid_matches_scalar():
    rng = np.random.default_rng(3)
    theta = rng.random(25) * 2 * math.pi
    phi = rng.random(25) * math.pi
    grid = xi_dir_grid(theta, phi, 4.0)
    expected = [xi_dir(Direction(t, p), 4.0) for t, p in zip(theta, phi)]
    assert np.allclose(grid, expected)
