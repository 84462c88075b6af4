import math

import pytest
from scipy.special import struve

from tbexciton.potentials import (
    ScreeningParameters,
    coulomb_potential,
    keldysh_fourier,
    keldysh_potential,
    keldysh_potential as _keldysh,
    select_potential,
    struve_h0,
)


@pytest.mark.parametrize("x", [0.1, 1.0, 5.0, 15.0, 19.9])
def test_struve_small_arguments_match_reference(x):
    assert struve_h0(x) == pytest.approx(float(struve(0, x)), rel=1e-9)


@pytest.mark.parametrize("x", [25.0, 40.0, 60.0, 120.0])
def test_struve_large_arguments_match_reference(x):
    assert struve_h0(x) == pytest.approx(float(struve(0, x)), abs=1e-6)


def test_struve_at_zero():
    assert struve_h0(0.0) == 0.0


def test_parameters_defaults():
    params = ScreeningParameters.from_sequence([1.0, 3.0, 10.0])
    assert params.ry == 10.0
    assert params.rz == 10.0
    assert params.eps_bar == 2.0


def test_parameters_explicit_ry_and_rz():
    params = ScreeningParameters.from_sequence([1.0, 1.0, 10.0, 20.0])
    assert params.rz == pytest.approx(15.0)
    full = ScreeningParameters.from_sequence([1.0, 1.0, 10.0, 20.0, 7.0])
    assert full.rz == 7.0
    assert full.r0_average == pytest.approx((10.0 + 20.0 + 7.0) / 3)


def test_parameters_too_short():
    with pytest.raises(ValueError):
        ScreeningParameters.from_sequence([1.0, 1.0])


def test_parameters_zero_r0():
    with pytest.raises(ValueError):
        ScreeningParameters.from_sequence([1.0, 1.0, 0.0])


def test_coulomb_scales_inversely_with_distance():
    near = coulomb_potential([1.0, 0.0, 0.0], regularization=1.0)
    far = coulomb_potential([0.0, 2.0, 0.0], regularization=1.0)
    assert far == pytest.approx(near / 2)
    assert near > 0


def test_coulomb_regularized_at_origin():
    origin = coulomb_potential([0.0, 0.0, 0.0], regularization=2.5)
    at_reg = coulomb_potential([2.5, 0.0, 0.0], regularization=1.0)
    assert origin == pytest.approx(at_reg)


def test_coulomb_vanishes_beyond_cutoff():
    assert coulomb_potential([5.0, 0.0, 0.0], regularization=1.0, cutoff=4.0) == 0.0
    assert coulomb_potential([3.0, 0.0, 0.0], regularization=1.0, cutoff=4.0) > 0


def test_keldysh_regularized_at_origin():
    params = ScreeningParameters(1.0, 1.0, 10.0)
    origin = keldysh_potential([0.0, 0.0, 0.0], params, regularization=3.0)
    at_reg = keldysh_potential([3.0, 0.0, 0.0], params, regularization=1.0)
    assert origin == pytest.approx(at_reg)


def test_keldysh_decreases_with_distance():
    params = ScreeningParameters(1.0, 1.0, 10.0)
    values = [keldysh_potential([d, 0.0, 0.0], params, 1.0) for d in (1.0, 5.0, 20.0, 80.0)]
    assert all(a > b for a, b in zip(values, values[1:]))


def test_keldysh_tends_to_screened_coulomb():
    params = ScreeningParameters(2.0, 4.0, 1.0)
    r = [200.0, 0.0, 0.0]
    keldysh = keldysh_potential(r, params, 1.0)
    coulomb = coulomb_potential(r, 1.0) / params.eps_bar
    assert keldysh == pytest.approx(coulomb, rel=1e-3)


def test_keldysh_cutoff_on_scaled_distance():
    params = ScreeningParameters(1.0, 1.0, 10.0)
    assert keldysh_potential([30.0, 0.0, 0.0], params, 1.0, cutoff=2.0) == 0.0
    assert keldysh_potential([10.0, 0.0, 0.0], params, 1.0, cutoff=2.0) > 0


def test_keldysh_fourier_below_threshold_is_zero():
    params = ScreeningParameters(1.0, 1.0, 10.0)
    assert keldysh_fourier([1e-4, 0.0, 0.0], params, 5.0, 100, threshold=1e-3) == 0.0


def test_keldysh_fourier_scaling():
    params = ScreeningParameters(1.0, 1.0, 10.0)
    base = keldysh_fourier([0.1, 0.0, 0.0], params, 5.0, 100, threshold=1e-3)
    more_cells = keldysh_fourier([0.1, 0.0, 0.0], params, 5.0, 200, threshold=1e-3)
    larger_q = keldysh_fourier([0.0, 0.2, 0.0], params, 5.0, 100, threshold=1e-3)
    assert more_cells == pytest.approx(base / 2)
    assert 0 < larger_q < base
    ratio = base / larger_q
    assert ratio == pytest.approx((0.2 * (1 + 10.0 * 0.2)) / (0.1 * (1 + 10.0 * 0.1)))


def test_select_potential():
    assert select_potential("keldysh") is _keldysh
    assert select_potential("coulomb") is coulomb_potential
    with pytest.raises(ValueError):
        select_potential("yukawa")


def test_selected_coulomb_is_finite_at_origin():
    potential = select_potential("coulomb")
    assert math.isfinite(potential([0.0, 0.0, 0.0], 1.0))
    assert potential([0.0, 0.0, 0.0], 1.0) == pytest.approx(coulomb_potential([1.0, 0, 0], 5.0))