import math

import numpy as np
import pytest

from deconvolution_models import (
    MODELS,
    Exponents,
    PerPoint,
    SatExp_DecExp,
    SatExp_DecExpPlusConst,
    SatExp_TwoDecExp_ConstrainedConsts,
    SatExp_TwoDecExp_SeparateConsts,
    SatExp_TwoDecExpPlusConst,
    Sigmoid_TwoDecExp_ConstrainedConsts,
    Two_SatExp_DecExp,
    format_by_dollar_str,
    i_to_x,
    i_to_xs,
    to_string_with_significant_digits,
)
from diff_function import Antispikes, AntispikesType, DiffFunction, UnsupportedError
from value_and_domain import DomainKind, ValueAndDomain


DY_SQR = DiffFunction.DySqr
X_START_END = (0., 20.)
POINTS_LEN = 21


def test_registry_is_complete():
    assert len(MODELS) == 10
    assert MODELS["SatExp_DecExp"] is SatExp_DecExp
    assert MODELS["PerPoint"] is PerPoint


def test_i_to_x():
    assert i_to_x(0, 11, (0., 10.)) == 0.
    assert i_to_x(10, 11, (0., 10.)) == 10.
    assert i_to_x(5, 11, (2., 4.)) == pytest.approx(3.)
    assert np.allclose(i_to_xs(11, (0., 10.)), np.arange(11.))


@pytest.mark.parametrize("value, digits, expected", [
    (123.456, 4, "123.5"),
    (0.0012345, 3, "0.00123"),
    (0., 3, "0"),
    (12345.6, 3, "12346"),
    (-2.5, 2, "-2.5"),
])
def test_to_string_with_significant_digits(value, digits, expected):
    assert to_string_with_significant_digits(value, digits) == expected


def test_format_by_dollar_str_prefers_longest_name():
    assert format_by_dollar_str(r"$be^{$ba}$bsn", {"b": "1", "ba": "2", "bsn": "-"}) == "1e^{2}-"
    with pytest.raises(KeyError):
        format_by_dollar_str("$q", {"b": "1"})


def test_sat_exp_dec_exp_points():
    model = SatExp_DecExp.from_initial_values(DY_SQR, [1., 0., 1., 1.])
    params = [2., 5., 1.5, 4.]
    points = model.params_to_points(params, POINTS_LEN, X_START_END)
    xs = np.arange(21.)
    expected = np.maximum(0., 2. * (1. - np.exp(-(xs - 5.) / 1.5)) * np.exp(-(xs - 5.) / 4.))
    assert np.allclose(points, expected)
    assert np.all(points[:6] == 0.)


def test_params_to_points_preconditions():
    model = SatExp_DecExp.from_initial_values(DY_SQR, [1., 0., 1., 1.])
    with pytest.raises(ValueError):
        model.params_to_points([1., 0., 1., 1.], 1, X_START_END)
    with pytest.raises(ValueError):
        model.params_to_points([1., 0., 1., 1.], 10, (5., 5.))


def test_two_sat_exp_dec_exp_is_sum_of_clamped_terms():
    model = Two_SatExp_DecExp.from_initial_values(DY_SQR, [1., 2., 1., 5., 1., 10., 1., 5.])
    params = [1., 2., 1., 5., 3., 10., 2., 3.]
    single = SatExp_DecExp.from_initial_values(DY_SQR, [1., 0., 1., 1.])
    expected = (single.params_to_points(params[:4], POINTS_LEN, X_START_END)
                + single.params_to_points(params[4:], POINTS_LEN, X_START_END))
    assert np.allclose(model.params_to_points(params, POINTS_LEN, X_START_END), expected)
    assert model.is_params_ok(params)
    assert not model.is_params_ok([1., 10., 1., 5., 3., 2., 2., 3.])


def test_plus_const_requires_ta_less_than_tb():
    initial = [1., 0., 0.1, 1., 5.]
    model = SatExp_DecExpPlusConst.from_initial_values(DY_SQR, initial)
    assert model.is_params_ok([1., 0., 0.1, 1., 5.])
    assert not model.is_params_ok([1., 0., 0.1, 5., 1.])
    allowing = SatExp_DecExpPlusConst.from_initial_values(DY_SQR, initial, allow_tb_less_than_ta=True)
    assert allowing.is_params_ok([1., 0., 0.1, 5., 1.])


def test_plus_const_adds_height_inside_second_factor():
    model = SatExp_TwoDecExpPlusConst.from_initial_values(DY_SQR, [1., 0., 0.5, 1., 2., 3.])
    a, s, h, ta, tb, tc = 2., 3., 0.5, 1., 2., 3.
    xs = np.arange(21.)
    xms = xs - s
    expected = np.maximum(0., a * (1. - np.exp(-xms / ta)) * (np.exp(-xms / tb) + np.exp(-xms / tc) + h))
    assert np.allclose(model.params_to_points([a, s, h, ta, tb, tc], POINTS_LEN, X_START_END), expected)


def test_separate_consts_validity():
    model = SatExp_TwoDecExp_SeparateConsts.from_initial_values(DY_SQR, [1., 1., 0., 1., 2., 3.])
    assert model.is_params_ok([1., 0.5, -3., 1., 2., 3.])
    assert not model.is_params_ok([1., -0.5, 0., 1., 2., 3.])
    assert not model.is_params_ok([1., 0.5, 0., -1., 2., 3.])


def test_constrained_consts_require_b_in_unit_range():
    model = SatExp_TwoDecExp_ConstrainedConsts.from_initial_values(DY_SQR, [1., 0.5, 0., 1., 2., 3.])
    assert model.is_params_ok([1., 0., 0., 1., 2., 3.])
    assert model.is_params_ok([1., 1., 0., 1., 2., 3.])
    assert not model.is_params_ok([1., 1.2, 0., 1., 2., 3.])
    assert not model.is_params_ok([1., -0.1, 0., 1., 2., 3.])


def test_sigmoid_curve():
    model = Sigmoid_TwoDecExp_ConstrainedConsts.from_initial_values(DY_SQR, [1., 0.5, 0., 1., 2., 3.])
    a, b, s, ta, tb, tc = 2., 0.3, 4., 1.5, 2., 6.
    xs = np.arange(21.)
    xms = xs - s
    expected = a / (1. + np.exp(-xms / ta)) * (b * np.exp(-xms / tb) + (1. - b) * np.exp(-xms / tc))
    assert np.allclose(model.params_to_points([a, b, s, ta, tb, tc], POINTS_LEN, X_START_END), expected)


def test_exponents_points_and_arity():
    model = Exponents.from_initial_values(DY_SQR, [1., 5., 2.])
    points = model.params_to_points([1., 5., 2.], POINTS_LEN, X_START_END)
    xs = np.arange(21.)
    expected = np.where(xs >= 5., np.exp(-(xs - 5.) / 2.), 0.)
    assert np.allclose(points, expected)
    with pytest.raises(ValueError):
        Exponents.from_initial_values(DY_SQR, [1., 2.])
    assert not model.is_params_ok([-1., 5., 2.])


def test_exponents_named_initial_values():
    model = Exponents.from_initial_values(DY_SQR, "a1=1>0, s1=2, t1=3, a2=4, s2=5, t2=6")
    assert model.get_initial_values() == [1., 2., 3., 4., 5., 6.]
    assert model.initial_vads[0].kind is DomainKind.RangeWithMin


def test_initial_values_from_string():
    model = SatExp_DecExp.from_initial_values(DY_SQR, "tb=4>0, a=1, s==0, ta=2>0")
    assert model.get_initial_values() == [1., 0., 2., 4.]
    assert model.initial_vads[1] == ValueAndDomain.fixed(0.)
    assert not model.is_params_ok([1., 0.5, 2., 4.])
    with pytest.raises(ValueError, match="missing"):
        SatExp_DecExp.from_initial_values(DY_SQR, "a=1, s=0, ta=2")
    with pytest.raises(ValueError, match="unknown"):
        SatExp_DecExp.from_initial_values(DY_SQR, "a=1, s=0, ta=2, tb=3, h=1")
    with pytest.raises(ValueError):
        SatExp_DecExp.from_initial_values(DY_SQR, [1., 2.])


def test_randomized_initial_values_respect_domains():
    model = SatExp_DecExp.from_initial_values(DY_SQR, "a=1, s==3, 1<ta=2<3, tb=4>3")
    rng = np.random.default_rng(0)
    for _ in range(100):
        params = model.get_initial_values_randomized(2., rng)
        assert params[1] == 3.
        assert all(vad.contains(p) for vad, p in zip(model.initial_vads, params))


def test_with_initial_values_keeps_domains():
    model = SatExp_DecExp.from_initial_values(DY_SQR, "a=1, s==3, 1<ta=2<3, tb=4>3")
    moved = model.with_initial_values([2., 3., 2.5, 5.])
    assert moved.get_initial_values() == [2., 3., 2.5, 5.]
    assert moved.initial_vads[2].kind is DomainKind.RangeClosed
    assert model.get_initial_values() == [1., 3., 2., 4.]


def test_per_point_model():
    antispikes = Antispikes(AntispikesType.DyAbs, 0.1)
    model = PerPoint(DY_SQR, 0.5, antispikes)
    with pytest.raises(ValueError):
        model.get_initial_values_len()
    resized = model.resized(4)
    assert resized.get_initial_values() == [0.5] * 4
    assert resized.is_params_ok([0., 1., 2., 3.])
    assert not resized.is_params_ok([0., -1., 2., 3.])
    assert not resized.is_params_ok([0., 1., 2.])
    assert np.array_equal(resized.params_to_points([1., 2., 3., 4.], 4, (0., 4.)), [1., 2., 3., 4.])
    residue = resized.calc_residue_function([0., 1., 0., 0.], [0., 0., 0., 0.])
    assert residue == pytest.approx(1. + 0.1 * 2.)
    with pytest.raises(UnsupportedError):
        resized.to_desmos_function([1., 2., 3., 4.], 3)
    with pytest.raises(UnsupportedError):
        resized.to_origin_function([1., 2., 3., 4.], 3)


def test_desmos_function_signs():
    model = SatExp_DecExp.from_initial_values(DY_SQR, [1., 0., 1., 1.])
    positive_shift = model.to_desmos_function([1., 2., 3., 4.], 3)
    assert positive_shift.startswith("y=max(0,1.00")
    assert r"\frac{x-2.00}{3.00}" in positive_shift
    negative_shift = model.to_desmos_function([1., -2., 3., 4.], 3)
    assert r"\frac{x+2.00}{4.00}" in negative_shift
    assert "$" not in negative_shift


def test_origin_function_constrained_consts():
    model = SatExp_TwoDecExp_ConstrainedConsts.from_initial_values(DY_SQR, [1., 0.5, 0., 1., 2., 3.])
    origin = model.to_origin_function([1., 0.25, 2., 1., 2., 3.], 3)
    assert "0.250*exp(-(x-2.00)/(2.00))" in origin
    assert "(1-0.250)*exp(-(x-2.00)/(3.00))" in origin


def test_origin_function_separate_consts_negative_c():
    model = SatExp_TwoDecExp_SeparateConsts.from_initial_values(DY_SQR, [1., 1., 0., 1., 2., 3.])
    origin = model.to_origin_function([1., -0.5, 0., 1., 2., 3.], 2)
    assert "-0.50*exp(-(x-0)/(3.0))" in origin


def test_exponents_plottable_functions():
    model = Exponents.from_initial_values(DY_SQR, [1., 5., 2., 0.5, 1., 3.])
    desmos = model.to_desmos_function([1., 5., 2., 0.5, 1., 3.], 2)
    assert desmos.startswith(r"y=\left\{x\ge 5.0:1.0e^{-\frac{x-5.0}{2.0}},0\right\}+")
    single = Exponents.from_initial_values(DY_SQR, [1., 5., 2.])
    assert single.to_origin_function([1., 5., 2.], 2) == "(x>=5.0)*1.0*exp(-(x-5.0)/(2.0))"
    empty = Exponents.from_initial_values(DY_SQR, [])
    assert empty.to_desmos_function([], 2) == "y=0"


def test_models_give_finite_points_for_initial_values():
    initial_values = {
        SatExp_DecExp: [1., 2., 1., 5.],
        Two_SatExp_DecExp: [1., 2., 1., 5., 1., 8., 1., 5.],
        SatExp_DecExpPlusConst: [1., 2., 0.1, 1., 5.],
        SatExp_TwoDecExpPlusConst: [1., 2., 0.1, 1., 5., 7.],
        SatExp_TwoDecExp_SeparateConsts: [1., 1., 2., 1., 5., 7.],
        SatExp_TwoDecExp_ConstrainedConsts: [1., 0.5, 2., 1., 5., 7.],
        Sigmoid_TwoDecExp_ConstrainedConsts: [1., 0.5, 2., 1., 5., 7.],
    }
    for model_class, values in initial_values.items():
        model = model_class.from_initial_values(DY_SQR, values)
        assert model.is_params_ok(values), model_class
        points = model.params_to_points(values, POINTS_LEN, X_START_END)
        assert len(points) == POINTS_LEN
        assert all(math.isfinite(p) for p in points)
        assert "$" not in model.to_desmos_function(values, 3)
        assert "$" not in model.to_origin_function(values, 3)
