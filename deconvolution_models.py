"""
Deconvolution Models - Parametric Curve Families

Every model turns a parameter vector into the deconvolved curve sampled on
the measured grid, knows which parameter values are acceptable and can
print itself as an expression for external plotting tools.

The set of models is closed: `MODELS` lists all of them by config tag.
"""

import math
import re

import numpy as np
from scipy.special import expit

from diff_function import UnsupportedError
from value_and_domain import ValueAndDomain, parse_initial_values


def i_to_x(i, points_len, x_start_end):
    x_start, x_end = x_start_end
    t = i / (points_len - 1)
    return t * (x_end - x_start) + x_start


def i_to_xs(points_len, x_start_end):
    """Vector version of `i_to_x` for all indices."""
    x_start, x_end = x_start_end
    t = np.arange(points_len, dtype=float) / (points_len - 1)
    return t * (x_end - x_start) + x_start


def to_string_with_significant_digits(value, significant_digits):
    """Format number keeping `significant_digits` digits, never in exponent form."""
    value = float(value)
    if not math.isfinite(value):
        return str(value)
    a = abs(value)
    if a > 0:
        n = 1 + math.floor(math.log10(a))
        precision = max(significant_digits - n, 0)
    else:
        precision = 0
    return f"{value:.{precision}f}"


def format_by_dollar_str(str_to_fmt, params):
    """Replace every `$name` by `params[name]`, longest name wins."""
    names = sorted(params, key=len, reverse=True)
    pattern = re.compile(r"\$(" + "|".join(re.escape(n) for n in names) + ")")
    result = pattern.sub(lambda m: params[m.group(1)], str_to_fmt)
    if "$" in result:
        raise KeyError(f"unknown placeholder left in `{result}`")
    return result


def _is_sign_positive(value):
    return math.copysign(1., value) > 0


def _minus_sign(value):
    """Sign to print in `x-value` form, so `x$pm$abs` reads as `x-s`."""
    return "-" if _is_sign_positive(value) else "+"


def _plus_sign(value):
    return "+" if _is_sign_positive(value) else "-"


class DeconvolutionModel:
    """
    Base of all models with a fixed list of named parameters.

    Subclasses set `PARAM_NAMES` (short names used in config strings),
    `LONG_NAMES` (used in result files), `NON_NEGATIVE` and implement
    `_eval(p, xs)` where `p` maps short names to values.
    """

    NAME = None
    TOML_NAME = None
    PARAM_NAMES = ()
    LONG_NAMES = ()
    NON_NEGATIVE = ()
    FORMAT_FOR_DESMOS = None
    FORMAT_FOR_ORIGIN = None

    def __init__(self, diff_function_type, initial_vads):
        if isinstance(initial_vads, dict):
            initial_vads = _vads_in_order(self.TOML_NAME, self.PARAM_NAMES, initial_vads)
        initial_vads = list(initial_vads)
        if len(initial_vads) != len(self.PARAM_NAMES):
            raise ValueError(
                f"{self.TOML_NAME}: expected {len(self.PARAM_NAMES)} initial values, got {len(initial_vads)}"
            )
        self.diff_function_type = diff_function_type
        self.initial_vads = initial_vads

    @classmethod
    def from_initial_values(cls, diff_function_type, initial_values, **kwargs):
        """
        Build model from config-style initial values.

        Parameters:
        -----------
        diff_function_type : DiffFunction
            Metric used by the residue function
        initial_values : str, list or dict
            `"a=1, s>0=..."` style string, list of floats (all free) or
            dict name -> ValueAndDomain
        """
        return cls(diff_function_type, _to_vads(initial_values), **kwargs)

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self.__dict__ == other.__dict__

    def __repr__(self):
        return f"{type(self).__name__}({self.diff_function_type.value}, {self.initial_vads})"

    def get_name(self):
        return self.NAME

    def get_param_names(self):
        return list(self.PARAM_NAMES)

    def get_long_names(self):
        return list(self.LONG_NAMES)

    def get_initial_values_len(self):
        return len(self.initial_vads)

    def get_initial_values(self):
        return [vad.value for vad in self.initial_vads]

    def get_initial_values_randomized(self, initial_values_random_scale, rng=None):
        rng = rng if rng is not None else np.random.default_rng()
        return [vad.get_randomized(initial_values_random_scale, rng) for vad in self.initial_vads]

    def with_initial_values(self, values):
        """Copy of the model whose initial values are moved to `values`, domains kept."""
        clone = self.__class__.__new__(self.__class__)
        clone.__dict__.update(self.__dict__)
        clone.initial_vads = [
            ValueAndDomain(value, vad.kind, vad.min, vad.max)
            for vad, value in zip(self.initial_vads, values)
        ]
        return clone

    def params_to_named(self, params):
        return dict(zip(self.PARAM_NAMES, params))

    def is_params_ok(self, params):
        if len(params) != self.get_initial_values_len():
            return False
        if not all(vad.contains(p) for vad, p in zip(self.initial_vads, params)):
            return False
        p = self.params_to_named(params)
        if not all(p[name] >= 0. for name in self.NON_NEGATIVE):
            return False
        return self._is_params_ok_own(p)

    def _is_params_ok_own(self, p):
        return True

    def params_to_points(self, params, points_len, x_start_end):
        """
        Deconvolved curve for `params` sampled at `points_len` points.

        Parameters:
        -----------
        params : sequence of float
            Parameter vector in `PARAM_NAMES` order
        points_len : int
            Number of points, at least 2
        x_start_end : tuple
            (x_start, x_end), x_start < x_end

        Returns:
        --------
        array : Deconvolved points
        """
        if points_len < 2:
            raise ValueError(f"points_len must be at least 2, got {points_len}")
        if not x_start_end[0] < x_start_end[1]:
            raise ValueError(f"x_start must be less than x_end, got {x_start_end}")
        xs = i_to_xs(points_len, x_start_end)
        with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
            return self._eval(self.params_to_named(params), xs)

    def _eval(self, p, xs):
        raise NotImplementedError

    def calc_residue_function(self, points_measured, points_convolved):
        return self.diff_function_type.calc_diff(points_measured, points_convolved)

    def _plot_substitutions(self, p, significant_digits):
        sd = significant_digits
        subs = {}
        for name, value in p.items():
            if name.startswith("s"):
                suffix = name[1:]
                subs["pm" + suffix] = _minus_sign(value)
                subs[name] = to_string_with_significant_digits(abs(value), sd)
            else:
                subs[name] = to_string_with_significant_digits(value, sd)
        return subs

    def to_plottable_function(self, params, significant_digits, fmt):
        subs = self._plot_substitutions(self.params_to_named(params), significant_digits)
        return format_by_dollar_str(fmt, subs)

    def to_desmos_function(self, params, significant_digits):
        return "y=" + self.to_plottable_function(params, significant_digits, self.FORMAT_FOR_DESMOS)

    def to_origin_function(self, params, significant_digits):
        return self.to_plottable_function(params, significant_digits, self.FORMAT_FOR_ORIGIN)


def _vads_in_order(model_name, names, vads):
    missing = [name for name in names if name not in vads]
    if missing:
        raise ValueError(f"{model_name}: initial values missing: {missing}")
    unknown = [name for name in vads if name not in names]
    if unknown:
        raise ValueError(f"{model_name}: unknown initial values: {unknown}, expected {list(names)}")
    return [vads[name] for name in names]


def _to_vads(initial_values):
    if isinstance(initial_values, str):
        return dict(parse_initial_values(initial_values))
    if isinstance(initial_values, dict):
        return initial_values
    return [v if isinstance(v, ValueAndDomain) else ValueAndDomain.free(v) for v in initial_values]


def _sat(xms, tau):
    return 1. - np.exp(-xms / tau)


def _dec(xms, tau):
    return np.exp(-xms / tau)


class PerPoint(DeconvolutionModel):
    """
    One parameter per measured point: [y0, y1, y2, ...].

    The single `initial_vad` is used for every point, the number of points
    is bound later to the measured spectrum length with `resized`.
    """

    NAME = "per point"
    TOML_NAME = "PerPoint"

    def __init__(self, diff_function_type, initial_vad, antispikes=None, points_len=None):
        if not isinstance(initial_vad, ValueAndDomain):
            initial_vad = ValueAndDomain.free(initial_vad)
        self.diff_function_type = diff_function_type
        self.initial_vad = initial_vad
        self.antispikes = antispikes
        self.points_len = points_len

    def __repr__(self):
        return (f"PerPoint({self.diff_function_type.value}, {self.initial_vad}, "
                f"antispikes={self.antispikes}, points_len={self.points_len})")

    def resized(self, points_len):
        return PerPoint(self.diff_function_type, self.initial_vad, self.antispikes, points_len)

    @property
    def initial_vads(self):
        return [self.initial_vad] * self.get_initial_values_len()

    def get_param_names(self):
        return [f"y{i}" for i in range(self.get_initial_values_len())]

    def get_long_names(self):
        return self.get_param_names()

    def get_initial_values_len(self):
        if self.points_len is None:
            raise ValueError("PerPoint: number of points isn't bound to measured spectrum yet")
        return self.points_len

    def with_initial_values(self, values):
        raise UnsupportedError("PerPoint: there is no need to try different initial params")

    def params_to_named(self, params):
        return dict(zip(self.get_param_names(), params))

    def is_params_ok(self, params):
        if len(params) != self.get_initial_values_len():
            return False
        return all(p >= 0. and self.initial_vad.contains(p) for p in params)

    def params_to_points(self, params, points_len, x_start_end):
        if points_len < 2:
            raise ValueError(f"points_len must be at least 2, got {points_len}")
        if not x_start_end[0] < x_start_end[1]:
            raise ValueError(f"x_start must be less than x_end, got {x_start_end}")
        return np.array(params, dtype=float)

    def calc_residue_function(self, points_measured, points_convolved):
        return self.diff_function_type.calc_diff_with_antispikes(
            points_measured, points_convolved, self.antispikes
        )

    def to_desmos_function(self, params, significant_digits):
        raise UnsupportedError("per point deconvolution is not plottable")

    def to_origin_function(self, params, significant_digits):
        raise UnsupportedError("per point deconvolution is not plottable")


class Exponents(DeconvolutionModel):
    """
    Sum of exponents, each given by (amplitude, shift, tau).

    A term is `a*exp(-(x-s)/t)` where the exponent is non-positive, else 0.
    Config names are `a1, s1, t1, a2, s2, t2, ...`.
    """

    NAME = "exponents"
    TOML_NAME = "Exponents"
    FORMAT_FOR_DESMOS = r"\left\{x$cmp$sv:$ae^{-\frac{x$pm$s}{$t}},0\right\}"
    FORMAT_FOR_ORIGIN = r"(x$ocmp$sv)*$a*exp(-(x$pm$s)/($t))"

    def __init__(self, diff_function_type, initial_vads):
        if isinstance(initial_vads, dict):
            if len(initial_vads) % 3 != 0:
                raise ValueError(f"Exponents: number of initial values must be multiple of 3, got {len(initial_vads)}")
            names = self._names_for(len(initial_vads) // 3)
            initial_vads = _vads_in_order(self.TOML_NAME, names, initial_vads)
        initial_vads = list(initial_vads)
        if len(initial_vads) % 3 != 0:
            raise ValueError(f"Exponents: number of initial values must be multiple of 3, got {len(initial_vads)}")
        self.diff_function_type = diff_function_type
        self.initial_vads = initial_vads

    @staticmethod
    def _names_for(exponents_len):
        names = []
        for k in range(1, exponents_len + 1):
            names += [f"a{k}", f"s{k}", f"t{k}"]
        return tuple(names)

    def get_param_names(self):
        return list(self._names_for(len(self.initial_vads) // 3))

    def get_long_names(self):
        return ["amplitude", "shift", "tau"] * (len(self.initial_vads) // 3)

    def params_to_named(self, params):
        return dict(zip(self.get_param_names(), params))

    def is_params_ok(self, params):
        if len(params) != self.get_initial_values_len():
            return False
        if not all(vad.contains(p) for vad, p in zip(self.initial_vads, params)):
            return False
        return all(amplitude >= 0. for amplitude in list(params)[0::3])

    def params_to_points(self, params, points_len, x_start_end):
        if len(params) % 3 != 0:
            raise ValueError(f"Exponents: number of params must be multiple of 3, got {len(params)}")
        return super().params_to_points(params, points_len, x_start_end)

    def _eval(self, p, xs):
        points = np.zeros_like(xs)
        for k in range(1, len(p) // 3 + 1):
            amplitude, shift, tau = p[f"a{k}"], p[f"s{k}"], p[f"t{k}"]
            in_exp = -(xs - shift) / tau
            points += np.where(in_exp <= 0., amplitude * np.exp(in_exp), 0.)
        return points

    def to_plottable_function(self, params, significant_digits, fmt):
        sd = significant_digits
        params = list(params)
        terms = []
        for i in range(0, len(params), 3):
            amplitude, shift, tau = params[i:i + 3]
            if tau == 0.:
                raise ValueError("Exponents: can't plot exponent with zero tau")
            subs = {
                "a": to_string_with_significant_digits(amplitude, sd),
                "pm": _minus_sign(shift),
                "s": to_string_with_significant_digits(abs(shift), sd),
                "sv": to_string_with_significant_digits(shift, sd),
                "t": to_string_with_significant_digits(tau, sd),
                "cmp": r"\ge " if tau > 0 else r"\le ",
                "ocmp": ">=" if tau > 0 else "<=",
            }
            terms.append(format_by_dollar_str(fmt, subs))
        return "+".join(terms) if terms else "0"


class SatExp_DecExp(DeconvolutionModel):
    """a * (1-exp(-(x-s)/ta)) * exp(-(x-s)/tb), clamped at zero."""

    NAME = "saturated decaying exponential"
    TOML_NAME = "SatExp_DecExp"
    PARAM_NAMES = ("a", "s", "ta", "tb")
    LONG_NAMES = ("amplitude", "shift", "tau_a", "tau_b")
    NON_NEGATIVE = ("a", "ta", "tb")
    FORMAT_FOR_DESMOS = r"max(0,$a\left(1-e^{-\frac{x$pm$s}{$ta}}\right)\left(e^{-\frac{x$pm$s}{$tb}}\right))"
    FORMAT_FOR_ORIGIN = r"max(0,$a*(1-exp(-(x$pm$s)/($ta)))*exp(-(x$pm$s)/($tb)))"

    def _eval(self, p, xs):
        xms = xs - p["s"]
        y = p["a"] * _sat(xms, p["ta"]) * _dec(xms, p["tb"])
        return np.fmax(y, 0.)


class Two_SatExp_DecExp(DeconvolutionModel):
    """Sum of two independently clamped `SatExp_DecExp` terms, s1 < s2."""

    NAME = "two saturated decaying exponentials"
    TOML_NAME = "Two_SatExp_DecExp"
    PARAM_NAMES = ("a1", "s1", "ta1", "tb1", "a2", "s2", "ta2", "tb2")
    LONG_NAMES = ("amplitude_1", "shift_1", "tau_a1", "tau_b1", "amplitude_2", "shift_2", "tau_a2", "tau_b2")
    NON_NEGATIVE = ("a1", "ta1", "tb1", "a2", "ta2", "tb2")
    FORMAT_FOR_DESMOS = (
        r"max(0,$a1\left(1-e^{-\frac{x$pm1$s1}{$ta1}}\right)\left(e^{-\frac{x$pm1$s1}{$tb1}}\right))"
        r"+"
        r"max(0,$a2\left(1-e^{-\frac{x$pm2$s2}{$ta2}}\right)\left(e^{-\frac{x$pm2$s2}{$tb2}}\right))"
    )
    FORMAT_FOR_ORIGIN = (
        r"max(0,$a1*(1-exp(-(x$pm1$s1)/($ta1)))*exp(-(x$pm1$s1)/($tb1)))"
        r"+"
        r"max(0,$a2*(1-exp(-(x$pm2$s2)/($ta2)))*exp(-(x$pm2$s2)/($tb2)))"
    )

    def _is_params_ok_own(self, p):
        return p["s1"] < p["s2"]

    def _eval(self, p, xs):
        xms_1 = xs - p["s1"]
        xms_2 = xs - p["s2"]
        y1 = p["a1"] * _sat(xms_1, p["ta1"]) * _dec(xms_1, p["tb1"])
        y2 = p["a2"] * _sat(xms_2, p["ta2"]) * _dec(xms_2, p["tb2"])
        return np.fmax(y1, 0.) + np.fmax(y2, 0.)


class SatExp_DecExpPlusConst(DeconvolutionModel):
    """
    a * (1-exp(-(x-s)/ta)) * (exp(-(x-s)/tb) + h), clamped at zero.

    Unless `allow_tb_less_than_ta` is set, ta < tb is required.
    """

    NAME = "saturated decaying exponential plus const"
    TOML_NAME = "SatExp_DecExpPlusConst"
    PARAM_NAMES = ("a", "s", "h", "ta", "tb")
    LONG_NAMES = ("amplitude", "shift", "height", "tau_a", "tau_b")
    NON_NEGATIVE = ("a", "h", "ta", "tb")
    FORMAT_FOR_DESMOS = r"max(0,$a\left(1-e^{-\frac{x$pm$s}{$ta}}\right)\left(e^{-\frac{x$pm$s}{$tb}}+$h\right))"
    FORMAT_FOR_ORIGIN = r"max(0,$a*(1-exp(-(x$pm$s)/($ta)))*(exp(-(x$pm$s)/($tb))+$h))"

    def __init__(self, diff_function_type, initial_vads, allow_tb_less_than_ta=False):
        super().__init__(diff_function_type, initial_vads)
        self.allow_tb_less_than_ta = bool(allow_tb_less_than_ta)

    def _is_params_ok_own(self, p):
        return self.allow_tb_less_than_ta or p["ta"] < p["tb"]

    def _eval(self, p, xs):
        xms = xs - p["s"]
        y = p["a"] * _sat(xms, p["ta"]) * (_dec(xms, p["tb"]) + p["h"])
        return np.fmax(y, 0.)


class SatExp_TwoDecExp(DeconvolutionModel):
    """a * (1-exp(-(x-s)/ta)) * (exp(-(x-s)/tb) + exp(-(x-s)/tc)), clamped at zero."""

    NAME = "saturated exponential and two decaying exponentials"
    TOML_NAME = "SatExp_TwoDecExp"
    PARAM_NAMES = ("a", "s", "ta", "tb", "tc")
    LONG_NAMES = ("amplitude", "shift", "tau_a", "tau_b", "tau_c")
    NON_NEGATIVE = ("a", "ta", "tb", "tc")
    FORMAT_FOR_DESMOS = (
        r"max(0,$a\left(1-e^{-\frac{x$pm$s}{$ta}}\right)"
        r"\left(e^{-\frac{x$pm$s}{$tb}}+e^{-\frac{x$pm$s}{$tc}}\right))"
    )
    FORMAT_FOR_ORIGIN = r"max(0,$a*(1-exp(-(x$pm$s)/($ta)))*(exp(-(x$pm$s)/($tb))+exp(-(x$pm$s)/($tc))))"

    def _eval(self, p, xs):
        xms = xs - p["s"]
        y = p["a"] * _sat(xms, p["ta"]) * (_dec(xms, p["tb"]) + _dec(xms, p["tc"]))
        return np.fmax(y, 0.)


class SatExp_TwoDecExpPlusConst(DeconvolutionModel):
    """a * (1-exp(-(x-s)/ta)) * (exp(-(x-s)/tb) + exp(-(x-s)/tc) + h), clamped at zero."""

    NAME = "saturated exponential and two decaying exponentials plus const"
    TOML_NAME = "SatExp_TwoDecExpPlusConst"
    PARAM_NAMES = ("a", "s", "h", "ta", "tb", "tc")
    LONG_NAMES = ("amplitude", "shift", "height", "tau_a", "tau_b", "tau_c")
    NON_NEGATIVE = ("a", "h", "ta", "tb", "tc")
    FORMAT_FOR_DESMOS = (
        r"max(0,$a\left(1-e^{-\frac{x$pm$s}{$ta}}\right)"
        r"\left(e^{-\frac{x$pm$s}{$tb}}+e^{-\frac{x$pm$s}{$tc}}$pmh$h\right))"
    )
    FORMAT_FOR_ORIGIN = (
        r"max(0,$a*(1-exp(-(x$pm$s)/($ta)))*(exp(-(x$pm$s)/($tb))+exp(-(x$pm$s)/($tc))$pmh$h))"
    )

    def _plot_substitutions(self, p, significant_digits):
        subs = super()._plot_substitutions(p, significant_digits)
        subs["pmh"] = _plus_sign(p["h"])
        subs["h"] = to_string_with_significant_digits(abs(p["h"]), significant_digits)
        return subs

    def _eval(self, p, xs):
        xms = xs - p["s"]
        y = p["a"] * _sat(xms, p["ta"]) * (_dec(xms, p["tb"]) + _dec(xms, p["tc"]) + p["h"])
        return np.fmax(y, 0.)


class SatExp_TwoDecExp_SeparateConsts(DeconvolutionModel):
    """(1-exp(-(x-s)/ta)) * (b*exp(-(x-s)/tb) + c*exp(-(x-s)/tc)), clamped at zero."""

    NAME = "saturated exponential and two decaying exponentials with individual amplitudes"
    TOML_NAME = "SatExp_TwoDecExp_SeparateConsts"
    PARAM_NAMES = ("b", "c", "s", "ta", "tb", "tc")
    LONG_NAMES = ("amplitude_b", "amplitude_c", "shift", "tau_a", "tau_b", "tau_c")
    NON_NEGATIVE = ("b", "c", "ta", "tb", "tc")
    FORMAT_FOR_DESMOS = (
        r"max(0,\left(1-e^{-\frac{x$pm$s}{$ta}}\right)"
        r"\left($be^{-\frac{x$pm$s}{$tb}}$pmc$ce^{-\frac{x$pm$s}{$tc}}\right))"
    )
    FORMAT_FOR_ORIGIN = (
        r"max(0,(1-exp(-(x$pm$s)/($ta)))*($b*exp(-(x$pm$s)/($tb))$pmc$c*exp(-(x$pm$s)/($tc))))"
    )

    def _plot_substitutions(self, p, significant_digits):
        subs = super()._plot_substitutions(p, significant_digits)
        subs["pmc"] = _plus_sign(p["c"])
        subs["c"] = to_string_with_significant_digits(abs(p["c"]), significant_digits)
        return subs

    def _eval(self, p, xs):
        xms = xs - p["s"]
        y = _sat(xms, p["ta"]) * (p["b"] * _dec(xms, p["tb"]) + p["c"] * _dec(xms, p["tc"]))
        return np.fmax(y, 0.)


class SatExp_TwoDecExp_ConstrainedConsts(DeconvolutionModel):
    """a * (1-exp(-(x-s)/ta)) * (b*exp(-(x-s)/tb) + (1-b)*exp(-(x-s)/tc)), clamped at zero."""

    NAME = "saturated exponential and two decaying exponentials with constrained amplitudes"
    TOML_NAME = "SatExp_TwoDecExp_ConstrainedConsts"
    PARAM_NAMES = ("a", "b", "s", "ta", "tb", "tc")
    LONG_NAMES = ("amplitude_a", "amplitude_b", "shift", "tau_a", "tau_b", "tau_c")
    NON_NEGATIVE = ("a", "ta", "tb", "tc")
    FORMAT_FOR_DESMOS = (
        r"max(0,$a\left(1-e^{-\frac{x$pm$s}{$ta}}\right)"
        r"\left($be^{-\frac{x$pm$s}{$tb}}+(1$bsn$ba)e^{-\frac{x$pm$s}{$tc}}\right))"
    )
    FORMAT_FOR_ORIGIN = (
        r"max(0,$a*(1-exp(-(x$pm$s)/($ta)))*($b*exp(-(x$pm$s)/($tb))+(1$bsn$ba)*exp(-(x$pm$s)/($tc))))"
    )

    def _is_params_ok_own(self, p):
        return 0. <= p["b"] <= 1.

    def _plot_substitutions(self, p, significant_digits):
        subs = super()._plot_substitutions(p, significant_digits)
        subs["bsn"] = _minus_sign(p["b"])
        subs["ba"] = to_string_with_significant_digits(abs(p["b"]), significant_digits)
        return subs

    def _eval(self, p, xs):
        xms = xs - p["s"]
        b = p["b"]
        y = p["a"] * _sat(xms, p["ta"]) * (b * _dec(xms, p["tb"]) + (1. - b) * _dec(xms, p["tc"]))
        return np.fmax(y, 0.)


class Sigmoid_TwoDecExp_ConstrainedConsts(SatExp_TwoDecExp_ConstrainedConsts):
    """a / (1+exp(-(x-s)/ta)) * (b*exp(-(x-s)/tb) + (1-b)*exp(-(x-s)/tc)), not clamped."""

    NAME = "sigmoid and two decaying exponentials with constrained amplitudes"
    TOML_NAME = "Sigmoid_TwoDecExp_ConstrainedConsts"
    FORMAT_FOR_DESMOS = (
        r"\frac{$a}{1+\exp\left(-\frac{x$pm$s}{$ta}\right)}"
        r"\left($b\exp\left(-\frac{x$pm$s}{$tb}\right)+(1$bsn$ba)\exp\left(-\frac{x$pm$s}{$tc}\right)\right)"
    )
    FORMAT_FOR_ORIGIN = (
        r"$a/(1+exp(-(x$pm$s)/($ta)))*($b*exp(-(x$pm$s)/($tb))+(1$bsn$ba)*exp(-(x$pm$s)/($tc)))"
    )

    def _eval(self, p, xs):
        xms = xs - p["s"]
        b = p["b"]
        return p["a"] * expit(xms / p["ta"]) * (b * _dec(xms, p["tb"]) + (1. - b) * _dec(xms, p["tc"]))


MODELS = {
    model.TOML_NAME: model
    for model in (
        PerPoint,
        Exponents,
        SatExp_DecExp,
        SatExp_TwoDecExp,
        Two_SatExp_DecExp,
        SatExp_DecExpPlusConst,
        SatExp_TwoDecExpPlusConst,
        SatExp_TwoDecExp_SeparateConsts,
        SatExp_TwoDecExp_ConstrainedConsts,
        Sigmoid_TwoDecExp_ConstrainedConsts,
    )
}
