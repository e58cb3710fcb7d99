"""
Config Loader - TOML Configuration

Reads `config.toml` into model, fit algorithm and run parameters.
Every failure carries the path of keys that led to it, e.g.
`fit_algorithm` -> `pattern_search` -> `alpha`: not found
"""

import math
import tomllib

from deconvolution_data import AlignStepsTo
from deconvolution_models import MODELS, PerPoint, SatExp_DecExpPlusConst
from diff_function import Antispikes, AntispikesType, DiffFunction, UnsupportedError
from differential_evolution import DifferentialEvolution
from downhill_simplex import DownhillSimplex
from pattern_search import PatternSearch, PatternSearchAdaptiveStep, PatternSearchScaledStep
from value_and_domain import ValueAndDomain


DEFAULT_CONFIG_PATH = "config.toml"

FIT_ALGORITHMS = {
    algorithm.TOML_NAME: algorithm
    for algorithm in (
        PatternSearch,
        PatternSearchScaledStep,
        PatternSearchAdaptiveStep,
        DownhillSimplex,
        DifferentialEvolution,
    )
}

UNSUPPORTED_MODELS = ("Fourier",)


class ConfigError(Exception):
    """Config problem, `path` lists the keys walked to reach it."""

    def __init__(self, path, message):
        self.path = list(path)
        self.message = message
        super().__init__(str(self))

    def __str__(self):
        if not self.path:
            return self.message
        return " -> ".join(f"`{p}`" for p in self.path) + f": {self.message}"


class Config:
    """Everything loaded from the config file."""

    def __init__(self, model, fit_algorithm, try_randomized_initial_values, initial_values_random_scale,
                 print_only_better_deconvolution, align_steps_to, significant_digits, plot=False):
        self.model = model
        self.fit_algorithm = fit_algorithm
        self.try_randomized_initial_values = try_randomized_initial_values
        self.initial_values_random_scale = initial_values_random_scale
        self.print_only_better_deconvolution = print_only_better_deconvolution
        self.align_steps_to = align_steps_to
        self.significant_digits = significant_digits
        self.plot = plot

    def __repr__(self):
        fields = ", ".join(f"{k}={v!r}" for k, v in self.__dict__.items())
        return f"Config({fields})"


# Typed getters

_MISSING = object()


def _get(table, key, path, kind, default=_MISSING):
    path = path + [key]
    if key not in table:
        if default is _MISSING:
            raise ConfigError(path, "not found")
        return default
    value = table[key]
    if kind == "float":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(path, "can't parse as float")
        return float(value)
    if kind == "int":
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(path, "can't parse as int")
        return value
    if kind == "uint":
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigError(path, "can't parse as non negative int")
        return value
    if kind == "bool":
        if not isinstance(value, bool):
            raise ConfigError(path, "can't parse as bool")
        return value
    if kind == "str":
        if not isinstance(value, str):
            raise ConfigError(path, "can't parse as string")
        return value
    if kind == "table":
        if not isinstance(value, dict):
            raise ConfigError(path, "can't parse as table")
        return value
    raise ValueError(f"unknown kind: {kind}")


def _get_one_of(table, path, known):
    """Single `(tag, subtable)` of a table that must hold exactly one known tag."""
    tags = list(table)
    if len(tags) != 1:
        raise ConfigError(path, f"expected exactly one of {list(known)}, found {tags}")
    tag = tags[0]
    if tag not in known:
        raise ConfigError(path, f"unknown variant `{tag}`, known: {list(known)}")
    return tag, _get(table, tag, path, "table")


# Loaders

def load_diff_function(table, path, key="diff_function_type"):
    name = _get(table, key, path, "str")
    try:
        diff_function = DiffFunction.from_name(name)
    except ValueError as e:
        raise ConfigError(path + [key], str(e)) from None
    if diff_function is DiffFunction.LeastDist:
        raise UnsupportedError(f"diff function `{name}` is not supported")
    return diff_function


def load_antispikes(table, path):
    if "antispikes" not in table:
        return None
    antispikes_table = _get(table, "antispikes", path, "table")
    path = path + ["antispikes"]
    name = _get(antispikes_table, "antispikes_type", path, "str")
    try:
        antispikes_type = AntispikesType.from_name(name)
    except ValueError as e:
        raise ConfigError(path + ["antispikes_type"], str(e)) from None
    antispikes_k = _get(antispikes_table, "antispikes_k", path, "float")
    return Antispikes(antispikes_type, antispikes_k)


def load_model(table, path):
    """
    Load the single model from `[deconvolution_function.<Tag>]`.

    Parameters:
    -----------
    table : dict
        Content of `deconvolution_function`
    path : list of str
        Keys walked so far

    Returns:
    --------
    DeconvolutionModel : Configured model
    """
    for tag in UNSUPPORTED_MODELS:
        if tag in table:
            raise UnsupportedError(f"deconvolution function `{tag}` is not supported")
    tag, model_table = _get_one_of(table, path, MODELS)
    path = path + [tag]
    diff_function_type = load_diff_function(model_table, path)
    model_class = MODELS[tag]

    if model_class is PerPoint:
        if isinstance(model_table.get("initial_value"), str):
            try:
                _, initial_vad = ValueAndDomain.parse(model_table["initial_value"])
            except ValueError as e:
                raise ConfigError(path + ["initial_value"], str(e)) from None
        else:
            initial_vad = ValueAndDomain.free(_get(model_table, "initial_value", path, "float"))
        return PerPoint(diff_function_type, initial_vad, load_antispikes(model_table, path))

    try:
        if "initial_values" not in model_table:
            raise ConfigError(path + ["initial_values"], "not found")
        initial_values = model_table["initial_values"]
        if not isinstance(initial_values, (str, list)):
            raise ConfigError(path + ["initial_values"], "can't parse as string or list of floats")
        if isinstance(initial_values, list) and not all(
                isinstance(v, (int, float)) and not isinstance(v, bool) for v in initial_values):
            raise ConfigError(path + ["initial_values"], "can't parse as list of floats")

        if model_class is SatExp_DecExpPlusConst:
            allow_tb_less_than_ta = _get(model_table, "allow_tb_less_than_ta", path, "bool", False)
            return model_class.from_initial_values(
                diff_function_type, initial_values, allow_tb_less_than_ta=allow_tb_less_than_ta
            )
        return model_class.from_initial_values(diff_function_type, initial_values)
    except ValueError as e:
        raise ConfigError(path + ["initial_values"], str(e)) from None


def load_fit_algorithm(table, path):
    """Load the single fit algorithm from `[fit_algorithm.<tag>]`."""
    tag, fa = _get_one_of(table, path, FIT_ALGORITHMS)
    path = path + [tag]
    if tag in (PatternSearch.TOML_NAME, PatternSearchScaledStep.TOML_NAME, PatternSearchAdaptiveStep.TOML_NAME):
        return FIT_ALGORITHMS[tag](
            fit_algorithm_min_step=_get(fa, "fit_algorithm_min_step", path, "float"),
            fit_residue_evals_max=_get(fa, "fit_residue_evals_max", path, "uint"),
            initial_step=_get(fa, "initial_step", path, "float"),
            alpha=_get(fa, "alpha", path, "float"),
            beta=_get(fa, "beta", path, "float", None),
            fit_residue_max_value=_get(fa, "fit_residue_max_value", path, "float", math.inf),
            workers=_get(fa, "workers", path, "uint", None),
        )
    if tag == DownhillSimplex.TOML_NAME:
        return DownhillSimplex(
            fit_algorithm_min_step=_get(fa, "fit_algorithm_min_step", path, "float"),
            fit_residue_evals_max=_get(fa, "fit_residue_evals_max", path, "uint"),
            fit_residue_max_value=_get(fa, "fit_residue_max_value", path, "float"),
            initial_simplex_scale=_get(fa, "initial_simplex_scale", path, "float"),
            params_diff_type=load_diff_function(fa, path, key="params_diff_type"),
        )
    population = _get(fa, "population", path, "uint")
    if population == 0:
        raise ConfigError(path + ["population"], "must be positive")
    return DifferentialEvolution(
        initial_values_random_scale=_get(fa, "initial_values_random_scale", path, "float"),
        generations=_get(fa, "generations", path, "uint"),
        population=population,
        mutation_speed=_get(fa, "mutation_speed", path, "float"),
        crossover_probability=_get(fa, "crossover_probability", path, "float"),
        seed=_get(fa, "seed", path, "uint", None),
        workers=_get(fa, "workers", path, "uint", None),
        verbose=_get(fa, "verbose", path, "bool", False),
    )


def load_config_from_dict(toml_table):
    model = load_model(_get(toml_table, "deconvolution_function", [], "table"), ["deconvolution_function"])

    path = ["deconvolution_params"]
    deconvolution_params = _get(toml_table, "deconvolution_params", [], "table")
    try_randomized_initial_values = _get(deconvolution_params, "try_randomized_initial_values", path, "uint")
    initial_values_random_scale = _get(deconvolution_params, "initial_values_random_scale", path, "float")
    print_only_better_deconvolution = _get(deconvolution_params, "print_only_better_deconvolution", path, "bool")

    path = ["input_params"]
    input_params = _get(toml_table, "input_params", [], "table")
    align_steps_to_name = _get(input_params, "align_steps_to", path, "str")
    try:
        align_steps_to = AlignStepsTo.from_name(align_steps_to_name)
    except ValueError as e:
        raise ConfigError(path + ["align_steps_to"], str(e)) from None

    path = ["output_params"]
    output_params = _get(toml_table, "output_params", [], "table")
    significant_digits = _get(output_params, "significant_digits", path, "uint")
    plot = _get(output_params, "plot", path, "bool", False)

    fit_algorithm = load_fit_algorithm(_get(toml_table, "fit_algorithm", [], "table"), ["fit_algorithm"])

    return Config(
        model=model,
        fit_algorithm=fit_algorithm,
        try_randomized_initial_values=try_randomized_initial_values,
        initial_values_random_scale=initial_values_random_scale,
        print_only_better_deconvolution=print_only_better_deconvolution,
        align_steps_to=align_steps_to,
        significant_digits=significant_digits,
        plot=plot,
    )


def load_config_from_text(text):
    try:
        toml_table = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError([], f"can't parse text as toml table: {e}") from None
    return load_config_from_dict(toml_table)


def load_config(file_path=DEFAULT_CONFIG_PATH):
    """
    Load configuration from a TOML file.

    Parameters:
    -----------
    file_path : str or Path
        Path to the config file

    Returns:
    --------
    Config : Loaded configuration
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            text = f.read()
    except FileNotFoundError:
        raise ConfigError([], f"can't read config file `{file_path}`") from None
    return load_config_from_text(text)
