"""
Results Writer - Output Files and Plots

Writes the fitted parameters, plottable expressions and the convolved
spectrum next to the measured file, plus an optional fit plot.
"""

import json
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from deconvolution_models import PerPoint
from spectrum import Spectrum


def build_output_paths(instrument_path, measured_path, attempt=0):
    """
    Paths of the result files for one fit attempt.

    Parameters:
    -----------
    instrument_path : str or Path
        Instrument function file
    measured_path : str or Path
        Measured spectrum file, results go to its directory
    attempt : int
        0 for the fit from configured initial values, k for k-th randomized one

    Returns:
    --------
    tuple : (result path, convolved spectrum path)
    """
    instrument_path, measured_path = Path(instrument_path), Path(measured_path)
    suffix = "" if attempt == 0 else f"_riv{attempt}"
    stem = f"result_{instrument_path.stem}_{measured_path.stem}{suffix}"
    directory = measured_path.parent
    return directory / f"{stem}.dat", directory / f"{stem}_convolved.dat"


def r_square_or_none(deconvolution_data, fit_result):
    """
    R-square and adjusted R-square of a fit.

    Returns:
    --------
    tuple : (r_square, adjusted_r_square), None for values that are out of
        [0, 1] or undefined for this number of points and params
    """
    r_square = deconvolution_data.calc_r_square_unchecked(fit_result)
    if not 0. <= r_square <= 1.:
        return None, None
    n, p = len(deconvolution_data.measured), len(fit_result.params)
    if n - p - 1 == 0:
        return r_square, None
    return r_square, deconvolution_data.calc_adjusted_r_square(fit_result)


def _format_or_na(value):
    return "n/a" if value is None else f"{value:.6g}"


def fit_goodness_message(deconvolution_data, fit_result):
    reduced_chi_square = deconvolution_data.calc_reduced_chi_square(fit_result)
    chi_squared = deconvolution_data.calc_chi_squared(fit_result)
    r_square, adjusted_r_square = r_square_or_none(deconvolution_data, fit_result)
    return (
        f"fit residue {fit_result.fit_residue:.3f} achieved in {fit_result.fit_residue_evals} fit residue function evals\n"
        f"reduced chi-square: {reduced_chi_square:.6g}\n"
        f"R-square: {_format_or_na(r_square)}\n"
        f"adjusted R-square: {_format_or_na(adjusted_r_square)}\n"
        f"chi-squared: {chi_squared:.6g}"
    )


def write_result(deconvolution_data, fit_result, result_path, convolved_path, significant_digits):
    """
    Write fit result and convolved spectrum.

    For `PerPoint` the deconvolved spectrum is written in place of named
    params; other models get `name=value` lines followed by Desmos and
    Origin expressions.

    Returns:
    --------
    dict : Summary that was also saved as JSON next to the result file
    """
    model = deconvolution_data.model
    params = fit_result.params
    header = (
        f"name: {model.get_name()}\n"
        f"{fit_goodness_message(deconvolution_data, fit_result)}\n"
        f"params:\n"
    )

    if isinstance(model, PerPoint):
        deconvolved = Spectrum(params, deconvolution_data.get_step(), deconvolution_data.measured.x_start)
        deconvolved.write_to_file(result_path, header=header)
        desmos_function_str = origin_function_str = None
    else:
        desmos_function_str = model.to_desmos_function(params, significant_digits)
        origin_function_str = model.to_origin_function(params, significant_digits)
        with open(result_path, "w") as f:
            f.write(header)
            for name, value in zip(model.get_long_names(), params):
                f.write(f"{name}={float(value)!r}\n")
            f.write(f"{desmos_function_str}\n")
            f.write(f"{origin_function_str}\n")

    deconvolution_data.convolved_spectrum(params).write_to_file(convolved_path)

    r_square, adjusted_r_square = r_square_or_none(deconvolution_data, fit_result)
    summary = {
        "name": model.get_name(),
        "fit_residue": float(fit_result.fit_residue),
        "fit_residue_evals": int(fit_result.fit_residue_evals),
        "reduced_chi_square": float(deconvolution_data.calc_reduced_chi_square(fit_result)),
        "r_square": r_square,
        "adjusted_r_square": adjusted_r_square,
        "params": {name: float(value) for name, value in zip(model.get_param_names(), params)},
        "desmos": desmos_function_str,
        "origin": origin_function_str,
    }
    with open(Path(result_path).with_suffix(".json"), "w") as f:
        json.dump(summary, f, indent=2)
    return summary


def plot_result(deconvolution_data, fit_result, save_path, title=None):
    """
    Plot measured vs convolved fit, deconvolved curve and residuals.

    Parameters:
    -----------
    deconvolution_data : DeconvolutionData
        Data the fit was made on
    fit_result : FitResult
        Successful fit
    save_path : str or Path
        PNG path
    title : str, optional
        Figure title, defaults to model name
    """
    measured = deconvolution_data.measured
    xs = measured.get_xs()
    convolved = deconvolution_data.convolve_from_params(fit_result.params)
    deconvolved = deconvolution_data.deconvolved_points(fit_result.params)
    residuals = measured.points - convolved

    fig, (ax1, ax2, ax3) = plt.subplots(3, 1, figsize=(12, 12))

    ax1.plot(xs, measured.points, 'ko-', markersize=3, linewidth=1.5, label='Measured', alpha=0.8)
    ax1.plot(xs, convolved, 'r-', linewidth=2.5, label='Convolved fit')
    ax1.set_xlabel('x')
    ax1.set_ylabel('y')
    ax1.set_title(f'{title or deconvolution_data.model.get_name()}\n'
                  f'Fit residue: {fit_result.fit_residue:.6f}')
    ax1.legend()
    ax1.grid(True, alpha=0.3)

    ax2.plot(xs, deconvolved, 'b-', linewidth=2, label='Deconvolved')
    ax2.set_xlabel('x')
    ax2.set_ylabel('y')
    ax2.set_title('Deconvolved')
    ax2.grid(True, alpha=0.3)

    ax3.plot(xs, residuals, 'g-', linewidth=1.5)
    ax3.axhline(y=0, color='k', linestyle='--', alpha=0.5)
    ax3.set_xlabel('x')
    ax3.set_ylabel('Residuals')
    ax3.set_title('Fit Residuals')
    ax3.set_ylim(*_symmetric_limits(residuals))
    ax3.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(save_path, dpi=300, bbox_inches='tight')
    plt.close(fig)
    print(f" Plot saved to: {save_path}")


def _symmetric_limits(values):
    finite = np.abs(values[np.isfinite(values)])
    limit = float(finite.max()) * 1.1 if len(finite) and finite.max() > 0 else 1.
    return -limit, limit
