#!/usr/bin/env python3
"""
Spectrum Deconvolution Program

Fits a parametric (or per point) model so that its convolution with the
instrument function reproduces each measured spectrum.

Usage:
    python main.py [--config config.toml] [--plot] INSTRUMENT MEASURED [MEASURED ...]

All settings (model, initial values, fit algorithm, output precision) are
read from the TOML config file.
"""

import argparse
import sys

import numpy as np
from tqdm import tqdm

from config_loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from deconvolution_data import DeconvolutionData
from deconvolution_models import PerPoint
from diff_function import UnsupportedError
from results_writer import build_output_paths, plot_result, write_result
from spectrum import Spectrum, SpectrumLoadError


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Deconvolve measured spectra by the instrument function."
    )
    parser.add_argument("instrument", help="instrument function file (two columns: x y)")
    parser.add_argument("measured", nargs="+", help="measured spectrum file(s) (two columns: x y)")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH,
                        help=f"config file [default: {DEFAULT_CONFIG_PATH}]")
    parser.add_argument("--plot", action="store_true", help="save fit plot next to the results")
    return parser.parse_args(argv)


def output_results(config, deconvolution_data, fit_result, instrument_path, measured_path, attempt, plot):
    """Print fit result and write it to files."""
    print(f"deconvolution results = {fit_result}")
    result_path, convolved_path = build_output_paths(instrument_path, measured_path, attempt)
    summary = write_result(deconvolution_data, fit_result, result_path, convolved_path, config.significant_digits)
    if summary["desmos"] is not None:
        print(summary["desmos"])
        print(f"fit residue: {fit_result.fit_residue}")
    print(f" Results saved to:")
    print(f"    Params:    {result_path}")
    print(f"    Convolved: {convolved_path}")
    if plot:
        plot_result(deconvolution_data, fit_result, result_path.with_suffix(".png"))


def try_randomized_initial_values(config, deconvolution_data, best_fit_residue, instrument_path, measured_path, plot):
    """
    Repeat the fit from randomized initial values, output only improvements.

    Every attempt works on its own copy of the data.
    """
    print("\n" + "-"*60)
    print("NOW TRYING RANDOM INITIAL VALUES")
    print("-"*60)

    rng = np.random.default_rng()
    model = deconvolution_data.model
    attempts = range(1, config.try_randomized_initial_values + 1)
    for attempt in tqdm(attempts, desc="Randomized initial values", unit="fit"):
        randomized = model.get_initial_values_randomized(config.initial_values_random_scale, rng)
        attempt_data = deconvolution_data.with_model(model.with_initial_values(randomized))
        fit_result = attempt_data.deconvolve(config.fit_algorithm)
        if fit_result.success and fit_result.fit_residue < best_fit_residue:
            best_fit_residue = fit_result.fit_residue
            tqdm.write("-"*42)
            tqdm.write(f"initial values tried: {attempt}")
            output_results(config, attempt_data, fit_result, instrument_path, measured_path, attempt, plot)
            tqdm.write("-"*42)
        elif not config.print_only_better_deconvolution:
            if fit_result.success:
                tqdm.write(f"fit_residue: {fit_result.fit_residue:.4f}")
            else:
                tqdm.write(f"fit_residue: Error: {fit_result.reason}")
    return best_fit_residue


def deconvolve_file(config, instrument, instrument_path, measured_path, plot):
    """Deconvolve one measured file; returns True if any fit succeeded."""
    print("\n" + "="*60)
    print(f"MEASURED: {measured_path}")
    print("="*60)

    try:
        measured = Spectrum.load_from_file(measured_path)
    except SpectrumLoadError as e:
        print(f" Failed to load measured spectrum: {e}")
        return False
    print(f" Loaded {len(measured)} points, step={measured.step}, x_start={measured.x_start}")

    deconvolution_data = DeconvolutionData(instrument, measured, config.model).aligned_steps_to(config.align_steps_to)
    print(f" Steps aligned to {config.align_steps_to.value}: step={deconvolution_data.get_step()}")

    fit_residue_with_initial_values = deconvolution_data.calc_residue_function(
        deconvolution_data.get_initial_params()
    )
    print(f"\nfit_residue @ initial_values: {fit_residue_with_initial_values:.4f}\n")

    fit_result = deconvolution_data.deconvolve(config.fit_algorithm)
    if fit_result.success:
        output_results(config, deconvolution_data, fit_result, instrument_path, measured_path, 0, plot)
        best_fit_residue = fit_result.fit_residue
    else:
        print(f"ERROR: {fit_result.reason}")
        best_fit_residue = float("inf")

    if config.try_randomized_initial_values == 0:
        return fit_result.success
    if isinstance(deconvolution_data.model, PerPoint):
        print(" Skipping randomized initial values: there is no need to try them for per point deconvolution")
        return fit_result.success

    best_fit_residue = try_randomized_initial_values(
        config, deconvolution_data, best_fit_residue, instrument_path, measured_path, plot
    )
    return best_fit_residue < float("inf")


def main(argv=None):
    """Main program function."""
    args = parse_args(argv)

    print("="*80)
    print("                    Spectrum Deconvolution Program")
    print("="*80)

    # Step 1: Configuration
    print("\n" + "="*60)
    print("STEP 1: CONFIGURATION")
    print("="*60)
    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f" Failed to load config: {e}")
        return 1
    except UnsupportedError as e:
        print(f" Config asks for an unsupported feature: {e}")
        return 1
    print(f" Model: {config.model.get_name()}")
    print(f" Fit Algorithm = {config.fit_algorithm}")

    # Step 2: Instrument function
    print("\n" + "="*60)
    print("STEP 2: INSTRUMENT FUNCTION")
    print("="*60)
    try:
        instrument = Spectrum.load_from_file_as_instrumental(args.instrument)
    except SpectrumLoadError as e:
        print(f" Failed to load instrument function: {e}")
        return 1
    print(f" Loaded {len(instrument)} points, step={instrument.step}")

    # Step 3: Deconvolution
    print("\n" + "="*60)
    print("STEP 3: DECONVOLUTION")
    print("="*60)
    successes = [
        deconvolve_file(config, instrument, args.instrument, measured_path, args.plot or config.plot)
        for measured_path in args.measured
    ]

    print("\n" + "="*80)
    print(f"Deconvolved {sum(successes)} of {len(successes)} measured files")
    print("="*80)
    return 0 if all(successes) else 2


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n\nProgram interrupted by user. Goodbye!")
