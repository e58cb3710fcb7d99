"""
Deconvolution Data - Instrument, Measured Spectrum and Model

Binds the two spectra to the chosen model, aligns their steps and
provides the residue function minimized by the fit engines.
"""

import math
from enum import Enum

import numpy as np

from convolution import convolve_by_points
from deconvolution_models import PerPoint
from spectrum import Spectrum


class AlignStepsTo(Enum):
    Smaller = "smaller"
    Bigger = "bigger"

    @classmethod
    def from_name(cls, name):
        try:
            return cls(name)
        except ValueError:
            raise ValueError(f"unknown align steps direction: `{name}`, known: [`smaller`, `bigger`]") from None


class DeconvolutionData:
    """
    Instrument function, measured spectrum and deconvolution model.

    The data is read-only while a fit runs; use `with_model` to get a
    private copy with other initial values.
    """

    def __init__(self, instrument, measured, model):
        self.instrument = instrument
        self.measured = measured
        if isinstance(model, PerPoint):
            model = model.resized(len(measured))
        self.model = model

    def __eq__(self, other):
        if not isinstance(other, DeconvolutionData):
            return NotImplemented
        return (self.instrument == other.instrument
                and self.measured == other.measured
                and self.model == other.model)

    def __repr__(self):
        return f"DeconvolutionData(instrument={self.instrument}, measured={self.measured}, model={self.model})"

    def with_model(self, model):
        return DeconvolutionData(self.instrument.copy(), self.measured.copy(), model)

    def assert_steps_is_aligned(self):
        assert self.instrument.step == self.measured.step, (
            f"steps aren't aligned: instrument={self.instrument.step}, measured={self.measured.step}"
        )

    def get_step(self):
        self.assert_steps_is_aligned()
        return self.instrument.step

    def aligned_steps_to(self, align_steps_to):
        """
        Make instrument and measured steps equal.

        Parameters:
        -----------
        align_steps_to : AlignStepsTo
            `Smaller` resamples the coarser spectrum onto the finer step,
            `Bigger` resamples the finer one onto the coarser step

        Returns:
        --------
        DeconvolutionData : New data with aligned steps
        """
        step_instrument, step_measured = self.instrument.step, self.measured.step
        if math.isnan(step_instrument) or math.isnan(step_measured):
            raise ValueError("one of the steps is `NaN`")
        instrument, measured = self.instrument.copy(), self.measured.copy()
        if step_instrument < step_measured:
            if align_steps_to is AlignStepsTo.Smaller:
                measured = measured.recalculated_with_step(step_instrument)
            else:
                instrument = instrument.recalculated_with_step(step_measured)
        elif step_instrument > step_measured:
            if align_steps_to is AlignStepsTo.Smaller:
                instrument = instrument.recalculated_with_step(step_measured)
            else:
                measured = measured.recalculated_with_step(step_instrument)
        result = DeconvolutionData(instrument, measured, self.model)
        result.assert_steps_is_aligned()
        return result

    def deconvolve(self, fit_algorithm, initial_values_random_scale=None, rng=None):
        """
        Run the fit engine starting from the model's initial values.

        When `initial_values_random_scale` is given the start point is
        randomized inside the parameter domains.

        Returns:
        --------
        FitResult or FitFailure
        """
        self.assert_steps_is_aligned()
        if initial_values_random_scale is not None:
            initial_params = self.model.get_initial_values_randomized(initial_values_random_scale, rng)
        else:
            initial_params = self.get_initial_params()
        return fit_algorithm.fit(self, initial_params)

    def get_params_amount(self):
        return self.model.get_initial_values_len()

    def get_initial_params(self):
        initial_params = self.model.get_initial_values()
        assert len(initial_params) == self.get_params_amount()
        return initial_params

    def is_params_ok(self, params):
        return self.model.is_params_ok(params)

    def calc_residue_function(self, params):
        assert len(params) == self.get_params_amount(), (
            f"expected {self.get_params_amount()} params, got {len(params)}"
        )
        points_convolved = self.convolve_from_params(params)
        return self.model.calc_residue_function(self.measured.points, points_convolved)

    def deconvolved_points(self, params):
        return self.model.params_to_points(
            params,
            len(self.measured),
            (self.measured.x_start, self.measured.get_x_end()),
        )

    def convolve_from_params(self, params):
        return self.convolve_from_points(self.deconvolved_points(params))

    def convolve_from_points(self, points_deconvolved):
        points_convolved = convolve_by_points(self.instrument.points, points_deconvolved)
        assert len(points_convolved) == len(self.measured)
        return points_convolved

    def deconvolved_spectrum(self, params):
        return Spectrum(self.deconvolved_points(params), self.measured.step, self.measured.x_start)

    def convolved_spectrum(self, params):
        return Spectrum(self.convolve_from_params(params), self.measured.step, self.measured.x_start)

    # Goodness of fit

    def calc_reduced_chi_square(self, fit_result):
        return fit_result.fit_residue / len(fit_result.params)

    def calc_r_square_unchecked(self, fit_result):
        """R-square without the range check, `nan` for a constant measured spectrum."""
        ys = self.measured.points
        total = float(np.sum((ys - ys.mean()) ** 2))
        if total == 0.:
            return math.nan
        return 1. - float(fit_result.fit_residue) / total

    def calc_r_square(self, fit_result):
        r_square = self.calc_r_square_unchecked(fit_result)
        assert 0. <= r_square <= 1., f"r_square={r_square} is out of [0, 1]"
        return r_square

    def calc_adjusted_r_square(self, fit_result):
        n = len(self.measured)
        p = len(fit_result.params)
        r_square = self.calc_r_square(fit_result)
        return 1. - (1. - r_square) * (n - 1) / (n - p - 1)

    def calc_chi_squared(self, fit_result):
        """Relative chi-squared: n * sum((o-e)/e) over non-zero expected values."""
        expected = self.measured.points
        observed = self.convolve_from_params(fit_result.params)
        assert len(expected) == len(observed)
        non_zero = expected != 0.
        return len(expected) * float(np.sum((observed[non_zero] - expected[non_zero]) / expected[non_zero]))
