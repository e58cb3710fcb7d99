"""
Pattern Search - Derivative Free Local Search

Moves one point along the coordinate axes: all 2*P neighbours at +-step are
evaluated in parallel, the best strictly improving one is taken and the
step grows by `alpha`; if none improves the step shrinks by `beta`.
"""

import math

from fit_algorithms import (
    FitAlgorithm,
    FitFailure,
    FitResult,
    HIT_MAX_EVALS,
    TOO_FEW_PARAMS,
    FIT_RESIDUE_NOT_FINITE,
    candidates_pool,
    check_initial_residue,
    evaluate_candidates,
    index_of_min_with_ceil,
)


class PatternSearch(FitAlgorithm):
    """
    Pattern search with absolute step.

    Parameters:
    -----------
    fit_algorithm_min_step : float
        Search stops when the step gets this small
    fit_residue_evals_max : int
        Budget of residue function evaluations
    initial_step : float
        Starting step
    alpha : float
        Step multiplier after a successful move, > 1
    beta : float, optional
        Step multiplier after a failed iteration, defaults to 1/alpha
    fit_residue_max_value : float
        Starting residues at or above it are rejected
    workers : int, optional
        Processes used to evaluate neighbours, defaults to all cores
    """

    TOML_NAME = "pattern_search"

    def __init__(self, fit_algorithm_min_step, fit_residue_evals_max, initial_step, alpha,
                 beta=None, fit_residue_max_value=math.inf, workers=None):
        self.fit_algorithm_min_step = fit_algorithm_min_step
        self.fit_residue_evals_max = fit_residue_evals_max
        self.initial_step = initial_step
        self.alpha = alpha
        self.beta = beta
        self.fit_residue_max_value = fit_residue_max_value
        self.workers = workers

    def _delta(self, i, step, params, initial_params):
        return step

    def fit(self, deconvolution_data, initial_params):
        beta = self.beta if self.beta is not None else 1. / self.alpha

        params_amount = len(initial_params)
        if params_amount == 0:
            return FitFailure(TOO_FEW_PARAMS)

        initial_params = [float(p) for p in initial_params]
        params = list(initial_params)
        step = self.initial_step

        res_at_current_params = deconvolution_data.calc_residue_function(params)
        failure = check_initial_residue(res_at_current_params, self.fit_residue_max_value)
        if failure is not None:
            return failure
        fit_residue_evals = 1

        with candidates_pool(self.workers) as pool:
            while step > self.fit_algorithm_min_step and fit_residue_evals < self.fit_residue_evals_max:
                deltas = [self._delta(i, step, params, initial_params) for i in range(params_amount)]
                # even index: -delta, odd index: +delta
                candidates = []
                for k in range(2 * params_amount):
                    i = k // 2
                    params_new = list(params)
                    params_new[i] += -deltas[i] if k % 2 == 0 else deltas[i]
                    candidates.append(params_new)

                evals_extra, ress_at_shifted_params = evaluate_candidates(deconvolution_data, candidates, pool)
                fit_residue_evals += evals_extra

                index_of_min = index_of_min_with_ceil(ress_at_shifted_params, res_at_current_params)
                if index_of_min is not None:
                    params = candidates[index_of_min]
                    res_at_current_params = float(ress_at_shifted_params[index_of_min])
                    if not math.isfinite(res_at_current_params):
                        return FitFailure(FIT_RESIDUE_NOT_FINITE)
                    step *= self.alpha
                else:
                    step *= beta

        if fit_residue_evals >= self.fit_residue_evals_max:
            return FitFailure(HIT_MAX_EVALS)
        return FitResult(params, res_at_current_params, fit_residue_evals)


class PatternSearchScaledStep(PatternSearch):
    """Pattern search whose step on each coordinate is relative to the initial value."""

    TOML_NAME = "pattern_search_scaled_step"

    def _delta(self, i, step, params, initial_params):
        return initial_params[i] * step


class PatternSearchAdaptiveStep(PatternSearch):
    """Pattern search whose step on each coordinate is relative to the current value."""

    TOML_NAME = "pattern_search_adaptive_step"

    def _delta(self, i, step, params, initial_params):
        return params[i] * step
