"""
Downhill Simplex - Nelder-Mead Style Search

Keeps P+1 vertices, repeatedly replaces the worst one by its mirror image
through the centroid of the others, or by a point between the worst vertex
and that centroid when mirroring doesn't help.
"""

import math

import numpy as np

from fit_algorithms import (
    ALL_CANDIDATES_NOT_FINITE,
    FitAlgorithm,
    FitFailure,
    FitResult,
    HIT_MAX_EVALS,
    TOO_FEW_PARAMS,
    check_initial_residue,
    index_of_max,
)


LERP_TS = (0.5, 0.45, 0.55, 0.4, 0.6, 0.3, 0.7, 0.2, 0.8, 0.1, 0.9, 0.01, 0.99, 0.001, 0.999)


class DownhillSimplex(FitAlgorithm):
    """
    Downhill simplex.

    Converges when the two most recently replaced vertices are closer than
    `fit_algorithm_min_step / P` under `params_diff_type`.
    """

    TOML_NAME = "downhill_simplex"

    def __init__(self, fit_algorithm_min_step, fit_residue_evals_max, fit_residue_max_value,
                 initial_simplex_scale, params_diff_type):
        self.fit_algorithm_min_step = fit_algorithm_min_step
        self.fit_residue_evals_max = fit_residue_evals_max
        self.fit_residue_max_value = fit_residue_max_value
        self.initial_simplex_scale = initial_simplex_scale
        self.params_diff_type = params_diff_type

    def _calc_residue_if_ok(self, deconvolution_data, params):
        """(evals, residue), nan without evaluation for invalid params."""
        if not deconvolution_data.is_params_ok(list(params)):
            return 0, math.nan
        return 1, deconvolution_data.calc_residue_function(list(params))

    def fit(self, deconvolution_data, initial_params):
        params_amount = len(initial_params)
        if params_amount == 0:
            return FitFailure(TOO_FEW_PARAMS)

        initial_params = np.array(initial_params, dtype=float)
        scale = self.initial_simplex_scale
        min_diff = self.fit_algorithm_min_step / params_amount

        failure = check_initial_residue(
            deconvolution_data.calc_residue_function(list(initial_params)),
            self.fit_residue_max_value,
        )
        if failure is not None:
            return failure

        params_prev_prev = initial_params + scale
        params_prev_this = initial_params - scale

        vertices = [initial_params - scale / params_amount]
        for i in range(params_amount):
            vertex = initial_params.copy()
            vertex[i] += scale
            vertices.append(vertex)
        residues = [deconvolution_data.calc_residue_function(list(v)) for v in vertices]
        fit_residue_evals = 1 + len(vertices)

        while (not self.params_diff_type.calc_diff(params_prev_this, params_prev_prev) < min_diff
               and fit_residue_evals < self.fit_residue_evals_max):
            i_worst = index_of_max(residues)
            if i_worst is None:
                return FitFailure(ALL_CANDIDATES_NOT_FINITE)

            params_worst, value_at_params_worst = vertices[i_worst], residues[i_worst]
            params_others_avg = np.mean([v for i, v in enumerate(vertices) if i != i_worst], axis=0)

            params_mirrored = params_worst + 2. * (params_others_avg - params_worst)
            evals, value_at_params_mirrored = self._calc_residue_if_ok(deconvolution_data, params_mirrored)
            fit_residue_evals += evals

            params_prev_prev = params_prev_this
            if math.isfinite(value_at_params_mirrored) and value_at_params_mirrored < value_at_params_worst:
                vertices[i_worst], residues[i_worst] = params_mirrored, value_at_params_mirrored
            else:
                for lerp_t in LERP_TS:
                    params_lerp = params_worst * lerp_t + params_others_avg * (1. - lerp_t)
                    evals, value_at_params_lerp = self._calc_residue_if_ok(deconvolution_data, params_lerp)
                    fit_residue_evals += evals
                    if math.isfinite(value_at_params_lerp):
                        vertices[i_worst], residues[i_worst] = params_lerp, value_at_params_lerp
                        break
                else:
                    return FitFailure(ALL_CANDIDATES_NOT_FINITE)
            params_prev_this = vertices[i_worst]

        if fit_residue_evals >= self.fit_residue_evals_max:
            return FitFailure(HIT_MAX_EVALS)

        params = np.mean(vertices, axis=0)
        fit_residue = deconvolution_data.calc_residue_function(list(params))
        fit_residue_evals += 1
        return FitResult(params, fit_residue, fit_residue_evals)
