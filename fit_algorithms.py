"""
Fit Algorithms - Shared Pieces

Result types, parallel evaluation of candidate parameter vectors and the
index helpers used by all fit engines.

Every engine has `fit(deconvolution_data, initial_params)` returning either
a `FitResult` or a `FitFailure`; numerical problems are never raised.
"""

import math
import multiprocessing as mp
from contextlib import contextmanager
from functools import partial

import numpy as np


TOO_FEW_PARAMS = "too few params"
FIT_RESIDUE_NOT_FINITE = "fit residue isn't finite"
FIT_RESIDUE_TOO_BIG = "fit residue is too big"
HIT_MAX_EVALS = "hit max evals"
ALL_CANDIDATES_NOT_FINITE = "all candidates NaN/Inf"


class FitResult:
    """Successful fit: final params, residue at them and number of residue evaluations."""

    success = True

    def __init__(self, params, fit_residue, fit_residue_evals):
        self.params = [float(p) for p in params]
        self.fit_residue = float(fit_residue)
        self.fit_residue_evals = int(fit_residue_evals)

    def __repr__(self):
        return (f"FitResult(params={self.params}, fit_residue={self.fit_residue}, "
                f"fit_residue_evals={self.fit_residue_evals})")


class FitFailure:
    """Fit that ended without result, `reason` is one of the module constants."""

    success = False

    def __init__(self, reason):
        self.reason = reason

    def __repr__(self):
        return f"FitFailure({self.reason!r})"

    def __str__(self):
        return self.reason


def index_of_min_with_ceil(values, ceil):
    """Index of the smallest finite value strictly below `ceil`, first one on ties."""
    index_of_min = None
    for i, value in enumerate(values):
        if not math.isfinite(value) or value >= ceil:
            continue
        if index_of_min is None or value < values[index_of_min]:
            index_of_min = i
    return index_of_min


def index_of_min(values):
    return index_of_min_with_ceil(values, math.inf)


def index_of_max(values):
    """Index of the largest finite value, first one on ties."""
    index = None
    for i, value in enumerate(values):
        if not math.isfinite(value):
            continue
        if index is None or value > values[index]:
            index = i
    return index


def check_initial_residue(fit_residue, fit_residue_max_value=math.inf):
    """Failure for unusable starting residue, else None."""
    if not math.isfinite(fit_residue):
        return FitFailure(FIT_RESIDUE_NOT_FINITE)
    if fit_residue >= fit_residue_max_value:
        return FitFailure(FIT_RESIDUE_TOO_BIG)
    return None


def _calc_residue_worker(params, deconvolution_data):
    """
    Residue of one candidate.

    Returns:
    --------
    tuple : (evals, residue), (0, nan) for invalid params, nan for non-finite residue
    """
    if not all(math.isfinite(p) for p in params) or not deconvolution_data.is_params_ok(params):
        return 0, math.nan
    residue = deconvolution_data.calc_residue_function(params)
    return 1, (residue if math.isfinite(residue) else math.nan)


def evaluate_candidates(deconvolution_data, candidates, pool=None):
    """
    Evaluate candidate parameter vectors, in parallel when `pool` is given.

    Parameters:
    -----------
    deconvolution_data : DeconvolutionData
        Read-only data shared by all candidates
    candidates : list of list of float
        Parameter vectors
    pool : multiprocessing.Pool or None
        Worker pool, None evaluates in this process

    Returns:
    --------
    tuple : (evals added, array of residues with nan for skipped candidates)
    """
    worker_func = partial(_calc_residue_worker, deconvolution_data=deconvolution_data)
    if pool is None:
        results = [worker_func(params) for params in candidates]
    else:
        results = pool.map(worker_func, candidates)
    evals = sum(e for e, _ in results)
    residues = np.array([r for _, r in results], dtype=float)
    return evals, residues


@contextmanager
def candidates_pool(workers=None):
    """Process pool for candidate evaluation; `workers=1` gives no pool."""
    n_cores = mp.cpu_count() if workers is None else workers
    if n_cores <= 1:
        yield None
        return
    with mp.Pool(n_cores) as pool:
        yield pool


class FitAlgorithm:
    """Base of all fit engines."""

    TOML_NAME = None

    def fit(self, deconvolution_data, initial_params):
        raise NotImplementedError

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self.__dict__ == other.__dict__

    def __repr__(self):
        fields = ", ".join(f"{k}={v!r}" for k, v in self.__dict__.items())
        return f"{type(self).__name__}({fields})"
