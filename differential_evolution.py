"""
Differential Evolution - Population Based Global Search

Each generation builds one child per individual from three random members
(`a + F*(b-c)` with per-coordinate crossover); a child replaces its own
parent only when it has strictly smaller residue.
"""

import math

import numpy as np
from tqdm import tqdm

from fit_algorithms import (
    FitAlgorithm,
    FitFailure,
    FitResult,
    FIT_RESIDUE_NOT_FINITE,
    TOO_FEW_PARAMS,
    candidates_pool,
    evaluate_candidates,
    index_of_min,
)


class DifferentialEvolution(FitAlgorithm):
    """
    Differential evolution with a fixed number of generations.

    Parameters:
    -----------
    initial_values_random_scale : float
        Scale used to spread the first generation around the initial values
    generations : int
        Number of generations
    population : int
        Number of individuals
    mutation_speed : float
        Differential weight F
    crossover_probability : float
        Probability to take a coordinate from the mutant
    seed : int, optional
        Seed of the random generator
    workers : int, optional
        Processes used to evaluate children, defaults to all cores
    verbose : bool
        Show progress bar over generations
    """

    TOML_NAME = "differential_evolution"

    def __init__(self, initial_values_random_scale, generations, population, mutation_speed,
                 crossover_probability, seed=None, workers=None, verbose=False):
        self.initial_values_random_scale = initial_values_random_scale
        self.generations = generations
        self.population = population
        self.mutation_speed = mutation_speed
        self.crossover_probability = crossover_probability
        self.seed = seed
        self.workers = workers
        self.verbose = verbose

    def fit(self, deconvolution_data, initial_params):
        params_amount = len(initial_params)
        if params_amount == 0:
            return FitFailure(TOO_FEW_PARAMS)

        rng = np.random.default_rng(self.seed)
        population = self.population
        # first generation is spread around the model's own initial values and domains
        model = deconvolution_data.model

        generation = np.array([
            model.get_initial_values_randomized(self.initial_values_random_scale, rng)
            for _ in range(population)
        ], dtype=float)

        with candidates_pool(self.workers) as pool:
            # every individual of the first generation counts, valid or not
            _, ress_of_current_gen = evaluate_candidates(
                deconvolution_data, [list(p) for p in generation], pool
            )
            fit_residue_evals = population
            if not np.isfinite(ress_of_current_gen).any():
                return FitFailure(FIT_RESIDUE_NOT_FINITE)

            for _ in tqdm(range(self.generations), desc="Differential Evolution",
                          unit="gen", disable=not self.verbose):
                new_generation = np.empty_like(generation)
                for child_i in range(population):
                    parent_a_i, parent_b_i, parent_c_i = rng.integers(0, population, size=3)
                    child_pure = generation[parent_a_i] + self.mutation_speed * (
                        generation[parent_b_i] - generation[parent_c_i]
                    )
                    take_mutant = rng.uniform(0., 1., size=params_amount) < self.crossover_probability
                    new_generation[child_i] = np.where(take_mutant, child_pure, generation[child_i])

                evals_extra, ress_of_new_gen = evaluate_candidates(
                    deconvolution_data, [list(p) for p in new_generation], pool
                )
                fit_residue_evals += evals_extra

                for i in range(population):
                    res_new, res_current = ress_of_new_gen[i], ress_of_current_gen[i]
                    if math.isfinite(res_new) and (not math.isfinite(res_current) or res_new < res_current):
                        generation[i] = new_generation[i]
                        ress_of_current_gen[i] = res_new

        i_best = index_of_min(ress_of_current_gen)
        return FitResult(generation[i_best], ress_of_current_gen[i_best], fit_residue_evals)
