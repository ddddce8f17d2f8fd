"""Random solver.

Each sample shuffles the candidate actions and adds them in that order,
skipping any action that would exceed the budget. For the minimum set
objective actions are added until every target is met. Samples that leave
a feature unallocated or miss a target are discarded. Samples are
independent, so they can run in parallel, and duplicates are kept.
The solver only provides a reference point for other solvers.
"""

import logging
import time

import numpy as np

from project_prioritization.errors import ConfigurationError
from project_prioritization.evaluate import TOLERANCE, evaluate_solutions
from project_prioritization.objective import ObjectiveKind
from project_prioritization.parameters import integer_parameter
from project_prioritization.solver._common import (
    candidate_actions,
    empty_solver_result,
    fixed_actions,
    parallel_map,
)
from project_prioritization.solver._types import SolverResult, SolveStatus

logger = logging.getLogger(__name__)


class RandomSolver:
    """Randomized greedy fill solver.

    Parameters
    ----------
    number_solutions : int
        Number of samples to draw.
    seed : int, optional
        Seed for reproducible samples. Each sample draws from its own
        stream spawned from the seed, so results do not depend on
        ``n_workers``.
    n_workers : int
        Number of threads used to draw samples.

    Raises
    ------
    DomainError
        If a parameter is out of range.
    """

    name = "random"

    def __init__(self, number_solutions: int = 10, seed: int | None = None, n_workers: int = 1) -> None:
        self.number_solutions = integer_parameter("number_solutions", number_solutions, lower_limit=1).get()
        self.seed = None if seed is None else integer_parameter("seed", seed, lower_limit=0).get()
        self.n_workers = integer_parameter("n_workers", n_workers, lower_limit=1).get()

    def __call__(self, problem, registry=None) -> list[SolverResult]:
        """Draw ``number_solutions`` samples; ``registry`` is unused.

        Returns
        -------
        list[SolverResult]
            One ``RANDOM`` result per feasible sample, or a single
            ``INFEASIBLE`` result if no sample is feasible.
        """
        if problem.objective is None:
            raise ConfigurationError("Problem has no objective; add one with an add_*_objective method.")
        start = time.perf_counter()
        streams = np.random.SeedSequence(self.seed).spawn(self.number_solutions)
        samples = parallel_map(lambda s: self._sample(problem, s), streams, self.n_workers)
        runtime = time.perf_counter() - start

        solutions = np.array([x for x in samples if x is not None])
        if solutions.size == 0:
            logger.info("Random solver found no feasible solution")
            return [empty_solver_result(SolveStatus.INFEASIBLE, runtime)]
        summary = evaluate_solutions(problem, solutions)
        logger.info("Random solver drew %d feasible solution(s)", len(solutions))
        return [
            {"status": SolveStatus.RANDOM, "x": x, "objective": float(value), "runtime": runtime / len(solutions)}
            for x, value in zip(solutions, summary.objective)
        ]

    def _sample(self, problem, stream: np.random.SeedSequence) -> np.ndarray | None:
        rng = np.random.default_rng(stream)
        costs = problem.action_costs
        x = fixed_actions(problem)
        order = rng.permutation(candidate_actions(problem))

        if problem.objective.kind is ObjectiveKind.MIN_SET:
            for i in order:
                if evaluate_solutions(problem, x).feasible[0]:
                    return x
                x[i] = 1.0
            return x if evaluate_solutions(problem, x).feasible[0] else None

        budget = problem.objective.budget
        if x @ costs > budget + TOLERANCE:
            return None
        for i in order:
            if x @ costs + costs[i] <= budget + TOLERANCE:
                x[i] = 1.0
        return x if evaluate_solutions(problem, x).feasible[0] else None
