"""Backward greedy heuristic.

Starts with every action funded and removes actions one at a time, each
time dropping the action whose removal costs the least objective value,
until the remaining cost fits the budget. The trajectory never backtracks,
so a larger budget can end on a worse solution than a smaller one; the
objective value is not monotonic in the budget.

For the minimum set objective the analogous rule removes the most
expensive action whose removal keeps every target met, until no further
action can be removed.
"""

import logging
import time

import numpy as np

from project_prioritization.errors import ConfigurationError
from project_prioritization.evaluate import TOLERANCE, evaluate_solutions
from project_prioritization.objective import ObjectiveKind
from project_prioritization.solver._common import candidate_actions, empty_solver_result, fixed_actions
from project_prioritization.solver._types import SolverResult, SolveStatus

logger = logging.getLogger(__name__)

# objective decreases are compared after rounding so that ties break on cost
DECIMALS = 10


def _removals(x: np.ndarray, funded: np.ndarray) -> np.ndarray:
    """One copy of ``x`` per funded action, with that action removed."""
    trials = np.repeat(x[np.newaxis, :], funded.size, axis=0)
    trials[np.arange(funded.size), funded] = 0.0
    return trials


class HeuristicSolver:
    """Backward greedy heuristic solver.

    Locked in and baseline actions are never removed; locked out actions are
    never funded.
    """

    name = "heuristic"

    def __call__(self, problem, registry=None) -> list[SolverResult]:
        """Solve ``problem``; ``registry`` is unused.

        Returns
        -------
        list[SolverResult]
            A single result, with status ``HEURISTIC`` or ``INFEASIBLE``.
        """
        if problem.objective is None:
            raise ConfigurationError("Problem has no objective; add one with an add_*_objective method.")
        start = time.perf_counter()
        x = fixed_actions(problem)
        candidates = candidate_actions(problem)
        x[candidates] = 1.0
        if problem.objective.kind is ObjectiveKind.MIN_SET:
            x = self._min_set(problem, x, candidates)
        else:
            x = self._budgeted(problem, x, candidates)
        runtime = time.perf_counter() - start

        if x is None:
            logger.info("Heuristic solver found no feasible solution")
            return [empty_solver_result(SolveStatus.INFEASIBLE, runtime)]
        summary = evaluate_solutions(problem, x)
        logger.info("Heuristic solver funded %d actions at cost %.2f", int(x.sum()), summary.cost[0])
        return [
            {
                "status": SolveStatus.HEURISTIC,
                "x": x,
                "objective": float(summary.objective[0]),
                "runtime": runtime,
            }
        ]

    def _budgeted(self, problem, x: np.ndarray, candidates: np.ndarray) -> np.ndarray | None:
        costs = problem.action_costs
        budget = problem.objective.budget
        funded = candidates.copy()
        while x @ costs > budget + TOLERANCE:
            if funded.size == 0:
                return None
            current = evaluate_solutions(problem, x).objective[0]
            trials = evaluate_solutions(problem, _removals(x, funded))
            decrease = np.round(current - trials.objective, DECIMALS)
            # prefer removals that keep every feature allocated, then the
            # smallest decrease, then the highest cost, then the lowest index
            order = np.lexsort((funded, -costs[funded], decrease, ~trials.allocated))
            chosen = funded[order[0]]
            logger.debug("Removing action %s", problem.action_ids[chosen])
            x[chosen] = 0.0
            funded = funded[funded != chosen]
        # an unallocated feature or a violated lock can remain
        return x if evaluate_solutions(problem, x).feasible[0] else None

    def _min_set(self, problem, x: np.ndarray, candidates: np.ndarray) -> np.ndarray | None:
        costs = problem.action_costs
        if not evaluate_solutions(problem, x).feasible[0]:
            return None
        # most expensive first, ties to the lowest index
        funded = candidates[np.lexsort((candidates, -costs[candidates]))]
        funded = funded[costs[funded] > 0]
        removed = True
        while removed:
            removed = False
            for i in funded:
                if x[i] == 0:
                    continue
                trial = x.copy()
                trial[i] = 0.0
                if evaluate_solutions(problem, trial).feasible[0]:
                    logger.debug("Removing action %s", problem.action_ids[i])
                    x = trial
                    removed = True
                    break
        return x
