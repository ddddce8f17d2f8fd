"""Replacement costs of funded actions.

The replacement cost of an action is how much the objective worsens when
the problem is solved again with that action locked out. Actions that the
reference solution does not fund have no replacement cost (NaN); actions
whose exclusion leaves the problem infeasible have an infinite one.
"""

import logging
import math

import numpy as np
import pandas as pd

from project_prioritization.errors import ConfigurationError, InfeasibleError
from project_prioritization.evaluate import as_solutions, evaluate_solutions
from project_prioritization.objective import ObjectiveKind
from project_prioritization.solve import solve
from project_prioritization.solver import SolverRegistry, SolveStatus, parallel_map

logger = logging.getLogger(__name__)


def _reference_vector(problem, solution) -> np.ndarray:
    if isinstance(solution, pd.DataFrame):
        if len(solution) != 1:
            logger.warning("Using the first of %d solutions as the reference", len(solution))
        solution = solution[list(problem.action_ids)].iloc[0].to_numpy(dtype=float)
    return as_solutions(problem, solution)[0]


def replacement_costs(
    problem,
    solution,
    registry: SolverRegistry | None = None,
    n_workers: int = 1,
) -> pd.DataFrame:
    """Calculate replacement costs for the actions funded in ``solution``.

    Parameters
    ----------
    problem : ProjectProblem
        Problem the reference solution was found for; its solver is reused.
    solution : pandas.DataFrame or array_like
        Reference solution, either a table returned by :func:`solve` (first
        row used) or an action funding vector.
    registry : SolverRegistry, optional
        Exact solver backends.
    n_workers : int
        Number of re-solves to run concurrently.

    Returns
    -------
    pandas.DataFrame
        One row per action with columns ``action``, ``cost`` and ``obj`` of
        the re-solved problem, and ``rep_cost``. For maximization objectives
        ``rep_cost`` is the reference objective minus the new objective, for
        minimization the new minus the reference.
    """
    if problem.objective is None:
        raise ConfigurationError("Problem has no objective; add one with an add_*_objective method.")
    x = _reference_vector(problem, solution)
    reference = evaluate_solutions(problem, x).objective[0]
    maximize = problem.objective.modelsense == "max"
    funded = [int(i) for i in np.flatnonzero(x > 0.5)]
    logger.info("Calculating replacement costs for %d funded actions", len(funded))

    def resolve(i: int) -> tuple[float, float, float]:
        derived = problem.remove_locked_in_constraints([i]).add_locked_out_constraints([i])
        try:
            table = solve(derived, registry)
        except InfeasibleError as err:
            if err.status != SolveStatus.INFEASIBLE.value:
                raise
            if problem.objective.kind is not ObjectiveKind.MIN_SET:
                logger.warning(
                    "Excluding action %s makes the %s infeasible",
                    problem.action_ids[i],
                    problem.objective.name.lower(),
                )
            return math.nan, math.nan, math.inf
        # solvers returning a portfolio are judged by their best solution
        best = table["obj"].idxmax() if maximize else table["obj"].idxmin()
        cost, obj = float(table.loc[best, "cost"]), float(table.loc[best, "obj"])
        return cost, obj, reference - obj if maximize else obj - reference

    rows = dict(zip(funded, parallel_map(resolve, funded, n_workers)))
    missing = (math.nan, math.nan, math.nan)
    values = np.array([rows.get(i, missing) for i in range(problem.number_of_actions)], dtype=float)
    return pd.DataFrame(
        {
            "action": list(problem.action_ids),
            "cost": values[:, 0],
            "obj": values[:, 1],
            "rep_cost": values[:, 2],
        }
    )
