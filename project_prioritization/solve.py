"""Solve a problem and tabulate its solutions."""

import logging

import numpy as np
import pandas as pd

from project_prioritization.errors import ConfigurationError, InfeasibleError
from project_prioritization.evaluate import evaluate_solutions
from project_prioritization.program import DecisionType
from project_prioritization.solver import ExactSolver, SolverRegistry, SolveStatus

logger = logging.getLogger(__name__)


def solve(problem, registry: SolverRegistry | None = None) -> pd.DataFrame:
    """Solve ``problem`` with its solver.

    Parameters
    ----------
    problem : ProjectProblem
        Problem with an objective and decisions. Without a solver the first
        available exact backend is used.
    registry : SolverRegistry, optional
        Exact solver backends to choose from. Defaults to
        :func:`~project_prioritization.solver.default_registry`.

    Returns
    -------
    pandas.DataFrame
        One row per solution with columns ``solution``, one per action,
        ``obj``, ``cost``, ``status``, one per project (funding level) and one
        per feature (persistence probability). ``obj`` is recomputed from the
        action values, independent of the solver.

    Raises
    ------
    ConfigurationError
        If the problem lacks an objective or decisions.
    InfeasibleError
        If the solver found no solution.
    """
    if problem.objective is None:
        raise ConfigurationError("Problem has no objective; add one with an add_*_objective method.")
    if problem.decisions is None:
        raise ConfigurationError("Problem has no decisions; add them with add_binary_decisions.")
    solver = problem.solver if problem.solver is not None else ExactSolver()

    logger.info("Solving %r with the %s solver", problem, solver.name)
    results = solver(problem, registry)
    usable = [r for r in results if r["x"] is not None and SolveStatus(r["status"]).has_solution]
    if not usable:
        status = SolveStatus(results[0]["status"]) if results else SolveStatus.NO_SOLUTION
        logger.warning("Solver returned non-optimal status: %s", status.value)
        raise InfeasibleError(f"No solution found ({status.value}).", status.value)

    x = np.clip(np.array([r["x"] for r in usable], dtype=float), 0.0, 1.0)
    if problem.decisions is DecisionType.BINARY:
        x = np.round(x)
    summary = evaluate_solutions(problem, x)
    statuses = [SolveStatus(r["status"]).value for r in usable]
    if SolveStatus.SUBOPTIMAL_TIMEOUT.value in statuses:
        logger.warning("Solver stopped at its time limit, optimality is not proven")
    if not summary.feasible.all():
        logger.warning("%d solution(s) do not satisfy every constraint", int((~summary.feasible).sum()))

    table = pd.concat(
        [
            pd.DataFrame({"solution": np.arange(1, len(usable) + 1)}),
            pd.DataFrame(x, columns=list(problem.action_ids)),
            pd.DataFrame({"obj": summary.objective, "cost": summary.cost, "status": statuses}),
            pd.DataFrame(summary.funding, columns=list(problem.project_ids)),
            pd.DataFrame(summary.persistence, columns=list(problem.feature_ids)),
        ],
        axis=1,
    )
    logger.info("Found %d solution(s), best objective = %.4f", len(table), table["obj"].iloc[0])
    return table
