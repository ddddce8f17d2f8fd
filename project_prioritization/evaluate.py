"""Solution evaluation.

Recomputes what an action funding vector achieves directly from the
effective persistence matrix, without relying on any auxiliary values a
solver may report. Exact, heuristic and random solutions, as well as
replacement cost analysis, are all scored here.

A project is funded to the smallest funding level of its actions. Each
feature is then credited to its funded projects in decreasing order of
effective persistence (ties to the lowest project index) until a total
allocation of one is reached. With binary decisions this credits every
feature to the single best funded project; with proportional decisions it
is the optimal fractional allocation.
"""

import logging
from typing import TYPE_CHECKING, NamedTuple, TypedDict

import numpy as np
import pandas as pd

from project_prioritization.errors import ConfigurationError, DomainError
from project_prioritization.objective import ObjectiveKind

if TYPE_CHECKING:
    from project_prioritization.problem import ProjectProblem

logger = logging.getLogger(__name__)

TOLERANCE = 1e-6


class Evaluation(TypedDict):
    """Outcome of a single action funding vector.

    Parameters
    ----------
    objective_value : float
        Value of the problem's objective.
    persistence : dict[str, float]
        Persistence probability achieved by each feature.
    cost : float
        Total cost of the funded actions.
    feasible : bool
        Whether the vector satisfies the budget, locks, allocation and,
        for target constrained objectives, the targets.
    """

    objective_value: float
    persistence: dict[str, float]
    cost: float
    feasible: bool


class SolutionSummary(NamedTuple):
    """Evaluation of several solutions, one row per solution.

    ``allocated`` flags solutions in which every feature is fully credited
    to funded projects.
    """

    funding: np.ndarray
    persistence: np.ndarray
    cost: np.ndarray
    objective: np.ndarray
    feasible: np.ndarray
    allocated: np.ndarray


def as_solutions(problem: "ProjectProblem", solutions) -> np.ndarray:
    """Return ``solutions`` as a 2-D array with one column per action.

    Raises
    ------
    DomainError
        If the shape or values do not describe action funding levels.
    """
    x = np.atleast_2d(np.asarray(solutions, dtype=float))
    if x.ndim != 2 or x.shape[1] != problem.number_of_actions:
        raise DomainError("Solutions must have one value per action.")
    if not np.all(np.isfinite(x)) or np.any(x < -TOLERANCE) or np.any(x > 1 + TOLERANCE):
        raise DomainError("Action funding levels must be between 0 and 1.")
    return np.clip(x, 0.0, 1.0)


def project_funding(problem: "ProjectProblem", solutions) -> np.ndarray:
    """Funding level of each project, the minimum over its actions."""
    x = as_solutions(problem, solutions)
    funding = np.empty((x.shape[0], problem.number_of_projects))
    for j, actions in enumerate(problem.data.project_actions):
        funding[:, j] = x[:, actions].min(axis=1)
    return funding


def feature_persistence(problem: "ProjectProblem", funding: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Allocate features to funded projects.

    Parameters
    ----------
    problem : ProjectProblem
        Problem providing the effective persistence matrix.
    funding : np.ndarray
        Project funding levels, shape ``(n_solutions, n_projects)``.

    Returns
    -------
    tuple[np.ndarray, np.ndarray]
        Persistence of each feature and whether it is fully allocated,
        both of shape ``(n_solutions, n_features)``. The baseline project is
        a candidate for every feature, even where its persistence is zero.
    """
    q = problem.epf_matrix
    baseline = problem.data.baseline_project
    n_solutions = funding.shape[0]
    persistence = np.zeros((n_solutions, problem.number_of_features))
    allocated = np.ones((n_solutions, problem.number_of_features), dtype=bool)
    order = np.argsort(-q, axis=1, kind="stable")
    for f in range(problem.number_of_features):
        remaining = np.ones(n_solutions)
        for j in order[f]:
            if q[f, j] <= 0 and j != baseline:
                continue
            share = np.minimum(funding[:, j], remaining)
            persistence[:, f] += share * q[f, j]
            remaining -= share
        allocated[:, f] = remaining <= TOLERANCE
    return np.clip(persistence, 0.0, 1.0), allocated


def evaluate_solutions(problem: "ProjectProblem", solutions) -> SolutionSummary:
    """Evaluate action funding vectors against a problem.

    Parameters
    ----------
    problem : ProjectProblem
        Problem with an objective.
    solutions : array_like
        Shape ``(n_solutions, n_actions)`` or a single vector.

    Returns
    -------
    SolutionSummary

    Raises
    ------
    ConfigurationError
        If the problem has no objective.
    """
    objective = problem.objective
    if objective is None:
        raise ConfigurationError("Problem has no objective; add one with an add_*_objective method.")
    x = as_solutions(problem, solutions)
    funding = project_funding(problem, x)
    persistence, allocated = feature_persistence(problem, funding)
    cost = x @ problem.action_costs

    feasible = allocated.all(axis=1)
    if objective.budget is not None:
        feasible &= cost <= objective.budget + TOLERANCE
    if problem.locked_in:
        feasible &= np.all(x[:, sorted(problem.locked_in)] >= 1 - TOLERANCE, axis=1)
    if problem.locked_out:
        feasible &= np.all(x[:, sorted(problem.locked_out)] <= TOLERANCE, axis=1)
    if objective.target_constrained:
        feasible &= targets_met(problem, persistence).all(axis=1)

    values = objective.evaluate(problem, persistence, cost)
    return SolutionSummary(
        funding, persistence, cost, np.asarray(values, dtype=float), feasible, allocated.all(axis=1)
    )


def targets_met(problem: "ProjectProblem", persistence: np.ndarray) -> np.ndarray:
    """Whether each feature reaches its target.

    Raises
    ------
    ConfigurationError
        If the problem has no targets.
    """
    targets = problem.feature_targets()
    if targets is None:
        raise ConfigurationError("Problem has no targets; add them with add_*_targets.")
    return np.atleast_2d(persistence) >= targets - TOLERANCE


def evaluate(problem: "ProjectProblem", action_vector) -> Evaluation:
    """Evaluate a single action funding vector.

    Examples
    --------
    >>> result = evaluate(problem, [1, 1, 0])  # doctest: +SKIP
    >>> result["objective_value"]  # doctest: +SKIP
    1.1
    """
    summary = evaluate_solutions(problem, action_vector)
    if summary.funding.shape[0] != 1:
        raise DomainError("Expected a single action vector.")
    return {
        "objective_value": float(summary.objective[0]),
        "persistence": dict(zip(problem.feature_ids, summary.persistence[0].tolist())),
        "cost": float(summary.cost[0]),
        "feasible": bool(summary.feasible[0]),
    }


def project_cost_effectiveness(problem: "ProjectProblem") -> pd.DataFrame:
    """Rank projects by benefit per unit cost.

    The benefit of a project is the gain in objective value from funding it
    alongside the baseline project, relative to funding the baseline project
    alone. For the minimum set objective the number of targets met is used
    instead of cost.

    Parameters
    ----------
    problem : ProjectProblem
        Problem with an objective (and targets for the minimum set objective).

    Returns
    -------
    pandas.DataFrame
        Columns ``project``, ``cost``, ``benefit``, ``ce`` and ``rank``; rank 1
        is the most cost-effective project and undefined ratios rank last.
    """
    if problem.objective is None:
        raise ConfigurationError("Problem has no objective; add one with an add_*_objective method.")
    data = problem.data
    baseline = data.baseline_project
    x = np.zeros((problem.number_of_projects + 1, problem.number_of_actions))
    x[:, data.baseline_action] = 1.0
    for j, actions in enumerate(data.project_actions):
        x[j + 1, actions] = 1.0

    summary = evaluate_solutions(problem, x)
    if problem.objective.kind is ObjectiveKind.MIN_SET:
        scores = targets_met(problem, summary.persistence).sum(axis=1).astype(float)
    else:
        scores = summary.objective
    benefit = scores[1:] - scores[0]
    cost = np.array([data.action_costs[actions].sum() for actions in data.project_actions])
    with np.errstate(divide="ignore", invalid="ignore"):
        ce = np.where(cost > 0, benefit / np.where(cost > 0, cost, 1.0), np.where(benefit > 0, np.inf, np.nan))
    ce[baseline] = np.nan

    table = pd.DataFrame({"project": list(problem.project_ids), "cost": cost, "benefit": benefit, "ce": ce})
    table["rank"] = table["ce"].rank(ascending=False, method="min", na_option="bottom")
    logger.info("Ranked %d projects by cost-effectiveness", len(table))
    return table
