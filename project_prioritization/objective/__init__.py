"""Objectives for project prioritization problems.

Each objective family is a class satisfying the :class:`Objective`
protocol; :data:`OBJECTIVES` maps every :class:`ObjectiveKind` to its class.
:func:`encode` turns a configured problem into a canonical :class:`Program`.
"""

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from project_prioritization.errors import ConfigurationError
from project_prioritization.objective._types import Objective, ObjectiveKind
from project_prioritization.objective.min_set import MinSetObjective
from project_prioritization.objective.phylo_div import MaxPhyloDivObjective
from project_prioritization.objective.richness import MaxRichnessObjective
from project_prioritization.objective.targets_met import MaxTargetsMetObjective
from project_prioritization.program import Program

if TYPE_CHECKING:
    from project_prioritization.problem import ProjectProblem

__all__ = [
    "OBJECTIVES",
    "MaxPhyloDivObjective",
    "MaxRichnessObjective",
    "MaxTargetsMetObjective",
    "MinSetObjective",
    "Objective",
    "ObjectiveKind",
    "encode",
    "make_objective",
]

logger = logging.getLogger(__name__)

OBJECTIVES: dict[ObjectiveKind, type] = {
    ObjectiveKind.MAX_RICHNESS: MaxRichnessObjective,
    ObjectiveKind.MAX_TARGETS_MET: MaxTargetsMetObjective,
    ObjectiveKind.MAX_PHYLO_DIV: MaxPhyloDivObjective,
    ObjectiveKind.MIN_SET: MinSetObjective,
}


def make_objective(kind: ObjectiveKind | str, budget: float | None = None) -> Objective:
    """Instantiate the objective registered for ``kind``.

    Raises
    ------
    ConfigurationError
        If the kind is unknown, or a budget is missing for a budgeted
        objective.
    """
    try:
        kind = ObjectiveKind(kind)
    except ValueError as err:
        raise ConfigurationError(f"Unknown objective kind {kind!r}.") from err
    if kind is ObjectiveKind.MIN_SET:
        return MinSetObjective()
    if budget is None:
        raise ConfigurationError(f"The {kind.value} objective requires a budget.")
    return OBJECTIVES[kind](budget)


def encode(
    problem: "ProjectProblem",
    kind: ObjectiveKind | str | None = None,
    budget: float | None = None,
) -> Program:
    """Encode ``problem`` as a canonical program.

    Parameters
    ----------
    problem : ProjectProblem
        Problem with decisions and, unless ``kind`` is given, an objective.
    kind : ObjectiveKind or str, optional
        Objective family overriding the problem's objective.
    budget : float, optional
        Budget for ``kind``; ignored for the minimum set objective.

    Returns
    -------
    Program

    Raises
    ------
    ConfigurationError
        If the problem lacks an objective or decisions.
    """
    if kind is not None:
        problem = replace(problem, objective=make_objective(kind, budget))
    if problem.objective is None:
        raise ConfigurationError("Problem has no objective; add one with an add_*_objective method.")
    if problem.decisions is None:
        raise ConfigurationError("Problem has no decisions; add them with add_binary_decisions.")
    logger.info(
        "Formulating %s with %d actions, %d projects and %d features",
        problem.objective.name.lower(),
        problem.number_of_actions,
        problem.number_of_projects,
        problem.number_of_features,
    )
    program = problem.objective.encode(problem)
    logger.info(
        "Program has %d variables and %d constraints",
        program.number_of_variables,
        program.number_of_constraints,
    )
    return program
