"""Persistence targets and action lock constraints.

Targets and feature weights accept a scalar, a sequence aligned with the
features, a mapping keyed by feature identifier, or the name of a column in
the features table. Lock constraints accept action identifiers, a boolean
mask, integer positions, or the name of a boolean column in the actions
table.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

from project_prioritization.errors import DomainError
from project_prioritization.persistence import check_probabilities
from project_prioritization.program import Program

if TYPE_CHECKING:
    from project_prioritization.problem import ProjectData, ProjectProblem


def feature_values(data: "ProjectData", x: Any, name: str) -> np.ndarray:
    """Resolve ``x`` into one float per feature.

    Raises
    ------
    DomainError
        If the values cannot be aligned with the features.
    """
    n = data.number_of_features
    if isinstance(x, str):
        table = data.feature_table
        if table is None or x not in table.columns:
            raise DomainError(f"Features table has no column {x!r} for {name}.")
        values = table[x].to_numpy(dtype=float)
    elif isinstance(x, Mapping):
        unknown = set(x) - set(data.feature_ids)
        if unknown:
            raise DomainError(f"Unknown features in {name}: {sorted(unknown)}.")
        missing = set(data.feature_ids) - set(x)
        if missing:
            raise DomainError(f"Missing {name} for features: {sorted(missing)}.")
        values = np.array([float(x[f]) for f in data.feature_ids])
    elif np.ndim(x) == 0:
        values = np.full(n, float(x))
    else:
        values = np.asarray(x, dtype=float)
    if values.shape != (n,):
        raise DomainError(f"{name} must have one value per feature.")
    return values


def action_indices(data: "ProjectData", x: Any) -> frozenset[int]:
    """Resolve ``x`` into a set of action positions.

    Raises
    ------
    DomainError
        If an identifier, position or mask does not refer to an action.
    """
    n = data.number_of_actions
    if isinstance(x, str):
        table = data.action_table
        if x in data.action_ids:
            return frozenset([data.action_ids.index(x)])
        if table is None or x not in table.columns:
            raise DomainError(f"{x!r} is neither an action nor a column of the actions table.")
        x = table[x].fillna(False).to_numpy(dtype=bool)
    if isinstance(x, (int, np.integer)):
        x = [x]
    values = list(x)
    if not values:
        return frozenset()
    if all(isinstance(v, (bool, np.bool_)) for v in values):
        if len(values) != n:
            raise DomainError("Boolean action mask must have one value per action.")
        return frozenset(int(i) for i in np.flatnonzero(values))
    if all(isinstance(v, str) for v in values):
        unknown = [v for v in values if v not in data.action_ids]
        if unknown:
            raise DomainError(f"Unknown actions: {unknown}.")
        return frozenset(data.action_ids.index(v) for v in values)
    if all(isinstance(v, (int, np.integer)) for v in values):
        if any(v < 0 or v >= n for v in values):
            raise DomainError("Action positions are out of range.")
        return frozenset(int(v) for v in values)
    raise DomainError("Actions must be given as identifiers, positions or a boolean mask.")


@dataclass(frozen=True, eq=False)
class AbsoluteTargets:
    """Targets expressed directly as persistence probabilities."""

    values: np.ndarray
    name = "absolute"

    def output(self, problem: "ProjectProblem") -> np.ndarray:
        return self.values


@dataclass(frozen=True, eq=False)
class RelativeTargets:
    """Targets expressed as a fraction of the achievable improvement.

    ``T_f = baseline_f + fraction_f * (best_f - baseline_f)`` where the
    baseline is the persistence under the baseline project and the best is
    the highest persistence offered by any project.
    """

    values: np.ndarray
    name = "relative"

    def output(self, problem: "ProjectProblem") -> np.ndarray:
        q = problem.data.epf_matrix
        baseline = q[:, problem.data.baseline_project]
        best = q.max(axis=1)
        return baseline + self.values * (best - baseline)


def make_targets(data: "ProjectData", x: Any, relative: bool) -> AbsoluteTargets | RelativeTargets:
    values = check_probabilities(feature_values(data, x, "targets"), "Targets")
    return RelativeTargets(values) if relative else AbsoluteTargets(values)


def check_locks(locked_in: frozenset[int], locked_out: frozenset[int], data: "ProjectData") -> None:
    """Fail if any action is both locked in and locked out."""
    conflict = locked_in & locked_out
    if conflict:
        names = sorted(data.action_ids[i] for i in conflict)
        raise DomainError(f"Actions cannot be both locked in and locked out: {names}.")


def apply_locks(program: Program, problem: "ProjectProblem") -> Program:
    """Tighten action variable bounds for locked in and locked out actions."""
    if not problem.locked_in and not problem.locked_out:
        return program
    lb, ub = program.lb.copy(), program.ub.copy()
    for i in problem.locked_in:
        lb[i] = 1.0
    for i in problem.locked_out:
        ub[i] = 0.0
    return program.with_bounds(lb, ub)
