"""Shared formulation for all objectives.

Every objective starts from the same allocation model:

- ``X_i`` action ``i`` is funded;
- ``Y_j`` project ``j`` is funded, ``Y_j <= X_i`` for each of its actions;
- ``Z_fj`` feature ``f`` is allocated to project ``j``, ``Z_fj <= Y_j``,
  created where ``Q_fj > 0`` and always for the baseline project, with
  ``sum_j Z_fj = 1``;
- ``E_f`` extinction probability, ``E_f + sum_j Q_fj Z_fj = 1``.

Objectives then add their own variables, rows and objective coefficients.
"""

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from project_prioritization.errors import ConfigurationError
from project_prioritization.parameters import numeric_parameter
from project_prioritization.program import DecisionType, Program, ProgramBuilder
from project_prioritization.targets import apply_locks
from project_prioritization.tree import FeatureTree

if TYPE_CHECKING:
    from project_prioritization.problem import ProjectProblem


@dataclass
class AllocationColumns:
    """Column indices of the shared allocation variables."""

    x: np.ndarray
    y: np.ndarray
    z: np.ndarray
    z_feature: np.ndarray
    z_project: np.ndarray
    e: np.ndarray
    integer_type: str

    def z_of_feature(self, f: int) -> np.ndarray:
        """Positions within ``z`` of the allocation variables for feature ``f``."""
        return np.flatnonzero(self.z_feature == f)


def check_budget(budget: float) -> float:
    return numeric_parameter("budget", budget, lower_limit=0).get()


def build_allocation(problem: "ProjectProblem") -> tuple[ProgramBuilder, AllocationColumns]:
    """Create the allocation variables and rows shared by every objective."""
    data = problem.data
    binary = problem.decisions is not DecisionType.PROPORTION
    integer_type = "B" if binary else "C"
    q = data.epf_matrix

    builder = ProgramBuilder()
    x = builder.add_variables([f"X[{a}]" for a in data.action_ids], 0.0, 1.0, integer_type)
    y = builder.add_variables([f"Y[{p}]" for p in data.project_ids], 0.0, 1.0, integer_type)
    # every feature can fall back on the baseline project
    eligible = q > 0
    eligible[:, data.baseline_project] = True
    z_feature, z_project = np.nonzero(eligible)
    z = builder.add_variables(
        [f"Z[{data.feature_ids[f]},{data.project_ids[j]}]" for f, j in zip(z_feature, z_project)],
        0.0,
        1.0,
        integer_type,
    )
    e = builder.add_variables([f"E[{f}]" for f in data.feature_ids], 0.0, 1.0, "S" if binary else "C")
    cols = AllocationColumns(x, y, z, z_feature, z_project, e, integer_type)

    # a project is funded only if all of its actions are funded
    for j, actions in enumerate(data.project_actions):
        for i in actions:
            builder.add_row(
                [y[j], x[i]], [1.0, -1.0], "<=", 0.0, f"fund[{data.project_ids[j]},{data.action_ids[i]}]"
            )
    for k, (f, j) in enumerate(zip(z_feature, z_project)):
        builder.add_row(
            [z[k], y[j]], [1.0, -1.0], "<=", 0.0, f"allocate[{data.feature_ids[f]},{data.project_ids[j]}]"
        )
    for f, feature in enumerate(data.feature_ids):
        ks = cols.z_of_feature(f)
        builder.add_row(z[ks], np.ones(ks.size), "=", 1.0, f"single[{feature}]")
        builder.add_row(
            np.concatenate([[e[f]], z[ks]]),
            np.concatenate([[1.0], q[f, z_project[ks]]]),
            "=",
            1.0,
            f"extinct[{feature}]",
        )
    return builder, cols


def add_budget_row(builder: ProgramBuilder, cols: AllocationColumns, problem: "ProjectProblem", budget: float) -> None:
    builder.add_row(cols.x, problem.action_costs, "<=", budget, "budget")


def persistence_expression(cols: AllocationColumns, problem: "ProjectProblem", f: int) -> tuple[np.ndarray, np.ndarray]:
    """Columns and coefficients of ``1 - E_f = sum_j Q_fj Z_fj``."""
    ks = cols.z_of_feature(f)
    return cols.z[ks], problem.epf_matrix[f, cols.z_project[ks]]


def required_targets(problem: "ProjectProblem", objective_name: str) -> np.ndarray:
    targets = problem.feature_targets()
    if targets is None:
        raise ConfigurationError(f"The {objective_name.lower()} requires targets; add them with add_*_targets.")
    return targets


def finish(builder: ProgramBuilder, problem: "ProjectProblem", modelsense: str) -> Program:
    program = builder.build(modelsense, problem.number_of_actions, problem.action_costs)
    return apply_locks(program, problem)


def weighted_star(problem: "ProjectProblem") -> FeatureTree:
    """Star tree whose branch lengths are the feature weights."""
    star = FeatureTree.star(problem.feature_ids)
    return FeatureTree(star.tip_labels, star.branch_matrix, problem.feature_weights())


def not_applicable_weights(problem: "ProjectProblem") -> np.ndarray:
    return np.full(problem.number_of_features, math.nan)
