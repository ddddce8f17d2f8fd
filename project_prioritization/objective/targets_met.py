"""Maximum targets met objective.

Maximizes the weighted number of features whose persistence reaches its
target, subject to a budget. ``G_f (1 - E_f) >= T_f`` is linearized as
``sum_j Q_fj Z_fj - T_f G_f >= 0``.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

import numpy as np

from project_prioritization.objective._common import (
    add_budget_row,
    build_allocation,
    check_budget,
    finish,
    persistence_expression,
    required_targets,
    weighted_star,
)
from project_prioritization.objective._types import ObjectiveKind
from project_prioritization.program import Program
from project_prioritization.tree import FeatureTree

if TYPE_CHECKING:
    from project_prioritization.problem import ProjectProblem

TARGET_TOLERANCE = 1e-9


@dataclass(frozen=True)
class MaxTargetsMetObjective:
    """Maximum targets met objective.

    Parameters
    ----------
    budget : float
        Maximum total cost of funded actions.
    """

    budget: float
    kind: ClassVar[ObjectiveKind] = ObjectiveKind.MAX_TARGETS_MET
    name: ClassVar[str] = "Maximum targets met objective"
    modelsense: ClassVar[str] = "max"
    uses_weights: ClassVar[bool] = True
    target_constrained: ClassVar[bool] = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "budget", check_budget(self.budget))

    def default_weights(self, problem: "ProjectProblem") -> np.ndarray:
        return np.ones(problem.number_of_features)

    def feature_tree(self, problem: "ProjectProblem") -> FeatureTree:
        return FeatureTree.star(problem.feature_ids)

    def encode(self, problem: "ProjectProblem") -> Program:
        targets = required_targets(problem, self.name)
        builder, cols = build_allocation(problem)
        met = builder.add_variables([f"G[{f}]" for f in problem.feature_ids], 0.0, 1.0, cols.integer_type)
        for f, feature in enumerate(problem.feature_ids):
            z, q = persistence_expression(cols, problem, f)
            builder.add_row(
                np.concatenate([z, [met[f]]]),
                np.concatenate([q, [-targets[f]]]),
                ">=",
                0.0,
                f"target[{feature}]",
            )
        builder.add_objective(met, problem.feature_weights())
        add_budget_row(builder, cols, problem, self.budget)
        return finish(builder, problem, self.modelsense)

    def evaluate(self, problem: "ProjectProblem", persistence: np.ndarray, cost: np.ndarray) -> np.ndarray:
        targets = required_targets(problem, self.name)
        met = (np.atleast_2d(persistence) >= targets - TARGET_TOLERANCE).astype(float)
        return weighted_star(problem).expected_diversity(met)
