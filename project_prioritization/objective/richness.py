"""Maximum richness objective.

Maximizes the weighted expected number of features that persist,
``sum_f W_f (1 - E_f)``, subject to a budget.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

import numpy as np

from project_prioritization.objective._common import (
    add_budget_row,
    build_allocation,
    check_budget,
    finish,
    weighted_star,
)
from project_prioritization.objective._types import ObjectiveKind
from project_prioritization.program import Program
from project_prioritization.tree import FeatureTree

if TYPE_CHECKING:
    from project_prioritization.problem import ProjectProblem


@dataclass(frozen=True)
class MaxRichnessObjective:
    """Maximum richness objective.

    Parameters
    ----------
    budget : float
        Maximum total cost of funded actions.
    """

    budget: float
    kind: ClassVar[ObjectiveKind] = ObjectiveKind.MAX_RICHNESS
    name: ClassVar[str] = "Maximum richness objective"
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
        builder, cols = build_allocation(problem)
        weights = problem.feature_weights()
        q = problem.epf_matrix
        builder.add_objective(cols.z, weights[cols.z_feature] * q[cols.z_feature, cols.z_project])
        add_budget_row(builder, cols, problem, self.budget)
        return finish(builder, problem, self.modelsense)

    def evaluate(self, problem: "ProjectProblem", persistence: np.ndarray, cost: np.ndarray) -> np.ndarray:
        return weighted_star(problem).expected_diversity(persistence)
