"""Minimum set objective.

Minimizes the cost of the funded actions while every feature meets its
persistence target, ``(1 - E_f) >= T_f``. There is no budget.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

import numpy as np

from project_prioritization.objective._common import (
    build_allocation,
    finish,
    not_applicable_weights,
    required_targets,
)
from project_prioritization.objective._types import ObjectiveKind
from project_prioritization.program import Program
from project_prioritization.tree import FeatureTree

if TYPE_CHECKING:
    from project_prioritization.problem import ProjectProblem


@dataclass(frozen=True)
class MinSetObjective:
    """Minimum set objective."""

    budget: ClassVar[None] = None
    kind: ClassVar[ObjectiveKind] = ObjectiveKind.MIN_SET
    name: ClassVar[str] = "Minimum set objective"
    modelsense: ClassVar[str] = "min"
    uses_weights: ClassVar[bool] = False
    target_constrained: ClassVar[bool] = True

    def default_weights(self, problem: "ProjectProblem") -> np.ndarray:
        return not_applicable_weights(problem)

    def feature_tree(self, problem: "ProjectProblem") -> FeatureTree:
        return FeatureTree.star(problem.feature_ids)

    def encode(self, problem: "ProjectProblem") -> Program:
        targets = required_targets(problem, self.name)
        builder, cols = build_allocation(problem)
        for f, feature in enumerate(problem.feature_ids):
            builder.add_row([cols.e[f]], [1.0], "<=", 1.0 - targets[f], f"target[{feature}]")
        builder.add_objective(cols.x, problem.action_costs)
        return finish(builder, problem, self.modelsense)

    def evaluate(self, problem: "ProjectProblem", persistence: np.ndarray, cost: np.ndarray) -> np.ndarray:
        return np.atleast_1d(np.asarray(cost, dtype=float))
