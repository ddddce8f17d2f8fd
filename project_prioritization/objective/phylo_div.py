"""Maximum phylogenetic diversity objective.

Each branch of the feature tree gets a variable ``R_b`` bounded by the
survival probability of one chosen descendant:

- a branch with a single descendant ``f``: ``R_b + E_f <= 1``;
- otherwise binary ``H_bf`` picks one descendant, ``sum_f H_bf = 1`` and
  ``R_b + E_f + H_bf <= 2``.

The objective ``sum_b L_b R_b`` therefore credits each branch with its
best-protected descendant. On a star tree this is exactly the richness
objective; elsewhere it is a lower bound on the expected diversity
``sum_b L_b (1 - prod_f E_f)`` that :meth:`evaluate` reports.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

import numpy as np

from project_prioritization.objective._common import (
    add_budget_row,
    build_allocation,
    check_budget,
    finish,
    not_applicable_weights,
)
from project_prioritization.objective._types import ObjectiveKind
from project_prioritization.program import Program
from project_prioritization.tree import FeatureTree

if TYPE_CHECKING:
    from project_prioritization.problem import ProjectProblem


@dataclass(frozen=True, eq=False)
class MaxPhyloDivObjective:
    """Maximum phylogenetic diversity objective.

    Parameters
    ----------
    budget : float
        Maximum total cost of funded actions.
    tree : FeatureTree, optional
        Feature hierarchy. Without one, a star tree is used and the
        objective reduces to unweighted richness.
    """

    budget: float
    tree: FeatureTree | None = None
    kind: ClassVar[ObjectiveKind] = ObjectiveKind.MAX_PHYLO_DIV
    name: ClassVar[str] = "Maximum phylogenetic diversity objective"
    modelsense: ClassVar[str] = "max"
    uses_weights: ClassVar[bool] = False
    target_constrained: ClassVar[bool] = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "budget", check_budget(self.budget))

    def default_weights(self, problem: "ProjectProblem") -> np.ndarray:
        return not_applicable_weights(problem)

    def feature_tree(self, problem: "ProjectProblem") -> FeatureTree:
        if self.tree is None:
            return FeatureTree.star(problem.feature_ids)
        return self.tree.subset(problem.feature_ids)

    def encode(self, problem: "ProjectProblem") -> Program:
        tree = self.feature_tree(problem)
        builder, cols = build_allocation(problem)
        branches = builder.add_variables([f"R[{b}]" for b in range(tree.number_of_branches)], 0.0, 1.0, "C")
        for b in tree.branch_order():
            descendants = np.flatnonzero(tree.branch_matrix[:, b])
            if descendants.size == 1:
                f = descendants[0]
                builder.add_row([branches[b], cols.e[f]], [1.0, 1.0], "<=", 1.0, f"branch[{b}]")
                continue
            choice = builder.add_variables(
                [f"H[{b},{problem.feature_ids[f]}]" for f in descendants], 0.0, 1.0, cols.integer_type
            )
            builder.add_row(choice, np.ones(choice.size), "=", 1.0, f"branch_choice[{b}]")
            for f, h in zip(descendants, choice):
                builder.add_row(
                    [branches[b], cols.e[f], h],
                    [1.0, 1.0, 1.0],
                    "<=",
                    2.0,
                    f"branch[{b},{problem.feature_ids[f]}]",
                )
        builder.add_objective(branches, tree.branch_lengths)
        add_budget_row(builder, cols, problem, self.budget)
        return finish(builder, problem, self.modelsense)

    def evaluate(self, problem: "ProjectProblem", persistence: np.ndarray, cost: np.ndarray) -> np.ndarray:
        return self.feature_tree(problem).expected_diversity(persistence)
