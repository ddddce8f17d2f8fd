"""Type definitions for the objective protocol."""

from enum import Enum
from typing import TYPE_CHECKING, Protocol

import numpy as np

from project_prioritization.program import Program
from project_prioritization.tree import FeatureTree

if TYPE_CHECKING:
    from project_prioritization.problem import ProjectProblem


class ObjectiveKind(str, Enum):
    """Closed set of supported objective families."""

    MAX_RICHNESS = "max_richness"
    MAX_TARGETS_MET = "max_targets_met"
    MAX_PHYLO_DIV = "max_phylo_div"
    MIN_SET = "min_set"


class Objective(Protocol):
    """Protocol for objectives.

    Implementations encode a problem into a :class:`Program` and score
    evaluated solutions so that exact, heuristic and random solvers are
    compared on the same footing.

    Attributes
    ----------
    kind : ObjectiveKind
        Objective family.
    name : str
        Human readable name.
    modelsense : str
        ``"max"`` or ``"min"``.
    budget : float | None
        Spending cap, or ``None`` when the objective has no budget.
    uses_weights : bool
        Whether feature weights influence the objective.
    target_constrained : bool
        Whether every target must be met for a solution to be feasible.
    """

    kind: ObjectiveKind
    name: str
    modelsense: str
    budget: float | None
    uses_weights: bool
    target_constrained: bool

    def encode(self, problem: "ProjectProblem") -> Program: ...

    def evaluate(self, problem: "ProjectProblem", persistence: np.ndarray, cost: np.ndarray) -> np.ndarray: ...

    def default_weights(self, problem: "ProjectProblem") -> np.ndarray: ...

    def feature_tree(self, problem: "ProjectProblem") -> FeatureTree: ...
