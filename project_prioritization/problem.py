"""Project prioritization problems.

:class:`ProjectData` bundles the validated actions, projects and features
together with the effective persistence matrix. :class:`ProjectProblem`
layers an objective, decision type, targets, weights, lock constraints and
a solver on top of it. Problems are immutable: every ``add_*`` method
returns a new problem and leaves the original untouched.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any

import numpy as np
import pandas as pd
from scipy import sparse

from project_prioritization.errors import ConfigurationError, DomainError
from project_prioritization.objective import (
    MaxPhyloDivObjective,
    MaxRichnessObjective,
    MaxTargetsMetObjective,
    MinSetObjective,
    Objective,
)
from project_prioritization.persistence import effective_persistence
from project_prioritization.program import DecisionType
from project_prioritization.solver import ExactSolver, HeuristicSolver, RandomSolver
from project_prioritization.targets import (
    AbsoluteTargets,
    RelativeTargets,
    action_indices,
    check_locks,
    feature_values,
    make_targets,
)
from project_prioritization.tree import FeatureTree

logger = logging.getLogger(__name__)

RESERVED_COLUMNS = ("solution", "obj", "cost", "status")


@dataclass(frozen=True, eq=False)
class ProjectData:
    """Validated actions, projects and features.

    Parameters
    ----------
    action_ids : tuple[str, ...]
        Action identifiers.
    action_costs : np.ndarray
        Non-negative cost of each action.
    project_ids : tuple[str, ...]
        Project identifiers.
    project_success : np.ndarray
        Probability ``P_j`` that each project succeeds.
    feature_ids : tuple[str, ...]
        Feature identifiers.
    pa_matrix : scipy.sparse.csr_matrix
        Shape ``(n_projects, n_actions)``; non-zero where a project requires
        an action.
    benefit : np.ndarray
        Shape ``(n_features, n_projects)``; persistence ``B_fj`` of each
        feature if the project succeeds, zero where unaffected.
    baseline_project : int
        Position of the baseline "do nothing" project.
    adjust_for_baseline : bool
        Whether failed projects fall back on baseline persistence.
    action_table, feature_table : pandas.DataFrame, optional
        Source tables, used to look up lock, target and weight columns.
    """

    action_ids: tuple[str, ...]
    action_costs: np.ndarray
    project_ids: tuple[str, ...]
    project_success: np.ndarray
    feature_ids: tuple[str, ...]
    pa_matrix: sparse.csr_matrix
    benefit: np.ndarray
    baseline_project: int
    adjust_for_baseline: bool = True
    action_table: pd.DataFrame | None = None
    feature_table: pd.DataFrame | None = None
    baseline_action: int = field(init=False)
    project_actions: tuple[np.ndarray, ...] = field(init=False)
    epf_matrix: np.ndarray = field(init=False)

    def __post_init__(self) -> None:
        costs = np.asarray(self.action_costs, dtype=float)
        pa = sparse.csr_matrix(self.pa_matrix, dtype=float)
        pa.eliminate_zeros()
        n_actions, n_projects, n_features = len(self.action_ids), len(self.project_ids), len(self.feature_ids)

        if costs.shape != (n_actions,):
            raise DomainError("There must be one cost per action.")
        if not np.all(np.isfinite(costs)) or np.any(costs < 0):
            raise DomainError("Action costs must be finite and non-negative.")
        if pa.shape != (n_projects, n_actions):
            raise DomainError("Project membership must have one row per project and one column per action.")
        identifiers = list(self.action_ids) + list(self.project_ids) + list(self.feature_ids)
        if len(set(identifiers)) != len(identifiers):
            raise DomainError("Action, project and feature identifiers must be unique.")
        reserved = set(identifiers) & set(RESERVED_COLUMNS)
        if reserved:
            raise DomainError(f"Identifiers clash with reserved solution columns: {sorted(reserved)}.")

        project_actions = tuple(pa[j].indices.copy() for j in range(n_projects))
        empty = [self.project_ids[j] for j, acts in enumerate(project_actions) if acts.size == 0]
        if empty:
            raise DomainError(f"Projects do not contain any actions: {empty}.")

        baseline_actions = project_actions[self.baseline_project] if 0 <= self.baseline_project < n_projects else None
        if baseline_actions is None or baseline_actions.size != 1:
            raise DomainError("The baseline project must contain exactly one action.")
        baseline_action = int(baseline_actions[0])
        if costs[baseline_action] != 0:
            raise DomainError("The baseline action must have zero cost.")

        epf = effective_persistence(
            self.project_success, self.benefit, self.baseline_project, self.adjust_for_baseline
        )
        if epf.shape != (n_features, n_projects):
            raise DomainError("Persistence matrix must have one row per feature.")
        costs.setflags(write=False)
        epf.setflags(write=False)

        object.__setattr__(self, "action_ids", tuple(self.action_ids))
        object.__setattr__(self, "project_ids", tuple(self.project_ids))
        object.__setattr__(self, "feature_ids", tuple(self.feature_ids))
        object.__setattr__(self, "action_costs", costs)
        object.__setattr__(self, "project_success", np.asarray(self.project_success, dtype=float))
        object.__setattr__(self, "benefit", np.asarray(self.benefit, dtype=float))
        object.__setattr__(self, "pa_matrix", pa)
        object.__setattr__(self, "baseline_action", baseline_action)
        object.__setattr__(self, "project_actions", project_actions)
        object.__setattr__(self, "epf_matrix", epf)

    @property
    def number_of_actions(self) -> int:
        return len(self.action_ids)

    @property
    def number_of_projects(self) -> int:
        return len(self.project_ids)

    @property
    def number_of_features(self) -> int:
        return len(self.feature_ids)


def _numeric_block(table: pd.DataFrame, columns: tuple[str, ...]) -> np.ndarray:
    """Read ``columns`` as floats, treating missing values as zero."""
    rows = table[list(columns)].to_numpy(dtype=object)
    try:
        values = [[0.0 if pd.isna(v) else float(v) for v in row] for row in rows]
    except (TypeError, ValueError) as err:
        raise DomainError(f"Columns {list(columns)} must be numeric or boolean.") from err
    return np.array(values, dtype=float).reshape(len(table), len(columns))


def build_problem(
    projects: pd.DataFrame,
    actions: pd.DataFrame,
    features: pd.DataFrame,
    project_name_column: str,
    project_success_column: str,
    action_name_column: str,
    action_cost_column: str,
    feature_name_column: str,
    baseline_project: str,
    adjust_for_baseline: bool = True,
) -> "ProjectProblem":
    """Create a problem from project, action and feature tables.

    Parameters
    ----------
    projects : pandas.DataFrame
        One row per project, with a name column, a success probability
        column, a boolean column per action (membership) and a numeric column
        per feature holding the persistence probability if the project
        succeeds. Missing values mean "not required" and "not affected".
    actions : pandas.DataFrame
        One row per action with a name and cost column.
    features : pandas.DataFrame
        One row per feature with a name column.
    project_name_column, project_success_column : str
        Column names in ``projects``.
    action_name_column, action_cost_column : str
        Column names in ``actions``.
    feature_name_column : str
        Column name in ``features``.
    baseline_project : str
        Identifier of the baseline "do nothing" project.
    adjust_for_baseline : bool
        See :func:`project_prioritization.persistence.effective_persistence`.

    Returns
    -------
    ProjectProblem
        Problem with no objective, decisions, targets or solver yet.

    Raises
    ------
    DomainError
        If columns are missing or the data are invalid.
    """
    for table, columns, label in (
        (projects, [project_name_column, project_success_column], "projects"),
        (actions, [action_name_column, action_cost_column], "actions"),
        (features, [feature_name_column], "features"),
    ):
        missing = [c for c in columns if c not in table.columns]
        if missing:
            raise DomainError(f"The {label} table is missing columns: {missing}.")

    action_ids = tuple(str(a) for a in actions[action_name_column])
    project_ids = tuple(str(p) for p in projects[project_name_column])
    feature_ids = tuple(str(f) for f in features[feature_name_column])
    for ids, label in ((action_ids, "action"), (feature_ids, "feature")):
        missing = [i for i in ids if i not in projects.columns]
        if missing:
            raise DomainError(f"The projects table is missing {label} columns: {missing}.")
    if baseline_project not in project_ids:
        raise DomainError(f"Baseline project {baseline_project!r} is not in the projects table.")

    data = ProjectData(
        action_ids=action_ids,
        action_costs=actions[action_cost_column].to_numpy(dtype=float),
        project_ids=project_ids,
        project_success=projects[project_success_column].to_numpy(dtype=float),
        feature_ids=feature_ids,
        pa_matrix=_numeric_block(projects, action_ids),
        benefit=_numeric_block(projects, feature_ids).T,
        baseline_project=project_ids.index(baseline_project),
        adjust_for_baseline=adjust_for_baseline,
        action_table=actions.reset_index(drop=True),
        feature_table=features.reset_index(drop=True),
    )
    logger.info(
        "Built problem with %d actions, %d projects and %d features",
        data.number_of_actions,
        data.number_of_projects,
        data.number_of_features,
    )
    return ProjectProblem(data)


@dataclass(frozen=True, eq=False)
class ProjectProblem:
    """Immutable project prioritization problem.

    Parameters
    ----------
    data : ProjectData
        Validated input data.
    objective : Objective, optional
        Objective slot, filled by the ``add_*_objective`` methods.
    decisions : DecisionType, optional
        Decision slot, filled by ``add_binary_decisions`` or
        ``add_proportion_decisions``.
    targets : AbsoluteTargets or RelativeTargets, optional
        Persistence targets.
    weights : np.ndarray, optional
        Feature weights; objectives that do not use weights ignore them.
    locked_in, locked_out : frozenset[int]
        Positions of actions that must or must not be funded.
    solver : optional
        Solver slot; the first available exact backend is used when empty.
    """

    data: ProjectData
    objective: Objective | None = None
    decisions: DecisionType | None = None
    targets: AbsoluteTargets | RelativeTargets | None = None
    weights: np.ndarray | None = None
    locked_in: frozenset[int] = frozenset()
    locked_out: frozenset[int] = frozenset()
    solver: Any = None

    def __repr__(self) -> str:
        objective = self.objective.name if self.objective is not None else "none"
        decisions = self.decisions.value if self.decisions is not None else "none"
        targets = self.targets.name if self.targets is not None else "none"
        return (
            f"ProjectProblem(actions={self.number_of_actions}, projects={self.number_of_projects}, "
            f"features={self.number_of_features}, objective={objective!r}, decisions={decisions!r}, "
            f"targets={targets!r}, locked_in={len(self.locked_in)}, locked_out={len(self.locked_out)})"
        )

    @property
    def number_of_actions(self) -> int:
        return self.data.number_of_actions

    @property
    def number_of_projects(self) -> int:
        return self.data.number_of_projects

    @property
    def number_of_features(self) -> int:
        return self.data.number_of_features

    @property
    def action_ids(self) -> tuple[str, ...]:
        return self.data.action_ids

    @property
    def project_ids(self) -> tuple[str, ...]:
        return self.data.project_ids

    @property
    def feature_ids(self) -> tuple[str, ...]:
        return self.data.feature_ids

    @property
    def action_costs(self) -> np.ndarray:
        return self.data.action_costs

    @property
    def epf_matrix(self) -> np.ndarray:
        return self.data.epf_matrix

    def _require_objective(self) -> Objective:
        if self.objective is None:
            raise ConfigurationError("Problem has no objective; add one with an add_*_objective method.")
        return self.objective

    def feature_weights(self) -> np.ndarray:
        """Weights used by the objective (NaN where weights do not apply)."""
        objective = self._require_objective()
        if self.weights is None or not objective.uses_weights:
            return objective.default_weights(self)
        return self.weights

    def feature_targets(self) -> np.ndarray | None:
        return None if self.targets is None else self.targets.output(self)

    def feature_tree(self) -> FeatureTree:
        return self._require_objective().feature_tree(self)

    def _with_objective(self, objective: Objective) -> "ProjectProblem":
        if self.weights is not None and not objective.uses_weights:
            logger.warning("Feature weights are ignored by the %s", objective.name.lower())
        return replace(self, objective=objective)

    def add_max_richness_objective(self, budget: float) -> "ProjectProblem":
        return self._with_objective(MaxRichnessObjective(budget))

    def add_max_targets_met_objective(self, budget: float) -> "ProjectProblem":
        return self._with_objective(MaxTargetsMetObjective(budget))

    def add_max_phylo_div_objective(self, budget: float, tree: FeatureTree | None = None) -> "ProjectProblem":
        if tree is not None:
            tree.subset(self.feature_ids)
        return self._with_objective(MaxPhyloDivObjective(budget, tree))

    def add_min_set_objective(self) -> "ProjectProblem":
        return self._with_objective(MinSetObjective())

    def add_binary_decisions(self) -> "ProjectProblem":
        return replace(self, decisions=DecisionType.BINARY)

    def add_proportion_decisions(self) -> "ProjectProblem":
        return replace(self, decisions=DecisionType.PROPORTION)

    def add_absolute_targets(self, targets: Any) -> "ProjectProblem":
        """Set persistence targets directly as probabilities."""
        return replace(self, targets=make_targets(self.data, targets, relative=False))

    def add_relative_targets(self, targets: Any) -> "ProjectProblem":
        """Set targets as a fraction of the gap between baseline and best persistence."""
        return replace(self, targets=make_targets(self.data, targets, relative=True))

    def add_feature_weights(self, weights: Any) -> "ProjectProblem":
        values = feature_values(self.data, weights, "weights")
        if not np.all(np.isfinite(values)) or np.any(values < 0):
            raise DomainError("Feature weights must be finite and non-negative.")
        if self.objective is not None and not self.objective.uses_weights:
            logger.warning("Feature weights are ignored by the %s", self.objective.name.lower())
        return replace(self, weights=values)

    def add_locked_in_constraints(self, actions: Any) -> "ProjectProblem":
        locked_in = self.locked_in | action_indices(self.data, actions)
        check_locks(locked_in, self.locked_out, self.data)
        return replace(self, locked_in=locked_in)

    def add_locked_out_constraints(self, actions: Any) -> "ProjectProblem":
        locked_out = self.locked_out | action_indices(self.data, actions)
        check_locks(self.locked_in, locked_out, self.data)
        return replace(self, locked_out=locked_out)

    def remove_locked_in_constraints(self, actions: Any) -> "ProjectProblem":
        return replace(self, locked_in=self.locked_in - action_indices(self.data, actions))

    def add_solver(self, solver: Any) -> "ProjectProblem":
        return replace(self, solver=solver)

    def add_exact_solver(
        self,
        backend: str | None = None,
        gap: float = 0.0,
        time_limit: float | None = None,
        number_solutions: int = 1,
        verbose: bool = False,
        threads: int = 1,
    ) -> "ProjectProblem":
        """Solve with an exact backend from the registry (``"cbc"``, ``"highs"``)."""
        return self.add_solver(
            ExactSolver(
                backend=backend,
                gap=gap,
                time_limit=time_limit,
                number_solutions=number_solutions,
                verbose=verbose,
                threads=threads,
            )
        )

    def add_heuristic_solver(self) -> "ProjectProblem":
        return self.add_solver(HeuristicSolver())

    def add_random_solver(
        self, number_solutions: int = 10, seed: int | None = None, n_workers: int = 1
    ) -> "ProjectProblem":
        return self.add_solver(RandomSolver(number_solutions=number_solutions, seed=seed, n_workers=n_workers))
