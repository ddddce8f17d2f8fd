"""PRIORITIZE component: conservation project prioritization for the pipeline."""

import logging
from dataclasses import asdict
from typing import Any, Protocol

import pandas as pd

from project_prioritization.errors import InfeasibleError
from project_prioritization.models import PrioritizeResult
from project_prioritization.objective import ObjectiveKind
from project_prioritization.problem import build_problem
from project_prioritization.solve import solve
from project_prioritization.solver import SolverRegistry
from project_prioritization.tree import FeatureTree

logger = logging.getLogger(__name__)


class PipelineComponent(Protocol):
    """Structural interface for pipeline stage components."""

    def execute(self, event: dict) -> dict:
        """Process event and return result."""
        ...


def _to_tables(event: dict) -> tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame]:
    """Convert event records into project, action and feature tables.

    Parameters
    ----------
    event : dict
        Contains ``projects`` (dicts with ``project_id``, ``success``,
        ``actions`` and ``persistence``), ``actions`` (dicts with
        ``action_id`` and ``cost``) and ``features`` (dicts with
        ``feature_id``).

    Returns
    -------
    tuple[pandas.DataFrame, pandas.DataFrame, pandas.DataFrame]
        ``(projects, actions, features)`` tables for :func:`build_problem`.
    """
    actions = pd.DataFrame(event["actions"], columns=["action_id", "cost"])
    features = pd.DataFrame(event["features"])
    action_ids = [str(a) for a in actions["action_id"]]
    feature_ids = [str(f) for f in features["feature_id"]]

    rows: list[dict[str, Any]] = []
    for project in event["projects"]:
        row: dict[str, Any] = {"project_id": project["project_id"], "success": project["success"]}
        row.update({a: a in project["actions"] for a in action_ids})
        row.update({f: project.get("persistence", {}).get(f, 0.0) for f in feature_ids})
        rows.append(row)
    projects = pd.DataFrame(rows, columns=["project_id", "success", *action_ids, *feature_ids])
    return projects, actions, features


def _to_tree(tree: Any) -> FeatureTree | None:
    """Accept a ``FeatureTree`` or ``(parent, child, length)`` edge records."""
    if tree is None or isinstance(tree, FeatureTree):
        return tree
    return FeatureTree.from_edges((parent, child, float(length)) for parent, child, length in tree)


class PrioritizeComponent(PipelineComponent):
    """Select conservation actions for the impact engine orchestrator.

    Builds a problem from the event records, applies the requested objective
    and targets, and solves it with the configured solver.

    Parameters
    ----------
    solver : Solver, optional
        Solver to use. Defaults to the first available exact backend.
    registry : SolverRegistry, optional
        Exact solver backends.
    adjust_for_baseline : bool
        Whether failed projects fall back on baseline persistence.
    """

    def __init__(
        self,
        solver: Any = None,
        registry: SolverRegistry | None = None,
        adjust_for_baseline: bool = True,
    ) -> None:
        self._solver = solver
        self._registry = registry
        self.adjust_for_baseline = adjust_for_baseline

    def _problem(self, event: dict):
        projects, actions, features = _to_tables(event)
        problem = build_problem(
            projects,
            actions,
            features,
            project_name_column="project_id",
            project_success_column="success",
            action_name_column="action_id",
            action_cost_column="cost",
            feature_name_column="feature_id",
            baseline_project=event["baseline_project"],
            adjust_for_baseline=self.adjust_for_baseline,
        )
        kind = ObjectiveKind(event.get("objective", ObjectiveKind.MAX_RICHNESS))
        if kind is ObjectiveKind.MAX_RICHNESS:
            problem = problem.add_max_richness_objective(event["budget"])
        elif kind is ObjectiveKind.MAX_TARGETS_MET:
            problem = problem.add_max_targets_met_objective(event["budget"])
        elif kind is ObjectiveKind.MAX_PHYLO_DIV:
            problem = problem.add_max_phylo_div_objective(event["budget"], _to_tree(event.get("tree")))
        else:
            problem = problem.add_min_set_objective()
        if "targets" in event:
            problem = problem.add_absolute_targets(event["targets"])
        if "weights" in event:
            problem = problem.add_feature_weights(event["weights"])
        problem = problem.add_binary_decisions()
        if self._solver is not None:
            problem = problem.add_solver(self._solver)
        return problem

    def execute(self, event: dict) -> dict:
        """Run prioritization and return a ``PrioritizeResult`` dict with solver detail.

        Parameters
        ----------
        event : dict
            Must contain ``projects``, ``actions``, ``features`` and
            ``baseline_project``; ``budget`` unless the objective is
            ``min_set``. Optional ``objective`` (default ``max_richness``),
            ``targets``, ``weights`` and ``tree`` (a ``FeatureTree`` or a
            list of ``[parent, child, length]`` edges).

        Returns
        -------
        dict
            Serialized ``PrioritizeResult`` with ``selected_actions``,
            ``funded_projects``, ``feature_persistence``, ``total_cost`` and
            ``solver_detail``.
        """
        problem = self._problem(event)
        try:
            table = solve(problem, self._registry)
        except InfeasibleError as err:
            logger.warning("Solver returned non-optimal status: %s, returning empty selection", err.status)
            result = asdict(PrioritizeResult([], [], {}, 0.0))
            result["solver_detail"] = {"status": err.status, "objective_value": None}
            return result

        best = table.iloc[0]
        selected = [a for a in problem.action_ids if best[a] > 0.5]
        logger.info(
            "Prioritization complete: status=%s, selected=%d actions",
            best["status"],
            len(selected),
        )
        result = asdict(
            PrioritizeResult(
                selected_actions=selected,
                funded_projects=[p for p in problem.project_ids if best[p] > 0.5],
                feature_persistence={f: float(best[f]) for f in problem.feature_ids},
                total_cost=float(best["cost"]),
            )
        )
        result["solver_detail"] = {"status": best["status"], "objective_value": float(best["obj"])}
        return result
