"""Conservation project prioritization.

Build a problem from project, action and feature tables, choose an
objective, decisions, targets and constraints, then solve it exactly, with
the backward greedy heuristic, or with random portfolios.
"""

from project_prioritization.adapter import PrioritizeComponent
from project_prioritization.errors import (
    ConfigurationError,
    DomainError,
    InfeasibleError,
    SolverUnavailableError,
)
from project_prioritization.evaluate import evaluate, evaluate_solutions, project_cost_effectiveness
from project_prioritization.models import PrioritizeResult
from project_prioritization.objective import ObjectiveKind, encode
from project_prioritization.persistence import effective_persistence
from project_prioritization.problem import ProjectProblem, build_problem
from project_prioritization.program import Program
from project_prioritization.replacement import replacement_costs
from project_prioritization.solution import solution_actions, solution_features, solution_projects
from project_prioritization.solve import solve
from project_prioritization.solver import (
    ExactSolver,
    HeuristicSolver,
    RandomSolver,
    SolverRegistry,
    SolveStatus,
    default_registry,
)
from project_prioritization.tree import FeatureTree

__all__ = [
    "ConfigurationError",
    "DomainError",
    "ExactSolver",
    "FeatureTree",
    "HeuristicSolver",
    "InfeasibleError",
    "ObjectiveKind",
    "PrioritizeComponent",
    "PrioritizeResult",
    "Program",
    "ProjectProblem",
    "RandomSolver",
    "SolveStatus",
    "SolverRegistry",
    "SolverUnavailableError",
    "build_problem",
    "default_registry",
    "effective_persistence",
    "encode",
    "evaluate",
    "evaluate_solutions",
    "project_cost_effectiveness",
    "replacement_costs",
    "solution_actions",
    "solution_features",
    "solution_projects",
    "solve",
]
