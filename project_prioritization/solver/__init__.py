"""Solvers for project prioritization problems.

Provides the exact solver (backed by a registry of third-party backends),
the backward greedy heuristic and the random solver, together with the
``SolverResult`` contract and ``SolveStatus`` values they share.
"""

from project_prioritization.solver._common import empty_solver_result, parallel_map
from project_prioritization.solver._types import Backend, Solver, SolverResult, SolveStatus
from project_prioritization.solver.backends import PulpCbcBackend, ScipyHighsBackend
from project_prioritization.solver.exact import ExactSolver
from project_prioritization.solver.heuristic import HeuristicSolver
from project_prioritization.solver.randomized import RandomSolver
from project_prioritization.solver.registry import SolverRegistry, default_registry

__all__ = [
    "Backend",
    "ExactSolver",
    "HeuristicSolver",
    "PulpCbcBackend",
    "RandomSolver",
    "ScipyHighsBackend",
    "SolveStatus",
    "Solver",
    "SolverRegistry",
    "SolverResult",
    "default_registry",
    "empty_solver_result",
    "parallel_map",
]
