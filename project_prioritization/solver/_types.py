"""Type definitions for solver backends, solvers and their results."""

from enum import Enum
from typing import TYPE_CHECKING, Protocol, TypedDict

import numpy as np

from project_prioritization.program import Program

if TYPE_CHECKING:
    from project_prioritization.problem import ProjectProblem
    from project_prioritization.solver.registry import SolverRegistry


class SolveStatus(str, Enum):
    """Termination status of a solve."""

    OPTIMAL = "OPTIMAL"
    INFEASIBLE = "INFEASIBLE"
    SUBOPTIMAL_TIMEOUT = "SUBOPTIMAL_TIMEOUT"
    NO_SOLUTION = "NO_SOLUTION"
    HEURISTIC = "HEURISTIC"
    RANDOM = "RANDOM"

    @property
    def has_solution(self) -> bool:
        return self not in (SolveStatus.INFEASIBLE, SolveStatus.NO_SOLUTION)


class SolverResult(TypedDict):
    """Common output contract for backends and solvers.

    Parameters
    ----------
    status : SolveStatus
        Termination status.
    x : np.ndarray | None
        Variable values (backends) or action funding values (solvers), or
        ``None`` when no solution was found.
    objective : float | None
        Objective value reported for ``x``.
    runtime : float
        Wall-clock seconds spent solving.
    """

    status: SolveStatus
    x: np.ndarray | None
    objective: float | None
    runtime: float


class Backend(Protocol):
    """Protocol for exact solver backends.

    Backends are constructed with ``gap``, ``time_limit``, ``verbose`` and
    ``threads`` and translate a :class:`Program` into their native call.
    """

    name: str

    @classmethod
    def available(cls) -> bool: ...

    def __call__(self, program: Program) -> list[SolverResult]: ...


class Solver(Protocol):
    """Protocol for problem solvers.

    Implementations return one result per solution, with ``x`` holding the
    action funding values.
    """

    name: str

    def __call__(self, problem: "ProjectProblem", registry: "SolverRegistry | None" = None) -> list[SolverResult]: ...
