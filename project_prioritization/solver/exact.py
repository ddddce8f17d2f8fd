"""Exact solver: encode the problem and hand it to a registered backend."""

import logging

import numpy as np
from scipy import sparse

from project_prioritization.objective import encode
from project_prioritization.parameters import binary_parameter, integer_parameter, numeric_parameter
from project_prioritization.program import Program
from project_prioritization.solver._types import SolverResult
from project_prioritization.solver.registry import SolverRegistry, default_registry

logger = logging.getLogger(__name__)


def exclude_solution(program: Program, x: np.ndarray, pool: int) -> Program:
    """Append a no-good cut so that the action vector ``x`` cannot recur.

    ``sum_{i in S1} X_i - sum_{i in S0} X_i <= |S1| - 1`` where ``S1`` and
    ``S0`` are the funded and unfunded actions of ``x``.
    """
    funded = np.round(x[: program.number_of_actions]) > 0.5
    row = np.zeros(program.number_of_variables)
    row[: program.number_of_actions] = np.where(funded, 1.0, -1.0)
    return program.with_rows(sparse.csr_matrix(row), ["<="], [funded.sum() - 1.0], [f"pool[{pool}]"])


class ExactSolver:
    """Solve a problem to optimality (or a gap) with an exact backend.

    Parameters
    ----------
    backend : str, optional
        Registry name of the backend (``"cbc"`` or ``"highs"``). Defaults to
        the first available backend.
    gap : float
        Relative optimality gap.
    time_limit : float, optional
        Wall-clock limit in seconds per solve.
    number_solutions : int
        Number of distinct solutions to collect. Values above one re-solve
        with a no-good cut after every solution; only binary decisions
        support more than one solution.
    verbose : bool
        Whether the backend prints its log.
    threads : int
        Number of backend threads.

    Raises
    ------
    DomainError
        If a parameter is out of range.
    """

    name = "exact"

    def __init__(
        self,
        backend: str | None = None,
        gap: float = 0.0,
        time_limit: float | None = None,
        number_solutions: int = 1,
        verbose: bool = False,
        threads: int = 1,
    ) -> None:
        self.backend = backend
        self.gap = numeric_parameter("gap", gap, lower_limit=0).get()
        self.time_limit = None if time_limit is None else numeric_parameter("time_limit", time_limit, 0).get()
        self.number_solutions = integer_parameter("number_solutions", number_solutions, lower_limit=1).get()
        self.verbose = bool(binary_parameter("verbose", verbose).get())
        self.threads = integer_parameter("threads", threads, lower_limit=1).get()

    def __call__(self, problem, registry: SolverRegistry | None = None) -> list[SolverResult]:
        """Solve ``problem``.

        Returns
        -------
        list[SolverResult]
            One result per solution found, with ``x`` holding the action
            values. A single result without ``x`` if nothing was found.
        """
        program = encode(problem)
        registry = registry or default_registry()
        backend = registry.create(
            self.backend,
            gap=self.gap,
            time_limit=self.time_limit,
            verbose=self.verbose,
            threads=self.threads,
        )
        binary = bool(np.all(program.vtype[: program.number_of_actions] == "B"))
        if self.number_solutions > 1 and not binary:
            logger.warning("Solution pools need binary decisions, returning a single solution")

        results: list[SolverResult] = []
        while len(results) < self.number_solutions:
            found = backend(program)
            usable = [r for r in found if r["status"].has_solution and r["x"] is not None]
            if not usable:
                if not results:
                    results.extend(found)
                break
            for result in usable:
                results.append({**result, "x": result["x"][: program.number_of_actions]})
                program = exclude_solution(program, result["x"], len(results))
            if not binary:
                break
        logger.info("Exact solver (%s) found %d solution(s)", backend.name, sum(r["x"] is not None for r in results))
        return results[: self.number_solutions]
