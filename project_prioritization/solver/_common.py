"""Shared utilities for solvers."""

from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import TypeVar

import numpy as np

from project_prioritization.solver._types import SolveStatus, SolverResult

T = TypeVar("T")
R = TypeVar("R")


def empty_solver_result(status: SolveStatus, runtime: float = 0.0) -> SolverResult:
    """Build a ``SolverResult`` with no solution."""
    return {"status": status, "x": None, "objective": None, "runtime": runtime}


def fixed_actions(problem) -> np.ndarray:
    """Starting vector for the constructive solvers.

    Locked in actions are funded, and so is the baseline action unless it is
    locked out.
    """
    x = np.zeros(problem.number_of_actions)
    if problem.data.baseline_action not in problem.locked_out:
        x[problem.data.baseline_action] = 1.0
    x[sorted(problem.locked_in)] = 1.0
    return x


def candidate_actions(problem) -> np.ndarray:
    """Actions the constructive solvers may add or remove, in index order."""
    excluded = set(problem.locked_in) | set(problem.locked_out) | {problem.data.baseline_action}
    return np.array([i for i in range(problem.number_of_actions) if i not in excluded], dtype=int)


def parallel_map(func: Callable[[T], R], items: Sequence[T], n_workers: int = 1) -> list[R]:
    """Apply ``func`` to every item, preserving order.

    Items are independent units of work. With more than one worker they are
    dispatched to a thread pool; exceptions raised by ``func`` propagate.
    """
    if n_workers <= 1 or len(items) <= 1:
        return [func(item) for item in items]
    results: list[R | None] = [None] * len(items)
    with ThreadPoolExecutor(max_workers=n_workers) as executor:
        future_to_index = {executor.submit(func, item): k for k, item in enumerate(items)}
        for future in as_completed(future_to_index):
            results[future_to_index[future]] = future.result()
    return results
