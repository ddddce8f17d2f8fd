"""Read accessors for solution tables returned by :func:`solve`."""

import pandas as pd


def solution_actions(problem, solution: pd.DataFrame) -> pd.DataFrame:
    """Action funding columns of ``solution``."""
    return solution[list(problem.action_ids)]


def solution_projects(problem, solution: pd.DataFrame) -> pd.DataFrame:
    """Project funding columns of ``solution``."""
    return solution[list(problem.project_ids)]


def solution_features(problem, solution: pd.DataFrame) -> pd.DataFrame:
    """Feature persistence columns of ``solution``."""
    return solution[list(problem.feature_ids)]
