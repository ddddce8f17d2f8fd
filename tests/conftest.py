"""Shared fixtures for project prioritization tests."""

import numpy as np
import pandas as pd
import pytest

from project_prioritization import build_problem
from project_prioritization.solver import SolverRegistry, SolveStatus, default_registry

BUILD_COLUMNS = {
    "project_name_column": "name",
    "project_success_column": "success",
    "action_name_column": "name",
    "action_cost_column": "cost",
    "feature_name_column": "name",
    "baseline_project": "baseline",
}


@pytest.fixture()
def scenario_tables():
    """Three features, a baseline and two projects with disjoint actions.

    Baseline persistence is 0.1 for every feature; ``p1`` (action ``a1``,
    cost 10) raises F1 to 0.9 and ``p2`` (action ``a2``, cost 20) raises F2
    and F3 to 0.8.
    """
    projects = pd.DataFrame(
        {
            "name": ["baseline", "p1", "p2"],
            "success": [1.0, 1.0, 1.0],
            "baseline_action": [True, False, False],
            "a1": [False, True, False],
            "a2": [False, False, True],
            "F1": [0.1, 0.9, np.nan],
            "F2": [0.1, np.nan, 0.8],
            "F3": [0.1, np.nan, 0.8],
        }
    )
    actions = pd.DataFrame({"name": ["baseline_action", "a1", "a2"], "cost": [0.0, 10.0, 20.0]})
    features = pd.DataFrame({"name": ["F1", "F2", "F3"], "weight": [5.0, 1.0, 1.0]})
    return projects, actions, features


@pytest.fixture()
def scenario_problem(scenario_tables):
    """Scenario problem without baseline adjustment and without any slots."""
    return build_problem(*scenario_tables, **BUILD_COLUMNS, adjust_for_baseline=False)


@pytest.fixture()
def zero_baseline_problem(scenario_tables):
    """Scenario problem where F1 does not persist without management."""
    projects, actions, features = scenario_tables
    projects = projects.copy()
    projects.loc[0, "F1"] = 0.0
    return build_problem(projects, actions, features, **BUILD_COLUMNS, adjust_for_baseline=False)


@pytest.fixture()
def greedy_trap_problem():
    """Problem where backward greedy removal misses the optimum.

    Action ``a`` (cost 6) raises F1 to 1.0; ``b`` and ``c`` (cost 4.5 each)
    raise F2 and F3 to 0.6. Baseline persistence is 0.01.
    """
    projects = pd.DataFrame(
        {
            "name": ["baseline", "pa", "pb", "pc"],
            "success": [1.0, 1.0, 1.0, 1.0],
            "baseline_action": [True, False, False, False],
            "a": [False, True, False, False],
            "b": [False, False, True, False],
            "c": [False, False, False, True],
            "F1": [0.01, 1.0, 0.0, 0.0],
            "F2": [0.01, 0.0, 0.6, 0.0],
            "F3": [0.01, 0.0, 0.0, 0.6],
        }
    )
    actions = pd.DataFrame({"name": ["baseline_action", "a", "b", "c"], "cost": [0.0, 6.0, 4.5, 4.5]})
    features = pd.DataFrame({"name": ["F1", "F2", "F3"]})
    return build_problem(projects, actions, features, **BUILD_COLUMNS, adjust_for_baseline=False)


@pytest.fixture()
def registry():
    """Default registry (CBC, then HiGHS)."""
    return default_registry()


def make_fake_backend(status=SolveStatus.OPTIMAL, available=True, name="fake"):
    """Create a backend class that returns a fixed status.

    With a solution status, the returned vector is the lower bound of every
    variable, so only locked in actions are funded.
    """

    class FakeBackend:
        calls = 0
        last_params = None

        def __init__(self, gap=0.0, time_limit=None, verbose=False, threads=1):
            type(self).last_params = {"gap": gap, "time_limit": time_limit, "verbose": verbose, "threads": threads}

        @classmethod
        def available(cls):
            return available

        def __call__(self, program):
            type(self).calls += 1
            if not status.has_solution:
                return [{"status": status, "x": None, "objective": None, "runtime": 0.0}]
            x = program.lb.copy()
            return [{"status": status, "x": x, "objective": float(program.obj @ x), "runtime": 0.0}]

    FakeBackend.name = name
    return FakeBackend


@pytest.fixture()
def fake_registry():
    """Factory for a registry holding a single fake backend."""

    def _make(status=SolveStatus.OPTIMAL, available=True):
        backend = make_fake_backend(status, available)
        registry = SolverRegistry()
        registry.register(backend)
        return registry, backend

    return _make
