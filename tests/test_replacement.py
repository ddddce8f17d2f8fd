"""Unit tests for replacement costs."""

import math

import numpy as np
import pytest

from project_prioritization import replacement_costs, solve


class TestReplacementCosts:
    @pytest.fixture()
    def richness(self, scenario_problem):
        return scenario_problem.add_max_richness_objective(30).add_binary_decisions()

    def test_columns(self, richness, registry):
        table = replacement_costs(richness, [1, 1, 1], registry)
        assert table.columns.tolist() == ["action", "cost", "obj", "rep_cost"]
        assert table["action"].tolist() == ["baseline_action", "a1", "a2"]

    def test_values(self, richness, registry):
        table = replacement_costs(richness, [1, 1, 1], registry).set_index("action")
        assert table.loc["a1", "obj"] == pytest.approx(1.7)
        assert table.loc["a1", "rep_cost"] == pytest.approx(0.8)
        assert table.loc["a2", "rep_cost"] == pytest.approx(1.4)
        assert table.loc["a2", "cost"] == pytest.approx(10.0)
        assert (table["rep_cost"] >= -1e-9).all()

    def test_unfunded_action_is_missing(self, scenario_problem, registry):
        problem = scenario_problem.add_max_richness_objective(10).add_binary_decisions()
        table = replacement_costs(problem, [1, 1, 0], registry).set_index("action")
        assert table.loc["a2", ["cost", "obj", "rep_cost"]].isna().all()
        assert table.loc["a1", "rep_cost"] == pytest.approx(1.1 - 0.3)

    def test_reference_table(self, richness, registry):
        solution = solve(richness, registry)
        from_table = replacement_costs(richness, solution, registry)
        from_vector = replacement_costs(richness, solution[["baseline_action", "a1", "a2"]].iloc[0], registry)
        np.testing.assert_allclose(from_table["rep_cost"], from_vector["rep_cost"])

    def test_parallel_matches_serial(self, richness, registry):
        serial = replacement_costs(richness, [1, 1, 1], registry)
        threaded = replacement_costs(richness, [1, 1, 1], registry, n_workers=3)
        np.testing.assert_allclose(serial["rep_cost"], threaded["rep_cost"])

    def test_min_set_infeasible_is_infinite(self, scenario_problem, registry):
        problem = (
            scenario_problem.add_min_set_objective()
            .add_absolute_targets({"F1": 0.9, "F2": 0.1, "F3": 0.1})
            .add_binary_decisions()
        )
        table = replacement_costs(problem, [1, 1, 0], registry).set_index("action")
        assert math.isinf(table.loc["a1", "rep_cost"])
        assert np.isnan(table.loc["a1", "cost"])
        assert np.isnan(table.loc["a2", "rep_cost"])
        # without the baseline, F2 and F3 need the second project
        assert table.loc["baseline_action", "rep_cost"] == pytest.approx(20.0)

    def test_locked_in_action_is_released(self, scenario_problem, registry):
        problem = (
            scenario_problem.add_max_richness_objective(30)
            .add_binary_decisions()
            .add_locked_in_constraints(["a1"])
        )
        table = replacement_costs(problem, [1, 1, 1], registry).set_index("action")
        assert table.loc["a1", "rep_cost"] == pytest.approx(0.8)

    def test_infinite_outside_min_set_warns(self, scenario_problem, registry, caplog):
        problem = scenario_problem.add_max_richness_objective(0).add_binary_decisions()
        with caplog.at_level("WARNING"):
            table = replacement_costs(problem, [1, 0, 0], registry).set_index("action")
        assert math.isinf(table.loc["baseline_action", "rep_cost"])
        assert "infeasible" in caplog.text

    def test_random_solver_infeasible_is_infinite(self, scenario_problem):
        problem = scenario_problem.add_max_richness_objective(10).add_binary_decisions().add_random_solver(20, seed=1)
        table = replacement_costs(problem, [1, 1, 0]).set_index("action")
        assert math.isinf(table.loc["baseline_action", "rep_cost"])
        assert table.loc["a1", "rep_cost"] == pytest.approx(1.1 - 0.3)

    def test_random_solver_uses_best_sample(self, greedy_trap_problem):
        # without b, a sample funds either a (1.02) or c (0.62), never both
        problem = greedy_trap_problem.add_max_richness_objective(10).add_binary_decisions().add_random_solver(20, seed=0)
        table = replacement_costs(problem, [1, 0, 1, 1]).set_index("action")
        assert table.loc["b", "obj"] == pytest.approx(1.02)
        assert table.loc["b", "rep_cost"] == pytest.approx(1.21 - 1.02)
