"""Unit tests for the backward greedy heuristic."""

import pytest

from project_prioritization import HeuristicSolver, InfeasibleError, solve
from project_prioritization.solver import SolveStatus


def heuristic(problem, budget):
    return problem.add_max_richness_objective(budget).add_binary_decisions().add_heuristic_solver()


def exact(problem, budget):
    return problem.add_max_richness_objective(budget).add_binary_decisions().add_exact_solver()


class TestHeuristicSolver:
    def test_status(self, scenario_problem):
        table = solve(heuristic(scenario_problem, 20))
        assert table["status"].tolist() == ["HEURISTIC"]

    def test_removes_smallest_loss_first(self, scenario_problem):
        # dropping a1 loses 0.8, dropping a2 loses 1.4
        table = solve(heuristic(scenario_problem, 20))
        assert table["a1"].iloc[0] == 0 and table["a2"].iloc[0] == 1
        assert table["obj"].iloc[0] == pytest.approx(1.7)

    def test_keeps_baseline(self, scenario_problem):
        table = solve(heuristic(scenario_problem, 0))
        assert table[["baseline_action", "a1", "a2"]].iloc[0].tolist() == [1, 0, 0]

    def test_zero_baseline_feature_at_budget_0(self, zero_baseline_problem, registry, caplog):
        with caplog.at_level("WARNING"):
            table = solve(heuristic(zero_baseline_problem, 0))
        optimum = solve(exact(zero_baseline_problem, 0), registry)
        assert table["status"].tolist() == ["HEURISTIC"]
        assert table["obj"].iloc[0] == pytest.approx(optimum["obj"].iloc[0])
        assert table["obj"].iloc[0] == pytest.approx(0.2)
        assert "do not satisfy" not in caplog.text

    def test_unallocated_features_are_infeasible(self, scenario_problem):
        # without the baseline, 10 cannot fund a project for every feature
        problem = heuristic(scenario_problem, 10).add_locked_out_constraints(["baseline_action"])
        results = HeuristicSolver()(problem)
        assert results[0]["status"] is SolveStatus.INFEASIBLE
        assert results[0]["x"] is None

    def test_respects_budget(self, greedy_trap_problem):
        for budget in (0, 4.5, 6, 9, 10, 10.5, 15):
            table = solve(heuristic(greedy_trap_problem, budget))
            assert table["cost"].iloc[0] <= budget

    @pytest.mark.parametrize("budget", [0, 10, 20, 30])
    def test_never_beats_exact(self, scenario_problem, registry, budget):
        greedy = solve(heuristic(scenario_problem, budget))["obj"].iloc[0]
        optimum = solve(exact(scenario_problem, budget), registry)["obj"].iloc[0]
        assert greedy <= optimum + 1e-9

    def test_misses_optimum(self, greedy_trap_problem, registry):
        greedy = solve(heuristic(greedy_trap_problem, 10))
        optimum = solve(exact(greedy_trap_problem, 10), registry)
        assert greedy["obj"].iloc[0] == pytest.approx(1.02)
        assert optimum["obj"].iloc[0] == pytest.approx(1.21)

    def test_larger_budget_can_do_worse_than_smaller_optimum(self, greedy_trap_problem, registry):
        # the removal trajectory does not backtrack, so spending more can
        # end below what an optimal portfolio achieves with less
        greedy = solve(heuristic(greedy_trap_problem, 10))["obj"].iloc[0]
        smaller = solve(exact(greedy_trap_problem, 9), registry)["obj"].iloc[0]
        assert greedy < smaller

    def test_tie_removes_higher_cost(self, scenario_problem):
        # dropping either action loses 1.4 once F1 is weighted 1.75
        problem = heuristic(scenario_problem, 20).add_feature_weights({"F1": 1.75, "F2": 1.0, "F3": 1.0})
        table = solve(problem)
        assert table[["a1", "a2"]].iloc[0].tolist() == [1, 0]

    def test_tie_on_cost_removes_lowest_index(self, greedy_trap_problem):
        table = solve(heuristic(greedy_trap_problem, 11))
        assert table[["a", "b", "c"]].iloc[0].tolist() == [1, 0, 1]

    def test_locked_in_kept(self, scenario_problem):
        table = solve(heuristic(scenario_problem, 10).add_locked_in_constraints(["a1"]))
        assert table["a1"].iloc[0] == 1
        assert table["obj"].iloc[0] == pytest.approx(1.1)

    def test_locked_in_over_budget_is_infeasible(self, scenario_problem):
        problem = heuristic(scenario_problem, 5).add_locked_in_constraints(["a1"])
        results = HeuristicSolver()(problem)
        assert results[0]["status"] is SolveStatus.INFEASIBLE
        with pytest.raises(InfeasibleError):
            solve(problem)


class TestHeuristicMinSet:
    def test_drops_expensive_actions(self, scenario_problem):
        problem = (
            scenario_problem.add_min_set_objective()
            .add_absolute_targets({"F1": 0.9, "F2": 0.1, "F3": 0.1})
            .add_binary_decisions()
            .add_heuristic_solver()
        )
        table = solve(problem)
        assert table["cost"].iloc[0] == pytest.approx(10.0)
        assert table["a2"].iloc[0] == 0

    def test_unreachable_targets(self, scenario_problem):
        problem = (
            scenario_problem.add_min_set_objective()
            .add_absolute_targets(0.99)
            .add_binary_decisions()
            .add_heuristic_solver()
        )
        with pytest.raises(InfeasibleError, match="INFEASIBLE"):
            solve(problem)
