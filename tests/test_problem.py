"""Unit tests for problem construction, targets, weights and locks."""

import numpy as np
import pandas as pd
import pytest

from project_prioritization import ConfigurationError, DomainError, FeatureTree, build_problem
from project_prioritization.program import DecisionType

from conftest import BUILD_COLUMNS


class TestBuildProblem:
    def test_dimensions(self, scenario_problem):
        assert scenario_problem.number_of_actions == 3
        assert scenario_problem.number_of_projects == 3
        assert scenario_problem.number_of_features == 3
        assert scenario_problem.data.baseline_action == 0

    def test_missing_benefit_is_zero(self, scenario_problem):
        q = scenario_problem.epf_matrix
        assert q[0, 2] == 0.0
        assert q[1, 1] == 0.0
        assert q[0, 1] == pytest.approx(0.9)

    def test_baseline_adjustment(self, scenario_tables):
        problem = build_problem(*scenario_tables, **BUILD_COLUMNS)
        assert problem.epf_matrix[0, 1] == pytest.approx(0.9 + 0.1 * 0.1)
        assert problem.epf_matrix[0, 0] == pytest.approx(0.1)

    def test_slots_start_empty(self, scenario_problem):
        assert scenario_problem.objective is None
        assert scenario_problem.decisions is None
        assert scenario_problem.solver is None
        assert "objective='none'" in repr(scenario_problem)

    def test_negative_cost_raises(self, scenario_tables):
        projects, actions, features = scenario_tables
        actions = actions.assign(cost=[0.0, -1.0, 20.0])
        with pytest.raises(DomainError, match="non-negative"):
            build_problem(projects, actions, features, **BUILD_COLUMNS)

    def test_probability_out_of_range_raises(self, scenario_tables):
        projects, actions, features = scenario_tables
        projects = projects.assign(success=[1.0, 1.5, 1.0])
        with pytest.raises(DomainError, match="between 0 and 1"):
            build_problem(projects, actions, features, **BUILD_COLUMNS)

    def test_missing_action_column_raises(self, scenario_tables):
        projects, actions, features = scenario_tables
        with pytest.raises(DomainError, match="missing action columns"):
            build_problem(projects.drop(columns="a2"), actions, features, **BUILD_COLUMNS)

    def test_unknown_baseline_raises(self, scenario_tables):
        columns = {**BUILD_COLUMNS, "baseline_project": "nothing"}
        with pytest.raises(DomainError, match="Baseline project"):
            build_problem(*scenario_tables, **columns)

    def test_baseline_with_cost_raises(self, scenario_tables):
        projects, actions, features = scenario_tables
        actions = actions.assign(cost=[1.0, 10.0, 20.0])
        with pytest.raises(DomainError, match="zero cost"):
            build_problem(projects, actions, features, **BUILD_COLUMNS)

    def test_project_without_actions_raises(self, scenario_tables):
        projects, actions, features = scenario_tables
        projects = projects.assign(a2=[False, False, False])
        with pytest.raises(DomainError, match="do not contain any actions"):
            build_problem(projects, actions, features, **BUILD_COLUMNS)

    def test_reserved_identifier_raises(self, scenario_tables):
        projects, actions, features = scenario_tables
        projects = projects.rename(columns={"F3": "cost"})
        features = pd.DataFrame({"name": ["F1", "F2", "cost"]})
        with pytest.raises(DomainError, match="reserved"):
            build_problem(projects, actions, features, **BUILD_COLUMNS)


class TestFluentSlots:
    def test_add_returns_new_problem(self, scenario_problem):
        problem = scenario_problem.add_max_richness_objective(10)
        assert problem is not scenario_problem
        assert scenario_problem.objective is None
        assert problem.objective.budget == 10

    def test_decisions(self, scenario_problem):
        assert scenario_problem.add_binary_decisions().decisions is DecisionType.BINARY
        assert scenario_problem.add_proportion_decisions().decisions is DecisionType.PROPORTION

    def test_negative_budget_raises(self, scenario_problem):
        with pytest.raises(DomainError, match="budget"):
            scenario_problem.add_max_richness_objective(-1)

    def test_phylo_tree_must_match_features(self, scenario_problem):
        tree = FeatureTree.star(["F1", "F2"])
        with pytest.raises(DomainError, match="must match"):
            scenario_problem.add_max_phylo_div_objective(10, tree)


class TestTargets:
    def test_absolute_scalar(self, scenario_problem):
        problem = scenario_problem.add_absolute_targets(0.5)
        np.testing.assert_allclose(problem.feature_targets(), 0.5)

    def test_absolute_mapping(self, scenario_problem):
        problem = scenario_problem.add_absolute_targets({"F1": 0.9, "F2": 0.1, "F3": 0.2})
        np.testing.assert_allclose(problem.feature_targets(), [0.9, 0.1, 0.2])

    def test_absolute_column(self, scenario_tables):
        projects, actions, features = scenario_tables
        features = features.assign(target=[0.3, 0.4, 0.5])
        problem = build_problem(projects, actions, features, **BUILD_COLUMNS).add_absolute_targets("target")
        np.testing.assert_allclose(problem.feature_targets(), [0.3, 0.4, 0.5])

    def test_relative(self, scenario_problem):
        problem = scenario_problem.add_relative_targets(0.5)
        np.testing.assert_allclose(problem.feature_targets(), [0.5, 0.45, 0.45])

    def test_out_of_range_raises(self, scenario_problem):
        with pytest.raises(DomainError, match="between 0 and 1"):
            scenario_problem.add_absolute_targets(1.2)

    def test_unknown_feature_raises(self, scenario_problem):
        with pytest.raises(DomainError, match="Unknown features"):
            scenario_problem.add_absolute_targets({"F1": 0.5, "F2": 0.5, "F3": 0.5, "F9": 0.5})

    def test_wrong_length_raises(self, scenario_problem):
        with pytest.raises(DomainError, match="one value per feature"):
            scenario_problem.add_absolute_targets([0.5, 0.5])


class TestWeights:
    def test_default_weights(self, scenario_problem):
        problem = scenario_problem.add_max_richness_objective(10)
        np.testing.assert_allclose(problem.feature_weights(), 1.0)

    def test_custom_weights_from_column(self, scenario_problem):
        problem = scenario_problem.add_max_richness_objective(10).add_feature_weights("weight")
        np.testing.assert_allclose(problem.feature_weights(), [5.0, 1.0, 1.0])

    def test_min_set_weights_not_applicable(self, scenario_problem, caplog):
        with caplog.at_level("WARNING"):
            problem = scenario_problem.add_feature_weights("weight").add_min_set_objective()
        assert np.all(np.isnan(problem.feature_weights()))
        assert "ignored" in caplog.text

    def test_negative_weights_raise(self, scenario_problem):
        with pytest.raises(DomainError, match="non-negative"):
            scenario_problem.add_feature_weights(-1.0)

    def test_weights_need_objective(self, scenario_problem):
        with pytest.raises(ConfigurationError, match="no objective"):
            scenario_problem.feature_weights()


class TestLocks:
    def test_lock_by_id(self, scenario_problem):
        problem = scenario_problem.add_locked_in_constraints(["a1"])
        assert problem.locked_in == frozenset({1})

    def test_lock_by_mask_accumulates(self, scenario_problem):
        problem = scenario_problem.add_locked_out_constraints([False, True, False])
        problem = problem.add_locked_out_constraints("a2")
        assert problem.locked_out == frozenset({1, 2})

    def test_lock_by_position(self, scenario_problem):
        assert scenario_problem.add_locked_in_constraints(2).locked_in == frozenset({2})

    def test_lock_by_column(self, scenario_tables):
        projects, actions, features = scenario_tables
        actions = actions.assign(keep=[False, True, False])
        problem = build_problem(projects, actions, features, **BUILD_COLUMNS).add_locked_in_constraints("keep")
        assert problem.locked_in == frozenset({1})

    def test_conflict_raises(self, scenario_problem):
        problem = scenario_problem.add_locked_in_constraints(["a1"])
        with pytest.raises(DomainError, match="both locked in and locked out"):
            problem.add_locked_out_constraints(["a1"])

    def test_remove_locked_in(self, scenario_problem):
        problem = scenario_problem.add_locked_in_constraints(["a1", "a2"]).remove_locked_in_constraints(["a1"])
        assert problem.locked_in == frozenset({2})

    def test_unknown_action_raises(self, scenario_problem):
        with pytest.raises(DomainError, match="Unknown actions"):
            scenario_problem.add_locked_in_constraints(["a9"])
