"""Tests for pipeline module."""

import math

import pytest

from src.statistical_analysis.pipeline import DataKind, Group, resolve_data_kind, run_statistical_tests

# Test data fixtures - add more here as needed
TWO_CONTINUOUS_GROUPS = [
    Group(name="treated", values=[5.1, 4.8, 6.0, 5.5, 5.9, 6.2]),
    Group(name="control", values=[3.9, 4.1, 4.4, 3.5, 4.0, 4.2]),
]

THREE_CONTINUOUS_GROUPS = [
    Group(name="a", values=[1.0, 1.2, 0.9, 1.1]),
    Group(name="b", values=[2.0, 2.1, 1.9, 2.2]),
    Group(name="c", values=[3.0, 2.9, 3.1, 3.3]),
]

CATEGORICAL_GROUPS = [
    Group(name="cluster 1", values=["T cell"] * 30 + ["B cell"] * 10),
    Group(name="cluster 2", values=["T cell"] * 12 + ["B cell"] * 28),
]


class TestRunStatisticalTests:
    def test_two_continuous_groups(self):
        results = run_statistical_tests(TWO_CONTINUOUS_GROUPS, "continuous")
        assert [r.test_name for r in results] == ["Welch's t-test", "Mann-Whitney U"]

    def test_three_continuous_groups(self):
        results = run_statistical_tests(THREE_CONTINUOUS_GROUPS, DataKind.CONTINUOUS)
        assert [r.test_name for r in results] == ["One-way ANOVA", "Kruskal-Wallis H"]
        assert all(r.p_value < 0.05 for r in results)

    def test_categorical_groups(self):
        results = run_statistical_tests(CATEGORICAL_GROUPS, "categorical")
        assert len(results) == 1
        assert results[0].test_name == "Chi-squared test"
        assert results[0].is_significant

    @pytest.mark.parametrize("alias", ["gene_expression", "continuous_obs", "CONTINUOUS"])
    def test_continuous_aliases(self, alias):
        results = run_statistical_tests(TWO_CONTINUOUS_GROUPS, alias)
        assert results[0].test_name == "Welch's t-test"

    def test_plain_sequences_accepted(self):
        results = run_statistical_tests([[1, 2, 3], [4, 5, 6]], "continuous")
        assert results[1].statistic == 0.0

    def test_non_finite_values_dropped(self):
        groups = [[1.0, float("nan"), 2.0, 3.0], [4.0, float("inf"), 5.0, 6.0]]
        results = run_statistical_tests(groups, "continuous")
        clean = run_statistical_tests([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]], "continuous")
        assert results[0].statistic == pytest.approx(clean[0].statistic)

    def test_missing_labels_dropped(self):
        groups = [["A", None, "B", ""], ["A", "B", None]]
        results = run_statistical_tests(groups, "categorical")
        assert results[0].statistic == pytest.approx(0.0)

    def test_nan_labels_dropped(self):
        results = run_statistical_tests([["a", "b", float("nan"), float("nan")], ["a", "b", "a", "b"]], "categorical")
        assert results[0].degrees_of_freedom == 1
        assert results[0].statistic == pytest.approx(0.0)

    def test_count_mappings_for_categorical(self):
        results = run_statistical_tests([{"A": 50, "B": 50}, {"A": 50, "B": 50}], "categorical")
        assert results[0].p_value == pytest.approx(1.0)

    @pytest.mark.parametrize(
        "groups",
        [
            [],
            [Group(name="only", values=[1, 2, 3])],
            [Group(name="a", values=[1, 2]), Group(name="b", values=[])],
            [Group(name="a", values=[1, 2]), Group(name="b", values=[float("nan")])],
        ],
    )
    def test_fewer_than_two_populated_groups(self, groups):
        results = run_statistical_tests(groups, "continuous")
        assert len(results) == 1
        assert results[0].test_name == "Statistical Analysis"
        assert results[0].interpretation == "Select at least 2 groups to compare"
        assert math.isnan(results[0].p_value)

    def test_empty_group_does_not_promote_to_k_group_tests(self):
        groups = TWO_CONTINUOUS_GROUPS + [Group(name="empty", values=[])]
        results = run_statistical_tests(groups, "continuous")
        assert results[0].test_name == "Welch's t-test"

    def test_unknown_data_kind(self):
        with pytest.raises(ValueError, match="Unknown data kind"):
            run_statistical_tests(TWO_CONTINUOUS_GROUPS, "spatial")


def test_resolve_data_kind_passthrough():
    assert resolve_data_kind(DataKind.CATEGORICAL) is DataKind.CATEGORICAL
    assert resolve_data_kind("categorical_obs") is DataKind.CATEGORICAL


def test_group_size():
    assert Group(name="g", values=[1, 2, 3]).size == 3
