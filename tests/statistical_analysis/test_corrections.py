"""Tests for multiple-testing corrections and result helpers."""

import math

import pytest
from scipy import stats

from src.statistical_analysis.corrections import (
    apply_multiple_testing_correction,
    benjamini_hochberg,
    bonferroni_correction,
    compute_fold_change,
    confidence_interval,
)
from src.statistical_analysis.results import (
    TestResult,
    format_p_value,
    format_statistical_result,
    results_to_frame,
    significance_marker,
)


def _result(p_value):
    return TestResult(
        test_name="Welch's t-test",
        statistic=1.0,
        p_value=p_value,
        significance=significance_marker(p_value),
    )


class TestBenjaminiHochberg:
    def test_adjusted_values(self):
        out = benjamini_hochberg([0.01, 0.04, 0.03, 0.20])
        # sorted: 0.01*4/1=0.04, 0.03*4/2=0.06, 0.04*4/3=0.0533, 0.20*4/4=0.20
        assert out["adjusted_p_values"] == pytest.approx([0.04, 0.0533333, 0.0533333, 0.20])
        assert out["significant"] == [True, False, False, False]
        assert out["significant_count"] == 1
        assert out["threshold"] == pytest.approx(0.01)

    def test_monotone_in_raw_order(self):
        p_values = [0.001, 0.008, 0.039, 0.041, 0.042, 0.06, 0.074, 0.205, 0.212, 0.216]
        adjusted = benjamini_hochberg(p_values)["adjusted_p_values"]
        assert adjusted == sorted(adjusted)
        assert all(a >= p for a, p in zip(adjusted, p_values))

    def test_matches_reference(self):
        p_values = [0.002, 0.3, 0.04, 0.01, 0.9, 0.049]
        adjusted = benjamini_hochberg(p_values)["adjusted_p_values"]
        assert adjusted == pytest.approx(list(stats.false_discovery_control(p_values, method="bh")))

    def test_non_finite_values_left_out(self):
        out = benjamini_hochberg([0.01, float("nan"), 0.02])
        assert out["adjusted_p_values"][1] is None
        assert out["significant"][1] is False
        assert out["adjusted_p_values"][0] == pytest.approx(0.02)

    def test_empty(self):
        out = benjamini_hochberg([])
        assert out["adjusted_p_values"] == []
        assert out["threshold"] is None


class TestBonferroni:
    def test_adjusted_values_capped(self):
        out = bonferroni_correction([0.01, 0.3, 0.02])
        assert out["adjusted_p_values"] == pytest.approx([0.03, 0.9, 0.06])
        assert out["significant"] == [True, False, False]
        assert out["threshold"] == pytest.approx(0.05 / 3)

    def test_cap_at_one(self):
        assert bonferroni_correction([0.6, 0.7])["adjusted_p_values"] == [1.0, 1.0]


class TestApplyCorrection:
    def test_results_are_copies(self):
        results = [_result(0.01), _result(0.04)]
        corrected = apply_multiple_testing_correction(results, method="bonferroni")

        assert results[0].adjusted_p_value is None
        assert corrected[0].adjusted_p_value == pytest.approx(0.02)
        assert corrected[0].significant_after_correction is True
        assert corrected[1].significant_after_correction is False
        assert corrected[0].p_value == 0.01

    def test_unknown_method(self):
        with pytest.raises(ValueError, match="Unknown correction method"):
            apply_multiple_testing_correction([_result(0.1)], method="holm")

    def test_empty(self):
        assert apply_multiple_testing_correction([]) == []


class TestConfidenceInterval:
    def test_matches_normal_interval(self):
        values = [2.0, 4.0, 4.0, 5.0, 7.0, 9.0]
        ci = confidence_interval(values)
        se = stats.sem(values)
        assert ci["mean"] == pytest.approx(5.1666667)
        assert ci["se"] == pytest.approx(se)
        assert ci["lower"] == pytest.approx(ci["mean"] - 1.959964 * se, rel=1e-6)
        assert ci["upper"] == pytest.approx(ci["mean"] + 1.959964 * se, rel=1e-6)

    def test_single_value(self):
        ci = confidence_interval([3.0, float("nan")])
        assert ci["n"] == 1
        assert ci["mean"] == 3.0
        assert math.isnan(ci["lower"])


def test_fold_change():
    fold, log2 = compute_fold_change(3.99, 0.99)
    assert fold == pytest.approx(4.0)
    assert log2 == pytest.approx(2.0)


class TestFormatting:
    @pytest.mark.parametrize(
        "p,marker",
        [(0.0005, "***"), (0.001, "**"), (0.005, "**"), (0.01, "*"), (0.049, "*"), (0.05, "ns"), (float("nan"), "ns")],
    )
    def test_significance_marker(self, p, marker):
        assert significance_marker(p) == marker

    @pytest.mark.parametrize(
        "p,text",
        [(0.00001, "< 0.0001"), (0.0005, "5.00e-04"), (0.0123, "0.0123"), (float("nan"), "N/A")],
    )
    def test_format_p_value(self, p, text):
        assert format_p_value(p) == text

    def test_format_statistical_result(self):
        result = TestResult(
            test_name="Chi-squared test",
            statistic=3.84159,
            p_value=0.05,
            significance="ns",
            effect_size=0.1234,
            effect_size_type="Cramér's V",
            degrees_of_freedom=1,
            interpretation="No significant difference in distributions",
        )
        row = format_statistical_result(result)
        assert row["statistic"] == "3.842"
        assert row["p_value"] == "0.0500"
        assert row["effect_size"] == "0.123 (Cramér's V)"

    def test_format_placeholder_result(self):
        row = format_statistical_result(_result(float("nan")))
        assert row["p_value"] == "N/A"
        assert row["effect_size"] == "N/A"

    def test_results_to_frame(self):
        frame = results_to_frame([_result(0.01), _result(0.5)])
        assert list(frame["p_value"]) == [0.01, 0.5]
        assert "adjusted_p_value" in frame.columns
