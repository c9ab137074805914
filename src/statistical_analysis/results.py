"""Result value objects and presentation helpers for hypothesis tests."""

import math
import numbers
from dataclasses import asdict, dataclass

import pandas as pd

SIGNIFICANCE_LEVELS = ((0.001, "***"), (0.01, "**"), (0.05, "*"))
NOT_SIGNIFICANT = "ns"

# Upper bounds (exclusive) on |effect| for negligible, small and medium
COHENS_D_THRESHOLDS = (0.2, 0.5, 0.8)
CRAMERS_V_THRESHOLDS = (0.1, 0.2, 0.4)
RANK_BISERIAL_THRESHOLDS = (0.1, 0.3, 0.5)
VARIANCE_EXPLAINED_THRESHOLDS = (0.01, 0.06, 0.14)

EFFECT_LABELS = ("negligible", "small", "medium", "large")


@dataclass(frozen=True)
class TestResult:
    """Outcome of a single hypothesis test."""

    __test__ = False  # not a pytest test class

    test_name: str
    statistic: float
    p_value: float
    significance: str
    effect_size: float = None
    effect_size_type: str = None
    degrees_of_freedom: object = None  # int, float, (df1, df2) or None
    interpretation: str = ""
    adjusted_p_value: float = None
    significant_after_correction: bool = None

    @property
    def is_significant(self) -> bool:
        return is_finite(self.p_value) and self.p_value < 0.05


def is_finite(value) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool) and math.isfinite(value)


def significance_marker(p_value: float) -> str:
    """Map a p-value to "***", "**", "*" or "ns"."""
    if not is_finite(p_value):
        return NOT_SIGNIFICANT
    for threshold, marker in SIGNIFICANCE_LEVELS:
        if p_value < threshold:
            return marker
    return NOT_SIGNIFICANT


def classify_effect(effect_size: float, thresholds) -> str:
    """Bucket ``|effect_size|`` into negligible/small/medium/large."""
    magnitude = abs(effect_size)
    for bound, label in zip(thresholds, EFFECT_LABELS):
        if magnitude < bound:
            return label
    return EFFECT_LABELS[-1]


def clamp_probability(p_value: float) -> float:
    if math.isnan(p_value):
        return p_value
    return min(max(p_value, 0.0), 1.0)


def insufficient_data_result(test_name: str, interpretation: str) -> TestResult:
    """Placeholder result for inputs below a test's minimum size."""
    return TestResult(
        test_name=test_name,
        statistic=float("nan"),
        p_value=float("nan"),
        significance=NOT_SIGNIFICANT,
        effect_size=None,
        effect_size_type=None,
        degrees_of_freedom=None,
        interpretation=interpretation,
    )


def format_p_value(p_value: float) -> str:
    if not is_finite(p_value):
        return "N/A"
    if p_value < 0.0001:
        return "< 0.0001"
    if p_value < 0.001:
        return f"{p_value:.2e}"
    return f"{p_value:.4f}"


def format_statistical_result(result: TestResult) -> dict:
    """
    Format a TestResult into display strings.

    Parameters
    ----------
    result : TestResult
        Result to format.

    Returns
    -------
    dict
        Keys ``test``, ``statistic``, ``p_value``, ``significance``,
        ``effect_size`` and ``interpretation``, all strings.
    """
    if result.effect_size is not None and is_finite(result.effect_size):
        effect = f"{result.effect_size:.3f} ({result.effect_size_type})"
    else:
        effect = "N/A"

    return {
        "test": result.test_name,
        "statistic": f"{result.statistic:.3f}" if is_finite(result.statistic) else "N/A",
        "p_value": format_p_value(result.p_value),
        "significance": result.significance,
        "effect_size": effect,
        "interpretation": result.interpretation,
    }


def results_to_frame(results) -> pd.DataFrame:
    """One row per TestResult, columns named after the dataclass fields."""
    return pd.DataFrame([asdict(r) for r in results], columns=list(TestResult.__dataclass_fields__))
