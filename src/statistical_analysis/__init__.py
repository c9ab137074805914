"""Hypothesis tests and result reporting for comparisons between cell groups."""

from src.statistical_analysis.corrections import (
    apply_multiple_testing_correction,
    benjamini_hochberg,
    bonferroni_correction,
    compute_fold_change,
    confidence_interval,
)
from src.statistical_analysis.pipeline import DataKind, Group, run_statistical_tests
from src.statistical_analysis.report import ReportCollector, generate_markdown_report
from src.statistical_analysis.results import (
    TestResult,
    format_statistical_result,
    results_to_frame,
    significance_marker,
)
from src.statistical_analysis.statistical_tests import (
    chi_squared_test,
    kruskal_wallis,
    mann_whitney_u,
    one_way_anova,
    t_test,
)

__all__ = [
    # Orchestration
    "DataKind",
    "Group",
    "run_statistical_tests",
    # Statistical tests
    "chi_squared_test",
    "t_test",
    "mann_whitney_u",
    "one_way_anova",
    "kruskal_wallis",
    # Results
    "TestResult",
    "format_statistical_result",
    "results_to_frame",
    "significance_marker",
    # Corrections and helpers
    "apply_multiple_testing_correction",
    "benjamini_hochberg",
    "bonferroni_correction",
    "compute_fold_change",
    "confidence_interval",
    # Report generation
    "ReportCollector",
    "generate_markdown_report",
]
