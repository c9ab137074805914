"""
Report generation for comparison and summary results.

This module collects hypothesis-test comparisons and field summaries from one
or more requests and renders them into a single Markdown report.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from src.aggregation.categorical import CategoricalSummary
from src.aggregation.streaming import FieldSummary
from src.statistical_analysis.results import format_p_value, format_statistical_result

logger = logging.getLogger(__name__)


@dataclass
class ComparisonEntry:
    """Results of comparing one field across groups."""

    field: str
    data_kind: str
    group_names: list = field(default_factory=list)
    results: list = field(default_factory=list)
    error: str = None

    @property
    def min_p_value(self) -> float:
        p_values = [r.p_value for r in self.results if r.p_value == r.p_value]
        return min(p_values) if p_values else None


class ReportCollector:
    """Collects comparisons and summaries for report generation."""

    def __init__(self):
        self.comparisons: list[ComparisonEntry] = []
        self.summaries: list = []
        self.figures: list[str] = []

    def add_comparison(
        self,
        field: str,
        data_kind: str,
        results: list = None,
        group_names: list = None,
        error: str = None,
    ):
        """
        Add the results of one comparison.

        Parameters
        ----------
        field : str
            Compared field.
        data_kind : str
            ``"categorical"`` or ``"continuous"``.
        results : list of TestResult, optional
            Output of run_statistical_tests().
        group_names : list of str, optional
            Names of the compared groups.
        error : str, optional
            Error message if the comparison failed.
        """
        self.comparisons.append(
            ComparisonEntry(
                field=field,
                data_kind=str(data_kind),
                group_names=list(group_names or []),
                results=list(results or []) if not error else [],
                error=error,
            )
        )

    def add_summary(self, summary):
        """Add a FieldSummary or CategoricalSummary."""
        self.summaries.append(summary)

    def add_figure(self, path: str):
        self.figures.append(str(path))

    def get_summary_stats(self) -> dict:
        """
        Calculate counts across all collected comparisons.

        Returns
        -------
        dict
            Totals, failures and comparisons with any p < 0.05.
        """
        successful = [c for c in self.comparisons if c.error is None]
        significant = [c for c in successful if any(r.is_significant for r in c.results)]

        return {
            "total_comparisons": len(self.comparisons),
            "successful_comparisons": len(successful),
            "failed_comparisons": len(self.comparisons) - len(successful),
            "significant_comparisons": len(significant),
            "significant_rate": len(significant) / len(successful) if successful else 0,
            "summaries": len(self.summaries),
        }


def _fmt(value, digits: int = 3) -> str:
    if value is None or value != value:
        return "-"
    return f"{value:.{digits}f}"


def _summary_lines(summary) -> list[str]:
    lines = []
    if isinstance(summary, FieldSummary):
        suffix = " (approximate quantiles)" if summary.approximate else ""
        lines.append(f"### {summary.field}{suffix}")
        lines.append("")
        lines.append("| Count | Mean | Std | Min | Q1 | Median | Q3 | Max |")
        lines.append("|:------|:-----|:----|:----|:---|:-------|:---|:----|")
        lines.append(
            f"| {summary.count} | {_fmt(summary.mean)} | {_fmt(summary.std)} | "
            f"{_fmt(summary.min)} | {_fmt(summary.q1)} | {_fmt(summary.median)} | "
            f"{_fmt(summary.q3)} | {_fmt(summary.max)} |"
        )
    elif isinstance(summary, CategoricalSummary):
        lines.append(f"### {summary.field}")
        lines.append("")
        lines.append(f"**Cells:** {summary.total} ({summary.category_count} categories)")
        lines.append("")
        lines.append("| Category | Count | Percent |")
        lines.append("|:---------|:------|:--------|")
        for cat in summary.top_categories:
            lines.append(f"| {cat.name} | {cat.count} | {cat.percent:.1f}% |")
    lines.append("")
    return lines


def generate_markdown_report(collector: ReportCollector, output_path: str) -> str:
    """
    Generate a Markdown report from collected results.

    Parameters
    ----------
    collector : ReportCollector
        Collector containing comparisons and summaries.
    output_path : str
        Path to save the Markdown report.

    Returns
    -------
    str
        Path to the generated report.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    stats = collector.get_summary_stats()
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    lines = []

    # Header
    lines.append("# Population Statistics Report")
    lines.append("")
    lines.append(f"**Generated:** {timestamp}")
    lines.append("")

    # Summary section
    lines.append("## Summary")
    lines.append("")
    lines.append(f"- **Comparisons run:** {stats['total_comparisons']}")
    lines.append(f"- **Failed comparisons:** {stats['failed_comparisons']}")
    lines.append(
        f"- **Significant comparisons (p < 0.05):** {stats['significant_comparisons']} "
        f"({stats['significant_rate']:.1%})"
    )
    lines.append(f"- **Field summaries:** {stats['summaries']}")
    lines.append("")

    if collector.comparisons:
        lines.append("## Comparisons")
        lines.append("")
        lines.append("| Field | Kind | Groups | Min p-value | Status |")
        lines.append("|:------|:-----|:-------|:------------|:-------|")
        for c in collector.comparisons:
            if c.error:
                status, min_p = "Error", "-"
            else:
                min_p = format_p_value(c.min_p_value) if c.min_p_value is not None else "-"
                status = "Significant" if any(r.is_significant for r in c.results) else "OK"
            lines.append(f"| {c.field} | {c.data_kind} | {len(c.group_names)} | {min_p} | {status} |")
        lines.append("")

        for c in collector.comparisons:
            lines.append(f"### {c.field}")
            lines.append("")
            if c.group_names:
                lines.append(f"**Groups:** {', '.join(c.group_names)}")
                lines.append("")
            if c.error:
                lines.append(f"**Error:** {c.error}")
                lines.append("")
                continue

            lines.append("| Test | Statistic | p-value | Sig. | Effect size | Interpretation |")
            lines.append("|:-----|:----------|:--------|:-----|:------------|:---------------|")
            for r in c.results:
                row = format_statistical_result(r)
                lines.append(
                    f"| {row['test']} | {row['statistic']} | {row['p_value']} | "
                    f"{row['significance']} | {row['effect_size']} | {row['interpretation']} |"
                )
            lines.append("")

    if collector.summaries:
        lines.append("## Field Summaries")
        lines.append("")
        for summary in collector.summaries:
            lines.extend(_summary_lines(summary))

    for figure in collector.figures:
        # Figures are referenced relative to the report location
        src = Path(os.path.relpath(Path(figure).resolve(), output_path.parent.resolve())).as_posix()
        lines.append(f'<img src="{src}" alt="{Path(figure).stem}" height="300">')
        lines.append("")

    # Write report
    output_path.write_text("\n".join(lines))

    logger.info(f"Report generated: {output_path}")
    return str(output_path)
