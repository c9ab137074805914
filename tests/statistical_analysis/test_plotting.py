"""Tests for plotting module."""

import pytest

from src.aggregation.categorical import CategoricalSummary, CategoryCount
from src.aggregation.streaming import FieldSummary, empty_summary
from src.statistical_analysis.plotting import plot_category_counts, plot_field_summaries


def _summary(field, center):
    return FieldSummary(
        field=field,
        count=50,
        mean=center,
        median=center,
        min=center - 3,
        max=center + 3,
        std=1.0,
        q1=center - 1,
        q3=center + 1,
    )


def test_plot_field_summaries_saves_figure(tmp_path):
    """Test that plot_field_summaries saves a valid figure to disk."""
    save_path = tmp_path / "boxes.png"
    plot_field_summaries([_summary("a", 0.0), _summary("b", 2.0)], save_path=str(save_path))

    assert save_path.exists()
    assert save_path.stat().st_size > 0


def test_plot_field_summaries_accepts_per_group_dict(tmp_path):
    save_path = tmp_path / "groups.png"
    plot_field_summaries(
        {"cluster 1": _summary("x", 1.0), "cluster 2": _summary("x", 4.0), "empty": empty_summary("x")},
        save_path=str(save_path),
    )
    assert save_path.exists()


def test_plot_field_summaries_requires_data():
    with pytest.raises(RuntimeError, match="No non-empty summaries"):
        plot_field_summaries([empty_summary("x")])


def test_plot_category_counts_saves_figure(tmp_path):
    summary = CategoricalSummary(
        field="cell_type",
        total=10,
        top_categories=[CategoryCount("T cell", 6, 60.0), CategoryCount("B cell", 4, 40.0)],
        category_count=2,
    )
    save_path = tmp_path / "bars.png"
    plot_category_counts(summary, save_path=str(save_path))

    assert save_path.exists()


def test_plot_category_counts_requires_categories():
    with pytest.raises(RuntimeError, match="No categories"):
        plot_category_counts(CategoricalSummary(field="cell_type", total=0))
