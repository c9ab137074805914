import logging

import matplotlib.pyplot as plt
import numpy as np

logger = logging.getLogger(__name__)


def _finalize(fig, save_path):
    plt.tight_layout()
    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches="tight")
        plt.close(fig)
        logger.info(f"Plot saved to {save_path}")
    else:
        plt.show()


def _box_stats(summary) -> dict:
    """
    Convert a FieldSummary into the statistics dict consumed by ``Axes.bxp``.

    Whiskers span min to max since individual values are not retained.
    """
    return {
        "label": summary.field,
        "med": summary.median,
        "q1": summary.q1,
        "q3": summary.q3,
        "whislo": summary.min,
        "whishi": summary.max,
        "mean": summary.mean,
        "fliers": [],
    }


def _plot_box_summaries(ax, summaries, labels):
    stats = []
    for summary, label in zip(summaries, labels):
        entry = _box_stats(summary)
        entry["label"] = label
        stats.append(entry)
    ax.bxp(stats, showmeans=True, showfliers=False)
    ax.set_ylabel("Value")
    ax.grid(True, axis="y", alpha=0.3)
    ax.tick_params(axis="x", rotation=45)


def plot_field_summaries(summaries, save_path: str = None, title: str = None):
    """
    Box plots drawn from precomputed summaries of numeric fields.

    Parameters
    ----------
    summaries : list of FieldSummary or dict of {label: FieldSummary}
        One box per summary. A dict (e.g. per-group summaries of one field)
        uses its keys as box labels.
    save_path : str, optional
        Path to save the plot image. If None, displays the plot interactively.
    title : str, optional
        Axes title.

    Raises
    ------
    RuntimeError
        If no summary has any values to plot.
    """
    if isinstance(summaries, dict):
        labels, summaries = list(summaries.keys()), list(summaries.values())
    else:
        summaries = list(summaries)
        labels = [s.field for s in summaries]

    plottable = [(s, label) for s, label in zip(summaries, labels) if s.count > 0]
    n_skipped = len(summaries) - len(plottable)
    if n_skipped > 0:
        logger.warning(f"Skipped {n_skipped} empty summary(ies) in box plot")
    if not plottable:
        raise RuntimeError("No non-empty summaries to plot")

    fig, ax = plt.subplots(figsize=(max(4, 1.5 * len(plottable) + 2), 5))
    _plot_box_summaries(ax, [p[0] for p in plottable], [str(p[1]) for p in plottable])
    if title:
        ax.set_title(title)
    elif any(s.approximate for s, _ in plottable):
        ax.set_title("Field summaries (approximate quantiles)")

    _finalize(fig, save_path)


def plot_category_counts(summary, save_path: str = None):
    """
    Horizontal bar chart of the top categories of a categorical field.

    Parameters
    ----------
    summary : CategoricalSummary
        Output of summarize_categorical().
    save_path : str, optional
        Path to save the plot image. If None, displays the plot interactively.

    Raises
    ------
    RuntimeError
        If the summary has no categories.
    """
    if not summary.top_categories:
        raise RuntimeError(f"No categories to plot for field '{summary.field}'")

    names = [str(c.name) for c in summary.top_categories]
    counts = np.array([c.count for c in summary.top_categories])

    fig, ax = plt.subplots(figsize=(6, 0.5 * len(names) + 2))
    positions = np.arange(len(names))
    ax.barh(positions, counts, alpha=0.7, edgecolor="black")
    ax.set_yticks(positions)
    ax.set_yticklabels(names)
    # Largest category on top
    ax.invert_yaxis()
    ax.set_xlabel("Cells")
    ax.set_title(f"{summary.field} (top {len(names)} of {summary.category_count})")

    for pos, category in zip(positions, summary.top_categories):
        ax.text(category.count, pos, f" {category.percent:.1f}%", va="center")

    _finalize(fig, save_path)
