"""
Category counts of a categorical field over selected cells.

Integer-coded fields are counted with ``np.bincount``; label fields fall back
to a dictionary keyed by label. Both report the ``top_k`` categories by
count, ties going to the category encountered first.
"""

import dataclasses
import logging
from dataclasses import dataclass

import numpy as np

from src.aggregation.cancellation import checkpointed_chunks
from src.aggregation.config import AggregationConfig, get_default_aggregation_config
from src.data_source.source import is_missing_label

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CategoryCount:
    name: object
    count: int
    percent: float


@dataclass(frozen=True)
class CategoricalSummary:
    """Top categories of a categorical field over a cell selection."""

    field: str
    total: int
    top_categories: list = dataclasses.field(default_factory=list)
    # Number of distinct categories observed
    category_count: int = 0
    approximate: bool = False


def _top_categories(ordered_counts, total, top_k):
    return [
        CategoryCount(name=name, count=int(count), percent=100.0 * count / total if total else 0.0)
        for name, count in ordered_counts[:top_k]
    ]


def count_coded(codes, categories, index_groups, config=None, token=None):
    """
    Count integer category codes over the selected cells.

    Codes outside ``[0, len(categories))`` are treated as missing.

    Returns
    -------
    list of (label, count)
        Observed categories sorted by count descending, ties by first
        encounter in the scan.
    """
    config = config or get_default_aggregation_config()
    codes = np.asarray(codes)
    n_categories = len(categories)

    counts = np.zeros(n_categories, dtype=np.int64)
    first_seen = np.full(n_categories, np.iinfo(np.int64).max, dtype=np.int64)
    offset = 0

    for chunk in checkpointed_chunks(index_groups, len(codes), config.cancel_check_interval, token):
        c = codes[chunk]
        c = c[(c >= 0) & (c < n_categories)].astype(np.int64)
        if c.size == 0:
            continue
        counts += np.bincount(c, minlength=n_categories)
        present, first_pos = np.unique(c, return_index=True)
        first_seen[present] = np.minimum(first_seen[present], offset + first_pos)
        offset += c.size

    observed = np.flatnonzero(counts)
    order = observed[np.lexsort((first_seen[observed], -counts[observed]))]
    return [(categories[i], int(counts[i])) for i in order]


def count_labels(labels, index_groups, config=None, token=None):
    """String-keyed counting for fields without category codes."""
    config = config or get_default_aggregation_config()
    labels = np.asarray(labels, dtype=object)
    counts = {}

    for chunk in checkpointed_chunks(index_groups, len(labels), config.cancel_check_interval, token):
        for value in labels[chunk]:
            if is_missing_label(value):
                continue
            counts[value] = counts.get(value, 0) + 1

    # sorted() is stable, so equal counts keep insertion (first-seen) order
    return sorted(counts.items(), key=lambda item: -item[1])


def summarize_categorical(
    field_name: str,
    field_data,
    index_groups,
    config: AggregationConfig = None,
    token=None,
) -> CategoricalSummary:
    """
    Summarise a categorical field over the union of several cell selections.

    Parameters
    ----------
    field_name : str
        Name reported in the summary.
    field_data : CategoricalField
        Field from the data source; coded fields take the fast path.
    index_groups : list of array-like
        Cell indices per group.

    Raises
    ------
    AggregationAbortedError
        If ``token`` is cancelled during the scan.
    """
    config = config or get_default_aggregation_config()
    index_groups = list(index_groups)

    if field_data.is_coded:
        ordered = count_coded(field_data.codes, field_data.categories, index_groups, config, token)
    else:
        logger.debug(f"'{field_name}' has no category codes, counting labels")
        ordered = count_labels(field_data.labels, index_groups, config, token)

    total = sum(count for _, count in ordered)
    return CategoricalSummary(
        field=field_name,
        total=total,
        top_categories=_top_categories(ordered, total, config.top_k),
        category_count=len(ordered),
    )
