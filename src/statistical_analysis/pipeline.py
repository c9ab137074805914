import enum
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from src.data_source.source import is_missing_label
from src.statistical_analysis.results import TestResult, insufficient_data_result
from src.statistical_analysis.statistical_tests import (
    chi_squared_test,
    kruskal_wallis,
    mann_whitney_u,
    one_way_anova,
    t_test,
)

logger = logging.getLogger(__name__)


class DataKind(enum.Enum):
    CATEGORICAL = "categorical"
    CONTINUOUS = "continuous"


# Aliases used by field catalogues of the surrounding explorer
_DATA_KIND_ALIASES = {
    "categorical": DataKind.CATEGORICAL,
    "categorical_obs": DataKind.CATEGORICAL,
    "category": DataKind.CATEGORICAL,
    "continuous": DataKind.CONTINUOUS,
    "continuous_obs": DataKind.CONTINUOUS,
    "gene_expression": DataKind.CONTINUOUS,
}


@dataclass
class Group:
    """A named sample handed to the test orchestrator."""

    name: str
    values: list = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.values)


def resolve_data_kind(data_kind) -> DataKind:
    """Normalise a data kind given as enum or string."""
    if isinstance(data_kind, DataKind):
        return data_kind
    kind = _DATA_KIND_ALIASES.get(str(data_kind).lower())
    if kind is None:
        raise ValueError(
            f"Unknown data kind '{data_kind}'. Expected one of {sorted(_DATA_KIND_ALIASES)}"
        )
    return kind


def _group_values(group) -> Any:
    if isinstance(group, Group):
        return group.values
    return group


def _finite_values(values) -> list:
    finite = []
    for v in values:
        try:
            x = float(v)
        except (TypeError, ValueError):
            continue
        if math.isfinite(x):
            finite.append(x)
    return finite


def _present_labels(values) -> list:
    return [v for v in (values or []) if not is_missing_label(v)]


def run_statistical_tests(groups, data_kind) -> list[TestResult]:
    """
    Run the tests appropriate for a data kind and number of groups.

    Categorical data gets a chi-squared test. Continuous data gets Welch's
    t-test and Mann-Whitney U for exactly two groups, and one-way ANOVA and
    Kruskal-Wallis for more. Non-finite continuous values and missing (None, NaN or
    empty) labels are dropped first.

    Parameters
    ----------
    groups : list
        ``Group`` objects, plain value sequences, or (categorical only)
        ``{label: count}`` mappings.
    data_kind : DataKind or str
        ``"categorical"`` or ``"continuous"`` (or one of their aliases).

    Returns
    -------
    list of TestResult
        A single placeholder result when fewer than two groups have samples.

    Raises
    ------
    ValueError
        If the data kind is not recognised.
    """
    kind = resolve_data_kind(data_kind)
    samples = [_group_values(g) for g in (groups or [])]

    if kind is DataKind.CONTINUOUS:
        samples = [_finite_values(s) for s in samples]
    else:
        samples = [s if isinstance(s, Mapping) else _present_labels(s) for s in samples]

    populated = [s for s in samples if s is not None and len(s) > 0]
    if len(populated) < 2:
        logger.info(f"Only {len(populated)} group(s) with samples, skipping statistical tests")
        return [
            insufficient_data_result("Statistical Analysis", "Select at least 2 groups to compare")
        ]

    results = []
    if kind is DataKind.CATEGORICAL:
        results.append(chi_squared_test(populated))
    elif len(populated) == 2:
        logger.debug("Two groups: running Welch's t-test and Mann-Whitney U")
        results.append(t_test(populated[0], populated[1]))
        results.append(mann_whitney_u(populated[0], populated[1]))
    else:
        logger.debug(f"{len(populated)} groups: running one-way ANOVA and Kruskal-Wallis")
        results.append(one_way_anova(populated))
        results.append(kruskal_wallis(populated))

    for r in results:
        logger.debug(f"{r.test_name}: statistic={r.statistic:.4f}, pvalue={r.p_value:.4g}")

    return results
