"""
Descriptive summaries of a numeric field over selected cells.

Small populations are summarised exactly by materialising and sorting the
finite values. Large populations are scanned once: count, sum, sum of squares,
min and max are accumulated exactly while a fixed-size reservoir (Algorithm R)
provides the median and quartiles.
"""

import logging
import math
from dataclasses import dataclass

import numpy as np

from src.aggregation.cancellation import checkpointed_chunks
from src.aggregation.config import AggregationConfig, get_default_aggregation_config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldSummary:
    """Descriptive statistics of a numeric field over a cell selection."""

    field: str
    count: int
    mean: float
    median: float
    min: float = None
    max: float = None
    std: float = None
    q1: float = None
    q3: float = None
    approximate: bool = False
    # Reservoir size behind median/quartiles on the streaming path
    sample_size: int = None


def empty_summary(field_name: str, approximate: bool = False) -> FieldSummary:
    return FieldSummary(
        field=field_name,
        count=0,
        mean=float("nan"),
        median=float("nan"),
        approximate=approximate,
    )


def population_size(index_groups) -> int:
    """Upper bound on the number of values: total index count across groups."""
    return int(sum(len(indices) for indices in index_groups))


def _sorted_quantiles(sorted_values: np.ndarray):
    """Median (midpoint for even n), plus q1/q3 read at floor(n * p)."""
    n = sorted_values.size
    mid = n // 2
    if n % 2 == 0:
        median = (sorted_values[mid - 1] + sorted_values[mid]) / 2.0
    else:
        median = sorted_values[mid]
    q1 = sorted_values[int(math.floor(n * 0.25))]
    q3 = sorted_values[int(math.floor(n * 0.75))]
    return float(median), float(q1), float(q3)


def resolve_rng(rng=None) -> np.random.Generator:
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


def exact_summary(field_name, values, index_groups, config=None, token=None) -> FieldSummary:
    """
    Exact summary: gather all finite values, then sort.

    Parameters
    ----------
    field_name : str
        Name reported in the summary.
    values : np.ndarray
        Full-population backing values.
    index_groups : list of array-like
        Cell indices per group; duplicates across groups count once per
        occurrence.
    config : AggregationConfig, optional
        Supplies the cancellation check interval.
    token : CancellationToken, optional
        Polled during the gather.

    Returns
    -------
    FieldSummary
        ``approximate`` is False.
    """
    config = config or get_default_aggregation_config()
    gathered = []
    for chunk in checkpointed_chunks(index_groups, len(values), config.cancel_check_interval, token):
        picked = values[chunk]
        gathered.append(picked[np.isfinite(picked)])

    finite = np.concatenate(gathered) if gathered else np.empty(0, dtype=float)
    if finite.size == 0:
        return empty_summary(field_name)

    finite.sort()
    mean = float(finite.sum() / finite.size)
    std = float(np.sqrt(np.sum((finite - mean) ** 2) / finite.size))
    median, q1, q3 = _sorted_quantiles(finite)

    return FieldSummary(
        field=field_name,
        count=int(finite.size),
        mean=mean,
        median=median,
        min=float(finite[0]),
        max=float(finite[-1]),
        std=std,
        q1=q1,
        q3=q3,
        approximate=False,
    )


class _Reservoir:
    """Algorithm R over a stream of float chunks."""

    def __init__(self, size: int, rng: np.random.Generator):
        self.size = size
        self.rng = rng
        self.slots = np.empty(size, dtype=float)
        self.filled = 0
        self.seen = 0

    def add(self, chunk: np.ndarray):
        take = min(self.size - self.filled, chunk.size)
        if take:
            self.slots[self.filled : self.filled + take] = chunk[:take]
            self.filled += take
            self.seen += take

        rest = chunk[take:]
        if rest.size == 0:
            return

        # The k-th value overall (1-based) replaces slot j ~ U[0, k) when j < size
        positions = np.arange(self.seen + 1, self.seen + rest.size + 1)
        slots = self.rng.integers(0, positions)
        self.seen += rest.size

        hit = slots < self.size
        if not hit.any():
            return
        slots, picked = slots[hit], rest[hit]

        # Later values overwrite earlier ones landing in the same slot
        _, last_from_end = np.unique(slots[::-1], return_index=True)
        keep = slots.size - 1 - last_from_end
        self.slots[slots[keep]] = picked[keep]

    def sample(self) -> np.ndarray:
        return self.slots[: self.filled]


def streaming_summary(field_name, values, index_groups, config=None, token=None, rng=None) -> FieldSummary:
    """
    Single-pass summary with exact moments and reservoir-based quantiles.

    ``count``, ``mean``, ``std``, ``min`` and ``max`` are exact; ``median``,
    ``q1`` and ``q3`` are read from a sorted reservoir of
    ``config.reservoir_size`` values. ``approximate`` is True.

    Parameters
    ----------
    rng : np.random.Generator or int, optional
        Random source (or seed) for the reservoir.
    """
    config = config or get_default_aggregation_config()
    reservoir = _Reservoir(config.reservoir_size, resolve_rng(rng))

    count = 0
    # Moments are accumulated around the first finite value
    shift = None
    total = 0.0
    total_sq = 0.0
    lo = math.inf
    hi = -math.inf

    for chunk in checkpointed_chunks(index_groups, len(values), config.cancel_check_interval, token):
        picked = values[chunk]
        picked = picked[np.isfinite(picked)]
        if picked.size == 0:
            continue

        if shift is None:
            shift = float(picked[0])
        centred = picked - shift
        count += int(picked.size)
        total += float(centred.sum())
        total_sq += float(np.dot(centred, centred))
        lo = min(lo, float(picked.min()))
        hi = max(hi, float(picked.max()))
        reservoir.add(picked)

    if count == 0:
        return empty_summary(field_name, approximate=True)

    offset = total / count
    mean = shift + offset
    var = max(0.0, total_sq / count - offset * offset)
    sample = np.sort(reservoir.sample())
    median, q1, q3 = _sorted_quantiles(sample)

    return FieldSummary(
        field=field_name,
        count=count,
        mean=mean,
        median=median,
        min=lo,
        max=hi,
        std=math.sqrt(var),
        q1=q1,
        q3=q3,
        approximate=True,
        sample_size=int(sample.size),
    )


def summarize_continuous(
    field_name: str,
    values,
    index_groups,
    config: AggregationConfig = None,
    token=None,
    rng=None,
) -> FieldSummary:
    """
    Summarise a numeric field over the union of several cell selections.

    Chooses the exact path when the total index count is at most
    ``config.exact_threshold`` and the streaming path otherwise.

    Raises
    ------
    AggregationAbortedError
        If ``token`` is cancelled during the scan.
    """
    config = config or get_default_aggregation_config()
    values = np.asarray(values, dtype=float)
    index_groups = list(index_groups)
    size = population_size(index_groups)

    if size <= config.exact_threshold:
        logger.debug(f"'{field_name}': exact summary over {size} indices")
        return exact_summary(field_name, values, index_groups, config=config, token=token)

    logger.info(f"'{field_name}': {size} indices exceed {config.exact_threshold}, streaming summary")
    return streaming_summary(field_name, values, index_groups, config=config, token=token, rng=rng)
