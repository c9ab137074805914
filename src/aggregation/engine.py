import enum
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from src.aggregation.cancellation import AggregationAbortedError, check_cancelled
from src.aggregation.categorical import CategoricalSummary, summarize_categorical
from src.aggregation.config import AggregationConfig, get_default_aggregation_config
from src.aggregation.streaming import FieldSummary, resolve_rng, summarize_continuous
from src.data_source.source import CATEGORICAL, CONTINUOUS, FieldKindError

logger = logging.getLogger(__name__)


class AggregationStatus(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class AggregationResult:
    """Summaries of one request, in the order the fields were requested."""

    request_id: int = None
    summaries: list = field(default_factory=list)
    # {field: {group: summary}}, filled when per-group summaries are requested
    per_group: dict = field(default_factory=dict)

    @property
    def continuous(self) -> list[FieldSummary]:
        return [s for s in self.summaries if isinstance(s, FieldSummary)]

    @property
    def categorical(self) -> list[CategoricalSummary]:
        return [s for s in self.summaries if isinstance(s, CategoricalSummary)]


def _normalise_groups(groups) -> dict:
    if groups is None:
        raise ValueError("groups must be provided")
    if isinstance(groups, Mapping):
        return dict(groups)
    # (name, indices) pairs
    normalised = {}
    for name, indices in groups:
        if name in normalised:
            raise ValueError(f"Duplicate group name '{name}'")
        normalised[name] = indices
    return normalised


def _summarize(source, name, index_groups, config, token, rng):
    field_data = source.field(name)
    if field_data.kind == CONTINUOUS:
        return summarize_continuous(name, field_data.values, index_groups, config, token, rng)
    return summarize_categorical(name, field_data, index_groups, config, token)


class AggregationJob:
    """
    One aggregation request over a data source.

    The job moves ``IDLE -> RUNNING -> COMPLETED | CANCELLED | FAILED``.
    Cancellation is cooperative: the token is polled between fields and
    periodically inside every scan. A cancelled job publishes no result.

    Parameters
    ----------
    source : CellDataSource
        Read-only field storage.
    fields : list of str
        Fields to summarise, in output order.
    groups : dict
        ``{group_name: cell_indices}``; the union (with duplicates) is
        summarised.
    token : CancellationToken, optional
        Cancellation flag owned by the caller.
    config : AggregationConfig, optional
        Defaults to ``get_default_aggregation_config()``.
    rng : np.random.Generator or int, optional
        Random source for reservoir sampling.
    request_id : int, optional
        Identifier echoed in the result for "last request wins" checks.
    per_group : bool, optional
        Also summarise every group on its own.
    """

    def __init__(
        self,
        source,
        fields,
        groups,
        token=None,
        config: AggregationConfig = None,
        rng=None,
        request_id: int = None,
        per_group: bool = False,
    ):
        self.source = source
        self.fields = list(fields) if fields is not None else None
        self.groups = groups
        self.token = token
        self.config = config or get_default_aggregation_config()
        self.rng = resolve_rng(rng)
        self.request_id = request_id
        self.per_group = per_group
        self.status = AggregationStatus.IDLE
        self.error = None
        self.result = None

    def run(self) -> AggregationResult:
        """
        Execute the request.

        Raises
        ------
        AggregationAbortedError
            If the token is cancelled; status becomes CANCELLED.
        UnknownFieldError
            If a requested field does not exist; status becomes FAILED.
        ValueError
            If required parameters are missing or group names repeat; status
            becomes FAILED.
        """
        if self.status is not AggregationStatus.IDLE:
            raise RuntimeError(f"Aggregation job already {self.status.value}")

        self.status = AggregationStatus.RUNNING
        try:
            result = self._execute()
        except AggregationAbortedError as e:
            self.status = AggregationStatus.CANCELLED
            self.error = str(e)
            logger.info(f"Aggregation request {self.request_id} cancelled")
            raise
        except Exception as e:
            self.status = AggregationStatus.FAILED
            self.error = str(e)
            logger.error(f"Aggregation request {self.request_id} failed: {e}")
            raise

        self.result = result
        self.status = AggregationStatus.COMPLETED
        return result

    def _execute(self) -> AggregationResult:
        if self.source is None:
            raise ValueError("A data source is required")
        if not self.fields:
            raise ValueError("At least one field must be requested")
        groups = _normalise_groups(self.groups)

        # Resolve every field before scanning so bad requests fail fast
        for name in self.fields:
            self.source.field(name)

        index_groups = list(groups.values())
        logger.info(
            f"Aggregation request {self.request_id}: {len(self.fields)} field(s), "
            f"{len(groups)} group(s)"
        )

        result = AggregationResult(request_id=self.request_id)
        for name in self.fields:
            check_cancelled(self.token)
            result.summaries.append(
                _summarize(self.source, name, index_groups, self.config, self.token, self.rng)
            )
            if self.per_group:
                result.per_group[name] = {
                    group_name: _summarize(
                        self.source, name, [indices], self.config, self.token, self.rng
                    )
                    for group_name, indices in groups.items()
                }
        return result


def run_aggregation(source, fields, groups, token=None, config=None, rng=None, request_id=None, per_group=False):
    """Run an ``AggregationJob`` and return its result."""
    job = AggregationJob(
        source,
        fields,
        groups,
        token=token,
        config=config,
        rng=rng,
        request_id=request_id,
        per_group=per_group,
    )
    return job.run()


def summarize_field(source, field_name, groups, token=None, config=None, rng=None) -> FieldSummary:
    """
    Numeric summary of one continuous field over the union of ``groups``.

    Raises
    ------
    FieldKindError
        If the field is categorical.
    """
    if source.field_kind(field_name) != CONTINUOUS:
        raise FieldKindError(f"Field '{field_name}' is not continuous")
    return run_aggregation(source, [field_name], groups, token=token, config=config, rng=rng).summaries[0]


def summarize_category_field(source, field_name, groups, token=None, config=None) -> CategoricalSummary:
    """Top-category summary of one categorical field over the union of ``groups``."""
    if source.field_kind(field_name) != CATEGORICAL:
        raise FieldKindError(f"Field '{field_name}' is not categorical")
    return run_aggregation(source, [field_name], groups, token=token, config=config).summaries[0]


def summarize_groups(source, field_name, groups, token=None, config=None, rng=None) -> dict:
    """Separate summary for every named group, ``{group_name: summary}``."""
    result = run_aggregation(
        source, [field_name], groups, token=token, config=config, rng=rng, per_group=True
    )
    return result.per_group[field_name]
