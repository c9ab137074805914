"""Cancellable descriptive summaries over large, overlapping cell selections."""

from src.aggregation.cancellation import AggregationAbortedError, CancellationToken
from src.aggregation.categorical import CategoricalSummary, CategoryCount, summarize_categorical
from src.aggregation.config import AggregationConfig, get_default_aggregation_config
from src.aggregation.engine import (
    AggregationJob,
    AggregationResult,
    AggregationStatus,
    run_aggregation,
    summarize_category_field,
    summarize_field,
    summarize_groups,
)
from src.aggregation.requests import AggregationRequest, RequestTracker
from src.aggregation.streaming import FieldSummary, summarize_continuous

__all__ = [
    # Requests
    "AggregationJob",
    "AggregationResult",
    "AggregationStatus",
    "run_aggregation",
    "summarize_field",
    "summarize_category_field",
    "summarize_groups",
    # Summaries
    "FieldSummary",
    "CategoricalSummary",
    "CategoryCount",
    "summarize_continuous",
    "summarize_categorical",
    # Cancellation
    "AggregationAbortedError",
    "CancellationToken",
    "AggregationRequest",
    "RequestTracker",
    # Config
    "AggregationConfig",
    "get_default_aggregation_config",
]
