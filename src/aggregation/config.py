"""Configuration for the aggregation engine."""

import os
from dataclasses import dataclass

# Defaults can be overridden via environment variables (or a .env file)
DEFAULT_EXACT_THRESHOLD = int(os.getenv("POPSTATS_EXACT_THRESHOLD", "50000"))
DEFAULT_RESERVOIR_SIZE = int(os.getenv("POPSTATS_RESERVOIR_SIZE", "1000"))
DEFAULT_CANCEL_CHECK_INTERVAL = int(os.getenv("POPSTATS_CANCEL_CHECK_INTERVAL", str(0x3FFF + 1)))
DEFAULT_TOP_K_CATEGORIES = int(os.getenv("POPSTATS_TOP_K_CATEGORIES", "5"))


@dataclass(frozen=True)
class AggregationConfig:
    """Thresholds and sizes used by the aggregation engine."""

    # Largest population size summarised exactly
    exact_threshold: int = DEFAULT_EXACT_THRESHOLD
    reservoir_size: int = DEFAULT_RESERVOIR_SIZE
    # Indices processed between two cancellation checks
    cancel_check_interval: int = DEFAULT_CANCEL_CHECK_INTERVAL
    top_k: int = DEFAULT_TOP_K_CATEGORIES

    def __post_init__(self):
        for name in ("exact_threshold", "reservoir_size", "cancel_check_interval", "top_k"):
            value = getattr(self, name)
            if not isinstance(value, int) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")


def get_default_aggregation_config() -> AggregationConfig:
    """
    Get the default aggregation configuration.

    Values come from the POPSTATS_EXACT_THRESHOLD, POPSTATS_RESERVOIR_SIZE,
    POPSTATS_CANCEL_CHECK_INTERVAL and POPSTATS_TOP_K_CATEGORIES environment
    variables when set.
    """
    return AggregationConfig()
