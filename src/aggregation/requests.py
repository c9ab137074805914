"""
"Last request wins" bookkeeping for callers that reissue aggregations.

Each logical surface (a panel, a view) gets a monotonically increasing request
identifier. Starting a new request cancels the one still running for the same
surface; results whose identifier is no longer the latest must be discarded.
"""

import itertools
import logging
from dataclasses import dataclass

from src.aggregation.cancellation import CancellationToken

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AggregationRequest:
    request_id: int
    surface: str
    token: CancellationToken


class RequestTracker:
    """Issues request identifiers and cancellation tokens per surface."""

    def __init__(self):
        self._ids = itertools.count(1)
        self._latest = {}

    def begin(self, surface: str = "default") -> AggregationRequest:
        """Start a request, cancelling the previous one for ``surface``."""
        previous = self._latest.get(surface)
        if previous is not None and not previous.token.cancelled:
            logger.debug(f"Cancelling request {previous.request_id} on '{surface}'")
            previous.token.cancel()

        request = AggregationRequest(next(self._ids), surface, CancellationToken())
        self._latest[surface] = request
        return request

    def is_latest(self, request: AggregationRequest) -> bool:
        current = self._latest.get(request.surface)
        return current is not None and current.request_id == request.request_id

    def cancel(self, surface: str = "default"):
        """Cancel whatever is in flight for ``surface`` (e.g. on navigation away)."""
        current = self._latest.pop(surface, None)
        if current is not None:
            current.token.cancel()
