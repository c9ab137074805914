import numpy as np


class AggregationAbortedError(Exception):
    """Raised when a cancellation token is observed during a scan."""

    def __init__(self, message: str = "Aborted"):
        super().__init__(message)


class CancellationToken:
    """
    Cooperative cancellation flag.

    The owner of a request calls ``cancel()``; long-running loops poll
    ``raise_if_cancelled()`` at their checkpoints and never reset the flag.
    """

    def __init__(self):
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self):
        self._cancelled = True

    def raise_if_cancelled(self):
        if self._cancelled:
            raise AggregationAbortedError()


def check_cancelled(token):
    """Raise ``AggregationAbortedError`` if ``token`` is set; ``None`` is never cancelled."""
    if token is not None:
        token.raise_if_cancelled()


def checkpointed_chunks(index_groups, n_backing: int, interval: int, token=None):
    """
    Walk several index lists in slices, polling ``token`` between slices.

    The token is checked before the first index and then every ``interval``
    processed indices, counted across all lists. Out-of-range indices are
    counted toward that interval but dropped from the yielded chunks.

    Parameters
    ----------
    index_groups : iterable of array-like
        Cell index lists, one per group.
    n_backing : int
        Length of the backing array; valid indices are ``0 <= i < n_backing``.
    interval : int
        Indices processed between two cancellation checks.
    token : CancellationToken, optional
        Token to poll.

    Yields
    ------
    np.ndarray
        In-range int64 indices, at most ``interval`` per chunk.

    Raises
    ------
    AggregationAbortedError
        If the token is set at a checkpoint.
    """
    processed = 0
    for indices in index_groups:
        idx = np.asarray(indices, dtype=np.int64).ravel()
        start = 0
        while start < idx.size:
            if processed % interval == 0:
                check_cancelled(token)
            stop = start + (interval - processed % interval)
            chunk = idx[start:stop]
            processed += chunk.size
            start = stop
            yield chunk[(chunk >= 0) & (chunk < n_backing)]
