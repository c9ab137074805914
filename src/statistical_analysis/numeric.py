import numpy as np


def _as_array(seq):
    if seq is None:
        return np.empty(0, dtype=float)
    return np.asarray(seq, dtype=float).ravel()


def mean(seq) -> float:
    """Arithmetic mean, NaN for an empty sequence."""
    arr = _as_array(seq)
    if arr.size == 0:
        return float("nan")
    return float(arr.sum() / arr.size)


def variance(seq, ddof: int = 0) -> float:
    """
    Variance with a delta-degrees-of-freedom divisor.

    Parameters
    ----------
    seq : array-like
        Numeric values.
    ddof : int, optional
        0 for the population variance, 1 for the sample variance.

    Returns
    -------
    float
        ``sum((x - mean)^2) / (n - ddof)``, or NaN when ``n <= ddof``.
    """
    arr = _as_array(seq)
    if arr.size == 0 or arr.size <= ddof:
        return float("nan")
    m = arr.sum() / arr.size
    return float(np.sum((arr - m) ** 2) / (arr.size - ddof))


def std(seq, ddof: int = 0) -> float:
    return float(np.sqrt(variance(seq, ddof)))


def rank_with_ties(seq) -> np.ndarray:
    """
    Assign 1-based ranks, giving tied values their average rank (midrank).

    A run of ``k`` equal values occupying sorted positions ``[i, i + k)``
    receives ``(2i + k + 1) / 2``. Ranks are returned in the original order
    of ``seq``, so they always sum to ``n(n + 1) / 2``.

    Parameters
    ----------
    seq : array-like
        Numeric values.

    Returns
    -------
    np.ndarray
        Float array of ranks, same length as ``seq``.
    """
    arr = _as_array(seq)
    n = arr.size
    if n == 0:
        return np.empty(0, dtype=float)

    order = np.argsort(arr, kind="mergesort")
    sorted_values = arr[order]

    # Start position of every run of equal values in sorted order
    run_starts = np.flatnonzero(np.r_[True, sorted_values[1:] != sorted_values[:-1]])
    run_lengths = np.diff(np.r_[run_starts, n])
    run_ranks = (2 * run_starts + run_lengths + 1) / 2.0

    ranks = np.empty(n, dtype=float)
    ranks[order] = np.repeat(run_ranks, run_lengths)
    return ranks
