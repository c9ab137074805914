"""Multiple-testing corrections and small inferential helpers."""

import logging
import math
from dataclasses import replace

import numpy as np

from src.statistical_analysis.distributions import normal_ppf
from src.statistical_analysis.numeric import mean, std
from src.statistical_analysis.results import is_finite

logger = logging.getLogger(__name__)


def benjamini_hochberg(p_values, alpha: float = 0.05) -> dict:
    """
    Benjamini-Hochberg false discovery rate control.

    Non-finite p-values are left out of the procedure; their adjusted value is
    ``None`` and they are never significant.

    Parameters
    ----------
    p_values : list of float
        Raw p-values.
    alpha : float, optional
        Target FDR. Defaults to 0.05.

    Returns
    -------
    dict
        ``adjusted_p_values`` (list), ``significant`` (list of bool),
        ``threshold`` (largest raw p-value passing the step-up criterion, or
        None) and ``significant_count``.
    """
    n = len(p_values) if p_values is not None else 0
    adjusted = [None] * n
    significant = [False] * n

    valid = [(p, i) for i, p in enumerate(p_values or []) if is_finite(p)]
    m = len(valid)
    if m == 0:
        return {
            "adjusted_p_values": adjusted,
            "significant": significant,
            "threshold": None,
            "significant_count": 0,
        }

    valid.sort(key=lambda item: item[0])
    raw = np.array([p for p, _ in valid], dtype=float)
    ranks = np.arange(1, m + 1)

    # Step-up: cumulative minimum from the largest p-value downwards
    stepped = np.minimum.accumulate((raw * m / ranks)[::-1])[::-1]
    stepped = np.minimum(stepped, 1.0)

    passing = raw <= ranks * alpha / m
    threshold = float(raw[passing].max()) if passing.any() else 0.0

    for (_, original_index), adj in zip(valid, stepped):
        adjusted[original_index] = float(adj)
        significant[original_index] = bool(adj < alpha)

    return {
        "adjusted_p_values": adjusted,
        "significant": significant,
        "threshold": threshold,
        "significant_count": int(sum(significant)),
    }


def bonferroni_correction(p_values, alpha: float = 0.05) -> dict:
    """Bonferroni correction: ``min(p * n, 1)`` for every finite p-value."""
    n = len(p_values) if p_values is not None else 0
    if n == 0:
        return {"adjusted_p_values": [], "significant": [], "threshold": None, "significant_count": 0}

    adjusted = [min(p * n, 1.0) if is_finite(p) else None for p in p_values]
    significant = [p is not None and p < alpha for p in adjusted]

    return {
        "adjusted_p_values": adjusted,
        "significant": significant,
        "threshold": alpha / n,
        "significant_count": int(sum(significant)),
    }


_CORRECTIONS = {
    "bh": benjamini_hochberg,
    "bonferroni": bonferroni_correction,
}


def apply_multiple_testing_correction(results, method: str = "bh", alpha: float = 0.05) -> list:
    """
    Return copies of ``results`` with adjusted p-values filled in.

    Raises
    ------
    ValueError
        If ``method`` is not ``"bh"`` or ``"bonferroni"``.
    """
    if method not in _CORRECTIONS:
        raise ValueError(f"Unknown correction method '{method}'. Expected one of {sorted(_CORRECTIONS)}")
    if not results:
        return list(results or [])

    correction = _CORRECTIONS[method]([r.p_value for r in results], alpha)
    logger.debug(
        f"{method} correction: {correction['significant_count']}/{len(results)} significant"
    )

    return [
        replace(r, adjusted_p_value=adj, significant_after_correction=sig)
        for r, adj, sig in zip(results, correction["adjusted_p_values"], correction["significant"])
    ]


def confidence_interval(values, confidence_level: float = 0.95) -> dict:
    """
    Normal-approximation confidence interval for the mean.

    Non-finite values are ignored. With fewer than two values the bounds are
    NaN.
    """
    arr = np.asarray(values, dtype=float)
    valid = arr[np.isfinite(arr)]
    n = int(valid.size)

    if n < 2:
        return {
            "mean": float(valid[0]) if n == 1 else float("nan"),
            "lower": float("nan"),
            "upper": float("nan"),
            "se": float("nan"),
            "n": n,
            "confidence_level": confidence_level,
        }

    m = mean(valid)
    se = std(valid, 1) / math.sqrt(n)
    z = -normal_ppf((1.0 - confidence_level) / 2.0)

    return {
        "mean": m,
        "lower": m - z * se,
        "upper": m + z * se,
        "se": se,
        "n": n,
        "confidence_level": confidence_level,
    }


def compute_fold_change(mean_a: float, mean_b: float, pseudocount: float = 0.01):
    """Return ``(fold_change, log2_fold_change)`` with a pseudocount on both means."""
    ratio = (mean_a + pseudocount) / (mean_b + pseudocount)
    return ratio, math.log2(ratio)
