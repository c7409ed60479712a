import numpy as np
from numpy.typing import NDArray


def benjamini_hochberg(
    p_values: NDArray[np.floating], alpha: float
) -> NDArray[np.bool_]:
    """
    Apply Benjamini-Hochberg procedure for FDR control.

    Args:
        p_values: Array of p-values, shape (N,)
        alpha: Target false discovery rate (e.g., 0.05)

    Returns:
        Boolean array indicating which pairs are flagged (True = significant)
    """
    n = len(p_values)
    if n == 0:
        return np.array([], dtype=np.bool_)

    sorted_indices = np.argsort(p_values, kind="stable")
    sorted_p_values = p_values[sorted_indices]

    # Largest k where p_(k) <= (k/n) * alpha
    critical_values = (np.arange(1, n + 1) / n) * alpha
    significant_mask = sorted_p_values <= critical_values

    if not np.any(significant_mask):
        return np.zeros(n, dtype=np.bool_)

    max_significant_rank = np.max(np.where(significant_mask)[0]) + 1

    rejected = np.zeros(n, dtype=np.bool_)
    rejected[sorted_indices[:max_significant_rank]] = True
    return rejected


def benjamini_hochberg_adjusted(
    p_values: NDArray[np.floating],
) -> NDArray[np.float64]:
    """
    BH-adjusted p-values (q-values): the smallest FDR level at which each
    hypothesis would be rejected.
    """
    n = len(p_values)
    if n == 0:
        return np.array([], dtype=np.float64)

    sorted_indices = np.argsort(p_values, kind="stable")
    scaled = p_values[sorted_indices] * n / np.arange(1, n + 1)
    # Enforce monotonicity from the largest p-value down
    monotone = np.minimum.accumulate(scaled[::-1])[::-1]

    adjusted = np.empty(n, dtype=np.float64)
    adjusted[sorted_indices] = np.minimum(monotone, 1.0)
    return adjusted
