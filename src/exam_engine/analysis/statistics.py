"""
Classical test theory statistics.

Pure functions over numpy arrays. Degenerate inputs (too few values, zero
variance) return None instead of NaN.
"""

import math
from collections.abc import Iterable

import numpy as np
from numpy.typing import NDArray
from scipy import stats

from exam_engine.analysis.data_models import ScoreDistribution


def finite_or_none(value: float | np.floating | None) -> float | None:
    if value is None:
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def mean_of_defined(values: Iterable[float | None]) -> float | None:
    """Mean over values that are not None; None if there are none."""
    defined = [v for v in values if v is not None]
    if not defined:
        return None
    return float(np.mean(defined))


def group_size(n: int, fraction: float) -> int:
    """Size of each of the upper and lower groups for ``n`` respondents."""
    if n < 2:
        return 0
    return min(max(1, int(round(n * fraction))), n // 2)


def extreme_groups(
    totals: NDArray[np.float64], fraction: float
) -> tuple[NDArray[np.intp], NDArray[np.intp]]:
    """
    Indices of the lower and upper scoring groups.

    Ties keep their input order (stable sort), so the split is deterministic.
    """
    g = group_size(len(totals), fraction)
    order = np.argsort(totals, kind="stable")
    return order[:g], order[len(order) - g :]


def discrimination_index(
    correct: NDArray[np.bool_], totals: NDArray[np.float64], fraction: float
) -> float | None:
    """Upper-group minus lower-group proportion correct, in [-1, 1]."""
    if len(correct) < 2:
        return None
    lower, upper = extreme_groups(totals, fraction)
    return float(correct[upper].mean() - correct[lower].mean())


def point_biserial(
    indicator: NDArray[np.bool_], scores: NDArray[np.float64]
) -> float | None:
    """Pearson correlation of a 0/1 indicator with scores."""
    if len(indicator) < 2:
        return None
    x = indicator.astype(np.float64)
    x_dev = x - x.mean()
    y_dev = scores - scores.mean()
    denom = math.sqrt(float(np.dot(x_dev, x_dev)) * float(np.dot(y_dev, y_dev)))
    if denom == 0:
        return None
    r = float(np.dot(x_dev, y_dev)) / denom
    return max(-1.0, min(1.0, r))


def correlation_t_test(
    r: float | None, n: int
) -> tuple[float | None, float | None]:
    """
    Two-sided t-test of a correlation against zero.

    t = r * sqrt((n - 2) / (1 - r^2)) with n - 2 degrees of freedom.
    """
    if r is None or n < 3:
        return None, None
    if abs(r) >= 1.0:
        # Perfect correlation: t is unbounded
        return None, 0.0
    t = r * math.sqrt((n - 2) / (1 - r * r))
    p = 2 * stats.t.sf(abs(t), df=n - 2)
    return float(t), float(p)


def chance_test(
    correct_count: int, n: int, n_options: int, confidence_level: float
) -> tuple[float | None, float | None, float | None, float | None]:
    """
    Exact binomial test of the proportion correct against guessing.

    Returns (chance_level, p_value, ci_low, ci_high).
    """
    if n_options < 1:
        return None, None, None, None
    chance = 1.0 / n_options
    if n == 0:
        return chance, None, None, None
    result = stats.binomtest(correct_count, n, p=chance)
    ci = result.proportion_ci(confidence_level=confidence_level, method="exact")
    return chance, float(result.pvalue), float(ci.low), float(ci.high)


def cronbach_alpha(
    item_scores: NDArray[np.float64],
) -> float | None:
    """
    Cronbach's alpha of an (n_students, n_items) score matrix.

    alpha = k / (k - 1) * (1 - sum(item variances) / variance(total))
    """
    n, k = item_scores.shape
    if k < 2 or n < 2:
        return None
    item_var = item_scores.var(axis=0, ddof=1)
    total_var = item_scores.sum(axis=1).var(ddof=1)
    if total_var <= 0:
        return None
    return finite_or_none(k / (k - 1) * (1 - item_var.sum() / total_var))


def standard_error_of_measurement(
    totals: NDArray[np.float64], alpha: float | None
) -> float | None:
    if alpha is None or len(totals) < 2 or alpha > 1:
        return None
    return finite_or_none(totals.std(ddof=1) * math.sqrt(1 - alpha))


def score_distribution(totals: NDArray[np.float64]) -> ScoreDistribution:
    """Descriptive statistics of total scores."""
    n = len(totals)
    if n == 0:
        return ScoreDistribution(
            n=0,
            mean=None,
            std=None,
            median=None,
            min=None,
            max=None,
            q1=None,
            q3=None,
            skewness=None,
            kurtosis=None,
        )

    std = float(totals.std(ddof=1)) if n >= 2 else None
    has_spread = std is not None and std > 0
    q1, median, q3 = np.percentile(totals, [25, 50, 75])

    skewness = (
        finite_or_none(stats.skew(totals, bias=False))
        if n >= 3 and has_spread
        else None
    )
    # The unbiased excess kurtosis needs at least four observations
    kurtosis = (
        finite_or_none(stats.kurtosis(totals, bias=False))
        if n >= 4 and has_spread
        else None
    )

    return ScoreDistribution(
        n=n,
        mean=float(totals.mean()),
        std=std,
        median=float(median),
        min=float(totals.min()),
        max=float(totals.max()),
        q1=float(q1),
        q3=float(q3),
        skewness=skewness,
        kurtosis=kurtosis,
    )
