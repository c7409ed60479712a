"""
Pairwise response-similarity kernels.

Responses are original option indices (int8) with MISSING_VALUE for blank
answers, so two students agree only when they chose the same option in
original semantics, whatever letter it carried on their variants.
"""

import numpy as np
from numba import njit  # type: ignore
from numpy.typing import NDArray

from exam_engine.core.constants import MISSING_VALUE


@njit  # type: ignore
def count_common_items(a: NDArray[np.int8], b: NDArray[np.int8]) -> np.uint32:
    """Items both students answered."""
    valid_mask = (a != MISSING_VALUE) & (b != MISSING_VALUE)
    return np.uint32(np.count_nonzero(valid_mask))


@njit  # type: ignore
def count_matching_responses(
    a: NDArray[np.int8], b: NDArray[np.int8]
) -> np.uint32:
    """Items both students answered with the same option."""
    valid_mask = (a != MISSING_VALUE) & (b != MISSING_VALUE)
    matches = (a == b) & valid_mask
    return np.uint32(np.count_nonzero(matches))


@njit  # type: ignore
def count_identical_incorrect(
    a: NDArray[np.int8], b: NDArray[np.int8], correct: NDArray[np.int8]
) -> np.uint32:
    """
    Items both students answered with the same wrong option.

    Items without a known correct option (MISSING_VALUE) never count.
    """
    valid_mask = (
        (a != MISSING_VALUE) & (b != MISSING_VALUE) & (correct != MISSING_VALUE)
    )
    shared_wrong = (a == b) & (a != correct) & valid_mask
    return np.uint32(np.count_nonzero(shared_wrong))


@njit  # type: ignore
def poisson_binomial_sf(probs: NDArray[np.float64], observed: int) -> float:
    """
    P(X >= observed) where X is a sum of independent Bernoulli(probs).

    Exact dynamic programme over the count distribution, O(len(probs)^2).
    """
    n = probs.shape[0]
    if observed <= 0:
        return 1.0
    if observed > n:
        return 0.0

    dist = np.zeros(n + 1, dtype=np.float64)
    dist[0] = 1.0
    for i in range(n):
        p = probs[i]
        for j in range(i + 1, 0, -1):
            dist[j] = dist[j] * (1.0 - p) + dist[j - 1] * p
        dist[0] = dist[0] * (1.0 - p)

    tail = 0.0
    for j in range(observed, n + 1):
        tail += dist[j]
    return min(1.0, max(0.0, tail))


@njit  # type: ignore
def pairwise_statistics(
    responses: NDArray[np.int8],
    correct: NDArray[np.int8],
    incorrect_match_probs: NDArray[np.float64],
    min_common_items: int,
) -> tuple[
    NDArray[np.intp],
    NDArray[np.intp],
    NDArray[np.uint32],
    NDArray[np.uint32],
    NDArray[np.uint32],
    NDArray[np.float64],
    NDArray[np.float64],
    NDArray[np.float64],
]:
    """
    Statistics for every unordered pair (i, j), i < j.

    Returns flat arrays of length N * (N - 1) / 2: row index, column index,
    common items, matching answers, identical incorrect answers, expected
    identical incorrect under independence, its variance, and the exact
    upper-tail p-value. Pairs with fewer than ``min_common_items`` common
    items get a p-value of NaN (not tested).
    """
    n, k = responses.shape
    n_pairs = n * (n - 1) // 2

    rows = np.empty(n_pairs, dtype=np.intp)
    cols = np.empty(n_pairs, dtype=np.intp)
    common = np.zeros(n_pairs, dtype=np.uint32)
    matching = np.zeros(n_pairs, dtype=np.uint32)
    identical_incorrect = np.zeros(n_pairs, dtype=np.uint32)
    expected = np.zeros(n_pairs, dtype=np.float64)
    variance = np.zeros(n_pairs, dtype=np.float64)
    p_values = np.full(n_pairs, np.nan, dtype=np.float64)

    probs = np.empty(k, dtype=np.float64)
    idx = 0
    for i in range(n):
        for j in range(i + 1, n):
            a = responses[i, :]
            b = responses[j, :]
            rows[idx] = i
            cols[idx] = j
            common[idx] = count_common_items(a, b)
            matching[idx] = count_matching_responses(a, b)
            identical_incorrect[idx] = count_identical_incorrect(a, b, correct)

            m = 0
            for item in range(k):
                if (
                    a[item] != MISSING_VALUE
                    and b[item] != MISSING_VALUE
                    and correct[item] != MISSING_VALUE
                ):
                    q = incorrect_match_probs[item]
                    probs[m] = q
                    expected[idx] += q
                    variance[idx] += q * (1.0 - q)
                    m += 1

            if common[idx] >= min_common_items:
                p_values[idx] = poisson_binomial_sf(
                    probs[:m], int(identical_incorrect[idx])
                )
            idx += 1

    return (
        rows,
        cols,
        common,
        matching,
        identical_incorrect,
        expected,
        variance,
        p_values,
    )


@njit  # type: ignore
def max_similarity_per_student(
    responses: NDArray[np.int8],
) -> tuple[NDArray[np.float64], NDArray[np.intp]]:
    """
    Highest agreement rate (matching / common) of each student with anyone
    else, and the index of that other student (-1 if none).

    Returns shape (N,) arrays instead of an (N, N) matrix.
    """
    n = responses.shape[0]
    max_sim = np.zeros(n, dtype=np.float64)
    partner = np.full(n, -1, dtype=np.intp)

    for i in range(n):
        for j in range(i):
            common = count_common_items(responses[i, :], responses[j, :])
            if common == 0:
                continue
            sim = (
                count_matching_responses(responses[i, :], responses[j, :])
                / common
            )
            if partner[i] == -1 or sim > max_sim[i]:
                max_sim[i] = sim
                partner[i] = j
            if partner[j] == -1 or sim > max_sim[j]:
                max_sim[j] = sim
                partner[j] = i

    return max_sim, partner


def incorrect_match_probabilities(
    responses: NDArray[np.int8],
    correct: NDArray[np.int8],
    n_categories: int,
) -> NDArray[np.float64]:
    """
    Chance that two independent students pick the same wrong option.

    For item i with population option shares p_ik this is the sum of
    p_ik^2 over the incorrect options k. Items without a known correct
    option or without answers get 0.
    """
    n_items = responses.shape[1]
    q = np.zeros(n_items, dtype=np.float64)
    for item in range(n_items):
        column = responses[:, item]
        answered = column[column != MISSING_VALUE].astype(np.int64)
        if len(answered) == 0 or correct[item] == MISSING_VALUE:
            continue
        shares = np.bincount(answered, minlength=n_categories) / len(answered)
        shares[correct[item]] = 0.0
        q[item] = float(np.sum(shares**2))
    return q
