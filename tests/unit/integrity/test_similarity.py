"""
Tests for pairwise similarity kernels.
"""

import numpy as np
import pytest
from scipy import stats

from exam_engine.core.constants import MISSING_VALUE
from exam_engine.integrity.similarity import (
    count_common_items,
    count_identical_incorrect,
    count_matching_responses,
    incorrect_match_probabilities,
    max_similarity_per_student,
    pairwise_statistics,
    poisson_binomial_sf,
)


class TestCounts:
    def test_all_matching(self) -> None:
        a = np.array([1, 2, 3, 0], dtype=np.int8)
        assert count_matching_responses(a, a.copy()) == 4
        assert count_common_items(a, a.copy()) == 4

    def test_missing_ignored(self) -> None:
        """Blank answers never count as agreement."""
        a = np.array([MISSING_VALUE, 2, 3, MISSING_VALUE], dtype=np.int8)
        b = np.array([1, MISSING_VALUE, 3, MISSING_VALUE], dtype=np.int8)
        assert count_common_items(a, b) == 1
        assert count_matching_responses(a, b) == 1

    def test_empty_arrays(self) -> None:
        a = np.array([], dtype=np.int8)
        assert count_common_items(a, a) == 0
        assert count_matching_responses(a, a) == 0

    def test_identical_incorrect(self) -> None:
        """Only shared wrong options count."""
        correct = np.array([0, 0, 0, 0], dtype=np.int8)
        a = np.array([0, 1, 2, 3], dtype=np.int8)
        b = np.array([0, 1, 3, 3], dtype=np.int8)
        assert count_identical_incorrect(a, b, correct) == 2

    def test_identical_incorrect_unknown_key(self) -> None:
        """Items without a known correct option are skipped."""
        correct = np.array([MISSING_VALUE, 0], dtype=np.int8)
        a = np.array([1, 1], dtype=np.int8)
        assert count_identical_incorrect(a, a.copy(), correct) == 1


class TestPoissonBinomial:
    def test_two_fair_coins(self) -> None:
        probs = np.array([0.5, 0.5])
        assert poisson_binomial_sf(probs, 0) == 1.0
        assert poisson_binomial_sf(probs, 1) == pytest.approx(0.75)
        assert poisson_binomial_sf(probs, 2) == pytest.approx(0.25)
        assert poisson_binomial_sf(probs, 3) == 0.0

    def test_matches_binomial(self) -> None:
        """Equal probabilities reduce to the binomial distribution."""
        probs = np.full(10, 0.3)
        for observed in range(1, 11):
            assert poisson_binomial_sf(probs, observed) == pytest.approx(
                stats.binom.sf(observed - 1, 10, 0.3)
            )

    def test_unequal_probabilities(self) -> None:
        probs = np.array([0.1, 0.2, 0.9])
        # P(all three) = 0.1 * 0.2 * 0.9
        assert poisson_binomial_sf(probs, 3) == pytest.approx(0.018)

    def test_empty(self) -> None:
        probs = np.array([], dtype=np.float64)
        assert poisson_binomial_sf(probs, 0) == 1.0
        assert poisson_binomial_sf(probs, 1) == 0.0


class TestIncorrectMatchProbabilities:
    def test_sum_of_squared_wrong_shares(self) -> None:
        responses = np.array([[0], [1], [1], [2]], dtype=np.int8)
        correct = np.array([0], dtype=np.int8)
        q = incorrect_match_probabilities(responses, correct, 4)
        # wrong shares 0.5 and 0.25
        assert q[0] == pytest.approx(0.3125)

    def test_unanswered_and_unknown_items(self) -> None:
        responses = np.array(
            [[MISSING_VALUE, 1], [MISSING_VALUE, 1]], dtype=np.int8
        )
        correct = np.array([0, MISSING_VALUE], dtype=np.int8)
        q = incorrect_match_probabilities(responses, correct, 4)
        np.testing.assert_array_equal(q, [0.0, 0.0])


class TestPairwiseStatistics:
    def test_pair_layout(self) -> None:
        responses = np.array(
            [[0, 1, 2], [0, 1, 3], [1, 1, 2]], dtype=np.int8
        )
        correct = np.array([0, 0, 0], dtype=np.int8)
        q = np.array([0.1, 0.2, 0.3])
        rows, cols, common, matching, identical, expected, variance, p = (
            pairwise_statistics(responses, correct, q, 1)
        )
        np.testing.assert_array_equal(rows, [0, 0, 1])
        np.testing.assert_array_equal(cols, [1, 2, 2])
        np.testing.assert_array_equal(common, [3, 3, 3])
        np.testing.assert_array_equal(matching, [2, 2, 1])
        np.testing.assert_array_equal(identical, [1, 2, 1])
        np.testing.assert_allclose(expected, [0.6, 0.6, 0.6])
        np.testing.assert_allclose(variance, [0.46, 0.46, 0.46])
        assert p[1] == pytest.approx(poisson_binomial_sf(q, 2))

    def test_too_few_common_items_untested(self) -> None:
        responses = np.array(
            [[0, MISSING_VALUE], [1, 1]], dtype=np.int8
        )
        correct = np.array([0, 0], dtype=np.int8)
        q = np.array([0.1, 0.1])
        *_, p = pairwise_statistics(responses, correct, q, 2)
        assert np.isnan(p[0])

    def test_single_student(self) -> None:
        responses = np.array([[0, 1]], dtype=np.int8)
        correct = np.array([0, 0], dtype=np.int8)
        rows, *_, p = pairwise_statistics(responses, correct, np.zeros(2), 1)
        assert len(rows) == 0
        assert len(p) == 0


class TestMaxSimilarityPerStudent:
    def test_partner_found(self) -> None:
        responses = np.array(
            [[1, 2, 3, 0], [1, 2, 3, 0], [3, 2, 1, 0]], dtype=np.int8
        )
        max_sim, partner = max_similarity_per_student(responses)
        np.testing.assert_allclose(max_sim, [1.0, 1.0, 0.5])
        np.testing.assert_array_equal(partner, [1, 0, 0])

    def test_no_common_items(self) -> None:
        """Students with nothing in common have no partner."""
        responses = np.array(
            [[1, MISSING_VALUE], [MISSING_VALUE, 2]], dtype=np.int8
        )
        max_sim, partner = max_similarity_per_student(responses)
        np.testing.assert_array_equal(partner, [-1, -1])
        np.testing.assert_array_equal(max_sim, [0.0, 0.0])
