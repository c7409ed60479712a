"""Tests for core domain records."""

import numpy as np
import pytest

from exam_engine.core.constants import MISSING_VALUE
from exam_engine.core.data_models import (
    GenerationConfig,
    MultipleChoiceQuestion,
    QuestionType,
    ResponseMatrix,
    TrueFalseQuestion,
    make_question,
)
from exam_engine.core.exceptions import InvalidConfigurationError


class TestQuestions:
    def test_multiple_choice_options_are_tuple(self) -> None:
        """Options given as a list are stored as a tuple."""
        q = MultipleChoiceQuestion(
            id="q1", text="?", options=["A", "B"], correct_answer="A"  # type: ignore[arg-type]
        )
        assert q.options == ("A", "B")
        assert q.question_type is QuestionType.MULTIPLE_CHOICE

    def test_true_false_default_options(self) -> None:
        """An empty option list means True/False."""
        q = TrueFalseQuestion(id="q1", text="?", correct_answer="True")
        assert q.effective_options == ("True", "False")
        assert q.question_type is QuestionType.TRUE_FALSE

    def test_true_false_custom_options(self) -> None:
        """Two custom options are kept as given."""
        q = TrueFalseQuestion(
            id="q1", text="?", correct_answer="Yes", options=("Yes", "No")
        )
        assert q.effective_options == ("Yes", "No")

    def test_true_false_wrong_option_count(self) -> None:
        """True/false questions take zero or two options."""
        with pytest.raises(InvalidConfigurationError, match="0 or 2 options"):
            TrueFalseQuestion(
                id="q1", text="?", correct_answer="A", options=("A", "B", "C")
            )

    def test_negative_points_rejected(self) -> None:
        """Point values cannot be negative."""
        with pytest.raises(InvalidConfigurationError, match="points must be"):
            MultipleChoiceQuestion(
                id="q1", text="?", options=("A",), correct_answer="A", points=-1
            )

    def test_option_count_limited_to_letters(self) -> None:
        """Options are lettered A-Z, so at most 26 are accepted."""
        options = tuple(f"o{i}" for i in range(27))
        with pytest.raises(InvalidConfigurationError, match="at most 26"):
            MultipleChoiceQuestion(
                id="q1", text="?", options=options, correct_answer="o0"
            )
        q = MultipleChoiceQuestion(
            id="q1", text="?", options=options[:26], correct_answer="o25"
        )
        assert len(q.options) == 26

    def test_make_question_dispatch(self) -> None:
        """The stored type tag selects the record type."""
        mc = make_question("q1", "?", "MULTIPLE_CHOICE", ["A", "B"], "A")
        tf = make_question("q2", "?", QuestionType.TRUE_FALSE, None, "True")
        assert isinstance(mc, MultipleChoiceQuestion)
        assert isinstance(tf, TrueFalseQuestion)

    def test_make_question_unknown_type(self) -> None:
        """Unknown type tags are rejected."""
        with pytest.raises(InvalidConfigurationError, match="Unknown question type"):
            make_question("q1", "?", "ESSAY", None, "x")


class TestGenerationConfig:
    def test_valid(self) -> None:
        config = GenerationConfig(number_of_variants=3, seed="gen-1")
        assert config.randomize_question_order
        assert config.randomize_option_order
        assert not config.randomize_true_false_options

    @pytest.mark.parametrize("n", [0, 11, -2])
    def test_variant_count_out_of_range(self, n: int) -> None:
        """Only 1 to 10 variants are allowed."""
        with pytest.raises(InvalidConfigurationError, match="number_of_variants"):
            GenerationConfig(number_of_variants=n, seed="gen-1")

    @pytest.mark.parametrize("seed", ["", "   "])
    def test_missing_seed(self, seed: str) -> None:
        """A blank seed is rejected."""
        with pytest.raises(InvalidConfigurationError, match="seed"):
            GenerationConfig(number_of_variants=2, seed=seed)

    def test_is_value_error(self) -> None:
        """Configuration errors are ValueErrors."""
        with pytest.raises(ValueError):
            GenerationConfig(number_of_variants=0, seed="x")


class TestResponseMatrix:
    def test_counts_exclude_missing(self) -> None:
        responses = np.array(
            [[0, 1], [0, MISSING_VALUE], [2, 1]], dtype=np.int8
        )
        rm = ResponseMatrix(responses=responses, n_categories=3)
        assert rm.n_students == 3
        assert rm.n_items == 2
        np.testing.assert_array_equal(rm.item_response_counts(0), [2, 0, 1])
        np.testing.assert_array_equal(rm.item_response_counts(1), [0, 2, 0])

    def test_answered_mask(self) -> None:
        responses = np.array([[0, MISSING_VALUE]], dtype=np.int8)
        rm = ResponseMatrix(responses=responses, n_categories=2)
        np.testing.assert_array_equal(rm.answered_mask, [[True, False]])

    def test_out_of_range_values(self) -> None:
        with pytest.raises(ValueError, match="Response values must be in"):
            ResponseMatrix(
                responses=np.array([[0, 3]], dtype=np.int8), n_categories=3
            )

    def test_requires_2d(self) -> None:
        with pytest.raises(ValueError, match="must be 2D"):
            ResponseMatrix(
                responses=np.array([0, 1], dtype=np.int8), n_categories=2
            )
