"""Tests for variant generation."""

import pytest

from exam_engine.core.data_models import (
    GenerationConfig,
    MultipleChoiceQuestion,
    Question,
    TrueFalseQuestion,
)
from exam_engine.core.exceptions import (
    ImmutableVariantError,
    InvalidConfigurationError,
)
from exam_engine.variants.answer_key import (
    resolve_correct_option,
    verify_answer_key,
)
from exam_engine.variants.generator import (
    MAX_ESTIMATED_VARIANTS,
    ensure_regeneration_allowed,
    estimate_distinct_variants,
    generate_variants,
    regenerate_variants,
)
from exam_engine.variants.serialization import variant_to_json


def _questions(n: int = 6) -> list[Question]:
    questions: list[Question] = [
        MultipleChoiceQuestion(
            id=f"mc{i}",
            text=f"Question {i}",
            options=("alpha", "beta", "gamma", "delta"),
            correct_answer=("alpha", "beta", "gamma", "delta")[i % 4],
        )
        for i in range(n)
    ]
    questions.append(
        TrueFalseQuestion(id="tf", text="Statement", correct_answer="False")
    )
    return questions


class TestTwoQuestionExam:
    def test_original_answer_is_stable(self) -> None:
        """The original answer text is recorded whatever the letter."""
        questions: list[Question] = [
            MultipleChoiceQuestion(
                id="q1",
                text="Pick B",
                options=("A", "B", "C", "D"),
                correct_answer="B",
            ),
            TrueFalseQuestion(id="q2", text="Truth", correct_answer="True"),
        ]
        config = GenerationConfig(
            number_of_variants=3,
            seed="gen-1",
            randomize_question_order=False,
            randomize_option_order=True,
        )
        result = generate_variants(questions, config)

        assert len(result.variants) == 3
        for variant in result.variants:
            assert variant.answer_key[0].question_id == "q1"
            assert variant.answer_key[0].original_answer == "B"
            assert resolve_correct_option(variant, questions[0]) == "B"


class TestDeterminism:
    def test_same_seed_same_variants(self) -> None:
        """Two runs with the same seed serialize identically."""
        config = GenerationConfig(number_of_variants=5, seed="exam-42")
        first = generate_variants(_questions(), config)
        second = generate_variants(_questions(), config)
        assert [variant_to_json(v) for v in first.variants] == [
            variant_to_json(v) for v in second.variants
        ]

    def test_different_seeds_differ(self) -> None:
        questions = _questions(8)
        a = generate_variants(questions, GenerationConfig(3, seed="seed-a"))
        b = generate_variants(questions, GenerationConfig(3, seed="seed-b"))
        assert [v.question_order for v in a.variants] != [
            v.question_order for v in b.variants
        ]

    def test_variant_numbering(self) -> None:
        result = generate_variants(_questions(), GenerationConfig(4, seed="s"))
        assert [v.variant_number for v in result.variants] == [1, 2, 3, 4]
        assert [v.variant_code for v in result.variants] == [
            "V1",
            "V2",
            "V3",
            "V4",
        ]
        assert result.total_generated == 4


class TestPermutations:
    def test_question_order_is_bijection(self) -> None:
        questions = _questions()
        result = generate_variants(questions, GenerationConfig(10, seed="bij"))
        for variant in result.variants:
            assert sorted(variant.question_order) == list(range(len(questions)))

    def test_option_permutations_are_bijections(self) -> None:
        result = generate_variants(_questions(), GenerationConfig(10, seed="bij"))
        for variant in result.variants:
            for perm in variant.option_permutations.values():
                assert sorted(perm) == list(range(len(perm)))

    def test_answer_key_round_trip(self) -> None:
        """Every stored letter resolves back to the original answer."""
        questions = _questions()
        config = GenerationConfig(
            10, seed="round-trip", randomize_true_false_options=True
        )
        for variant in generate_variants(questions, config).variants:
            assert verify_answer_key(variant, questions) == []
            for question in questions:
                assert (
                    resolve_correct_option(variant, question)
                    == question.correct_answer
                )

    def test_answer_key_in_display_order(self) -> None:
        questions = _questions()
        result = generate_variants(questions, GenerationConfig(3, seed="order"))
        for variant in result.variants:
            ids = [entry.question_id for entry in variant.answer_key]
            assert ids == [questions[i].id for i in variant.question_order]
            numbers = [entry.question_number for entry in variant.answer_key]
            assert numbers == list(range(1, len(questions) + 1))

    def test_identity_when_disabled(self) -> None:
        config = GenerationConfig(
            2,
            seed="fixed",
            randomize_question_order=False,
            randomize_option_order=False,
        )
        for variant in generate_variants(_questions(), config).variants:
            assert variant.question_order == tuple(range(7))
            assert variant.option_permutations == {}

    def test_true_false_not_shuffled_by_default(self) -> None:
        result = generate_variants(_questions(), GenerationConfig(3, seed="tf"))
        for variant in result.variants:
            assert "tf" not in variant.option_permutations

    def test_true_false_shuffled_when_enabled(self) -> None:
        config = GenerationConfig(
            3, seed="tf", randomize_true_false_options=True
        )
        for variant in generate_variants(_questions(), config).variants:
            assert sorted(variant.option_permutations["tf"]) == [0, 1]

    def test_single_option_not_shuffled(self) -> None:
        questions: list[Question] = [
            MultipleChoiceQuestion(
                id="only", text="?", options=("yes",), correct_answer="yes"
            )
        ]
        result = generate_variants(questions, GenerationConfig(2, seed="one"))
        for variant in result.variants:
            assert variant.option_permutations == {}
            assert variant.question_order == (0,)
            assert variant.answer_key[0].correct_answer == "A"


class TestDataInconsistency:
    def test_missing_correct_answer_falls_back_to_a(self) -> None:
        """The question is kept with letter A when its answer is missing."""
        questions: list[Question] = [
            MultipleChoiceQuestion(
                id="bad",
                text="?",
                options=("x", "y", "z"),
                correct_answer="not an option",
            )
        ]
        result = generate_variants(questions, GenerationConfig(2, seed="bad"))
        for variant in result.variants:
            entry = variant.answer_key[0]
            assert entry.correct_answer == "A"
            assert entry.original_answer == "not an option"
            assert verify_answer_key(variant, questions) == ["bad"]

    def test_correct_answer_matched_case_insensitively(self) -> None:
        questions: list[Question] = [
            MultipleChoiceQuestion(
                id="q", text="?", options=("Red", "Blue"), correct_answer=" blue "
            )
        ]
        config = GenerationConfig(1, seed="case", randomize_option_order=False)
        variant = generate_variants(questions, config).variants[0]
        assert variant.answer_key[0].correct_answer == "B"


class TestValidation:
    def test_empty_questions(self) -> None:
        with pytest.raises(InvalidConfigurationError, match="empty"):
            generate_variants([], GenerationConfig(2, seed="x"))

    def test_duplicate_ids(self) -> None:
        q = TrueFalseQuestion(id="dup", text="?", correct_answer="True")
        with pytest.raises(InvalidConfigurationError, match="Duplicate"):
            generate_variants([q, q], GenerationConfig(2, seed="x"))


class TestUniqueness:
    def test_estimate(self) -> None:
        """Product of factorials of every shuffled domain."""
        questions: list[Question] = [
            MultipleChoiceQuestion(
                id="a", text="?", options=("1", "2", "3"), correct_answer="1"
            ),
            TrueFalseQuestion(id="b", text="?", correct_answer="True"),
        ]
        config = GenerationConfig(2, seed="x")
        # 2! question orders x 3! option orders
        assert estimate_distinct_variants(questions, config) == 12

    def test_estimate_capped(self) -> None:
        config = GenerationConfig(2, seed="x")
        assert estimate_distinct_variants(_questions(30), config) == (
            MAX_ESTIMATED_VARIANTS
        )

    def test_duplicates_allowed_and_reported(self) -> None:
        """Asking for more variants than renderings warns but succeeds."""
        questions: list[Question] = [
            MultipleChoiceQuestion(
                id="a", text="?", options=("1", "2"), correct_answer="1"
            )
        ]
        result = generate_variants(questions, GenerationConfig(5, seed="dup"))
        assert result.total_generated == 5
        assert result.estimated_distinct_variants == 2
        assert result.duplicate_pairs
        assert result.unique_option_combinations <= 2
        assert any("duplicates" in w for w in result.warnings)

    def test_no_randomization_all_duplicates(self) -> None:
        config = GenerationConfig(
            3,
            seed="same",
            randomize_question_order=False,
            randomize_option_order=False,
        )
        result = generate_variants(_questions(), config)
        assert result.duplicate_pairs == ((1, 2), (1, 3), (2, 3))
        assert result.unique_question_orders == 1


class TestRegenerationGuard:
    def test_allowed_without_results(self) -> None:
        config = GenerationConfig(3, seed="regen")
        existing = generate_variants(_questions(), config).variants
        result = regenerate_variants(_questions(), config, existing, [])
        assert result.total_generated == 3

    def test_rejected_with_results(self) -> None:
        config = GenerationConfig(3, seed="regen")
        existing = generate_variants(_questions(), config).variants
        with pytest.raises(ImmutableVariantError) as exc_info:
            regenerate_variants(_questions(), config, existing, ["V2", "V1"])
        assert exc_info.value.variant_codes == ["V1", "V2"]
        assert "V1, V2" in exc_info.value.reason

    def test_results_for_other_codes_ignored(self) -> None:
        """Only codes of the current variants block regeneration."""
        config = GenerationConfig(2, seed="regen")
        existing = generate_variants(_questions(), config).variants
        ensure_regeneration_allowed(existing, ["V7"])
