"""
Domain records for variant generation, scoring and analysis.

This module defines:
- Question: closed tagged type (MultipleChoiceQuestion | TrueFalseQuestion)
- GenerationConfig: settings for one exam generation
- Variant / AnswerKeyEntry: one randomized rendering of an exam
- RawSubmission / NormalizedResponse / StudentResponse: scoring records
- ResponseMatrix: integer-coded option selections for matrix statistics
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import ClassVar

import numpy as np
from numpy.typing import NDArray

from exam_engine.core.constants import (
    DEFAULT_TRUE_FALSE_OPTIONS,
    MAX_OPTIONS,
    MAX_VARIANTS,
    MIN_VARIANTS,
    MISSING_VALUE,
)
from exam_engine.core.exceptions import InvalidConfigurationError


class QuestionType(StrEnum):
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    TRUE_FALSE = "TRUE_FALSE"


def _validate_points(points: float) -> None:
    if points < 0:
        raise InvalidConfigurationError(f"points must be >= 0, got {points}")


@dataclass(frozen=True)
class MultipleChoiceQuestion:
    """
    A question answered by picking one of an ordered list of options.

    Attributes:
        id: Stable question identifier.
        text: Question stem.
        options: Option texts in their original (authored) order.
        correct_answer: Text of the correct option (not a letter).
        points: Points awarded for a correct answer.
        negative_points: Penalty magnitude for a wrong answer, if any.
    """

    question_type: ClassVar[QuestionType] = QuestionType.MULTIPLE_CHOICE

    id: str
    text: str
    options: tuple[str, ...]
    correct_answer: str
    points: float = 1.0
    negative_points: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", tuple(self.options))
        if len(self.options) > MAX_OPTIONS:
            raise InvalidConfigurationError(
                f"Question {self.id} has {len(self.options)} options; at most "
                f"{MAX_OPTIONS} can be lettered"
            )
        _validate_points(self.points)


@dataclass(frozen=True)
class TrueFalseQuestion:
    """
    A two-option question. An empty option list means the implicit
    ("True", "False") pair.
    """

    question_type: ClassVar[QuestionType] = QuestionType.TRUE_FALSE

    id: str
    text: str
    correct_answer: str
    options: tuple[str, ...] = ()
    points: float = 1.0
    negative_points: float | None = None

    def __post_init__(self) -> None:
        options = tuple(self.options)
        if options and len(options) != 2:
            raise InvalidConfigurationError(
                f"True/false question {self.id} must have 0 or 2 options, "
                f"got {len(options)}"
            )
        object.__setattr__(self, "options", options)
        _validate_points(self.points)

    @property
    def effective_options(self) -> tuple[str, ...]:
        return self.options if self.options else DEFAULT_TRUE_FALSE_OPTIONS


Question = MultipleChoiceQuestion | TrueFalseQuestion


def make_question(
    id: str,
    text: str,
    question_type: QuestionType | str,
    options: list[str] | tuple[str, ...] | None,
    correct_answer: str,
    points: float = 1.0,
    negative_points: float | None = None,
) -> Question:
    """Build the concrete question record for a stored type tag."""
    try:
        kind = QuestionType(question_type)
    except ValueError as e:
        raise InvalidConfigurationError(
            f"Unknown question type '{question_type}' for question {id}"
        ) from e

    if kind is QuestionType.MULTIPLE_CHOICE:
        return MultipleChoiceQuestion(
            id=id,
            text=text,
            options=tuple(options or ()),
            correct_answer=correct_answer,
            points=points,
            negative_points=negative_points,
        )
    if kind is QuestionType.TRUE_FALSE:
        return TrueFalseQuestion(
            id=id,
            text=text,
            options=tuple(options or ()),
            correct_answer=correct_answer,
            points=points,
            negative_points=negative_points,
        )
    raise TypeError(f"Unhandled question type {kind}")


@dataclass(frozen=True)
class GenerationConfig:
    """
    Settings for one exam generation.

    Attributes:
        number_of_variants: How many variants to produce (1-10).
        seed: Seed string, by convention the generation id, so the same
            generation always reproduces the same variants.
        randomize_question_order: Shuffle question positions.
        randomize_option_order: Shuffle multiple choice options.
        randomize_true_false_options: Shuffle true/false options.
    """

    number_of_variants: int
    seed: str
    randomize_question_order: bool = True
    randomize_option_order: bool = True
    randomize_true_false_options: bool = False

    def __post_init__(self) -> None:
        if not (MIN_VARIANTS <= self.number_of_variants <= MAX_VARIANTS):
            raise InvalidConfigurationError(
                f"number_of_variants must be in [{MIN_VARIANTS}, {MAX_VARIANTS}], "
                f"got {self.number_of_variants}"
            )
        if not self.seed or not self.seed.strip():
            raise InvalidConfigurationError("seed must be a non-empty string")


@dataclass(frozen=True)
class AnswerKeyEntry:
    question_id: str
    question_number: int
    correct_answer: str
    original_answer: str


@dataclass(frozen=True)
class Variant:
    """
    One randomized rendering of an exam.

    Attributes:
        variant_number: 1-based number within the generation.
        variant_code: Display label printed on the sheet (e.g. "V1").
        question_order: Position -> index into the original question list.
        option_permutations: Question id -> (display position -> original
            option index). Only questions whose options were shuffled.
        answer_key: One entry per position, in displayed order.
    """

    variant_number: int
    variant_code: str
    question_order: tuple[int, ...]
    option_permutations: Mapping[str, tuple[int, ...]]
    answer_key: tuple[AnswerKeyEntry, ...]

    def answer_key_entry(self, question_id: str) -> AnswerKeyEntry | None:
        for entry in self.answer_key:
            if entry.question_id == question_id:
                return entry
        return None

    def permutation_for(self, question_id: str) -> tuple[int, ...] | None:
        return self.option_permutations.get(question_id)


@dataclass(frozen=True)
class RawSubmission:
    """
    Answers as read from one student's sheet.

    Attributes:
        student_id: Student identifier.
        variant_code: Code of the variant the student sat.
        answers: Question id -> raw letter/code. None or "" means blank.
    """

    student_id: str
    variant_code: str
    answers: Mapping[str, str | None]


@dataclass(frozen=True)
class NormalizedResponse:
    """A single answer mapped back to original question semantics."""

    question_id: str
    question_number: int
    raw_answer: str | None
    selected_option: str | None
    selected_index: int | None
    correct_option: str | None
    is_correct: bool
    points_awarded: float
    max_points: float

    @property
    def is_answered(self) -> bool:
        return self.selected_index is not None


@dataclass(frozen=True)
class StudentResponse:
    student_id: str
    variant_code: str
    responses: tuple[NormalizedResponse, ...]
    total_score: float
    max_possible_score: float

    def responses_by_question(self) -> dict[str, NormalizedResponse]:
        return {r.question_id: r for r in self.responses}


@dataclass(frozen=True)
class ResponseMatrix:
    """
    Option selections for matrix statistics.

    Attributes:
        responses: Array of shape (n_students, n_items) holding the original
            option index selected. Omitted, unreadable or unseen
            answers are MISSING_VALUE.
        n_categories: Largest option count across items.
    """

    responses: NDArray[np.int8]
    n_categories: int

    def __post_init__(self) -> None:
        if self.responses.ndim != 2:
            raise ValueError(
                f"responses must be 2D, got shape {self.responses.shape}"
            )
        if self.n_categories < 2:
            raise ValueError(
                f"n_categories must be >= 2, got {self.n_categories}"
            )
        valid = self.responses[self.responses != MISSING_VALUE]
        if len(valid) > 0 and (
            valid.min() < 0 or valid.max() >= self.n_categories
        ):
            raise ValueError(
                f"Response values must be in [0, {self.n_categories}), "
                f"got range [{valid.min()}, {valid.max()}]"
            )

    @property
    def n_students(self) -> int:
        return self.responses.shape[0]

    @property
    def n_items(self) -> int:
        return self.responses.shape[1]

    @property
    def answered_mask(self) -> NDArray[np.bool_]:
        """True where a student selected an option."""
        result: NDArray[np.bool_] = self.responses != MISSING_VALUE
        return result

    def item_response_counts(self, item_idx: int) -> NDArray[np.int64]:
        """
        Count selections of each option of an item (excluding omitted).

        Returns:
            Array of shape (n_categories,) with counts per option.
        """
        item_responses = self.responses[:, item_idx]
        valid = item_responses[item_responses != MISSING_VALUE]
        counts = np.bincount(valid.astype(np.int64), minlength=self.n_categories)
        return counts.astype(np.int64)
