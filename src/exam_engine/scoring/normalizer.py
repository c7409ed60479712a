"""
Response normalization.

Maps letter-coded answers from a variant back to the original question
semantics so that every downstream statistic compares like with like.
"""

import logging
from collections.abc import Sequence

from exam_engine.core.data_models import (
    NormalizedResponse,
    Question,
    RawSubmission,
    StudentResponse,
    Variant,
)
from exam_engine.core.utils import normalize_text
from exam_engine.variants.answer_key import (
    option_texts,
    original_index_for_letter,
    resolve_correct_option,
)

logger = logging.getLogger(__name__)


def points_for(question: Question, answered: bool, is_correct: bool) -> float:
    """Points awarded for one answer; blanks are never penalized."""
    if is_correct:
        return question.points
    if answered and question.negative_points:
        return -abs(question.negative_points)
    return 0.0


def _normalize_one(
    variant: Variant,
    question: Question,
    question_number: int,
    raw_answer: str | None,
) -> NormalizedResponse:
    correct_option = resolve_correct_option(variant, question)
    if correct_option is None:
        correct_option = question.correct_answer

    selected_index: int | None = None
    if raw_answer is not None and raw_answer.strip():
        selected_index = original_index_for_letter(variant, question, raw_answer)
        if selected_index is None:
            logger.debug(
                f"Unreadable answer '{raw_answer}' for question {question.id} "
                f"on variant {variant.variant_code}"
            )

    selected_option = (
        option_texts(question)[selected_index]
        if selected_index is not None
        else None
    )
    is_correct = selected_option is not None and normalize_text(
        selected_option
    ) == normalize_text(correct_option)

    return NormalizedResponse(
        question_id=question.id,
        question_number=question_number,
        raw_answer=raw_answer,
        selected_option=selected_option,
        selected_index=selected_index,
        correct_option=correct_option,
        is_correct=is_correct,
        points_awarded=points_for(
            question, selected_index is not None, is_correct
        ),
        max_points=question.points,
    )


def normalize_responses(
    variant: Variant,
    exam_questions: Sequence[Question],
    raw_submission: RawSubmission,
) -> list[NormalizedResponse]:
    """
    Normalize a student's raw answers for the variant they sat.

    Returns one response per question on the variant, in the variant's
    displayed order. Blank or unreadable answers produce a response with
    ``selected_option=None`` and zero points.
    """
    questions_by_id = {q.id: q for q in exam_questions}
    on_variant = {entry.question_id for entry in variant.answer_key}

    unknown = sorted(set(raw_submission.answers) - on_variant)
    if unknown:
        logger.warning(
            f"Ignoring answers from student {raw_submission.student_id} for "
            f"questions not on variant {variant.variant_code}: {unknown}"
        )

    normalized: list[NormalizedResponse] = []
    for entry in variant.answer_key:
        question = questions_by_id.get(entry.question_id)
        if question is None:
            logger.warning(
                f"Variant {variant.variant_code} references unknown question "
                f"{entry.question_id}; skipping"
            )
            continue
        normalized.append(
            _normalize_one(
                variant,
                question,
                entry.question_number,
                raw_submission.answers.get(question.id),
            )
        )
    return normalized


def score_submission(
    variant: Variant,
    exam_questions: Sequence[Question],
    raw_submission: RawSubmission,
) -> StudentResponse:
    """Normalize a submission and total its points."""
    responses = normalize_responses(variant, exam_questions, raw_submission)
    return StudentResponse(
        student_id=raw_submission.student_id,
        variant_code=variant.variant_code,
        responses=tuple(responses),
        total_score=sum(r.points_awarded for r in responses),
        max_possible_score=sum(r.max_points for r in responses),
    )


def score_submissions(
    variants: Sequence[Variant],
    exam_questions: Sequence[Question],
    raw_submissions: Sequence[RawSubmission],
) -> list[StudentResponse]:
    """Score many submissions; those with an unknown variant code are skipped."""
    by_code = {v.variant_code: v for v in variants}
    scored: list[StudentResponse] = []
    for submission in raw_submissions:
        variant = by_code.get(submission.variant_code)
        if variant is None:
            logger.warning(
                f"Skipping student {submission.student_id}: unknown variant "
                f"code '{submission.variant_code}'"
            )
            continue
        scored.append(score_submission(variant, exam_questions, submission))
    return scored
