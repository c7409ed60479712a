"""
Cross-variant regrading.

A sheet copied letter by letter from a neighbour on another variant, or
filled in from a leaked key, lines up with that variant's answer key rather
than its own. Here answers stay as the letters printed at each question
number; nothing is mapped back to original options.
"""

import logging
from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray

from exam_engine.core.constants import MISSING_VALUE
from exam_engine.core.data_models import StudentResponse, Variant
from exam_engine.core.utils import letter_to_index
from exam_engine.integrity.data_models import CrossVariantGrade
from exam_engine.integrity.similarity import (
    count_common_items,
    count_matching_responses,
)

logger = logging.getLogger(__name__)


def _sheet_length(
    variants: Sequence[Variant], students: Sequence[StudentResponse]
) -> int:
    numbers = [e.question_number for v in variants for e in v.answer_key]
    numbers.extend(r.question_number for s in students for r in s.responses)
    return max(numbers, default=0)


def key_matrix(variants: Sequence[Variant], n_positions: int) -> NDArray[np.int8]:
    """Correct letter index at each printed position, one row per variant."""
    keys = np.full((len(variants), n_positions), MISSING_VALUE, dtype=np.int8)
    for v, variant in enumerate(variants):
        for entry in variant.answer_key:
            letter = letter_to_index(entry.correct_answer)
            if letter is not None and 1 <= entry.question_number <= n_positions:
                keys[v, entry.question_number - 1] = letter
    return keys


def letter_matrix(
    students: Sequence[StudentResponse], n_positions: int
) -> NDArray[np.int8]:
    """Letter index written at each printed position, one row per student."""
    letters = np.full((len(students), n_positions), MISSING_VALUE, dtype=np.int8)
    for s, student in enumerate(students):
        for response in student.responses:
            if response.raw_answer is None:
                continue
            letter = letter_to_index(response.raw_answer)
            if letter is not None and 1 <= response.question_number <= n_positions:
                letters[s, response.question_number - 1] = letter
    return letters


def key_percentages(
    letters: NDArray[np.int8], keys: NDArray[np.int8]
) -> NDArray[np.float64]:
    """
    Percentage of each variant's key matched by each student's letters.

    Returns:
        Array of shape (n_students, n_variants). Blank positions never
        match; a variant with an empty key scores 0.
    """
    answered = letters != MISSING_VALUE
    percentages = np.zeros((letters.shape[0], keys.shape[0]), dtype=np.float64)
    for v, key in enumerate(keys):
        key_size = int(np.count_nonzero(key != MISSING_VALUE))
        if key_size == 0:
            continue
        matches = np.count_nonzero((letters == key) & answered, axis=1)
        percentages[:, v] = 100.0 * matches / key_size
    return percentages


def _closest_sheet(
    letters: NDArray[np.int8], a: int, candidates: NDArray[np.intp]
) -> tuple[int | None, float | None]:
    best: int | None = None
    best_agreement: float | None = None
    for b in candidates:
        common = count_common_items(letters[a], letters[b])
        if common == 0:
            continue
        agreement = float(count_matching_responses(letters[a], letters[b]) / common)
        if best_agreement is None or agreement > best_agreement:
            best, best_agreement = int(b), agreement
    return best, best_agreement


def cross_variant_grades(
    exam_variants: Sequence[Variant],
    student_responses: Sequence[StudentResponse],
    min_gain: float,
) -> list[CrossVariantGrade]:
    """
    Regrade every sheet on every other variant's key.

    A sheet is reported for each variant whose key it matches at least
    ``min_gain`` percentage points better than its own. Results are ordered
    by grade change, largest first. Sheets for unknown variant codes are
    skipped.
    """
    codes = [v.variant_code for v in exam_variants]
    variant_index = {code: v for v, code in enumerate(codes)}
    n_positions = _sheet_length(exam_variants, student_responses)

    letters = letter_matrix(student_responses, n_positions)
    percentages = key_percentages(letters, key_matrix(exam_variants, n_positions))
    own = np.array(
        [variant_index.get(s.variant_code, -1) for s in student_responses],
        dtype=np.intp,
    )

    grades: list[CrossVariantGrade] = []
    for a, student in enumerate(student_responses):
        if own[a] < 0:
            continue
        own_percentage = float(percentages[a, own[a]])
        for v, code in enumerate(codes):
            change = float(percentages[a, v]) - own_percentage
            if v == own[a] or change < min_gain:
                continue
            partner, agreement = _closest_sheet(
                letters, a, np.flatnonzero(own == v)
            )
            grades.append(
                CrossVariantGrade(
                    student_id=student.student_id,
                    variant_code=student.variant_code,
                    graded_variant_code=code,
                    own_key_percentage=own_percentage,
                    cross_key_percentage=float(percentages[a, v]),
                    grade_change=change,
                    closest_student_id=(
                        student_responses[partner].student_id
                        if partner is not None
                        else None
                    ),
                    letter_agreement=agreement,
                )
            )

    logger.info(
        f"{len(grades)} sheets score at least {min_gain} points higher on "
        "another variant's key"
    )
    return sorted(grades, key=lambda g: g.grade_change, reverse=True)
