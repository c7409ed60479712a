"""
Dense matrices built from normalized student responses.

Rows follow the order of the student responses, columns the order of the
original question list. Everything is in original semantics: a selected
option is its original index regardless of the variant it was printed on.
"""

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from exam_engine.core.constants import MISSING_VALUE
from exam_engine.core.data_models import (
    Question,
    ResponseMatrix,
    StudentResponse,
)
from exam_engine.variants.answer_key import correct_original_index, option_texts


@dataclass(frozen=True)
class ItemScoreMatrix:
    """
    Per-student, per-item view of scored responses.

    Attributes:
        student_ids: Row labels.
        variant_codes: Variant sat by each student.
        question_ids: Column labels (original question order).
        present: True where the student's response includes the item.
        correct: True where the item was answered correctly.
        points: Points awarded (0 where not present).
        selected: Original option index chosen, MISSING_VALUE for blank,
            unreadable or absent answers.
        totals: Each student's total score.
    """

    student_ids: tuple[str, ...]
    variant_codes: tuple[str, ...]
    question_ids: tuple[str, ...]
    present: NDArray[np.bool_]
    correct: NDArray[np.bool_]
    points: NDArray[np.float64]
    selected: NDArray[np.int8]
    totals: NDArray[np.float64]

    @property
    def n_students(self) -> int:
        return len(self.student_ids)

    @property
    def n_items(self) -> int:
        return len(self.question_ids)

    def subset(self, rows: NDArray[np.bool_]) -> "ItemScoreMatrix":
        """Rows selected by a boolean mask."""
        idx = np.flatnonzero(rows)
        return ItemScoreMatrix(
            student_ids=tuple(self.student_ids[i] for i in idx),
            variant_codes=tuple(self.variant_codes[i] for i in idx),
            question_ids=self.question_ids,
            present=self.present[idx],
            correct=self.correct[idx],
            points=self.points[idx],
            selected=self.selected[idx],
            totals=self.totals[idx],
        )


def build_item_matrix(
    questions: Sequence[Question],
    student_responses: Sequence[StudentResponse],
) -> ItemScoreMatrix:
    """Lay scored responses out as dense arrays. Unknown question ids are ignored."""
    column = {q.id: j for j, q in enumerate(questions)}
    n, k = len(student_responses), len(questions)

    present = np.zeros((n, k), dtype=np.bool_)
    correct = np.zeros((n, k), dtype=np.bool_)
    points = np.zeros((n, k), dtype=np.float64)
    selected = np.full((n, k), MISSING_VALUE, dtype=np.int8)
    totals = np.zeros(n, dtype=np.float64)

    for i, student in enumerate(student_responses):
        totals[i] = student.total_score
        for response in student.responses:
            j = column.get(response.question_id)
            if j is None:
                continue
            present[i, j] = True
            correct[i, j] = response.is_correct
            points[i, j] = response.points_awarded
            if response.selected_index is not None:
                selected[i, j] = response.selected_index

    return ItemScoreMatrix(
        student_ids=tuple(s.student_id for s in student_responses),
        variant_codes=tuple(s.variant_code for s in student_responses),
        question_ids=tuple(q.id for q in questions),
        present=present,
        correct=correct,
        points=points,
        selected=selected,
        totals=totals,
    )


def to_response_matrix(
    matrix: ItemScoreMatrix, questions: Sequence[Question]
) -> ResponseMatrix:
    n_categories = max([2, *(len(option_texts(q)) for q in questions)])
    return ResponseMatrix(responses=matrix.selected, n_categories=n_categories)


def correct_option_indices(questions: Sequence[Question]) -> NDArray[np.int8]:
    """Original index of each question's correct option (MISSING_VALUE if absent)."""
    indices = [correct_original_index(q) for q in questions]
    return np.array(
        [MISSING_VALUE if i is None else i for i in indices], dtype=np.int8
    )
