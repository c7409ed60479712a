"""
Tests for regrading sheets on other variants' keys.
"""

import numpy as np

from exam_engine.core.constants import MISSING_VALUE
from exam_engine.core.data_models import (
    AnswerKeyEntry,
    NormalizedResponse,
    StudentResponse,
    Variant,
)
from exam_engine.integrity.cross_variant import (
    cross_variant_grades,
    key_matrix,
    key_percentages,
    letter_matrix,
)


def _variant(code: str, letters: str) -> Variant:
    return Variant(
        variant_number=int(code[1:]),
        variant_code=code,
        question_order=tuple(range(len(letters))),
        option_permutations={},
        answer_key=tuple(
            AnswerKeyEntry(
                question_id=f"q{i}",
                question_number=i + 1,
                correct_answer=letter,
                original_answer="x",
            )
            for i, letter in enumerate(letters)
        ),
    )


def _sheet(student_id: str, code: str, letters: str) -> StudentResponse:
    """One sheet; a space marks a blank answer."""
    return StudentResponse(
        student_id=student_id,
        variant_code=code,
        responses=tuple(
            NormalizedResponse(
                question_id=f"q{i}",
                question_number=i + 1,
                raw_answer=None if letter == " " else letter,
                selected_option=None,
                selected_index=None,
                correct_option=None,
                is_correct=False,
                points_awarded=0.0,
                max_points=1.0,
            )
            for i, letter in enumerate(letters)
        ),
        total_score=0.0,
        max_possible_score=float(len(letters)),
    )


VA = _variant("V1", "ABCD")
VB = _variant("V2", "DCBA")


class TestMatrices:
    def test_key_matrix(self) -> None:
        keys = key_matrix([VA, VB], 5)
        assert keys.tolist() == [
            [0, 1, 2, 3, MISSING_VALUE],
            [3, 2, 1, 0, MISSING_VALUE],
        ]

    def test_letter_matrix_skips_blanks_and_junk(self) -> None:
        letters = letter_matrix([_sheet("S", "V1", "A ?d")], 4)
        assert letters.tolist() == [[0, MISSING_VALUE, MISSING_VALUE, 3]]

    def test_key_percentages(self) -> None:
        letters = np.array(
            [[0, 1, 2, 3], [3, 2, MISSING_VALUE, 0]], dtype=np.int8
        )
        percentages = key_percentages(letters, key_matrix([VA, VB], 4))
        assert percentages.tolist() == [[100.0, 0.0], [0.0, 75.0]]

    def test_empty_key_scores_zero(self) -> None:
        letters = np.zeros((1, 2), dtype=np.int8)
        keys = np.full((1, 2), MISSING_VALUE, dtype=np.int8)
        assert key_percentages(letters, keys).tolist() == [[0.0]]


class TestCrossVariantGrades:
    def test_sheet_matching_other_key(self) -> None:
        students = [
            _sheet("A1", "V1", "ABCD"),
            _sheet("A2", "V1", "ABCA"),
            _sheet("B1", "V2", "ABCD"),
        ]
        (grade,) = cross_variant_grades([VA, VB], students, 30.0)
        assert grade.student_id == "B1"
        assert grade.graded_variant_code == "V1"
        assert grade.own_key_percentage == 0.0
        assert grade.cross_key_percentage == 100.0
        assert grade.closest_student_id == "A1"
        assert grade.letter_agreement == 1.0

    def test_below_threshold_not_reported(self) -> None:
        """Half the other key is a 50 point gain."""
        students = [_sheet("B1", "V2", "ABDD")]
        assert cross_variant_grades([VA, VB], students, 30.0) != []
        assert cross_variant_grades([VA, VB], students, 60.0) == []

    def test_ordered_by_gain(self) -> None:
        students = [
            _sheet("B1", "V2", "ABDC"),
            _sheet("B2", "V2", "ABCD"),
            _sheet("B3", "V2", "ABC "),
        ]
        grades = cross_variant_grades([VA, VB], students, 30.0)
        assert [g.student_id for g in grades] == ["B2", "B3", "B1"]
        assert all(g.closest_student_id is None for g in grades)

    def test_unknown_variant_skipped(self) -> None:
        students = [_sheet("X", "V9", "ABCD")]
        assert cross_variant_grades([VA, VB], students, 30.0) == []
