"""
Flat tabular exports of analysis results and student scores.

Column names are stable: downstream spreadsheets key on them.
"""

from collections.abc import Sequence
from pathlib import Path

import pandas as pd

from exam_engine.analysis.data_models import AnalysisResult
from exam_engine.reporting.percentile import StudentScore

ITEM_COLUMNS = [
    "variant_code",
    "question_id",
    "question_type",
    "total_count",
    "correct_count",
    "difficulty_index",
    "discrimination_index",
    "point_biserial_correlation",
    "p_value",
    "is_significant",
    "omitted_count",
    "is_reliable",
    "flags",
]

STUDENT_COLUMNS = [
    "student_id",
    "variant_code",
    "total_score",
    "max_possible_score",
    "percentage",
    "rank",
    "percentile",
]


def analysis_to_frame(result: AnalysisResult) -> pd.DataFrame:
    """One row per question."""
    rows = [
        {
            "variant_code": result.variant_code,
            "question_id": item.question_id,
            "question_type": item.question_type.value,
            "total_count": item.total_count,
            "correct_count": item.correct_count,
            "difficulty_index": item.difficulty_index,
            "discrimination_index": item.discrimination_index,
            "point_biserial_correlation": item.point_biserial_correlation,
            "p_value": item.significance.p_value,
            "is_significant": item.is_significant,
            "omitted_count": item.omitted_count,
            "is_reliable": item.is_reliable,
            "flags": ";".join(flag.value for flag in item.flags),
        }
        for item in result.items
    ]
    return pd.DataFrame(rows, columns=ITEM_COLUMNS)


def distractors_to_frame(result: AnalysisResult) -> pd.DataFrame:
    """One row per (question, option) for multiple choice questions."""
    rows = [
        {"question_id": item.question_id, **option.model_dump()}
        for item in result.items
        for option in item.distractors
    ]
    return pd.DataFrame(rows)


def student_scores_to_frame(students: Sequence[StudentScore]) -> pd.DataFrame:
    return pd.DataFrame(
        [s.model_dump(include=set(STUDENT_COLUMNS)) for s in students],
        columns=STUDENT_COLUMNS,
    )


def write_csv(frame: pd.DataFrame, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(path, index=False)
