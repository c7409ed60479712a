from exam_engine.reporting.export import (
    analysis_to_frame,
    distractors_to_frame,
    student_scores_to_frame,
    write_csv,
)
from exam_engine.reporting.percentile import (
    PercentileRange,
    StudentScore,
    StudentSummary,
    filter_by_percentile,
    rank_students,
    student_scores_from_responses,
    summarize_students,
)

__all__ = [
    "PercentileRange",
    "StudentScore",
    "StudentSummary",
    "analysis_to_frame",
    "distractors_to_frame",
    "filter_by_percentile",
    "rank_students",
    "student_scores_from_responses",
    "student_scores_to_frame",
    "summarize_students",
    "write_csv",
]
