"""
Ranking students and selecting percentile bands.

Percentile definition: the share of students (in percent) whose percentage
score is at or below this student's. Tied students share a percentile, and
the top scorer always sits at 100.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict

from exam_engine.core.data_models import StudentResponse
from exam_engine.core.exceptions import InvalidConfigurationError

logger = logging.getLogger(__name__)


class StudentScore(BaseModel):
    student_id: str
    total_score: float
    max_possible_score: float
    variant_code: str | None = None
    percentage: float | None = None
    rank: int | None = None
    percentile: float | None = None
    model_config = ConfigDict(frozen=True)


@dataclass(frozen=True)
class PercentileRange:
    """
    Percentile band ``[lower, upper)``; an upper bound of 100 also admits
    students at percentile 100.
    """

    lower: float
    upper: float

    def __post_init__(self) -> None:
        if not (0 <= self.lower < self.upper <= 100):
            raise InvalidConfigurationError(
                "Percentile range must satisfy 0 <= lower < upper <= 100, "
                f"got [{self.lower}, {self.upper})"
            )

    def contains(self, percentile: float) -> bool:
        if self.upper == 100:
            return self.lower <= percentile <= 100
        return self.lower <= percentile < self.upper


@dataclass(frozen=True)
class StudentSummary:
    students: tuple[StudentScore, ...]
    count: int
    mean_percentage: float | None
    highest_percentage: float | None
    lowest_percentage: float | None


def percentage_of(total_score: float, max_possible_score: float) -> float:
    if max_possible_score <= 0:
        return 0.0
    return total_score / max_possible_score * 100


def student_scores_from_responses(
    responses: Sequence[StudentResponse],
) -> list[StudentScore]:
    return [
        StudentScore(
            student_id=r.student_id,
            total_score=r.total_score,
            max_possible_score=r.max_possible_score,
            variant_code=r.variant_code,
        )
        for r in responses
    ]


def rank_students(students: Sequence[StudentScore]) -> list[StudentScore]:
    """
    Percentage, dense rank and percentile for every student.

    Sorted by percentage descending; ties keep their input order.
    """
    n = len(students)
    if n == 0:
        return []

    percentages = [
        percentage_of(s.total_score, s.max_possible_score) for s in students
    ]
    order = sorted(range(n), key=lambda i: -percentages[i])

    ranked: list[StudentScore] = []
    rank = 0
    previous: float | None = None
    for i in order:
        pct = percentages[i]
        if pct != previous:
            rank += 1
            previous = pct
        at_or_below = sum(1 for p in percentages if p <= pct)
        ranked.append(
            students[i].model_copy(
                update={
                    "percentage": pct,
                    "rank": rank,
                    "percentile": at_or_below / n * 100,
                }
            )
        )
    return ranked


def filter_by_percentile(
    students: Sequence[StudentScore], percentile_range: PercentileRange
) -> list[StudentScore]:
    """
    Ranked students whose percentile lies in ``percentile_range``.

    An empty input gives an empty result.
    """
    selected = [
        s
        for s in rank_students(students)
        if s.percentile is not None and percentile_range.contains(s.percentile)
    ]
    logger.debug(
        f"Selected {len(selected)} of {len(students)} students in percentile "
        f"range [{percentile_range.lower}, {percentile_range.upper})"
    )
    return selected


def summarize_students(
    students: Sequence[StudentScore],
    percentile_range: PercentileRange | None = None,
) -> StudentSummary:
    """Ranked (optionally filtered) students with headline figures."""
    selected = (
        filter_by_percentile(students, percentile_range)
        if percentile_range is not None
        else rank_students(students)
    )
    percentages = [s.percentage for s in selected if s.percentage is not None]
    return StudentSummary(
        students=tuple(selected),
        count=len(selected),
        mean_percentage=(
            sum(percentages) / len(percentages) if percentages else None
        ),
        highest_percentage=max(percentages) if percentages else None,
        lowest_percentage=min(percentages) if percentages else None,
    )
