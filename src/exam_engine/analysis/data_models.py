"""
Result records for item analysis.

All statistics that cannot be computed are None, never NaN, so results
serialize to JSON and CSV unchanged.
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from exam_engine.core.data_models import QuestionType


class ItemFlag(StrEnum):
    NEGATIVE_DISCRIMINATION = "NEGATIVE_DISCRIMINATION"
    LOW_DISCRIMINATION = "LOW_DISCRIMINATION"
    TOO_EASY = "TOO_EASY"
    TOO_HARD = "TOO_HARD"
    INSUFFICIENT_SAMPLE = "INSUFFICIENT_SAMPLE"


class DistractorAnalysis(BaseModel):
    """Selection statistics for one option of a multiple choice item."""

    option_index: int
    option_text: str
    is_correct: bool
    count: int
    rate: float | None
    upper_group_rate: float | None
    lower_group_rate: float | None
    discrimination: float | None
    point_biserial: float | None
    is_functional: bool
    model_config = ConfigDict(frozen=True)


class SignificanceResult(BaseModel):
    """
    Significance of an item's statistics.

    ``t_statistic``/``p_value`` test the point-biserial against zero
    (df = n - 2). ``chance_p_value`` is an exact binomial test of the
    difficulty against guessing, with ``difficulty_ci_*`` its interval.
    """

    t_statistic: float | None
    p_value: float | None
    is_significant: bool
    chance_level: float | None
    chance_p_value: float | None
    difficulty_ci_low: float | None
    difficulty_ci_high: float | None
    model_config = ConfigDict(frozen=True)


class ItemStatistics(BaseModel):
    question_id: str
    question_type: QuestionType
    total_count: int
    correct_count: int
    difficulty_index: float | None
    discrimination_index: float | None
    point_biserial_correlation: float | None
    distractors: tuple[DistractorAnalysis, ...]
    omitted_count: int
    omitted_rate: float | None
    significance: SignificanceResult
    flags: tuple[ItemFlag, ...]
    is_reliable: bool
    model_config = ConfigDict(frozen=True)

    @property
    def is_significant(self) -> bool:
        return self.significance.is_significant


class ReliabilityMetrics(BaseModel):
    cronbach_alpha: float | None
    standard_error_of_measurement: float | None
    n_items: int
    n_complete_students: int
    model_config = ConfigDict(frozen=True)


class ScoreDistribution(BaseModel):
    n: int
    mean: float | None
    std: float | None
    median: float | None
    min: float | None
    max: float | None
    q1: float | None
    q3: float | None
    skewness: float | None
    kurtosis: float | None
    model_config = ConfigDict(frozen=True)


class AnalysisSummary(BaseModel):
    sample_size: int
    n_questions: int
    mean_difficulty: float | None
    mean_discrimination: float | None
    mean_point_biserial: float | None
    flagged_questions: int
    reliability: ReliabilityMetrics
    score_distribution: ScoreDistribution
    model_config = ConfigDict(frozen=True)


class AnalysisResult(BaseModel):
    variant_code: str | None
    items: tuple[ItemStatistics, ...]
    summary: AnalysisSummary
    model_config = ConfigDict(frozen=True)

    def item(self, question_id: str) -> ItemStatistics | None:
        for stats in self.items:
            if stats.question_id == question_id:
                return stats
        return None
