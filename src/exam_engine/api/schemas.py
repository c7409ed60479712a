from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from exam_engine.analysis.config import (
    DEFAULT_CONFIDENCE_LEVEL,
    DEFAULT_FUNCTIONAL_DISTRACTOR_RATE,
    DEFAULT_GROUP_FRACTION,
    DEFAULT_LOW_DISCRIMINATION,
    DEFAULT_MIN_SAMPLE_SIZE,
    DEFAULT_TOO_EASY,
    DEFAULT_TOO_HARD,
    AnalysisConfig,
)
from exam_engine.analysis.data_models import AnalysisResult
from exam_engine.core.data_models import (
    GenerationConfig,
    NormalizedResponse,
    Question,
    QuestionType,
    RawSubmission,
    Variant,
    make_question,
)
from exam_engine.integrity.config import (
    DEFAULT_MAX_REPORTED_PAIRS,
    DEFAULT_MIN_COMMON_ITEMS,
    DEFAULT_MIN_CROSS_VARIANT_GAIN,
    DEFAULT_SIGNIFICANCE_LEVEL,
    IntegrityConfig,
)
from exam_engine.integrity.data_models import IntegrityReport
from exam_engine.reporting.percentile import PercentileRange, StudentScore
from exam_engine.variants.serialization import VariantRecord

# --- Enums ---


class JobStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


# --- Request schemas ---


class QuestionSchema(BaseModel):
    id: str
    text: str = ""
    question_type: QuestionType = QuestionType.MULTIPLE_CHOICE
    options: list[str] = []
    correct_answer: str
    points: float = Field(default=1.0, ge=0)
    negative_points: float | None = None

    def to_domain(self) -> Question:
        return make_question(
            id=self.id,
            text=self.text,
            question_type=self.question_type,
            options=self.options,
            correct_answer=self.correct_answer,
            points=self.points,
            negative_points=self.negative_points,
        )


class GenerationConfigSchema(BaseModel):
    number_of_variants: int
    seed: str
    randomize_question_order: bool = True
    randomize_option_order: bool = True
    randomize_true_false_options: bool = False

    def to_domain(self) -> GenerationConfig:
        return GenerationConfig(
            number_of_variants=self.number_of_variants,
            seed=self.seed,
            randomize_question_order=self.randomize_question_order,
            randomize_option_order=self.randomize_option_order,
            randomize_true_false_options=self.randomize_true_false_options,
        )


class GenerateVariantsRequest(BaseModel):
    questions: list[QuestionSchema]
    config: GenerationConfigSchema
    existing_variants: list[VariantRecord] = []
    recorded_variant_codes: list[str] = []


class RawSubmissionSchema(BaseModel):
    student_id: str
    variant_code: str
    answers: dict[str, str | None]

    def to_domain(self) -> RawSubmission:
        return RawSubmission(
            student_id=self.student_id,
            variant_code=self.variant_code,
            answers=dict(self.answers),
        )


class ExamSubmissionsRequest(BaseModel):
    questions: list[QuestionSchema]
    variants: list[VariantRecord]
    submissions: list[RawSubmissionSchema]

    def domain_questions(self) -> list[Question]:
        return [q.to_domain() for q in self.questions]

    def domain_variants(self) -> list[Variant]:
        questions = self.domain_questions()
        return [v.to_domain(questions) for v in self.variants]

    def domain_submissions(self) -> list[RawSubmission]:
        return [s.to_domain() for s in self.submissions]


class AnalysisConfigSchema(BaseModel):
    min_sample_size: int = DEFAULT_MIN_SAMPLE_SIZE
    confidence_level: float = DEFAULT_CONFIDENCE_LEVEL
    group_fraction: float = DEFAULT_GROUP_FRACTION
    exclude_item_from_total: bool = True
    include_difficulty: bool = True
    include_discrimination: bool = True
    include_point_biserial: bool = True
    include_distractors: bool = True
    low_discrimination_threshold: float = DEFAULT_LOW_DISCRIMINATION
    too_easy_threshold: float = DEFAULT_TOO_EASY
    too_hard_threshold: float = DEFAULT_TOO_HARD
    functional_distractor_rate: float = DEFAULT_FUNCTIONAL_DISTRACTOR_RATE

    def to_domain(self) -> AnalysisConfig:
        return AnalysisConfig(**self.model_dump())


class AnalysisRequest(ExamSubmissionsRequest):
    config: AnalysisConfigSchema | None = None

    def domain_config(self) -> AnalysisConfig:
        return self.config.to_domain() if self.config else AnalysisConfig()


class IntegrityConfigSchema(BaseModel):
    significance_level: float = DEFAULT_SIGNIFICANCE_LEVEL
    min_common_items: int = DEFAULT_MIN_COMMON_ITEMS
    max_reported_pairs: int = DEFAULT_MAX_REPORTED_PAIRS
    min_cross_variant_gain: float = DEFAULT_MIN_CROSS_VARIANT_GAIN

    def to_domain(self) -> IntegrityConfig:
        return IntegrityConfig(**self.model_dump())


class IntegrityRequest(ExamSubmissionsRequest):
    config: IntegrityConfigSchema | None = None

    def domain_config(self) -> IntegrityConfig:
        return self.config.to_domain() if self.config else IntegrityConfig()


class StudentScoreInput(BaseModel):
    student_id: str
    total_score: float
    max_possible_score: float
    variant_code: str | None = None

    def to_domain(self) -> StudentScore:
        return StudentScore(
            student_id=self.student_id,
            total_score=self.total_score,
            max_possible_score=self.max_possible_score,
            variant_code=self.variant_code,
        )


class PercentileRequest(BaseModel):
    students: list[StudentScoreInput]
    lower: float | None = None
    upper: float | None = None

    def domain_range(self) -> PercentileRange | None:
        if self.lower is None and self.upper is None:
            return None
        return PercentileRange(
            lower=self.lower if self.lower is not None else 0.0,
            upper=self.upper if self.upper is not None else 100.0,
        )


# --- Response schemas ---


class GenerateVariantsResponse(BaseModel):
    variants: list[VariantRecord]
    total_generated: int
    estimated_distinct_variants: int
    unique_question_orders: int
    unique_option_combinations: int
    duplicate_pairs: list[tuple[int, int]]
    warnings: list[str]


class NormalizedResponseSchema(BaseModel):
    question_id: str
    question_number: int
    raw_answer: str | None
    selected_option: str | None
    correct_option: str | None
    is_correct: bool
    points_awarded: float
    max_points: float

    @classmethod
    def from_domain(
        cls, response: NormalizedResponse
    ) -> "NormalizedResponseSchema":
        return cls(
            question_id=response.question_id,
            question_number=response.question_number,
            raw_answer=response.raw_answer,
            selected_option=response.selected_option,
            correct_option=response.correct_option,
            is_correct=response.is_correct,
            points_awarded=response.points_awarded,
            max_points=response.max_points,
        )


class ScoredSubmissionSchema(BaseModel):
    student_id: str
    variant_code: str
    total_score: float
    max_possible_score: float
    responses: list[NormalizedResponseSchema]


class ScoreResponse(BaseModel):
    students: list[ScoredSubmissionSchema]


class PercentileResponse(BaseModel):
    students: list[StudentScore]
    count: int
    mean_percentage: float | None
    highest_percentage: float | None
    lowest_percentage: float | None


class ErrorDetail(BaseModel):
    code: str
    message: str
    request_id: str | None = None


class JobCreatedResponse(BaseModel):
    job_id: str


class JobStatusResponse(BaseModel):
    job_id: str
    status: JobStatus
    result: IntegrityReport | None = None
    error: ErrorDetail | None = None
    created_at: datetime
    completed_at: datetime | None = None


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str


AnalysisByVariantResponse = dict[str, AnalysisResult]
