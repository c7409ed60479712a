from fastapi import APIRouter, Depends, Response

from exam_engine.analysis.data_models import AnalysisResult
from exam_engine.analysis.engine import analyze, analyze_by_variant
from exam_engine.api.config import ApiSettings
from exam_engine.api.dependencies import (
    get_app_settings,
    get_job_manager,
    get_version,
)
from exam_engine.api.errors import DataSizeExceededError
from exam_engine.api.jobs import JobManager, validate_data_size
from exam_engine.api.schemas import (
    AnalysisRequest,
    ExamSubmissionsRequest,
    GenerateVariantsRequest,
    GenerateVariantsResponse,
    HealthResponse,
    IntegrityRequest,
    JobCreatedResponse,
    JobStatusResponse,
    NormalizedResponseSchema,
    PercentileRequest,
    PercentileResponse,
    ScoredSubmissionSchema,
    ScoreResponse,
)
from exam_engine.core.data_models import StudentResponse
from exam_engine.reporting.percentile import summarize_students
from exam_engine.scoring.normalizer import score_submissions
from exam_engine.variants.generator import generate_variants, regenerate_variants
from exam_engine.variants.serialization import VariantRecord

router = APIRouter(prefix="/api/v1")


def _score(request: ExamSubmissionsRequest) -> list[StudentResponse]:
    return score_submissions(
        request.domain_variants(),
        request.domain_questions(),
        request.domain_submissions(),
    )


@router.post("/variants")
def create_variants(
    request: GenerateVariantsRequest,
    settings: ApiSettings = Depends(get_app_settings),
) -> GenerateVariantsResponse:
    if len(request.questions) > settings.max_questions:
        raise DataSizeExceededError(
            f"n_questions={len(request.questions)} exceeds "
            f"max={settings.max_questions}"
        )
    n_options = max((len(q.options) for q in request.questions), default=0)
    if n_options > settings.max_options:
        raise DataSizeExceededError(
            f"n_options={n_options} exceeds max={settings.max_options}"
        )
    questions = [q.to_domain() for q in request.questions]
    config = request.config.to_domain()

    if request.existing_variants:
        result = regenerate_variants(
            questions,
            config,
            existing_variants=[v.to_domain() for v in request.existing_variants],
            recorded_variant_codes=request.recorded_variant_codes,
        )
    else:
        result = generate_variants(questions, config)

    return GenerateVariantsResponse(
        variants=[VariantRecord.from_domain(v) for v in result.variants],
        total_generated=result.total_generated,
        estimated_distinct_variants=result.estimated_distinct_variants,
        unique_question_orders=result.unique_question_orders,
        unique_option_combinations=result.unique_option_combinations,
        duplicate_pairs=list(result.duplicate_pairs),
        warnings=list(result.warnings),
    )


@router.post("/responses/score")
def score_responses(
    request: ExamSubmissionsRequest,
    settings: ApiSettings = Depends(get_app_settings),
) -> ScoreResponse:
    validate_data_size(settings, request)
    return ScoreResponse(
        students=[
            ScoredSubmissionSchema(
                student_id=s.student_id,
                variant_code=s.variant_code,
                total_score=s.total_score,
                max_possible_score=s.max_possible_score,
                responses=[
                    NormalizedResponseSchema.from_domain(r) for r in s.responses
                ],
            )
            for s in _score(request)
        ]
    )


@router.post("/analysis")
def run_analysis(
    request: AnalysisRequest,
    settings: ApiSettings = Depends(get_app_settings),
) -> AnalysisResult:
    validate_data_size(settings, request)
    config = request.domain_config()
    return analyze(
        request.domain_variants(),
        request.domain_questions(),
        _score(request),
        config,
    )


@router.post("/analysis/by-variant")
def run_analysis_by_variant(
    request: AnalysisRequest,
    settings: ApiSettings = Depends(get_app_settings),
) -> dict[str, AnalysisResult]:
    validate_data_size(settings, request)
    config = request.domain_config()
    return analyze_by_variant(
        request.domain_variants(),
        request.domain_questions(),
        _score(request),
        config,
    )


@router.post("/integrity", status_code=202)
async def submit_integrity(
    request: IntegrityRequest,
    job_manager: JobManager = Depends(get_job_manager),
) -> JobCreatedResponse:
    job_id = job_manager.submit(request)
    return JobCreatedResponse(job_id=job_id)


@router.get("/integrity/{job_id}")
async def get_integrity_status(
    job_id: str,
    job_manager: JobManager = Depends(get_job_manager),
) -> JobStatusResponse:
    return job_manager.get_status(job_id)


@router.delete("/integrity/{job_id}", status_code=204)
async def cancel_integrity(
    job_id: str,
    job_manager: JobManager = Depends(get_job_manager),
) -> Response:
    job_manager.cancel(job_id)
    return Response(status_code=204)


@router.post("/percentile")
def percentile(
    request: PercentileRequest,
    settings: ApiSettings = Depends(get_app_settings),
) -> PercentileResponse:
    if len(request.students) > settings.max_students:
        raise DataSizeExceededError(
            f"n_students={len(request.students)} exceeds "
            f"max={settings.max_students}"
        )
    summary = summarize_students(
        [s.to_domain() for s in request.students], request.domain_range()
    )
    return PercentileResponse(
        students=list(summary.students),
        count=summary.count,
        mean_percentage=summary.mean_percentage,
        highest_percentage=summary.highest_percentage,
        lowest_percentage=summary.lowest_percentage,
    )


@router.get("/health")
async def health_check(
    version: str = Depends(get_version),
) -> HealthResponse:
    return HealthResponse(version=version)
