import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime

from exam_engine.api.config import ApiSettings
from exam_engine.api.errors import (
    DataSizeExceededError,
    JobNotFoundError,
    TooManyJobsError,
)
from exam_engine.api.schemas import (
    ErrorDetail,
    ExamSubmissionsRequest,
    IntegrityRequest,
    JobStatus,
    JobStatusResponse,
)
from exam_engine.core.exceptions import InvalidConfigurationError
from exam_engine.integrity.analyzer import analyze_integrity
from exam_engine.integrity.data_models import IntegrityReport
from exam_engine.scoring.normalizer import score_submissions

logger = logging.getLogger(__name__)


def validate_data_size(
    settings: ApiSettings, request: ExamSubmissionsRequest
) -> None:
    n_students = len(request.submissions)
    n_questions = len(request.questions)
    n_options = max((len(q.options) for q in request.questions), default=0)

    if n_students > settings.max_students:
        raise DataSizeExceededError(
            f"n_students={n_students} exceeds max={settings.max_students}"
        )
    if n_questions > settings.max_questions:
        raise DataSizeExceededError(
            f"n_questions={n_questions} exceeds max={settings.max_questions}"
        )
    if n_options > settings.max_options:
        raise DataSizeExceededError(
            f"n_options={n_options} exceeds max={settings.max_options}"
        )


def run_integrity(request: IntegrityRequest) -> IntegrityReport:
    questions = request.domain_questions()
    variants = request.domain_variants()
    students = score_submissions(
        variants, questions, request.domain_submissions()
    )
    return analyze_integrity(
        variants, questions, students, request.domain_config()
    )


@dataclass
class Job:
    job_id: str
    status: JobStatus
    created_at: datetime
    request: IntegrityRequest
    result: IntegrityReport | None = None
    error: ErrorDetail | None = None
    completed_at: datetime | None = None
    task: asyncio.Task[None] | None = field(default=None, repr=False)


class JobManager:
    """Runs integrity screenings in the background, a bounded number at a time."""

    def __init__(self, settings: ApiSettings) -> None:
        self._settings = settings
        self._jobs: dict[str, Job] = {}
        self._semaphore = asyncio.Semaphore(settings.max_concurrent_jobs)

    def submit(self, request: IntegrityRequest) -> str:
        validate_data_size(self._settings, request)
        # Reject a bad config before queuing
        request.domain_config()

        if self._semaphore._value == 0:  # noqa: SLF001
            raise TooManyJobsError

        job_id = uuid.uuid4().hex[:12]
        job = Job(
            job_id=job_id,
            status=JobStatus.PENDING,
            created_at=datetime.now(UTC),
            request=request,
        )
        self._jobs[job_id] = job
        job.task = asyncio.create_task(self._run_job(job))
        return job_id

    def get_status(self, job_id: str) -> JobStatusResponse:
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return JobStatusResponse(
            job_id=job.job_id,
            status=job.status,
            result=job.result,
            error=job.error,
            created_at=job.created_at,
            completed_at=job.completed_at,
        )

    def cancel(self, job_id: str) -> None:
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        if job.task and not job.task.done():
            job.task.cancel()
        del self._jobs[job_id]

    async def _run_job(self, job: Job) -> None:
        async with self._semaphore:
            job.status = JobStatus.RUNNING
            try:
                job.result = await asyncio.to_thread(run_integrity, job.request)
                job.status = JobStatus.COMPLETED

            except InvalidConfigurationError as e:
                job.status = JobStatus.FAILED
                job.error = ErrorDetail(
                    code="INVALID_CONFIGURATION", message=str(e)
                )

            except Exception:
                logger.exception(f"Job {job.job_id} failed")
                job.status = JobStatus.FAILED
                job.error = ErrorDetail(
                    code="INTERNAL_ERROR",
                    message="Internal error during integrity analysis",
                )

            finally:
                job.completed_at = datetime.now(UTC)

    async def cleanup_expired(self) -> None:
        now = datetime.now(UTC)
        expired = [
            jid
            for jid, job in self._jobs.items()
            if job.completed_at
            and (now - job.completed_at).total_seconds()
            > self._settings.job_ttl_seconds
        ]
        for jid in expired:
            del self._jobs[jid]
