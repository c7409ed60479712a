from functools import lru_cache

from fastapi import Request

from exam_engine.api.config import ApiSettings
from exam_engine.api.jobs import JobManager
from exam_engine.core.paths import get_project_version


@lru_cache(maxsize=1)
def get_settings() -> ApiSettings:
    return ApiSettings()


_job_manager: JobManager | None = None


def init_job_manager(settings: ApiSettings) -> JobManager:
    global _job_manager  # noqa: PLW0603
    _job_manager = JobManager(settings)
    return _job_manager


def get_job_manager() -> JobManager:
    assert _job_manager is not None, "JobManager not initialized"
    return _job_manager


def get_app_settings(request: Request) -> ApiSettings:
    """Settings the running app was created with."""
    settings: ApiSettings = request.app.state.settings
    return settings


def get_version() -> str:
    return get_project_version()
