from pydantic_settings import BaseSettings

EXAM_ENGINE_ENV_PREFIX = "EXAM_ENGINE_"


class ApiSettings(BaseSettings):
    model_config = {"env_prefix": EXAM_ENGINE_ENV_PREFIX}

    max_students: int = 10000
    max_questions: int = 500
    max_options: int = 26
    host: str = "127.0.0.1"
    port: int = 8000
    max_concurrent_jobs: int = 4
    job_ttl_seconds: int = 3600
