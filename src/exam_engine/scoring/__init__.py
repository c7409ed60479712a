from exam_engine.scoring.normalizer import (
    normalize_responses,
    score_submission,
    score_submissions,
)

__all__ = ["normalize_responses", "score_submission", "score_submissions"]
