"""
Advisory detection of improbable response similarity between students.
"""

from exam_engine.integrity.analyzer import analyze_integrity
from exam_engine.integrity.config import IntegrityConfig
from exam_engine.integrity.data_models import (
    CrossVariantGrade,
    IntegrityReport,
    StudentSimilarity,
    SuspiciousPair,
    VariantSimilarity,
)

__all__ = [
    "CrossVariantGrade",
    "IntegrityConfig",
    "IntegrityReport",
    "StudentSimilarity",
    "SuspiciousPair",
    "VariantSimilarity",
    "analyze_integrity",
]
