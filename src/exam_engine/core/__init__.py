"""
Core shared types and utilities for the exam engine.

This module provides the records passed between variant generation,
scoring, item analysis and integrity analysis.
"""

from exam_engine.core.data_models import (
    AnswerKeyEntry,
    GenerationConfig,
    MultipleChoiceQuestion,
    NormalizedResponse,
    Question,
    QuestionType,
    RawSubmission,
    ResponseMatrix,
    StudentResponse,
    TrueFalseQuestion,
    Variant,
    make_question,
)
from exam_engine.core.exceptions import (
    ImmutableVariantError,
    InvalidConfigurationError,
)

__all__ = [
    "AnswerKeyEntry",
    "GenerationConfig",
    "ImmutableVariantError",
    "InvalidConfigurationError",
    "MultipleChoiceQuestion",
    "NormalizedResponse",
    "Question",
    "QuestionType",
    "RawSubmission",
    "ResponseMatrix",
    "StudentResponse",
    "TrueFalseQuestion",
    "Variant",
    "make_question",
]
