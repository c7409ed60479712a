"""
Item analysis: difficulty, discrimination, point-biserial, distractors and
exam-level reliability.
"""

from exam_engine.analysis.config import AnalysisConfig
from exam_engine.analysis.data_models import (
    AnalysisResult,
    AnalysisSummary,
    DistractorAnalysis,
    ItemFlag,
    ItemStatistics,
    ReliabilityMetrics,
    ScoreDistribution,
    SignificanceResult,
)
from exam_engine.analysis.engine import analyze, analyze_by_variant

__all__ = [
    "AnalysisConfig",
    "AnalysisResult",
    "AnalysisSummary",
    "DistractorAnalysis",
    "ItemFlag",
    "ItemStatistics",
    "ReliabilityMetrics",
    "ScoreDistribution",
    "SignificanceResult",
    "analyze",
    "analyze_by_variant",
]
