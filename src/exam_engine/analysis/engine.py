"""
Item-analysis engine.

Statistics are computed per question over its respondents: students whose
scored response includes the question. A blank answer counts as an
incorrect response; a student whose response omits the question entirely
is not a respondent for it.
"""

import logging
from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray

from exam_engine.analysis.config import AnalysisConfig
from exam_engine.analysis.data_models import (
    AnalysisResult,
    AnalysisSummary,
    DistractorAnalysis,
    ItemFlag,
    ItemStatistics,
    ReliabilityMetrics,
    SignificanceResult,
)
from exam_engine.analysis.statistics import (
    chance_test,
    correlation_t_test,
    cronbach_alpha,
    discrimination_index,
    extreme_groups,
    mean_of_defined,
    point_biserial,
    score_distribution,
    standard_error_of_measurement,
)
from exam_engine.core.constants import MISSING_VALUE
from exam_engine.core.data_models import (
    MultipleChoiceQuestion,
    Question,
    StudentResponse,
    Variant,
)
from exam_engine.scoring.matrix import ItemScoreMatrix, build_item_matrix
from exam_engine.variants.answer_key import correct_original_index, option_texts

logger = logging.getLogger(__name__)


def _rate(count: int, n: int) -> float | None:
    return count / n if n > 0 else None


def _analyze_distractors(
    question: MultipleChoiceQuestion,
    selected: NDArray[np.int8],
    scores: NDArray[np.float64],
    lower: NDArray[np.intp],
    upper: NDArray[np.intp],
    config: AnalysisConfig,
) -> tuple[DistractorAnalysis, ...]:
    n = len(selected)
    correct_index = correct_original_index(question)
    results = []
    for k, text in enumerate(question.options):
        chosen = selected == k
        count = int(chosen.sum())
        upper_rate = float(chosen[upper].mean()) if len(upper) else None
        lower_rate = float(chosen[lower].mean()) if len(lower) else None
        discrimination = (
            upper_rate - lower_rate
            if upper_rate is not None and lower_rate is not None
            else None
        )
        rate = _rate(count, n)
        is_correct = k == correct_index
        is_functional = (
            not is_correct
            and rate is not None
            and rate >= config.functional_distractor_rate
            and discrimination is not None
            and discrimination < 0
        )
        results.append(
            DistractorAnalysis(
                option_index=k,
                option_text=text,
                is_correct=is_correct,
                count=count,
                rate=rate,
                upper_group_rate=upper_rate,
                lower_group_rate=lower_rate,
                discrimination=discrimination,
                point_biserial=point_biserial(chosen, scores),
                is_functional=is_functional,
            )
        )
    return tuple(results)


def _flags(
    difficulty: float | None,
    discrimination: float | None,
    is_reliable: bool,
    config: AnalysisConfig,
) -> tuple[ItemFlag, ...]:
    flags: list[ItemFlag] = []
    if discrimination is not None:
        if discrimination < 0:
            flags.append(ItemFlag.NEGATIVE_DISCRIMINATION)
        elif discrimination < config.low_discrimination_threshold:
            flags.append(ItemFlag.LOW_DISCRIMINATION)
    if difficulty is not None:
        if difficulty > config.too_easy_threshold:
            flags.append(ItemFlag.TOO_EASY)
        elif difficulty < config.too_hard_threshold:
            flags.append(ItemFlag.TOO_HARD)
    if not is_reliable:
        flags.append(ItemFlag.INSUFFICIENT_SAMPLE)
    return tuple(flags)


def analyze_item(
    question: Question,
    column: int,
    matrix: ItemScoreMatrix,
    config: AnalysisConfig,
) -> ItemStatistics:
    """Statistics for a single question."""
    respondents = matrix.present[:, column]
    n = int(respondents.sum())
    correct = matrix.correct[respondents, column]
    selected = matrix.selected[respondents, column]
    totals = matrix.totals[respondents]
    scores = (
        totals - matrix.points[respondents, column]
        if config.exclude_item_from_total
        else totals
    )

    correct_count = int(correct.sum())
    omitted_count = int((selected == MISSING_VALUE).sum())
    is_reliable = n >= config.min_sample_size

    difficulty = (
        _rate(correct_count, n) if config.include_difficulty else None
    )
    discrimination = (
        discrimination_index(correct, totals, config.group_fraction)
        if config.include_discrimination
        else None
    )
    r_pb = (
        point_biserial(correct, scores)
        if config.include_point_biserial
        else None
    )

    distractors: tuple[DistractorAnalysis, ...] = ()
    if config.include_distractors and isinstance(
        question, MultipleChoiceQuestion
    ):
        lower, upper = extreme_groups(totals, config.group_fraction)
        distractors = _analyze_distractors(
            question, selected, scores, lower, upper, config
        )

    t_stat, p_value = correlation_t_test(r_pb, n)
    chance, chance_p, ci_low, ci_high = chance_test(
        correct_count, n, len(option_texts(question)), config.confidence_level
    )
    significance = SignificanceResult(
        t_statistic=t_stat,
        p_value=p_value,
        is_significant=(
            is_reliable and p_value is not None and p_value < config.alpha
        ),
        chance_level=chance,
        chance_p_value=chance_p,
        difficulty_ci_low=ci_low,
        difficulty_ci_high=ci_high,
    )

    return ItemStatistics(
        question_id=question.id,
        question_type=question.question_type,
        total_count=n,
        correct_count=correct_count,
        difficulty_index=difficulty,
        discrimination_index=discrimination,
        point_biserial_correlation=r_pb,
        distractors=distractors,
        omitted_count=omitted_count,
        omitted_rate=_rate(omitted_count, n),
        significance=significance,
        flags=_flags(difficulty, discrimination, is_reliable, config),
        is_reliable=is_reliable,
    )


def _reliability(matrix: ItemScoreMatrix) -> ReliabilityMetrics:
    complete = matrix.present.all(axis=1)
    item_scores = matrix.points[complete]
    alpha = cronbach_alpha(item_scores)
    return ReliabilityMetrics(
        cronbach_alpha=alpha,
        standard_error_of_measurement=standard_error_of_measurement(
            item_scores.sum(axis=1), alpha
        ),
        n_items=matrix.n_items,
        n_complete_students=int(complete.sum()),
    )


def _analyze_matrix(
    questions: Sequence[Question],
    matrix: ItemScoreMatrix,
    config: AnalysisConfig,
    variant_code: str | None,
) -> AnalysisResult:
    items = tuple(
        analyze_item(question, j, matrix, config)
        for j, question in enumerate(questions)
    )
    summary = AnalysisSummary(
        sample_size=matrix.n_students,
        n_questions=len(questions),
        mean_difficulty=mean_of_defined(i.difficulty_index for i in items),
        mean_discrimination=mean_of_defined(
            i.discrimination_index for i in items
        ),
        mean_point_biserial=mean_of_defined(
            i.point_biserial_correlation for i in items
        ),
        flagged_questions=sum(
            1
            for i in items
            if any(f is not ItemFlag.INSUFFICIENT_SAMPLE for f in i.flags)
        ),
        reliability=_reliability(matrix),
        score_distribution=score_distribution(matrix.totals),
    )
    return AnalysisResult(variant_code=variant_code, items=items, summary=summary)


def analyze(
    exam_variants: Sequence[Variant],
    questions: Sequence[Question],
    student_responses: Sequence[StudentResponse],
    config: AnalysisConfig | None = None,
) -> AnalysisResult:
    """
    Analyze all responses pooled across variants.

    Responses are already normalized to original question semantics, so
    results from different variants are directly comparable. Responses on
    variant codes outside ``exam_variants`` are still included, with a
    warning.
    """
    config = config or AnalysisConfig()
    known = {v.variant_code for v in exam_variants}
    unknown = sorted({s.variant_code for s in student_responses} - known)
    if unknown:
        logger.warning(f"Responses reference unknown variant codes: {unknown}")

    logger.info(
        f"Analyzing {len(questions)} questions over "
        f"{len(student_responses)} students"
    )
    matrix = build_item_matrix(questions, student_responses)
    return _analyze_matrix(questions, matrix, config, variant_code=None)


def analyze_by_variant(
    exam_variants: Sequence[Variant],
    questions: Sequence[Question],
    student_responses: Sequence[StudentResponse],
    config: AnalysisConfig | None = None,
) -> dict[str, AnalysisResult]:
    """
    Analyze each variant's responses independently.

    A question that behaves differently on one variant (for example a
    negative discrimination on V2 only) points at a key error specific to
    that variant. Responses with unknown variant codes are skipped.
    """
    config = config or AnalysisConfig()
    matrix = build_item_matrix(questions, student_responses)
    codes = np.array(matrix.variant_codes, dtype=np.str_)

    known = {v.variant_code for v in exam_variants}
    for code in sorted(set(matrix.variant_codes) - known):
        logger.warning(f"Skipping responses for unknown variant code '{code}'")

    results: dict[str, AnalysisResult] = {}
    for variant in exam_variants:
        subset = matrix.subset(codes == variant.variant_code)
        logger.info(
            f"Analyzing variant {variant.variant_code} "
            f"({subset.n_students} students)"
        )
        results[variant.variant_code] = _analyze_matrix(
            questions, subset, config, variant_code=variant.variant_code
        )
    return results
