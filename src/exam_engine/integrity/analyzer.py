"""
Integrity screening of submitted responses.

Statistical methodology:
- Answers are compared in original semantics (original option index).
- Test statistic for a pair: number of items both students answered with
  the same wrong option.
- Null model: students answer independently, choosing options with the
  population shares of each item. The count is then a sum of independent
  Bernoulli(q_i) over the pair's common items, q_i being the chance of a
  shared wrong option on item i; p-values are its exact upper tail.
- Multiple testing correction via Benjamini-Hochberg (FDR control) over
  all pairs with enough common items.

Separately, each sheet is regraded on the other variants' keys by printed
letter, which catches letters copied across variants or a leaked key.

The report is advisory; nothing here acts on a flag.
"""

import logging
import math
from collections.abc import Sequence

import numpy as np

from exam_engine.core.data_models import Question, StudentResponse, Variant
from exam_engine.integrity.config import IntegrityConfig
from exam_engine.integrity.correction import (
    benjamini_hochberg,
    benjamini_hochberg_adjusted,
)
from exam_engine.integrity.cross_variant import cross_variant_grades
from exam_engine.integrity.data_models import (
    IntegrityReport,
    StudentSimilarity,
    SuspiciousPair,
)
from exam_engine.integrity.similarity import (
    incorrect_match_probabilities,
    max_similarity_per_student,
    pairwise_statistics,
)
from exam_engine.integrity.variants import variant_similarity_matrix
from exam_engine.scoring.matrix import (
    build_item_matrix,
    correct_option_indices,
    to_response_matrix,
)

logger = logging.getLogger(__name__)


def _explanation(
    identical_incorrect: int, expected: float, common: int, same_variant: bool
) -> str:
    text = (
        f"{identical_incorrect} identical incorrect answers across {common} "
        f"common items; {expected:.2f} expected for independent students"
    )
    if not same_variant:
        text += " (different variants, compared by original option)"
    return text


def analyze_integrity(
    exam_variants: Sequence[Variant],
    questions: Sequence[Question],
    student_responses: Sequence[StudentResponse],
    config: IntegrityConfig | None = None,
) -> IntegrityReport:
    """
    Screen all pairs of students for improbable shared wrong answers, and
    every sheet for a better fit to another variant's key.
    """
    config = config or IntegrityConfig()
    notes: list[str] = []

    matrix = build_item_matrix(questions, student_responses)
    response_matrix = to_response_matrix(matrix, questions)
    responses = response_matrix.responses
    correct = correct_option_indices(questions)

    if matrix.n_students < 2:
        notes.append("Fewer than two students; no pairs to compare")

    logger.info(
        f"Computing pairwise similarity for {matrix.n_students} students"
    )
    q = incorrect_match_probabilities(
        responses, correct, response_matrix.n_categories
    )
    (
        rows,
        cols,
        common,
        matching,
        identical_incorrect,
        expected,
        variance,
        p_values,
    ) = pairwise_statistics(responses, correct, q, config.min_common_items)

    tested = np.flatnonzero(~np.isnan(p_values))
    if len(rows) > len(tested):
        notes.append(
            f"{len(rows) - len(tested)} pairs with fewer than "
            f"{config.min_common_items} common answered items were not tested"
        )

    tested_p = p_values[tested]
    rejected = benjamini_hochberg(tested_p, config.significance_level)
    q_values = benjamini_hochberg_adjusted(tested_p)

    order = np.argsort(tested_p[rejected], kind="stable")
    flagged_positions = np.flatnonzero(rejected)[order]
    if len(flagged_positions) > config.max_reported_pairs:
        notes.append(
            f"{len(flagged_positions)} pairs flagged; reporting the "
            f"{config.max_reported_pairs} most significant"
        )
        flagged_positions = flagged_positions[: config.max_reported_pairs]

    flagged: list[SuspiciousPair] = []
    for pos in flagged_positions:
        k = tested[pos]
        i, j = int(rows[k]), int(cols[k])
        n_common = int(common[k])
        observed = int(identical_incorrect[k])
        sd = math.sqrt(variance[k])
        z = (observed - expected[k]) / sd if sd > 0 else None
        same_variant = matrix.variant_codes[i] == matrix.variant_codes[j]
        flagged.append(
            SuspiciousPair(
                student_a=matrix.student_ids[i],
                student_b=matrix.student_ids[j],
                variant_a=matrix.variant_codes[i],
                variant_b=matrix.variant_codes[j],
                common_items=n_common,
                matching_answers=int(matching[k]),
                similarity=int(matching[k]) / n_common if n_common else 0.0,
                identical_incorrect=observed,
                expected_identical_incorrect=float(expected[k]),
                z_score=float(z) if z is not None else None,
                p_value=float(p_values[k]),
                q_value=float(q_values[pos]),
                explanation=_explanation(
                    observed, float(expected[k]), n_common, same_variant
                ),
            )
        )

    logger.info(
        f"Tested {len(tested)} pairs, flagged {int(rejected.sum())} "
        f"at FDR {config.significance_level}"
    )

    max_sim, partner = max_similarity_per_student(responses)
    student_similarity = tuple(
        StudentSimilarity(
            student_id=student_id,
            max_similarity=float(max_sim[i]) if partner[i] >= 0 else None,
            most_similar_student_id=(
                matrix.student_ids[partner[i]] if partner[i] >= 0 else None
            ),
        )
        for i, student_id in enumerate(matrix.student_ids)
    )

    cross_grades = cross_variant_grades(
        exam_variants, student_responses, config.min_cross_variant_gain
    )
    if len(cross_grades) > config.max_reported_pairs:
        notes.append(
            f"{len(cross_grades)} sheets score higher on another variant's "
            f"key; reporting the {config.max_reported_pairs} largest gains"
        )
        cross_grades = cross_grades[: config.max_reported_pairs]

    variant_report = variant_similarity_matrix(exam_variants, questions)
    if variant_report.duplicate_pairs:
        notes.append(
            f"{len(variant_report.duplicate_pairs)} pairs of variants are "
            "identical renderings"
        )

    return IntegrityReport(
        flagged_pairs=tuple(flagged),
        pairs_tested=len(tested),
        pairs_flagged=int(rejected.sum()),
        student_similarity=student_similarity,
        variant_similarity=variant_report,
        notes=tuple(notes),
        cross_variant_grades=tuple(cross_grades),
    )
