"""
How alike the generated variants are.

Two variants that print most questions at the same position with the same
option order give little protection against a neighbour's sheet.
"""

from collections.abc import Sequence

from exam_engine.core.data_models import Question, Variant
from exam_engine.integrity.data_models import VariantSimilarity
from exam_engine.variants.answer_key import option_texts
from exam_engine.variants.generator import find_duplicate_variants


def _agreement(a: Sequence[int], b: Sequence[int]) -> float:
    if not a:
        return 1.0
    return sum(1 for x, y in zip(a, b) if x == y) / len(a)


def variant_similarity(
    a: Variant, b: Variant, questions: Sequence[Question]
) -> float:
    """Mean of question-position agreement and option-order agreement."""
    position = _agreement(a.question_order, b.question_order)

    option_scores = []
    for question in questions:
        n_options = len(option_texts(question))
        identity = tuple(range(n_options))
        option_scores.append(
            _agreement(
                a.permutation_for(question.id) or identity,
                b.permutation_for(question.id) or identity,
            )
        )
    options = sum(option_scores) / len(option_scores) if option_scores else 1.0
    return (position + options) / 2


def variant_similarity_matrix(
    variants: Sequence[Variant], questions: Sequence[Question]
) -> VariantSimilarity:
    n = len(variants)
    matrix = [[1.0] * n for _ in range(n)]
    for i in range(n):
        for j in range(i + 1, n):
            sim = variant_similarity(variants[i], variants[j], questions)
            matrix[i][j] = sim
            matrix[j][i] = sim

    code_by_number = {v.variant_number: v.variant_code for v in variants}
    duplicates = tuple(
        (code_by_number[a], code_by_number[b])
        for a, b in find_duplicate_variants(variants)
    )
    return VariantSimilarity(
        variant_codes=tuple(v.variant_code for v in variants),
        matrix=tuple(tuple(row) for row in matrix),
        duplicate_pairs=duplicates,
    )
