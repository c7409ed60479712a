"""
Variant generation.

Each variant is derived only from the question list and the generation
config, so regenerating a generation with unchanged questions reproduces
byte-identical variants.
"""

import logging
import math
from collections.abc import Collection, Sequence
from dataclasses import dataclass

from exam_engine.core.data_models import (
    GenerationConfig,
    MultipleChoiceQuestion,
    Question,
    TrueFalseQuestion,
    Variant,
)
from exam_engine.core.exceptions import (
    ImmutableVariantError,
    InvalidConfigurationError,
)
from exam_engine.variants.answer_key import build_answer_key_entry, option_texts
from exam_engine.variants.random import (
    QUESTION_ORDER_DISCRIMINATOR,
    SeededRandom,
    variant_seed,
)

logger = logging.getLogger(__name__)

MAX_ESTIMATED_VARIANTS = 1_000_000


@dataclass(frozen=True)
class VariantGenerationResult:
    """
    Output of one generation run.

    Attributes:
        variants: Generated variants, numbered 1..N.
        estimated_distinct_variants: Number of distinct renderings the
            enabled randomizations can produce (capped).
        unique_question_orders: Distinct question orders among the variants.
        unique_option_combinations: Distinct option permutation sets.
        duplicate_pairs: (variant_number, variant_number) pairs that are
            identical renderings.
        warnings: Human-readable notes about the generation.
    """

    variants: tuple[Variant, ...]
    estimated_distinct_variants: int
    unique_question_orders: int
    unique_option_combinations: int
    duplicate_pairs: tuple[tuple[int, int], ...]
    warnings: tuple[str, ...]

    @property
    def total_generated(self) -> int:
        return len(self.variants)


def variant_code_for(variant_number: int) -> str:
    return f"V{variant_number}"


def shuffles_options(question: Question, config: GenerationConfig) -> bool:
    """Whether a question's options are shuffled under this config."""
    if isinstance(question, MultipleChoiceQuestion):
        return config.randomize_option_order and len(question.options) > 1
    if isinstance(question, TrueFalseQuestion):
        return config.randomize_true_false_options
    raise TypeError(f"Unhandled question record {type(question).__name__}")


def estimate_distinct_variants(
    questions: Sequence[Question], config: GenerationConfig
) -> int:
    """Product of the sizes of every shuffled domain, capped."""
    total = 1
    if config.randomize_question_order:
        total *= math.factorial(min(len(questions), 20))
    for question in questions:
        if shuffles_options(question, config):
            total *= math.factorial(min(len(option_texts(question)), 20))
        if total >= MAX_ESTIMATED_VARIANTS:
            return MAX_ESTIMATED_VARIANTS
    return min(total, MAX_ESTIMATED_VARIANTS)


def _validate_questions(questions: Sequence[Question]) -> None:
    if not questions:
        raise InvalidConfigurationError("Questions list cannot be empty")
    seen: set[str] = set()
    for question in questions:
        if question.id in seen:
            raise InvalidConfigurationError(
                f"Duplicate question id '{question.id}'"
            )
        seen.add(question.id)


def build_variant(
    questions: Sequence[Question],
    config: GenerationConfig,
    variant_index: int,
) -> Variant:
    """Build the variant at 0-based ``variant_index``."""
    rng = SeededRandom(variant_seed(config.seed, variant_index))

    if config.randomize_question_order and len(questions) > 1:
        question_order = rng.derive(QUESTION_ORDER_DISCRIMINATOR).permutation(
            len(questions)
        )
    else:
        question_order = tuple(range(len(questions)))

    option_permutations: dict[str, tuple[int, ...]] = {}
    for question in questions:
        if shuffles_options(question, config):
            option_permutations[question.id] = rng.derive(
                question.id
            ).permutation(len(option_texts(question)))

    answer_key = tuple(
        build_answer_key_entry(
            question,
            question_number=position + 1,
            permutation=option_permutations.get(question.id),
        )
        for position, question in enumerate(
            questions[i] for i in question_order
        )
    )

    variant_number = variant_index + 1
    return Variant(
        variant_number=variant_number,
        variant_code=variant_code_for(variant_number),
        question_order=question_order,
        option_permutations=option_permutations,
        answer_key=answer_key,
    )


def _rendering_signature(variant: Variant) -> tuple[object, ...]:
    return (
        variant.question_order,
        tuple(sorted(variant.option_permutations.items())),
    )


def find_duplicate_variants(
    variants: Sequence[Variant],
) -> list[tuple[int, int]]:
    """Pairs of variant numbers with identical question and option order."""
    duplicates: list[tuple[int, int]] = []
    signatures = [_rendering_signature(v) for v in variants]
    for i in range(len(variants)):
        for j in range(i + 1, len(variants)):
            if signatures[i] == signatures[j]:
                duplicates.append(
                    (variants[i].variant_number, variants[j].variant_number)
                )
    return duplicates


def generate_variants(
    questions: Sequence[Question], config: GenerationConfig
) -> VariantGenerationResult:
    """
    Generate ``config.number_of_variants`` variants of an exam.

    Duplicated renderings are allowed (they are reported, not removed) so
    that variant numbers stay stable for a given seed.

    Raises:
        InvalidConfigurationError: If the question list is empty or has
            duplicate ids.
    """
    _validate_questions(questions)

    variants = tuple(
        build_variant(questions, config, index)
        for index in range(config.number_of_variants)
    )

    warnings: list[str] = []
    estimated = estimate_distinct_variants(questions, config)
    if config.number_of_variants > estimated:
        warnings.append(
            f"Requested {config.number_of_variants} variants but only "
            f"{estimated} distinct renderings are possible; duplicates will occur"
        )

    duplicates = find_duplicate_variants(variants)
    if duplicates:
        logger.info(f"{len(duplicates)} duplicate variant pairs generated")

    logger.info(
        f"Generated {len(variants)} variants for seed '{config.seed}' "
        f"({len(questions)} questions)"
    )

    return VariantGenerationResult(
        variants=variants,
        estimated_distinct_variants=estimated,
        unique_question_orders=len({v.question_order for v in variants}),
        unique_option_combinations=len(
            {tuple(sorted(v.option_permutations.items())) for v in variants}
        ),
        duplicate_pairs=tuple(duplicates),
        warnings=tuple(warnings),
    )


def ensure_regeneration_allowed(
    existing_variants: Sequence[Variant],
    recorded_variant_codes: Collection[str],
) -> None:
    """
    Reject regeneration once results reference any current variant.

    Raises:
        ImmutableVariantError: If a recorded result uses one of the
            existing variant codes.
    """
    existing_codes = {v.variant_code for v in existing_variants}
    referenced = sorted(existing_codes.intersection(recorded_variant_codes))
    if referenced:
        raise ImmutableVariantError(
            "Cannot regenerate answer keys: results have already been recorded "
            f"against variant(s) {', '.join(referenced)}. Regenerating would "
            "invalidate administered exams.",
            variant_codes=referenced,
        )


def regenerate_variants(
    questions: Sequence[Question],
    config: GenerationConfig,
    existing_variants: Sequence[Variant],
    recorded_variant_codes: Collection[str],
) -> VariantGenerationResult:
    """Guarded regeneration: callers replace stored variants with the result."""
    ensure_regeneration_allowed(existing_variants, recorded_variant_codes)
    return generate_variants(questions, config)
