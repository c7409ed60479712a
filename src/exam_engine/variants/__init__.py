"""
Variant generation: deterministic shuffling, answer keys and storage.
"""

from exam_engine.variants.answer_key import (
    displayed_options,
    resolve_correct_option,
    verify_answer_key,
)
from exam_engine.variants.generator import (
    VariantGenerationResult,
    ensure_regeneration_allowed,
    generate_variants,
    regenerate_variants,
)
from exam_engine.variants.random import SeededRandom
from exam_engine.variants.serialization import (
    VariantRecord,
    load_variant_columns,
    variant_columns,
    variant_from_json,
    variant_to_json,
)

__all__ = [
    "SeededRandom",
    "VariantGenerationResult",
    "VariantRecord",
    "displayed_options",
    "ensure_regeneration_allowed",
    "generate_variants",
    "load_variant_columns",
    "regenerate_variants",
    "resolve_correct_option",
    "variant_columns",
    "variant_from_json",
    "variant_to_json",
    "verify_answer_key",
]
