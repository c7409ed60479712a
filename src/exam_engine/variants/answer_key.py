"""
Answer-key resolution.

Everything here works from persisted variant data (answer key and option
permutations) and never re-runs the random generator: once a variant has
been administered, the stored permutation is the durable contract.

Permutation convention: ``permutation[display_position] = original_index``.
"""

import logging
from collections.abc import Sequence

from exam_engine.core.constants import FALLBACK_ANSWER_LETTER
from exam_engine.core.data_models import (
    AnswerKeyEntry,
    MultipleChoiceQuestion,
    Question,
    TrueFalseQuestion,
    Variant,
)
from exam_engine.core.utils import (
    find_option_index,
    index_to_letter,
    is_permutation,
    letter_to_index,
    normalize_text,
)

logger = logging.getLogger(__name__)


def option_texts(question: Question) -> tuple[str, ...]:
    """Options in their original order."""
    if isinstance(question, MultipleChoiceQuestion):
        return question.options
    if isinstance(question, TrueFalseQuestion):
        return question.effective_options
    raise TypeError(f"Unhandled question record {type(question).__name__}")


def correct_original_index(question: Question) -> int | None:
    return find_option_index(option_texts(question), question.correct_answer)


def _display_to_original(
    permutation: Sequence[int] | None, n_options: int
) -> list[int]:
    if permutation is None:
        return list(range(n_options))
    if not is_permutation(permutation, n_options):
        logger.warning(
            f"Ignoring option permutation {list(permutation)} that is not an "
            f"ordering of {n_options} options"
        )
        return list(range(n_options))
    return list(permutation)


def displayed_options(variant: Variant, question: Question) -> tuple[str, ...]:
    """Options in the order printed on this variant."""
    options = option_texts(question)
    order = _display_to_original(variant.permutation_for(question.id), len(options))
    return tuple(options[i] for i in order)


def letter_for_original_index(
    variant: Variant, question: Question, original_index: int
) -> str | None:
    """Letter under which an original option appears on this variant."""
    options = option_texts(question)
    order = _display_to_original(variant.permutation_for(question.id), len(options))
    if original_index not in order:
        return None
    return index_to_letter(order.index(original_index))


def original_index_for_letter(
    variant: Variant, question: Question, letter: str
) -> int | None:
    """Original option index that a letter on this variant refers to."""
    position = letter_to_index(letter)
    if position is None:
        return None
    options = option_texts(question)
    order = _display_to_original(variant.permutation_for(question.id), len(options))
    if position >= len(order) or not (0 <= order[position] < len(options)):
        return None
    return order[position]


def build_answer_key_entry(
    question: Question,
    question_number: int,
    permutation: Sequence[int] | None,
) -> AnswerKeyEntry:
    """
    Answer key entry for a question printed at ``question_number``.

    The original index of the correct answer is mapped through the inverse of
    the option permutation to find its displayed position. When the correct
    text is not among the options the entry falls back to letter "A" and a
    warning is logged; the question is never dropped.
    """
    options = option_texts(question)
    correct_index = correct_original_index(question)

    letter = FALLBACK_ANSWER_LETTER
    if correct_index is None:
        logger.warning(
            f"Correct answer '{question.correct_answer}' not found among options "
            f"of question {question.id}; defaulting to letter "
            f"{FALLBACK_ANSWER_LETTER}"
        )
    else:
        order = _display_to_original(permutation, len(options))
        letter = index_to_letter(order.index(correct_index))

    return AnswerKeyEntry(
        question_id=question.id,
        question_number=question_number,
        correct_answer=letter,
        original_answer=question.correct_answer,
    )


def resolve_correct_option(variant: Variant, question: Question) -> str | None:
    """
    Text of the option that is correct on this variant.

    Uses the variant's stored letter and permutation only. Returns None when
    the question is not on the variant or the stored letter does not point
    at an option.
    """
    entry = variant.answer_key_entry(question.id)
    if entry is None:
        return None
    original_index = original_index_for_letter(variant, question, entry.correct_answer)
    if original_index is None:
        logger.warning(
            f"Stored letter '{entry.correct_answer}' for question {question.id} "
            f"on variant {variant.variant_code} does not match any option"
        )
        return None
    return option_texts(question)[original_index]


def verify_answer_key(
    variant: Variant, questions: Sequence[Question]
) -> list[str]:
    """Ids of questions whose stored letter does not resolve to the true answer."""
    mismatched: list[str] = []
    for question in questions:
        if variant.answer_key_entry(question.id) is None:
            continue
        resolved = resolve_correct_option(variant, question)
        if resolved is None or normalize_text(resolved) != normalize_text(
            question.correct_answer
        ):
            mismatched.append(question.id)
    return mismatched
