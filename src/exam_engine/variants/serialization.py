"""
Storage contract for variants.

Variants are persisted either as a single JSON document (``VariantRecord``)
or as three JSON columns next to the variant number and code. Both use
camelCase keys and are read back without re-running the generator.
"""

import json
import logging
from collections.abc import Mapping, Sequence
from typing import TypeGuard

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from exam_engine.core.data_models import AnswerKeyEntry, Question, Variant
from exam_engine.core.utils import is_permutation
from exam_engine.variants.answer_key import option_texts

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )


class AnswerKeyEntryRecord(_CamelModel):
    question_id: str
    question_number: int = Field(ge=1)
    correct_answer: str
    original_answer: str

    @classmethod
    def from_domain(cls, entry: AnswerKeyEntry) -> "AnswerKeyEntryRecord":
        return cls(
            question_id=entry.question_id,
            question_number=entry.question_number,
            correct_answer=entry.correct_answer,
            original_answer=entry.original_answer,
        )

    def to_domain(self) -> AnswerKeyEntry:
        return AnswerKeyEntry(
            question_id=self.question_id,
            question_number=self.question_number,
            correct_answer=self.correct_answer,
            original_answer=self.original_answer,
        )


class VariantRecord(_CamelModel):
    format_version: int = FORMAT_VERSION
    variant_number: int = Field(ge=1)
    variant_code: str
    question_order: list[int]
    option_permutations: dict[str, list[int]]
    answer_key: list[AnswerKeyEntryRecord]

    @classmethod
    def from_domain(cls, variant: Variant) -> "VariantRecord":
        return cls(
            variant_number=variant.variant_number,
            variant_code=variant.variant_code,
            question_order=list(variant.question_order),
            option_permutations={
                qid: list(perm)
                for qid, perm in variant.option_permutations.items()
            },
            answer_key=[
                AnswerKeyEntryRecord.from_domain(e) for e in variant.answer_key
            ],
        )

    def to_domain(self, questions: Sequence[Question] | None = None) -> Variant:
        """
        Build the domain variant. Invalid permutations fall back to the
        original order with a warning, as for stored columns.
        """
        n_questions = (
            len(questions) if questions is not None else len(self.question_order)
        )
        return Variant(
            variant_number=self.variant_number,
            variant_code=self.variant_code,
            question_order=_checked_question_order(
                self.question_order, n_questions, self.variant_code
            ),
            option_permutations=_checked_option_permutations(
                self.option_permutations,
                _option_counts(questions),
                self.variant_code,
            ),
            answer_key=tuple(e.to_domain() for e in self.answer_key),
        )


def variant_to_json(variant: Variant) -> str:
    return VariantRecord.from_domain(variant).model_dump_json(by_alias=True)


def variant_from_json(
    data: str, questions: Sequence[Question] | None = None
) -> Variant:
    """
    Parse a stored variant document.

    Invalid permutations are recovered as in ``load_variant_columns``;
    passing ``questions`` also checks permutation lengths.

    Raises:
        ValueError: If the document is not a valid variant record or was
            written by a newer format version.
    """
    record = VariantRecord.model_validate_json(data)
    if record.format_version > FORMAT_VERSION:
        raise ValueError(
            f"Unsupported variant format version {record.format_version}"
        )
    return record.to_domain(questions)


def variant_columns(variant: Variant) -> dict[str, str]:
    """The three JSON columns stored alongside variant number and code."""
    record = VariantRecord.from_domain(variant)
    return {
        "question_order": json.dumps(record.question_order),
        "option_permutations": json.dumps(record.option_permutations),
        "answer_key": json.dumps(
            [e.model_dump(by_alias=True) for e in record.answer_key]
        ),
    }


def _option_counts(questions: Sequence[Question] | None) -> dict[str, int]:
    if questions is None:
        return {}
    return {q.id: len(option_texts(q)) for q in questions}


def _is_int_list(values: object) -> TypeGuard[Sequence[int]]:
    return isinstance(values, list | tuple) and all(
        isinstance(i, int) and not isinstance(i, bool) for i in values
    )


def _checked_question_order(
    order: object, n_questions: int, variant_code: str
) -> tuple[int, ...]:
    if _is_int_list(order) and is_permutation(order, n_questions):
        return tuple(order)
    logger.warning(
        f"Invalid question order {order!r} for variant {variant_code}; "
        "using original order"
    )
    return tuple(range(n_questions))


def _checked_option_permutations(
    data: Mapping[str, object],
    option_counts: Mapping[str, int],
    variant_code: str,
) -> dict[str, tuple[int, ...]]:
    permutations: dict[str, tuple[int, ...]] = {}
    for qid, perm in data.items():
        if _is_int_list(perm) and is_permutation(perm, option_counts.get(qid)):
            permutations[qid] = tuple(perm)
            continue
        logger.warning(
            f"Invalid option permutation {perm!r} for question {qid} on "
            f"variant {variant_code}; using original option order"
        )
    return permutations


def _parse_answer_key(raw: str, variant_code: str) -> tuple[AnswerKeyEntry, ...]:
    try:
        items = json.loads(raw)
        if not isinstance(items, list):
            raise ValueError("answer key must be a list")
        return tuple(
            AnswerKeyEntryRecord.model_validate(item).to_domain() for item in items
        )
    except (ValueError, ValidationError) as e:
        logger.warning(
            f"Malformed answer key for variant {variant_code}; "
            f"using empty key: {e}"
        )
        return ()


def _parse_question_order(
    raw: str, n_questions: int, variant_code: str
) -> tuple[int, ...]:
    try:
        order = json.loads(raw)
    except ValueError as e:
        logger.warning(
            f"Malformed question order for variant {variant_code}; "
            f"using original order: {e}"
        )
        return tuple(range(n_questions))
    return _checked_question_order(order, n_questions, variant_code)


def _parse_option_permutations(
    raw: str,
    option_counts: Mapping[str, int],
    variant_code: str,
) -> dict[str, tuple[int, ...]]:
    try:
        data = json.loads(raw)
    except ValueError as e:
        logger.warning(
            f"Malformed option permutations for variant {variant_code}; "
            f"using original option order: {e}"
        )
        return {}

    if not isinstance(data, dict):
        logger.warning(
            f"Option permutations for variant {variant_code} are not a mapping; "
            "using original option order"
        )
        return {}
    return _checked_option_permutations(data, option_counts, variant_code)


def load_variant_columns(
    variant_number: int,
    variant_code: str,
    question_order: str,
    option_permutations: str,
    answer_key: str,
    questions: Sequence[Question] | None = None,
) -> Variant:
    """
    Rebuild a variant from its stored JSON columns.

    Malformed or invalid columns never raise: the affected part falls back
    to the original order (or an empty key) and a warning is logged. When
    ``questions`` is given, permutation lengths are checked against the
    question list and option counts.
    """
    key = _parse_answer_key(answer_key, variant_code)
    n_questions = len(questions) if questions is not None else len(key)
    return Variant(
        variant_number=variant_number,
        variant_code=variant_code,
        question_order=_parse_question_order(
            question_order, n_questions, variant_code
        ),
        option_permutations=_parse_option_permutations(
            option_permutations, _option_counts(questions), variant_code
        ),
        answer_key=key,
    )
