"""
Loading utilities for question files and scanned answer sheets.
"""

import json
import logging
from collections.abc import Sequence
from pathlib import Path

import pandas as pd

from exam_engine.core.constants import MISSING_CHAR
from exam_engine.core.data_models import (
    Question,
    RawSubmission,
    Variant,
    make_question,
)

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("student_id", "variant_code", "answer_string")


def parse_answer_string(
    answer_string: str, variant: Variant
) -> dict[str, str | None]:
    """Map each character of an answer string onto the variant's questions.

    Character k answers question number k + 1 of the variant.
    MISSING_CHAR marks a blank answer.
    """
    answers: dict[str, str | None] = {}
    for entry in variant.answer_key:
        pos = entry.question_number - 1
        char = answer_string[pos] if pos < len(answer_string) else MISSING_CHAR
        answers[entry.question_id] = None if char == MISSING_CHAR else char

    if len(answer_string) > len(variant.answer_key):
        logger.warning(
            f"Answer string has {len(answer_string)} characters but variant "
            f"{variant.variant_code} has {len(variant.answer_key)} questions; "
            "extra characters ignored"
        )
    return answers


def load_answer_sheets(
    path: Path, variants: Sequence[Variant]
) -> list[RawSubmission]:
    """Load a CSV of scanned answer sheets into raw submissions.

    Expected CSV columns:
        - student_id: unique identifier for each student
        - variant_code: code printed on the sheet (e.g. "V2")
        - answer_string: one letter per question number (e.g. "ABD*C")

    Rows referencing an unknown variant code are skipped with a warning.

    Raises:
        ValueError: If required columns are missing.
    """
    df = pd.read_csv(path, dtype=str, keep_default_na=False)

    for column in REQUIRED_COLUMNS:
        if column not in df.columns:
            raise ValueError(f"CSV must have '{column}' column")

    by_code = {v.variant_code: v for v in variants}
    submissions: list[RawSubmission] = []
    for row in df.itertuples(index=False):
        variant = by_code.get(row.variant_code)
        if variant is None:
            logger.warning(
                f"Skipping student {row.student_id}: unknown variant code "
                f"'{row.variant_code}'"
            )
            continue
        submissions.append(
            RawSubmission(
                student_id=row.student_id,
                variant_code=row.variant_code,
                answers=parse_answer_string(row.answer_string, variant),
            )
        )
    return submissions


def load_questions(path: Path) -> list[Question]:
    """Load questions from a JSON list of question records.

    Each record needs ``id``, ``question_type`` ("MULTIPLE_CHOICE" or
    "TRUE_FALSE") and ``correct_answer``; ``text``, ``options``, ``points``
    and ``negative_points`` are optional.
    """
    with open(path) as f:
        records = json.load(f)

    if not isinstance(records, list):
        raise ValueError("Questions file must contain a JSON list")

    return [
        make_question(
            id=str(record["id"]),
            text=record.get("text", ""),
            question_type=record["question_type"],
            options=record.get("options") or [],
            correct_answer=record["correct_answer"],
            points=float(record.get("points", 1.0)),
            negative_points=record.get("negative_points"),
        )
        for record in records
    ]
