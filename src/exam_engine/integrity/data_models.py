from pydantic import BaseModel, ConfigDict


class SuspiciousPair(BaseModel):
    """A pair of students whose shared wrong answers are unlikely by chance."""

    student_a: str
    student_b: str
    variant_a: str
    variant_b: str
    common_items: int
    matching_answers: int
    similarity: float
    identical_incorrect: int
    expected_identical_incorrect: float
    z_score: float | None
    p_value: float
    q_value: float
    explanation: str
    model_config = ConfigDict(frozen=True)


class CrossVariantGrade(BaseModel):
    """
    A sheet whose letters match another variant's answer key much better
    than the key of the variant it was handed in for.

    Percentages count printed letters matching the key, position by
    position. ``closest_student_id`` is the sheet on the graded variant
    with the highest letter agreement, if anyone sat that variant.
    """

    student_id: str
    variant_code: str
    graded_variant_code: str
    own_key_percentage: float
    cross_key_percentage: float
    grade_change: float
    closest_student_id: str | None
    letter_agreement: float | None
    model_config = ConfigDict(frozen=True)


class StudentSimilarity(BaseModel):
    student_id: str
    max_similarity: float | None
    most_similar_student_id: str | None
    model_config = ConfigDict(frozen=True)


class VariantSimilarity(BaseModel):
    """
    Symmetric similarity between variants in [0, 1]: the mean of
    question-position agreement and option-order agreement.
    """

    variant_codes: tuple[str, ...]
    matrix: tuple[tuple[float, ...], ...]
    duplicate_pairs: tuple[tuple[str, str], ...]
    model_config = ConfigDict(frozen=True)


class IntegrityReport(BaseModel):
    """
    Advisory similarity screening. Flags are for human review only.
    """

    flagged_pairs: tuple[SuspiciousPair, ...]
    pairs_tested: int
    pairs_flagged: int
    student_similarity: tuple[StudentSimilarity, ...]
    variant_similarity: VariantSimilarity
    notes: tuple[str, ...]
    cross_variant_grades: tuple[CrossVariantGrade, ...] = ()
    model_config = ConfigDict(frozen=True)
