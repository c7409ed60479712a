import pytest
from pydantic import ValidationError

from exam_engine.api.schemas import (
    AnalysisConfigSchema,
    ExamSubmissionsRequest,
    GenerationConfigSchema,
    IntegrityConfigSchema,
    IntegrityRequest,
    PercentileRequest,
    QuestionSchema,
)
from exam_engine.core.data_models import (
    MultipleChoiceQuestion,
    TrueFalseQuestion,
)
from exam_engine.core.exceptions import InvalidConfigurationError


class TestQuestionSchema:
    def test_multiple_choice(self) -> None:
        schema = QuestionSchema(
            id="q1", text="?", options=["a", "b"], correct_answer="b", points=2
        )
        question = schema.to_domain()
        assert isinstance(question, MultipleChoiceQuestion)
        assert question.options == ("a", "b")
        assert question.points == 2.0

    def test_true_false_default_options(self) -> None:
        schema = QuestionSchema(
            id="t", question_type="TRUE_FALSE", correct_answer="False"
        )
        question = schema.to_domain()
        assert isinstance(question, TrueFalseQuestion)
        assert question.effective_options == ("True", "False")

    def test_negative_points_rejected(self) -> None:
        with pytest.raises(ValidationError):
            QuestionSchema(id="q", correct_answer="a", points=-1)

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            QuestionSchema(id="q", correct_answer="a", question_type="ESSAY")


class TestGenerationConfigSchema:
    def test_to_domain(self) -> None:
        config = GenerationConfigSchema(number_of_variants=3, seed="g").to_domain()
        assert config.number_of_variants == 3
        assert config.randomize_question_order
        assert not config.randomize_true_false_options

    def test_out_of_range(self) -> None:
        schema = GenerationConfigSchema(number_of_variants=11, seed="g")
        with pytest.raises(InvalidConfigurationError):
            schema.to_domain()


class TestExamSubmissionsRequest:
    def test_camel_case_variants(self) -> None:
        """Variants are accepted in their stored camelCase form."""
        request = ExamSubmissionsRequest.model_validate(
            {
                "questions": [
                    {"id": "q1", "options": ["a", "b"], "correct_answer": "a"}
                ],
                "variants": [
                    {
                        "formatVersion": 1,
                        "variantNumber": 1,
                        "variantCode": "V1",
                        "questionOrder": [0],
                        "optionPermutations": {"q1": [1, 0]},
                        "answerKey": [
                            {
                                "questionId": "q1",
                                "questionNumber": 1,
                                "correctAnswer": "B",
                                "originalAnswer": "a",
                            }
                        ],
                    }
                ],
                "submissions": [
                    {"student_id": "S1", "variant_code": "V1", "answers": {"q1": "B"}}
                ],
            }
        )
        variant = request.domain_variants()[0]
        assert variant.option_permutations == {"q1": (1, 0)}
        assert variant.answer_key[0].correct_answer == "B"
        submission = request.domain_submissions()[0]
        assert submission.answers == {"q1": "B"}

    def test_blank_answers_allowed(self) -> None:
        request = ExamSubmissionsRequest.model_validate(
            {
                "questions": [],
                "variants": [],
                "submissions": [
                    {"student_id": "S1", "variant_code": "V1", "answers": {"q1": None}}
                ],
            }
        )
        assert request.domain_submissions()[0].answers == {"q1": None}


class TestConfigSchemas:
    def test_analysis_defaults(self) -> None:
        config = AnalysisConfigSchema().to_domain()
        assert config.min_sample_size == 10
        assert config.confidence_level == 0.95

    def test_analysis_thresholds(self) -> None:
        config = AnalysisConfigSchema(
            low_discrimination_threshold=0.3,
            too_easy_threshold=0.8,
            too_hard_threshold=0.3,
            functional_distractor_rate=0.1,
        ).to_domain()
        assert config.low_discrimination_threshold == 0.3
        assert (config.too_hard_threshold, config.too_easy_threshold) == (0.3, 0.8)
        assert config.functional_distractor_rate == 0.1

    def test_analysis_thresholds_out_of_order(self) -> None:
        schema = AnalysisConfigSchema(too_easy_threshold=0.2, too_hard_threshold=0.5)
        with pytest.raises(InvalidConfigurationError):
            schema.to_domain()

    def test_analysis_invalid(self) -> None:
        with pytest.raises(InvalidConfigurationError):
            AnalysisConfigSchema(confidence_level=1.5).to_domain()

    def test_integrity_default_when_missing(self) -> None:
        request = IntegrityRequest(questions=[], variants=[], submissions=[])
        assert request.domain_config().significance_level == 0.05

    def test_integrity_invalid(self) -> None:
        with pytest.raises(InvalidConfigurationError):
            IntegrityConfigSchema(min_common_items=0).to_domain()

    def test_integrity_cross_variant_gain(self) -> None:
        schema = IntegrityConfigSchema(min_cross_variant_gain=50)
        assert schema.to_domain().min_cross_variant_gain == 50.0
        with pytest.raises(InvalidConfigurationError):
            IntegrityConfigSchema(min_cross_variant_gain=0).to_domain()


class TestPercentileRequest:
    def test_no_bounds(self) -> None:
        assert PercentileRequest(students=[]).domain_range() is None

    def test_partial_bounds(self) -> None:
        band = PercentileRequest(students=[], lower=75).domain_range()
        assert band is not None
        assert (band.lower, band.upper) == (75, 100)

    def test_invalid_bounds(self) -> None:
        request = PercentileRequest(students=[], lower=80, upper=20)
        with pytest.raises(InvalidConfigurationError):
            request.domain_range()
