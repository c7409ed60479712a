"""
Configuration for item analysis.
"""

from dataclasses import dataclass

from exam_engine.core.exceptions import InvalidConfigurationError

DEFAULT_MIN_SAMPLE_SIZE = 10
DEFAULT_CONFIDENCE_LEVEL = 0.95

# Kelley's 27% upper/lower groups
DEFAULT_GROUP_FRACTION = 0.27

# Flag thresholds
DEFAULT_LOW_DISCRIMINATION = 0.2
DEFAULT_TOO_EASY = 0.9
DEFAULT_TOO_HARD = 0.2

# A distractor is functional when at least this share of respondents picks it
DEFAULT_FUNCTIONAL_DISTRACTOR_RATE = 0.05


@dataclass(frozen=True)
class AnalysisConfig:
    """
    Settings for item analysis.

    Attributes:
        min_sample_size: Respondents needed before a statistic is considered
            reliable or significant.
        confidence_level: Confidence level for significance tests and
            intervals.
        group_fraction: Share of respondents in each of the upper and lower
            groups used for discrimination.
        exclude_item_from_total: Correlate each item with the total score
            minus that item (corrected item-total) rather than the raw total.
        include_difficulty, include_discrimination, include_point_biserial,
        include_distractors: Turn individual statistics on or off.
        low_discrimination_threshold: Items discriminating below this are
            flagged.
        too_easy_threshold, too_hard_threshold: Difficulty bounds outside
            which an item is flagged.
        functional_distractor_rate: Share of respondents a wrong option
            needs to count as a functional distractor.
    """

    min_sample_size: int = DEFAULT_MIN_SAMPLE_SIZE
    confidence_level: float = DEFAULT_CONFIDENCE_LEVEL
    group_fraction: float = DEFAULT_GROUP_FRACTION
    exclude_item_from_total: bool = True
    include_difficulty: bool = True
    include_discrimination: bool = True
    include_point_biserial: bool = True
    include_distractors: bool = True
    low_discrimination_threshold: float = DEFAULT_LOW_DISCRIMINATION
    too_easy_threshold: float = DEFAULT_TOO_EASY
    too_hard_threshold: float = DEFAULT_TOO_HARD
    functional_distractor_rate: float = DEFAULT_FUNCTIONAL_DISTRACTOR_RATE

    def __post_init__(self) -> None:
        if self.min_sample_size < 1:
            raise InvalidConfigurationError(
                f"min_sample_size must be >= 1, got {self.min_sample_size}"
            )
        if not (0 < self.confidence_level < 1):
            raise InvalidConfigurationError(
                f"confidence_level must be in (0, 1), got {self.confidence_level}"
            )
        if not (0 < self.group_fraction <= 0.5):
            raise InvalidConfigurationError(
                f"group_fraction must be in (0, 0.5], got {self.group_fraction}"
            )
        if not (0 <= self.too_hard_threshold < self.too_easy_threshold <= 1):
            raise InvalidConfigurationError(
                "need 0 <= too_hard_threshold < too_easy_threshold <= 1, got "
                f"{self.too_hard_threshold} and {self.too_easy_threshold}"
            )
        if not (-1 <= self.low_discrimination_threshold <= 1):
            raise InvalidConfigurationError(
                "low_discrimination_threshold must be in [-1, 1], "
                f"got {self.low_discrimination_threshold}"
            )
        if not (0 <= self.functional_distractor_rate < 1):
            raise InvalidConfigurationError(
                "functional_distractor_rate must be in [0, 1), "
                f"got {self.functional_distractor_rate}"
            )

    @property
    def alpha(self) -> float:
        return 1 - self.confidence_level
