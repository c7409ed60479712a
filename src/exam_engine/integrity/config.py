from dataclasses import dataclass

from exam_engine.core.exceptions import InvalidConfigurationError

DEFAULT_SIGNIFICANCE_LEVEL = 0.05
DEFAULT_MIN_COMMON_ITEMS = 5
DEFAULT_MAX_REPORTED_PAIRS = 100

# Percentage points a sheet must gain on another variant's key to be reported
DEFAULT_MIN_CROSS_VARIANT_GAIN = 30.0


@dataclass(frozen=True)
class IntegrityConfig:
    """
    Settings for response-similarity screening.

    Attributes:
        significance_level: False discovery rate for flagging pairs.
        min_common_items: Pairs answering fewer items in common are not
            tested.
        max_reported_pairs: Cap on flagged pairs included in the report
            (most significant first).
        min_cross_variant_gain: Sheets scoring at least this many
            percentage points higher on another variant's key than on
            their own are reported.
    """

    significance_level: float = DEFAULT_SIGNIFICANCE_LEVEL
    min_common_items: int = DEFAULT_MIN_COMMON_ITEMS
    max_reported_pairs: int = DEFAULT_MAX_REPORTED_PAIRS
    min_cross_variant_gain: float = DEFAULT_MIN_CROSS_VARIANT_GAIN

    def __post_init__(self) -> None:
        if not (0 < self.significance_level < 1):
            raise InvalidConfigurationError(
                "significance_level must be in (0, 1), "
                f"got {self.significance_level}"
            )
        if self.min_common_items < 1:
            raise InvalidConfigurationError(
                f"min_common_items must be >= 1, got {self.min_common_items}"
            )
        if self.max_reported_pairs < 1:
            raise InvalidConfigurationError(
                f"max_reported_pairs must be >= 1, got {self.max_reported_pairs}"
            )
        if not (0 < self.min_cross_variant_gain <= 100):
            raise InvalidConfigurationError(
                "min_cross_variant_gain must be in (0, 100], "
                f"got {self.min_cross_variant_gain}"
            )
