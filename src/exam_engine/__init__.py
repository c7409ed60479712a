import logging
import sys

# 1. Set up a handler and formatter (e.g., for console output)
# This handler will be used by all loggers that don't have their own handlers.
console_handler = logging.StreamHandler(sys.stdout)
console_handler.setLevel(logging.DEBUG)
formatter = logging.Formatter(
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
console_handler.setFormatter(formatter)

# 2. Get the root logger and set its level
# All engine loggers (using __name__) inherit from the root logger.
root_logger = logging.getLogger()
root_logger.setLevel(logging.INFO)
root_logger.addHandler(console_handler)

# 3. Suppress chatty library loggers
logging.getLogger("numba").setLevel(logging.WARNING)
logging.getLogger("asyncio").setLevel(logging.WARNING)

from exam_engine.analysis.engine import analyze, analyze_by_variant  # noqa: E402
from exam_engine.integrity.analyzer import analyze_integrity  # noqa: E402
from exam_engine.reporting.percentile import filter_by_percentile  # noqa: E402
from exam_engine.scoring.normalizer import (  # noqa: E402
    normalize_responses,
    score_submission,
)
from exam_engine.variants.generator import (  # noqa: E402
    generate_variants,
    regenerate_variants,
)

__all__ = [
    "analyze",
    "analyze_by_variant",
    "analyze_integrity",
    "filter_by_percentile",
    "generate_variants",
    "normalize_responses",
    "regenerate_variants",
    "score_submission",
]
