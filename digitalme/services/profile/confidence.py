from loguru import logger

from digitalme.core.constants import CONFIDENCE_CEILING, CONFIDENCE_NO_SOURCES, WRITING_ATTRIBUTES
from digitalme.models.style import SourceReading
from digitalme.services.profile.constants import (
    CONFIDENCE_BASE,
    CONFIDENCE_CODE_BONUS,
    CONFIDENCE_CODE_LINE_THRESHOLDS,
    CONFIDENCE_MAX_EXTRA_SOURCES,
    CONFIDENCE_PER_EXTRA_SOURCE,
    CONFIDENCE_WORD_BONUS,
    CONFIDENCE_WORD_THRESHOLDS,
)
from digitalme.services.profile.weights import WeightCalculator


def missing_attributes(reading: SourceReading) -> list[str]:
    """Writing attributes the reading fails to report; every attribute when there is no style at all."""
    style = reading.writing_style
    if style is None:
        return list(WRITING_ATTRIBUTES)
    return [attribute for attribute in WRITING_ATTRIBUTES if getattr(style, attribute) is None]


def validate_source(reading: SourceReading, diagnostics: list[str] | None = None) -> bool:
    """
    A reading is usable for merging only if it reports all five writing attributes.

    Rejections are logged and, when ``diagnostics`` is given, appended to it.
    """
    missing = missing_attributes(reading)
    if not missing:
        return True
    message = f"Excluding {reading.source_type} source: missing {', '.join(missing)}"
    logger.warning(message)
    if diagnostics is not None:
        diagnostics.append(message)
    return False


class ConfidenceEstimator:
    """Overall trust score from how many sources agreed to be merged and how much text backed them."""

    @staticmethod
    def total_words(readings: list[SourceReading]) -> int:
        return sum(WeightCalculator.reported_word_count(reading) or 0 for reading in readings)

    @staticmethod
    def calculate(readings: list[SourceReading]) -> float:
        """
        Confidence for a set of valid readings.

        Args:
            readings: Readings that passed validation

        Returns:
            A value in [0.30, 0.95], rounded to two decimals
        """
        if not readings:
            return CONFIDENCE_NO_SOURCES

        extra_sources = min(len(readings) - 1, CONFIDENCE_MAX_EXTRA_SOURCES)
        confidence = CONFIDENCE_BASE + extra_sources * CONFIDENCE_PER_EXTRA_SOURCE

        words = ConfidenceEstimator.total_words(readings)
        confidence += sum(CONFIDENCE_WORD_BONUS for threshold in CONFIDENCE_WORD_THRESHOLDS if words > threshold)

        return round(min(confidence, CONFIDENCE_CEILING), 2)

    @staticmethod
    def apply_code_bonus(confidence: float, code_lines: int) -> float:
        """Profile-level bonus for code evidence; does not touch attribution."""
        reached = [threshold for threshold in CONFIDENCE_CODE_LINE_THRESHOLDS if code_lines >= threshold]
        confidence += CONFIDENCE_CODE_BONUS * len(reached)
        return round(min(confidence, CONFIDENCE_CEILING), 2)
