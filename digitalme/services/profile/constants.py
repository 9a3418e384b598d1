from typing import Final

# Source types (wire values)
SOURCE_MAIL_CORPUS: Final[str] = "gmail"
SOURCE_PASTED_TEXT: Final[str] = "text"
SOURCE_BLOG: Final[str] = "blog"
SOURCE_CODE_REPO: Final[str] = "github"
SOURCE_PRIOR_PROFILE: Final[str] = "existing"

# Quality weights; insertion order is also the tie-break priority for categorical merges
QUALITY_WEIGHTS: Final[dict[str, float]] = {
    SOURCE_MAIL_CORPUS: 1.0,
    SOURCE_PASTED_TEXT: 0.8,
    SOURCE_BLOG: 0.6,
}
SOURCE_PRIORITY: Final[tuple[str, ...]] = tuple(QUALITY_WEIGHTS)
FALLBACK_QUALITY_WEIGHT: Final[float] = 0.5

# Quantity factor buckets (word count)
DEFAULT_WORD_COUNT: Final[int] = 500  # Substituted when a reading reports no count
ZERO_WORD_COUNT_SUBSTITUTE: Final[int] = 100
THIN_EVIDENCE_WORDS: Final[int] = 500  # Below this: thin
ABUNDANT_EVIDENCE_WORDS: Final[int] = 1500  # Above this: abundant
QUANTITY_FACTOR_THIN: Final[float] = 0.5
QUANTITY_FACTOR_NORMAL: Final[float] = 1.0
QUANTITY_FACTOR_ABUNDANT: Final[float] = 1.5

# Formality is ordinal: averaged on this scale and mapped back with the thresholds below
FORMALITY_SCORES: Final[dict[str, int]] = {"casual": 0, "balanced": 1, "formal": 2}
FORMALITY_CASUAL_BELOW: Final[float] = 0.5
FORMALITY_BALANCED_UP_TO: Final[float] = 1.5

# Avoidance term selection
AVOIDANCE_MIN_APPEARANCE_PERCENT: Final[float] = 50.0
AVOIDANCE_MIN_WEIGHT: Final[float] = 0.6  # Strictly greater than

# Confidence
CONFIDENCE_BASE: Final[float] = 0.5
CONFIDENCE_PER_EXTRA_SOURCE: Final[float] = 0.15
CONFIDENCE_MAX_EXTRA_SOURCES: Final[int] = 3
CONFIDENCE_WORD_BONUS: Final[float] = 0.05
CONFIDENCE_WORD_THRESHOLDS: Final[tuple[int, ...]] = (1000, 2000)  # Strictly greater than
CONFIDENCE_CODE_LINE_THRESHOLDS: Final[tuple[int, ...]] = (500, 2000)  # At least
CONFIDENCE_CODE_BONUS: Final[float] = 0.05

# Tie detection tolerance for accumulated weights
WEIGHT_TIE_TOLERANCE: Final[float] = 1e-9
