from typing import Final

# Words of conversation needed for a refinement to count fully
FULL_EVIDENCE_WORDS: Final[int] = 500

# Maximum adjustment per refinement, by how confident the attribute already is
HIGH_CONFIDENCE: Final[float] = 0.8
MEDIUM_CONFIDENCE: Final[float] = 0.5
ADJUSTMENT_HIGH_CONFIDENCE: Final[float] = 0.05
ADJUSTMENT_MEDIUM_CONFIDENCE: Final[float] = 0.10
ADJUSTMENT_LOW_CONFIDENCE: Final[float] = 0.20

# Minimum adjustment needed before a categorical attribute flips
CHANGE_THRESHOLD_HIGH_CONFIDENCE: Final[float] = 0.04
CHANGE_THRESHOLD: Final[float] = 0.03

# Attribute confidence growth per refinement
CONFIDENCE_GROWTH: Final[float] = 0.05

# Patterns used when analysis is unavailable
FALLBACK_VOCABULARY: Final[tuple[str, ...]] = ("clear", "direct")
