"""
Core constants used across the application. Keep these simple and documented.
"""

# Redis keys
PROFILE_KEY: str = "digitalme:profile:{user_id}"
LEARNING_ENABLED_KEY: str = "digitalme:learning:{user_id}"

# Refinement wire contract
REFINE_PATH: str = "/api/profile/refine"
VALIDATION_ERROR_CODE: str = "VALIDATION_ERROR"
RATE_LIMITED_CODE: str = "RATE_LIMITED"
ANALYSIS_ERROR_CODE: str = "ANALYSIS_ERROR"
UNCHANGED_PROFILE_MESSAGE: str = "Unable to update profile. Your current profile is unchanged."

# Refinement request limits
MAX_BATCH_MESSAGES: int = 50
MAX_MESSAGE_CHARS: int = 5000
MAX_BATCH_CHARS: int = 50000

# Writing style attribute domains and defaults
TONE_VALUES: tuple[str, ...] = ("conversational", "professional", "neutral")
FORMALITY_VALUES: tuple[str, ...] = ("casual", "balanced", "formal")
SENTENCE_LENGTH_VALUES: tuple[str, ...] = ("short", "medium", "long")
WRITING_ATTRIBUTES: tuple[str, ...] = ("tone", "formality", "sentence_length", "vocabulary", "avoidance")

DEFAULT_TONE: str = "neutral"
DEFAULT_FORMALITY: str = "balanced"
DEFAULT_SENTENCE_LENGTH: str = "medium"
DEFAULT_VOCABULARY: tuple[str, ...] = ("clear", "direct", "concise", "relatable")
DEFAULT_AVOIDANCE: tuple[str, ...] = ("none",)
AVOIDANCE_NONE: str = "none"

MAX_VOCABULARY_TERMS: int = 4
MAX_AVOIDANCE_TERMS: int = 3

# Profile confidence bounds
CONFIDENCE_NO_SOURCES: float = 0.30
CONFIDENCE_CEILING: float = 0.95
