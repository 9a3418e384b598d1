"""
Style profile merging.

Weighs each source's reading, merges the five writing attributes by weighted vote, average or
union, and records which sources decided what. Bad evidence degrades to defaults, never to errors.
"""

from digitalme.services.profile.builder import ProfileBuilder, WritingStyleMerge
from digitalme.services.profile.confidence import ConfidenceEstimator, validate_source
from digitalme.services.profile.mergers import AttributeMergers
from digitalme.services.profile.weights import WeightCalculator, WeightedSource, WeightNormalizer

__all__ = [
    "ProfileBuilder",
    "WritingStyleMerge",
    "AttributeMergers",
    "ConfidenceEstimator",
    "WeightCalculator",
    "WeightNormalizer",
    "WeightedSource",
    "validate_source",
]
