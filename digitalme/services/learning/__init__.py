"""
Conversational learning.

Collects qualifying chat messages, ships them off for refinement in batches, and swaps in the
refined profile only when the whole result checks out.
"""

from digitalme.services.learning.client import RefinementClient, RefinementError, RefinementValidationError
from digitalme.services.learning.collector import MessageCollector
from digitalme.services.learning.refiner import ProfileRefiner, validate_refinement_response
from digitalme.services.learning.session import LivingProfileSession

__all__ = [
    "MessageCollector",
    "RefinementClient",
    "RefinementError",
    "RefinementValidationError",
    "ProfileRefiner",
    "LivingProfileSession",
    "validate_refinement_response",
]
