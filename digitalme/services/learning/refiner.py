import asyncio
from typing import Any

from loguru import logger
from pydantic import ValidationError

from digitalme.core.config import settings
from digitalme.core.constants import UNCHANGED_PROFILE_MESSAGE, VALIDATION_ERROR_CODE
from digitalme.core.retry import RetryPolicy
from digitalme.core.security import redact_identifier
from digitalme.models.profile import StyleProfile
from digitalme.models.refinement import DeltaReport, RefinementResult
from digitalme.services.learning.client import (
    RefinementClient,
    RefinementError,
    RefinementValidationError,
    is_retryable_refinement_error,
)
from digitalme.services.profile_store import ProfileStore, profile_store


def validate_refinement_response(body: Any) -> bool:
    """
    Shape check before a response is trusted.

    Requires an explicit success flag, an updated profile with both writing and coding sections,
    and, when a delta report is present, a list of changes.
    """
    if not isinstance(body, dict) or body.get("success") is not True:
        return False
    profile = body.get("updatedProfile")
    if not isinstance(profile, dict):
        return False
    if not isinstance(profile.get("writing"), dict) or not isinstance(profile.get("coding"), dict):
        return False
    delta = body.get("deltaReport")
    if delta is not None and (not isinstance(delta, dict) or not isinstance(delta.get("changes"), list)):
        return False
    return True


def default_retry_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.REFINE_MAX_ATTEMPTS,
        delay_seconds=settings.REFINE_RETRY_DELAY_SECONDS,
        retry_on=is_retryable_refinement_error,
    )


class ProfileRefiner:
    """
    Sends a batch of messages for refinement and swaps in the result only if all of it checks out.

    One refinement runs at a time; overlapping calls wait their turn.
    """

    def __init__(
        self,
        client: RefinementClient | None = None,
        store: ProfileStore | None = None,
        retry_policy: RetryPolicy | None = None,
    ):
        self.client = client or RefinementClient()
        self.store = store or profile_store
        self.retry_policy = retry_policy or default_retry_policy()
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @staticmethod
    def _check_preconditions(current_profile: Any, messages: Any) -> StyleProfile:
        if isinstance(current_profile, StyleProfile):
            profile = current_profile
        elif isinstance(current_profile, dict):
            try:
                profile = StyleProfile.model_validate(current_profile)
            except ValidationError as e:
                raise RefinementValidationError(f"Invalid current profile: {e.error_count()} error(s)") from e
        else:
            raise RefinementValidationError("Invalid current profile")

        if not isinstance(messages, (list, tuple)) or not messages:
            raise RefinementValidationError("No messages to refine")
        if not all(isinstance(message, str) for message in messages):
            raise RefinementValidationError("Messages must be strings")
        return profile

    async def _attempt(
        self, wire_profile: dict[str, Any], messages: list[str]
    ) -> tuple[StyleProfile, DeltaReport | None]:
        body = await self.client.refine(wire_profile, messages)

        if isinstance(body, dict) and body.get("success") is False:
            error = body.get("error") or "Refinement failed"
            if body.get("code") == VALIDATION_ERROR_CODE:
                raise RefinementValidationError(error)
            raise RefinementError(error, code=body.get("code"))

        if not validate_refinement_response(body):
            raise RefinementError("Invalid response structure from refinement service")

        try:
            profile = StyleProfile.model_validate(body["updatedProfile"])
            delta = DeltaReport.model_validate(body["deltaReport"]) if body.get("deltaReport") is not None else None
        except ValidationError as e:
            raise RefinementError(f"Invalid refined profile: {e.error_count()} error(s)") from e
        return profile, delta

    async def refine(self, current_profile: StyleProfile | dict[str, Any], messages: list[str]) -> RefinementResult:
        """
        Refine a profile from newly observed messages.

        Args:
            current_profile: The authoritative profile
            messages: Non-empty batch of message texts

        Returns:
            RefinementResult; on failure the stored profile is untouched
        """
        try:
            profile = self._check_preconditions(current_profile, messages)
        except RefinementValidationError as e:
            logger.warning(f"Refinement not attempted: {e}")
            return RefinementResult.failed(str(e), code=e.code)

        user = redact_identifier(profile.user_id)
        wire_profile = profile.to_wire()
        batch = list(messages)

        async with self._lock:
            logger.info(f"[{user}] Refining profile v{profile.version} with {len(batch)} messages")
            try:
                updated, delta = await self.retry_policy.run(
                    lambda: self._attempt(wire_profile, batch), description="Profile refinement"
                )
            except RefinementError as e:
                logger.warning(f"[{user}] Refinement failed, keeping profile v{profile.version}: {e}")
                return RefinementResult.failed(str(e), code=e.code)
            except Exception as e:
                logger.exception(f"[{user}] Unexpected refinement error: {e}")
                return RefinementResult.failed(UNCHANGED_PROFILE_MESSAGE)

            if not await self.store.save_profile(profile.user_id, updated):
                return RefinementResult.failed(f"Failed to persist refined profile. {UNCHANGED_PROFILE_MESSAGE}")

        changed = len(delta.changes) if delta else 0
        logger.info(f"[{user}] Profile refined to v{updated.version} ({changed} changes)")
        return RefinementResult(success=True, updated_profile=updated, delta_report=delta)
