import asyncio
import contextlib
import inspect
from collections.abc import Awaitable, Callable

from loguru import logger

from digitalme.core.config import settings
from digitalme.core.security import redact_identifier
from digitalme.models.profile import StyleProfile
from digitalme.models.refinement import RefinementResult
from digitalme.services.learning.collector import MessageCollector
from digitalme.services.learning.refiner import ProfileRefiner
from digitalme.services.profile_store import ProfileStore, profile_store

UpdateCallback = Callable[[RefinementResult], Awaitable[None] | None]


class LivingProfileSession:
    """
    Keeps one user's profile current while they chat.

    Messages go through the collector; a batch is refined as soon as it is full, and a background
    poller catches batches that went idle. The session's profile only changes when a refinement
    fully succeeds.
    """

    def __init__(
        self,
        profile: StyleProfile,
        refiner: ProfileRefiner | None = None,
        collector: MessageCollector | None = None,
        store: ProfileStore | None = None,
        poll_interval_seconds: float = settings.BATCH_POLL_INTERVAL_SECONDS,
        on_result: UpdateCallback | None = None,
    ):
        self._profile = profile
        self.store = store or profile_store
        self.refiner = refiner or ProfileRefiner(store=self.store)
        self.collector = collector or MessageCollector(learning_enabled=profile.learning_metadata.enabled)
        self.poll_interval_seconds = poll_interval_seconds
        self.on_result = on_result
        self._dispatch_lock = asyncio.Lock()
        self._poll_task: asyncio.Task | None = None

    @classmethod
    async def restore(
        cls, user_id: str, store: ProfileStore | None = None, **kwargs
    ) -> "LivingProfileSession | None":
        """Resume a session from the stored profile and learning flag; None if nothing is stored."""
        store = store or profile_store
        profile = await store.get_profile(user_id)
        if profile is None:
            return None
        enabled = await store.is_learning_enabled(user_id)
        collector = kwargs.pop("collector", None) or MessageCollector(learning_enabled=enabled)
        return cls(profile, store=store, collector=collector, **kwargs)

    @property
    def profile(self) -> StyleProfile:
        return self._profile

    @property
    def user(self) -> str:
        return redact_identifier(self._profile.user_id)

    async def submit_message(self, text: str) -> RefinementResult | None:
        """Offer a message for learning; refines immediately if it completes a batch."""
        if not self.collector.add_message(text):
            return None
        if self.collector.should_send_batch():
            return await self.flush()
        return None

    async def flush(self) -> RefinementResult | None:
        """
        Refine whatever is pending now.

        The batch is consumed whether or not refinement succeeds. Returns None when nothing was pending.
        """
        async with self._dispatch_lock:
            batch = self.collector.get_batch()
            if not batch:
                return None
            result = await self.refiner.refine(self._profile, batch)
            if result.success and result.updated_profile is not None:
                self._profile = result.updated_profile
            else:
                logger.warning(f"[{self.user}] Discarded batch of {len(batch)} messages: {result.error}")

        if self.on_result is not None:
            try:
                outcome = self.on_result(result)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                logger.exception(f"[{self.user}] Refinement result callback failed: {e}")
        return result

    async def set_learning_enabled(self, enabled: bool) -> bool:
        """Toggle learning for this user; pending messages are dropped when disabling."""
        self.collector.set_learning_enabled(enabled)
        logger.info(f"[{self.user}] Learning {'enabled' if enabled else 'disabled'}")
        return await self.store.set_learning_enabled(self._profile.user_id, enabled)

    async def check_inactivity(self) -> RefinementResult | None:
        if self.collector.should_send_batch():
            return await self.flush()
        return None

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self.poll_interval_seconds)
            try:
                await self.check_inactivity()
            except Exception as e:
                logger.exception(f"[{self.user}] Inactivity check failed: {e}")

    def start(self) -> None:
        """Start the background inactivity poller. Must be called from a running event loop."""
        if self._poll_task is None or self._poll_task.done():
            self._poll_task = asyncio.create_task(self._poll_loop())
            logger.debug(f"[{self.user}] Inactivity poller started ({self.poll_interval_seconds}s)")

    async def stop(self) -> None:
        if self._poll_task is None:
            return
        self._poll_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._poll_task
        self._poll_task = None
        logger.debug(f"[{self.user}] Inactivity poller stopped")
