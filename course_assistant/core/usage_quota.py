"""
Usage quota gate.

Rolling-window message limit for the chat path. A window opens with a
user's first message and lasts a fixed duration; inside it at most
max_messages are allowed. Privileged users bypass the ceiling through an
explicit flag. A blocked request is a normal decision, not an error.

Dependencies: asyncio, weakref (stdlib), course_assistant.boundary.metadata
System role: Chat rate limiting
"""

import asyncio
import logging
import math
import weakref
from collections.abc import Callable, Iterable

from course_assistant.boundary.metadata.repository import UsageWindowRepository
from course_assistant.models.usage import QuotaDecision, UsageWindow

logger = logging.getLogger(__name__)


class UsageQuotaGate:
    """Per-user rolling message counter with a fixed ceiling."""

    def __init__(
        self,
        repository: UsageWindowRepository,
        clock: Callable[[], int],
        max_messages: int = 40,
        window_ms: int = 3 * 3600 * 1000,
        enabled: bool = True,
        privileged_user_ids: Iterable[str] = (),
    ) -> None:
        """
        Initialize gate.

        Args:
            repository: Storage for usage windows
            clock: Returns the current epoch ms
            max_messages: Ceiling per window
            window_ms: Window length measured from its first message
            enabled: When False every request is allowed and nothing is counted
            privileged_user_ids: Users that bypass the ceiling
        """
        self.repository = repository
        self.max_messages = max_messages
        self.window_ms = window_ms
        self.enabled = enabled
        self.privileged_user_ids = frozenset(privileged_user_ids)
        self._clock = clock
        # Entries vanish once no caller holds or waits on the lock
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    async def _load(self, user_id: str) -> UsageWindow:
        """Current window for the user, reset if it has expired."""
        window = await self.repository.get_usage_window(user_id) or UsageWindow(user_id=user_id)
        if window.window_start_ms is not None and self._clock() >= window.window_start_ms + self.window_ms:
            window = window.model_copy(update={"message_count": 0, "window_start_ms": None})
        return window

    def _is_privileged(self, window: UsageWindow) -> bool:
        return window.privileged or window.user_id in self.privileged_user_ids

    def _decide(self, window: UsageWindow) -> QuotaDecision:
        if not self.enabled or self._is_privileged(window):
            return QuotaDecision(allowed=True, unlimited=True)

        reset_at = (
            window.window_start_ms + self.window_ms
            if window.window_start_ms is not None
            else None
        )
        reset_in = (
            max(0, math.ceil((reset_at - self._clock()) / 1000)) if reset_at is not None else None
        )
        remaining = max(0, self.max_messages - window.message_count)
        return QuotaDecision(
            allowed=remaining > 0,
            remaining=remaining,
            reset_at_ms=reset_at,
            reset_in_seconds=reset_in,
        )

    def _counted(self, window: UsageWindow) -> QuotaDecision:
        """Decision for a message that was just counted; remaining reflects it."""
        return self._decide(window).model_copy(update={"allowed": True})

    async def check(self, user_id: str) -> QuotaDecision:
        """Whether one more message would be allowed now. Does not count it."""
        return self._decide(await self._load(user_id))

    async def status(self, user_id: str) -> QuotaDecision:
        """Quota state for display: remaining, reset time, unlimited flag."""
        return await self.check(user_id)

    async def record(self, user_id: str) -> QuotaDecision:
        """Count one message against the user's window."""
        async with self._lock_for(user_id):
            window = await self._load(user_id)
            if not self.enabled or self._is_privileged(window):
                return self._decide(window)
            if window.window_start_ms is None:
                window.window_start_ms = self._clock()
            window.message_count += 1
            await self.repository.save_usage_window(window)
            return self._counted(window)

    async def try_consume(self, user_id: str) -> QuotaDecision:
        """
        Check and count in one step.

        Returns:
            QuotaDecision: allowed=False leaves the counter untouched
        """
        async with self._lock_for(user_id):
            window = await self._load(user_id)
            decision = self._decide(window)
            if not decision.allowed or decision.unlimited:
                if not decision.allowed:
                    logger.info(
                        "Message blocked by usage quota",
                        extra={"user_id": user_id, "reset_in_seconds": decision.reset_in_seconds},
                    )
                return decision
            if window.window_start_ms is None:
                window.window_start_ms = self._clock()
            window.message_count += 1
            await self.repository.save_usage_window(window)
            return self._counted(window)

    async def refund(self, user_id: str) -> None:
        """
        Give back a message counted by try_consume whose answer never arrived.

        A window emptied by the refund is closed again, so a failed first
        message does not start the reset clock.
        """
        async with self._lock_for(user_id):
            window = await self._load(user_id)
            if not self.enabled or self._is_privileged(window) or window.message_count == 0:
                return
            window.message_count -= 1
            if window.message_count == 0:
                window.window_start_ms = None
            await self.repository.save_usage_window(window)
            logger.info("Usage refunded", extra={"user_id": user_id, "count": window.message_count})

    async def set_privileged(self, user_id: str, privileged: bool) -> None:
        async with self._lock_for(user_id):
            window = await self.repository.get_usage_window(user_id) or UsageWindow(user_id=user_id)
            window.privileged = privileged
            await self.repository.save_usage_window(window)
