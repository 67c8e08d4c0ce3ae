"""
Message relay between the background crawl host and UI-side sessions.

Notifications are delivered at-least-once. Consumers that act on a
notification wrap their handler in an IdempotentConsumer, which drops
redeliveries by the message's idempotency key. Missed notifications are
not replayed; recovery goes through the scan snapshot instead.

Dependencies: course_assistant.boundary.messaging
System role: Cross-process notification channel
"""

import logging
from collections import OrderedDict
from collections.abc import Awaitable, Callable
from typing import Any

from course_assistant.boundary.messaging import InProcessMessageBus
from course_assistant.models.messages import RelayMessage, RelayResponse

logger = logging.getLogger(__name__)

MessageHandler = Callable[[RelayMessage], Awaitable[None]]


class IdempotentConsumer:
    """
    Runs a handler at most once per idempotency key.

    The key is claimed before the handler runs so that a duplicate arriving
    while the first delivery is still being handled is dropped too. If the
    handler raises, the key is released so a redelivery can retry.
    """

    def __init__(self, handler: MessageHandler, max_keys: int = 256) -> None:
        self._handler = handler
        self._max_keys = max_keys
        self._seen: OrderedDict[str, None] = OrderedDict()

    def seen(self, key: str) -> bool:
        return key in self._seen

    async def __call__(self, message: RelayMessage) -> bool:
        """
        Returns:
            bool: False if the message was a duplicate and was dropped
        """
        key = message.idempotency_key
        if key is None:
            await self._handler(message)
            return True

        if key in self._seen:
            logger.debug(f"{__name__}:consume - Dropping duplicate {key}")
            return False

        self._seen[key] = None
        while len(self._seen) > self._max_keys:
            self._seen.popitem(last=False)

        try:
            await self._handler(message)
        except Exception:
            self._seen.pop(key, None)
            raise
        return True


class RelaySubscription:
    """Handle for an armed listener; stop() disarms it."""

    def __init__(self, unsubscribe: Callable[[], None]) -> None:
        self._unsubscribe = unsubscribe
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def stop(self) -> None:
        if self._active:
            self._unsubscribe()
            self._active = False


class MessageRelay:
    """Publish, listen and request over the host messaging substrate."""

    def __init__(self, bus: InProcessMessageBus, dedup_cache_size: int = 256) -> None:
        self._bus = bus
        self._dedup_cache_size = dedup_cache_size

    async def publish(self, message: RelayMessage) -> int:
        """Broadcast to every live listener; returns the number reached."""
        delivered = await self._bus.broadcast(message)
        logger.debug(
            f"{__name__}:publish - {message.kind.value} delivered to {delivered} listeners",
            extra={"course_id": message.course_id},
        )
        return delivered

    def listen(
        self,
        handler: MessageHandler,
        course_id: str | None = None,
        deduplicate: bool = True,
    ) -> RelaySubscription:
        """
        Arm a listener.

        Args:
            handler: Called for each accepted message
            course_id: Only deliver messages for this course
            deduplicate: Wrap the handler in a fresh IdempotentConsumer

        Returns:
            RelaySubscription: Handle to disarm the listener
        """
        consumer: MessageHandler = (
            IdempotentConsumer(handler, self._dedup_cache_size) if deduplicate else handler
        )

        async def deliver(message: RelayMessage) -> None:
            if course_id is not None and message.course_id != course_id:
                return
            await consumer(message)

        return RelaySubscription(self._bus.subscribe(deliver))

    def register_handler(
        self,
        action: str,
        handler: Callable[[dict[str, Any]], Awaitable[dict[str, Any] | None]],
    ) -> None:
        self._bus.register_handler(action, handler)

    def unregister_handler(self, action: str) -> None:
        self._bus.unregister_handler(action)

    async def request(
        self, action: str, payload: dict[str, Any], timeout: float
    ) -> RelayResponse:
        return await self._bus.request(action, payload, timeout)
