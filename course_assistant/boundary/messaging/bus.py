"""
In-process message bus.

Host messaging substrate shared by the background crawl host and the UI-side
session controller: fire-and-forget broadcast to every live listener, plus
request/response with a timeout for UI to background calls.

Nothing raised by a listener or handler escapes to the sender. Listener
failures are logged; handler failures become a failed RelayResponse.

Dependencies: asyncio (stdlib)
System role: Cross-process messaging substrate
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from course_assistant.core.exceptions import RelayTimeoutError
from course_assistant.models.messages import RelayMessage, RelayResponse
from course_assistant.observability.log_utils import describe_exception

logger = logging.getLogger(__name__)

Listener = Callable[[RelayMessage], Awaitable[None]]
RequestHandler = Callable[[dict[str, Any]], Awaitable[dict[str, Any] | None]]


class InProcessMessageBus:
    """Broadcast and request/response between tasks of one event loop."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []
        self._handlers: dict[str, RequestHandler] = {}

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a broadcast listener.

        Returns:
            Callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def broadcast(self, message: RelayMessage) -> int:
        """
        Deliver a message to every listener registered at call time.

        Returns:
            int: Number of listeners that accepted the message
        """
        delivered = 0
        for listener in list(self._listeners):
            try:
                await listener(message)
                delivered += 1
            except Exception as e:
                logger.error(
                    f"{__name__}:broadcast - Listener failed on {message.kind.value}: {e}",
                    exc_info=True,
                    extra={"course_id": message.course_id},
                )
        return delivered

    def register_handler(self, action: str, handler: RequestHandler) -> None:
        self._handlers[action] = handler

    def unregister_handler(self, action: str) -> None:
        self._handlers.pop(action, None)

    async def request(
        self, action: str, payload: dict[str, Any], timeout: float
    ) -> RelayResponse:
        """
        Send a request to the registered handler and wait for the reply.

        Args:
            action: Handler name
            payload: Request body
            timeout: Seconds to wait for a reply

        Returns:
            RelayResponse: success with data, or failure with summary/detail

        Raises:
            RelayTimeoutError: If the handler does not reply in time
        """
        handler = self._handlers.get(action)
        if handler is None:
            return RelayResponse(
                success=False,
                summary=f"No receiver for {action}",
                detail=f"No handler registered for action '{action}'",
            )

        try:
            data = await asyncio.wait_for(handler(payload), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise RelayTimeoutError(action, timeout) from e
        except Exception as e:
            summary, detail = describe_exception(e)
            logger.warning(f"{__name__}:request - Handler for {action} failed: {summary}")
            return RelayResponse(success=False, summary=summary, detail=detail)

        return RelayResponse(success=True, data=data or {})
