"""
Background crawl host.

Long-lived side of the relay. Answers start_crawl and ping requests, runs
the crawler for each accepted course and broadcasts its progress, its
result or its failure. A crawl keeps running when no UI listener is
attached; nothing raised by a crawl crosses the relay as an exception.

Dependencies: asyncio (stdlib), course_assistant.core.message_relay
System role: Background process hosting the crawler
"""

import asyncio
import logging
from typing import Any

from course_assistant.boundary.crawler import PING_ACTION, START_CRAWL_ACTION, CourseCrawler
from course_assistant.core.message_relay import MessageRelay
from course_assistant.models.course import CourseSession
from course_assistant.models.messages import (
    ScanCompleteNotification,
    ScanErrorNotification,
    ScanProgressNotification,
)
from course_assistant.models.scan import ScanProgressUpdate
from course_assistant.observability.correlation import set_correlation_id
from course_assistant.observability.log_utils import describe_exception

logger = logging.getLogger(__name__)


class CrawlWorker:
    """Runs crawls requested over the relay, one per course at a time."""

    def __init__(self, relay: MessageRelay, crawler: CourseCrawler) -> None:
        self.relay = relay
        self.crawler = crawler
        self._running: dict[str, asyncio.Task] = {}
        self._started = False

    @property
    def active_courses(self) -> list[str]:
        return [course_id for course_id, task in self._running.items() if not task.done()]

    def start(self) -> None:
        """Register request handlers on the relay."""
        self.relay.register_handler(START_CRAWL_ACTION, self._handle_start_crawl)
        self.relay.register_handler(PING_ACTION, self._handle_ping)
        self._started = True
        logger.info(f"{__name__}:start - Crawl worker listening")

    async def stop(self) -> None:
        """Unregister handlers and cancel running crawls."""
        if self._started:
            self.relay.unregister_handler(START_CRAWL_ACTION)
            self.relay.unregister_handler(PING_ACTION)
            self._started = False
        tasks = list(self._running.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._running.clear()

    async def wait_idle(self) -> None:
        """Wait until every running crawl has finished."""
        while self.active_courses:
            pending = [task for task in self._running.values() if not task.done()]
            await asyncio.gather(*pending, return_exceptions=True)

    async def _handle_ping(self, payload: dict[str, Any]) -> dict[str, Any]:
        return {"alive": True, "active_courses": self.active_courses}

    async def _handle_start_crawl(self, payload: dict[str, Any]) -> dict[str, Any]:
        course = CourseSession.model_validate(payload["course"])
        existing = self._running.get(course.course_id)
        if existing is not None and not existing.done():
            return {"accepted": True, "already_running": True}

        task = asyncio.create_task(self._run(course))
        self._running[course.course_id] = task
        task.add_done_callback(lambda _: self._forget(course.course_id, task))
        return {"accepted": True, "already_running": False}

    def _forget(self, course_id: str, task: asyncio.Task) -> None:
        if self._running.get(course_id) is task:
            del self._running[course_id]

    async def _run(self, course: CourseSession) -> None:
        set_correlation_id()
        course_id = course.course_id

        async def on_progress(update: ScanProgressUpdate) -> None:
            await self.relay.publish(
                ScanProgressNotification(
                    course_id=course_id, percent=update.percent, status_text=update.status_text
                )
            )

        try:
            candidates = await self.crawler.crawl(course, on_progress)
        except Exception as e:
            summary, detail = describe_exception(e)
            logger.error(
                f"{__name__}:_run - Crawl failed: {summary}",
                extra={"course_id": course_id},
            )
            await self.relay.publish(
                ScanErrorNotification(course_id=course_id, summary=summary, detail=detail)
            )
            return

        logger.info(
            "Crawl finished",
            extra={"course_id": course_id, "candidates": len(candidates)},
        )
        await self.relay.publish(
            ScanCompleteNotification(course_id=course_id, candidates=candidates)
        )
