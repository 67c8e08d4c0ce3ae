"""
Test suite for CrawlWorker.

Covers the background side of the relay on its own and end-to-end with a
SessionController: a scan started in the UI session is crawled by the
worker and uploaded when the result is broadcast.

System role: Verification of the background crawl host
"""

import asyncio

import pytest

from course_assistant.boundary.crawler import PING_ACTION, START_CRAWL_ACTION, RelayCrawlerClient
from course_assistant.boundary.identity import StaticIdentityProvider
from course_assistant.core.message_relay import MessageRelay
from course_assistant.core.session_controller import SessionController
from course_assistant.core.store_broker import StoreBroker
from course_assistant.core.upload_retry_manager import UploadRetryManager
from course_assistant.models.course import CourseSession, UserIdentity
from course_assistant.models.messages import (
    RelayMessage,
    ScanCompleteNotification,
    ScanErrorNotification,
    ScanProgressNotification,
)
from course_assistant.models.scan import ScanOutcome, ScanStatus
from course_assistant.workers import CrawlWorker


@pytest.fixture
def received(relay: MessageRelay) -> list[RelayMessage]:
    messages: list[RelayMessage] = []

    async def collect(message: RelayMessage) -> None:
        messages.append(message)

    relay.listen(collect, deduplicate=False)
    return messages


class TestCrawlWorker:
    """Test suite for request handling and broadcasts."""

    @pytest.mark.asyncio
    async def test_start_crawl_should_broadcast_progress_and_result(
        self,
        relay: MessageRelay,
        sample_course: CourseSession,
        crawler_factory,
        candidates_factory,
        received: list[RelayMessage],
    ) -> None:
        """Test an accepted crawl publishes progress then completion."""
        # Arrange
        worker = CrawlWorker(relay, crawler_factory(candidates_factory(2)))
        worker.start()

        # Act
        response = await relay.request(
            START_CRAWL_ACTION, {"course": sample_course.model_dump(), "is_rescan": False}, timeout=1
        )
        await worker.wait_idle()

        # Assert
        assert response.success is True
        assert response.data == {"accepted": True, "already_running": False}
        assert [type(m) for m in received] == [
            ScanProgressNotification,
            ScanProgressNotification,
            ScanCompleteNotification,
        ]
        assert len(received[-1].candidates) == 2
        assert worker.active_courses == []

    @pytest.mark.asyncio
    async def test_second_request_should_join_running_crawl(
        self, relay: MessageRelay, sample_course: CourseSession
    ) -> None:
        """Test one crawl runs per course at a time."""
        # Arrange
        release = asyncio.Event()
        crawled: list[str] = []

        class BlockingCrawler:
            async def crawl(self, course, on_progress):
                crawled.append(course.course_id)
                await release.wait()
                return []

        worker = CrawlWorker(relay, BlockingCrawler())
        worker.start()
        payload = {"course": sample_course.model_dump(), "is_rescan": False}

        # Act
        first = await relay.request(START_CRAWL_ACTION, payload, timeout=1)
        second = await relay.request(START_CRAWL_ACTION, payload, timeout=1)
        release.set()
        await worker.wait_idle()

        # Assert
        assert first.data["already_running"] is False
        assert second.data["already_running"] is True
        assert crawled == ["84213"]

    @pytest.mark.asyncio
    async def test_crawl_failure_should_broadcast_error(
        self,
        relay: MessageRelay,
        sample_course: CourseSession,
        crawler_factory,
        received: list[RelayMessage],
    ) -> None:
        """Test a crashing crawl becomes a ScanError with summary and detail."""
        # Arrange
        worker = CrawlWorker(relay, crawler_factory([], error=TimeoutError("course page did not load")))
        worker.start()

        # Act
        await relay.request(START_CRAWL_ACTION, {"course": sample_course.model_dump()}, timeout=1)
        await worker.wait_idle()

        # Assert
        error = received[-1]
        assert isinstance(error, ScanErrorNotification)
        assert error.summary == "TimeoutError: course page did not load"
        assert "Traceback" in error.detail

    @pytest.mark.asyncio
    async def test_ping_should_list_active_courses(
        self, relay: MessageRelay, sample_course: CourseSession
    ) -> None:
        """Test ping answers while a crawl is running."""
        # Arrange
        release = asyncio.Event()

        class BlockingCrawler:
            async def crawl(self, course, on_progress):
                await release.wait()
                return []

        worker = CrawlWorker(relay, BlockingCrawler())
        worker.start()
        await relay.request(START_CRAWL_ACTION, {"course": sample_course.model_dump()}, timeout=1)

        # Act
        response = await relay.request(PING_ACTION, {}, timeout=1)
        release.set()
        await worker.wait_idle()

        # Assert
        assert response.data == {"alive": True, "active_courses": ["84213"]}

    @pytest.mark.asyncio
    async def test_stop_should_unregister_and_cancel(
        self, relay: MessageRelay, sample_course: CourseSession
    ) -> None:
        """Test a stopped worker no longer answers and its crawls are cancelled."""
        # Arrange
        class HangingCrawler:
            async def crawl(self, course, on_progress):
                await asyncio.Event().wait()

        worker = CrawlWorker(relay, HangingCrawler())
        worker.start()
        await relay.request(START_CRAWL_ACTION, {"course": sample_course.model_dump()}, timeout=1)

        # Act
        await worker.stop()
        response = await relay.request(PING_ACTION, {}, timeout=1)

        # Assert
        assert worker.active_courses == []
        assert response.success is False


class TestScanEndToEnd:
    """Test suite wiring controller, relay and worker together."""

    @pytest.mark.asyncio
    async def test_scan_should_complete_through_background_worker(
        self,
        relay: MessageRelay,
        state_store,
        repository,
        retrieval_store,
        fetcher,
        scheduler,
        ingestion_settings,
        sample_course: CourseSession,
        crawler_factory,
        candidates_factory,
    ) -> None:
        """Test start_scan -> crawl -> relay -> upload -> complete."""
        # Arrange
        worker = CrawlWorker(relay, crawler_factory(candidates_factory(3)))
        worker.start()
        controller = SessionController(
            identity=StaticIdentityProvider(UserIdentity(user_id="user-1")),
            crawler=RelayCrawlerClient(relay),
            relay=relay,
            state_store=state_store,
            broker=StoreBroker(repository, retrieval_store),
            uploader=UploadRetryManager(repository, retrieval_store, fetcher),
            repository=repository,
            scheduler=scheduler,
            settings=ingestion_settings,
        )
        controller.detect_course(sample_course)

        # Act
        await controller.start_scan("84213")
        await worker.wait_idle()

        # Assert
        state = controller.state
        assert state.status == ScanStatus.COMPLETE
        assert state.outcome == ScanOutcome.UPLOADED
        assert state.document_count == 3
        course = await repository.get_course("84213")
        (store,) = retrieval_store.stores.values()
        assert course.store_id in retrieval_store.stores
        assert len(store["documents"]) == 3
