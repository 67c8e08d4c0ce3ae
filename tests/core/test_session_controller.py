"""
Test suite for SessionController.

Drives the scan -> upload -> complete state machine on a virtual clock:
start preconditions, crawler attach retries, relay-driven completion,
progress display, recovery on init, health-monitor and hard-timeout resets.

System role: Verification of the ingestion pipeline orchestrator
"""

import asyncio

import pytest

from course_assistant.boundary.identity import StaticIdentityProvider
from course_assistant.boundary.kv import InMemoryKeyValueStore
from course_assistant.boundary.metadata import InMemoryMetadataRepository
from course_assistant.boundary.retrieval import InMemoryRetrievalStore
from course_assistant.configs.ingestion import IngestionSettings
from course_assistant.core.exceptions import (
    CourseAssistantError,
    CourseNotDetectedError,
    CrawlerUnavailableError,
    NotAuthenticatedError,
)
from course_assistant.core.message_relay import MessageRelay
from course_assistant.core.scan_state_store import ScanStateStore
from course_assistant.core.scheduling import VirtualScheduler
from course_assistant.core.session_controller import STALE_SESSION_MESSAGE, SessionController
from course_assistant.core.store_broker import StoreBroker
from course_assistant.core.upload_retry_manager import UploadRetryManager
from course_assistant.models.course import CourseSession, UserIdentity
from course_assistant.models.document import UploadStatus
from course_assistant.models.messages import (
    RelayMessage,
    ScanCompleteNotification,
    ScanErrorNotification,
    ScanFinishedNotification,
    ScanProgressNotification,
)
from course_assistant.models.scan import ScanOutcome, ScanProgressUpdate, ScanStatus

COURSE_ID = "84213"


class FakeCrawlerClient:
    """CrawlerClient that fails a configurable number of times before accepting."""

    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.calls: list[tuple[str, bool]] = []

    async def start_crawl(self, course: CourseSession, is_rescan: bool) -> None:
        self.calls.append((course.course_id, is_rescan))
        if self.failures > 0:
            self.failures -= 1
            raise CourseAssistantError("No receiver for start_crawl")

    async def ping(self) -> bool:
        return True


@pytest.fixture
def crawler_client() -> FakeCrawlerClient:
    return FakeCrawlerClient()


@pytest.fixture
def make_controller(
    relay: MessageRelay,
    state_store: ScanStateStore,
    repository: InMemoryMetadataRepository,
    retrieval_store: InMemoryRetrievalStore,
    fetcher,
    scheduler: VirtualScheduler,
    ingestion_settings: IngestionSettings,
    crawler_client: FakeCrawlerClient,
):
    """Provide builder wiring a controller to the shared in-memory collaborators."""
    broker = StoreBroker(repository, retrieval_store)
    uploader = UploadRetryManager(repository, retrieval_store, fetcher)

    def build(
        user: UserIdentity | None = UserIdentity(user_id="user-1", email="student@example.edu"),
        crawler: FakeCrawlerClient | None = None,
    ) -> SessionController:
        return SessionController(
            identity=StaticIdentityProvider(user),
            crawler=crawler or crawler_client,
            relay=relay,
            state_store=state_store,
            broker=broker,
            uploader=uploader,
            repository=repository,
            scheduler=scheduler,
            settings=ingestion_settings,
        )

    return build


@pytest.fixture
def controller(make_controller, sample_course: CourseSession) -> SessionController:
    controller = make_controller()
    controller.detect_course(sample_course)
    return controller


@pytest.fixture
def finished(relay: MessageRelay) -> list[ScanFinishedNotification]:
    """Collect ScanFinished notifications broadcast on the relay."""
    received: list[ScanFinishedNotification] = []

    async def collect(message: RelayMessage) -> None:
        if isinstance(message, ScanFinishedNotification):
            received.append(message)

    relay.listen(collect, deduplicate=False)
    return received


class TestStartScan:
    """Test suite for start_scan() preconditions and attach."""

    @pytest.mark.asyncio
    async def test_start_without_user_should_raise(self, make_controller, sample_course) -> None:
        """Test a signed-out session cannot scan."""
        # Arrange
        controller = make_controller(user=None)
        controller.detect_course(sample_course)

        # Act & Assert
        with pytest.raises(NotAuthenticatedError):
            await controller.start_scan(COURSE_ID)
        assert controller.state.status == ScanStatus.IDLE

    @pytest.mark.asyncio
    async def test_start_for_undetected_course_should_raise(self, controller: SessionController) -> None:
        """Test only the detected course can be scanned."""
        # Act & Assert
        with pytest.raises(CourseNotDetectedError):
            await controller.start_scan("99999")

    @pytest.mark.asyncio
    async def test_start_should_persist_snapshot_and_ask_crawler(
        self,
        controller: SessionController,
        kv_store: InMemoryKeyValueStore,
        crawler_client: FakeCrawlerClient,
        scheduler: VirtualScheduler,
    ) -> None:
        """Test a started scan is scanning, persisted and monitored."""
        # Act
        state = await controller.start_scan(COURSE_ID)

        # Assert
        assert state.status == ScanStatus.SCANNING
        assert state.course_id == COURSE_ID
        assert state.progress_percent == 0.0
        assert state.status_text == "Scanning course"
        assert kv_store.entries[f"scan_status_{COURSE_ID}"] == {
            "courseId": COURSE_ID,
            "status": "scanning",
            "timestamp": scheduler.now_ms(),
            "startedAt": scheduler.now_ms(),
        }
        assert crawler_client.calls == [(COURSE_ID, False)]
        assert controller.health_monitor.running

    @pytest.mark.asyncio
    async def test_second_start_should_return_running_scan(
        self, controller: SessionController, crawler_client: FakeCrawlerClient
    ) -> None:
        """Test starting twice does not start a second crawl."""
        # Arrange
        await controller.start_scan(COURSE_ID)

        # Act
        state = await controller.start_scan(COURSE_ID, is_rescan=True)

        # Assert
        assert state.status == ScanStatus.SCANNING
        assert crawler_client.calls == [(COURSE_ID, False)]

    @pytest.mark.asyncio
    async def test_attach_should_retry_until_crawler_answers(
        self, make_controller, sample_course, scheduler: VirtualScheduler
    ) -> None:
        """Test transient attach failures are retried with backoff."""
        # Arrange
        crawler = FakeCrawlerClient(failures=2)
        controller = make_controller(crawler=crawler)
        controller.detect_course(sample_course)
        started = scheduler.now_ms()

        # Act
        state = await controller.start_scan(COURSE_ID)

        # Assert
        assert state.status == ScanStatus.SCANNING
        assert len(crawler.calls) == 3
        assert scheduler.now_ms() - started == 1000

    @pytest.mark.asyncio
    async def test_unreachable_crawler_should_fail_scan(
        self,
        make_controller,
        sample_course,
        kv_store: InMemoryKeyValueStore,
        finished: list[ScanFinishedNotification],
    ) -> None:
        """Test exhausted attach attempts abort with a user-facing error."""
        # Arrange
        crawler = FakeCrawlerClient(failures=5)
        controller = make_controller(crawler=crawler)
        controller.detect_course(sample_course)

        # Act
        with pytest.raises(CrawlerUnavailableError):
            await controller.start_scan(COURSE_ID)

        # Assert
        state = controller.state
        assert len(crawler.calls) == 3
        assert state.status == ScanStatus.FAILED
        assert state.message.startswith("Could not reach the course crawler")
        assert kv_store.entries == {}
        assert controller.health_monitor.running is False
        assert [message.outcome for message in finished] == [ScanOutcome.FAILED]

    @pytest.mark.asyncio
    async def test_start_should_attach_to_scan_running_elsewhere(
        self,
        controller: SessionController,
        state_store: ScanStateStore,
        scheduler: VirtualScheduler,
        crawler_client: FakeCrawlerClient,
    ) -> None:
        """Test a fresh scanning snapshot from another session is joined, not restarted."""
        # Arrange
        await state_store.write(COURSE_ID, "scanning", timestamp=scheduler.now_ms() - 60_000)

        # Act
        state = await controller.start_scan(COURSE_ID)

        # Assert
        assert state.status == ScanStatus.SCANNING
        assert crawler_client.calls == []
        assert 0 < state.progress_percent < 95


class TestScanCompletion:
    """Test suite for the relay-driven upload phase."""

    @pytest.mark.asyncio
    async def test_completion_should_upload_and_finish(
        self,
        controller: SessionController,
        relay: MessageRelay,
        repository: InMemoryMetadataRepository,
        kv_store: InMemoryKeyValueStore,
        scheduler: VirtualScheduler,
        candidates_factory,
        finished: list[ScanFinishedNotification],
    ) -> None:
        """Test a crawl result is uploaded and the session completes."""
        # Arrange
        await controller.start_scan(COURSE_ID)
        await scheduler.advance(30)

        # Act
        await relay.publish(
            ScanCompleteNotification(course_id=COURSE_ID, candidates=candidates_factory(3))
        )

        # Assert
        state = controller.state
        assert state.status == ScanStatus.COMPLETE
        assert state.outcome == ScanOutcome.UPLOADED
        assert state.progress_percent == 100.0
        assert state.message == "3 documents ready for chat"
        assert kv_store.entries[f"scan_status_{COURSE_ID}"]["status"] == "complete"
        assert kv_store.entries[f"scan_status_{COURSE_ID}"]["pdfCount"] == 3
        records = await repository.list_documents(COURSE_ID)
        assert {record.upload_status for record in records} == {UploadStatus.COMPLETED}
        course = await repository.get_course(COURSE_ID)
        assert course.pdf_count == 3
        assert course.store_id is not None
        assert course.last_scanned_at is not None
        assert [(m.outcome, m.uploaded) for m in finished] == [(ScanOutcome.UPLOADED, 3)]

    @pytest.mark.asyncio
    async def test_complete_snapshot_should_clear_after_grace(
        self,
        controller: SessionController,
        relay: MessageRelay,
        kv_store: InMemoryKeyValueStore,
        scheduler: VirtualScheduler,
        candidates_factory,
    ) -> None:
        """Test the completed snapshot stays observable for the grace delay only."""
        # Arrange
        await controller.start_scan(COURSE_ID)
        await relay.publish(
            ScanCompleteNotification(course_id=COURSE_ID, candidates=candidates_factory(1))
        )

        # Act
        await scheduler.advance(2)
        during_grace = dict(kv_store.entries)
        await scheduler.advance(1)

        # Assert
        assert f"scan_status_{COURSE_ID}" in during_grace
        assert kv_store.entries == {}
        assert scheduler.pending == 0

    @pytest.mark.asyncio
    async def test_duplicate_completion_should_upload_once(
        self,
        controller: SessionController,
        relay: MessageRelay,
        retrieval_store: InMemoryRetrievalStore,
        fetcher,
        candidates_factory,
    ) -> None:
        """Test a redelivered completion notification does not upload twice."""
        # Arrange
        await controller.start_scan(COURSE_ID)
        notification = ScanCompleteNotification(course_id=COURSE_ID, candidates=candidates_factory(2))

        # Act
        await asyncio.gather(relay.publish(notification), relay.publish(notification))
        await relay.publish(notification)

        # Assert
        assert controller.state.outcome == ScanOutcome.UPLOADED
        assert len(fetcher.fetched) == 2
        (store,) = retrieval_store.stores.values()
        assert len(store["documents"]) == 2

    @pytest.mark.asyncio
    async def test_unchanged_rescan_should_be_up_to_date(
        self,
        controller: SessionController,
        relay: MessageRelay,
        retrieval_store: InMemoryRetrievalStore,
        fetcher,
        scheduler: VirtualScheduler,
        crawler_client: FakeCrawlerClient,
        candidates_factory,
    ) -> None:
        """Test rescanning an unchanged course reports up to date without uploads."""
        # Arrange
        candidates = candidates_factory(3)
        await controller.start_scan(COURSE_ID)
        await relay.publish(ScanCompleteNotification(course_id=COURSE_ID, candidates=candidates))
        await scheduler.advance(3)
        await controller.acknowledge()
        fetcher.fetched.clear()

        # Act
        rescan = await controller.start_scan(COURSE_ID, is_rescan=True)
        await relay.publish(ScanCompleteNotification(course_id=COURSE_ID, candidates=candidates))

        # Assert
        state = controller.state
        assert rescan.status_text == "Rescanning course"
        assert crawler_client.calls[-1] == (COURSE_ID, True)
        assert state.outcome == ScanOutcome.UP_TO_DATE
        assert state.message == "Already up to date (3 documents)"
        assert fetcher.fetched == []
        (store,) = retrieval_store.stores.values()
        assert len(store["documents"]) == 3

    @pytest.mark.asyncio
    async def test_empty_crawl_should_complete_with_no_documents(
        self,
        controller: SessionController,
        relay: MessageRelay,
        retrieval_store: InMemoryRetrievalStore,
    ) -> None:
        """Test a course without PDFs completes without creating a store."""
        # Arrange
        await controller.start_scan(COURSE_ID)

        # Act
        await relay.publish(ScanCompleteNotification(course_id=COURSE_ID, candidates=[]))

        # Assert
        state = controller.state
        assert state.status == ScanStatus.COMPLETE
        assert state.outcome == ScanOutcome.NO_DOCUMENTS
        assert state.document_count == 0
        assert retrieval_store.stores == {}

    @pytest.mark.asyncio
    async def test_partial_failure_should_complete_as_partial(
        self,
        controller: SessionController,
        relay: MessageRelay,
        fetcher,
        candidates_factory,
    ) -> None:
        """Test some failed uploads still complete the session."""
        # Arrange
        candidates = candidates_factory(3)
        fetcher.failing_urls.add(candidates[0].source_url)
        await controller.start_scan(COURSE_ID)

        # Act
        await relay.publish(ScanCompleteNotification(course_id=COURSE_ID, candidates=candidates))

        # Assert
        state = controller.state
        assert state.status == ScanStatus.COMPLETE
        assert state.outcome == ScanOutcome.PARTIAL
        assert state.message == "2 documents ready for chat, 1 uploads failed"

    @pytest.mark.asyncio
    async def test_all_uploads_failing_should_fail_scan(
        self,
        controller: SessionController,
        relay: MessageRelay,
        kv_store: InMemoryKeyValueStore,
        fetcher,
        candidates_factory,
        finished: list[ScanFinishedNotification],
    ) -> None:
        """Test a batch where nothing uploaded ends the session failed."""
        # Arrange
        candidates = candidates_factory(2)
        fetcher.failing_urls.update(c.source_url for c in candidates)
        await controller.start_scan(COURSE_ID)

        # Act
        await relay.publish(ScanCompleteNotification(course_id=COURSE_ID, candidates=candidates))

        # Assert
        state = controller.state
        assert state.status == ScanStatus.FAILED
        assert state.message == "Upload failed for all 2 documents"
        assert kv_store.entries == {}
        assert [(m.outcome, m.failed) for m in finished] == [(ScanOutcome.FAILED, 2)]

    @pytest.mark.asyncio
    async def test_crawler_error_should_fail_scan(
        self, controller: SessionController, relay: MessageRelay, kv_store: InMemoryKeyValueStore
    ) -> None:
        """Test a crawl failure reported over the relay fails the session."""
        # Arrange
        await controller.start_scan(COURSE_ID)

        # Act
        await relay.publish(
            ScanErrorNotification(
                course_id=COURSE_ID, summary="TimeoutError: course page did not load", detail="trace"
            )
        )

        # Assert
        state = controller.state
        assert state.status == ScanStatus.FAILED
        assert state.outcome == ScanOutcome.FAILED
        assert state.message == "TimeoutError: course page did not load"
        assert kv_store.entries == {}

    @pytest.mark.asyncio
    async def test_other_course_notifications_should_be_ignored(
        self, controller: SessionController, relay: MessageRelay, candidates_factory
    ) -> None:
        """Test a listener armed for one course ignores another."""
        # Arrange
        await controller.start_scan(COURSE_ID)

        # Act
        await relay.publish(ScanCompleteNotification(course_id="99999", candidates=candidates_factory(1)))

        # Assert
        assert controller.state.status == ScanStatus.SCANNING

    @pytest.mark.asyncio
    async def test_acknowledge_should_return_to_idle(
        self, controller: SessionController, relay: MessageRelay, candidates_factory
    ) -> None:
        """Test a terminal state collapses to idle once observed."""
        # Arrange
        await controller.start_scan(COURSE_ID)
        await relay.publish(ScanCompleteNotification(course_id=COURSE_ID, candidates=candidates_factory(1)))

        # Act
        state = await controller.acknowledge()

        # Assert
        assert state.status == ScanStatus.IDLE
        assert state.outcome is None
        assert state.course_id == COURSE_ID


class TestProgressDisplay:
    """Test suite for progress shown while a scan runs."""

    @pytest.mark.asyncio
    async def test_progress_should_be_monotonic_and_capped_until_completion(
        self,
        controller: SessionController,
        relay: MessageRelay,
        scheduler: VirtualScheduler,
        candidates_factory,
    ) -> None:
        """Test displayed progress never decreases and reaches 100 only at completion."""
        # Arrange
        await controller.start_scan(COURSE_ID)
        readings = [controller.state.progress_percent]

        # Act
        for step in range(1, 7):
            await scheduler.advance(20)
            readings.append(controller.state.progress_percent)
            await relay.publish(
                ScanProgressNotification(course_id=COURSE_ID, percent=step * 5, status_text="Scanning")
            )
            readings.append(controller.state.progress_percent)
        await relay.publish(
            ScanCompleteNotification(course_id=COURSE_ID, candidates=candidates_factory(5))
        )

        # Assert
        assert readings == sorted(readings)
        assert all(0 <= percent <= 95 for percent in readings)
        assert readings[-1] > 0
        assert controller.state.progress_percent == 100.0

    @pytest.mark.asyncio
    async def test_progress_should_cap_when_crawl_overruns_estimate(
        self,
        controller: SessionController,
        relay: MessageRelay,
        scheduler: VirtualScheduler,
    ) -> None:
        """Test a crawl longer than the estimate holds at the ceiling."""
        # Arrange
        await controller.start_scan(COURSE_ID)

        # Act
        for _ in range(5):
            await scheduler.advance(60)
            await relay.publish(ScanProgressNotification(course_id=COURSE_ID, percent=99))

        # Assert
        state = controller.state
        assert state.status == ScanStatus.SCANNING
        assert state.progress_percent == 95.0
        assert state.time_left_seconds == 0

    @pytest.mark.asyncio
    async def test_late_progress_should_be_ignored_after_completion(
        self, controller: SessionController, relay: MessageRelay, candidates_factory
    ) -> None:
        """Test crawl progress cannot overwrite a finished session."""
        # Arrange
        await controller.start_scan(COURSE_ID)
        await relay.publish(ScanCompleteNotification(course_id=COURSE_ID, candidates=candidates_factory(1)))

        # Act
        applied = await controller.on_scan_progress(ScanProgressUpdate(percent=10))

        # Assert
        assert applied is False
        assert controller.state.progress_percent == 100.0

    @pytest.mark.asyncio
    async def test_progress_should_refresh_snapshot_heartbeat(
        self,
        controller: SessionController,
        relay: MessageRelay,
        kv_store: InMemoryKeyValueStore,
        scheduler: VirtualScheduler,
    ) -> None:
        """Test crawl progress keeps the snapshot fresh."""
        # Arrange
        await controller.start_scan(COURSE_ID)
        await scheduler.advance(45)

        # Act
        await relay.publish(ScanProgressNotification(course_id=COURSE_ID, percent=20))

        # Assert
        assert kv_store.entries[f"scan_status_{COURSE_ID}"]["timestamp"] == scheduler.now_ms()


class TestRecoverOnInit:
    """Test suite for recover_on_init()."""

    @pytest.mark.asyncio
    async def test_stale_snapshot_should_be_cleared(
        self,
        controller: SessionController,
        state_store: ScanStateStore,
        kv_store: InMemoryKeyValueStore,
        scheduler: VirtualScheduler,
    ) -> None:
        """Test a snapshot older than five minutes is treated as abandoned."""
        # Arrange
        await state_store.write(COURSE_ID, "scanning", timestamp=scheduler.now_ms() - 6 * 60_000)

        # Act
        state = await controller.recover_on_init(COURSE_ID)

        # Assert
        assert state.status == ScanStatus.IDLE
        assert state.outcome == ScanOutcome.ABANDONED
        assert kv_store.entries == {}
        assert controller.health_monitor.running is False
        assert scheduler.pending == 0

    @pytest.mark.asyncio
    async def test_fresh_snapshot_should_resume_scanning(
        self,
        controller: SessionController,
        state_store: ScanStateStore,
        scheduler: VirtualScheduler,
    ) -> None:
        """Test a one-minute-old snapshot resumes with estimated progress."""
        # Arrange
        started = scheduler.now_ms() - 60_000
        await state_store.write(COURSE_ID, "scanning", timestamp=started, pdf_count=4)

        # Act
        state = await controller.recover_on_init(COURSE_ID)

        # Assert
        assert state.status == ScanStatus.SCANNING
        assert 0 < state.progress_percent < 95
        assert state.started_at == started
        assert state.document_count == 4
        assert controller.health_monitor.running

    @pytest.mark.asyncio
    async def test_resumed_scan_should_finish_from_relay(
        self,
        controller: SessionController,
        state_store: ScanStateStore,
        relay: MessageRelay,
        scheduler: VirtualScheduler,
        candidates_factory,
    ) -> None:
        """Test a resumed session listens for the running crawl's result."""
        # Arrange
        await state_store.write(COURSE_ID, "scanning", timestamp=scheduler.now_ms() - 60_000)
        await controller.recover_on_init(COURSE_ID)

        # Act
        await relay.publish(ScanCompleteNotification(course_id=COURSE_ID, candidates=candidates_factory(2)))

        # Assert
        assert controller.state.outcome == ScanOutcome.UPLOADED

    @pytest.mark.asyncio
    async def test_heartbeat_should_keep_original_start_time(
        self,
        controller: SessionController,
        relay: MessageRelay,
        kv_store: InMemoryKeyValueStore,
        scheduler: VirtualScheduler,
    ) -> None:
        """Test progress heartbeats refresh the timestamp but not startedAt."""
        # Arrange
        await controller.start_scan(COURSE_ID)
        started = scheduler.now_ms()
        await scheduler.advance(90)

        # Act
        await relay.publish(ScanProgressNotification(course_id=COURSE_ID, percent=30))

        # Assert
        snapshot = kv_store.entries[f"scan_status_{COURSE_ID}"]
        assert snapshot["timestamp"] == scheduler.now_ms()
        assert snapshot["startedAt"] == started

    @pytest.mark.asyncio
    async def test_resume_after_heartbeat_should_use_original_start(
        self,
        controller: SessionController,
        state_store: ScanStateStore,
        relay: MessageRelay,
        scheduler: VirtualScheduler,
    ) -> None:
        """Test a resumed session keeps the hard limit counted from the real start."""
        # Arrange
        started = scheduler.now_ms() - 4 * 60_000
        await state_store.write(
            COURSE_ID, "scanning", timestamp=scheduler.now_ms() - 30_000, started_at=started
        )

        # Act
        state = await controller.recover_on_init(COURSE_ID)
        for _ in range(5):
            await scheduler.advance(60)
            await relay.publish(ScanProgressNotification(course_id=COURSE_ID, percent=50))
        still_running = controller.state.status
        await scheduler.advance(60)

        # Assert
        assert state.started_at == started
        assert still_running == ScanStatus.SCANNING
        assert controller.state.outcome == ScanOutcome.TIMED_OUT

    @pytest.mark.asyncio
    async def test_complete_snapshot_should_be_shown_once(
        self,
        controller: SessionController,
        state_store: ScanStateStore,
        kv_store: InMemoryKeyValueStore,
    ) -> None:
        """Test a finished scan is reported and its snapshot removed."""
        # Arrange
        await state_store.write(COURSE_ID, "complete", pdf_count=7)

        # Act
        state = await controller.recover_on_init()

        # Assert
        assert state.status == ScanStatus.COMPLETE
        assert state.progress_percent == 100.0
        assert state.message == "Scan complete: 7 documents found"
        assert kv_store.entries == {}

    @pytest.mark.asyncio
    async def test_no_snapshot_should_stay_idle(self, controller: SessionController) -> None:
        """Test nothing to recover leaves the session idle."""
        # Act
        state = await controller.recover_on_init()

        # Assert
        assert state.status == ScanStatus.IDLE
        assert state.outcome is None


class TestSelfHealing:
    """Test suite for health-monitor and hard-timeout resets."""

    @pytest.mark.asyncio
    async def test_silent_scan_should_be_reset_when_snapshot_goes_stale(
        self,
        controller: SessionController,
        kv_store: InMemoryKeyValueStore,
        scheduler: VirtualScheduler,
    ) -> None:
        """Test a scan with no heartbeat is force-recovered with a message."""
        # Arrange
        await controller.start_scan(COURSE_ID)

        # Act
        await scheduler.advance(300)
        during = controller.state
        await scheduler.advance(30)

        # Assert
        state = controller.state
        assert during.status == ScanStatus.SCANNING
        assert state.status == ScanStatus.IDLE
        assert state.outcome == ScanOutcome.ABANDONED
        assert state.message == STALE_SESSION_MESSAGE
        assert kv_store.entries == {}
        assert scheduler.pending == 0

    @pytest.mark.asyncio
    async def test_missing_snapshot_should_reset_session(
        self,
        controller: SessionController,
        kv_store: InMemoryKeyValueStore,
        scheduler: VirtualScheduler,
    ) -> None:
        """Test a snapshot removed by another session resets this one."""
        # Arrange
        await controller.start_scan(COURSE_ID)
        kv_store.entries.clear()

        # Act
        await scheduler.advance(30)

        # Assert
        state = controller.state
        assert state.status == ScanStatus.IDLE
        assert state.outcome == ScanOutcome.ABANDONED
        assert state.message is None

    @pytest.mark.asyncio
    async def test_hard_timeout_should_reset_even_with_heartbeats(
        self,
        controller: SessionController,
        relay: MessageRelay,
        kv_store: InMemoryKeyValueStore,
        scheduler: VirtualScheduler,
    ) -> None:
        """Test a session alive past the hard limit is reset."""
        # Arrange
        await controller.start_scan(COURSE_ID)

        # Act
        for _ in range(10):
            await scheduler.advance(60)
            await relay.publish(ScanProgressNotification(course_id=COURSE_ID, percent=50))

        # Assert
        state = controller.state
        assert state.status == ScanStatus.IDLE
        assert state.outcome == ScanOutcome.TIMED_OUT
        assert state.message == "The scan did not finish within 10 minutes and was reset."
        assert kv_store.entries == {}

    @pytest.mark.asyncio
    async def test_result_after_reset_should_be_ignored(
        self,
        controller: SessionController,
        relay: MessageRelay,
        fetcher,
        candidates_factory,
    ) -> None:
        """Test a crawl result arriving after a forced reset starts no uploads."""
        # Arrange
        await controller.start_scan(COURSE_ID)
        await controller.force_recover()

        # Act
        result = await controller.on_scan_complete(candidates_factory(2))
        await relay.publish(ScanCompleteNotification(course_id=COURSE_ID, candidates=candidates_factory(2)))

        # Assert
        assert result is None
        assert fetcher.fetched == []
        assert controller.state.status == ScanStatus.IDLE

    @pytest.mark.asyncio
    async def test_shutdown_should_stop_timers_but_keep_snapshot(
        self,
        controller: SessionController,
        kv_store: InMemoryKeyValueStore,
        scheduler: VirtualScheduler,
    ) -> None:
        """Test a closing UI leaves the snapshot for the next session."""
        # Arrange
        await controller.start_scan(COURSE_ID)

        # Act
        await controller.shutdown()

        # Assert
        assert scheduler.pending == 0
        assert kv_store.entries[f"scan_status_{COURSE_ID}"]["status"] == "scanning"
