"""
Scan session controller.

Composes the pipeline into the scan -> upload -> ready state machine for one
UI-side session:

    idle -> scanning -> uploading -> complete
    any  -> failed on unrecoverable error
    complete/failed -> idle once acknowledged

The controller owns the session context (detected course, signed-in user)
and receives its collaborators explicitly. The crawl itself runs in the
background process; the controller only starts it and reacts to relay
notifications. Every timer is a ScheduledTask so that tests can drive the
controller with a virtual clock.

Dependencies: course_assistant.core, course_assistant.boundary
System role: Ingestion pipeline orchestrator
"""

import logging
import math

from course_assistant.boundary.crawler import CrawlerClient
from course_assistant.boundary.identity import IdentityProvider
from course_assistant.boundary.metadata.repository import MetadataRepository
from course_assistant.configs.ingestion import IngestionSettings
from course_assistant.core.exceptions import (
    CourseAssistantError,
    CourseNotDetectedError,
    CrawlerUnavailableError,
    NotAuthenticatedError,
)
from course_assistant.core.health_monitor import HealthMonitor, HealthStatus
from course_assistant.core.message_relay import MessageRelay, RelaySubscription
from course_assistant.core.progress_estimator import ProgressEstimator
from course_assistant.core.scan_state_store import ScanStateStore
from course_assistant.core.scheduling import ScheduledTask, Scheduler
from course_assistant.core.store_broker import StoreBroker
from course_assistant.core.upload_retry_manager import UploadRetryManager
from course_assistant.models.course import CourseSession, UserIdentity
from course_assistant.models.document import CandidateDocument
from course_assistant.models.messages import (
    RelayMessage,
    ScanCompleteNotification,
    ScanErrorNotification,
    ScanFinishedNotification,
    ScanProgressNotification,
)
from course_assistant.models.scan import (
    ScanOutcome,
    ScanProgressUpdate,
    ScanSnapshot,
    ScanState,
    ScanStatus,
)
from course_assistant.models.upload import (
    BatchStatus,
    DocumentUploadOutcome,
    UploadBatchResult,
    UploadOutcomeStatus,
)
from course_assistant.observability.correlation import set_correlation_id
from course_assistant.observability.log_utils import (
    describe_exception,
    log_exception_with_context,
)

logger = logging.getLogger(__name__)

STALE_SESSION_MESSAGE = "The scan stopped responding and was reset. Start a new scan to try again."

BATCH_OUTCOMES = {
    BatchStatus.UP_TO_DATE: ScanOutcome.UP_TO_DATE,
    BatchStatus.COMPLETED: ScanOutcome.UPLOADED,
    BatchStatus.PARTIAL: ScanOutcome.PARTIAL,
}


class SessionController:
    """End-to-end scan session state machine for one user session."""

    def __init__(
        self,
        identity: IdentityProvider,
        crawler: CrawlerClient,
        relay: MessageRelay,
        state_store: ScanStateStore,
        broker: StoreBroker,
        uploader: UploadRetryManager,
        repository: MetadataRepository,
        scheduler: Scheduler,
        settings: IngestionSettings,
    ) -> None:
        self.identity = identity
        self.crawler = crawler
        self.relay = relay
        self.state_store = state_store
        self.broker = broker
        self.uploader = uploader
        self.repository = repository
        self.scheduler = scheduler
        self.settings = settings

        self._estimator = ProgressEstimator(
            crawl_estimate_seconds=settings.crawl_estimate_seconds,
            seconds_per_document=settings.seconds_per_document,
            max_percent=settings.max_progress_before_completion,
        )
        self._health = HealthMonitor(
            scheduler=scheduler,
            state_store=state_store,
            is_scanning=lambda: self._state.is_scanning,
            on_recover=self._on_health_recover,
            interval_seconds=settings.health_check_interval_seconds,
            staleness_threshold_seconds=settings.staleness_threshold_seconds,
        )

        self._state = ScanState()
        self._course: CourseSession | None = None
        self._scan_course: CourseSession | None = None
        self._user: UserIdentity | None = None
        self._subscription: RelaySubscription | None = None
        self._ticker: ScheduledTask | None = None
        self._timeout: ScheduledTask | None = None
        self._grace: ScheduledTask | None = None
        # Bumped whenever a scan starts or is reset; stale callbacks compare against it
        self._generation = 0
        self._correlation_id: str | None = None

    @property
    def state(self) -> ScanState:
        return self._state.model_copy()

    @property
    def course(self) -> CourseSession | None:
        return self._course

    @property
    def health_monitor(self) -> HealthMonitor:
        return self._health

    # Session context

    def detect_course(self, course: CourseSession) -> CourseSession:
        """Record the course context detected in the UI."""
        if self._course is None or self._course.course_id != course.course_id:
            logger.info("Course detected", extra={"course_id": course.course_id})
        self._course = course
        return course

    # Scan lifecycle

    async def start_scan(self, course_id: str, is_rescan: bool = False) -> ScanState:
        """
        Start scanning a course.

        Transitions to scanning, persists a snapshot, arms relay listeners,
        starts the health monitor and asks the background crawler to run.
        Returns without waiting for the crawl.

        Args:
            course_id: Course to scan; must be the detected course
            is_rescan: Passed through to the crawler

        Returns:
            ScanState: State after the scan was started or attached to

        Raises:
            NotAuthenticatedError: No signed-in user
            CourseNotDetectedError: course_id is not the detected course
            CrawlerUnavailableError: Crawler unreachable after all attempts
        """
        user = await self.identity.current_user()
        if user is None:
            raise NotAuthenticatedError("start a scan")

        course = self._course
        if course is None or course.course_id != course_id:
            raise CourseNotDetectedError(course_id, course.course_id if course else None)

        if self._state.is_scanning:
            logger.info(
                "Scan already in progress",
                extra={"course_id": self._state.course_id, "requested_course_id": course_id},
            )
            return self.state

        existing = await self.state_store.read(course_id)
        if (
            existing is not None
            and existing.status == "scanning"
            and not self.state_store.is_stale(existing, self.settings.staleness_threshold_seconds)
        ):
            logger.info(
                "Course is already being scanned, attaching to the running scan",
                extra={"course_id": course_id},
            )
            self._user = user
            self._scan_course = course
            self._resume(course_id, existing)
            return self.state

        self._cancel_grace()
        self._generation += 1
        generation = self._generation
        self._correlation_id = set_correlation_id()
        self._user = user
        self._scan_course = course

        now = self.scheduler.now_ms()
        self._estimator.start(now)
        self._state = ScanState(
            course_id=course_id,
            status=ScanStatus.SCANNING,
            started_at=now,
            last_updated_at=now,
            progress_percent=0.0,
            estimated_total_seconds=self._estimator.estimated_total_seconds,
            time_left_seconds=math.ceil(self._estimator.estimated_total_seconds),
            status_text="Rescanning course" if is_rescan else "Scanning course",
        )
        await self.state_store.write(course_id, "scanning", started_at=now)
        self._arm(course_id, self.settings.session_timeout_seconds)

        logger.info(
            "Scan started",
            extra={"course_id": course_id, "user_id": user.user_id, "is_rescan": is_rescan},
        )

        await self._attach_crawler(course, is_rescan, generation)
        return self.state

    async def _attach_crawler(
        self, course: CourseSession, is_rescan: bool, generation: int
    ) -> None:
        attempts = self.settings.crawler_attach_attempts
        last_error: str | None = None

        for attempt in range(1, attempts + 1):
            try:
                await self.crawler.start_crawl(course, is_rescan)
                return
            except CourseAssistantError as e:
                last_error = str(e)
                logger.warning(
                    f"{__name__}:start_scan - Crawler attach attempt {attempt}/{attempts} failed: {e}",
                    extra={"course_id": course.course_id},
                )
                if attempt < attempts:
                    await self.scheduler.sleep(self.settings.crawler_attach_backoff_seconds)

        error = CrawlerUnavailableError(course.course_id, attempts, last_error)
        await self._fail(generation, error.message)
        raise error

    async def on_scan_progress(self, update: ScanProgressUpdate) -> bool:
        """
        Apply a crawl progress event.

        Ignored unless the session is in the scanning phase, so late crawl
        events cannot overwrite upload progress.

        Returns:
            bool: Whether the update was applied
        """
        if self._state.status != ScanStatus.SCANNING:
            logger.debug(
                f"{__name__}:on_scan_progress - Ignoring progress in {self._state.status.value}"
            )
            return False

        self._estimator.observe(update.percent)
        self._refresh_progress(status_text=update.status_text or None)
        await self.state_store.touch(self._state.course_id)
        return True

    async def on_scan_complete(
        self, candidates: list[CandidateDocument]
    ) -> UploadBatchResult | None:
        """
        Handle the crawler's result: upload new and previously failed documents.

        Returns:
            UploadBatchResult, or None if the event was ignored or nothing was found
        """
        if self._state.status != ScanStatus.SCANNING:
            logger.info(
                "Ignoring scan completion outside the scanning phase",
                extra={"status": self._state.status.value, "candidates": len(candidates)},
            )
            return None

        generation = self._generation
        course_id = self._state.course_id
        pdf_count = len(candidates)

        self._state.status = ScanStatus.UPLOADING
        self._state.document_count = pdf_count
        self._state.status_text = f"Found {pdf_count} documents"
        self._state.last_updated_at = self.scheduler.now_ms()
        await self.state_store.write(
            course_id, "scanning", pdf_count=pdf_count, started_at=self._state.started_at
        )

        if not candidates:
            await self._finish(generation, ScanOutcome.NO_DOCUMENTS, "No documents found in this course", 0)
            return None

        course = await self._course_for(course_id)
        try:
            plan = await self.uploader.plan(course_id, candidates)
            handle = await self.broker.get_or_create_store(
                course_id,
                course.store_display_name,
                created_by=self._user.user_id if self._user else None,
            )
            if not plan.is_up_to_date:
                self._state.estimated_total_seconds = self._estimator.rebase_for_upload(
                    self.scheduler.now_ms(), len(plan.to_process)
                )

            async def report(index: int, total: int, outcome: DocumentUploadOutcome) -> None:
                if generation != self._generation:
                    return
                verb = "Failed" if outcome.status == UploadOutcomeStatus.FAILED else "Uploaded"
                self._refresh_progress(status_text=f"{verb} {index}/{total}: {outcome.title}")
                await self.state_store.touch(course_id, pdf_count=pdf_count)

            result = await self.uploader.upload_batch(
                course_id, handle.store_id, candidates, on_progress=report, plan=plan
            )
        except CourseAssistantError as e:
            summary, _ = describe_exception(e)
            logger.error(
                f"{__name__}:on_scan_complete - Upload phase failed: {summary}",
                extra={"course_id": course_id},
            )
            await self._fail(generation, e.message)
            return None
        except Exception as e:
            log_exception_with_context(logger, "Upload phase failed unexpectedly", e, course_id=course_id)
            await self._fail(generation, "Upload failed unexpectedly. Try scanning again.")
            raise

        try:
            await self.repository.save_course(course, pdf_count=pdf_count, scanned=True)
        except Exception as e:
            logger.warning(
                f"{__name__}:on_scan_complete - Could not update course record: {e}",
                extra={"course_id": course_id},
            )

        if generation != self._generation:
            logger.info(
                "Scan was reset while uploading, result not applied",
                extra={"course_id": course_id, "batch_status": result.status.value},
            )
            return result

        if result.status == BatchStatus.FAILED:
            await self._fail(generation, result.summary, uploaded=0, failed=result.failed_count)
        else:
            await self._finish(
                generation,
                BATCH_OUTCOMES[result.status],
                result.summary,
                pdf_count,
                uploaded=result.uploaded_count,
                failed=result.failed_count,
            )
        return result

    async def on_scan_error(self, summary: str, detail: str = "") -> bool:
        """Fail the active scan with a crawler-reported error."""
        if not self._state.is_scanning:
            return False
        logger.error(
            f"{__name__}:on_scan_error - Crawler reported an error: {summary}",
            extra={"course_id": self._state.course_id, "detail": detail},
        )
        await self._fail(self._generation, summary)
        return True

    async def recover_on_init(self, course_id: str | None = None) -> ScanState:
        """
        Restore or clear a persisted session on controller startup.

        A fresh scanning snapshot resumes the session. A stale one is cleared
        as abandoned. A complete snapshot is shown once and then removed.

        Args:
            course_id: Course to recover; defaults to the detected course
        """
        course_id = course_id or (self._course.course_id if self._course else None)
        if course_id is None or self._state.is_scanning:
            return self.state

        snapshot = await self.state_store.read(course_id)
        if snapshot is None:
            return self.state

        if snapshot.status == "complete":
            self._state = ScanState(
                course_id=course_id,
                status=ScanStatus.COMPLETE,
                last_updated_at=snapshot.timestamp,
                progress_percent=100.0,
                time_left_seconds=0,
                document_count=snapshot.pdf_count,
                message=f"Scan complete: {snapshot.pdf_count or 0} documents found",
            )
            await self.state_store.remove(course_id)
            return self.state

        if self.state_store.is_stale(snapshot, self.settings.staleness_threshold_seconds):
            logger.warning(
                "Clearing abandoned scan snapshot",
                extra={"course_id": course_id, "age_ms": snapshot.age_ms(self.scheduler.now_ms())},
            )
            await self.state_store.remove(course_id)
            self._state = ScanState(course_id=course_id, outcome=ScanOutcome.ABANDONED)
            return self.state

        self._resume(course_id, snapshot)
        logger.info(
            "Resumed scan from snapshot",
            extra={"course_id": course_id, "progress": round(self._state.progress_percent, 1)},
        )
        return self.state

    async def acknowledge(self) -> ScanState:
        """Collapse an observed terminal state back to idle."""
        if self._state.is_terminal or self._state.outcome is not None:
            self._state = ScanState(course_id=self._state.course_id)
        return self.state

    async def force_recover(
        self,
        outcome: ScanOutcome = ScanOutcome.ABANDONED,
        message: str | None = None,
    ) -> ScanState:
        """Cancel all timers, reset to idle and clear the snapshot."""
        course_id = self._state.course_id
        self._disarm()
        self._cancel_grace()
        self._generation += 1
        self._state = ScanState(course_id=course_id, outcome=outcome, message=message)
        if course_id is not None:
            await self.state_store.remove(course_id)
        logger.warning(
            "Scan session force-recovered",
            extra={"course_id": course_id, "outcome": outcome.value},
        )
        return self.state

    def release(self) -> None:
        """Stop all timers and listeners without touching the snapshot."""
        self._disarm()
        self._cancel_grace()

    async def shutdown(self) -> None:
        self.release()

    # Internals

    def _resume(self, course_id: str, snapshot: ScanSnapshot) -> None:
        self._cancel_grace()
        self._generation += 1
        self._correlation_id = set_correlation_id()
        now = self.scheduler.now_ms()
        started = snapshot.scan_started_ms
        self._estimator.start(started)
        reading = self._estimator.estimate(now)
        self._state = ScanState(
            course_id=course_id,
            status=ScanStatus.SCANNING,
            started_at=started,
            last_updated_at=now,
            progress_percent=reading.percent,
            estimated_total_seconds=reading.estimated_total_seconds,
            time_left_seconds=reading.time_left_seconds,
            status_text="Scan in progress",
            document_count=snapshot.pdf_count,
        )
        remaining = self.settings.session_timeout_seconds - max(0, now - started) / 1000
        self._arm(course_id, max(remaining, 0.0))

    def _arm(self, course_id: str, timeout_seconds: float) -> None:
        self._disarm()
        generation = self._generation

        async def on_timeout() -> None:
            if generation == self._generation and self._state.is_scanning:
                minutes = self.settings.session_timeout_seconds / 60
                await self.force_recover(
                    ScanOutcome.TIMED_OUT,
                    f"The scan did not finish within {minutes:g} minutes and was reset.",
                )

        self._subscription = self.relay.listen(self._handle_message, course_id=course_id)
        self._health.start(course_id)
        self._ticker = self.scheduler.call_every(self.settings.progress_tick_seconds, self._tick)
        self._timeout = self.scheduler.call_later(timeout_seconds, on_timeout)

    def _disarm(self) -> None:
        if self._subscription is not None:
            self._subscription.stop()
            self._subscription = None
        self._health.stop()
        for task in (self._ticker, self._timeout):
            if task is not None:
                task.stop()
        self._ticker = None
        self._timeout = None

    def _cancel_grace(self) -> None:
        if self._grace is not None:
            self._grace.stop()
            self._grace = None

    async def _handle_message(self, message: RelayMessage) -> None:
        if self._correlation_id:
            set_correlation_id(self._correlation_id)

        if isinstance(message, ScanProgressNotification):
            await self.on_scan_progress(
                ScanProgressUpdate(percent=message.percent, status_text=message.status_text)
            )
        elif isinstance(message, ScanCompleteNotification):
            await self.on_scan_complete(message.candidates)
        elif isinstance(message, ScanErrorNotification):
            await self.on_scan_error(message.summary, message.detail)

    async def _tick(self) -> None:
        if self._state.is_scanning:
            self._refresh_progress()

    def _refresh_progress(self, status_text: str | None = None) -> None:
        now = self.scheduler.now_ms()
        reading = self._estimator.estimate(now)
        self._state.progress_percent = reading.percent
        self._state.time_left_seconds = reading.time_left_seconds
        self._state.estimated_total_seconds = reading.estimated_total_seconds
        self._state.last_updated_at = now
        if status_text:
            self._state.status_text = status_text

    async def _on_health_recover(self, course_id: str, status: HealthStatus) -> None:
        if status == HealthStatus.STALE_SNAPSHOT:
            await self.force_recover(ScanOutcome.ABANDONED, STALE_SESSION_MESSAGE)
        else:
            await self.force_recover(ScanOutcome.ABANDONED)

    async def _course_for(self, course_id: str) -> CourseSession:
        if self._scan_course is not None and self._scan_course.course_id == course_id:
            return self._scan_course
        if self._course is not None and self._course.course_id == course_id:
            return self._course
        record = await self.repository.get_course(course_id)
        if record is not None:
            return CourseSession(
                course_id=record.course_id,
                name=record.name,
                source_url=record.source_url,
                course_code=record.course_code,
            )
        return CourseSession(course_id=course_id, name=course_id, source_url="")

    async def _finish(
        self,
        generation: int,
        outcome: ScanOutcome,
        message: str,
        pdf_count: int,
        uploaded: int = 0,
        failed: int = 0,
    ) -> None:
        if generation != self._generation:
            return
        course_id = self._state.course_id
        self._disarm()

        reading = self._estimator.complete()
        self._state.status = ScanStatus.COMPLETE
        self._state.progress_percent = reading.percent
        self._state.time_left_seconds = 0
        self._state.outcome = outcome
        self._state.message = message
        self._state.status_text = message
        self._state.last_updated_at = self.scheduler.now_ms()

        await self.state_store.write(course_id, "complete", pdf_count=pdf_count)

        async def clear_snapshot() -> None:
            snapshot = await self.state_store.read(course_id)
            if snapshot is not None and snapshot.status == "complete":
                await self.state_store.remove(course_id)

        self._grace = self.scheduler.call_later(self.settings.completion_grace_seconds, clear_snapshot)
        logger.info(
            "Scan complete",
            extra={"course_id": course_id, "outcome": outcome.value, "uploaded": uploaded, "failed": failed},
        )
        await self.relay.publish(
            ScanFinishedNotification(
                course_id=course_id, outcome=outcome, uploaded=uploaded, failed=failed
            )
        )

    async def _fail(
        self,
        generation: int,
        message: str,
        uploaded: int = 0,
        failed: int = 0,
    ) -> None:
        if generation != self._generation:
            return
        course_id = self._state.course_id
        self._disarm()
        self._state.status = ScanStatus.FAILED
        self._state.outcome = ScanOutcome.FAILED
        self._state.message = message
        self._state.status_text = message
        self._state.time_left_seconds = None
        self._state.last_updated_at = self.scheduler.now_ms()
        await self.state_store.remove(course_id)
        logger.error("Scan failed", extra={"course_id": course_id, "reason": message})
        await self.relay.publish(
            ScanFinishedNotification(
                course_id=course_id, outcome=ScanOutcome.FAILED, uploaded=uploaded, failed=failed
            )
        )
