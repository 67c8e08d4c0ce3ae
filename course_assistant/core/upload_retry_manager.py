"""
Upload retry manager.

Drives the per-document upload lifecycle for one batch of discovered
candidates:
- already completed records are skipped
- failed, pending or interrupted records are retried
- new candidates get a pending record and are uploaded

Documents are processed strictly one after another. A document is marked
completed only after the store accepted it. A failure at any step marks
that document failed and the batch moves on.

Dependencies: course_assistant.boundary
System role: Partially-retryable document ingestion
"""

import logging
from collections.abc import Awaitable, Callable

from pydantic import BaseModel

from course_assistant.boundary.fetch import DocumentFetcher
from course_assistant.boundary.metadata.repository import MetadataRepository
from course_assistant.boundary.retrieval.client import RetrievalStoreClient
from course_assistant.core.exceptions import (
    InvalidUploadTransitionError,
    MetadataConsistencyError,
)
from course_assistant.models.document import CandidateDocument, DocumentRecord, UploadStatus
from course_assistant.models.upload import (
    BatchStatus,
    DocumentUploadOutcome,
    UploadBatchResult,
    UploadOutcomeStatus,
)
from course_assistant.observability.log_utils import describe_exception, safe_log_value

logger = logging.getLogger(__name__)

UploadProgressCallback = Callable[[int, int, DocumentUploadOutcome], Awaitable[None]]


class UploadPlan(BaseModel):
    """Candidates partitioned against the existing ledger."""

    skip: list[DocumentRecord] = []
    retry: list[DocumentRecord] = []
    new: list[DocumentRecord] = []

    @property
    def to_process(self) -> list[DocumentRecord]:
        return self.retry + self.new

    @property
    def is_up_to_date(self) -> bool:
        return not self.retry and not self.new


class UploadRetryManager:
    """Uploads candidates into a course store with per-document retry bookkeeping."""

    def __init__(
        self,
        repository: MetadataRepository,
        store_client: RetrievalStoreClient,
        fetcher: DocumentFetcher,
    ) -> None:
        self.repository = repository
        self.store_client = store_client
        self.fetcher = fetcher

    async def plan(self, course_id: str, candidates: list[CandidateDocument]) -> UploadPlan:
        """
        Partition candidates by document id against existing records.

        Duplicate candidates (same source URL) collapse into one entry.
        """
        existing = {
            record.document_id: record
            for record in await self.repository.list_documents(course_id)
        }
        plan = UploadPlan()
        seen: set[str] = set()

        for candidate in candidates:
            document_id = candidate.document_id
            if document_id in seen:
                continue
            seen.add(document_id)

            record = existing.get(document_id)
            if record is None:
                plan.new.append(DocumentRecord.from_candidate(course_id, candidate))
            elif record.upload_status == UploadStatus.COMPLETED:
                plan.skip.append(record)
            else:
                plan.retry.append(record)

        return plan

    async def upload_batch(
        self,
        course_id: str,
        store_id: str,
        candidates: list[CandidateDocument],
        on_progress: UploadProgressCallback | None = None,
        plan: UploadPlan | None = None,
    ) -> UploadBatchResult:
        """
        Upload every candidate that is not already completed.

        Args:
            course_id: Course the documents belong to
            store_id: Target retrieval store
            candidates: Discovered candidates
            on_progress: Called after each processed document with (index, total, outcome)
            plan: Precomputed plan, to avoid listing documents twice

        Returns:
            UploadBatchResult: UP_TO_DATE when nothing needed processing
        """
        plan = plan or await self.plan(course_id, candidates)
        skipped = [
            DocumentUploadOutcome(
                document_id=record.document_id,
                title=record.title,
                status=UploadOutcomeStatus.SKIPPED,
                remote_document_id=record.remote_document_id,
            )
            for record in plan.skip
        ]

        if plan.is_up_to_date:
            logger.info(
                "All documents already uploaded",
                extra={"course_id": course_id, "skipped": len(skipped)},
            )
            return UploadBatchResult(status=BatchStatus.UP_TO_DATE, outcomes=skipped)

        for record in plan.new:
            await self._save_quietly(record)

        to_process = plan.to_process
        total = len(to_process)
        outcomes: list[DocumentUploadOutcome] = []
        logger.info(
            "Starting upload batch",
            extra={
                "course_id": course_id,
                "new": len(plan.new),
                "retry": len(plan.retry),
                "skipped": len(plan.skip),
            },
        )

        for index, record in enumerate(to_process, start=1):
            outcome = await self._process(store_id, record)
            outcomes.append(outcome)
            if on_progress is not None:
                await on_progress(index, total, outcome)

        result = UploadBatchResult(
            status=self._batch_status(outcomes), outcomes=skipped + outcomes
        )
        logger.info(
            "Upload batch finished",
            extra={
                "course_id": course_id,
                "status": result.status.value,
                "uploaded": result.uploaded_count,
                "failed": result.failed_count,
                "inconsistent": result.inconsistent_count,
            },
        )
        return result

    async def _process(self, store_id: str, record: DocumentRecord) -> DocumentUploadOutcome:
        """Fetch, upload and record one document."""
        attempt = record.model_copy(update={"upload_status": UploadStatus.UPLOADING})
        try:
            await self.repository.save_document(attempt)
        except InvalidUploadTransitionError:
            logger.info(
                "Document completed by a concurrent scan, skipping",
                extra={"document_id": record.document_id},
            )
            return DocumentUploadOutcome(
                document_id=record.document_id,
                title=record.title,
                status=UploadOutcomeStatus.SKIPPED,
            )
        except Exception as e:
            return await self._mark_failed(attempt, e)

        try:
            fetched = await self.fetcher.fetch(record.source_url)
            remote_document_id = await self.store_client.upload_document(
                store_id,
                fetched.data,
                record.title,
                {
                    "courseId": record.course_id,
                    "documentId": record.document_id,
                    "originalUrl": record.source_url,
                    "discoveredVia": record.discovered_via,
                },
                fetched.content_type or record.content_type,
            )
        except Exception as e:
            return await self._mark_failed(attempt, e)

        completed = attempt.model_copy(
            update={
                "upload_status": UploadStatus.COMPLETED,
                "remote_document_id": remote_document_id,
                "last_error": None,
            }
        )
        try:
            await self.repository.save_document(completed)
        except Exception as e:
            # Remote store holds the document; the ledger still says uploading.
            inconsistency = MetadataConsistencyError(
                f"Uploaded document could not be recorded as completed: {e}",
                document_id=record.document_id,
                remote_document_id=remote_document_id,
            )
            logger.warning(
                f"{__name__}:_process - {inconsistency.message}",
                extra={**inconsistency.details, "title": safe_log_value(record.title, 100)},
            )
            return DocumentUploadOutcome(
                document_id=record.document_id,
                title=record.title,
                status=UploadOutcomeStatus.INCONSISTENT,
                remote_document_id=remote_document_id,
                error=inconsistency.message,
            )

        return DocumentUploadOutcome(
            document_id=record.document_id,
            title=record.title,
            status=UploadOutcomeStatus.UPLOADED,
            remote_document_id=remote_document_id,
        )

    async def _mark_failed(
        self, record: DocumentRecord, error: Exception
    ) -> DocumentUploadOutcome:
        summary, _ = describe_exception(error)
        logger.warning(
            f"{__name__}:_mark_failed - Document upload failed: {summary}",
            extra={"document_id": record.document_id, "retry_count": record.retry_count + 1},
        )
        if record.can_transition(UploadStatus.FAILED):
            failed = record.model_copy(
                update={
                    "upload_status": UploadStatus.FAILED,
                    "retry_count": record.retry_count + 1,
                    "last_error": summary,
                }
            )
            await self._save_quietly(failed)
        return DocumentUploadOutcome(
            document_id=record.document_id,
            title=record.title,
            status=UploadOutcomeStatus.FAILED,
            error=summary,
        )

    async def _save_quietly(self, record: DocumentRecord) -> None:
        """Save bookkeeping that must not abort the batch."""
        try:
            await self.repository.save_document(record)
        except Exception as e:
            logger.warning(
                f"{__name__}:_save_quietly - Could not save document record: {e}",
                extra={"document_id": record.document_id, "status": record.upload_status.value},
            )

    @staticmethod
    def _batch_status(outcomes: list[DocumentUploadOutcome]) -> BatchStatus:
        failed = sum(1 for outcome in outcomes if outcome.status == UploadOutcomeStatus.FAILED)
        if failed == 0:
            return BatchStatus.COMPLETED
        if failed == len(outcomes):
            return BatchStatus.FAILED
        return BatchStatus.PARTIAL
