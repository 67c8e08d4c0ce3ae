"""
Upload batch result models.

Dependencies: pydantic
System role: Upload retry manager result contract
"""

from enum import Enum

from pydantic import BaseModel


class UploadOutcomeStatus(str, Enum):
    """What happened to one document in a batch."""

    UPLOADED = "uploaded"
    SKIPPED = "skipped"
    FAILED = "failed"
    # Remote upload succeeded but the completed record could not be saved
    INCONSISTENT = "inconsistent"


class BatchStatus(str, Enum):
    """Terminal result of one upload batch."""

    UP_TO_DATE = "up_to_date"
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"


class DocumentUploadOutcome(BaseModel):
    """Per-document batch outcome."""

    document_id: str
    title: str
    status: UploadOutcomeStatus
    remote_document_id: str | None = None
    error: str | None = None


class UploadBatchResult(BaseModel):
    """Result of uploading one set of discovered candidates."""

    status: BatchStatus
    outcomes: list[DocumentUploadOutcome] = []

    def _count(self, status: UploadOutcomeStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def uploaded_count(self) -> int:
        return self._count(UploadOutcomeStatus.UPLOADED)

    @property
    def skipped_count(self) -> int:
        return self._count(UploadOutcomeStatus.SKIPPED)

    @property
    def failed_count(self) -> int:
        return self._count(UploadOutcomeStatus.FAILED)

    @property
    def inconsistent_count(self) -> int:
        return self._count(UploadOutcomeStatus.INCONSISTENT)

    @property
    def summary(self) -> str:
        """Short user-facing summary of the batch."""
        if self.status == BatchStatus.UP_TO_DATE:
            return f"Already up to date ({self.skipped_count} documents)"
        if self.status == BatchStatus.FAILED:
            return f"Upload failed for all {self.failed_count} documents"
        text = f"{self.uploaded_count} documents ready for chat"
        if self.failed_count:
            text += f", {self.failed_count} uploads failed"
        return text
