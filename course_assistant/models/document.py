"""
Document domain models.

Candidate documents discovered by the crawler and the durable per-document
ingestion ledger entries tracking their upload lifecycle.

Dependencies: pydantic
System role: Document ingestion contracts
"""

import base64
from enum import Enum

from pydantic import BaseModel, Field

from course_assistant.core.exceptions import InvalidUploadTransitionError


class UploadStatus(str, Enum):
    """Upload lifecycle of one document."""

    PENDING = "pending"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    FAILED = "failed"


# uploading -> uploading covers a record left mid-upload by a crashed process.
UPLOAD_TRANSITIONS: dict[UploadStatus, frozenset[UploadStatus]] = {
    UploadStatus.PENDING: frozenset({UploadStatus.UPLOADING, UploadStatus.FAILED}),
    UploadStatus.UPLOADING: frozenset(
        {UploadStatus.UPLOADING, UploadStatus.COMPLETED, UploadStatus.FAILED}
    ),
    UploadStatus.FAILED: frozenset({UploadStatus.UPLOADING, UploadStatus.FAILED}),
    UploadStatus.COMPLETED: frozenset(),
}


def document_key(source_url: str) -> str:
    """
    Derive the stable document id for a source URL.

    URL-safe across processes and storage backends: base64 of the URL with
    '/', '+' and '=' replaced by '_'.

    Args:
        source_url: Candidate natural key

    Returns:
        str: Document id
    """
    encoded = base64.b64encode(source_url.encode("utf-8")).decode("ascii")
    return encoded.replace("/", "_").replace("+", "_").replace("=", "_")


class CandidateDocument(BaseModel):
    """A discovered but not yet confirmed-uploaded source reference."""

    source_url: str = Field(description="Natural key of the candidate")
    title: str
    content_type: str = Field(default="application/pdf")
    discovered_via: str = Field(default="unknown", description="Crawler discovery origin")

    @property
    def document_id(self) -> str:
        """Stable ledger key for this candidate."""
        return document_key(self.source_url)


class DocumentRecord(BaseModel):
    """Durable bookkeeping entry for one candidate's upload lifecycle."""

    document_id: str
    course_id: str
    source_url: str
    title: str
    content_type: str = "application/pdf"
    discovered_via: str = "unknown"
    upload_status: UploadStatus = UploadStatus.PENDING
    remote_document_id: str | None = None
    retry_count: int = 0
    last_error: str | None = None

    @classmethod
    def from_candidate(cls, course_id: str, candidate: CandidateDocument) -> "DocumentRecord":
        """Create a pending record on first discovery."""
        return cls(
            document_id=candidate.document_id,
            course_id=course_id,
            source_url=candidate.source_url,
            title=candidate.title,
            content_type=candidate.content_type,
            discovered_via=candidate.discovered_via,
        )

    def can_transition(self, new_status: UploadStatus) -> bool:
        """Whether the lifecycle allows moving to new_status."""
        return new_status in UPLOAD_TRANSITIONS[self.upload_status]

    def ensure_transition(self, new_status: UploadStatus) -> None:
        """Raise InvalidUploadTransitionError unless the move is allowed."""
        if not self.can_transition(new_status):
            raise InvalidUploadTransitionError(
                self.document_id, self.upload_status.value, new_status.value
            )


class CourseDocumentsResponse(BaseModel):
    """Document ledger of a course with per-status totals."""

    course_id: str
    documents: list[DocumentRecord]
    status_counts: dict[UploadStatus, int] = Field(default_factory=dict)

    @classmethod
    def from_records(cls, course_id: str, records: list[DocumentRecord]) -> "CourseDocumentsResponse":
        counts = {status: 0 for status in UploadStatus}
        for record in records:
            counts[record.upload_status] += 1
        return cls(course_id=course_id, documents=records, status_counts=counts)
