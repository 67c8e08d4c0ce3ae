"""
Domain models and API schemas.

Pydantic models shared by the pipeline, the adapters and the HTTP surface.
"""

from course_assistant.models.course import CourseRecord, CourseSession, UserIdentity
from course_assistant.models.document import (
    CandidateDocument,
    DocumentRecord,
    UploadStatus,
    document_key,
)
from course_assistant.models.scan import (
    ScanOutcome,
    ScanProgressUpdate,
    ScanSnapshot,
    ScanState,
    ScanStatus,
)
from course_assistant.models.store import StoreHandle
from course_assistant.models.upload import (
    BatchStatus,
    DocumentUploadOutcome,
    UploadBatchResult,
    UploadOutcomeStatus,
)
from course_assistant.models.usage import QuotaDecision, UsageWindow

__all__ = [
    "CourseRecord",
    "CourseSession",
    "UserIdentity",
    "CandidateDocument",
    "DocumentRecord",
    "UploadStatus",
    "document_key",
    "ScanOutcome",
    "ScanProgressUpdate",
    "ScanSnapshot",
    "ScanState",
    "ScanStatus",
    "StoreHandle",
    "BatchStatus",
    "DocumentUploadOutcome",
    "UploadBatchResult",
    "UploadOutcomeStatus",
    "QuotaDecision",
    "UsageWindow",
]
