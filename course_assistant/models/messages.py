"""
Relay message models.

Notifications broadcast from the background process to UI instances, and
the structured reply of a request/response call. Delivery is at-least-once,
so each notification that triggers side effects exposes an idempotency key.

Dependencies: pydantic
System role: Cross-process message contracts
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from course_assistant.models.document import CandidateDocument
from course_assistant.models.scan import ScanOutcome


class RelayMessageKind(str, Enum):
    """Notification types carried by the relay."""

    SCAN_PROGRESS = "scan_progress"
    SCAN_COMPLETE = "scan_complete"
    SCAN_ERROR = "scan_error"
    SCAN_FINISHED = "scan_finished"


class RelayMessage(BaseModel):
    """Base notification."""

    kind: RelayMessageKind
    course_id: str

    @property
    def idempotency_key(self) -> str | None:
        """Key consumers deduplicate on; None means safe to apply repeatedly."""
        return None


class ScanProgressNotification(RelayMessage):
    """Crawl progress."""

    kind: RelayMessageKind = RelayMessageKind.SCAN_PROGRESS
    percent: float | None = None
    status_text: str = ""


class ScanCompleteNotification(RelayMessage):
    """Crawl finished with the discovered candidates."""

    kind: RelayMessageKind = RelayMessageKind.SCAN_COMPLETE
    candidates: list[CandidateDocument] = []

    @property
    def idempotency_key(self) -> str:
        return f"{self.course_id}:{len(self.candidates)}"


class ScanErrorNotification(RelayMessage):
    """Crawl failed. summary is user-facing, detail is diagnostic."""

    kind: RelayMessageKind = RelayMessageKind.SCAN_ERROR
    summary: str
    detail: str = ""


class ScanFinishedNotification(RelayMessage):
    """Upload phase reached a terminal state."""

    kind: RelayMessageKind = RelayMessageKind.SCAN_FINISHED
    outcome: ScanOutcome
    uploaded: int = 0
    failed: int = 0

    @property
    def idempotency_key(self) -> str:
        return f"{self.course_id}:finished:{self.outcome.value}:{self.uploaded}"


class RelayResponse(BaseModel):
    """Structured reply to a request; failures carry summary plus detail."""

    success: bool
    data: dict[str, Any] = Field(default_factory=dict)
    summary: str | None = None
    detail: str | None = None
