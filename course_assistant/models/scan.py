"""
Scan session models.

Controller-visible scan state, crawler progress updates and the persisted
recovery snapshot.

Dependencies: pydantic
System role: Scan session contracts
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ScanStatus(str, Enum):
    """Scan session state machine."""

    IDLE = "idle"
    SCANNING = "scanning"
    UPLOADING = "uploading"
    COMPLETE = "complete"
    FAILED = "failed"


class ScanOutcome(str, Enum):
    """How a scan session ended."""

    UPLOADED = "uploaded"
    PARTIAL = "partial"
    UP_TO_DATE = "up_to_date"
    NO_DOCUMENTS = "no_documents"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    ABANDONED = "abandoned"


class ScanProgressUpdate(BaseModel):
    """Crawl progress event emitted by the crawler."""

    percent: float | None = Field(default=None, ge=0, le=100)
    status_text: str = ""


class ScanState(BaseModel):
    """Transient, recoverable state of one course's scan session."""

    course_id: str | None = None
    status: ScanStatus = ScanStatus.IDLE
    started_at: int | None = Field(default=None, description="Epoch ms")
    last_updated_at: int | None = Field(default=None, description="Epoch ms")
    progress_percent: float = 0.0
    estimated_total_seconds: float | None = None
    time_left_seconds: int | None = None
    status_text: str = ""
    document_count: int | None = None
    outcome: ScanOutcome | None = None
    message: str | None = Field(default=None, description="User-visible notice")

    @property
    def is_scanning(self) -> bool:
        return self.status in (ScanStatus.SCANNING, ScanStatus.UPLOADING)

    @property
    def is_terminal(self) -> bool:
        return self.status in (ScanStatus.COMPLETE, ScanStatus.FAILED)


class ScanSnapshot(BaseModel):
    """
    Persisted recovery snapshot, one per course under scan_status_<courseId>.

    Serialized with the camelCase field names of the host store format.
    """

    model_config = ConfigDict(populate_by_name=True)

    course_id: str = Field(alias="courseId")
    status: Literal["scanning", "complete"]
    timestamp: int = Field(description="Epoch ms of the last write")
    pdf_count: int | None = Field(default=None, alias="pdfCount")
    started_at: int | None = Field(
        default=None, alias="startedAt", description="Epoch ms the scan started; kept across heartbeats"
    )

    @property
    def scan_started_ms(self) -> int:
        """Scan start, falling back to the last write for records without startedAt."""
        return self.started_at if self.started_at is not None else self.timestamp

    def age_ms(self, now_ms: int) -> int:
        """Wall-clock age of the snapshot."""
        return max(0, now_ms - self.timestamp)

    def to_record(self) -> dict:
        """Serialize for the key/value store."""
        return self.model_dump(by_alias=True, exclude_none=True)


class StartScanRequest(BaseModel):
    """Request schema for starting a scan."""

    is_rescan: bool = False
