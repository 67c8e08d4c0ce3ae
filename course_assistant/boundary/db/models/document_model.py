"""
Document ORM model.

Durable ingestion ledger entry for one discovered document.
Status flow: PENDING -> UPLOADING -> COMPLETED (or FAILED, retried later).

Dependencies: sqlalchemy, course_assistant.boundary.db.base
System role: Document upload bookkeeping
"""

from sqlalchemy import Enum as SQLEnum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from course_assistant.boundary.db.base import Base, TimestampMixin
from course_assistant.models.document import UploadStatus


class DocumentModel(Base, TimestampMixin):
    """
    Document ORM model keyed by (course_id, id).

    Attributes:
        id: Stable key derived from the source URL
        course_id: Owning course
        source_url: Candidate natural key
        title: Document title
        content_type: MIME type reported by the crawler
        discovered_via: Crawler discovery origin
        upload_status: Lifecycle status; COMPLETED is terminal
        remote_document_id: Store document reference once completed
        retry_count: Failed attempts so far
        last_error: Last failure message
    """

    __tablename__ = "documents"

    course_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("courses.id", ondelete="CASCADE"),
        primary_key=True,
    )
    id: Mapped[str] = mapped_column(String(4096), primary_key=True)
    source_url: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(String(1024), nullable=False)
    content_type: Mapped[str] = mapped_column(
        String(128), nullable=False, default="application/pdf"
    )
    discovered_via: Mapped[str] = mapped_column(String(128), nullable=False, default="unknown")
    upload_status: Mapped[UploadStatus] = mapped_column(
        SQLEnum(UploadStatus, name="upload_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UploadStatus.PENDING,
        index=True,
    )
    remote_document_id: Mapped[str | None] = mapped_column(
        String(1024), nullable=True, default=None
    )
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
