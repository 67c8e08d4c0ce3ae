"""
Key/value ORM model.

Backs the scan recovery snapshots (scan_status_<courseId>). Writes are
single-row upserts, so atomicity is per key only.

Dependencies: sqlalchemy, course_assistant.boundary.db.base
System role: Durable key/value persistence
"""

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from course_assistant.boundary.db.base import Base, TimestampMixin


class KeyValueModel(Base, TimestampMixin):
    """One key/value entry."""

    __tablename__ = "kv_entries"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
