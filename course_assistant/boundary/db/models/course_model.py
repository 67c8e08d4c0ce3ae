"""
Course ORM model.

Shared course record, one row per course across all users. Holds the link
to the course's retrieval store.

Dependencies: sqlalchemy, course_assistant.boundary.db.base
System role: Course persistence and store ownership
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from course_assistant.boundary.db.base import Base, TimestampMixin


class CourseModel(Base, TimestampMixin):
    """
    Course ORM model.

    store_id is written at most once (first writer wins); every later
    scan of the course reuses it.

    Attributes:
        id: Source LMS course id (primary key)
        name: Course display name
        course_code: Optional course code
        source_url: Course home URL
        pdf_count: Documents found by the last scan
        store_id: Remote retrieval store id, NULL until created
        store_display_name: Display name the store was created with
        store_created_by: User whose creation won the race
        last_scanned_at: Last scan completion time
    """

    __tablename__ = "courses"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    course_code: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    source_url: Mapped[str] = mapped_column(String(2048), nullable=False, default="")
    pdf_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    store_id: Mapped[str | None] = mapped_column(String(512), nullable=True, default=None)
    store_display_name: Mapped[str | None] = mapped_column(
        String(512), nullable=True, default=None
    )
    store_created_by: Mapped[str | None] = mapped_column(
        String(128), nullable=True, default=None
    )
    last_scanned_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
