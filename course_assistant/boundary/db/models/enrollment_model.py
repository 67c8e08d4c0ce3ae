"""
Enrollment ORM model.

Private user-to-course link; queries against a shared course store are
only allowed for enrolled users.

Dependencies: sqlalchemy, course_assistant.boundary.db.base
System role: Course access control persistence
"""

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from course_assistant.boundary.db.base import Base, TimestampMixin


class EnrollmentModel(Base, TimestampMixin):
    """User enrollment in a shared course."""

    __tablename__ = "enrollments"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    course_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("courses.id", ondelete="CASCADE"),
        primary_key=True,
    )
    course_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
