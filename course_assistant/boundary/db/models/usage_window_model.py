"""
Usage window ORM model.

Dependencies: sqlalchemy, course_assistant.boundary.db.base
System role: Chat quota persistence
"""

from sqlalchemy import BigInteger, Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from course_assistant.boundary.db.base import Base, TimestampMixin


class UsageWindowModel(Base, TimestampMixin):
    """Per-user rolling message counter."""

    __tablename__ = "usage_windows"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    message_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    window_start_ms: Mapped[int | None] = mapped_column(BigInteger, nullable=True, default=None)
    privileged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
