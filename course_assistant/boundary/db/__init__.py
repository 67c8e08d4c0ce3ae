"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, UUIDMixin, TimestampMixin: Model building blocks
  - get_async_engine(), get_async_session_factory(): Connection management
  - create_tables(): Schema creation for local and test databases

Dependencies: sqlalchemy, course_assistant.configs
System role: Database adapter for courses, documents, enrollments, chat
history, recovery snapshots and usage windows.
"""

from course_assistant.boundary.db.base import Base, TimestampMixin, UUIDMixin
from course_assistant.boundary.db.connection import (
    create_tables,
    get_async_engine,
    get_async_session_factory,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "create_tables",
    "get_async_engine",
    "get_async_session_factory",
]
