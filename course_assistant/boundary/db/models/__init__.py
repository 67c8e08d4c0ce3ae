"""
Database models package.

Exports:
  - CourseModel, EnrollmentModel: Shared course and private enrollment
  - DocumentModel: Document ingestion ledger
  - ChatSessionModel, ChatMessageModel: Chat history
  - KeyValueModel: Recovery snapshot storage
  - UsageWindowModel: Chat quota counters

Dependencies: sqlalchemy, course_assistant.boundary.db.base
System role: Database model definitions for domain entities
"""

from course_assistant.boundary.db.models.course_model import CourseModel
from course_assistant.boundary.db.models.enrollment_model import EnrollmentModel
from course_assistant.boundary.db.models.document_model import DocumentModel
from course_assistant.boundary.db.models.chat_model import ChatMessageModel, ChatSessionModel
from course_assistant.boundary.db.models.kv_model import KeyValueModel
from course_assistant.boundary.db.models.usage_window_model import UsageWindowModel

__all__ = [
    "CourseModel",
    "EnrollmentModel",
    "DocumentModel",
    "ChatSessionModel",
    "ChatMessageModel",
    "KeyValueModel",
    "UsageWindowModel",
]
