"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from course_assistant.boundary.db.CRUD import course_crud, document_crud

    course = await course_crud.get(db, course_id)
"""

from course_assistant.boundary.db.CRUD.base_crud import BaseCRUD
from course_assistant.boundary.db.CRUD.chat_crud import ChatCRUD, chat_crud
from course_assistant.boundary.db.CRUD.course_crud import CourseCRUD, course_crud
from course_assistant.boundary.db.CRUD.document_crud import DocumentCRUD, document_crud
from course_assistant.boundary.db.CRUD.enrollment_crud import EnrollmentCRUD, enrollment_crud
from course_assistant.boundary.db.CRUD.kv_crud import KeyValueCRUD, kv_crud
from course_assistant.boundary.db.CRUD.usage_crud import UsageWindowCRUD, usage_window_crud

__all__ = [
    "BaseCRUD",
    "ChatCRUD",
    "chat_crud",
    "CourseCRUD",
    "course_crud",
    "DocumentCRUD",
    "document_crud",
    "EnrollmentCRUD",
    "enrollment_crud",
    "KeyValueCRUD",
    "kv_crud",
    "UsageWindowCRUD",
    "usage_window_crud",
]
