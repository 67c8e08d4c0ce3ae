"""
Metadata repository interfaces.

Typed seams injected into the store broker, the upload retry manager, the
quota gate and the application services, replacing ambient global handles.

Dependencies: typing
System role: Durable metadata repository contract
"""

from typing import Protocol

from course_assistant.models.chat import ChatSessionInfo, ChatTurn
from course_assistant.models.course import CourseRecord, CourseSession
from course_assistant.models.document import DocumentRecord
from course_assistant.models.usage import UsageWindow


class MetadataRepository(Protocol):
    """Course, enrollment, document and chat-session records."""

    async def get_course(self, course_id: str) -> CourseRecord | None: ...

    async def save_course(
        self, course: CourseSession, pdf_count: int | None = None, scanned: bool = False
    ) -> tuple[CourseRecord, bool]:
        """Upsert the shared course; returns (record, is_new)."""
        ...

    async def ensure_course(self, course_id: str, name: str) -> bool:
        """Insert a bare course row unless one exists; never modifies an existing row."""
        ...

    async def link_store_if_absent(
        self,
        course_id: str,
        store_id: str,
        display_name: str | None,
        created_by: str | None,
    ) -> CourseRecord:
        """Link a store unless one exists; returns the record with the winning store."""
        ...

    async def enroll_user(self, user_id: str, course: CourseSession) -> bool: ...

    async def is_enrolled(self, user_id: str, course_id: str) -> bool: ...

    async def list_enrolled_courses(self, user_id: str) -> list[CourseRecord]: ...

    async def list_documents(self, course_id: str) -> list[DocumentRecord]: ...

    async def save_document(self, record: DocumentRecord) -> DocumentRecord:
        """Upsert; raises InvalidUploadTransitionError if a completed row would regress."""
        ...

    async def create_chat_session(self, user_id: str, course_id: str, title: str) -> str: ...

    async def get_chat_session(self, session_id: str) -> ChatSessionInfo | None:
        """Owner, course and title of a chat session; None if the id is unknown."""
        ...

    async def append_chat_messages(self, session_id: str, turns: list[ChatTurn]) -> None: ...

    async def get_chat_history(
        self, session_id: str, limit: int | None = None
    ) -> list[ChatTurn]: ...


class UsageWindowRepository(Protocol):
    """Per-user rolling quota counters."""

    async def get_usage_window(self, user_id: str) -> UsageWindow | None: ...

    async def save_usage_window(self, window: UsageWindow) -> None: ...
