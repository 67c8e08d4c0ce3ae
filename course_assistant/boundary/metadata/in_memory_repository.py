"""
In-memory metadata repository.

Dict-backed MetadataRepository and UsageWindowRepository for local
development and tests. Each method yields to the event loop once before
touching state, so callers see the same suspension points as with a real
database while every check-and-set stays atomic.

Dependencies: asyncio (stdlib)
System role: Development metadata persistence
"""

import asyncio
import uuid
from datetime import datetime, timezone

from course_assistant.core.exceptions import InvalidUploadTransitionError
from course_assistant.models.chat import ChatSessionInfo, ChatTurn
from course_assistant.models.course import CourseRecord, CourseSession
from course_assistant.models.document import DocumentRecord, UploadStatus
from course_assistant.models.usage import UsageWindow


class InMemoryMetadataRepository:
    """Metadata repository held in process memory."""

    def __init__(self) -> None:
        self.courses: dict[str, CourseRecord] = {}
        self.enrollments: set[tuple[str, str]] = set()
        self.documents: dict[tuple[str, str], DocumentRecord] = {}
        self.chat_sessions: dict[str, dict] = {}
        self.chat_messages: dict[str, list[ChatTurn]] = {}
        self.usage_windows: dict[str, UsageWindow] = {}

    async def get_course(self, course_id: str) -> CourseRecord | None:
        await asyncio.sleep(0)
        record = self.courses.get(course_id)
        return record.model_copy() if record else None

    async def save_course(
        self, course: CourseSession, pdf_count: int | None = None, scanned: bool = False
    ) -> tuple[CourseRecord, bool]:
        await asyncio.sleep(0)
        existing = self.courses.get(course.course_id)
        is_new = existing is None
        record = existing or CourseRecord(course_id=course.course_id, name=course.name)
        record.name = course.name
        record.course_code = course.course_code
        record.source_url = course.source_url
        if pdf_count is not None:
            record.pdf_count = pdf_count
        if scanned:
            record.last_scanned_at = datetime.now(timezone.utc)
        self.courses[course.course_id] = record
        return record.model_copy(), is_new

    async def ensure_course(self, course_id: str, name: str) -> bool:
        await asyncio.sleep(0)
        if course_id in self.courses:
            return False
        self.courses[course_id] = CourseRecord(course_id=course_id, name=name)
        return True

    async def link_store_if_absent(
        self,
        course_id: str,
        store_id: str,
        display_name: str | None,
        created_by: str | None,
    ) -> CourseRecord:
        await asyncio.sleep(0)
        record = self.courses.get(course_id)
        if record is None:
            raise ValueError(f"Course {course_id} does not exist")
        if record.store_id is None:
            record.store_id = store_id
            record.store_display_name = display_name
            record.store_created_by = created_by
        return record.model_copy()

    async def enroll_user(self, user_id: str, course: CourseSession) -> bool:
        await asyncio.sleep(0)
        key = (user_id, course.course_id)
        is_new = key not in self.enrollments
        self.enrollments.add(key)
        return is_new

    async def is_enrolled(self, user_id: str, course_id: str) -> bool:
        await asyncio.sleep(0)
        return (user_id, course_id) in self.enrollments

    async def list_enrolled_courses(self, user_id: str) -> list[CourseRecord]:
        await asyncio.sleep(0)
        records = [
            self.courses[course_id].model_copy()
            for owner, course_id in self.enrollments
            if owner == user_id and course_id in self.courses
        ]
        return sorted(records, key=lambda record: (record.name, record.course_id))

    async def list_documents(self, course_id: str) -> list[DocumentRecord]:
        await asyncio.sleep(0)
        return [
            record.model_copy()
            for (owner, _), record in self.documents.items()
            if owner == course_id
        ]

    async def save_document(self, record: DocumentRecord) -> DocumentRecord:
        await asyncio.sleep(0)
        key = (record.course_id, record.document_id)
        existing = self.documents.get(key)
        if (
            existing is not None
            and existing.upload_status == UploadStatus.COMPLETED
            and record.upload_status != UploadStatus.COMPLETED
        ):
            raise InvalidUploadTransitionError(
                record.document_id,
                existing.upload_status.value,
                record.upload_status.value,
            )
        self.documents[key] = record.model_copy()
        return record.model_copy()

    async def create_chat_session(self, user_id: str, course_id: str, title: str) -> str:
        await asyncio.sleep(0)
        session_id = str(uuid.uuid4())
        self.chat_sessions[session_id] = {
            "user_id": user_id,
            "course_id": course_id,
            "title": title[:255],
        }
        self.chat_messages[session_id] = []
        return session_id

    async def get_chat_session(self, session_id: str) -> ChatSessionInfo | None:
        await asyncio.sleep(0)
        chat = self.chat_sessions.get(session_id)
        return ChatSessionInfo(session_id=session_id, **chat) if chat else None

    async def append_chat_messages(self, session_id: str, turns: list[ChatTurn]) -> None:
        await asyncio.sleep(0)
        if session_id not in self.chat_sessions:
            raise ValueError(f"Chat session {session_id} does not exist")
        self.chat_messages[session_id].extend(turn.model_copy() for turn in turns)

    async def get_chat_history(
        self, session_id: str, limit: int | None = None
    ) -> list[ChatTurn]:
        await asyncio.sleep(0)
        turns = self.chat_messages.get(session_id, [])
        if limit is not None:
            turns = turns[-limit:] if limit else []
        return [turn.model_copy() for turn in turns]

    async def get_usage_window(self, user_id: str) -> UsageWindow | None:
        await asyncio.sleep(0)
        window = self.usage_windows.get(user_id)
        return window.model_copy() if window else None

    async def save_usage_window(self, window: UsageWindow) -> None:
        await asyncio.sleep(0)
        self.usage_windows[window.user_id] = window.model_copy()
