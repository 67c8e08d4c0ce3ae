"""
SQL metadata repository.

Implements MetadataRepository and UsageWindowRepository on the async
SQLAlchemy CRUD singletons. Each operation runs in its own short
transaction so no session outlives a suspension point of the caller.

Dependencies: sqlalchemy, course_assistant.boundary.db
System role: Production metadata persistence
"""

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from course_assistant.boundary.db.CRUD import (
    chat_crud,
    course_crud,
    document_crud,
    enrollment_crud,
    usage_window_crud,
)
from course_assistant.boundary.db.models import CourseModel, DocumentModel
from course_assistant.models.chat import ChatSessionInfo, ChatTurn
from course_assistant.models.course import CourseRecord, CourseSession
from course_assistant.models.document import DocumentRecord
from course_assistant.models.usage import UsageWindow

logger = logging.getLogger(__name__)


def _course_record(row: CourseModel) -> CourseRecord:
    return CourseRecord(
        course_id=row.id,
        name=row.name,
        course_code=row.course_code,
        source_url=row.source_url,
        pdf_count=row.pdf_count,
        store_id=row.store_id,
        store_display_name=row.store_display_name,
        store_created_by=row.store_created_by,
        last_scanned_at=row.last_scanned_at,
    )


def _document_record(row: DocumentModel) -> DocumentRecord:
    return DocumentRecord(
        document_id=row.id,
        course_id=row.course_id,
        source_url=row.source_url,
        title=row.title,
        content_type=row.content_type,
        discovered_via=row.discovered_via,
        upload_status=row.upload_status,
        remote_document_id=row.remote_document_id,
        retry_count=row.retry_count,
        last_error=row.last_error,
    )


class SqlMetadataRepository:
    """Metadata repository over an async session factory."""

    def __init__(self, session_factory: async_sessionmaker) -> None:
        """
        Initialize repository.

        Args:
            session_factory: async_sessionmaker bound to the metadata database
        """
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            async with session.begin():
                yield session

    async def get_course(self, course_id: str) -> CourseRecord | None:
        async with self._transaction() as session:
            row = await course_crud.get(session, course_id)
            return _course_record(row) if row is not None else None

    async def save_course(
        self, course: CourseSession, pdf_count: int | None = None, scanned: bool = False
    ) -> tuple[CourseRecord, bool]:
        fields = {
            "name": course.name,
            "course_code": course.course_code,
            "source_url": course.source_url,
        }
        if pdf_count is not None:
            fields["pdf_count"] = pdf_count
        if scanned:
            fields["last_scanned_at"] = datetime.now(timezone.utc)

        async with self._transaction() as session:
            row, is_new = await course_crud.upsert(session, course.course_id, **fields)
            record = _course_record(row)

        logger.info(
            "Course saved",
            extra={"course_id": course.course_id, "is_new": is_new},
        )
        return record, is_new

    async def ensure_course(self, course_id: str, name: str) -> bool:
        async with self._transaction() as session:
            return await course_crud.insert_if_absent(session, id=course_id, name=name)

    async def link_store_if_absent(
        self,
        course_id: str,
        store_id: str,
        display_name: str | None,
        created_by: str | None,
    ) -> CourseRecord:
        async with self._transaction() as session:
            linked = await course_crud.link_store_if_absent(
                session, course_id, store_id, display_name, created_by
            )
        async with self._transaction() as session:
            row = await course_crud.get(session, course_id)
            if row is None:
                raise ValueError(f"Course {course_id} does not exist")
            record = _course_record(row)

        logger.info(
            "Store link resolved",
            extra={"course_id": course_id, "linked": linked, "store_id": record.store_id},
        )
        return record

    async def enroll_user(self, user_id: str, course: CourseSession) -> bool:
        async with self._transaction() as session:
            return await enrollment_crud.enroll(
                session, user_id, course.course_id, course.name
            )

    async def is_enrolled(self, user_id: str, course_id: str) -> bool:
        async with self._transaction() as session:
            return await enrollment_crud.exists(session, (user_id, course_id))

    async def list_enrolled_courses(self, user_id: str) -> list[CourseRecord]:
        async with self._transaction() as session:
            rows = await enrollment_crud.get_courses_for_user(session, user_id)
            return [_course_record(row) for row in rows]

    async def list_documents(self, course_id: str) -> list[DocumentRecord]:
        async with self._transaction() as session:
            rows = await document_crud.get_by_course_id(session, course_id)
            return [_document_record(row) for row in rows]

    async def save_document(self, record: DocumentRecord) -> DocumentRecord:
        async with self._transaction() as session:
            row = await document_crud.save_guarded(
                session,
                record.course_id,
                record.document_id,
                source_url=record.source_url,
                title=record.title,
                content_type=record.content_type,
                discovered_via=record.discovered_via,
                upload_status=record.upload_status,
                remote_document_id=record.remote_document_id,
                retry_count=record.retry_count,
                last_error=record.last_error,
            )
            return _document_record(row)

    async def create_chat_session(self, user_id: str, course_id: str, title: str) -> str:
        async with self._transaction() as session:
            chat = await chat_crud.create(
                session, user_id=user_id, course_id=course_id, title=title[:255]
            )
            return str(chat.id)

    async def get_chat_session(self, session_id: str) -> ChatSessionInfo | None:
        try:
            key = uuid.UUID(session_id)
        except ValueError:
            return None
        async with self._transaction() as session:
            chat = await chat_crud.get(session, key)
            if chat is None:
                return None
            return ChatSessionInfo(
                session_id=str(chat.id),
                user_id=chat.user_id,
                course_id=chat.course_id,
                title=chat.title,
            )

    async def append_chat_messages(self, session_id: str, turns: list[ChatTurn]) -> None:
        async with self._transaction() as session:
            await chat_crud.add_messages(
                session,
                uuid.UUID(session_id),
                [(turn.role, turn.content) for turn in turns],
            )

    async def get_chat_history(
        self, session_id: str, limit: int | None = None
    ) -> list[ChatTurn]:
        async with self._transaction() as session:
            rows = await chat_crud.get_messages(session, uuid.UUID(session_id), limit=limit)
            return [ChatTurn(role=row.role, content=row.content) for row in rows]

    async def get_usage_window(self, user_id: str) -> UsageWindow | None:
        async with self._transaction() as session:
            row = await usage_window_crud.get(session, user_id)
            if row is None:
                return None
            return UsageWindow(
                user_id=row.user_id,
                message_count=row.message_count,
                window_start_ms=row.window_start_ms,
                privileged=row.privileged,
            )

    async def save_usage_window(self, window: UsageWindow) -> None:
        async with self._transaction() as session:
            await usage_window_crud.save(
                session,
                window.user_id,
                message_count=window.message_count,
                window_start_ms=window.window_start_ms,
                privileged=window.privileged,
            )
