"""
Document CRUD operations.

Provides course-scoped listing and a guarded save that refuses to move a
completed document back to any other status.

Dependencies: sqlalchemy, course_assistant.boundary.db.models
System role: Document ledger persistence operations
"""

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from course_assistant.boundary.db.CRUD.base_crud import BaseCRUD
from course_assistant.boundary.db.models.document_model import DocumentModel
from course_assistant.core.exceptions import InvalidUploadTransitionError
from course_assistant.models.document import UploadStatus


class DocumentCRUD(BaseCRUD[DocumentModel]):
    """CRUD operations for DocumentModel."""

    def __init__(self) -> None:
        """Initialize DocumentCRUD with DocumentModel."""
        super().__init__(DocumentModel)

    async def get_by_course_id(
        self,
        session: AsyncSession,
        course_id: str,
        status: UploadStatus | None = None,
    ) -> Sequence[DocumentModel]:
        """
        Retrieve all documents of a course, optionally filtered by status.

        Args:
            session: Async database session
            course_id: Owning course
            status: Optional upload status filter

        Returns:
            Sequence of DocumentModels
        """
        stmt = select(DocumentModel).where(DocumentModel.course_id == course_id)
        if status is not None:
            stmt = stmt.where(DocumentModel.upload_status == status)
        result = await session.execute(stmt.order_by(DocumentModel.created_at))
        return result.scalars().all()

    async def save_guarded(
        self, session: AsyncSession, course_id: str, document_id: str, **fields
    ) -> DocumentModel:
        """
        Insert or update a document row.

        Raises:
            InvalidUploadTransitionError: If the stored row is completed and
                the new status is anything else
        """
        if await self.insert_if_absent(session, course_id=course_id, id=document_id, **fields):
            return await self.get(session, (course_id, document_id))
        existing = await self.get(session, (course_id, document_id))

        requested = fields.get("upload_status", existing.upload_status)
        if existing.upload_status == UploadStatus.COMPLETED and requested != UploadStatus.COMPLETED:
            raise InvalidUploadTransitionError(
                document_id, existing.upload_status.value, UploadStatus(requested).value
            )
        for field, value in fields.items():
            setattr(existing, field, value)
        await session.flush()
        return existing


document_crud = DocumentCRUD()
