"""
Course CRUD operations.

Adds upsert of the shared course record and the first-writer-wins store
link used by the store broker.

Dependencies: sqlalchemy, course_assistant.boundary.db.models
System role: Course persistence operations
"""

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from course_assistant.boundary.db.CRUD.base_crud import BaseCRUD
from course_assistant.boundary.db.models.course_model import CourseModel


class CourseCRUD(BaseCRUD[CourseModel]):
    """CRUD operations for CourseModel."""

    def __init__(self) -> None:
        """Initialize CourseCRUD with CourseModel."""
        super().__init__(CourseModel)

    async def upsert(
        self, session: AsyncSession, course_id: str, **fields
    ) -> tuple[CourseModel, bool]:
        """
        Create the course or merge fields into the existing row.

        store_id is never touched here; use link_store_if_absent.

        Args:
            session: Async database session
            course_id: Course primary key
            **fields: Column values to set

        Returns:
            tuple[CourseModel, bool]: Row and whether it was newly created
        """
        fields.pop("store_id", None)
        if await self.insert_if_absent(session, id=course_id, **fields):
            return await self.get(session, course_id), True
        return await self.update(session, course_id, **fields), False

    async def link_store_if_absent(
        self,
        session: AsyncSession,
        course_id: str,
        store_id: str,
        display_name: str | None,
        created_by: str | None,
    ) -> bool:
        """
        Atomically set the course store unless one is already linked.

        A single conditional UPDATE, so concurrent writers are ordered by
        the database and exactly one of them wins.

        Returns:
            bool: True if this call linked the store
        """
        stmt = (
            update(CourseModel)
            .where(CourseModel.id == course_id, CourseModel.store_id.is_(None))
            .values(
                store_id=store_id,
                store_display_name=display_name,
                store_created_by=created_by,
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount == 1


course_crud = CourseCRUD()
