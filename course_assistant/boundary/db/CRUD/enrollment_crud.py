"""
Enrollment CRUD operations.

Dependencies: sqlalchemy, course_assistant.boundary.db.models
System role: Enrollment persistence operations
"""

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from course_assistant.boundary.db.CRUD.base_crud import BaseCRUD
from course_assistant.boundary.db.models.course_model import CourseModel
from course_assistant.boundary.db.models.enrollment_model import EnrollmentModel


class EnrollmentCRUD(BaseCRUD[EnrollmentModel]):
    """CRUD operations for EnrollmentModel."""

    def __init__(self) -> None:
        super().__init__(EnrollmentModel)

    async def enroll(
        self, session: AsyncSession, user_id: str, course_id: str, course_name: str
    ) -> bool:
        """
        Enroll a user, updating the cached course name if already enrolled.

        Returns:
            bool: True if the enrollment is new
        """
        if await self.insert_if_absent(
            session, user_id=user_id, course_id=course_id, course_name=course_name
        ):
            return True
        await self.update(session, (user_id, course_id), course_name=course_name)
        return False

    async def get_courses_for_user(
        self, session: AsyncSession, user_id: str
    ) -> Sequence[CourseModel]:
        """Shared course rows the user is enrolled in, ordered by name."""
        stmt = (
            select(CourseModel)
            .join(EnrollmentModel, EnrollmentModel.course_id == CourseModel.id)
            .where(EnrollmentModel.user_id == user_id)
            .order_by(CourseModel.name, CourseModel.id)
        )
        result = await session.execute(stmt)
        return result.scalars().all()


enrollment_crud = EnrollmentCRUD()
