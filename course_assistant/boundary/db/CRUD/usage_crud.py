"""
Usage window CRUD operations.

Dependencies: sqlalchemy, course_assistant.boundary.db.models
System role: Chat quota persistence operations
"""

from sqlalchemy.ext.asyncio import AsyncSession

from course_assistant.boundary.db.CRUD.base_crud import BaseCRUD
from course_assistant.boundary.db.models.usage_window_model import UsageWindowModel


class UsageWindowCRUD(BaseCRUD[UsageWindowModel]):
    """CRUD operations for UsageWindowModel."""

    def __init__(self) -> None:
        super().__init__(UsageWindowModel)

    async def save(self, session: AsyncSession, user_id: str, **fields) -> UsageWindowModel:
        if await self.insert_if_absent(session, user_id=user_id, **fields):
            return await self.get(session, user_id)
        return await self.update(session, user_id, **fields)


usage_window_crud = UsageWindowCRUD()
