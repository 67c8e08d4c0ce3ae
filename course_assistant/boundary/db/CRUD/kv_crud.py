"""
Key/value CRUD operations.

Dependencies: sqlalchemy, course_assistant.boundary.db.models
System role: Snapshot persistence operations
"""

from sqlalchemy.ext.asyncio import AsyncSession

from course_assistant.boundary.db.CRUD.base_crud import BaseCRUD
from course_assistant.boundary.db.models.kv_model import KeyValueModel


class KeyValueCRUD(BaseCRUD[KeyValueModel]):
    """CRUD operations for KeyValueModel."""

    def __init__(self) -> None:
        super().__init__(KeyValueModel)

    async def get_value(self, session: AsyncSession, key: str) -> dict | None:
        entry = await self.get(session, key)
        return dict(entry.value) if entry is not None else None

    async def put_value(self, session: AsyncSession, key: str, value: dict) -> None:
        if not await self.insert_if_absent(session, key=key, value=value):
            await self.update(session, key, value=value)


kv_crud = KeyValueCRUD()
