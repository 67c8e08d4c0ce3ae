"""
Chat history CRUD operations.

All operations are session-scoped; messages belong to one chat session.

Dependencies: sqlalchemy, course_assistant.boundary.db.models
System role: Chat message persistence
"""

import uuid
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from course_assistant.boundary.db.CRUD.base_crud import BaseCRUD
from course_assistant.boundary.db.models.chat_model import ChatMessageModel, ChatSessionModel


class ChatCRUD(BaseCRUD[ChatSessionModel]):
    """CRUD operations for chat sessions and their messages."""

    def __init__(self) -> None:
        super().__init__(ChatSessionModel)

    async def add_messages(
        self,
        session: AsyncSession,
        session_id: uuid.UUID,
        messages: list[tuple[str, str]],
    ) -> None:
        """
        Append (role, content) pairs to a chat session.

        Raises:
            ValueError: If the chat session does not exist
        """
        chat = await self.get(session, session_id)
        if chat is None:
            raise ValueError(f"Chat session {session_id} does not exist")

        for offset, (role, content) in enumerate(messages):
            session.add(
                ChatMessageModel(
                    session_id=session_id,
                    position=chat.message_count + offset,
                    role=role,
                    content=content,
                )
            )
        chat.message_count += len(messages)
        await session.flush()

    async def get_messages(
        self, session: AsyncSession, session_id: uuid.UUID, limit: int | None = None
    ) -> Sequence[ChatMessageModel]:
        """Return the most recent messages in chronological order."""
        stmt = (
            select(ChatMessageModel)
            .where(ChatMessageModel.session_id == session_id)
            .order_by(ChatMessageModel.position.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return list(reversed(result.scalars().all()))


chat_crud = ChatCRUD()
