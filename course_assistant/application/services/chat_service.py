"""
Chat service for quota-gated questions against a course store.

Flow: enrollment check, atomic quota consume before dispatch (refunded if
the query fails), grounded query against the course store with recent
history, optional persistence of both turns into a private chat session.

Dependencies: course_assistant.core.usage_quota, course_assistant.boundary
System role: Chat use case orchestration
"""

import logging

from course_assistant.boundary.metadata.repository import MetadataRepository
from course_assistant.boundary.retrieval.client import RetrievalStoreClient
from course_assistant.core.exceptions import NotEnrolledError, ValidationError
from course_assistant.core.usage_quota import UsageQuotaGate
from course_assistant.models.chat import ChatHistoryResponse, ChatRequest, ChatResponse, ChatTurn
from course_assistant.models.course import UserIdentity
from course_assistant.models.usage import QuotaDecision

logger = logging.getLogger(__name__)

SESSION_TITLE_LENGTH = 50


def blocked_message(decision: QuotaDecision) -> str:
    """User-facing text for a blocked request with its reset countdown."""
    if decision.reset_in_seconds is None:
        return "Message limit reached."
    minutes = max(1, -(-decision.reset_in_seconds // 60))
    return f"Message limit reached. Resets in {minutes} minutes."


class ChatService:
    """
    Chat service for course Q&A.

    Coordinates enrollment validation, the usage quota, the retrieval store
    query and chat history persistence.
    """

    def __init__(
        self,
        repository: MetadataRepository,
        store_client: RetrievalStoreClient,
        quota_gate: UsageQuotaGate,
        top_k: int = 5,
        context_window_size: int = 10,
    ) -> None:
        """
        Initialize chat service.

        Args:
            repository: Course, enrollment and chat-session records
            store_client: Retrieval store used to answer questions
            quota_gate: Usage quota gate
            top_k: Chunks retrieved per question
            context_window_size: Number of recent turns sent as history
        """
        self.repository = repository
        self.store_client = store_client
        self.quota_gate = quota_gate
        self.top_k = top_k
        self.context_window_size = context_window_size

    async def ask(
        self, user: UserIdentity, course_id: str, request: ChatRequest
    ) -> ChatResponse:
        """
        Answer a question against the course store.

        Args:
            user: Signed-in user
            course_id: Course whose store is queried
            request: ChatRequest with message, session and filter

        Returns:
            ChatResponse: allowed=False with the reset countdown when over quota

        Raises:
            NotEnrolledError: If the user is not enrolled in the course
            ValidationError: If the course has no store yet
            StoreError: If the query fails
        """
        if not await self.repository.is_enrolled(user.user_id, course_id):
            raise NotEnrolledError(user.user_id, course_id)

        course = await self.repository.get_course(course_id)
        if course is None or not course.store_id:
            raise ValidationError(
                "This course has no documents yet. Scan the course first.",
                field="course_id",
                details={"course_id": course_id},
            )

        usage = await self.quota_gate.try_consume(user.user_id)
        if not usage.allowed:
            return ChatResponse(
                allowed=False,
                session_id=request.session_id,
                remaining=0,
                reset_in_seconds=usage.reset_in_seconds,
                message=blocked_message(usage),
            )

        try:
            history: list[ChatTurn] = []
            if request.session_id:
                history = await self.repository.get_chat_history(
                    request.session_id, limit=self.context_window_size
                )

            result = await self.store_client.query(
                course.store_id,
                request.message,
                metadata_filter=request.metadata_filter,
                top_k=self.top_k,
                history=history,
            )
        except Exception:
            await self.quota_gate.refund(user.user_id)
            raise

        session_id = request.session_id
        if request.save_to_history:
            if session_id is None:
                session_id = await self.repository.create_chat_session(
                    user.user_id, course_id, request.message[:SESSION_TITLE_LENGTH]
                )
            await self.repository.append_chat_messages(
                session_id,
                [
                    ChatTurn(role="user", content=request.message),
                    ChatTurn(role="assistant", content=result.answer),
                ],
            )

        logger.info(
            "Question answered",
            extra={
                "course_id": course_id,
                "session_id": session_id,
                "citations": len(result.citations),
                "remaining": usage.remaining,
            },
        )
        return ChatResponse(
            allowed=True,
            answer=result.answer,
            citations=result.citations,
            session_id=session_id,
            remaining=usage.remaining,
            reset_in_seconds=usage.reset_in_seconds,
        )

    async def get_session_history(
        self, user: UserIdentity, course_id: str, session_id: str
    ) -> ChatHistoryResponse:
        """
        Return a saved conversation owned by the user.

        Sessions of other users or other courses are reported as missing.

        Raises:
            ValueError: If no such session exists for this user and course
        """
        info = await self.repository.get_chat_session(session_id)
        if info is None or info.user_id != user.user_id or info.course_id != course_id:
            raise ValueError(f"Chat session {session_id} does not exist")
        messages = await self.repository.get_chat_history(session_id)
        return ChatHistoryResponse(
            session_id=info.session_id,
            course_id=info.course_id,
            title=info.title,
            messages=messages,
        )
