"""
Chat API endpoints.

Routes:
- POST /courses/{id}/chat - Ask a question
- GET /courses/{id}/chat/sessions/{sid} - Saved conversation

Dependencies: course_assistant.application.services
System role: Quota-gated chat HTTP API
"""

import logging

from fastapi import APIRouter, Depends

from course_assistant.api.deps import get_chat_service, get_current_user
from course_assistant.application.services import ChatService
from course_assistant.models.chat import ChatHistoryResponse, ChatRequest, ChatResponse
from course_assistant.models.course import UserIdentity

from .error_handling import handle_api_errors

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/courses/{course_id}/chat", tags=["chat"])


@router.post("", response_model=ChatResponse)
@handle_api_errors
async def chat(
    course_id: str,
    request: ChatRequest,
    user: UserIdentity = Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    """
    Ask a question against the course documents.

    A request over the usage quota returns allowed=false with the reset
    countdown rather than an error status.

    Raises:
        HTTPException(403): User not enrolled
        HTTPException(400): Course has no documents yet
    """
    return await chat_service.ask(user, course_id, request)


@router.get("/sessions/{session_id}", response_model=ChatHistoryResponse)
@handle_api_errors
async def get_chat_session(
    course_id: str,
    session_id: str,
    user: UserIdentity = Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service),
) -> ChatHistoryResponse:
    """
    Get a saved conversation.

    Raises:
        HTTPException(404): Session unknown or owned by someone else
    """
    return await chat_service.get_session_history(user, course_id, session_id)
