"""
Chat domain models and schemas.

Request/response schemas for quota-gated questions against a course store.

Dependencies: pydantic
System role: Chat API contracts
"""

from pydantic import BaseModel, Field


class Citation(BaseModel):
    """Source reference returned with an answer."""

    title: str | None = None
    uri: str | None = None
    snippet: str | None = None


class QueryResult(BaseModel):
    """Answer from the retrieval store."""

    answer: str
    citations: list[Citation] = []


class ChatTurn(BaseModel):
    """Single chat message in history."""

    role: str = Field(description="Message role: 'user' or 'assistant'")
    content: str = Field(description="Message content")


class ChatRequest(BaseModel):
    """Request schema for chat messages."""

    message: str = Field(min_length=1, description="User question")
    session_id: str | None = Field(default=None, description="Existing chat session")
    save_to_history: bool = Field(default=True)
    metadata_filter: str | None = Field(default=None, description="Store metadata filter")


class ChatResponse(BaseModel):
    """Response schema for chat messages; blocked requests carry the reset countdown."""

    allowed: bool
    answer: str | None = None
    citations: list[Citation] = []
    session_id: str | None = None
    remaining: int | None = None
    reset_in_seconds: int | None = None
    message: str | None = None


class ChatSessionInfo(BaseModel):
    """Ownership and title of a saved chat session."""

    session_id: str
    user_id: str
    course_id: str
    title: str = ""


class ChatHistoryResponse(BaseModel):
    """Saved conversation in chronological order."""

    session_id: str
    course_id: str
    title: str
    messages: list[ChatTurn]
