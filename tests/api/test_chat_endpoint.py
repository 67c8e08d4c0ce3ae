"""
Tests for the chat endpoint.

Verifies request validation, the quota-blocked response shape and the
mapping of enrollment and store errors to HTTP status codes.

System role: Chat API verification
"""

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from course_assistant.api.deps import get_chat_service, get_current_user
from course_assistant.api.routers.chat import router
from course_assistant.core.exceptions import NotEnrolledError, StoreError, ValidationError
from course_assistant.models.chat import ChatHistoryResponse, ChatResponse, ChatTurn, Citation
from course_assistant.models.course import UserIdentity

USER = UserIdentity(user_id="user-1", email="student@example.edu")


@pytest.fixture
def mock_chat_service() -> AsyncMock:
    """Mock ChatService."""
    return AsyncMock()


@pytest.fixture
def client(mock_chat_service: AsyncMock) -> TestClient:
    """Create test client with overridden dependencies."""
    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_chat_service] = lambda: mock_chat_service
    app.dependency_overrides[get_current_user] = lambda: USER
    return TestClient(app)


class TestChatEndpoint:
    """Tests for POST /courses/{course_id}/chat."""

    def test_chat_returns_answer(self, client: TestClient, mock_chat_service: AsyncMock) -> None:
        """Test successful question returns answer and remaining quota."""
        # Arrange
        mock_chat_service.ask.return_value = ChatResponse(
            allowed=True,
            answer="Raft elects a leader.",
            citations=[Citation(title="Lecture 5", uri="https://lms.example.edu/files/lecture-5.pdf")],
            session_id="session-1",
            remaining=39,
        )

        # Act
        response = client.post("/courses/84213/chat", json={"message": "What does Raft do?"})

        # Assert
        assert response.status_code == 200
        body = response.json()
        assert body["allowed"] is True
        assert body["answer"] == "Raft elects a leader."
        assert body["citations"][0]["title"] == "Lecture 5"
        assert body["remaining"] == 39
        user, course_id, request = mock_chat_service.ask.call_args.args
        assert user == USER
        assert course_id == "84213"
        assert request.message == "What does Raft do?"
        assert request.save_to_history is True

    def test_chat_blocked_by_quota_is_not_an_error(
        self, client: TestClient, mock_chat_service: AsyncMock
    ) -> None:
        """Test over-quota response keeps 200 and carries the countdown."""
        # Arrange
        mock_chat_service.ask.return_value = ChatResponse(
            allowed=False,
            remaining=0,
            reset_in_seconds=600,
            message="Message limit reached. Resets in 10 minutes.",
        )

        # Act
        response = client.post("/courses/84213/chat", json={"message": "Hello"})

        # Assert
        assert response.status_code == 200
        assert response.json()["allowed"] is False
        assert response.json()["reset_in_seconds"] == 600

    def test_chat_rejects_empty_message(self, client: TestClient) -> None:
        """Test request validation for an empty question."""
        # Act
        response = client.post("/courses/84213/chat", json={"message": ""})

        # Assert
        assert response.status_code == 422

    @pytest.mark.parametrize(
        ("error", "status_code"),
        [
            (NotEnrolledError("user-1", "84213"), 403),
            (ValidationError("This course has no documents yet. Scan the course first."), 400),
            (StoreError("No answer returned", operation="query"), 502),
        ],
    )
    def test_chat_maps_domain_errors(
        self,
        client: TestClient,
        mock_chat_service: AsyncMock,
        error: Exception,
        status_code: int,
    ) -> None:
        """Test domain errors become HTTP errors with the error message as detail."""
        # Arrange
        mock_chat_service.ask.side_effect = error

        # Act
        response = client.post("/courses/84213/chat", json={"message": "Hello"})

        # Assert
        assert response.status_code == status_code
        assert response.json()["detail"] == error.message

    def test_chat_unexpected_error_returns_500(
        self, client: TestClient, mock_chat_service: AsyncMock
    ) -> None:
        """Test unexpected failures are reported as internal errors."""
        # Arrange
        mock_chat_service.ask.side_effect = RuntimeError("boom")

        # Act
        response = client.post("/courses/84213/chat", json={"message": "Hello"})

        # Assert
        assert response.status_code == 500
        assert "boom" in response.json()["detail"]


def test_chat_requires_user_header() -> None:
    """Test the real identity dependency rejects anonymous requests."""
    # Arrange
    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_chat_service] = lambda: AsyncMock()

    # Act
    response = TestClient(app).post("/courses/84213/chat", json={"message": "Hello"})

    # Assert
    assert response.status_code == 401


class TestChatSessionEndpoint:
    """Tests for GET /courses/{course_id}/chat/sessions/{session_id}."""

    def test_session_returns_history(self, client: TestClient, mock_chat_service: AsyncMock) -> None:
        """Test a saved conversation is returned in order."""
        # Arrange
        mock_chat_service.get_session_history.return_value = ChatHistoryResponse(
            session_id="session-1",
            course_id="84213",
            title="What is Raft?",
            messages=[
                ChatTurn(role="user", content="What is Raft?"),
                ChatTurn(role="assistant", content="A consensus protocol."),
            ],
        )

        # Act
        response = client.get("/courses/84213/chat/sessions/session-1")

        # Assert
        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "What is Raft?"
        assert [turn["role"] for turn in body["messages"]] == ["user", "assistant"]
        mock_chat_service.get_session_history.assert_awaited_once_with(USER, "84213", "session-1")

    def test_unknown_session_returns_404(self, client: TestClient, mock_chat_service: AsyncMock) -> None:
        # Arrange
        mock_chat_service.get_session_history.side_effect = ValueError(
            "Chat session session-9 does not exist"
        )

        # Act
        response = client.get("/courses/84213/chat/sessions/session-9")

        # Assert
        assert response.status_code == 404
