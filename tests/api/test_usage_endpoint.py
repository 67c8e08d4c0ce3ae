"""
Tests for usage endpoint.

Uses a real UsageQuotaGate over the in-memory repository and a virtual clock.

System role: Usage API verification
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from course_assistant.api.deps import get_current_user, get_quota_gate
from course_assistant.api.routers.usage import router
from course_assistant.boundary.metadata import InMemoryMetadataRepository
from course_assistant.core.scheduling import VirtualScheduler
from course_assistant.core.usage_quota import UsageQuotaGate
from course_assistant.models.course import UserIdentity


@pytest.fixture
def quota_gate() -> UsageQuotaGate:
    return UsageQuotaGate(
        InMemoryMetadataRepository(),
        clock=VirtualScheduler().now_ms,
        max_messages=40,
        privileged_user_ids=["admin-1"],
    )


def make_client(quota_gate: UsageQuotaGate, user_id: str) -> TestClient:
    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_current_user] = lambda: UserIdentity(user_id=user_id)
    app.dependency_overrides[get_quota_gate] = lambda: quota_gate
    return TestClient(app)


class TestUsageEndpoint:
    """Tests for GET /usage."""

    def test_new_user_has_full_quota(self, quota_gate: UsageQuotaGate) -> None:
        """Test a user without messages."""
        # Act
        response = make_client(quota_gate, "user-1").get("/usage")

        # Assert
        assert response.status_code == 200
        body = response.json()
        assert body["allowed"] is True
        assert body["unlimited"] is False
        assert body["remaining"] == 40
        assert body["reset_at_ms"] is None

    def test_privileged_user_is_unlimited(self, quota_gate: UsageQuotaGate) -> None:
        """Test configured privileged users report no ceiling."""
        # Act
        response = make_client(quota_gate, "admin-1").get("/usage")

        # Assert
        assert response.json()["unlimited"] is True
        assert response.json()["remaining"] is None
