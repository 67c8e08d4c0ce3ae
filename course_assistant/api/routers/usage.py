"""
Usage API endpoints.

Routes: GET /usage

Dependencies: course_assistant.core.usage_quota
System role: Quota display HTTP API
"""

from fastapi import APIRouter, Depends

from course_assistant.api.deps import get_current_user, get_quota_gate
from course_assistant.core.usage_quota import UsageQuotaGate
from course_assistant.models.course import UserIdentity
from course_assistant.models.usage import QuotaDecision

from .error_handling import handle_api_errors

router = APIRouter(prefix="/usage", tags=["usage"])


@router.get("", response_model=QuotaDecision)
@handle_api_errors
async def usage_status(
    user: UserIdentity = Depends(get_current_user),
    quota_gate: UsageQuotaGate = Depends(get_quota_gate),
) -> QuotaDecision:
    """Remaining messages, reset time and unlimited flag for the current user."""
    return await quota_gate.status(user.user_id)
