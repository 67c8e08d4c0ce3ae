"""
Dependency injection for the API.
"""

from course_assistant.api.deps.dependencies import (
    ServiceCache,
    get_chat_service,
    get_course_service,
    get_current_user,
    get_quota_gate,
    get_service_cache,
    get_session_controller,
)

__all__ = [
    "ServiceCache",
    "get_chat_service",
    "get_course_service",
    "get_current_user",
    "get_quota_gate",
    "get_service_cache",
    "get_session_controller",
]
