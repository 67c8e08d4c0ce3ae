"""
Application services.
"""

from course_assistant.application.services.chat_service import ChatService
from course_assistant.application.services.course_service import CourseService

__all__ = ["ChatService", "CourseService"]
