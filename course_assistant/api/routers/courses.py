"""
Course API endpoints.

Routes:
- POST /courses/detect - Report a detected course page
- GET /courses - Courses the user is enrolled in
- GET /courses/{id}/documents - Document ledger with upload status

Dependencies: course_assistant.application.services, course_assistant.core
System role: Course detection and course read HTTP API
"""

import logging

from fastapi import APIRouter, Depends

from course_assistant.api.deps import (
    get_course_service,
    get_current_user,
    get_session_controller,
)
from course_assistant.application.services import CourseService
from course_assistant.core.session_controller import SessionController
from course_assistant.models.course import (
    DetectCourseRequest,
    DetectCourseResponse,
    EnrolledCoursesResponse,
    UserIdentity,
)
from course_assistant.models.document import CourseDocumentsResponse

from .error_handling import handle_api_errors

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/courses", tags=["courses"])


@router.post("/detect", response_model=DetectCourseResponse)
@handle_api_errors
async def detect_course(
    request: DetectCourseRequest,
    user: UserIdentity = Depends(get_current_user),
    course_service: CourseService = Depends(get_course_service),
    controller: SessionController = Depends(get_session_controller),
) -> DetectCourseResponse:
    """
    Register a detected course, enroll the user and recover any scan for it.

    Args:
        request: Detected course context
        user: Signed-in user
        course_service: Injected CourseService
        controller: The user's session controller

    Returns:
        DetectCourseResponse: Course record, enrollment flag and scan state
    """
    record, course = await course_service.register_course(user, request.to_session())
    controller.detect_course(course)
    scan = await controller.recover_on_init(course.course_id)
    return DetectCourseResponse(course=record, is_enrolled=course.is_enrolled, scan=scan)


@router.get("", response_model=EnrolledCoursesResponse)
@handle_api_errors
async def list_courses(
    user: UserIdentity = Depends(get_current_user),
    course_service: CourseService = Depends(get_course_service),
) -> EnrolledCoursesResponse:
    """List the courses the signed-in user is enrolled in."""
    return EnrolledCoursesResponse(courses=await course_service.list_courses(user))


@router.get("/{course_id}/documents", response_model=CourseDocumentsResponse)
@handle_api_errors
async def list_course_documents(
    course_id: str,
    user: UserIdentity = Depends(get_current_user),
    course_service: CourseService = Depends(get_course_service),
) -> CourseDocumentsResponse:
    """
    Get the document ledger of a course with each document's upload status.

    Raises:
        HTTPException(403): User not enrolled
    """
    return await course_service.list_documents(user, course_id)
