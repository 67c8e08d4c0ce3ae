"""
Course service orchestrator.

Registers detected courses, enrolls the signed-in user and lists the
user's courses and their document ledgers.

Dependencies: course_assistant.boundary.metadata
System role: Course use case orchestration
"""

import logging

from course_assistant.boundary.metadata.repository import MetadataRepository
from course_assistant.core.exceptions import NotEnrolledError
from course_assistant.models.course import CourseRecord, CourseSession, UserIdentity
from course_assistant.models.document import CourseDocumentsResponse

logger = logging.getLogger(__name__)


class CourseService:
    """Course registration, enrollment and read access."""

    def __init__(self, repository: MetadataRepository) -> None:
        self.repository = repository

    async def register_course(
        self, user: UserIdentity, course: CourseSession
    ) -> tuple[CourseRecord, CourseSession]:
        """
        Upsert the shared course record and enroll the user.

        Args:
            user: Signed-in user
            course: Detected course context

        Returns:
            tuple: (shared course record, course context with enrollment flag set)

        Raises:
            Exception: If the repository operation fails
        """
        try:
            record, is_new = await self.repository.save_course(course)
            newly_enrolled = await self.repository.enroll_user(user.user_id, course)
            logger.info(
                "Course registered",
                extra={
                    "course_id": course.course_id,
                    "is_new_course": is_new,
                    "newly_enrolled": newly_enrolled,
                },
            )
            return record, course.model_copy(update={"is_enrolled": True})
        except Exception as e:
            logger.error(
                "Failed to register course",
                extra={"error": str(e), "course_id": course.course_id},
            )
            raise

    async def get_course(self, course_id: str) -> CourseRecord:
        """
        Get the shared course record.

        Raises:
            ValueError: If course not found
        """
        record = await self.repository.get_course(course_id)
        if record is None:
            raise ValueError(f"Course {course_id} does not exist")
        return record

    async def list_courses(self, user: UserIdentity) -> list[CourseRecord]:
        """Courses the user is enrolled in."""
        return await self.repository.list_enrolled_courses(user.user_id)

    async def list_documents(self, user: UserIdentity, course_id: str) -> CourseDocumentsResponse:
        """
        Document ledger of a course with upload status totals.

        Raises:
            NotEnrolledError: If the user is not enrolled in the course
        """
        if not await self.repository.is_enrolled(user.user_id, course_id):
            raise NotEnrolledError(user.user_id, course_id)
        records = await self.repository.list_documents(course_id)
        records.sort(key=lambda record: record.title.lower())
        return CourseDocumentsResponse.from_records(course_id, records)
