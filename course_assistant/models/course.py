"""
Course domain models.

Course context detected in the UI, the shared course record and the
ambient user identity.

Dependencies: pydantic
System role: Course and identity contracts
"""

from datetime import datetime

from pydantic import BaseModel, Field

from course_assistant.models.scan import ScanState


class UserIdentity(BaseModel):
    """Stable opaque user id plus email from the identity provider."""

    user_id: str
    email: str | None = None


class CourseSession(BaseModel):
    """Course context detected on first visit to a course page."""

    course_id: str = Field(description="Source LMS course identifier")
    name: str = Field(description="Course display name")
    source_url: str = Field(description="Course home URL")
    course_code: str = Field(default="", description="Optional course code")
    is_enrolled: bool = Field(default=False, description="User enrollment flag")

    @property
    def store_display_name(self) -> str:
        """Display name used when the course store is created."""
        return f"{self.name} ({self.course_id})"


class CourseRecord(BaseModel):
    """Shared course record, one per course across all users."""

    course_id: str
    name: str
    course_code: str = ""
    source_url: str = ""
    pdf_count: int = 0
    store_id: str | None = None
    store_display_name: str | None = None
    store_created_by: str | None = None
    last_scanned_at: datetime | None = None


class DetectCourseRequest(BaseModel):
    """Request schema for reporting a detected course page."""

    course_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    source_url: str = Field(min_length=1)
    course_code: str = ""

    def to_session(self) -> CourseSession:
        return CourseSession(**self.model_dump())


class DetectCourseResponse(BaseModel):
    """Registered course plus the recovered scan state for it."""

    course: CourseRecord
    is_enrolled: bool
    scan: ScanState


class EnrolledCoursesResponse(BaseModel):
    """Courses the signed-in user is enrolled in, by name."""

    courses: list[CourseRecord]
