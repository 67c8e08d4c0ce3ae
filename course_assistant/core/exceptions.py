"""
Exception hierarchy for the course assistant.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class CourseAssistantError(Exception):
    """Base exception for all course assistant errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(CourseAssistantError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class NotAuthenticatedError(ValidationError):
    """Raised when an operation needs a user identity and none is available."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            f"A signed-in user is required to {operation}",
            details={"operation": operation},
        )


class CourseNotDetectedError(ValidationError):
    """Raised when an operation targets a course that has not been detected."""

    def __init__(self, course_id: str, detected_course_id: str | None = None) -> None:
        super().__init__(
            f"Course {course_id} has not been detected",
            field="course_id",
            details={"course_id": course_id, "detected_course_id": detected_course_id},
        )


class NotEnrolledError(ValidationError):
    """Raised when a user queries a course they are not enrolled in."""

    def __init__(self, user_id: str, course_id: str) -> None:
        super().__init__(
            f"User is not enrolled in course {course_id}",
            details={"user_id": user_id, "course_id": course_id},
        )


class DocumentProcessingError(CourseAssistantError):
    """Base exception for per-document ingestion errors."""

    def __init__(
        self,
        message: str,
        document_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize document processing error.

        Args:
            message: Error message
            document_id: ID of the document that failed
            details: Additional context
        """
        details = details or {}
        if document_id:
            details["document_id"] = document_id
        super().__init__(message, details)


class DocumentFetchError(DocumentProcessingError):
    """Raised when the bytes of a source document cannot be fetched."""

    def __init__(
        self,
        message: str,
        source_url: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if source_url:
            details["source_url"] = source_url
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details=details)


class DocumentUploadError(DocumentProcessingError):
    """Raised when the retrieval store rejects a document upload."""

    pass


class InvalidUploadTransitionError(DocumentProcessingError):
    """Raised when a document record would move backwards in its lifecycle."""

    def __init__(self, document_id: str, current: str, requested: str) -> None:
        super().__init__(
            f"Cannot move document from {current} to {requested}",
            document_id=document_id,
            details={"current": current, "requested": requested},
        )


class MetadataConsistencyError(DocumentProcessingError):
    """Raised when a remote upload succeeded but its bookkeeping was not saved."""

    def __init__(
        self,
        message: str,
        document_id: str,
        remote_document_id: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["remote_document_id"] = remote_document_id
        super().__init__(message, document_id, details)


class StoreError(CourseAssistantError):
    """Raised when retrieval store operations fail."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize store error.

        Args:
            message: Error message
            operation: Operation that failed (create, upload, query, delete)
            details: Additional context
        """
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class CrawlerUnavailableError(CourseAssistantError):
    """Raised when the crawler cannot be reached after all attach attempts."""

    def __init__(self, course_id: str, attempts: int, last_error: str | None = None) -> None:
        super().__init__(
            "Could not reach the course crawler. Reload the course page and try again.",
            details={"course_id": course_id, "attempts": attempts, "last_error": last_error},
        )


class RelayTimeoutError(CourseAssistantError):
    """Raised when a request to the background process gets no reply in time."""

    def __init__(self, action: str, timeout: float) -> None:
        super().__init__(
            f"No response to {action} within {timeout:g}s",
            details={"action": action, "timeout": timeout},
        )
