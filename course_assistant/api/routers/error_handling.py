"""
API error handling utilities.

Decorator mapping domain exceptions to HTTPExceptions so every router
reports errors the same way.
"""

import functools
import logging
from typing import Any, Callable, TypeVar

from fastapi import HTTPException, status

from course_assistant.core.exceptions import (
    CourseAssistantError,
    CourseNotDetectedError,
    CrawlerUnavailableError,
    NotAuthenticatedError,
    NotEnrolledError,
    StoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

# Checked in order; subclasses before their bases
STATUS_BY_ERROR: list[tuple[type[CourseAssistantError], int]] = [
    (NotAuthenticatedError, status.HTTP_401_UNAUTHORIZED),
    (NotEnrolledError, status.HTTP_403_FORBIDDEN),
    (CourseNotDetectedError, status.HTTP_409_CONFLICT),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (CrawlerUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (StoreError, status.HTTP_502_BAD_GATEWAY),
]


def status_for(error: CourseAssistantError) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def handle_api_errors(func: F) -> F:
    """
    Decorator to transform domain errors into HTTPExceptions.

    Expected failures are logged at WARNING, unexpected ones with traceback.
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)

        except HTTPException:
            raise

        except CourseAssistantError as e:
            status_code = status_for(e)
            logger.warning(
                "Request failed",
                extra={"error_type": type(e).__name__, "error": e.message, "status_code": status_code},
            )
            raise HTTPException(status_code=status_code, detail=e.message)

        except ValueError as e:
            msg = str(e).lower()
            if "not found" in msg or "does not exist" in msg:
                logger.warning("Resource not found (ValueError)", extra={"error": str(e)})
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
            logger.warning("Invalid request (ValueError)", extra={"error": str(e)})
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

        except Exception as e:
            logger.exception("Unexpected failure", extra={"error": str(e)})
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"An internal error occurred: {str(e)}",
            )

    return wrapper  # type: ignore
