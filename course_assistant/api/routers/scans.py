"""
Scan API endpoints.

Routes:
- POST /courses/{id}/scans - Start a scan of the detected course
- GET /courses/{id}/scans/status - Current scan state
- POST /courses/{id}/scans/acknowledge - Dismiss a finished scan

Dependencies: course_assistant.core.session_controller
System role: Scan session HTTP API
"""

import logging

from fastapi import APIRouter, Depends

from course_assistant.api.deps import get_session_controller
from course_assistant.core.session_controller import SessionController
from course_assistant.models.scan import ScanState, StartScanRequest

from .error_handling import handle_api_errors

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/courses/{course_id}/scans", tags=["scans"])


@router.post("", response_model=ScanState, status_code=202)
@handle_api_errors
async def start_scan(
    course_id: str,
    request: StartScanRequest | None = None,
    controller: SessionController = Depends(get_session_controller),
) -> ScanState:
    """
    Start scanning a course. Returns immediately; poll the status route.

    Raises:
        HTTPException(401): No signed-in user
        HTTPException(409): Course not detected
        HTTPException(503): Crawler unreachable
    """
    is_rescan = request.is_rescan if request else False
    return await controller.start_scan(course_id, is_rescan=is_rescan)


@router.get("/status", response_model=ScanState)
@handle_api_errors
async def scan_status(
    course_id: str,
    controller: SessionController = Depends(get_session_controller),
) -> ScanState:
    """
    Current scan state for a course.

    Recovers a persisted session on first look. A course other than the one
    this session is tracking reports idle.
    """
    state = controller.state
    if state.course_id is None:
        state = await controller.recover_on_init(course_id)
    if state.course_id not in (None, course_id):
        return ScanState(course_id=course_id)
    return state


@router.post("/acknowledge", response_model=ScanState)
@handle_api_errors
async def acknowledge_scan(
    course_id: str,
    controller: SessionController = Depends(get_session_controller),
) -> ScanState:
    """Collapse a complete or failed scan back to idle."""
    return await controller.acknowledge()
