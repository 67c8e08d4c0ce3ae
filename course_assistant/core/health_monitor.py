"""
Health monitor for scan sessions.

Polls on a fixed interval while a scan is active. A missing snapshot while
the controller still believes it is scanning triggers immediate recovery.
A scanning snapshot older than the staleness threshold triggers forced
recovery with a user-visible message.

Dependencies: course_assistant.core.scheduling, course_assistant.core.scan_state_store
System role: Liveness check and self-healing of stalled sessions
"""

import logging
from collections.abc import Awaitable, Callable
from enum import Enum

from course_assistant.core.scan_state_store import ScanStateStore
from course_assistant.core.scheduling import ScheduledTask, Scheduler

logger = logging.getLogger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    IDLE = "idle"
    MISSING_SNAPSHOT = "missing_snapshot"
    STALE_SNAPSHOT = "stale_snapshot"


RecoveryCallback = Callable[[str, HealthStatus], Awaitable[None]]


class HealthMonitor:
    """Periodic snapshot liveness check for one course at a time."""

    def __init__(
        self,
        scheduler: Scheduler,
        state_store: ScanStateStore,
        is_scanning: Callable[[], bool],
        on_recover: RecoveryCallback,
        interval_seconds: float = 30.0,
        staleness_threshold_seconds: float = 300.0,
    ) -> None:
        self._scheduler = scheduler
        self._state_store = state_store
        self._is_scanning = is_scanning
        self._on_recover = on_recover
        self.interval_seconds = interval_seconds
        self.staleness_threshold_seconds = staleness_threshold_seconds
        self._task: ScheduledTask | None = None
        self._course_id: str | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and self._task.active

    @property
    def course_id(self) -> str | None:
        return self._course_id

    def start(self, course_id: str) -> None:
        """Start polling for a course, replacing any previous poll."""
        self.stop()
        self._course_id = course_id
        self._task = self._scheduler.call_every(self.interval_seconds, self._poll)
        logger.debug(f"{__name__}:start - Monitoring scan", extra={"course_id": course_id})

    def stop(self) -> None:
        if self._task is not None:
            self._task.stop()
            self._task = None

    async def _poll(self) -> None:
        await self.check()

    async def check(self) -> HealthStatus:
        """Run one health check and trigger recovery when needed."""
        course_id = self._course_id
        if course_id is None or not self._is_scanning():
            return HealthStatus.IDLE

        snapshot = await self._state_store.read(course_id)
        if snapshot is None:
            status = HealthStatus.MISSING_SNAPSHOT
        elif snapshot.status == "scanning" and self._state_store.is_stale(
            snapshot, self.staleness_threshold_seconds
        ):
            status = HealthStatus.STALE_SNAPSHOT
        else:
            return HealthStatus.HEALTHY

        logger.warning(
            f"{__name__}:check - Scan session unhealthy, recovering",
            extra={"course_id": course_id, "health_status": status.value},
        )
        self.stop()
        await self._on_recover(course_id, status)
        return status
