"""
Scan snapshot persistence.

One recovery snapshot per course in the host key/value store under
scan_status_<courseId>. Staleness is judged only by the wall-clock age of
the snapshot.

Dependencies: course_assistant.boundary.kv
System role: Persistence layer for scan session recovery
"""

import logging
from collections.abc import Callable
from typing import Literal

from pydantic import ValidationError

from course_assistant.boundary.kv import KeyValueStore
from course_assistant.models.scan import ScanSnapshot

logger = logging.getLogger(__name__)

KEY_PREFIX = "scan_status_"


def snapshot_key(course_id: str) -> str:
    return f"{KEY_PREFIX}{course_id}"


class ScanStateStore:
    """Read/write/remove of per-course scan snapshots."""

    def __init__(self, kv_store: KeyValueStore, clock: Callable[[], int]) -> None:
        """
        Args:
            kv_store: Host key/value store
            clock: Returns the current epoch ms
        """
        self._kv = kv_store
        self._clock = clock

    async def write(
        self,
        course_id: str,
        status: Literal["scanning", "complete"],
        pdf_count: int | None = None,
        timestamp: int | None = None,
        started_at: int | None = None,
    ) -> ScanSnapshot:
        snapshot = ScanSnapshot(
            course_id=course_id,
            status=status,
            timestamp=timestamp if timestamp is not None else self._clock(),
            pdf_count=pdf_count,
            started_at=started_at,
        )
        await self._kv.set(snapshot_key(course_id), snapshot.to_record())
        return snapshot

    async def read(self, course_id: str) -> ScanSnapshot | None:
        """
        Load the snapshot for a course.

        An unreadable record is treated as absent and logged.
        """
        record = await self._kv.get(snapshot_key(course_id))
        if record is None:
            return None
        try:
            return ScanSnapshot.model_validate(record)
        except ValidationError as e:
            logger.warning(
                f"{__name__}:read - Ignoring malformed snapshot",
                extra={"course_id": course_id, "error": str(e)},
            )
            return None

    async def remove(self, course_id: str) -> None:
        await self._kv.remove(snapshot_key(course_id))

    async def touch(self, course_id: str, pdf_count: int | None = None) -> ScanSnapshot | None:
        """
        Refresh the timestamp of a scanning snapshot (heartbeat); the start time is kept.

        Returns:
            The refreshed snapshot, or None if there is no scanning snapshot
        """
        current = await self.read(course_id)
        if current is None or current.status != "scanning":
            return None
        return await self.write(
            course_id,
            "scanning",
            pdf_count=pdf_count if pdf_count is not None else current.pdf_count,
            started_at=current.started_at,
        )

    def is_stale(self, snapshot: ScanSnapshot, threshold_seconds: float) -> bool:
        return snapshot.age_ms(self._clock()) > threshold_seconds * 1000
