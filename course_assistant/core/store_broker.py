"""
Document store broker.

Idempotent get-or-create of the shared per-course retrieval store. Callers
in this process are serialized per course by a lock. Callers in other
processes are reconciled by the repository's conditional link: the first
link to commit wins, later callers adopt the winning store and delete the
store they created.

Dependencies: asyncio, weakref (stdlib), course_assistant.boundary
System role: Shared remote store creation under concurrent callers
"""

import asyncio
import logging
import weakref

from course_assistant.boundary.metadata.repository import MetadataRepository
from course_assistant.boundary.retrieval.client import RetrievalStoreClient
from course_assistant.core.exceptions import StoreError
from course_assistant.models.store import StoreHandle
from course_assistant.observability.log_utils import log_with_context

logger = logging.getLogger(__name__)


class StoreBroker:
    """Resolves one logical store per course."""

    def __init__(
        self,
        repository: MetadataRepository,
        store_client: RetrievalStoreClient,
    ) -> None:
        self.repository = repository
        self.store_client = store_client
        # Dropped once no caller holds or waits on the course lock
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, course_key: str) -> asyncio.Lock:
        lock = self._locks.get(course_key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[course_key] = lock
        return lock

    async def get_or_create_store(
        self,
        course_key: str,
        display_name: str,
        created_by: str | None = None,
    ) -> StoreHandle:
        """
        Return the course store, creating it if none is linked yet.

        Args:
            course_key: Course id the store belongs to
            display_name: Name used if this call creates the store
            created_by: User id recorded as the store creator

        Returns:
            StoreHandle: already_exists is False only for the caller whose store won

        Raises:
            StoreError: If the remote store cannot be created
        """
        async with self._lock_for(course_key):
            record = await self.repository.get_course(course_key)
            if record is not None and record.store_id:
                logger.info(
                    "Reusing course store",
                    extra={"course_id": course_key, "store_id": record.store_id},
                )
                return StoreHandle(
                    course_key=course_key,
                    store_id=record.store_id,
                    display_name=record.store_display_name,
                    already_exists=True,
                )

            if record is None:
                await self.repository.ensure_course(course_key, display_name)

            try:
                store_id = await self.store_client.create_store(display_name)
            except StoreError:
                raise
            except Exception as e:
                raise StoreError(
                    f"Failed to create store for course {course_key}: {e}",
                    operation="create",
                    details={"course_id": course_key},
                ) from e

            winner = await self.repository.link_store_if_absent(
                course_key, store_id, display_name, created_by
            )

            if winner.store_id == store_id:
                logger.info(
                    "Course store created",
                    extra={"course_id": course_key, "store_id": store_id, "created_by": created_by},
                )
                return StoreHandle(
                    course_key=course_key,
                    store_id=store_id,
                    display_name=display_name,
                    already_exists=False,
                )

            log_with_context(
                logger,
                logging.INFO,
                "Lost store creation race, adopting existing store",
                course_id=course_key,
                store_id=winner.store_id,
                discarded_store_id=store_id,
                discarded_display_name=display_name,
            )
            await self._delete_orphan(store_id, course_key)
            return StoreHandle(
                course_key=course_key,
                store_id=winner.store_id,
                display_name=winner.store_display_name,
                already_exists=True,
            )

    async def _delete_orphan(self, store_id: str, course_key: str) -> None:
        try:
            await self.store_client.delete_store(store_id)
        except Exception as e:
            logger.warning(
                f"{__name__}:_delete_orphan - Could not delete orphan store: {e}",
                extra={"course_id": course_key, "store_id": store_id},
            )
