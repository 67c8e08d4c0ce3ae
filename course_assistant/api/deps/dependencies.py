"""
Dependency injection container.

ServiceCache builds the long-lived collaborators once per process: the
metadata repository, the key/value store, the retrieval store, the message
relay, the crawl worker and one SessionController per signed-in user.
Factory functions expose them as FastAPI dependencies.

Dependencies: fastapi, course_assistant.configs, course_assistant.core, course_assistant.boundary
System role: DI container for service injection
"""

import logging
from collections import OrderedDict

from fastapi import Depends, Header, HTTPException, status

from course_assistant.application.services import ChatService, CourseService
from course_assistant.boundary.crawler import LinkCrawler, RelayCrawlerClient
from course_assistant.boundary.db.connection import (
    create_tables,
    get_async_engine,
    get_async_session_factory,
)
from course_assistant.boundary.fetch import HttpDocumentFetcher
from course_assistant.boundary.identity import StaticIdentityProvider
from course_assistant.boundary.kv import InMemoryKeyValueStore, SqlKeyValueStore
from course_assistant.boundary.messaging import InProcessMessageBus
from course_assistant.boundary.metadata import InMemoryMetadataRepository, SqlMetadataRepository
from course_assistant.boundary.retrieval.factory import get_retrieval_store
from course_assistant.configs import Settings, get_settings
from course_assistant.core.message_relay import MessageRelay
from course_assistant.core.scan_state_store import ScanStateStore
from course_assistant.core.scheduling import AsyncioScheduler
from course_assistant.core.session_controller import SessionController
from course_assistant.core.store_broker import StoreBroker
from course_assistant.core.upload_retry_manager import UploadRetryManager
from course_assistant.core.usage_quota import UsageQuotaGate
from course_assistant.models.course import UserIdentity
from course_assistant.workers import CrawlWorker

logger = logging.getLogger(__name__)


class ServiceCache:
    """Container for cached service instances."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings
        self._engine = None
        self._repository = None
        self._kv_store = None
        self._retrieval_store = None
        self._fetcher = None
        self._relay = None
        self._scheduler = None
        self._state_store = None
        self._broker = None
        self._uploader = None
        self._quota_gate = None
        self._crawler = None
        self._crawl_worker = None
        self._controllers: OrderedDict[str, SessionController] = OrderedDict()

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def uses_sql(self) -> bool:
        return self.settings.database.metadata_backend.lower() == "sql"

    @property
    def engine(self):
        """Get cached async engine (SQL backend only)."""
        if self._engine is None:
            self._engine = get_async_engine(self.settings.database.async_database_url)
        return self._engine

    @property
    def repository(self):
        """Get cached metadata repository."""
        if self._repository is None:
            if self.uses_sql:
                self._repository = SqlMetadataRepository(get_async_session_factory(self.engine))
            else:
                self._repository = InMemoryMetadataRepository()
        return self._repository

    @property
    def kv_store(self):
        """Get cached key/value store for scan snapshots."""
        if self._kv_store is None:
            if self.uses_sql:
                self._kv_store = SqlKeyValueStore(get_async_session_factory(self.engine))
            else:
                self._kv_store = InMemoryKeyValueStore()
        return self._kv_store

    @property
    def retrieval_store(self):
        """Get cached retrieval store client."""
        if self._retrieval_store is None:
            self._retrieval_store = get_retrieval_store(self.settings.retrieval_store)
        return self._retrieval_store

    @property
    def fetcher(self) -> HttpDocumentFetcher:
        if self._fetcher is None:
            self._fetcher = HttpDocumentFetcher(
                timeout=self.settings.retrieval_store.fetch_timeout_seconds
            )
        return self._fetcher

    @property
    def relay(self) -> MessageRelay:
        if self._relay is None:
            self._relay = MessageRelay(
                InProcessMessageBus(),
                dedup_cache_size=self.settings.ingestion.dedup_cache_size,
            )
        return self._relay

    @property
    def scheduler(self) -> AsyncioScheduler:
        if self._scheduler is None:
            self._scheduler = AsyncioScheduler()
        return self._scheduler

    @property
    def state_store(self) -> ScanStateStore:
        if self._state_store is None:
            self._state_store = ScanStateStore(self.kv_store, self.scheduler.now_ms)
        return self._state_store

    @property
    def broker(self) -> StoreBroker:
        if self._broker is None:
            self._broker = StoreBroker(self.repository, self.retrieval_store)
        return self._broker

    @property
    def uploader(self) -> UploadRetryManager:
        if self._uploader is None:
            self._uploader = UploadRetryManager(self.repository, self.retrieval_store, self.fetcher)
        return self._uploader

    @property
    def quota_gate(self) -> UsageQuotaGate:
        if self._quota_gate is None:
            limits = self.settings.usage_limits
            self._quota_gate = UsageQuotaGate(
                self.repository,
                clock=self.scheduler.now_ms,
                max_messages=limits.max_messages_per_window,
                window_ms=limits.window_duration_ms,
                enabled=limits.enabled,
                privileged_user_ids=limits.privileged_user_ids,
            )
        return self._quota_gate

    @property
    def crawler(self) -> LinkCrawler:
        if self._crawler is None:
            self._crawler = LinkCrawler()
        return self._crawler

    @property
    def crawl_worker(self) -> CrawlWorker:
        if self._crawl_worker is None:
            self._crawl_worker = CrawlWorker(self.relay, self.crawler)
        return self._crawl_worker

    def controller_for(self, user: UserIdentity) -> SessionController:
        """
        Get or create the session controller owned by a user.

        Controllers are kept in least-recently-used order; past the configured
        ceiling, the oldest controllers without a running scan are released.
        """
        controller = self._controllers.get(user.user_id)
        if controller is not None:
            self._controllers.move_to_end(user.user_id)
        else:
            controller = SessionController(
                identity=StaticIdentityProvider(user),
                crawler=RelayCrawlerClient(
                    self.relay, timeout=self.settings.ingestion.crawler_request_timeout_seconds
                ),
                relay=self.relay,
                state_store=self.state_store,
                broker=self.broker,
                uploader=self.uploader,
                repository=self.repository,
                scheduler=self.scheduler,
                settings=self.settings.ingestion,
            )
            self._controllers[user.user_id] = controller
            self._evict_idle_controllers()
        return controller

    def _evict_idle_controllers(self) -> None:
        excess = len(self._controllers) - self.settings.ingestion.max_cached_controllers
        # The newest entry is the controller being handed out
        for user_id in list(self._controllers)[:-1]:
            if excess <= 0:
                break
            controller = self._controllers[user_id]
            if controller.state.is_scanning:
                continue
            controller.release()
            del self._controllers[user_id]
            excess -= 1
            logger.debug("Evicted idle session controller", extra={"user_id": user_id})

    async def startup(self) -> None:
        """Create tables when using SQL and start the crawl worker."""
        if self.uses_sql:
            await create_tables(self.engine)
        self.crawl_worker.start()

    async def shutdown(self) -> None:
        """Stop controllers and the worker, close clients."""
        for controller in self._controllers.values():
            await controller.shutdown()
        if self._crawl_worker is not None:
            await self._crawl_worker.stop()
        for client in (self._fetcher, self._crawler, self._retrieval_store):
            close = getattr(client, "aclose", None)
            if close is not None:
                await close()
        if self._engine is not None:
            await self._engine.dispose()
        self.clear()

    def clear(self) -> None:
        """Clear all cached instances."""
        self._engine = None
        self._repository = None
        self._kv_store = None
        self._retrieval_store = None
        self._fetcher = None
        self._relay = None
        self._scheduler = None
        self._state_store = None
        self._broker = None
        self._uploader = None
        self._quota_gate = None
        self._crawler = None
        self._crawl_worker = None
        self._controllers.clear()


# Global service cache
_service_cache = ServiceCache()


def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


async def get_current_user(
    x_user_id: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
) -> UserIdentity:
    """
    Resolve the ambient user identity from request headers.

    Raises:
        HTTPException(401): If no user id is supplied
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="A signed-in user is required",
        )
    return UserIdentity(user_id=x_user_id, email=x_user_email)


def get_session_controller(
    user: UserIdentity = Depends(get_current_user),
    cache: ServiceCache = Depends(get_service_cache),
) -> SessionController:
    return cache.controller_for(user)


def get_course_service(cache: ServiceCache = Depends(get_service_cache)) -> CourseService:
    return CourseService(cache.repository)


def get_quota_gate(cache: ServiceCache = Depends(get_service_cache)) -> UsageQuotaGate:
    return cache.quota_gate


def get_chat_service(cache: ServiceCache = Depends(get_service_cache)) -> ChatService:
    """
    Get chat service instance.

    Args:
        cache: Service cache (injected via Depends)

    Returns:
        ChatService: Chat service bound to the cached store and quota gate
    """
    return ChatService(
        repository=cache.repository,
        store_client=cache.retrieval_store,
        quota_gate=cache.quota_gate,
        top_k=cache.settings.retrieval_store.top_k,
    )
