"""
Shared test fixtures and configuration for entire test suite.

Provides: virtual clock, in-memory adapters, fake fetcher and crawler,
ingestion settings, candidate builders, in-memory SQLite session factory
Dependencies: pytest, pytest-asyncio, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

from collections.abc import Awaitable, Callable

import pytest

from course_assistant.boundary.fetch import FetchedDocument
from course_assistant.boundary.kv import InMemoryKeyValueStore
from course_assistant.boundary.messaging import InProcessMessageBus
from course_assistant.boundary.metadata import InMemoryMetadataRepository
from course_assistant.boundary.retrieval import InMemoryRetrievalStore
from course_assistant.configs.ingestion import IngestionSettings
from course_assistant.core.exceptions import DocumentFetchError
from course_assistant.core.message_relay import MessageRelay
from course_assistant.core.scan_state_store import ScanStateStore
from course_assistant.core.scheduling import VirtualScheduler
from course_assistant.models.course import CourseSession
from course_assistant.models.document import CandidateDocument
from course_assistant.models.scan import ScanProgressUpdate


class FakeFetcher:
    """DocumentFetcher returning canned bytes; listed URLs fail."""

    def __init__(self) -> None:
        self.failing_urls: set[str] = set()
        self.fetched: list[str] = []

    async def fetch(self, source_url: str) -> FetchedDocument:
        self.fetched.append(source_url)
        if source_url in self.failing_urls:
            raise DocumentFetchError("Fetch failed with HTTP 503", source_url=source_url, status_code=503)
        return FetchedDocument(data=f"%PDF {source_url}".encode(), content_type="application/pdf")


class FakeCourseCrawler:
    """CourseCrawler that reports fixed progress steps and returns fixed candidates."""

    def __init__(
        self,
        candidates: list[CandidateDocument],
        progress: list[float] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.candidates = candidates
        self.progress = progress or [25.0, 50.0]
        self.error = error
        self.crawled: list[str] = []

    async def crawl(
        self,
        course: CourseSession,
        on_progress: Callable[[ScanProgressUpdate], Awaitable[None]],
    ) -> list[CandidateDocument]:
        self.crawled.append(course.course_id)
        for percent in self.progress:
            await on_progress(ScanProgressUpdate(percent=percent, status_text=f"{percent:.0f}% scanned"))
        if self.error is not None:
            raise self.error
        return list(self.candidates)


def make_candidates(count: int, prefix: str = "https://lms.example.edu/files") -> list[CandidateDocument]:
    """Build count distinct PDF candidates."""
    return [
        CandidateDocument(
            source_url=f"{prefix}/lecture-{index}.pdf",
            title=f"Lecture {index}",
            discovered_via="course_home",
        )
        for index in range(1, count + 1)
    ]


@pytest.fixture
def scheduler() -> VirtualScheduler:
    """Provide virtual clock scheduler."""
    return VirtualScheduler()


@pytest.fixture
def repository() -> InMemoryMetadataRepository:
    return InMemoryMetadataRepository()


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def state_store(kv_store: InMemoryKeyValueStore, scheduler: VirtualScheduler) -> ScanStateStore:
    return ScanStateStore(kv_store, scheduler.now_ms)


@pytest.fixture
def retrieval_store() -> InMemoryRetrievalStore:
    return InMemoryRetrievalStore()


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def relay() -> MessageRelay:
    return MessageRelay(InProcessMessageBus())


@pytest.fixture
def ingestion_settings() -> IngestionSettings:
    """Provide ingestion settings with explicit default values."""
    return IngestionSettings(
        health_check_interval_seconds=30,
        staleness_threshold_seconds=300,
        session_timeout_seconds=600,
        progress_tick_seconds=1,
        crawl_estimate_seconds=180,
        seconds_per_document=8,
        completion_grace_seconds=3,
        max_progress_before_completion=95,
        crawler_attach_attempts=3,
        crawler_attach_backoff_seconds=0.5,
        crawler_request_timeout_seconds=10,
        dedup_cache_size=256,
    )


@pytest.fixture
def sample_course() -> CourseSession:
    """Provide sample detected course."""
    return CourseSession(
        course_id="84213",
        name="Distributed Systems",
        source_url="https://lms.example.edu/courses/84213",
        course_code="CS-452",
    )


@pytest.fixture
async def session_factory():
    """
    Create in-memory SQLite async session factory for testing.

    Yields:
        async_sessionmaker: Factory bound to a fresh schema
    """
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
    from sqlalchemy.pool import StaticPool

    from course_assistant.boundary.db import models  # noqa: F401
    from course_assistant.boundary.db.base import Base

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def candidates_factory() -> Callable[..., list[CandidateDocument]]:
    """Provide builder for distinct PDF candidates."""
    return make_candidates


@pytest.fixture
def crawler_factory() -> Callable[..., FakeCourseCrawler]:
    """Provide builder for fake background crawlers."""
    return FakeCourseCrawler
