"""
Crawler collaborators.

CrawlerClient is the UI-side handle used to start a crawl in the background
process. CourseCrawler is the background-side discovery routine that emits
progress and returns candidates. LinkCrawler is a small breadth-first
implementation that collects PDF links reachable from the course page.

Dependencies: httpx, beautifulsoup4
System role: Crawler adapters
"""

import logging
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any, Protocol
from urllib.parse import urldefrag, urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from course_assistant.core.exceptions import CourseAssistantError
from course_assistant.models.course import CourseSession
from course_assistant.models.document import CandidateDocument
from course_assistant.models.messages import RelayResponse
from course_assistant.models.scan import ScanProgressUpdate

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ScanProgressUpdate], Awaitable[None]]

START_CRAWL_ACTION = "start_crawl"
PING_ACTION = "ping"


class CrawlerClient(Protocol):
    """UI-side handle on the background crawler."""

    async def start_crawl(self, course: CourseSession, is_rescan: bool) -> None:
        """Ask the background process to crawl; raises if it did not accept."""
        ...

    async def ping(self) -> bool: ...


class CourseCrawler(Protocol):
    """Background-side candidate discovery."""

    async def crawl(
        self, course: CourseSession, on_progress: ProgressCallback
    ) -> list[CandidateDocument]: ...


class RequestTransport(Protocol):
    async def request(
        self, action: str, payload: dict[str, Any], timeout: float
    ) -> RelayResponse: ...


class RelayCrawlerClient:
    """CrawlerClient that talks to the crawl host through request/response."""

    def __init__(self, transport: RequestTransport, timeout: float = 10.0) -> None:
        self._transport = transport
        self._timeout = timeout

    async def start_crawl(self, course: CourseSession, is_rescan: bool) -> None:
        response = await self._transport.request(
            START_CRAWL_ACTION,
            {"course": course.model_dump(), "is_rescan": is_rescan},
            self._timeout,
        )
        if not response.success:
            raise CourseAssistantError(
                response.summary or "Crawler rejected the request",
                details={"detail": response.detail},
            )

    async def ping(self) -> bool:
        try:
            response = await self._transport.request(PING_ACTION, {}, self._timeout)
        except CourseAssistantError:
            return False
        return response.success


class LinkCrawler:
    """
    Breadth-first crawler over same-host pages starting at the course URL.

    Pages are parsed with BeautifulSoup. Links whose path ends in .pdf become
    candidates; other same-host links are followed until max_pages pages
    have been visited.
    """

    def __init__(
        self,
        max_pages: int = 25,
        timeout: float = 15.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.max_pages = max_pages
        self._client = http_client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def crawl(
        self, course: CourseSession, on_progress: ProgressCallback
    ) -> list[CandidateDocument]:
        host = urlparse(course.source_url).netloc
        queue: deque[str] = deque([course.source_url])
        visited: set[str] = set()
        candidates: dict[str, CandidateDocument] = {}

        while queue and len(visited) < self.max_pages:
            page_url = queue.popleft()
            if page_url in visited:
                continue
            visited.add(page_url)

            try:
                response = await self._client.get(page_url)
                response.raise_for_status()
            except httpx.HTTPError as e:
                logger.warning(f"{__name__}:crawl - Skipping {page_url}: {e}")
                continue

            if "html" not in response.headers.get("content-type", "html"):
                continue

            soup = BeautifulSoup(response.text, "html.parser")
            for anchor in soup.find_all("a", href=True):
                url, _ = urldefrag(urljoin(page_url, anchor["href"]))
                parsed = urlparse(url)
                if parsed.scheme not in ("http", "https"):
                    continue
                if parsed.path.lower().endswith(".pdf"):
                    if url not in candidates:
                        title = anchor.get_text(" ", strip=True) or parsed.path.rsplit("/", 1)[-1]
                        candidates[url] = CandidateDocument(
                            source_url=url,
                            title=title,
                            discovered_via="course_home" if page_url == course.source_url else "linked_page",
                        )
                elif parsed.netloc == host and url not in visited:
                    queue.append(url)

            await on_progress(
                ScanProgressUpdate(
                    percent=min(len(visited) / self.max_pages * 100, 100),
                    status_text=f"Scanned {len(visited)} pages, found {len(candidates)} PDFs",
                )
            )

        logger.info(
            f"{__name__}:crawl - Crawl finished",
            extra={"course_id": course.course_id, "pages": len(visited), "candidates": len(candidates)},
        )
        return list(candidates.values())
