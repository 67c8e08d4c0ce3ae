"""
Document byte fetcher.

Downloads candidate documents from their source URL before upload.

Dependencies: httpx
System role: Source document retrieval
"""

import logging
from typing import Protocol

import httpx
from pydantic import BaseModel

from course_assistant.core.exceptions import DocumentFetchError

logger = logging.getLogger(__name__)


class FetchedDocument(BaseModel):
    """Downloaded bytes plus the content type reported by the server."""

    data: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)


class DocumentFetcher(Protocol):
    async def fetch(self, source_url: str) -> FetchedDocument: ...


class HttpDocumentFetcher:
    """httpx-based fetcher; the client may be injected for testing."""

    def __init__(
        self,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout, follow_redirects=True
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch(self, source_url: str) -> FetchedDocument:
        """
        Download one document.

        Raises:
            DocumentFetchError: On transport errors, non-2xx responses or empty bodies
        """
        try:
            response = await self._client.get(source_url)
        except httpx.HTTPError as e:
            raise DocumentFetchError(f"Fetch failed: {e}", source_url=source_url) from e

        if not response.is_success:
            raise DocumentFetchError(
                f"Fetch failed with HTTP {response.status_code}",
                source_url=source_url,
                status_code=response.status_code,
            )
        if not response.content:
            raise DocumentFetchError("Fetched document is empty", source_url=source_url)

        content_type = response.headers.get("content-type")
        if content_type:
            content_type = content_type.split(";")[0].strip()
        logger.debug(f"{__name__}:fetch - {len(response.content)} bytes from {source_url}")
        return FetchedDocument(data=response.content, content_type=content_type)
