"""
Gemini File Search retrieval store client.

Talks to the Gemini File Search REST API: store creation and deletion,
resumable document upload with state polling, and grounded generation
restricted to one store.

Dependencies: httpx, python-dotenv
System role: Production retrieval backend
"""

import asyncio
import logging
from typing import Any

import httpx
from dotenv import load_dotenv

from course_assistant.core.exceptions import DocumentUploadError, StoreError
from course_assistant.models.chat import ChatTurn, Citation, QueryResult

load_dotenv()

logger = logging.getLogger(__name__)


class GeminiFileSearchClient:
    """
    RetrievalStoreClient backed by Gemini File Search.

    The httpx client may be injected for testing (e.g. with MockTransport).
    """

    def __init__(
        self,
        api_key: str,
        api_endpoint: str = "https://generativelanguage.googleapis.com/v1beta",
        model: str = "gemini-1.5-flash",
        timeout: float = 60.0,
        poll_interval: float = 2.0,
        max_poll_attempts: int = 30,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize client.

        Args:
            api_key: Gemini API key
            api_endpoint: API base URL
            model: Model used to answer queries
            timeout: HTTP timeout in seconds
            poll_interval: Seconds between document state polls
            max_poll_attempts: Polls before an upload is declared failed
            http_client: Optional preconfigured httpx client
        """
        self.api_endpoint = api_endpoint.rstrip("/")
        self.model = model
        self.poll_interval = poll_interval
        self.max_poll_attempts = max_poll_attempts
        self._api_key = api_key
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    def _params(self, **extra: Any) -> dict[str, Any]:
        return {"key": self._api_key, **extra}

    @property
    def _upload_endpoint(self) -> str:
        return self.api_endpoint.replace("/v1beta", "/upload/v1beta")

    async def create_store(self, display_name: str) -> str:
        try:
            response = await self._client.post(
                f"{self.api_endpoint}/fileSearchStores",
                params=self._params(),
                json={"displayName": display_name},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise StoreError(
                f"Create store failed: {e}", operation="create", details={"display_name": display_name}
            ) from e

        store_id = response.json()["name"]
        logger.info("File Search store created", extra={"store_id": store_id})
        return store_id

    async def delete_store(self, store_id: str) -> None:
        try:
            response = await self._client.delete(
                f"{self.api_endpoint}/{store_id}", params=self._params(force="true")
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise StoreError(f"Delete store failed: {e}", operation="delete") from e

    async def upload_document(
        self,
        store_id: str,
        data: bytes,
        title: str,
        metadata: dict[str, Any],
        mime_type: str = "application/pdf",
    ) -> str:
        upload_metadata: dict[str, Any] = {
            "displayName": title,
            "mimeType": mime_type,
        }
        if metadata:
            upload_metadata["customMetadata"] = [
                {"key": key, "stringValue": str(value)} for key, value in metadata.items()
            ]

        try:
            init = await self._client.post(
                f"{self._upload_endpoint}/{store_id}:uploadToFileSearchStore",
                params=self._params(),
                headers={
                    "X-Goog-Upload-Protocol": "resumable",
                    "X-Goog-Upload-Command": "start",
                    "X-Goog-Upload-Header-Content-Length": str(len(data)),
                    "X-Goog-Upload-Header-Content-Type": mime_type,
                },
                json=upload_metadata,
            )
            init.raise_for_status()
            upload_url = init.headers.get("x-goog-upload-url")
            if not upload_url:
                raise DocumentUploadError("Upload init returned no upload URL")

            uploaded = await self._client.post(
                upload_url,
                headers={
                    "X-Goog-Upload-Offset": "0",
                    "X-Goog-Upload-Command": "upload, finalize",
                },
                content=data,
            )
            uploaded.raise_for_status()
        except httpx.HTTPError as e:
            raise DocumentUploadError(
                f"Upload failed: {e}", details={"store_id": store_id, "title": title}
            ) from e

        operation = uploaded.json()
        return await self._wait_for_operation(operation, title)

    async def _wait_for_operation(self, operation: dict[str, Any], title: str) -> str:
        """Poll a long-running upload operation until it reports done."""
        attempts = 0
        while not operation.get("done") and attempts < self.max_poll_attempts:
            await asyncio.sleep(self.poll_interval)
            response = await self._client.get(
                f"{self.api_endpoint}/{operation['name']}", params=self._params()
            )
            if response.is_success:
                operation = response.json()
            attempts += 1

        if not operation.get("done"):
            raise DocumentUploadError(
                f"Document processing timed out after {attempts} polls",
                details={"title": title},
            )
        if "error" in operation:
            raise DocumentUploadError(
                f"Document processing failed: {operation['error'].get('message')}",
                details={"title": title},
            )
        return operation.get("response", {}).get("documentName") or operation["name"]

    async def query(
        self,
        store_id: str,
        question: str,
        metadata_filter: str | None = None,
        top_k: int = 5,
        history: list[ChatTurn] | None = None,
    ) -> QueryResult:
        contents = [
            {"role": "model" if turn.role == "assistant" else "user", "parts": [{"text": turn.content}]}
            for turn in history or []
        ]
        contents.append({"role": "user", "parts": [{"text": question}]})

        file_search: dict[str, Any] = {"fileSearchStoreNames": [store_id], "topK": top_k}
        if metadata_filter:
            file_search["metadataFilter"] = metadata_filter

        try:
            response = await self._client.post(
                f"{self.api_endpoint}/models/{self.model}:generateContent",
                params=self._params(),
                json={"contents": contents, "tools": [{"fileSearch": file_search}]},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise StoreError(f"Query failed: {e}", operation="query") from e

        candidate = (response.json().get("candidates") or [{}])[0]
        parts = candidate.get("content", {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts)
        if not text:
            raise StoreError("No answer returned", operation="query")

        chunks = candidate.get("groundingMetadata", {}).get("groundingChunks") or []
        citations = [
            Citation(
                title=chunk.get("retrievedContext", {}).get("title"),
                uri=chunk.get("retrievedContext", {}).get("uri"),
                snippet=chunk.get("retrievedContext", {}).get("text"),
            )
            for chunk in chunks
        ]
        return QueryResult(answer=text, citations=citations)
