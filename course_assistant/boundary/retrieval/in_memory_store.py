"""
In-memory retrieval store for local development.

Keeps uploaded documents per store and answers questions by naive keyword
overlap with document titles. No embeddings; mirrors the contract only.

Dependencies: asyncio (stdlib)
System role: Local development retrieval backend
"""

import asyncio
import logging
import uuid
from typing import Any

from course_assistant.core.exceptions import StoreError
from course_assistant.models.chat import ChatTurn, Citation, QueryResult

logger = logging.getLogger(__name__)


class InMemoryRetrievalStore:
    """Dict-backed RetrievalStoreClient."""

    def __init__(self) -> None:
        self.stores: dict[str, dict[str, Any]] = {}

    async def create_store(self, display_name: str) -> str:
        await asyncio.sleep(0)
        store_id = f"fileSearchStores/{uuid.uuid4().hex[:12]}"
        self.stores[store_id] = {"display_name": display_name, "documents": {}}
        logger.info("Store created", extra={"store_id": store_id})
        return store_id

    async def delete_store(self, store_id: str) -> None:
        await asyncio.sleep(0)
        self.stores.pop(store_id, None)

    async def upload_document(
        self,
        store_id: str,
        data: bytes,
        title: str,
        metadata: dict[str, Any],
        mime_type: str = "application/pdf",
    ) -> str:
        await asyncio.sleep(0)
        store = self.stores.get(store_id)
        if store is None:
            raise StoreError(f"Store {store_id} not found", operation="upload")
        document_id = f"{store_id}/documents/{uuid.uuid4().hex[:12]}"
        store["documents"][document_id] = {
            "title": title,
            "size": len(data),
            "mime_type": mime_type,
            "metadata": dict(metadata),
        }
        return document_id

    async def query(
        self,
        store_id: str,
        question: str,
        metadata_filter: str | None = None,
        top_k: int = 5,
        history: list[ChatTurn] | None = None,
    ) -> QueryResult:
        await asyncio.sleep(0)
        store = self.stores.get(store_id)
        if store is None:
            raise StoreError(f"Store {store_id} not found", operation="query")

        words = {word.lower() for word in question.split() if len(word) > 3}
        matches = [
            doc
            for doc in store["documents"].values()
            if words & {word.lower() for word in doc["title"].split()}
        ][:top_k]
        if not matches:
            return QueryResult(answer="No matching course material was found.")
        titles = ", ".join(doc["title"] for doc in matches)
        return QueryResult(
            answer=f"Relevant course material: {titles}",
            citations=[
                Citation(title=doc["title"], uri=doc["metadata"].get("originalUrl"))
                for doc in matches
            ],
        )
