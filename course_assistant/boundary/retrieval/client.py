"""
Retrieval store client interface.

Dependencies: typing
System role: Contract for the remote per-course document corpus
"""

from typing import Any, Protocol

from course_assistant.models.chat import ChatTurn, QueryResult


class RetrievalStoreClient(Protocol):
    """Remote store operations used by ingestion and chat."""

    async def create_store(self, display_name: str) -> str:
        """Create a store and return its id."""
        ...

    async def delete_store(self, store_id: str) -> None: ...

    async def upload_document(
        self,
        store_id: str,
        data: bytes,
        title: str,
        metadata: dict[str, Any],
        mime_type: str = "application/pdf",
    ) -> str:
        """Index a document and return its remote document id."""
        ...

    async def query(
        self,
        store_id: str,
        question: str,
        metadata_filter: str | None = None,
        top_k: int = 5,
        history: list[ChatTurn] | None = None,
    ) -> QueryResult: ...
