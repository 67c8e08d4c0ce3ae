"""
Retrieval store factory for selecting between in-memory (dev) and Gemini (prod).

Depends on RETRIEVAL_STORE_STORE_TYPE environment variable.
Provides consistent interface regardless of underlying implementation.

Dependencies: course_assistant.boundary.retrieval, course_assistant.configs
System role: Retrieval store instantiation and selection
"""

import logging

from course_assistant.boundary.retrieval.gemini_file_search import GeminiFileSearchClient
from course_assistant.boundary.retrieval.in_memory_store import InMemoryRetrievalStore
from course_assistant.configs import get_settings
from course_assistant.configs.retrieval_store import RetrievalStoreSettings

logger = logging.getLogger(__name__)


def get_retrieval_store(
    settings: RetrievalStoreSettings | None = None,
) -> GeminiFileSearchClient | InMemoryRetrievalStore:
    """
    Factory function to get the retrieval store based on configuration.

    Args:
        settings: Store settings; the application settings when omitted

    Raises:
        ValueError: If the store type is invalid or the API key is missing
    """
    settings = settings or get_settings().retrieval_store
    store_type = settings.store_type.lower()

    if store_type == "memory":
        logger.info(f"{__name__}:get_retrieval_store - Creating in-memory store (local dev mode)")
        return InMemoryRetrievalStore()

    if store_type == "gemini":
        if not settings.api_key:
            raise ValueError("RETRIEVAL_STORE_API_KEY must be set for the gemini store")
        logger.info(f"{__name__}:get_retrieval_store - Creating Gemini File Search client")
        return GeminiFileSearchClient(
            api_key=settings.api_key,
            api_endpoint=settings.api_endpoint,
            model=settings.model,
            timeout=settings.request_timeout_seconds,
        )

    raise ValueError(
        f"Invalid RETRIEVAL_STORE_STORE_TYPE: {store_type}. Must be 'memory' (dev) or 'gemini'."
    )
