"""
Retrieval store clients: protocol, Gemini File Search, in-memory dev store.
"""

from course_assistant.boundary.retrieval.client import RetrievalStoreClient
from course_assistant.boundary.retrieval.gemini_file_search import GeminiFileSearchClient
from course_assistant.boundary.retrieval.in_memory_store import InMemoryRetrievalStore

__all__ = ["GeminiFileSearchClient", "InMemoryRetrievalStore", "RetrievalStoreClient"]
