"""
Retrieval store configuration settings.

Selects the retrieval backend (in-memory for local dev, Gemini File Search
for production) and its connection parameters.

Dependencies: pydantic, pydantic_settings
System role: Retrieval corpus configuration for ingestion and chat
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from course_assistant.configs.base import BaseSettings


class RetrievalStoreSettings(BaseSettings):
    """Retrieval store configuration (memory for dev, gemini for prod)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RETRIEVAL_STORE_",
        case_sensitive=False,
        extra="ignore",
    )

    store_type: str = Field(
        default="memory",
        description="Retrieval store type: 'memory' for local dev, 'gemini' for production",
    )
    api_endpoint: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Gemini API base URL",
    )
    api_key: str | None = Field(default=None, description="Gemini API key")
    model: str = Field(default="gemini-1.5-flash", description="Model used for answers")
    top_k: int = Field(default=5, description="Number of chunks retrieved per question")
    request_timeout_seconds: float = Field(
        default=60.0, description="HTTP timeout for store operations"
    )
    fetch_timeout_seconds: float = Field(
        default=30.0, description="HTTP timeout when fetching source document bytes"
    )
