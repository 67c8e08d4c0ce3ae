"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from course_assistant.configs.base import BaseSettings
from course_assistant.configs.database import DatabaseSettings
from course_assistant.configs.ingestion import IngestionSettings
from course_assistant.configs.retrieval_store import RetrievalStoreSettings
from course_assistant.configs.usage_limits import UsageLimitSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    # Aggregated settings
    database: DatabaseSettings = DatabaseSettings()
    ingestion: IngestionSettings = IngestionSettings()
    retrieval_store: RetrievalStoreSettings = RetrievalStoreSettings()
    usage_limits: UsageLimitSettings = UsageLimitSettings()


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from course_assistant.configs import get_settings
        settings = get_settings()
    """
    return Settings()
