"""
Database configuration settings.

Manages the async SQLAlchemy connection used for course, document,
enrollment, chat and scan-snapshot records.

Dependencies: pydantic, pydantic_settings
System role: Database connection configuration for ORM
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from course_assistant.configs.base import BaseSettings


class DatabaseSettings(BaseSettings):
    """Metadata database configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="DATABASE_",
        case_sensitive=False,
        extra="ignore",
    )

    url: str = Field(
        default="sqlite+aiosqlite:///./course_assistant.db",
        description="Async SQLAlchemy database URL",
    )
    echo_sql: bool = Field(default=False, description="Echo SQL statements to logs")
    metadata_backend: str = Field(
        default="sql",
        description="Metadata repository backend: 'sql' or 'memory' (local dev)",
    )

    @property
    def async_database_url(self) -> str:
        """
        Normalize the configured URL to an async driver.

        Returns:
            str: SQLAlchemy async-compatible database URL
        """
        if self.url.startswith("sqlite:///"):
            return self.url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
        return self.url
