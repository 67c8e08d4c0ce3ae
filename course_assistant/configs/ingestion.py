"""
Ingestion pipeline configuration settings.

Timers, thresholds and estimates used by the scan session controller,
the health monitor and the progress estimator.

Dependencies: pydantic, pydantic_settings
System role: Scan/upload pipeline tuning
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from course_assistant.configs.base import BaseSettings


class IngestionSettings(BaseSettings):
    """Scan session and upload pipeline configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="INGESTION_",
        case_sensitive=False,
        extra="ignore",
    )

    health_check_interval_seconds: float = Field(
        default=30.0, description="Interval between health monitor polls"
    )
    staleness_threshold_seconds: float = Field(
        default=300.0,
        description="Snapshot age after which a scanning session is presumed abandoned",
    )
    session_timeout_seconds: float = Field(
        default=600.0, description="Hard limit for one scan session before a forced reset"
    )
    progress_tick_seconds: float = Field(
        default=1.0, description="Interval between progress display refreshes"
    )
    crawl_estimate_seconds: float = Field(
        default=180.0, description="Initial total-time estimate used while crawling"
    )
    seconds_per_document: float = Field(
        default=8.0, description="Upload-phase estimate per discovered document"
    )
    completion_grace_seconds: float = Field(
        default=3.0,
        description="Delay before a completed snapshot is cleared so an open UI can observe it",
    )
    max_progress_before_completion: float = Field(
        default=95.0, description="Progress ceiling until a true completion signal arrives"
    )
    crawler_attach_attempts: int = Field(
        default=3, description="Attempts to reach the crawler before the scan is aborted"
    )
    crawler_attach_backoff_seconds: float = Field(
        default=0.5, description="Delay between crawler attach attempts"
    )
    crawler_request_timeout_seconds: float = Field(
        default=10.0, description="Timeout for one request to the background process"
    )
    dedup_cache_size: int = Field(
        default=256, description="Idempotency keys remembered per relay consumer"
    )
    max_cached_controllers: int = Field(
        default=1024, description="Per-user session controllers kept before idle ones are evicted"
    )
