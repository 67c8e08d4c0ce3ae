"""
Usage limit configuration settings.

Rolling-window message quota applied to the chat/query path.

Dependencies: pydantic, pydantic_settings
System role: Chat quota configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from course_assistant.configs.base import BaseSettings


class UsageLimitSettings(BaseSettings):
    """Rolling-window chat quota configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="USAGE_LIMIT_",
        case_sensitive=False,
        extra="ignore",
    )

    enabled: bool = Field(default=True, description="Enforce the message quota")
    max_messages_per_window: int = Field(
        default=40, description="Messages allowed inside one rolling window"
    )
    window_duration_hours: float = Field(
        default=3.0, description="Window length measured from its first message"
    )
    privileged_user_ids: list[str] = Field(
        default_factory=list, description="Users exempt from the message ceiling"
    )

    @property
    def window_duration_ms(self) -> int:
        """Window length in epoch milliseconds."""
        return int(self.window_duration_hours * 3600 * 1000)
