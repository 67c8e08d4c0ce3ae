"""
Usage quota models.

Dependencies: pydantic
System role: Chat quota contracts
"""

from pydantic import BaseModel, Field


class UsageWindow(BaseModel):
    """Per-user rolling message counter."""

    user_id: str
    message_count: int = 0
    window_start_ms: int | None = Field(
        default=None, description="Epoch ms of the first message in the window"
    )
    privileged: bool = Field(default=False, description="Exempt from the ceiling")


class QuotaDecision(BaseModel):
    """Answer of the quota gate for one prospective message."""

    allowed: bool
    unlimited: bool = False
    remaining: int | None = Field(default=None, description="None when unlimited")
    reset_at_ms: int | None = None
    reset_in_seconds: int | None = None
