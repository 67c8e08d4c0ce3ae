"""
Retrieval store handle.

Dependencies: pydantic
System role: Store broker result contract
"""

from pydantic import BaseModel, Field


class StoreHandle(BaseModel):
    """Shared per-course store; already_exists distinguishes reuse from creation."""

    course_key: str
    store_id: str
    display_name: str | None = None
    already_exists: bool = Field(description="True when the store was reused")
