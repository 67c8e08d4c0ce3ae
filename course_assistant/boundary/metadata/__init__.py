"""
Metadata repositories: protocol, SQL implementation, in-memory implementation.
"""

from course_assistant.boundary.metadata.in_memory_repository import InMemoryMetadataRepository
from course_assistant.boundary.metadata.repository import (
    MetadataRepository,
    UsageWindowRepository,
)
from course_assistant.boundary.metadata.sql_repository import SqlMetadataRepository

__all__ = [
    "InMemoryMetadataRepository",
    "MetadataRepository",
    "SqlMetadataRepository",
    "UsageWindowRepository",
]
