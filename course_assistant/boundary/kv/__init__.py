"""
Key/value stores backing the scan recovery snapshots.
"""

from course_assistant.boundary.kv.store import (
    InMemoryKeyValueStore,
    KeyValueStore,
    SqlKeyValueStore,
)

__all__ = ["InMemoryKeyValueStore", "KeyValueStore", "SqlKeyValueStore"]
