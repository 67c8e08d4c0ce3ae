"""
Key/value stores.

Durable per-key storage for recovery snapshots. Neither implementation
offers transactions across keys; each get/set/remove is atomic per key.

Dependencies: sqlalchemy, course_assistant.boundary.db
System role: Host key/value substrate for the persistence layer
"""

import asyncio
import copy
from typing import Protocol

from sqlalchemy.ext.asyncio import async_sessionmaker

from course_assistant.boundary.db.CRUD import kv_crud


class KeyValueStore(Protocol):
    """Minimal async key/value contract."""

    async def get(self, key: str) -> dict | None: ...

    async def set(self, key: str, value: dict) -> None: ...

    async def remove(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    """Dict-backed store for local development and tests."""

    def __init__(self) -> None:
        self.entries: dict[str, dict] = {}

    async def get(self, key: str) -> dict | None:
        await asyncio.sleep(0)
        value = self.entries.get(key)
        return copy.deepcopy(value) if value is not None else None

    async def set(self, key: str, value: dict) -> None:
        await asyncio.sleep(0)
        self.entries[key] = copy.deepcopy(value)

    async def remove(self, key: str) -> None:
        await asyncio.sleep(0)
        self.entries.pop(key, None)


class SqlKeyValueStore:
    """Key/value store on the kv_entries table."""

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    async def get(self, key: str) -> dict | None:
        async with self._session_factory() as session:
            return await kv_crud.get_value(session, key)

    async def set(self, key: str, value: dict) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                await kv_crud.put_value(session, key, value)

    async def remove(self, key: str) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                await kv_crud.delete(session, key)
