"""
Base CRUD operations for SQLAlchemy models.

Provides generic Create, Read, Update, Delete operations that can be
inherited and extended by model-specific CRUD classes.

Dependencies: sqlalchemy
System role: Foundation for all database CRUD operations
"""

from typing import Any, Generic, TypeVar

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from course_assistant.boundary.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)

# Dialects with INSERT ... ON CONFLICT DO NOTHING
_CONFLICT_INSERTS = {"postgresql": postgresql.insert, "sqlite": sqlite.insert}


class BaseCRUD(Generic[ModelT]):
    """
    Generic base class for CRUD operations.

    Primary keys are passed as the value SQLAlchemy's Session.get accepts:
    a scalar for single-column keys, a tuple for composite keys.

    Type Parameters:
        ModelT: SQLAlchemy model class inheriting from Base

    Attributes:
        model: The SQLAlchemy model class to operate on
    """

    def __init__(self, model: type[ModelT]) -> None:
        """
        Initialize CRUD with target model.

        Args:
            model: SQLAlchemy model class for database operations
        """
        self.model = model

    async def create(self, session: AsyncSession, **kwargs) -> ModelT:
        """
        Create a new record in the database.

        Args:
            session: Async database session
            **kwargs: Model field values

        Returns:
            Created model instance with generated defaults applied
        """
        instance = self.model(**kwargs)
        session.add(instance)
        await session.flush()
        await session.refresh(instance)
        return instance

    async def insert_if_absent(self, session: AsyncSession, **values) -> bool:
        """
        Insert a row unless its primary key is already taken.

        Runs as a single INSERT ... ON CONFLICT DO NOTHING, so writers in
        other processes racing on the same key never raise IntegrityError.

        Args:
            session: Async database session
            **values: Column values, including the primary key

        Returns:
            True if this call inserted the row
        """
        insert = _CONFLICT_INSERTS.get(session.bind.dialect.name)
        if insert is None:
            pk = tuple(values[column.key] for column in self.model.__mapper__.primary_key)
            if await self.get(session, pk[0] if len(pk) == 1 else pk) is not None:
                return False
            await self.create(session, **values)
            return True

        result = await session.execute(insert(self.model).values(**values).on_conflict_do_nothing())
        return result.rowcount == 1

    async def get(self, session: AsyncSession, pk: Any) -> ModelT | None:
        """
        Retrieve a single record by primary key.

        Args:
            session: Async database session
            pk: Primary key value (tuple for composite keys)

        Returns:
            Model instance if found, None otherwise
        """
        return await session.get(self.model, pk)

    async def update(self, session: AsyncSession, pk: Any, **kwargs) -> ModelT | None:
        """
        Update a record by primary key.

        Args:
            session: Async database session
            pk: Primary key value
            **kwargs: Fields to update with new values

        Returns:
            Updated model instance if found, None otherwise
        """
        instance = await self.get(session, pk)
        if instance is None:
            return None
        for field, value in kwargs.items():
            setattr(instance, field, value)
        await session.flush()
        return instance

    async def delete(self, session: AsyncSession, pk: Any) -> bool:
        """
        Delete a record by primary key.

        Args:
            session: Async database session
            pk: Primary key value

        Returns:
            True if record was deleted, False if not found
        """
        instance = await self.get(session, pk)
        if instance is None:
            return False
        await session.delete(instance)
        await session.flush()
        return True

    async def exists(self, session: AsyncSession, pk: Any) -> bool:
        """Check if a record exists by primary key."""
        return await self.get(session, pk) is not None
