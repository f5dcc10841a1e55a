"""Base repository implementation with generic CRUD operations."""

from typing import Any, Optional, Sequence, Type

from loguru import logger
from sqlalchemy import Column, Executable, Row, Select, delete, func, inspect, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from meta_catalog import db
from meta_catalog.models import Base


class Repository[T: Base]:
    """Base repository implementation with generic CRUD operations.

    Every public method opens its own scoped session, so each call is one
    transaction: committed on success, rolled back on error.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession], Model: Type[T]):
        self.session_maker = session_maker
        self.Model = Model
        self.mapper = inspect(self.Model).mapper
        self.primary_key: Column[Any] = self.mapper.primary_key[0]
        self.valid_columns = [column.key for column in self.mapper.columns]

    def select(self, *entities: Any) -> Select:
        """Create a new SELECT statement, defaulting to the model."""
        if not entities:
            entities = (self.Model,)
        return select(*entities)

    async def find_all(self, skip: int = 0, limit: Optional[int] = None) -> Sequence[T]:
        """Fetch records from the database, ordered by primary key."""
        query = self.select().order_by(self.primary_key).offset(skip)
        if limit:
            query = query.limit(limit)
        return await self.find_many(query)

    async def find_by_id(self, entity_id: int) -> Optional[T]:
        """Fetch an entity by its unique identifier."""
        return await self.find_one(self.select().where(self.primary_key == entity_id))

    async def find_one(self, query: Select[tuple[T]]) -> Optional[T]:
        """Execute a query and retrieve a single record."""
        async with db.scoped_session(self.session_maker) as session:
            result = await session.execute(query)
            return result.scalars().one_or_none()

    async def find_many(self, query: Select[tuple[T]]) -> Sequence[T]:
        """Execute a query and retrieve all matching records."""
        async with db.scoped_session(self.session_maker) as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def create(self, data: dict) -> T:
        """Create a new record from the provided data.

        Keys that are not columns of the model are ignored.
        """
        model_data = {k: v for k, v in data.items() if k in self.valid_columns}
        async with db.scoped_session(self.session_maker, write=True) as session:
            instance = self.Model(**model_data)
            session.add(instance)
            await session.flush()
            logger.debug(f"Created {instance!r}")
            return instance

    async def delete(self, entity_id: int) -> bool:
        """Delete a record by primary key, relying on the database for cascades."""
        async with db.scoped_session(self.session_maker, write=True) as session:
            result = await session.execute(delete(self.Model).where(self.primary_key == entity_id))
            deleted = result.rowcount > 0  # pyright: ignore [reportAttributeAccessIssue]
        logger.debug(f"Deleted {self.Model.__name__} {entity_id}: {deleted}")
        return deleted

    async def count(self, query: Executable | None = None) -> int:
        """Count records in the table, or the rows of a count query."""
        if query is None:
            query = select(func.count()).select_from(self.Model)
        async with db.scoped_session(self.session_maker) as session:
            result = await session.execute(query)
            scalar = result.scalar()
        return scalar if scalar is not None else 0

    async def fetch_rows(self, query: Executable) -> list[Row[Any]]:
        """Execute a Core query in its own transaction and return the rows."""
        async with db.scoped_session(self.session_maker) as session:
            result = await session.execute(query)
            return list(result.all())
