"""Repositories for key/value metadata attached to directories and files."""

from typing import Optional, Type

from loguru import logger
from sqlalchemy import and_, delete, select
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from meta_catalog import db
from meta_catalog.models import DirectoryMetadata, FileMetadata
from meta_catalog.repository.repository import Repository


class MetadataRepository[M: (DirectoryMetadata, FileMetadata)](Repository[M]):
    """Key/value pairs scoped to an owning row.

    ``owner_column`` names the foreign key column that identifies the owner.
    A key appears at most once per owner.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        Model: Type[M],
        owner_column: str,
    ):
        super().__init__(session_maker, Model)
        self.owner_column = owner_column
        self.owner = getattr(Model, owner_column)

    def _entry(self, owner_id: int, key: str):
        return and_(self.owner == owner_id, self.Model.key == key)

    async def get(self, owner_id: int, key: str) -> Optional[str]:
        """Get the value for a key, or None if it is not set."""
        query = select(self.Model.value).where(self._entry(owner_id, key))
        rows = await self.fetch_rows(query)
        return rows[0][0] if rows else None

    async def get_all(self, owner_id: int) -> dict[str, str]:
        """Get every key/value pair of an owner, ordered by key."""
        query = (
            select(self.Model.key, self.Model.value)
            .where(self.owner == owner_id)
            .order_by(self.Model.key)
        )
        rows = await self.fetch_rows(query)
        return {key: value for key, value in rows}

    async def set(self, owner_id: int, key: str, value: str) -> Optional[str]:
        """Insert or replace the value of a key.

        Returns the previous value, or None if the key was not set.
        """
        async with db.scoped_session(self.session_maker, write=True) as session:
            result = await session.execute(
                select(self.Model.value).where(self._entry(owner_id, key))
            )
            previous = result.scalar_one_or_none()

            statement = insert(self.Model).values(
                {self.owner_column: owner_id, "key": key, "value": value}
            )
            await session.execute(
                statement.on_conflict_do_update(
                    index_elements=[self.owner_column, "key"],
                    set_={"value": statement.excluded.value},
                )
            )
        logger.debug(f"{self.Model.__name__}[{owner_id}] {key}: {previous!r} -> {value!r}")
        return previous

    async def remove(self, owner_id: int, key: str) -> Optional[str]:
        """Remove a key. Returns the removed value, or None if it was not set."""
        async with db.scoped_session(self.session_maker, write=True) as session:
            result = await session.execute(
                select(self.Model.value).where(self._entry(owner_id, key))
            )
            previous = result.scalar_one_or_none()
            if previous is not None:
                await session.execute(delete(self.Model).where(self._entry(owner_id, key)))
        logger.debug(f"{self.Model.__name__}[{owner_id}] removed {key}: {previous!r}")
        return previous

    async def clear(self, owner_id: int) -> int:
        """Remove every key of an owner. Returns the number of keys removed."""
        async with db.scoped_session(self.session_maker, write=True) as session:
            result = await session.execute(delete(self.Model).where(self.owner == owner_id))
            removed = result.rowcount  # pyright: ignore [reportAttributeAccessIssue]
        logger.debug(f"{self.Model.__name__}[{owner_id}] cleared {removed} keys")
        return removed


class DirectoryMetadataRepository(MetadataRepository[DirectoryMetadata]):
    """Repository for directory metadata."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        super().__init__(session_maker, DirectoryMetadata, "directory_id")


class FileMetadataRepository(MetadataRepository[FileMetadata]):
    """Repository for file metadata."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        super().__init__(session_maker, FileMetadata, "file_id")
