"""Repository for directory operations."""

from typing import Optional, Sequence

from loguru import logger
from sqlalchemy import and_, delete, exists, func, select
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from meta_catalog import db
from meta_catalog.models import Directory, DirectoryMetadata, File
from meta_catalog.repository.repository import Repository


class DirectoryRepository(Repository[Directory]):
    """Repository for managing directories in the database."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        super().__init__(session_maker, Directory)

    async def upsert(self, path: str) -> int:
        """Insert a directory unless the path exists, and return its id."""
        return (await self.upsert_paths([path]))[0]

    async def upsert_paths(self, paths: Sequence[str]) -> list[int]:
        """Upsert several directory paths in one transaction.

        Returns the ids in the order of ``paths``.
        """
        async with db.scoped_session(self.session_maker, write=True) as session:
            ids = []
            for path in paths:
                await session.execute(
                    insert(Directory)
                    .values(path=path)
                    .on_conflict_do_nothing(index_elements=["path"])
                )
                result = await session.execute(select(Directory.id).where(Directory.path == path))
                ids.append(result.scalar_one())
        logger.debug(f"Upserted directories {list(zip(paths, ids))}")
        return ids

    async def find_by_path(self, path: str) -> Optional[Directory]:
        """Find a directory by its path."""
        query = self.select().where(Directory.path == path)
        return await self.find_one(query)

    async def find_descendants(self, path: str) -> Sequence[Directory]:
        """Find every directory below ``path``, ordered by path."""
        prefix = path if path.endswith("/") else f"{path}/"
        # substr rather than LIKE, which is case-insensitive in SQLite
        query = (
            self.select()
            .where(func.substr(Directory.path, 1, len(prefix)) == prefix, Directory.path != path)
            .order_by(Directory.path)
        )
        return await self.find_many(query)

    async def find_with_key(self, key: str, value: Optional[str] = None) -> Sequence[Directory]:
        """Find directories that have a metadata key, optionally with a given value."""
        conditions = [DirectoryMetadata.key == key]
        if value is not None:
            conditions.append(DirectoryMetadata.value == value)

        query = (
            self.select()
            .join(DirectoryMetadata, DirectoryMetadata.directory_id == Directory.id)
            .where(and_(*conditions))
            .order_by(Directory.id)
        )
        return await self.find_many(query)

    async def has_dependents(self, directory_id: int) -> bool:
        """Check whether any file or metadata row references the directory."""
        query = select(
            exists().where(File.directory_id == directory_id)
            | exists().where(DirectoryMetadata.directory_id == directory_id)
        )
        async with db.scoped_session(self.session_maker) as session:
            result = await session.execute(query)
            return bool(result.scalar())

    async def delete_unreferenced(self, directory_id: int) -> bool:
        """Delete a directory only if no file or metadata row references it.

        The check and the delete are a single statement. Returns False if
        nothing was deleted, either because the directory does not exist
        or because it still has dependents.
        """
        statement = delete(Directory).where(
            Directory.id == directory_id,
            ~exists().where(File.directory_id == directory_id),
            ~exists().where(DirectoryMetadata.directory_id == directory_id),
        )
        async with db.scoped_session(self.session_maker, write=True) as session:
            result = await session.execute(statement)
            deleted = result.rowcount > 0  # pyright: ignore [reportAttributeAccessIssue]
        logger.debug(f"Deleted unreferenced directory {directory_id}: {deleted}")
        return deleted
