"""Repository for file operations."""

from typing import Optional, Sequence

from loguru import logger
from sqlalchemy import and_, delete, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from meta_catalog import db
from meta_catalog.models import File, FileMetadata
from meta_catalog.repository.repository import Repository


class FileRepository(Repository[File]):
    """Repository for managing files in the database."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        super().__init__(session_maker, File)

    async def find_by_filename(self, filename: str) -> Optional[File]:
        """Find a file by its (globally unique) filename."""
        query = self.select().where(File.filename == filename)
        return await self.find_one(query)

    async def find_ids_by_hash(self, content_hash: bytes) -> list[int]:
        """Find the ids of all files with a given content hash."""
        query = select(File.id).where(File.hash == content_hash).order_by(File.id)
        rows = await self.fetch_rows(query)
        return [row[0] for row in rows]

    async def find_by_directory(self, directory_id: int) -> Sequence[File]:
        """Find all files owned by a directory."""
        query = self.select().where(File.directory_id == directory_id).order_by(File.id)
        return await self.find_many(query)

    async def find_in_directory(self, directory_id: int, filename: str) -> Optional[File]:
        """Find a file by name, but only if it belongs to the given directory."""
        query = self.select().where(
            and_(File.directory_id == directory_id, File.filename == filename)
        )
        return await self.find_one(query)

    async def find_with_key(self, key: str, value: Optional[str] = None) -> Sequence[File]:
        """Find files that have a metadata key, optionally with a given value."""
        conditions = [FileMetadata.key == key]
        if value is not None:
            conditions.append(FileMetadata.value == value)

        query = (
            self.select()
            .join(FileMetadata, FileMetadata.file_id == File.id)
            .where(and_(*conditions))
            .order_by(File.id)
        )
        return await self.find_many(query)

    async def find_duplicate_hashes(self) -> list[tuple[bytes, list[int]]]:
        """Find every hash shared by more than one file.

        Returns (hash, file ids) pairs ordered by hash, ids ordered by id.
        """
        duplicated = (
            select(File.hash).group_by(File.hash).having(func.count(File.id) > 1).subquery()
        )
        query = (
            select(File.hash, File.id)
            .where(File.hash.in_(select(duplicated.c.hash)))
            .order_by(File.hash, File.id)
        )
        rows = await self.fetch_rows(query)

        grouped: dict[bytes, list[int]] = {}
        for content_hash, file_id in rows:
            grouped.setdefault(bytes(content_hash), []).append(file_id)
        return list(grouped.items())

    async def has_dependents(self, file_id: int) -> bool:
        """Check whether any metadata row references the file."""
        query = select(exists().where(FileMetadata.file_id == file_id))
        async with db.scoped_session(self.session_maker) as session:
            result = await session.execute(query)
            return bool(result.scalar())

    async def delete_unreferenced(self, file_id: int) -> bool:
        """Delete a file only if it has no metadata rows.

        Returns False if nothing was deleted.
        """
        statement = delete(File).where(
            File.id == file_id,
            ~exists().where(FileMetadata.file_id == file_id),
        )
        async with db.scoped_session(self.session_maker, write=True) as session:
            result = await session.execute(statement)
            deleted = result.rowcount > 0  # pyright: ignore [reportAttributeAccessIssue]
        logger.debug(f"Deleted unreferenced file {file_id}: {deleted}")
        return deleted
