"""Service implementing the catalog store: directories, files, hashes and metadata."""

from typing import Optional, Sequence

from loguru import logger
from sqlalchemy.exc import IntegrityError

from meta_catalog.config import CatalogConfig
from meta_catalog.models import Directory, File
from meta_catalog.repository import (
    DirectoryMetadataRepository,
    DirectoryRepository,
    FileMetadataRepository,
    FileRepository,
)
from meta_catalog.services.exceptions import (
    DirectoryNotFoundError,
    FileEntryNotFoundError,
    ForeignKeyViolation,
    InvalidHashError,
    InvalidPathError,
    constraint_error,
)
from meta_catalog.utils import ancestors, normalize_directory_path


class CatalogService:
    """Durable storage and lookup of directories, files, content hashes and metadata.

    Every write is a single transaction. Constraint failures from the storage
    engine are reported as catalog errors, never ignored.
    """

    def __init__(
        self,
        directory_repository: DirectoryRepository,
        file_repository: FileRepository,
        directory_metadata_repository: DirectoryMetadataRepository,
        file_metadata_repository: FileMetadataRepository,
        app_config: CatalogConfig,
    ):
        self.directory_repository = directory_repository
        self.file_repository = file_repository
        self.directory_metadata_repository = directory_metadata_repository
        self.file_metadata_repository = file_metadata_repository
        self.app_config = app_config

    # Validation

    def normalize_path(self, path: str) -> str:
        try:
            return normalize_directory_path(path)
        except ValueError as e:
            raise InvalidPathError(str(e)) from e

    def validate_hash(self, content_hash: bytes) -> bytes:
        """Check a content hash is non-empty bytes of the configured length."""
        if not isinstance(content_hash, (bytes, bytearray, memoryview)):
            raise InvalidHashError(
                f"Content hash must be bytes, got {type(content_hash).__name__}"
            )
        content_hash = bytes(content_hash)
        if not content_hash:
            raise InvalidHashError("Content hash must not be empty")

        expected = self.app_config.hash_length
        if expected is not None and len(content_hash) != expected:
            raise InvalidHashError(
                f"Content hash must be {expected} bytes, got {len(content_hash)}"
            )
        return content_hash

    # Directories

    async def upsert_directory(self, path: str) -> int:
        """Get the id of the directory at ``path``, inserting it if needed."""
        path = self.normalize_path(path)
        try:
            directory_id = await self.directory_repository.upsert(path)
        except IntegrityError as e:
            raise constraint_error(e, f"Could not upsert directory '{path}'") from e
        logger.debug(f"Directory '{path}' has id {directory_id}")
        return directory_id

    async def upsert_directory_tree(self, path: str) -> int:
        """Upsert a directory and all of its ancestors up to the root.

        Returns the id of ``path``.
        """
        path = self.normalize_path(path)
        # root first so parents always exist before their children
        paths = [*reversed(ancestors(path)), path]
        try:
            ids = await self.directory_repository.upsert_paths(paths)
        except IntegrityError as e:
            raise constraint_error(e, f"Could not upsert directory tree '{path}'") from e
        return ids[-1]

    async def get_directory(self, directory_id: int) -> Directory:
        directory = await self.directory_repository.find_by_id(directory_id)
        if directory is None:
            raise DirectoryNotFoundError(f"Directory not found: {directory_id}")
        return directory

    async def find_directory_by_path(self, path: str) -> Optional[Directory]:
        return await self.directory_repository.find_by_path(self.normalize_path(path))

    async def get_directory_by_path(self, path: str) -> Directory:
        directory = await self.find_directory_by_path(path)
        if directory is None:
            raise DirectoryNotFoundError(f"Directory not found: {path}")
        return directory

    async def list_directories(self) -> Sequence[Directory]:
        return await self.directory_repository.find_all()

    async def find_directories_with_key(
        self, key: str, value: Optional[str] = None
    ) -> Sequence[Directory]:
        """Find directories carrying a metadata key, optionally with an exact value."""
        return await self.directory_repository.find_with_key(key, value)

    async def directory_subtree(self, directory_id: int) -> list[Directory]:
        """Get a directory followed by every directory below it."""
        directory = await self.get_directory(directory_id)
        descendants = await self.directory_repository.find_descendants(directory.path)
        return [directory, *descendants]

    async def delete_directory(self, directory_id: int, cascade: Optional[bool] = None) -> None:
        """Delete a directory.

        With cascade (the configured default) its files, their metadata and the
        directory's metadata are removed in the same transaction. Without it the
        delete fails with ForeignKeyViolation while dependents exist.
        """
        cascade = self.app_config.cascade_deletes if cascade is None else cascade

        if cascade:
            deleted = await self.directory_repository.delete(directory_id)
        else:
            deleted = await self.directory_repository.delete_unreferenced(directory_id)

        if not deleted:
            if not cascade and await self.directory_repository.has_dependents(directory_id):
                raise ForeignKeyViolation(
                    f"Directory {directory_id} still has files or metadata"
                )
            raise DirectoryNotFoundError(f"Directory not found: {directory_id}")

        logger.info(f"Deleted directory {directory_id} (cascade={cascade})")

    # Files

    async def upsert_file(self, directory_id: int, filename: str, content_hash: bytes) -> int:
        """Insert a file row and return its id.

        Raises:
            UniqueConstraintViolation: If the filename exists anywhere in the catalog
            ForeignKeyViolation: If the directory does not exist
        """
        content_hash = self.validate_hash(content_hash)
        try:
            file = await self.file_repository.create(
                {"directory_id": directory_id, "filename": filename, "hash": content_hash}
            )
        except IntegrityError as e:
            raise constraint_error(
                e, f"Could not add file '{filename}' to directory {directory_id}"
            ) from e
        logger.debug(f"Added {file!r}")
        return file.id

    async def get_file(self, file_id: int) -> File:
        file = await self.file_repository.find_by_id(file_id)
        if file is None:
            raise FileEntryNotFoundError(f"File not found: {file_id}")
        return file

    async def get_file_by_name(self, filename: str) -> File:
        file = await self.file_repository.find_by_filename(filename)
        if file is None:
            raise FileEntryNotFoundError(f"File not found: {filename}")
        return file

    async def file_directory(self, file_id: int) -> Directory:
        """Get the directory that owns a file."""
        file = await self.get_file(file_id)
        return await self.get_directory(file.directory_id)

    async def directory_files(self, directory_id: int) -> Sequence[File]:
        await self.get_directory(directory_id)
        return await self.file_repository.find_by_directory(directory_id)

    async def directory_file(self, directory_id: int, filename: str) -> Optional[File]:
        return await self.file_repository.find_in_directory(directory_id, filename)

    async def list_files(self) -> Sequence[File]:
        return await self.file_repository.find_all()

    async def find_files_by_hash(self, content_hash: bytes) -> list[int]:
        """Get the ids of all files with this content hash, empty if none."""
        return await self.file_repository.find_ids_by_hash(self.validate_hash(content_hash))

    async def find_files_with_key(self, key: str, value: Optional[str] = None) -> Sequence[File]:
        """Find files carrying a metadata key, optionally with an exact value."""
        return await self.file_repository.find_with_key(key, value)

    async def find_duplicate_hashes(self) -> list[tuple[bytes, list[int]]]:
        """List every hash shared by more than one file, with the ids of those files."""
        return await self.file_repository.find_duplicate_hashes()

    async def delete_file(self, file_id: int, cascade: Optional[bool] = None) -> None:
        """Delete a file, and with cascade its metadata."""
        cascade = self.app_config.cascade_deletes if cascade is None else cascade

        if cascade:
            deleted = await self.file_repository.delete(file_id)
        else:
            deleted = await self.file_repository.delete_unreferenced(file_id)

        if not deleted:
            if not cascade and await self.file_repository.has_dependents(file_id):
                raise ForeignKeyViolation(f"File {file_id} still has metadata")
            raise FileEntryNotFoundError(f"File not found: {file_id}")

        logger.info(f"Deleted file {file_id} (cascade={cascade})")

    # Directory metadata

    async def set_directory_metadata(self, directory_id: int, key: str, value: str) -> Optional[str]:
        """Insert or replace a directory key. Returns the previous value."""
        try:
            return await self.directory_metadata_repository.set(directory_id, key, value)
        except IntegrityError as e:
            raise constraint_error(
                e, f"Could not set '{key}' on directory {directory_id}"
            ) from e

    async def get_directory_metadata(self, directory_id: int, key: str) -> Optional[str]:
        await self.get_directory(directory_id)
        return await self.directory_metadata_repository.get(directory_id, key)

    async def directory_metadata(self, directory_id: int) -> dict[str, str]:
        await self.get_directory(directory_id)
        return await self.directory_metadata_repository.get_all(directory_id)

    async def remove_directory_metadata(self, directory_id: int, key: str) -> Optional[str]:
        """Remove a directory key. Returns the removed value, None if it was not set."""
        await self.get_directory(directory_id)
        return await self.directory_metadata_repository.remove(directory_id, key)

    async def clear_directory_metadata(self, directory_id: int) -> int:
        await self.get_directory(directory_id)
        return await self.directory_metadata_repository.clear(directory_id)

    # File metadata

    async def set_file_metadata(self, file_id: int, key: str, value: str) -> Optional[str]:
        """Insert or replace a file key. Returns the previous value."""
        try:
            return await self.file_metadata_repository.set(file_id, key, value)
        except IntegrityError as e:
            raise constraint_error(e, f"Could not set '{key}' on file {file_id}") from e

    async def get_file_metadata(self, file_id: int, key: str) -> Optional[str]:
        await self.get_file(file_id)
        return await self.file_metadata_repository.get(file_id, key)

    async def file_metadata(self, file_id: int) -> dict[str, str]:
        await self.get_file(file_id)
        return await self.file_metadata_repository.get_all(file_id)

    async def remove_file_metadata(self, file_id: int, key: str) -> Optional[str]:
        """Remove a file key. Returns the removed value, None if it was not set."""
        await self.get_file(file_id)
        return await self.file_metadata_repository.remove(file_id, key)

    async def clear_file_metadata(self, file_id: int) -> int:
        await self.get_file(file_id)
        return await self.file_metadata_repository.clear(file_id)
