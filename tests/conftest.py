"""Common test fixtures."""

import os

# Keep the CLI's import-time logging setup away from the user's home
os.environ.setdefault("META_ENV", "test")

from pathlib import Path  # noqa: E402
from typing import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker  # noqa: E402

from meta_catalog import db  # noqa: E402
from meta_catalog.config import CatalogConfig  # noqa: E402
from meta_catalog.db import DatabaseType  # noqa: E402
from meta_catalog.models import Directory, File  # noqa: E402
from meta_catalog.repository import (  # noqa: E402
    DirectoryMetadataRepository,
    DirectoryRepository,
    FileMetadataRepository,
    FileRepository,
)
from meta_catalog.services import CatalogService  # noqa: E402


def make_hash(seed: int, length: int = 32) -> bytes:
    """Build a deterministic content hash for tests."""
    return bytes([seed % 256]) * length


@pytest.fixture
def project_root() -> Path:
    return Path(__file__).parent.parent


@pytest.fixture
def config_home(tmp_path, monkeypatch) -> Path:
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("META_HOME", str(tmp_path / ".meta"))
    return tmp_path


@pytest.fixture(scope="function")
def app_config(config_home) -> CatalogConfig:
    """Create test app configuration."""
    return CatalogConfig(env="test", home=config_home / ".meta")


@pytest_asyncio.fixture(scope="function")
async def engine_factory(
    app_config,
) -> AsyncGenerator[tuple[AsyncEngine, async_sessionmaker[AsyncSession]], None]:
    """Create a fresh in-memory database with the catalog schema and root directory."""
    async with db.engine_session_factory(
        db_path=None, db_type=DatabaseType.MEMORY, app_config=app_config
    ) as (engine, session_maker):
        yield engine, session_maker


@pytest_asyncio.fixture
async def session_maker(engine_factory) -> async_sessionmaker[AsyncSession]:
    """Get session maker for tests."""
    _, session_maker = engine_factory
    return session_maker


## Repositories


@pytest_asyncio.fixture(scope="function")
async def directory_repository(
    session_maker: async_sessionmaker[AsyncSession],
) -> DirectoryRepository:
    return DirectoryRepository(session_maker)


@pytest_asyncio.fixture(scope="function")
async def file_repository(session_maker: async_sessionmaker[AsyncSession]) -> FileRepository:
    return FileRepository(session_maker)


@pytest_asyncio.fixture(scope="function")
async def directory_metadata_repository(
    session_maker: async_sessionmaker[AsyncSession],
) -> DirectoryMetadataRepository:
    return DirectoryMetadataRepository(session_maker)


@pytest_asyncio.fixture(scope="function")
async def file_metadata_repository(
    session_maker: async_sessionmaker[AsyncSession],
) -> FileMetadataRepository:
    return FileMetadataRepository(session_maker)


## Services


@pytest_asyncio.fixture
async def catalog_service(
    directory_repository: DirectoryRepository,
    file_repository: FileRepository,
    directory_metadata_repository: DirectoryMetadataRepository,
    file_metadata_repository: FileMetadataRepository,
    app_config: CatalogConfig,
) -> CatalogService:
    """Create a CatalogService over the in-memory database."""
    return CatalogService(
        directory_repository,
        file_repository,
        directory_metadata_repository,
        file_metadata_repository,
        app_config=app_config,
    )


@pytest_asyncio.fixture
async def sample_directory(directory_repository: DirectoryRepository) -> Directory:
    """Create a sample directory."""
    directory_id = await directory_repository.upsert("/music")
    directory = await directory_repository.find_by_id(directory_id)
    assert directory is not None
    return directory


@pytest_asyncio.fixture
async def sample_file(file_repository: FileRepository, sample_directory: Directory) -> File:
    """Create a sample file in the sample directory."""
    return await file_repository.create(
        {"directory_id": sample_directory.id, "filename": "track01.flac", "hash": make_hash(1)}
    )
