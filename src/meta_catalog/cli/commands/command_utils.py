"""utility functions for commands"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncGenerator, Awaitable, Literal, TypeVar

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape

from meta_catalog import db
from meta_catalog.config import config
from meta_catalog.repository import (
    DirectoryMetadataRepository,
    DirectoryRepository,
    FileMetadataRepository,
    FileRepository,
)
from meta_catalog.services import CatalogError, CatalogService

console = Console()

T = TypeVar("T")


@dataclass(frozen=True)
class Target:
    """A directory or file addressed on the command line."""

    kind: Literal["directory", "file"]
    id: int
    name: str


def get_database_path() -> Path:
    """Locate an existing catalog database or exit with an error.

    Only `meta init` creates a database, so an explicit path must already exist.
    """
    db_path = config.resolve_database_path()
    if db_path is None:
        console.print(
            f"[red]✗ No {config.database_name} found in this directory or any parent. "
            "Run 'meta init' or pass --db.[/red]"
        )
        raise typer.Exit(1)
    if not db_path.exists():
        console.print(
            f"[red]✗ Catalog database {escape(str(db_path))} does not exist. "
            "Run 'meta init' first.[/red]"
        )
        raise typer.Exit(1)
    return db_path


@asynccontextmanager
async def get_catalog_service(db_path: Path) -> AsyncGenerator[CatalogService, None]:
    """Open the catalog database, migrated to the latest revision."""
    async with db.engine_session_factory(db_path=db_path, app_config=config) as (
        engine,
        session_maker,
    ):
        yield CatalogService(
            DirectoryRepository(session_maker),
            FileRepository(session_maker),
            DirectoryMetadataRepository(session_maker),
            FileMetadataRepository(session_maker),
            app_config=config,
        )


def run_catalog_command(coro: Awaitable[T]) -> T:
    """Run a command coroutine, reporting catalog errors with exit code 1."""
    try:
        return asyncio.run(coro)  # pyright: ignore [reportArgumentType]
    except (CatalogError, ValueError) as e:
        logger.error(f"Command failed: {e}")
        console.print(f"[red]✗ {escape(str(e))}[/red]", soft_wrap=True)
        raise typer.Exit(1)


async def resolve_target(service: CatalogService, name: str, is_dir: bool) -> Target:
    """Look up a filename, or a directory path when ``is_dir`` is set."""
    if is_dir:
        directory = await service.get_directory_by_path(name)
        return Target("directory", directory.id, directory.path)
    file = await service.get_file_by_name(name)
    return Target("file", file.id, file.filename)


async def expand_targets(service: CatalogService, target: Target, recursive: bool) -> list[Target]:
    """Expand a directory target to its subtree and the files in it."""
    if not recursive or target.kind != "directory":
        return [target]

    targets = []
    for directory in await service.directory_subtree(target.id):
        targets.append(Target("directory", directory.id, directory.path))
        for file in await service.directory_files(directory.id):
            targets.append(Target("file", file.id, file.filename))
    return targets


def print_pair(key: str, value: str) -> None:
    console.print(f"{escape(key)}={escape(value)}", soft_wrap=True, highlight=False)
