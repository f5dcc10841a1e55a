"""Directory commands for meta-catalog CLI."""

from typing import Optional

import typer
from rich.table import Table

from meta_catalog.cli.app import dir_app
from meta_catalog.cli.commands.command_utils import (
    console,
    get_catalog_service,
    get_database_path,
    run_catalog_command,
)
from meta_catalog.schemas import DirectoryResponse


async def add_directory(path: str, parents: bool) -> int:
    async with get_catalog_service(get_database_path()) as service:
        if parents:
            return await service.upsert_directory_tree(path)
        return await service.upsert_directory(path)


async def list_directories(key: Optional[str], value: Optional[str]) -> list[DirectoryResponse]:
    async with get_catalog_service(get_database_path()) as service:
        if key is not None:
            directories = await service.find_directories_with_key(key, value)
        else:
            directories = await service.list_directories()

        return [
            DirectoryResponse.model_validate(directory).model_copy(
                update={"key_values": await service.directory_metadata(directory.id)}
            )
            for directory in directories
        ]


async def remove_directory(path: str, strict: bool) -> None:
    async with get_catalog_service(get_database_path()) as service:
        directory = await service.get_directory_by_path(path)
        await service.delete_directory(directory.id, cascade=False if strict else None)


@dir_app.command("add")
def add(
    path: str = typer.Argument(..., help="Directory path, e.g. /music/albums"),
    parents: bool = typer.Option(
        False, "--parents", "-p", help="Also add every parent directory up to /"
    ),
):
    """Add a directory, printing its id."""
    directory_id = run_catalog_command(add_directory(path, parents))
    console.print(f"{directory_id}", highlight=False)


@dir_app.command("list")
def list_(
    key: Optional[str] = typer.Option(None, "--key", "-k", help="Only directories with this key"),
    value: Optional[str] = typer.Option(None, "--value", help="Only where --key has this value"),
):
    """List catalog directories and their metadata."""
    if value is not None and key is None:
        console.print("[red]✗ --value requires --key[/red]")
        raise typer.Exit(1)

    directories = run_catalog_command(list_directories(key, value))

    table = Table(title="Directories")
    table.add_column("id", justify="right")
    table.add_column("path")
    table.add_column("metadata")
    for directory in directories:
        pairs = ", ".join(f"{k}={v}" for k, v in directory.key_values.items())
        table.add_row(str(directory.id), directory.path, pairs)
    console.print(table)


@dir_app.command("rm")
def rm(
    path: str = typer.Argument(..., help="Directory path"),
    strict: bool = typer.Option(
        False, "--strict", help="Fail instead of deleting files and metadata with the directory"
    ),
):
    """Remove a directory."""
    run_catalog_command(remove_directory(path, strict))
    console.print(f"[green]✓ Removed {path}[/green]", soft_wrap=True)
