"""File commands for meta-catalog CLI."""

from typing import Optional

import typer
from rich.table import Table

from meta_catalog.cli.app import file_app
from meta_catalog.cli.commands.command_utils import (
    console,
    get_catalog_service,
    get_database_path,
    run_catalog_command,
)
from meta_catalog.schemas import FileResponse, parse_hex_hash


async def add_file(directory: str, filename: str, content_hash: bytes) -> int:
    async with get_catalog_service(get_database_path()) as service:
        owner = await service.get_directory_by_path(directory)
        return await service.upsert_file(owner.id, filename, content_hash)


async def list_files(
    directory: Optional[str], key: Optional[str], value: Optional[str]
) -> list[FileResponse]:
    async with get_catalog_service(get_database_path()) as service:
        if directory is not None:
            owner = await service.get_directory_by_path(directory)
            files = await service.directory_files(owner.id)
        elif key is not None:
            files = await service.find_files_with_key(key, value)
        else:
            files = await service.list_files()

        responses = []
        for file in files:
            key_values = await service.file_metadata(file.id)
            if key is not None and directory is not None:
                # narrow the directory listing by metadata
                if key not in key_values or (value is not None and key_values[key] != value):
                    continue
            responses.append(
                FileResponse.model_validate(file).model_copy(update={"key_values": key_values})
            )
        return responses


async def remove_file(filename: str, strict: bool) -> None:
    async with get_catalog_service(get_database_path()) as service:
        file = await service.get_file_by_name(filename)
        await service.delete_file(file.id, cascade=False if strict else None)


@file_app.command("add")
def add(
    directory: str = typer.Argument(..., help="Path of the owning directory"),
    filename: str = typer.Argument(..., help="File name, unique across the catalog"),
    content_hash: str = typer.Argument(..., metavar="HASH", help="Content hash as hex"),
):
    """Add a file to a directory, printing its id."""
    try:
        hash_bytes = parse_hex_hash(content_hash)
    except ValueError as e:
        console.print(f"[red]✗ {e}[/red]", soft_wrap=True)
        raise typer.Exit(1)

    file_id = run_catalog_command(add_file(directory, filename, hash_bytes))
    console.print(f"{file_id}", highlight=False)


@file_app.command("list")
def list_(
    directory: Optional[str] = typer.Argument(None, help="Only files in this directory"),
    key: Optional[str] = typer.Option(None, "--key", "-k", help="Only files with this key"),
    value: Optional[str] = typer.Option(None, "--value", help="Only where --key has this value"),
):
    """List catalog files and their metadata."""
    if value is not None and key is None:
        console.print("[red]✗ --value requires --key[/red]")
        raise typer.Exit(1)

    files = run_catalog_command(list_files(directory, key, value))

    table = Table(title="Files")
    table.add_column("id", justify="right")
    table.add_column("directory", justify="right")
    table.add_column("filename")
    table.add_column("hash")
    table.add_column("metadata")
    for file in files:
        pairs = ", ".join(f"{k}={v}" for k, v in file.key_values.items())
        table.add_row(str(file.id), str(file.directory_id), file.filename, file.hex_hash[:12], pairs)
    console.print(table)


@file_app.command("rm")
def rm(
    filename: str = typer.Argument(..., help="File name"),
    strict: bool = typer.Option(
        False, "--strict", help="Fail instead of deleting metadata with the file"
    ),
):
    """Remove a file."""
    run_catalog_command(remove_file(filename, strict))
    console.print(f"[green]✓ Removed {filename}[/green]", soft_wrap=True)
