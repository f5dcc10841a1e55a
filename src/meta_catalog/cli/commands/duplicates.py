"""Duplicate hash report for meta-catalog CLI."""

from typing import Optional

import typer
from rich.tree import Tree

from meta_catalog.cli.app import app
from meta_catalog.cli.commands.command_utils import (
    console,
    get_catalog_service,
    get_database_path,
    run_catalog_command,
)
from meta_catalog.schemas import DuplicateHashResponse, parse_hex_hash


async def find_duplicates(content_hash: Optional[bytes]) -> list[tuple[DuplicateHashResponse, list[str]]]:
    """Group files by shared hash, with their file names."""
    async with get_catalog_service(get_database_path()) as service:
        if content_hash is not None:
            groups = [(content_hash, await service.find_files_by_hash(content_hash))]
        else:
            groups = await service.find_duplicate_hashes()

        result = []
        for group_hash, file_ids in groups:
            if not file_ids:
                continue
            names = [(await service.get_file(file_id)).filename for file_id in file_ids]
            result.append((DuplicateHashResponse(hash=group_hash, file_ids=file_ids), names))
        return result


@app.command()
def dupes(
    content_hash: Optional[str] = typer.Argument(
        None, metavar="[HASH]", help="List files with this hash instead of every duplicate"
    ),
):
    """Show files that share a content hash."""
    hash_bytes = None
    if content_hash is not None:
        try:
            hash_bytes = parse_hex_hash(content_hash)
        except ValueError as e:
            console.print(f"[red]✗ {e}[/red]", soft_wrap=True)
            raise typer.Exit(1)

    groups = run_catalog_command(find_duplicates(hash_bytes))
    if not groups:
        console.print("No duplicates")
        return

    for group, names in groups:
        tree = Tree(f"[bold]{group.hash.hex()}[/bold]")
        for file_id, name in zip(group.file_ids, names):
            tree.add(f"{name} (id {file_id})")
        console.print(tree, soft_wrap=True)
