"""Metadata commands for meta-catalog CLI: set, get and remove."""

from typing import List, Optional

import typer
from rich.markup import escape

from meta_catalog.cli.app import app
from meta_catalog.cli.commands.command_utils import (
    Target,
    console,
    expand_targets,
    get_catalog_service,
    get_database_path,
    print_pair,
    resolve_target,
    run_catalog_command,
)
from meta_catalog.schemas import MetadataAssignment, parse_key_list
from meta_catalog.services import CatalogService


async def set_value(service: CatalogService, target: Target, key: str, value: str) -> Optional[str]:
    if target.kind == "directory":
        return await service.set_directory_metadata(target.id, key, value)
    return await service.set_file_metadata(target.id, key, value)


async def get_values(service: CatalogService, target: Target) -> dict[str, str]:
    if target.kind == "directory":
        return await service.directory_metadata(target.id)
    return await service.file_metadata(target.id)


async def remove_value(service: CatalogService, target: Target, key: str) -> Optional[str]:
    if target.kind == "directory":
        return await service.remove_directory_metadata(target.id, key)
    return await service.remove_file_metadata(target.id, key)


async def clear_values(service: CatalogService, target: Target) -> int:
    if target.kind == "directory":
        return await service.clear_directory_metadata(target.id)
    return await service.clear_file_metadata(target.id)


async def run_set(
    name: str, assignments: list[MetadataAssignment], is_dir: bool, recursive: bool
) -> list[tuple[Target, str, Optional[str], str]]:
    changes = []
    async with get_catalog_service(get_database_path()) as service:
        target = await resolve_target(service, name, is_dir)
        for item in await expand_targets(service, target, recursive):
            for assignment in assignments:
                previous = await set_value(service, item, assignment.key, assignment.value)
                changes.append((item, assignment.key, previous, assignment.value))
    return changes


async def run_get(name: str, keys: list[str], is_dir: bool) -> dict[str, Optional[str]]:
    async with get_catalog_service(get_database_path()) as service:
        target = await resolve_target(service, name, is_dir)
        values = await get_values(service, target)
    if not keys:
        return dict(values)
    return {key: values.get(key) for key in keys}


async def run_remove(
    name: str, keys: list[str], remove_all: bool, is_dir: bool, recursive: bool
) -> list[tuple[Target, str, Optional[str]]]:
    removed = []
    async with get_catalog_service(get_database_path()) as service:
        target = await resolve_target(service, name, is_dir)
        for item in await expand_targets(service, target, recursive):
            if remove_all:
                count = await clear_values(service, item)
                removed.append((item, "*", str(count)))
                continue
            for key in keys:
                removed.append((item, key, await remove_value(service, item, key)))
    return removed


@app.command("set")
def set_(
    target: str = typer.Argument(..., help="File name, or directory path with --dir"),
    assignments: List[str] = typer.Argument(..., help="One or more key=value assignments"),
    is_dir: bool = typer.Option(False, "--dir", "-d", help="TARGET is a directory path"),
    recursive: bool = typer.Option(
        False, "--recursive", "-r", help="Also apply to subdirectories and their files"
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Print nothing on success"),
):
    """Set the value associated with one or more keys."""
    try:
        parsed = [MetadataAssignment.parse(assignment) for assignment in assignments]
    except ValueError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]", soft_wrap=True)
        raise typer.Exit(1)

    changes = run_catalog_command(run_set(target, parsed, is_dir, recursive))
    if quiet:
        return
    for item, key, previous, value in changes:
        was = f" (was {escape(previous)})" if previous is not None else ""
        console.print(
            f"{escape(item.name)}: {escape(key)}={escape(value)}{was}",
            soft_wrap=True,
            highlight=False,
        )


@app.command()
def get(
    target: str = typer.Argument(..., help="File name, or directory path with --dir"),
    keys: Optional[List[str]] = typer.Argument(
        None, help="Keys to print, comma or space separated. All keys when omitted."
    ),
    is_dir: bool = typer.Option(False, "--dir", "-d", help="TARGET is a directory path"),
):
    """Print key/value pairs."""
    try:
        key_list = parse_key_list(keys or [])
    except ValueError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]", soft_wrap=True)
        raise typer.Exit(1)

    values = run_catalog_command(run_get(target, key_list, is_dir))
    for key, value in values.items():
        if value is None:
            console.print(f"[yellow]{escape(key)} is not set[/yellow]", soft_wrap=True)
        else:
            print_pair(key, value)


@app.command()
def remove(
    target: str = typer.Argument(..., help="File name, or directory path with --dir"),
    keys: Optional[List[str]] = typer.Argument(None, help="Keys to remove, comma or space separated"),
    remove_all: bool = typer.Option(False, "--all", "-a", help="Remove every key"),
    is_dir: bool = typer.Option(False, "--dir", "-d", help="TARGET is a directory path"),
    recursive: bool = typer.Option(
        False, "--recursive", "-r", help="Also apply to subdirectories and their files"
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Print nothing on success"),
):
    """Remove metadata keys."""
    try:
        key_list = parse_key_list(keys or [])
    except ValueError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]", soft_wrap=True)
        raise typer.Exit(1)

    if not key_list and not remove_all:
        console.print("[red]✗ Give at least one key, or --all[/red]")
        raise typer.Exit(1)

    removed = run_catalog_command(run_remove(target, key_list, remove_all, is_dir, recursive))
    if quiet:
        return
    for item, key, previous in removed:
        if remove_all:
            console.print(f"{escape(item.name)}: removed {previous} keys", soft_wrap=True)
        elif previous is None:
            console.print(f"[yellow]{escape(item.name)}: {escape(key)} was not set[/yellow]", soft_wrap=True)
        else:
            console.print(
                f"{escape(item.name)}: removed {escape(key)}={escape(previous)}",
                soft_wrap=True,
                highlight=False,
            )
