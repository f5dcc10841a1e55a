"""Init command for meta-catalog CLI."""

import asyncio
from pathlib import Path

import typer
from loguru import logger

from meta_catalog import db
from meta_catalog.cli.app import app
from meta_catalog.cli.commands.command_utils import console
from meta_catalog.config import config


@app.command()
def init(
    directory: Path = typer.Argument(
        Path("."), help="Directory that will hold the catalog database"
    ),
):
    """Create a catalog database, or upgrade an existing one to the latest schema."""
    db_path = config.database_path or directory.expanduser().resolve() / config.database_name
    try:
        asyncio.run(asyncio.to_thread(db.run_migrations, db_path))
    except Exception as e:
        logger.error(f"Error initializing catalog: {e}")
        console.print(f"[red]✗ Could not initialize {db_path}: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓ Catalog ready at {db_path}[/green]", soft_wrap=True)
