from pathlib import Path
from typing import Optional

import typer

from meta_catalog.config import config


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:  # pragma: no cover
        import meta_catalog

        typer.echo(f"meta-catalog version: {meta_catalog.__version__}")
        typer.echo(f"Database: {config.resolve_database_path() or 'not found'}")
        raise typer.Exit()


app = typer.Typer(name="meta", no_args_is_help=True)


@app.callback()
def app_callback(
    db: Optional[Path] = typer.Option(
        None,
        "--db",
        help="Catalog database file. Defaults to the nearest .meta.db above the working directory.",
        envvar="META_DATABASE_PATH",
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """meta - key/value metadata for files and directories."""
    # commands read the database location from the shared config
    config.database_path = db.expanduser() if db else None


# Register sub-command groups
dir_app = typer.Typer(help="Add, list and remove catalog directories", no_args_is_help=True)
app.add_typer(dir_app, name="dir")

file_app = typer.Typer(help="Add, list and remove catalog files", no_args_is_help=True)
app.add_typer(file_app, name="file")
