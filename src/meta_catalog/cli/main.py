"""Main CLI entry point for meta-catalog."""  # pragma: no cover

from meta_catalog.cli.app import app  # pragma: no cover
from meta_catalog.config import LOG_FILE_NAME, config  # pragma: no cover
from meta_catalog.utils import setup_logging  # pragma: no cover

# Register commands
from meta_catalog.cli.commands import (  # pragma: no cover
    catalog,
    directory,
    duplicates,
    file,
    metadata,
)

__all__ = ["catalog", "directory", "duplicates", "file", "metadata"]  # pragma: no cover


# Set up logging when module is imported
setup_logging(
    env=config.env,
    home_dir=config.home,
    log_file=LOG_FILE_NAME,
    log_level=config.log_level,
    console_level="WARNING",
)  # pragma: no cover

if __name__ == "__main__":  # pragma: no cover
    app()
