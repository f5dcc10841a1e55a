"""CLI commands for meta-catalog."""

from . import catalog, directory, duplicates, file, metadata

__all__ = ["catalog", "directory", "duplicates", "file", "metadata"]
