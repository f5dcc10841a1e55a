"""Models package for meta-catalog."""

from meta_catalog.models.base import Base
from meta_catalog.models.catalog import (
    ROOT_PATH,
    Directory,
    DirectoryMetadata,
    File,
    FileMetadata,
)

__all__ = [
    "Base",
    "Directory",
    "DirectoryMetadata",
    "File",
    "FileMetadata",
    "ROOT_PATH",
]
