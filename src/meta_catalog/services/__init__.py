"""Services package."""

from .catalog_service import CatalogService
from .exceptions import (
    CatalogError,
    ConstraintViolation,
    DatabaseBusyError,
    DirectoryNotFoundError,
    FileEntryNotFoundError,
    ForeignKeyViolation,
    InvalidHashError,
    InvalidPathError,
    NotFoundError,
    UniqueConstraintViolation,
)

__all__ = [
    "CatalogService",
    "CatalogError",
    "ConstraintViolation",
    "DatabaseBusyError",
    "UniqueConstraintViolation",
    "ForeignKeyViolation",
    "NotFoundError",
    "DirectoryNotFoundError",
    "FileEntryNotFoundError",
    "InvalidPathError",
    "InvalidHashError",
]
