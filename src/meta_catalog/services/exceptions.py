from sqlalchemy.exc import IntegrityError


class CatalogError(Exception):
    """Base class for catalog errors"""

    pass


class ConstraintViolation(CatalogError):
    """Raised when the storage engine rejects a write"""

    pass


class UniqueConstraintViolation(ConstraintViolation):
    """Raised when a path, filename or (owner, key) pair already exists"""

    pass


class ForeignKeyViolation(ConstraintViolation):
    """Raised when a referenced row is missing, or a strict delete finds dependents"""

    pass


class DatabaseBusyError(CatalogError):
    """Raised when another connection kept the database locked past the busy timeout"""

    pass


class NotFoundError(CatalogError):
    """Raised when a lookup yields no row"""

    pass


class DirectoryNotFoundError(NotFoundError):
    """Raised when a directory cannot be found"""

    pass


class FileEntryNotFoundError(NotFoundError):
    """Raised when a file cannot be found in the catalog"""

    pass


class InvalidPathError(CatalogError, ValueError):
    """Raised when a directory path is empty"""

    pass


class InvalidHashError(CatalogError, ValueError):
    """Raised when a content hash is not bytes of the configured length"""

    pass


def constraint_error(error: IntegrityError, context: str) -> ConstraintViolation:
    """Translate an SQLite integrity error into the catalog error taxonomy."""
    message = str(error.orig) if error.orig is not None else str(error)
    if "UNIQUE constraint failed" in message:
        return UniqueConstraintViolation(f"{context}: {message}")
    if "FOREIGN KEY constraint failed" in message:
        return ForeignKeyViolation(f"{context}: {message}")
    return ConstraintViolation(f"{context}: {message}")
