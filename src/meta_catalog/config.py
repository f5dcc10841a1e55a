"""Configuration management for meta-catalog."""

from pathlib import Path
from typing import Literal, Optional

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DATABASE_NAME = ".meta.db"
LOG_FILE_NAME = "meta.log"

Environment = Literal["test", "dev", "user"]


class CatalogConfig(BaseSettings):
    """Configuration for a meta-catalog installation."""

    env: Environment = Field(default="dev", description="Environment name")

    # Default to ~/.meta but allow override with env var
    home: Path = Field(
        default_factory=lambda: Path.home() / ".meta",
        description="Base path for meta-catalog logs",
    )

    database_path: Optional[Path] = Field(
        default=None,
        description="Explicit catalog database file. When unset the database is discovered.",
    )
    database_name: str = Field(
        default=DATABASE_NAME,
        description="File name searched for when discovering a catalog database",
    )

    log_level: str = "INFO"

    cascade_deletes: bool = Field(
        default=True,
        description="Delete dependent files and metadata together with their owner",
    )
    hash_length: Optional[int] = Field(
        default=32,
        description="Required content hash length in bytes, None accepts any length",
    )
    busy_timeout: float = Field(
        default=30.0,
        description="Seconds a connection waits for a locked database",
    )

    model_config = SettingsConfigDict(
        env_prefix="META_",
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    @field_validator("home", "database_path")
    @classmethod
    def expand_user(cls, v: Optional[Path]) -> Optional[Path]:
        """Expand a leading ~ in configured paths."""
        return v.expanduser() if v is not None else v

    @field_validator("hash_length")
    @classmethod
    def positive_hash_length(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v <= 0:
            raise ValueError("hash_length must be a positive number of bytes")
        return v

    @property
    def log_path(self) -> Path:
        """Get log file path."""
        return self.home / LOG_FILE_NAME

    def resolve_database_path(self, start: Optional[Path] = None) -> Optional[Path]:
        """Get the configured database, or discover one from ``start`` upwards."""
        if self.database_path is not None:
            return self.database_path
        return find_database(start or Path.cwd(), self.database_name)


def find_database(start: Path, database_name: str = DATABASE_NAME) -> Optional[Path]:
    """Walk up from ``start`` looking for a catalog database file.

    Directories that cannot be read are skipped. Returns None when the
    filesystem root is reached without a match.
    """
    current = start.resolve()
    for directory in (current, *current.parents):
        candidate = directory / database_name
        try:
            if candidate.is_file():
                logger.debug(f"Found catalog database at {candidate}")
                return candidate
        except PermissionError:
            logger.debug(f"Skipping unreadable directory {directory}")
            continue
    return None


# Load default config
config = CatalogConfig()
