"""Catalog models: directories, files and the metadata attached to them."""

from typing import List

from sqlalchemy import (
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from meta_catalog.models.base import Base
from meta_catalog.utils import ROOT_PATH

__all__ = ["Directory", "File", "DirectoryMetadata", "FileMetadata", "ROOT_PATH"]


class Directory(Base):
    """
    A directory tracked by the catalog.

    The root directory ("/") is seeded when the schema is created.
    """

    __tablename__ = "Directories"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    path: Mapped[str] = mapped_column(Text, nullable=False, unique=True, index=True)

    # Relationships. Deletes are left to the database (ON DELETE CASCADE)
    files: Mapped[List["File"]] = relationship(
        "File", back_populates="directory", cascade="all, delete-orphan", passive_deletes=True
    )
    metadata_entries: Mapped[List["DirectoryMetadata"]] = relationship(
        "DirectoryMetadata",
        back_populates="directory",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"Directory(id={self.id}, path='{self.path}')"


class File(Base):
    """
    A file tracked by the catalog.

    Filenames are unique across the whole table, not per directory.
    The hash column is indexed but not unique: files sharing a hash are duplicates.
    """

    __tablename__ = "Files"
    __table_args__ = (
        Index("ix_Files_directory_id", "directory_id"),
        Index("ix_Files_hash", "hash"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    directory_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("Directories.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    )
    filename: Mapped[str] = mapped_column(Text, nullable=False, unique=True, index=True)
    hash: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)

    # Relationships
    directory: Mapped[Directory] = relationship("Directory", back_populates="files")
    metadata_entries: Mapped[List["FileMetadata"]] = relationship(
        "FileMetadata", back_populates="file", cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def hex_hash(self) -> str:
        return self.hash.hex()

    def __repr__(self) -> str:
        return (
            f"File(id={self.id}, directory_id={self.directory_id}, "
            f"filename='{self.filename}', hash='{self.hex_hash}')"
        )


class DirectoryMetadata(Base):
    """A key/value pair attached to a directory."""

    __tablename__ = "DirectoryMetadata"
    __table_args__ = (
        UniqueConstraint("directory_id", "key", name="uix_directory_metadata_key"),
        Index("ix_DirectoryMetadata_key", "key"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    directory_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("Directories.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    )
    key: Mapped[str] = mapped_column(Text, nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)

    directory: Mapped[Directory] = relationship("Directory", back_populates="metadata_entries")

    def __repr__(self) -> str:
        return f"DirectoryMetadata(directory_id={self.directory_id}, key='{self.key}', value='{self.value}')"


class FileMetadata(Base):
    """A key/value pair attached to a file."""

    __tablename__ = "FileMetadata"
    __table_args__ = (
        UniqueConstraint("file_id", "key", name="uix_file_metadata_key"),
        Index("ix_FileMetadata_key", "key"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    file_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("Files.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    )
    key: Mapped[str] = mapped_column(Text, nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)

    file: Mapped[File] = relationship("File", back_populates="metadata_entries")

    def __repr__(self) -> str:
        return f"FileMetadata(file_id={self.file_id}, key='{self.key}', value='{self.value}')"
