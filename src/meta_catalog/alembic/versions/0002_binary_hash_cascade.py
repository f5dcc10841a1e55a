"""Store hashes as bytes, cascade deletes, index path and filename, seed root

Revision ID: 0002
Revises: 0001
Create Date: 2020-11-22 18:04:11.000000

"""

from typing import Callable, Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0002"
down_revision: Union[str, None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TMP_PREFIX = "_migrate_tmp_"


def hex_to_bytes(value: str) -> bytes:
    """Decode a hex encoded hash from the first schema revision."""
    try:
        return bytes.fromhex(value)
    except ValueError as e:
        raise ValueError(f"Cannot convert hash {value!r} to bytes: {e}") from e


def bytes_to_hex(value: bytes) -> str:
    return bytes(value).hex()


def copy_files(
    connection, source_fk: str, target_fk: str, convert: Callable[..., Union[str, bytes]]
) -> None:
    """Copy Files rows into the temporary table, converting each hash."""
    rows = connection.execute(sa.text(f"SELECT id, {source_fk}, filename, hash FROM Files"))
    for row in rows.fetchall():
        connection.execute(
            sa.text(
                f"INSERT INTO {TMP_PREFIX}Files (id, {target_fk}, filename, hash) "
                "VALUES (:id, :owner_id, :filename, :hash)"
            ),
            {"id": row[0], "owner_id": row[1], "filename": row[2], "hash": convert(row[3])},
        )


def swap_tables(*names: str) -> None:
    """Replace each table with its rebuilt temporary copy."""
    for name in names:
        op.execute(f"DROP TABLE {name}")
    for name in names:
        op.execute(f"ALTER TABLE {TMP_PREFIX}{name} RENAME TO {name}")


def upgrade() -> None:
    """Rebuild Files and the metadata tables with cascading foreign keys."""
    connection = op.get_bind()

    op.execute(
        f"""
        CREATE TABLE {TMP_PREFIX}Files (
            id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT,
            directory_id INTEGER NOT NULL,
            filename TEXT NOT NULL,
            hash BLOB NOT NULL,
            FOREIGN KEY(directory_id) REFERENCES Directories (id) ON DELETE CASCADE ON UPDATE CASCADE
        )
        """
    )
    copy_files(connection, "directoryId", "directory_id", hex_to_bytes)

    op.execute(
        f"""
        CREATE TABLE {TMP_PREFIX}DirectoryMetadata (
            id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT,
            directory_id INTEGER NOT NULL,
            key TEXT NOT NULL,
            value TEXT NOT NULL,
            CONSTRAINT uix_directory_metadata_key UNIQUE (directory_id, key),
            FOREIGN KEY(directory_id) REFERENCES Directories (id) ON DELETE CASCADE ON UPDATE CASCADE
        )
        """
    )
    op.execute(
        f"INSERT INTO {TMP_PREFIX}DirectoryMetadata (id, directory_id, key, value) "
        "SELECT id, directoryId, key, value FROM DirectoryMetadata"
    )

    op.execute(
        f"""
        CREATE TABLE {TMP_PREFIX}FileMetadata (
            id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT,
            file_id INTEGER NOT NULL,
            key TEXT NOT NULL,
            value TEXT NOT NULL,
            CONSTRAINT uix_file_metadata_key UNIQUE (file_id, key),
            FOREIGN KEY(file_id) REFERENCES Files (id) ON DELETE CASCADE ON UPDATE CASCADE
        )
        """
    )
    op.execute(
        f"INSERT INTO {TMP_PREFIX}FileMetadata (id, file_id, key, value) "
        "SELECT id, fileId, key, value FROM FileMetadata"
    )

    swap_tables("FileMetadata", "DirectoryMetadata", "Files")

    op.execute("CREATE UNIQUE INDEX IF NOT EXISTS ix_Directories_path ON Directories (path)")
    op.execute("CREATE UNIQUE INDEX ix_Files_filename ON Files (filename)")
    op.execute("CREATE INDEX ix_Files_hash ON Files (hash)")
    op.execute("CREATE INDEX ix_Files_directory_id ON Files (directory_id)")
    op.execute("CREATE INDEX ix_DirectoryMetadata_key ON DirectoryMetadata (key)")
    op.execute("CREATE INDEX ix_FileMetadata_key ON FileMetadata (key)")

    op.execute("INSERT OR IGNORE INTO Directories (path) VALUES ('/')")


def downgrade() -> None:
    """Restore hex hashes and non-cascading foreign keys. The root row is kept."""
    connection = op.get_bind()

    op.execute(
        f"""
        CREATE TABLE {TMP_PREFIX}Files (
            id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT,
            directoryId INTEGER NOT NULL,
            filename TEXT NOT NULL UNIQUE,
            hash VARCHAR(64) NOT NULL,
            FOREIGN KEY (directoryId) REFERENCES Directories(id)
        )
        """
    )
    copy_files(connection, "directory_id", "directoryId", bytes_to_hex)

    op.execute(
        f"""
        CREATE TABLE {TMP_PREFIX}DirectoryMetadata (
            id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT,
            directoryId INTEGER NOT NULL,
            key TEXT NOT NULL,
            value TEXT NOT NULL,
            UNIQUE(directoryId, key),
            FOREIGN KEY (directoryId) REFERENCES Directories(id)
        )
        """
    )
    op.execute(
        f"INSERT INTO {TMP_PREFIX}DirectoryMetadata (id, directoryId, key, value) "
        "SELECT id, directory_id, key, value FROM DirectoryMetadata"
    )

    op.execute(
        f"""
        CREATE TABLE {TMP_PREFIX}FileMetadata (
            id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT,
            fileId INTEGER NOT NULL,
            key TEXT NOT NULL,
            value TEXT NOT NULL,
            UNIQUE(fileId, key),
            FOREIGN KEY (fileId) REFERENCES Files(id)
        )
        """
    )
    op.execute(
        f"INSERT INTO {TMP_PREFIX}FileMetadata (id, fileId, key, value) "
        "SELECT id, file_id, key, value FROM FileMetadata"
    )

    swap_tables("FileMetadata", "DirectoryMetadata", "Files")

    op.execute("DROP INDEX IF EXISTS ix_Directories_path")
    op.execute("CREATE INDEX idx_files_hash ON Files(hash)")
