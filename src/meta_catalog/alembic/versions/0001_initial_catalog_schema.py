"""Initial catalog schema

Revision ID: 0001
Revises:
Create Date: 2020-11-09 23:55:32.000000

"""

from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the first schema revision: hex hashes, no cascading deletes."""
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS Directories (
            id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT,
            path TEXT NOT NULL UNIQUE
        )
        """
    )
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS Files (
            id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT,
            directoryId INTEGER NOT NULL,
            filename TEXT NOT NULL UNIQUE,
            hash VARCHAR(64) NOT NULL,
            FOREIGN KEY (directoryId) REFERENCES Directories(id)
        )
        """
    )
    op.execute("CREATE INDEX IF NOT EXISTS idx_files_hash ON Files(hash)")
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS DirectoryMetadata (
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
        """
        CREATE TABLE IF NOT EXISTS FileMetadata (
            id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT,
            fileId INTEGER NOT NULL,
            key TEXT NOT NULL,
            value TEXT NOT NULL,
            UNIQUE(fileId, key),
            FOREIGN KEY (fileId) REFERENCES Files(id)
        )
        """
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS FileMetadata")
    op.execute("DROP TABLE IF EXISTS DirectoryMetadata")
    op.execute("DROP INDEX IF EXISTS idx_files_hash")
    op.execute("DROP TABLE IF EXISTS Files")
    op.execute("DROP TABLE IF EXISTS Directories")
