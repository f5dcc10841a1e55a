"""Read models for catalog rows.

These wrap the SQLAlchemy models for display and serialization. Hashes are
rendered as lowercase hex. Metadata pairs are loaded separately and passed
in as ``key_values``.
"""

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field

from meta_catalog.schemas.base import ContentHash


class SQLAlchemyModel(BaseModel):
    """Base class for models that read from SQLAlchemy attributes."""

    model_config = ConfigDict(from_attributes=True)


class DirectoryResponse(SQLAlchemyModel):
    """A catalog directory.

    Example Response:
    {
        "id": 2,
        "path": "/music/albums",
        "key_values": {"owner": "sam"}
    }
    """

    id: int
    path: str
    key_values: Dict[str, str] = Field(default_factory=dict)


class FileResponse(SQLAlchemyModel):
    """A catalog file.

    Example Response:
    {
        "id": 7,
        "directory_id": 2,
        "filename": "track01.flac",
        "hash": "9f86d081884c7d659a2feaa0c55ad015a3bf4f1b2b0b822cd15d6c15b0f00a08",
        "key_values": {}
    }
    """

    id: int
    directory_id: int
    filename: str
    hash: ContentHash
    key_values: Dict[str, str] = Field(default_factory=dict)

    @property
    def hex_hash(self) -> str:
        return self.hash.hex()


class DuplicateHashResponse(BaseModel):
    """A content hash shared by several files."""

    hash: ContentHash
    file_ids: List[int]
