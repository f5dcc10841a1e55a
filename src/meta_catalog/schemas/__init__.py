"""Catalog schema exports.

Rather than importing from individual schema files, you can
import everything from meta_catalog.schemas.
"""

# Base types and parsing
from meta_catalog.schemas.base import (
    ContentHash,
    MetadataKey,
    MetadataAssignment,
    parse_hex_hash,
    parse_key_list,
)

# Response models
from meta_catalog.schemas.response import (
    SQLAlchemyModel,
    DirectoryResponse,
    FileResponse,
    DuplicateHashResponse,
)

__all__ = [
    # Base
    "ContentHash",
    "MetadataKey",
    "MetadataAssignment",
    "parse_hex_hash",
    "parse_key_list",
    # Responses
    "SQLAlchemyModel",
    "DirectoryResponse",
    "FileResponse",
    "DuplicateHashResponse",
]
