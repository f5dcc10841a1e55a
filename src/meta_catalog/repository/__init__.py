from .directory_repository import DirectoryRepository
from .file_repository import FileRepository
from .metadata_repository import DirectoryMetadataRepository, FileMetadataRepository
from .repository import Repository

__all__ = [
    "Repository",
    "DirectoryRepository",
    "FileRepository",
    "DirectoryMetadataRepository",
    "FileMetadataRepository",
]
