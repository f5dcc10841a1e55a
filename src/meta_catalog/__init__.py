"""meta-catalog - a catalog of directories, files, content hashes and metadata."""

__version__ = "0.1.0"
