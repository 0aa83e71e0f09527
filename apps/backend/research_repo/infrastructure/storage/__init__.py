"""Adapters de infraestructura: Storage."""

from .errors import (
    StorageConfigurationError,
    StorageError,
    StorageNotFoundError,
    StoragePermissionError,
    StorageUnavailableError,
)
from .local_file_storage import LocalFileStorage, resolve_stored_path
from .s3_file_storage import S3Config, S3FileStorageAdapter

__all__ = [
    "LocalFileStorage",
    "resolve_stored_path",
    "S3Config",
    "S3FileStorageAdapter",
    "StorageError",
    "StorageConfigurationError",
    "StorageNotFoundError",
    "StoragePermissionError",
    "StorageUnavailableError",
]
