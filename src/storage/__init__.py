"""Storage module for registrant image uploads to Firebase Storage."""

from src.storage.dependencies import StorageServiceDep, get_storage_service
from src.storage.service import (
    FileTooLargeError,
    FirebaseStorageService,
    ImageKind,
    InvalidContentTypeError,
    StorageError,
    StorageNotConfiguredError,
    StorageUploadError,
    StorageValidationError,
)


__all__ = [
    "FileTooLargeError",
    "FirebaseStorageService",
    "ImageKind",
    "InvalidContentTypeError",
    "StorageError",
    "StorageNotConfiguredError",
    "StorageServiceDep",
    "StorageUploadError",
    "StorageValidationError",
    "get_storage_service",
]
