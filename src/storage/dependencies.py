"""Dependencies for storage module."""

from typing import Annotated

from fastapi import Depends

from src.config.settings import Settings, get_settings
from src.storage.service import FirebaseStorageService


_storage_service: FirebaseStorageService | None = None


def get_storage_service(
    settings: Annotated[Settings, Depends(get_settings)],
) -> FirebaseStorageService:
    """Get the shared storage service instance."""
    global _storage_service  # noqa: PLW0603

    if _storage_service is None:
        _storage_service = FirebaseStorageService(settings)

    return _storage_service


StorageServiceDep = Annotated[FirebaseStorageService, Depends(get_storage_service)]
