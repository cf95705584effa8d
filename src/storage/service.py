"""Firebase Storage service for registrant images.

Handles profile photo and QR code uploads with:
- Size and MIME type limits
- Magic bytes validation of the actual content
- Path generation and public URL creation
"""

import asyncio
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import quote

import structlog


if TYPE_CHECKING:
    from google.cloud.storage import Bucket

from src.config.settings import Settings
from src.utils.magic_bytes import check_image_content


logger = structlog.get_logger(__name__)

STORAGE_ROOT = "certregistry"


class ImageKind(str, Enum):
    """Kinds of registrant images, used as storage folder names."""

    PHOTO = "photo"
    QR_CODE = "qr_code"


class StorageError(Exception):
    """Base error for storage operations."""

    def __init__(self, message: str, code: str = "storage_error") -> None:
        self.message = message
        self.code = code
        super().__init__(message)


class StorageNotConfiguredError(StorageError):
    """Error when Firebase Storage is not configured."""

    def __init__(self, message: str = "Firebase Storage is not configured") -> None:
        super().__init__(message, "storage_not_configured")


class StorageUploadError(StorageError):
    """Error during file upload."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "upload_error")


class StorageValidationError(StorageError):
    """Error during file validation."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "validation_error")


class FileTooLargeError(StorageError):
    """Error when file exceeds size limit."""

    def __init__(self, size: int, max_size: int) -> None:
        message = (
            f"File size ({size / 1024 / 1024:.2f} MB) exceeds "
            f"maximum allowed ({max_size / 1024 / 1024:.2f} MB)"
        )
        super().__init__(message, "file_too_large")


class InvalidContentTypeError(StorageError):
    """Error when content type is not allowed."""

    def __init__(self, content_type: str, allowed: list[str]) -> None:
        message = f"Content type '{content_type}' is not allowed. Allowed: {', '.join(allowed)}"
        super().__init__(message, "invalid_content_type")


# Firebase app singleton
_firebase_app = None
_storage_bucket: "Bucket | None" = None


def _init_firebase(settings: Settings) -> "Bucket":
    """Initialize Firebase Admin SDK and get the storage bucket.

    Raises:
        StorageNotConfiguredError: If Firebase is not configured.
    """
    global _firebase_app, _storage_bucket  # noqa: PLW0603

    if _storage_bucket is not None:
        return _storage_bucket

    if not settings.firebase_configured:
        raise StorageNotConfiguredError

    # Lazy import to avoid loading Firebase SDK unless needed
    import firebase_admin  # noqa: PLC0415
    from firebase_admin import credentials, storage  # noqa: PLC0415

    creds_path = settings.firebase_credentials_path
    if creds_path and not Path(creds_path).is_absolute():
        project_root = Path(__file__).parent.parent.parent
        creds_path = str(project_root / creds_path)

    if not creds_path or not Path(creds_path).exists():
        raise StorageNotConfiguredError(
            f"Firebase credentials file not found: {creds_path}"
        )

    try:
        if _firebase_app is None:
            cred = credentials.Certificate(creds_path)
            _firebase_app = firebase_admin.initialize_app(
                cred,
                {
                    "storageBucket": settings.firebase_storage_bucket,
                    "projectId": settings.firebase_project_id,
                },
            )
            logger.info(
                "firebase_initialized",
                project_id=settings.firebase_project_id,
                bucket=settings.firebase_storage_bucket,
            )

        _storage_bucket = storage.bucket()
        return _storage_bucket

    except Exception as e:
        logger.exception("firebase_init_failed", error=str(e))
        raise StorageNotConfiguredError(f"Failed to initialize Firebase: {e}") from e


class FirebaseStorageService:
    """Uploads registrant images to Firebase Storage."""

    EXTENSION_MAP: dict[str, str] = {
        "image/jpeg": ".jpg",
        "image/png": ".png",
        "image/webp": ".webp",
        "image/gif": ".gif",
        "image/bmp": ".bmp",
        "image/avif": ".avif",
        "image/heic": ".heic",
    }

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._bucket: Bucket | None = None

    @property
    def is_configured(self) -> bool:
        return self.settings.firebase_configured

    @property
    def max_file_size(self) -> int:
        """Maximum file size in bytes."""
        return self.settings.upload_max_file_size_mb * 1024 * 1024

    @property
    def allowed_types(self) -> list[str]:
        return self.settings.upload_allowed_image_types

    def _get_bucket(self) -> "Bucket":
        if self._bucket is None:
            self._bucket = _init_firebase(self.settings)
        return self._bucket

    def build_storage_path(
        self,
        kind: ImageKind,
        owner_key: str,
        content_type: str,
        original_filename: str | None = None,
        now: datetime | None = None,
    ) -> str:
        """Build storage path for an image.

        Format: certregistry/{kind}/{owner_key}_{timestamp}{ext}
        """
        timestamp = (now or datetime.now(UTC)).strftime("%Y%m%d%H%M%S%f")

        ext = self.EXTENSION_MAP.get(content_type, "")
        if not ext and original_filename:
            ext = Path(original_filename).suffix.lower()

        return f"{STORAGE_ROOT}/{kind.value}/{owner_key}_{timestamp}{ext}"

    def public_url(self, storage_path: str) -> str:
        bucket_name = self.settings.firebase_storage_bucket
        encoded_path = "/".join(
            quote(part, safe="") for part in storage_path.split("/")
        )
        return f"https://storage.googleapis.com/{bucket_name}/{encoded_path}"

    def validate_image(self, content: bytes, content_type: str) -> str:
        """Check size, declared type and magic bytes.

        Returns:
            The content type detected from the bytes.

        Raises:
            FileTooLargeError: If file exceeds size limit.
            InvalidContentTypeError: If content type is not allowed.
            StorageValidationError: If the content is not an allowed image.
        """
        file_size = len(content)
        if file_size == 0:
            raise StorageValidationError("File is empty")
        if file_size > self.max_file_size:
            raise FileTooLargeError(file_size, self.max_file_size)

        if content_type not in self.allowed_types:
            raise InvalidContentTypeError(content_type, self.allowed_types)

        check = check_image_content(
            content, content_type, allowed_types=frozenset(self.allowed_types)
        )
        if not check.ok:
            logger.warning(
                "magic_bytes_validation_failed",
                declared_type=content_type,
                detected_type=check.detected_type,
                error=check.error,
            )
            raise StorageValidationError(check.error or "Invalid file content")

        return check.detected_type or content_type

    async def upload_registrant_image(
        self,
        content: bytes,
        content_type: str,
        kind: ImageKind,
        owner_key: str,
        filename: str | None = None,
    ) -> str:
        """Upload a profile photo or QR code and return its public URL.

        Raises:
            StorageNotConfiguredError: If Firebase is not configured.
            FileTooLargeError: If file exceeds size limit.
            InvalidContentTypeError: If content type is not allowed.
            StorageValidationError: If magic bytes validation fails.
            StorageUploadError: If upload fails.
        """
        if not self.is_configured:
            raise StorageNotConfiguredError

        actual_type = self.validate_image(content, content_type)
        storage_path = self.build_storage_path(
            kind=kind,
            owner_key=owner_key,
            content_type=actual_type,
            original_filename=filename,
        )

        def _upload() -> None:
            blob = self._get_bucket().blob(storage_path)
            blob.cache_control = "public, max-age=31536000, immutable"
            blob.upload_from_string(content, content_type=actual_type)
            blob.make_public()

        try:
            await asyncio.to_thread(_upload)
        except StorageError:
            raise
        except Exception as e:
            logger.exception(
                "upload_failed",
                storage_path=storage_path,
                error=str(e),
            )
            raise StorageUploadError(f"Failed to upload file: {e}") from e

        logger.info(
            "registrant_image_uploaded",
            storage_path=storage_path,
            kind=kind.value,
            content_type=actual_type,
            file_size=len(content),
        )
        return self.public_url(storage_path)
