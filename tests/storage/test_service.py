"""Tests for FirebaseStorageService (Firebase itself is never contacted)."""

from datetime import UTC, datetime
from unittest.mock import MagicMock, patch

import pytest

from src.config.settings import Settings
from src.storage.service import (
    FileTooLargeError,
    FirebaseStorageService,
    ImageKind,
    InvalidContentTypeError,
    StorageNotConfiguredError,
    StorageUploadError,
    StorageValidationError,
)


PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def settings() -> Settings:
    return Settings(
        firebase_enabled=True,
        firebase_credentials_path="/fake/firebase.json",
        firebase_storage_bucket="certs-test.appspot.com",
        upload_max_file_size_mb=1,
    )


@pytest.fixture
def storage(settings: Settings) -> FirebaseStorageService:
    return FirebaseStorageService(settings)


class TestPaths:
    def test_build_storage_path(self, storage) -> None:
        path = storage.build_storage_path(
            kind=ImageKind.QR_CODE,
            owner_key="MOH202512345",
            content_type="image/png",
            now=datetime(2025, 6, 1, 12, 0, 0, 123456, tzinfo=UTC),
        )
        assert path == "certregistry/qr_code/MOH202512345_20250601120000123456.png"

    def test_extension_from_filename_when_type_unknown(self, storage) -> None:
        path = storage.build_storage_path(
            kind=ImageKind.PHOTO,
            owner_key="MOH202512345",
            content_type="image/x-unknown",
            original_filename="Me.JPEG",
        )
        assert path.endswith(".jpeg")

    def test_public_url(self, storage) -> None:
        url = storage.public_url("certregistry/photo/MOH 1.png")
        assert url == (
            "https://storage.googleapis.com/certs-test.appspot.com/"
            "certregistry/photo/MOH%201.png"
        )


class TestValidateImage:
    def test_valid_png(self, storage) -> None:
        assert storage.validate_image(PNG, "image/png") == "image/png"

    def test_empty(self, storage) -> None:
        with pytest.raises(StorageValidationError):
            storage.validate_image(b"", "image/png")

    def test_too_large(self, storage) -> None:
        with pytest.raises(FileTooLargeError):
            storage.validate_image(PNG + b"\x00" * (1024 * 1024), "image/png")

    def test_type_not_allowed(self, storage) -> None:
        with pytest.raises(InvalidContentTypeError):
            storage.validate_image(PNG, "image/tiff")

    def test_content_not_an_image(self, storage) -> None:
        with pytest.raises(StorageValidationError):
            storage.validate_image(b"<html>hello</html>", "image/png")


class TestUpload:
    @pytest.mark.asyncio
    async def test_not_configured(self) -> None:
        storage = FirebaseStorageService(Settings(firebase_enabled=False))
        with pytest.raises(StorageNotConfiguredError):
            await storage.upload_registrant_image(
                PNG, "image/png", ImageKind.PHOTO, "MOH202512345"
            )

    @pytest.mark.asyncio
    async def test_upload_returns_public_url(self, storage) -> None:
        bucket = MagicMock()
        with patch.object(storage, "_get_bucket", return_value=bucket):
            url = await storage.upload_registrant_image(
                PNG, "image/png", ImageKind.PHOTO, "MOH202512345", "me.png"
            )

        blob = bucket.blob.return_value
        blob.upload_from_string.assert_called_once_with(PNG, content_type="image/png")
        blob.make_public.assert_called_once()
        storage_path = bucket.blob.call_args.args[0]
        assert storage_path.startswith("certregistry/photo/MOH202512345_")
        assert url == storage.public_url(storage_path)

    @pytest.mark.asyncio
    async def test_upload_failure_is_wrapped(self, storage) -> None:
        bucket = MagicMock()
        bucket.blob.return_value.upload_from_string.side_effect = OSError("reset")
        with (
            patch.object(storage, "_get_bucket", return_value=bucket),
            pytest.raises(StorageUploadError),
        ):
            await storage.upload_registrant_image(
                PNG, "image/png", ImageKind.PHOTO, "MOH202512345"
            )
