"""Admin endpoints for the registrant directory.

Endpoints (all require an admin session):
- POST /v1/admin/registrants - Register a person (multipart)
- GET /v1/admin/registrants - List registrants
- GET /v1/admin/registrants/{id} - Get one registrant
- PUT /v1/admin/registrants/{id} - Edit a registrant (multipart)
- DELETE /v1/admin/registrants/{id} - Delete a registrant
- POST /v1/admin/registrants/{id}/access-links - Generate a certificate link
"""

import asyncio
from datetime import timedelta
from uuid import UUID

from fastapi import APIRouter, File, HTTPException, Response, UploadFile, status

from src.access_links.dependencies import AccessGateServiceDep
from src.access_links.ledger import LedgerUnavailableError
from src.access_links.models import AccessLink, LinkSource
from src.access_links.service import AccessGateService, TokenCollisionError
from src.auth.dependencies import AdminSessionDep
from src.config.settings import get_settings
from src.core.logging import get_logger
from src.email.dependencies import OptionalEmailServiceDep
from src.email.service import EmailService
from src.storage.dependencies import StorageServiceDep
from src.storage.service import (
    FileTooLargeError,
    FirebaseStorageService,
    ImageKind,
    StorageError,
)

from .dependencies import (
    CreateFormDep,
    RegistrantServiceDep,
    UpdateFormDep,
    handle_registrant_error,
)
from .models import Registrant
from .schemas import (
    AccessLinkResponse,
    DeleteRegistrantResponse,
    GenerateLinkRequest,
    RegistrantListResponse,
    RegistrantResponse,
    RegistrationResultResponse,
)
from .service import RegistrantError, RegistrantNotFoundError


logger = get_logger(__name__)

router = APIRouter(prefix="/v1/admin/registrants", tags=["admin", "registrants"])


# ==============================================================================
# Helpers
# ==============================================================================


async def _read_image(
    storage: FirebaseStorageService,
    upload: UploadFile | None,
    field: str,
    required: bool = False,
) -> tuple[bytes, str, str | None] | None:
    """Read and validate an uploaded image.

    Returns:
        (content, content_type, filename), or None when nothing was sent

    Raises:
        HTTPException(400): If the file is missing, empty or not an image
        HTTPException(413): If the file is too large
    """
    if upload is None or not upload.filename:
        if required:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{field} is required",
            )
        return None

    content = await upload.read()
    content_type = upload.content_type or ""
    if not content or not content_type.startswith("image/"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{field} must be a non-empty image file",
        )

    try:
        actual_type = storage.validate_image(content, content_type)
    except FileTooLargeError as e:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=e.message,
        ) from e
    except StorageError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.message,
        ) from e

    return content, actual_type, upload.filename


async def _upload_images(
    storage: FirebaseStorageService,
    owner_key: str,
    images: dict[ImageKind, tuple[bytes, str, str | None] | None],
) -> dict[ImageKind, str]:
    """Upload images concurrently. A failed upload yields an empty URL."""
    pending = {kind: image for kind, image in images.items() if image is not None}
    results = await asyncio.gather(
        *(
            storage.upload_registrant_image(
                content=content,
                content_type=content_type,
                kind=kind,
                owner_key=owner_key,
                filename=filename,
            )
            for kind, (content, content_type, filename) in pending.items()
        ),
        return_exceptions=True,
    )

    urls: dict[ImageKind, str] = dict.fromkeys(images, "")
    for kind, result in zip(pending, results, strict=True):
        if isinstance(result, BaseException):
            logger.warning(
                "registrant_image_upload_failed",
                kind=kind.value,
                owner_key=owner_key,
                error=str(result),
                error_type=type(result).__name__,
            )
            continue
        urls[kind] = result
    return urls


async def _issue_admin_link(
    gate: AccessGateService, registration_number: str
) -> AccessLink:
    settings = get_settings()
    try:
        return await gate.issue(
            registration_number,
            ttl=timedelta(days=settings.access_admin_link_ttl_days),
            source=LinkSource.ADMIN,
        )
    except (LedgerUnavailableError, TokenCollisionError) as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Access link store unavailable",
        ) from e


async def _try_issue_admin_link(
    gate: AccessGateService, registration_number: str
) -> AccessLink | None:
    settings = get_settings()
    try:
        return await gate.issue(
            registration_number,
            ttl=timedelta(days=settings.access_admin_link_ttl_days),
            source=LinkSource.ADMIN,
        )
    except (LedgerUnavailableError, TokenCollisionError) as e:
        logger.warning(
            "registration_link_skipped",
            registration_number=registration_number,
            error=str(e),
            error_type=type(e).__name__,
        )
        return None


async def _get_or_404(service, registrant_id: UUID) -> Registrant:
    try:
        registrant = await service.get(registrant_id)
    except RegistrantError as e:
        raise handle_registrant_error(e) from e
    if registrant is None:
        raise handle_registrant_error(RegistrantNotFoundError())
    return registrant


async def _send_registration_email(
    email_service: EmailService | None,
    registrant: Registrant,
    link: AccessLink,
    profile_url: str,
) -> bool:
    if email_service is None:
        logger.info(
            "registration_email_skipped",
            registration_number=registrant.registration_number,
        )
        return False

    result = await email_service.send_registration_email(
        to=registrant.email_id,
        name=registrant.name,
        registration_number=registrant.registration_number,
        mobile_no=registrant.mobile_no,
        course_name=registrant.course_name,
        access_link=profile_url,
        expires_at=link.expires_at,
    )
    if not result.success:
        logger.warning(
            "registration_email_failed",
            registration_number=registrant.registration_number,
            error=result.error,
        )
    return result.success


# ==============================================================================
# Registration
# ==============================================================================


@router.post(
    "",
    response_model=RegistrationResultResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a person",
)
async def create_registrant(
    admin: AdminSessionDep,
    form: CreateFormDep,
    service: RegistrantServiceDep,
    gate: AccessGateServiceDep,
    storage: StorageServiceDep,
    email_service: OptionalEmailServiceDep,
    profile_photo: UploadFile | None = File(None, description="Profile photo"),
    qr_code: UploadFile | None = File(None, description="QR code image"),
) -> RegistrationResultResponse:
    """Register a person and send them their certificate link.

    Upload and email problems are logged but never fail the registration.
    """
    photo = await _read_image(storage, profile_photo, "profile_photo", required=True)
    qr = await _read_image(storage, qr_code, "qr_code")

    try:
        await service.check_available(form.email_id, form.mobile_no)
        registration_number = await service.allocate_registration_number()
    except RegistrantError as e:
        raise handle_registrant_error(e) from e

    urls = await _upload_images(
        storage,
        registration_number,
        {ImageKind.PHOTO: photo, ImageKind.QR_CODE: qr},
    )

    try:
        registrant = await service.create(
            form,
            photo_url=urls[ImageKind.PHOTO],
            qr_code_url=urls[ImageKind.QR_CODE],
            registration_number=registration_number,
        )
    except RegistrantError as e:
        raise handle_registrant_error(e) from e

    # Registrant is stored at this point: a missing link is reported, not raised
    link = await _try_issue_admin_link(gate, registrant.registration_number)
    profile_url = None
    email_sent = False
    if link is not None:
        profile_url = get_settings().profile_url(link.token)
        email_sent = await _send_registration_email(
            email_service, registrant, link, profile_url
        )

    logger.info(
        "registration_completed",
        registration_number=registrant.registration_number,
        admin=admin.username,
        link_issued=link is not None,
        email_sent=email_sent,
    )

    return RegistrationResultResponse(
        registrant=RegistrantResponse.from_registrant(registrant),
        profile_url=profile_url,
        link_issued=link is not None,
        email_sent=email_sent,
    )


# ==============================================================================
# Queries
# ==============================================================================


@router.get(
    "",
    response_model=RegistrantListResponse,
    summary="List registrants",
)
async def list_registrants(
    _: AdminSessionDep,
    response: Response,
    service: RegistrantServiceDep,
) -> RegistrantListResponse:
    """All registrants, newest first."""
    response.headers["Cache-Control"] = "no-store"

    try:
        registrants = await service.list_active()
    except RegistrantError as e:
        raise handle_registrant_error(e) from e

    return RegistrantListResponse(
        items=[RegistrantResponse.from_registrant(r) for r in registrants],
        total=len(registrants),
    )


@router.get(
    "/{registrant_id}",
    response_model=RegistrantResponse,
    summary="Get registrant",
)
async def get_registrant(
    registrant_id: UUID,
    _: AdminSessionDep,
    service: RegistrantServiceDep,
) -> RegistrantResponse:
    registrant = await _get_or_404(service, registrant_id)
    return RegistrantResponse.from_registrant(registrant)


# ==============================================================================
# Edit / Delete
# ==============================================================================


@router.put(
    "/{registrant_id}",
    response_model=RegistrantResponse,
    summary="Edit registrant",
)
async def update_registrant(
    registrant_id: UUID,
    admin: AdminSessionDep,
    form: UpdateFormDep,
    service: RegistrantServiceDep,
    storage: StorageServiceDep,
    profile_photo: UploadFile | None = File(None, description="New profile photo"),
    qr_code: UploadFile | None = File(None, description="New QR code image"),
) -> RegistrantResponse:
    """Apply a partial update. Images are replaced only when sent."""
    registrant = await _get_or_404(service, registrant_id)

    photo = await _read_image(storage, profile_photo, "profile_photo")
    qr = await _read_image(storage, qr_code, "qr_code")
    urls = await _upload_images(
        storage,
        registrant.registration_number,
        {ImageKind.PHOTO: photo, ImageKind.QR_CODE: qr},
    )

    try:
        updated = await service.update(
            registrant_id,
            form,
            photo_url=urls[ImageKind.PHOTO] or None,
            qr_code_url=urls[ImageKind.QR_CODE] or None,
        )
    except RegistrantError as e:
        raise handle_registrant_error(e) from e

    logger.info(
        "registrant_edited",
        registrant_id=str(registrant_id),
        admin=admin.username,
    )
    return RegistrantResponse.from_registrant(updated)


@router.delete(
    "/{registrant_id}",
    response_model=DeleteRegistrantResponse,
    summary="Delete registrant",
)
async def delete_registrant(
    registrant_id: UUID,
    admin: AdminSessionDep,
    service: RegistrantServiceDep,
) -> DeleteRegistrantResponse:
    try:
        registrant = await service.delete(registrant_id)
    except RegistrantError as e:
        raise handle_registrant_error(e) from e

    logger.info(
        "registrant_removed",
        registrant_id=str(registrant_id),
        admin=admin.username,
    )
    return DeleteRegistrantResponse(
        deleted_id=registrant.id,
        deleted_name=registrant.name,
    )


# ==============================================================================
# Access links
# ==============================================================================


@router.post(
    "/{registrant_id}/access-links",
    response_model=AccessLinkResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Generate certificate link",
)
async def generate_access_link(
    registrant_id: UUID,
    request: GenerateLinkRequest,
    admin: AdminSessionDep,
    service: RegistrantServiceDep,
    gate: AccessGateServiceDep,
    email_service: OptionalEmailServiceDep,
) -> AccessLinkResponse:
    """Issue a fresh link for a registrant, optionally emailing it."""
    registrant = await _get_or_404(service, registrant_id)
    link = await _issue_admin_link(gate, registrant.registration_number)
    public_url = get_settings().profile_url(link.token)

    email_sent = False
    if request.send_email and email_service is not None:
        result = await email_service.send_access_link_email(
            to=registrant.email_id,
            name=registrant.name,
            registration_number=registrant.registration_number,
            access_link=public_url,
            expires_at=link.expires_at,
        )
        email_sent = result.success
    elif request.send_email:
        logger.warning(
            "access_link_email_unavailable",
            registration_number=registrant.registration_number,
        )

    logger.info(
        "access_link_generated",
        registration_number=registrant.registration_number,
        admin=admin.username,
        email_sent=email_sent,
    )

    return AccessLinkResponse(
        token=link.token,
        public_url=public_url,
        registration_number=registrant.registration_number,
        expires_at=link.expires_at,
        email_sent=email_sent,
    )
