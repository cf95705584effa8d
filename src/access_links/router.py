"""Public endpoints around access links.

Endpoints:
- POST /v1/user/login (Public) - Email + mobile number, returns a 24h link
- POST /v1/user/logout (Public) - Invalidate a link
- GET /v1/certificates/{token} (Public) - Certificate data for a valid link
"""

from datetime import timedelta

from fastapi import APIRouter, HTTPException, Response, status

from src.config.settings import get_settings
from src.core.logging import get_logger
from src.core.middleware import set_actor_context
from src.registrants.dependencies import RegistrantServiceDep
from src.registrants.schemas import CertificateView
from src.registrants.service import InvalidLoginError, RegistrantStoreError

from .dependencies import AccessGateServiceDep
from .ledger import LedgerUnavailableError
from .models import LinkSource
from .schemas import LogoutRequest, LogoutResponse, UserLoginRequest, UserLoginResponse


logger = get_logger(__name__)

router = APIRouter(prefix="/v1", tags=["access-links"])

NOT_FOUND_DETAIL = "Certificate not found or link expired"


def _unavailable(error: Exception) -> HTTPException:
    logger.error(
        "access_store_unavailable",
        error=str(error),
        error_type=type(error).__name__,
    )
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Service temporarily unavailable. Please try again.",
    )


@router.post(
    "/user/login",
    response_model=UserLoginResponse,
    summary="Registrant login",
    description="Log in with email and mobile number to receive a certificate link.",
)
async def user_login(
    request: UserLoginRequest,
    registrants: RegistrantServiceDep,
    gate: AccessGateServiceDep,
) -> UserLoginResponse:
    """Authenticate a registrant and issue a short-lived access link."""
    settings = get_settings()

    try:
        registrant = await registrants.authenticate(
            request.email, request.phone_number
        )
    except InvalidLoginError as e:
        logger.info("user_login_failed")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
        ) from e
    except RegistrantStoreError as e:
        raise _unavailable(e) from e

    set_actor_context(registrant.registration_number)

    try:
        link = await gate.issue(
            registrant.registration_number,
            ttl=timedelta(hours=settings.access_self_link_ttl_hours),
            source=LinkSource.SELF_LOGIN,
        )
    except LedgerUnavailableError as e:
        raise _unavailable(e) from e

    return UserLoginResponse(
        token=link.token,
        profile_link=settings.profile_url(link.token),
        registration_number=registrant.registration_number,
        expires_at=link.expires_at,
    )


@router.post(
    "/user/logout",
    response_model=LogoutResponse,
    summary="Registrant logout",
    description="Invalidate a certificate link so it can no longer be used.",
)
async def user_logout(
    request: LogoutRequest,
    gate: AccessGateServiceDep,
) -> LogoutResponse:
    """Invalidate the presented token."""
    try:
        invalidated = await gate.invalidate(request.token)
    except LedgerUnavailableError as e:
        raise _unavailable(e) from e

    if not invalidated:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Link not found",
        )

    return LogoutResponse()


@router.get(
    "/certificates/{token}",
    response_model=CertificateView,
    summary="View certificate",
    description="Certificate data for a valid access link.",
)
async def view_certificate(
    token: str,
    response: Response,
    registrants: RegistrantServiceDep,
    gate: AccessGateServiceDep,
) -> CertificateView:
    """Resolve the token and return the registrant's certificate.

    Unknown, used and expired links all yield the same 404.
    """
    response.headers["Cache-Control"] = "no-store"

    try:
        registration_number = await gate.resolve_view_token(token)
    except LedgerUnavailableError as e:
        raise _unavailable(e) from e

    if registration_number is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=NOT_FOUND_DETAIL,
        )

    try:
        registrant = await registrants.get_by_registration_number(
            registration_number
        )
    except RegistrantStoreError as e:
        raise _unavailable(e) from e

    if registrant is None:
        logger.warning(
            "certificate_registrant_missing",
            registration_number=registration_number,
        )
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=NOT_FOUND_DETAIL,
        )

    set_actor_context(registration_number)
    logger.info("certificate_viewed", registration_number=registration_number)

    return CertificateView.from_registrant(registrant)
