"""Email API endpoints (admin only).

Provides endpoints for:
- Checking email service status
- Sending the registration email for an existing certificate link
"""

from fastapi import APIRouter

from src.auth.dependencies import AdminSessionDep
from src.config import get_settings
from src.core.logging import get_logger

from .dependencies import EmailServiceDep
from .schemas import (
    EmailStatusResponse,
    SendEmailResponse,
    SendRegistrationEmailRequest,
)


logger = get_logger(__name__)

admin_router = APIRouter(
    prefix="/v1/admin/email",
    tags=["admin", "email"],
)


@admin_router.get(
    "/status",
    response_model=EmailStatusResponse,
    summary="Get email service status",
)
async def get_email_status(_: AdminSessionDep) -> EmailStatusResponse:
    """Whether email service is enabled and configured."""
    settings = get_settings()

    return EmailStatusResponse(
        enabled=settings.email_enabled,
        configured=settings.email_configured,
        sender_address=settings.email_sender_address
        if settings.email_configured
        else None,
    )


@admin_router.post(
    "/send-registration",
    response_model=SendEmailResponse,
    summary="Send registration email",
)
async def send_registration_email(
    request: SendRegistrationEmailRequest,
    admin: AdminSessionDep,
    email_service: EmailServiceDep,
) -> SendEmailResponse:
    """Send the registration email with a link the admin already holds.

    Delivery failures are reported in the response body, not as HTTP errors.
    """
    logger.info(
        "admin_registration_email_requested",
        registration_number=request.registration_number,
        admin=admin.username,
    )

    return await email_service.send_registration_email(
        to=request.to,
        name=request.full_name,
        registration_number=request.registration_number,
        mobile_no=request.mobile_no,
        course_name=request.course_name,
        access_link=request.view_link,
    )
