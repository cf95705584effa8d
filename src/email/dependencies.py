"""FastAPI dependencies for the email service.

The service lives on app.state and is only present when email is enabled.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import EmailService


def get_optional_email_service(request: Request) -> EmailService | None:
    """EmailService from app state, or None when email is disabled."""
    return getattr(request.app.state, "email_service", None)


def get_email_service(
    email_service: Annotated[EmailService | None, Depends(get_optional_email_service)],
) -> EmailService:
    """EmailService from app state; 503 when email is disabled."""
    if email_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Email service not available",
        )
    return email_service


OptionalEmailServiceDep = Annotated[
    EmailService | None, Depends(get_optional_email_service)
]
EmailServiceDep = Annotated[EmailService, Depends(get_email_service)]
