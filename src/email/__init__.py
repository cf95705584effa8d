"""Email module for sending emails via Gmail API."""

from .schemas import (
    EmailRecipient,
    SendEmailRequest,
    SendEmailResponse,
    SendRegistrationEmailRequest,
)
from .service import EmailService


__all__ = [
    "EmailRecipient",
    "EmailService",
    "SendEmailRequest",
    "SendEmailResponse",
    "SendRegistrationEmailRequest",
]
