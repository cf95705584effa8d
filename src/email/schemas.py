"""Pydantic schemas for the email system.

Request/Response models for:
- Sending emails through the Gmail API
- Admin resend of the registration email
- Email service status
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class EmailRecipient(BaseModel):
    """Email recipient with optional name."""

    email: EmailStr = Field(..., description="Recipient email address")
    name: str | None = Field(None, description="Recipient display name")


class SendEmailRequest(BaseModel):
    """Request to send an email."""

    to: list[EmailRecipient] = Field(
        ..., min_length=1, max_length=50, description="Recipients (max 50)"
    )
    subject: str = Field(..., min_length=1, max_length=998, description="Email subject")
    body_html: str = Field(..., min_length=1, description="HTML body content")
    body_text: str | None = Field(None, description="Plain text body (fallback)")
    reply_to: EmailStr | None = Field(None, description="Reply-to address")


class SendEmailResponse(BaseModel):
    """Response after sending an email."""

    model_config = ConfigDict(from_attributes=True)

    success: bool = Field(..., description="Whether the email was sent successfully")
    message_id: str | None = Field(None, description="Gmail message ID")
    thread_id: str | None = Field(None, description="Gmail thread ID")
    error: str | None = Field(None, description="Error message if failed")


class SendRegistrationEmailRequest(BaseModel):
    """Send the registration email with an existing certificate link."""

    to: EmailStr = Field(..., description="Recipient email address")
    full_name: str = Field(..., min_length=1, max_length=200)
    view_link: str = Field(..., min_length=1, description="Certificate URL")
    registration_number: str = Field(default="", max_length=50)
    mobile_no: str = Field(default="", max_length=20)
    course_name: str = Field(default="", max_length=200)


class EmailStatusResponse(BaseModel):
    """Email service status."""

    enabled: bool = Field(..., description="Whether email service is enabled")
    configured: bool = Field(..., description="Whether email service is configured")
    sender_address: str | None = Field(None, description="Configured sender address")
