"""Email service using Gmail API with Service Account.

Uses domain-wide delegation to send emails on behalf of a Google Workspace user.
The service account must have domain-wide delegation enabled in Google Admin Console.

Required Google Admin Console setup:
1. Go to Security > Access and data control > API controls > Domain-wide delegation
2. Add the service account client_id with scope: https://www.googleapis.com/auth/gmail.send
"""

import asyncio
import base64
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path
from typing import TYPE_CHECKING

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from src.core.logging import get_logger

from .schemas import EmailRecipient, SendEmailRequest, SendEmailResponse
from .templates import render_access_link_email, render_registration_email


if TYPE_CHECKING:
    from googleapiclient._apis.gmail.v1 import GmailResource


logger = get_logger(__name__)

GMAIL_SCOPES = ["https://www.googleapis.com/auth/gmail.send"]

REGISTRATION_SUBJECT = "Registration Successful - Certificate System"
ACCESS_LINK_SUBJECT = "Your Certificate Link - Certificate System"


class EmailService:
    """Sends emails via Gmail API.

    Sending never raises: failures are logged and reported through
    SendEmailResponse.success, so callers can decide whether an email
    problem matters for their operation.
    """

    def __init__(
        self,
        credentials_path: str,
        sender_address: str,
        sender_name: str = "Certificate System",
    ):
        """Initialize Gmail API service.

        Args:
            credentials_path: Path to service account JSON file
            sender_address: Email address to send from (must be in Google Workspace)
            sender_name: Display name for sender
        """
        self.credentials_path = credentials_path
        self.sender_address = sender_address
        self.sender_name = sender_name
        self._service: GmailResource | None = None

        if not Path(credentials_path).exists():
            logger.warning(
                "email_credentials_not_found",
                path=credentials_path,
                message="Gmail API will not be available",
            )

    def _get_service(self) -> "GmailResource":
        """Get or create the Gmail API service (lazy).

        Raises:
            FileNotFoundError: If credentials file doesn't exist
        """
        if self._service is not None:
            return self._service

        credentials_file = Path(self.credentials_path)
        if not credentials_file.exists():
            msg = f"Credentials file not found: {self.credentials_path}"
            raise FileNotFoundError(msg)

        try:
            credentials = service_account.Credentials.from_service_account_file(
                str(credentials_file),
                scopes=GMAIL_SCOPES,
            )
            delegated_credentials = credentials.with_subject(self.sender_address)
            self._service = build(
                "gmail",
                "v1",
                credentials=delegated_credentials,
                cache_discovery=False,
            )
            logger.info("gmail_service_initialized", sender=self.sender_address)
            return self._service

        except Exception as e:
            logger.exception(
                "gmail_service_init_failed",
                error=str(e),
                credentials_path=self.credentials_path,
            )
            raise

    @staticmethod
    def _format_address(recipient: EmailRecipient) -> str:
        if recipient.name:
            return f"{recipient.name} <{recipient.email}>"
        return recipient.email

    def _create_message(self, request: SendEmailRequest) -> dict:
        """Create email message in Gmail API format (base64url 'raw')."""
        message = MIMEMultipart("alternative")
        message["From"] = f"{self.sender_name} <{self.sender_address}>"
        message["To"] = ", ".join(self._format_address(r) for r in request.to)
        message["Subject"] = request.subject
        if request.reply_to:
            message["Reply-To"] = request.reply_to

        # Plain text first, then HTML (clients prefer the last part)
        if request.body_text:
            message.attach(MIMEText(request.body_text, "plain", "utf-8"))
        message.attach(MIMEText(request.body_html, "html", "utf-8"))

        raw_message = base64.urlsafe_b64encode(message.as_bytes()).decode("utf-8")
        return {"raw": raw_message}

    async def send_email(self, request: SendEmailRequest) -> SendEmailResponse:
        """Send an email via Gmail API."""
        recipients = [r.email for r in request.to]
        try:
            service = self._get_service()
            message = self._create_message(request)
            result = await asyncio.to_thread(
                service.users().messages().send(userId="me", body=message).execute
            )

            logger.info(
                "email_sent",
                message_id=result.get("id"),
                thread_id=result.get("threadId"),
                to=recipients,
                subject=request.subject[:50],
            )
            return SendEmailResponse(
                success=True,
                message_id=result.get("id"),
                thread_id=result.get("threadId"),
            )

        except HttpError as e:
            logger.exception(
                "email_send_failed",
                error=str(e),
                to=recipients,
                subject=request.subject[:50],
            )
            return SendEmailResponse(success=False, error=f"Gmail API error: {e}")

        except FileNotFoundError as e:
            logger.error("email_credentials_missing", error=str(e))
            return SendEmailResponse(
                success=False,
                error="Email service not configured: credentials file missing",
            )

        except Exception as e:
            logger.exception("email_send_unexpected_error", error=str(e))
            return SendEmailResponse(success=False, error=f"Unexpected error: {e!s}")

    async def send_simple_email(
        self,
        to: str,
        subject: str,
        body_html: str,
        body_text: str | None = None,
        to_name: str | None = None,
    ) -> SendEmailResponse:
        """Send an email to a single recipient."""
        request = SendEmailRequest(
            to=[EmailRecipient(email=to, name=to_name)],
            subject=subject,
            body_html=body_html,
            body_text=body_text,
        )
        return await self.send_email(request)

    async def send_registration_email(
        self,
        to: str,
        name: str,
        registration_number: str,
        mobile_no: str,
        course_name: str,
        access_link: str,
        expires_at: datetime | None = None,
    ) -> SendEmailResponse:
        """Send the "Registration Successful" email with the certificate link."""
        body_html, body_text = render_registration_email(
            name=name,
            registration_number=registration_number,
            email_id=to,
            mobile_no=mobile_no,
            course_name=course_name,
            access_link=access_link,
            expires_at=expires_at,
        )
        return await self.send_simple_email(
            to=to,
            subject=REGISTRATION_SUBJECT,
            body_html=body_html,
            body_text=body_text,
            to_name=name,
        )

    async def send_access_link_email(
        self,
        to: str,
        name: str,
        registration_number: str,
        access_link: str,
        expires_at: datetime | None = None,
    ) -> SendEmailResponse:
        """Send a newly generated certificate link."""
        body_html, body_text = render_access_link_email(
            name=name,
            registration_number=registration_number,
            access_link=access_link,
            expires_at=expires_at,
        )
        return await self.send_simple_email(
            to=to,
            subject=ACCESS_LINK_SUBJECT,
            body_html=body_html,
            body_text=body_text,
            to_name=name,
        )
