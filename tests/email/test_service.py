"""Tests for EmailService (Gmail API mocked)."""

import base64
import email
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from googleapiclient.errors import HttpError

from src.email.schemas import EmailRecipient, SendEmailRequest
from src.email.service import ACCESS_LINK_SUBJECT, REGISTRATION_SUBJECT, EmailService


LINK = "https://certs.example.org/user/abc"


@pytest.fixture
def gmail() -> MagicMock:
    gmail = MagicMock()
    send = gmail.users.return_value.messages.return_value.send
    send.return_value.execute.return_value = {"id": "msg123", "threadId": "t1"}
    return gmail


@pytest.fixture
def email_service(gmail: MagicMock) -> EmailService:
    service = EmailService(
        credentials_path="/fake/path.json",
        sender_address="certificates@example.org",
    )
    service._get_service = MagicMock(return_value=gmail)
    return service


def _sent_message(gmail: MagicMock) -> email.message.Message:
    body = gmail.users.return_value.messages.return_value.send.call_args.kwargs["body"]
    return email.message_from_bytes(base64.urlsafe_b64decode(body["raw"]))


class TestSendEmail:
    @pytest.mark.asyncio
    async def test_success(self, email_service, gmail) -> None:
        result = await email_service.send_email(
            SendEmailRequest(
                to=[EmailRecipient(email="asha@example.com", name="Asha Verma")],
                subject="Hello",
                body_html="<p>Hello</p>",
                body_text="Hello",
            )
        )

        assert result.success is True
        assert result.message_id == "msg123"
        message = _sent_message(gmail)
        assert message["To"] == "Asha Verma <asha@example.com>"
        assert message["From"] == "Certificate System <certificates@example.org>"
        assert message.is_multipart()

    @pytest.mark.asyncio
    async def test_gmail_error_is_reported_not_raised(
        self, email_service, gmail
    ) -> None:
        send = gmail.users.return_value.messages.return_value.send
        send.return_value.execute.side_effect = HttpError(
            MagicMock(status=403, reason="Forbidden"), b"denied"
        )

        result = await email_service.send_simple_email(
            to="asha@example.com", subject="Hi", body_html="<p>Hi</p>"
        )

        assert result.success is False
        assert "Gmail API error" in result.error

    @pytest.mark.asyncio
    async def test_missing_credentials(self) -> None:
        service = EmailService(
            credentials_path="/definitely/missing.json",
            sender_address="certificates@example.org",
        )

        result = await service.send_simple_email(
            to="asha@example.com", subject="Hi", body_html="<p>Hi</p>"
        )

        assert result.success is False
        assert "credentials" in result.error


class TestDomainEmails:
    @pytest.fixture
    def mocked_send(self):
        with patch.object(EmailService, "_get_service"):
            service = EmailService(
                credentials_path="/fake/path.json",
                sender_address="certificates@example.org",
            )
            service.send_simple_email = AsyncMock(
                return_value=MagicMock(success=True, message_id="msg123")
            )
            return service

    @pytest.mark.asyncio
    async def test_registration_email(self, mocked_send) -> None:
        result = await mocked_send.send_registration_email(
            to="asha@example.com",
            name="Asha Verma",
            registration_number="MOH202512345",
            mobile_no="9876543210",
            course_name="D.Pharm",
            access_link=LINK,
        )

        assert result.success is True
        kwargs = mocked_send.send_simple_email.call_args.kwargs
        assert kwargs["to"] == "asha@example.com"
        assert kwargs["subject"] == REGISTRATION_SUBJECT
        assert LINK in kwargs["body_html"]
        assert "MOH202512345" in kwargs["body_text"]

    @pytest.mark.asyncio
    async def test_access_link_email(self, mocked_send) -> None:
        await mocked_send.send_access_link_email(
            to="asha@example.com",
            name="Asha Verma",
            registration_number="MOH202512345",
            access_link=LINK,
        )

        kwargs = mocked_send.send_simple_email.call_args.kwargs
        assert kwargs["subject"] == ACCESS_LINK_SUBJECT
        assert kwargs["to_name"] == "Asha Verma"
        assert LINK in kwargs["body_text"]
