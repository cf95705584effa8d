# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Registrant service layer.

Business logic for:
- Registering people with unique registration numbers
- Listing, editing and deleting registrants
- Looking registrants up for certificate rendering
- Registrant self-login (email + mobile number)
"""

import secrets
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from src.auth.security import hash_password, verify_password
from src.core.logging import get_logger

from .models import Registrant
from .schemas import RegistrantCreateForm, RegistrantUpdateForm


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)

REGISTRATION_SUFFIX_MIN = 10000
REGISTRATION_SUFFIX_MAX = 99999


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class RegistrantError(Exception):
    """Base registrant error."""

    def __init__(self, message: str, code: str = "registrant_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class RegistrantExistsError(RegistrantError):
    """Email or mobile number already registered."""

    def __init__(
        self,
        message: str = "Registrant already exists",
        field: str | None = None,
    ):
        super().__init__(message, "registrant_exists")
        self.field = field


class RegistrantNotFoundError(RegistrantError):
    """Registrant not found."""

    def __init__(self, message: str = "Registrant not found"):
        super().__init__(message, "registrant_not_found")


class InvalidLoginError(RegistrantError):
    """Email / mobile number pair did not match."""

    def __init__(self, message: str = "Invalid email or mobile number"):
        super().__init__(message, "invalid_credentials")


class RegistrationNumberUnavailableError(RegistrantError):
    """No free registration number could be drawn."""

    def __init__(
        self,
        message: str = "Unable to allocate a registration number, please retry",
    ):
        super().__init__(message, "registration_number_unavailable")


class RegistrantStoreError(RegistrantError):
    """Raised when a database operation fails."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message, "store_unavailable")
        self.original_error = original_error


def generate_registration_number(prefix: str, year: int | None = None) -> str:
    """Build a registration number such as MOH202512345."""
    year = year or datetime.now(UTC).year
    suffix = REGISTRATION_SUFFIX_MIN + secrets.randbelow(
        REGISTRATION_SUFFIX_MAX - REGISTRATION_SUFFIX_MIN + 1
    )
    return f"{prefix}{year}{suffix}"


# ==============================================================================
# Registrant Service
# ==============================================================================


class RegistrantService:
    """Registrant directory backed by Cassandra."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        registration_prefix: str = "MOH",
    ):
        """Initialize with Cassandra session.

        Args:
            session: Cassandra session with aexecute support
            keyspace: Keyspace name for queries
            registration_prefix: Prefix of generated registration numbers
        """
        self.session = session
        self.keyspace = keyspace
        self.registration_prefix = registration_prefix
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        self._insert = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.registrants
            (id, registration_number, registration_form_title, title, name,
             father_husband_name, mobile_no, email_id, date_of_birth,
             passout_percentage, state, address, course_name, experience,
             college_name, photo_url, qr_code_url, hashed_password,
             created_at, updated_at, deleted_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._get_by_id = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.registrants WHERE id = ?
        """)

        self._get_by_email = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.registrants WHERE email_id = ?
        """)

        self._get_by_mobile = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.registrants WHERE mobile_no = ?
        """)

        self._get_by_registration_number = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.registrants WHERE registration_number = ?
        """)

        self._list_all = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.registrants
        """)

        self._delete = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.registrants WHERE id = ?
        """)

    # ==========================================================================
    # Internal helpers
    # ==========================================================================

    async def _query(self, statement, params: list, event: str) -> list:
        """Run a statement and return its rows.

        Raises:
            RegistrantStoreError: If the query fails
        """
        try:
            result = await self.session.aexecute(statement, params)
        except Exception as e:
            logger.exception(
                event,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise RegistrantStoreError(
                "Registrant store unavailable", original_error=e
            ) from e
        return list(result) if result else []

    async def _first(self, statement, params: list, event: str) -> Registrant | None:
        rows = await self._query(statement, params, event)
        return Registrant.from_row(rows[0]) if rows else None

    async def _save(self, registrant: Registrant) -> None:
        await self._query(
            self._insert,
            [
                registrant.id,
                registrant.registration_number,
                registrant.registration_form_title,
                registrant.title,
                registrant.name,
                registrant.father_husband_name,
                registrant.mobile_no,
                registrant.email_id,
                registrant.date_of_birth.isoformat()
                if registrant.date_of_birth
                else None,
                registrant.passout_percentage,
                registrant.state,
                registrant.address,
                registrant.course_name,
                registrant.experience,
                registrant.college_name,
                registrant.photo_url,
                registrant.qr_code_url,
                registrant.hashed_password,
                registrant.created_at,
                registrant.updated_at,
                registrant.deleted_at,
            ],
            "database_error_save_registrant",
        )

    async def _ensure_unique_contact(
        self,
        email_id: str | None,
        mobile_no: str | None,
        exclude_id: UUID | None = None,
    ) -> None:
        """Reject an email or mobile number already used by another registrant."""
        if email_id:
            existing = await self.get_by_email(email_id)
            if existing and existing.id != exclude_id:
                raise RegistrantExistsError(field="email_id")
        if mobile_no:
            existing = await self._first(
                self._get_by_mobile, [mobile_no], "database_error_get_by_mobile"
            )
            if existing and existing.id != exclude_id:
                raise RegistrantExistsError(field="mobile_no")

    async def allocate_registration_number(self, max_attempts: int = 10) -> str:
        """Pick a registration number not yet assigned.

        Called before uploads so stored images can be keyed by it.

        Raises:
            RegistrationNumberUnavailableError: If every candidate was taken
        """
        for _ in range(max_attempts):
            candidate = generate_registration_number(self.registration_prefix)
            if await self.get_by_registration_number(candidate) is None:
                return candidate

        logger.warning("registration_number_exhausted", attempts=max_attempts)
        raise RegistrationNumberUnavailableError()

    # ==========================================================================
    # Registration
    # ==========================================================================

    async def check_available(self, email_id: str, mobile_no: str) -> None:
        """Raise RegistrantExistsError if the contact data is taken."""
        await self._ensure_unique_contact(email_id, mobile_no)

    async def create(
        self,
        form: RegistrantCreateForm,
        photo_url: str = "",
        qr_code_url: str = "",
        registration_number: str | None = None,
    ) -> Registrant:
        """Register a new person.

        The mobile number doubles as the login secret, so only its
        Argon2 hash is kept in hashed_password.

        Raises:
            RegistrantExistsError: If email or mobile is already registered
            RegistrantStoreError: If the store cannot be reached
        """
        await self._ensure_unique_contact(form.email_id, form.mobile_no)

        registration_number = (
            registration_number or await self.allocate_registration_number()
        )
        registrant = Registrant(
            registration_number=registration_number,
            hashed_password=hash_password(form.mobile_no),
            photo_url=photo_url,
            qr_code_url=qr_code_url,
            **form.model_dump(),
        )
        await self._save(registrant)

        logger.info(
            "registrant_created",
            registrant_id=str(registrant.id),
            registration_number=registration_number,
        )
        return registrant

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def get(self, registrant_id: UUID) -> Registrant | None:
        registrant = await self._first(
            self._get_by_id, [registrant_id], "database_error_get_registrant"
        )
        if registrant is None or registrant.is_deleted:
            return None
        return registrant

    async def get_by_email(self, email_id: str) -> Registrant | None:
        registrant = await self._first(
            self._get_by_email, [email_id.lower()], "database_error_get_by_email"
        )
        if registrant is None or registrant.is_deleted:
            return None
        return registrant

    async def get_by_registration_number(
        self, registration_number: str
    ) -> Registrant | None:
        """Look up the registrant a certificate token points to."""
        registrant = await self._first(
            self._get_by_registration_number,
            [registration_number],
            "database_error_get_by_registration_number",
        )
        if registrant is None or registrant.is_deleted:
            return None
        return registrant

    async def list_active(self) -> list[Registrant]:
        """All registrants that are not deleted, newest first."""
        rows = await self._query(self._list_all, [], "database_error_list_registrants")
        registrants = [Registrant.from_row(row) for row in rows]
        active = [r for r in registrants if not r.is_deleted]
        active.sort(key=lambda r: r.created_at, reverse=True)
        return active

    # ==========================================================================
    # Updates
    # ==========================================================================

    async def update(
        self,
        registrant_id: UUID,
        form: RegistrantUpdateForm,
        photo_url: str | None = None,
        qr_code_url: str | None = None,
    ) -> Registrant:
        """Apply a partial update.

        A new mobile number also replaces the password hash.

        Raises:
            RegistrantNotFoundError: If the registrant does not exist
            RegistrantExistsError: If new contact data belongs to someone else
        """
        registrant = await self.get(registrant_id)
        if registrant is None:
            raise RegistrantNotFoundError

        changes = form.changes()
        new_email = changes.get("email_id")
        new_mobile = changes.get("mobile_no")
        await self._ensure_unique_contact(
            new_email if new_email != registrant.email_id else None,
            new_mobile if new_mobile != registrant.mobile_no else None,
            exclude_id=registrant.id,
        )

        for key, value in changes.items():
            setattr(registrant, key, value)
        if "mobile_no" in changes:
            registrant.hashed_password = hash_password(changes["mobile_no"])
        if photo_url:
            registrant.photo_url = photo_url
        if qr_code_url:
            registrant.qr_code_url = qr_code_url
        registrant.updated_at = datetime.now(UTC)

        await self._save(registrant)

        logger.info(
            "registrant_updated",
            registrant_id=str(registrant.id),
            fields=sorted(changes),
        )
        return registrant

    async def delete(self, registrant_id: UUID) -> Registrant:
        """Permanently remove a registrant.

        Raises:
            RegistrantNotFoundError: If the registrant does not exist
        """
        registrant = await self.get(registrant_id)
        if registrant is None:
            raise RegistrantNotFoundError

        await self._query(
            self._delete, [registrant_id], "database_error_delete_registrant"
        )
        logger.info(
            "registrant_deleted",
            registrant_id=str(registrant_id),
            registration_number=registrant.registration_number,
        )
        return registrant

    # ==========================================================================
    # Self-login
    # ==========================================================================

    async def authenticate(self, email: str, phone_number: str) -> Registrant:
        """Check a registrant's email and mobile number.

        Raises:
            InvalidLoginError: If no registrant matches (same error either way)
        """
        registrant = await self.get_by_email(email)
        if registrant is None:
            raise InvalidLoginError

        is_valid, new_hash = verify_password(phone_number, registrant.hashed_password)
        if not is_valid:
            raise InvalidLoginError

        if new_hash:
            registrant.hashed_password = new_hash
            await self._save(registrant)

        return registrant
