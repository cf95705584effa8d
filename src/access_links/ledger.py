# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Cassandra-backed ledger of issued access links.

Each operation is a single statement against the `access_links` partition
for one token. Inserts and invalidations are lightweight transactions, so
a colliding token is detected instead of silently overwritten and an
invalidation never creates a row.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from src.core.logging import get_logger

from .models import AccessLink


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


class LedgerUnavailableError(Exception):
    """Raised when the ledger store cannot be reached or rejects a query.

    Distinct from "token not valid": callers must not treat it as a miss.
    """

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error


def _was_applied(result) -> bool:
    """Read the [applied] column of a lightweight-transaction result."""
    return result is not None and bool(result.was_applied)


class AccessLinkLedger:
    """Persistence for AccessLink rows keyed by token."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session.

        Args:
            session: Cassandra session with aexecute support
            keyspace: Target keyspace
        """
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        self._insert_if_absent = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.access_links
            (token, registration_number, is_used, source, created_at, expires_at, used_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._get_by_token = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.access_links
            WHERE token = ?
        """)

        self._mark_used = self.session.prepare(f"""
            UPDATE {self.keyspace}.access_links
            SET is_used = true, used_at = ?
            WHERE token = ?
            IF EXISTS
        """)

    async def find_by_token(self, token: str) -> AccessLink | None:
        """Fetch the row for an exact token.

        Raises:
            LedgerUnavailableError: If the query fails
        """
        try:
            result = await self.session.aexecute(self._get_by_token, [token])
        except Exception as e:
            logger.exception(
                "ledger_error_find",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise LedgerUnavailableError(
                "Access link store unavailable", original_error=e
            ) from e

        rows = list(result) if result else []
        if not rows:
            return None
        return AccessLink.from_row(rows[0])

    async def insert(self, link: AccessLink) -> bool:
        """Insert a new row unless the token already exists.

        Returns:
            True if the row was written, False if the token was taken

        Raises:
            LedgerUnavailableError: If the write fails
        """
        try:
            result = await self.session.aexecute(
                self._insert_if_absent,
                [
                    link.token,
                    link.registration_number,
                    link.is_used,
                    link.source.value,
                    link.created_at,
                    link.expires_at,
                    link.used_at,
                ],
            )
        except Exception as e:
            logger.exception(
                "ledger_error_insert",
                registration_number=link.registration_number,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise LedgerUnavailableError(
                "Access link store unavailable", original_error=e
            ) from e

        return _was_applied(result)

    async def mark_used(self, token: str, used_at: datetime) -> bool:
        """Flag an existing row as used.

        Returns:
            False when no row exists for the token, True otherwise

        Raises:
            LedgerUnavailableError: If the write fails
        """
        try:
            result = await self.session.aexecute(self._mark_used, [used_at, token])
        except Exception as e:
            logger.exception(
                "ledger_error_mark_used",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise LedgerUnavailableError(
                "Access link store unavailable", original_error=e
            ) from e

        return _was_applied(result)
