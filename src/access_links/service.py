"""Access gate: issue, validate and invalidate certificate view tokens.

Lifecycle of a token::

    Unissued --issue--> Issued --invalidate--> Used

Expiry is not a stored state; it is evaluated against the clock on every
validation. Validation never changes the ledger, so a link can be opened
any number of times until it expires or the holder logs out.
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from src.core.logging import get_logger

from . import codec
from .models import AccessLink, LinkSource


if TYPE_CHECKING:
    from .ledger import AccessLinkLedger


logger = get_logger(__name__)

DEFAULT_MAX_ISSUE_ATTEMPTS = 5


class TokenCollisionError(Exception):
    """Raised when no free token could be found after several attempts."""


def _utc_now() -> datetime:
    return datetime.now(UTC)


class AccessGateService:
    """Issues and checks access links against the ledger."""

    def __init__(
        self,
        ledger: "AccessLinkLedger",
        clock: Callable[[], datetime] = _utc_now,
        max_issue_attempts: int = DEFAULT_MAX_ISSUE_ATTEMPTS,
        legacy_tokens_enabled: bool = True,
        legacy_max_age_days: int = codec.LEGACY_MAX_AGE_DAYS,
    ):
        self.ledger = ledger
        self.clock = clock
        self.max_issue_attempts = max_issue_attempts
        self.legacy_tokens_enabled = legacy_tokens_enabled
        self.legacy_max_age_days = legacy_max_age_days

    # ==========================================================================
    # Issue
    # ==========================================================================

    async def issue(
        self,
        registration_number: str,
        ttl: timedelta,
        source: LinkSource = LinkSource.ADMIN,
    ) -> AccessLink:
        """Create and persist a new access link.

        Args:
            registration_number: Durable identity of the registrant
            ttl: Lifetime of the link, must be positive
            source: Who requested the link

        Returns:
            The stored AccessLink

        Raises:
            ValueError: If ttl is not positive or the identity is empty
            TokenCollisionError: If every attempt hit an existing token
            LedgerUnavailableError: If the ledger cannot be written
        """
        if ttl <= timedelta(0):
            raise ValueError("ttl must be positive")
        if not registration_number:
            raise ValueError("registration_number must not be empty")

        for attempt in range(1, self.max_issue_attempts + 1):
            now = self.clock()
            link = AccessLink(
                token=codec.encode(
                    registration_number, timestamp_ms=int(now.timestamp() * 1000)
                ),
                registration_number=registration_number,
                source=source,
                created_at=now,
                expires_at=now + ttl,
            )
            if await self.ledger.insert(link):
                logger.info(
                    "access_link_issued",
                    registration_number=registration_number,
                    source=source.value,
                    expires_at=link.expires_at.isoformat(),
                    attempt=attempt,
                )
                return link

            logger.warning(
                "access_link_token_collision",
                registration_number=registration_number,
                attempt=attempt,
            )

        msg = "Unable to issue a unique access token after multiple attempts"
        raise TokenCollisionError(msg)

    # ==========================================================================
    # Validate
    # ==========================================================================

    async def find(self, token: str) -> AccessLink | None:
        """Return the ledger row for a token, whatever its state."""
        if not token:
            return None
        return await self.ledger.find_by_token(token)

    async def validate(self, token: str) -> str | None:
        """Return the registration number for a usable token.

        Returns None when the token is unknown, already used or expired.
        Does not modify the ledger.

        Raises:
            LedgerUnavailableError: If the ledger cannot be read
        """
        link = await self.find(token)
        if link is None:
            logger.debug("access_link_not_found")
            return None
        if link.is_used:
            logger.debug(
                "access_link_already_used",
                registration_number=link.registration_number,
            )
            return None
        if link.is_expired(self.clock()):
            logger.debug(
                "access_link_expired",
                registration_number=link.registration_number,
            )
            return None
        return link.registration_number

    async def resolve_view_token(self, token: str) -> str | None:
        """Resolve a token presented on the certificate page.

        Ledger rows always win. Only when the ledger has never seen the
        token, and legacy tokens are enabled, is the legacy JSON format
        decoded as a fallback. Delimited tokens without a row are rejected.
        """
        link = await self.find(token)
        if link is not None:
            if link.is_valid(self.clock()):
                return link.registration_number
            return None

        if not self.legacy_tokens_enabled:
            return None

        registration_number = codec.decode_legacy(
            token,
            max_age_days=self.legacy_max_age_days,
            now_ms=int(self.clock().timestamp() * 1000),
        )
        if registration_number is not None:
            logger.info(
                "legacy_token_accepted",
                registration_number=registration_number,
            )
        return registration_number

    # ==========================================================================
    # Invalidate
    # ==========================================================================

    async def invalidate(self, token: str) -> bool:
        """Mark a token as used so it can never validate again.

        Returns:
            False if no such token exists, True otherwise (also when it was
            already used)

        Raises:
            LedgerUnavailableError: If the ledger cannot be written
        """
        if not token:
            return False

        invalidated = await self.ledger.mark_used(token, self.clock())
        if invalidated:
            logger.info("access_link_invalidated")
        else:
            logger.info("access_link_invalidate_unknown_token")
        return invalidated
