"""Access link models and Cassandra schema.

Provides:
- AccessLink entity (token -> registration number, used flag, expiry)
- Cassandra table definition for the access-link ledger
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from cassandra.cluster import Row


class LinkSource(str, Enum):
    """Who asked for the access link."""

    ADMIN = "admin"  # Generated from the admin panel or at registration
    SELF_LOGIN = "self_login"  # Registrant logged in with email + phone


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Token is the partition key so every gate operation is a single-partition
# read or lightweight transaction.
ACCESS_LINKS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.access_links (
    token TEXT PRIMARY KEY,
    registration_number TEXT,
    is_used BOOLEAN,
    source TEXT,
    created_at TIMESTAMP,
    expires_at TIMESTAMP,
    used_at TIMESTAMP
)
"""

ACCESS_LINKS_TABLES_CQL = [
    ACCESS_LINKS_TABLE_CQL,
]


# ==============================================================================
# Entity
# ==============================================================================


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive UTC values)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


@dataclass
class AccessLink:
    """A view token issued for one registrant."""

    token: str
    registration_number: str
    expires_at: datetime
    is_used: bool = False
    source: LinkSource = LinkSource.ADMIN
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    used_at: datetime | None = None

    @classmethod
    def from_row(cls, row: "Row") -> "AccessLink":
        """Create instance from Cassandra row."""
        return cls(
            token=row.token,
            registration_number=row.registration_number,
            is_used=bool(row.is_used),
            source=LinkSource(row.source) if row.source else LinkSource.ADMIN,
            created_at=ensure_utc_aware(row.created_at) or datetime.now(UTC),
            expires_at=ensure_utc_aware(row.expires_at),
            used_at=ensure_utc_aware(row.used_at),
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        """Expired once now reaches expires_at."""
        now = now or datetime.now(UTC)
        return now >= self.expires_at

    def is_valid(self, now: datetime | None = None) -> bool:
        """Valid iff not used and not expired."""
        return not self.is_used and not self.is_expired(now)
