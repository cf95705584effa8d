"""Access links: opaque, expiring tokens that open a registrant's certificate.

Provides:
- Token codec (current delimited format and legacy JSON format)
- Cassandra ledger of issued tokens
- Access gate service (issue / validate / invalidate)
"""

from .models import ACCESS_LINKS_TABLES_CQL, AccessLink, LinkSource
from .schemas import LogoutRequest, UserLoginRequest, UserLoginResponse


__all__ = [
    "ACCESS_LINKS_TABLES_CQL",
    "AccessLink",
    "LinkSource",
    "LogoutRequest",
    "UserLoginRequest",
    "UserLoginResponse",
]
