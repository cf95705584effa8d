"""Security utilities.

Provides:
- Secret hashing with Argon2id (registrant login uses the mobile number)
- Admin credential check in constant time
- Signed, expiring admin session tokens (JWT)
"""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from jose import JWTError, jwt

from src.config.settings import get_settings


ADMIN_SESSION_TOKEN_TYPE = "admin_session"

# Argon2id configuration (OWASP recommended parameters)
_password_hasher = PasswordHasher(
    time_cost=2,
    memory_cost=19456,  # 19 MiB
    parallelism=1,
    hash_len=32,
    salt_len=16,
)


def hash_password(password: str) -> str:
    """Hash a secret using Argon2id.

    The returned hash includes the algorithm parameters and salt.

    Example:
        >>> hash_password("9876543210").startswith("$argon2id$")
        True
    """
    return _password_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> tuple[bool, str | None]:
    """Verify a secret against its hash.

    Returns:
        Tuple of (is_valid, new_hash) where new_hash is set when the stored
        hash uses outdated parameters and should be replaced.
    """
    try:
        _password_hasher.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False, None

    if _password_hasher.check_needs_rehash(password_hash):
        return True, hash_password(password)
    return True, None


def check_admin_credentials(username: str, password: str) -> bool:
    """Compare against the configured admin account in constant time."""
    settings = get_settings()
    username_ok = secrets.compare_digest(
        username.encode("utf-8"), settings.admin_username.encode("utf-8")
    )
    password_ok = secrets.compare_digest(
        password.encode("utf-8"), settings.admin_password.encode("utf-8")
    )
    return username_ok and password_ok


def create_admin_session_token(
    username: str,
    expires_delta: timedelta | None = None,
) -> tuple[str, datetime]:
    """Create a signed admin session token.

    Token payload:
        - sub: admin username
        - type: "admin_session"
        - jti: unique identifier
        - iat / exp: issue and expiry timestamps

    Returns:
        Tuple of (token_string, expires_at)
    """
    settings = get_settings()

    now = datetime.now(UTC)
    expires_at = now + (
        expires_delta or timedelta(hours=settings.admin_session_expire_hours)
    )
    payload = {
        "sub": username,
        "type": ADMIN_SESSION_TOKEN_TYPE,
        "jti": str(uuid4()),
        "iat": now,
        "exp": expires_at,
    }
    token = jwt.encode(
        payload,
        settings.admin_session_secret_key,
        algorithm=settings.admin_session_algorithm,
    )
    return token, expires_at


def decode_admin_session_token(token: str) -> dict[str, Any]:
    """Decode and validate an admin session token.

    Validates signature, expiry and token type.

    Raises:
        JWTError: If token is invalid, expired, or wrong type
    """
    settings = get_settings()

    payload = jwt.decode(
        token,
        settings.admin_session_secret_key,
        algorithms=[settings.admin_session_algorithm],
    )

    if payload.get("type") != ADMIN_SESSION_TOKEN_TYPE:
        msg = "Invalid token type: expected 'admin_session'"
        raise JWTError(msg)
    if not payload.get("sub"):
        msg = "Admin session token missing subject"
        raise JWTError(msg)

    return payload
