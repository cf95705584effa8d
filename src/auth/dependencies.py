"""FastAPI dependencies for the admin session.

Admin routes require a signed session token in an httpOnly cookie. A
missing, tampered, expired or wrong-type token is rejected with 401.
"""

from datetime import UTC, datetime
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError

from src.auth.schemas import AdminSession
from src.auth.security import decode_admin_session_token
from src.config.settings import get_settings
from src.core.middleware import set_actor_context


def get_session_token_from_cookie(request: Request) -> str | None:
    """Extract the admin session token from its cookie."""
    settings = get_settings()
    return request.cookies.get(settings.admin_cookie_name)


async def require_admin_session(
    token: Annotated[str | None, Depends(get_session_token_from_cookie)],
) -> AdminSession:
    """Require a valid admin session.

    Raises:
        HTTPException(401): If the session is missing, invalid, or expired
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized access",
        )

    try:
        payload = decode_admin_session_token(token)
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session invalid or expired",
        ) from e

    set_actor_context(f"admin:{payload['sub']}")

    return AdminSession(
        username=payload["sub"],
        session_id=payload.get("jti"),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=UTC),
    )


AdminSessionDep = Annotated[AdminSession, Depends(require_admin_session)]
