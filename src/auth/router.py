"""Admin session endpoints.

Endpoints:
- POST /v1/admin/login - Exchange admin credentials for a session cookie
- POST /v1/admin/logout - Clear the session cookie
- GET /v1/admin/session - Current session details
"""

from fastapi import APIRouter, HTTPException, Response, status

from src.auth.dependencies import AdminSessionDep
from src.auth.schemas import (
    AdminLoginRequest,
    AdminLoginResponse,
    AdminSession,
    MessageResponse,
)
from src.auth.security import check_admin_credentials, create_admin_session_token
from src.config.settings import get_settings
from src.core.logging import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/v1/admin", tags=["admin-auth"])

COOKIE_PATH = "/"


@router.post(
    "/login",
    response_model=AdminLoginResponse,
    summary="Admin login",
)
async def admin_login(
    request: AdminLoginRequest,
    response: Response,
) -> AdminLoginResponse:
    """Check admin credentials and set the session cookie."""
    settings = get_settings()

    if not check_admin_credentials(request.username, request.password):
        logger.warning("admin_login_failed", username=request.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    token, expires_at = create_admin_session_token(request.username)

    response.set_cookie(
        key=settings.admin_cookie_name,
        value=token,
        httponly=True,
        secure=settings.admin_cookie_secure or settings.is_production,
        samesite=settings.admin_cookie_samesite,
        max_age=settings.admin_session_expire_hours * 60 * 60,
        path=COOKIE_PATH,
    )

    logger.info("admin_login_succeeded", username=request.username)

    return AdminLoginResponse(username=request.username, expires_at=expires_at)


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Admin logout",
)
async def admin_logout(response: Response) -> MessageResponse:
    """Clear the session cookie."""
    settings = get_settings()
    response.delete_cookie(key=settings.admin_cookie_name, path=COOKIE_PATH)
    return MessageResponse(message="Logged out")


@router.get(
    "/session",
    response_model=AdminSession,
    summary="Current admin session",
)
async def admin_session(session: AdminSessionDep) -> AdminSession:
    """Return the decoded session, or 401 when not logged in."""
    return session
