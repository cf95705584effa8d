"""Certificate Registry API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.access_links.ledger import AccessLinkLedger
from src.access_links.router import router as access_links_router
from src.access_links.service import AccessGateService
from src.auth.router import router as auth_router
from src.config import get_settings
from src.core.context import get_request_id
from src.core.database import init_async_cassandra, shutdown_async_cassandra
from src.core.logging import configure_structlog, get_logger
from src.core.middleware import RequestContextMiddleware
from src.email.router import admin_router as email_admin_router
from src.email.service import EmailService
from src.health import router as health_router
from src.registrants.router import router as registrants_router
from src.registrants.service import RegistrantService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


# Application state for dependency injection
class AppState:
    """Application state container."""

    cassandra_session: Any = None
    registrant_service: RegistrantService | None = None
    access_gate_service: AccessGateService | None = None
    email_service: EmailService | None = None


app_state = AppState()


def get_registrant_service() -> RegistrantService:
    """Get RegistrantService instance from app state."""
    if app_state.registrant_service is None:
        msg = "RegistrantService not initialized"
        raise RuntimeError(msg)
    return app_state.registrant_service


def get_access_gate_service() -> AccessGateService:
    """Get AccessGateService instance from app state."""
    if app_state.access_gate_service is None:
        msg = "AccessGateService not initialized"
        raise RuntimeError(msg)
    return app_state.access_gate_service


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    # Initialize Cassandra (async)
    try:
        app_state.cassandra_session = await init_async_cassandra()
        app.state.cassandra_session = app_state.cassandra_session
        logger.info("cassandra_initialized")

        app_state.registrant_service = RegistrantService(
            session=app_state.cassandra_session,
            keyspace=settings.cassandra_keyspace,
            registration_prefix=settings.registration_number_prefix,
        )
        logger.info("registrant_service_initialized")

        ledger = AccessLinkLedger(
            session=app_state.cassandra_session,
            keyspace=settings.cassandra_keyspace,
        )
        app_state.access_gate_service = AccessGateService(
            ledger=ledger,
            max_issue_attempts=settings.access_issue_max_attempts,
            legacy_tokens_enabled=settings.access_legacy_tokens_enabled,
            legacy_max_age_days=settings.access_legacy_token_max_age_days,
        )
        logger.info(
            "access_gate_initialized",
            legacy_tokens_enabled=settings.access_legacy_tokens_enabled,
        )
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    # Initialize Email Service (independent of database)
    if settings.email_enabled:
        try:
            app_state.email_service = EmailService(
                credentials_path=settings.email_credentials_path,
                sender_address=settings.email_sender_address,
                sender_name=settings.email_sender_name,
            )
            app.state.email_service = app_state.email_service
            logger.info(
                "email_service_initialized",
                sender=settings.email_sender_address,
            )
        except Exception as e:
            logger.warning(
                "email_service_init_skipped",
                error=str(e),
                message="Running without email service",
            )

    yield

    # Shutdown
    logger.info("shutting_down_application")
    await shutdown_async_cassandra()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # Starlette's debug mode would put stack traces in responses; the handlers
    # below log full details and return safe messages instead.
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Registration and certificate viewing API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    def _get_request_id_safe(request: Request) -> str | None:
        """Get request_id from request state or context."""
        if hasattr(request.state, "request_id"):
            return request.state.request_id
        return get_request_id()

    # Global exception handlers (never expose stack traces)
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=exc.status_code,
            content={
                "error": True,
                "message": str(exc.detail)
                if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
                or exc.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
                else "Internal server error",
                "status_code": exc.status_code,
                "request_id": request_id,
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle validation errors with safe error messages."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "validation_error",
            errors=[
                {"loc": err.get("loc"), "type": err.get("type")}
                for err in exc.errors()
            ],
            path=request.url.path,
            method=request.method,
        )

        # Field names and messages are safe to expose; input values are not
        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": True,
                "message": "Validation error",
                "status_code": 422,
                "request_id": request_id,
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in err.get("loc", [])),
                        "message": err.get("msg", "Invalid value"),
                    }
                    for err in exc.errors()
                ],
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler for unhandled exceptions.

        Details are logged internally; the client gets a generic message.
        """
        request_id = _get_request_id_safe(request)

        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "message": "An unexpected error occurred. Please try again later.",
                "status_code": 500,
                "request_id": request_id,
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(registrants_router)
    app.include_router(access_links_router)
    app.include_router(email_admin_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "Certificate Registry API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


# Configure router dependencies before creating app
from src.access_links.dependencies import (  # noqa: E402
    set_service_getter as set_access_gate_service_getter,
)
from src.registrants.dependencies import (  # noqa: E402
    set_service_getter as set_registrant_service_getter,
)


set_registrant_service_getter(get_registrant_service)
set_access_gate_service_getter(get_access_gate_service)


app = create_app()
