# Core infrastructure
from src.core.context import (
    RequestContext,
    clear_context,
    get_actor,
    get_context,
    get_correlation_id,
    get_request_id,
    get_trace_id,
    set_actor,
    set_correlation_id,
    set_request_id,
    set_trace_id,
)
from src.core.database import init_async_cassandra, shutdown_async_cassandra
from src.core.logging import configure_structlog, get_logger
from src.core.middleware import RequestContextMiddleware, set_actor_context


__all__ = [
    "RequestContext",
    "RequestContextMiddleware",
    "clear_context",
    "configure_structlog",
    "get_actor",
    "get_context",
    "get_correlation_id",
    "get_logger",
    "get_request_id",
    "get_trace_id",
    "init_async_cassandra",
    "set_actor",
    "set_actor_context",
    "set_correlation_id",
    "set_request_id",
    "set_trace_id",
    "shutdown_async_cassandra",
]
