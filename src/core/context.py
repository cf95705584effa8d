"""Request context management using contextvars.

Each request gets a unique ID plus optional actor/trace information that
log processors can read anywhere in the call stack.
"""

from contextvars import ContextVar, Token
from typing import Any
from uuid import uuid4


request_id_var: ContextVar[str] = ContextVar("request_id", default="")
actor_var: ContextVar[str | None] = ContextVar("actor", default=None)
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)
correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

_OPTIONAL_VARS: dict[str, ContextVar[str | None]] = {
    "actor": actor_var,
    "trace_id": trace_id_var,
    "correlation_id": correlation_id_var,
}


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return str(uuid4())


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


def set_request_id(request_id: str | None = None) -> str:
    """Set the request ID for the current context.

    Args:
        request_id: Optional request ID. If not provided, generates a new one.

    Returns:
        The request ID that was set.
    """
    rid = request_id or generate_request_id()
    request_id_var.set(rid)
    return rid


def get_actor() -> str | None:
    """Get who is acting in the current request (admin name or registration number)."""
    return actor_var.get()


def set_actor(actor: str | None) -> None:
    """Set who is acting in the current request."""
    actor_var.set(actor)


def get_trace_id() -> str | None:
    """Get the current trace ID."""
    return trace_id_var.get()


def set_trace_id(trace_id: str | None) -> None:
    """Set the trace ID from distributed tracing headers."""
    trace_id_var.set(trace_id)


def get_correlation_id() -> str | None:
    """Get the current correlation ID."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str | None) -> None:
    """Set the correlation ID for tracking related operations."""
    correlation_id_var.set(correlation_id)


def get_context() -> dict[str, Any]:
    """Get all non-empty context variables as a dictionary."""
    context: dict[str, Any] = {}

    request_id = get_request_id()
    if request_id:
        context["request_id"] = request_id

    for name, var in _OPTIONAL_VARS.items():
        value = var.get()
        if value:
            context[name] = value

    return context


def clear_context() -> None:
    """Clear all context variables.

    Called at the end of each request so values never leak between requests.
    """
    request_id_var.set("")
    for var in _OPTIONAL_VARS.values():
        var.set(None)


class RequestContext:
    """Context manager for request scope.

    Usage:
        with RequestContext(actor="MOH202512345"):
            log.info("certificate_viewed")  # includes request_id and actor
    """

    def __init__(
        self,
        request_id: str | None = None,
        actor: str | None = None,
        trace_id: str | None = None,
        correlation_id: str | None = None,
    ) -> None:
        self.request_id = request_id
        self._values = {
            "actor": actor,
            "trace_id": trace_id,
            "correlation_id": correlation_id,
        }
        self._tokens: list[tuple[ContextVar, Token]] = []

    def __enter__(self) -> "RequestContext":
        """Enter context and set variables."""
        self._tokens.append(
            (request_id_var, request_id_var.set(self.request_id or generate_request_id()))
        )
        for name, value in self._values.items():
            if value is not None:
                var = _OPTIONAL_VARS[name]
                self._tokens.append((var, var.set(value)))
        return self

    def __exit__(self, *_: object) -> None:
        """Exit context and restore previous values."""
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()
