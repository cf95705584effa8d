"""FastAPI dependencies for the access gate."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends

from .service import AccessGateService


# Service getter function (set from main.py)
_service_getter: Callable[[], AccessGateService] | None = None


def set_service_getter(getter: Callable[[], AccessGateService]) -> None:
    """Set the service getter function.

    Called from main.py to inject the service factory.
    """
    global _service_getter  # noqa: PLW0603 - necessary for DI pattern
    _service_getter = getter


def get_access_gate_service() -> AccessGateService:
    """Get AccessGateService instance.

    Raises:
        RuntimeError: If service is not configured
    """
    if _service_getter is None:
        msg = "AccessGateService not configured"
        raise RuntimeError(msg)
    return _service_getter()


AccessGateServiceDep = Annotated[AccessGateService, Depends(get_access_gate_service)]
