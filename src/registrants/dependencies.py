"""FastAPI dependencies for registrants."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Form, HTTPException, status
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from .schemas import RegistrantCreateForm, RegistrantUpdateForm
from .service import RegistrantError, RegistrantService


# Service getter function (set from main.py)
_service_getter: Callable[[], RegistrantService] | None = None


def set_service_getter(getter: Callable[[], RegistrantService]) -> None:
    """Set the service getter function.

    Called from main.py to inject the service factory.
    """
    global _service_getter  # noqa: PLW0603 - necessary for DI pattern
    _service_getter = getter


def get_registrant_service() -> RegistrantService:
    """Get RegistrantService instance.

    Raises:
        RuntimeError: If service is not configured
    """
    if _service_getter is None:
        msg = "RegistrantService not configured"
        raise RuntimeError(msg)
    return _service_getter()


RegistrantServiceDep = Annotated[RegistrantService, Depends(get_registrant_service)]


def handle_registrant_error(error: RegistrantError) -> HTTPException:
    """Convert registrant errors to HTTP exceptions."""
    status_map = {
        "registrant_exists": status.HTTP_409_CONFLICT,
        "registrant_not_found": status.HTTP_404_NOT_FOUND,
        "invalid_credentials": status.HTTP_401_UNAUTHORIZED,
        "store_unavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
        "registration_number_unavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
    }

    status_code = status_map.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)

    return HTTPException(
        status_code=status_code,
        detail=error.message,
    )


# ==============================================================================
# Multipart form parsing
# ==============================================================================


def _build_form(model: type[BaseModel], data: dict) -> BaseModel:
    """Validate form fields, reporting failures as a regular 422."""
    try:
        return model(**data)
    except ValidationError as e:
        errors = [
            {**err, "loc": ("body", *err["loc"])}
            for err in e.errors(include_url=False, include_context=False)
        ]
        raise RequestValidationError(errors) from e


def get_create_form(
    title: str = Form(...),
    name: str = Form(...),
    father_husband_name: str = Form(...),
    mobile_no: str = Form(...),
    email_id: str = Form(...),
    date_of_birth: str = Form(...),
    passout_percentage: str = Form(...),
    state: str = Form(...),
    address: str = Form(...),
    course_name: str = Form(...),
    experience: str = Form(...),
    college_name: str = Form(...),
    registration_form_title: str = Form(""),
) -> RegistrantCreateForm:
    return _build_form(RegistrantCreateForm, locals().copy())


def get_update_form(
    title: str | None = Form(None),
    name: str | None = Form(None),
    father_husband_name: str | None = Form(None),
    mobile_no: str | None = Form(None),
    email_id: str | None = Form(None),
    date_of_birth: str | None = Form(None),
    passout_percentage: str | None = Form(None),
    state: str | None = Form(None),
    address: str | None = Form(None),
    course_name: str | None = Form(None),
    experience: str | None = Form(None),
    college_name: str | None = Form(None),
    registration_form_title: str | None = Form(None),
) -> RegistrantUpdateForm:
    fields = locals().copy()
    # Browsers submit untouched inputs as empty strings
    data = {key: value for key, value in fields.items() if value not in (None, "")}
    return _build_form(RegistrantUpdateForm, data)


CreateFormDep = Annotated[RegistrantCreateForm, Depends(get_create_form)]
UpdateFormDep = Annotated[RegistrantUpdateForm, Depends(get_update_form)]
