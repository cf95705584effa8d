"""Pydantic schemas for registrants.

Request/Response models for:
- Admin registration and edits (multipart form fields)
- Registrant listings
- Public certificate view
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .models import INDIAN_STATES, Registrant


MIN_MOBILE_DIGITS = 10
MAX_MOBILE_DIGITS = 15


def normalize_mobile(value: str) -> str:
    """Keep digits only and check the length."""
    digits = "".join(c for c in value if c.isdigit())
    if not MIN_MOBILE_DIGITS <= len(digits) <= MAX_MOBILE_DIGITS:
        msg = f"Mobile number must have {MIN_MOBILE_DIGITS}-{MAX_MOBILE_DIGITS} digits"
        raise ValueError(msg)
    return digits


def check_state(value: str) -> str:
    value = value.strip()
    if value not in INDIAN_STATES:
        raise ValueError("Unknown state or union territory")
    return value


# ==============================================================================
# Request Schemas
# ==============================================================================


class RegistrantCreateForm(BaseModel):
    """Text fields of the registration form."""

    model_config = ConfigDict(str_strip_whitespace=True)

    registration_form_title: str = Field(default="", max_length=200)
    title: str = Field(..., min_length=1, max_length=20, description="Mr, Mrs, Ms...")
    name: str = Field(..., min_length=2, max_length=200)
    father_husband_name: str = Field(..., min_length=2, max_length=200)
    mobile_no: str = Field(..., description="Mobile number, also the login password")
    email_id: EmailStr
    date_of_birth: date
    passout_percentage: float = Field(..., ge=0, le=100)
    state: str
    address: str = Field(..., min_length=3, max_length=500)
    course_name: str = Field(..., min_length=1, max_length=200)
    experience: str = Field(..., min_length=1, max_length=200)
    college_name: str = Field(..., min_length=1, max_length=300)

    @field_validator("mobile_no")
    @classmethod
    def validate_mobile(cls, v: str) -> str:
        return normalize_mobile(v)

    @field_validator("email_id")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("state")
    @classmethod
    def validate_state(cls, v: str) -> str:
        return check_state(v)


class RegistrantUpdateForm(BaseModel):
    """Text fields of the edit form. Omitted fields stay unchanged."""

    model_config = ConfigDict(str_strip_whitespace=True)

    registration_form_title: str | None = Field(default=None, max_length=200)
    title: str | None = Field(default=None, min_length=1, max_length=20)
    name: str | None = Field(default=None, min_length=2, max_length=200)
    father_husband_name: str | None = Field(default=None, min_length=2, max_length=200)
    mobile_no: str | None = None
    email_id: EmailStr | None = None
    date_of_birth: date | None = None
    passout_percentage: float | None = Field(default=None, ge=0, le=100)
    state: str | None = None
    address: str | None = Field(default=None, min_length=3, max_length=500)
    course_name: str | None = Field(default=None, min_length=1, max_length=200)
    experience: str | None = Field(default=None, min_length=1, max_length=200)
    college_name: str | None = Field(default=None, min_length=1, max_length=300)

    @field_validator("mobile_no")
    @classmethod
    def validate_mobile(cls, v: str | None) -> str | None:
        return normalize_mobile(v) if v is not None else None

    @field_validator("email_id")
    @classmethod
    def lowercase_email(cls, v: str | None) -> str | None:
        return v.lower() if v is not None else None

    @field_validator("state")
    @classmethod
    def validate_state(cls, v: str | None) -> str | None:
        return check_state(v) if v is not None else None

    def changes(self) -> dict:
        """Fields explicitly provided by the client."""
        return self.model_dump(exclude_none=True)


class GenerateLinkRequest(BaseModel):
    """Options for generating an access link from the admin panel."""

    send_email: bool = Field(
        default=False, description="Also email the link to the registrant"
    )


# ==============================================================================
# Response Schemas
# ==============================================================================


class RegistrantResponse(BaseModel):
    """Registrant as seen by the admin panel."""

    id: UUID
    registration_number: str
    registration_form_title: str
    title: str
    name: str
    father_husband_name: str
    mobile_no: str
    email_id: str
    date_of_birth: date | None
    passout_percentage: float
    state: str
    address: str
    course_name: str
    experience: str
    college_name: str
    photo_url: str
    qr_code_url: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_registrant(cls, registrant: Registrant) -> "RegistrantResponse":
        return cls(**registrant.to_dict())


class RegistrantListResponse(BaseModel):
    items: list[RegistrantResponse]
    total: int


class RegistrationResultResponse(BaseModel):
    """Outcome of an admin registration."""

    success: bool = True
    message: str = "Registration successful"
    registrant: RegistrantResponse
    profile_url: str | None = None
    link_issued: bool = True
    email_sent: bool


class DeleteRegistrantResponse(BaseModel):
    success: bool = True
    message: str = "Registrant deleted successfully"
    deleted_id: UUID
    deleted_name: str


class AccessLinkResponse(BaseModel):
    """A freshly generated access link."""

    token: str
    public_url: str
    registration_number: str
    expires_at: datetime
    email_sent: bool = False


class CertificateView(BaseModel):
    """Data rendered on the public certificate page."""

    registration_number: str
    registration_form_title: str
    title: str
    name: str
    father_husband_name: str
    mobile_no: str
    email_id: str
    date_of_birth: date | None
    state: str
    address: str
    course_name: str
    experience: str
    college_name: str
    passout_percentage: float
    photo_url: str
    qr_code_url: str
    issued_at: datetime

    @classmethod
    def from_registrant(cls, registrant: Registrant) -> "CertificateView":
        return cls(
            registration_number=registrant.registration_number,
            registration_form_title=registrant.registration_form_title,
            title=registrant.title,
            name=registrant.name,
            father_husband_name=registrant.father_husband_name,
            mobile_no=registrant.mobile_no,
            email_id=registrant.email_id,
            date_of_birth=registrant.date_of_birth,
            state=registrant.state,
            address=registrant.address,
            course_name=registrant.course_name,
            experience=registrant.experience or "N/A",
            college_name=registrant.college_name or "N/A",
            passout_percentage=registrant.passout_percentage,
            photo_url=registrant.photo_url,
            qr_code_url=registrant.qr_code_url,
            issued_at=registrant.created_at,
        )
