"""Pydantic schemas for access links.

Request/Response models for:
- Registrant self-login (email + mobile number)
- Logout (invalidate a view token)
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class UserLoginRequest(BaseModel):
    """Registrant login: the mobile number acts as the password."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr
    phone_number: str = Field(..., min_length=1, max_length=20)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("phone_number")
    @classmethod
    def digits_only(cls, v: str) -> str:
        return "".join(c for c in v if c.isdigit())


class UserLoginResponse(BaseModel):
    success: bool = True
    message: str = "Login successful"
    token: str
    profile_link: str
    registration_number: str
    expires_at: datetime


class LogoutRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=512)


class LogoutResponse(BaseModel):
    success: bool = True
    message: str = "Logged out successfully"
