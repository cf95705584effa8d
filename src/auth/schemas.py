"""Pydantic schemas for the admin session."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AdminLoginRequest(BaseModel):
    """Admin login credentials."""

    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=200)


class AdminSession(BaseModel):
    """An authenticated admin session, decoded from the session cookie."""

    username: str
    session_id: str | None = None
    expires_at: datetime


class AdminLoginResponse(BaseModel):
    success: bool = True
    message: str = "Login successful"
    username: str
    expires_at: datetime


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
    success: bool = True
