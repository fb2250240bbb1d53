"""Pydantic schemas for staff authentication."""

from pydantic import Field

from agency_companion.core.schemas_common import CamelModel


class UserRegister(CamelModel):
    """Registration request."""

    username: str = Field(..., min_length=3, max_length=64)
    password: str = Field(..., min_length=6, max_length=128)
    full_name: str | None = None
    email: str | None = None


class LoginRequest(CamelModel):
    """Login request."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserResponse(CamelModel):
    """User as returned to the browser (never includes the password hash)."""

    id: int
    username: str
    full_name: str | None = None
    email: str | None = None
    created_at: str | None = None
