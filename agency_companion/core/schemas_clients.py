"""Pydantic schemas for agency clients."""

import re
from typing import Literal

from pydantic import Field, field_validator

from agency_companion.core.schemas_common import CamelModel

# Fixed project-phase pipeline; a client's status is always one of these
PHASES = ("Discovery", "Planning", "Design and Development", "Post Launch Management")
Phase = Literal["Discovery", "Planning", "Design and Development", "Post Launch Management"]

SORT_OPTIONS = ("Sort by: Recent", "Name (A-Z)", "Name (Z-A)", "Value (High-Low)", "Value (Low-High)")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _check_email(value: str | None) -> str | None:
    if value is None or value == "":
        return value
    if not _EMAIL_RE.match(value):
        raise ValueError("Invalid email address")
    return value


class ClientCreate(CamelModel):
    """Request body for creating a client."""

    name: str = Field(..., min_length=1)
    contact_name: str | None = None
    contact_title: str | None = None
    email: str | None = None
    phone: str | None = None
    industry: str | None = None
    website_url: str | None = None
    logo: str | None = None
    status: Phase = "Discovery"
    project_name: str | None = None
    project_description: str | None = None
    project_status: str = "active"
    project_value: int = Field(default=0, ge=0)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value

    @field_validator("email")
    @classmethod
    def valid_email(cls, value: str | None) -> str | None:
        return _check_email(value)


class ClientUpdate(CamelModel):
    """Request body for updating a client. Omitted fields are left unchanged."""

    name: str | None = Field(default=None, min_length=1)
    contact_name: str | None = None
    contact_title: str | None = None
    email: str | None = None
    phone: str | None = None
    industry: str | None = None
    website_url: str | None = None
    logo: str | None = None
    status: Phase | None = None
    project_name: str | None = None
    project_description: str | None = None
    project_status: str | None = None
    project_value: int | None = Field(default=None, ge=0)

    @field_validator("email")
    @classmethod
    def valid_email(cls, value: str | None) -> str | None:
        return _check_email(value)


class ProjectSummary(CamelModel):
    """Project summary embedded in client responses."""

    id: int
    name: str
    status: str
    value: int = 0


class ClientResponse(CamelModel):
    """Client response with derived totals and embedded projects."""

    id: int
    name: str
    contact_name: str | None = None
    contact_title: str | None = None
    email: str | None = None
    phone: str | None = None
    industry: str | None = None
    website_url: str | None = None
    logo: str | None = None
    status: str
    project_name: str | None = None
    project_description: str | None = None
    project_status: str | None = None
    project_value: int = 0
    total_value: int = 0
    last_contact: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    projects: list[ProjectSummary] = []


class ClientFilters(CamelModel):
    """Query filters for listing clients."""

    search: str | None = None
    status: str | None = None
    industry: str | None = None
    project_status: str | None = None
    sort: str | None = None
