"""Pydantic schemas for client projects."""

from pydantic import Field

from agency_companion.core.schemas_common import CamelModel


class ProjectCreate(CamelModel):
    """Request body for creating a project."""

    client_id: int
    name: str = Field(..., min_length=1)
    description: str | None = None
    status: str = "active"
    start_date: str | None = None
    end_date: str | None = None
    value: int = Field(default=0, ge=0)


class ProjectUpdate(CamelModel):
    """Request body for updating a project."""

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    status: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    value: int | None = Field(default=None, ge=0)


class ProjectResponse(CamelModel):
    """Project response."""

    id: int
    client_id: int
    name: str
    description: str | None = None
    status: str
    start_date: str | None = None
    end_date: str | None = None
    value: int = 0
