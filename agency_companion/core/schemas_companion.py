"""Pydantic schemas for companion tasks, proposals and site-map sharing."""

import json
from typing import Any, Literal

from pydantic import Field, field_validator

from agency_companion.core.schemas_common import CamelModel

TASK_TYPES = (
    "company_analysis",
    "proposal",
    "contract",
    "site_map",
    "status_update",
    "schedule_discovery",
)
TaskType = Literal[
    "company_analysis",
    "proposal",
    "contract",
    "site_map",
    "status_update",
    "schedule_discovery",
]

TASK_STATUSES = ("pending", "in_progress", "completed")
TaskStatus = Literal["pending", "in_progress", "completed"]

# Human-readable labels used in prompts and failure messages
TASK_LABELS = {
    "company_analysis": "company analysis",
    "proposal": "proposal",
    "contract": "contract",
    "site_map": "site map",
    "status_update": "status update",
    "schedule_discovery": "discovery call email",
}


def _metadata_to_str(value: Any) -> str | None:
    """Accept metadata as a JSON string, or as an object which is serialized once."""
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value)


class CompanionTaskCreate(CamelModel):
    """Request body for creating a companion task stub."""

    type: TaskType
    status: TaskStatus = "pending"
    content: str | None = None
    metadata: str | None = None

    @field_validator("metadata", mode="before")
    @classmethod
    def serialize_metadata(cls, value: Any) -> str | None:
        return _metadata_to_str(value)


class CompanionTaskUpdate(CamelModel):
    """Request body for updating a companion task."""

    status: TaskStatus | None = None
    content: str | None = None
    metadata: str | None = None

    @field_validator("metadata", mode="before")
    @classmethod
    def serialize_metadata(cls, value: Any) -> str | None:
        return _metadata_to_str(value)


class CompanionTaskResponse(CamelModel):
    """Companion task response."""

    id: int
    client_id: int
    type: str
    status: str
    content: str | None = None
    metadata: str | None = None
    error: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    completed_at: str | None = None


class GenerateRequest(CamelModel):
    """Optional body for a generation request."""

    discovery_notes: str | None = None
    task_id: int | None = None


class ProposalPricing(CamelModel):
    """Pricing figures attached to a proposal as task metadata."""

    project_total_fee: int | None = Field(default=None, ge=0)
    care_plan_monthly: int | None = Field(default=None, ge=0)
    products_monthly: int | None = Field(default=None, ge=0)

    @field_validator("project_total_fee", "care_plan_monthly", "products_monthly", mode="before")
    @classmethod
    def whole_dollars(cls, value: Any) -> Any:
        """Accept "$5,000" or 99.99 from the model; amounts are stored as whole dollars."""
        if isinstance(value, str):
            cleaned = value.replace("$", "").replace(",", "").split("/")[0].strip()
            if not cleaned:
                return None
            try:
                value = float(cleaned)
            except ValueError:
                raise ValueError(f"Not a dollar amount: {value!r}") from None
        if isinstance(value, float):
            return round(value)
        return value


class ProposalDraft(CamelModel):
    """Proposal narrative plus optional pricing."""

    content: str
    pricing: ProposalPricing | None = None


class ShareResponse(CamelModel):
    """Share token issued for a site map."""

    token: str
    task_id: int
    url: str


class SharedSiteMap(CamelModel):
    """Public view of a shared site map."""

    token: str
    task_id: int
    client_name: str
    content: str | None = None
    created_at: str | None = None
    completed_at: str | None = None


class ShareFeedbackCreate(CamelModel):
    """Feedback submitted on a shared site map."""

    client_email: str = Field(..., min_length=3)
    feedback: str | None = None
    approved: bool


class ShareFeedbackResponse(CamelModel):
    """Stored feedback entry."""

    id: int
    token: str
    client_email: str
    feedback: str | None = None
    approved: bool
    created_at: str | None = None


class EmailSendRequest(CamelModel):
    """Outbound email request."""

    to: str = Field(..., min_length=3)
    from_email: str | None = Field(default=None, alias="from")
    subject: str = Field(..., min_length=1)
    html: str | None = None
    text: str | None = None
