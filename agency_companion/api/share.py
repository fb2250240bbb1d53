"""API endpoints for sharing site maps with clients and collecting their feedback."""

import secrets

from fastapi import APIRouter, Depends, HTTPException

from agency_companion.core.logging import get_logger
from agency_companion.core.schemas_companion import (
    ShareFeedbackCreate,
    ShareFeedbackResponse,
    SharedSiteMap,
    ShareResponse,
)
from agency_companion.db.storage import Storage, get_storage

logger = get_logger(__name__)

router = APIRouter()


@router.post("/companion-tasks/{task_id}/share", response_model=ShareResponse)
def share_site_map(task_id: int, storage: Storage = Depends(get_storage)):
    """Issue a public share token for a site-map task."""
    task = storage.get_companion_task(task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Companion task not found")
    if task["type"] != "site_map":
        raise HTTPException(status_code=400, detail="Only site map tasks can be shared")

    token = secrets.token_urlsafe(16)
    storage.create_share(token, task_id, task["client_id"])
    logger.info(f"Shared site map task {task_id}")

    return ShareResponse(token=token, task_id=task_id, url=f"/share/site-map/{token}")


@router.get("/share/site-map/{token}", response_model=SharedSiteMap)
def get_shared_site_map(token: str, storage: Storage = Depends(get_storage)):
    """Public view of a shared site map."""
    share = storage.get_share(token)
    task = storage.get_companion_task(share["task_id"]) if share else None
    if not share or not task:
        raise HTTPException(status_code=404, detail="Shared site map not found")

    client = storage.get_client_row(share["client_id"]) or {}
    return SharedSiteMap(
        token=token,
        task_id=task["id"],
        client_name=client.get("name") or "",
        content=task.get("content"),
        created_at=task.get("created_at"),
        completed_at=task.get("completed_at"),
    )


@router.post(
    "/share/site-map/{token}/feedback",
    response_model=ShareFeedbackResponse,
    status_code=201,
)
def submit_site_map_feedback(
    token: str, body: ShareFeedbackCreate, storage: Storage = Depends(get_storage)
):
    """Record a client's approval or change request on a shared site map."""
    try:
        row = storage.add_share_feedback(token, body.model_dump())
    except ValueError:
        raise HTTPException(status_code=404, detail="Shared site map not found")

    logger.info(f"Site map feedback received (approved={row['approved']})")
    return row


@router.get("/companion-tasks/{task_id}/feedback", response_model=list[ShareFeedbackResponse])
def list_site_map_feedback(task_id: int, storage: Storage = Depends(get_storage)):
    if not storage.get_companion_task(task_id):
        raise HTTPException(status_code=404, detail="Companion task not found")
    return storage.list_share_feedback(task_id)
