"""API endpoints for AI companion tasks and deliverable generation."""

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import JSONResponse

from agency_companion.core.logging import get_logger
from agency_companion.core.schemas_common import utc_now_iso
from agency_companion.core.schemas_companion import (
    CompanionTaskCreate,
    CompanionTaskResponse,
    CompanionTaskUpdate,
    GenerateRequest,
)
from agency_companion.db.storage import Storage, TaskInFlightError, get_storage
from agency_companion.services.companion_orchestrator import (
    ClientNotFoundError,
    GenerationFailedError,
    InvalidTaskTypeError,
    TaskDeletedError,
    run_generation,
)

logger = get_logger(__name__)

router = APIRouter()


def _require_client(storage: Storage, client_id: int) -> None:
    if not storage.get_client_row(client_id):
        raise HTTPException(status_code=404, detail="Client not found")


@router.get("/clients/{client_id}/companion-tasks", response_model=list[CompanionTaskResponse])
def list_companion_tasks(client_id: int, storage: Storage = Depends(get_storage)):
    """All of a client's companion tasks, newest first."""
    _require_client(storage, client_id)
    return storage.list_companion_tasks(client_id)


@router.get(
    "/clients/{client_id}/companion-tasks/current",
    response_model=dict[str, CompanionTaskResponse],
)
def current_companion_tasks(client_id: int, storage: Storage = Depends(get_storage)):
    """The latest task of each type for a client, keyed by task type."""
    _require_client(storage, client_id)
    return storage.current_companion_tasks(client_id)


@router.post(
    "/clients/{client_id}/companion-tasks",
    response_model=CompanionTaskResponse,
    status_code=201,
)
def create_companion_task(
    client_id: int, body: CompanionTaskCreate, storage: Storage = Depends(get_storage)
):
    """Create a task stub (usually pending) for later generation."""
    _require_client(storage, client_id)
    return storage.create_companion_task(client_id, body.model_dump())


@router.get("/companion-tasks/{task_id}", response_model=CompanionTaskResponse)
def get_companion_task(task_id: int, storage: Storage = Depends(get_storage)):
    task = storage.get_companion_task(task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Companion task not found")
    return task


@router.patch("/companion-tasks/{task_id}", response_model=CompanionTaskResponse)
def update_companion_task(
    task_id: int, body: CompanionTaskUpdate, storage: Storage = Depends(get_storage)
):
    """Update a task. Moving it to completed stamps completedAt."""
    data = body.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=400, detail="No fields to update")
    if "status" in data and data["status"] is None:
        raise HTTPException(status_code=400, detail="Status cannot be null")

    if data.get("status") == "completed":
        data["completed_at"] = utc_now_iso()

    task = storage.update_companion_task(task_id, data)
    if not task:
        raise HTTPException(status_code=404, detail="Companion task not found")
    return task


@router.delete("/companion-tasks/{task_id}", status_code=204)
def delete_companion_task(task_id: int, storage: Storage = Depends(get_storage)):
    if not storage.delete_companion_task(task_id):
        raise HTTPException(status_code=404, detail="Companion task not found")
    return Response(status_code=204)


@router.post("/clients/{client_id}/generate/{task_type}", response_model=CompanionTaskResponse)
async def generate_companion_task(
    client_id: int,
    task_type: str,
    body: GenerateRequest | None = None,
    storage: Storage = Depends(get_storage),
):
    """
    Generate a deliverable for a client.

    Returns the completed task. A generation failure returns 500 with the
    task, which has been reset to pending with the failure message.
    """
    body = body or GenerateRequest()
    try:
        return await run_generation(
            storage,
            client_id,
            task_type,
            discovery_notes=body.discovery_notes,
            task_id=body.task_id,
        )
    except InvalidTaskTypeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ClientNotFoundError:
        raise HTTPException(status_code=404, detail="Client not found")
    except TaskInFlightError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except TaskDeletedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except GenerationFailedError as e:
        task = CompanionTaskResponse.model_validate(e.task)
        return JSONResponse(
            status_code=500,
            content={"detail": e.message, "task": task.model_dump(by_alias=True)},
        )
