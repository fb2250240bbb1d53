"""API endpoints for agency clients."""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Response

from agency_companion.core.logging import get_logger
from agency_companion.core.schemas_clients import (
    ClientCreate,
    ClientFilters,
    ClientResponse,
    ClientUpdate,
)
from agency_companion.db.storage import Storage, TaskInFlightError, get_storage
from agency_companion.services.companion_orchestrator import (
    GenerationFailedError,
    TaskDeletedError,
    run_generation,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/clients")


async def generate_initial_analysis(storage: Storage, client_id: int) -> None:
    """Background job: company analysis for a newly created client."""
    try:
        await run_generation(storage, client_id, "company_analysis")
    except GenerationFailedError as e:
        # Already recorded on the task row as a pending failure
        logger.warning(f"Initial company analysis failed for client {client_id}: {e.message}")
    except TaskDeletedError:
        logger.info(f"Client {client_id} was deleted during its initial company analysis")
    except TaskInFlightError:
        logger.info(f"Company analysis already running for client {client_id}")
    except Exception as e:
        logger.error(f"Initial company analysis crashed for client {client_id}: {e}", exc_info=True)


@router.get("", response_model=list[ClientResponse])
def list_clients(
    search: str | None = Query(None, description="Match name, contact or industry"),
    status: str | None = Query(None, description="Phase, or 'All Status'"),
    industry: str | None = Query(None, description="Industry, or 'All Industries'"),
    project_status: str | None = Query(None, alias="projectStatus"),
    sort: str | None = Query(None, description="Name (A-Z), Name (Z-A), Value (High-Low), Value (Low-High)"),
    storage: Storage = Depends(get_storage),
):
    """List clients with optional filters and sorting."""
    filters = ClientFilters(
        search=search,
        status=status,
        industry=industry,
        project_status=project_status,
        sort=sort,
    )
    return storage.list_clients(filters)


@router.get("/{client_id}", response_model=ClientResponse)
def get_client(client_id: int, storage: Storage = Depends(get_storage)):
    """Get a client with its projects and derived total value."""
    client = storage.get_client(client_id)
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


@router.post("", response_model=ClientResponse, status_code=201)
def create_client(
    body: ClientCreate,
    background_tasks: BackgroundTasks,
    storage: Storage = Depends(get_storage),
):
    """Create a client and start its company analysis in the background."""
    row = storage.create_client(body.model_dump())
    logger.info(f"Created client {row['id']} ({row['name']})")

    background_tasks.add_task(generate_initial_analysis, storage, row["id"])
    return storage.get_client(row["id"])


# Columns that must keep a value; the rest may be cleared with an explicit null
NON_NULLABLE_FIELDS = ("name", "status", "project_value")


@router.patch("/{client_id}", response_model=ClientResponse)
def update_client(client_id: int, body: ClientUpdate, storage: Storage = Depends(get_storage)):
    """Update a client. Only the fields present in the body change; null clears a field."""
    data = body.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=400, detail="No fields to update")
    for field in NON_NULLABLE_FIELDS:
        if field in data and data[field] is None:
            alias = ClientUpdate.model_fields[field].alias or field
            raise HTTPException(status_code=400, detail=f"{alias} cannot be null")
    if "name" in data and not data["name"].strip():
        raise HTTPException(status_code=400, detail="Name cannot be empty")

    if not storage.update_client(client_id, data):
        raise HTTPException(status_code=404, detail="Client not found")
    return storage.get_client(client_id)


@router.delete("/{client_id}", status_code=204)
def delete_client(client_id: int, storage: Storage = Depends(get_storage)):
    """Delete a client along with its projects, companion tasks and shares."""
    if not storage.delete_client(client_id):
        raise HTTPException(status_code=404, detail="Client not found")
    return Response(status_code=204)
