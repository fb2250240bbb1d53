"""API endpoints for client projects."""

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from agency_companion.core.schemas_projects import ProjectCreate, ProjectResponse, ProjectUpdate
from agency_companion.db.storage import Storage, get_storage

router = APIRouter(prefix="/projects")


@router.get("", response_model=list[ProjectResponse])
def list_projects(
    client_id: int | None = Query(None, alias="clientId"),
    storage: Storage = Depends(get_storage),
):
    """List projects, optionally for one client."""
    return storage.list_projects(client_id)


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(project_id: int, storage: Storage = Depends(get_storage)):
    project = storage.get_project(project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.post("", response_model=ProjectResponse, status_code=201)
def create_project(body: ProjectCreate, storage: Storage = Depends(get_storage)):
    """Create a project. The client's total value picks it up on the next read."""
    try:
        return storage.create_project(body.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/{project_id}", response_model=ProjectResponse)
def update_project(project_id: int, body: ProjectUpdate, storage: Storage = Depends(get_storage)):
    data = body.model_dump(exclude_none=True)
    if not data:
        raise HTTPException(status_code=400, detail="No fields to update")

    project = storage.update_project(project_id, data)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.delete("/{project_id}", status_code=204)
def delete_project(project_id: int, storage: Storage = Depends(get_storage)):
    if not storage.delete_project(project_id):
        raise HTTPException(status_code=404, detail="Project not found")
    return Response(status_code=204)
