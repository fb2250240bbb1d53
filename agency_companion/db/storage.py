"""Repository interface shared by the in-memory and Supabase storage backends."""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

from agency_companion.core.config import get_settings
from agency_companion.core.schemas_clients import ClientFilters


class TaskInFlightError(Exception):
    """Raised when a generation is already running for a (client, task type) pair."""

    def __init__(self, client_id: int, task_type: str, task_id: int):
        self.client_id = client_id
        self.task_type = task_type
        self.task_id = task_id
        super().__init__(
            f"A {task_type} generation is already in progress for client {client_id} (task {task_id})"
        )


def _task_sort_key(task: dict) -> tuple[str, int]:
    return (task.get("created_at") or "", task.get("id") or 0)


def sort_tasks_newest_first(tasks: list[dict]) -> list[dict]:
    """Order tasks by createdAt descending, ties broken by the higher id."""
    return sorted(tasks, key=_task_sort_key, reverse=True)


def is_generation_stale(task: dict, stale_seconds: int) -> bool:
    """True when an in_progress task has not been touched for `stale_seconds`."""
    stamp = task.get("updated_at") or task.get("created_at")
    if not stamp:
        return True
    try:
        touched = datetime.fromisoformat(stamp)
    except ValueError:
        return True
    if touched.tzinfo is None:
        touched = touched.replace(tzinfo=timezone.utc)
    return (datetime.now(timezone.utc) - touched).total_seconds() > stale_seconds


def _project_status_key(value: str) -> str:
    # "Active Projects" -> "active"
    return value.split(" ")[0].lower()


def apply_client_filters(
    clients: list[dict], filters: ClientFilters | None
) -> list[dict]:
    """
    Filter and sort enriched client rows.

    Args:
        clients: Client rows with embedded "projects"
        filters: Search/status/industry/projectStatus/sort options

    Returns:
        Filtered, sorted list
    """
    filters = filters or ClientFilters()
    result = list(clients)

    if filters.search:
        needle = filters.search.lower()
        result = [
            c
            for c in result
            if any(needle in (c.get(field) or "").lower() for field in ("name", "contact_name", "industry"))
        ]

    if filters.status and filters.status != "All Status":
        wanted = filters.status.lower()
        result = [c for c in result if (c.get("status") or "").lower() == wanted]

    if filters.industry and filters.industry != "All Industries":
        result = [c for c in result if c.get("industry") == filters.industry]

    if filters.project_status and filters.project_status != "All Projects":
        wanted = _project_status_key(filters.project_status)
        result = [
            c
            for c in result
            if (c.get("project_status") or "").lower() == wanted
            or any((p.get("status") or "").lower() == wanted for p in c.get("projects", []))
        ]

    sort = filters.sort
    if sort == "Name (A-Z)":
        result.sort(key=lambda c: (c.get("name") or "").lower())
    elif sort == "Name (Z-A)":
        result.sort(key=lambda c: (c.get("name") or "").lower(), reverse=True)
    elif sort == "Value (High-Low)":
        result.sort(key=lambda c: c.get("project_value") or 0, reverse=True)
    elif sort == "Value (Low-High)":
        result.sort(key=lambda c: c.get("project_value") or 0)
    else:
        result.sort(key=lambda c: (c.get("last_contact") or "", c.get("id") or 0), reverse=True)

    return result


class Storage(ABC):
    """
    CRUD repository for clients, projects, companion tasks, users, sessions and shares.

    Rows are plain snake_case dicts. Client totals are derived from projects on
    every read rather than maintained incrementally.
    """

    # ---- clients -------------------------------------------------------------

    @abstractmethod
    def list_client_rows(self) -> list[dict]: ...

    @abstractmethod
    def get_client_row(self, client_id: int) -> dict | None: ...

    @abstractmethod
    def create_client(self, data: dict) -> dict: ...

    @abstractmethod
    def update_client(self, client_id: int, data: dict) -> dict | None: ...

    @abstractmethod
    def delete_client(self, client_id: int) -> bool:
        """Delete a client together with its projects, tasks and shares."""

    # ---- projects ------------------------------------------------------------

    @abstractmethod
    def list_projects(self, client_id: int | None = None) -> list[dict]: ...

    @abstractmethod
    def get_project(self, project_id: int) -> dict | None: ...

    @abstractmethod
    def create_project(self, data: dict) -> dict: ...

    @abstractmethod
    def update_project(self, project_id: int, data: dict) -> dict | None: ...

    @abstractmethod
    def delete_project(self, project_id: int) -> bool: ...

    # ---- companion tasks -----------------------------------------------------

    @abstractmethod
    def list_companion_tasks(self, client_id: int) -> list[dict]:
        """List a client's tasks, newest first."""

    @abstractmethod
    def get_companion_task(self, task_id: int) -> dict | None: ...

    @abstractmethod
    def create_companion_task(self, client_id: int, data: dict) -> dict: ...

    @abstractmethod
    def update_companion_task(self, task_id: int, data: dict) -> dict | None: ...

    @abstractmethod
    def delete_companion_task(self, task_id: int) -> bool: ...

    @abstractmethod
    def begin_generation(
        self, client_id: int, task_type: str, task_id: int | None = None
    ) -> dict:
        """
        Mark a task row in_progress for a new generation run.

        Re-uses the stub row `task_id` when given, otherwise inserts a new row.

        Raises:
            TaskInFlightError: If a non-stale in_progress row already exists
            ValueError: If task_id does not belong to this client and type
        """

    # ---- users & sessions ----------------------------------------------------

    @abstractmethod
    def create_user(self, data: dict) -> dict: ...

    @abstractmethod
    def get_user(self, user_id: int) -> dict | None: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> dict | None: ...

    @abstractmethod
    def create_session(self, sid: str, user_id: int, expires_at: str) -> dict: ...

    @abstractmethod
    def get_session(self, sid: str) -> dict | None: ...

    @abstractmethod
    def delete_session(self, sid: str) -> bool: ...

    # ---- site-map shares -----------------------------------------------------

    @abstractmethod
    def create_share(self, token: str, task_id: int, client_id: int) -> dict: ...

    @abstractmethod
    def get_share(self, token: str) -> dict | None: ...

    @abstractmethod
    def add_share_feedback(self, token: str, data: dict) -> dict: ...

    @abstractmethod
    def list_share_feedback(self, task_id: int) -> list[dict]: ...

    # ---- derived reads -------------------------------------------------------

    def _enrich_client(self, row: dict, projects: list[dict]) -> dict:
        client = dict(row)
        client["projects"] = [
            {"id": p["id"], "name": p["name"], "status": p["status"], "value": p.get("value") or 0}
            for p in projects
        ]
        client["total_value"] = sum(p.get("value") or 0 for p in projects)
        return client

    def list_clients(self, filters: ClientFilters | None = None) -> list[dict]:
        """List clients with embedded project summaries, filtered and sorted."""
        projects_by_client: dict[int, list[dict]] = {}
        for project in self.list_projects():
            projects_by_client.setdefault(project["client_id"], []).append(project)

        clients = [
            self._enrich_client(row, projects_by_client.get(row["id"], []))
            for row in self.list_client_rows()
        ]
        return apply_client_filters(clients, filters)

    def get_client(self, client_id: int) -> dict | None:
        """Get a client with embedded project summaries and derived total value."""
        row = self.get_client_row(client_id)
        if not row:
            return None
        return self._enrich_client(row, self.list_projects(client_id))

    def client_total_value(self, client_id: int) -> int:
        """Sum of the client's project values, recomputed on read."""
        return sum(p.get("value") or 0 for p in self.list_projects(client_id))

    def latest_companion_task(
        self, client_id: int, task_type: str, status: str | None = None
    ) -> dict | None:
        """Return the logically current task for (client, type), optionally by status."""
        for task in self.list_companion_tasks(client_id):
            if task["type"] != task_type:
                continue
            if status and task["status"] != status:
                continue
            return task
        return None

    def current_companion_tasks(self, client_id: int) -> dict[str, dict]:
        """Map each task type to its latest task for the client."""
        current: dict[str, dict] = {}
        for task in self.list_companion_tasks(client_id):
            current.setdefault(task["type"], task)
        return current

    def _check_generation_slot(
        self, tasks: list[dict], client_id: int, task_type: str, task_id: int | None
    ) -> dict | None:
        """
        Validate a begin_generation request against the client's existing tasks.

        Returns:
            The stub row to re-use, or None when a new row should be inserted
        """
        stale_seconds = get_settings().GENERATION_STALE_SECONDS
        for task in tasks:
            if (
                task["type"] == task_type
                and task["status"] == "in_progress"
                and task["id"] != task_id
                and not is_generation_stale(task, stale_seconds)
            ):
                raise TaskInFlightError(client_id, task_type, task["id"])

        if task_id is None:
            return None

        stub = next((t for t in tasks if t["id"] == task_id), None)
        if stub is None or stub["type"] != task_type:
            raise ValueError(f"Task {task_id} is not a {task_type} task for client {client_id}")
        if stub["status"] == "in_progress" and not is_generation_stale(stub, stale_seconds):
            raise TaskInFlightError(client_id, task_type, task_id)
        return stub


def task_row_defaults(client_id: int, data: dict[str, Any], now: str) -> dict:
    """Fill in defaults for a new companion task row."""
    return {
        "client_id": client_id,
        "type": data["type"],
        "status": data.get("status", "pending"),
        "content": data.get("content"),
        "metadata": data.get("metadata"),
        "error": data.get("error"),
        "created_at": now,
        "updated_at": now,
        "completed_at": now if data.get("status") == "completed" else None,
    }


@lru_cache(maxsize=1)
def get_storage() -> Storage:
    """
    Get the configured storage backend (cached singleton).

    Returns:
        MemStorage by default, SupabaseStorage when STORAGE_BACKEND=supabase
    """
    settings = get_settings()
    if settings.STORAGE_BACKEND == "supabase":
        from agency_companion.db.supabase_client import get_supabase
        from agency_companion.db.supabase_storage import SupabaseStorage

        return SupabaseStorage(get_supabase())

    from agency_companion.db.memory import MemStorage

    return MemStorage()
