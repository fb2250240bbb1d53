"""Supabase-backed storage backend."""

from supabase import Client

from agency_companion.core.logging import get_logger
from agency_companion.core.schemas_common import utc_now_iso
from agency_companion.db.storage import Storage, sort_tasks_newest_first, task_row_defaults

logger = get_logger(__name__)


class SupabaseStorage(Storage):
    """
    Storage repository over Supabase tables.

    Tables: clients, projects, companion_tasks, users, sessions,
    site_map_shares, share_feedback. Cascades are issued child-first; they are
    separate statements, not a database transaction.
    """

    def __init__(self, client: Client) -> None:
        self._client = client

    def _first(self, response) -> dict | None:
        return response.data[0] if response.data else None

    # ---- clients -------------------------------------------------------------

    def list_client_rows(self) -> list[dict]:
        response = self._client.table("clients").select("*").execute()
        return response.data or []

    def get_client_row(self, client_id: int) -> dict | None:
        response = self._client.table("clients").select("*").eq("id", client_id).limit(1).execute()
        return self._first(response)

    def create_client(self, data: dict) -> dict:
        now = utc_now_iso()
        payload = {**data, "last_contact": now, "created_at": now, "updated_at": now}
        response = self._client.table("clients").insert(payload).execute()
        return response.data[0]

    def update_client(self, client_id: int, data: dict) -> dict | None:
        payload = {**data, "updated_at": utc_now_iso()}
        response = self._client.table("clients").update(payload).eq("id", client_id).execute()
        return self._first(response)

    def delete_client(self, client_id: int) -> bool:
        if not self.get_client_row(client_id):
            return False

        shares = (
            self._client.table("site_map_shares").select("token").eq("client_id", client_id).execute()
        ).data or []
        tokens = [s["token"] for s in shares]
        if tokens:
            self._client.table("share_feedback").delete().in_("token", tokens).execute()
            self._client.table("site_map_shares").delete().eq("client_id", client_id).execute()

        self._client.table("companion_tasks").delete().eq("client_id", client_id).execute()
        self._client.table("projects").delete().eq("client_id", client_id).execute()
        response = self._client.table("clients").delete().eq("id", client_id).execute()

        logger.info(f"Deleted client {client_id} with {len(tokens)} share(s)")
        return len(response.data or []) > 0

    # ---- projects ------------------------------------------------------------

    def list_projects(self, client_id: int | None = None) -> list[dict]:
        query = self._client.table("projects").select("*")
        if client_id is not None:
            query = query.eq("client_id", client_id)
        response = query.order("id").execute()
        return response.data or []

    def get_project(self, project_id: int) -> dict | None:
        response = self._client.table("projects").select("*").eq("id", project_id).limit(1).execute()
        return self._first(response)

    def create_project(self, data: dict) -> dict:
        if not self.get_client_row(data["client_id"]):
            raise ValueError(f"Client {data['client_id']} does not exist")
        payload = {"start_date": utc_now_iso(), **{k: v for k, v in data.items() if v is not None}}
        response = self._client.table("projects").insert(payload).execute()
        return response.data[0]

    def update_project(self, project_id: int, data: dict) -> dict | None:
        response = self._client.table("projects").update(data).eq("id", project_id).execute()
        return self._first(response)

    def delete_project(self, project_id: int) -> bool:
        response = self._client.table("projects").delete().eq("id", project_id).execute()
        return len(response.data or []) > 0

    # ---- companion tasks -----------------------------------------------------

    def list_companion_tasks(self, client_id: int) -> list[dict]:
        response = (
            self._client.table("companion_tasks").select("*").eq("client_id", client_id).execute()
        )
        return sort_tasks_newest_first(response.data or [])

    def get_companion_task(self, task_id: int) -> dict | None:
        response = self._client.table("companion_tasks").select("*").eq("id", task_id).limit(1).execute()
        return self._first(response)

    def create_companion_task(self, client_id: int, data: dict) -> dict:
        payload = task_row_defaults(client_id, data, utc_now_iso())
        response = self._client.table("companion_tasks").insert(payload).execute()
        return response.data[0]

    def update_companion_task(self, task_id: int, data: dict) -> dict | None:
        payload = {**data, "updated_at": utc_now_iso()}
        response = self._client.table("companion_tasks").update(payload).eq("id", task_id).execute()
        return self._first(response)

    def delete_companion_task(self, task_id: int) -> bool:
        shares = (
            self._client.table("site_map_shares").select("token").eq("task_id", task_id).execute()
        ).data or []
        tokens = [s["token"] for s in shares]
        if tokens:
            self._client.table("share_feedback").delete().in_("token", tokens).execute()
            self._client.table("site_map_shares").delete().eq("task_id", task_id).execute()
        response = self._client.table("companion_tasks").delete().eq("id", task_id).execute()
        return len(response.data or []) > 0

    def begin_generation(
        self, client_id: int, task_type: str, task_id: int | None = None
    ) -> dict:
        # Check-then-write: two processes can still race between these calls
        tasks = self.list_companion_tasks(client_id)
        stub = self._check_generation_slot(tasks, client_id, task_type, task_id)
        fields = {"status": "in_progress", "content": None, "error": None, "completed_at": None}
        if stub is not None:
            return self.update_companion_task(stub["id"], fields)
        return self.create_companion_task(client_id, {"type": task_type, **fields})

    # ---- users & sessions ----------------------------------------------------

    def create_user(self, data: dict) -> dict:
        if self.get_user_by_username(data["username"]):
            raise ValueError(f"Username {data['username']} already exists")
        payload = {**data, "created_at": utc_now_iso()}
        response = self._client.table("users").insert(payload).execute()
        return response.data[0]

    def get_user(self, user_id: int) -> dict | None:
        response = self._client.table("users").select("*").eq("id", user_id).limit(1).execute()
        return self._first(response)

    def get_user_by_username(self, username: str) -> dict | None:
        response = self._client.table("users").select("*").eq("username", username).limit(1).execute()
        return self._first(response)

    def create_session(self, sid: str, user_id: int, expires_at: str) -> dict:
        payload = {"sid": sid, "user_id": user_id, "expires_at": expires_at}
        response = self._client.table("sessions").insert(payload).execute()
        return response.data[0]

    def get_session(self, sid: str) -> dict | None:
        response = self._client.table("sessions").select("*").eq("sid", sid).limit(1).execute()
        return self._first(response)

    def delete_session(self, sid: str) -> bool:
        response = self._client.table("sessions").delete().eq("sid", sid).execute()
        return len(response.data or []) > 0

    # ---- site-map shares -----------------------------------------------------

    def create_share(self, token: str, task_id: int, client_id: int) -> dict:
        payload = {
            "token": token,
            "task_id": task_id,
            "client_id": client_id,
            "created_at": utc_now_iso(),
        }
        response = self._client.table("site_map_shares").insert(payload).execute()
        return response.data[0]

    def get_share(self, token: str) -> dict | None:
        response = self._client.table("site_map_shares").select("*").eq("token", token).limit(1).execute()
        return self._first(response)

    def add_share_feedback(self, token: str, data: dict) -> dict:
        if not self.get_share(token):
            raise ValueError(f"Unknown share token {token}")
        payload = {**data, "token": token, "created_at": utc_now_iso()}
        response = self._client.table("share_feedback").insert(payload).execute()
        return response.data[0]

    def list_share_feedback(self, task_id: int) -> list[dict]:
        shares = (
            self._client.table("site_map_shares").select("token").eq("task_id", task_id).execute()
        ).data or []
        tokens = [s["token"] for s in shares]
        if not tokens:
            return []
        response = self._client.table("share_feedback").select("*").in_("token", tokens).order("id").execute()
        return response.data or []
