"""Process-local, dict-backed storage backend."""

import itertools
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from agency_companion.core.schemas_common import utc_now_iso
from agency_companion.db.storage import Storage, sort_tasks_newest_first, task_row_defaults


class MemStorage(Storage):
    """
    In-memory implementation of the Storage repository.

    All reads and writes happen under one re-entrant lock, so multi-entity
    operations (client cascade delete, begin_generation) are atomic with
    respect to other requests in the same process.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._clients: dict[int, dict] = {}
        self._projects: dict[int, dict] = {}
        self._tasks: dict[int, dict] = {}
        self._users: dict[int, dict] = {}
        self._sessions: dict[str, dict] = {}
        self._shares: dict[str, dict] = {}
        self._feedback: dict[int, dict] = {}
        self._ids = {
            name: itertools.count(1)
            for name in ("clients", "projects", "tasks", "users", "feedback")
        }

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Hold the storage lock for the duration of a multi-step operation."""
        with self._lock:
            yield

    def _next_id(self, table: str) -> int:
        return next(self._ids[table])

    # ---- clients -------------------------------------------------------------

    def list_client_rows(self) -> list[dict]:
        with self._lock:
            return [dict(c) for c in self._clients.values()]

    def get_client_row(self, client_id: int) -> dict | None:
        with self._lock:
            row = self._clients.get(client_id)
            return dict(row) if row else None

    def create_client(self, data: dict) -> dict:
        with self._lock:
            now = utc_now_iso()
            row = {
                **data,
                "id": self._next_id("clients"),
                "last_contact": now,
                "created_at": now,
                "updated_at": now,
            }
            self._clients[row["id"]] = row
            return dict(row)

    def update_client(self, client_id: int, data: dict) -> dict | None:
        with self._lock:
            row = self._clients.get(client_id)
            if row is None:
                return None
            row.update(data)
            row["updated_at"] = utc_now_iso()
            return dict(row)

    def delete_client(self, client_id: int) -> bool:
        with self.transaction():
            if self._clients.pop(client_id, None) is None:
                return False
            for pid in [p for p, row in self._projects.items() if row["client_id"] == client_id]:
                del self._projects[pid]
            task_ids = {t for t, row in self._tasks.items() if row["client_id"] == client_id}
            for tid in task_ids:
                del self._tasks[tid]
            tokens = {tok for tok, share in self._shares.items() if share["client_id"] == client_id}
            for tok in tokens:
                del self._shares[tok]
            for fid in [f for f, row in self._feedback.items() if row["token"] in tokens]:
                del self._feedback[fid]
            return True

    # ---- projects ------------------------------------------------------------

    def list_projects(self, client_id: int | None = None) -> list[dict]:
        with self._lock:
            rows = [
                dict(p)
                for p in self._projects.values()
                if client_id is None or p["client_id"] == client_id
            ]
        return sorted(rows, key=lambda p: p["id"])

    def get_project(self, project_id: int) -> dict | None:
        with self._lock:
            row = self._projects.get(project_id)
            return dict(row) if row else None

    def create_project(self, data: dict) -> dict:
        with self._lock:
            if data["client_id"] not in self._clients:
                raise ValueError(f"Client {data['client_id']} does not exist")
            row = {
                "description": None,
                "status": "active",
                "start_date": utc_now_iso(),
                "end_date": None,
                "value": 0,
                **{k: v for k, v in data.items() if v is not None},
                "id": self._next_id("projects"),
            }
            self._projects[row["id"]] = row
            return dict(row)

    def update_project(self, project_id: int, data: dict) -> dict | None:
        with self._lock:
            row = self._projects.get(project_id)
            if row is None:
                return None
            row.update(data)
            return dict(row)

    def delete_project(self, project_id: int) -> bool:
        with self._lock:
            return self._projects.pop(project_id, None) is not None

    # ---- companion tasks -----------------------------------------------------

    def list_companion_tasks(self, client_id: int) -> list[dict]:
        with self._lock:
            rows = [dict(t) for t in self._tasks.values() if t["client_id"] == client_id]
        return sort_tasks_newest_first(rows)

    def get_companion_task(self, task_id: int) -> dict | None:
        with self._lock:
            row = self._tasks.get(task_id)
            return dict(row) if row else None

    def create_companion_task(self, client_id: int, data: dict) -> dict:
        with self._lock:
            row = task_row_defaults(client_id, data, utc_now_iso())
            row["id"] = self._next_id("tasks")
            self._tasks[row["id"]] = row
            return dict(row)

    def update_companion_task(self, task_id: int, data: dict) -> dict | None:
        with self._lock:
            row = self._tasks.get(task_id)
            if row is None:
                return None
            row.update(data)
            row["updated_at"] = utc_now_iso()
            return dict(row)

    def delete_companion_task(self, task_id: int) -> bool:
        with self._lock:
            if self._tasks.pop(task_id, None) is None:
                return False
            tokens = {tok for tok, share in self._shares.items() if share["task_id"] == task_id}
            for tok in tokens:
                del self._shares[tok]
            for fid in [f for f, row in self._feedback.items() if row["token"] in tokens]:
                del self._feedback[fid]
            return True

    def begin_generation(
        self, client_id: int, task_type: str, task_id: int | None = None
    ) -> dict:
        with self.transaction():
            tasks = [t for t in self._tasks.values() if t["client_id"] == client_id]
            stub = self._check_generation_slot(tasks, client_id, task_type, task_id)
            fields = {"status": "in_progress", "content": None, "error": None, "completed_at": None}
            if stub is not None:
                return self.update_companion_task(stub["id"], fields)
            return self.create_companion_task(client_id, {"type": task_type, **fields})

    # ---- users & sessions ----------------------------------------------------

    def create_user(self, data: dict) -> dict:
        with self._lock:
            if any(u["username"] == data["username"] for u in self._users.values()):
                raise ValueError(f"Username {data['username']} already exists")
            row = {**data, "id": self._next_id("users"), "created_at": utc_now_iso()}
            self._users[row["id"]] = row
            return dict(row)

    def get_user(self, user_id: int) -> dict | None:
        with self._lock:
            row = self._users.get(user_id)
            return dict(row) if row else None

    def get_user_by_username(self, username: str) -> dict | None:
        with self._lock:
            for row in self._users.values():
                if row["username"] == username:
                    return dict(row)
            return None

    def create_session(self, sid: str, user_id: int, expires_at: str) -> dict:
        with self._lock:
            row = {"sid": sid, "user_id": user_id, "expires_at": expires_at}
            self._sessions[sid] = row
            return dict(row)

    def get_session(self, sid: str) -> dict | None:
        with self._lock:
            row = self._sessions.get(sid)
            return dict(row) if row else None

    def delete_session(self, sid: str) -> bool:
        with self._lock:
            return self._sessions.pop(sid, None) is not None

    # ---- site-map shares -----------------------------------------------------

    def create_share(self, token: str, task_id: int, client_id: int) -> dict:
        with self._lock:
            row = {
                "token": token,
                "task_id": task_id,
                "client_id": client_id,
                "created_at": utc_now_iso(),
            }
            self._shares[token] = row
            return dict(row)

    def get_share(self, token: str) -> dict | None:
        with self._lock:
            row = self._shares.get(token)
            return dict(row) if row else None

    def add_share_feedback(self, token: str, data: dict) -> dict:
        with self._lock:
            if token not in self._shares:
                raise ValueError(f"Unknown share token {token}")
            row = {**data, "token": token, "id": self._next_id("feedback"), "created_at": utc_now_iso()}
            self._feedback[row["id"]] = row
            return dict(row)

    def list_share_feedback(self, task_id: int) -> list[dict]:
        with self._lock:
            tokens = {tok for tok, share in self._shares.items() if share["task_id"] == task_id}
            rows = [dict(f) for f in self._feedback.values() if f["token"] in tokens]
        return sorted(rows, key=lambda f: f["id"])
