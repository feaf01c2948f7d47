"""Backend data access over the Supabase tables users, vehicles, maintenance_tasks."""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

import httpx
from postgrest.exceptions import APIError

from garage.errors import BackendError
from garage.mapping import to_domain, to_persistence
from garage.task import MaintenanceTask
from garage.vehicle import User, Vehicle

logger = logging.getLogger(__name__)

USERS = "users"
VEHICLES = "vehicles"
TASKS = "maintenance_tasks"


class BackendClient:
    """Typed access to the backend tables.

    Wraps an injected ``supabase.Client``. Rows are translated through
    ``garage.mapping`` on the way in and out; every failure surfaces as
    ``BackendError``.
    """

    def __init__(self, client: Any):
        self._client = client

    def _execute(self, query: Any, action: str) -> List[dict]:
        try:
            response = query.execute()
        except APIError as e:
            logger.error("Backend %s failed: %s", action, e.message)
            raise BackendError(e.message) from e
        except httpx.HTTPError as e:
            logger.error("Backend %s failed: %s", action, e)
            raise BackendError(str(e)) from e
        return response.data or []

    # --- users ---

    def insert_user(self, user: User) -> User:
        row = to_persistence(user)
        row.pop("created_at", None)
        data = self._execute(self._client.table(USERS).insert(row), "insert user")
        return to_domain("user", data[0]) if data else user

    def fetch_user(self, user_id: str) -> Optional[User]:
        """Fetch a profile row, or None when it does not exist."""
        data = self._execute(
            self._client.table(USERS).select("*").eq("id", user_id).limit(1),
            "fetch user",
        )
        return to_domain("user", data[0]) if data else None

    # --- vehicles ---

    def insert_vehicle(self, vehicle: Vehicle) -> Vehicle:
        """Insert a vehicle and return it with server-assigned fields."""
        data = self._execute(
            self._client.table(VEHICLES).insert(to_persistence(vehicle)),
            "insert vehicle",
        )
        if not data:
            raise BackendError("Vehicle insert returned no row")
        return to_domain("vehicle", data[0])

    def list_vehicles(self, user_id: str) -> List[Vehicle]:
        """All vehicles owned by a user, newest first."""
        data = self._execute(
            self._client.table(VEHICLES)
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True),
            "list vehicles",
        )
        return [to_domain("vehicle", row) for row in data]

    def get_vehicle(self, vehicle_id: str) -> Optional[Vehicle]:
        data = self._execute(
            self._client.table(VEHICLES).select("*").eq("id", vehicle_id).limit(1),
            "get vehicle",
        )
        return to_domain("vehicle", data[0]) if data else None

    def update_vehicle_mileage(self, vehicle_id: str, mileage: int) -> Optional[Vehicle]:
        data = self._execute(
            self._client.table(VEHICLES)
            .update({"mileage": mileage})
            .eq("id", vehicle_id),
            "update mileage",
        )
        return to_domain("vehicle", data[0]) if data else None

    def delete_vehicle(self, vehicle_id: str) -> None:
        """Delete a vehicle. The backend cascades to its maintenance tasks."""
        self._execute(
            self._client.table(VEHICLES).delete().eq("id", vehicle_id),
            "delete vehicle",
        )

    # --- maintenance tasks ---

    def insert_tasks(self, tasks: Sequence[MaintenanceTask]) -> List[MaintenanceTask]:
        """Batch-insert tasks in a single request."""
        if not tasks:
            return []
        rows = [to_persistence(task) for task in tasks]
        data = self._execute(self._client.table(TASKS).insert(rows), "insert tasks")
        return [to_domain("task", row) for row in data]

    def list_tasks(self, vehicle_ids: Sequence[str]) -> List[MaintenanceTask]:
        """Tasks for the given vehicles, ascending by next due mileage."""
        if not vehicle_ids:
            return []
        data = self._execute(
            self._client.table(TASKS)
            .select("*")
            .in_("vehicle_id", list(vehicle_ids))
            .order("next_due_mileage"),
            "list tasks",
        )
        return [to_domain("task", row) for row in data]
