"""Shared test fixtures: an in-memory stand-in for the Supabase client."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from postgrest.exceptions import APIError

from garage import load_schedule
from services.auth import AuthService, SessionStore
from services.backend import BackendClient
from services.config import Settings
from services.garage_service import GarageService

FIXED_NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeQuery:
    """Chainable query builder mimicking the postgrest request builder."""

    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload = None
        self.filters = []
        self.order_by = None
        self.desc = False
        self.limit_n = None

    def select(self, *columns):
        self.op = "select"
        return self

    def insert(self, payload):
        self.op = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.op = "update"
        self.payload = payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc=False):
        self.order_by = column
        self.desc = desc
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    def _matching(self):
        return [r for r in self.db.tables[self.table] if all(f(r) for f in self.filters)]

    def execute(self):
        self.db.calls.append((self.table, self.op))
        if (self.table, self.op) in self.db.failures:
            raise APIError({"message": self.db.failures[(self.table, self.op)], "code": "500"})

        if self.op == "insert":
            rows = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = [self.db.add(self.table, row) for row in rows]
            return SimpleNamespace(data=[dict(r) for r in inserted])

        rows = self._matching()
        if self.op == "update":
            for row in rows:
                row.update(self.payload)
            return SimpleNamespace(data=[dict(r) for r in rows])
        if self.op == "delete":
            for row in rows:
                self.db.tables[self.table].remove(row)
            return SimpleNamespace(data=[dict(r) for r in rows])

        if self.order_by:
            present = [r for r in rows if r.get(self.order_by) is not None]
            missing = [r for r in rows if r.get(self.order_by) is None]
            present.sort(key=lambda r: r[self.order_by], reverse=self.desc)
            rows = present + missing
        if self.limit_n is not None:
            rows = rows[: self.limit_n]
        return SimpleNamespace(data=[dict(r) for r in rows])


class FakeSupabase:
    """In-memory tables plus a MagicMock auth client."""

    def __init__(self):
        self.tables = {"users": [], "vehicles": [], "maintenance_tasks": []}
        self.failures = {}
        self.calls = []
        self.auth = MagicMock()
        self._next_id = 1
        self._clock = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def table(self, name):
        return FakeQuery(self, name)

    def fail(self, table, op, message="boom"):
        self.failures[(table, op)] = message

    def add(self, table, row):
        row = dict(row)
        if "id" not in row:
            row["id"] = f"{table[:-1]}-{self._next_id}"
            self._next_id += 1
        self._clock += timedelta(seconds=1)
        row.setdefault("created_at", self._clock.isoformat())
        if table != "users":
            row.setdefault("updated_at", row["created_at"])
        self.tables[table].append(row)
        return row


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def backend(fake_supabase):
    return BackendClient(fake_supabase)


@pytest.fixture
def schedule():
    return load_schedule()


@pytest.fixture
def garage_service(backend, schedule):
    return GarageService(backend, schedule, clock=lambda: FIXED_NOW)


@pytest.fixture
def session_store(tmp_path):
    return SessionStore(tmp_path / "session.yaml")


@pytest.fixture
def auth_service(fake_supabase, backend, session_store):
    return AuthService(fake_supabase, backend, session_store)


@pytest.fixture
def settings(tmp_path):
    return Settings(session_file=tmp_path / "session.yaml")
