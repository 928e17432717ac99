# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.

FakeSupabase mimics the slice of the supabase-py query builder the stores
use (select / insert / update / upsert / delete with eq, is_, order, limit),
keeping rows in memory so store behaviour can be checked end to end.
"""

import copy
import itertools
from types import SimpleNamespace
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from core.access_control import configure_access_control
from dependencies.auth import CurrentUser, get_current_user


# ============================================================
# In-memory Supabase stand-in
# ============================================================
class FakeQuery:

    def __init__(self, db, table):
        self.db = db
        self.table_name = table
        self.op = "select"
        self.payload = None
        self.on_conflict = None
        self.filters = []
        self._order = None
        self._limit = None

    # --- operations ---------------------------------------------------
    def select(self, *_columns):
        self.op = "select"
        return self

    def insert(self, data, **_kwargs):
        self.op, self.payload = "insert", data
        return self

    def update(self, data, **_kwargs):
        self.op, self.payload = "update", data
        return self

    def upsert(self, data, on_conflict=None, **_kwargs):
        self.op, self.payload, self.on_conflict = "upsert", data, on_conflict
        return self

    def delete(self):
        self.op = "delete"
        return self

    # --- filters ------------------------------------------------------
    def eq(self, column, value):
        # PostgREST filters travel as text
        self.filters.append(lambda row: str(row.get(column)) == str(value))
        return self

    def is_(self, column, value):
        if value == "null":
            self.filters.append(lambda row: row.get(column) is None)
        else:
            self.filters.append(lambda row: row.get(column) is value)
        return self

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self

    def limit(self, n):
        self._limit = n
        return self

    # --- execution ----------------------------------------------------
    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        return self.db.run(self)


class FakeSupabase:

    UNIQUE_KEYS = {"role_permissions": "role"}

    def __init__(self):
        self.tables = {}
        self.fail_on = set()          # {(table, op)} raise on execute
        self.before_execute = []      # callables(query) run before each execute
        self._ids = itertools.count(1)
        self.auth = SimpleNamespace(get_user=lambda token: None)

    def table(self, name):
        self.tables.setdefault(name, [])
        return FakeQuery(self, name)

    def rows(self, name):
        return self.tables.setdefault(name, [])

    def seed(self, name, *rows):
        for row in rows:
            row = dict(row)
            row.setdefault("id", next(self._ids))
            self.rows(name).append(row)

    def run(self, q: FakeQuery):
        for hook in list(self.before_execute):
            hook(q)

        if (q.table_name, q.op) in self.fail_on:
            raise Exception(f"simulated {q.op} failure on {q.table_name}")

        rows = self.rows(q.table_name)
        unique = self.UNIQUE_KEYS.get(q.table_name)

        if q.op == "select":
            found = [copy.deepcopy(r) for r in rows if q._matches(r)]
            if q._order:
                column, desc = q._order
                found.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
            if q._limit is not None:
                found = found[: q._limit]
            return SimpleNamespace(data=found)

        if q.op == "insert":
            payload = q.payload if isinstance(q.payload, list) else [q.payload]
            created = []
            for item in payload:
                if unique and any(r.get(unique) == item.get(unique) for r in rows):
                    raise Exception(f"duplicate key value violates unique constraint on {unique}")
                row = dict(item)
                row.setdefault("id", next(self._ids))
                rows.append(row)
                created.append(copy.deepcopy(row))
            return SimpleNamespace(data=created)

        if q.op == "update":
            changed = []
            for r in rows:
                if q._matches(r):
                    r.update(copy.deepcopy(q.payload))
                    changed.append(copy.deepcopy(r))
            return SimpleNamespace(data=changed)

        if q.op == "upsert":
            key = q.on_conflict or unique
            existing = next((r for r in rows if r.get(key) == q.payload.get(key)), None)
            if existing is not None:
                existing.update(copy.deepcopy(q.payload))
                return SimpleNamespace(data=[copy.deepcopy(existing)])
            row = dict(q.payload)
            row.setdefault("id", next(self._ids))
            rows.append(row)
            return SimpleNamespace(data=[copy.deepcopy(row)])

        if q.op == "delete":
            removed = [r for r in rows if q._matches(r)]
            self.tables[q.table_name] = [r for r in rows if not q._matches(r)]
            return SimpleNamespace(data=copy.deepcopy(removed))

        raise AssertionError(f"unsupported op {q.op}")


# ============================================================
# Store fixtures
# ============================================================
@pytest.fixture
def fake_client():
    return FakeSupabase()


@pytest.fixture
def engine(fake_client):
    """Global access control bound to the in-memory client."""
    return configure_access_control(fake_client)


@pytest.fixture
def add_role(fake_client):
    """Insert a role row directly, bypassing the registry."""
    def _add(name, description=""):
        fake_client.seed("roles", {"name": name, "description": description,
                                   "created_at": "2024-01-01T00:00:00Z"})
        return next(r for r in fake_client.rows("roles") if r["name"] == name)
    return _add


# ============================================================
# App fixtures
# ============================================================
@pytest.fixture(scope="function")
def app(engine):
    """Create a test FastAPI application instance."""
    from main import create_app
    return create_app()


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def login(app):
    """Pretend the bearer token resolved to the given identity."""
    def _login(role, user_id=None):
        user = CurrentUser(
            id=user_id or f"{role.lower()}-user",
            email=f"{role.lower()}@example.com",
            role=role,
        )
        app.dependency_overrides[get_current_user] = lambda: user
        return user
    yield _login
    app.dependency_overrides = {}

