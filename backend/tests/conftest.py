"""
Shared fixtures: an in-memory stand-in for the Supabase client, the FastAPI
app wired to it, and ready-made note stores.
"""

import copy
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from pronotes.core.dependencies import get_db
from pronotes.core.storage import MemoryStorage
from pronotes.features.notes.api_store import ApiNoteStore
from pronotes.features.notes.indicator import SavedIndicator
from pronotes.features.notes.local_store import LocalNoteStore
from pronotes.main import create_app

API_URL = "http://testserver/api/notes"
BASE_TIME = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)


# -- Fake Supabase query builder --

class FakeResult:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Supports the subset of the postgrest builder the notes service uses."""

    def __init__(self, table: "FakeTable", op: str, payload=None, columns: str = "*"):
        self.table = table
        self.op = op
        self.payload = payload
        self.columns = columns
        self.filters = []
        self.order_by = None

    def eq(self, column, value):
        self.filters.append(lambda row: str(row.get(column)) == str(value))
        return self

    def in_(self, column, values):
        wanted = {str(v) for v in values}
        self.filters.append(lambda row: str(row.get(column)) in wanted)
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def _matches(self, row) -> bool:
        return all(f(row) for f in self.filters)

    def execute(self) -> FakeResult:
        table = self.table
        if self.op == "select":
            rows = [r for r in table.rows if self._matches(r)]
            if self.order_by:
                column, desc = self.order_by
                rows.sort(key=lambda r: r.get(column) or "", reverse=desc)
            if self.columns != "*":
                names = [c.strip() for c in self.columns.split(",")]
                rows = [{n: r.get(n) for n in names} for r in rows]
            return FakeResult(copy.deepcopy(rows))

        if self.op == "insert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = [table.add_row(dict(p)) for p in payload]
            return FakeResult(copy.deepcopy(inserted))

        if self.op == "upsert":
            written = []
            for p in self.payload:
                match = next((r for r in table.rows if str(r["id"]) == str(p["id"])), None)
                if match is None:
                    written.append(table.add_row(dict(p)))
                else:
                    match.update(p)
                    written.append(match)
            return FakeResult(copy.deepcopy(written))

        if self.op == "update":
            updated = []
            for row in table.rows:
                if self._matches(row):
                    row.update(self.payload)
                    updated.append(row)
            return FakeResult(copy.deepcopy(updated))

        if self.op == "delete":
            removed = [r for r in table.rows if self._matches(r)]
            table.rows = [r for r in table.rows if not self._matches(r)]
            return FakeResult(copy.deepcopy(removed))

        raise AssertionError(f"unsupported op {self.op}")


class FakeTable:
    def __init__(self):
        self.rows: list[dict] = []
        self._next_id = 1

    def add_row(self, row: dict) -> dict:
        if "id" not in row:
            row["id"] = self._next_id
        if isinstance(row["id"], int):
            self._next_id = max(self._next_id, row["id"] + 1)
        # created_at default: one minute later for every insert
        row.setdefault(
            "created_at",
            (BASE_TIME + timedelta(minutes=len(self.rows) + self._next_id)).isoformat(),
        )
        row.setdefault("pinned", False)
        row.setdefault("due_date", None)
        row.setdefault("reminder_time", None)
        self.rows.append(row)
        return row

    def select(self, columns: str = "*") -> FakeQuery:
        return FakeQuery(self, "select", columns=columns)

    def insert(self, payload, **options) -> FakeQuery:
        return FakeQuery(self, "insert", payload=payload)

    def upsert(self, payload, **options) -> FakeQuery:
        rows = payload if isinstance(payload, list) else [payload]
        return FakeQuery(self, "upsert", payload=rows)

    def update(self, payload) -> FakeQuery:
        return FakeQuery(self, "update", payload=payload)

    def delete(self) -> FakeQuery:
        return FakeQuery(self, "delete")


class FakeSupabase:
    def __init__(self):
        self.tables: dict[str, FakeTable] = {}

    def table(self, name: str) -> FakeTable:
        return self.tables.setdefault(name, FakeTable())


# -- Clocks --

class StepClock:
    """datetime clock that advances a fixed step on every call."""

    def __init__(self, start: datetime = BASE_TIME, step: timedelta = timedelta(minutes=1)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        return value


class ManualClock:
    """monotonic-style clock the test moves by hand."""

    def __init__(self, value: float = 0.0):
        self.value = value

    def __call__(self) -> float:
        return self.value


# -- Fixtures --

@pytest.fixture
def fake_db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def app(fake_db):
    application = create_app()
    application.dependency_overrides[get_db] = lambda: fake_db
    return application


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def indicator_clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def indicator(indicator_clock) -> SavedIndicator:
    return SavedIndicator(delay=1.5, clock=indicator_clock)


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def local_store(storage, indicator) -> LocalNoteStore:
    return LocalNoteStore(storage, indicator=indicator, clock=StepClock())


@pytest.fixture
async def api_store(app, indicator):
    http = httpx.AsyncClient(transport=httpx.ASGITransport(app=app))
    store = ApiNoteStore(API_URL, indicator=indicator, client=http)
    yield store
    await store.aclose()
