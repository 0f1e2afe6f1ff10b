from collections import defaultdict
from datetime import datetime, timedelta, timezone
from itertools import count

import pytest
from fastapi.testclient import TestClient

from config import Settings
from database import StoreError
from main import create_app


class FakeStore:
    """In-memory stand-in for the Supabase store.

    Rows get a uuid-like id and a strictly increasing created_at. Set
    ``fail_with`` to make every call raise that error.
    """

    def __init__(self):
        self.tables = defaultdict(list)
        self.calls = []
        self.fail_with = None
        self._seq = count(1)
        self._epoch = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _record(self, op, table):
        self.calls.append((op, table))
        if self.fail_with is not None:
            raise self.fail_with

    def select(self, table, columns="*", order_by=None, descending=False, limit=None):
        self._record("select", table)
        rows = [dict(r) for r in self.tables[table]]
        if order_by:
            rows.sort(key=lambda r: r[order_by], reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        if columns == "id":
            rows = [{"id": r["id"]} for r in rows]
        return rows

    def insert(self, table, rows):
        self._record("insert", table)
        created = []
        for row in rows:
            n = next(self._seq)
            record = dict(row)
            record["id"] = f"row-{n}"
            record["created_at"] = (self._epoch + timedelta(seconds=n)).isoformat()
            self.tables[table].append(record)
            created.append(dict(record))
        return created

    def update(self, table, record_id, fields):
        self._record("update", table)
        for record in self.tables[table]:
            if record["id"] == record_id:
                record.update(fields)
                return dict(record)
        return None

    def delete(self, table, record_id):
        self._record("delete", table)
        self.tables[table] = [r for r in self.tables[table] if r["id"] != record_id]

    def count(self, table):
        return len(self.tables[table])

    def writes(self):
        return [c for c in self.calls if c[0] != "select"]


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def settings():
    return Settings(supabase_url="https://example.supabase.co", supabase_key="test-key")


@pytest.fixture
def client(store, settings):
    return TestClient(create_app(settings=settings, store=store))


@pytest.fixture
def failing_store(store):
    store.fail_with = StoreError('relation "gallery" does not exist', code="42P01")
    return store
