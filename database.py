"""
Data store access.

All persistence lives in a hosted Supabase (PostgREST) database. Routes and the
seed script talk to it only through the small table-scoped :class:`Store`
interface below, so a fake store can stand in for it in tests.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

import httpx
from fastapi import Request
from postgrest.exceptions import APIError
from supabase import Client, create_client

from config import Settings

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class StoreError(Exception):
    """A failed store call. ``message`` is the store's own wording."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class Store(Protocol):
    def select(
        self,
        table: str,
        columns: str = "*",
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]: ...

    def insert(self, table: str, rows: List[Row]) -> List[Row]: ...

    def update(self, table: str, record_id: str, fields: Row) -> Optional[Row]: ...

    def delete(self, table: str, record_id: str) -> None: ...


class SupabaseStore:
    def __init__(self, client: Client):
        self._client = client

    def _execute(self, query) -> List[Row]:
        try:
            response = query.execute()
        except APIError as e:
            raise StoreError(e.message or str(e), code=e.code) from e
        except httpx.HTTPError as e:
            raise StoreError(str(e)) from e
        except Exception as e:
            raise StoreError(str(e) or e.__class__.__name__) from e
        return response.data or []

    def select(self, table, columns="*", order_by=None, descending=False, limit=None):
        query = self._client.table(table).select(columns)
        if order_by:
            query = query.order(order_by, desc=descending)
        if limit is not None:
            query = query.limit(limit)
        return self._execute(query)

    def insert(self, table, rows):
        return self._execute(self._client.table(table).insert(rows))

    def update(self, table, record_id, fields):
        rows = self._execute(self._client.table(table).update(fields).eq("id", record_id))
        return rows[0] if rows else None

    def delete(self, table, record_id):
        self._execute(self._client.table(table).delete().eq("id", record_id))


class UnconfiguredStore:
    """
    Stand-in used when Supabase credentials are missing or unusable.

    The server still starts; every data request fails with a 500 carrying
    this message.
    """

    message = "Supabase credentials not configured"

    def __init__(self, message: Optional[str] = None):
        if message:
            self.message = message

    def _fail(self, *_args, **_kwargs):
        raise StoreError(self.message)

    select = insert = update = delete = _fail


def create_store(settings: Settings) -> Store:
    if not settings.has_credentials:
        logger.warning("Supabase credentials not found. Some features may not work.")
        return UnconfiguredStore()
    try:
        client = create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logger.error("Could not create Supabase client: %s", e)
        return UnconfiguredStore(f"Supabase client unavailable: {e}")
    return SupabaseStore(client)


def get_store(request: Request) -> Store:
    """FastAPI dependency: the store attached to the running app."""
    return request.app.state.store
