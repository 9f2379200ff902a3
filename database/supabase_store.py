from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from database.db import AttendanceRecord, StorageError


class SupabaseAttendanceStore:
    """Attendance table hosted on Supabase, accessed through PostgREST."""

    def __init__(self, client: Client, table: str = "attendance"):
        self.client = client
        self.table = table

    def create_tables(self) -> None:
        # Schema is owned by the hosted project.
        return None

    def insert_attendance(self, record: AttendanceRecord) -> dict[str, Any]:
        try:
            res = self.client.table(self.table).insert([dict(record)]).execute()
        except (APIError, httpx.HTTPError) as exc:
            raise StorageError(_error_message(exc)) from exc

        rows = res.data or []
        return dict(rows[0]) if rows else dict(record)

    def list_attendance(
        self,
        start: str | None = None,
        end: str | None = None,
    ) -> list[dict[str, Any]]:
        query = self.client.table(self.table).select("*")
        if start is not None:
            query = query.gte("timestamp", start)
        if end is not None:
            query = query.lt("timestamp", end)

        try:
            res = query.order("timestamp", desc=True).execute()
        except (APIError, httpx.HTTPError) as exc:
            raise StorageError(_error_message(exc)) from exc

        return [dict(r) for r in (res.data or [])]


def _error_message(exc: Exception) -> str:
    message = getattr(exc, "message", None) or str(exc)
    return message or "Failed to reach attendance table"
