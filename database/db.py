import logging
import sqlite3
from pathlib import Path
from typing import Any, Protocol, TypedDict

logger = logging.getLogger(__name__)


class AttendanceRecord(TypedDict):
    name: str
    email: str
    huid: str
    lat: float
    long: float
    ip_address: str | None
    timestamp: str  # ISO-8601, UTC
    is_present: bool


class StorageError(Exception):
    """Raised when the attendance table cannot be read or written."""


class AttendanceStore(Protocol):
    def create_tables(self) -> None: ...

    def insert_attendance(self, record: AttendanceRecord) -> dict[str, Any]: ...

    def list_attendance(
        self,
        start: str | None = None,
        end: str | None = None,
    ) -> list[dict[str, Any]]: ...


class SqliteAttendanceStore:
    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)

    def connect_db(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def create_tables(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = self.connect_db()
            try:
                conn.execute("""
                CREATE TABLE IF NOT EXISTS attendance (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL,
                    huid TEXT NOT NULL,
                    lat REAL NOT NULL,
                    long REAL NOT NULL,
                    ip_address TEXT,
                    timestamp TEXT NOT NULL,         -- ISO-8601 UTC, e.g. 2024-09-05T13:02:11.482Z
                    is_present INTEGER NOT NULL DEFAULT 0
                )
                """)
                conn.execute(
                    "CREATE INDEX IF NOT EXISTS idx_attendance_timestamp ON attendance(timestamp);"
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise StorageError(f"Could not create attendance table: {exc}") from exc
        logger.info("Attendance table ready at %s", self.db_path)

    def insert_attendance(self, record: AttendanceRecord) -> dict[str, Any]:
        values = (
            record["name"],
            record["email"],
            record["huid"],
            record["lat"],
            record["long"],
            record.get("ip_address"),
            record["timestamp"],
            int(bool(record["is_present"])),
        )
        try:
            conn = self.connect_db()
            try:
                cur = conn.execute(
                    """
                    INSERT INTO attendance (name, email, huid, lat, long, ip_address, timestamp, is_present)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    values,
                )
                row_id = cur.lastrowid
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to record attendance: {exc}") from exc

        return {"id": row_id, **record}

    def list_attendance(
        self,
        start: str | None = None,
        end: str | None = None,
    ) -> list[dict[str, Any]]:
        clauses: list[str] = []
        params: list[str] = []
        if start is not None:
            clauses.append("timestamp >= ?")
            params.append(start)
        if end is not None:
            clauses.append("timestamp < ?")
            params.append(end)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        try:
            conn = self.connect_db()
            try:
                rows = conn.execute(
                    f"""
                    SELECT id, name, email, huid, lat, long, ip_address, timestamp, is_present
                    FROM attendance
                    {where}
                    ORDER BY timestamp DESC, id DESC
                    """,
                    params,
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to load attendance: {exc}") from exc

        return [{**dict(r), "is_present": bool(r["is_present"])} for r in rows]
