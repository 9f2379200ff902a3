from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from backend.config import Settings
from backend.dependencies import get_settings, get_store
from backend.services.checkin import reference_point
from backend.services.reports import annotate_rows, build_csv, day_range, export_filename
from database.db import AttendanceStore, StorageError

router = APIRouter()


def _load_rows(date: str | None, settings: Settings, store: AttendanceStore) -> list[dict]:
    start = end = None
    if date:
        try:
            start, end = day_range(date)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid date. Use YYYY-MM-DD.")

    try:
        rows = store.list_attendance(start=start, end=end)
    except StorageError as e:
        raise HTTPException(status_code=502, detail=f"Error: {e}")

    return annotate_rows(rows, reference_point(settings), ZoneInfo(settings.display_timezone))


@router.get("/admin/attendance")
def list_attendance(
    date: str | None = None,
    settings: Settings = Depends(get_settings),
    store: AttendanceStore = Depends(get_store),
):
    rows = _load_rows(date, settings, store)
    return {
        "date": date,
        "rows": rows,
        "total": len(rows),
    }


@router.get("/admin/attendance/export")
def export_attendance(
    date: str | None = None,
    settings: Settings = Depends(get_settings),
    store: AttendanceStore = Depends(get_store),
):
    rows = _load_rows(date, settings, store)
    if not rows:
        raise HTTPException(status_code=404, detail="No attendance records to export.")

    return Response(
        content=build_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(date)}"'},
    )
