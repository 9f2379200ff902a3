import csv
import io
from datetime import date, datetime, timedelta, timezone
from typing import Any, Sequence
from zoneinfo import ZoneInfo

from backend.geofence import Coordinate, distances_to, round_meters

CSV_HEADERS = ["Name", "Email", "HUID", "Timestamp", "Distance"]


def day_range(day: str) -> tuple[str, str]:
    """
    Timestamp bounds for one calendar day, as ``[start, end)`` ISO strings.

    Raises ValueError for anything that is not ``YYYY-MM-DD``.
    """
    parsed = date.fromisoformat(day.strip())
    start = f"{parsed.isoformat()}T00:00:00"
    end = f"{(parsed + timedelta(days=1)).isoformat()}T00:00:00"
    return start, end


def parse_timestamp(value: str) -> datetime:
    # stored as JS toISOString() output, e.g. 2024-09-05T13:02:11.482Z
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_display_time(value: str, tz: ZoneInfo) -> str:
    """en-US style ``MM/DD/YYYY, hh:mm AM`` in the given timezone."""
    try:
        local = parse_timestamp(value).astimezone(tz)
    except ValueError:
        return value
    return local.strftime("%m/%d/%Y, %I:%M %p")


def annotate_rows(
    rows: Sequence[dict[str, Any]],
    reference: Coordinate,
    tz: ZoneInfo,
) -> list[dict[str, Any]]:
    """Attach ``distance_m`` and ``display_time`` to each stored row."""
    if not rows:
        return []

    distances = distances_to(
        [float(r["lat"]) for r in rows],
        [float(r["long"]) for r in rows],
        reference,
    )
    return [
        {
            **row,
            "distance_m": round_meters(float(d)),
            "display_time": format_display_time(str(row["timestamp"]), tz),
        }
        for row, d in zip(rows, distances)
    ]


def build_csv(rows: Sequence[dict[str, Any]]) -> str:
    """CSV text for annotated rows; every field quoted, rows joined by newline."""
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for r in rows:
        writer.writerow([
            r["name"],
            r["email"],
            r["huid"],
            r["display_time"],
            f"{r['distance_m']}m",
        ])
    return buf.getvalue().rstrip("\n")


def export_filename(day: str | None) -> str:
    return f"attendance_{day or 'all'}.csv"
