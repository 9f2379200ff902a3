from zoneinfo import ZoneInfo

import pytest

from backend.geofence import REFERENCE_POINT
from backend.services.reports import (
    annotate_rows,
    build_csv,
    day_range,
    export_filename,
    format_display_time,
)

EASTERN = ZoneInfo("America/New_York")


def _row(**overrides):
    row = {
        "id": 1,
        "name": "Ada Lovelace",
        "email": "ada@college.harvard.edu",
        "huid": "12345678",
        "lat": REFERENCE_POINT.latitude,
        "long": REFERENCE_POINT.longitude,
        "ip_address": "198.51.100.4",
        "timestamp": "2024-09-05T13:02:11.482Z",
        "is_present": True,
    }
    row.update(overrides)
    return row


def test_day_range_covers_whole_day():
    assert day_range("2024-09-05") == ("2024-09-05T00:00:00", "2024-09-06T00:00:00")
    assert day_range("2024-12-31") == ("2024-12-31T00:00:00", "2025-01-01T00:00:00")


def test_day_range_includes_last_second():
    start, end = day_range("2024-09-05")
    assert start <= "2024-09-05T23:59:59.900Z" < end


@pytest.mark.parametrize("bad", ["", "2024-13-01", "09/05/2024", "yesterday"])
def test_day_range_rejects_bad_dates(bad):
    with pytest.raises(ValueError):
        day_range(bad)


def test_format_display_time_in_local_timezone():
    assert format_display_time("2024-09-05T13:02:11.482Z", EASTERN) == "09/05/2024, 09:02 AM"
    assert format_display_time("2024-01-15T20:45:00.000Z", EASTERN) == "01/15/2024, 03:45 PM"


def test_format_display_time_leaves_garbage_alone():
    assert format_display_time("not a timestamp", EASTERN) == "not a timestamp"


def test_annotate_rows_adds_distance_and_display_time():
    far = _row(id=2, lat=REFERENCE_POINT.latitude + 0.009)  # ~1 km north
    rows = annotate_rows([_row(), far], REFERENCE_POINT, EASTERN)

    assert rows[0]["distance_m"] == 0
    assert rows[0]["display_time"] == "09/05/2024, 09:02 AM"
    assert rows[1]["distance_m"] == 1001
    assert rows[1]["huid"] == "12345678"


def test_annotate_rows_empty():
    assert annotate_rows([], REFERENCE_POINT, EASTERN) == []


def test_build_csv_quotes_every_field_and_drops_presence():
    rows = annotate_rows([_row()], REFERENCE_POINT, EASTERN)
    text = build_csv(rows)

    assert text.split("\n") == [
        '"Name","Email","HUID","Timestamp","Distance"',
        '"Ada Lovelace","ada@college.harvard.edu","12345678","09/05/2024, 09:02 AM","0m"',
    ]
    assert "Present" not in text


def test_build_csv_escapes_embedded_quotes():
    rows = annotate_rows([_row(name='Ada "Countess" Lovelace')], REFERENCE_POINT, EASTERN)
    assert '"Ada ""Countess"" Lovelace"' in build_csv(rows)


def test_export_filename():
    assert export_filename("2024-09-05") == "attendance_2024-09-05.csv"
    assert export_filename(None) == "attendance_all.csv"
