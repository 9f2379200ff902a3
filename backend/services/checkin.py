import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from backend.config import Settings
from backend.geofence import Coordinate, GeofenceResult, evaluate, presence_message, round_meters
from database.db import AttendanceRecord, AttendanceStore, StorageError

logger = logging.getLogger(__name__)


class CheckInError(Exception):
    """Base class for check-ins that were not recorded."""


class InvalidSubmissionError(CheckInError):
    """Name, email or HUID is missing or malformed."""


class LocationUnavailableError(CheckInError):
    """The device could not (or would not) supply a GPS reading."""


@dataclass(frozen=True)
class CheckInSubmission:
    name: str
    email: str
    huid: str
    latitude: float | None = None
    longitude: float | None = None
    accuracy: float | None = None
    location_error: str | None = None


@dataclass(frozen=True)
class CheckInResult:
    record: dict[str, Any]
    geofence: GeofenceResult
    message: str

    @property
    def distance_m(self) -> int:
        return round_meters(self.geofence.distance_m)


def iso_timestamp(now: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a trailing Z."""
    utc = now.astimezone(timezone.utc) if now.tzinfo else now.replace(tzinfo=timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def reference_point(settings: Settings) -> Coordinate:
    return Coordinate(settings.reference_lat, settings.reference_lon)


def check_in(
    submission: CheckInSubmission,
    *,
    settings: Settings,
    store: AttendanceStore,
    ip_address: str | None,
    now: datetime | None = None,
) -> CheckInResult:
    """
    Record one attendance check-in.

    Nothing is written when a field is blank or the location is unavailable.
    Presence is always derived from the raw coordinates here, never taken
    from the client.
    """
    name = submission.name.strip()
    email = submission.email.strip()
    huid = submission.huid.strip()
    if not name or not email or not huid:
        raise InvalidSubmissionError("All fields are required.")
    local, _, domain = email.partition("@")
    if not local or "." not in domain:
        raise InvalidSubmissionError("Invalid email address.")

    if submission.location_error:
        raise LocationUnavailableError(submission.location_error.strip() or "Location unavailable")
    if submission.latitude is None or submission.longitude is None:
        raise LocationUnavailableError("GPS permission is required")
    if not (math.isfinite(submission.latitude) and math.isfinite(submission.longitude)):
        raise LocationUnavailableError("Invalid GPS reading")

    coord = Coordinate(float(submission.latitude), float(submission.longitude))
    result = evaluate(coord, reference_point(settings), settings.presence_radius_m)

    record: AttendanceRecord = {
        "name": name,
        "email": email,
        "huid": huid,
        "lat": coord.latitude,
        "long": coord.longitude,
        "ip_address": ip_address,
        "timestamp": iso_timestamp(now or datetime.now(timezone.utc)),
        "is_present": result.is_present,
    }

    try:
        saved = store.insert_attendance(record)
    except StorageError:
        logger.exception("Attendance error for huid=%s", huid)
        raise

    logger.info(
        "Check-in huid=%s distance=%sm present=%s accuracy=%s",
        huid,
        round_meters(result.distance_m),
        result.is_present,
        submission.accuracy,
    )
    return CheckInResult(record=saved, geofence=result, message=presence_message(result))
