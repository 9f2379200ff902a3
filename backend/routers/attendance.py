from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from backend.config import Settings
from backend.dependencies import client_ip, get_settings, get_store
from backend.services.checkin import (
    CheckInSubmission,
    InvalidSubmissionError,
    LocationUnavailableError,
    check_in,
)
from database.db import AttendanceStore, StorageError

router = APIRouter()


class CheckInPayload(BaseModel):
    name: str
    email: str
    huid: str
    latitude: float | None = None
    longitude: float | None = None
    accuracy: float | None = None
    # set by the client when the geolocation lookup was denied or timed out
    location_error: str | None = None


@router.post("/attendance/check-in")
def attendance_check_in(
    payload: CheckInPayload,
    request: Request,
    settings: Settings = Depends(get_settings),
    store: AttendanceStore = Depends(get_store),
):
    submission = CheckInSubmission(
        name=payload.name,
        email=payload.email,
        huid=payload.huid,
        latitude=payload.latitude,
        longitude=payload.longitude,
        accuracy=payload.accuracy,
        location_error=payload.location_error,
    )

    try:
        result = check_in(
            submission,
            settings=settings,
            store=store,
            ip_address=client_ip(request, settings.trust_forwarded_for),
        )
    except InvalidSubmissionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LocationUnavailableError as e:
        raise HTTPException(status_code=400, detail=f"Error: {e}")
    except StorageError as e:
        raise HTTPException(status_code=502, detail=f"Error: {e}")

    return {
        "recorded": True,
        "is_present": result.geofence.is_present,
        "distance_m": result.distance_m,
        "message": result.message,
        "record": result.record,
    }
