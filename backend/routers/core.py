from fastapi import APIRouter, Depends

from backend.config import Settings
from backend.dependencies import get_settings

router = APIRouter()


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/config/geofence")
def geofence_config(settings: Settings = Depends(get_settings)):
    return {
        "reference": {
            "latitude": settings.reference_lat,
            "longitude": settings.reference_lon,
        },
        "presence_radius_m": settings.presence_radius_m,
        "geolocation": {
            "enable_high_accuracy": settings.geolocation_high_accuracy,
            "timeout_ms": settings.geolocation_timeout_ms,
            "maximum_age_ms": settings.geolocation_maximum_age_ms,
        },
    }
