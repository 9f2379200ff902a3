import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

BASE_DIR = Path(__file__).resolve().parents[1]

DEFAULT_DB_PATH = BASE_DIR / "database" / "attendance.db"
DEFAULT_REFERENCE_LAT = 42.37718594957353
DEFAULT_REFERENCE_LON = -71.11540116881643
DEFAULT_PRESENCE_RADIUS_M = 300.0
STORAGE_BACKENDS = {"sqlite", "supabase"}


def _parse_bool(value: str | None, fallback: bool) -> bool:
    if value is None:
        return fallback
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return fallback


def _parse_csv(value: str | None, fallback: list[str]) -> list[str]:
    if not value:
        return fallback
    parsed = [item.strip() for item in value.split(",") if item.strip()]
    return parsed or fallback


def _parse_float(value: str | None, fallback: float) -> float:
    if not value:
        return fallback
    try:
        parsed = float(value.strip())
    except ValueError:
        return fallback
    return parsed if math.isfinite(parsed) else fallback


def _parse_int(value: str | None, fallback: int) -> int:
    if not value:
        return fallback
    try:
        return int(value.strip())
    except ValueError:
        return fallback


def _parse_log_level(value: str | None, fallback: str) -> str:
    normalized = (value or "").strip().upper()
    if normalized in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
        return normalized
    return fallback


def _parse_storage_backend(value: str | None) -> str:
    normalized = (value or "").strip().lower()
    if normalized in STORAGE_BACKENDS:
        return normalized
    return "sqlite"


@dataclass(frozen=True)
class Settings:
    db_path: Path = DEFAULT_DB_PATH
    storage_backend: str = "sqlite"
    supabase_url: str = ""
    supabase_key: str = ""
    attendance_table: str = "attendance"

    reference_lat: float = DEFAULT_REFERENCE_LAT
    reference_lon: float = DEFAULT_REFERENCE_LON
    presence_radius_m: float = DEFAULT_PRESENCE_RADIUS_M

    # Passed through to clients for navigator.geolocation-style lookups.
    geolocation_high_accuracy: bool = True
    geolocation_timeout_ms: int = 5000
    geolocation_maximum_age_ms: int = 0

    display_timezone: str = "America/New_York"
    # Only enable behind a proxy that sets X-Forwarded-For itself.
    trust_forwarded_for: bool = False

    cors_allow_origins: list[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )
    cors_allow_methods: list[str] = field(default_factory=lambda: ["GET", "POST", "OPTIONS"])
    cors_allow_headers: list[str] = field(default_factory=lambda: ["Content-Type", "Accept"])
    cors_allow_credentials: bool = False

    log_level: str = "INFO"


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build the process settings from ``GEOATTEND_*`` environment variables."""
    env = os.environ if environ is None else environ
    defaults = Settings()

    def get(name: str) -> str | None:
        return env.get(f"GEOATTEND_{name}")

    return Settings(
        db_path=Path(get("DB_PATH") or defaults.db_path),
        storage_backend=_parse_storage_backend(get("STORAGE_BACKEND")),
        supabase_url=(get("SUPABASE_URL") or "").strip(),
        supabase_key=(get("SUPABASE_KEY") or "").strip(),
        attendance_table=(get("ATTENDANCE_TABLE") or "").strip() or defaults.attendance_table,
        reference_lat=_parse_float(get("REFERENCE_LAT"), defaults.reference_lat),
        reference_lon=_parse_float(get("REFERENCE_LON"), defaults.reference_lon),
        presence_radius_m=max(
            0.0,
            _parse_float(get("PRESENCE_RADIUS_M"), defaults.presence_radius_m),
        ),
        geolocation_high_accuracy=_parse_bool(
            get("GEOLOCATION_HIGH_ACCURACY"),
            defaults.geolocation_high_accuracy,
        ),
        geolocation_timeout_ms=max(
            0,
            _parse_int(get("GEOLOCATION_TIMEOUT_MS"), defaults.geolocation_timeout_ms),
        ),
        geolocation_maximum_age_ms=max(
            0,
            _parse_int(get("GEOLOCATION_MAXIMUM_AGE_MS"), defaults.geolocation_maximum_age_ms),
        ),
        display_timezone=(get("DISPLAY_TIMEZONE") or "").strip() or defaults.display_timezone,
        trust_forwarded_for=_parse_bool(get("TRUST_FORWARDED_FOR"), defaults.trust_forwarded_for),
        cors_allow_origins=_parse_csv(get("CORS_ALLOW_ORIGINS"), defaults.cors_allow_origins),
        cors_allow_methods=_parse_csv(get("CORS_ALLOW_METHODS"), defaults.cors_allow_methods),
        cors_allow_headers=_parse_csv(get("CORS_ALLOW_HEADERS"), defaults.cors_allow_headers),
        cors_allow_credentials=_parse_bool(
            get("CORS_ALLOW_CREDENTIALS"),
            defaults.cors_allow_credentials,
        ),
        log_level=_parse_log_level(get("LOG_LEVEL"), defaults.log_level),
    )
