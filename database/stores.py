import logging

from supabase import ClientOptions, create_client

from backend.config import Settings
from database.db import AttendanceStore, SqliteAttendanceStore
from database.supabase_store import SupabaseAttendanceStore

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> AttendanceStore:
    """Create the attendance store selected by ``settings.storage_backend``."""
    if settings.storage_backend == "supabase":
        if not settings.supabase_url:
            raise RuntimeError("GEOATTEND_SUPABASE_URL is not defined")
        if not settings.supabase_key:
            raise RuntimeError("GEOATTEND_SUPABASE_KEY is not defined")

        client = create_client(
            settings.supabase_url,
            settings.supabase_key,
            options=ClientOptions(persist_session=False),
        )
        logger.info("Using Supabase attendance table %r at %s", settings.attendance_table, settings.supabase_url)
        return SupabaseAttendanceStore(client, table=settings.attendance_table)

    logger.info("Using sqlite attendance store at %s", settings.db_path)
    return SqliteAttendanceStore(settings.db_path)
