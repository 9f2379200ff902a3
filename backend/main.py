import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.config import Settings, load_settings
from backend.routers import admin, attendance, core
from database.db import AttendanceStore
from database.stores import build_store

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, store: AttendanceStore | None = None) -> FastAPI:
    settings = settings or load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="GeoAttend API")
    app.state.settings = settings
    app.state.store = store

    # -----------------------------
    # CORS (check-in page)
    # -----------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    # -----------------------------
    # Startup
    # -----------------------------
    @app.on_event("startup")
    def _startup():
        if app.state.store is None:
            app.state.store = build_store(settings)
        app.state.store.create_tables()
        logger.info(
            "Geofence centered at (%s, %s), radius %sm",
            settings.reference_lat,
            settings.reference_lon,
            settings.presence_radius_m,
        )

    app.include_router(core.router)
    app.include_router(attendance.router)
    app.include_router(admin.router)
    return app


app = create_app()
