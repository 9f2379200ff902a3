from fastapi import Request

from backend.config import Settings
from database.db import AttendanceStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> AttendanceStore:
    return request.app.state.store


def client_ip(request: Request, trust_forwarded_for: bool) -> str | None:
    if trust_forwarded_for:
        forwarded = request.headers.get("X-Forwarded-For", "")
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else None
