# backend/opsengine/config.py
from __future__ import annotations
import os


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


class Config:
    # Optional "SECRET_KEY", with default dev key (also signs bearer tokens)
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/opsengine.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///opsengine.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    TOKEN_MAX_AGE_SECONDS = _env_int("TOKEN_MAX_AGE_SECONDS", 12 * 60 * 60)

    # Lowest-privilege role; new principals land here
    DEFAULT_ROLE_NAME = os.environ.get("DEFAULT_ROLE_NAME", "Staff")

    DASHBOARD_TIMEOUT_SECONDS = _env_float("DASHBOARD_TIMEOUT_SECONDS", 5.0)
    DASHBOARD_TREND_DAYS = _env_int("DASHBOARD_TREND_DAYS", 7)
    DASHBOARD_WORKERS = _env_int("DASHBOARD_WORKERS", 2)
    NOTIFICATION_PAGE_SIZE = _env_int("NOTIFICATION_PAGE_SIZE", 50)

    BROADCAST_QUEUE_SIZE = _env_int("BROADCAST_QUEUE_SIZE", 100)
    STREAM_HEARTBEAT_SECONDS = _env_float("STREAM_HEARTBEAT_SECONDS", 15.0)

    # Clock-ins at or after this UTC hour are recorded as Late
    LATE_AFTER_HOUR = _env_int("LATE_AFTER_HOUR", 9)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if origin.strip()
    ]


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SECRET_KEY = "test-secret-key"
    DASHBOARD_TIMEOUT_SECONDS = 5.0
    LOG_LEVEL = "WARNING"
