# backend/stockledger/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/stockledger.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location (mysql+pymysql://, postgresql://, ...)
        "sqlite:///stockledger.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    # Include exception text in 500 responses (development only)
    EXPOSE_ERROR_DETAILS = _env_flag("EXPOSE_ERROR_DETAILS", False)

    # Create missing tables at startup
    AUTO_CREATE_TABLES = _env_flag("AUTO_CREATE_TABLES", True)

    PORT = int(os.environ.get("PORT", "3000"))

    # Administrative endpoints under /api/debug (bulk wipe, raw dumps)
    DEBUG_ROUTES_ENABLED = _env_flag("DEBUG_ROUTES_ENABLED", True)

    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if origin.strip()
    ]
