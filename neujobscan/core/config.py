from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    app_name: str
    rate_limit: str
    rate_limit_enabled: bool
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    cors_allow_credentials: bool
    history_db_path: str
    history_retention_days: int
    session_db_path: str
    session_ttl_hours: int
    scan_timeout_s: float
    upload_max_bytes: int
    checkout_base_url: str
    checkout_plans: tuple[str, ...]
    host: str
    port: int


settings = Settings(
    app_name=_get_env("APP_NAME", "NeuJobScan") or "NeuJobScan",
    rate_limit=_get_env("RATE_LIMIT", "60/minute") or "60/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
        ],
    ),
    cors_allow_origin_regex=_get_env("CORS_ALLOW_ORIGIN_REGEX"),
    cors_allow_credentials=_get_env_bool("CORS_ALLOW_CREDENTIALS", False),
    history_db_path=_get_env("HISTORY_DB_PATH", "data/scan_history.db") or "data/scan_history.db",
    history_retention_days=_get_env_int("HISTORY_RETENTION_DAYS", 365),
    session_db_path=_get_env("SESSION_DB_PATH", "data/sessions.db") or "data/sessions.db",
    session_ttl_hours=_get_env_int("SESSION_TTL_HOURS", 24),
    scan_timeout_s=_get_env_float("SCAN_TIMEOUT_S", 60.0),
    upload_max_bytes=_get_env_int("UPLOAD_MAX_BYTES", 10 * 1024 * 1024),
    checkout_base_url=_get_env("CHECKOUT_BASE_URL", "https://checkout.example.com/mock")
    or "https://checkout.example.com/mock",
    checkout_plans=_get_env_list("CHECKOUT_PLANS", ["basic", "premium", "enterprise"]),
    host=_get_env("HOST", "127.0.0.1") or "127.0.0.1",
    port=_get_env_int("PORT", 8000),
)

if settings.scan_timeout_s <= 0:
    raise RuntimeError("SCAN_TIMEOUT_S must be greater than 0.")
