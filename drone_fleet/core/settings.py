from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import List


def _env_bool(key: str, default: str = "1") -> bool:
    return os.getenv(key, default).strip().lower() not in ("0", "false", "no", "off")


def _env_int(key: str, default: str) -> int:
    raw = os.getenv(key, default)
    try:
        return int(str(raw).strip())
    except Exception:
        return int(default)


def _env_list(key: str, default: str = "") -> List[str]:
    raw = os.getenv(key, default).strip()
    if not raw:
        return []
    if raw == "*":
        return ["*"]
    if raw.startswith("["):
        try:
            v = json.loads(raw)
            if isinstance(v, list):
                return [str(x) for x in v if str(x).strip()]
        except Exception:
            pass
    return [x.strip() for x in raw.split(",") if x.strip()]


@dataclass(frozen=True, slots=True)
class Settings:
    env: str = field(default_factory=lambda: os.getenv("ENV", "prod").strip())
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").strip().upper())

    # Database
    database_url: str = field(default_factory=lambda: os.getenv("DATABASE_URL", "sqlite:///./drone_fleet.db"))
    db_echo: bool = field(default_factory=lambda: _env_bool("DB_ECHO", "0"))
    # NOTE: In production, use Alembic migrations (alembic upgrade head). AUTO_CREATE_DB is a dev/test escape hatch.
    auto_create_db: bool = field(default_factory=lambda: _env_bool("AUTO_CREATE_DB", "0"))

    # Accessory catalog bootstrap (relative to repo root unless absolute)
    accessory_catalog_file: str = field(
        default_factory=lambda: os.getenv("ACCESSORY_CATALOG_FILE", "config/accessory_catalog.yaml")
    )
    seed_accessory_catalog: bool = field(default_factory=lambda: _env_bool("SEED_ACCESSORY_CATALOG", "1"))
    default_accessory_brand: str = field(default_factory=lambda: os.getenv("DEFAULT_ACCESSORY_BRAND", "DJI").strip())

    # Role bootstrap. Identity comes from the hosting platform; we only keep role grants.
    initial_admin_user_id: str = field(default_factory=lambda: os.getenv("INITIAL_ADMIN_USER_ID", "").strip())

    # CORS defaults to locked-down (no cross-origin). Set CORS_ALLOW_ORIGINS to enable UI on another origin.
    cors_allow_origins: List[str] = field(default_factory=lambda: _env_list("CORS_ALLOW_ORIGINS", ""))
    cors_allow_methods: List[str] = field(default_factory=lambda: _env_list("CORS_ALLOW_METHODS", "GET,POST,PUT,DELETE,OPTIONS"))
    cors_allow_headers: List[str] = field(default_factory=lambda: _env_list("CORS_ALLOW_HEADERS", "Content-Type,X-User-Id"))
    cors_allow_credentials: bool = field(default_factory=lambda: _env_bool("CORS_ALLOW_CREDENTIALS", "1"))

    # Request limits / hardening
    max_request_size_bytes: int = field(default_factory=lambda: _env_int("MAX_REQUEST_SIZE_BYTES", str(1024 * 1024)))

    # Persist WARNING+ records to server_logs
    enable_db_log_handler: bool = field(default_factory=lambda: _env_bool("ENABLE_DB_LOG_HANDLER", "1"))
