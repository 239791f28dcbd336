"""Settings loaded from environment variables (+ optional .env).

Every variable carries the ``TASKS_`` prefix. Nothing is read at import time
except the .env file; call ``Settings.from_env()`` to build a snapshot.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

ENV_PREFIX = "TASKS"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


def _env_path(name: str) -> Optional[Path]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return Path(raw).expanduser()


@dataclass(frozen=True)
class Settings:
    app_name: str = "Task Tracker API"
    database_url: str = "sqlite:///./database.sqlite"
    host: str = "0.0.0.0"
    port: int = 3000

    log_level: str = "INFO"
    log_dir: Optional[Path] = None

    cors_origins: tuple = ("*",)
    metrics_enabled: bool = True

    @staticmethod
    def from_env() -> "Settings":
        # PORT without prefix is what most hosting platforms set.
        port = _env_int(_k("PORT"), _env_int("PORT", 3000))

        return Settings(
            app_name=_env(_k("APP_NAME"), "Task Tracker API"),
            database_url=_env(_k("DATABASE_URL"), "sqlite:///./database.sqlite"),
            host=_env(_k("HOST"), "0.0.0.0"),
            port=port,
            log_level=_env(_k("LOG_LEVEL"), "INFO").upper(),
            log_dir=_env_path(_k("LOG_DIR")),
            cors_origins=tuple(_env_list(_k("CORS_ORIGINS"), ["*"])),
            metrics_enabled=_env_bool(_k("METRICS_ENABLED"), True),
        )
