# src/remote_work/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

- One Settings object for the whole app.
- No secrets required at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "RWM"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int, *, minimum: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    if minimum is not None and value < minimum:
        return default
    return value


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    store_path: Path

    # ---- Index tuning ----
    history_cap: int
    history_show_default: int
    search_limit: int

    # ---- Divergence recovery ----
    auto_resync: bool

    @staticmethod
    def from_env() -> "Settings":
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/remote_work"))

        return Settings(
            app_name=_env(_k("APP_NAME"), "remote-work"),
            log_level=_env(_k("LOG_LEVEL"), "WARNING"),
            data_dir=data_dir,
            store_path=_env_path(_k("STORE_PATH"), data_dir / "records.sqlite3"),
            history_cap=_env_int(_k("HISTORY_CAP"), 1000, minimum=1),
            history_show_default=_env_int(_k("HISTORY_SHOW"), 20, minimum=1),
            search_limit=_env_int(_k("SEARCH_LIMIT"), 50, minimum=1),
            auto_resync=_env_bool(_k("AUTO_RESYNC"), False),
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
