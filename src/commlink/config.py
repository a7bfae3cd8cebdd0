# src/commlink/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- Every value has a safe default so tests and local runs need no .env.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "COMMLINK"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
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


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


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
    db_path: Path

    # ---- Reminder & expiry scheduler ----
    scheduler_enabled: bool
    reminder_interval_seconds: float
    response_window_minutes: int

    # ---- Notifier ----
    notify_webhook_url: str
    notify_sender: str
    notify_timeout_seconds: float

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "commlink").strip() or "commlink"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/commlink"))
        db_path = _env_path(_k("DB_PATH"), data_dir / "commlink.sqlite3")

        scheduler_enabled = _env_bool(_k("SCHEDULER_ENABLED"), True)
        reminder_interval_seconds = _env_float(_k("REMINDER_INTERVAL_SECONDS"), 300.0)
        response_window_minutes = _env_int(_k("RESPONSE_WINDOW_MINUTES"), 60)

        notify_webhook_url = _env(_k("NOTIFY_WEBHOOK_URL"), "").strip()
        notify_sender = _env(_k("NOTIFY_SENDER"), "").strip()
        notify_timeout_seconds = _env_float(_k("NOTIFY_TIMEOUT_SECONDS"), 10.0)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            db_path=db_path,
            scheduler_enabled=scheduler_enabled,
            reminder_interval_seconds=max(1.0, reminder_interval_seconds),
            response_window_minutes=max(1, response_window_minutes),
            notify_webhook_url=notify_webhook_url,
            notify_sender=notify_sender,
            notify_timeout_seconds=max(0.1, notify_timeout_seconds),
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
