# src/kiosk_scheduler/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- Invalid values fall back to defaults instead of failing startup.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .schedules.time_periods import DEFAULT_TIME_PERIODS, TimePeriodSettings

ENV_PREFIX = "KIOSK"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


# Real environment always wins over .env.
load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


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

    # ---- Sweep loop ----
    sweep_interval_seconds: float
    run_on_start: bool

    # ---- Calendar ----
    # IANA zone name; empty means the evaluator's local zone.
    timezone: str
    time_periods: TimePeriodSettings

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "kiosk-scheduler").strip() or "kiosk-scheduler"
        log_level = _env(_k("LOG_LEVEL"), "INFO").strip() or "INFO"

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/kiosk"))
        db_path = _env_path(_k("DB_PATH"), data_dir / "kiosk.sqlite3")

        sweep_interval_seconds = _env_float(_k("SWEEP_INTERVAL_SECONDS"), 600.0)
        run_on_start = _env_bool(_k("RUN_ON_START"), True)

        timezone = _env(_k("TIMEZONE"), "").strip()
        time_periods = TimePeriodSettings(
            morning_start=_env(_k("MORNING_START"), DEFAULT_TIME_PERIODS.morning_start),
            afternoon_start=_env(_k("AFTERNOON_START"), DEFAULT_TIME_PERIODS.afternoon_start),
            evening_start=_env(_k("EVENING_START"), DEFAULT_TIME_PERIODS.evening_start),
        )

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            db_path=db_path,
            sweep_interval_seconds=sweep_interval_seconds,
            run_on_start=run_on_start,
            timezone=timezone,
            time_periods=time_periods,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
