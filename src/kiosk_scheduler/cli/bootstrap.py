# src/kiosk_scheduler/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the SQLite stores, the clock and the sweep orchestrator into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.clock import SystemClock, resolve_timezone
from ..core.state import AppState
from ..schedules.store import ScheduleStore, TaskStore
from ..schedules.sweep import SweepOrchestrator
from ..schedules.time_periods import DEFAULT_TIME_PERIODS

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    clock = SystemClock(resolve_timezone(getattr(settings, "timezone", "")))
    schedule_store = ScheduleStore(settings.db_path)
    task_store = TaskStore(settings.db_path)
    orchestrator = SweepOrchestrator(
        schedule_store,
        task_store,
        clock,
        periods=getattr(settings, "time_periods", DEFAULT_TIME_PERIODS),
    )

    logger.debug("State ready db=%s tz=%s", settings.db_path, clock.now().tzname())

    return AppState(
        settings=settings,
        clock=clock,
        schedule_store=schedule_store,
        task_store=task_store,
        orchestrator=orchestrator,
    )
