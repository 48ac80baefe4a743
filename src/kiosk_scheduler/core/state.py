# src/kiosk_scheduler/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..schedules.store import ScheduleStore, TaskStore
from ..schedules.sweep import SweepOrchestrator
from .clock import SystemClock


@dataclass
class AppState:
    # Settings, or any object with the same attributes (tests use SimpleNamespace).
    settings: Any

    clock: SystemClock
    schedule_store: ScheduleStore
    task_store: TaskStore
    orchestrator: SweepOrchestrator
