# src/kiosk_scheduler/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The decision engine, generator and sweep depend on Protocols instead of the
SQLite stores. This keeps storage swappable and makes testing easier.

Failures are reported by raising core.errors types:
- StoreUnavailable: backend unreachable / table missing
- QueryFailure: a read failed
- WriteFailure: a write failed
"""

from collections.abc import Sequence
from datetime import datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..schedules.models import NewTask, ScheduleRecord, Task


class Clock(Protocol):
    """Supplies the current time; the returned tzinfo defines "today"."""
    def now(self) -> datetime: ...


class ScheduleRepo(Protocol):
    def list_active(self) -> Sequence[ScheduleRecord]: ...
    def update_last_generated(self, schedule_id: str, timestamp: datetime) -> None: ...


class TaskRepo(Protocol):
    # Duplicate suppression: incomplete task for (schedule, child), if any.
    def find_incomplete(self, schedule_id: str, child_id: str) -> Task | None: ...

    # Returns the new task id.
    def create(self, task: NewTask) -> str: ...
