# src/kiosk_scheduler/schedules/generator.py

from __future__ import annotations

"""
Task generation for one due schedule.

Steps:
- look for an incomplete task of (schedule, child); if found, skip
- create the task from the schedule's title/child/priority
- stamp schedule.last_generated = now (only after the task exists)

The two writes are not transactional. If the process dies between them, the
schedule stays due, and the next sweep's duplicate check finds the task that
was already created and skips. The duplicate check, not the timestamp, is the
real guard against double generation.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from ..core.errors import QueryFailure, WriteFailure
from ..core.ports import ScheduleRepo, TaskRepo
from .models import NewTask, Schedule
from .time_periods import DEFAULT_TIME_PERIODS, TimePeriodSettings, visible_from_for

logger = logging.getLogger(__name__)


class GenerationStatus(StrEnum):
    CREATED = "created"
    SKIPPED_DUPLICATE = "skipped_duplicate"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class GenerationOutcome:
    status: GenerationStatus
    task_id: str | None = None
    reason: str | None = None

    @classmethod
    def created(cls, task_id: str) -> GenerationOutcome:
        return cls(GenerationStatus.CREATED, task_id=task_id)

    @classmethod
    def skipped(cls, existing_task_id: str) -> GenerationOutcome:
        return cls(GenerationStatus.SKIPPED_DUPLICATE, task_id=existing_task_id)

    @classmethod
    def failed(cls, reason: str, task_id: str | None = None) -> GenerationOutcome:
        return cls(GenerationStatus.FAILED, task_id=task_id, reason=reason)


def build_task(
    schedule: Schedule,
    now: datetime,
    periods: TimePeriodSettings = DEFAULT_TIME_PERIODS,
) -> NewTask:
    return NewTask(
        title=schedule.title,
        child=schedule.child,
        priority=schedule.priority,
        schedule=schedule.id,
        generated_at=now,
        visible_from=visible_from_for(schedule.time_period, now, periods),
        completed=False,
    )


class ScheduleGenerator:
    """
    Turns a due schedule into at most one incomplete task.

    StoreUnavailable is not caught here: it means the whole sweep should stop.
    """

    def __init__(
        self,
        schedules: ScheduleRepo,
        tasks: TaskRepo,
        *,
        periods: TimePeriodSettings = DEFAULT_TIME_PERIODS,
    ) -> None:
        self._schedules = schedules
        self._tasks = tasks
        self._periods = periods

    def generate(self, schedule: Schedule, now: datetime) -> GenerationOutcome:
        try:
            existing = self._tasks.find_incomplete(schedule.id, schedule.child)
        except QueryFailure as e:
            logger.error("Duplicate check failed schedule=%s child=%s: %s", schedule.id, schedule.child, e)
            return GenerationOutcome.failed(f"duplicate check failed: {e}")

        if existing is not None:
            logger.info(
                "Skipping schedule %s: incomplete task %s already exists for child %s",
                schedule.id,
                existing.id,
                schedule.child,
            )
            return GenerationOutcome.skipped(existing.id)

        task = build_task(schedule, now, self._periods)
        try:
            task_id = self._tasks.create(task)
        except WriteFailure as e:
            logger.error("Task creation failed schedule=%s: %s", schedule.id, e)
            return GenerationOutcome.failed(f"task creation failed: {e}")

        try:
            self._schedules.update_last_generated(schedule.id, now)
        except WriteFailure as e:
            # Task exists; the next sweep's duplicate check will skip it.
            logger.error("Updating last_generated failed schedule=%s task=%s: %s", schedule.id, task_id, e)
            return GenerationOutcome.failed(f"last_generated update failed: {e}", task_id=task_id)

        logger.info("Generated task %s for schedule %s (%s)", task_id, schedule.id, schedule.title)
        return GenerationOutcome.created(task_id)
