# src/kiosk_scheduler/schedules/sweep.py

from __future__ import annotations

"""
Sweep orchestrator.

One sweep = one pass over all active schedules:
- list active schedule records (failure here aborts the sweep)
- per record: parse -> due check -> generate
- per-schedule errors are logged and recorded, never abort the sweep

Schedules are processed one after another, and the run loop never starts a
sweep before the previous one has finished. The duplicate check is a
read-then-write without a transaction, so this single-flight execution is what
keeps "one incomplete task per (schedule, child)" true.

Nothing is persisted about a sweep beyond last_generated and the tasks
themselves; every sweep recomputes the state from data.
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from ..core.errors import ParseFailure, StoreUnavailable
from ..core.ports import Clock, ScheduleRepo, TaskRepo
from .decision import is_due
from .generator import GenerationStatus, ScheduleGenerator
from .models import ScheduleRecord
from .time_periods import DEFAULT_TIME_PERIODS, TimePeriodSettings

logger = logging.getLogger(__name__)


class ScheduleStatus(StrEnum):
    NOT_DUE = "not_due"
    CREATED = "created"
    SKIPPED_DUPLICATE = "skipped_duplicate"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class ScheduleOutcome:
    schedule_id: str
    status: ScheduleStatus
    task_id: str | None = None
    reason: str | None = None


@dataclass(slots=True)
class SweepReport:
    started_at: datetime
    outcomes: list[ScheduleOutcome] = field(default_factory=list)

    def _count(self, status: ScheduleStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def processed(self) -> int:
        return len(self.outcomes)

    @property
    def created(self) -> int:
        return self._count(ScheduleStatus.CREATED)

    @property
    def skipped(self) -> int:
        return self._count(ScheduleStatus.SKIPPED_DUPLICATE)

    @property
    def not_due(self) -> int:
        return self._count(ScheduleStatus.NOT_DUE)

    @property
    def failed(self) -> int:
        return self._count(ScheduleStatus.FAILED)

    def outcome_for(self, schedule_id: str) -> ScheduleOutcome | None:
        for o in self.outcomes:
            if o.schedule_id == schedule_id:
                return o
        return None

    def summary(self) -> str:
        return (
            f"processed={self.processed} created={self.created} "
            f"skipped={self.skipped} not_due={self.not_due} failed={self.failed}"
        )


_FROM_GENERATION = {
    GenerationStatus.CREATED: ScheduleStatus.CREATED,
    GenerationStatus.SKIPPED_DUPLICATE: ScheduleStatus.SKIPPED_DUPLICATE,
    GenerationStatus.FAILED: ScheduleStatus.FAILED,
}


class SweepOrchestrator:
    def __init__(
        self,
        schedules: ScheduleRepo,
        tasks: TaskRepo,
        clock: Clock,
        *,
        periods: TimePeriodSettings = DEFAULT_TIME_PERIODS,
    ) -> None:
        self._schedules = schedules
        self._clock = clock
        self._generator = ScheduleGenerator(schedules, tasks, periods=periods)

    # ---- one pass ----

    def run_sweep(self, now: datetime | None = None) -> SweepReport:
        """
        Evaluate every active schedule once.

        Raises StoreUnavailable / QueryFailure if the active schedules cannot
        be listed, or StoreUnavailable if the store goes away mid-sweep.
        """
        if now is None:
            now = self._clock.now()

        records = self._schedules.list_active()
        logger.info("Processing %d active schedules", len(records))

        report = SweepReport(started_at=now)
        for record in records:
            report.outcomes.append(self._process(record, now))

        logger.info("Sweep done: %s", report.summary())
        return report

    def _process(self, record: ScheduleRecord, now: datetime) -> ScheduleOutcome:
        try:
            schedule = record.parse()
        except ParseFailure as e:
            # Fail closed: a schedule we cannot read is never due.
            logger.error("Schedule %s has malformed data, not generating: %s", record.id, e)
            return ScheduleOutcome(record.id, ScheduleStatus.FAILED, reason=str(e))

        try:
            if not is_due(schedule, now):
                logger.debug("Schedule %s not due", schedule.id)
                return ScheduleOutcome(schedule.id, ScheduleStatus.NOT_DUE)

            outcome = self._generator.generate(schedule, now)
        except StoreUnavailable:
            raise
        except Exception as e:
            logger.exception("Error processing schedule %s", schedule.id)
            return ScheduleOutcome(schedule.id, ScheduleStatus.FAILED, reason=str(e))

        return ScheduleOutcome(
            schedule.id,
            _FROM_GENERATION[outcome.status],
            task_id=outcome.task_id,
            reason=outcome.reason,
        )

    # ---- run loop ----

    def sweep_safely(self) -> SweepReport | None:
        """run_sweep(clock.now()) with every error logged instead of raised."""
        try:
            return self.run_sweep(self._clock.now())
        except Exception:
            logger.exception("Error processing schedules")
            return None

    async def run_forever(
        self,
        stop: asyncio.Event,
        *,
        interval_seconds: float = 600.0,
        run_immediately: bool = True,
    ) -> None:
        """
        Sweep once at start (optional), then every interval_seconds, until
        stop is set or the coroutine is cancelled.

        Sweeps never overlap: the next wait only starts after a sweep returns.
        """
        sleep_s = max(0.01, float(interval_seconds))
        logger.info("Schedule loop started - checking every %.0f seconds", sleep_s)

        if run_immediately and not stop.is_set():
            self.sweep_safely()

        while not stop.is_set():
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(stop.wait(), timeout=sleep_s)
            if stop.is_set():
                break
            self.sweep_safely()

        logger.info("Schedule loop stopped")
