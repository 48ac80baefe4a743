# src/kiosk_scheduler/schedules/models.py

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import IntEnum, StrEnum
from typing import Any

from ..core.errors import ParseFailure


class Recurrence(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"

    @classmethod
    def from_db(cls, raw: str | None) -> Recurrence | None:
        """Unknown values map to None (never due), not to an error."""
        if not raw:
            return None
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None


class Weekday(IntEnum):
    """Sunday-based weekday numbering, as stored in days_of_week."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6


_WEEKDAY_ABBREV = {
    "sun": Weekday.SUNDAY,
    "mon": Weekday.MONDAY,
    "tue": Weekday.TUESDAY,
    "wed": Weekday.WEDNESDAY,
    "thu": Weekday.THURSDAY,
    "fri": Weekday.FRIDAY,
    "sat": Weekday.SATURDAY,
}


# ---- field codecs ----


def parse_weekday(raw: Any) -> Weekday:
    if isinstance(raw, bool):
        raise ParseFailure("days_of_week", raw, "booleans are not weekdays")
    if isinstance(raw, int):
        if 0 <= raw <= 6:
            return Weekday(raw)
        raise ParseFailure("days_of_week", raw, "weekday out of range 0..6")
    if isinstance(raw, str):
        key = raw.strip().lower()[:3]
        if key in _WEEKDAY_ABBREV:
            return _WEEKDAY_ABBREV[key]
        if key.isdigit():
            return parse_weekday(int(key))
    raise ParseFailure("days_of_week", raw, "not a weekday")


def parse_days_of_week(raw: Any) -> tuple[Weekday, ...]:
    """
    Validate stored days_of_week into a sorted tuple without duplicates.

    Accepts a JSON array (as text or already decoded) of integers 0..6 or
    weekday abbreviations. None / "" / "null" / [] all mean "every day".
    """
    if raw is None:
        return ()
    if isinstance(raw, str):
        text = raw.strip()
        if not text or text == "null":
            return ()
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise ParseFailure("days_of_week", text, str(e)) from e
        if raw is None:
            return ()
    if not isinstance(raw, (list, tuple)):
        raise ParseFailure("days_of_week", raw, "expected a list")
    return tuple(sorted({parse_weekday(v) for v in raw}))


def encode_days_of_week(days: Iterable[int]) -> str:
    return json.dumps(sorted({int(d) for d in days}))


def parse_timestamp(raw: Any, *, field_name: str = "timestamp") -> datetime | None:
    """
    Parse a stored date-time.

    Empty values mean "never". Naive values are taken as UTC (that is how the
    store writes them when no offset was available).
    """
    if raw is None:
        return None
    if isinstance(raw, datetime):
        value = raw
    else:
        text = str(raw).strip()
        if not text:
            return None
        try:
            value = datetime.fromisoformat(text)
        except ValueError as e:
            raise ParseFailure(field_name, text, str(e)) from e
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def format_timestamp(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.astimezone()
    return value.isoformat()


# ---- domain types ----


@dataclass(slots=True, frozen=True)
class Schedule:
    id: str
    title: str
    child: str
    priority: int | None
    recurrence: Recurrence | None
    days_of_week: tuple[Weekday, ...] = ()
    time_period: str = ""
    active: bool = True
    last_generated: datetime | None = None


@dataclass(slots=True, frozen=True)
class ScheduleRecord:
    """
    A schedule exactly as persisted.

    Parsing is deferred to parse() so a single malformed row surfaces as a
    ParseFailure for that schedule instead of breaking the listing.
    """

    id: str
    title: str
    child: str
    priority: int | None
    recurrence: str | None
    days_of_week: Any
    time_period: str | None
    active: bool
    last_generated: Any

    def parse(self) -> Schedule:
        return Schedule(
            id=self.id,
            title=self.title,
            child=self.child,
            priority=self.priority,
            recurrence=Recurrence.from_db(self.recurrence),
            days_of_week=parse_days_of_week(self.days_of_week),
            time_period=(self.time_period or "").strip(),
            active=bool(self.active),
            last_generated=parse_timestamp(self.last_generated, field_name="last_generated"),
        )

    @classmethod
    def from_schedule(cls, schedule: Schedule) -> ScheduleRecord:
        return cls(
            id=schedule.id,
            title=schedule.title,
            child=schedule.child,
            priority=schedule.priority,
            recurrence=schedule.recurrence.value if schedule.recurrence else None,
            days_of_week=encode_days_of_week(schedule.days_of_week),
            time_period=schedule.time_period,
            active=schedule.active,
            last_generated=format_timestamp(schedule.last_generated),
        )


@dataclass(slots=True)
class NewTask:
    """A task about to be created (no id yet)."""

    title: str
    child: str
    priority: int | None
    schedule: str
    generated_at: datetime
    visible_from: datetime | None = None
    completed: bool = False


@dataclass(slots=True)
class Task:
    id: str
    title: str
    child: str
    priority: int | None
    completed: bool
    schedule: str | None
    generated_at: datetime | None
    visible_from: datetime | None = None
    completed_at: datetime | None = None
