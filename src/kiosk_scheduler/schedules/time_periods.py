# src/kiosk_scheduler/schedules/time_periods.py

"""
Time periods (morning / afternoon / evening).

A schedule's time_period is opaque to the due check. It only decides from when
a generated task is shown on the kiosk: the task's visible_from is the start of
that period on the generation date.

Defaults:
- morning:   06:00 - 12:00
- afternoon: 12:00 - 18:00
- evening:   18:00 - 00:00 (midnight)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from enum import StrEnum


class TimePeriod(StrEnum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"

    @classmethod
    def from_db(cls, raw: str | None) -> TimePeriod | None:
        if not raw:
            return None
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None


def parse_hhmm(raw: str | None, default: str) -> time:
    """Parse "HH:MM"; blank or malformed input falls back to default."""
    for candidate in (raw, default):
        if not candidate or not candidate.strip():
            continue
        try:
            hh, mm = candidate.strip().split(":", 1)
            return time(int(hh), int(mm))
        except ValueError:
            continue
    return time(0, 0)


@dataclass(frozen=True, slots=True)
class TimePeriodSettings:
    morning_start: str = "06:00"
    afternoon_start: str = "12:00"
    evening_start: str = "18:00"


DEFAULT_TIME_PERIODS = TimePeriodSettings()


def period_start(period: TimePeriod, settings: TimePeriodSettings = DEFAULT_TIME_PERIODS) -> time:
    if period is TimePeriod.MORNING:
        return parse_hhmm(settings.morning_start, DEFAULT_TIME_PERIODS.morning_start)
    if period is TimePeriod.AFTERNOON:
        return parse_hhmm(settings.afternoon_start, DEFAULT_TIME_PERIODS.afternoon_start)
    return parse_hhmm(settings.evening_start, DEFAULT_TIME_PERIODS.evening_start)


def period_end(period: TimePeriod, settings: TimePeriodSettings = DEFAULT_TIME_PERIODS) -> time:
    """Evening ends at midnight (returned as 00:00)."""
    if period is TimePeriod.MORNING:
        return period_start(TimePeriod.AFTERNOON, settings)
    if period is TimePeriod.AFTERNOON:
        return period_start(TimePeriod.EVENING, settings)
    return time(0, 0)


def _minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def is_time_in_period(
    t: datetime | time,
    period: TimePeriod,
    settings: TimePeriodSettings = DEFAULT_TIME_PERIODS,
) -> bool:
    current = _minutes(t.time() if isinstance(t, datetime) else t)
    start = _minutes(period_start(period, settings))
    end = _minutes(period_end(period, settings))
    if end == 0:
        end = 24 * 60
    return start <= current < end


def current_time_period(
    t: datetime | time,
    settings: TimePeriodSettings = DEFAULT_TIME_PERIODS,
) -> TimePeriod:
    for period in (TimePeriod.MORNING, TimePeriod.AFTERNOON, TimePeriod.EVENING):
        if is_time_in_period(t, period, settings):
            return period
    # After midnight but before morning still belongs to the evening.
    return TimePeriod.EVENING


def period_start_datetime(
    day: datetime,
    period: TimePeriod,
    settings: TimePeriodSettings = DEFAULT_TIME_PERIODS,
) -> datetime:
    """Start of period on day's calendar date, keeping day's tzinfo."""
    start = period_start(period, settings)
    d: date = day.date()
    return datetime.combine(d, start, tzinfo=day.tzinfo)


def visible_from_for(
    time_period: str | None,
    now: datetime,
    settings: TimePeriodSettings = DEFAULT_TIME_PERIODS,
) -> datetime | None:
    """
    visible_from for a task generated at now.

    No / unknown time period -> None (visible right away).
    """
    period = TimePeriod.from_db(time_period)
    if period is None:
        return None
    return period_start_datetime(now, period, settings)
